import sys

from perkdown.cli import main

sys.exit(main())
