import os
from typing import Optional, Tuple

from perkdown.errors import SettingsError


class ParserConfig:
    DIALECT_NAMESPACE: str = "USE"
    DIALECT_ID: str = "PRKMD"
    SUPPORTED_VERSIONS: list = ["1.0"]

    # Lowercase key so no tag in a document can ever open or close the root
    ROOT_BLOCK_KEY: str = "_internal_"
    ROOT_BLOCK_VALUE: str = "MAIN_BLOCK"

    # None: nesting depth is only bounded by the interpreter recursion limit
    DEFAULT_MAX_DEPTH: Optional[int] = None
    LOG_LEVEL: str = "WARNING"

    MAX_DEPTH_ENV: str = "PERKDOWN_MAX_DEPTH"
    LOG_LEVEL_ENV: str = "PERKDOWN_LOG_LEVEL"

    @classmethod
    def validate_config(cls) -> None:
        """Validate that all configuration values are sensible."""

        if cls.ROOT_BLOCK_KEY.upper() == cls.ROOT_BLOCK_KEY:
            raise ValueError(
                f"ROOT_BLOCK_KEY must not be expressible as a tag key, got {cls.ROOT_BLOCK_KEY}"
            )

        if cls.DEFAULT_MAX_DEPTH is not None and cls.DEFAULT_MAX_DEPTH < 1:
            raise ValueError(
                f"DEFAULT_MAX_DEPTH must be None or >= 1, got {cls.DEFAULT_MAX_DEPTH}"
            )

        if not cls.SUPPORTED_VERSIONS:
            raise ValueError("SUPPORTED_VERSIONS must not be empty")


ParserConfig.validate_config()


def get_root_identity() -> Tuple[str, str]:
    """Get the (key, value) pair reserved for the implicit top-level block."""
    return ParserConfig.ROOT_BLOCK_KEY, ParserConfig.ROOT_BLOCK_VALUE


def get_supported_versions() -> list:
    return list(ParserConfig.SUPPORTED_VERSIONS)


def get_max_depth() -> Optional[int]:
    """
    Get the maximum BEGIN nesting depth, None when unbounded.

    PERKDOWN_MAX_DEPTH enables the guard; "0" or "none" disables it.

    Raises:
        SettingsError: if the environment value is not a non-negative integer
    """
    raw = os.getenv(ParserConfig.MAX_DEPTH_ENV)
    if raw is None or not raw.strip():
        return ParserConfig.DEFAULT_MAX_DEPTH
    if raw.strip().lower() in ("0", "none"):
        return None
    try:
        depth = int(raw)
    except ValueError:
        raise SettingsError(
            f"{ParserConfig.MAX_DEPTH_ENV} must be an integer, got {raw!r}"
        )
    if depth < 0:
        raise SettingsError(f"{ParserConfig.MAX_DEPTH_ENV} must be >= 0, got {depth}")
    return depth


def get_log_level() -> str:
    """Get the log level used by the command line, env override first."""
    return os.getenv(ParserConfig.LOG_LEVEL_ENV, ParserConfig.LOG_LEVEL).upper()
