class PerkdownError(Exception):
    """Base class for errors raised by the perkdown package."""


class NestingDepthError(PerkdownError):
    """Raised when BEGIN blocks nest deeper than the configured maximum."""

    def __init__(self, depth: int, key: str, value: str):
        self.depth = depth
        self.key = key
        self.value = value
        super().__init__(
            f"Block {key}:{value} exceeds the maximum nesting depth ({depth})"
        )


class SettingsError(PerkdownError):
    """Raised when a settings file cannot be read or validated."""
