"""
Modes controlling when base images are pulled automatically.
"""
from enum import Enum
from typing import Tuple

from ..errors import ConfigurationError


class AutoPullMode(str, Enum):
    """
    Automatic pull behaviour. Each mode is matched by a set of
    case-insensitive aliases.
    """
    ON = "on"
    ONCE = "once"
    OFF = "off"
    ALWAYS = "always"

    @property
    def aliases(self) -> Tuple[str, ...]:
        return _ALIASES[self]

    @property
    def pull_if_not_present(self) -> bool:
        """Whether a missing image is pulled."""
        return self is not AutoPullMode.OFF

    @property
    def always_pull(self) -> bool:
        """Whether the image is pulled even if present locally."""
        return self is AutoPullMode.ALWAYS

    @classmethod
    def from_string(cls, value: str) -> "AutoPullMode":
        """
        Looks up a mode by one of its aliases.

        :param value: Alias like ``true`` or ``Once``.
        :return: The matching mode.
        :raises ConfigurationError: If no mode has the given alias.
        """
        needle = (value or "").strip().lower()
        for mode in cls:
            if needle in mode.aliases:
                return mode
        valid = ", ".join(alias for mode in cls for alias in mode.aliases)
        raise ConfigurationError(f"Invalid value '{value}' for autoPull mode. Valid values are: {valid}")


_ALIASES = {
    AutoPullMode.ON: ("on", "true"),
    AutoPullMode.ONCE: ("once",),
    AutoPullMode.OFF: ("off", "false"),
    AutoPullMode.ALWAYS: ("always",),
}
