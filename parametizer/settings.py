"""
Host-level settings shared by a config tree.

Settings are resolved once per config:
- explicit keyword arguments win;
- then the host application's __settings__ mapping in __main__ (Settings.load());
- then the defaults below.

Fields
- help_short_name: short name of the --help option (None: no short name).
- short_description_min: a generated short description is cut at a sentence end
  only if the sentence is at least this long.
- short_description_max: the hard limit of a generated short description
  (0 disables generated short descriptions).
- colorful: when False, help, listings and errors are rendered without styles.
"""
import re

from .faults import ConfigError
from .utils import mirror


class Settings:
    __introspectable__ = (
        "help_short_name",
        "short_description_min",
        "short_description_max",
        "colorful",
    )

    help_short_name = mirror("help_short_name")
    short_description_min = mirror("short_description_min")
    short_description_max = mirror("short_description_max")
    colorful = mirror("colorful")

    def __init__(
            self,
            *,
            help_short_name=None,
            short_description_min=40,
            short_description_max=70,
            colorful=True,
    ):
        if help_short_name is not None:
            if not isinstance(help_short_name, str):
                raise TypeError("settings 'help_short_name' must be a string")
            if not re.fullmatch(r"[a-zA-Z]", help_short_name):
                raise ConfigError(f"settings 'help_short_name' must be a single latin character, got {help_short_name!r}")
        for name, value in (("short_description_min", short_description_min), ("short_description_max", short_description_max)):
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"settings {name!r} must be an integer")
            if value < 0:
                raise ConfigError(f"settings {name!r} cannot be negative")

        self._help_short_name = help_short_name
        self._short_description_min = short_description_min
        self._short_description_max = short_description_max
        self._colorful = bool(colorful)

    @classmethod
    def load(cls, **overrides):
        """build settings from the host's __main__.__settings__ mapping, then the overrides."""
        defaults = dict(getattr(__import__("__main__"), "__settings__", {}))
        if unknown := set(defaults) - set(cls.__introspectable__):
            raise ConfigError(f"__settings__ has unknown keys: {', '.join(sorted(unknown))}")
        return cls(**defaults | overrides)

    def __repr__(self):
        return f"settings({', '.join(f'{name}={getattr(self, name)!r}' for name in self.__introspectable__)})"


__all__ = (
    "Settings",
)
