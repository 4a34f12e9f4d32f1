"""
Parametizer faults (errors) and rendering.

Scope
- FaultCode: stable numeric identifiers for user-facing parse errors.
- ConfigError: a malformed declaration (the tool itself is broken); never user-facing.
- LogicError: misuse of a sealed config or of the request accessors by the consumer.
- ParseError and its family: bad user input. These carry a message + options and
  know how to render themselves (message, then a usage hint for the offending
  parameters).
- trigger(): central entry point to surface a parse error (respecting shell mode).

Integration
- The request processor raises ParseError subclasses while binding values.
- The runner hands them to trigger(fault, shell=..., config=...):
  • in non-shell mode the exception is raised again;
  • in shell mode it is printed to stderr via rich and the process exits with 1.
"""
import copy
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

console = Console(stderr=True)

EXIT_CODE = 1


class FaultCode(IntEnum):
    """
    canonical parse-error codes (stable identifiers).

    grouping
    - parameters in general (1)
      • NO_PARAM
    - arguments (10x)
      • TOO_MANY_ARGUMENTS, WRONG_ARGUMENT
    - options (20x)
      • NO_OPTION, WRONG_OPTION, NO_OPTION_VALUE
    """
    NO_PARAM           = 1

    TOO_MANY_ARGUMENTS = 101
    WRONG_ARGUMENT     = 102

    NO_OPTION          = 201
    WRONG_OPTION       = 202
    NO_OPTION_VALUE    = 203

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ConfigError(ValueError):
    """A parameter, option or subcommand was declared incorrectly."""


class LogicError(RuntimeError):
    """The consumer misused a sealed config or a request accessor."""


class ParseError(Exception):
    """
    base type for user-input errors.

    options
    - code: FaultCode (defaults to the class' own code).
    - params: the parameters the error is about (rendered as a usage hint).
    - config: the config level the error happened at (source of the --help option).
    - shell: when true, __trigger__ prints and exits instead of raising.
    """
    __fault__ = FaultCode.NO_PARAM

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__}() message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"code": type(self).__fault__, "params": ()} | options)

    @property
    def code(self):
        return self.options["code"]

    @property
    def params(self):
        return tuple(self.options["params"])

    def __rich__(self):
        config = self.options.get("config")
        colorful = config.settings.colorful if config is not None else True

        styles = defaultdict(str, {
            "error": "bold #FF4DA6",  # friendly pinky message
        } | getattr(__import__("__main__"), "__styles__", {}))

        renders = [Text(self.message, styles["error"] if colorful else "")]
        if config is not None:
            from .help import HelpGenerator
            renders.append(HelpGenerator(config).usage_for_parse_error(self))
        return Group(*renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self, soft_wrap=True, highlight=False)
        sys.exit(EXIT_CODE)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MissingParametersError(ParseError):
    __fault__ = FaultCode.NO_PARAM


class TooManyArgumentsError(ParseError):
    __fault__ = FaultCode.TOO_MANY_ARGUMENTS


class InvalidArgumentError(ParseError):
    __fault__ = FaultCode.WRONG_ARGUMENT


class MissingOptionsError(ParseError):
    __fault__ = FaultCode.NO_OPTION


class UnknownOptionError(ParseError):
    __fault__ = FaultCode.WRONG_OPTION


class InvalidOptionError(ParseError):
    __fault__ = FaultCode.NO_OPTION_VALUE


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ParseError).
    - options are merged into the fault via copy.replace() before triggering.
    - in shell mode, rendering happens via the stderr console; otherwise, the
      exception is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "ConfigError",
    "LogicError",
    "ParseError",
    "MissingParametersError",
    "TooManyArgumentsError",
    "InvalidArgumentError",
    "MissingOptionsError",
    "UnknownOptionError",
    "InvalidOptionError",
    "trigger",
)
