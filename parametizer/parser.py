"""
Token classification for the pre-split process arguments.

Parser walks the argument list one token per read() and tells options from
arguments. It knows nothing about declared parameters except the aliases that
require a value, which are passed to every read() call by the request processor.

Forms
- "--"            disables option recognition for the rest of the input.
- "--name=value"  long option with an inline value ("--name=" means no value).
- "--name value"  long option consuming the next token, when "--name" requires a value.
- "-x", "-xvalue", "-x value"
                  short option; the value is the rest of the token or the next
                  token when "-x" requires a value.
- "-xyz"          bundled short flags, expanded one at a time.
- anything else   an argument.
"""
import sys
from collections import namedtuple
from collections.abc import Iterable

from .utils import Unset

ParsedArgument = namedtuple("ParsedArgument", ("value",))
ParsedOption = namedtuple("ParsedOption", ("value", "alias"))


class Parser:
    """a mutable cursor over the argument list; one parse drives exactly one instance."""

    def __init__(self, args=Unset, /):
        if args is Unset:
            args = sys.argv[1:]
        if isinstance(args, str) or not isinstance(args, Iterable):
            raise TypeError("Parser() argument must be an iterable of strings")
        self._args = list(args)
        if not all(isinstance(arg, str) for arg in self._args):
            raise TypeError("Parser() argument must be an iterable of strings")
        self._options = True

    @property
    def options_allowed(self):
        return self._options

    @property
    def exhausted(self):
        return not self._args

    def allow_options(self, state=True, /):
        self._options = bool(state)
        return self

    def append(self, word, /):
        """feed one more token at the end of the input."""
        if not isinstance(word, str):
            raise TypeError("Parser.append() argument must be a string")
        self._args.append(word)
        return self

    def read(self, short_names_with_values=(), long_names_with_values=(), /):
        """
        return the next ParsedArgument / ParsedOption, or None when the input is exhausted.

        short_names_with_values holds bare letters ("o"), long_names_with_values
        holds full aliases ("--output").
        """
        while self._args:
            arg = self._args.pop(0)

            if not self._options or arg == "-" or not arg.startswith("-"):
                return ParsedArgument(arg)

            if arg == "--":
                self._options = False
                continue

            if arg.startswith("--"):
                alias, separator, value = arg.partition("=")
                if not separator and alias in long_names_with_values and self._args:
                    value = self._args.pop(0)
                return ParsedOption(value or None, alias)

            name, rest = arg[1], arg[2:]
            if name in short_names_with_values:
                if rest:
                    value = rest
                elif self._args:
                    value = self._args.pop(0)
                else:
                    value = None
                return ParsedOption(value, "-" + name)

            if rest:
                self._args.insert(0, "-" + rest)
            return ParsedOption(None, "-" + name)

        return None


__all__ = (
    "ParsedArgument",
    "ParsedOption",
    "Parser",
)
