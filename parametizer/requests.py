"""
Binding parsed tokens to declared parameters.

CliRequestProcessor
- walks the Parser output against one config level: options are resolved by alias,
  arguments fill the declaration order (an array argument absorbs every remaining
  argument), each value is validated (allowed values, pattern, filter callable)
  and stored, then the parameter's callback runs;
- once the subcommand switch is bound, a child processor takes over the same
  parser for the selected branch (options are allowed again there);
- validate() reports missing required arguments, then missing required options
  (collected up the parent chain).

CliRequest
- the read-only result of one level: resolved values, the config used, the parent
  request and the request of the branch taken.

run()
- the top-level entry point: finalizes the config, parses, validates, runs a
  requested built-in subcommand and surfaces parse errors through trigger().
"""
import os
import shlex
import sys
from collections.abc import Iterable
from types import MappingProxyType

from .config import Config
from .faults import (
    ConfigError,
    LogicError,
    ParseError,
    MissingParametersError,
    TooManyArgumentsError,
    InvalidArgumentError,
    MissingOptionsError,
    UnknownOptionError,
    InvalidOptionError,
    trigger,
)
from .help import HelpGenerator
from .parameters import Option, Visibility
from .parser import ParsedOption, Parser
from .utils import Unset


def _kind(param, /):
    return "option" if isinstance(param, Option) else "argument"


def _show(value, /):
    """a printable form of a bound value for messages."""
    converted = HelpGenerator.convert_value_to_string(value)
    return str(value) if converted is None else converted


class CliRequestProcessor:
    """
    Binds the parser output of one config level (and, through a child processor,
    of the branch it selects).
    """

    def __init__(self, config, /, parent=None):
        if not isinstance(config, Config):
            raise TypeError("CliRequestProcessor() argument must be a config")
        self._config = config
        self._parent = parent
        self._parser = None
        self._branch = None
        self._callbacks = True if parent is None else parent._callbacks
        self._stack = []
        self._registered = []
        self._defaults = set()
        self._params = {}

    @property
    def config(self):
        return self._config

    @property
    def parent(self):
        return self._parent

    @property
    def innermost_branch_config(self):
        if self._branch is not None:
            return self._branch.innermost_branch_config
        return self._config

    def disable_callbacks(self, disabled=True, /):
        self._callbacks = not disabled
        return self

    def load(self, parser, /, *, descend=True):
        """
        bind every token the parser yields and return the request of this level.

        with descend, a subcommand switch left unbound enters its default branch
        (e.g. "list"), so that the request chain is complete.
        """
        if not isinstance(parser, Parser):
            raise TypeError("load() argument must be a parser")
        self._parser = parser
        self._stack = list(self._config.arguments.values())
        for param in self._config.params.values():
            if param.visible(Visibility.REQUEST):
                default = param.default
                if param.array and default is None:
                    default = []
                self._params[param.name] = default
                self._defaults.add(param.name)

        self._register()

        switch = self._config.subcommand_switch
        if descend and switch is not None and self._branch is None and switch not in self._registered:
            if (branch := self._config.branch(switch.default)) is not None:
                self._enter(branch, descend=descend)

        return self.request

    @property
    def request(self):
        """the CliRequest of this level (None before load())."""
        if self._parser is None:
            return None
        branch = self._branch.request if self._branch is not None else None
        return CliRequest(self._config, self._params, branch=branch)

    def append(self, word, /):
        """feed one more token to the innermost level and bind it."""
        if self._branch is not None:
            return self._branch.append(word)
        if self._parser is None:
            raise LogicError("call load() before appending words")
        self._parser.append(word)
        self._register()

    def _register(self):
        aliases = self._config.options_by_aliases
        while (parsed := self._parser.read(
                self._config.short_names_with_values,
                self._config.long_names_with_values,
        )) is not None:
            if isinstance(parsed, ParsedOption):
                self._register_option(aliases, parsed)
            else:
                self._register_argument(parsed.value)
            if self._branch is not None:
                return

    def _register_option(self, aliases, parsed, /):
        if (option := aliases.get(parsed.alias)) is None:
            raise UnknownOptionError(f"Unknown option '{parsed.alias}'")
        if parsed.value is None and option.value_required:
            raise InvalidOptionError(f"No value for option {option.title}", params=(option,))
        if parsed.value is not None and not option.value_required:
            raise InvalidOptionError(f"The flag {option.title} can not have a value", params=(option,))

        value = self._validate(option, option.flag_value if parsed.value is None else parsed.value, InvalidOptionError)
        self._assign(option, value)
        if self._callbacks and option.callback is not None:
            option.callback(value)

    def _register_argument(self, value, /):
        if not self._stack:
            raise TooManyArgumentsError(
                f"Too many arguments, starting with '{value}'",
                params=tuple(self.innermost_branch_config.arguments.values()),
            )

        argument = self._stack[0]
        if not argument.array:
            self._stack.pop(0)

        if argument.subcommand_switch:
            if (branch := self._config.branch(value)) is None:
                raise InvalidArgumentError(f"Unknown command '{value}'", params=(argument,))
            value = self._validate(argument, value, InvalidArgumentError)
            self._assign(argument, value)
            if self._callbacks and argument.callback is not None:
                argument.callback(value)
            self._parser.allow_options()
            self._enter(branch)
            return

        value = self._validate(argument, value, InvalidArgumentError)
        self._assign(argument, value)
        if self._callbacks and argument.callback is not None:
            argument.callback(value)

    def _enter(self, branch, /, *, descend=True):
        self._branch = type(self)(branch, parent=self)
        self._branch.load(self._parser, descend=descend)

    def _validate(self, param, value, fault, /):
        """run the parameter's validator; a failure raises fault, a success returns the (filtered) value."""
        message = None
        try:
            valid, filtered = param.validate(value)
        except ConfigError:
            raise
        except Exception as exception:
            valid, filtered = False, value
            message = str(exception) or None

        if not valid:
            extra = message or param.validator_message
            raise fault(
                f"Incorrect value '{_show(value)}' for {_kind(param)} {param.title}" + (f". {extra}" if extra else ""),
                params=(param,),
            )
        return filtered

    def _assign(self, param, value, /):
        name = param.name
        if param in self._registered:
            if not param.array:
                message = f"Duplicate {_kind(param)} {param.title}"
                message += f" (with value '{_show(value)}')" if value is not True else " (as a flag)"
                registered = self._params.get(name)
                message += "; already registered "
                message += f"value: '{_show(registered)}'" if registered is not True else "as a flag"
                raise InvalidOptionError(message, params=(param,)) if isinstance(param, Option) \
                    else InvalidArgumentError(message, params=(param,))
            if name in self._params and value in self._params[name]:
                registered = "', '".join(map(_show, self._params[name]))
                message = (
                    f"Duplicate value '{_show(value)}' for {_kind(param)} {param.title};"
                    f" already registered values: '{registered}'"
                )
                raise InvalidOptionError(message, params=(param,)) if isinstance(param, Option) \
                    else InvalidArgumentError(message, params=(param,))

        self._registered.append(param)
        if not param.visible(Visibility.REQUEST):
            return

        if not param.array:
            self._params[name] = value
            self._defaults.discard(name)
            return
        if name in self._defaults or not isinstance(self._params.get(name), list):
            self._params[name] = []
            self._defaults.discard(name)
        self._params[name].append(value)

    def _missing_options(self):
        missing = self._parent._missing_options() if self._parent is not None else []
        for option in self._config.options.values():
            if option.required and option not in self._registered:
                missing.append(option)
        return missing

    def validate(self):
        """
        raise MissingParametersError / MissingOptionsError for required parameters left unbound.

        the branch level is validated first; missing options are collected up to the top.
        """
        if self._branch is not None:
            self._branch.validate()

        options = self._missing_options()
        arguments = [
            argument for argument in self._stack
            if argument.required and not (argument.array and argument in self._registered)
        ]
        if arguments:
            raise MissingParametersError("Need more parameters", params=(*options, *arguments))
        if options:
            raise MissingOptionsError(
                f"Need {'values' if len(options) > 1 else 'a value'} for {', '.join(option.title for option in options)}",
                params=tuple(options),
            )

    def allowed_arguments(self):
        """the arguments the next positional token may bind to (every optional one, up to the first required)."""
        if self._branch is not None:
            return self._branch.allowed_arguments()
        arguments = []
        for argument in self._stack:
            arguments.append(argument)
            if argument.required:
                break
        return arguments

    def registered_values(self):
        """values of the innermost level's actually supplied (and request-visible) parameters."""
        if self._branch is not None:
            return self._branch.registered_values()
        return {
            param.name: self._params[param.name]
            for param in self._registered if param.name in self._params
        }


class CliRequest:
    """
    The resolved values of one config level.

    The parameters mapping is read-only; the branch request is built lazily and
    linked back to this request as its parent.
    """

    def __init__(self, config, params, /, parent=None, branch=None):
        self._config = config
        self._params = MappingProxyType(dict(params))
        self._parent = parent
        self._branch = branch
        self._subcommand = None

    def __repr__(self):
        return f"cli-request(script_name={self._config.script_name!r}, params={dict(self._params)!r})"

    @property
    def config(self):
        return self._config

    @property
    def params(self):
        return self._params

    @property
    def parent(self):
        return self._parent

    def get(self, name, /):
        try:
            return self._params[name]
        except KeyError:
            raise LogicError(
                f"Parameter '{name}' not found in the request. The parameters being parsed: {', '.join(self._params)}"
            ) from None

    def _single(self, name, /):
        if isinstance(value := self.get(name), list):
            raise LogicError(f"Parameter '{name}' contains an array")
        return value

    def _array(self, name, /):
        if not isinstance(value := self.get(name), list):
            raise LogicError(f"Parameter '{name}' contains a single value")
        return value

    def get_str(self, name, /):
        return None if (value := self._single(name)) is None else str(value)

    def get_int(self, name, /):
        return None if (value := self._single(name)) is None else int(value)

    def get_float(self, name, /):
        return None if (value := self._single(name)) is None else float(value)

    def get_bool(self, name, /):
        return bool(self._single(name))

    def get_strs(self, name, /):
        return [str(value) for value in self._array(name)]

    def get_ints(self, name, /):
        return [int(value) for value in self._array(name)]

    def get_floats(self, name, /):
        return [float(value) for value in self._array(name)]

    def get_bools(self, name, /):
        return [bool(value) for value in self._array(name)]

    def subcommand_name(self):
        """the value of this level's subcommand switch (None without a switch)."""
        if (switch := self._config.subcommand_switch) is None:
            return None
        return self._params.get(switch.name)

    def subcommand(self):
        """the request of the branch taken at this level (None when no branch was entered)."""
        if self._branch is None:
            return None
        if self._subcommand is None:
            self._subcommand = type(self)(
                self._branch.config,
                self._branch.params,
                parent=self,
                branch=self._branch._branch,
            )
        return self._subcommand

    def find(self, branch_name, /):
        """look up the request of a branch anywhere in the resolved chain (None when it was not taken)."""
        request = self
        while request.parent is not None:
            request = request.parent
        while (request := request.subcommand()) is not None:
            if request.config.script_name == branch_name:
                return request
        return None

    def execute_builtin_if_requested(self):
        """run the built-in script (help, list) requested by the innermost branch, then exit."""
        request = self
        while (subcommand := request.subcommand()) is not None:
            request = subcommand
        if (parent := request.config.parent) is None:
            return
        if (script := parent.builtin_script(request.config.script_name)) is None:
            return
        script(request).execute()
        sys.exit(0)


def run(config, prompt=Unset, /, *, shell=True):
    """
    parse the process arguments (or the given prompt) against a config and return the request.

    prompt
    - Unset: sys.argv[1:];
    - str: split the way a POSIX shell would (shlex);
    - iterable of str: used as-is.

    in shell mode a parse error is printed to stderr with a usage hint and the
    process exits with 1; otherwise the error is raised.
    """
    if not isinstance(config, Config):
        raise TypeError("run() argument must be a config")
    match prompt:
        case _ if prompt is Unset:
            args = sys.argv[1:]
        case str():
            args = shlex.split(prompt)
        case Iterable():
            args = list(prompt)
        case _:
            raise TypeError("run() prompt must be a string or an iterable of strings")

    if not config.script_name:
        config.configure(script_name=os.path.basename(sys.argv[0]))
    config.add_default_options(True)
    config.finalize()

    processor = CliRequestProcessor(config)
    try:
        request = processor.load(Parser(args))
        processor.validate()
    except ParseError as error:
        trigger(error, shell=shell, config=processor.innermost_branch_config)
        raise

    request.execute_builtin_if_requested()
    return request


__all__ = (
    "CliRequestProcessor",
    "CliRequest",
    "run",
)
