r"""
Parametizer parameter model.

Overview
- Parameter: the shared declaration of one named value (abstract).
  • Argument: positional, bound by declaration order; rendered as <name>.
  • Option: named, bound via --name / -x; rendered as --name (-x).
    An option with a flag_value is a flag: its presence alone supplies that value.
- Visibility: where a parameter shows up (usage template, help, completion, request).

Introspection & representation
- ParameterType metaclass derives __typename__ ("argument", "option"), exposes the
  fields listed in __introspectable__ as read-only properties (via mirror()) and
  provides stable __repr__/__rich_repr__ implementations.

Metadata (sanitized by configure())
- Shared
  • description: str.
  • required / array / subcommand_switch: bool.
  • visibility: Visibility (or an int within its range).
  • default: any value.
  • validator: None | str (regular expression, searched) | callable (predicate;
    returning Filtered(value) also replaces the bound value).
  • validator_message: None | str (appended to "Incorrect value" errors).
  • callback: None | callable, invoked with the bound value.
  • completion: None | iterable of strings | callable(entered) -> iterable of strings.
  • allowed_values: mapping of value -> description (or None), or an iterable of values.
    A non-empty set acts as an implicit validator and completion source; it never
    replaces an explicitly configured validator or completion.
  • allowed_values_hidden: bool (suppresses the listing in help).
- Option only
  • short_name: None | single latin letter.
  • flag_value: None (a value is required) or the value supplied by presence.

Validation highlights
- Names match r"^[a-z][a-z\d_\-]+$".
- Once a config is finalized, its parameters are sealed: configure() raises LogicError.
"""
import functools
import operator
import re
from collections import namedtuple
from collections.abc import Iterable, Mapping
from enum import IntFlag

from .faults import ConfigError, LogicError
from .utils import Unset, coalesce, mirror, rename


class Filtered(namedtuple("Filtered", ("value",))):
    """
    the result of a validator that accepts a value and replaces it.

        >>> Argument("count", validator=lambda value: Filtered(int(value))).validate("7")
        (True, 7)
    """
    __slots__ = ()


class Visibility(IntFlag):
    """
    bitmask of the places a parameter is visible in.

    - USAGE: the one-line usage template.
    - HELP: the OPTIONS / ARGUMENTS blocks of the help page.
    - COMPLETION: shell completion candidates.
    - REQUEST: the resolved CliRequest (hidden parameters still run callbacks).
    """
    NONE = 0
    USAGE = 1
    HELP = 2
    COMPLETION = 4
    REQUEST = 8
    ALL = USAGE | HELP | COMPLETION | REQUEST


class ParameterType(type):
    """
    Metaclass for parameter declarations.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    - sealed=True in the class statement forbids further subclassing.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("sealed", False):
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_name(cls, name, /):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} name must be a string")
    if len(name) < 2:
        raise ConfigError(f"'{name}' >>> Config error: too short param name; must contain at least 2 symbols.")
    if not re.fullmatch(r"[a-z][a-z\d_\-]+", name):
        raise ConfigError(
            f"'{name}' >>> Config error: invalid characters. Must start with latin (lower);"
            " the rest symbols may be of latin (lower), digit, underscore or hyphen."
        )


def _sanitize_metadata(self, metadata, /):
    """
    Internal: validate and normalize the metadata shared by every parameter.

    Only the keys present in metadata are checked; the dict is mutated in place.

    Raises
    - TypeError: a field has the wrong type (e.g. a non-string description).
    - ConfigError: a field is malformed (e.g. an unknown visibility bit, an invalid
      validator, duplicated allowed values).
    """
    typename = type(self).__typename__

    if "description" in metadata and not isinstance(metadata["description"], str):
        raise TypeError(f"{typename} 'description' must be a string")

    for name in ("required", "array", "subcommand_switch", "allowed_values_hidden"):
        if name in metadata:
            metadata[name] = bool(metadata[name])

    if "visibility" in metadata:
        if not isinstance(visibility := metadata["visibility"], int) or isinstance(visibility, bool):
            raise TypeError(f"{typename} 'visibility' must be an integer")
        if visibility < 0 or visibility & ~int(Visibility.ALL):
            raise ConfigError(f"'{self.name}' >>> Config error: unknown visibility bits in {visibility}.")
        metadata["visibility"] = Visibility(visibility)

    if "validator" in metadata:
        match validator := metadata["validator"]:
            case None:
                metadata["pattern"] = None
            case str():
                try:
                    metadata["pattern"] = re.compile(validator)
                except re.error as error:
                    raise ConfigError(f"'{self.name}' >>> Config error: invalid validator pattern ({error}).") from None
            case _ if callable(validator):
                metadata["pattern"] = None
            case _:
                raise ConfigError(f"'{self.name}' >>> Config error: invalid validator")

    if "validator_message" in metadata and not isinstance(metadata["validator_message"], str | None):
        raise TypeError(f"{typename} 'validator_message' must be a string")

    if "callback" in metadata and not (metadata["callback"] is None or callable(metadata["callback"])):
        raise TypeError(f"{typename} 'callback' must be callable")

    if "completion" in metadata:
        match completion := metadata["completion"]:
            case None:
                pass
            case _ if callable(completion):
                pass
            case str():
                raise TypeError(f"{typename} 'completion' must be an iterable of strings or a callable")
            case Iterable():
                metadata["completion"] = list(completion)
                if not all(isinstance(line, str) for line in metadata["completion"]):
                    raise TypeError(f"{typename} 'completion' must contain only strings")
            case _:
                raise TypeError(f"{typename} 'completion' must be an iterable of strings or a callable")

    if "allowed_values" in metadata:
        match values := metadata["allowed_values"]:
            case Mapping():
                allowed = dict(values)
            case str():
                raise TypeError(f"{typename} 'allowed_values' must be a mapping or an iterable")
            case Iterable():
                allowed = {}
                for value in values:
                    if value in allowed:
                        raise ConfigError(f"'{self.name}' >>> Config error: duplicate allowed value {value!r}.")
                    allowed[value] = None
            case _:
                raise TypeError(f"{typename} 'allowed_values' must be a mapping or an iterable")
        if not all(isinstance(description, str | None) for description in allowed.values()):
            raise TypeError(f"{typename} allowed value descriptions must be strings")
        metadata["allowed_values"] = allowed


def _sanitize_option_metadata(self, metadata, /):
    """
    Internal: validate the option-only metadata (short_name; flag_value is free-form).
    """
    if "short_name" in metadata and (short := metadata["short_name"]) is not None:
        if not isinstance(short, str):
            raise TypeError(f"{type(self).__typename__} 'short_name' must be a string")
        if not re.fullmatch(r"[a-zA-Z]", short):
            raise ConfigError(
                f"'{short}' ('{self.name}') >>> Config error: the short name must be a single latin character."
            )


class Parameter(metaclass=ParameterType):
    """
    Shared declaration of a single named value.

    A parameter is mutable until the config holding it is finalized; after that
    every configure() call raises LogicError.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "name",
        "description",
        "required",
        "array",
        "subcommand_switch",
        "visibility",
        "default",
        "validator",
        "validator_message",
        "callback",
        "completion",
        "allowed_values",
        "allowed_values_hidden",
    )
    __displayable__ = (
        "name",
        "description",
        "required",
        "array",
        "default",
        "visibility",
    )

    def __init__(self, name, /, **metadata):
        if type(self) is Parameter:
            raise TypeError("type 'Parameter' is abstract; declare an argument or an option")
        _sanitize_name(type(self), name)

        self._name = name
        self._sealed = False
        self._pattern = None

        self._description = ""
        self._required = False
        self._array = False
        self._subcommand_switch = False
        self._visibility = Visibility.ALL
        self._default = None
        self._validator = None
        self._validator_message = None
        self._callback = None
        self._completion = None
        self._allowed_values = {}
        self._allowed_values_hidden = False

        self.configure(**metadata)

    @property
    def sealed(self):
        return self._sealed

    @property
    def title(self):
        """the name as shown in messages (e.g. <name> or --name (-n))."""
        raise NotImplementedError

    def configure(self, **metadata):
        """
        update the given metadata fields in place.

        raises LogicError once the parameter is sealed, TypeError on unknown fields.
        """
        if self._sealed:
            raise LogicError(f"{type(self).__typename__} '{self._name}' is sealed; the config has been finalized")
        if unknown := set(metadata) - set(type(self).__introspectable__) - {"name"}:
            raise TypeError(f"{type(self).__typename__} has no {', '.join(map(repr, sorted(unknown)))} field")
        if "name" in metadata:
            raise TypeError(f"{type(self).__typename__} 'name' cannot be reconfigured")

        self._sanitize(metadata)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def _sanitize(self, metadata, /):
        _sanitize_metadata(self, metadata)

    def seal(self):
        self._sealed = True
        return self

    def visible(self, visibility, /):
        return bool(self._visibility & visibility)

    def allows(self, value, /):
        """membership check against the allowed values (an empty set allows anything)."""
        if not self._allowed_values:
            return True
        return any(value == allowed or value == str(allowed) for allowed in self._allowed_values)

    def validate(self, value, /):
        """
        check (and possibly filter) a bound value.

        returns a (valid, value) pair:
        - allowed values reject anything outside the set;
        - a pattern validator rejects a value it cannot be found in;
        - a callable validator is a predicate: a falsy result rejects the value;
          a Filtered result accepts it and replaces it with Filtered.value.

        exceptions raised by a callable validator propagate to the caller.
        """
        if not self.allows(value):
            return False, value
        match self._validator:
            case None:
                return True, value
            case str():
                return self._pattern.search(str(value)) is not None, value
            case validator:
                result = validator(value)
                if isinstance(result, Filtered):
                    return True, result.value
                return bool(result), value

    def complete(self, entered="", /):
        """completion candidates for the partially typed value."""
        if self._allowed_values:
            return [str(value) for value in self._allowed_values]
        match self._completion:
            case list() as completion:
                return list(completion)
            case None:
                return []
            case completion:
                return [str(line) for line in completion(entered)]


class Argument(Parameter, sealed=True):
    """
    Positional parameter bound by declaration order.

    The subcommand switch is an argument whose value selects a branch config.
    """

    @property
    def title(self):
        return f"<{self._name}>"


class Option(Parameter, sealed=True):
    """
    Named parameter bound via --name / -x.

    An option with a non-None flag_value is a flag: it never takes a value token.
    """

    __introspectable__ = Parameter.__introspectable__ + (
        "short_name",
        "flag_value",
    )
    __displayable__ = Parameter.__displayable__ + (
        "short_name",
        "flag_value",
    )

    def __init__(self, name, /, **metadata):
        self._short_name = None
        self._flag_value = None
        super().__init__(name, **metadata)

    @property
    def value_required(self):
        return self._flag_value is None

    @property
    def aliases(self):
        """--name first, then -x when a short name is declared."""
        if self._short_name is None:
            return ("--" + self._name,)
        return "--" + self._name, "-" + self._short_name

    @property
    def title(self):
        if self._short_name is None:
            return f"--{self._name}"
        return f"--{self._name} (-{self._short_name})"

    def _sanitize(self, metadata, /):
        super()._sanitize(metadata)
        _sanitize_option_metadata(self, metadata)


__all__ = (
    "Filtered",
    "Visibility",
    "Parameter",
    "Argument",
    "Option",
)

# Remove the internal metaclass from the module namespace; not part of the public API.
del ParameterType
