"""
Parametizer config tree.

A Config holds every declaration of one command level:
- arguments, in positional binding order (the subcommand switch, if any, is the last one);
- options, keyed by name, plus an alias index ("--name" and "-x");
- branches: subcommand value -> child Config (children are owned, the parent link
  is a weak reference used only for upward lookups);
- description, short description, usage examples and the script name.

Lifecycle
- created empty (usually by ConfigBuilder) and mutated through declaration calls;
- finalize() runs exactly once: it injects the built-in "help" and "list" branches
  next to a subcommand switch, finalizes every branch and seals all parameters;
- afterwards the tree is read-only: mutators raise LogicError.

Errors
- malformed declarations raise ConfigError (the tool itself is broken);
- wrong types raise TypeError.
"""
import re
import sys
import weakref
from collections import namedtuple

from .faults import ConfigError, LogicError
from .parameters import Argument, Option, Visibility
from .settings import Settings
from .utils import Unset, mirror

UsageExample = namedtuple("UsageExample", ("example", "description"), defaults=(None,))


class Config:
    """
    One level of a command: its parameters and its subcommand branches.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes
      (containers are handed out as copies).
    """

    PARAMETER_NAME_LIST = "list"
    OPTION_NAME_HELP = "help"
    OPTION_NAME_AUTOCOMPLETE_GENERATE = "parametizer-internal-autocomplete-generate"
    OPTION_NAME_AUTOCOMPLETE_EXECUTE = "parametizer-internal-autocomplete-execute"

    __introspectable__ = (
        "settings",
        "description",
        "short_description",
        "script_name",
        "usage_examples",
        "arguments",
        "options",
        "branches",
        "subcommand_switch",
        "finalized",
    )

    settings = mirror("settings")
    description = mirror("description")
    short_description = mirror("short_description")
    script_name = mirror("script_name")
    usage_examples = mirror("usage_examples")
    arguments = mirror("arguments")
    options = mirror("options")
    branches = mirror("branches")
    subcommand_switch = mirror("subcommand_switch")
    finalized = mirror("finalized")

    def __init__(self, settings=Unset, /):
        if settings is Unset:
            settings = Settings.load()
        if not isinstance(settings, Settings):
            raise TypeError("Config() argument must be a settings instance")

        self._settings = settings
        self._description = ""
        self._short_description = None
        self._script_name = ""
        self._usage_examples = []
        self._arguments = {}
        self._options = {}
        self._aliases = {}
        self._branches = {}
        self._builtins = {}
        self._subcommand_switch = None
        self._parent = None
        self._finalized = False

    def __repr__(self):
        return f"config(script_name={self._script_name!r}, params={list(self.params)!r}, branches={list(self._branches)!r})"

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None

    @property
    def root(self):
        config = self
        while (parent := config.parent) is not None:
            config = parent
        return config

    @property
    def params(self):
        """every parameter of this level: options first, then arguments."""
        return self._options | self._arguments

    @property
    def options_by_aliases(self):
        """--name and -x aliases mapped to their options."""
        return dict(self._aliases)

    @property
    def short_names_with_values(self):
        return tuple(
            option.short_name for option in self._options.values()
            if option.short_name is not None and option.value_required
        )

    @property
    def long_names_with_values(self):
        return tuple("--" + option.name for option in self._options.values() if option.value_required)

    def branch(self, name, /):
        return self._branches.get(name)

    def builtin_script(self, name, /):
        """the built-in script class behind a branch name (None for user branches)."""
        return self._builtins.get(name)

    def _ensure_mutable(self):
        if self._finalized:
            raise LogicError(f"config '{self._script_name}' is sealed; it has been finalized already")

    def configure(self, **metadata):
        """update description, short_description or script_name."""
        self._ensure_mutable()
        for name, value in metadata.items():
            match name:
                case "description" | "script_name":
                    if not isinstance(value, str):
                        raise TypeError(f"config {name!r} must be a string")
                case "short_description":
                    if not isinstance(value, str | None):
                        raise TypeError(f"config {name!r} must be a string")
                case _:
                    raise TypeError(f"config has no {name!r} field")
        for name, value in metadata.items():
            setattr(self, "_" + name, value)
        return self

    def usage(self, example, description=None, /):
        """register an extra usage example (rendered under USAGE, prefixed with the script name)."""
        self._ensure_mutable()
        if not isinstance(example, str):
            raise TypeError("config usage example must be a string")
        if not isinstance(description, str | None):
            raise TypeError("config usage description must be a string")
        self._usage_examples.append(UsageExample(example, description))
        return self

    def register_argument(self, argument, /):
        self._ensure_mutable()
        if not isinstance(argument, Argument):
            raise TypeError("register_argument() argument must be an argument")

        for registered in self._arguments.values():
            if registered.array:
                raise ConfigError(
                    f"'{argument.name}' >>> Config error: extra arguments are not allowed after already registered"
                    f" array argument ('{registered.name}') due to ambiguous parsing."
                    f" Register '{registered.name}' argument as the last one."
                )
        if (switch := self._subcommand_switch) is not None:
            raise ConfigError(
                f"'{argument.name}' >>> Config error: extra arguments are not allowed on the same level AFTER"
                f" a subcommand switch ('{switch.name}') is registered; you should add arguments BEFORE"
                f" '{switch.name}' or to subcommands."
            )
        if (registered := self._arguments.get(argument.name)) is not None:
            raise ConfigError(
                f"Duplicate argument {argument.title} declaration: argument {registered.title} already exists."
            )
        if (registered := self._options.get(argument.name)) is not None:
            raise ConfigError(
                f"Duplicate argument {argument.title} declaration: option '{registered.title}' already exists."
            )

        self._arguments[argument.name] = argument
        if argument.subcommand_switch:
            self._subcommand_switch = argument
        return self

    def register_option(self, option, /):
        self._ensure_mutable()
        if not isinstance(option, Option):
            raise TypeError("register_option() argument must be an option")

        if (registered := self._options.get(option.name)) is not None:
            raise ConfigError(
                f"Duplicate option '{option.name}' ({option.title}) declaration:"
                f" option '{registered.title}' already exists."
            )
        if (registered := self._arguments.get(option.name)) is not None:
            raise ConfigError(
                f"Duplicate option '{option.name}' ({option.title}) declaration:"
                f" argument {registered.title} already exists."
            )
        if option.short_name is not None and (registered := self._aliases.get("-" + option.short_name)) is not None:
            raise ConfigError(
                f"Duplicate option short name '-{option.short_name}' ({option.title}) declaration:"
                f" already used for the option '{registered.title}'."
            )

        self._options[option.name] = option
        for alias in option.aliases:
            self._aliases[alias] = option
        return self

    def new_subcommand(self, value, config, /):
        """attach a branch config under a subcommand switch value."""
        self._ensure_mutable()
        if not isinstance(value, str):
            raise TypeError("new_subcommand() value must be a string")
        if not isinstance(config, Config):
            raise TypeError("new_subcommand() config must be a config")
        if (switch := self._subcommand_switch) is None:
            raise ConfigError(
                f"subcommand value '{value}' >>> Config error: a subcommand switch must be specified first."
            )
        if not value:
            raise ConfigError(f"'{switch.name}' subcommand >>> Config error: empty value; must contain at least 1 symbol.")
        if not re.fullmatch(r"[a-z][a-z\d_\-:]+", value):
            raise ConfigError(
                f"'{switch.name}' subcommand >>> Config error: invalid characters in value '{value}'."
                " Must start with a latin (lower); the rest symbols may be of latin (lower), digit,"
                " underscore, colon or hyphen."
            )
        if value in self._branches:
            raise ConfigError(f"'{switch.name}' subcommand >>> Config error: duplicate value '{value}'.")
        if config.finalized:
            raise ConfigError(
                f"'{switch.name}' subcommand >>> Config error: the config for '{value}' is finalized already;"
                " branches are finalized by their parent."
            )
        if config is self or config.parent is not None:
            raise ConfigError(f"'{switch.name}' subcommand >>> Config error: the config for '{value}' is attached already.")

        self._attach(value, config)
        self._branches[value] = config
        return self

    def _attach(self, value, config, /):
        config._parent = weakref.ref(self)
        config._script_name = value
        config.add_default_options()

    def add_default_options(self, top=False, /):
        """
        register the --help flag (and, for the top level, the hidden completion options).
        """
        self._ensure_mutable()
        if top:
            self.register_option(Option(
                self.OPTION_NAME_AUTOCOMPLETE_GENERATE,
                visibility=Visibility.NONE,
                callback=self._print_completion_script,
            ))
            self.register_option(Option(
                self.OPTION_NAME_AUTOCOMPLETE_EXECUTE,
                flag_value=True,
                default=False,
                visibility=Visibility.NONE,
                callback=self._print_completions,
            ))

        self.register_option(Option(
            self.OPTION_NAME_HELP,
            short_name=self._settings.help_short_name,
            flag_value=True,
            default=False,
            description="Show full help page.",
            visibility=Visibility.HELP | Visibility.COMPLETION,
            callback=self._print_help,
        ))
        return self

    def _print_help(self, value, /):
        from .help import HelpGenerator, console
        console.print(HelpGenerator(self).full_help(), soft_wrap=True, highlight=False, end="")
        sys.exit(0)

    def _print_completion_script(self, alias, /):
        from .completion import Completion
        from .help import console
        console.out(Completion.script(alias), end="", highlight=False)
        sys.exit(0)

    def _print_completions(self, value, /):
        from .completion import Completion
        Completion.execute(self)
        sys.exit(0)

    def finalize(self):
        """
        lock this level and every branch below it.

        raises ConfigError on a second call (directly, or through a branch that was
        finalized on its own before being attached).
        """
        if self._finalized:
            raise ConfigError(f"'{self._script_name}' >>> Config error: the config was finalized already.")

        if (switch := self._subcommand_switch) is not None:
            from .scripts import HelpScript, ListScript

            builtins = {}
            for name, script in ((self.OPTION_NAME_HELP, HelpScript), (self.PARAMETER_NAME_LIST, ListScript)):
                if name not in self._branches:
                    builtins[name] = script.configuration(self._settings).get_config()
                    self._attach(name, builtins[name])
                    self._builtins[name] = script
            self._branches = builtins | self._branches

            if switch.default is None:
                switch.configure(required=False, default=self.PARAMETER_NAME_LIST)

            if self.OPTION_NAME_HELP in self._builtins:
                self._branches[self.OPTION_NAME_HELP].arguments[HelpScript.ARGUMENT_NAME].configure(
                    allowed_values=list(self._branches),
                    allowed_values_hidden=True,
                )

            for branch in self._branches.values():
                branch.finalize()

            switch.configure(allowed_values=list(self._branches))

        for param in self.params.values():
            param.seal()
        self._finalized = True
        return self


__all__ = (
    "UsageExample",
    "Config",
)
