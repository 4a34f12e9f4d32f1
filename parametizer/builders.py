"""
Fluent declaration API over the config model.

    >>> request = (
    ...     ConfigBuilder()
    ...     .description("Paints things.")
    ...     .new_option("--color", "-c").allowed_values(["red", "blue"]).default("red")
    ...     .new_flag("--dry-run")
    ...     .new_argument("target")
    ...     .run()
    ... )

Every parameter builder registers its parameter in the config right away and then
refines it; chain helpers (new_argument(), new_option(), ..., run(), get_config())
hand control back to the owning ConfigBuilder.

Builder-level rules (on top of the model's own checks)
- option names must be given with their prefixes: "--name" and "-n";
- a parameter cannot be required and have a default at the same time;
- allowed values cannot be combined with a validator or a completion source.
"""
from .config import Config
from .faults import ConfigError
from .parameters import Argument, Option
from .requests import run
from .utils import Unset


def _option_name(name, /):
    if not isinstance(name, str):
        raise TypeError("option name must be a string")
    if not name.startswith("--"):
        raise ConfigError(f"'{name}' >>> Config error: the option must have prefix '--' (example: '--name').")
    return name.lstrip("-")


def _option_short_name(short_name, /):
    if short_name is None:
        return None
    if not isinstance(short_name, str):
        raise TypeError("option short name must be a string")
    if not short_name.startswith("-"):
        raise ConfigError(
            f"'{short_name}' >>> Config error: the option's short name must have prefix '-' (example: '-n')."
        )
    return short_name.lstrip("-")


class _Chain:
    """chain call helpers shared by every builder."""

    def new_argument(self, name, /):
        return ArgumentBuilder(self._builder, name)

    def new_array_argument(self, name, /):
        return ArrayArgumentBuilder(self._builder, name)

    def new_option(self, name, short_name=None, /):
        return OptionBuilder(self._builder, name, short_name)

    def new_array_option(self, name, short_name=None, /):
        return ArrayOptionBuilder(self._builder, name, short_name)

    def new_flag(self, name, short_name=None, /):
        return FlagBuilder(self._builder, name, short_name)

    def new_subcommand_switch(self, name, /):
        return SubcommandSwitchBuilder(self._builder, name)

    def new_subcommand(self, value, builder, /):
        """attach another builder's config as the branch for a switch value."""
        if not isinstance(builder, _Chain):
            raise TypeError("new_subcommand() builder must be a config builder")
        self.get_config().new_subcommand(value, builder.get_config())
        return self._builder

    def run(self, prompt=Unset, /, *, shell=True):
        return run(self.get_config(), prompt, shell=shell)

    def get_config(self):
        return self._builder._config


class ConfigBuilder(_Chain):
    def __init__(self, settings=Unset, /):
        self._builder = self
        self._config = Config(settings)

    def description(self, description, /):
        self._config.configure(description=description)
        return self

    def short_description(self, short_description, /):
        self._config.configure(short_description=short_description)
        return self

    def usage(self, example, description=None, /):
        self._config.usage(example, description)
        return self


class ParameterBuilder(_Chain):
    """settings shared by every parameter builder."""

    def __init__(self, builder, param, /):
        self._builder = builder
        self._param = param

    @property
    def param(self):
        return self._param

    def description(self, description, /):
        self._param.configure(description=description)
        return self

    def callback(self, callback, /):
        self._param.configure(callback=callback)
        return self

    def visibility(self, visibility, /):
        self._param.configure(visibility=visibility)
        return self


class ValueBuilder(ParameterBuilder):
    """settings of parameters that carry a value (everything except flags and switches)."""

    def __init__(self, builder, param, /):
        super().__init__(builder, param)
        self._required = Unset
        self._default = Unset
        self._validator = Unset
        self._completion = Unset
        self._allowed = {}

    def required(self, required=True, /):
        self._required = bool(required)
        self._ensure_not_required_with_default()
        self._param.configure(required=required)
        return self

    def validator_pattern(self, pattern, message=None, /):
        if not isinstance(pattern, str | None):
            raise TypeError("validator_pattern() pattern must be a string")
        return self._validate(pattern, message)

    def validator_callback(self, callback, message=None, /):
        if not (callback is None or callable(callback)):
            raise TypeError("validator_callback() callback must be callable")
        return self._validate(callback, message)

    def _validate(self, validator, message, /):
        self._validator = validator
        self._ensure_not_allowed_with_validation()
        self._param.configure(validator=validator, validator_message=message)
        return self

    def completion_list(self, values, /):
        return self._complete(list(values))

    def completion_callback(self, callback, /):
        if not (callback is None or callable(callback)):
            raise TypeError("completion_callback() callback must be callable")
        return self._complete(callback)

    def _complete(self, completion, /):
        self._completion = completion
        self._ensure_not_allowed_with_validation()
        self._param.configure(completion=completion)
        return self

    def allowed_values(self, values, hidden=False, /):
        """allowed values without descriptions; hidden=True keeps them out of the help page."""
        return self._allow(dict.fromkeys(values), hidden)

    def allowed_values_described(self, values, /):
        """allowed values as a mapping of value -> description."""
        return self._allow(dict(values), False)

    def _allow(self, values, hidden, /):
        self._allowed = values
        self._ensure_not_allowed_with_validation()
        self._param.configure(allowed_values=values, allowed_values_hidden=hidden)
        return self

    def default(self, default, /):
        self._default = default
        self._ensure_not_required_with_default()
        self._param.configure(default=default)
        if default is not None and self._param.required:
            self._param.configure(required=False)
        return self

    def _ensure_not_required_with_default(self):
        if self._required and self._default not in (Unset, None):
            raise ConfigError(
                f"'{self._param.name}' >>> Config error: a parameter can't be required and have a default simultaneously."
            )

    def _ensure_not_allowed_with_validation(self):
        if not self._allowed:
            return
        if self._validator not in (Unset, None):
            raise ConfigError(
                f"'{self._param.name}' >>> Config error: do not set allowed values and validation simultaneously."
            )
        if self._completion not in (Unset, None):
            raise ConfigError(
                f"'{self._param.name}' >>> Config error: do not set allowed values and completion simultaneously."
            )


class ArgumentBuilder(ValueBuilder):
    def __init__(self, builder, name, /):
        argument = Argument(name, required=True)
        builder.get_config().register_argument(argument)
        super().__init__(builder, argument)


class ArrayArgumentBuilder(ArgumentBuilder):
    def __init__(self, builder, name, /):
        super().__init__(builder, name)
        self._param.configure(array=True, default=[])


class OptionBuilder(ValueBuilder):
    def __init__(self, builder, name, short_name=None, /):
        option = Option(_option_name(name), short_name=_option_short_name(short_name))
        builder.get_config().register_option(option)
        super().__init__(builder, option)


class ArrayOptionBuilder(OptionBuilder):
    def __init__(self, builder, name, short_name=None, /):
        super().__init__(builder, name, short_name)
        self._param.configure(array=True, default=[])


class FlagBuilder(ParameterBuilder):
    def __init__(self, builder, name, short_name=None, /):
        option = Option(_option_name(name), short_name=_option_short_name(short_name), flag_value=True, default=False)
        builder.get_config().register_option(option)
        super().__init__(builder, option)


class SubcommandSwitchBuilder(ParameterBuilder):
    def __init__(self, builder, name, /):
        argument = Argument(name, required=True, subcommand_switch=True)
        builder.get_config().register_argument(argument)
        super().__init__(builder, argument)


__all__ = (
    "ConfigBuilder",
    "ParameterBuilder",
    "ValueBuilder",
    "ArgumentBuilder",
    "ArrayArgumentBuilder",
    "OptionBuilder",
    "ArrayOptionBuilder",
    "FlagBuilder",
    "SubcommandSwitchBuilder",
)
