"""
Scripts: request handlers bound to a config.

A Script subclass declares its parameters in configuration() and does its work in
execute(); it is constructed with the CliRequest parsed against that
configuration.

Built-in subcommands (injected next to every subcommand switch on finalize)
- help [<subcommand-name>]: the full help page of a sibling branch.
- list [--slim|-s] [<subcommand-name-part>]: the sorted list of sibling branches
  with their short descriptions; names sectioned with ':' are rendered as a tree.
"""
from abc import ABC, abstractmethod
from functools import cmp_to_key

from rich.text import Text

from .builders import ConfigBuilder
from .config import Config
from .help import HelpGenerator, console
from .utils import Unset

NAME_SECTION_SEPARATOR = ":"


class Script(ABC):
    def __init__(self, request, /):
        self.request = request

    @classmethod
    @abstractmethod
    def configuration(cls, settings=Unset, /):
        """the ConfigBuilder declaring this script's parameters."""

    @abstractmethod
    def execute(self):
        ...


class HelpScript(Script):
    ARGUMENT_NAME = "subcommand-name"

    @classmethod
    def configuration(cls, settings=Unset, /):
        return (
            ConfigBuilder(settings)
            .description("Outputs a help page for a specified subcommand.")
            .new_argument(cls.ARGUMENT_NAME)
            .description(f"""
                Name of any registered subcommand.
                See '{Config.PARAMETER_NAME_LIST}' subcommand for the list of possible values.
            """)
            .default(Config.OPTION_NAME_HELP)
        )

    def execute(self):
        name = self.request.get_str(self.ARGUMENT_NAME)
        config = self.request.config.parent.branch(name)
        console.print(HelpGenerator(config).full_help(), soft_wrap=True, highlight=False, end="")


class ListScript(Script):
    PADDING_BLOCK = "    "

    HEADER_BUILT_IN = "Built-in subcommands:"
    HEADER_MAIN = "--"

    @classmethod
    def configuration(cls, settings=Unset, /):
        return (
            ConfigBuilder(settings)
            .short_description("Shows available subcommands.")
            .description("Shows the sorted list of available subcommands with their short descriptions.")
            .new_flag("--slim", "-s")
            .description("Outputs a simple sorted list without section headers.")
            .new_argument("subcommand-name-part")
            .description("Show subcommands with names containing this substring.")
            .required(False)
        )

    def __init__(self, request, /):
        super().__init__(request)
        self._parent = request.config.parent
        self._slim = request.get_bool("slim")
        self._part = request.get_str("subcommand-name-part") or ""
        self._styles = HelpGenerator(self._parent)._styles
        self._width = 0

    def execute(self):
        console.print(self.render(), soft_wrap=True, highlight=False, end="")

    def render(self):
        """the whole listing as one Text."""
        builtins = {}
        tree = {}
        padding = len(self.PADDING_BLOCK)
        self._width = 0

        for name, config in self._parent.branches.items():
            builtin = self._parent.builtin_script(name) is not None
            if not builtin and self._part and self._part not in name:
                continue

            if self._slim:
                level = 0
            elif builtin:
                level = 1
            else:
                level = name.count(NAME_SECTION_SEPARATOR)
            self._width = max(self._width, padding * max(0 if self._slim else 1, level) + len(name))

            if builtin:
                builtins[name] = config
                continue
            if self._slim:
                tree[name] = config
                continue

            node = tree
            parts = name.split(NAME_SECTION_SEPARATOR)
            accumulated = ""
            for part in parts[:-1]:
                accumulated += part + NAME_SECTION_SEPARATOR
                node = node.setdefault(accumulated, {})
            if level == 0:
                node.setdefault(self.HEADER_MAIN, {})[name] = config
            else:
                node[name] = config

        text = Text()
        if self._slim:
            self._render_node(text, builtins)
            self._render_node(text, tree)
            return text

        self._render_node(text, {self.HEADER_BUILT_IN: builtins})
        text.append("\n")
        self._render_node(text, tree)
        return text

    def _render_node(self, text, node, level=0, /):
        def compare(first, second):
            first_section = first.endswith(NAME_SECTION_SEPARATOR)
            second_section = second.endswith(NAME_SECTION_SEPARATOR)
            if first_section != second_section:
                return 1 if first_section else -1
            return (first > second) - (first < second)

        for index, name in enumerate(sorted(node, key=cmp_to_key(compare))):
            element = node[name]
            if isinstance(element, dict) and index:
                text.append("\n")

            label = self.PADDING_BLOCK * level + name
            if isinstance(element, Config):
                rendered = Text(label, self._styles["value"])
                if self._part:
                    rendered.highlight_words([self._part], self._styles["match"])
                text.append_text(rendered)
                if description := HelpGenerator.script_short_description(element, self._parent.settings):
                    text.append(" " * (self._width - len(label)) + self.PADDING_BLOCK + description)
            else:
                if level == 0:
                    text.append(" ")
                text.append(label, self._styles["note"])
            text.append("\n")

            if isinstance(element, dict):
                self._render_node(text, element, level + 1)


__all__ = (
    "Script",
    "HelpScript",
    "ListScript",
)
