"""
Help pages, usage templates and short descriptions.

Everything is rendered into rich.text.Text objects: styles are attached as spans,
so Text.plain is always the exact text (which is what tests compare), and the
stdout console below applies the styles when the page is printed.

Layout of a full help page (blocks are separated by blank lines)
- description (unindented, padded by 2);
- USAGE: the synthesized one-line template, then the registered usage examples;
- OPTIONS / ARGUMENTS: definition lists (titles padded by 2, descriptions aligned
  3 columns after the widest title);
- COMMANDS: the usage template of every branch with its short description.

Host overrides
- __main__.__styles__ maps the style names used here ("section", "title",
  "value", "required", "note", "important", "command", "example", "match") to
  rich styles.
"""
import re
from collections import defaultdict

from rich.console import Console
from rich.text import Text

from .config import Config
from .parameters import Option, Visibility

console = Console()


def _palette():
    return defaultdict(str, {
        "section": "bold underline",
        "title": "bold bright_green",
        "value": "italic bright_green",
        "required": "bright_red",
        "note": "yellow",
        "important": "bold yellow",
        "command": "dim",
        "example": "italic",
        "match": "reverse",
    } | getattr(__import__("__main__"), "__styles__", {}))


def _pad(lines, padding, /, first=True):
    """prefix every non-blank line (except, optionally, the first one) with spaces."""
    return [
        Text(" " * padding) + line if line.plain.strip() and (index or first) else line
        for index, line in enumerate(lines)
    ]


def _join(lines, /):
    return Text("\n").join(lines)


class HelpGenerator:
    PAD_LEFT_MAIN = 2
    PAD_LEFT_PARAM_DESCRIPTION = 3

    USAGE_MAX_OPTIONS = 5

    def __init__(self, config, /):
        if not isinstance(config, Config):
            raise TypeError("HelpGenerator() argument must be a config")
        self._config = config
        self._styles = _palette() if config.settings.colorful else defaultdict(str)

    def _style(self, text, name, /):
        return Text(text, self._styles[name])

    def full_help(self):
        """the whole help page of the config level."""
        config = self._config
        text = Text()
        text.append_text(self.description_block())
        text.append_text(self.usages_block())
        text.append_text(self.params_block(config.options.values(), "OPTIONS"))
        text.append_text(self.params_block(config.arguments.values(), "ARGUMENTS"))
        text.append_text(self.commands_block())
        text.append("\n")
        return text

    def description_block(self):
        """
        the config description with its common indentation removed.

        Descriptions are usually written as indented triple-quoted paragraphs, so the
        smallest indentation of the non-blank lines is stripped and the relative
        indentation (lists, centered text) is preserved.
        """
        description = self._config.description.expandtabs(8)
        lines = description.split("\n")
        while lines and not lines[0].strip():
            lines.pop(0)
        while lines and not lines[-1].strip():
            lines.pop()
        if not lines:
            return Text()

        indent = min(len(line) - len(line.lstrip(" ")) for line in lines if line.strip())
        lines = [line[indent:].rstrip() if line.strip() else "" for line in lines]
        return _join([Text(), *_pad(list(map(Text, lines)), self.PAD_LEFT_MAIN), Text()])

    def usages_block(self):
        """USAGE: the template of this level, then examples without descriptions, then described examples."""
        base = self._config.root.script_name
        lines = [self._style("USAGE", "section"), Text(), self.usage_template(self._config)]

        for example in self._config.usage_examples:
            if not example.description:
                lines.append(self._style(f"{base} {example.example}", "command"))
        for example in self._config.usage_examples:
            if example.description:
                lines.append(Text())
                lines.append(self._style(example.description, "example") + ":")
                lines.append(self._style(f"{base} {example.example}", "command"))

        return _join([Text(), *_pad(lines, self.PAD_LEFT_MAIN, first=False), Text()])

    def usage_template(self, config, /, omit_switch=False):
        """
        the one-line usage of a config level.

        For a branch, the template of its parent (with the switch replaced by the
        branch name) comes first. Optional short flags are bundled as [-fg]; more
        than USAGE_MAX_OPTIONS optional options collapse into [options]; arrays
        are suffixed with "...".
        """
        text = Text()
        if (parent := config.parent) is not None:
            text.append_text(self.usage_template(parent, omit_switch=True))
            text.append(" ")
            text.append(config.script_name, self._styles["value"])
        else:
            text.append(config.script_name)

        optional = []
        required = []
        flags = ""
        for option in config.options.values():
            if not option.visible(Visibility.USAGE):
                continue
            templates = self.option_templates(option)
            if option.required:
                required.append(" | ".join(templates) + ("..." if option.array else ""))
                continue
            if not option.value_required and option.short_name is not None:
                flags += option.short_name
                templates = templates[:1]
            optional.append(f"[{' | '.join(templates)}]" + ("..." if option.array else ""))

        if flags:
            text.append(f" [-{flags}]")
        if optional:
            text.append(" [options]" if len(optional) > self.USAGE_MAX_OPTIONS else " " + " ".join(optional))
        if required:
            text.append(" " + " ".join(required))

        for argument in config.arguments.values():
            if not argument.visible(Visibility.USAGE):
                continue
            if omit_switch and argument.subcommand_switch:
                continue
            usage = argument.title if argument.required else f"[{argument.title}]"
            text.append(" " + usage + ("..." if argument.array else ""))

        return text

    @staticmethod
    def option_templates(option, /):
        """'--name=…' (and '-n …' with a short name); flags come without the value placeholder."""
        templates = ["--" + option.name + ("=…" if option.value_required else "")]
        if option.short_name is not None:
            templates.append("-" + option.short_name + (" …" if option.value_required else ""))
        return templates

    def params_block(self, params, title="", /):
        """
        a definition list of the help-visible params: options (--help first, then
        the required ones), then arguments.
        """
        options = []
        arguments = []
        for param in params:
            if not param.visible(Visibility.HELP):
                continue
            (options if isinstance(param, Option) else arguments).append(param)
        options.sort(key=lambda option: (option.name != Config.OPTION_NAME_HELP, not option.required))

        rows = []
        for param in (*options, *arguments):
            if isinstance(param, Option):
                name = ", ".join(reversed(self.option_templates(param)))
            else:
                name = param.title
            titles = [self._style(name, "title")]
            if param.required:
                titles.append(self._style("(required)", "required"))
            rows.append((titles, self.param_description(param)))

        return self.definition_list(rows, title)

    def param_description(self, param, /):
        """the description lines of a param: text, allowed values, notes and default."""
        lines = [Text(line) for line in self.unindent(param.description).split("\n")] if param.description else []

        if param.subcommand_switch:
            lines.extend(self._switch_notes(param))
        elif param.allowed_values and not param.allowed_values_hidden:
            lines.extend(self._allowed_values(param))

        if param.array:
            lines.append(self._style("(multiple values allowed)", "important"))

        default = param.default
        if not (isinstance(param, Option) and param.flag_value) and default not in (None, [], ""):
            if (value := self.convert_value_to_string(default)) is not None:
                lines.append(self._style("Default: ", "note") + self._style(value, "value"))

        return lines

    def _allowed_values(self, param, /):
        values = {}
        for value, description in param.allowed_values.items():
            if (string := self.convert_value_to_string(value)) is not None:
                values[string] = description

        if not any(values.values()):
            return [
                self._style("Allowed values: ", "note")
                + Text(", ").join(self._style(value, "value") for value in values)
            ]

        width = max(map(len, values))
        lines = [self._style("Allowed values:", "note")]
        for value, description in values.items():
            line = Text(" - ")
            if description:
                line.append_text(self._style(value.ljust(width + 1), "value"))
                line.append(description)
            else:
                line.append_text(self._style(value, "value"))
            lines.append(line)
        return lines

    def _switch_notes(self, switch, /):
        config = self._config if switch.name in self._config.arguments else None
        count = len(config.branches) if config is not None else len(switch.allowed_values)
        lines = [
            self._style("Allowed values: ", "note")
            + Text(f"{count} subcommands available (see '")
            + self._style(Config.PARAMETER_NAME_LIST, "value")
            + Text("' subcommand output)"),
            self._style("Subcommand help: ", "note") + Text(f"{switch.title} --{Config.OPTION_NAME_HELP}"),
        ]
        if config is None or config.branch(Config.OPTION_NAME_HELP) is not None:
            lines.append(self._style("         ... or: ", "note") + Text(f"{Config.OPTION_NAME_HELP} {switch.title}"))
        return lines

    def commands_block(self):
        rows = [
            ([self.usage_template(branch)], [Text(self.script_short_description(branch, self._config.settings))])
            for branch in self._config.branches.values()
        ]
        return self.definition_list(rows, "COMMANDS")

    def definition_list(self, rows, title="", /):
        """
        rows of (title lines, description lines); description lines are aligned
        PAD_LEFT_PARAM_DESCRIPTION columns after the widest title line.
        """
        if not rows:
            return Text()

        rows = [(_pad(titles, self.PAD_LEFT_MAIN), descriptions) for titles, descriptions in rows]
        width = max(len(line) for titles, _ in rows for line in titles) + self.PAD_LEFT_PARAM_DESCRIPTION

        lines = [Text()]
        if title:
            lines.append(self._style(title, "section"))
        for titles, descriptions in rows:
            lines.append(Text())
            for index in range(max(len(titles), len(descriptions))):
                line = titles[index].copy() if index < len(titles) else Text()
                if index < len(descriptions) and descriptions[index].plain.strip():
                    line.append(" " * (width - len(line)))
                    line.append_text(descriptions[index])
                lines.append(line)
        lines.append(Text())
        return _join(lines)

    def usage_for_parse_error(self, error, /):
        """the --help option plus the parameters a parse error is about."""
        params = []
        if (option := self._config.options.get(Config.OPTION_NAME_HELP)) is not None:
            params.append(option)
        params.extend(param for param in error.params if param is not option)
        text = self.params_block(params)
        text.rstrip()
        return text

    @staticmethod
    def unindent(text, /):
        """strip the indentation of the first indented line from every line starting with it."""
        lines = text.split("\n")
        indent = ""
        for index, line in enumerate(lines):
            if not line:
                continue
            if not indent and line.strip() and (match := re.match(r"[\t ]+", line)):
                indent = match[0]
            if indent and line.startswith(indent):
                lines[index] = line[len(indent):]
        return "\n".join(lines).strip()

    @staticmethod
    def convert_value_to_string(value, /):
        """a readable form of a value, or None for values that have none."""
        match value:
            case bool():
                return "true" if value else "false"
            case str() | int() | float():
                return str(value)
            case list() | tuple():
                strings = [
                    string for string in map(HelpGenerator.convert_value_to_string, value)
                    if string is not None
                ]
                return f"[{', '.join(strings)}]" if strings else None
            case _:
                return None

    @staticmethod
    def short_description(text, maximum, minimum, /):
        """
        the first line of text, cut gracefully to at most maximum characters.

        - the longest run of whole sentences (ending with '.', '!' or '?') that fits
          maximum and reaches minimum, its trailing separator included;
        - otherwise, cut at the last whitespace at or before maximum;
        - otherwise (one unbreakable word), cut at maximum.

        Lengths are counted in code points.
        """
        if maximum <= 0:
            return ""
        line = HelpGenerator.unindent(text).split("\n", 1)[0]
        if len(line) <= maximum:
            return line

        end = None
        for match in re.finditer(r"[.!?](?=\s|$)", line):
            if match.end() > maximum:
                break
            if match.end() + (match.end() < len(line)) >= minimum:
                end = match.end()
        if end is not None:
            return line[:end]

        spaces = [match.start() for match in re.finditer(r"\s", line[:maximum + 1])]
        return line[:spaces[-1]] if spaces else line[:maximum]

    @staticmethod
    def script_short_description(config, settings=None, /):
        """the explicit short description, or one generated from the description."""
        if config.short_description is not None:
            return config.short_description
        settings = settings if settings is not None else config.settings
        return HelpGenerator.short_description(
            config.description,
            settings.short_description_max,
            settings.short_description_min,
        )


__all__ = (
    "HelpGenerator",
)
