"""
Bash completion for parametizer-driven scripts.

Flow
- script(alias) prints a bash snippet: an alias for the script plus a completion
  function that calls the script back with the hidden execute option and
  "$COMP_LINE" "$COMP_POINT" "$COMP_WORDBREAKS".
- execute(config) is run by that hidden option: it completes the command line and
  prints one candidate per line.

complete() replays every word before the one being completed through a processor
with callbacks disabled, then offers option names, option values and argument
values of the innermost branch reached.
"""
import os
import re
import shlex
import sys

from .config import Config
from .faults import ConfigError, ParseError, console
from .help import console as output
from .parameters import Visibility
from .parser import Parser
from .requests import CliRequestProcessor
from .tokenizer import Token, Tokenizer

COMP_WORDBREAKS = "\n \t\"'><=;|&(:"


class Completion:
    def __init__(self, config, /):
        if not isinstance(config, Config):
            raise TypeError("Completion() argument must be a config")
        self._config = config
        self._parser = None
        self._processor = None
        self._aliases = {}

    def complete(self, command, cursor, /, word_breaks=COMP_WORDBREAKS):
        """
        return the completion candidates for command, with the cursor at the given offset.

        parse errors and failures of value completion callbacks are reported on stderr
        and yield no candidates (stdout is read by bash); a ConfigError propagates.
        """
        tokenizer = Tokenizer(command)
        words = []
        last = None
        while (token := tokenizer.read(cursor)) is not None:
            last = token
            words.append(token.word)

        previous = None
        words = words[1:]
        if not words:
            last = None
        else:
            words.pop()
            # "-o val": the previous word names the option being completed.
            previous = words.pop() if words else None
            if previous is not None and (not previous.startswith("-") or previous == "--"):
                words.append(previous)
                previous = None

        try:
            self._parser = Parser(words)
            self._processor = CliRequestProcessor(self._config).disable_callbacks()
            self._processor.load(self._parser, descend=False)

            if self._parser.options_allowed:
                self._aliases = self._processor.innermost_branch_config.options_by_aliases
                if previous is not None and previous in self._aliases:
                    if (option := self._aliases[previous]).value_required:
                        last = Token(f"--{option.name}={last.arg}", f"--{option.name}={last.word}")
                        previous = None
                elif last is not None and previous != "--" and last.word.startswith("-"):
                    if (option := self._aliases.get(last.word[:2])) is not None and option.value_required:
                        last = Token(f"--{option.name}={last.arg[2:]}", f"--{option.name}={last.word[2:]}")

            if previous:
                self._processor.append(previous)

            candidates = self._complete_config(last.word if last is not None else "")
        except ParseError as error:
            console.print(f"\n{error.message}", markup=False, highlight=False)
            return []
        except ConfigError:
            raise
        except Exception as error:
            console.print(f"\n{error}", markup=False, highlight=False)
            return []

        return self._limit(candidates, last, word_breaks)

    def _complete_config(self, entered, /):
        candidates = []
        registered = self._processor.registered_values()

        if self._parser.options_allowed:
            if entered.startswith("-"):
                self._complete_options(candidates, registered)
            if match := re.fullmatch(r"((--[^\s=]+)=)(.*)", entered, re.DOTALL):
                if (option := self._aliases.get(match[2])) is not None:
                    self._complete_value(candidates, registered, match[3], option, match[1])

        for argument in self._processor.allowed_arguments():
            if argument.visible(Visibility.COMPLETION):
                self._complete_value(candidates, registered, entered, argument)

        return candidates

    def _complete_options(self, candidates, registered, /):
        for alias, option in self._aliases.items():
            if len(alias) == 2 or not option.visible(Visibility.COMPLETION):
                continue
            if option.name in registered:
                if not option.array:
                    continue
                if len(registered[option.name]) == len(option.complete("")):
                    continue
            candidates.append(alias + ("=" if option.value_required else " "))

    def _complete_value(self, candidates, registered, entered, param, prefix="", /):
        values = registered.get(param.name, [])
        if param.name in registered and not param.array:
            return
        for line in param.complete(entered):
            if line in values:
                continue
            candidates.append(f"{prefix}{line} ")

    def _limit(self, candidates, token, word_breaks, /):
        """keep the candidates starting with the token (case-insensitively), trimmed to the last comp-word."""
        if token is None:
            return candidates

        word = token.word.lower()
        arg = token.arg.lower()
        length = len(arg)
        # readline completes the last comp-word only; words are split on $COMP_WORDBREAKS.
        prefix = token.arg_tail(word_breaks)
        forced = prefix != token.arg

        limited = []
        for candidate in candidates:
            head = candidate[:length].lower()
            if head != word or len(candidate) == length:
                continue
            if forced or head != arg:
                candidate = prefix + candidate[length:]
            limited.append(candidate)
        return limited

    @classmethod
    def execute(cls, config, args=None, /):
        """complete "$COMP_LINE" at "$COMP_POINT" (the last three args) and print the candidates."""
        if args is None:
            args = sys.argv
        *_, line, point, word_breaks = args
        for candidate in cls(config).complete(line, int(point), word_breaks):
            output.out(candidate, highlight=False)

    @staticmethod
    def script(alias, path=None, /):
        """the bash snippet registering an alias and its completion function."""
        if not isinstance(alias, str) or not alias:
            raise TypeError("Completion.script() alias must be a non-empty string")
        if path is None:
            path = os.path.realpath(sys.argv[0])
        elif not (path := path.strip()) or not os.path.exists(path):
            raise ValueError(f"Invalid script path {path!r}")

        try:
            with open(path, "rb") as file:
                shebang = file.read(2) == b"#!"
        except OSError:
            shebang = False

        if shebang:
            command = path
            callback = shlex.quote(path)
        else:
            command = callback = f"{shlex.quote(sys.executable)} {shlex.quote(path)}"

        quoted = shlex.quote(alias)
        function = f"_parametizer-autocomplete_{alias}"
        return (
            f"alias {quoted}={shlex.quote(command)}\n"
            f"function {function}() {{\n"
            "    saveIFS=$IFS\n"
            "    IFS=$'\\n'\n"
            f"    COMPREPLY=($({callback} --{Config.OPTION_NAME_AUTOCOMPLETE_EXECUTE}"
            ' "$COMP_LINE" "$COMP_POINT" "$COMP_WORDBREAKS"))\n'
            "    IFS=$saveIFS\n"
            "}\n"
            f"complete -o bashdefault -o default -o nospace -F {function} {quoted}\n"
            "\n"
        )


__all__ = (
    "COMP_WORDBREAKS",
    "Completion",
)
