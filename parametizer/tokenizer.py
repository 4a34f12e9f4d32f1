"""
Shell-style word splitting for completion contexts.

The process argument vector arrives pre-split by the OS, so the regular parse
never needs this module. Bash completion, however, hands over the whole command
line as one string ($COMP_LINE) plus a cursor offset, and the words have to be
recovered exactly the way bash itself would split them.

Rules
- leading spaces are skipped; a word ends on the first unquoted, unescaped space
  (the space itself is left for the next read).
- single and double quotes toggle quoting; the quote that opened the mode closes it,
  the other quote character is literal inside. quotes are kept in Token.arg but
  not in Token.word.
- backslash
  • outside quotes: escapes the next character; backslash + newline is eaten.
  • inside single quotes: literal.
  • inside double quotes: escapes only \\, ", `, $ and newline (eaten); any other
    character keeps the backslash.
  • a backslash right before the stop offset is literal.

No globbing, no variable expansion, no command substitution.
"""
from collections import namedtuple

_NEWLINE = "\n"


class Token(namedtuple("Token", ("arg", "word"))):
    """
    one shell word.

    - arg: the raw text consumed (quotes and escapes included, heading spaces excluded).
    - word: the decoded value.
    """
    __slots__ = ()

    def arg_tail(self, word_breaks="\n \t", /):
        """
        return the part of arg after the last word-break character (or the whole arg).

        readline treats completion candidates as variants of the last comp-word,
        and comp-words are separated by $COMP_WORDBREAKS characters like '=' or ':'.
        """
        index = max(map(self.arg.rfind, word_breaks), default=-1)
        return self.arg[index + 1:] if index > -1 else self.arg


class Tokenizer:
    """a cursor over a command line string that yields one Token per read()."""

    def __init__(self, string, /):
        if not isinstance(string, str):
            raise TypeError("Tokenizer() argument must be a string")
        self._string = string
        self._offset = 0

    @property
    def offset(self):
        return self._offset

    def read(self, stop=-1, /):
        """
        read the next word.

        stop is an absolute offset in the original string where reading halts
        (bash's $COMP_POINT); -1 means "read to the end".

        returns None when the input is exhausted or the stop offset is reached.
        """
        string = self._string
        if self._offset >= len(string) or -1 < stop <= self._offset:
            return None

        arg = []
        word = []
        quote = None
        heading = True

        while self._offset < len(string):
            if self._offset == stop:
                break

            char = string[self._offset]
            step = 1

            if char == " ":
                if heading:
                    self._offset += 1
                    continue
                if quote is None:
                    break
                word.append(char)
            elif char in "\"'":
                if quote is None:
                    quote = char
                elif quote == char:
                    quote = None
                else:
                    word.append(char)
            elif char == "\\":
                following = string[self._offset + 1:self._offset + 2]
                if self._offset + 1 == stop:
                    word.append(char)
                elif quote is None and following != _NEWLINE:
                    word.append(following)
                    step = 2
                elif quote != "'" and following in ("\\", _NEWLINE):
                    if following == "\\":
                        word.append(following)
                    step = 2
                elif quote == '"' and following in ('"', "`", "$"):
                    word.append(following)
                    step = 2
                else:
                    word.append(char)
            else:
                word.append(char)

            heading = False
            arg.append(string[self._offset:self._offset + step])
            self._offset += step

        return Token("".join(arg), "".join(word))


__all__ = (
    "Token",
    "Tokenizer",
)
