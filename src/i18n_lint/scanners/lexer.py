"""Tokenizer for the host syntaxes translation calls are embedded in.

Two dialects are understood: ``python`` (``#`` comments, prefixed and
triple-quoted strings) and ``ecmascript`` (``//`` and ``/* */`` comments,
backtick template literals with nested ``${...}`` substitutions). The lexer
never fails: unterminated strings end at the line break (or at end of input
for triple-quoted and template strings) and are marked as such.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import PurePath
from typing import Iterator


class Dialect(str, Enum):
    PYTHON = "python"
    ECMASCRIPT = "ecmascript"

    @classmethod
    def for_path(cls, path: str | PurePath) -> "Dialect":
        if PurePath(path).suffix.lower() in PYTHON_EXTS:
            return cls.PYTHON
        return cls.ECMASCRIPT


PYTHON_EXTS = {".py", ".pyi"}

PYTHON_STRING_PREFIXES = {"r", "u", "b", "f", "br", "rb", "fr", "rf"}

# Longest first so that "===" wins over "==".
PUNCTUATORS = (
    "===",
    "!==",
    "...",
    "**=",
    "//=",
    "=>",
    "==",
    "!=",
    "<=",
    ">=",
    "&&",
    "||",
    "??",
    "?.",
    "++",
    "--",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "**",
    "//",
    "->",
    ":=",
)

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")": "(", "]": "[", "}": "{"}

_ESCAPED_CHAR_RE = re.compile(r"\\(['\"`\\])")


class TokenType(Enum):
    IDENT = auto()
    STRING = auto()
    NUMBER = auto()
    PUNCT = auto()
    EOF = auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    line: int
    column: int
    start: int
    end: int
    first_on_line: bool = False
    # STRING only: body without prefix and quotes, escaped quotes resolved.
    literal: str | None = None
    interpolated: bool = False
    terminated: bool = True
    # Absolute (start, end) offsets of ${...} substitutions and f-string fields.
    substitutions: tuple[tuple[int, int], ...] = ()
    surrounding_text: bool = False

    def is_punct(self, *values: str) -> bool:
        return self.type is TokenType.PUNCT and self.value in values

    def is_ident(self, *values: str) -> bool:
        return self.type is TokenType.IDENT and self.value in values

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.column})"


class Lexer:
    """
    Usage:
        tokens = list(Lexer(source_text, Dialect.ECMASCRIPT).tokenize())

    ``start``/``end`` restrict tokenizing to a slice of the source (a
    template substitution, say) while positions stay relative to the whole text.
    """

    def __init__(
        self,
        source: str,
        dialect: Dialect = Dialect.ECMASCRIPT,
        *,
        start: int = 0,
        end: int | None = None,
    ):
        self.source = source
        self.dialect = dialect
        self.start = start
        self.length = len(source) if end is None else min(end, len(source))
        self._line_starts = [0] + [match.end() for match in re.finditer("\n", source)]
        self._last_line = 0

    def location(self, offset: int) -> tuple[int, int]:
        line_index = bisect_right(self._line_starts, offset) - 1
        return line_index + 1, offset - self._line_starts[line_index] + 1

    def tokenize(self) -> Iterator[Token]:
        self._last_line = self.location(self.start)[0] if self.start else 0
        source = self.source
        pos = self.start
        while True:
            pos = self._skip_trivia(pos)
            if pos >= self.length:
                line, column = self.location(self.length)
                yield Token(TokenType.EOF, "", line, column, self.length, self.length)
                return

            ch = source[pos]
            if _is_ident_start(ch):
                end = pos + 1
                while end < self.length and _is_ident_cont(source[end]):
                    end += 1
                word = source[pos:end]
                if (
                    self.dialect is Dialect.PYTHON
                    and word.lower() in PYTHON_STRING_PREFIXES
                    and end < self.length
                    and source[end] in "'\""
                ):
                    token = self._read_string(pos, end, prefix=word)
                else:
                    token = self._make(TokenType.IDENT, pos, end)
            elif ch == "'" and self.dialect is Dialect.ECMASCRIPT and pos > 0 and source[pos - 1].isalnum():
                # apostrophe in JSX or template text: <p>Don't</p>
                token = self._make(TokenType.PUNCT, pos, pos + 1)
            elif ch in "'\"" or (ch == "`" and self.dialect is Dialect.ECMASCRIPT):
                token = self._read_string(pos, pos, prefix="")
            elif ch.isdigit() or (ch == "." and pos + 1 < self.length and source[pos + 1].isdigit()):
                end = pos + 1
                while end < self.length and (source[end].isalnum() or source[end] in "._"):
                    end += 1
                token = self._make(TokenType.NUMBER, pos, end)
            else:
                token = self._read_punct(pos)

            yield token
            pos = token.end

    def _make(self, token_type: TokenType, start: int, end: int, **extra) -> Token:
        line, column = self.location(start)
        first_on_line = line != self._last_line
        self._last_line = self.location(max(start, end - 1))[0]
        return Token(
            token_type,
            self.source[start:end],
            line,
            column,
            start,
            end,
            first_on_line=first_on_line,
            **extra,
        )

    def _skip_trivia(self, pos: int) -> int:
        source = self.source
        while pos < self.length:
            ch = source[pos]
            if ch in " \t\r\n\f\v":
                pos += 1
            elif ch == "\\" and source.startswith("\\\n", pos):
                pos += 2
            elif self.dialect is Dialect.PYTHON and ch == "#":
                pos = self._line_end(pos)
            elif self.dialect is Dialect.ECMASCRIPT and source.startswith("//", pos):
                pos = self._line_end(pos)
            elif self.dialect is Dialect.ECMASCRIPT and source.startswith("/*", pos):
                close = source.find("*/", pos + 2, self.length)
                pos = self.length if close == -1 else close + 2
            else:
                break
        return pos

    def _line_end(self, pos: int) -> int:
        newline = self.source.find("\n", pos, self.length)
        return self.length if newline == -1 else newline

    def _read_punct(self, pos: int) -> Token:
        for punct in PUNCTUATORS:
            if self.source.startswith(punct, pos):
                return self._make(TokenType.PUNCT, pos, pos + len(punct))
        return self._make(TokenType.PUNCT, pos, pos + 1)

    def _read_string(self, start: int, quote_pos: int, prefix: str) -> Token:
        body_start, body_end, end, terminated, substitutions = self._scan_string(quote_pos)
        interpolated = bool(substitutions)
        opener_width = 2
        flags = prefix.lower()
        body = self.source[body_start:body_end]
        if "f" in flags and _has_format_field(body):
            interpolated = True
            substitutions = _format_fields(body, body_start)
            opener_width = 1
        literal = body if "r" in flags else _ESCAPED_CHAR_RE.sub(r"\1", body)

        surrounding_text = False
        if substitutions:
            pieces = []
            previous = body_start
            for sub_start, sub_end in substitutions:
                pieces.append(self.source[previous : sub_start - opener_width])
                previous = sub_end + 1
            pieces.append(self.source[previous:body_end])
            surrounding_text = bool("".join(pieces).strip())

        return self._make(
            TokenType.STRING,
            start,
            end,
            literal=literal,
            interpolated=interpolated,
            terminated=terminated,
            substitutions=substitutions,
            surrounding_text=surrounding_text,
        )

    def _scan_string(self, quote_pos: int) -> tuple[int, int, int, bool, tuple[tuple[int, int], ...]]:
        """Return (body_start, body_end, end, terminated, substitutions)."""
        source = self.source
        quote = source[quote_pos]
        triple = self.dialect is Dialect.PYTHON and source.startswith(quote * 3, quote_pos)
        delimiter = quote * 3 if triple else quote
        multiline = triple or quote == "`"

        pos = quote_pos + len(delimiter)
        body_start = pos
        substitutions: list[tuple[int, int]] = []
        while pos < self.length:
            ch = source[pos]
            if ch == "\\":
                pos += 2
                continue
            if source.startswith(delimiter, pos):
                return body_start, pos, pos + len(delimiter), True, tuple(substitutions)
            if quote == "`" and source.startswith("${", pos):
                close = self._skip_substitution(pos + 2)
                closed = close > pos + 2 and source[close - 1] == "}"
                substitutions.append((pos + 2, close - 1 if closed else close))
                pos = close
                continue
            if ch == "\n" and not multiline:
                return body_start, pos, pos, False, tuple(substitutions)
            pos += 1

        end = min(pos, self.length)
        return body_start, end, end, False, tuple(substitutions)

    def _skip_substitution(self, pos: int) -> int:
        source = self.source
        depth = 1
        while pos < self.length:
            ch = source[pos]
            if ch in "'\"`":
                pos = self._scan_string(pos)[2]
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return pos + 1
            pos += 1
        return self.length


def match_brackets(tokens: list[Token]) -> dict[int, int]:
    """Map the index of every balanced bracket token to its partner's index."""
    matches: dict[int, int] = {}
    stack: list[int] = []
    for index, token in enumerate(tokens):
        if token.type is not TokenType.PUNCT:
            continue
        if token.value in OPENERS:
            stack.append(index)
        elif token.value in CLOSERS:
            if stack and tokens[stack[-1]].value == CLOSERS[token.value]:
                opener = stack.pop()
                matches[opener] = index
                matches[index] = opener
    return matches


def _is_ident_start(ch: str) -> bool:
    return ch == "_" or ch == "$" or ch.isalpha()


def _is_ident_cont(ch: str) -> bool:
    return ch == "_" or ch == "$" or ch.isalnum()


def _has_format_field(body: str) -> bool:
    return "{" in body.replace("{{", "").replace("}}", "")


def _format_fields(body: str, offset: int) -> tuple[tuple[int, int], ...]:
    """Absolute offsets of the expressions inside f-string replacement fields."""
    fields = []
    depth = 0
    field_start = 0
    index = 0
    while index < len(body):
        if depth == 0 and body.startswith(("{{", "}}"), index):
            index += 2
            continue
        ch = body[index]
        if ch == "{":
            if depth == 0:
                field_start = index + 1
            depth += 1
        elif ch == "}" and depth:
            depth -= 1
            if depth == 0:
                fields.append((offset + field_start, offset + index))
        index += 1
    return tuple(fields)
