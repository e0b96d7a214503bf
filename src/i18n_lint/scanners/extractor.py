from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Iterable, Iterator

from i18n_lint.models import CallRecord, ConditionalBranch, SourceLocation
from i18n_lint.scanners.branches import find_conditional_pairs
from i18n_lint.scanners.lexer import OPENERS, Dialect, Lexer, Token, TokenType, match_brackets

logger = logging.getLogger(__name__)


COUNT_ARGUMENT_NAMES = {"count", "n", "num", "quantity"}
CONTEXT_ARGUMENT_NAMES = {"context", "msgctxt", "ctx"}
DEFINITION_KEYWORDS = {"def", "function", "class"}
# Identifiers that cannot end the left operand of a binary "+".
OPERATOR_KEYWORDS = {"return", "typeof", "in", "of", "else", "case", "await", "yield", "not", "and", "or", "if"}

RESERVED_TEMPLATE_TOKENS = ("[", "]", "{%", "%}", "<%", "%>")
MARKUP_TAG_RE = re.compile(
    r"<([A-Za-z][\w-]*)\b[^<>]*>.*?</\1\s*>|<[A-Za-z][\w-]*\b[^<>]*/>",
    re.DOTALL,
)


class ParseError(ValueError):
    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, column {column}")


@dataclass(frozen=True)
class CallSpan:
    name_start: int
    name_end: int
    open_index: int
    close_index: int
    arguments: tuple[tuple[int, int], ...]


class CallExtractor:
    """Lazy, restartable sequence of the translation calls in one source text.

    Every iteration re-tokenizes the text, so iterating twice yields equal
    records in the same order. Template literal substitutions and f-string
    fields are tokenized separately and scanned like top-level code.
    """

    def __init__(
        self,
        text: str,
        function_names: Iterable[str],
        *,
        file_path: str = "<string>",
        dialect: Dialect | None = None,
    ):
        self.text = text
        self.function_names = tuple(function_names)
        self.file_path = file_path
        self.dialect = dialect or Dialect.for_path(file_path)
        self._callee_parts = [tuple(name.split(".")) for name in self.function_names]

    def __iter__(self) -> Iterator[CallRecord]:
        records: list[CallRecord] = []
        for tokens, enclosing in self._token_streams():
            records.extend(self._extract(tokens, enclosing))
        records.sort(key=lambda record: record.location)
        yield from records

    def _token_streams(self) -> Iterator[tuple[list[Token], Token | None]]:
        """Yield the top-level token stream, then one per embedded expression."""
        pending: list[tuple[int, int | None, Token | None]] = [(0, None, None)]
        while pending:
            start, end, enclosing = pending.pop()
            tokens = list(Lexer(self.text, self.dialect, start=start, end=end).tokenize())
            for token in tokens:
                for sub_start, sub_end in token.substitutions:
                    pending.append((sub_start, sub_end, token))
            yield tokens, enclosing

    def _extract(self, tokens: list[Token], enclosing: Token | None) -> list[CallRecord]:
        matches = match_brackets(tokens)
        spans = list(self._find_call_spans(tokens))
        if not spans:
            return []

        heads = _concatenation_heads(tokens, matches, spans)
        if enclosing is not None and enclosing.surrounding_text:
            # `${i18n('x')} items`: the whole substitution is one translated fragment.
            first = spans[0]
            if first.name_start == 0 and _postfix_end(tokens, matches, first.close_index) == len(tokens) - 2:
                heads.setdefault(0, enclosing)
        links = find_conditional_pairs(self.text, tokens, matches, spans, self.dialect)
        records = [
            self._build_record(tokens, span, expression=heads.get(index))
            for index, span in enumerate(spans)
        ]

        linked = []
        for index, record in enumerate(records):
            link = links.get(index)
            if link is not None:
                sibling = records[link.sibling]
                record = replace(
                    record,
                    conditional=ConditionalBranch(
                        condition=link.condition,
                        arm=link.arm,
                        sibling_message_id=sibling.message_id,
                        sibling_has_count=sibling.has_count_argument,
                        sibling_location=sibling.location,
                    ),
                )
            linked.append(record)
        return linked

    def _find_call_spans(self, tokens: list[Token]) -> Iterator[CallSpan]:
        for index in range(len(tokens)):
            name_end = self._match_callee(tokens, index)
            if name_end is None:
                continue
            try:
                close_index, arguments = _parse_arguments(tokens, name_end + 1)
            except ParseError as exc:
                logger.warning(
                    "%s: skipping malformed %s call: %s",
                    self.file_path,
                    tokens[index].value,
                    exc,
                )
                continue
            if self.dialect is Dialect.ECMASCRIPT and tokens[close_index + 1].is_punct("{"):
                # method definition: i18n(key) { ... }
                continue
            yield CallSpan(
                name_start=_callee_start(tokens, index),
                name_end=name_end,
                open_index=name_end + 1,
                close_index=close_index,
                arguments=arguments,
            )

    def _match_callee(self, tokens: list[Token], index: int) -> int | None:
        if tokens[index].type is not TokenType.IDENT:
            return None
        if index > 0 and tokens[index - 1].is_ident(*DEFINITION_KEYWORDS):
            return None
        if index > 1 and tokens[index - 1].is_punct(".") and tokens[index - 2].is_ident(*self._prefix_segments()):
            # "i18n.t" configured: the "t" alone must not match again.
            return None

        for parts in self._callee_parts:
            last = index + 2 * (len(parts) - 1)
            if last + 1 >= len(tokens):
                continue
            if all(
                tokens[index + 2 * offset].is_ident(part)
                and (offset == len(parts) - 1 or tokens[index + 2 * offset + 1].is_punct("."))
                for offset, part in enumerate(parts)
            ) and tokens[last + 1].is_punct("("):
                return last
        return None

    def _prefix_segments(self) -> tuple[str, ...]:
        return tuple(part for parts in self._callee_parts for part in parts[:-1])

    def _build_record(self, tokens: list[Token], span: CallSpan, *, expression: Token | None) -> CallRecord:
        first = tokens[span.name_start]
        arguments = span.arguments
        raw_arguments = tuple(self._slice(tokens, start, end) for start, end in arguments)

        message_id = None
        uses_variable = False
        if arguments:
            message_id = _literal_text(tokens, *arguments[0])
            uses_variable = message_id is None

        trailing = [index for start, end in arguments[1:] for index in range(start, end)]
        has_context = len(arguments) > 1 and _literal_text(tokens, *arguments[1]) is not None
        if not has_context:
            has_context = any(
                tokens[index].is_ident(*CONTEXT_ARGUMENT_NAMES) and tokens[index + 1].is_punct(":", "=")
                for index in trailing
            )
        has_count = any(tokens[index].is_ident(*COUNT_ARGUMENT_NAMES) for index in trailing)

        return CallRecord(
            location=SourceLocation(self.file_path, first.line, first.column),
            function_name=self._slice(tokens, span.name_start, span.name_end + 1),
            raw_arguments=raw_arguments,
            message_id=message_id,
            is_concatenated_with_string_literals=expression is not None,
            expression_location=(
                SourceLocation(self.file_path, expression.line, expression.column) if expression else None
            ),
            contains_template_delimiters=message_id is not None and has_template_break(message_id),
            uses_variable_as_message_id=uses_variable,
            has_count_argument=has_count,
            has_context_argument=has_context,
            contains_raw_markup_tags=message_id is not None and has_markup_tags(message_id),
            source_text=self._slice(tokens, span.name_start, span.close_index + 1),
        )

    def _slice(self, tokens: list[Token], start: int, end: int) -> str:
        if end <= start:
            return ""
        return self.text[tokens[start].start : tokens[end - 1].end]


def extract_calls(
    text: str,
    function_names: str | Iterable[str] = "i18n",
    *,
    file_path: str = "<string>",
    dialect: Dialect | None = None,
) -> CallExtractor:
    if isinstance(function_names, str):
        function_names = (function_names,)
    return CallExtractor(text, function_names, file_path=file_path, dialect=dialect)


def has_template_break(message: str) -> bool:
    if any(token in message for token in RESERVED_TEMPLATE_TOKENS):
        return True
    depth = 0
    for ch in message:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                return True
    return depth != 0


def has_markup_tags(message: str) -> bool:
    return MARKUP_TAG_RE.search(message) is not None


def _parse_arguments(tokens: list[Token], open_index: int) -> tuple[int, tuple[tuple[int, int], ...]]:
    stack = ["("]
    arguments: list[tuple[int, int]] = []
    argument_start = open_index + 1
    index = open_index + 1
    while True:
        token = tokens[index]
        if token.type is TokenType.EOF:
            opener = tokens[open_index]
            raise ParseError("unterminated argument list", opener.line, opener.column)
        if token.type is TokenType.PUNCT:
            if token.value in OPENERS:
                stack.append(token.value)
            elif token.value in (")", "]", "}"):
                if token.value != OPENERS[stack[-1]]:
                    raise ParseError(f"mismatched '{token.value}' in argument list", token.line, token.column)
                stack.pop()
                if not stack:
                    if index > argument_start:
                        arguments.append((argument_start, index))
                    return index, tuple(arguments)
            elif token.value == "," and len(stack) == 1:
                arguments.append((argument_start, index))
                argument_start = index + 1
        index += 1


def _literal_text(tokens: list[Token], start: int, end: int) -> str | None:
    """Text of an argument made only of plain string literals, else None."""
    if end <= start:
        return None
    parts = []
    for index in range(start, end):
        token = tokens[index]
        if token.type is not TokenType.STRING or token.interpolated:
            return None
        parts.append(token.literal or "")
    return "".join(parts)


def _callee_start(tokens: list[Token], index: int) -> int:
    while index >= 2 and tokens[index - 1].is_punct(".", "?.") and tokens[index - 2].type is TokenType.IDENT:
        index -= 2
    return index


def _concatenation_heads(tokens: list[Token], matches: dict[int, int], spans: list[CallSpan]) -> dict[int, Token]:
    """Map the first translation call of every "+" chain to the chain's first token."""
    by_start = {span.name_start: idx for idx, span in enumerate(spans)}
    heads: dict[int, Token] = {}
    seen: set[int] = set()
    for idx, span in enumerate(spans):
        if idx in seen:
            continue
        end = _postfix_end(tokens, matches, span.close_index)
        operands = _plus_chain(tokens, matches, span.name_start, end)
        if len(operands) < 2:
            continue
        members = [by_start[start] for start, _ in operands if start in by_start]
        seen.update(members)
        heads[min(members)] = tokens[operands[0][0]]
    return heads


def _plus_chain(
    tokens: list[Token],
    matches: dict[int, int],
    start: int,
    end: int,
) -> list[tuple[int, int]]:
    operands = [(start, end)]

    left = start
    while left >= 2 and tokens[left - 1].is_punct("+") and _is_operand_end(tokens[left - 2]):
        operand_start = _operand_start(tokens, matches, left - 2)
        if operand_start is None:
            break
        operands.insert(0, (operand_start, left - 2))
        left = operand_start

    right = end
    while tokens[right + 1].is_punct("+"):
        operand_end = _operand_end(tokens, matches, right + 2)
        if operand_end is None:
            break
        operands.append((right + 2, operand_end))
        right = operand_end

    return operands


def _is_operand_end(token: Token) -> bool:
    if token.type is TokenType.IDENT:
        return token.value not in OPERATOR_KEYWORDS
    return token.type in (TokenType.STRING, TokenType.NUMBER) or token.is_punct(")", "]")


def _operand_start(tokens: list[Token], matches: dict[int, int], index: int) -> int | None:
    token = tokens[index]
    if token.is_punct(")", "]"):
        opener = matches.get(index)
        if opener is None:
            return None
        if opener > 0 and tokens[opener - 1].type is TokenType.IDENT:
            return _callee_start(tokens, opener - 1)
        return opener
    if token.type is TokenType.STRING:
        while index > 0 and tokens[index - 1].type is TokenType.STRING:
            index -= 1
        return index
    if token.type is TokenType.IDENT:
        return _callee_start(tokens, index)
    if token.type is TokenType.NUMBER:
        return index
    return None


def _operand_end(tokens: list[Token], matches: dict[int, int], index: int) -> int | None:
    if index >= len(tokens):
        return None
    if tokens[index].is_punct("-", "+", "!"):
        index += 1
    token = tokens[index]
    if token.type is TokenType.STRING:
        while tokens[index + 1].type is TokenType.STRING:
            index += 1
        return index
    if token.type is TokenType.NUMBER:
        return index
    if token.is_punct("("):
        return matches.get(index)
    if token.type is not TokenType.IDENT:
        return None
    return _postfix_end(tokens, matches, index)


def _postfix_end(tokens: list[Token], matches: dict[int, int], index: int) -> int:
    """Extend an operand ending at ``index`` through ``.member``, calls and subscripts."""
    while True:
        following = tokens[index + 1]
        if following.is_punct(".", "?.") and tokens[index + 2].type is TokenType.IDENT:
            index += 2
        elif following.is_punct("(", "["):
            close = matches.get(index + 1)
            if close is None:
                return index
            index = close
        else:
            return index
