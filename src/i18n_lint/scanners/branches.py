from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from i18n_lint.scanners.lexer import Dialect, Token, TokenType

if TYPE_CHECKING:
    from i18n_lint.scanners.extractor import CallSpan


# Tokens that end an expression when walking backwards from a ternary "?".
_EXPRESSION_STOPS = {",", ";", "=", "=>", ":", "?", "+=", "-=", "*=", "/=", "%=", "**="}
_EXPRESSION_KEYWORDS = {"return", "yield", "case", "throw"}


@dataclass(frozen=True)
class BranchLink:
    condition: str
    arm: str
    sibling: int


def find_conditional_pairs(
    source: str,
    tokens: list[Token],
    matches: dict[int, int],
    spans: list[CallSpan],
    dialect: Dialect,
) -> dict[int, BranchLink]:
    """Pair translation calls that sit in the two arms of one conditional.

    Returns a mapping from span index to its link. Only conditionals with
    exactly two arms, each holding exactly one (outermost) translation call,
    are paired; ``else if`` / ``elif`` chains are ignored.
    """
    links: dict[int, BranchLink] = {}
    if not spans:
        return links

    by_close = {span.close_index: idx for idx, span in enumerate(spans)}
    by_start = {span.name_start: idx for idx, span in enumerate(spans)}

    for index, token in enumerate(tokens):
        if dialect is Dialect.PYTHON:
            if token.is_ident("if") and token.first_on_line:
                arms = _python_if_statement(tokens, matches, index)
            elif token.is_ident("if") and index > 0 and tokens[index - 1].is_punct(")"):
                arms = _python_if_expression(tokens, matches, index, by_close, by_start, spans)
            else:
                continue
        else:
            if token.is_ident("if") and tokens[index + 1].is_punct("("):
                if index > 0 and tokens[index - 1].is_ident("else"):
                    continue
                arms = _brace_if_statement(tokens, matches, index)
            elif token.is_punct("?"):
                arms = _ternary(tokens, matches, index)
            else:
                continue

        if arms is None:
            continue
        condition, then_range, else_range = arms
        then_calls = _calls_within(spans, *then_range)
        else_calls = _calls_within(spans, *else_range)
        if len(then_calls) != 1 or len(else_calls) != 1:
            continue

        text = _slice(source, tokens, *condition)
        links[then_calls[0]] = BranchLink(condition=text, arm="then", sibling=else_calls[0])
        links[else_calls[0]] = BranchLink(condition=text, arm="else", sibling=then_calls[0])

    return links


def _brace_if_statement(tokens, matches, index):
    condition_close = matches.get(index + 1)
    if condition_close is None:
        return None
    then_start = condition_close + 1
    then_end = _statement_end(tokens, matches, then_start)
    if then_end is None:
        return None

    else_index = then_end + 1
    if not tokens[else_index].is_ident("else") or tokens[else_index + 1].is_ident("if"):
        return None
    else_end = _statement_end(tokens, matches, else_index + 1)
    if else_end is None:
        return None

    return (index + 2, condition_close - 1), (then_start, then_end), (else_index + 1, else_end)


def _statement_end(tokens: list[Token], matches: dict[int, int], start: int) -> int | None:
    first = tokens[start]
    if first.type is TokenType.EOF:
        return None
    if first.is_punct("{"):
        return matches.get(start)

    index = start
    while True:
        token = tokens[index]
        if token.type is TokenType.EOF or token.is_punct(")", "]", "}"):
            return index - 1 if index > start else None
        if index > start and (token.first_on_line or token.is_ident("else")):
            return index - 1
        if token.is_punct(";"):
            return index
        if token.is_punct("(", "[", "{"):
            close = matches.get(index)
            if close is None:
                return None
            index = close + 1
            continue
        index += 1


def _ternary(tokens, matches, question):
    colon = _ternary_colon(tokens, matches, question)
    if colon is None:
        return None
    condition_start = _expression_start(tokens, matches, question - 1)
    if condition_start is None or condition_start >= question:
        return None
    else_end = _expression_end(tokens, matches, colon + 1)
    return (condition_start, question - 1), (question + 1, colon - 1), (colon + 1, else_end)


def _ternary_colon(tokens: list[Token], matches: dict[int, int], question: int) -> int | None:
    nested = 0
    index = question + 1
    while True:
        token = tokens[index]
        if token.type is TokenType.EOF or token.is_punct(")", "]", "}", ";", ","):
            return None
        if token.is_punct("(", "[", "{"):
            close = matches.get(index)
            if close is None:
                return None
            index = close + 1
            continue
        if token.is_punct("?"):
            nested += 1
        elif token.is_punct(":"):
            if nested == 0:
                return index
            nested -= 1
        index += 1


def _expression_start(tokens: list[Token], matches: dict[int, int], index: int) -> int | None:
    start = None
    while index >= 0:
        token = tokens[index]
        if token.is_punct(")", "]", "}"):
            opener = matches.get(index)
            if opener is None:
                return start
            start = opener
            index = opener - 1
            continue
        if token.is_punct("(", "[", "{") or token.is_punct(*_EXPRESSION_STOPS):
            return start
        if token.is_ident(*_EXPRESSION_KEYWORDS):
            return start
        start = index
        index -= 1
    return start


def _expression_end(tokens: list[Token], matches: dict[int, int], index: int) -> int:
    last = index - 1
    while True:
        token = tokens[index]
        if token.type is TokenType.EOF or token.is_punct(")", "]", "}", ";", ",", ":"):
            return last
        if token.is_punct("(", "[", "{"):
            close = matches.get(index)
            if close is None:
                return last
            index = close
        last = index
        index += 1


def _python_if_statement(tokens, matches, index):
    column = tokens[index].column
    colon = _header_colon(tokens, matches, index + 1)
    if colon is None:
        return None
    then_end = _block_end(tokens, matches, colon + 1, column)

    else_index = then_end + 1
    else_token = tokens[else_index]
    if not (
        else_token.is_ident("else")
        and else_token.first_on_line
        and else_token.column == column
        and tokens[else_index + 1].is_punct(":")
    ):
        return None
    else_end = _block_end(tokens, matches, else_index + 2, column)

    return (index + 1, colon - 1), (colon + 1, then_end), (else_index + 2, else_end)


def _header_colon(tokens: list[Token], matches: dict[int, int], start: int) -> int | None:
    index = start
    while True:
        token = tokens[index]
        if token.type is TokenType.EOF or (index > start and token.first_on_line):
            return None
        if token.is_punct("(", "[", "{"):
            close = matches.get(index)
            if close is None:
                return None
            index = close + 1
            continue
        if token.is_punct(":"):
            return index
        index += 1


def _block_end(tokens: list[Token], matches: dict[int, int], start: int, column: int) -> int:
    last = start - 1
    index = start
    while True:
        token = tokens[index]
        if token.type is TokenType.EOF:
            return last
        if token.first_on_line and token.column <= column:
            return last
        if token.is_punct("(", "[", "{"):
            close = matches.get(index)
            if close is None:
                return last
            index = close
        last = index
        index += 1


def _python_if_expression(tokens, matches, index, by_close, by_start, spans):
    then_call = by_close.get(index - 1)
    if then_call is None:
        return None

    else_index = index + 1
    while True:
        token = tokens[else_index]
        if token.type is TokenType.EOF or token.is_punct(")", "]", "}", ",", ":"):
            return None
        if token.is_ident("else"):
            break
        if token.is_punct("(", "[", "{"):
            close = matches.get(else_index)
            if close is None:
                return None
            else_index = close
        else_index += 1

    else_call = by_start.get(else_index + 1)
    if else_call is None:
        return None
    then_span = spans[then_call]
    else_span = spans[else_call]
    return (
        (index + 1, else_index - 1),
        (then_span.name_start, then_span.close_index),
        (else_span.name_start, else_span.close_index),
    )


def _calls_within(spans: list[CallSpan], low: int, high: int) -> list[int]:
    inside = [
        idx
        for idx, span in enumerate(spans)
        if span.name_start >= low and span.close_index <= high
    ]
    return [
        idx
        for idx in inside
        if not any(
            other != idx
            and spans[other].name_start <= spans[idx].name_start
            and spans[other].close_index >= spans[idx].close_index
            for other in inside
        )
    ]


def _slice(source: str, tokens: list[Token], first: int, last: int) -> str:
    if last < first:
        return ""
    return source[tokens[first].start : tokens[last].end]
