from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Iterable, Mapping

from i18n_lint.models import CallRecord, Finding, SourceLocation


# Comparison against a numeric literal on either side: "n == 1", "1 !== count", "n > 1".
NUMERIC_TEST_RE = re.compile(
    r"(?:===?|!==?|<=?|>=?)\s*-?\d+(?:\.\d+)?\b|\b\d+(?:\.\d+)?\s*(?:===?|!==?|<=?|>=?)"
)
SIMILARITY_THRESHOLD = 0.5
EVIDENCE_LIMIT = 300


class RuleEvaluationError(RuntimeError):
    pass


@dataclass(frozen=True)
class LintContext:
    message_sites: Mapping[str, int] = field(default_factory=dict)
    context_threshold: int = 3


class Rule(ABC):
    rule_id: str
    severity: str
    description: str

    def evaluate(self, record: CallRecord, context: LintContext) -> Finding | None:
        explanation = self.check(record, context)
        if explanation is None:
            return None
        return Finding(
            location=self.locate(record),
            rule_id=self.rule_id,
            severity=self.severity,
            explanation=explanation,
            evidence=record.source_text[:EVIDENCE_LIMIT],
        )

    def locate(self, record: CallRecord) -> SourceLocation:
        return record.location

    @abstractmethod
    def check(self, record: CallRecord, context: LintContext) -> str | None:
        """Return the explanation when the record violates the rule."""
        raise NotImplementedError


class TemplateBreakRule(Rule):
    rule_id = "TEMPLATE_BREAK"
    severity = "high"
    description = "Template delimiter characters inside a translatable message"

    def check(self, record: CallRecord, context: LintContext) -> str | None:
        if not record.contains_template_delimiters:
            return None
        return (
            "message contains template delimiter characters; a translator editing it "
            "can produce a template that no longer parses"
        )


class LogicMisuseRule(Rule):
    rule_id = "LOGIC_MISUSE"
    severity = "high"
    description = "Non-literal expression used as message id"

    def check(self, record: CallRecord, context: LintContext) -> str | None:
        if not record.uses_variable_as_message_id:
            return None
        expression = record.raw_arguments[0] if record.raw_arguments else ""
        return (
            f"message id `{_shorten(expression)}` is not a string literal and cannot be "
            "extracted into a translation catalog"
        )


class ConcatenationRule(Rule):
    rule_id = "CONCATENATION"
    severity = "high"
    description = "Translated fragments joined by concatenation"

    def locate(self, record: CallRecord) -> SourceLocation:
        return record.expression_location or record.location

    def check(self, record: CallRecord, context: LintContext) -> str | None:
        if not record.is_concatenated_with_string_literals:
            return None
        return (
            "translated text is concatenated with other fragments; word order differs "
            "between languages, use one message with placeholders"
        )


class ManualPluralRule(Rule):
    rule_id = "MANUAL_PLURAL"
    severity = "medium"
    description = "Plural forms chosen by a hand-written two-way condition"

    def check(self, record: CallRecord, context: LintContext) -> str | None:
        branch = record.conditional
        if branch is None or branch.arm != "then":
            return None
        if not NUMERIC_TEST_RE.search(branch.condition):
            return None
        if record.has_count_argument or branch.sibling_has_count:
            return None
        if record.message_id is None or branch.sibling_message_id is None:
            raise RuleEvaluationError("conditional arm does not hold a literal message")

        ratio = SequenceMatcher(None, record.message_id.lower(), branch.sibling_message_id.lower()).ratio()
        if ratio < SIMILARITY_THRESHOLD:
            return None
        return (
            f"two message variants are selected by `{_shorten(branch.condition)}`; pass a count "
            "to a single message instead, languages can need more than two plural forms"
        )


class MissingContextRule(Rule):
    rule_id = "MISSING_CONTEXT"
    severity = "low"
    description = "Short message id reused without a disambiguating context"

    def check(self, record: CallRecord, context: LintContext) -> str | None:
        if record.message_id is None or record.has_context_argument:
            return None
        words = record.message_id.split()
        if not words:
            return None
        if len(words) > 1 and len(words) >= context.context_threshold:
            return None
        sites = context.message_sites.get(record.message_id, 0)
        if sites < 2:
            return None
        return (
            f"short message '{_shorten(record.message_id)}' is used at {sites} call sites "
            "without a context argument; translators cannot pick the right inflection"
        )


class RawMarkupRule(Rule):
    rule_id = "RAW_MARKUP"
    severity = "medium"
    description = "Markup tags embedded in a translatable message"

    def check(self, record: CallRecord, context: LintContext) -> str | None:
        if not record.contains_raw_markup_tags:
            return None
        return (
            "message embeds markup tags; keep markup out of translatable text or use a "
            "lightweight inline syntax"
        )


RULES: tuple[Rule, ...] = (
    TemplateBreakRule(),
    LogicMisuseRule(),
    ConcatenationRule(),
    ManualPluralRule(),
    MissingContextRule(),
    RawMarkupRule(),
)

RULE_IDS = frozenset(rule.rule_id for rule in RULES)


def select_rules(disabled: Iterable[str] = ()) -> tuple[Rule, ...]:
    disabled_ids = {item.strip().upper() for item in disabled}
    unknown = disabled_ids - RULE_IDS
    if unknown:
        raise ValueError(f"Unknown rule ids: {', '.join(sorted(unknown))}")
    return tuple(rule for rule in RULES if rule.rule_id not in disabled_ids)


def _shorten(text: str, limit: int = 60) -> str:
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[: limit - 3] + "..."
