from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable

from i18n_lint.models import CallRecord, Finding
from i18n_lint.scanners.rules import RULES, LintContext, Rule, RuleEvaluationError

logger = logging.getLogger(__name__)


def build_lint_context(records: Iterable[CallRecord], context_threshold: int = 3) -> LintContext:
    sites = Counter(record.message_id for record in records if record.message_id is not None)
    return LintContext(message_sites=dict(sites), context_threshold=context_threshold)


def evaluate_records(
    records: Iterable[CallRecord],
    rules: Iterable[Rule] = RULES,
    context: LintContext | None = None,
) -> list[Finding]:
    records = list(records)
    rules = tuple(rules)
    if context is None:
        context = build_lint_context(records)

    findings: list[Finding] = []
    for record in records:
        findings.extend(evaluate_record(record, rules, context))

    # The same call can be matched under two configured names.
    deduped: dict[tuple, Finding] = {}
    for item in findings:
        deduped.setdefault((item.location, item.rule_id), item)

    return sorted(deduped.values(), key=Finding.sort_key)


def evaluate_record(record: CallRecord, rules: Iterable[Rule], context: LintContext) -> list[Finding]:
    findings: list[Finding] = []
    for rule in rules:
        try:
            finding = rule.evaluate(record, context)
        except RuleEvaluationError as exc:
            logger.debug("%s not applicable at %s: %s", rule.rule_id, record.location, exc)
            continue
        except Exception:
            logger.debug("%s failed at %s", rule.rule_id, record.location, exc_info=True)
            continue
        if finding is not None:
            findings.append(finding)
    return findings
