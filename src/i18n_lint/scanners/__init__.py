from i18n_lint.scanners.engine import build_lint_context, evaluate_records
from i18n_lint.scanners.extractor import CallExtractor, ParseError, extract_calls
from i18n_lint.scanners.rules import RULE_IDS, RULES, LintContext, RuleEvaluationError, select_rules

__all__ = [
    "CallExtractor",
    "LintContext",
    "ParseError",
    "RULES",
    "RULE_IDS",
    "RuleEvaluationError",
    "build_lint_context",
    "evaluate_records",
    "extract_calls",
    "select_rules",
]
