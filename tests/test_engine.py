import logging

from i18n_lint.models import CallRecord, ConditionalBranch, SourceLocation
from i18n_lint.scanners import RULES, build_lint_context, evaluate_records, extract_calls
from i18n_lint.scanners.rules import LogicMisuseRule, Rule


SOURCE = (
    "const a = i18n('Share');\n"
    "const b = i18n(key) + i18n('Share');\n"
    "const c = n === 1 ? i18n('One <b>item</b>') : i18n('{count} <b>items</b>');\n"
    "const d = i18n('[Broken]');\n"
)


class ExplodingRule(Rule):
    rule_id = "EXPLODING"
    severity = "high"
    description = "always fails"

    def check(self, record, context):
        raise KeyError("boom")


def test_findings_do_not_depend_on_rule_or_record_order():
    records = list(extract_calls(SOURCE, file_path="web/app.js"))

    forward = evaluate_records(records, RULES)
    backward = evaluate_records(list(reversed(records)), tuple(reversed(RULES)))

    assert forward == backward
    assert {item.rule_id for item in forward} == {
        "CONCATENATION",
        "LOGIC_MISUSE",
        "MANUAL_PLURAL",
        "MISSING_CONTEXT",
        "RAW_MARKUP",
        "TEMPLATE_BREAK",
    }
    assert [item.sort_key() for item in forward] == sorted(item.sort_key() for item in forward)


def test_build_lint_context_counts_literal_message_ids():
    records = list(extract_calls(SOURCE))
    context = build_lint_context(records, context_threshold=4)

    assert context.message_sites["Share"] == 2
    assert context.message_sites["[Broken]"] == 1
    assert context.context_threshold == 4
    assert None not in context.message_sites


def test_duplicate_records_report_once():
    record = CallRecord(
        location=SourceLocation("a.js", 3, 5),
        function_name="i18n",
        raw_arguments=("key",),
        uses_variable_as_message_id=True,
    )

    findings = evaluate_records([record, record])

    assert [item.rule_id for item in findings] == ["LOGIC_MISUSE"]


def test_failing_rule_degrades_to_no_finding(caplog):
    record = CallRecord(
        location=SourceLocation("a.js", 1, 1),
        function_name="i18n",
        raw_arguments=("key",),
        uses_variable_as_message_id=True,
    )

    with caplog.at_level(logging.DEBUG, logger="i18n_lint.scanners.engine"):
        findings = evaluate_records([record], (ExplodingRule(), LogicMisuseRule()))

    assert [item.rule_id for item in findings] == ["LOGIC_MISUSE"]
    assert "EXPLODING failed" in caplog.text


def test_not_applicable_rule_is_logged_at_debug(caplog):
    record = CallRecord(
        location=SourceLocation("a.js", 1, 1),
        function_name="i18n",
        raw_arguments=("key",),
        uses_variable_as_message_id=True,
        conditional=ConditionalBranch(
            condition="n == 1",
            arm="then",
            sibling_message_id="Many files",
            sibling_has_count=False,
            sibling_location=SourceLocation("a.js", 2, 1),
        ),
    )

    with caplog.at_level(logging.DEBUG, logger="i18n_lint.scanners.engine"):
        findings = evaluate_records([record])

    assert [item.rule_id for item in findings] == ["LOGIC_MISUSE"]
    assert "MANUAL_PLURAL not applicable" in caplog.text
