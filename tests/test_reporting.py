import csv
import json
from pathlib import Path

from i18n_lint.models import Finding, LintResult, SourceLocation
from i18n_lint.reporting import EXIT_FATAL, EXIT_FINDINGS, EXIT_OK, Report, exit_status, write_report_files


def _finding(file, line, column, rule_id, severity="high"):
    return Finding(
        location=SourceLocation(file, line, column),
        rule_id=rule_id,
        severity=severity,
        explanation=f"{rule_id.lower()} explanation",
        evidence="i18n(x)",
    )


FINDINGS = [
    _finding("b.js", 1, 1, "LOGIC_MISUSE"),
    _finding("a.js", 10, 3, "RAW_MARKUP", "medium"),
    _finding("a.js", 2, 7, "MISSING_CONTEXT", "low"),
    _finding("a.js", 2, 7, "CONCATENATION"),
]


def test_report_orders_by_location_then_rule():
    report = Report(findings=list(FINDINGS))

    assert [(item.location.file, item.location.line, item.rule_id) for item in report.findings] == [
        ("a.js", 2, "CONCATENATION"),
        ("a.js", 2, "MISSING_CONTEXT"),
        ("a.js", 10, "RAW_MARKUP"),
        ("b.js", 1, "LOGIC_MISUSE"),
    ]


def test_render_text():
    text = Report(findings=list(FINDINGS)).render("text")

    assert text.splitlines() == [
        "a.js:2:7 [CONCATENATION] concatenation explanation",
        "a.js:2:7 [MISSING_CONTEXT] missing_context explanation",
        "a.js:10:3 [RAW_MARKUP] raw_markup explanation",
        "b.js:1:1 [LOGIC_MISUSE] logic_misuse explanation",
    ]
    assert Report(findings=[]).render("text") == ""


def test_grouped_by_location():
    groups = Report(findings=list(FINDINGS)).grouped()

    assert [item.rule_id for item in groups[SourceLocation("a.js", 2, 7)]] == ["CONCATENATION", "MISSING_CONTEXT"]
    assert len(groups) == 3


def test_render_json_and_jsonl():
    report = Report(findings=list(FINDINGS), files_scanned=5, errors=["c.js: unreadable"])

    payload = json.loads(report.render("json"))
    assert payload["counts"] == {
        "high": 2,
        "medium": 1,
        "low": 1,
        "findings_total": 4,
        "files_with_findings": 2,
        "files_scanned": 5,
        "errors": 1,
    }
    assert payload["findings"][0]["rule_id"] == "CONCATENATION"
    assert payload["errors"] == ["c.js: unreadable"]

    lines = report.render("jsonl").splitlines()
    assert len(lines) == 4
    assert json.loads(lines[-1])["file"] == "b.js"


def test_exit_status():
    assert exit_status(Report(findings=[])) == EXIT_OK
    assert exit_status(Report(findings=list(FINDINGS))) == EXIT_FINDINGS
    assert exit_status(Report(findings=[], errors=["x.js: unreadable"])) == EXIT_FATAL
    assert exit_status(Report(findings=[_finding("a.js", 1, 1, "BROKEN", "fatal")])) == EXIT_FATAL


def test_from_result():
    result = LintResult(files_scanned=2, findings=tuple(FINDINGS), errors=())
    report = Report.from_result(result)

    assert report.files_scanned == 2
    assert report.findings[0].rule_id == "CONCATENATION"
    assert result.to_dict()["findings"][0]["file"] == "b.js"


def test_write_report_files(tmp_path: Path):
    report = Report(findings=list(FINDINGS), files_scanned=3)
    files = write_report_files(report, tmp_path / "out")

    summary = json.loads(Path(files["summary"]).read_text(encoding="utf-8"))
    assert summary["counts"]["findings_total"] == 4

    with Path(files["findings"]).open(encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert [row["rule_id"] for row in rows][:2] == ["CONCATENATION", "MISSING_CONTEXT"]

    with Path(files["findings_by_file"]).open(encoding="utf-8", newline="") as handle:
        by_file = list(csv.DictReader(handle))
    assert by_file[0] == {"file": "a.js", "findings_count": "3"}


def test_write_report_files_without_findings(tmp_path: Path):
    files = write_report_files(Report(findings=[]), tmp_path)

    assert Path(files["findings"]).read_text(encoding="utf-8") == ""
    assert json.loads(Path(files["summary"]).read_text(encoding="utf-8"))["counts"]["findings_total"] == 0
