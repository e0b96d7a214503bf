from __future__ import annotations

import csv
import json
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from i18n_lint.models import Finding, LintResult, SourceLocation


EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_FATAL = 2

SEVERITY_ORDER = ("high", "medium", "low")
# No built-in rule emits these.
FATAL_SEVERITIES = frozenset({"fatal"})

FORMATS = ("text", "json", "jsonl")


@dataclass
class Report:
    findings: list[Finding]
    files_scanned: int = 0
    errors: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.findings = sorted(self.findings, key=Finding.sort_key)

    @classmethod
    def from_result(cls, result: LintResult) -> "Report":
        return cls(
            findings=list(result.findings),
            files_scanned=result.files_scanned,
            errors=list(result.errors),
        )

    def grouped(self) -> dict[SourceLocation, list[Finding]]:
        groups: dict[SourceLocation, list[Finding]] = {}
        for item in self.findings:
            groups.setdefault(item.location, []).append(item)
        return groups

    def counts(self) -> dict[str, int]:
        by_severity = Counter(item.severity for item in self.findings)
        counts = {severity: by_severity.get(severity, 0) for severity in SEVERITY_ORDER}
        counts["findings_total"] = len(self.findings)
        counts["files_with_findings"] = len({item.location.file for item in self.findings})
        counts["files_scanned"] = self.files_scanned
        counts["errors"] = len(self.errors)
        return counts

    def by_rule(self) -> list[dict]:
        counter = Counter((item.rule_id, item.severity) for item in self.findings)
        rows = [
            {"rule_id": rule_id, "severity": severity, "findings_count": count}
            for (rule_id, severity), count in counter.items()
        ]
        return sorted(rows, key=lambda row: (-row["findings_count"], row["rule_id"]))

    def by_file(self) -> list[dict]:
        counter = Counter(item.location.file for item in self.findings)
        rows = [{"file": path, "findings_count": count} for path, count in counter.items()]
        return sorted(rows, key=lambda row: (-row["findings_count"], row["file"]))

    def render(self, fmt: str = "text") -> str:
        if fmt == "text":
            return self.render_text()
        if fmt == "json":
            return self.render_json()
        if fmt == "jsonl":
            return self.render_jsonl()
        raise ValueError(f"Unsupported report format: {fmt}")

    def render_text(self) -> str:
        return "\n".join(
            f"{item.location} [{item.rule_id}] {item.explanation}" for item in self.findings
        )

    def render_json(self) -> str:
        payload = {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "counts": self.counts(),
            "findings": [item.to_dict() for item in self.findings],
            "errors": list(self.errors),
        }
        return json.dumps(payload, indent=2, ensure_ascii=True)

    def render_jsonl(self) -> str:
        return "\n".join(json.dumps(item.to_dict(), ensure_ascii=False) for item in self.findings)


def exit_status(report: Report) -> int:
    if report.errors:
        return EXIT_FATAL
    if any(item.severity in FATAL_SEVERITIES for item in report.findings):
        return EXIT_FATAL
    if report.findings:
        return EXIT_FINDINGS
    return EXIT_OK


def write_report_files(report: Report, output_dir: str | Path) -> dict[str, str]:
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    summary_json = out / "summary.json"
    findings_csv = out / "findings.csv"
    by_rule_csv = out / "findings_by_rule.csv"
    by_file_csv = out / "findings_by_file.csv"

    _write_csv(findings_csv, [item.to_dict() for item in report.findings])
    _write_csv(by_rule_csv, report.by_rule())
    _write_csv(by_file_csv, report.by_file())

    files = {
        "summary": str(summary_json.resolve()),
        "findings": str(findings_csv.resolve()),
        "findings_by_rule": str(by_rule_csv.resolve()),
        "findings_by_file": str(by_file_csv.resolve()),
    }
    summary = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "counts": report.counts(),
        "errors": list(report.errors),
        "files": files,
    }
    _write_json(summary_json, summary)
    return files


def _write_json(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=True)


def _write_csv(path: Path, rows: list[dict]) -> None:
    with path.open("w", encoding="utf-8", newline="") as handle:
        if not rows:
            handle.write("")
            return

        fieldnames: list[str] = []
        seen = set()
        for row in rows:
            for key in row:
                if key not in seen:
                    seen.add(key)
                    fieldnames.append(key)

        writer = csv.DictWriter(handle, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
