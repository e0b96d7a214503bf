from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


DEFAULT_FUNCTION_NAME = "i18n"

DEFAULT_INCLUDE_EXTS = frozenset(
    {
        ".py",
        ".pyi",
        ".js",
        ".jsx",
        ".ts",
        ".tsx",
        ".mjs",
        ".cjs",
        ".vue",
        ".svelte",
    }
)

DEFAULT_EXCLUDE_DIRS = frozenset(
    {
        ".git",
        ".venv",
        "venv",
        "node_modules",
        "build",
        "dist",
        "__pycache__",
    }
)


@dataclass(frozen=True, order=True)
class SourceLocation:
    file: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class ConditionalBranch:
    condition: str
    arm: str
    sibling_message_id: str | None
    sibling_has_count: bool
    sibling_location: SourceLocation


@dataclass(frozen=True)
class CallRecord:
    location: SourceLocation
    function_name: str
    raw_arguments: tuple[str, ...]
    message_id: str | None = None
    is_concatenated_with_string_literals: bool = False
    contains_template_delimiters: bool = False
    uses_variable_as_message_id: bool = False
    has_count_argument: bool = False
    has_context_argument: bool = False
    contains_raw_markup_tags: bool = False
    conditional: ConditionalBranch | None = None
    source_text: str = ""
    # Start of the enclosing "+" chain or template string, for concatenated calls.
    expression_location: SourceLocation | None = None


@dataclass(frozen=True)
class Finding:
    location: SourceLocation
    rule_id: str
    severity: str
    explanation: str
    evidence: str = ""

    def sort_key(self) -> tuple:
        return (self.location.file, self.location.line, self.location.column, self.rule_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.location.file,
            "line": self.location.line,
            "column": self.location.column,
            "rule_id": self.rule_id,
            "severity": self.severity,
            "explanation": self.explanation,
            "evidence": self.evidence,
        }


@dataclass(frozen=True)
class LintSettings:
    function_names: tuple[str, ...] = (DEFAULT_FUNCTION_NAME,)
    context_threshold: int = 3
    include_exts: frozenset[str] = DEFAULT_INCLUDE_EXTS
    exclude_dirs: frozenset[str] = DEFAULT_EXCLUDE_DIRS
    max_file_size_bytes: int = 2_000_000
    max_files: int = 40_000
    workers: int = 1
    disabled_rules: frozenset[str] = frozenset()


@dataclass(frozen=True)
class FileResult:
    path: str
    records: tuple[CallRecord, ...] = ()
    error: str | None = None


@dataclass(frozen=True)
class LintResult:
    files_scanned: int
    findings: tuple[Finding, ...]
    errors: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["findings"] = [item.to_dict() for item in self.findings]
        return payload
