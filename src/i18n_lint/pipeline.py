from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, Iterator

from i18n_lint.models import FileResult, Finding, LintResult, LintSettings
from i18n_lint.scanners import build_lint_context, evaluate_records, extract_calls, select_rules

logger = logging.getLogger(__name__)


class InputPathError(OSError):
    pass


def run_lint(paths: Iterable[str | Path], settings: LintSettings) -> LintResult:
    files = discover_files(paths, settings)
    file_results = extract_files(files, settings)

    records = [record for result in file_results for record in result.records]
    rules = select_rules(settings.disabled_rules)
    context = build_lint_context(records, settings.context_threshold)
    findings = evaluate_records(records, rules, context)

    errors = tuple(f"{result.path}: {result.error}" for result in file_results if result.error)
    logger.info(
        "Linted %d file(s): %d call(s), %d finding(s), %d error(s)",
        len(file_results),
        len(records),
        len(findings),
        len(errors),
    )
    return LintResult(files_scanned=len(file_results), findings=tuple(findings), errors=errors)


def lint_source(
    text: str,
    settings: LintSettings | None = None,
    *,
    file_path: str = "<string>",
) -> list[Finding]:
    settings = settings or LintSettings()
    records = list(extract_calls(text, settings.function_names, file_path=file_path))
    rules = select_rules(settings.disabled_rules)
    return evaluate_records(records, rules, build_lint_context(records, settings.context_threshold))


def discover_files(paths: Iterable[str | Path], settings: LintSettings) -> list[Path]:
    discovered: list[Path] = []
    seen: set[Path] = set()

    for raw in paths:
        root = Path(raw)
        if not root.exists():
            raise InputPathError(f"Input path does not exist: {root}")

        if root.is_file():
            candidates: Iterable[Path] = [root]
        else:
            candidates = sorted(_iter_candidate_files(root, settings.include_exts, settings.exclude_dirs))

        for path in candidates:
            key = path.resolve()
            if key in seen:
                continue
            seen.add(key)
            discovered.append(path)
            if len(discovered) >= settings.max_files:
                logger.warning("Stopping discovery at max_files=%d", settings.max_files)
                return discovered

    return discovered


def extract_files(files: list[Path], settings: LintSettings) -> list[FileResult]:
    if settings.workers <= 1 or len(files) <= 1:
        return [_extract_guarded(path, settings) for path in files]

    results: list[FileResult | None] = [None] * len(files)
    with ThreadPoolExecutor(max_workers=settings.workers) as executor:
        futures = {executor.submit(_extract_guarded, path, settings): index for index, path in enumerate(files)}
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    return [result for result in results if result is not None]


def _extract_guarded(path: Path, settings: LintSettings) -> FileResult:
    try:
        return extract_file(path, settings)
    except Exception as exc:
        logger.exception("Extraction failed for %s", path.as_posix())
        return FileResult(path=path.as_posix(), error=str(exc))


def extract_file(path: Path, settings: LintSettings) -> FileResult:
    display = path.as_posix()
    try:
        if path.stat().st_size > settings.max_file_size_bytes:
            logger.info("Skipping %s: larger than %d bytes", display, settings.max_file_size_bytes)
            return FileResult(path=display)
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Cannot read %s: %s", display, exc)
        return FileResult(path=display, error=str(exc))

    records = tuple(extract_calls(text, settings.function_names, file_path=display))
    logger.debug("%s: %d translation call(s)", display, len(records))
    return FileResult(path=display, records=records)


def _iter_candidate_files(root: Path, include_exts: frozenset[str], exclude_dirs: frozenset[str]) -> Iterator[Path]:
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        if any(part in exclude_dirs for part in path.relative_to(root).parts):
            continue
        if path.suffix.lower() in include_exts:
            yield path
