from __future__ import annotations

import json
import re
from dataclasses import replace
from pathlib import Path

from i18n_lint.models import LintSettings
from i18n_lint.scanners.rules import RULE_IDS


FUNCTION_NAME_RE = re.compile(r"^[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*$")


class ConfigError(ValueError):
    pass


def load_config(path: str | Path) -> LintSettings:
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file is not valid JSON: {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Config must be a JSON object")

    defaults = LintSettings()
    settings = LintSettings(
        function_names=tuple(_ensure_string_list(raw.get("function_names", list(defaults.function_names)))),
        context_threshold=_ensure_int(raw.get("context_threshold", defaults.context_threshold), "context_threshold"),
        include_exts=frozenset(
            normalize_extensions(_ensure_string_list(raw.get("include_exts", sorted(defaults.include_exts))))
        ),
        exclude_dirs=frozenset(_ensure_string_list(raw.get("exclude_dirs", sorted(defaults.exclude_dirs)))),
        max_file_size_bytes=_ensure_int(
            raw.get("max_file_size_bytes", defaults.max_file_size_bytes), "max_file_size_bytes"
        ),
        max_files=_ensure_int(raw.get("max_files", defaults.max_files), "max_files"),
        workers=_ensure_int(raw.get("workers", defaults.workers), "workers"),
        disabled_rules=frozenset(item.upper() for item in _ensure_string_list(raw.get("disabled_rules", []))),
    )
    validate_settings(settings)
    return settings


def apply_overrides(
    settings: LintSettings,
    *,
    function_names: list[str] | None = None,
    context_threshold: int | None = None,
    include_exts: list[str] | None = None,
    exclude_dirs: list[str] | None = None,
    max_file_size_bytes: int | None = None,
    workers: int | None = None,
    disabled_rules: list[str] | None = None,
) -> LintSettings:
    changes: dict = {}
    if function_names:
        changes["function_names"] = tuple(function_names)
    if context_threshold is not None:
        changes["context_threshold"] = context_threshold
    if include_exts is not None:
        changes["include_exts"] = frozenset(normalize_extensions(include_exts))
    if exclude_dirs is not None:
        changes["exclude_dirs"] = frozenset(exclude_dirs)
    if max_file_size_bytes is not None:
        changes["max_file_size_bytes"] = max_file_size_bytes
    if workers is not None:
        changes["workers"] = workers
    if disabled_rules:
        changes["disabled_rules"] = settings.disabled_rules | {item.strip().upper() for item in disabled_rules}

    updated = replace(settings, **changes)
    validate_settings(updated)
    return updated


def validate_settings(settings: LintSettings) -> None:
    if not settings.function_names:
        raise ConfigError("At least one function name is required")
    for name in settings.function_names:
        if not FUNCTION_NAME_RE.match(name):
            raise ConfigError(f"Invalid function name: {name!r}")
    if settings.context_threshold < 1:
        raise ConfigError("context_threshold must be a positive integer")
    if settings.workers < 1:
        raise ConfigError("workers must be a positive integer")
    if settings.max_file_size_bytes < 1 or settings.max_files < 1:
        raise ConfigError("max_file_size_bytes and max_files must be positive integers")
    unknown = settings.disabled_rules - RULE_IDS
    if unknown:
        raise ConfigError(f"Unknown rule ids: {', '.join(sorted(unknown))}")


def normalize_extensions(values: list[str]) -> list[str]:
    normalized = []
    for value in values:
        text = value.strip().lower()
        if not text:
            continue
        normalized.append(text if text.startswith(".") else f".{text}")
    return normalized


def split_csv(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def _ensure_int(value: object, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{key}' must be an integer")
    return value


def _ensure_string_list(value: object) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError("Expected a list of strings")
    return [str(item) for item in value]
