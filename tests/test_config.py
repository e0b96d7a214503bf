import json
from pathlib import Path

import pytest

from i18n_lint.config import ConfigError, apply_overrides, load_config, split_csv
from i18n_lint.models import LintSettings


def test_example_config_loads():
    root = Path(__file__).resolve().parents[1]
    config = load_config(root / "configs" / "i18n_lint.example.json")

    assert config.function_names == ("i18n", "_")
    assert config.context_threshold == 3
    assert ".py" in config.include_exts
    assert "node_modules" in config.exclude_dirs


def test_missing_keys_fall_back_to_defaults(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"context_threshold": 5, "disabled_rules": ["raw_markup"]}), encoding="utf-8")

    config = load_config(path)

    assert config.function_names == ("i18n",)
    assert config.context_threshold == 5
    assert config.disabled_rules == frozenset({"RAW_MARKUP"})
    assert config.include_exts == LintSettings().include_exts


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[1, 2]",
        json.dumps({"context_threshold": "3"}),
        json.dumps({"context_threshold": 0}),
        json.dumps({"function_names": "i18n"}),
        json.dumps({"function_names": ["bad name"]}),
        json.dumps({"disabled_rules": ["NO_SUCH_RULE"]}),
    ],
)
def test_invalid_config_is_rejected(tmp_path: Path, content):
    path = tmp_path / "config.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)


def test_missing_config_file(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "absent.json")


def test_apply_overrides():
    settings = apply_overrides(
        LintSettings(),
        function_names=["_", "this.$t"],
        context_threshold=2,
        include_exts=split_csv("py, .JS"),
        workers=3,
        disabled_rules=["concatenation"],
    )

    assert settings.function_names == ("_", "this.$t")
    assert settings.context_threshold == 2
    assert settings.include_exts == frozenset({".py", ".js"})
    assert settings.workers == 3
    assert settings.disabled_rules == frozenset({"CONCATENATION"})


def test_apply_overrides_validates():
    with pytest.raises(ConfigError):
        apply_overrides(LintSettings(), context_threshold=0)
    with pytest.raises(ConfigError):
        apply_overrides(LintSettings(), workers=0)


def test_split_csv():
    assert split_csv(None) is None
    assert split_csv(" a, ,b ") == ["a", "b"]
