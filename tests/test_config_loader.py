"""Tests for memory.json loading, saving and env overrides."""

import json
from pathlib import Path

import pytest

from caiide_memory.config.loader import (
    camel_to_snake,
    convert_keys,
    load_config,
    save_config,
    snake_to_camel,
)
from caiide_memory.config.schema import Config


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "absent.json")
    assert cfg.worker.command == "python -m memory_mcp.server"
    assert cfg.worker.request_timeout_seconds == 30.0
    assert cfg.auto_connect is True
    assert not (tmp_path / "absent.json").exists()


def test_camel_case_file_is_loaded(tmp_path: Path) -> None:
    path = tmp_path / "memory.json"
    path.write_text(
        json.dumps(
            {
                "worker": {
                    "command": "memory-worker --stdio",
                    "requestTimeoutSeconds": 5,
                    "toolCallMethod": "tools/call",
                    "env": {"MEMORY_HOME": "/data"},
                },
                "defaultTags": ["ide"],
                "autoConnect": False,
            }
        ),
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.worker.command == "memory-worker --stdio"
    assert cfg.worker.request_timeout_seconds == 5
    assert cfg.worker.tool_call_method == "tools/call"
    assert cfg.worker.env == {"MEMORY_HOME": "/data"}
    assert cfg.default_tags == ["ide"]
    assert cfg.auto_connect is False


def test_invalid_file_names_the_path(tmp_path: Path) -> None:
    path = tmp_path / "memory.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="memory.json"):
        load_config(path)


def test_invalid_values_are_rejected(tmp_path: Path) -> None:
    path = tmp_path / "memory.json"
    path.write_text(json.dumps({"worker": {"requestTimeoutSeconds": -1}}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_save_then_load_keeps_env_var_names(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "memory.json"
    cfg = Config()
    cfg.worker.env = {"API_KEY": "k"}
    cfg.default_tags = ["a"]
    save_config(cfg, path)

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["worker"]["env"] == {"API_KEY": "k"}
    assert "requestTimeoutSeconds" in raw["worker"]
    assert raw["defaultTags"] == ["a"]
    assert load_config(path).worker.env == {"API_KEY": "k"}


def test_env_vars_override_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CAIIDE_MEMORY_WORKER__COMMAND", "env-worker")
    monkeypatch.setenv("CAIIDE_MEMORY_SEARCH_LIMIT", "7")
    cfg = Config()
    assert cfg.worker.command == "env-worker"
    assert cfg.search_limit == 7


def test_each_load_reads_the_current_file(tmp_path: Path) -> None:
    path = tmp_path / "memory.json"
    path.write_text(json.dumps({"searchLimit": 3}), encoding="utf-8")
    assert load_config(path).search_limit == 3
    save_config(Config(search_limit=4), path)
    assert load_config(path).search_limit == 4


def test_key_case_helpers() -> None:
    assert camel_to_snake("requestTimeoutSeconds") == "request_timeout_seconds"
    assert snake_to_camel("tool_call_method") == "toolCallMethod"
    assert convert_keys({"worker": {"env": {"someVar": "x"}}}) == {"worker": {"env": {"someVar": "x"}}}
