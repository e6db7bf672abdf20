"""Tests for reader configuration loader."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from common import config as config_module
from common.config import error_mode_from_policy, load_runtime_config, resolve_reader_settings
from common.errors import BackendError, ErrorCode
from core.lines import BufferRegistry, create_line_reader_from_profile

REPO_CONFIG = Path(__file__).resolve().parents[1] / "config" / "defaults.json"


def test_load_shipped_profiles() -> None:
    config = load_runtime_config("low_memory", config_path=REPO_CONFIG)
    assert config.profile.buffer_size == 4096
    assert config.profile.chunk_size == 512
    assert config.global_settings.encoding == "utf-8"

    default = load_runtime_config(config_path=REPO_CONFIG)
    assert (default.profile.buffer_size, default.profile.chunk_size) == (32768, 2048)


def test_builtin_defaults_when_config_file_absent(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", tmp_path / "missing.json")
    settings = resolve_reader_settings(load_runtime_config())
    assert settings.buffer_size == 32768
    assert settings.chunk_size == 2048
    assert settings.encoding == "utf-8"
    assert settings.errors == "strict"


def test_error_mode_resolution() -> None:
    assert error_mode_from_policy("fail-fast") == "strict"
    assert error_mode_from_policy("strict") == "strict"
    assert error_mode_from_policy("replace") == "replace"


def test_profile_overrides_global_encoding_and_policy(tmp_path: Path) -> None:
    profile = {**_profile_payload(), "encoding": "cp1251", "error_policy": "replace"}
    config_path = _write_config(tmp_path, _document({"legacy": profile}))
    settings = resolve_reader_settings(load_runtime_config("legacy", config_path=config_path))
    assert settings.encoding == "cp1251"
    assert settings.errors == "replace"


def test_overrides_apply_to_selected_profile(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, _document({"default": _profile_payload()}))
    config = load_runtime_config(
        "default",
        config_path=config_path,
        overrides={"profile": {"chunk_size": 3}, "global": {"error_policy": "replace"}},
    )
    settings = resolve_reader_settings(config)
    assert settings.chunk_size == 3
    assert settings.errors == "replace"


def test_reader_built_from_profile(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, _document({"default": _profile_payload()}))
    config = load_runtime_config(config_path=config_path)
    chunks = [b"a\nb"]

    def read(handle, dest, offset, max_bytes):
        data = chunks.pop() if chunks else b""
        dest[offset : offset + len(data)] = data
        return len(data)

    reader = create_line_reader_from_profile("cfg", config, registry=BufferRegistry(), read=read)
    assert reader.chunk_size == 16
    assert reader.snapshot().capacity == 64
    assert list(reader) == ["a\n", "b"]


def test_missing_profile_raises_backend_error(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, _document({"only": _profile_payload()}))
    with pytest.raises(BackendError) as exc:
        load_runtime_config("missing", config_path=config_path)
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def test_invalid_error_policy_rejected(tmp_path: Path) -> None:
    document = _document({"default": _profile_payload()})
    document["global"]["error_policy"] = "panic"
    config_path = _write_config(tmp_path, document)
    with pytest.raises(BackendError) as exc:
        load_runtime_config(config_path=config_path)
    assert "error_policy" in str(exc.value)


def test_unknown_encoding_rejected(tmp_path: Path) -> None:
    document = _document({"default": _profile_payload()})
    document["global"]["encoding"] = "klingon-8"
    config_path = _write_config(tmp_path, document)
    with pytest.raises(BackendError) as exc:
        load_runtime_config(config_path=config_path)
    assert "klingon-8" in str(exc.value)


@pytest.mark.parametrize("value", [0, -1, "many", True, None])
def test_bad_chunk_size_rejected(tmp_path: Path, value) -> None:
    config_path = _write_config(
        tmp_path, _document({"default": {**_profile_payload(), "chunk_size": value}})
    )
    with pytest.raises(BackendError) as exc:
        load_runtime_config(config_path=config_path)
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def test_missing_fields_reported(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, _document({"default": {"description": "tmp"}}))
    with pytest.raises(BackendError) as exc:
        load_runtime_config(config_path=config_path)
    assert "buffer_size" in str(exc.value)


def test_blank_description_rejected(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path, _document({"default": {**_profile_payload(), "description": " "}})
    )
    with pytest.raises(BackendError) as exc:
        load_runtime_config(config_path=config_path)
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def test_invalid_json_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(BackendError) as exc:
        load_runtime_config(config_path=path)
    assert "not valid JSON" in str(exc.value)


def test_missing_explicit_file_rejected(tmp_path: Path) -> None:
    with pytest.raises(BackendError) as exc:
        load_runtime_config(config_path=tmp_path / "nope.json")
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def _document(profiles: dict) -> dict:
    return {
        "version": 1,
        "global": {"encoding": "utf-8", "error_policy": "fail-fast"},
        "profiles": profiles,
    }


def _write_config(tmp_path: Path, payload: dict) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


def _profile_payload() -> dict:
    return {
        "description": "tmp",
        "buffer_size": 50,
        "chunk_size": 16,
    }
