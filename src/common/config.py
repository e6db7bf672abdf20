"""Helpers for loading line reader configuration profiles."""
from __future__ import annotations

import codecs
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import BackendError, ErrorCode
from .models import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_CHUNK_SIZE,
    GlobalSettings,
    ProfileSettings,
    ReaderSettings,
    RuntimeConfig,
)

DEFAULT_CONFIG_PATH = Path("config/defaults.json")
DEFAULT_PROFILE = "default"
ALLOWED_ERROR_POLICIES = {"fail-fast", "strict", "replace"}


@dataclass(slots=True)
class ConfigDocument:
    source: Optional[Path]
    version: int
    global_settings: GlobalSettings
    profiles: Dict[str, ProfileSettings]


def load_runtime_config(
    profile: str = DEFAULT_PROFILE,
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> RuntimeConfig:
    """Load configuration JSON, validate it, and resolve a specific profile."""

    document = load_config_document(
        profile_name=profile,
        config_path=config_path,
        overrides=overrides,
    )
    try:
        profile_settings = document.profiles[profile]
    except KeyError as exc:  # pragma: no cover - guarded earlier
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Profile '{profile}' not found in {document.source}",
        ) from exc
    return RuntimeConfig(global_settings=document.global_settings, profile=profile_settings)


def load_config_document(
    *,
    profile_name: Optional[str] = None,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> ConfigDocument:
    if config_path is None and not DEFAULT_CONFIG_PATH.exists():
        raw: Dict[str, Any] = _builtin_config()
        cfg_path: Optional[Path] = None
    else:
        cfg_path = config_path or DEFAULT_CONFIG_PATH
        raw = _read_config_json(cfg_path)
    source = cfg_path or "built-in defaults"

    version = _require_positive_int(raw.get("version"), "version", source)
    global_section = raw.get("global")
    if not isinstance(global_section, Mapping):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"'global' section missing in {source}")

    overrides = overrides or {}
    global_data = {**global_section, **(overrides.get("global") or {})}
    global_settings = _build_global_settings(global_data, source)

    profiles_section = raw.get("profiles")
    if not isinstance(profiles_section, Mapping) or not profiles_section:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"'profiles' section missing in {source}")

    profile_overrides = overrides.get("profile") or {}
    profiles: Dict[str, ProfileSettings] = {}
    for name, profile_data in profiles_section.items():
        if not isinstance(profile_data, Mapping):
            raise BackendError(
                ErrorCode.CONFIG_ERROR,
                f"Profile '{name}' must be an object in {source}",
            )
        merged = dict(profile_data)
        if profile_name and name == profile_name and profile_overrides:
            merged = {**merged, **profile_overrides}
        profiles[name] = _build_profile_settings(name, merged, source)

    if profile_name and profile_name not in profiles:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Profile '{profile_name}' not found in {source}",
        )

    return ConfigDocument(
        source=cfg_path,
        version=version,
        global_settings=global_settings,
        profiles=profiles,
    )


def error_mode_from_policy(policy: str) -> str:
    """Translate human-friendly error policy into Python's codec error handler."""

    return "strict" if policy.lower() in {"fail-fast", "strict"} else "replace"


def resolve_reader_settings(config: RuntimeConfig) -> ReaderSettings:
    """Merge global and profile settings into the values a reader is built from."""

    policy = config.profile.error_policy or config.global_settings.error_policy
    return ReaderSettings(
        buffer_size=config.profile.buffer_size,
        chunk_size=config.profile.chunk_size,
        encoding=config.profile.encoding or config.global_settings.encoding,
        errors=error_mode_from_policy(policy),
    )


# ---------------------------------------------------------------------------
# Internal helpers


def _builtin_config() -> Dict[str, Any]:
    return {
        "version": 1,
        "global": {"encoding": GlobalSettings().encoding, "error_policy": GlobalSettings().error_policy},
        "profiles": {
            DEFAULT_PROFILE: {
                "description": "Built-in defaults",
                "buffer_size": DEFAULT_BUFFER_SIZE,
                "chunk_size": DEFAULT_CHUNK_SIZE,
            }
        },
    }


def _read_config_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as exc:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' not found") from exc
    except json.JSONDecodeError as exc:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' is not valid JSON: {exc}") from exc


def _build_global_settings(data: Mapping[str, Any], source: Any) -> GlobalSettings:
    encoding = _require_encoding(data.get("encoding", GlobalSettings().encoding), "global.encoding", source)
    error_policy = _normalize_error_policy(
        data.get("error_policy", GlobalSettings().error_policy),
        "global.error_policy",
        source,
    )
    return GlobalSettings(encoding=encoding, error_policy=error_policy)


def _build_profile_settings(name: str, data: Mapping[str, Any], source: Any) -> ProfileSettings:
    prefix = f"profiles.{name}"
    required_fields = ("description", "buffer_size", "chunk_size")
    missing = [field for field in required_fields if field not in data]
    if missing:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Profile '{name}' missing fields {missing} in {source}",
        )

    description = _require_string(data.get("description"), f"{prefix}.description", source)
    buffer_size = _require_positive_int(data.get("buffer_size"), f"{prefix}.buffer_size", source)
    chunk_size = _require_positive_int(data.get("chunk_size"), f"{prefix}.chunk_size", source)

    encoding = data.get("encoding")
    if encoding is not None:
        encoding = _require_encoding(encoding, f"{prefix}.encoding", source)
    error_policy = data.get("error_policy")
    if error_policy is not None:
        error_policy = _normalize_error_policy(error_policy, f"{prefix}.error_policy", source)

    return ProfileSettings(
        description=description,
        buffer_size=buffer_size,
        chunk_size=chunk_size,
        encoding=encoding,
        error_policy=error_policy,
    )


def _normalize_error_policy(value: Any, field: str, source: Any) -> str:
    policy = _require_string(value, field, source).lower()
    if policy not in ALLOWED_ERROR_POLICIES:
        allowed = ", ".join(sorted(ALLOWED_ERROR_POLICIES))
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Unsupported error_policy '{value}' in {source}. Allowed: {allowed}",
        )
    return "fail-fast" if policy in {"fail-fast", "strict"} else "replace"


def _require_encoding(value: Any, field: str, source: Any) -> str:
    encoding = _require_string(value, field, source)
    try:
        codecs.lookup(encoding)
    except LookupError as exc:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"{field} names unknown encoding '{encoding}' in {source}",
        ) from exc
    return encoding


def _require_string(value: Any, field: str, source: Any) -> str:
    if not isinstance(value, str):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{field} must be a string in {source}")
    text = value.strip()
    if not text:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{field} must be non-empty in {source}")
    return text


def _require_positive_int(value: Any, field: str, source: Any) -> int:
    if isinstance(value, bool):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{field} must be an integer in {source}")
    try:
        num = int(value)
    except (TypeError, ValueError) as exc:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"{field} must be an integer in {source}",
        ) from exc
    if num <= 0:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"{field} must be greater than zero in {source}",
        )
    return num
