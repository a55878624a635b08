"""Settings dataclasses and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from cryptography.fernet import Fernet, InvalidToken

__all__ = [
    "Settings",
    "SettingsStore",
    "SecretVault",
    "SECRET_FIELDS",
    "redact_secret",
    "redacted_settings",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".lyricpad"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_CIPHERTEXT_SUFFIX = "_ciphertext"
SECRET_FIELDS: tuple[str, ...] = ("openai_api_key", "genius_access_token")
_ENV_OVERRIDES: Mapping[str, str] = {
    "OPENAI_API_KEY": "openai_api_key",
    "GENIUS_ACCESS_TOKEN": "genius_access_token",
    "LYRICPAD_BASE_URL": "base_url",
    "LYRICPAD_COMPLETION_MODEL": "completion_model",
    "LYRICPAD_INSPIRATION_MODEL": "inspiration_model",
    "LYRICPAD_STORE_PATH": "store_path",
    "LYRICPAD_API_BASE_URL": "api_base_url",
    "LYRICPAD_HOST": "host",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "LYRICPAD_DEBUG_LOGGING": "debug_logging",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "LYRICPAD_REQUEST_TIMEOUT": "request_timeout",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "LYRICPAD_PORT": "port",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}


@dataclass(slots=True)
class Settings:
    """User-configurable settings persisted between sessions."""

    base_url: str = "https://api.openai.com/v1"
    openai_api_key: str = ""
    genius_access_token: str = ""
    genius_base_url: str = "https://api.genius.com"
    completion_model: str = "gpt-5-nano"
    inspiration_model: str = "gpt-5"
    final_model: str = "gpt-5-nano"
    reasoning_effort: str = "minimal"
    verbosity: str = "low"
    request_timeout: float = 90.0
    lookup_timeout: float = 15.0
    max_retries: int = 3
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 6.0
    autosave_delay: float = 0.5
    saved_relax_delay: float = 1.5
    store_path: str = str(_SETTINGS_DIR / "pads.json")
    api_base_url: str = "http://127.0.0.1:8000"
    host: str = "127.0.0.1"
    port: int = 8000
    debug_logging: bool = False


class SecretVault:
    """Encrypts and decrypts credentials with a Fernet key stored on disk."""

    name = "fernet"

    def __init__(self, *, key_path: Path | None = None) -> None:
        self._key_path = key_path or (_SETTINGS_DIR / "settings.key")
        self._fernet: Fernet | None = None

    def encrypt(self, secret: str) -> str:
        if not secret:
            return ""
        token = self._get_fernet().encrypt(secret.encode("utf-8"))
        return f"{self.name}:{token.decode('ascii')}"

    def decrypt(self, token: str | None) -> str:
        if not token:
            return ""
        prefix, _, payload = token.partition(":")
        if prefix != self.name or not payload:
            raise ValueError(f"Unknown secret token prefix {prefix!r}")
        try:
            raw = self._get_fernet().decrypt(payload.encode("ascii"))
        except InvalidToken as exc:
            raise ValueError("Invalid Fernet token") from exc
        return raw.decode("utf-8")

    def _get_fernet(self) -> Fernet:
        if self._fernet is None:
            self._fernet = Fernet(self._load_or_create_key())
        return self._fernet

    def _load_or_create_key(self) -> bytes:
        path = self._key_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists():
            return path.read_bytes().strip()
        key = Fernet.generate_key()
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_bytes(key)
        if os.name != "nt":  # pragma: no cover - depends on OS
            os.chmod(tmp_path, 0o600)
        tmp_path.replace(path)
        return key


class SettingsStore:
    """Persistence adapter for :class:`Settings`."""

    def __init__(self, path: Path | None = None, *, vault: SecretVault | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH
        self._vault = vault or SecretVault(key_path=self._path.with_suffix(".key"))

    @property
    def path(self) -> Path:
        """Return the resolved path backing this store."""

        return self._path

    @property
    def vault(self) -> SecretVault:
        return self._vault

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Load settings from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        settings = Settings()
        needs_migration = False

        if payload:
            secrets: Dict[str, str] = {}
            for name in SECRET_FIELDS:
                plaintext, migrated = self._decrypt_secret(
                    name,
                    payload.pop(name + _CIPHERTEXT_SUFFIX, None),
                    payload.pop(name, None),
                )
                needs_migration = needs_migration or migrated
                if plaintext:
                    secrets[name] = plaintext
            try:
                settings = Settings(**_filter_fields(payload), **secrets)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = Settings()

        version_mismatch = bool(payload) and payload.get("version") != _SETTINGS_VERSION
        if needs_migration or version_mismatch:
            try:
                self.save(settings)
            except Exception as exc:  # pragma: no cover - defensive guard
                LOGGER.warning("Failed to migrate settings payload: %s", exc)

        if overrides:
            settings = self._apply_overrides(settings, overrides, source="CLI")

        return self._apply_env_overrides(settings)

    def save(self, settings: Settings) -> Path:
        """Persist settings to disk with atomic file writes."""

        payload = self._serialize(settings)
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _serialize(self, settings: Settings) -> Dict[str, Any]:
        data = asdict(settings)
        for name in SECRET_FIELDS:
            secret = data.pop(name, "") or ""
            if not secret:
                continue
            try:
                data[name + _CIPHERTEXT_SUFFIX] = self._vault.encrypt(secret)
            except Exception as exc:  # pragma: no cover - extremely rare
                LOGGER.warning("Failed to encrypt %s: %s", name, exc)
        data["version"] = _SETTINGS_VERSION
        return data

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            data = json.loads(text)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        return dict(data) if isinstance(data, Mapping) else {}

    def _decrypt_secret(
        self, name: str, ciphertext: str | None, legacy_plaintext: str | None
    ) -> tuple[str, bool]:
        if ciphertext:
            try:
                return self._vault.decrypt(ciphertext), False
            except ValueError as exc:
                LOGGER.warning("Unable to decrypt %s: %s", name, exc)
                return "", False
        if legacy_plaintext:
            LOGGER.info("Detected plaintext %s; migrating to encrypted storage.", name)
            return legacy_plaintext, True
        return "", False

    def _apply_overrides(
        self,
        settings: Settings,
        overrides: Mapping[str, Any],
        *,
        source: str = "runtime",
    ) -> Settings:
        allowed = {field.name for field in fields(Settings)}
        filtered = {key: value for key, value in overrides.items() if key in allowed and value is not None}
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: Settings) -> Settings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _INT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning("Environment override %s=%s is not a valid integer", env_name, value)
        for env_name, field_name in _FLOAT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = float(value)
            except ValueError:
                LOGGER.warning("Environment override %s=%s is not a valid float", env_name, value)
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {field.name for field in fields(Settings)} - set(SECRET_FIELDS)
    return {key: value for key, value in payload.items() if key in allowed}


def redact_secret(value: str) -> str:
    stripped = (value or "").strip()
    if not stripped:
        return ""
    if len(stripped) <= 4:
        return "*" * len(stripped)
    return f"{stripped[:2]}{'*' * (len(stripped) - 4)}{stripped[-2:]}"


def redacted_settings(settings: Settings) -> dict[str, Any]:
    """Return a JSON-friendly view of ``settings`` with credentials masked."""

    data = asdict(settings)
    for name in SECRET_FIELDS:
        data[name] = redact_secret(data.get(name, ""))
    return data
