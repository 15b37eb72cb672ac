"""Chat configuration dataclasses and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Literal, Mapping

from cryptography.fernet import Fernet, InvalidToken

__all__ = [
    "ChatConfig",
    "DEFAULT_DIALOGUE_MODE",
    "DEFAULT_PROVIDER",
    "DIALOGUE_MODE_CHOICES",
    "PROVIDER_CHOICES",
    "SecretVault",
    "SettingsStore",
    "redact_secret",
]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".bubbletalk"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "chat_config.json"
_SETTINGS_VERSION = 1
_API_KEY_FIELD = "api_key_ciphertext"
_ENV_OVERRIDES: Mapping[str, str] = {
    "BUBBLETALK_PROVIDER": "provider",
    "BUBBLETALK_MODEL": "model",
    "BUBBLETALK_API_KEY": "api_key",
    "BUBBLETALK_DIALOGUE_MODE": "dialogue_mode",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "BUBBLETALK_ENABLE_STICKERS": "enable_stickers",
    "BUBBLETALK_ENABLE_TRANSFER": "enable_transfer",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "BUBBLETALK_HISTORY_LIMIT": "history_limit",
    "BUBBLETALK_VISUAL_MEMORY_LIMIT": "visual_memory_limit",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "BUBBLETALK_TEMPERATURE": "temperature",
}
_TRUE_VALUES = {"1", "true", "yes", "on"}

DialogueModeName = Literal["normal", "novel"]
ProviderName = Literal["google", "openai"]
DIALOGUE_MODE_CHOICES: tuple[str, ...] = ("normal", "novel")
PROVIDER_CHOICES: tuple[str, ...] = ("google", "openai")
DEFAULT_DIALOGUE_MODE = "normal"
DEFAULT_PROVIDER = "google"


@dataclass(slots=True)
class ChatConfig:
    """Per-conversation configuration snapshot consumed by the codec.

    ``history_limit`` of 0 replays the whole conversation.
    ``visual_memory_limit`` counts messages, not images.
    """

    dialogue_mode: DialogueModeName = DEFAULT_DIALOGUE_MODE
    history_limit: int = 20
    visual_memory_limit: int = 3
    enable_stickers: bool = False
    enable_transfer: bool = False
    system_instruction: str = ""
    provider: ProviderName = DEFAULT_PROVIDER
    model: str = ""
    api_key: str = ""
    temperature: float = 0.9

    def __post_init__(self) -> None:
        self.dialogue_mode = _normalize_choice(
            self.dialogue_mode, DIALOGUE_MODE_CHOICES, DEFAULT_DIALOGUE_MODE, "dialogue_mode"
        )
        self.provider = _normalize_choice(self.provider, PROVIDER_CHOICES, DEFAULT_PROVIDER, "provider")
        self.history_limit = max(0, int(self.history_limit or 0))
        self.visual_memory_limit = max(0, int(self.visual_memory_limit or 0))
        self.enable_stickers = bool(self.enable_stickers)
        self.enable_transfer = bool(self.enable_transfer)
        self.system_instruction = self.system_instruction or ""

    @property
    def is_novel(self) -> bool:
        return self.dialogue_mode == "novel"

    @property
    def payload_shape(self) -> str:
        """Provider request shape: ``parts`` for Google, ``chat`` for OpenAI."""

        return "chat" if self.provider == "openai" else "parts"


class SecretVault:
    """Encrypts and decrypts the provider API key with a Fernet key on disk."""

    name = "fernet"

    def __init__(self, *, key_path: Path | None = None) -> None:
        self._key_path = key_path or (_SETTINGS_DIR / "chat_config.key")
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
            return self._get_fernet().decrypt(payload.encode("ascii")).decode("utf-8")
        except InvalidToken as exc:
            raise ValueError("Invalid Fernet token") from exc

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
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_bytes(key)
        if os.name != "nt":  # pragma: no cover - depends on OS
            os.chmod(tmp_path, 0o600)
        tmp_path.replace(path)
        return key


class SettingsStore:
    """Persistence adapter for :class:`ChatConfig`."""

    def __init__(self, path: Path | None = None, *, vault: SecretVault | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH
        self._vault = vault or SecretVault(key_path=self._path.with_suffix(".key"))

    @property
    def path(self) -> Path:
        return self._path

    @property
    def vault(self) -> SecretVault:
        return self._vault

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> ChatConfig:
        """Load the config from disk, applying CLI/environment overrides when present."""

        payload = self._read_payload()
        config = ChatConfig()
        if payload:
            api_key, migrated = self._decrypt_api_key(payload.pop(_API_KEY_FIELD, None), payload.pop("api_key", None))
            try:
                config = ChatConfig(**_filter_fields(payload))
            except (TypeError, ValueError) as exc:
                LOGGER.warning("Chat config payload contained unexpected data: %s", exc)
                config = ChatConfig()
            if api_key:
                config = replace(config, api_key=api_key)
            if migrated or payload.get("version") != _SETTINGS_VERSION:
                try:
                    self.save(config)
                except OSError as exc:  # pragma: no cover - depends on filesystem
                    LOGGER.warning("Failed to migrate chat config: %s", exc)

        if overrides:
            config = _apply_overrides(config, overrides, source="CLI")
        return _apply_env_overrides(config)

    def save(self, config: ChatConfig) -> Path:
        """Persist ``config`` with an atomic temp-file swap."""

        data = asdict(config)
        api_key = data.pop("api_key", "") or ""
        if api_key:
            data[_API_KEY_FIELD] = self._vault.encrypt(api_key)
        data["version"] = _SETTINGS_VERSION
        body = json.dumps(data, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Chat config saved to %s (mode=%s)", self._path, config.dialogue_mode)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Chat config file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Chat config file %s does not contain an object", self._path)
            return {}
        return payload

    def _decrypt_api_key(self, ciphertext: str | None, legacy_plaintext: str | None) -> tuple[str, bool]:
        if ciphertext:
            try:
                return self._vault.decrypt(ciphertext), False
            except ValueError as exc:
                LOGGER.warning("Unable to decrypt API key: %s", exc)
                return "", False
        if legacy_plaintext:
            LOGGER.info("Detected plaintext API key; migrating to encrypted storage.")
            return str(legacy_plaintext), True
        return "", False


def redact_secret(value: str) -> str:
    stripped = (value or "").strip()
    if not stripped:
        return ""
    if len(stripped) <= 4:
        return "*" * len(stripped)
    return f"{stripped[:2]}{'*' * (len(stripped) - 4)}{stripped[-2:]}"


def _apply_overrides(config: ChatConfig, overrides: Mapping[str, Any], *, source: str) -> ChatConfig:
    allowed = {field.name for field in fields(ChatConfig)}
    filtered = {key: value for key, value in overrides.items() if key in allowed and value is not None}
    if not filtered:
        return config
    LOGGER.debug("Applying %s chat config overrides: %s", source, sorted(filtered))
    return replace(config, **filtered)


def _apply_env_overrides(config: ChatConfig) -> ChatConfig:
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
    return _apply_overrides(config, overrides, source="environment")


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {field.name for field in fields(ChatConfig)} - {"api_key"}
    return {key: value for key, value in payload.items() if key in allowed}


def _normalize_choice(value: Any, choices: tuple[str, ...], default: str, field_name: str) -> Any:
    normalized = str(value or "").strip().lower()
    if normalized in choices:
        return normalized
    if normalized:
        LOGGER.warning("Unknown %s '%s'; defaulting to %s.", field_name, value, default)
    return default
