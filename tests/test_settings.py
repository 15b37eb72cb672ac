"""Tests for the chat config persistence layer."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from bubbletalk.services.settings import ChatConfig, SecretVault, SettingsStore, redact_secret


def test_load_returns_defaults_when_file_missing(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "chat_config.json", vault=SecretVault(key_path=tmp_path / "key"))

    assert store.load() == ChatConfig()


def test_save_and_load_roundtrip_encrypts_api_key(tmp_path: Path) -> None:
    path = tmp_path / "chat_config.json"
    original = ChatConfig(
        dialogue_mode="novel",
        history_limit=12,
        visual_memory_limit=1,
        enable_stickers=True,
        enable_transfer=True,
        system_instruction="You are Mika.",
        provider="openai",
        model="gpt-4o-mini",
        api_key="super-secret",
        temperature=0.4,
    )

    SettingsStore(path).save(original)
    reloaded = SettingsStore(path).load()

    assert reloaded == original
    raw = path.read_text(encoding="utf-8")
    assert "super-secret" not in raw
    assert json.loads(raw)["version"] == 1
    assert (tmp_path / "chat_config.key").exists()


def test_load_migrates_legacy_plaintext_api_key(tmp_path: Path) -> None:
    path = tmp_path / "chat_config.json"
    path.write_text(json.dumps({"api_key": "legacy-key", "dialogue_mode": "novel"}), encoding="utf-8")

    config = SettingsStore(path).load()

    assert config.api_key == "legacy-key"
    assert config.dialogue_mode == "novel"
    stored = json.loads(path.read_text(encoding="utf-8"))
    assert "api_key" not in stored
    assert stored["api_key_ciphertext"].startswith("fernet:")


def test_corrupt_file_falls_back_to_defaults(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "chat_config.json"
    path.write_text("{not json", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        config = SettingsStore(path).load()

    assert config == ChatConfig()
    assert "not valid JSON" in caplog.text


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "chat_config.json"
    path.write_text(json.dumps({"version": 1, "history_limit": 4, "theme": "dark"}), encoding="utf-8")

    assert SettingsStore(path).load().history_limit == 4


def test_env_overrides_apply_after_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "chat_config.json"
    SettingsStore(path).save(ChatConfig(history_limit=3))
    monkeypatch.setenv("BUBBLETALK_DIALOGUE_MODE", "novel")
    monkeypatch.setenv("BUBBLETALK_HISTORY_LIMIT", "7")
    monkeypatch.setenv("BUBBLETALK_ENABLE_STICKERS", "yes")
    monkeypatch.setenv("BUBBLETALK_VISUAL_MEMORY_LIMIT", "lots")

    config = SettingsStore(path).load(overrides={"history_limit": 9, "enable_transfer": True})

    assert config.dialogue_mode == "novel"
    assert config.history_limit == 7
    assert config.enable_stickers is True
    assert config.enable_transfer is True
    assert config.visual_memory_limit == 3


def test_chat_config_normalizes_values(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        config = ChatConfig(dialogue_mode="weird", provider="OpenAI", history_limit=-2, visual_memory_limit=-1)

    assert config.dialogue_mode == "normal"
    assert config.provider == "openai"
    assert config.history_limit == 0
    assert config.visual_memory_limit == 0
    assert config.payload_shape == "chat"
    assert ChatConfig().payload_shape == "parts"
    assert "Unknown dialogue_mode" in caplog.text


def test_vault_rejects_foreign_tokens(tmp_path: Path) -> None:
    vault = SecretVault(key_path=tmp_path / "vault.key")

    assert vault.decrypt(vault.encrypt("abc")) == "abc"
    with pytest.raises(ValueError):
        vault.decrypt("plain:abc")
    with pytest.raises(ValueError):
        vault.decrypt("fernet:not-a-token")


def test_redact_secret_masks_middle() -> None:
    assert redact_secret("sk-1234567") == "sk******67"
    assert redact_secret("abc") == "***"
    assert redact_secret("") == ""
