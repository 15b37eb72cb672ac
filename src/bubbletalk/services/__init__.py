"""Service layer helpers (settings, telemetry)."""

from .settings import ChatConfig, SecretVault, SettingsStore, redact_secret
from .telemetry import (
    PARSE_DEGRADED_EVENT,
    TRANSFER_TRANSITION_EVENT,
    InMemoryEventSink,
    emit,
    register_event_listener,
    unregister_event_listener,
)

__all__ = [
    "ChatConfig",
    "InMemoryEventSink",
    "PARSE_DEGRADED_EVENT",
    "SecretVault",
    "SettingsStore",
    "TRANSFER_TRANSITION_EVENT",
    "emit",
    "redact_secret",
    "register_event_listener",
    "unregister_event_listener",
]
