"""Downstream forwarders for accepted case files."""

from .base import (
    Ack,
    DeleteMessage,
    ForwardMessage,
    Forwarder,
    ForwardingError,
    UploadMessage,
)
from .outbox import OutboxForwarder
from .recording import RecordingForwarder

__all__ = [
    "Ack",
    "DeleteMessage",
    "ForwardMessage",
    "Forwarder",
    "ForwardingError",
    "UploadMessage",
    "OutboxForwarder",
    "RecordingForwarder",
]
