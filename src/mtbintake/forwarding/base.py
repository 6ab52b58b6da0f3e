"""Forwarder interface towards the downstream query/index service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from mtbintake.models import CaseFile


class ForwardingError(RuntimeError):
    """Raised when the downstream service did not accept a message."""


@dataclass(frozen=True)
class UploadMessage:
    case_file: CaseFile

    @property
    def patient_id(self) -> str:
        return self.case_file.patient_id


@dataclass(frozen=True)
class DeleteMessage:
    patient_id: str


ForwardMessage = UploadMessage | DeleteMessage


@dataclass(frozen=True)
class Ack:
    """Acknowledgement of an accepted message."""

    kind: str
    patient_id: str


class Forwarder(ABC):
    """Sends upload and delete messages downstream, at most once per call."""

    @abstractmethod
    async def send(self, message: ForwardMessage) -> Ack:
        """Deliver ``message``; raise on failure. No retry is attempted."""


def message_kind(message: ForwardMessage) -> str:
    if isinstance(message, UploadMessage):
        return "upload"
    if isinstance(message, DeleteMessage):
        return "delete"
    raise TypeError(f"Unsupported forward message: {type(message).__name__}")
