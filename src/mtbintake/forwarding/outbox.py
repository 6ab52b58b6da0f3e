"""Forwarder that drops JSON envelopes into an outbox directory."""

from __future__ import annotations

import asyncio
import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from mtbintake.forwarding.base import (
    Ack,
    ForwardMessage,
    Forwarder,
    ForwardingError,
    UploadMessage,
    message_kind,
)


class OutboxForwarder(Forwarder):
    """Write one envelope file per message for the downstream service to pick up.

    Files are written under a temporary name and renamed, so a consumer
    never sees a partial envelope.
    """

    def __init__(self, *, outbox_dir: str | Path) -> None:
        self.outbox_dir = Path(outbox_dir)

    async def send(self, message: ForwardMessage) -> Ack:
        envelope = self.envelope(message)
        try:
            await asyncio.to_thread(self._write, envelope)
        except OSError as exc:
            raise ForwardingError(
                f"Could not write {envelope['kind']} message for patient "
                f"{envelope['patient']} to {self.outbox_dir}: {exc}"
            ) from exc
        return Ack(kind=envelope["kind"], patient_id=envelope["patient"])

    @staticmethod
    def envelope(message: ForwardMessage) -> dict[str, Any]:
        payload = message.case_file.to_dict() if isinstance(message, UploadMessage) else None
        return {
            "kind": message_kind(message),
            "patient": message.patient_id,
            "sent_at": datetime.now(timezone.utc).isoformat(),
            "payload": payload,
        }

    def _write(self, envelope: dict[str, Any]) -> None:
        self.outbox_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        name = f"{stamp}_{envelope['kind']}_{uuid.uuid4().hex[:8]}.json"
        target = self.outbox_dir / name
        partial = target.with_suffix(".json.part")
        partial.write_text(json.dumps(envelope, indent=2, sort_keys=True))
        partial.replace(target)
