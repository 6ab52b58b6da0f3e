"""In-process forwarder that records what it was sent."""

from __future__ import annotations

from mtbintake.forwarding.base import Ack, ForwardMessage, Forwarder, ForwardingError, message_kind


class RecordingForwarder(Forwarder):
    """Keep sent messages in memory; optionally refuse them.

    Useful for dry runs and for exercising the intake branches in tests.
    """

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.messages: list[ForwardMessage] = []

    async def send(self, message: ForwardMessage) -> Ack:
        kind = message_kind(message)
        if self.fail:
            raise ForwardingError(f"Downstream refused {kind} message for patient {message.patient_id}")
        self.messages.append(message)
        return Ack(kind=kind, patient_id=message.patient_id)
