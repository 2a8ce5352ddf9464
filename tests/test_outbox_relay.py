from models.outbox_message import OutboxMessageModel
from utils.mail_transport import MailTransport, MailTransportError
from utils.outbox_relay import OutboxRelay, normalize_limit


class RecordingTransport(MailTransport):
    provider = "recording"

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send(self, to, subject, body):
        if to in self.fail_for:
            raise MailTransportError(f"mailbox {to} unavailable")
        self.sent.append(to)


def enqueue(db, *recipients):
    relay = OutboxRelay(db)
    ids = []
    for i, recipient in enumerate(recipients):
        message = relay.enqueue(recipient, "Subject", "Body")
        message.created_at = f"2026-01-01T00:00:{i:02d}.000000+00:00"
        ids.append(message.message_id)
    db.commit()
    return ids


def test_normalize_limit():
    assert normalize_limit(None) == 50
    assert normalize_limit(0) == 50
    assert normalize_limit(10) == 10
    assert normalize_limit(10_000) == 500


def test_drain_respects_limit_and_order(db):
    enqueue(db, "a@example.edu", "b@example.edu", "c@example.edu")
    transport = RecordingTransport()

    result = OutboxRelay(db, transport).drain(limit=2)

    assert result.processed == 2
    assert transport.sent == ["a@example.edu", "b@example.edu"]
    assert [r.status for r in result.results] == ["sent", "sent"]
    remaining = OutboxRelay(db).pending(10)
    assert [m.recipient for m in remaining] == ["c@example.edu"]


def test_failed_delivery_stays_eligible(db):
    enqueue(db, "bad@example.edu", "good@example.edu")
    transport = RecordingTransport(fail_for={"bad@example.edu"})

    result = OutboxRelay(db, transport).drain()

    assert result.processed == 1
    statuses = {r.status for r in result.results}
    assert statuses == {"sent", "error"}
    bad = db.query(OutboxMessageModel).filter(OutboxMessageModel.recipient == "bad@example.edu").one()
    assert bad.status == "error"
    assert bad.sent is False
    assert "unavailable" in bad.last_error
    assert bad.attempts == 1

    retry = OutboxRelay(db, RecordingTransport()).drain()
    assert retry.processed == 1
    db.refresh(bad)
    assert bad.sent is True
    assert bad.provider == "recording"
    assert bad.attempts == 2


def test_without_transport_messages_are_logged_once(db):
    enqueue(db, "a@example.edu")

    first = OutboxRelay(db).drain()
    second = OutboxRelay(db).drain()

    assert first.processed == 1
    assert first.results[0].status == "logged"
    message = db.query(OutboxMessageModel).one()
    assert message.logged is True and message.sent is False
    assert second.processed == 0 and second.results == []


def test_message_sent_by_a_concurrent_drain_is_not_sent_again(db, session_factory):
    enqueue(db, "a@example.edu", "b@example.edu")

    class ConcurrentDrainTransport(RecordingTransport):
        def send(self, to, subject, body):
            super().send(to, subject, body)
            if to == "a@example.edu":
                other = session_factory()
                try:
                    other.query(OutboxMessageModel).filter(
                        OutboxMessageModel.recipient == "b@example.edu"
                    ).update({OutboxMessageModel.sent: True, OutboxMessageModel.status: "sent"})
                    other.commit()
                finally:
                    other.close()

    transport = ConcurrentDrainTransport()

    result = OutboxRelay(db, transport).drain()

    assert transport.sent == ["a@example.edu"]
    assert [r.status for r in result.results] == ["sent"]
    assert result.processed == 1


def test_claimed_message_is_skipped(db, session_factory):
    (message_id,) = enqueue(db, "a@example.edu")
    other = session_factory()
    try:
        other.query(OutboxMessageModel).filter(
            OutboxMessageModel.message_id == message_id
        ).update({OutboxMessageModel.status: "sending"})
        other.commit()
    finally:
        other.close()
    transport = RecordingTransport()

    result = OutboxRelay(db, transport).drain()

    assert transport.sent == []
    assert result.results == []
