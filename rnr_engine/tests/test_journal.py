"""
Tests for the event journal.

Tests:
- Id assignment survives truncation
- Acknowledgement is idempotent and truncates the acknowledged prefix
- Reading since an id, and the latest event of a type
- Loading from dicts and bare lists
"""

from ..engine_core.journal import EventJournal, EventType, JournalEvent


def _journal(n: int = 5) -> EventJournal:
    journal = EventJournal()
    for i in range(n):
        journal.append(EventType.CARD_PLAYED, {"n": i})
    return journal


class TestAppend:
    """Appending events."""

    def test_ids_increase_from_one(self):
        journal = _journal(3)
        assert [e.id for e in journal.entries] == [1, 2, 3]
        assert journal.next_id == 4
        assert journal.last_id == 3

    def test_new_events_are_unacknowledged(self):
        journal = _journal(2)
        assert all(e.unacknowledged for e in journal.entries)
        assert journal.unacknowledged() == journal.entries

    def test_ids_continue_after_truncation(self):
        journal = _journal(3)
        journal.acknowledge([1, 2, 3])
        assert journal.entries == []

        event = journal.append(EventType.ERROR)
        assert event.id == 4


class TestAcknowledge:
    """Acknowledgement and truncation."""

    def test_acknowledge_returns_flipped(self):
        journal = _journal(3)
        assert journal.acknowledge([1, 2]) == [1, 2]
        assert journal.acknowledge([1, 2]) == []

    def test_only_prefix_is_dropped(self):
        journal = _journal(5)
        journal.acknowledge([1, 2, 4])
        # 4 stays because 3 is still unacknowledged
        assert [e.id for e in journal.entries] == [3, 4, 5]
        assert not journal.entries[1].unacknowledged

    def test_retain_keeps_newest_acknowledged(self):
        journal = _journal(5)
        journal.acknowledge([1, 2, 3], retain=2)
        assert [e.id for e in journal.entries] == [2, 3, 4, 5]

    def test_unknown_ids_ignored(self):
        journal = _journal(2)
        assert journal.acknowledge([42]) == []
        assert len(journal.entries) == 2

    def test_truncate_without_acknowledged_prefix(self):
        journal = _journal(3)
        assert journal.truncate() == 0


class TestReading:
    """Polling helpers."""

    def test_since(self):
        journal = _journal(5)
        assert [e.id for e in journal.since(3)] == [4, 5]
        assert len(journal.since()) == 5

    def test_latest(self):
        journal = _journal(2)
        journal.append(EventType.DRAW_PHASE_COMPLETE, {"playerId": "p1"})
        journal.append(EventType.CARD_PLAYED)
        assert journal.latest(EventType.DRAW_PHASE_COMPLETE).id == 3
        assert journal.latest(EventType.GAME_OVER) is None


class TestSerialization:
    """Document form."""

    def test_round_trip(self):
        journal = _journal(3)
        journal.acknowledge([1])
        restored = EventJournal.from_dict(journal.to_dict())
        assert restored == journal

    def test_bare_list(self):
        restored = EventJournal.from_dict([
            {"id": 7, "type": EventType.PHASE_CHANGE, "payload": {"to": "MAIN_PHASE"}},
            {"id": 9, "type": EventType.ERROR},
        ])
        assert restored.next_id == 10
        assert restored.entries[1].payload == {}
        assert restored.entries[0].unacknowledged

    def test_none(self):
        assert EventJournal.from_dict(None) == EventJournal()

    def test_event_to_dict(self):
        event = JournalEvent(id=1, type=EventType.ERROR, payload={"kind": "Forbidden"})
        assert event.to_dict() == {
            "id": 1,
            "type": "ERROR",
            "payload": {"kind": "Forbidden"},
            "unacknowledged": True,
        }
