"""Unit tests for the change-event merged collection"""

from dataclasses import dataclass

import pytest

from dealer_backoffice.domain.live_store import ChangeEvent, ChangeKind, LiveCollection


@dataclass(frozen=True)
class Row:
    id: int
    status: str = "Available"


@pytest.fixture
def collection():
    return LiveCollection(key=lambda row: row.id, initial=[Row(1), Row(2)])


def test_insert_appends(collection):
    collection.apply(ChangeEvent(ChangeKind.INSERT, Row(3)))
    assert [r.id for r in collection.get_snapshot()] == [1, 2, 3]


def test_insert_existing_id_replaces_in_place(collection):
    collection.apply(ChangeEvent(ChangeKind.INSERT, Row(1, "Sold")))
    assert collection.get_snapshot() == [Row(1, "Sold"), Row(2)]


def test_update_unknown_id_appends(collection):
    collection.apply(ChangeEvent(ChangeKind.UPDATE, Row(9, "Deposit")))
    assert collection.get_snapshot()[-1] == Row(9, "Deposit")


def test_delete_and_unknown_delete(collection):
    collection.apply(ChangeEvent(ChangeKind.DELETE, Row(1)))
    collection.apply(ChangeEvent(ChangeKind.DELETE, Row(42)))
    assert collection.get_snapshot() == [Row(2)]


def test_last_event_for_an_id_wins(collection):
    for status in ["Repairs", "Available", "Cash"]:
        collection.apply(ChangeEvent(ChangeKind.UPDATE, Row(2, status)))
    assert collection.get_snapshot() == [Row(1), Row(2, "Cash")]


def test_subscribers_receive_snapshots_until_unsubscribed(collection):
    received = []
    unsubscribe = collection.subscribe(received.append)

    collection.apply(ChangeEvent(ChangeKind.INSERT, Row(3)))
    unsubscribe()
    collection.apply(ChangeEvent(ChangeKind.INSERT, Row(4)))

    assert len(received) == 1
    assert [r.id for r in received[0]] == [1, 2, 3]


def test_ignored_delete_does_not_notify(collection):
    received = []
    collection.subscribe(received.append)
    collection.apply(ChangeEvent(ChangeKind.DELETE, Row(42)))
    assert received == []


def test_snapshot_is_a_copy(collection):
    snapshot = collection.get_snapshot()
    snapshot.clear()
    assert len(collection.get_snapshot()) == 2


def test_replace_all_notifies(collection):
    received = []
    collection.subscribe(received.append)
    collection.replace_all([Row(7)])
    assert received == [[Row(7)]]
