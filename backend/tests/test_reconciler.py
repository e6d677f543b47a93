import pytest

from classboard.schemas.change import ChangeEvent, ChangeKind
from classboard.services.change_feed import ChangeFeed
from classboard.sync.errors import ErrorKind, StoreError
from classboard.sync.reconciler import INSERT_AT_START, LiveCollection, Reconciler

from factories import wait_for

TOPIC = "schedules:class_id=eq.c1"


def _row(row_id, title=None):
    return {"id": row_id, "title": title or f"row {row_id}"}


def _insert(row, topic=TOPIC):
    return ChangeEvent(kind=ChangeKind.INSERT, table="schedules", topic=topic, new=row)


def _update(row, topic=TOPIC):
    return ChangeEvent(kind=ChangeKind.UPDATE, table="schedules", topic=topic, new=row)


def _delete(row_id, topic=TOPIC):
    return ChangeEvent(kind=ChangeKind.DELETE, table="schedules", topic=topic, old={"id": row_id})


class FakeSource:
    def __init__(self, rows):
        self.rows = rows
        self.calls = []
        self.fail = False

    async def fetch(self, scope):
        self.calls.append(scope)
        if self.fail:
            raise StoreError(ErrorKind.NETWORK, "Tidak dapat terhubung ke server")
        return list(self.rows)


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def source():
    return FakeSource([_row("a"), _row("b"), _row("c")])


@pytest.fixture
async def reconciler(feed, source):
    reconciler = Reconciler("schedules", source.fetch, lambda scope: f"schedules:class_id=eq.{scope}", feed)
    await reconciler.activate("c1")
    yield reconciler
    reconciler.deactivate()


def test_collection_upsert_positions():
    end = LiveCollection()
    end.replace([_row("a")])
    assert end.upsert(_row("b")) is True
    assert end.ids == ["a", "b"]

    start = LiveCollection(insert_at=INSERT_AT_START)
    start.replace([_row("a")])
    start.upsert(_row("b"))
    assert start.ids == ["b", "a"]

    assert start.upsert(_row("a", "changed")) is False
    assert start.ids == ["b", "a"]
    assert start.get("a")["title"] == "changed"


async def test_seed_replaces_rows(reconciler, source):
    assert source.calls == ["c1"]
    assert reconciler.collection.ids == ["a", "b", "c"]
    assert reconciler.error is None


async def test_replaying_updates_is_idempotent(reconciler):
    events = [_update(_row("a", "A1")), _update(_row("c", "C1")), _update(_row("a", "A2"))]
    for event in events:
        reconciler.apply(event)
    once = reconciler.rows
    for event in events:
        reconciler.apply(event)
    assert reconciler.rows == once
    assert [row["title"] for row in once] == ["A2", "row b", "C1"]


async def test_delete_removes_exactly_one_row_in_order(reconciler):
    assert reconciler.apply(_delete("b")) is True
    assert reconciler.collection.ids == ["a", "c"]
    assert reconciler.apply(_delete("b")) is False
    assert reconciler.collection.ids == ["a", "c"]


async def test_update_for_absent_id_adds_nothing(reconciler):
    assert reconciler.apply(_update(_row("zz"))) is False
    assert reconciler.collection.ids == ["a", "b", "c"]


async def test_insert_is_an_upsert(reconciler):
    reconciler.upsert_local(_row("d", "optimistic"))
    reconciler.apply(_insert(_row("d", "from feed")))
    reconciler.apply(_insert(_row("d", "from feed")))
    assert reconciler.collection.ids == ["a", "b", "c", "d"]
    assert reconciler.collection.get("d")["title"] == "from feed"


async def test_events_for_other_topics_are_ignored(reconciler):
    assert reconciler.apply(_insert(_row("x"), topic="schedules:class_id=eq.other")) is False
    assert "x" not in reconciler.collection


async def test_apply_pending_drains_the_subscription(reconciler, feed):
    feed.dispatch(_insert(_row("d")))
    feed.dispatch(_delete("a"))
    assert reconciler.apply_pending() == 2
    assert reconciler.collection.ids == ["b", "c", "d"]


async def test_scope_change_cancels_old_subscription(reconciler, feed, source):
    await reconciler.activate("c2")
    assert feed.subscriber_count(TOPIC) == 0
    assert feed.subscriber_count("schedules:class_id=eq.c2") == 1
    assert source.calls == ["c1", "c2"]

    feed.dispatch(_insert(_row("late")))
    assert reconciler.apply_pending() == 0
    assert "late" not in reconciler.collection


async def test_activate_same_scope_does_not_refetch(reconciler, source):
    await reconciler.activate("c1")
    assert source.calls == ["c1"]


async def test_failed_reload_keeps_rows_and_sets_error(reconciler, source):
    source.fail = True
    assert await reconciler.reload() is False
    assert reconciler.collection.ids == ["a", "b", "c"]
    assert reconciler.error == "Tidak dapat terhubung ke server"

    source.fail = False
    assert await reconciler.reload() is True
    assert reconciler.error is None


async def test_background_run_applies_events(reconciler, feed):
    changes = []
    reconciler.add_listener(lambda r: changes.append(len(r.rows)))
    reconciler.start()
    feed.dispatch(_insert(_row("d")))
    await wait_for(lambda: "d" in reconciler.collection)
    assert changes == [4]


async def test_activate_retries_a_failed_seed(feed, source):
    source.fail = True
    reconciler = Reconciler("schedules", source.fetch, lambda scope: f"schedules:class_id=eq.{scope}", feed)
    await reconciler.activate("c1")
    assert reconciler.error == "Tidak dapat terhubung ke server"
    assert reconciler.rows == []

    source.fail = False
    await reconciler.activate("c1")
    assert source.calls == ["c1", "c1"]
    assert reconciler.collection.ids == ["a", "b", "c"]
    assert reconciler.error is None
    assert feed.subscriber_count(TOPIC) == 1
    reconciler.deactivate()


async def test_failing_listener_stops_following_with_error(reconciler, feed, caplog):
    def broken(_):
        raise RuntimeError("listener failed")

    reconciler.add_listener(broken)
    task = reconciler.start()
    feed.dispatch(_insert(_row("d")))
    await wait_for(task.done)
    await wait_for(lambda: reconciler.error is not None)

    assert reconciler.error == "Pembaruan otomatis terhenti, muat ulang halaman"
    assert "following schedules:class_id=eq.c1 stopped" in caplog.text
