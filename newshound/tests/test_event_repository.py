"""
EventRepository tests against an asyncpg double.
"""
import pytest

from newshound.models.domain.event import Event
from newshound.repositories.event_repository import EventRepository


def event_row(event_id, alert_ids, base_time):
    return {
        'id': event_id,
        'alert_ids': alert_ids,
        'created_at': base_time,
        'updated_at': base_time,
    }


class TestFindByAlertIds:

    @pytest.mark.asyncio
    async def test_empty_input_skips_store(self, fake_pool):
        assert await EventRepository(fake_pool).find_by_alert_ids([]) == []
        assert fake_pool.acquired == 0

    @pytest.mark.asyncio
    async def test_overlap_query(self, fake_pool, base_time):
        conn = fake_pool.conn
        conn.fetch.return_value = [event_row(4, [1, 2], base_time)]

        events = await EventRepository(fake_pool).find_by_alert_ids([2, 9, 2])

        query, ids = conn.fetch.await_args.args
        assert "alert_ids && $1::bigint[]" in query
        assert ids == [2, 9]
        assert events == [Event(id=4, alert_ids=[1, 2], created_at=base_time, updated_at=base_time)]

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self, fake_pool):
        fake_pool.conn.fetchrow.return_value = None
        assert await EventRepository(fake_pool).get_by_id(12) is None


class TestUpsert:

    @pytest.mark.asyncio
    async def test_new_event_is_inserted(self, fake_pool, base_time):
        conn = fake_pool.conn
        conn.fetchrow.return_value = event_row(10, [1, 2], base_time)

        event = Event(alert_ids=[2, 1])
        await EventRepository(fake_pool).upsert(event)

        query, ids = conn.fetchrow.await_args.args
        assert query.strip().startswith("INSERT INTO newshound.event")
        assert ids == [1, 2]
        assert event.id == 10
        assert event.created_at == base_time

    @pytest.mark.asyncio
    async def test_existing_event_membership_is_replaced(self, fake_pool, base_time):
        conn = fake_pool.conn
        conn.fetchrow.return_value = event_row(3, [1, 2, 5], base_time)

        event = Event(id=3, alert_ids=[5, 1, 2])
        await EventRepository(fake_pool).upsert(event)

        assert conn.fetchrow.await_count == 1
        query, event_id, ids = conn.fetchrow.await_args.args
        assert "UPDATE newshound.event" in query
        assert (event_id, ids) == (3, [1, 2, 5])
        assert event.alert_ids == [1, 2, 5]

    @pytest.mark.asyncio
    async def test_vanished_event_is_recreated(self, fake_pool, base_time):
        conn = fake_pool.conn
        conn.fetchrow.side_effect = [None, event_row(11, [4], base_time)]

        event = Event(id=3, alert_ids=[4])
        await EventRepository(fake_pool).upsert(event)

        assert conn.fetchrow.await_count == 2
        assert "INSERT" in conn.fetchrow.await_args.args[0]
        assert event.id == 11


class TestDeleteAndMerge:

    @pytest.mark.asyncio
    async def test_delete_returns_row_count(self, fake_pool):
        fake_pool.conn.execute.return_value = "DELETE 2"

        deleted = await EventRepository(fake_pool).delete([7, 5, 7])

        assert deleted == 2
        assert fake_pool.conn.execute.await_args.args[1] == [5, 7]

    @pytest.mark.asyncio
    async def test_delete_nothing(self, fake_pool):
        assert await EventRepository(fake_pool).delete([]) == 0
        assert fake_pool.acquired == 0

    @pytest.mark.asyncio
    async def test_merge_is_one_transaction(self, fake_pool, base_time):
        conn = fake_pool.conn
        conn.fetchrow.return_value = event_row(1, [1, 2, 3, 4], base_time)
        conn.execute.return_value = "DELETE 2"

        survivor = Event(id=1, alert_ids=[1, 2, 3, 4])
        await EventRepository(fake_pool).merge(survivor, [3, 2, 1])

        assert conn.tx_events == ["begin", "commit"]
        # The survivor is never deleted
        assert conn.execute.await_args.args[1] == [2, 3]
        assert fake_pool.acquired == 1

    @pytest.mark.asyncio
    async def test_merge_rolls_back_on_delete_failure(self, fake_pool, base_time):
        conn = fake_pool.conn
        conn.fetchrow.return_value = event_row(1, [1, 2], base_time)
        conn.execute.side_effect = TimeoutError("statement timeout")

        with pytest.raises(TimeoutError):
            await EventRepository(fake_pool).merge(Event(id=1, alert_ids=[1, 2]), [2])

        assert conn.tx_events == ["begin", "rollback"]
