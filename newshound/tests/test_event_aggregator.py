"""
EventAggregator decision table tests (in-memory event store).
"""
import pytest

from newshound.models.domain.alert import Alert
from newshound.models.domain.event import ClusterDecision, Event
from newshound.services.event_aggregator import EventAggregator


def stored(alert_id: int) -> Alert:
    return Alert(id=alert_id, top_phrases=["p1"])


class TestResolve:

    @pytest.mark.asyncio
    async def test_no_event_creates_one_with_alert_and_candidates(self, event_repo):
        result = await EventAggregator(event_repo).resolve(stored(3), [stored(1), stored(2)])

        assert result.decision == ClusterDecision.CREATED
        assert result.event.alert_ids == [1, 2, 3]
        assert result.retired_event_ids == []
        assert list(event_repo.events.values()) == [Event(id=result.event.id, alert_ids=[1, 2, 3])]

    @pytest.mark.asyncio
    async def test_no_candidates_creates_singleton_event(self, event_repo):
        result = await EventAggregator(event_repo).resolve(stored(1), [])

        assert result.decision == ClusterDecision.CREATED
        assert result.event.alert_ids == [1]

    @pytest.mark.asyncio
    async def test_single_event_is_joined(self, event_repo):
        existing = await event_repo.upsert(Event(alert_ids=[1, 2]))

        result = await EventAggregator(event_repo).resolve(stored(5), [stored(2)])

        assert result.decision == ClusterDecision.JOINED
        assert result.event.id == existing.id
        assert event_repo.events[existing.id].alert_ids == [1, 2, 5]
        assert len(event_repo.events) == 1

    @pytest.mark.asyncio
    async def test_unclustered_candidates_follow_into_joined_event(self, event_repo):
        existing = await event_repo.upsert(Event(alert_ids=[1]))

        await EventAggregator(event_repo).resolve(stored(5), [stored(1), stored(4)])

        assert event_repo.events[existing.id].alert_ids == [1, 4, 5]

    @pytest.mark.asyncio
    async def test_several_events_merge_into_lowest_id(self, event_repo):
        first = await event_repo.upsert(Event(alert_ids=[1, 2]))
        second = await event_repo.upsert(Event(alert_ids=[3]))
        third = await event_repo.upsert(Event(alert_ids=[4, 6]))

        result = await EventAggregator(event_repo).resolve(stored(7), [stored(2), stored(3), stored(6)])

        assert result.decision == ClusterDecision.MERGED
        assert result.event.id == first.id
        assert result.retired_event_ids == [second.id, third.id]
        assert list(event_repo.events) == [first.id]
        assert event_repo.events[first.id].alert_ids == [1, 2, 3, 4, 6, 7]
        assert event_repo.merges == 1

    @pytest.mark.asyncio
    async def test_every_alert_ends_in_one_event(self, event_repo):
        aggregator = EventAggregator(event_repo)
        await event_repo.upsert(Event(alert_ids=[1]))
        await event_repo.upsert(Event(alert_ids=[2]))

        await aggregator.resolve(stored(3), [stored(1), stored(2)])

        for alert_id in (1, 2, 3):
            assert len(event_repo.event_of(alert_id)) == 1

    @pytest.mark.asyncio
    async def test_resolving_again_is_a_no_op(self, event_repo):
        aggregator = EventAggregator(event_repo)
        first = await aggregator.resolve(stored(2), [stored(1)])
        upserts = event_repo.upserts

        again = await aggregator.resolve(stored(2), [stored(1)])

        assert again.decision == ClusterDecision.JOINED
        assert again.event.id == first.event.id
        assert event_repo.upserts == upserts
        assert len(event_repo.events) == 1

    @pytest.mark.asyncio
    async def test_unstored_alert_is_rejected(self, event_repo):
        with pytest.raises(ValueError):
            await EventAggregator(event_repo).resolve(Alert(top_phrases=["p1"]), [])
        assert event_repo.events == {}
