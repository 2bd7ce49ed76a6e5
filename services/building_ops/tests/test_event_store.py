"""
Tests for the SQL event store against a temp-file SQLite database.
"""

from datetime import date

import pytest

from services.building_ops.models.enums import EventSource, MatchType
from services.building_ops.schemas.events import RawEventIn
from services.building_ops.schemas.resources import ResourceRecord
from services.building_ops.tests.building_ops_test_base import EVENT_DATE, make_draft
from services.common.http_errors import NotFoundError


def raw_in(source_id, title="Staff Meeting", **fields):
    fields.setdefault("source", EventSource.CALENDAR_STAFF)
    fields.setdefault("start_date", EVENT_DATE)
    return RawEventIn(source_id=source_id, title=title, **fields)


class TestRawEvents:
    async def test_upsert_is_keyed_on_source_and_source_id(self, store):
        assert await store.upsert_raw_events([raw_in("1")]) == (1, 0)
        (first,) = await store.list_raw_events(EVENT_DATE)

        created, updated = await store.upsert_raw_events(
            [
                raw_in("1", "Staff Meeting (room change)", location="Gym"),
                raw_in("1", source=EventSource.CALENDAR_LS),
            ]
        )

        assert (created, updated) == (1, 1)
        stored = await store.get_raw_event(first.id)
        assert stored.title == "Staff Meeting (room change)"
        assert stored.location == "Gym"
        assert len(await store.list_raw_events(EVENT_DATE)) == 2

    async def test_same_key_twice_in_one_batch(self, store):
        created, updated = await store.upsert_raw_events(
            [raw_in("1", "First"), raw_in("1", "Second")]
        )

        assert (created, updated) == (1, 1)
        (stored,) = await store.list_raw_events(EVENT_DATE)
        assert stored.title == "Second"

    async def test_list_from_date(self, store):
        await store.upsert_raw_events(
            [
                raw_in("late", start_date=date(2025, 3, 12)),
                raw_in("old", start_date=date(2025, 3, 1)),
                raw_in("today"),
            ]
        )

        listed = await store.list_raw_events(EVENT_DATE)
        between = await store.list_raw_events_between(
            date(2025, 3, 1), date(2025, 3, 10)
        )

        assert [raw.source_id for raw in listed] == ["today", "late"]
        assert [raw.source_id for raw in between] == ["old", "today"]

    async def test_raw_data_round_trips(self, store):
        await store.upsert_raw_events(
            [
                raw_in(
                    "1",
                    source=EventSource.BIGQUERY_RESOURCE,
                    raw_data={"resource_id": 8, "setup": "rows"},
                )
            ]
        )

        (stored,) = await store.list_raw_events(EVENT_DATE)

        assert stored.raw_data == {"resource_id": 8, "setup": "rows"}
        assert stored.payload.resource_id == 8


class TestCanonicalEvents:
    async def test_update_rewrites_owned_fields_only(self, store):
        event = await store.insert_canonical(
            make_draft(["r1"], event_type="meeting", resource_id=8, start_time="09:00")
        )

        updated = await store.update_canonical(
            event.id,
            make_draft(
                ["r1", "r2"],
                "Staff Meeting (moved)",
                event_type="assembly",
                resource_id=9,
                start_time="10:00",
            ),
        )

        assert updated.title == "Staff Meeting (moved)"
        assert updated.start_time == "10:00"
        assert updated.source_events == ["r1", "r2"]
        assert updated.event_type == "meeting"
        assert updated.resource_id == 8
        assert updated.updated_at is not None

    async def test_update_unknown_event(self, store):
        with pytest.raises(NotFoundError):
            await store.update_canonical("missing", make_draft(["r1"]))

    async def test_new_events_start_active_and_unflagged(self, store):
        event = await store.insert_canonical(make_draft(["r1"]))

        assert event.status == "active"
        assert event.is_hidden is False
        assert event.has_conflict is False
        assert event.created_at is not None

    async def test_insert_with_known_id_is_idempotent(self, store):
        first = await store.insert_canonical(make_draft(["r1"]), event_id="evt-1")
        again = await store.insert_canonical(
            make_draft(["r1"], title="Renamed"), event_id="evt-1"
        )

        assert first.id == again.id == "evt-1"
        assert again.title == "Staff Meeting"
        assert len(await store.list_canonical_events(EVENT_DATE)) == 1

    async def test_hidden_filter(self, store, edit_canonical_event):
        shown = await store.insert_canonical(make_draft(["r1"]))
        hidden = await store.insert_canonical(make_draft(["r2"]))
        await edit_canonical_event(hidden.id, is_hidden=True)

        everything = await store.list_canonical_events(EVENT_DATE)
        visible = await store.list_canonical_events(EVENT_DATE, include_hidden=False)

        assert {event.id for event in everything} == {shown.id, hidden.id}
        assert [event.id for event in visible] == [shown.id]

    async def test_list_on_a_single_date(self, store):
        await store.insert_canonical(make_draft(["r1"], start_time="14:00"))
        await store.insert_canonical(make_draft(["r2"], start_time="08:00"))
        await store.insert_canonical(make_draft(["r3"], start_date=date(2025, 3, 11)))

        events = await store.list_canonical_events_on(EVENT_DATE)

        assert [event.start_time for event in events] == ["08:00", "14:00"]

    async def test_flag_conflicts_counts_new_flags_only(self, store):
        first = await store.insert_canonical(make_draft(["r1"]))
        second = await store.insert_canonical(make_draft(["r2"]))

        assert await store.flag_conflicts([first.id], "note") == 1
        assert await store.flag_conflicts([first.id, second.id, first.id], "again") == 1
        assert await store.flag_conflicts([], "note") == 0

        assert (await store.get_canonical_event(first.id)).conflict_notes == "note"
        assert (await store.get_canonical_event(second.id)).conflict_notes == "again"


class TestMatches:
    async def test_upsert_and_delete(self, store):
        match = await store.upsert_match("e1", "r1", MatchType.AUTO, 0.7, None)
        again = await store.upsert_match("e1", "r1", MatchType.MANUAL, 1.0, "dana")

        assert again.id == match.id
        assert again.match_type == "manual"
        assert await store.list_matched_raw_event_ids() == {"r1"}
        assert (await store.get_match_for_raw_event("r1")).event_id == "e1"

        assert await store.delete_match("e1", "r1") is True
        assert await store.delete_match("e1", "r1") is False
        assert await store.get_match_for_raw_event("r1") is None


class TestResourcesAndAliases:
    async def test_resource_upsert(self, store):
        ulam = ResourceRecord(id=8, description="Ulam", abbreviation="UL")

        assert await store.upsert_resources([ulam]) == (1, 0)
        assert await store.upsert_resources(
            [ulam.model_copy(update={"capacity": 300})]
        ) == (0, 1)

        (stored,) = await store.list_resources()
        assert stored.capacity == 300
        assert await store.get_resource(99) is None

    async def test_alias_overwrite(self, store):
        alias, created = await store.upsert_alias(8, "custom", "main hall")
        assert created is True

        kept, created = await store.upsert_alias(
            9, "custom", "main hall", overwrite=False
        )
        assert created is False
        assert kept.resource_id == 8

        moved, _ = await store.upsert_alias(9, "custom", "main hall")
        assert moved.id == alias.id
        assert moved.resource_id == 9

    async def test_alias_map(self, store):
        await store.upsert_alias(8, "description", "ulam")
        await store.upsert_alias(8, "abbreviation", "ul")
        await store.upsert_alias(9, "veracross_id", "9")

        assert await store.load_alias_map() == {"ulam": 8, "ul": 8, "9": 9}
        assert [a.alias_value for a in await store.list_aliases(8)] == ["ul", "ulam"]
