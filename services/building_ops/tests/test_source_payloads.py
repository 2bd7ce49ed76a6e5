"""
Tests for per-source raw payload validation and raw event input checks.
"""

from datetime import date, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from services.building_ops.schemas.events import RawEventIn
from services.building_ops.schemas.sources import (
    BigQueryResourcePayload,
    CalendarPayload,
    ManualPayload,
    SourcePayloadBase,
    parse_source_payload,
    validate_source_payload,
)


class TestSourcePayloads:
    def test_variant_is_chosen_by_source(self):
        payload = validate_source_payload(
            "bigquery_resource", {"resource_id": "12", "resource_description": "Ulam"}
        )
        assert isinstance(payload, BigQueryResourcePayload)
        assert payload.resource_id == 12

        assert isinstance(validate_source_payload("calendar_ms", {}), CalendarPayload)
        assert isinstance(validate_source_payload("manual", None), ManualPayload)

    def test_unknown_fields_pass_through(self):
        payload = validate_source_payload(
            "calendar_staff", {"calendar_id": "staff@school.org", "colorId": "5"}
        )
        assert payload.model_extra == {"colorId": "5"}

    def test_manual_request_timestamp(self):
        payload = validate_source_payload(
            "manual",
            {"requested_by": "dana@school.org", "requested_at": "2025-03-01T12:00:00Z"},
        )
        assert isinstance(payload.requested_at, datetime)

    def test_event_type_hint(self):
        group = validate_source_payload("bigquery_group", {"event_type": "Program"})
        calendar = validate_source_payload("calendar_ls", {"event_type": "Meeting"})
        resource = validate_source_payload("bigquery_resource", {"event_type": 3})

        assert group.event_type_hint() == "Program"
        assert calendar.event_type_hint() == "Meeting"
        assert resource.event_type_hint() is None

    def test_foreign_reservation_drops_source_and_missing_fields(self):
        payload = validate_source_payload("bigquery_resource", {"resource_id": 8})
        assert payload.foreign_reservation() == {"resource_id": 8}

    def test_mismatched_payload(self):
        raw_data = {"resource_id": "not a number"}
        with pytest.raises(PydanticValidationError):
            validate_source_payload("bigquery_resource", raw_data)

        payload = parse_source_payload("bigquery_resource", raw_data)
        assert type(payload) is SourcePayloadBase
        assert payload.model_extra == {"resource_id": "not a number"}


class TestRawEventIn:
    def test_valid_event(self):
        event = RawEventIn(
            source="bigquery_group",
            source_id="G-1",
            title="Open House",
            start_date=date(2025, 3, 10),
            raw_data={"event_type": "Program Event"},
        )
        assert event.source.value == "bigquery_group"

    def test_bad_payload_is_rejected(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            RawEventIn(
                source="bigquery_resource",
                source_id="R-1",
                title="Assembly",
                start_date=date(2025, 3, 10),
                raw_data={"resource_id": "not a number"},
            )
        assert (
            "raw_data does not match the bigquery_resource payload: resource_id"
            in str(exc_info.value)
        )

    @pytest.mark.parametrize(
        "fields",
        [
            {"title": "   "},
            {"title": ""},
            {"end_date": date(2025, 3, 9)},
            {"source_id": ""},
            {"source": "fax"},
        ],
    )
    def test_invalid_events(self, fields):
        values = {
            "source": "manual",
            "source_id": "M-1",
            "title": "Chess Club",
            "start_date": date(2025, 3, 10),
        }
        values.update(fields)
        with pytest.raises(PydanticValidationError):
            RawEventIn(**values)
