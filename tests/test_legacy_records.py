"""Tests for legacy record parsing and conversion to domain fields."""
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from casework_sync.domain.models.email import EmailType
from casework_sync.domain.models.legacy_records import (
    LegacyCaseRecord,
    LegacyConstituentRecord,
    LegacyEmailRecord,
    LegacyPage,
    LegacyReferenceRecord,
)
from casework_sync.domain.models.reference_data import ReferenceKind
from casework_sync.domain.models.value_objects import ExternalId


class TestLegacyCaseRecord:

    def test_parses_wire_names(self):
        record = LegacyCaseRecord.model_validate({
            "id": 42,
            "constituentID": 10,
            "statusID": 3,
            "summary": "Pothole",
            "reviewDate": "2024-05-01T09:00:00Z",
            "unknownField": "ignored"
        })

        assert record.external_id == ExternalId.from_trusted(42)
        fields = record.to_fields()
        assert fields["constituent_external_id"] == ExternalId.from_trusted(10)
        assert fields["status_external_id"] == ExternalId.from_trusted(3)
        assert fields["summary"] == "Pothole"
        assert isinstance(fields["review_date"], datetime)

    @pytest.mark.parametrize("value", ["2024-05-01", "2024-05-01T00:00:00", "2024-05-01T01:00:00+01:00"])
    def test_review_date_is_utc(self, value):
        record = LegacyCaseRecord.model_validate({"id": 1, "reviewDate": value})
        assert record.review_date == datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert record.review_date.utcoffset().total_seconds() == 0

    def test_only_present_fields_are_returned(self):
        fields = LegacyCaseRecord.model_validate({"id": 1, "statusID": 7}).to_fields()
        assert fields == {"status_external_id": ExternalId.from_trusted(7)}

    def test_explicit_null_is_kept(self):
        fields = LegacyCaseRecord.model_validate({"id": 1, "summary": None}).to_fields()
        assert fields == {"summary": None}

    def test_zero_reference_means_none(self):
        fields = LegacyCaseRecord.model_validate({"id": 1, "assignedToID": 0}).to_fields()
        assert fields == {"assigned_to_external_id": None}

    def test_negative_reference_rejected_on_conversion(self):
        record = LegacyCaseRecord.model_validate({"id": 1, "statusID": -4})
        with pytest.raises(ValueError):
            record.to_fields()

    @pytest.mark.parametrize("payload", [{}, {"id": 0}, {"id": -3}, {"id": True}, {"id": "abc"}])
    def test_id_is_required_and_positive(self, payload):
        with pytest.raises(ValidationError):
            LegacyCaseRecord.model_validate(payload)


class TestLegacyConstituentRecord:

    def test_parses_names_and_geocode(self):
        fields = LegacyConstituentRecord.model_validate({
            "id": 5,
            "firstName": "Ada",
            "lastName": "Lovelace",
            "geocodeLat": 51.5,
            "geocodeLng": -0.12,
            "contactDetails": [{"type": "email"}]
        }).to_fields()

        assert fields == {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "geocode_lat": 51.5,
            "geocode_lng": -0.12,
        }


class TestLegacyEmailRecord:

    def test_address_lists_become_tuples(self):
        fields = LegacyEmailRecord.model_validate({
            "id": 9,
            "type": "received",
            "from": "a@example.com",
            "to": ["office@example.com"],
            "cc": [],
            "caseID": 0,
            "actioned": None
        }).to_fields()

        assert fields["type"] == EmailType.RECEIVED
        assert fields["from_address"] == "a@example.com"
        assert fields["to_addresses"] == ("office@example.com",)
        assert fields["cc_addresses"] == ()
        assert fields["case_external_id"] is None
        assert fields["actioned"] is False

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            LegacyEmailRecord.model_validate({"id": 9, "type": "carrier-pigeon"})


class TestLegacyPage:

    def test_from_response(self):
        page = LegacyPage.from_response(
            LegacyCaseRecord,
            {"results": [{"id": 1}, {"id": 2}], "total": 2, "page": 1, "limit": 100}
        )
        assert len(page) == 2
        assert page.total == 2
        assert page.parse(page.results[0]).id == 1

    @pytest.mark.parametrize("payload", [None, [], {"total": 3}, {"results": "nope"}])
    def test_malformed_envelope_rejected(self, payload):
        with pytest.raises(ValidationError):
            LegacyPage.from_response(LegacyCaseRecord, payload)

    def test_null_record_only_fails_on_parse(self):
        page = LegacyPage.from_response(LegacyCaseRecord, {"results": [{"id": 1}, None]})
        assert len(page) == 2
        with pytest.raises(ValidationError):
            page.parse(page.results[1])

    def test_malformed_record_only_fails_on_parse(self):
        page = LegacyPage.from_response(LegacyCaseRecord, {"results": [{"id": "x"}]})
        with pytest.raises(ValidationError):
            page.parse(page.results[0])

    @pytest.mark.parametrize("raw,expected", [
        ({"id": 12}, 12), ({"id": 0}, 0), ({"id": "12"}, 0), ({"id": True}, 0), ({}, 0),
        (None, 0), ([12], 0)
    ])
    def test_raw_external_id(self, raw, expected):
        assert LegacyPage.raw_external_id(raw) == expected


class TestLegacyReferenceRecord:

    @pytest.mark.parametrize("label", ["name", "casetype", "statustype", "categorytype"])
    def test_list_specific_label_becomes_name(self, label, office_a):
        item = LegacyReferenceRecord.model_validate({"id": 4, label: "Housing"}).to_item(
            office_a, ReferenceKind.CASE_TYPES
        )

        assert item.name == "Housing"
        assert item.external_id == ExternalId.from_trusted(4)
        assert item.kind == ReferenceKind.CASE_TYPES

    def test_caseworker_fields(self, office_a):
        item = LegacyReferenceRecord.model_validate({
            "id": 7, "name": "Sam", "email": "sam@example.com", "is_active": False
        }).to_item(office_a, ReferenceKind.CASEWORKERS)

        assert item.email == "sam@example.com"
        assert item.is_active is False
        assert item.last_synced_at is not None

    def test_missing_active_flag_means_active(self, office_a):
        item = LegacyReferenceRecord.model_validate({"id": 2, "type": "phone"}).to_item(
            office_a, ReferenceKind.CONTACT_TYPES
        )
        assert item.is_active is True
        assert item.type == "phone"
