"""
Tests for trial field and cross-field validation.
"""
from datetime import date

import pytest

from trialtracker.database.models import ClinicalTrial
from trialtracker.errors import ValidationError
from trialtracker.trials.validation import (
    canonical_keys,
    merge_update,
    validate_cross_field,
    validate_fields,
)
from trialtracker.validation import parse_form
from trialtracker.trials.validation import NoteForm


def test_valid_payload_parses(trial_payload):
    record = validate_fields(trial_payload())

    assert record.trial_id == "ONC-001"
    assert record.phase == "Phase III"
    assert record.start_date == date(2024, 1, 15)
    assert record.study_locations[0].city == "Boston"


def test_trial_id_is_uppercased(trial_payload):
    record = validate_fields(trial_payload(trialId="  abc-123 "))
    assert record.trial_id == "ABC-123"


def test_trial_id_rejects_other_characters(trial_payload):
    with pytest.raises(ValidationError) as excinfo:
        validate_fields(trial_payload(trialId="ABC_123"))
    assert excinfo.value.messages == [
        "trialId: Trial ID can only contain uppercase letters, numbers, and hyphens"
    ]


def test_status_defaults_to_planning(trial_payload):
    payload = trial_payload()
    del payload["status"]
    assert validate_fields(payload).status == "Planning"


def test_blank_status_is_rejected(trial_payload):
    with pytest.raises(ValidationError) as excinfo:
        validate_fields(trial_payload(status=""))
    assert [m.split(":")[0] for m in excinfo.value.messages] == ["status"]


def test_blank_drug_name_is_cleared(trial_payload):
    assert validate_fields(trial_payload(drugName="  ")).drug_name is None


@pytest.mark.parametrize("overrides", [
    {"estimatedEnrollment": True},
    {"actualEnrollment": False},
])
def test_enrollment_rejects_booleans(trial_payload, overrides):
    with pytest.raises(ValidationError) as excinfo:
        validate_fields(trial_payload(**overrides))
    field = next(iter(overrides))
    assert excinfo.value.messages == [f"{field}: must be a whole number"]


def test_every_violation_is_reported(trial_payload):
    payload = trial_payload(phase="Phase V", estimatedEnrollment=0, trialName="")
    del payload["sponsor"]

    with pytest.raises(ValidationError) as excinfo:
        validate_fields(payload)

    fields = {message.split(":")[0] for message in excinfo.value.messages}
    assert fields == {"phase", "estimatedEnrollment", "trialName", "sponsor"}
    assert excinfo.value.message == "4 validation errors"


def test_nested_location_errors_name_the_item(trial_payload):
    with pytest.raises(ValidationError) as excinfo:
        validate_fields(trial_payload(studyLocations=[{"facility": "A", "city": "B"}]))
    assert excinfo.value.messages[0].startswith("studyLocations.0.country:")


def test_datetime_strings_keep_only_the_date(trial_payload):
    record = validate_fields(trial_payload(startDate="2024-03-01T23:30:00Z"))
    assert record.start_date == date(2024, 3, 1)


def test_unparseable_date(trial_payload):
    with pytest.raises(ValidationError) as excinfo:
        validate_fields(trial_payload(endDate="next tuesday"))
    assert excinfo.value.messages == ["endDate: must be a valid ISO 8601 date"]


def test_end_date_on_start_date_is_rejected(trial_payload):
    record = validate_fields(trial_payload(startDate="2024-05-01", endDate="2024-05-01T18:00:00"))

    with pytest.raises(ValidationError) as excinfo:
        validate_cross_field(record)
    assert excinfo.value.messages == ["End date must be at least one day after start date"]


def test_actual_enrollment_cannot_exceed_estimate(trial_payload):
    record = validate_fields(trial_payload(estimatedEnrollment=30, actualEnrollment=40))

    with pytest.raises(ValidationError) as excinfo:
        validate_cross_field(record)
    assert excinfo.value.messages == [
        "Actual enrollment (40) cannot exceed estimated enrollment (30)"
    ]


def test_both_cross_field_rules_reported_together(trial_payload):
    record = validate_fields(trial_payload(
        startDate="2025-01-01", endDate="2024-01-01",
        estimatedEnrollment=5, actualEnrollment=6,
    ))
    with pytest.raises(ValidationError) as excinfo:
        validate_cross_field(record)
    assert len(excinfo.value.messages) == 2


def test_canonical_keys_drop_server_managed_fields():
    changes = canonical_keys({
        "id": "x",
        "createdBy": "someone",
        "lastModifiedBy": "someone",
        "notes": [],
        "createdAt": "2020-01-01",
        "trialName": "Renamed",
        "actual_enrollment": 3,
    })
    assert changes == {"trial_name": "Renamed", "actual_enrollment": 3}


def stored_trial(trial_payload, **overrides):
    return ClinicalTrial(**validate_fields(trial_payload(**overrides)).to_columns())


def test_merge_validates_the_whole_record(trial_payload):
    trial = stored_trial(trial_payload, estimatedEnrollment=50, actualEnrollment=40)

    with pytest.raises(ValidationError) as excinfo:
        merge_update(trial, {"estimatedEnrollment": 30})
    assert excinfo.value.messages == [
        "Actual enrollment (40) cannot exceed estimated enrollment (30)"
    ]


def test_merge_checks_dates_against_stored_values(trial_payload):
    trial = stored_trial(trial_payload)

    with pytest.raises(ValidationError):
        merge_update(trial, {"endDate": "2024-01-15"})


def test_merge_returns_only_the_patched_fields(trial_payload):
    trial = stored_trial(trial_payload)

    record, changes = merge_update(trial, {"status": "Active", "id": "ignored"})

    assert changes == {"status": "Active"}
    assert record.status == "Active"
    assert record.trial_name == trial.trial_name


def test_merge_requires_an_object(trial_payload):
    with pytest.raises(ValidationError):
        merge_update(stored_trial(trial_payload), ["status"])


def test_note_content_bounds():
    assert parse_form(NoteForm, {"content": " Site visit done "}).content == "Site visit done"
    with pytest.raises(ValidationError):
        parse_form(NoteForm, {"content": "x" * 1001})
    with pytest.raises(ValidationError):
        parse_form(NoteForm, {"content": "   "})
