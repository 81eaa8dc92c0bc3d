"""
Tests for record/form normalization and local validation.
"""
import math

import pytest

from core.errors import ValidationError
from core.mock_data import mock_experts, mock_visa_types
from core.models import CountrySpecialization, SpecialistForm, VisaForm
from core.normalizer import (
    SPECIALIST,
    VISA,
    coerce_number,
    copy_form,
    invalid_numeric_fields,
    new_specialist_form,
    remove_country_specialization,
    specialist_payload,
    specialist_to_form,
    split_text,
    to_form_model,
    upsert_country_specialization,
    validate_form,
    visa_payload,
    visa_to_form,
)


def test_specialist_aliases_resolve_to_canonical_fields():
    """Legacy keys fill the canonical form fields."""
    form = specialist_to_form(
        {"name": "A", "title": "B", "image": "a.png", "description": "Bio", "experience": 7, "reviews": 10}
    )
    assert form.photo == "a.png"
    assert form.bio == "Bio"
    assert form.years_experience == 7
    assert form.review_count == 10


def test_primary_key_wins_over_alias():
    form = specialist_to_form({"photo": "p.png", "image": "i.png", "yearsExperience": 3, "experience": 9})
    assert form.photo == "p.png"
    assert form.years_experience == 3


def test_zero_is_a_real_value_not_missing():
    form = specialist_to_form({"reviewCount": 0, "reviews": 5})
    assert form.review_count == 0


def test_specialist_defaults_when_fields_absent():
    form = specialist_to_form({})
    assert form.rating == 4.5
    assert form.success_rate == 95
    assert form.consultation_fee == "$150"
    assert form.availability == "Available next week"
    assert form.verified is True
    assert form.countries == []
    assert form.visa_types == []


def test_new_specialist_form_starts_with_higher_rating():
    assert new_specialist_form().rating == 4.7


def test_visa_lists_become_comma_text():
    form = visa_to_form({"visa_type": "F-1", "eligible_applicants": ["Students", "Scholars"]})
    assert form.eligible_applicants == "Students, Scholars"
    assert form.exempted_countries == ""


def test_to_form_model_rejects_unknown_kind():
    with pytest.raises(ValueError):
        to_form_model({}, "passport")


def test_split_text_trims_and_keeps_duplicates():
    assert split_text(" a, ,b , a,") == ["a", "b", "a"]
    assert split_text("") == []
    assert split_text(None) == []


@pytest.mark.parametrize(
    "raw, expected",
    [("", 0), ("  ", 0), (None, 0), ("4", 4), ("4.0", 4), ("4.5", 4.5), (3, 3), (True, 1)],
)
def test_coerce_number(raw, expected):
    assert coerce_number(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "1e999", float("inf"), object()])
def test_coerce_number_unparseable_is_nan(raw):
    assert math.isnan(coerce_number(raw))


def test_visa_record_survives_form_round_trip():
    record = mock_visa_types("United States")[0]
    assert visa_payload(visa_to_form(record)) == record


def test_specialist_record_survives_form_round_trip():
    for record in mock_experts():
        assert specialist_payload(specialist_to_form(record)) == record


def test_specialist_payload_uses_nested_specialization():
    form = SpecialistForm(
        name="Ana",
        title="Advisor",
        countries=["Canada"],
        visa_types=[CountrySpecialization("Canada", ("Study Permit",))],
        languages="English, French",
    )
    payload = specialist_payload(form)
    assert payload["specialization"] == {
        "countries": ["Canada"],
        "visaTypes": [{"country": "Canada", "types": ["Study Permit"]}],
    }
    assert payload["languages"] == ["English", "French"]
    assert "id" not in payload


def test_duplicate_country_entries_collapse_on_load():
    form = specialist_to_form(
        {
            "specialization": {
                "countries": ["Canada"],
                "visaTypes": [
                    {"country": "Canada", "types": ["Visitor Visa"]},
                    {"country": "Canada", "types": ["Work Permit"]},
                ],
            }
        }
    )
    assert form.visa_types == [CountrySpecialization("Canada", ("Work Permit",))]


def test_upsert_replaces_in_place_and_appends_new():
    entries = [CountrySpecialization("Canada", ("A",)), CountrySpecialization("Japan", ("B",))]
    updated = upsert_country_specialization(entries, "Canada", ["C", "D"])
    assert [e.country for e in updated] == ["Canada", "Japan"]
    assert updated[0].types == ("C", "D")
    assert entries[0].types == ("A",)

    appended = upsert_country_specialization(updated, "France", ["E"])
    assert [e.country for e in appended] == ["Canada", "Japan", "France"]
    assert remove_country_specialization(appended, "Japan") == [appended[0], appended[2]]


def test_copy_form_does_not_share_lists():
    form = SpecialistForm(countries=["Canada"])
    clone = copy_form(form)
    clone.countries.append("Japan")
    assert form.countries == ["Canada"]


def test_visa_required_fields_message():
    with pytest.raises(ValidationError) as excinfo:
        validate_form(VisaForm(visa_type="F-1", description="  "), VISA)
    assert str(excinfo.value) == "Visa type, description, duration, and eligible applicants are required fields"
    assert excinfo.value.fields == ["description", "duration", "eligible_applicants"]


def test_specialist_required_fields_message():
    with pytest.raises(ValidationError) as excinfo:
        validate_form(SpecialistForm(name="Ana"), SPECIALIST)
    assert str(excinfo.value) == "Name and title are required fields"
    assert excinfo.value.fields == ["title"]


def test_unparseable_rating_is_rejected_locally():
    with pytest.raises(ValidationError) as excinfo:
        validate_form(SpecialistForm(name="Ana", title="Advisor", rating="great"), SPECIALIST)
    assert excinfo.value.fields == ["rating"]


def test_blank_numeric_input_becomes_zero():
    payload = validate_form(SpecialistForm(name="Ana", title="Advisor", years_experience=""), SPECIALIST)
    assert payload["yearsExperience"] == 0


@pytest.mark.parametrize(
    "payload, invalid",
    [
        ({"rating": 0.5}, ["rating"]),
        ({"rating": 5}, []),
        ({"successRate": 101}, ["successRate"]),
        ({"yearsExperience": -1}, ["yearsExperience"]),
        ({"reviewCount": 2.5}, ["reviewCount"]),
        ({"reviewCount": math.nan}, ["reviewCount"]),
    ],
)
def test_invalid_numeric_fields(payload, invalid):
    assert invalid_numeric_fields(payload) == invalid
