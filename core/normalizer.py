"""Raw catalog records <-> editable form models <-> submission payloads.

Backend records are loosely typed: a field may arrive under a legacy alias,
list fields may arrive as lists or as pre-joined strings, and optional fields
may be missing entirely. All of that is resolved here; nothing past this
module looks at raw aliases.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from core.errors import ValidationError
from core.models import CountrySpecialization, FormModel, Number, SpecialistForm, VisaForm


VISA = "visa"
SPECIALIST = "specialist"

VISA_LIST_FIELDS = ("eligible_applicants", "exempted_countries", "restricted_countries")

# form attribute -> raw keys, primary first
SPECIALIST_ALIASES: Dict[str, Sequence[str]] = {
    "name": ("name",),
    "title": ("title",),
    "photo": ("photo", "image"),
    "bio": ("bio", "description"),
    "years_experience": ("yearsExperience", "experience"),
    "rating": ("rating",),
    "review_count": ("reviewCount", "reviews"),
    "success_rate": ("successRate",),
    "consultation_fee": ("consultationFee",),
    "availability": ("availability",),
}

SPECIALIST_DEFAULTS: Dict[str, Any] = {
    "name": "",
    "title": "",
    "photo": "",
    "bio": "",
    "years_experience": "",
    "rating": 4.5,
    "review_count": 0,
    "success_rate": 95,
    "consultation_fee": "$150",
    "availability": "Available next week",
}

NUMERIC_FIELDS = ("yearsExperience", "rating", "reviewCount", "successRate")

REQUIRED_FIELDS: Dict[str, Sequence[str]] = {
    VISA: ("visa_type", "description", "duration", "eligible_applicants"),
    SPECIALIST: ("name", "title"),
}

FIELD_LABELS = {
    "visa_type": "Visa type",
    "description": "description",
    "duration": "duration",
    "eligible_applicants": "eligible applicants",
    "name": "Name",
    "title": "title",
    "yearsExperience": "years of experience",
    "rating": "rating",
    "reviewCount": "review count",
    "successRate": "success rate",
}


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _resolve(raw: Mapping[str, Any], keys: Sequence[str], default: Any) -> Any:
    for key in keys:
        value = raw.get(key)
        if not _is_blank(value):
            return value
    return default


def list_to_text(value: object) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, str):
        return value
    return ""


def split_text(value: object) -> List[str]:
    """Split comma-joined text, trimming tokens and dropping empties. Order and duplicates are kept."""
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    if not isinstance(value, str):
        return []
    return [token.strip() for token in value.split(",") if token.strip()]


def coerce_number(value: object) -> Number:
    """Coerce form input to a number; anything unparseable becomes NaN."""
    if isinstance(value, bool):
        return int(value)
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        out = float(value)
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return 0
        try:
            out = float(s)
        except ValueError:
            return math.nan
    else:
        return math.nan
    if not math.isfinite(out):
        return math.nan
    if out.is_integer():
        return int(out)
    return out


def _as_str_list(value: object) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value if not _is_blank(v)]


# ---------------- Country specializations ----------------
def upsert_country_specialization(
    entries: Sequence[CountrySpecialization], country: str, types: Iterable[str]
) -> List[CountrySpecialization]:
    """Replace the entry for ``country`` in place, or append one if absent."""
    updated = CountrySpecialization(country=country, types=tuple(types))
    out = list(entries)
    for idx, entry in enumerate(out):
        if entry.country == country:
            out[idx] = updated
            return out
    out.append(updated)
    return out


def remove_country_specialization(entries: Sequence[CountrySpecialization], country: str) -> List[CountrySpecialization]:
    return [entry for entry in entries if entry.country != country]


def find_country_specialization(entries: Sequence[CountrySpecialization], country: str) -> Optional[CountrySpecialization]:
    for entry in entries:
        if entry.country == country:
            return entry
    return None


def _specializations_from_raw(value: object) -> List[CountrySpecialization]:
    entries: List[CountrySpecialization] = []
    if not isinstance(value, (list, tuple)):
        return entries
    for item in value:
        if not isinstance(item, Mapping):
            continue
        country = item.get("country")
        if _is_blank(country):
            continue
        entries = upsert_country_specialization(entries, str(country), _as_str_list(item.get("types")))
    return entries


# ---------------- Raw -> form ----------------
def new_visa_form() -> VisaForm:
    return VisaForm()


def new_specialist_form() -> SpecialistForm:
    return SpecialistForm(rating=4.7)


def visa_to_form(raw: Optional[Mapping[str, Any]]) -> VisaForm:
    raw = raw or {}
    return VisaForm(
        visa_type=str(_resolve(raw, ("visa_type",), "")),
        description=str(_resolve(raw, ("description",), "")),
        eligible_applicants=list_to_text(raw.get("eligible_applicants")),
        duration=str(_resolve(raw, ("duration",), "")),
        exempted_countries=list_to_text(raw.get("exempted_countries")),
        restricted_countries=list_to_text(raw.get("restricted_countries")),
    )


def specialist_to_form(raw: Optional[Mapping[str, Any]]) -> SpecialistForm:
    raw = raw or {}
    values = {attr: _resolve(raw, keys, SPECIALIST_DEFAULTS[attr]) for attr, keys in SPECIALIST_ALIASES.items()}
    specialization = raw.get("specialization")
    if not isinstance(specialization, Mapping):
        specialization = {}
    verified = raw.get("verified")
    raw_id = raw.get("id")
    return SpecialistForm(
        id=str(raw_id) if not _is_blank(raw_id) else None,
        name=str(values["name"]),
        title=str(values["title"]),
        photo=str(values["photo"]),
        bio=str(values["bio"]),
        years_experience=values["years_experience"],
        languages=list_to_text(raw.get("languages")),
        rating=values["rating"],
        review_count=values["review_count"],
        countries=_as_str_list(specialization.get("countries")),
        visa_types=_specializations_from_raw(specialization.get("visaTypes")),
        success_rate=values["success_rate"],
        consultation_fee=str(values["consultation_fee"]),
        availability=str(values["availability"]),
        verified=True if verified is None else bool(verified),
    )


def to_form_model(raw: Optional[Mapping[str, Any]], kind: str) -> FormModel:
    if kind == VISA:
        return visa_to_form(raw)
    if kind == SPECIALIST:
        return specialist_to_form(raw)
    raise ValueError(f"Unknown record kind: {kind}")


def copy_form(form: FormModel) -> FormModel:
    if isinstance(form, SpecialistForm):
        return replace(form, countries=list(form.countries), visa_types=list(form.visa_types))
    return replace(form)


# ---------------- Form -> payload ----------------
def visa_payload(form: VisaForm) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "visa_type": form.visa_type.strip(),
        "description": form.description.strip(),
        "duration": form.duration.strip(),
    }
    for name in VISA_LIST_FIELDS:
        payload[name] = split_text(getattr(form, name))
    return payload


def specialist_payload(form: SpecialistForm) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "name": form.name.strip(),
        "title": form.title.strip(),
        "photo": form.photo.strip(),
        "bio": form.bio,
        "yearsExperience": coerce_number(form.years_experience),
        "languages": split_text(form.languages),
        "rating": coerce_number(form.rating),
        "reviewCount": coerce_number(form.review_count),
        "specialization": {
            "countries": list(form.countries),
            "visaTypes": [entry.to_dict() for entry in form.visa_types],
        },
        "successRate": coerce_number(form.success_rate),
        "consultationFee": form.consultation_fee,
        "availability": form.availability,
        "verified": bool(form.verified),
    }
    if form.id:
        payload["id"] = form.id
    return payload


def to_submission_payload(form: FormModel, kind: str) -> Dict[str, Any]:
    if kind == VISA and isinstance(form, VisaForm):
        return visa_payload(form)
    if kind == SPECIALIST and isinstance(form, SpecialistForm):
        return specialist_payload(form)
    raise ValueError(f"Form {type(form).__name__} does not match kind {kind}")


# ---------------- Validation ----------------
def missing_required_fields(form: FormModel, kind: str) -> List[str]:
    return [name for name in REQUIRED_FIELDS[kind] if _is_blank(getattr(form, name, None))]


def coerce_numeric_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    out = dict(payload)
    for key in NUMERIC_FIELDS:
        if key in out:
            out[key] = coerce_number(out[key])
    return out


def invalid_numeric_fields(payload: Mapping[str, Any]) -> List[str]:
    invalid: List[str] = []
    for key in NUMERIC_FIELDS:
        if key not in payload:
            continue
        value = payload[key]
        if not isinstance(value, (int, float)) or isinstance(value, bool) or math.isnan(value):
            invalid.append(key)
        elif key in ("yearsExperience", "reviewCount") and (value < 0 or float(value) != int(value)):
            invalid.append(key)
        elif key == "rating" and not 1 <= value <= 5:
            invalid.append(key)
        elif key == "successRate" and not 0 <= value <= 100:
            invalid.append(key)
    return invalid


def describe_fields(fields: Iterable[str]) -> str:
    labels = [FIELD_LABELS.get(f, f) for f in fields]
    if len(labels) <= 1:
        return "".join(labels)
    if len(labels) == 2:
        return f"{labels[0]} and {labels[1]}"
    return ", ".join(labels[:-1]) + f", and {labels[-1]}"


def required_fields_message(kind: str) -> str:
    return f"{describe_fields(REQUIRED_FIELDS[kind])} are required fields"


def validate_form(form: FormModel, kind: str) -> Dict[str, Any]:
    """Return the submission payload, or raise ValidationError before anything is transmitted."""
    missing = missing_required_fields(form, kind)
    if missing:
        raise ValidationError(required_fields_message(kind), fields=missing)
    payload = to_submission_payload(form, kind)
    invalid = invalid_numeric_fields(payload)
    if invalid:
        raise ValidationError(f"Invalid numeric value for {describe_fields(invalid)}", fields=invalid)
    return payload
