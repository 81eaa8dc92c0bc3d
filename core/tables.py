from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from core.normalizer import specialist_to_form, split_text


VISA_TABLE_COLUMNS = ["visa_type", "description", "eligible_applicants", "duration", "status"]
SPECIALIST_TABLE_COLUMNS = ["id", "name", "title", "countries", "experience", "rating", "languages", "availability"]


def summarize_applicants(applicants: object) -> str:
    values = applicants if isinstance(applicants, list) else []
    if not values:
        return "N/A"
    if len(values) == 1:
        return str(values[0])
    return f"{values[0]} + {len(values) - 1} more"


def visa_status(record: Dict[str, Any]) -> str:
    exempted = record.get("exempted_countries") or []
    restricted = record.get("restricted_countries") or []
    if exempted:
        return f"{len(exempted)} exempted"
    if restricted:
        return f"{len(restricted)} restricted"
    return "Standard"


def _first_two(values: Sequence[str]) -> str:
    if not values:
        return ""
    shown = ", ".join(values[:2])
    if len(values) > 2:
        shown += f" +{len(values) - 2}"
    return shown


def visa_table(visa_types: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = [
        {
            "visa_type": v.get("visa_type") or "",
            "description": v.get("description") or "",
            "eligible_applicants": summarize_applicants(v.get("eligible_applicants")),
            "duration": v.get("duration") or "",
            "status": visa_status(v),
        }
        for v in visa_types
    ]
    return pd.DataFrame(rows, columns=VISA_TABLE_COLUMNS)


def specialist_table(specialists: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = []
    for raw in specialists:
        form = specialist_to_form(raw)
        years: Optional[Any] = form.years_experience if form.years_experience != "" else None
        rows.append(
            {
                "id": form.id,
                "name": f"{form.name} ✓" if form.verified else form.name,
                "title": form.title,
                "countries": _first_two(form.countries),
                "experience": f"{years} years" if years is not None else "—",
                "rating": f"{form.rating} ({form.review_count})",
                "languages": _first_two(split_text(form.languages)),
                "availability": raw.get("availability") or "Available",
            }
        )
    return pd.DataFrame(rows, columns=SPECIALIST_TABLE_COLUMNS)
