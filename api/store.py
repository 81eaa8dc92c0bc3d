"""In-memory catalog backing the dev API, seeded from the dashboard's mock data."""

from __future__ import annotations

import copy
import uuid
from typing import Any, Dict, List, Optional

from core.mock_data import mock_countries, mock_experts, mock_visa_types


class RecordNotFound(LookupError):
    pass


class RecordConflict(ValueError):
    pass


class CatalogStore:
    def __init__(
        self,
        countries: Optional[List[str]] = None,
        visa_types: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        experts: Optional[List[Dict[str, Any]]] = None,
    ):
        self.countries: List[str] = list(countries or [])
        self.visa_types: Dict[str, List[Dict[str, Any]]] = {c: list(v) for c, v in (visa_types or {}).items()}
        self.experts: List[Dict[str, Any]] = list(experts or [])

    @classmethod
    def seeded(cls) -> "CatalogStore":
        countries = mock_countries()
        return cls(
            countries=countries,
            visa_types={c: mock_visa_types(c) for c in countries},
            experts=mock_experts(),
        )

    # ---------------- Visa types ----------------
    def _country_visas(self, country: str) -> List[Dict[str, Any]]:
        if country not in self.countries:
            raise RecordNotFound(f"Country {country} not found")
        return self.visa_types.setdefault(country, [])

    def list_visa_types(self, country: str) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._country_visas(country))

    def _visa_index(self, country: str, visa_type: str) -> int:
        for idx, record in enumerate(self._country_visas(country)):
            if record["visa_type"] == visa_type:
                return idx
        raise RecordNotFound(f"Visa type {visa_type} not found for {country}")

    def create_visa(self, country: str, record: Dict[str, Any]) -> Dict[str, Any]:
        visas = self._country_visas(country)
        if any(v["visa_type"] == record["visa_type"] for v in visas):
            raise RecordConflict(f"Visa type {record['visa_type']} already exists for {country}")
        visas.append(copy.deepcopy(record))
        return copy.deepcopy(record)

    def update_visa(self, country: str, visa_type: str, record: Dict[str, Any]) -> Dict[str, Any]:
        idx = self._visa_index(country, visa_type)
        updated = {**copy.deepcopy(record), "visa_type": visa_type}
        self.visa_types[country][idx] = updated
        return copy.deepcopy(updated)

    def delete_visa(self, country: str, visa_type: str) -> None:
        idx = self._visa_index(country, visa_type)
        del self.visa_types[country][idx]

    # ---------------- Experts ----------------
    def list_experts(
        self,
        *,
        country: Optional[str] = None,
        visa_type: Optional[str] = None,
        language: Optional[str] = None,
        min_rating: Optional[float] = None,
    ) -> List[Dict[str, Any]]:
        out = []
        for expert in self.experts:
            spec = expert.get("specialization") or {}
            if country and country not in (spec.get("countries") or []):
                continue
            if visa_type:
                entries = spec.get("visaTypes") or []
                if country:
                    entries = [e for e in entries if e.get("country") == country]
                if not any(visa_type in (e.get("types") or []) for e in entries):
                    continue
            if language and language.lower() not in [str(l).lower() for l in expert.get("languages") or []]:
                continue
            if min_rating is not None and float(expert.get("rating") or 0) < min_rating:
                continue
            out.append(copy.deepcopy(expert))
        return out

    def _expert_index(self, expert_id: str) -> int:
        for idx, expert in enumerate(self.experts):
            if expert.get("id") == expert_id:
                return idx
        raise RecordNotFound(f"Expert {expert_id} not found")

    def get_expert(self, expert_id: str) -> Dict[str, Any]:
        return copy.deepcopy(self.experts[self._expert_index(expert_id)])

    def create_expert(self, record: Dict[str, Any]) -> Dict[str, Any]:
        created = {**copy.deepcopy(record), "id": uuid.uuid4().hex}
        self.experts.append(created)
        return copy.deepcopy(created)

    def update_expert(self, expert_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
        idx = self._expert_index(expert_id)
        updated = {**copy.deepcopy(record), "id": expert_id}
        self.experts[idx] = updated
        return copy.deepcopy(updated)

    def delete_expert(self, expert_id: str) -> None:
        del self.experts[self._expert_index(expert_id)]
