"""
Test configuration and fixtures.

Provides:
- A recording in-memory stand-in for RemoteCatalogClient
- A manual clock for alert expiry
- A MutationCoordinator wired to both
"""
from typing import Any, Dict, List, Optional

import pytest

from core.alerts import AlertChannel
from core.mock_data import mock_visa_types
from core.mutations import FallbackPolicy, MutationCoordinator


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCatalogClient:
    """Records every call; each method returns canned data or raises a queued error."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.countries: List[str] = ["United States", "Canada", "Germany"]
        self.visa_types: Dict[str, List[Dict[str, Any]]] = {
            "United States": mock_visa_types("United States"),
            "Canada": mock_visa_types("Canada"),
            "Germany": [],
        }
        self.experts: List[Dict[str, Any]] = []
        self.errors: Dict[str, Exception] = {}

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name,) + args)
        if name in self.errors:
            raise self.errors[name]

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def list_countries(self) -> List[str]:
        self._record("list_countries")
        return list(self.countries)

    def list_visa_types(self, country: str) -> List[Dict[str, Any]]:
        self._record("list_visa_types", country)
        return [dict(v) for v in self.visa_types.get(country, [])]

    def create_visa(self, country: str, visa: Dict[str, Any]) -> Dict[str, Any]:
        self._record("create_visa", country, visa)
        self.visa_types.setdefault(country, []).append(dict(visa))
        return visa

    def update_visa(self, country: str, visa_type: str, visa: Dict[str, Any]) -> Dict[str, Any]:
        self._record("update_visa", country, visa_type, visa)
        records = self.visa_types[country]
        for idx, record in enumerate(records):
            if record["visa_type"] == visa_type:
                records[idx] = dict(visa)
        return visa

    def delete_visa(self, country: str, visa_type: str) -> None:
        self._record("delete_visa", country, visa_type)
        self.visa_types[country] = [v for v in self.visa_types[country] if v["visa_type"] != visa_type]

    def list_experts(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        self._record("list_experts")
        return [dict(e) for e in self.experts]

    def list_experts_by_country(self, country: str) -> List[Dict[str, Any]]:
        self._record("list_experts_by_country", country)
        return [dict(e) for e in self.experts]

    def list_experts_by_visa_type(self, visa_type: str) -> List[Dict[str, Any]]:
        self._record("list_experts_by_visa_type", visa_type)
        return [dict(e) for e in self.experts]

    def list_experts_by_country_and_visa(self, country: str, visa_type: str) -> List[Dict[str, Any]]:
        self._record("list_experts_by_country_and_visa", country, visa_type)
        return [dict(e) for e in self.experts]

    def create_expert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self._record("create_expert", data)
        created = {**data, "id": f"new-{len(self.experts) + 1}"}
        self.experts.append(created)
        return created

    def update_expert(self, expert_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        self._record("update_expert", expert_id, data)
        self.experts = [{**data, "id": expert_id} if e.get("id") == expert_id else e for e in self.experts]
        return data

    def delete_expert(self, expert_id: str) -> None:
        self._record("delete_expert", expert_id)
        self.experts = [e for e in self.experts if e.get("id") != expert_id]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_client() -> FakeCatalogClient:
    return FakeCatalogClient()


@pytest.fixture
def confirmations() -> List[str]:
    return []


@pytest.fixture
def coordinator(fake_client, clock, confirmations) -> MutationCoordinator:
    def confirm(prompt: str) -> bool:
        confirmations.append(prompt)
        return True

    return MutationCoordinator(
        fake_client,
        alerts=AlertChannel(dismiss_after=5.0, clock=clock),
        confirm=confirm,
        fallback=FallbackPolicy(specialists=True, countries=False, visa_types=False),
    )
