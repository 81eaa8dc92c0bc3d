"""Selection state for the two master-detail cascades and the derived list views.

State lives in plain dataclasses held by reference; ``SelectionController``
applies transitions to them. The controller never performs I/O: a transition
that needs data returns a ``FetchTicket`` and the host resolves it later. A
ticket whose generation no longer matches the live state is stale and its
result is dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

from core.errors import NotFoundError
from core.models import SpecialistForm
from core.normalizer import (
    find_country_specialization,
    remove_country_specialization,
    upsert_country_specialization,
)

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

NO_COUNTRY_SELECTED = "no_country_selected"
COUNTRY_SELECTED = "country_selected"
VISA_SELECTED = "visa_selected"


@dataclass(frozen=True)
class FetchTicket:
    scope: str
    key: Any
    generation: int


class FetchVariant(NamedTuple):
    name: str
    args: Tuple[str, ...]


@dataclass
class VisaCascadeState:
    country: Optional[str] = None
    visa_types: List[Record] = field(default_factory=list)
    selected_visa: Optional[str] = None
    generation: int = 0
    loading: bool = False
    loaded: bool = False
    error: Optional[str] = None

    @property
    def phase(self) -> str:
        if self.country is None:
            return NO_COUNTRY_SELECTED
        if self.selected_visa is None:
            return COUNTRY_SELECTED
        return VISA_SELECTED


@dataclass
class SpecialistListState:
    specialists: List[Record] = field(default_factory=list)
    selected: Optional[Record] = None
    search_term: str = ""
    country_filter: str = ""
    visa_type_filter: str = ""
    generation: int = 0
    loading: bool = False
    error: Optional[str] = None
    using_mock: bool = False


@dataclass
class FormCascadeState:
    country: Optional[str] = None
    catalog: List[Record] = field(default_factory=list)
    checked: List[str] = field(default_factory=list)
    generation: int = 0
    loading: bool = False
    error: Optional[str] = None


@dataclass
class CatalogState:
    countries: List[str] = field(default_factory=list)
    countries_loading: bool = False
    countries_error: Optional[str] = None
    country_search: str = ""
    visa: VisaCascadeState = field(default_factory=VisaCascadeState)
    specialists: SpecialistListState = field(default_factory=SpecialistListState)
    form: FormCascadeState = field(default_factory=FormCascadeState)


# ---------------- Derived views ----------------
def filtered_countries(countries: Sequence[str], search_term: str) -> List[str]:
    if not search_term or not search_term.strip():
        return list(countries)
    needle = search_term.lower()
    return [c for c in countries if needle in str(c).lower()]


def filtered_specialists(specialists: Sequence[Record], search_term: str) -> List[Record]:
    if not search_term or not search_term.strip():
        return list(specialists)
    needle = search_term.lower()
    return [
        s for s in specialists
        if needle in str(s.get("name") or "").lower() or needle in str(s.get("title") or "").lower()
    ]


def choose_specialist_fetch(country_filter: str, visa_type_filter: str) -> FetchVariant:
    if country_filter and visa_type_filter:
        return FetchVariant("by_country_and_visa", (country_filter, visa_type_filter))
    if country_filter:
        return FetchVariant("by_country", (country_filter,))
    if visa_type_filter:
        return FetchVariant("by_visa_type", (visa_type_filter,))
    return FetchVariant("all", ())


def _is_current(ticket: FetchTicket, generation: int, key: Any) -> bool:
    if ticket.generation != generation or ticket.key != key:
        logger.debug("discarding stale %s response for %r", ticket.scope, ticket.key)
        return False
    return True


class SelectionController:
    def __init__(self, state: Optional[CatalogState] = None):
        self.state = state or CatalogState()

    # ---------------- Countries ----------------
    def set_countries(self, countries: Sequence[str]) -> None:
        self.state.countries = list(countries)
        self.state.countries_error = None

    def set_country_search(self, term: str) -> None:
        self.state.country_search = term or ""

    def visible_countries(self) -> List[str]:
        return filtered_countries(self.state.countries, self.state.country_search)

    # ---------------- Visa cascade ----------------
    def select_country(self, country: Optional[str]) -> Optional[FetchTicket]:
        visa = self.state.visa
        visa.generation += 1
        visa.country = country or None
        visa.visa_types = []
        visa.selected_visa = None
        visa.loaded = False
        visa.error = None
        if visa.country is None:
            visa.loading = False
            return None
        visa.loading = True
        return FetchTicket("visa_types", visa.country, visa.generation)

    def refresh_visa_types(self) -> Optional[FetchTicket]:
        visa = self.state.visa
        if visa.country is None:
            return None
        visa.generation += 1
        visa.loading = True
        visa.error = None
        return FetchTicket("visa_types", visa.country, visa.generation)

    def resolve_visa_types(self, ticket: FetchTicket, records: Sequence[Record]) -> bool:
        visa = self.state.visa
        if not _is_current(ticket, visa.generation, visa.country):
            return False
        visa.visa_types = list(records or [])
        visa.loading = False
        visa.loaded = True
        visa.error = None
        if visa.selected_visa is not None and self.find_visa(visa.selected_visa) is None:
            visa.selected_visa = None
        return True

    def fail_visa_types(self, ticket: FetchTicket, message: str) -> bool:
        visa = self.state.visa
        if not _is_current(ticket, visa.generation, visa.country):
            return False
        visa.loading = False
        visa.error = message
        return True

    def find_visa(self, visa_type: str) -> Optional[Record]:
        for record in self.state.visa.visa_types:
            if record.get("visa_type") == visa_type:
                return record
        return None

    def select_visa(self, visa_type: str) -> Record:
        visa = self.state.visa
        if visa.country is None:
            raise NotFoundError("Select a country before selecting a visa type")
        record = self.find_visa(visa_type)
        if record is None:
            raise NotFoundError(f"Visa type {visa_type} is not available for {visa.country}")
        visa.selected_visa = visa_type
        return record

    def clear_visa_selection(self) -> None:
        self.state.visa.selected_visa = None

    # ---------------- Specialist list ----------------
    def set_specialist_search(self, term: str) -> None:
        self.state.specialists.search_term = term or ""

    def set_specialist_filters(self, country: str = "", visa_type: str = "") -> None:
        self.state.specialists.country_filter = (country or "").strip()
        self.state.specialists.visa_type_filter = (visa_type or "").strip()

    def begin_specialist_fetch(self) -> Tuple[FetchTicket, FetchVariant]:
        lst = self.state.specialists
        lst.generation += 1
        lst.loading = True
        lst.error = None
        variant = choose_specialist_fetch(lst.country_filter, lst.visa_type_filter)
        return FetchTicket("specialists", variant, lst.generation), variant

    def _live_variant(self) -> FetchVariant:
        lst = self.state.specialists
        return choose_specialist_fetch(lst.country_filter, lst.visa_type_filter)

    def resolve_specialists(self, ticket: FetchTicket, records: Sequence[Record], *, using_mock: bool = False) -> bool:
        lst = self.state.specialists
        if not _is_current(ticket, lst.generation, self._live_variant()):
            return False
        lst.specialists = list(records or [])
        lst.using_mock = using_mock
        lst.loading = False
        if lst.selected is not None and not any(self._same_specialist(lst.selected, s) for s in lst.specialists):
            lst.selected = None
        return True

    def fail_specialists(self, ticket: FetchTicket, message: str) -> bool:
        lst = self.state.specialists
        if not _is_current(ticket, lst.generation, self._live_variant()):
            return False
        lst.loading = False
        lst.error = message
        return True

    @staticmethod
    def _same_specialist(a: Record, b: Record) -> bool:
        if a.get("id") is not None or b.get("id") is not None:
            return a.get("id") == b.get("id")
        return a is b

    def select_specialist(self, specialist: Optional[Record]) -> None:
        self.state.specialists.selected = specialist

    def visible_specialists(self) -> List[Record]:
        lst = self.state.specialists
        return filtered_specialists(lst.specialists, lst.search_term)

    # ---------------- Specialist-form cascade ----------------
    def reset_form_cascade(self) -> None:
        form = self.state.form
        form.generation += 1
        form.country = None
        form.catalog = []
        form.checked = []
        form.loading = False
        form.error = None

    def pick_form_country(self, country: Optional[str], model: SpecialistForm, *, editing: bool) -> Optional[FetchTicket]:
        form = self.state.form
        form.generation += 1
        form.country = country or None
        form.catalog = []
        form.error = None
        form.checked = []
        if form.country is None:
            form.loading = False
            return None
        if editing:
            existing = find_country_specialization(model.visa_types, form.country)
            if existing is not None:
                form.checked = list(existing.types)
        form.loading = True
        return FetchTicket("form_visa_types", form.country, form.generation)

    def resolve_form_catalog(self, ticket: FetchTicket, records: Sequence[Record]) -> bool:
        form = self.state.form
        if not _is_current(ticket, form.generation, form.country):
            return False
        form.catalog = list(records or [])
        form.loading = False
        return True

    def fail_form_catalog(self, ticket: FetchTicket, message: str) -> bool:
        form = self.state.form
        if not _is_current(ticket, form.generation, form.country):
            return False
        form.loading = False
        form.error = message
        return True

    def toggle_form_visa_type(self, visa_type: str, checked: bool) -> List[str]:
        form = self.state.form
        if checked:
            if visa_type not in form.checked:
                form.checked.append(visa_type)
        else:
            form.checked = [t for t in form.checked if t != visa_type]
        return form.checked

    def commit_form_visa_types(self, model: SpecialistForm) -> bool:
        """Upsert the checked types for the picked country, then clear the pick."""
        form = self.state.form
        if form.country is None or not form.checked:
            return False
        model.visa_types = upsert_country_specialization(model.visa_types, form.country, form.checked)
        self.reset_form_cascade()
        return True

    def remove_form_country_specialization(self, model: SpecialistForm, country: str) -> None:
        model.visa_types = remove_country_specialization(model.visa_types, country)

    def toggle_specialization_country(self, model: SpecialistForm, country: str, checked: bool) -> None:
        if checked:
            if country not in model.countries:
                model.countries = model.countries + [country]
        else:
            model.countries = [c for c in model.countries if c != country]
