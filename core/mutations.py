"""Fetch/mutate sequencing against the remote catalog.

Every mutation follows the same protocol: validate locally (no network call on
failure), mark the operation in flight, issue exactly one remote call, then
re-read the affected list from the server. Failures are reported through the
alert channel and never change local list state.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

from core.alerts import AlertChannel
from core.config import settings
from core.errors import CatalogError, NotFoundError, ValidationError, error_message
from core.mock_data import mock_countries, mock_experts, mock_visa_types
from core.models import FormMode, FormSession, Severity, SpecialistForm, VisaForm
from core.normalizer import (
    SPECIALIST,
    VISA,
    new_specialist_form,
    new_visa_form,
    specialist_to_form,
    validate_form,
    visa_to_form,
)
from core.selection import FetchTicket, SelectionController

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], bool]
Record = Dict[str, Any]


@dataclass(frozen=True)
class FallbackPolicy:
    """Which collections are replaced by local mock data when a fetch is empty or fails."""

    specialists: bool = True
    countries: bool = False
    visa_types: bool = False

    @classmethod
    def from_settings(cls) -> "FallbackPolicy":
        return cls(
            specialists=settings.FALLBACK_SPECIALISTS,
            countries=settings.FALLBACK_COUNTRIES,
            visa_types=settings.FALLBACK_VISA_TYPES,
        )


def _decline(_prompt: str) -> bool:
    return False


class MutationCoordinator:
    def __init__(
        self,
        client: Any,
        selection: Optional[SelectionController] = None,
        alerts: Optional[AlertChannel] = None,
        *,
        confirm: Optional[ConfirmFn] = None,
        fallback: Optional[FallbackPolicy] = None,
    ):
        self.client = client
        self.selection = selection or SelectionController()
        self.alerts = alerts or AlertChannel(dismiss_after=settings.ALERT_DISMISS_SECONDS)
        self.confirm: ConfirmFn = confirm or _decline
        self.fallback = fallback or FallbackPolicy.from_settings()
        self.form_session: Optional[FormSession] = None
        self.operation_in_flight = False
        self.operation_error: Optional[str] = None

    @property
    def state(self):
        return self.selection.state

    def _alert(self, severity: Severity, message: str) -> None:
        self.alerts.show(severity, message)

    @contextmanager
    def _operation(self) -> Iterator[None]:
        self.operation_in_flight = True
        self.operation_error = None
        try:
            yield
        finally:
            self.operation_in_flight = False

    def _refuse_if_busy(self) -> bool:
        if self.operation_in_flight:
            self._alert(Severity.WARNING, "Another operation is still in progress")
            return True
        return False

    # ---------------- Countries ----------------
    def load_countries(self) -> List[str]:
        self.state.countries_loading = True
        self.state.countries_error = None
        try:
            countries = self.client.list_countries()
            if not countries and self.fallback.countries:
                logger.info("No countries found in API, using fallback mock data")
                countries = mock_countries()
            self.selection.set_countries(countries)
        except CatalogError as exc:
            msg = error_message(exc, "Failed to fetch countries")
            self._alert(Severity.DANGER, f"Error fetching countries: {msg}")
            if self.fallback.countries:
                logger.info("Falling back to mock countries after error: %s", msg)
                self.selection.set_countries(mock_countries())
            self.state.countries_error = msg
        finally:
            self.state.countries_loading = False
        return self.state.countries

    # ---------------- Visa cascade ----------------
    def _fetch_visa_types(self, ticket: Optional[FetchTicket]) -> bool:
        if ticket is None:
            return False
        country = ticket.key
        try:
            records = self.client.list_visa_types(country)
        except CatalogError as exc:
            msg = error_message(exc, f"Failed to fetch visa types for {country}")
            if not self.selection.fail_visa_types(ticket, msg):
                return False
            self._alert(Severity.DANGER, f"Error fetching visa types: {msg}")
            if self.fallback.visa_types:
                self.selection.resolve_visa_types(ticket, mock_visa_types(country))
                self.state.visa.error = msg
            return False
        if not records and self.fallback.visa_types:
            logger.info("No visa types found for %s, using fallback mock data", country)
            records = mock_visa_types(country)
        return self.selection.resolve_visa_types(ticket, records)

    def select_country(self, country: Optional[str]) -> bool:
        return self._fetch_visa_types(self.selection.select_country(country))

    def refresh_visa_types(self) -> bool:
        return self._fetch_visa_types(self.selection.refresh_visa_types())

    def select_visa(self, visa_type: str) -> Optional[Record]:
        try:
            return self.selection.select_visa(visa_type)
        except NotFoundError as exc:
            self._alert(Severity.WARNING, str(exc))
            return None

    def open_visa_form(self, mode: FormMode) -> Optional[FormSession]:
        mode = FormMode(mode)
        visa = self.state.visa
        if mode == FormMode.ADD:
            if visa.country is None:
                self._alert(Severity.WARNING, "Please select a country before adding a visa")
                return None
            self.form_session = FormSession(kind=VISA, mode=mode, model=new_visa_form())
            return self.form_session

        if visa.selected_visa is None:
            self._alert(Severity.WARNING, f"Please select a visa to {mode.value}")
            return None
        record = self.selection.find_visa(visa.selected_visa)
        if record is None:
            self.selection.clear_visa_selection()
            self._alert(Severity.WARNING, f"Visa type {visa.selected_visa} is no longer available")
            return None
        self.form_session = FormSession(kind=VISA, mode=mode, model=visa_to_form(record), original_key=visa.selected_visa)
        return self.form_session

    def submit_visa(self) -> bool:
        session = self.form_session
        if session is None or session.kind != VISA or session.mode == FormMode.VIEW:
            self._alert(Severity.WARNING, "No visa form is open for editing")
            return False
        if self._refuse_if_busy():
            return False
        country = self.state.visa.country
        if country is None:
            self._alert(Severity.WARNING, "Please select a country first")
            return False
        try:
            payload = validate_form(session.model, VISA)
        except ValidationError as exc:
            self._alert(Severity.DANGER, str(exc))
            return False

        adding = session.mode == FormMode.ADD
        with self._operation():
            try:
                if adding:
                    self.client.create_visa(country, payload)
                else:
                    # the key is write-once
                    payload["visa_type"] = session.original_key
                    self.client.update_visa(country, session.original_key, payload)
            except CatalogError as exc:
                msg = error_message(exc, "Failed to save visa data")
                self.operation_error = msg
                self._alert(Severity.DANGER, f"Error {'adding' if adding else 'updating'} visa: {msg}")
                return False

        self._alert(Severity.SUCCESS, f"Successfully {'added' if adding else 'updated'} {payload['visa_type']}")
        self.refresh_visa_types()
        self.close_form()
        return True

    def delete_visa(self) -> bool:
        visa = self.state.visa
        selected = visa.selected_visa
        if selected is None or visa.country is None:
            self._alert(Severity.WARNING, "Please select a visa to delete")
            return False
        if self._refuse_if_busy():
            return False
        if not self.confirm(f"Are you sure you want to delete {selected}?"):
            return False

        with self._operation():
            try:
                self.client.delete_visa(visa.country, selected)
            except CatalogError as exc:
                msg = error_message(exc, "Failed to delete visa")
                self.operation_error = msg
                self._alert(Severity.DANGER, f"Error deleting visa: {msg}")
                return False

        self._alert(Severity.SUCCESS, f"Successfully deleted {selected}")
        self.refresh_visa_types()
        self.selection.clear_visa_selection()
        if self.form_session is not None and self.form_session.kind == VISA:
            self.close_form()
        return True

    # ---------------- Specialists ----------------
    def _specialist_fetchers(self) -> Dict[str, Callable[..., List[Record]]]:
        return {
            "by_country_and_visa": self.client.list_experts_by_country_and_visa,
            "by_country": self.client.list_experts_by_country,
            "by_visa_type": self.client.list_experts_by_visa_type,
            "all": self.client.list_experts,
        }

    def load_specialists(self) -> List[Record]:
        ticket, variant = self.selection.begin_specialist_fetch()
        try:
            records = self._specialist_fetchers()[variant.name](*variant.args)
        except CatalogError as exc:
            msg = error_message(exc, "Failed to fetch specialists")
            if not self.selection.fail_specialists(ticket, msg):
                return self.state.specialists.specialists
            self._alert(Severity.DANGER, f"Error fetching specialists: {msg}")
            if self.fallback.specialists:
                logger.info("Falling back to mock specialists after error: %s", msg)
                self.selection.resolve_specialists(ticket, mock_experts(), using_mock=True)
            return self.state.specialists.specialists

        if not records and self.fallback.specialists:
            logger.info("No specialists found in API, using fallback mock data")
            self.selection.resolve_specialists(ticket, mock_experts(), using_mock=True)
        else:
            self.selection.resolve_specialists(ticket, records or [])
        return self.state.specialists.specialists

    def set_specialist_filters(self, country: str = "", visa_type: str = "") -> List[Record]:
        self.selection.set_specialist_filters(country, visa_type)
        return self.load_specialists()

    def reset_specialist_filters(self) -> List[Record]:
        return self.set_specialist_filters("", "")

    def select_specialist(self, specialist: Optional[Record]) -> None:
        self.selection.select_specialist(specialist)

    def open_specialist_form(self, mode: FormMode) -> Optional[FormSession]:
        mode = FormMode(mode)
        self.selection.reset_form_cascade()
        if mode == FormMode.ADD:
            self.form_session = FormSession(kind=SPECIALIST, mode=mode, model=new_specialist_form())
            return self.form_session

        selected = self.state.specialists.selected
        if selected is None:
            self._alert(Severity.WARNING, f"Please select a specialist to {mode.value}")
            return None
        model = specialist_to_form(selected)
        self.form_session = FormSession(kind=SPECIALIST, mode=mode, model=model, original_key=model.id)
        if mode == FormMode.EDIT and model.countries:
            self.pick_form_country(model.countries[0])
        return self.form_session

    def _specialist_model(self) -> Optional[SpecialistForm]:
        session = self.form_session
        if session is None or session.kind != SPECIALIST or not isinstance(session.model, SpecialistForm):
            return None
        return session.model

    def pick_form_country(self, country: Optional[str]) -> bool:
        model = self._specialist_model()
        if model is None or self.form_session.mode == FormMode.VIEW:
            return False
        ticket = self.selection.pick_form_country(country, model, editing=self.form_session.mode == FormMode.EDIT)
        if ticket is None:
            return False
        try:
            records = self.client.list_visa_types(ticket.key)
        except CatalogError as exc:
            msg = error_message(exc, f"Failed to fetch visa types for {ticket.key}")
            if not self.selection.fail_form_catalog(ticket, msg):
                return False
            self._alert(Severity.DANGER, f"Error fetching visa types: {msg}")
            if self.fallback.visa_types:
                self.selection.resolve_form_catalog(ticket, mock_visa_types(ticket.key))
            return False
        return self.selection.resolve_form_catalog(ticket, records)

    def toggle_form_visa_type(self, visa_type: str, checked: bool) -> List[str]:
        return self.selection.toggle_form_visa_type(visa_type, checked)

    def commit_form_visa_types(self) -> bool:
        model = self._specialist_model()
        if model is None:
            return False
        return self.selection.commit_form_visa_types(model)

    def remove_form_country_specialization(self, country: str) -> None:
        model = self._specialist_model()
        if model is not None:
            self.selection.remove_form_country_specialization(model, country)

    def toggle_specialization_country(self, country: str, checked: bool) -> None:
        model = self._specialist_model()
        if model is not None:
            self.selection.toggle_specialization_country(model, country, checked)

    def update_form(self, **changes: Any) -> None:
        session = self.form_session
        if session is None:
            raise RuntimeError("No form is open")
        for name, value in changes.items():
            if not hasattr(session.model, name):
                raise AttributeError(f"{type(session.model).__name__} has no field {name}")
            setattr(session.model, name, value)

    def submit_specialist(self) -> bool:
        session = self.form_session
        model = self._specialist_model()
        if model is None or session.mode == FormMode.VIEW:
            self._alert(Severity.WARNING, "No specialist form is open for editing")
            return False
        if self._refuse_if_busy():
            return False
        adding = session.mode == FormMode.ADD
        try:
            payload = validate_form(model, SPECIALIST)
            if not adding and not model.id:
                raise ValidationError("Specialist ID is required for updates", fields=["id"])
        except ValidationError as exc:
            self._alert(Severity.DANGER, str(exc))
            return False

        with self._operation():
            try:
                if adding:
                    self.client.create_expert(payload)
                else:
                    self.client.update_expert(model.id, payload)
            except CatalogError as exc:
                msg = error_message(exc, "Failed to save specialist data")
                self.operation_error = msg
                self._alert(Severity.DANGER, f"Error {'adding' if adding else 'updating'} specialist: {msg}")
                return False

        self._alert(Severity.SUCCESS, f"Successfully {'added' if adding else 'updated'} {payload['name']}")
        self.load_specialists()
        self.close_form()
        return True

    def delete_specialist(self) -> bool:
        selected = self.state.specialists.selected
        if selected is None:
            self._alert(Severity.WARNING, "Please select a specialist to delete")
            return False
        if self._refuse_if_busy():
            return False
        name = selected.get("name") or "this specialist"
        if not self.confirm(f"Are you sure you want to delete {name}?"):
            return False

        with self._operation():
            try:
                self.client.delete_expert(selected.get("id"))
            except CatalogError as exc:
                msg = error_message(exc, "Failed to delete specialist")
                self.operation_error = msg
                self._alert(Severity.DANGER, f"Error deleting specialist: {msg}")
                return False

        self._alert(Severity.SUCCESS, f"Successfully deleted {name}")
        self.load_specialists()
        self.selection.select_specialist(None)
        return True

    # ---------------- Forms ----------------
    def close_form(self) -> None:
        self.form_session = None
        self.selection.reset_form_cascade()

    @property
    def visa_form(self) -> Optional[VisaForm]:
        session = self.form_session
        if session is not None and isinstance(session.model, VisaForm):
            return session.model
        return None
