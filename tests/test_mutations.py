"""
Tests for the fetch/mutate protocol run by MutationCoordinator.
"""
import pytest

from core.alerts import AlertChannel
from core.errors import ServerError, TransportError
from core.models import FormMode, Severity
from core.mutations import FallbackPolicy, MutationCoordinator
from core.mock_data import mock_experts


def _select_us_visa(coordinator, visa_type="B-1/B-2"):
    coordinator.select_country("United States")
    coordinator.select_visa(visa_type)


# ---------------- Countries ----------------
def test_load_countries(coordinator):
    assert coordinator.load_countries() == ["United States", "Canada", "Germany"]
    assert coordinator.state.countries_error is None


def test_load_countries_failure_reports_and_keeps_list_empty(coordinator, fake_client):
    fake_client.errors["list_countries"] = TransportError("No response received from server")
    assert coordinator.load_countries() == []
    alert = coordinator.alerts.current()
    assert alert.severity == Severity.DANGER
    assert alert.message == "Error fetching countries: No response received from server"
    assert coordinator.state.countries_error == "No response received from server"


# ---------------- Visa cascade ----------------
def test_empty_visa_fetch_shows_empty_state_not_mock_data(coordinator):
    coordinator.select_country("Germany")
    visa = coordinator.state.visa
    assert visa.visa_types == []
    assert visa.loaded is True
    assert visa.error is None
    assert coordinator.alerts.current() is None


def test_visa_fetch_failure_records_error(coordinator, fake_client):
    fake_client.errors["list_visa_types"] = ServerError("Request failed with status code 500", 500, {"error": "db down"})
    assert coordinator.select_country("Canada") is False
    assert coordinator.state.visa.error == "db down"
    assert coordinator.state.visa.visa_types == []
    assert coordinator.alerts.current().message == "Error fetching visa types: db down"


def test_add_visa_without_country_warns(coordinator):
    assert coordinator.open_visa_form(FormMode.ADD) is None
    assert coordinator.alerts.current().severity == Severity.WARNING


def test_edit_visa_without_selection_warns(coordinator):
    coordinator.select_country("Canada")
    assert coordinator.open_visa_form(FormMode.EDIT) is None
    assert coordinator.alerts.current().message == "Please select a visa to edit"


def test_add_visa_with_empty_type_makes_no_network_call(coordinator, fake_client):
    coordinator.select_country("United States")
    coordinator.open_visa_form(FormMode.ADD)
    coordinator.update_form(description="Transit", duration="29 days", eligible_applicants="Travelers")

    assert coordinator.submit_visa() is False
    assert fake_client.count("create_visa") == 0
    alert = coordinator.alerts.current()
    assert alert.severity == Severity.DANGER
    assert alert.message == "Visa type, description, duration, and eligible applicants are required fields"
    assert coordinator.form_session is not None


def test_add_visa_success_refreshes_and_closes_form(coordinator, fake_client):
    coordinator.select_country("Germany")
    coordinator.open_visa_form(FormMode.ADD)
    coordinator.update_form(
        visa_type="Job Seeker",
        description="Look for work",
        duration="6 months",
        eligible_applicants="Graduates, Skilled workers",
    )

    assert coordinator.submit_visa() is True
    name, country, payload = fake_client.calls[-2]
    assert (name, country) == ("create_visa", "Germany")
    assert payload["eligible_applicants"] == ["Graduates", "Skilled workers"]
    assert fake_client.calls[-1] == ("list_visa_types", "Germany")
    assert [v["visa_type"] for v in coordinator.state.visa.visa_types] == ["Job Seeker"]
    assert coordinator.form_session is None
    assert coordinator.alerts.current().message == "Successfully added Job Seeker"


def test_update_visa_refetches_list_exactly_once(coordinator, fake_client):
    _select_us_visa(coordinator)
    coordinator.open_visa_form(FormMode.EDIT)
    coordinator.update_form(description="Updated description")
    fetches_before = fake_client.count("list_visa_types")

    assert coordinator.submit_visa() is True
    assert fake_client.count("list_visa_types") == fetches_before + 1
    update = [c for c in fake_client.calls if c[0] == "update_visa"]
    assert len(update) == 1
    _, country, key, payload = update[0]
    assert (country, key, payload["visa_type"]) == ("United States", "B-1/B-2", "B-1/B-2")
    assert coordinator.state.visa.selected_visa == "B-1/B-2"
    assert coordinator.state.visa.visa_types[0]["description"] == "Updated description"


def test_update_keeps_original_visa_key(coordinator, fake_client):
    _select_us_visa(coordinator, "F-1")
    coordinator.open_visa_form(FormMode.EDIT)
    coordinator.update_form(visa_type="F-2")
    coordinator.submit_visa()
    _, _, key, payload = [c for c in fake_client.calls if c[0] == "update_visa"][0]
    assert key == "F-1"
    assert payload["visa_type"] == "F-1"


def test_failed_submit_keeps_form_open(coordinator, fake_client):
    fake_client.errors["create_visa"] = ServerError("Request failed with status code 409", 409, {"message": "Duplicate"})
    coordinator.select_country("Canada")
    coordinator.open_visa_form(FormMode.ADD)
    coordinator.update_form(visa_type="Visitor Visa", description="d", duration="1 year", eligible_applicants="All")
    fetches_before = fake_client.count("list_visa_types")

    assert coordinator.submit_visa() is False
    assert coordinator.form_session is not None
    assert coordinator.operation_in_flight is False
    assert coordinator.operation_error == "Duplicate"
    assert coordinator.alerts.current().message == "Error adding visa: Duplicate"
    assert fake_client.count("list_visa_types") == fetches_before


def test_operation_in_flight_refuses_second_mutation(coordinator, fake_client):
    _select_us_visa(coordinator)
    coordinator.operation_in_flight = True
    assert coordinator.delete_visa() is False
    assert fake_client.count("delete_visa") == 0
    assert coordinator.alerts.current().message == "Another operation is still in progress"


def test_delete_visa_confirms_and_refreshes(coordinator, fake_client, confirmations):
    _select_us_visa(coordinator, "F-1")
    assert coordinator.delete_visa() is True
    assert confirmations == ["Are you sure you want to delete F-1?"]
    assert ("delete_visa", "United States", "F-1") in fake_client.calls
    assert coordinator.state.visa.selected_visa is None
    assert "F-1" not in [v["visa_type"] for v in coordinator.state.visa.visa_types]


# ---------------- Specialists ----------------
def test_empty_specialist_fetch_falls_back_to_mock_without_alert(coordinator):
    specialists = coordinator.load_specialists()
    assert len(specialists) == 3
    assert coordinator.state.specialists.using_mock is True
    assert coordinator.alerts.current() is None


def test_empty_specialist_fetch_without_fallback(fake_client):
    coordinator = MutationCoordinator(fake_client, fallback=FallbackPolicy(specialists=False))
    assert coordinator.load_specialists() == []
    assert coordinator.state.specialists.using_mock is False


def test_specialist_fetch_failure_keeps_error_and_shows_mock(coordinator, fake_client):
    fake_client.errors["list_experts"] = TransportError("No response received from server")
    specialists = coordinator.load_specialists()
    assert len(specialists) == 3
    assert coordinator.state.specialists.error == "No response received from server"
    assert coordinator.alerts.current().message == "Error fetching specialists: No response received from server"


def test_filters_choose_fetch_variant(coordinator, fake_client):
    coordinator.set_specialist_filters("Canada", "Work Permit")
    assert fake_client.calls[-1] == ("list_experts_by_country_and_visa", "Canada", "Work Permit")
    coordinator.reset_specialist_filters()
    assert fake_client.calls[-1] == ("list_experts",)


def test_add_specialist(coordinator, fake_client):
    coordinator.open_specialist_form(FormMode.ADD)
    coordinator.update_form(name="Ana Silva", title="Advisor", years_experience="4", languages="Portuguese, English")

    assert coordinator.submit_specialist() is True
    _, payload = [c for c in fake_client.calls if c[0] == "create_expert"][0]
    assert payload["rating"] == 4.7
    assert payload["yearsExperience"] == 4
    assert payload["languages"] == ["Portuguese", "English"]
    assert coordinator.form_session is None
    assert [s["name"] for s in coordinator.state.specialists.specialists] == ["Ana Silva"]


def test_add_specialist_missing_title(coordinator, fake_client):
    coordinator.open_specialist_form(FormMode.ADD)
    coordinator.update_form(name="Ana Silva")
    assert coordinator.submit_specialist() is False
    assert fake_client.count("create_expert") == 0
    assert coordinator.alerts.current().message == "Name and title are required fields"


def test_edit_specialist_prefetches_first_country(coordinator, fake_client):
    fake_client.experts = mock_experts()
    coordinator.load_specialists()
    coordinator.select_specialist(coordinator.state.specialists.specialists[0])

    session = coordinator.open_specialist_form(FormMode.EDIT)
    assert session.model.name == "Sarah Johnson"
    assert fake_client.calls[-1] == ("list_visa_types", "United States")
    assert coordinator.state.form.checked == ["B-1/B-2", "F-1", "H-1B"]
    assert len(coordinator.state.form.catalog) == 3


def test_edit_specialist_updates_by_id(coordinator, fake_client):
    fake_client.experts = mock_experts()
    coordinator.load_specialists()
    coordinator.select_specialist(coordinator.state.specialists.specialists[1])
    coordinator.open_specialist_form(FormMode.EDIT)
    coordinator.update_form(title="Principal Work Visa Specialist")

    assert coordinator.submit_specialist() is True
    _, expert_id, payload = [c for c in fake_client.calls if c[0] == "update_expert"][0]
    assert expert_id == "mock-2"
    assert payload["title"] == "Principal Work Visa Specialist"


def test_view_form_does_not_submit(coordinator, fake_client):
    fake_client.experts = mock_experts()
    coordinator.load_specialists()
    coordinator.select_specialist(coordinator.state.specialists.specialists[0])
    coordinator.open_specialist_form(FormMode.VIEW)
    assert coordinator.pick_form_country("Canada") is False
    assert coordinator.submit_specialist() is False
    assert fake_client.count("update_expert") == 0


def test_declined_specialist_delete_changes_nothing(fake_client, clock):
    fake_client.experts = mock_experts()
    prompts = []
    coordinator = MutationCoordinator(
        fake_client,
        alerts=AlertChannel(clock=clock),
        confirm=lambda prompt: prompts.append(prompt) and False,
    )
    coordinator.load_specialists()
    selected = coordinator.state.specialists.specialists[2]
    coordinator.select_specialist(selected)
    before = list(coordinator.state.specialists.specialists)

    assert coordinator.delete_specialist() is False
    assert prompts == ["Are you sure you want to delete Elena Rossi?"]
    assert fake_client.count("delete_expert") == 0
    assert len(fake_client.experts) == 3
    assert coordinator.state.specialists.specialists == before
    assert coordinator.state.specialists.selected is selected


def test_confirmed_specialist_delete(coordinator, fake_client):
    fake_client.experts = mock_experts()
    coordinator.load_specialists()
    coordinator.select_specialist(coordinator.state.specialists.specialists[0])

    assert coordinator.delete_specialist() is True
    assert ("delete_expert", "mock-1") in fake_client.calls
    assert coordinator.state.specialists.selected is None
    assert [s["id"] for s in coordinator.state.specialists.specialists] == ["mock-2", "mock-3"]


def test_form_cascade_through_coordinator(coordinator):
    coordinator.open_specialist_form(FormMode.ADD)
    coordinator.toggle_specialization_country("Canada", True)
    coordinator.pick_form_country("Canada")
    coordinator.toggle_form_visa_type("Work Permit", True)
    assert coordinator.commit_form_visa_types() is True

    model = coordinator.form_session.model
    assert [e.to_dict() for e in model.visa_types] == [{"country": "Canada", "types": ["Work Permit"]}]
    coordinator.remove_form_country_specialization("Canada")
    assert model.visa_types == []


def test_update_form_rejects_unknown_fields(coordinator):
    coordinator.open_specialist_form(FormMode.ADD)
    with pytest.raises(AttributeError):
        coordinator.update_form(nickname="Ace")
