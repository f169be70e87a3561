"""
Tests for the Intake Form API

Tests cover:
- Health and market endpoints
- Session lifecycle over HTTP
- Status codes for validation, infrastructure and state errors
"""

import pytest
from fastapi.testclient import TestClient

from core.contacts import ContactRepository, ContactRepositoryError
from core.intake import IntakeSession
from core.tracking import RecordingEmitter
from utils.config import Config
from web.app import create_app
from web.form_routes import FormServices, SessionStore


class UnwritableRepository(ContactRepository):
    def create(self, record):
        raise ContactRepositoryError("database unavailable")


@pytest.fixture
def services(registry):
    return FormServices(
        registry=registry,
        repository=ContactRepository(),
        emitter=RecordingEmitter(),
    )


@pytest.fixture
def client(services):
    app = create_app(Config(), services=services)
    return TestClient(app)


def start(client, market_type="bicycle_delivery", target="berlin", **extra):
    response = client.post(
        "/form/sessions",
        json={"market_type": market_type, "target_market": target, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()


def fill_company_data(client, session_id):
    for key, value in {
        "company_name": "Muster Kurier GmbH",
        "email_address": "info@muster-kurier.de",
        "company_address": "Hauptstraße 1, 10115 Berlin",
        "website": "https://muster-kurier.de",
        "contact_person_first_name": "Anna",
        "phone_number": "+49 30 1234567",
    }.items():
        response = client.put(f"/form/sessions/{session_id}/answers/{key}", json={"value": value})
        assert response.status_code == 200


class TestHealth:

    def test_root(self, client):
        assert client.get("/").json() == {"status": "ok"}

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestMarkets:

    def test_list(self, client):
        markets = client.get("/form/markets").json()["markets"]
        assert "berlin" in markets["bicycle_delivery"]
        assert "uk" in markets["van_transport"]

    def test_detail(self, client):
        data = client.get("/form/markets/bicycle_delivery/berlin").json()
        assert data["location_kind"] == "zone"
        assert data["zones"][0] == "Mitte"

    def test_unknown_market(self, client):
        response = client.get("/form/markets/van_transport/atlantis")
        assert response.status_code == 404
        assert response.json()["detail"] == "Invalid market configuration: van_transport/atlantis"


class TestSessions:

    def test_start(self, client):
        data = start(client)
        assert data["current_step"] == 1
        assert data["state"] == "step"
        assert data["language"] == "de"

    def test_start_unknown_market_is_single_message(self, client):
        response = client.post(
            "/form/sessions",
            json={"market_type": "bicycle_delivery", "target_market": "germany"},
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Ungültige Marktkonfiguration: bicycle_delivery/germany"

    def test_start_unknown_contact(self, client):
        response = client.post(
            "/form/sessions",
            json={"market_type": "van_transport", "target_market": "uk", "contact_id": "missing"},
        )
        assert response.status_code == 404

    def test_resume_contact_with_free_text_year(self, client, services):
        contact_id = services.repository.create({
            "company_name": "Kurier Nord GmbH",
            "last_mile_since_when": "seit 2015",
        })
        data = start(client, contact_id=contact_id)
        assert data["answers"]["company_name"] == "Kurier Nord GmbH"
        assert data["answers"]["last_mile_since_when"] == ""

    def test_get_and_discard(self, client):
        session_id = start(client)["session_id"]
        assert client.get(f"/form/sessions/{session_id}").status_code == 200
        assert client.delete(f"/form/sessions/{session_id}").status_code == 200
        assert client.get(f"/form/sessions/{session_id}").status_code == 404


class TestAnswers:

    def test_set_and_read(self, client):
        session_id = start(client)["session_id"]
        response = client.put(
            f"/form/sessions/{session_id}/answers/bicycle_count", json={"value": "12"},
        )
        assert response.status_code == 200
        assert response.json()["answers"]["bicycle_count"] == 12

    def test_tristate(self, client):
        session_id = start(client)["session_id"]
        response = client.put(
            f"/form/sessions/{session_id}/answers/works_for_quick_commerce", json={"value": False},
        )
        assert response.json()["answers"]["works_for_quick_commerce"] is False

    def test_unknown_field(self, client):
        session_id = start(client)["session_id"]
        response = client.put(f"/form/sessions/{session_id}/answers/shoe_size", json={"value": 42})
        assert response.status_code == 404

    def test_invalid_value(self, client):
        session_id = start(client)["session_id"]
        response = client.put(f"/form/sessions/{session_id}/answers/bicycle_count", json={"value": -3})
        assert response.status_code == 422

    def test_toggle_selection_and_other(self, client):
        session_id = start(client)["session_id"]
        client.post(f"/form/sessions/{session_id}/answers/quick_commerce_companies/toggle", json={"item": "Getir"})
        client.post(f"/form/sessions/{session_id}/answers/quick_commerce_companies/toggle", json={"item": "other"})
        response = client.put(
            f"/form/sessions/{session_id}/answers/quick_commerce_other", json={"value": "Flink"},
        )
        answers = response.json()["answers"]
        assert answers["quick_commerce_companies"] == ["Getir", "other"]
        assert answers["quick_commerce_other"] == "Flink"

    def test_describe_unselected_other(self, client):
        session_id = start(client)["session_id"]
        response = client.put(
            f"/form/sessions/{session_id}/answers/gig_economy_other", json={"value": "Bolt"},
        )
        assert response.status_code == 422

    def test_toggle_availability(self, client):
        session_id = start(client)["session_id"]
        response = client.post(
            f"/form/sessions/{session_id}/answers/city_availability/toggle", json={"item": "Mitte"},
        )
        assert response.json()["answers"]["city_availability"] == {"Mitte": True}

    def test_toggle_unconfigured_location(self, client):
        session_id = start(client)["session_id"]
        response = client.post(
            f"/form/sessions/{session_id}/answers/city_availability/toggle", json={"item": "Atlantis"},
        )
        assert response.status_code == 422
        assert client.get(f"/form/sessions/{session_id}").json()["answers"]["city_availability"] == {}


class TestNavigation:

    def test_next_blocked_returns_errors(self, client):
        session_id = start(client)["session_id"]
        response = client.post(f"/form/sessions/{session_id}/next")
        assert response.status_code == 200
        data = response.json()
        assert data["advanced"] is False
        assert data["current_step"] == 1
        assert data["errors"][0] == "Firmenname"
        assert data["message"].startswith("Bitte füllen Sie folgende Felder aus: Firmenname")

    def test_next_and_previous(self, client):
        session_id = start(client)["session_id"]
        fill_company_data(client, session_id)
        data = client.post(f"/form/sessions/{session_id}/next").json()
        assert data["advanced"] is True
        assert data["current_step"] == 2
        assert data["errors"] == []
        assert data["message"] is None

        data = client.post(f"/form/sessions/{session_id}/previous").json()
        assert data["current_step"] == 1

    def test_submit_from_step_conflicts(self, client):
        session_id = start(client)["session_id"]
        assert client.post(f"/form/sessions/{session_id}/submit").status_code == 409


class TestSubmitOverHttp:

    @staticmethod
    def walk(client, session_id):
        for _ in range(4):
            data = client.post(f"/form/sessions/{session_id}/next").json()
            assert data["advanced"], data["errors"]
        assert data["state"] == "summary"

    @staticmethod
    def answer_like_demo(client, session_id):
        """Give a writing session the answers of a demo session."""
        demo = start(client, contact_id="demo")
        for key, value in demo["answers"].items():
            if isinstance(value, (list, dict)):
                continue
            client.put(f"/form/sessions/{session_id}/answers/{key}", json={"value": value})
        for item in demo["answers"]["staff_types"]:
            client.post(f"/form/sessions/{session_id}/answers/staff_types/toggle", json={"item": item})
        for location, available in demo["answers"]["city_availability"].items():
            if available:
                client.post(
                    f"/form/sessions/{session_id}/answers/city_availability/toggle",
                    json={"item": location},
                )

    def test_submit_creates_contact(self, client, services):
        session_id = start(client)["session_id"]
        self.answer_like_demo(client, session_id)
        self.walk(client, session_id)

        data = client.post(f"/form/sessions/{session_id}/submit").json()
        assert data["submitted"] is True
        assert data["state"] == "submitted"
        stored = services.repository.get(data["contact_id"])
        assert stored["company_name"] == "Demo Logistics GmbH"
        assert stored["form_completed"] is True

    def test_demo_submit_writes_nothing(self, client, services):
        session_id = start(client, contact_id="demo")["session_id"]
        self.walk(client, session_id)
        data = client.post(f"/form/sessions/{session_id}/submit").json()
        assert data["submitted"] is True
        assert services.repository.count() == 0

    def test_submitted_session_is_closed(self, client, services):
        session_id = start(client, contact_id="demo")["session_id"]
        self.walk(client, session_id)
        assert client.post(f"/form/sessions/{session_id}/submit").json()["submitted"] is True

        assert len(services.sessions) == 0
        assert client.get(f"/form/sessions/{session_id}").status_code == 404
        assert client.post(f"/form/sessions/{session_id}/next").status_code == 404
        assert client.post(f"/form/sessions/{session_id}/submit").status_code == 404
        response = client.put(
            f"/form/sessions/{session_id}/answers/company_name", json={"value": "Changed"},
        )
        assert response.status_code == 404

    def test_rejected_submit_lists_errors(self, client):
        session_id = start(client, contact_id="demo")["session_id"]
        self.walk(client, session_id)
        client.put(f"/form/sessions/{session_id}/answers/email_address", json={"value": "not-an-email"})

        response = client.post(f"/form/sessions/{session_id}/submit")
        assert response.status_code == 200
        data = response.json()
        assert data["submitted"] is False
        assert data["errors"] == ["E-Mail-Adresse (ungültiges Format)"]
        assert data["state"] == "summary"

    def test_repository_failure_is_503(self, registry):
        services = FormServices(registry=registry, repository=UnwritableRepository())
        client = TestClient(create_app(Config(), services=services))
        session_id = start(client)["session_id"]
        self.answer_like_demo(client, session_id)
        self.walk(client, session_id)

        response = client.post(f"/form/sessions/{session_id}/submit")
        assert response.status_code == 503
        assert response.json()["detail"] == "Speichern fehlgeschlagen. Bitte versuchen Sie es erneut."
        assert client.get(f"/form/sessions/{session_id}").json()["state"] == "summary"


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestSessionStore:

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def store(self, clock):
        return SessionStore(idle_timeout=60, clock=clock)

    @staticmethod
    def open_session(registry):
        return IntakeSession.start("bicycle_delivery", "berlin", None, contact_id="demo", registry=registry)

    def test_idle_session_expires(self, store, clock, registry):
        session = self.open_session(registry)
        store.add(session)
        clock.now += 61
        assert store.get(session.session_id) is None
        assert len(store) == 0

    def test_access_keeps_session_alive(self, store, clock, registry):
        session = self.open_session(registry)
        store.add(session)
        clock.now += 50
        assert store.get(session.session_id) is session
        clock.now += 50
        assert store.get(session.session_id) is session

    def test_purge_only_drops_idle_sessions(self, store, clock, registry):
        idle = self.open_session(registry)
        active = self.open_session(registry)
        store.add(idle)
        clock.now += 40
        store.add(active)
        clock.now += 30
        assert store.purge_expired() == 1
        assert store.get(active.session_id) is active
        assert store.get(idle.session_id) is None

    def test_idle_session_expires_over_http(self, registry, clock):
        services = FormServices(
            registry=registry,
            repository=ContactRepository(),
            sessions=SessionStore(idle_timeout=60, clock=clock),
        )
        client = TestClient(create_app(Config(), services=services))
        session_id = start(client)["session_id"]
        clock.now += 120
        assert client.get(f"/form/sessions/{session_id}").status_code == 404
