"""Tests for login, logout and the operator dashboard."""

import pytest

from driver_tracker.domain.drivers import fallback_drivers


@pytest.mark.unit
class TestLogin:
    """Test the login form and session creation."""

    def test_login_form(self, client):
        response = client.get("/login")

        assert response.status_code == 200
        assert '<form method="post" action="/login">' in response.text

    def test_successful_login_redirects_to_dashboard(self, client, login):
        response = login()

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"
        assert client.get("/dashboard", follow_redirects=False).status_code == 200

    def test_wrong_password(self, client, login):
        response = login(password="not-it")

        assert response.status_code == 401
        assert "Invalid username or password" in response.text
        assert client.get("/dashboard", follow_redirects=False).status_code == 303

    def test_login_page_redirects_when_logged_in(self, operator_client):
        response = operator_client.get("/login", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"

    def test_repeated_failures_are_rate_limited(self, client, login):
        for _ in range(5):
            assert login(password="guess").status_code == 401

        response = login()

        assert response.status_code == 429
        assert "Retry-After" in response.headers

    def test_session_cookie_is_http_only(self, client, login):
        response = login()

        cookie = response.headers["set-cookie"]
        assert "driver_tracker_session=" in cookie
        assert "httponly" in cookie.lower()


@pytest.mark.unit
class TestLogout:
    def test_logout_clears_session(self, operator_client):
        response = operator_client.post("/logout", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert operator_client.get("/dashboard", follow_redirects=False).status_code == 303
        assert operator_client.post(
            "/generate-link", json={"driverName": "Jane Smith", "expirationHours": 1}
        ).status_code == 401


@pytest.mark.unit
class TestRoot:
    def test_anonymous_goes_to_login(self, client):
        response = client.get("/", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_operator_goes_to_dashboard(self, operator_client):
        response = operator_client.get("/", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/dashboard"


@pytest.mark.unit
class TestDashboard:
    """Test GET /dashboard."""

    def test_requires_login(self, client):
        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    def test_lists_drivers(self, operator_client):
        response = operator_client.get("/dashboard")

        assert response.status_code == 200
        assert "Jane Smith" in response.text
        assert "Bob Lee" in response.text
        assert "Administrator (dispatcher)" in response.text

    def test_shows_active_link(self, operator_client):
        data = operator_client.post(
            "/generate-link", json={"driverName": "Bob Lee", "expirationHours": 2}
        ).json()

        response = operator_client.get("/dashboard")

        assert data["trackingUrl"] in response.text

    def test_hides_expired_link(self, operator_client, clock):
        data = operator_client.post(
            "/generate-link", json={"driverName": "Bob Lee", "expirationHours": 1}
        ).json()
        clock.advance(hours=3)

        response = operator_client.get("/dashboard")

        assert data["trackingUrl"] not in response.text

    def test_upstream_outage_renders_warning(self, operator_client, drivers):
        drivers.fail = True

        response = operator_client.get("/dashboard")

        assert response.status_code == 200
        assert "Driver data is currently unavailable" in response.text
        assert "No drivers available." in response.text

    def test_placeholder_data_renders_warning(self, operator_client, drivers):
        drivers.drivers = fallback_drivers()

        response = operator_client.get("/dashboard")

        assert response.status_code == 200
        assert "showing placeholder data" in response.text
        assert "Albert Davis (Demo)" in response.text


@pytest.mark.unit
class TestDashboardStoreFailure:
    def test_broken_store_renders_generic_error(self, operator_client, engine):
        from driver_tracker.db.models import TrackingLink

        TrackingLink.__table__.drop(engine)

        response = operator_client.get("/dashboard")

        assert response.status_code == 500
        assert response.text == "Link store failure"
        assert "SQL" not in response.text


@pytest.mark.unit
class TestDashboardDuplicateActiveLinks:
    def test_newest_active_link_is_shown(self, operator_client, clock):
        from datetime import timedelta
        from uuid import uuid4

        from driver_tracker.db.models import TrackingLink
        from driver_tracker.main import app
        from driver_tracker.repositories.dependencies import get_tracking_link_repository
        from driver_tracker.repositories.memory_impl import MemoryTrackingLinkRepository

        links = MemoryTrackingLinkRepository()
        older, newer = [
            links.add(
                TrackingLink(
                    id=uuid4(),
                    driver_name="Bob Lee",
                    created_by="dispatcher",
                    created_at=clock() + timedelta(minutes=offset),
                    expires_at=clock() + timedelta(hours=2),
                    active=True,
                )
            )
            for offset in (0, 5)
        ]
        app.dependency_overrides[get_tracking_link_repository] = lambda: links

        response = operator_client.get("/dashboard")

        assert response.status_code == 200
        assert f"/track/{newer.id}" in response.text
        assert f"/track/{older.id}" not in response.text
