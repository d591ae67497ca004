"""Tests for the public tracking page and tracking API."""

from datetime import timedelta
from uuid import uuid4

import pytest

from driver_tracker.db.models import TrackingLink
from tests.helpers.fakes import START_TIME


@pytest.fixture
def make_link(session_factory):
    """Insert a tracking link directly into the test database."""

    def _make(driver_name="Jane Smith", expires_in=timedelta(hours=4), active=True):
        session = session_factory()
        try:
            link = TrackingLink(
                id=uuid4(),
                driver_name=driver_name,
                created_by="dispatcher",
                created_at=START_TIME,
                expires_at=START_TIME + expires_in,
                active=active,
            )
            session.add(link)
            session.commit()
            return str(link.id)
        finally:
            session.close()

    return _make


@pytest.mark.unit
class TestTrackingApi:
    """Test GET /api/track/{link_id}."""

    def test_live_link(self, client, make_link):
        link_id = make_link()

        response = client.get(f"/api/track/{link_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["driver"]["name"] == "Jane Smith"
        assert data["driver"]["location"] == "3mi N of Ogden, UT"
        assert data["expiresAt"].startswith("2025-07-15T16:00:00")

    def test_no_login_needed(self, client, make_link):
        assert client.get(f"/api/track/{make_link()}").status_code == 200

    def test_unknown_link(self, client):
        response = client.get(f"/api/track/{uuid4()}")

        assert response.status_code == 404
        assert response.json() == {"error": "Invalid link"}

    def test_malformed_link_id(self, client):
        response = client.get("/api/track/not-a-real-id")

        assert response.status_code == 404
        assert response.json() == {"error": "Invalid link"}

    def test_expired_link_still_flagged_active(self, client, make_link):
        link_id = make_link(expires_in=timedelta(hours=-1))

        response = client.get(f"/api/track/{link_id}")

        assert response.status_code == 403
        assert response.json() == {"error": "Link expired or inactive"}

    def test_inactive_link(self, client, make_link):
        response = client.get(f"/api/track/{make_link(active=False)}")

        assert response.status_code == 403

    def test_driver_missing(self, client, make_link, drivers):
        link_id = make_link()
        drivers.remove("Jane Smith")

        response = client.get(f"/api/track/{link_id}")

        assert response.status_code == 404
        assert response.json() == {"error": "Driver data missing"}

    def test_upstream_failure(self, client, make_link, drivers):
        link_id = make_link()
        drivers.fail = True

        response = client.get(f"/api/track/{link_id}")

        assert response.status_code == 502
        assert "error" in response.json()


@pytest.mark.unit
class TestTrackingPage:
    """Test GET /track/{link_id}."""

    def test_renders_driver(self, client, make_link):
        link_id = make_link()

        response = client.get(f"/track/{link_id}")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Jane Smith" in response.text
        assert "3mi N of Ogden, UT" in response.text
        assert "July 15, 2025, 12:55:04 PM CDT" in response.text
        assert f'data-link-id="{link_id}"' in response.text

    def test_unknown_link(self, client):
        response = client.get(f"/track/{uuid4()}")

        assert response.status_code == 403
        assert response.text == "Invalid or expired link"

    def test_expired_link(self, client, make_link, clock):
        link_id = make_link(expires_in=timedelta(hours=1))
        clock.advance(hours=2)

        response = client.get(f"/track/{link_id}")

        assert response.status_code == 403
        assert response.text == "Link expired or inactive"

    def test_driver_missing(self, client, make_link, drivers):
        link_id = make_link()
        drivers.remove("Jane Smith")

        response = client.get(f"/track/{link_id}")

        assert response.status_code == 404
        assert "Driver data missing" in response.text

    def test_upstream_failure(self, client, make_link, drivers):
        link_id = make_link()
        drivers.fail = True

        response = client.get(f"/track/{link_id}")

        assert response.status_code == 502
        assert "Unable to fetch driver" in response.text
        assert "Traceback" not in response.text

    def test_placeholder_data_is_flagged(self, client, make_link, drivers):
        from driver_tracker.domain.drivers import fallback_drivers

        drivers.drivers = fallback_drivers()
        link_id = make_link(driver_name="Albert Davis (Demo)")

        response = client.get(f"/track/{link_id}")

        assert response.status_code == 200
        assert "placeholder data" in response.text


@pytest.mark.unit
class TestStoreFailure:
    """A broken link store must not leak driver or SQL text."""

    @pytest.fixture
    def broken_store(self, engine):
        TrackingLink.__table__.drop(engine)

    def test_tracking_page(self, client, broken_store):
        response = client.get(f"/track/{uuid4()}")

        assert response.status_code == 500
        assert response.text == "Something broke!"
        assert "SQL" not in response.text
        assert "tracking_links" not in response.text

    def test_tracking_api(self, client, broken_store):
        response = client.get(f"/api/track/{uuid4()}")

        assert response.status_code == 500
        assert response.json() == {"error": "Link store failure"}
        assert "SQL" not in response.text
