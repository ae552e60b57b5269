"""HTTP API tests against the ASGI app."""

from datetime import date
from decimal import Decimal

import httpx
import pytest

from vegtracker.api.deps import get_criteria, get_database, get_fetcher
from vegtracker.db.email_queue import EmailQueueStore
from vegtracker.db.price_store import StoreError
from vegtracker.detect.criteria import Criterion, CriterionType
from vegtracker.main import app

MAY_1 = date(2024, 5, 1)
MAY_2 = date(2024, 5, 2)

CRITERIA = [Criterion("Spike", CriterionType.PERCENTAGE, Decimal("15"), 15)]


@pytest.fixture
async def client(session_factory, fake_fetcher):
    async def override_database():
        async with session_factory() as session:
            yield session

    fetcher = fake_fetcher(
        {
            MAY_1: {"Tomato": 100, "Onion": 50},
            MAY_2: {"Tomato": 120, "Onion": 50},
        }
    )
    app.dependency_overrides[get_database] = override_database
    app.dependency_overrides[get_fetcher] = lambda: fetcher
    app.dependency_overrides[get_criteria] = lambda: CRITERIA

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


async def test_scrape_range(client):
    response = await client.post(
        "/api/scrape", params={"city": "kerala", "startDate": "2024-05-01", "endDate": "2024-05-02"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Scraping completed"
    assert body["from"] == "2024-05-01"
    assert body["to"] == "2024-05-02"
    assert body["totalRecords"] == 4
    assert [day["status"] for day in body["days"]] == ["ok", "ok"]

    prices = (await client.get("/api/prices")).json()
    assert prices["totalRecords"] == 4
    assert {row["vegetable"] for row in prices["data"]} == {"Tomato", "Onion"}


async def test_scrape_single_date(client):
    response = await client.post("/api/scrape", params={"date": "2024-05-01"})

    assert response.status_code == 200
    body = response.json()
    assert body["from"] == body["to"] == "2024-05-01"
    assert body["totalRecords"] == 2


async def test_scrape_invalid_date(client):
    response = await client.post("/api/scrape", params={"startDate": "2024-02-31"})

    assert response.status_code == 400
    assert (await client.get("/api/prices")).json()["totalRecords"] == 0


async def test_scrape_reversed_range(client):
    response = await client.post(
        "/api/scrape", params={"startDate": "2024-05-02", "endDate": "2024-05-01"}
    )

    assert response.status_code == 200
    assert response.json()["totalRecords"] == 0
    assert response.json()["days"] == []


async def test_alert_email_viewable_by_id(client):
    await client.post("/api/scrape", params={"startDate": "2024-05-01", "endDate": "2024-05-02"})

    response = await client.post("/api/emails/alerts")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert len(body["data"]) == 1
    assert body["matches"] == {"Spike": body["data"]}

    view = await client.get(f"/api/emails/{body['data'][0]}/view")
    assert view.status_code == 200
    assert view.headers["content-type"].startswith("text/html")
    assert "Tomato" in view.text
    assert "20.0%" in view.text


async def test_view_unknown_email(client):
    response = await client.get("/api/emails/12345/view")

    assert response.status_code == 404


async def test_mark_sent(client):
    await client.post("/api/scrape", params={"startDate": "2024-05-01", "endDate": "2024-05-02"})
    entry_id = (await client.post("/api/emails/alerts")).json()["data"][0]

    pending = (await client.get("/api/emails", params={"pending": "true"})).json()
    assert [entry["id"] for entry in pending] == [entry_id]

    response = await client.post(f"/api/emails/{entry_id}/sent")
    assert response.status_code == 200
    assert response.json()["is_sent"] is True
    assert response.json()["sent_on"] is not None

    assert (await client.get("/api/emails", params={"pending": "true"})).json() == []
    assert len((await client.get("/api/emails")).json()) == 1


async def test_mark_sent_unknown(client):
    response = await client.post("/api/emails/999/sent")

    assert response.status_code == 404


async def test_weekly_report_nothing_to_report(client):
    response = await client.post("/api/emails/weekly-report")

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": [], "message": "Nothing to report"}


async def test_list_criteria(client):
    response = await client.get("/api/criteria")

    assert response.status_code == 200
    assert response.json() == [
        {"name": "Spike", "interval": "15 day", "type_value": "percentage", "value": 15.0}
    ]


@pytest.mark.parametrize(
    "store_method, http_method, path",
    [
        ("list_entries", "GET", "/api/emails"),
        ("get", "GET", "/api/emails/1/view"),
        ("mark_sent", "POST", "/api/emails/1/sent"),
    ],
)
async def test_email_routes_report_store_failures(client, monkeypatch, store_method, http_method, path):
    async def failing(self, *args, **kwargs):
        raise StoreError("database is locked")

    monkeypatch.setattr(EmailQueueStore, store_method, failing)

    response = await client.request(http_method, path)

    assert response.status_code == 500
    assert response.json() == {"detail": "database is locked"}
