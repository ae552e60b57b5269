"""Tests for the upstream market price client."""

import json
from datetime import date

import httpx
import pytest

from vegtracker.ingest.base import FetchStatus
from vegtracker.ingest.market_client import (
    MarketPriceClient,
    parse_price_range,
    parse_record,
    parse_wholesale_price,
)

DAY = date(2024, 5, 1)


def make_client(handler) -> MarketPriceClient:
    return MarketPriceClient(
        base_url="https://upstream.test/api/dataapi",
        site_origin="https://upstream.test/",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestParsing:
    def test_price_range_with_hyphen(self):
        assert parse_price_range("20-35") == ("20", "35")

    def test_price_range_trims_whitespace(self):
        assert parse_price_range(" 48 - 55 ") == ("48", "55")

    def test_price_range_without_hyphen(self):
        assert parse_price_range("20") == (None, None)

    def test_price_range_missing_or_not_string(self):
        assert parse_price_range(None) == (None, None)
        assert parse_price_range(35) == (None, None)

    def test_price_range_empty_side(self):
        assert parse_price_range("20-") == (None, None)

    def test_wholesale_price(self):
        assert parse_wholesale_price("40") == 40
        assert parse_wholesale_price(12.5) == 13
        assert parse_wholesale_price(0) is None
        assert parse_wholesale_price("") is None
        assert parse_wholesale_price("n/a") is None

    def test_record_without_name_is_skipped(self):
        assert parse_record({"price": "10"}, "kerala", DAY, "https://upstream.test/") is None
        assert parse_record("Tomato", "kerala", DAY, "https://upstream.test/") is None

    def test_record_image_falls_back_to_top_level(self):
        record = parse_record(
            {"vegetablename": "Beans", "price": "60", "imageUrl": "img/beans.png"},
            "kerala",
            DAY,
            "https://upstream.test/",
        )
        assert record.image == "https://upstream.test/img/beans.png"


class TestFetch:
    async def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={"data": []})

        client = make_client(handler)
        await client.fetch("kerala", DAY)
        await client.close()

        request = seen["request"]
        assert request.method == "GET"
        assert request.url.path == "/api/dataapi/market/kerala/daywisedata"
        assert request.url.params["date"] == "2024-05-01"
        assert request.headers["accept"] == "application/json"
        assert "Mozilla" in request.headers["user-agent"]

    async def test_parses_records(self):
        payload = {
            "data": [
                {
                    "vegetablename": "Tomato",
                    "price": "40",
                    "retailprice": "45-50",
                    "shopingmallprice": "48 - 55",
                    "units": "kg",
                    "table": {"imageUrl": "/images/tomato.png"},
                },
                {"vegetablename": "Onion", "price": 0, "retailprice": "30"},
                {"price": "10"},
            ]
        }
        client = make_client(lambda request: httpx.Response(200, json=payload))

        outcome = await client.fetch("kerala", DAY)

        assert outcome.status == FetchStatus.OK
        assert [r.vegetable for r in outcome.records] == ["Tomato", "Onion"]

        tomato, onion = outcome.records
        assert tomato.date == DAY
        assert tomato.city == "kerala"
        assert tomato.wholesale_price == 40
        assert (tomato.retail_min_price, tomato.retail_max_price) == ("45", "50")
        assert (tomato.shopmall_min_price, tomato.shopmall_max_price) == ("48", "55")
        assert tomato.unit == "kg"
        assert tomato.image == "https://upstream.test/images/tomato.png"

        assert onion.wholesale_price is None
        assert (onion.retail_min_price, onion.retail_max_price) == (None, None)
        assert onion.image is None

    @pytest.mark.parametrize("payload", [{"data": []}, {}, {"data": "nothing"}, []])
    async def test_empty_payload(self, payload):
        client = make_client(lambda request: httpx.Response(200, json=payload))

        outcome = await client.fetch("kerala", DAY)

        assert outcome.status == FetchStatus.EMPTY
        assert outcome.records == []
        assert outcome.error is None

    async def test_http_error_status(self):
        client = make_client(lambda request: httpx.Response(503))

        outcome = await client.fetch("kerala", DAY)

        assert outcome.status == FetchStatus.ERROR
        assert "503" in outcome.error
        assert outcome.records == []

    async def test_invalid_json(self):
        client = make_client(lambda request: httpx.Response(200, content=b"<html>"))

        outcome = await client.fetch("kerala", DAY)

        assert outcome.status == FetchStatus.ERROR

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        outcome = await client.fetch("kerala", DAY)

        assert outcome.status == FetchStatus.ERROR
        assert "ConnectError" in outcome.error

    async def test_records_serialize(self):
        payload = {"data": [{"vegetablename": "Carrot", "price": "55"}]}
        client = make_client(
            lambda request: httpx.Response(200, content=json.dumps(payload).encode())
        )

        outcome = await client.fetch("tamilnadu", DAY)

        assert outcome.records[0].to_dict()["date"] == "2024-05-01"
        assert outcome.records[0].to_dict()["city"] == "tamilnadu"
