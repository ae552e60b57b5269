"""Tests for email rendering."""

from datetime import date, datetime
from decimal import Decimal

from vegtracker.detect.weekly_report import ComparisonItem
from vegtracker.notify.formatters import (
    PLACEHOLDER_IMAGE,
    describe_change,
    format_amount,
    render_price_alert,
    render_weekly_report,
)


def test_format_amount():
    assert format_amount(Decimal("100.00")) == "100"
    assert format_amount(Decimal("99.50")) == "99.5"
    assert format_amount(120) == "120"
    assert format_amount(None) == "-"


def test_describe_change():
    up = describe_change(Decimal("120"), Decimal("100"))
    assert (up.arrow, up.text) == ("▲", "20.0%")

    down = describe_change(Decimal("80"), Decimal("100"))
    assert (down.arrow, down.text) == ("▼", "20.0%")

    assert describe_change(Decimal("100"), Decimal("100")).text == "0.0%"
    assert describe_change(Decimal("100"), None).text == "N/A"


class TestPriceAlert:
    def test_contains_name_prices_and_percentage(self):
        html = render_price_alert(
            vegetable="Tomato",
            current_price=Decimal("120"),
            reference_price=Decimal("100.00"),
            label="15 day Average Price",
            generated_at=datetime(2024, 5, 10, 9, 5),
        )

        assert "Tomato" in html
        assert "20.0%" in html
        assert "&#8377;120<" in html
        assert "&#8377;100<" in html
        assert "15 day Average Price" in html
        assert "INCREASED" in html
        assert "9:05 AM" in html

    def test_drop_theme(self):
        html = render_price_alert("Onion", 80, 100, is_increase=False)

        assert "DROPPED" in html
        assert "below the" in html

    def test_escapes_names(self):
        html = render_price_alert("<b>Leek</b>", 120, 100)

        assert "<b>Leek</b>" not in html
        assert "&lt;b&gt;Leek&lt;/b&gt;" in html


class TestWeeklyReport:
    def test_rows_and_period(self):
        items = [
            ComparisonItem("Carrot", Decimal("40"), Decimal("50"), Decimal("45"), None),
            ComparisonItem(
                "Beans", Decimal("63"), Decimal("60"), Decimal("61.5"), "https://img.test/b.png"
            ),
        ]

        html = render_weekly_report(date(2024, 5, 1), date(2024, 5, 13), items)

        assert "May 01 - May 13, 2024" in html
        assert html.index("Carrot") < html.index("Beans")
        assert "&#8377;50.00" in html
        assert "&#8377;40.00" in html
        assert PLACEHOLDER_IMAGE in html
        assert "https://img.test/b.png" in html

    def test_empty_rows_still_render(self):
        html = render_weekly_report(date(2024, 5, 1), date(2024, 5, 13), [])
        assert "<tbody>" in html
