"""HTML email renderers for price alerts and the periodic digest.

Templates live next to this module and are rendered with Jinja2.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from vegtracker.config import settings

if TYPE_CHECKING:
    from vegtracker.detect.weekly_report import ComparisonItem

TEMPLATES_DIR = Path(__file__).parent / "templates"
PLACEHOLDER_IMAGE = "https://via.placeholder.com/40"

Number = Union[int, float, Decimal]

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


@dataclass(frozen=True)
class PriceChange:
    """Badge presentation of a price change."""

    text: str
    color: str
    arrow: str
    bg_color: str


_INCREASE_THEME = {
    "color": "#EF4444",
    "bg_color": "#FEF2F2",
    "arrow": "▲",
    "icon": "⚠️",
    "action": "INCREASED",
    "title": "Price Increase",
    "verb": "increased",
    "direction": "above",
    "badge": "Increase",
}

_DROP_THEME = {
    "color": "#10B981",
    "bg_color": "#ECFDF5",
    "arrow": "▼",
    "icon": "📉",
    "action": "DROPPED",
    "title": "Price Drop",
    "verb": "dropped",
    "direction": "below",
    "badge": "Drop",
}


def format_amount(value: Optional[Number]) -> str:
    """Format a price without trailing zeros (100.00 -> "100", 99.50 -> "99.5")."""
    if value is None:
        return "-"
    text = f"{Decimal(str(value)).quantize(Decimal('0.01')):.2f}"
    return text.rstrip("0").rstrip(".")


def format_fixed(value: Optional[Number]) -> str:
    """Format a price with exactly two decimals."""
    if value is None:
        return "-"
    return f"{Decimal(str(value)):.2f}"


def percent_change(current: Number, reference: Number) -> Decimal:
    """Absolute change of current relative to reference, in percent."""
    reference = Decimal(str(reference))
    if reference == 0:
        return Decimal("0")
    return abs(Decimal(str(current)) - reference) / reference * 100


def describe_change(current: Number, reference: Optional[Number]) -> PriceChange:
    """
    Describe how current compares to reference for a badge.

    Returns:
        PriceChange with percent text, colors and arrow
    """
    if not reference:
        return PriceChange(text="N/A", color="gray", arrow="", bg_color="transparent")

    diff = Decimal(str(current)) - Decimal(str(reference))
    percent = percent_change(current, reference)

    if diff > 0:
        return PriceChange(
            text=f"{percent:.1f}%", color="#d32f2f", arrow="▲", bg_color="#ffebee"
        )
    if diff < 0:
        return PriceChange(
            text=f"{percent:.1f}%", color="#388e3c", arrow="▼", bg_color="#e8f5e9"
        )
    return PriceChange(text="0.0%", color="#757575", arrow="-", bg_color="transparent")


def render_price_alert(
    vegetable: str,
    current_price: Number,
    reference_price: Number,
    is_increase: bool = True,
    label: str = "60 day Average Price",
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Render the single-vegetable price alert email.

    Args:
        vegetable: Vegetable name
        current_price: Today's price
        reference_price: Average the price is compared against
        is_increase: Increase (red) or drop (green) presentation
        label: Description of the reference window
        generated_at: Timestamp shown in the footer (defaults to now)

    Returns:
        Complete HTML document
    """
    generated_at = generated_at or datetime.now()
    percent = percent_change(current_price, reference_price)

    template = _env.get_template("price_alert.html")
    return template.render(
        vegetable=vegetable,
        current_price=format_amount(current_price),
        reference_price=format_amount(reference_price),
        percent=f"{percent:.1f}",
        is_increase=is_increase,
        theme=_INCREASE_THEME if is_increase else _DROP_THEME,
        label=label,
        generated_at=generated_at.strftime("%I:%M %p").lstrip("0"),
        team_name=settings.report_team_name,
        contact_email=settings.report_contact_email,
    )


def render_weekly_report(
    start_date: date,
    end_date: date,
    items: Sequence["ComparisonItem"],
) -> str:
    """
    Render the digest email listing every vegetable whose price moved.

    The badge compares each current price with its average over the period.

    Args:
        start_date: Comparison date
        end_date: Latest date in the store
        items: Comparison rows, already sorted

    Returns:
        Complete HTML document
    """
    rows = [
        {
            "name": item.name,
            "image": item.image,
            "price": format_fixed(item.price),
            "prev_price": format_fixed(item.prev_price),
            "change": describe_change(item.price, item.avg_price),
        }
        for item in items
    ]

    template = _env.get_template("weekly_report.html")
    return template.render(
        rows=rows,
        start_label=start_date.strftime("%b %d"),
        end_label=end_date.strftime("%b %d"),
        end_label_full=end_date.strftime("%b %d, %Y"),
        placeholder_image=PLACEHOLDER_IMAGE,
        team_name=settings.report_team_name,
        contact_email=settings.report_contact_email,
    )
