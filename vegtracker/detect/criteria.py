"""Alert criterion definitions."""

import json
import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

_INTERVAL_RE = re.compile(r"^\s*(\d+)\s*days?\s*$", re.IGNORECASE)


class CriteriaConfigError(ValueError):
    """Raised when the criteria configuration cannot be used."""
    pass


class CriterionType(str, Enum):
    """Ways a price increase is measured against its trailing average."""

    PERCENTAGE = "percentage"  # (price - avg) / avg * 100 >= threshold
    ABSOLUTE = "absolute"  # price - avg >= threshold


@dataclass(frozen=True)
class Criterion:
    """A configured alert rule: kind, threshold and look-back window."""

    name: str
    criterion_type: CriterionType
    threshold: Decimal
    interval_days: int

    @property
    def interval(self) -> str:
        return f"{self.interval_days} day"

    @property
    def label(self) -> str:
        """Human label of the comparison window used in alert emails."""
        return f"{self.interval} Average Price"

    def check(self, current_price: Decimal, average_price: Decimal) -> tuple[bool, str]:
        """
        Check if a price increase over the average triggers this criterion.

        Decreases and unchanged prices never trigger.

        Args:
            current_price: Today's wholesale price
            average_price: Trailing average over the look-back window

        Returns:
            Tuple of (triggered: bool, reason: str)
        """
        if average_price is None or average_price <= 0:
            return False, "No average price available"

        diff = current_price - average_price
        if diff <= 0:
            return False, "Price did not increase"

        if self.criterion_type == CriterionType.PERCENTAGE:
            percent_change = diff / average_price * 100
            if percent_change >= self.threshold:
                return True, f"+{percent_change:.1f}% over {self.label} ({average_price})"
            return False, f"+{percent_change:.1f}% below threshold {self.threshold}%"

        if self.criterion_type == CriterionType.ABSOLUTE:
            if diff >= self.threshold:
                return True, f"+{diff} over {self.label} ({average_price})"
            return False, f"+{diff} below threshold {self.threshold}"

        return False, "Criterion not triggered"

    def to_dict(self) -> dict:
        """Convert criterion to its configuration shape."""
        return {
            "name": self.name,
            "interval": self.interval,
            "type_value": self.criterion_type.value,
            "value": float(self.threshold),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Criterion":
        """
        Create criterion from a configuration entry.

        Raises:
            CriteriaConfigError: If a field is missing or malformed
        """
        if not isinstance(data, dict):
            raise CriteriaConfigError(f"Criterion must be an object, got {data!r}")

        name = data.get("name")
        if not name:
            raise CriteriaConfigError(f"Criterion without a name: {data!r}")

        match = _INTERVAL_RE.match(str(data.get("interval", "")))
        if not match:
            raise CriteriaConfigError(
                f"Criterion '{name}': interval must look like '<N> day', "
                f"got {data.get('interval')!r}"
            )

        try:
            criterion_type = CriterionType(data.get("type_value"))
        except ValueError as e:
            raise CriteriaConfigError(
                f"Criterion '{name}': unknown type_value {data.get('type_value')!r}"
            ) from e

        try:
            threshold = Decimal(str(data.get("value")))
        except (InvalidOperation, ValueError) as e:
            raise CriteriaConfigError(
                f"Criterion '{name}': value must be a number, got {data.get('value')!r}"
            ) from e
        if not threshold.is_finite():
            raise CriteriaConfigError(f"Criterion '{name}': value must be finite")

        return cls(
            name=str(name),
            criterion_type=criterion_type,
            threshold=threshold,
            interval_days=int(match.group(1)),
        )


def parse_criteria(entries: Any) -> list[Criterion]:
    """
    Parse a list of configuration entries, preserving order.

    Criterion names key alert results, so they must be unique.
    """
    if not isinstance(entries, list):
        raise CriteriaConfigError("Criteria configuration must be a list")

    criteria = [Criterion.from_dict(entry) for entry in entries]
    seen = set()
    for criterion in criteria:
        if criterion.name in seen:
            raise CriteriaConfigError(f"Duplicate criterion name '{criterion.name}'")
        seen.add(criterion.name)
    return criteria


def load_criteria(path: str | Path) -> list[Criterion]:
    """
    Load the ordered criteria list from a JSON file.

    Raises:
        CriteriaConfigError: If the file is missing or invalid
    """
    path = Path(path)
    try:
        entries = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise CriteriaConfigError(f"Criteria file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise CriteriaConfigError(f"Criteria file {path} is not valid JSON: {e}") from e

    criteria = parse_criteria(entries)
    logger.debug(f"Loaded {len(criteria)} alert criteria from {path}")
    return criteria


def select_criteria(
    criteria: list[Criterion],
    active_name: Optional[str] = None,
) -> list[Criterion]:
    """
    Pick the criteria an alert run should evaluate.

    Args:
        criteria: All configured criteria
        active_name: Restrict to this criterion name (None = all)

    Raises:
        CriteriaConfigError: If active_name matches nothing
    """
    if not active_name:
        return list(criteria)

    selected = [c for c in criteria if c.name == active_name]
    if not selected:
        raise CriteriaConfigError(f"No criterion named '{active_name}'")
    return selected
