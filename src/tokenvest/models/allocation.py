"""Allocation checks shared by the engine and every authoring surface."""

import logging
import math
import numbers
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Optional, Union

from .errors import InvalidAllocation
from .pydantic_models import AllocationEntry, ValidationResult

logger = logging.getLogger(__name__)

ALLOCATION_TOLERANCE = 0.01


def is_number(value: Any) -> bool:
    """Real numbers, numpy scalars included; booleans excluded."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _percentage_of(value: Any) -> Any:
    # Accept bare numbers, AllocationEntry models and {"percentage": ...} dicts
    if hasattr(value, "percentage"):
        return value.percentage
    if isinstance(value, Mapping):
        return value.get("percentage")
    return value


class AllocationValidator:
    """Checks that named percentage allocations are well-formed and sum to 100."""

    def __init__(self, tolerance: float = ALLOCATION_TOLERANCE):
        self.tolerance = tolerance

    def validate(self, entries: Mapping) -> ValidationResult:
        """Validate a mapping of category -> percentage.

        Never raises for bad data: problems are reported in the returned
        `ValidationResult` together with the observed total, so forms can
        show "current total: X%" inline.
        """
        errors = []
        total = 0.0
        for category, raw in entries.items():
            percentage = _percentage_of(raw)
            if not is_number(percentage):
                errors.append(f"{category}: percentage must be a number, got {percentage!r}")
                continue
            if not math.isfinite(percentage):
                errors.append(f"{category}: percentage must be finite")
                continue
            if percentage < 0:
                errors.append(f"{category}: percentage cannot be negative")
            elif percentage > 100:
                errors.append(f"{category}: percentage cannot be more than 100")
            total += float(percentage)

        if abs(total - 100.0) > self.tolerance:
            errors.append(f"Total allocation must be 100% (current total: {total:.2f}%)")

        result = ValidationResult(ok=not errors, total=total, errors=errors)
        if not result.ok:
            logger.debug("allocation rejected: %s", result.message)
        return result


_default_validator = AllocationValidator()


def validate_allocation(entries: Mapping) -> ValidationResult:
    return _default_validator.validate(entries)


def build_allocation(
    entries: Union[Iterable[AllocationEntry], Mapping[str, float]],
    total_supply: Optional[float] = None,
) -> Dict[str, AllocationEntry]:
    """Build an ordered category -> AllocationEntry mapping.

    `entries` is either an iterable of AllocationEntry objects or a mapping
    of category -> percentage (which requires `total_supply`). Duplicate
    categories raise InvalidAllocation. When `total_supply` is given every
    amount is recomputed from its percentage.
    """
    if isinstance(entries, Mapping):
        if total_supply is None:
            raise InvalidAllocation(None, "total_supply", None, "required when building from percentages")
        items = [_entry_from_percentage(category, value, total_supply) for category, value in entries.items()]
    else:
        items = list(entries)

    allocation: Dict[str, AllocationEntry] = {}
    for entry in items:
        if entry.category in allocation:
            raise InvalidAllocation(entry.category, "category", entry.category, "duplicate category")
        allocation[entry.category] = entry.reconcile(total_supply) if total_supply is not None else entry
    return allocation


def reconcile_amounts(allocation: Mapping[str, AllocationEntry], total_supply: float) -> Dict[str, AllocationEntry]:
    return {category: entry.reconcile(total_supply) for category, entry in allocation.items()}


def _entry_from_percentage(category: str, value: Any, total_supply: float) -> AllocationEntry:
    percentage = _percentage_of(value)
    if is_number(percentage):
        percentage = float(percentage)
    try:
        return AllocationEntry.from_percentage(category, percentage, total_supply)
    except (TypeError, ValueError) as exc:
        raise InvalidAllocation(category, "percentage", percentage, str(exc).splitlines()[0]) from exc
