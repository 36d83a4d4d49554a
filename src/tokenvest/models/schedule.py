"""
Vesting schedule engine: one deterministic implementation of the unlock math.

Core rules:
- Month 0 releases the TGE share (`tge_percentage` of the category) and is
  always emitted, even when that share is zero.
- Linear release starts at `month = cliff_months` (inclusive) and runs for
  `vesting_months` equal monthly increments of the post-TGE remainder.
  With `cliff_months = 0` the first increment stacks with the TGE unlock.
- With `vesting_months = 0` the remainder is never released linearly.
- Accumulation is done on unrounded values; rounding to `round_digits`
  happens only when results leave the engine.

Everything here is pure: no I/O, no shared state, identical inputs give
identical outputs.
"""

import logging
import math
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from pydantic import ValidationError

from .allocation import AllocationValidator, is_number
from .errors import InvalidAllocation, InvalidPolicy
from .pydantic_models import (
    AllocationEntry,
    CategorySummary,
    ProjectScheduleRow,
    UnlockPoint,
    VestingPolicy,
)

logger = logging.getLogger(__name__)

# Wide enough that quantize never overflows for any finite float
_ROUNDING = Context(prec=400, rounding=ROUND_HALF_UP)

UNLOCK_POINT_COLUMNS = ["month", "unlocked_this_month", "cumulative_unlocked", "cumulative_percentage"]
PROJECT_TOTAL_COLUMNS = ["total_unlocked_this_month", "total_cumulative_unlocked", "cumulative_percentage"]


# -----------------------------
# Input coercion
# -----------------------------

def coerce_policy(policy: Any, category: Optional[str] = None) -> VestingPolicy:
    """Turn a VestingPolicy, pydantic model or plain mapping into a VestingPolicy.

    Raises:
        InvalidPolicy: naming the category and the first offending field.
    """
    if isinstance(policy, VestingPolicy):
        return policy
    if hasattr(policy, "model_dump"):
        policy = policy.model_dump()
    if not isinstance(policy, Mapping):
        raise InvalidPolicy(category, "policy", policy, "expected a VestingPolicy or a mapping")
    try:
        return VestingPolicy.model_validate(policy)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "policy"
        raise InvalidPolicy(category, field, first.get("input"), first["msg"]) from exc


def _check_months(value: Any, category: Optional[str], field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < 0:
        raise InvalidPolicy(category, field, value, "must be a non-negative integer")
    return int(value)


def _check_amount(value: Any, category: Optional[str], field: str = "amount") -> float:
    if not is_number(value) or not math.isfinite(value):
        raise InvalidAllocation(category, field, value, "must be a finite number")
    return float(value)


def _allocated_amounts(allocation: Mapping, total_supply: float) -> Dict[str, float]:
    """Category -> amount, always re-derived from percentage and total supply."""
    amounts: Dict[str, float] = {}
    for category, entry in allocation.items():
        if isinstance(entry, AllocationEntry):
            if entry.category != category:
                raise InvalidAllocation(category, "category", entry.category, "key does not match entry category")
            percentage = entry.percentage
        elif isinstance(entry, Mapping):
            percentage = entry.get("percentage")
        else:
            percentage = entry
        percentage = _check_amount(percentage, category, "percentage")
        if not 0 <= percentage <= 100:
            raise InvalidAllocation(category, "percentage", percentage, "must be within [0, 100]")
        amounts[category] = percentage / 100.0 * total_supply
    return amounts


# -----------------------------
# Engine
# -----------------------------

class VestingScheduleEngine:
    """Computes per-category and project-wide unlock schedules.

    Attributes:
        round_digits: Decimal places applied to every amount and percentage
            returned to callers.
        validator: Allocation validator used to gate project schedules.
    """

    def __init__(self, round_digits: int = 2, validator: Optional[AllocationValidator] = None):
        self.round_digits = round_digits
        self.validator = validator or AllocationValidator()

    def _round(self, value: float) -> float:
        """Half-up rounding of the exact binary value, as toFixed does (0.125 -> 0.13)."""
        exponent = Decimal(1).scaleb(-self.round_digits)
        rounded = Decimal(float(value)).quantize(exponent, context=_ROUNDING)
        # + 0.0 folds -0.0 into 0.0
        return float(rounded) + 0.0

    @staticmethod
    def _category_series(amount: float, policy: VestingPolicy, horizon: int) -> Tuple[np.ndarray, np.ndarray]:
        """Unrounded (unlocked_this_month, cumulative_unlocked) for months 0..horizon."""
        months = np.arange(horizon + 1)
        tge_amount = amount * policy.tge_percentage / 100.0
        remainder = amount - tge_amount

        unlocked = np.zeros(horizon + 1, dtype=float)
        unlocked[0] = tge_amount
        if policy.vesting_months > 0:
            monthly_amount = remainder / policy.vesting_months
            in_window = (months >= policy.cliff_months) & (months < policy.fully_vested_month)
            unlocked[in_window] += monthly_amount

        cumulative = np.cumsum(unlocked)
        if policy.vesting_months > 0:
            # fully vested from the last linear month on
            cumulative[months >= policy.fully_vested_month - 1] = amount
        return unlocked, cumulative

    def compute_category_schedule(
        self,
        total_category_amount: float,
        policy: Any,
        horizon_months: Optional[int] = None,
        category: Optional[str] = None,
    ) -> List[UnlockPoint]:
        """Compute the unlock series of one category.

        Args:
            total_category_amount: Tokens allocated to the category.
            policy: VestingPolicy (or a mapping with the same fields).
            horizon_months: Last month to emit. Defaults to
                `cliff_months + vesting_months`.
            category: Name used in error messages.

        Returns:
            One UnlockPoint per month from 0 through the horizon, inclusive.

        Raises:
            InvalidPolicy: if a policy field or the horizon is malformed.
            InvalidAllocation: if the amount is not a finite number.
        """
        policy = coerce_policy(policy, category)
        amount = _check_amount(total_category_amount, category)
        if horizon_months is None:
            horizon = max(0, policy.fully_vested_month)
        else:
            horizon = _check_months(horizon_months, category, "horizon_months")

        unlocked, cumulative = self._category_series(amount, policy, horizon)
        if amount != 0:
            percentages = cumulative / amount * 100.0
        else:
            percentages = np.zeros_like(cumulative)

        return [
            UnlockPoint(
                month=month,
                unlocked_this_month=self._round(unlocked[month]),
                cumulative_unlocked=self._round(cumulative[month]),
                cumulative_percentage=self._round(percentages[month]),
            )
            for month in range(horizon + 1)
        ]

    def compute_project_schedule(
        self,
        allocation: Mapping,
        policies: Mapping,
        total_supply: float,
        strict: bool = True,
    ) -> List[ProjectScheduleRow]:
        """Aggregate every category into one row per month.

        Categories without a policy unlock in full at month 0. Policies
        without a matching allocation entry are ignored. The horizon is the
        latest `cliff_months + vesting_months` among allocated categories.

        With `strict` (the default) the allocation must pass the
        AllocationValidator first; pass `strict=False` to preview drafts.
        """
        total_supply = _check_amount(total_supply, None, "total_supply")
        if strict:
            self.validator.validate(allocation).raise_for_status()
        amounts = _allocated_amounts(allocation, total_supply)

        resolved: Dict[str, Optional[VestingPolicy]] = {}
        for category in amounts:
            if category in policies:
                resolved[category] = coerce_policy(policies[category], category)
            else:
                logger.debug("category %r has no vesting policy; unlocking in full at month 0", category)
                resolved[category] = None
        for category in policies:
            if category not in amounts:
                logger.debug("ignoring vesting policy for unallocated category %r", category)

        horizon = max((p.fully_vested_month for p in resolved.values() if p is not None), default=0)
        logger.debug("project horizon: %d months over %d categories", horizon, len(amounts))

        unlocked_by_category: Dict[str, np.ndarray] = {}
        cumulative_by_category: Dict[str, np.ndarray] = {}
        for category, amount in amounts.items():
            policy = resolved[category]
            if policy is None:
                unlocked = np.zeros(horizon + 1, dtype=float)
                unlocked[0] = amount
                cumulative = np.full(horizon + 1, amount, dtype=float)
            else:
                unlocked, cumulative = self._category_series(amount, policy, horizon)
            unlocked_by_category[category] = unlocked
            cumulative_by_category[category] = cumulative

        total_unlocked = np.zeros(horizon + 1, dtype=float)
        total_cumulative = np.zeros(horizon + 1, dtype=float)
        for category in amounts:
            total_unlocked += unlocked_by_category[category]
            total_cumulative += cumulative_by_category[category]
        if total_supply != 0:
            percentages = total_cumulative / total_supply * 100.0
        else:
            percentages = np.zeros_like(total_cumulative)

        return [
            ProjectScheduleRow(
                month=month,
                per_category_amounts={
                    category: self._round(cumulative_by_category[category][month]) for category in amounts
                },
                total_unlocked_this_month=self._round(total_unlocked[month]),
                total_cumulative_unlocked=self._round(total_cumulative[month]),
                cumulative_percentage=self._round(percentages[month]),
            )
            for month in range(horizon + 1)
        ]

    def summarize_category(self, category: str, total_category_amount: float, policy: Any) -> CategorySummary:
        """TGE amount, monthly increment and timing of one category."""
        policy = coerce_policy(policy, category)
        amount = _check_amount(total_category_amount, category)
        tge_amount = amount * policy.tge_percentage / 100.0
        monthly = (amount - tge_amount) / policy.vesting_months if policy.vesting_months > 0 else 0.0
        return CategorySummary(
            category=category,
            total_tokens=self._round(amount),
            tge_percentage=policy.tge_percentage,
            tge_amount=self._round(tge_amount),
            monthly_vesting=self._round(monthly),
            cliff_months=policy.cliff_months,
            vesting_months=policy.vesting_months,
            fully_vested_month=policy.fully_vested_month,
        )


# -----------------------------
# Tabular views
# -----------------------------

def schedule_to_frame(points: List[UnlockPoint]) -> pd.DataFrame:
    return pd.DataFrame([p.model_dump() for p in points], columns=UNLOCK_POINT_COLUMNS)


def project_schedule_to_frame(rows: List[ProjectScheduleRow]) -> pd.DataFrame:
    """One row per month: month, one cumulative column per category, then totals."""
    categories: List[str] = list(rows[0].per_category_amounts) if rows else []
    records = []
    for row in rows:
        record: Dict[str, Any] = {"month": row.month}
        record.update(row.per_category_amounts)
        record["total_unlocked_this_month"] = row.total_unlocked_this_month
        record["total_cumulative_unlocked"] = row.total_cumulative_unlocked
        record["cumulative_percentage"] = row.cumulative_percentage
        records.append(record)
    return pd.DataFrame(records, columns=["month", *categories, *PROJECT_TOTAL_COLUMNS])


default_engine = VestingScheduleEngine()

compute_category_schedule = default_engine.compute_category_schedule
compute_project_schedule = default_engine.compute_project_schedule
summarize_category = default_engine.summarize_category
