from typing import Dict, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .errors import InvalidAllocation


class AllocationEntry(BaseModel):
    """One category's share of total supply.

    `amount` is derived from `percentage` and the project's total supply;
    build entries with `from_percentage` (or `reconcile` an existing one)
    rather than editing the amount directly.
    """

    model_config = ConfigDict(frozen=True)

    category: str = Field(..., min_length=1, description="Category key (e.g., team, marketing)")
    percentage: float = Field(..., ge=0, le=100, allow_inf_nan=False, description="Share of total supply in percent")
    amount: float = Field(..., ge=0, allow_inf_nan=False, description="Tokens allocated to this category")

    @classmethod
    def from_percentage(cls, category: str, percentage: float, total_supply: float) -> "AllocationEntry":
        return cls(category=category, percentage=percentage, amount=percentage / 100.0 * total_supply)

    def reconcile(self, total_supply: float) -> "AllocationEntry":
        """Return a copy whose amount matches `percentage` of `total_supply`."""
        return self.model_copy(update={"amount": self.percentage / 100.0 * total_supply})


class VestingPolicy(BaseModel):
    """Release rule for one category.

    A genesis (TGE) unlock at month 0, followed by a cliff and then equal
    monthly increments of the remainder over `vesting_months`.
    A `tge_percentage` above 100 is accepted here and computed as given;
    TokenomicsConfig is where authored policies are capped at 100.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    # Strict: booleans and numeric strings are malformed input, not 1 / 12
    tge_percentage: float = Field(
        ...,
        ge=0,
        strict=True,
        allow_inf_nan=False,
        validation_alias=AliasChoices("tge_percentage", "tgePercentage"),
        description="Percent of the category unlocked at month 0",
    )
    cliff_months: int = Field(
        ...,
        ge=0,
        strict=True,
        validation_alias=AliasChoices("cliff_months", "cliffMonths"),
        description="Months after genesis before linear release starts",
    )
    vesting_months: int = Field(
        ...,
        ge=0,
        strict=True,
        validation_alias=AliasChoices("vesting_months", "vestingMonths"),
        description="Months over which the post-TGE remainder unlocks linearly",
    )

    @property
    def fully_vested_month(self) -> int:
        return self.cliff_months + self.vesting_months


class UnlockPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=0)
    unlocked_this_month: float
    cumulative_unlocked: float
    cumulative_percentage: float


class ProjectScheduleRow(BaseModel):
    """Project-wide totals for a single month.

    `per_category_amounts` holds each category's cumulative unlocked
    amount, in allocation order.
    """

    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=0)
    per_category_amounts: Dict[str, float]
    total_unlocked_this_month: float
    total_cumulative_unlocked: float
    cumulative_percentage: float


class CategorySummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    total_tokens: float
    tge_percentage: float
    tge_amount: float
    monthly_vesting: float
    cliff_months: int
    vesting_months: int
    fully_vested_month: int


class ValidationResult(BaseModel):
    """Outcome of an allocation check, returned instead of raised."""

    ok: bool
    total: float
    errors: List[str] = Field(default_factory=list)

    @property
    def message(self) -> str:
        if self.ok:
            return "Allocation is valid"
        return "; ".join(self.errors) or f"Invalid allocation (current total: {self.total:.2f}%)"

    def raise_for_status(self) -> "ValidationResult":
        if not self.ok:
            raise InvalidAllocation(None, "percentage", self.total, self.message)
        return self
