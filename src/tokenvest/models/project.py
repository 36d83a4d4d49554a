from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from .allocation import AllocationValidator, build_allocation
from .pydantic_models import AllocationEntry, ProjectScheduleRow, VestingPolicy
from .schedule import VestingScheduleEngine, default_engine


class TokenomicsConfig(BaseModel):
    """A project's token parameters, allocation split and vesting policies.

    `allocation` maps category -> percentage and must sum to 100; `vesting`
    maps the same category keys to release policies.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field("Untitled project", max_length=100, description="Project name")
    token_name: str = Field(
        "Token",
        min_length=2,
        max_length=50,
        validation_alias=AliasChoices("token_name", "tokenName"),
    )
    token_symbol: str = Field(
        "TKN",
        min_length=2,
        max_length=10,
        validation_alias=AliasChoices("token_symbol", "tokenSymbol"),
    )
    total_supply: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("total_supply", "totalSupply"),
        description="Total token supply split by the allocation",
    )
    max_supply: Optional[float] = Field(
        None,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("max_supply", "maxSupply"),
    )
    initial_price: float = Field(
        0.0,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("initial_price", "initialPrice"),
        description="Listing price in quote currency",
    )
    decimals: int = Field(18, ge=0, le=18)

    allocation: Dict[str, float] = Field(..., description="Category -> percentage of total supply")
    vesting: Dict[str, VestingPolicy] = Field(default_factory=dict, description="Category -> release policy")

    @model_validator(mode="after")
    def validate_supply_and_allocation(self):
        if self.max_supply is not None and self.max_supply < self.total_supply:
            raise ValueError(
                f"Max supply ({self.max_supply}) cannot be lower than total supply ({self.total_supply})"
            )
        result = AllocationValidator().validate(self.allocation)
        if not result.ok:
            raise ValueError(result.message)
        for category, policy in self.vesting.items():
            if policy.tge_percentage > 100:
                raise ValueError(
                    f"TGE percentage for {category} cannot be more than 100; got {policy.tge_percentage}"
                )
        return self

    def allocation_entries(self) -> Dict[str, AllocationEntry]:
        return build_allocation(self.allocation, self.total_supply)

    def unallocated_policies(self) -> List[str]:
        """Vesting keys with no allocation entry; the engine ignores these."""
        return [category for category in self.vesting if category not in self.allocation]

    def project_schedule(self, engine: Optional[VestingScheduleEngine] = None) -> List[ProjectScheduleRow]:
        engine = engine or default_engine
        return engine.compute_project_schedule(self.allocation_entries(), self.vesting, self.total_supply)
