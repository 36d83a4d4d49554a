import logging

from tokenvest.models import TokenomicsConfig, VestingPolicy, project_schedule_to_frame, validate_allocation


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    allocation = {
        "team": 20.0,
        "investors": 15.0,
        "marketing": 10.0,
        "liquidity": 15.0,
        "treasury": 25.0,
        "community": 15.0,
    }
    result = validate_allocation(allocation)
    if not result.ok:
        raise SystemExit(result.message)

    config = TokenomicsConfig(
        name="Demo",
        token_name="Demo Token",
        token_symbol="DEMO",
        total_supply=100_000_000.0,      # tokens split by the allocation
        max_supply=100_000_000.0,
        initial_price=0.05,              # quote per token at listing
        allocation=allocation,
        vesting={
            "team": VestingPolicy(tge_percentage=0, cliff_months=12, vesting_months=24),
            "investors": VestingPolicy(tge_percentage=10, cliff_months=6, vesting_months=18),
            "marketing": VestingPolicy(tge_percentage=25, cliff_months=0, vesting_months=12),
            "treasury": VestingPolicy(tge_percentage=5, cliff_months=3, vesting_months=36),
            "community": VestingPolicy(tge_percentage=20, cliff_months=0, vesting_months=24),
            # liquidity has no policy: fully unlocked at TGE
        },
    )

    df = project_schedule_to_frame(config.project_schedule())

    print(df.to_string(index=False))
