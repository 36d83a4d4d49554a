import math

import numpy as np
import pytest

from tokenvest.models import (
    InvalidAllocation,
    InvalidPolicy,
    VestingPolicy,
    VestingScheduleEngine,
    compute_category_schedule,
    schedule_to_frame,
    summarize_category,
)


def _cumulative(points):
    return [p.cumulative_unlocked for p in points]


def test_tge_cliff_then_linear():
    policy = VestingPolicy(tge_percentage=10, cliff_months=6, vesting_months=12)
    points = compute_category_schedule(1_000_000, policy)

    assert [p.month for p in points] == list(range(19))
    assert points[0].unlocked_this_month == 100_000
    assert points[0].cumulative_unlocked == 100_000
    for month in range(1, 6):
        assert points[month].unlocked_this_month == 0
        assert points[month].cumulative_unlocked == 100_000
    for month in range(6, 18):
        assert points[month].unlocked_this_month == 75_000
    assert points[6].cumulative_unlocked == 175_000
    assert points[17].cumulative_unlocked == 1_000_000
    assert points[18].unlocked_this_month == 0
    assert points[18].cumulative_unlocked == 1_000_000
    assert points[18].cumulative_percentage == 100


def test_full_tge_unlock_is_a_single_point():
    policy = VestingPolicy(tge_percentage=100, cliff_months=0, vesting_months=0)
    points = compute_category_schedule(1_000_000, policy)

    assert len(points) == 1
    assert points[0].month == 0
    assert points[0].unlocked_this_month == 1_000_000
    assert points[0].cumulative_unlocked == 1_000_000
    assert points[0].cumulative_percentage == 100


def test_zero_cliff_stacks_first_increment_on_tge():
    policy = VestingPolicy(tge_percentage=10, cliff_months=0, vesting_months=12)
    points = compute_category_schedule(1_200, policy)

    assert len(points) == 13
    assert points[0].unlocked_this_month == 120 + 90
    assert points[1].unlocked_this_month == 90
    assert points[11].unlocked_this_month == 90
    assert points[11].cumulative_unlocked == 1_200
    assert points[12].unlocked_this_month == 0


def test_linear_release_starts_at_cliff_month():
    policy = VestingPolicy(tge_percentage=0, cliff_months=3, vesting_months=2)
    points = compute_category_schedule(100, policy)

    assert [p.unlocked_this_month for p in points] == [0, 0, 0, 50, 50, 0]
    assert _cumulative(points) == [0, 0, 0, 50, 100, 100]


def test_month_zero_is_emitted_without_tge():
    policy = VestingPolicy(tge_percentage=0, cliff_months=12, vesting_months=12)
    points = compute_category_schedule(500, policy)
    assert points[0].month == 0
    assert points[0].unlocked_this_month == 0
    assert points[0].cumulative_unlocked == 0


@pytest.mark.parametrize(
    "policy",
    [
        VestingPolicy(tge_percentage=10, cliff_months=6, vesting_months=12),
        VestingPolicy(tge_percentage=0, cliff_months=0, vesting_months=7),
        VestingPolicy(tge_percentage=33.3, cliff_months=1, vesting_months=36),
        VestingPolicy(tge_percentage=100, cliff_months=4, vesting_months=0),
    ],
)
def test_final_point_is_fully_vested_and_cumulative_never_decreases(policy):
    points = compute_category_schedule(987_654.321, policy)
    cumulative = _cumulative(points)
    assert all(b >= a for a, b in zip(cumulative, cumulative[1:]))
    assert cumulative[-1] == pytest.approx(987_654.321, abs=0.01)
    assert points[-1].cumulative_percentage == pytest.approx(100)


def test_identical_inputs_give_identical_output():
    policy = VestingPolicy(tge_percentage=7.5, cliff_months=2, vesting_months=9)
    first = compute_category_schedule(123_456.789, policy, 15)
    second = compute_category_schedule(123_456.789, policy, 15)
    assert first == second
    assert [p.model_dump() for p in first] == [p.model_dump() for p in second]


def test_outputs_are_rounded_but_accumulation_is_not():
    policy = VestingPolicy(tge_percentage=0, cliff_months=0, vesting_months=3)
    points = compute_category_schedule(100, policy)

    assert [p.unlocked_this_month for p in points] == [33.33, 33.33, 33.33, 0]
    assert _cumulative(points) == [33.33, 66.67, 100, 100]
    assert points[1].cumulative_percentage == 66.67


def test_round_digits_is_configurable():
    engine = VestingScheduleEngine(round_digits=4)
    points = engine.compute_category_schedule(100, VestingPolicy(tge_percentage=0, cliff_months=0, vesting_months=3))
    assert points[0].unlocked_this_month == 33.3333


def test_zero_amount_gives_zero_schedule():
    points = compute_category_schedule(0, VestingPolicy(tge_percentage=20, cliff_months=2, vesting_months=4))
    assert len(points) == 7
    for point in points:
        assert point.unlocked_this_month == 0
        assert point.cumulative_unlocked == 0
        assert point.cumulative_percentage == 0


def test_no_linear_vesting_leaves_remainder_locked():
    policy = VestingPolicy(tge_percentage=50, cliff_months=3, vesting_months=0)
    points = compute_category_schedule(1_000, policy)

    assert len(points) == 4
    assert points[0].unlocked_this_month == 500
    assert _cumulative(points) == [500, 500, 500, 500]
    assert points[-1].cumulative_percentage == 50


def test_horizon_beyond_full_vesting_pins_cumulative():
    policy = VestingPolicy(tge_percentage=10, cliff_months=6, vesting_months=12)
    points = compute_category_schedule(1_000_000, policy, horizon_months=24)

    assert len(points) == 25
    for point in points[18:]:
        assert point.unlocked_this_month == 0
        assert point.cumulative_unlocked == 1_000_000


def test_horizon_shorter_than_vesting_truncates():
    policy = VestingPolicy(tge_percentage=10, cliff_months=6, vesting_months=12)
    points = compute_category_schedule(1_000_000, policy, horizon_months=8)

    assert len(points) == 9
    assert points[-1].cumulative_unlocked == 325_000


def test_horizon_zero():
    points = compute_category_schedule(1_000, VestingPolicy(tge_percentage=10, cliff_months=0, vesting_months=10), 0)
    assert len(points) == 1
    assert points[0].unlocked_this_month == 100 + 90


def test_policy_mappings_are_accepted():
    snake = compute_category_schedule(1_000, {"tge_percentage": 10, "cliff_months": 1, "vesting_months": 3})
    camel = compute_category_schedule(1_000, {"tgePercentage": 10, "cliffMonths": 1, "vestingMonths": 3})
    assert snake == camel
    assert snake[-1].cumulative_unlocked == 1_000


def test_numpy_inputs_are_accepted():
    points = compute_category_schedule(np.float64(1_000), VestingPolicy(tge_percentage=0, cliff_months=0, vesting_months=4), np.int64(4))
    assert len(points) == 5


@pytest.mark.parametrize(
    "policy, field",
    [
        ({"tge_percentage": 10, "cliff_months": -1, "vesting_months": 12}, "cliff_months"),
        ({"tge_percentage": 10, "cliff_months": 1, "vesting_months": 2.5}, "vesting_months"),
        ({"tge_percentage": "lots", "cliff_months": 1, "vesting_months": 2}, "tge_percentage"),
        ({"tge_percentage": math.inf, "cliff_months": 1, "vesting_months": 2}, "tge_percentage"),
        ({"tge_percentage": True, "cliff_months": 1, "vesting_months": 2}, "tge_percentage"),
        ({"tge_percentage": 10, "cliff_months": True, "vesting_months": 2}, "cliff_months"),
        ({"tge_percentage": 10, "cliff_months": 1, "vesting_months": "12"}, "vesting_months"),
        ({"tge_percentage": 10, "cliff_months": 1, "vesting_months": 2, "vestng_months": 3}, "vestng_months"),
    ],
)
def test_malformed_policy_names_category_and_field(policy, field):
    with pytest.raises(InvalidPolicy) as excinfo:
        compute_category_schedule(1_000, policy, category="team")
    assert excinfo.value.category == "team"
    assert excinfo.value.field == field
    assert "team" in str(excinfo.value)


def test_non_mapping_policy_is_rejected():
    with pytest.raises(InvalidPolicy) as excinfo:
        compute_category_schedule(1_000, [10, 0, 12], category="team")
    assert excinfo.value.field == "policy"


def test_misspelled_policy_keys_are_rejected():
    with pytest.raises(InvalidPolicy) as excinfo:
        compute_category_schedule(1_000, {"tge": 10, "cliff": 6, "vesting": 12}, category="team")
    assert excinfo.value.category == "team"
    assert excinfo.value.field in {"tge_percentage", "cliff_months", "vesting_months", "tge", "cliff", "vesting"}


def test_policy_fields_are_required():
    with pytest.raises(InvalidPolicy) as excinfo:
        compute_category_schedule(1_000, {"tge_percentage": 10, "cliff_months": 6}, category="team")
    assert excinfo.value.field == "vesting_months"


def test_tge_overshoot_is_computed_not_clamped():
    points = compute_category_schedule(1_000, VestingPolicy(tge_percentage=120, cliff_months=0, vesting_months=0))
    assert len(points) == 1
    assert points[0].unlocked_this_month == 1_200
    assert points[0].cumulative_percentage == 120

    points = compute_category_schedule(1_000, VestingPolicy(tge_percentage=120, cliff_months=1, vesting_months=2))
    assert [p.unlocked_this_month for p in points] == [1_200, -100, -100, 0]
    assert _cumulative(points) == [1_200, 1_100, 1_000, 1_000]


def test_rounding_is_half_up():
    points = compute_category_schedule(0.125, VestingPolicy(tge_percentage=100, cliff_months=0, vesting_months=0))
    assert points[0].unlocked_this_month == 0.13
    assert points[0].cumulative_unlocked == 0.13


@pytest.mark.parametrize("horizon", [-1, 2.0, True, "12"])
def test_malformed_horizon_is_rejected(horizon):
    with pytest.raises(InvalidPolicy) as excinfo:
        compute_category_schedule(1_000, VestingPolicy(tge_percentage=0, cliff_months=0, vesting_months=2), horizon, category="team")
    assert excinfo.value.field == "horizon_months"


@pytest.mark.parametrize("amount", [math.nan, math.inf, "1000", None])
def test_malformed_amount_is_rejected(amount):
    with pytest.raises(InvalidAllocation):
        compute_category_schedule(amount, VestingPolicy(tge_percentage=0, cliff_months=0, vesting_months=2), category="team")


def test_invalid_policy_is_a_value_error():
    with pytest.raises(ValueError):
        compute_category_schedule(1_000, {"cliff_months": -3})


def test_summarize_category():
    summary = summarize_category("team", 1_000_000, VestingPolicy(tge_percentage=10, cliff_months=6, vesting_months=12))
    assert summary.category == "team"
    assert summary.total_tokens == 1_000_000
    assert summary.tge_amount == 100_000
    assert summary.monthly_vesting == 75_000
    assert summary.fully_vested_month == 18


def test_summarize_category_without_linear_vesting():
    summary = summarize_category("liquidity", 500, VestingPolicy(tge_percentage=100, cliff_months=0, vesting_months=0))
    assert summary.tge_amount == 500
    assert summary.monthly_vesting == 0
    assert summary.fully_vested_month == 0


def test_schedule_to_frame():
    points = compute_category_schedule(1_000_000, VestingPolicy(tge_percentage=10, cliff_months=6, vesting_months=12))
    df = schedule_to_frame(points)
    assert list(df.columns) == ["month", "unlocked_this_month", "cumulative_unlocked", "cumulative_percentage"]
    assert len(df) == 19
    assert df["unlocked_this_month"].sum() == pytest.approx(1_000_000)
    assert df["cumulative_unlocked"].is_monotonic_increasing


def test_schedule_to_frame_empty():
    df = schedule_to_frame([])
    assert df.empty
    assert "cumulative_unlocked" in df.columns
