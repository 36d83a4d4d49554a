from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from tokenvest.config import load_settings
from tokenvest.models import (
    CategorySummary,
    ProjectScheduleRow,
    TokenomicsConfig,
    UnlockPoint,
    ValidationResult,
    VestingError,
    VestingScheduleEngine,
    validate_allocation,
)
from tokenvest.models.schedule import coerce_policy
from tokenvest.web.charts import render_allocation_chart, render_project_chart

logger = logging.getLogger(__name__)

settings = load_settings()
engine = VestingScheduleEngine(round_digits=settings.round_digits)

app = FastAPI(title="Token Vesting Schedules")


class CategoryScheduleRequest(BaseModel):
    amount: float = Field(..., description="Tokens allocated to the category")
    # Left untyped so the engine reports malformed fields as InvalidPolicy
    policy: Dict[str, Any]
    horizon_months: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None


class CategoryScheduleResponse(BaseModel):
    category: Optional[str]
    summary: CategorySummary
    points: List[UnlockPoint]


class ProjectScheduleResponse(BaseModel):
    horizon_months: int
    categories: List[str]
    summaries: List[CategorySummary]
    unallocated_policies: List[str]
    rows: List[ProjectScheduleRow]


@app.exception_handler(VestingError)
async def vesting_error_handler(request: Request, exc: VestingError) -> JSONResponse:
    logger.warning("rejected %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "category": exc.category, "field": exc.field},
    )


def _check_horizon(horizon: int) -> None:
    if horizon > settings.max_horizon_months:
        logger.info("horizon %d exceeds limit %d", horizon, settings.max_horizon_months)
        raise HTTPException(
            status_code=422,
            detail=f"Horizon of {horizon} months exceeds the limit of {settings.max_horizon_months}",
        )


def _project_horizon(config: TokenomicsConfig) -> int:
    return max(
        (p.fully_vested_month for c, p in config.vesting.items() if c in config.allocation),
        default=0,
    )


@app.post("/api/allocation/validate", response_model=ValidationResult)
async def validate(entries: Dict[str, Any]) -> ValidationResult:
    # Invalid allocations are data, not errors: always 200
    return validate_allocation(entries)


@app.post("/api/schedule/category", response_model=CategoryScheduleResponse)
async def category_schedule(body: CategoryScheduleRequest) -> CategoryScheduleResponse:
    policy = coerce_policy(body.policy, body.category)
    horizon = body.horizon_months if body.horizon_months is not None else policy.fully_vested_month
    _check_horizon(horizon)
    points = engine.compute_category_schedule(body.amount, policy, horizon, category=body.category)
    summary = engine.summarize_category(body.category or "category", body.amount, policy)
    return CategoryScheduleResponse(category=body.category, summary=summary, points=points)


@app.post("/api/schedule/project", response_model=ProjectScheduleResponse)
async def project_schedule(config: TokenomicsConfig) -> ProjectScheduleResponse:
    _check_horizon(_project_horizon(config))
    entries = config.allocation_entries()
    rows = config.project_schedule(engine)
    summaries = [
        engine.summarize_category(category, entries[category].amount, policy)
        for category, policy in config.vesting.items()
        if category in entries
    ]
    return ProjectScheduleResponse(
        horizon_months=rows[-1].month,
        categories=list(entries),
        summaries=summaries,
        unallocated_policies=config.unallocated_policies(),
        rows=rows,
    )


@app.post("/chart/project")
async def project_chart(config: TokenomicsConfig) -> Dict[str, str]:
    _check_horizon(_project_horizon(config))
    rows = config.project_schedule(engine)
    title = f"{config.token_symbol} cumulative unlocks"
    return {"chart_data_uri": render_project_chart(rows, title=title)}


@app.post("/chart/allocation")
async def allocation_chart(config: TokenomicsConfig) -> Dict[str, str]:
    title = f"{config.token_symbol} allocation"
    return {"chart_data_uri": render_allocation_chart(config.allocation_entries(), title=title)}
