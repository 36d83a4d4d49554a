from .errors import InvalidAllocation, InvalidPolicy, VestingError
from .pydantic_models import (
    AllocationEntry,
    CategorySummary,
    ProjectScheduleRow,
    UnlockPoint,
    ValidationResult,
    VestingPolicy,
)
from .allocation import AllocationValidator, build_allocation, reconcile_amounts, validate_allocation
from .schedule import (
    VestingScheduleEngine,
    compute_category_schedule,
    compute_project_schedule,
    project_schedule_to_frame,
    schedule_to_frame,
    summarize_category,
)
from .project import TokenomicsConfig


__all__ = [
    "AllocationEntry",
    "AllocationValidator",
    "CategorySummary",
    "InvalidAllocation",
    "InvalidPolicy",
    "ProjectScheduleRow",
    "TokenomicsConfig",
    "UnlockPoint",
    "ValidationResult",
    "VestingError",
    "VestingPolicy",
    "VestingScheduleEngine",
    "build_allocation",
    "compute_category_schedule",
    "compute_project_schedule",
    "project_schedule_to_frame",
    "reconcile_amounts",
    "schedule_to_frame",
    "summarize_category",
    "validate_allocation",
]
