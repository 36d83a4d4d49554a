from typing import Any, Optional


class VestingError(ValueError):
    """Base class for malformed allocation or vesting input."""

    def __init__(self, category: Optional[str], field: str, value: Any, reason: str = ""):
        self.category = category
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(self._render())

    def _render(self) -> str:
        where = f"category {self.category!r}" if self.category is not None else "unnamed category"
        text = f"{self.__class__.__name__}: {where}, field {self.field!r} = {self.value!r}"
        if self.reason:
            text += f" ({self.reason})"
        return text


class InvalidAllocation(VestingError):
    """Allocation percentages are out of range or do not sum to 100%."""


class InvalidPolicy(VestingError):
    """A vesting policy field is not a non-negative integer / finite number."""
