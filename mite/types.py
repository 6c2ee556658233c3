"""
Shared types and allow-lists for the mite client.
"""
from __future__ import annotations
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from mite.exceptions import MiteError

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD")

# Methods whose parameters travel in the query string
QUERY_METHODS = ("GET", "DELETE")

TIME_ENTRY_FILTERS = (
    "customer_id",
    "project_id",
    "service_id",
    "user_id",
    "billable",
    "note",
    "at",
    "from",
    "to",
)

TIME_ENTRY_GROUPING = (
    "customer",
    "project",
    "service",
    "user",
    "day",
    "week",
    "month",
    "year",
)

AT_KEYWORDS = ("yesterday", "today", "last_week", "this_month", "last_month")

ACTIVE_HOURLY_RATES = ("hourly_rate", "hourly_rates_per_service")

BUDGET_TYPES = ("minutes", "cent")


class Outcome(BaseModel):
    """Result of one API exchange: either data or the error it failed with."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    ok: bool
    data: Any = None
    error: Optional[MiteError] = None

    @classmethod
    def success(cls, data: Any = True) -> "Outcome":
        """Create a success outcome."""
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error: MiteError) -> "Outcome":
        """Create a failed outcome."""
        return cls(ok=False, error=error)

    @property
    def code(self) -> Optional[int]:
        """Error code of a failed outcome, None on success."""
        if self.error is None:
            return None
        return self.error.code

    def unwrap(self) -> Any:
        """Return the data or raise the error."""
        if self.ok:
            return self.data
        if self.error is None:
            raise MiteError("Failed outcome without an error")
        raise self.error
