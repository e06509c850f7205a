from __future__ import annotations


class LeaderboardError(Exception):
    """Base class for errors raised by the aggregation services."""


class ValidationError(LeaderboardError):
    """Bad client input. Routes answer these with 422."""

    def __init__(self, message: str, **extra: object) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra


class InvalidPeriodError(ValidationError):
    def __init__(self, period: str, valid_tokens: tuple[str, ...]) -> None:
        super().__init__(
            "Invalid period parameter. Valid values: " + ", ".join(valid_tokens),
            valid_periods=list(valid_tokens),
        )
        self.period = period
        self.valid_tokens = valid_tokens


class DateRangeError(ValidationError):
    pass


class AggregationCancelled(LeaderboardError):
    pass
