"""Policy module — typed access to dashboard configuration."""

from safetyboard.policy.resolver import ClampRange, DashboardPolicy, TickerPolicy

__all__ = [
    "ClampRange",
    "DashboardPolicy",
    "TickerPolicy",
]
