"""
Dashboard Configuration

Unified configuration for the reconciliation dashboard.
Defaults match the event service's own defaults; every value can be
overridden through FLOW_DASHBOARD_* environment variables.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Optional
import logging
import os


ENV_PREFIX = "FLOW_DASHBOARD_"


@dataclass(frozen=True)
class ServiceConfig:
    """Where the event-persistence service lives."""
    base_url: str = "http://localhost:8585/api"
    timeout_seconds: float = 30.0
    user_agent: str = "FlowDashboard/1.0"


@dataclass(frozen=True)
class PaginationConfig:
    """
    Page sizes per stream.

    Constant for the life of a session; ordinal labels depend on it.
    """
    flow_page_size: int = 20
    timeline_page_size: int = 50
    poll_interval_seconds: float = 5.0

    def __post_init__(self):
        if self.flow_page_size < 1 or self.timeline_page_size < 1:
            raise ValueError("page sizes must be positive")


@dataclass
class DashboardConfig:
    """Unified configuration for the dashboard core."""
    service: ServiceConfig = None
    pagination: PaginationConfig = None
    log_level: str = "INFO"

    def __post_init__(self):
        self.service = self.service or ServiceConfig()
        self.pagination = self.pagination or PaginationConfig()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'DashboardConfig':
        env = os.environ if environ is None else environ
        service_defaults = ServiceConfig()
        page_defaults = PaginationConfig()

        def read(name: str, default):
            raw = env.get(ENV_PREFIX + name)
            if raw is None or raw == "":
                return default
            try:
                return type(default)(raw)
            except ValueError:
                logging.getLogger(__name__).warning(
                    "ignoring invalid %s%s=%r", ENV_PREFIX, name, raw
                )
                return default

        return cls(
            service=ServiceConfig(
                base_url=read("API_BASE", service_defaults.base_url).rstrip("/"),
                timeout_seconds=read("TIMEOUT", service_defaults.timeout_seconds),
                user_agent=read("USER_AGENT", service_defaults.user_agent),
            ),
            pagination=PaginationConfig(
                flow_page_size=read("FLOW_PAGE_SIZE", page_defaults.flow_page_size),
                timeline_page_size=read("TIMELINE_PAGE_SIZE", page_defaults.timeline_page_size),
                poll_interval_seconds=read("POLL_INTERVAL", page_defaults.poll_interval_seconds),
            ),
            log_level=read("LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Basic console logging for the dashboard packages."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
