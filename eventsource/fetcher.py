"""
Event Service Client

Async reads against the event-persistence service.

PRINCIPLES:
===========
1. Failed fetches are first-class results, never exceptions
2. No automatic retries
3. Decoding goes through the dashboard mapper, nothing else parses JSON
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar
import logging

import httpx

from dashboard.dtos import (
    CompareReportDTO, FlowListPageDTO, FlowStatsDTO, FlowStatus,
    FlowTimelinePageDTO,
)
from dashboard.mapper import DTOMapper

from .contracts import Error, ErrorCode, FetchResult, FetchStatus


logger = logging.getLogger(__name__)

P = TypeVar('P')


class EventServiceClient:
    """
    Fetches flows, timelines, comparisons and stats.

    GUARANTEES:
    ===========
    1. Every call returns a FetchResult
    2. The payload is None unless the status is SUCCESS
    3. Transport, HTTP and decoding failures carry an Error
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8585/api",
        timeout: float = 30.0,
        user_agent: str = "FlowDashboard/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        mapper: Optional[DTOMapper] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._user_agent = user_agent
        self._transport = transport
        self._mapper = mapper or DTOMapper()
        self._sequence = 0

    @classmethod
    def from_config(cls, service_config, **kwargs) -> 'EventServiceClient':
        return cls(
            base_url=service_config.base_url,
            timeout=service_config.timeout_seconds,
            user_agent=service_config.user_agent,
            **kwargs,
        )

    @property
    def mapper(self) -> DTOMapper:
        return self._mapper

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    async def fetch_flows(
        self,
        page: int,
        limit: int,
        status: Optional[FlowStatus] = None,
        search: Optional[str] = None,
    ) -> Tuple[FetchResult, Optional[FlowListPageDTO]]:
        params = self._mapper.flow_list_params(page, limit, status, search)
        return await self._get("/flows", params, self._mapper.map_flow_page)

    async def fetch_timeline(
        self,
        flow_id: int,
        page: int,
        limit: int,
    ) -> Tuple[FetchResult, Optional[FlowTimelinePageDTO]]:
        params = {"page": str(page), "limit": str(limit)}
        return await self._get(f"/flows/{flow_id}", params, self._mapper.map_timeline_page)

    async def fetch_compare(
        self,
        flow_id: int,
    ) -> Tuple[FetchResult, Optional[CompareReportDTO]]:
        return await self._get(
            f"/flows/{flow_id}/compare",
            {},
            lambda body: self._mapper.map_compare_report(body, flow_id=flow_id),
        )

    async def fetch_stats(self) -> Tuple[FetchResult, Optional[FlowStatsDTO]]:
        return await self._get("/stats", {}, self._mapper.map_stats)

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def _client(self) -> httpx.AsyncClient:
        kwargs: Dict[str, Any] = {
            "base_url": self._base_url,
            "timeout": self._timeout,
            "headers": {"User-Agent": self._user_agent, "Accept": "application/json"},
            "follow_redirects": True,
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return httpx.AsyncClient(**kwargs)

    async def _get(
        self,
        endpoint: str,
        params: Dict[str, str],
        parse: Callable[[Any], P],
    ) -> Tuple[FetchResult, Optional[P]]:
        attempted_at = datetime.now(timezone.utc)
        result_id = self._generate_result_id(endpoint, attempted_at)
        frozen_params = tuple(sorted(params.items()))

        def failure(status: FetchStatus, code: ErrorCode, message: str,
                    http_status: Optional[int] = None) -> FetchResult:
            completed_at = datetime.now(timezone.utc)
            error = Error(code=code, message=message, timestamp=completed_at)
            error = error.with_context("endpoint", endpoint)
            for key, value in frozen_params:
                error = error.with_context(key, value)
            logger.warning("fetch %s failed: %s (%s)", endpoint, message, status.value)
            return FetchResult(
                result_id=result_id,
                endpoint=endpoint,
                params=frozen_params,
                attempted_at=attempted_at,
                completed_at=completed_at,
                status=status,
                http_status=http_status,
                error=error,
            )

        try:
            async with self._client() as client:
                response = await client.get(endpoint, params=params)
        except httpx.TimeoutException:
            return failure(FetchStatus.TIMEOUT, ErrorCode.QUERY_TIMEOUT,
                           f"timed out after {self._timeout}s"), None
        except httpx.TransportError as e:
            return failure(FetchStatus.NETWORK_ERROR, ErrorCode.SOURCE_UNREACHABLE,
                           f"{type(e).__name__}: {e}"), None
        except Exception as e:
            return failure(FetchStatus.NETWORK_ERROR, ErrorCode.SOURCE_UNREACHABLE,
                           f"unexpected {type(e).__name__}: {e}"), None

        if response.status_code != 200:
            return failure(FetchStatus.HTTP_ERROR, ErrorCode.HTTP_FAILURE,
                           f"HTTP {response.status_code}",
                           http_status=response.status_code), None

        try:
            payload = parse(response.json())
        except (ValueError, TypeError, KeyError) as e:
            return failure(FetchStatus.DECODE_ERROR, ErrorCode.MALFORMED_PAYLOAD,
                           str(e), http_status=response.status_code), None
        except Exception as e:
            return failure(FetchStatus.DECODE_ERROR, ErrorCode.MALFORMED_PAYLOAD,
                           f"{type(e).__name__}: {e}",
                           http_status=response.status_code), None

        items = getattr(payload, "items", None)
        if items is None:
            items = getattr(payload, "results", ())
        result = FetchResult(
            result_id=result_id,
            endpoint=endpoint,
            params=frozen_params,
            attempted_at=attempted_at,
            completed_at=datetime.now(timezone.utc),
            status=FetchStatus.SUCCESS,
            http_status=response.status_code,
            items_count=len(items),
        )
        logger.debug("fetch %s ok: %d items in %.1fms",
                     endpoint, result.items_count, result.duration_ms)
        return result, payload

    def _generate_result_id(self, endpoint: str, attempted_at: datetime) -> str:
        """Generate fetch result ID."""
        self._sequence += 1
        ts = attempted_at.strftime('%Y%m%d%H%M%S')
        slug = endpoint.strip("/").replace("/", "_") or "root"
        return f"fetch_{slug}_{ts}_{self._sequence}"
