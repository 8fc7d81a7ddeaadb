"""
Parallel smoke runners.

Every agent walks its endpoints one after another; all agents run at the
same time through ``asyncio.gather``. A check passes when the response
status is in the runner's valid set. Request failures of any kind become
failed results carrying the error message, so a run always produces a
summary.

Two runners are provided:

- anonymous: no credentials, 200/401/404 count as reachable, passes above 50%
- authenticated: logs in (registering the smoke account when needed),
  200/201/404 count as success, passes above 70%
"""

import asyncio
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Union

import aiohttp
import structlog

from practice_api.src.client.api_client import ApiClient, ApiError, TokenStore
from practice_api.src.config import Settings, get_settings
from practice_api.src.smoke.endpoints import (
    ANONYMOUS_GROUPS,
    AUTHENTICATED_GROUPS,
    SMOKE_USER,
    AgentGroup,
    EndpointCheck,
    with_prefix,
)
from shared.metrics import SmokeMetrics

logger = structlog.get_logger(__name__)

ANONYMOUS_VALID_STATUSES: FrozenSet[int] = frozenset({200, 401, 404})
ANONYMOUS_THRESHOLD = 0.5

AUTHENTICATED_VALID_STATUSES: FrozenSet[int] = frozenset({200, 201, 404})
AUTHENTICATED_THRESHOLD = 0.7

ERROR_STATUS = "ERROR"


class SmokeAuthError(Exception):
    """Raised when the authenticated runner cannot obtain a token."""


@dataclass
class CheckResult:
    """Outcome of one endpoint check."""

    endpoint: str
    method: str
    status: Union[int, str]
    success: bool
    message: str
    response_time_ms: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "method": self.method,
            "status": self.status,
            "success": self.success,
            "message": self.message,
            "responseTime": round(self.response_time_ms, 2),
        }


@dataclass
class AgentResult:
    """Results of one agent, in the order its endpoints were checked."""

    key: str
    name: str
    results: List[CheckResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def error_count(self) -> int:
        return self.total - self.success_count

    @property
    def avg_response_time_ms(self) -> float:
        if not self.results:
            return 0.0
        return sum(r.response_time_ms for r in self.results) / len(self.results)


@dataclass
class RunSummary:
    """
    Aggregate of a run.

    The run passes when no check failed or when the success rate is
    strictly above the threshold.
    """

    agents: List[AgentResult]
    threshold: float

    @property
    def total(self) -> int:
        return sum(a.total for a in self.agents)

    @property
    def successes(self) -> int:
        return sum(a.success_count for a in self.agents)

    @property
    def errors(self) -> int:
        return self.total - self.successes

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.successes / self.total

    @property
    def success_rate_display(self) -> str:
        return f"{self.success_rate * 100:.2f}%"

    @property
    def passed(self) -> bool:
        return self.errors == 0 or self.success_rate > self.threshold

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def error_details(self) -> List[Dict[str, Any]]:
        return [
            {"agent": agent.name, **result.to_dict()}
            for agent in self.agents
            for result in agent.results
            if not result.success
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successes": self.successes,
            "errors": self.errors,
            "successRate": self.success_rate_display,
            "threshold": self.threshold,
            "passed": self.passed,
            "agents": [
                {
                    "agent": agent.key,
                    "name": agent.name,
                    "total": agent.total,
                    "success": agent.success_count,
                    "errors": agent.error_count,
                    "avgResponseTime": round(agent.avg_response_time_ms, 2),
                }
                for agent in self.agents
            ],
            "errorDetails": self.error_details(),
        }


def render_summary(summary: RunSummary, title: str = "SMOKE TEST SUMMARY") -> str:
    """Human readable report printed by the CLI."""
    rule = "=" * 60
    lines = [rule, title, rule]
    for agent in summary.agents:
        lines.append(f"{agent.name} ({agent.key})")
        lines.append(f"  Total: {agent.total}")
        lines.append(f"  Success: {agent.success_count}")
        lines.append(f"  Errors: {agent.error_count}")
        lines.append(f"  Avg Response Time: {agent.avg_response_time_ms:.2f}ms")
    lines.append(rule)
    lines.append(f"Total Endpoints Tested: {summary.total}")
    lines.append(f"Successful: {summary.successes}")
    lines.append(f"Errors: {summary.errors}")
    lines.append(f"Success Rate: {summary.success_rate_display}")

    details = summary.error_details()
    if details:
        lines.append(rule)
        lines.append("ERROR DETAILS")
        for detail in details:
            lines.append(
                f"  [{detail['agent']}] {detail['method']} {detail['endpoint']}"
                f" -> {detail['status']}: {detail['message']}"
            )
    lines.append(rule)
    return "\n".join(lines)


# ============================================================================
# CHECKS
# ============================================================================


async def check_endpoint(
    session: aiohttp.ClientSession,
    base_url: str,
    endpoint: EndpointCheck,
    valid_statuses: FrozenSet[int],
    headers: Optional[Dict[str, str]] = None,
) -> CheckResult:
    """
    Issue one request and classify the response.

    Never raises: network errors and timeouts are returned as failed
    results with status ``"ERROR"``.
    """
    started = time.perf_counter()
    try:
        async with session.request(
            endpoint.method,
            f"{base_url}{endpoint.path}",
            json=endpoint.data,
            headers=headers,
        ) as response:
            await response.read()
            status = response.status
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        elapsed = (time.perf_counter() - started) * 1000
        message = str(e) or type(e).__name__
        logger.debug("smoke_check_error", path=endpoint.path, error=message)
        return CheckResult(endpoint.path, endpoint.method, ERROR_STATUS, False, message, elapsed)

    elapsed = (time.perf_counter() - started) * 1000
    success = status in valid_statuses
    return CheckResult(
        endpoint=endpoint.path,
        method=endpoint.method,
        status=status,
        success=success,
        message=endpoint.description if success else f"Unexpected status {status}",
        response_time_ms=elapsed,
    )


async def run_agent(
    session: aiohttp.ClientSession,
    base_url: str,
    group: AgentGroup,
    valid_statuses: FrozenSet[int],
    headers: Optional[Dict[str, str]] = None,
    metrics: Optional[SmokeMetrics] = None,
) -> AgentResult:
    """Check the endpoints of one agent sequentially."""
    agent = AgentResult(group.key, group.name)
    for endpoint in group.endpoints:
        result = await check_endpoint(session, base_url, endpoint, valid_statuses, headers)
        agent.results.append(result)
        if metrics is not None:
            outcome = "success" if result.success else "failure"
            metrics.checks_total.labels(agent=group.key, outcome=outcome).inc()
            metrics.check_duration_seconds.labels(agent=group.key).observe(
                result.response_time_ms / 1000
            )

    logger.info(
        "smoke_agent_completed",
        agent=group.key,
        total=agent.total,
        success=agent.success_count,
        errors=agent.error_count,
    )
    return agent


async def run_agents(
    base_url: str,
    groups: Sequence[AgentGroup],
    valid_statuses: FrozenSet[int],
    threshold: float,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 10.0,
    metrics: Optional[SmokeMetrics] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> RunSummary:
    """
    Run every agent concurrently and aggregate the results.

    Args:
        base_url: Server root; endpoint paths already carry the API prefix
        groups: Agents to run
        valid_statuses: Statuses counted as success
        threshold: Success rate the run must exceed when a check failed
        headers: Extra request headers (the bearer token)
        timeout: Per-request timeout in seconds
        metrics: Optional registry updated as checks complete
        session: Externally managed session, used instead of a new one
    """
    base_url = base_url.rstrip("/")

    async def gather(active: aiohttp.ClientSession) -> List[AgentResult]:
        return list(await asyncio.gather(*[
            run_agent(active, base_url, group, valid_statuses, headers, metrics)
            for group in groups
        ]))

    if session is not None:
        agents = await gather(session)
    else:
        client_timeout = aiohttp.ClientTimeout(total=timeout)
        async with aiohttp.ClientSession(timeout=client_timeout) as owned:
            agents = await gather(owned)

    summary = RunSummary(agents=agents, threshold=threshold)
    if metrics is not None:
        metrics.success_rate.set(summary.success_rate)

    logger.info(
        "smoke_run_completed",
        total=summary.total,
        successes=summary.successes,
        errors=summary.errors,
        success_rate=summary.success_rate_display,
        passed=summary.passed,
    )
    return summary


# ============================================================================
# AUTHENTICATION
# ============================================================================


async def obtain_token(
    api_base_url: str,
    user: Optional[Dict[str, str]] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> str:
    """
    Log the smoke account in, registering it first when login fails.

    Raises:
        SmokeAuthError: If no access token could be obtained
    """
    user = user or SMOKE_USER
    credentials = {"email": user["email"], "password": user["password"]}

    async with ApiClient(base_url=api_base_url, token_store=TokenStore(), session=session) as client:
        try:
            body = await client.post("/auth/login", json=credentials)
        except ApiError as e:
            if e.status not in (401, 404):
                raise SmokeAuthError(f"Login failed: {e.message}") from e
            logger.info("smoke_user_registering", username=user["username"])
            try:
                await client.post("/auth/register", json=user)
                body = await client.post("/auth/login", json=credentials)
            except ApiError as inner:
                raise SmokeAuthError(f"Authentication failed: {inner.message}") from inner

    token = body.get("accessToken") if isinstance(body, dict) else None
    if not token:
        raise SmokeAuthError("Login response carried no access token")
    logger.info("smoke_user_authenticated", username=user["username"])
    return token


# ============================================================================
# SERVER MANAGEMENT
# ============================================================================


async def check_health(base_url: str, timeout: float = 5.0) -> bool:
    """True when ``GET /health`` answers 200 within the timeout."""
    try:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
            async with session.get(f"{base_url.rstrip('/')}/health") as response:
                return response.status == 200
    except (aiohttp.ClientError, asyncio.TimeoutError):
        return False


class ServerProcess:
    """
    Starts the API under uvicorn unless one is already healthy.

    Use as an async context manager; a server started here is terminated on
    exit, a server that was already running is left alone.
    """

    def __init__(self, settings: Optional[Settings] = None, app: str = "practice_api.src.main:app"):
        self.settings = settings or get_settings()
        self.app = app
        self.base_url = self.settings.smoke_base_url
        self._process: Optional[asyncio.subprocess.Process] = None

    async def __aenter__(self) -> "ServerProcess":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def start(self) -> None:
        if await check_health(self.base_url, self.settings.smoke_health_timeout):
            logger.info("smoke_server_already_running", base_url=self.base_url)
            return

        logger.info("smoke_server_starting", app=self.app, port=self.settings.port)
        self._process = await asyncio.create_subprocess_exec(
            sys.executable, "-m", "uvicorn", self.app,
            "--host", "127.0.0.1",
            "--port", str(self.settings.port),
        )

        deadline = time.monotonic() + self.settings.smoke_server_start_timeout
        while time.monotonic() < deadline:
            await asyncio.sleep(1.0)
            if self._process.returncode is not None:
                break
            if await check_health(self.base_url, self.settings.smoke_health_timeout):
                logger.info("smoke_server_ready", base_url=self.base_url)
                return

        await self.stop()
        raise RuntimeError(f"Server at {self.base_url} did not become healthy")

    async def stop(self) -> None:
        if self._process is None or self._process.returncode is not None:
            self._process = None
            return
        self._process.terminate()
        try:
            await asyncio.wait_for(self._process.wait(), timeout=2.0)
        except asyncio.TimeoutError:
            self._process.kill()
            await self._process.wait()
        logger.info("smoke_server_stopped")
        self._process = None


# ============================================================================
# RUNNERS
# ============================================================================


async def run_anonymous(
    settings: Optional[Settings] = None,
    metrics: Optional[SmokeMetrics] = None,
) -> RunSummary:
    settings = settings or get_settings()
    return await run_agents(
        settings.smoke_base_url,
        with_prefix(ANONYMOUS_GROUPS, settings.api_prefix),
        ANONYMOUS_VALID_STATUSES,
        ANONYMOUS_THRESHOLD,
        timeout=settings.smoke_request_timeout,
        metrics=metrics,
    )


async def run_authenticated(
    settings: Optional[Settings] = None,
    metrics: Optional[SmokeMetrics] = None,
) -> RunSummary:
    """
    Authenticate, then run the authenticated groups with the bearer token.

    Raises:
        SmokeAuthError: If no token could be obtained
    """
    settings = settings or get_settings()
    token = await obtain_token(f"{settings.smoke_base_url}{settings.api_prefix}")
    return await run_agents(
        settings.smoke_base_url,
        with_prefix(AUTHENTICATED_GROUPS, settings.api_prefix),
        AUTHENTICATED_VALID_STATUSES,
        AUTHENTICATED_THRESHOLD,
        headers={"Authorization": f"Bearer {token}"},
        timeout=settings.smoke_request_timeout,
        metrics=metrics,
    )
