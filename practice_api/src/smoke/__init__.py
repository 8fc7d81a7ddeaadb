"""Parallel smoke runners that fan requests out to the feature endpoints."""

from .endpoints import ANONYMOUS_GROUPS, AUTHENTICATED_GROUPS, AgentGroup, EndpointCheck, with_prefix
from .runner import (
    AgentResult,
    CheckResult,
    RunSummary,
    ServerProcess,
    SmokeAuthError,
    check_endpoint,
    render_summary,
    run_agent,
    run_agents,
    run_anonymous,
    run_authenticated,
)

__all__ = [
    "ANONYMOUS_GROUPS",
    "AUTHENTICATED_GROUPS",
    "AgentGroup",
    "AgentResult",
    "CheckResult",
    "EndpointCheck",
    "RunSummary",
    "ServerProcess",
    "SmokeAuthError",
    "check_endpoint",
    "render_summary",
    "run_agent",
    "run_agents",
    "run_anonymous",
    "run_authenticated",
    "with_prefix",
]
