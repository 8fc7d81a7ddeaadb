"""
Endpoint groups checked by the smoke runners.

Each group ("agent") covers a handful of features; paths are resolved from
the feature catalog relative to the API prefix, which the runners prepend
with :func:`with_prefix` so they always match the mounted routers.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Sequence, Tuple

from practice_api.src.features.catalog import get_feature


@dataclass(frozen=True)
class EndpointCheck:
    """One request issued by an agent."""

    path: str
    description: str
    method: str = "GET"
    data: Optional[Dict[str, Any]] = field(default=None, hash=False, compare=False)


@dataclass(frozen=True)
class AgentGroup:
    """A named list of endpoint checks run sequentially by one agent."""

    key: str
    name: str
    endpoints: Tuple[EndpointCheck, ...]


def _list(slug: str) -> EndpointCheck:
    feature = get_feature(slug)
    return EndpointCheck(feature.api_path, feature.name)


def _sub(slug: str, resource: str, description: str) -> EndpointCheck:
    return EndpointCheck(f"{get_feature(slug).api_path}/{resource}", description)


def _create(slug: str, description: str, data: Dict[str, Any]) -> EndpointCheck:
    return EndpointCheck(f"{get_feature(slug).api_path}/create", description, "POST", data)


def with_prefix(groups: Sequence[AgentGroup], api_prefix: str) -> Tuple[AgentGroup, ...]:
    """Copy of the groups with every path mounted below ``api_prefix``."""
    prefix = api_prefix.rstrip("/")
    return tuple(
        replace(group, endpoints=tuple(replace(check, path=prefix + check.path) for check in group.endpoints))
        for group in groups
    )


ANONYMOUS_GROUPS: Tuple[AgentGroup, ...] = (
    AgentGroup("agent1_core", "Core Features Agent", (
        _list("case-management"),
        _sub("case-management", "analytics", "Case Analytics"),
        _list("client-crm"),
        _sub("client-crm", "analytics", "Client Analytics"),
        _list("document-management"),
        _sub("document-management", "templates", "Document Templates"),
    )),
    AgentGroup("agent2_operations", "Operations Agent", (
        _list("task-workflow"),
        _sub("task-workflow", "statistics", "Task Statistics"),
        _list("calendar-scheduling"),
        _sub("calendar-scheduling", "upcoming", "Upcoming Events"),
        _sub("time-billing", "time-entries", "Time Entries"),
        _sub("time-billing", "invoices", "Invoices"),
    )),
    AgentGroup("agent3_legal", "Legal Research Agent", (
        _list("legal-research"),
        _sub("legal-research", "citator", "Citator"),
        _list("court-docket"),
        _sub("court-docket", "deadlines", "Court Deadlines"),
        _list("contract-management"),
        _sub("contract-management", "templates", "Contract Templates"),
    )),
    AgentGroup("agent4_compliance", "Compliance Agent", (
        _list("compliance"),
        _sub("compliance", "audit-logs", "Audit Logs"),
        _list("ediscovery"),
        _sub("ediscovery", "evidence", "Evidence"),
        _list("reporting-analytics"),
        _sub("reporting-analytics", "analytics", "Report Analytics"),
    )),
    AgentGroup("agent5_practice1", "Practice Areas Agent 1", (
        _list("litigation-management"),
        _sub("litigation-management", "discovery", "Discovery"),
        _list("intellectual-property"),
        _sub("intellectual-property", "trademarks", "Trademarks"),
        _list("real-estate-transactions"),
        _sub("real-estate-transactions", "properties", "Properties"),
    )),
    AgentGroup("agent6_practice2", "Practice Areas Agent 2", (
        _list("employment-law"),
        _sub("employment-law", "cases", "Employment Cases"),
        _list("immigration-law"),
        _sub("immigration-law", "visas", "Visas"),
        _list("family-law"),
        _sub("family-law", "custody", "Custody"),
    )),
    AgentGroup("agent7_practice3", "Practice Areas Agent 3", (
        _list("criminal-defense"),
        _sub("criminal-defense", "cases", "Criminal Cases"),
        _list("bankruptcy-management"),
        _sub("bankruptcy-management", "filings", "Bankruptcy Filings"),
        _list("estate-planning"),
        _sub("estate-planning", "wills", "Wills"),
    )),
    AgentGroup("agent8_practice4", "Practice Areas Agent 4", (
        _list("tax-law"),
        _sub("tax-law", "filings", "Tax Filings"),
        _list("personal-injury"),
        _sub("personal-injury", "claims", "Injury Claims"),
        _list("class-action"),
        _sub("class-action", "lawsuits", "Class Lawsuits"),
    )),
)


AUTHENTICATED_GROUPS: Tuple[AgentGroup, ...] = (
    AgentGroup("agent1_core", "Core Features Agent", (
        _list("case-management"),
        _create("case-management", "Create Case", {
            "name": "Smoke Test Case",
            "description": "Created by the authenticated smoke runner",
        }),
        _list("client-crm"),
        _create("client-crm", "Create Client", {
            "name": "Smoke Test Client",
            "description": "Created by the authenticated smoke runner",
        }),
        _list("document-management"),
    )),
    AgentGroup("agent2_operations", "Operations Agent", (
        _list("task-workflow"),
        _create("task-workflow", "Create Task", {
            "name": "Smoke Test Task",
            "description": "Created by the authenticated smoke runner",
        }),
        _list("calendar-scheduling"),
        _sub("time-billing", "time-entries", "Time Entries"),
    )),
    AgentGroup("agent3_legal", "Legal Research Agent", (
        _list("legal-research"),
        _list("court-docket"),
        _list("contract-management"),
    )),
    AgentGroup("agent4_compliance", "Compliance Agent", (
        _list("compliance"),
        _list("ediscovery"),
        _list("reporting-analytics"),
    )),
    AgentGroup("agent5_practice1", "Practice Areas Agent 1", (
        _list("litigation-management"),
        _list("intellectual-property"),
        _list("real-estate-transactions"),
    )),
    AgentGroup("agent6_practice2", "Practice Areas Agent 2", (
        _list("employment-law"),
        _list("immigration-law"),
        _list("family-law"),
    )),
    AgentGroup("agent7_practice3", "Practice Areas Agent 3", (
        _list("criminal-defense"),
        _list("bankruptcy-management"),
        _list("estate-planning"),
    )),
    AgentGroup("agent8_practice4", "Practice Areas Agent 4", (
        _list("tax-law"),
        _list("personal-injury"),
        _list("class-action"),
    )),
)


# Account used by the authenticated runner; registered on first run
SMOKE_USER: Dict[str, str] = {
    "username": "test_agent_user",
    "email": "test_agent@yellowcross.com",
    "password": "TestAgent@2024!",
    "firstName": "Test",
    "lastName": "Agent",
    "jobTitle": "QA Engineer",
}
