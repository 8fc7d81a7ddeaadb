"""
Feature catalog.

Every practice-management feature (case management, client CRM, each practice
area vertical, ...) is the same CRUD resource under a different name. The
catalog is the single place those names live: the state store, the HTTP
routers, the role policy and the smoke runners are all generated from it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class FeatureCategory(str, Enum):
    """Grouping used by the role policy and the feature listing."""

    MANAGEMENT = "management"
    LEGAL = "legal"
    COMPLIANCE = "compliance"
    ANALYTICS = "analytics"
    PRACTICE_AREAS = "practice-areas"
    SPECIALIZED = "specialized"
    CRIMINAL = "criminal"
    PUBLIC_SERVICE = "public-service"


@dataclass(frozen=True)
class FeatureDefinition:
    """
    Static description of one feature.

    Attributes:
        slug: URL-safe identifier used by the store and the policy table
        name: Human readable name, used in notifications and default names
        endpoint: Mount point of the feature's HTTP resource
        category: Policy grouping
        description: One-line summary
        sub_resources: Read-only collections exposed under the endpoint
    """

    slug: str
    name: str
    endpoint: str
    category: FeatureCategory
    description: str = ""
    sub_resources: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def api_path(self) -> str:
        """Endpoint relative to the API prefix (``/api/cases`` -> ``/cases``)."""
        return "/" + self.endpoint.split("/", 2)[-1]

    @property
    def default_item_name(self) -> str:
        """Name given to records created without one."""
        return f"New {self.name}"

    def to_dict(self) -> Dict[str, object]:
        return {
            "slug": self.slug,
            "name": self.name,
            "endpoint": self.endpoint,
            "category": self.category.value,
            "description": self.description,
            "subResources": list(self.sub_resources),
        }


_M = FeatureCategory.MANAGEMENT
_L = FeatureCategory.LEGAL
_C = FeatureCategory.COMPLIANCE
_A = FeatureCategory.ANALYTICS
_P = FeatureCategory.PRACTICE_AREAS
_S = FeatureCategory.SPECIALIZED
_CR = FeatureCategory.CRIMINAL
_PS = FeatureCategory.PUBLIC_SERVICE


FEATURE_CATALOG: Tuple[FeatureDefinition, ...] = (
    # Core practice management
    FeatureDefinition("case-management", "Case Management System", "/api/cases", _M,
                      "Complete case lifecycle management from intake to closing"),
    FeatureDefinition("client-crm", "Client Relationship Management", "/api/clients", _M,
                      "Comprehensive client database and relationship tracking"),
    FeatureDefinition("document-management", "Document Management System", "/api/documents", _M,
                      "Secure document storage, versioning, and collaboration", ("templates",)),
    FeatureDefinition("time-billing", "Time & Billing Management", "/api/billing", _M,
                      "Track billable hours and generate invoices", ("time-entries", "invoices")),
    FeatureDefinition("calendar-scheduling", "Calendar & Scheduling System", "/api/calendar", _M,
                      "Court dates, deadlines, and appointment management", ("upcoming",)),
    FeatureDefinition("task-workflow", "Task & Workflow Management", "/api/tasks", _M,
                      "Task assignment and workflow automation", ("statistics",)),
    FeatureDefinition("communication", "Communication & Collaboration", "/api/communication", _M,
                      "Team messaging and client communication"),
    FeatureDefinition("integration", "Integration & API Management", "/api/integrations", _M,
                      "Third-party integrations and API access"),
    # Legal tools
    FeatureDefinition("legal-research", "Legal Research & Knowledge Base", "/api/research", _L,
                      "Integrated legal research and knowledge management", ("citator",)),
    FeatureDefinition("court-docket", "Court & Docket Management", "/api/court", _L,
                      "Track court dockets and manage filings", ("deadlines",)),
    FeatureDefinition("contract-management", "Contract Management", "/api/contracts", _L,
                      "Contract lifecycle from drafting to renewal", ("templates",)),
    FeatureDefinition("ediscovery", "eDiscovery & Evidence Management", "/api/ediscovery", _L,
                      "Evidence collection, review, and production", ("evidence",)),
    # Compliance and risk
    FeatureDefinition("compliance", "Compliance & Risk Management", "/api/compliance", _C,
                      "Ethics tracking and risk assessment"),
    FeatureDefinition("security", "Security & Access Control", "/api/security", _C,
                      "Role-based permissions and audit logs"),
    FeatureDefinition("cybersecurity-legal", "Cybersecurity Legal", "/api/cybersecurity", _C,
                      "Cybersecurity incidents and breach response"),
    FeatureDefinition("government-contracts", "Government Contracts", "/api/government", _C,
                      "Government contract management and compliance"),
    FeatureDefinition("non-profit-law", "Non-Profit Law", "/api/nonprofit", _C,
                      "Non-profit legal matters and 501(c)(3) compliance"),
    FeatureDefinition("education-law", "Education Law", "/api/education", _C,
                      "Education law compliance and student matters"),
    FeatureDefinition("labor-relations", "Labor Relations", "/api/labor", _C,
                      "Labor relations and collective bargaining"),
    FeatureDefinition("international-trade", "International Trade", "/api/trade", _C,
                      "International trade compliance and customs"),
    FeatureDefinition("antitrust-competition", "Antitrust & Competition", "/api/antitrust", _C,
                      "Antitrust investigations and compliance"),
    # Analytics
    FeatureDefinition("reporting-analytics", "Reporting & Analytics", "/api/reports", _A,
                      "Business intelligence and performance metrics"),
    # Practice areas
    FeatureDefinition("litigation-management", "Litigation Management", "/api/litigation", _P,
                      "Comprehensive litigation tracking with pleadings, discovery, and trial management",
                      ("discovery",)),
    FeatureDefinition("mediation-adr", "Mediation & ADR", "/api/mediation", _P,
                      "Alternative dispute resolution and mediation case management"),
    FeatureDefinition("intellectual-property", "Intellectual Property", "/api/ip", _P,
                      "Patent, trademark, and copyright management", ("trademarks",)),
    FeatureDefinition("real-estate-transactions", "Real Estate Transactions", "/api/real-estate", _P,
                      "Real estate transactions, closings, and title work", ("properties",)),
    FeatureDefinition("corporate-governance", "Corporate Governance", "/api/corporate", _P,
                      "Corporate governance, compliance, and board management"),
    FeatureDefinition("mergers-acquisitions", "Mergers & Acquisitions", "/api/ma", _P,
                      "M&A deals, due diligence, and integration management"),
    FeatureDefinition("employment-law", "Employment Law", "/api/employment", _P,
                      "Employment disputes, contracts, and workplace investigations", ("cases",)),
    FeatureDefinition("immigration-law", "Immigration Law", "/api/immigration", _P,
                      "Immigration cases, visa applications, and citizenship matters", ("visas",)),
    FeatureDefinition("family-law", "Family Law", "/api/family", _P,
                      "Divorce, custody, adoption, and family legal matters", ("custody",)),
    FeatureDefinition("criminal-defense", "Criminal Defense", "/api/criminal", _P,
                      "Criminal defense case management and trial preparation", ("cases",)),
    FeatureDefinition("bankruptcy-management", "Bankruptcy Management", "/api/bankruptcy", _P,
                      "Bankruptcy filings, creditor management, and reorganization", ("filings",)),
    FeatureDefinition("estate-planning", "Estate Planning", "/api/estate", _P,
                      "Wills, trusts, probate, and estate administration", ("wills",)),
    FeatureDefinition("tax-law", "Tax Law", "/api/tax", _P,
                      "Tax planning, disputes, and compliance", ("filings",)),
    FeatureDefinition("personal-injury", "Personal Injury", "/api/personal-injury", _P,
                      "Personal injury claims, settlements, and litigation", ("claims",)),
    FeatureDefinition("class-action", "Class Action", "/api/class-action", _P,
                      "Class action lawsuits and mass tort management", ("lawsuits",)),
    # Specialized practice
    FeatureDefinition("securities-law", "Securities Law", "/api/securities", _S,
                      "Securities law, SEC compliance, and investor protection"),
    FeatureDefinition("healthcare-law", "Healthcare Law", "/api/healthcare", _S,
                      "Healthcare compliance, HIPAA, and medical malpractice"),
    FeatureDefinition("environmental-law", "Environmental Law", "/api/environmental", _S,
                      "Environmental compliance and regulatory matters"),
    FeatureDefinition("insurance-defense", "Insurance Defense", "/api/insurance", _S,
                      "Insurance defense and coverage litigation"),
    FeatureDefinition("appellate-practice", "Appellate Practice", "/api/appellate", _S,
                      "Appellate briefs, oral arguments, and appeals"),
    FeatureDefinition("financial-services", "Financial Services", "/api/financial", _S,
                      "Banking, finance, and regulatory compliance"),
    FeatureDefinition("energy-utilities", "Energy & Utilities", "/api/energy", _S,
                      "Energy sector legal matters and regulations"),
    FeatureDefinition("telecommunications", "Telecommunications", "/api/telecom", _S,
                      "Telecom regulatory matters and compliance"),
    FeatureDefinition("aviation-law", "Aviation Law", "/api/aviation", _S,
                      "Aviation regulations and incident investigations"),
    FeatureDefinition("maritime-law", "Maritime Law", "/api/maritime", _S,
                      "Admiralty and maritime legal matters"),
    FeatureDefinition("construction-law", "Construction Law", "/api/construction", _S,
                      "Construction disputes and contract management"),
    FeatureDefinition("franchise-law", "Franchise Law", "/api/franchise", _S,
                      "Franchise agreements and compliance"),
    FeatureDefinition("sports-entertainment", "Sports & Entertainment", "/api/sports", _S,
                      "Sports contracts and entertainment law"),
    FeatureDefinition("technology-transactions", "Technology Transactions", "/api/technology", _S,
                      "Software licensing and tech transactions"),
    FeatureDefinition("data-privacy", "Data Privacy & GDPR", "/api/privacy", _S,
                      "Data privacy compliance and GDPR matters"),
    # Criminal
    FeatureDefinition("white-collar-crime", "White Collar Crime", "/api/white-collar", _CR,
                      "White collar crime defense and investigations"),
    # Public service
    FeatureDefinition("civil-rights", "Civil Rights", "/api/civil-rights", _PS,
                      "Civil rights cases and discrimination matters"),
    FeatureDefinition("municipal-law", "Municipal Law", "/api/municipal", _PS,
                      "Municipal government legal matters"),
    FeatureDefinition("veterans-affairs", "Veterans Affairs", "/api/veterans", _PS,
                      "Veterans benefits and legal assistance"),
    FeatureDefinition("social-security", "Social Security", "/api/social-security", _PS,
                      "Social security disability claims"),
    FeatureDefinition("consumer-protection", "Consumer Protection", "/api/consumer", _PS,
                      "Consumer protection and fraud cases"),
    FeatureDefinition("landlord-tenant", "Landlord-Tenant", "/api/landlord-tenant", _PS,
                      "Landlord-tenant disputes and housing law"),
    FeatureDefinition("pro-bono", "Pro Bono Management", "/api/probono", _PS,
                      "Pro bono legal services tracking and management"),
)

FEATURES_BY_SLUG: Dict[str, FeatureDefinition] = {f.slug: f for f in FEATURE_CATALOG}


class UnknownFeatureError(KeyError):
    """Raised when a slug is not part of the catalog."""

    def __init__(self, slug: str):
        super().__init__(slug)
        self.slug = slug

    def __str__(self) -> str:
        return f"Unknown feature: {self.slug}"


def get_feature(slug: str) -> FeatureDefinition:
    """
    Look up a feature by slug.

    Raises:
        UnknownFeatureError: If the slug is not in the catalog
    """
    try:
        return FEATURES_BY_SLUG[slug]
    except KeyError:
        raise UnknownFeatureError(slug) from None


def list_features(category: Optional[FeatureCategory] = None) -> List[FeatureDefinition]:
    """Catalog entries, optionally restricted to one category."""
    if category is None:
        return list(FEATURE_CATALOG)
    return [f for f in FEATURE_CATALOG if f.category == category]
