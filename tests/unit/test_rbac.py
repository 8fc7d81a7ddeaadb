"""
Unit tests for the role policy.

Tests cover:
- The policy table of each role
- Union of several roles
- Unknown role names
- Allowed actions and features per role
- The feature catalog and the page route template
"""

import pytest

from practice_api.src.features.catalog import (
    FEATURE_CATALOG,
    FeatureCategory,
    UnknownFeatureError,
    get_feature,
    list_features,
)
from practice_api.src.features.routes import FeatureAction, page_routes
from practice_api.src.middleware.rbac import (
    ROLE_POLICY,
    allowed_actions,
    allowed_features,
    can_access_feature,
)
from practice_api.src.models.auth import Role

CASES = get_feature("case-management")
TAX = get_feature("tax-law")
COMPLIANCE = get_feature("compliance")


# ============================================================================
# POLICY TABLE
# ============================================================================


class TestRolePolicy:
    """Test what each role is allowed to do."""

    def test_every_role_has_a_policy(self):
        assert set(ROLE_POLICY) == set(Role)

    @pytest.mark.parametrize("role", ["admin", "attorney"])
    @pytest.mark.parametrize("action", list(FeatureAction))
    def test_admin_and_attorney_can_do_everything(self, role, action):
        assert all(can_access_feature([role], feature, action) for feature in FEATURE_CATALOG)

    def test_paralegal_limited_to_management_legal_compliance(self):
        assert can_access_feature(["paralegal"], CASES, FeatureAction.UPDATE)
        assert can_access_feature(["paralegal"], COMPLIANCE, FeatureAction.CREATE)
        assert not can_access_feature(["paralegal"], TAX, FeatureAction.READ)

    def test_paralegal_cannot_delete(self):
        assert not can_access_feature(["paralegal"], CASES, FeatureAction.DELETE)

    def test_user_can_read_and_create_everywhere(self):
        for feature in FEATURE_CATALOG:
            assert can_access_feature(["user"], feature, FeatureAction.READ)
            assert can_access_feature(["user"], feature, FeatureAction.CREATE)

    @pytest.mark.parametrize("action", [FeatureAction.UPDATE, FeatureAction.DELETE])
    def test_user_cannot_modify(self, action):
        assert not can_access_feature(["user"], CASES, action)

    def test_default_action_is_read(self):
        assert can_access_feature(["user"], TAX)

    def test_roles_are_combined(self):
        roles = ["user", "paralegal"]

        assert can_access_feature(roles, TAX, FeatureAction.READ)
        assert can_access_feature(roles, CASES, FeatureAction.UPDATE)
        assert not can_access_feature(roles, TAX, FeatureAction.UPDATE)

    def test_unknown_roles_grant_nothing(self):
        assert not can_access_feature(["superuser"], CASES)
        assert not can_access_feature([], CASES)

    def test_unknown_role_does_not_block_known_role(self):
        assert can_access_feature(["superuser", "admin"], CASES, FeatureAction.DELETE)


class TestPolicyQueries:
    """Test derived policy views."""

    def test_allowed_actions_for_user(self):
        assert allowed_actions(["user"], CASES) == {FeatureAction.READ, FeatureAction.CREATE}

    def test_allowed_actions_for_paralegal_outside_categories(self):
        assert allowed_actions(["paralegal"], TAX) == set()

    def test_allowed_features_for_paralegal(self):
        categories = {feature.category for feature in allowed_features(["paralegal"])}

        assert categories == {
            FeatureCategory.MANAGEMENT,
            FeatureCategory.LEGAL,
            FeatureCategory.COMPLIANCE,
        }

    def test_allowed_features_keeps_catalog_order(self):
        assert allowed_features(["admin"]) == list(FEATURE_CATALOG)


# ============================================================================
# CATALOG AND ROUTES
# ============================================================================


class TestCatalog:
    """Test the feature catalog."""

    def test_slugs_are_unique(self):
        slugs = [feature.slug for feature in FEATURE_CATALOG]

        assert len(slugs) == len(set(slugs))

    def test_endpoints_are_unique_and_prefixed(self):
        endpoints = [feature.endpoint for feature in FEATURE_CATALOG]

        assert len(endpoints) == len(set(endpoints))
        assert all(endpoint.startswith("/api/") for endpoint in endpoints)

    def test_api_path_drops_prefix(self):
        assert CASES.api_path == "/cases"
        assert get_feature("personal-injury").api_path == "/personal-injury"

    def test_unknown_feature(self):
        with pytest.raises(UnknownFeatureError) as exc_info:
            get_feature("space-law")

        assert str(exc_info.value) == "Unknown feature: space-law"

    def test_list_features_by_category(self):
        criminal = list_features(FeatureCategory.CRIMINAL)

        assert [feature.slug for feature in criminal] == ["white-collar-crime"]

    def test_to_dict_uses_camel_case(self):
        data = get_feature("document-management").to_dict()

        assert data["subResources"] == ["templates"]
        assert data["category"] == "management"

    def test_page_routes(self):
        routes = page_routes(get_feature("civil-rights"))

        assert routes == [
            {"path": "/civil-rights", "view": "main", "action": "read"},
            {"path": "/civil-rights/create", "view": "create", "action": "create"},
            {"path": "/civil-rights/:id", "view": "detail", "action": "read"},
            {"path": "/civil-rights/:id/edit", "view": "edit", "action": "update"},
        ]
