import json

import pytest

from biolink.models.plan import FeatureKey, Plan
from biolink.services.entitlements import limits_for
from biolink.utils.plan_gate import (FeatureGateError, check_feature, check_limit,
                                     create_api_response)


def test_check_feature_denies_analytics_on_pro():
    with pytest.raises(FeatureGateError) as exc_info:
        check_feature(limits_for(Plan.PRO), FeatureKey.ANALYTICS, Plan.PRO)

    error = exc_info.value
    assert error.feature == "analytics"
    assert error.plan is Plan.PRO
    assert error.upgrade_url == "/upgrade"
    assert "not available" in error.message


def test_check_feature_allows_enterprise():
    check_feature(limits_for(Plan.ENTERPRISE), FeatureKey.LINE_NOTIFY, Plan.ENTERPRISE)


def test_check_feature_unknown_key_denied():
    with pytest.raises(FeatureGateError):
        check_feature(limits_for(Plan.ENTERPRISE), "teleport", Plan.ENTERPRISE)


def test_check_limit_on_free_links():
    limits = limits_for(Plan.FREE)
    check_limit(limits, FeatureKey.MAX_LINKS, 2, Plan.FREE)
    with pytest.raises(FeatureGateError) as exc_info:
        check_limit(limits, FeatureKey.MAX_LINKS, 3, Plan.FREE)

    assert exc_info.value.limit == 3
    assert "limit reached" in exc_info.value.message
    assert exc_info.value.to_dict()["currentPlan"] == "free"


def test_create_api_response():
    response = create_api_response(403, {"error": "Upgrade required"})
    assert response["statusCode"] == 403
    assert json.loads(response["body"]) == {"error": "Upgrade required"}
