from datetime import datetime, timezone

from biolink.models.plan import (FEATURE_FIELDS, FEATURE_KINDS, FeatureKey, FeatureLimits,
                                 InvalidPlanError, Plan, PlanError, StoreUnavailableError,
                                 Subscription, UnauthenticatedError)


def test_plan_order():
    assert [plan.value for plan in Plan] == ["free", "pro", "enterprise"]
    assert Plan.FREE.rank < Plan.PRO.rank < Plan.ENTERPRISE.rank
    assert Plan.ENTERPRISE.at_least(Plan.PRO)
    assert Plan.PRO.at_least(Plan.PRO)
    assert not Plan.FREE.at_least(Plan.PRO)


def test_plan_parse():
    assert Plan.parse("pro") is Plan.PRO
    assert Plan.parse(Plan.ENTERPRISE) is Plan.ENTERPRISE
    assert Plan.parse("gold") is Plan.FREE
    assert Plan.parse(None) is Plan.FREE
    assert Plan.parse(3) is Plan.FREE


def test_every_feature_key_is_classified_and_stored():
    assert set(FEATURE_KINDS) == set(FeatureKey)
    assert set(FEATURE_FIELDS) == set(FeatureKey)


def test_feature_key_parse():
    assert FeatureKey.parse("maxLinks") is FeatureKey.MAX_LINKS
    assert FeatureKey.parse(FeatureKey.WATERMARK) is FeatureKey.WATERMARK
    assert FeatureKey.parse("max_links") is None
    assert FeatureKey.parse(None) is None


def test_feature_limits_accepts_document_keys():
    limits = FeatureLimits.model_validate({
        "maxLinks": 1, "maxProducts": 1, "customThemes": False, "analytics": False,
        "multiPage": False, "lineNotify": False, "watermark": True, "qrCodeColors": 0,
    })
    assert limits.max_links == 1
    assert limits.value_of(FeatureKey.QR_CODE_COLORS) == 0
    assert limits.to_document()["watermark"] is True


def test_subscription_from_missing_document():
    subscription = Subscription.from_document("acct-1", None)
    assert subscription.plan is Plan.FREE
    assert subscription.upgraded_at is None


def test_subscription_from_legacy_document():
    subscription = Subscription.from_document(
        "acct-1", {"plan": "premium", "upgradedAt": "last tuesday"}
    )
    assert subscription.plan is Plan.FREE
    assert subscription.upgraded_at is None


def test_subscription_document_shape():
    upgraded_at = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    subscription = Subscription(account_id="acct-1", plan=Plan.PRO, upgraded_at=upgraded_at)

    document = subscription.to_document()
    assert document == {
        "plan": "pro",
        "upgradedAt": "2026-01-02T03:04:05+00:00",
        "userId": "acct-1",
    }
    assert Subscription.from_document("acct-1", document) == subscription


def test_error_hierarchy():
    assert issubclass(UnauthenticatedError, PlanError)
    assert issubclass(InvalidPlanError, PlanError)
    assert issubclass(StoreUnavailableError, PlanError)
    assert InvalidPlanError("platinum").plan_id == "platinum"
    assert StoreUnavailableError("down", error_code="Throttling").error_code == "Throttling"
