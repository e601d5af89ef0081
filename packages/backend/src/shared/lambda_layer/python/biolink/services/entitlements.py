"""
Plan entitlement table and evaluator.

The table maps every plan to its feature limits. The evaluator functions are
pure: they only read the limits record they are given.

Unknown feature keys never raise. ``can_use`` fails closed and
``is_under_limit`` stays permissive, so a typo or a legacy document keeps
gating conservative without crashing the caller.
"""

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from ..constants.plan_tiers import (
    UNLIMITED, CURRENCY, CURRENCY_SYMBOL, LIFETIME_PRICE_NOTE,
    FREE_MAX_LINKS, FREE_MAX_PRODUCTS, FREE_QR_CODE_COLORS, FREE_DESCRIPTION,
    PRO_MAX_LINKS, PRO_MAX_PRODUCTS, PRO_QR_CODE_COLORS, PRO_PRICE_TWD, PRO_DESCRIPTION,
    ENTERPRISE_MAX_LINKS, ENTERPRISE_MAX_PRODUCTS, ENTERPRISE_QR_CODE_COLORS,
    ENTERPRISE_PRICE_TWD, ENTERPRISE_DESCRIPTION,
)
from ..models.plan import FeatureKey, FeatureKind, FeatureLimits, Plan, PlanDefinition


PLANS: Mapping[Plan, PlanDefinition] = MappingProxyType({
    Plan.FREE: PlanDefinition(
        id=Plan.FREE,
        name="Free",
        price=0,
        price_label="Free",
        description=FREE_DESCRIPTION,
        features=FeatureLimits(
            max_links=FREE_MAX_LINKS,
            max_products=FREE_MAX_PRODUCTS,
            custom_themes=False,
            analytics=False,
            multi_page=False,
            line_notify=False,
            watermark=True,
            qr_code_colors=FREE_QR_CODE_COLORS,
        ),
    ),
    Plan.PRO: PlanDefinition(
        id=Plan.PRO,
        name="Pro",
        price=PRO_PRICE_TWD,
        price_label=f"{CURRENCY_SYMBOL}{PRO_PRICE_TWD:,}",
        price_note=LIFETIME_PRICE_NOTE,
        description=PRO_DESCRIPTION,
        popular=True,
        features=FeatureLimits(
            max_links=PRO_MAX_LINKS,
            max_products=PRO_MAX_PRODUCTS,
            custom_themes=True,
            analytics=False,
            multi_page=False,
            line_notify=False,
            watermark=False,
            qr_code_colors=PRO_QR_CODE_COLORS,
        ),
    ),
    Plan.ENTERPRISE: PlanDefinition(
        id=Plan.ENTERPRISE,
        name="Enterprise",
        price=ENTERPRISE_PRICE_TWD,
        price_label=f"{CURRENCY_SYMBOL}{ENTERPRISE_PRICE_TWD:,}",
        price_note=LIFETIME_PRICE_NOTE,
        description=ENTERPRISE_DESCRIPTION,
        features=FeatureLimits(
            max_links=ENTERPRISE_MAX_LINKS,
            max_products=ENTERPRISE_MAX_PRODUCTS,
            custom_themes=True,
            analytics=True,
            multi_page=True,
            line_notify=True,
            watermark=False,
            qr_code_colors=ENTERPRISE_QR_CODE_COLORS,
        ),
    ),
})

FEATURE_LABELS: Mapping[FeatureKey, str] = MappingProxyType({
    FeatureKey.MAX_LINKS: "Quick links",
    FeatureKey.MAX_PRODUCTS: "Products",
    FeatureKey.CUSTOM_THEMES: "Custom themes",
    FeatureKey.ANALYTICS: "Analytics",
    FeatureKey.MULTI_PAGE: "Multi-page support",
    FeatureKey.LINE_NOTIFY: "LINE notifications",
    FeatureKey.WATERMARK: "Watermark",
    FeatureKey.QR_CODE_COLORS: "QR code colours",
})


def is_known_plan(plan_id: Any) -> bool:
    if isinstance(plan_id, Plan):
        return True
    return isinstance(plan_id, str) and plan_id in {plan.value for plan in Plan}


def definition_for(plan: Any) -> PlanDefinition:
    return PLANS[Plan.parse(plan)]


def limits_for(plan: Any) -> FeatureLimits:
    """
    Get the feature limits for a plan.

    Never fails: unknown identifiers resolve to the FREE limits so corrupted
    or legacy stored data cannot break gating.
    """
    return definition_for(plan).features


def can_use(limits: FeatureLimits, feature: FeatureKey | str) -> bool:
    key = FeatureKey.parse(feature)
    if key is None:
        return False

    value = limits.value_of(key)
    if key.kind is FeatureKind.TOGGLE:
        return bool(value)
    elif key.kind is FeatureKind.COUNT:
        return value > 0
    return False


def is_under_limit(limits: FeatureLimits, feature: FeatureKey | str, current_count: int) -> bool:
    """
    Check a usage count against a counted feature.

    Toggle features have no ceiling and always pass, as do unknown keys.
    """
    key = FeatureKey.parse(feature)
    if key is None or key.kind is not FeatureKind.COUNT:
        return True
    return current_count < limits.value_of(key)


def limit_value(limits: FeatureLimits, feature: FeatureKey | str) -> Optional[int | bool]:
    key = FeatureKey.parse(feature)
    if key is None:
        return None
    return limits.value_of(key)


def display_value(value: Optional[int | bool]) -> Optional[int | bool | str]:
    """Render a limit for the comparison table"""
    if isinstance(value, bool):
        return value
    if value == UNLIMITED:
        return "Unlimited"
    return value


def plan_catalog() -> Dict[str, Any]:
    """Plan comparison data for the pricing page, in plan order."""
    plans: List[Dict[str, Any]] = []
    for plan in Plan:
        definition = PLANS[plan]
        plans.append({
            "id": definition.id.value,
            "name": definition.name,
            "price": definition.price,
            "priceLabel": definition.price_label,
            "priceNote": definition.price_note,
            "description": definition.description,
            "popular": definition.popular,
            "features": [
                {
                    "key": key.value,
                    "label": FEATURE_LABELS[key],
                    "value": definition.features.value_of(key),
                    "display": display_value(definition.features.value_of(key)),
                }
                for key in FeatureKey
            ],
        })

    return {
        "plans": plans,
        "currency": CURRENCY,
        "currencySymbol": CURRENCY_SYMBOL,
    }
