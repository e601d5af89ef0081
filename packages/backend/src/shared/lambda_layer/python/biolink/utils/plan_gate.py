"""
Plan gate for bio-link API endpoints

Checks the caller's plan before a restricted action and points denied callers
to the upgrade page.
"""

import json
import os
from functools import wraps
from typing import Any, Callable, Dict, Optional
from aws_lambda_powertools import Logger

from .auth import extract_account_id_from_event
from ..constants.plan_tiers import UPGRADE_URL
from ..models.plan import FeatureKey, FeatureLimits, Plan
from ..services import entitlements
from ..services.document_store import DynamoDocumentStore
from ..services.subscription_state import SubscriptionState

logger = Logger()

DEFAULT_SUBSCRIPTION_TABLE_NAME = "biolink-subscriptions-dev"

StateFactory = Callable[[], SubscriptionState]


class FeatureGateError(Exception):
    """Exception raised when the caller's plan does not allow an action"""

    def __init__(self, feature: FeatureKey | str, plan: Plan, limit: Any = None):
        self.feature = feature.value if isinstance(feature, FeatureKey) else feature
        self.plan = plan
        self.limit = limit
        self.upgrade_url = UPGRADE_URL
        if limit is None or isinstance(limit, bool):
            self.message = f"'{self.feature}' is not available on the {plan.value} plan"
        else:
            self.message = f"'{self.feature}' limit reached on the {plan.value} plan ({limit})"
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "Upgrade required",
            "message": self.message,
            "feature": self.feature,
            "currentPlan": self.plan.value,
            "limit": self.limit,
            "upgradeUrl": self.upgrade_url,
        }


def check_feature(limits: FeatureLimits, feature: FeatureKey | str, plan: Plan) -> None:
    """Raise FeatureGateError unless the limits allow the feature"""
    if not entitlements.can_use(limits, feature):
        raise FeatureGateError(feature, plan, entitlements.limit_value(limits, feature))


def check_limit(
    limits: FeatureLimits, feature: FeatureKey | str, current_count: int, plan: Plan
) -> None:
    """Raise FeatureGateError when one more item would exceed the ceiling"""
    if not entitlements.is_under_limit(limits, feature, current_count):
        raise FeatureGateError(feature, plan, entitlements.limit_value(limits, feature))


def create_api_response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create an API Gateway proxy response

    Args:
        status_code: HTTP status code
        body: Response body dict

    Returns:
        Dict: API Gateway response format
    """
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "*",
        },
        "body": json.dumps(body, default=str),
    }


def default_state_factory() -> SubscriptionState:
    """Subscription state over the table named by SUBSCRIPTION_TABLE_NAME"""
    table_name = os.environ.get("SUBSCRIPTION_TABLE_NAME", DEFAULT_SUBSCRIPTION_TABLE_NAME)
    return SubscriptionState(DynamoDocumentStore(table_name))


def feature_gate(feature: FeatureKey, state_factory: Optional[StateFactory] = None):
    """
    Decorator to check the caller's plan before executing a Lambda function

    The caller's plan comes from a ``SubscriptionState`` bound for the duration
    of the check. A store failure leaves the state on free, so the gate denies.

    Args:
        feature: Feature the handler needs
        state_factory: Optional callable building the SubscriptionState

    Usage:
        @feature_gate(FeatureKey.ANALYTICS)
        def analytics_handler(event, context):
            # Runs only for plans with analytics
            pass
    """
    make_state = state_factory or default_state_factory

    def decorator(handler_func: Callable) -> Callable:
        @wraps(handler_func)
        def wrapper(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
            account_id = extract_account_id_from_event(event)
            if not account_id:
                return create_api_response(401, {"error": "Authentication required"})

            state = make_state()
            state.bind(account_id)
            try:
                check_feature(state.limits, feature, state.plan)
            except FeatureGateError as exc:
                logger.warning(f"Feature gate denied {account_id}: {exc.message}")
                return create_api_response(403, exc.to_dict())
            finally:
                state.release()

            logger.info(f"Feature gate passed for {account_id}, feature: {feature.value}")
            return handler_func(event, context)

        return wrapper
    return decorator
