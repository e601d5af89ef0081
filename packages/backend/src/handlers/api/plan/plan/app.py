import os
from aws_lambda_powertools import Logger
from aws_lambda_powertools.event_handler import APIGatewayRestResolver
from aws_lambda_powertools.event_handler.api_gateway import CORSConfig
from aws_lambda_powertools.event_handler.exceptions import (BadRequestError, ServiceError,
                                                            UnauthorizedError)
from aws_lambda_powertools.utilities.typing import LambdaContext
from typing import Any, Dict

from biolink.constants.plan_tiers import UPGRADE_URL
from biolink.models.plan import (InvalidPlanError, Plan, StoreUnavailableError,
                                 UnauthenticatedError)
from biolink.services import entitlements
from biolink.services.document_store import DynamoDocumentStore
from biolink.services.identity import EventIdentity
from biolink.services.subscription_service import SubscriptionService
from biolink.services.themes import available_themes

# Initialize the logger
logger = Logger()

# Retrieve environment variables
SUBSCRIPTION_TABLE_NAME = os.environ.get("SUBSCRIPTION_TABLE_NAME", "biolink-subscriptions-dev")

# Configure CORS
cors_config = CORSConfig(
    allow_origin="*",  # In production, specify your actual domain
)

# Initialize the APIGatewayRestResolver
app = APIGatewayRestResolver(cors=cors_config)


def _subscription_service() -> SubscriptionService:
    return SubscriptionService(
        DynamoDocumentStore(SUBSCRIPTION_TABLE_NAME),
        EventIdentity(app.current_event.raw_event),
    )


def _json_body() -> Dict[str, Any]:
    try:
        body = app.current_event.json_body
    except (TypeError, ValueError) as exc:
        raise BadRequestError(f"Invalid request: {str(exc)}")
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise BadRequestError("Request body must be a JSON object")
    return body


def _caller_plan(service: SubscriptionService) -> Plan:
    account_id = service.identity.account_id
    if not account_id:
        logger.error("No account_id found in JWT token")
        raise UnauthorizedError("Authentication required")
    try:
        return service.get_plan(account_id)
    except StoreUnavailableError as exc:
        logger.error(f"Error reading plan for {account_id}: {str(exc)}")
        raise ServiceError(503, "Subscription store unavailable, please retry")


@app.get("/plan")
def get_plan() -> Dict[str, Any]:
    """
    Get the caller's current plan and its limits
    """
    service = _subscription_service()
    account_id = service.identity.account_id
    if not account_id:
        logger.error("No account_id found in JWT token")
        raise UnauthorizedError("Authentication required")

    try:
        subscription = service.get_subscription(account_id)
    except StoreUnavailableError as exc:
        logger.error(f"Error reading subscription for {account_id}: {str(exc)}")
        raise ServiceError(503, "Subscription store unavailable, please retry")

    return {
        "plan": subscription.plan.value,
        "upgradedAt": subscription.upgraded_at.isoformat() if subscription.upgraded_at else None,
        "limits": entitlements.limits_for(subscription.plan).to_document(),
        "isPro": subscription.plan.at_least(Plan.PRO),
        "isEnterprise": subscription.plan is Plan.ENTERPRISE,
    }


@app.get("/plan/catalog")
def get_catalog() -> Dict[str, Any]:
    """
    Get the plan comparison table
    """
    return entitlements.plan_catalog()


@app.post("/plan/upgrade")
def upgrade_plan() -> Dict[str, Any]:
    """
    Change the caller's plan
    Expected body: {"plan": "free|pro|enterprise"}
    """
    body = _json_body()
    if "plan" not in body:
        raise BadRequestError("Missing required field: plan")

    service = _subscription_service()
    try:
        subscription = service.upgrade_plan(body["plan"])
    except UnauthenticatedError:
        raise UnauthorizedError("Authentication required")
    except InvalidPlanError as exc:
        raise BadRequestError(str(exc))
    except StoreUnavailableError:
        raise ServiceError(503, "Failed to save plan, please retry")

    return {
        "success": True,
        "message": f"Successfully upgraded to {subscription.plan.value}",
        "subscription": subscription.to_document(),
    }


@app.post("/plan/check")
def check_entitlement() -> Dict[str, Any]:
    """
    Check whether the caller may use a feature
    Expected body: {"feature": "maxLinks", "count": 3}
    """
    body = _json_body()
    feature = body.get("feature")
    if not isinstance(feature, str):
        raise BadRequestError("Missing required field: feature")

    count = body.get("count")
    if count is not None and (isinstance(count, bool) or not isinstance(count, int) or count < 0):
        raise BadRequestError("count must be a non-negative integer")

    plan = _caller_plan(_subscription_service())
    limits = entitlements.limits_for(plan)

    allowed = entitlements.can_use(limits, feature)
    if allowed and count is not None:
        allowed = entitlements.is_under_limit(limits, feature, count)

    result = {
        "feature": feature,
        "plan": plan.value,
        "allowed": allowed,
        "limit": entitlements.limit_value(limits, feature),
    }
    if not allowed:
        result["upgradeUrl"] = UPGRADE_URL
    return result


@app.get("/plan/themes")
def get_themes() -> Dict[str, Any]:
    """
    List the themes the caller's plan unlocks. Anonymous callers get the free themes.
    """
    service = _subscription_service()
    plan = _caller_plan(service) if service.identity.is_authenticated else Plan.FREE
    return {
        "plan": plan.value,
        "themes": [theme.model_dump(mode="json") for theme in available_themes(plan)],
    }


def handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda function handler.
    """
    logger.info(f"Received {event.get('httpMethod')} {event.get('path')}")

    return app.resolve(event, context)
