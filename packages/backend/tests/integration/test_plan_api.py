import json
from typing import Any, Dict, Optional

from moto import mock_aws

from src.handlers.api.plan.plan import app as plan_app
from tests.fixtures.ddb import create_subscription_table, put_subscription_document


def api_event(
    method: str, path: str, account_id: Optional[str] = None, body: Any = None
) -> Dict[str, Any]:
    """Build an API Gateway REST proxy event."""
    request_context: Dict[str, Any] = {
        "httpMethod": method,
        "path": path,
        "resourcePath": path,
        "stage": "test",
        "requestId": "test-request",
    }
    if account_id:
        request_context["authorizer"] = {
            "claims": {"sub": account_id, "email": f"{account_id}@example.com"}
        }

    return {
        "httpMethod": method,
        "path": path,
        "resource": path,
        "headers": {"Content-Type": "application/json"},
        "multiValueHeaders": {},
        "queryStringParameters": None,
        "multiValueQueryStringParameters": None,
        "pathParameters": None,
        "stageVariables": None,
        "requestContext": request_context,
        "body": json.dumps(body) if body is not None else None,
        "isBase64Encoded": False,
    }


def call(event: Dict[str, Any]):
    response = plan_app.handler(event, None)
    return response["statusCode"], json.loads(response["body"])


@mock_aws
def test_get_plan_for_new_account():
    create_subscription_table(plan_app.SUBSCRIPTION_TABLE_NAME)

    status, body = call(api_event("GET", "/plan", account_id="acct-1"))

    assert status == 200
    assert body["plan"] == "free"
    assert body["upgradedAt"] is None
    assert body["limits"]["maxLinks"] == 3
    assert body["limits"]["watermark"] is True
    assert body["isPro"] is False


@mock_aws
def test_get_plan_requires_authentication():
    create_subscription_table(plan_app.SUBSCRIPTION_TABLE_NAME)

    status, _ = call(api_event("GET", "/plan"))

    assert status == 401


@mock_aws
def test_get_plan_store_unavailable():
    status, _ = call(api_event("GET", "/plan", account_id="acct-1"))

    assert status == 503


def test_catalog_is_public():
    status, body = call(api_event("GET", "/plan/catalog"))

    assert status == 200
    assert [plan["id"] for plan in body["plans"]] == ["free", "pro", "enterprise"]


@mock_aws
def test_upgrade_then_read_back():
    create_subscription_table(plan_app.SUBSCRIPTION_TABLE_NAME)

    status, body = call(
        api_event("POST", "/plan/upgrade", account_id="acct-1", body={"plan": "enterprise"})
    )
    assert status == 200
    assert body["success"] is True
    assert body["subscription"]["plan"] == "enterprise"
    assert body["subscription"]["userId"] == "acct-1"

    status, body = call(api_event("GET", "/plan", account_id="acct-1"))
    assert status == 200
    assert body["plan"] == "enterprise"
    assert body["isPro"] is True
    assert body["isEnterprise"] is True
    assert body["upgradedAt"] is not None


@mock_aws
def test_upgrade_errors():
    table = create_subscription_table(plan_app.SUBSCRIPTION_TABLE_NAME)

    status, _ = call(api_event("POST", "/plan/upgrade", body={"plan": "pro"}))
    assert status == 401

    status, body = call(
        api_event("POST", "/plan/upgrade", account_id="acct-1", body={"plan": "platinum"})
    )
    assert status == 400
    assert "platinum" in body["message"]

    status, _ = call(api_event("POST", "/plan/upgrade", account_id="acct-1", body={}))
    assert status == 400

    assert table.scan()["Items"] == []


@mock_aws
def test_check_entitlement():
    table = create_subscription_table(plan_app.SUBSCRIPTION_TABLE_NAME)
    put_subscription_document(table, "acct-1", plan="pro")

    status, body = call(
        api_event("POST", "/plan/check", account_id="acct-1", body={"feature": "analytics"})
    )
    assert status == 200
    assert body["allowed"] is False
    assert body["upgradeUrl"] == "/upgrade"

    status, body = call(
        api_event("POST", "/plan/check", account_id="acct-1",
                  body={"feature": "maxLinks", "count": 10})
    )
    assert body["allowed"] is True
    assert body["limit"] == 999
    assert "upgradeUrl" not in body

    status, body = call(
        api_event("POST", "/plan/check", account_id="acct-1", body={"feature": "teleport"})
    )
    assert status == 200
    assert body["allowed"] is False
    assert body["limit"] is None


@mock_aws
def test_check_entitlement_validates_input():
    create_subscription_table(plan_app.SUBSCRIPTION_TABLE_NAME)

    status, _ = call(api_event("POST", "/plan/check", account_id="acct-1", body={}))
    assert status == 400

    status, _ = call(
        api_event("POST", "/plan/check", account_id="acct-1",
                  body={"feature": "maxLinks", "count": -1})
    )
    assert status == 400

    status, _ = call(api_event("POST", "/plan/check", body={"feature": "maxLinks"}))
    assert status == 401


@mock_aws
def test_themes_follow_plan():
    table = create_subscription_table(plan_app.SUBSCRIPTION_TABLE_NAME)
    put_subscription_document(table, "acct-1", plan="pro")

    status, body = call(api_event("GET", "/plan/themes"))
    assert status == 200
    assert body["plan"] == "free"
    assert [theme["id"] for theme in body["themes"]] == ["classic", "fresh"]

    status, body = call(api_event("GET", "/plan/themes", account_id="acct-1"))
    assert body["plan"] == "pro"
    assert len(body["themes"]) == 6
    assert body["themes"][2]["tier"] == "pro"
