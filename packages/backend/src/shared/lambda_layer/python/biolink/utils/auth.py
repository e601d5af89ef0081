"""
Authentication utilities for extracting account information from API Gateway events.
"""
from typing import Dict, Any, Optional
from aws_lambda_powertools import Logger

logger = Logger()


def get_all_account_claims(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract all JWT claims from API Gateway event context.

    When API Gateway uses Cognito authorization, it validates the JWT token
    and provides the claims under requestContext.authorizer.claims.

    Args:
        event: API Gateway event dictionary

    Returns:
        Dictionary of all JWT claims, empty when the request is anonymous
    """
    request_context = event.get("requestContext") or {}
    authorizer = request_context.get("authorizer") or {}
    claims = authorizer.get("claims") or {}
    return claims if isinstance(claims, dict) else {}


def extract_account_id_from_event(event: Dict[str, Any]) -> Optional[str]:
    """
    Extract the account id (sub claim) from API Gateway event context.

    Args:
        event: API Gateway event dictionary

    Returns:
        Account id from the JWT token, or None if not found
    """
    account_id = get_all_account_claims(event).get("sub")

    if account_id:
        logger.debug(f"Successfully extracted account_id: {account_id}")
        return account_id

    logger.warning("No account_id found in JWT claims")
    return None
