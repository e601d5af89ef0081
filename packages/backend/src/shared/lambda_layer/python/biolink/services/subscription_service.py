"""
Subscription Service for bio-link plans

Reads an account's plan and records plan upgrades.
"""

from datetime import datetime, timezone
from typing import Any
from aws_lambda_powertools import Logger

from .document_store import DocumentStore
from .entitlements import is_known_plan
from .identity import IdentityProvider
from ..models.plan import (InvalidPlanError, Plan, StoreUnavailableError,
                           Subscription, UnauthenticatedError)

logger = Logger()


class SubscriptionService:
    """Service for reading and changing account plans"""

    def __init__(self, store: DocumentStore, identity: IdentityProvider):
        """
        Initialize subscription service

        Args:
            store: Document store holding one subscription document per account
            identity: Provider of the calling account
        """
        self.store = store
        self.identity = identity

    def get_subscription(self, account_id: str) -> Subscription:
        """
        Get an account's subscription

        Absent documents and unrecognized plan ids read as FREE.

        Raises:
            StoreUnavailableError: The store could not be read
        """
        document = self.store.get(account_id)
        return Subscription.from_document(account_id, document)

    def get_plan(self, account_id: str) -> Plan:
        return self.get_subscription(account_id).plan

    def upgrade_plan(self, plan_id: Any) -> Subscription:
        """
        Set the calling account's plan.

        Payment is not handled here; callers must settle it before calling.
        Live watches on the account see the change through the store.

        Args:
            plan_id: Target plan identifier

        Returns:
            Subscription: The subscription as written

        Raises:
            UnauthenticatedError: No account is signed in
            InvalidPlanError: plan_id is not a known plan
            StoreUnavailableError: The write was not acknowledged
        """
        account_id = self.identity.account_id
        if not self.identity.is_authenticated or not account_id:
            logger.warning("Plan upgrade attempted without an authenticated account")
            raise UnauthenticatedError()

        if not is_known_plan(plan_id):
            logger.error(f"Rejected upgrade of {account_id} to unknown plan {plan_id!r}")
            raise InvalidPlanError(plan_id)

        subscription = Subscription(
            account_id=account_id,
            plan=Plan(plan_id),
            upgraded_at=datetime.now(timezone.utc),
        )

        try:
            self.store.merge(account_id, subscription.to_document())
        except StoreUnavailableError as exc:
            logger.error(f"Error upgrading plan for {account_id}: {str(exc)}")
            raise

        logger.info(f"Upgraded plan for {account_id} to {subscription.plan.value}")
        return subscription
