"""
Live plan state for one account.

A ``SubscriptionState`` is owned by the consumer that created it. It holds at
most one live watch on the store; binding to another account releases the
previous watch before opening the next one, so a released watch never
delivers again.
"""

from typing import Callable, Dict, Optional
from aws_lambda_powertools import Logger

from . import entitlements
from .document_store import Document, DocumentStore, WatchHandle
from ..models.plan import FeatureKey, FeatureLimits, Plan, PlanDefinition, StoreUnavailableError

logger = Logger()

PlanObserver = Callable[[Plan], None]


class SubscriptionState:
    def __init__(self, store: DocumentStore):
        self._store = store
        self._account_id: Optional[str] = None
        self._watch: Optional[WatchHandle] = None
        self._plan = Plan.FREE
        self._loading = True
        self._observers: Dict[int, PlanObserver] = {}
        self._next_token = 0
        self._generation = 0

    @property
    def account_id(self) -> Optional[str]:
        return self._account_id

    @property
    def plan(self) -> Plan:
        return self._plan

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def is_live(self) -> bool:
        return self._watch is not None and self._watch.active

    @property
    def definition(self) -> PlanDefinition:
        return entitlements.definition_for(self._plan)

    @property
    def limits(self) -> FeatureLimits:
        return entitlements.limits_for(self._plan)

    @property
    def is_pro(self) -> bool:
        return self._plan.at_least(Plan.PRO)

    @property
    def is_enterprise(self) -> bool:
        return self._plan is Plan.ENTERPRISE

    def can_use(self, feature: FeatureKey | str) -> bool:
        return entitlements.can_use(self.limits, feature)

    def is_under_limit(self, feature: FeatureKey | str, current_count: int) -> bool:
        return entitlements.is_under_limit(self.limits, feature, current_count)

    def limit_value(self, feature: FeatureKey | str) -> Optional[int | bool]:
        return entitlements.limit_value(self.limits, feature)

    def subscribe(self, observer: PlanObserver) -> WatchHandle:
        """
        Register an observer called with the resolved plan on every update.

        The returned handle belongs to the caller, who releases it.
        """
        token = self._next_token
        self._next_token += 1
        self._observers[token] = observer
        return WatchHandle(self._account_id or "", lambda: self._observers.pop(token, None))

    def bind(self, account_id: Optional[str]) -> None:
        """
        Follow an account's subscription document, or FREE when signed out.

        Any previous watch is released first. Observers may call ``bind`` or
        ``release`` from the initial notification; the watch opened here is
        then released before ``bind`` returns.
        """
        self.release()
        generation = self._generation
        self._account_id = account_id or None

        if self._account_id is None:
            self._loading = False
            self._notify()
            return

        self._loading = True
        watch = self._store.watch(self._account_id, self._on_document, self._on_error)
        if generation != self._generation:
            # Superseded during the initial snapshot
            watch.release()
            return
        self._watch = watch

    def release(self) -> None:
        """Stop following the account. Safe to call any number of times."""
        self._generation += 1
        if self._watch is not None:
            self._watch.release()
            self._watch = None
            logger.debug(f"Released subscription watch for {self._account_id}")
        self._plan = Plan.FREE
        self._loading = False

    def _on_document(self, document: Optional[Document]) -> None:
        self._plan = Plan.parse(document.get("plan")) if document else Plan.FREE
        self._loading = False
        self._notify()

    def _on_error(self, error: StoreUnavailableError) -> None:
        # Keep the last known plan
        logger.error(
            f"Subscription update failed for {self._account_id}, "
            f"keeping plan {self._plan.value}: {str(error)}"
        )
        self._loading = False

    def _notify(self) -> None:
        for token, observer in list(self._observers.items()):
            if token in self._observers:
                observer(self._plan)
