"""
Identity providers: who is calling, and are they signed in.
"""

from typing import Any, Dict, Optional, Protocol

from ..utils.auth import extract_account_id_from_event


class IdentityProvider(Protocol):
    @property
    def account_id(self) -> Optional[str]:
        ...

    @property
    def is_authenticated(self) -> bool:
        ...


class StaticIdentity:
    """Fixed identity, for jobs acting on behalf of a known account"""

    def __init__(self, account_id: Optional[str] = None):
        self._account_id = account_id or None

    @property
    def account_id(self) -> Optional[str]:
        return self._account_id

    @property
    def is_authenticated(self) -> bool:
        return self._account_id is not None


class EventIdentity:
    """Identity taken from the Cognito claims of an API Gateway event"""

    def __init__(self, event: Dict[str, Any]):
        self._account_id = extract_account_id_from_event(event)

    @property
    def account_id(self) -> Optional[str]:
        return self._account_id

    @property
    def is_authenticated(self) -> bool:
        return self._account_id is not None
