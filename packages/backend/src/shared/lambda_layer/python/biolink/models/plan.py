from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional


class PlanError(Exception):
    """Base exception for plan and entitlement errors"""

    pass


class UnauthenticatedError(PlanError):
    """Raised when a plan change is attempted without an active account"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class InvalidPlanError(PlanError):
    """Raised when a plan identifier is not one of the known plans"""

    def __init__(self, plan_id: Any):
        self.plan_id = plan_id
        super().__init__(f"Unknown plan: {plan_id!r}")


class StoreUnavailableError(PlanError):
    """Raised when the document store cannot be read or written"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code
        super().__init__(message)


class Plan(str, Enum):
    """Subscription plan, declared in ascending order"""
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"

    @property
    def rank(self) -> int:
        return list(Plan).index(self)

    def at_least(self, other: "Plan") -> bool:
        return self.rank >= other.rank

    @classmethod
    def parse(cls, raw: Any) -> "Plan":
        """Resolve any stored value to a plan. Unknown or missing values are FREE."""
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            try:
                return cls(raw)
            except ValueError:
                pass
        return cls.FREE


class FeatureKind(str, Enum):
    COUNT = "count"
    TOGGLE = "toggle"


class FeatureKey(str, Enum):
    """Closed set of gated features, valued by their document key"""
    MAX_LINKS = "maxLinks"
    MAX_PRODUCTS = "maxProducts"
    CUSTOM_THEMES = "customThemes"
    ANALYTICS = "analytics"
    MULTI_PAGE = "multiPage"
    LINE_NOTIFY = "lineNotify"
    WATERMARK = "watermark"
    QR_CODE_COLORS = "qrCodeColors"

    @property
    def kind(self) -> FeatureKind:
        return FEATURE_KINDS[self]

    @classmethod
    def parse(cls, raw: Any) -> Optional["FeatureKey"]:
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            try:
                return cls(raw)
            except ValueError:
                return None
        return None


FEATURE_KINDS: Dict[FeatureKey, FeatureKind] = {
    FeatureKey.MAX_LINKS: FeatureKind.COUNT,
    FeatureKey.MAX_PRODUCTS: FeatureKind.COUNT,
    FeatureKey.CUSTOM_THEMES: FeatureKind.TOGGLE,
    FeatureKey.ANALYTICS: FeatureKind.TOGGLE,
    FeatureKey.MULTI_PAGE: FeatureKind.TOGGLE,
    FeatureKey.LINE_NOTIFY: FeatureKind.TOGGLE,
    FeatureKey.WATERMARK: FeatureKind.TOGGLE,
    FeatureKey.QR_CODE_COLORS: FeatureKind.COUNT,
}


class FeatureLimits(BaseModel):
    """
    Feature limits attached to a plan.

    ``watermark`` is a restriction flag: True means the public page carries a
    watermark. Every other boolean grants a feature.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    max_links: int = Field(alias="maxLinks", ge=0, description="Quick links allowed")
    max_products: int = Field(alias="maxProducts", ge=0, description="Products allowed")
    custom_themes: bool = Field(alias="customThemes", description="Paid themes unlocked")
    analytics: bool = Field(alias="analytics", description="Analytics dashboard")
    multi_page: bool = Field(alias="multiPage", description="Multiple pages per account")
    line_notify: bool = Field(alias="lineNotify", description="LINE notification settings")
    watermark: bool = Field(alias="watermark", description="Watermark imposed on the public page")
    qr_code_colors: int = Field(alias="qrCodeColors", ge=0, description="Selectable QR code colours")

    def value_of(self, feature: FeatureKey) -> int | bool:
        return getattr(self, FEATURE_FIELDS[feature])

    def to_document(self) -> Dict[str, int | bool]:
        return self.model_dump(by_alias=True)


FEATURE_FIELDS: Dict[FeatureKey, str] = {
    FeatureKey(field.alias): name for name, field in FeatureLimits.model_fields.items()
}


class PlanDefinition(BaseModel):
    """A plan as shown on the comparison page, with its limits"""
    model_config = ConfigDict(frozen=True)

    id: Plan
    name: str
    price: int = Field(ge=0, description="One-time price in TWD")
    price_label: str
    price_note: Optional[str] = Field(default=None)
    description: str
    popular: bool = Field(default=False)
    features: FeatureLimits


class Subscription(BaseModel):
    """An account's subscription document"""
    account_id: str = Field(description="Identity provider account id")
    plan: Plan = Field(default=Plan.FREE)
    upgraded_at: Optional[datetime] = Field(default=None)

    @classmethod
    def from_document(cls, account_id: str, document: Optional[Dict[str, Any]]) -> "Subscription":
        """Build a subscription from a stored document; absence means FREE."""
        if not document:
            return cls(account_id=account_id)

        upgraded_at = None
        raw_upgraded_at = document.get("upgradedAt")
        if isinstance(raw_upgraded_at, str):
            try:
                upgraded_at = datetime.fromisoformat(raw_upgraded_at)
            except ValueError:
                upgraded_at = None

        return cls(
            account_id=account_id,
            plan=Plan.parse(document.get("plan")),
            upgraded_at=upgraded_at,
        )

    def to_document(self) -> Dict[str, Any]:
        upgraded_at = self.upgraded_at or datetime.now(timezone.utc)
        return {
            "plan": self.plan.value,
            "upgradedAt": upgraded_at.isoformat(),
            "userId": self.account_id,
        }
