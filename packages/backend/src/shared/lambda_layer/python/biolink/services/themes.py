"""
Theme catalog for the public bio-link page.

Each theme has a minimum plan; a plan unlocks every theme at or below it.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List

from ..models.plan import Plan


class Theme(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: str
    tier: Plan = Field(description="Lowest plan that unlocks the theme")
    primary: str = Field(description="Primary colour, hex")


THEMES: tuple[Theme, ...] = (
    Theme(id="classic", name="Classic Black Gold", category="Business", tier=Plan.FREE, primary="#D4AF37"),
    Theme(id="fresh", name="Fresh Blue", category="Minimal", tier=Plan.FREE, primary="#3B82F6"),
    Theme(id="warm", name="Warm Amber", category="Lively", tier=Plan.PRO, primary="#F59E0B"),
    Theme(id="tech", name="Tech Violet", category="Futuristic", tier=Plan.PRO, primary="#8B5CF6"),
    Theme(id="nature", name="Nature Green", category="Eco", tier=Plan.PRO, primary="#10B981"),
    Theme(id="ocean", name="Deep Ocean", category="Calm", tier=Plan.PRO, primary="#0EA5E9"),
    Theme(id="luxury", name="Rose Gold", category="Boutique", tier=Plan.ENTERPRISE, primary="#EC4899"),
    Theme(id="midnight", name="Midnight Sky", category="Dreamy", tier=Plan.ENTERPRISE, primary="#6366F1"),
)


def available_themes(plan: Any) -> List[Theme]:
    user_plan = Plan.parse(plan)
    return [theme for theme in THEMES if user_plan.at_least(theme.tier)]


def is_theme_available(theme_id: str, plan: Any) -> bool:
    return any(theme.id == theme_id for theme in available_themes(plan))
