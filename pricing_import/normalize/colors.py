from __future__ import annotations

import re
from typing import Any

from ..models.parsed_row import WineColor

"""Wine color / category resolution.

Resolution order for a product row:
1. explicit color token via the synonym table ("rouge" -> RED, "RED" -> RED)
2. ordered product-name rules, first matching rule wins
3. None (no default here; "assume RED" is a display-side policy)

color_from_label() applies the section rules to a whole short line such as
"Red Wine" or "Dessert & Fortified Wines".
"""

__all__ = [
    "normalize_color",
    "color_from_token",
    "color_from_name",
    "color_from_label",
]

COLOR_SYNONYMS: dict[str, WineColor] = {
    "red": WineColor.RED,
    "rouge": WineColor.RED,
    "white": WineColor.WHITE,
    "blanc": WineColor.WHITE,
    "wit": WineColor.WHITE,
    "rose": WineColor.ROSE,
    "rosé": WineColor.ROSE,
    "blush": WineColor.ROSE,
    "dessert": WineColor.DESSERT,
    "desert": WineColor.DESSERT,
    "sweet": WineColor.DESSERT,
}

# Order matters: "Brut Rosé" is ROSE before the WHITE "brut" rule sees it.
NAME_RULES: tuple[tuple[re.Pattern[str], WineColor], ...] = (
    (re.compile(r"(ros[eé]|blush)", re.IGNORECASE), WineColor.ROSE),
    (
        re.compile(
            r"(chenin|sauvignon\s*blanc|blanc|chardonnay|viognier|pinot\s*(grigio|gris)"
            r"|brut(?!\s*ros[eé])|sparkling\s*brut|white|stoneflower)",
            re.IGNORECASE,
        ),
        WineColor.WHITE,
    ),
    (
        re.compile(
            r"(merlot|shiraz|syrah|pinotage|cabernet|cab\s*sauv|malbec|granite\s*red|red\s*blend"
            r"|the\s*blend|sandveld|paddock\s*shiraz|evanthuis|gondolier|san\s*louis)",
            re.IGNORECASE,
        ),
        WineColor.RED,
    ),
    (
        re.compile(r"(jerepiko|jeripigo|port|moscat|moscato|late\s*harvest|noble\s*late)", re.IGNORECASE),
        WineColor.DESSERT,
    ),
)

SECTION_RULES: tuple[tuple[re.Pattern[str], WineColor], ...] = (
    (re.compile(r"\b(reds?|rouge)\b"), WineColor.RED),
    (re.compile(r"\b(whites?|wit|blanc)\b"), WineColor.WHITE),
    (re.compile(r"\b(ros[eé]s?|blush)\b"), WineColor.ROSE),
    (
        re.compile(
            r"\b(desserts?|desert|sweet|noble\s*late|late\s*harvest|jerepik\w*|jeripig\w*"
            r"|moscat|moscato|fortified|ports?)\b"
        ),
        WineColor.DESSERT,
    ),
)

# A color-section line may only contain category words and these fillers,
# otherwise "Rouge Estate" or "Klawer Red Blend" would be read as sections.
_SECTION_FILLERS = frozenset(
    {"wine", "wines", "the", "and", "&", "range", "selection", "collection", "sparkling", "still", "styles"}
)
_SECTION_WORDS = frozenset(
    {
        "red", "reds", "rouge",
        "white", "whites", "wit", "blanc",
        "rose", "roses", "rosé", "rosés", "blush",
        "dessert", "desserts", "desert", "sweet", "noble", "late", "harvest",
        "jerepiko", "jeripigo", "moscat", "moscato", "fortified", "port", "ports",
    }
)
_TOKEN = re.compile(r"[^\W\d_]+|&")


def color_from_token(raw: Any) -> WineColor | None:
    if isinstance(raw, WineColor):
        return raw
    if raw is None:
        return None
    key = str(raw).strip().lower()
    if not key:
        return None
    return COLOR_SYNONYMS.get(key)


def color_from_name(product_name: str | None) -> WineColor | None:
    name = product_name or ""
    for pattern, color in NAME_RULES:
        if pattern.search(name):
            return color
    return None


def normalize_color(raw: Any, product_name: str | None = None) -> WineColor | None:
    """Resolve a color column value and/or product name to a WineColor."""
    color = color_from_token(raw)
    if color is not None:
        return color
    return color_from_name(product_name)


def color_from_label(label: str | None) -> WineColor | None:
    """Resolve a short free-text section line ("Red Wine") or return None.

    None is returned as soon as the label carries a word outside the section
    vocabulary, so brand names and product lines are never taken as sections.
    """
    text = (label or "").strip().lower()
    if not text:
        return None
    tokens = _TOKEN.findall(text)
    if not tokens or any(t not in _SECTION_WORDS and t not in _SECTION_FILLERS for t in tokens):
        return None
    for pattern, color in SECTION_RULES:
        if pattern.search(text):
            return color
    return None
