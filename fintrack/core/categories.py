from typing import Dict, Optional


OTHER = "other"

CATEGORIES = (
    "food",
    "transport",
    "bills",
    "shopping",
    "entertainment",
    "healthcare",
    "education",
    OTHER,
)

CATEGORY_ICONS: Dict[str, str] = {
    "food": "\U0001F37D️",
    "transport": "\U0001F697",
    "bills": "\U0001F4CB",
    "shopping": "\U0001F6CD️",
    "entertainment": "\U0001F3AC",
    "healthcare": "\U0001F3E5",
    "education": "\U0001F4DA",
    "other": "\U0001F4DD",
}

CATEGORY_COLORS: Dict[str, str] = {
    "food": "#FF6B6B",
    "transport": "#4ECDC4",
    "bills": "#45B7D1",
    "shopping": "#96CEB4",
    "entertainment": "#FFEAA7",
    "healthcare": "#DDA0DD",
    "education": "#98D8C8",
    "other": "#F7DC6F",
}

FALLBACK_ICON = CATEGORY_ICONS["other"]
FALLBACK_COLOR = "#8884d8"


def normalize_category(name: Optional[str]) -> str:
    """Lower-case and trim a category; empty values become ``other``.

    Unknown categories are kept as given, only their display falls back.
    """
    value = (name or "").strip().lower()
    return value or OTHER


def is_known_category(name: str) -> bool:
    return name in CATEGORY_ICONS


def category_icon(name: str) -> str:
    return CATEGORY_ICONS.get(name, FALLBACK_ICON)


def category_color(name: str) -> str:
    return CATEGORY_COLORS.get(name, FALLBACK_COLOR)
