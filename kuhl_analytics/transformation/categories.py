"""
Category Normalization

Maps the category spellings used by the line list, sales and price list
exports onto one canonical product taxonomy so that category reports line up
across sources.
"""

import re
from typing import Dict, Optional, Tuple

# Canonical category -> source spellings (matched after folding, see _fold)
CATEGORY_ALIASES: Dict[str, Tuple[str, ...]] = {
    "Pants": ("pants", "pant", "mens pants", "womens pants", "trousers", "jeans", "denim", "bottoms", "joggers"),
    "Shorts": ("shorts", "short", "mens shorts", "womens shorts", "skorts", "skort"),
    "Jackets": ("jackets", "jacket", "outerwear", "insulated", "insulated jackets", "rain", "rainwear", "shell", "shells", "coats", "parkas"),
    "Fleece": ("fleece", "fleece jackets", "hoodies", "hoody", "sweatshirts", "pullovers"),
    "Sweaters": ("sweaters", "sweater", "knits", "cardigans", "sweater knits"),
    "Long Sleeve Shirts": ("long sleeve shirts", "long sleeve", "l/s shirts", "ls shirts", "ls shirt", "ls tops", "wovens ls", "flannel", "flannels", "shirts ls"),
    "Short Sleeve Shirts": ("short sleeve shirts", "short sleeve", "s/s shirts", "ss shirts", "ss shirt", "ss tops", "wovens ss", "shirts ss"),
    "Tees": ("tees", "tee", "t shirts", "tshirts", "graphic tees", "tanks", "tank tops", "knit tops", "tops"),
    "Vests": ("vests", "vest"),
    "Dresses": ("dresses", "dress", "jumpsuits"),
    "Skirts": ("skirts", "skirt"),
    "Baselayer": ("baselayer", "base layer", "base layers", "leggings", "tights"),
    "Headwear": ("headwear", "hats", "hat", "caps", "beanies", "beanie"),
    "Accessories": ("accessories", "accessory", "acc", "gloves", "socks", "belts", "scarves", "misc"),
    "Bags": ("bags", "bag", "packs", "backpacks"),
}

_GENDER_PREFIX_RE = re.compile(r"^(?:men|women|mens|womens|m|w|kids|youth|unisex)\s+")


def _fold(value: str) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    folded = re.sub(r"[^a-z0-9]+", " ", value.lower().replace("'", ""))
    return " ".join(folded.split())


def _build_lookup() -> Dict[str, str]:
    lookup: Dict[str, str] = {}
    for canonical, aliases in CATEGORY_ALIASES.items():
        lookup[_fold(canonical)] = canonical
        for alias in aliases:
            lookup[_fold(alias)] = canonical
    return lookup


_LOOKUP = _build_lookup()

CANONICAL_CATEGORIES = tuple(CATEGORY_ALIASES)


def normalize_category(raw: Optional[str]) -> str:
    """
    Map a raw category description onto the canonical taxonomy.

    Gender prefixes such as "Men's" are ignored when matching. Values with no
    mapping are returned trimmed but otherwise unchanged.

    Example:
        >>> normalize_category("MEN'S PANTS")
        'Pants'
        >>> normalize_category("Snow Gear")
        'Snow Gear'
    """
    if raw is None:
        return ""
    text = str(raw).strip()
    if not text:
        return ""

    key = _fold(text)
    if key in _LOOKUP:
        return _LOOKUP[key]

    stripped = _GENDER_PREFIX_RE.sub("", key)
    if stripped in _LOOKUP:
        return _LOOKUP[stripped]
    return text
