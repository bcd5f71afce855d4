"""Name normalization for warehouse items, donors and notebooks."""

import re

_ALEF_VARIANTS = re.compile("[أإآ]")


def normalize_item_name(name: str) -> str:
    """Fold Arabic spelling variants so one item has one stock line.

    Alef with hamza or madda becomes bare alef, teh marbuta becomes heh and
    alef maqsura becomes yeh.
    """
    if not name:
        return ""
    name = _ALEF_VARIANTS.sub("ا", name)
    name = name.replace("ة", "ه").replace("ى", "ي")
    return name.strip()


def normalize_donor_name(name: str) -> str:
    """Lowercase and collapse whitespace."""
    return " ".join(name.split()).lower()


def normalize_notebook_name(name: str) -> str:
    """Trim and lowercase; notebook names are unique per branch in this form."""
    return name.strip().lower()


def donor_name_pattern(name: str) -> re.Pattern:
    """Case-insensitive pattern matching ``name`` with any inner/outer spacing."""
    words = [re.escape(word) for word in name.split()]
    return re.compile(r"^\s*" + r"\s+".join(words) + r"\s*$", re.IGNORECASE)
