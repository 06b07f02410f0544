from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional

from geods_poi.core.errors import ValidationError


ALTERNATE_SEPARATOR = "|"


# ──────────────────────────────────────────────────────────────
# Filter (request side)
# ──────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class CategoryFilter:
    """
    Compiled `categories` request parameter.

    `wanted is None` means no constraint was supplied (match all).
    Otherwise `wanted` holds trimmed, lower-cased category names.
    """
    wanted: Optional[FrozenSet[str]] = None

    @property
    def match_all(self) -> bool:
        return self.wanted is None

    def matches(self, tags: Iterable[str], *, case_sensitive: bool = False) -> bool:
        """
        True if any tag is in the filter set.

        With case_sensitive=True tags are compared exactly as stored, so
        "Cafe" never matches a filter built from "cafe". Otherwise each tag
        is trimmed and lower-cased for the comparison only.
        """
        if self.wanted is None:
            return True
        for tag in tags:
            key = tag if case_sensitive else tag.strip().lower()
            if key in self.wanted:
                return True
        return False


MATCH_ALL = CategoryFilter()


def parse_categories(raw: str) -> CategoryFilter:
    if raw == "":
        return MATCH_ALL

    wanted: set[str] = set()
    for cat in raw.split(","):
        cat = cat.strip()
        if cat == "":
            raise ValidationError("category cannot be an empty string")
        wanted.add(cat.lower())

    return CategoryFilter(wanted=frozenset(wanted))


# ──────────────────────────────────────────────────────────────
# Tags (row side)
# ──────────────────────────────────────────────────────────────

def build_categories(main_category: Optional[str], alternate_category: Optional[str]) -> List[str]:
    """
    Ordered tag list for one row: primary first, then each alternate token.

    Alternate tokens are trimmed but otherwise kept as stored (empty tokens
    included, no dedup, no case change).
    """
    tags: List[str] = []
    if main_category is not None:
        tags.append(main_category)
    if alternate_category is not None:
        tags.extend(cat.strip() for cat in alternate_category.split(ALTERNATE_SEPARATOR))
    return tags
