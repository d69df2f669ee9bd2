"""
Cleanup of downloaded spending data.

Drops category identifiers once the amount queries no longer need them, and
folds the long tail of agencies into a single "Other" bucket.
"""

from dataclasses import replace
from typing import Dict, List, Mapping, Sequence, Tuple

# Handle both package and direct execution imports
try:
    from . import config
    from .spending_api import AmountRecord, Category
except ImportError:
    import config
    from spending_api import AmountRecord, Category


NameTable = Dict[str, List[str]]


def strip_ids(categories: Mapping[str, Sequence[Category]]) -> NameTable:
    """Keep only display names, in their original order."""
    return {
        category_type: [category.name for category in items]
        for category_type, items in categories.items()
    }


def consolidate_agencies(
    categories: Mapping[str, Sequence[str]],
    amounts: Sequence[AmountRecord],
    n_agencies: int = config.AGENCY_CUTOFF,
    other_label: str = config.OTHER_LABEL,
) -> Tuple[NameTable, List[AmountRecord]]:
    """
    Merge every agency ranked below ``n_agencies`` into ``other_label``.

    Rank is the agency's position in the category list. Records naming an
    agency outside the kept set are relabelled; the agency list is cut to the
    kept set and the "Other" entry is always appended, even if no record ends
    up under it.
    """
    kept = list(categories["agency"][:n_agencies])
    kept_set = set(kept)

    consolidated = [
        amount if amount.agency in kept_set else replace(amount, agency=other_label)
        for amount in amounts
    ]

    cleaned = {category_type: list(names) for category_type, names in categories.items()}
    cleaned["agency"] = kept + [other_label]
    return cleaned, consolidated
