from enum import Enum
from typing import Dict, Set, Tuple


# -----------------------------------------------------------------------------
# CLASSIFIER MODULE
# Purpose: decide which slices of the user's budget data a question needs.
# Matching is plain lowercase substring containment. It over-fetches on
# purpose: an extra slice only adds context, a missing one hides data.
# -----------------------------------------------------------------------------


class DataCategory(str, Enum):
    """Buckets of budget data the fetcher knows how to load."""

    TRANSACTIONS = "transactions"
    CATEGORIES = "categories"
    MONTH_HISTORY = "monthHistory"
    YEAR_HISTORY = "yearHistory"
    USER_SETTINGS = "userSettings"
    SUMMARY = "summary"  # fetch everything


CATEGORY_TRIGGERS: Dict[DataCategory, Tuple[str, ...]] = {
    DataCategory.TRANSACTIONS: (
        "transaction",
        "spent",
        "spend",
        "purchase",
        "bought",
    ),
    DataCategory.CATEGORIES: ("category", "breakdown", "spent on"),
    DataCategory.MONTH_HISTORY: ("monthly", "this month", "last month"),
    DataCategory.YEAR_HISTORY: ("yearly", "this year", "annual"),
    DataCategory.USER_SETTINGS: ("currency", "settings"),
}


def classify_query(query: str) -> Set[DataCategory]:
    """
    Map a free-text question to the data categories needed to answer it.

    Returns {DataCategory.SUMMARY} when nothing matches.

    Example:
        classify_query("How much did I spend this month?")
        -> {DataCategory.TRANSACTIONS, DataCategory.MONTH_HISTORY}
    """
    lowered = query.lower()

    needed = {
        category
        for category, triggers in CATEGORY_TRIGGERS.items()
        if any(trigger in lowered for trigger in triggers)
    }

    if not needed:
        needed.add(DataCategory.SUMMARY)

    return needed


def expand_categories(categories: Set[DataCategory]) -> Set[DataCategory]:
    """Resolve SUMMARY into every concrete category."""
    if DataCategory.SUMMARY in categories:
        return set(CATEGORY_TRIGGERS)
    return set(categories)
