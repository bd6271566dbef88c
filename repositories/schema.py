"""
Table names and uniqueness constraints for the engine's tables.

Keep this aligned with your database schema. The Postgres tables are expected
to carry the same unique indexes (created with NULLS NOT DISTINCT so that a
null request_id is one grouping key).
"""

from __future__ import annotations

from typing import Dict, List, Tuple

CONTACT_INTERACTIONS_TABLE: str = "contact_interactions"
SELLER_RATINGS_TABLE: str = "seller_ratings"
MERCHANT_ANALYTICS_TABLE: str = "merchant_analytics"
USER_ANALYTICS_TABLE: str = "user_analytics"

UNIQUE_CONSTRAINTS: Dict[str, List[Tuple[str, ...]]] = {
    CONTACT_INTERACTIONS_TABLE: [("user_id", "merchant_id", "request_id")],
    SELLER_RATINGS_TABLE: [("user_id", "merchant_id", "request_id")],
}


__all__ = [
    "CONTACT_INTERACTIONS_TABLE",
    "SELLER_RATINGS_TABLE",
    "MERCHANT_ANALYTICS_TABLE",
    "USER_ANALYTICS_TABLE",
    "UNIQUE_CONSTRAINTS",
]
