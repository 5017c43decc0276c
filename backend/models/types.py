"""Shared type definitions for type checking.

Uses NewType for IDs so a UserID can't be passed where an InsightID is
expected. Uses TypeAlias for purely structural types.
"""

from typing import Any, Callable, NewType, TypeAlias

# Integer primary keys from the relational schema
UserID = NewType("UserID", int)
InsightID = NewType("InsightID", int)
CampaignID = NewType("CampaignID", int)
PreferenceID = NewType("PreferenceID", int)

KeywordList: TypeAlias = list[str]
BatchID: TypeAlias = str  # YYYY-MM-DD format

# Real-time push transport: receives one notification payload dict
Broadcast: TypeAlias = Callable[[dict[str, Any]], None]
