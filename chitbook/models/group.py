from pydantic import Field

from chitbook.models.base import LedgerDocument, UTCDateTime


class Group(LedgerDocument):
    """A chit fund definition."""

    group_name: str
    chit_value_cents: int           # Total pot
    agent_commission_percent: float # e.g. 5 for 5%
    member_count: int               # Nominal number of chits
    start_date: UTCDateTime


class GroupMember(LedgerDocument):
    """
    A client's membership in a group.

    chit_count may be fractional; it weights the member's share of every
    auction's collection.
    """

    group_id: str
    group_name: str = ""
    client_id: str
    client_name: str = ""
    chit_count: float = Field(default=1.0)
    notes: str = ""
