from typing import Optional

from chitbook.models.base import LedgerDocument


class Client(LedgerDocument):
    """A person who can hold chits. Memberships copy the name at enrolment."""

    name: str
    phone: str = ""
    email: Optional[str] = None
    notes: str = ""
