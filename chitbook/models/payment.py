"""
Payment model - one member's obligation for one auction.

Invariants:
- amount_paid_cents + pending_amount_cents == amount_expected_cents
- status is derived from (amount_paid_cents, amount_expected_cents), never set
- sum of the payment's PaymentLog.amount_paid_cents == amount_paid_cents

pending_amount_cents is signed. It goes negative only when an auction edit
lowers amount_expected_cents below what was already paid; the difference is a
credit and is reported as such rather than dropped.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from pydantic import computed_field

from chitbook.models.base import LedgerDocument, UTCDateTime
from chitbook.utils.ledger_math import PaymentStatus, payment_status


class PaymentMethod(str, Enum):
    ONLINE = "Online"
    CASH = "Cash"


class Payment(LedgerDocument):
    # References
    auction_id: str
    client_id: str
    client_name: str = ""
    group_id: str
    group_name: str = ""
    chit_month: str

    # Financial
    chit_count: float = 1.0   # Snapshot at creation
    amount_expected_cents: int
    amount_paid_cents: int = 0
    pending_amount_cents: int

    payment_due_date: UTCDateTime

    @computed_field
    @property
    def status(self) -> PaymentStatus:
        return payment_status(self.amount_paid_cents, self.amount_expected_cents)

    def outstanding_cents(self) -> int:
        """How much is still owed, floored at zero for display."""
        return max(0, self.pending_amount_cents)

    def credit_cents(self) -> int:
        """Overpayment left behind by a downward edit."""
        return max(0, -self.pending_amount_cents)

    def apply_allocation(self, amount_cents: int) -> None:
        self.amount_paid_cents += amount_cents
        self.pending_amount_cents -= amount_cents
        self._touch()

    def reverse_allocation(self, amount_cents: int) -> None:
        self.amount_paid_cents = max(0, self.amount_paid_cents - amount_cents)
        self.pending_amount_cents = self.amount_expected_cents - self.amount_paid_cents
        self._touch()

    def reprice(self, amount_expected_cents: int) -> None:
        self.amount_expected_cents = amount_expected_cents
        self.pending_amount_cents = amount_expected_cents - self.amount_paid_cents
        self._touch()

    def ledger_fields(self) -> Dict[str, Any]:
        """Fields rewritten whenever money moves against this payment."""
        return {
            "amount_expected_cents": self.amount_expected_cents,
            "amount_paid_cents": self.amount_paid_cents,
            "pending_amount_cents": self.pending_amount_cents,
            "status": self.status.value,
            "updated_at": self.updated_at,
        }

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)


class PaymentLog(LedgerDocument):
    """Immutable receipt of one allocation step against one Payment."""

    payment_id: str
    auction_id: str = ""
    client_id: str
    client_name: str = ""
    group_id: str = ""
    group_name: str = ""
    chit_month: str = ""

    amount_paid_cents: int   # The increment applied, not a running total
    payment_date: UTCDateTime
    payment_method: PaymentMethod
