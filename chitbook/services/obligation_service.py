"""
Obligation generator.

Turns an auction plus the group's memberships into per-member Payment rows,
and re-prices those rows when the auction is edited. The set of obligees is
fixed when the auction is created; edits never add or remove rows.
"""

from typing import Any, Dict, List

from chitbook.core.context import LedgerContext
from chitbook.core.errors import ValidationError
from chitbook.models.auction import Auction
from chitbook.models.group import Group, GroupMember
from chitbook.models.payment import Payment
from chitbook.utils.ledger_math import (
    AuctionAmounts,
    calculate_auction_amounts,
    effective_member_count,
    expected_amount,
)


class ObligationService:
    @staticmethod
    def compute_amounts(group: Group, members: List[GroupMember], bid_amount_cents: int) -> AuctionAmounts:
        """Auction amounts using the members' total chit count (nominal count if none are loaded)."""
        member_count = effective_member_count((m.chit_count for m in members), group.member_count)
        if member_count <= 0:
            raise ValidationError(
                f"Group {group.id} has no members and no nominal member count",
                group_id=group.id,
            )
        return calculate_auction_amounts(
            group.chit_value_cents,
            bid_amount_cents,
            group.agent_commission_percent,
            member_count,
        )

    @staticmethod
    def build_payments(ctx: LedgerContext, auction: Auction, members: List[GroupMember]) -> List[Payment]:
        """One Pending payment per member, weighted by chit count."""
        payments = []
        for member in members:
            amount = expected_amount(auction.per_member_contribution_cents, member.chit_count)
            payments.append(
                Payment(
                    id=ctx.store.new_id(),
                    auction_id=auction.id,
                    client_id=member.client_id,
                    client_name=member.client_name,
                    group_id=auction.group_id,
                    group_name=auction.group_name,
                    chit_month=auction.chit_month,
                    chit_count=member.chit_count,
                    amount_expected_cents=amount,
                    amount_paid_cents=0,
                    pending_amount_cents=amount,
                    payment_due_date=auction.payment_due_date,
                )
            )
        return payments

    @staticmethod
    def reprice_payments(
        auction: Auction, payments: List[Payment], members: List[GroupMember]
    ) -> List[Payment]:
        """
        Recompute expected amounts after an auction edit.

        Uses the member's current chit count when the membership still exists,
        otherwise the count captured when the payment was created. Paid amounts
        are untouched; pending may go negative and is kept as a credit.
        """
        chit_counts = {member.client_id: member.chit_count for member in members}

        for payment in payments:
            payment.chit_count = chit_counts.get(payment.client_id, payment.chit_count)
            payment.chit_month = auction.chit_month
            payment.payment_due_date = auction.payment_due_date
            payment.reprice(expected_amount(auction.per_member_contribution_cents, payment.chit_count))

        return payments

    @staticmethod
    def repriced_fields(payment: Payment) -> Dict[str, Any]:
        fields = payment.ledger_fields()
        fields.update(
            {
                "chit_count": payment.chit_count,
                "chit_month": payment.chit_month,
                "payment_due_date": payment.payment_due_date,
            }
        )
        return fields
