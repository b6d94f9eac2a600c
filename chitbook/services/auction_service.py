import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from chitbook.core.config import settings
from chitbook.core.context import LedgerContext
from chitbook.core.errors import NotFoundError, StoreError, ValidationError
from chitbook.db.store import AUCTIONS, PAYMENTS, WriteBatch
from chitbook.models.auction import Auction
from chitbook.models.group import Group, GroupMember
from chitbook.repositories.auction_repo import AuctionRepository
from chitbook.repositories.group_repo import GroupRepository
from chitbook.repositories.payment_repo import PaymentRepository
from chitbook.schemas.auction import AuctionCreate, AuctionUpdate
from chitbook.services.cascade_service import AuctionCascadeResult, CascadeService
from chitbook.services.obligation_service import ObligationService
from chitbook.utils.ledger_math import as_datetime, default_auction_dates
from chitbook.utils.ledger_validation import validate_bid_amount, validate_chit_month

logger = logging.getLogger(__name__)


class AuctionService:
    @staticmethod
    async def create_auction(ctx: LedgerContext, auction_in: AuctionCreate) -> Auction:
        """
        Create an auction and one Payment per current group member.

        Rejects a second auction for the same group and chit month.
        """
        validate_chit_month(auction_in.chit_month)
        group = await AuctionService._load_group(ctx, auction_in.group_id)
        validate_bid_amount(auction_in.bid_amount_cents, group.chit_value_cents)

        existing = await AuctionRepository(ctx).find_for_month(group.id, auction_in.chit_month)
        if existing:
            raise ValidationError(
                f"Group {group.group_name} already has an auction for {auction_in.chit_month}",
                group_id=group.id,
                chit_month=auction_in.chit_month,
                auction_id=existing.id,
            )

        members = await GroupRepository(ctx).list_members(group_id=group.id)
        AuctionService._check_batch_fits(ctx, group, len(members))
        winner_ids, winner_names = AuctionService._resolve_winners(auction_in, members, group)
        amounts = ObligationService.compute_amounts(group, members, auction_in.bid_amount_cents)

        default_auction_date, default_due_date = default_auction_dates(
            auction_in.chit_month, group.start_date, settings.PAYMENT_DUE_OFFSET_DAYS
        )
        auction_date = as_datetime(auction_in.auction_date) if auction_in.auction_date else default_auction_date
        if auction_in.payment_due_date:
            due_date = as_datetime(auction_in.payment_due_date)
        elif auction_in.auction_date:
            due_date = AuctionService._due_after(auction_date)
        else:
            due_date = default_due_date

        auction = Auction(
            id=ctx.store.new_id(),
            group_id=group.id,
            group_name=group.group_name,
            chit_month=auction_in.chit_month,
            auction_date=auction_date,
            payment_due_date=due_date,
            winner_client_ids=winner_ids,
            winner_names=winner_names,
            bid_amount_cents=auction_in.bid_amount_cents,
            **amounts._asdict(),
        )
        payments = ObligationService.build_payments(ctx, auction, members)

        batch = WriteBatch()
        batch.insert(AUCTIONS, auction.id, auction.to_document())
        for payment in payments:
            batch.insert(PAYMENTS, payment.id, payment.to_document())

        await AuctionService._commit(ctx, auction, batch)

        logger.info(
            "Created auction %s for group %s (%s) with %d payments of %d cents per chit",
            auction.id, group.id, auction.chit_month, len(payments), auction.per_member_contribution_cents,
        )
        return auction

    @staticmethod
    async def update_auction(ctx: LedgerContext, auction_id: str, auction_in: AuctionUpdate) -> Auction:
        """
        Re-state an auction and re-price its existing payments.

        No payments are created or removed; amounts already paid stay as they are.
        """
        auction_repo = AuctionRepository(ctx)
        auction = await auction_repo.get_auction(auction_id)
        if not auction:
            raise NotFoundError(f"Auction {auction_id} not found", auction_id=auction_id)

        validate_chit_month(auction_in.chit_month)
        if auction_in.group_id != auction.group_id:
            raise ValidationError(
                "An auction cannot be moved to another group",
                auction_id=auction_id,
                group_id=auction.group_id,
                requested_group_id=auction_in.group_id,
            )

        group = await AuctionService._load_group(ctx, auction.group_id)
        validate_bid_amount(auction_in.bid_amount_cents, group.chit_value_cents)

        month_changed = auction_in.chit_month != auction.chit_month
        if month_changed:
            clash = await auction_repo.find_for_month(group.id, auction_in.chit_month)
            if clash and clash.id != auction.id:
                raise ValidationError(
                    f"Group {group.group_name} already has an auction for {auction_in.chit_month}",
                    group_id=group.id,
                    chit_month=auction_in.chit_month,
                    auction_id=clash.id,
                )

        members = await GroupRepository(ctx).list_members(group_id=group.id)
        winner_ids, winner_names = AuctionService._resolve_winners(auction_in, members, group)
        amounts = ObligationService.compute_amounts(group, members, auction_in.bid_amount_cents)

        if auction_in.auction_date:
            auction_date = as_datetime(auction_in.auction_date)
        elif month_changed:
            auction_date, _ = default_auction_dates(
                auction_in.chit_month, group.start_date, settings.PAYMENT_DUE_OFFSET_DAYS
            )
        else:
            auction_date = auction.auction_date

        if auction_in.payment_due_date:
            due_date = as_datetime(auction_in.payment_due_date)
        elif auction_date != auction.auction_date:
            due_date = AuctionService._due_after(auction_date)
        else:
            due_date = auction.payment_due_date

        auction.group_name = group.group_name
        auction.chit_month = auction_in.chit_month
        auction.auction_date = auction_date
        auction.payment_due_date = due_date
        auction.winner_client_ids = winner_ids
        auction.winner_names = winner_names
        auction.bid_amount_cents = auction_in.bid_amount_cents
        auction.payout_amount_cents = amounts.payout_amount_cents
        auction.agent_commission_cents = amounts.agent_commission_cents
        auction.total_collection_amount_cents = amounts.total_collection_amount_cents
        auction.per_member_contribution_cents = amounts.per_member_contribution_cents
        auction.updated_at = datetime.now(timezone.utc)

        payments = await PaymentRepository(ctx).list_payments(auction_id=auction.id)
        AuctionService._check_batch_fits(ctx, group, len(payments))
        ObligationService.reprice_payments(auction, payments, members)

        batch = WriteBatch()
        batch.update(AUCTIONS, auction.id, auction.to_document())
        for payment in payments:
            batch.update(PAYMENTS, payment.id, ObligationService.repriced_fields(payment))

        await AuctionService._commit(ctx, auction, batch)

        credits = [payment.id for payment in payments if payment.credit_cents() > 0]
        if credits:
            logger.warning(
                "Auction %s edit left %d payments overpaid: %s", auction.id, len(credits), ", ".join(credits)
            )
        logger.info("Updated auction %s and re-priced %d payments", auction.id, len(payments))
        return auction

    @staticmethod
    async def delete_auction(ctx: LedgerContext, auction_id: str) -> AuctionCascadeResult:
        return await CascadeService.delete_auction(ctx, auction_id)

    @staticmethod
    async def get_auction(ctx: LedgerContext, auction_id: str) -> Auction:
        auction = await AuctionRepository(ctx).get_auction(auction_id)
        if not auction:
            raise NotFoundError(f"Auction {auction_id} not found", auction_id=auction_id)
        return auction

    @staticmethod
    async def list_auctions(
        ctx: LedgerContext, group_id: Optional[str] = None, chit_month: Optional[str] = None
    ) -> List[Auction]:
        return await AuctionRepository(ctx).list_auctions(group_id=group_id, chit_month=chit_month)

    # ===== PRIVATE HELPERS =====

    @staticmethod
    async def _load_group(ctx: LedgerContext, group_id: str) -> Group:
        group = await GroupRepository(ctx).get_group(group_id)
        if not group:
            raise NotFoundError(f"Group {group_id} not found", group_id=group_id)
        return group

    @staticmethod
    def _check_batch_fits(ctx: LedgerContext, group: Group, payment_count: int) -> None:
        """The auction and all of its payments are written in one atomic batch."""
        if payment_count + 1 > ctx.store.max_batch_ops:
            raise ValidationError(
                f"Group {group.group_name} has {payment_count} obligations, too many to write in one batch",
                group_id=group.id,
                payment_count=payment_count,
                batch_limit=ctx.store.max_batch_ops,
            )

    @staticmethod
    async def _commit(ctx: LedgerContext, auction: Auction, batch: WriteBatch) -> None:
        try:
            await ctx.store.commit(ctx.account_id, batch)
        except StoreError as exc:
            logger.warning("Writing auction %s failed, nothing applied: %s", auction.id, exc.message)
            raise StoreError(
                f"Auction {auction.id} was not saved: {exc.message}",
                committed_units=0,
                auction_id=auction.id,
                group_id=auction.group_id,
                chit_month=auction.chit_month,
            ) from exc

    @staticmethod
    def _due_after(auction_date: datetime) -> datetime:
        return auction_date + timedelta(days=settings.PAYMENT_DUE_OFFSET_DAYS)

    @staticmethod
    def _resolve_winners(
        auction_in: AuctionCreate, members: List[GroupMember], group: Group
    ) -> tuple[List[str], List[str]]:
        """Winners must be members of the group. Names default to the member's client name."""
        by_client = {member.client_id: member for member in members}
        winner_ids = list(dict.fromkeys(auction_in.winner_client_ids))

        unknown = [client_id for client_id in winner_ids if client_id not in by_client]
        if unknown:
            raise ValidationError(
                f"Winners are not members of group {group.group_name}: {', '.join(unknown)}",
                group_id=group.id,
                client_ids=unknown,
            )

        if len(auction_in.winner_names) == len(winner_ids):
            names = list(auction_in.winner_names)
        else:
            names = [by_client[client_id].client_name for client_id in winner_ids]
        return winner_ids, names
