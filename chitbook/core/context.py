from dataclasses import dataclass

from chitbook.db.store import DocumentStore


@dataclass(frozen=True)
class LedgerContext:
    """Account scope and store handle passed explicitly to every ledger operation."""

    account_id: str
    store: DocumentStore
