from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from chitbook.utils.ledger_math import ensure_utc


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


class LedgerDocument(BaseModel):
    """Base for documents stored in an account-scoped collection."""

    id: Optional[str] = Field(default=None, validation_alias="_id")
    created_at: UTCDateTime = Field(default_factory=_utcnow)
    updated_at: UTCDateTime = Field(default_factory=_utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )

    def to_document(self) -> Dict[str, Any]:
        """Storable form: no id (the store keys it), enums as plain values."""
        doc = self.model_dump(exclude={"id"})
        return {key: value.value if isinstance(value, Enum) else value for key, value in doc.items()}
