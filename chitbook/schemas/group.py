from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GroupCreate(BaseModel):
    group_name: str = Field(..., min_length=1, max_length=100)
    chit_value_cents: int
    agent_commission_percent: float = 0.0
    member_count: int
    start_date: datetime


class GroupUpdate(BaseModel):
    group_name: Optional[str] = Field(None, min_length=1, max_length=100)
    chit_value_cents: Optional[int] = None
    agent_commission_percent: Optional[float] = None
    member_count: Optional[int] = None
    start_date: Optional[datetime] = None


class GroupResponse(BaseModel):
    id: str
    group_name: str
    chit_value_cents: int
    agent_commission_percent: float
    member_count: int
    start_date: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MemberCreate(BaseModel):
    """Enrol an existing client. The name is taken from the client record."""
    client_id: str = Field(..., min_length=1)
    chit_count: float = 1.0
    notes: str = ""


class MemberUpdate(BaseModel):
    chit_count: Optional[float] = None
    notes: Optional[str] = None


class MemberResponse(BaseModel):
    id: str
    group_id: str
    group_name: str
    client_id: str
    client_name: str
    chit_count: float
    notes: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GroupDeleteResponse(BaseModel):
    group_id: str
    deleted_member_count: int
