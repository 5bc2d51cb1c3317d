from typing import Optional
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from .common import BoardVisibility


class BoardBase(BaseModel):
    name: str = Field(min_length=1)
    visibility: BoardVisibility = BoardVisibility.PRIVATE


class BoardCreate(BoardBase):
    pass


class BoardRead(BoardBase):
    id: UUID
    org_id: str
    created_by: str
    card_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BoardDeleted(BaseModel):
    id: UUID
    deleted_card_count: int
    name: Optional[str] = None
