from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from .common import FollowMode


class CardFollowState(BaseModel):
    """Caller's current toggles for a card."""
    is_following_card: bool = False
    is_muting_card: bool = False


class BoardFollowState(BaseModel):
    is_following_board: bool = False


class IntervalRead(BaseModel):
    id: UUID
    org_id: str
    user_id: str
    target_id: UUID
    mode: FollowMode
    started_at: datetime
    ended_at: Optional[datetime] = None


class UserIdList(BaseModel):
    user_ids: List[str]
