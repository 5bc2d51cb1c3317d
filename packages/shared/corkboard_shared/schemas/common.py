from enum import Enum
from typing import Optional
from pydantic import BaseModel

class FollowMode(str, Enum):
    FOLLOW = "follow"
    MUTE = "mute"

class CardEventKind(str, Enum):
    CARD_CREATED = "card_created"
    CARD_DELETED = "card_deleted"
    CARD_TITLE_CHANGED = "card_title_changed"
    CARD_STATUS_CHANGED = "card_status_changed"
    CARD_ASSIGNEE_CHANGED = "card_assignee_changed"
    CARD_BOARD_CHANGED = "card_board_changed"
    COMMENT_CREATED = "comment_created"

class BoardVisibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"

# Built-in kanban columns; boards may add custom column ids in between
class CardStatus(str, Enum):
    SOMEDAY = "someday"
    NEXT_UP = "next_up"
    DONE = "done"

class ErrorDetail(BaseModel):
    code: str
    message: str
    status: int

class ErrorResponse(BaseModel):
    error: Optional[ErrorDetail] = None
