# SQLModel definitions, imported here so the metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .board import Board  # noqa: F401
from .card import Card  # noqa: F401
from .comment import Comment  # noqa: F401
from .follow import BoardFollowInterval, CardFollowInterval  # noqa: F401
from .card_event import CardEvent  # noqa: F401
from .feed_item import FeedItem  # noqa: F401
