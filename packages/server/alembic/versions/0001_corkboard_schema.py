"""Corkboard schema: boards, cards, follow intervals, card events, feed.

Revision ID: 0001_corkboard_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_corkboard_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Append-only tables: rows are written once by the event recorder / materializer
IMMUTABLE_TABLES = ["card_events", "feed_items"]

_OPEN = sa.text("ended_at IS NULL")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # -----------------------------------------------------------------------
    # 1. Domain tables
    # -----------------------------------------------------------------------

    op.create_table(
        "boards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("org_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("visibility", sa.Text(), nullable=False, server_default="private"),
        sa.Column("created_by", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_boards_org_id", "boards", ["org_id"])

    op.create_table(
        "cards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("org_id", sa.Text(), nullable=False),
        sa.Column("board_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("boards.id"), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.Text(), nullable=False, server_default="someday"),
        sa.Column("author_id", sa.Text(), nullable=False),
        sa.Column("assigned_to", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_cards_org_id", "cards", ["org_id"])
    op.create_index("ix_cards_board_id", "cards", ["board_id"])

    op.create_table(
        "comments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("org_id", sa.Text(), nullable=False),
        sa.Column("card_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("cards.id"), nullable=False),
        sa.Column("author_id", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_comments_org_id", "comments", ["org_id"])
    op.create_index("ix_comments_card_id", "comments", ["card_id"])

    # -----------------------------------------------------------------------
    # 2. Follow / mute intervals (no FK: history outlives the target)
    # -----------------------------------------------------------------------

    op.create_table(
        "board_follow_intervals",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("org_id", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("board_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("ended_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_board_follow_intervals_org_id", "board_follow_intervals", ["org_id"])
    op.create_index(
        "ix_board_follow_intervals_board_open", "board_follow_intervals", ["board_id", "ended_at"]
    )
    # At most one open interval per (user, board)
    op.create_index(
        "uq_board_follow_intervals_open",
        "board_follow_intervals",
        ["user_id", "board_id"],
        unique=True,
        postgresql_where=_OPEN,
    )

    op.create_table(
        "card_follow_intervals",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("org_id", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("card_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("mode", sa.Text(), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("ended_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("mode IN ('follow', 'mute')", name="ck_card_follow_intervals_mode"),
    )
    op.create_index("ix_card_follow_intervals_org_id", "card_follow_intervals", ["org_id"])
    op.create_index(
        "ix_card_follow_intervals_card_open", "card_follow_intervals", ["card_id", "ended_at"]
    )
    # At most one open interval per (user, card): follow and mute exclude each other
    op.create_index(
        "uq_card_follow_intervals_open",
        "card_follow_intervals",
        ["user_id", "card_id"],
        unique=True,
        postgresql_where=_OPEN,
    )

    # -----------------------------------------------------------------------
    # 3. Card events and materialized feed
    # -----------------------------------------------------------------------

    op.create_table(
        "card_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("org_id", sa.Text(), nullable=False),
        sa.Column("card_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("board_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("actor_id", sa.Text(), nullable=False),
        sa.Column("kind", sa.Text(), nullable=False),
        sa.Column("payload", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_card_events_org_id", "card_events", ["org_id"])
    op.create_index("ix_card_events_card_id", "card_events", ["card_id"])
    op.create_index("ix_card_events_board_id", "card_events", ["board_id"])
    op.create_index("ix_card_events_created_at", "card_events", ["created_at"])

    op.create_table(
        "feed_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("org_id", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("card_events.id"), nullable=False),
        sa.Column("event_time", sa.DateTime(), nullable=False),
        sa.Column("card_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("board_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.UniqueConstraint("user_id", "event_id", name="uq_feed_items_user_event"),
    )
    op.create_index("ix_feed_items_user_org_time", "feed_items", ["user_id", "org_id", "event_time"])

    # -----------------------------------------------------------------------
    # 4. Immutability triggers
    # -----------------------------------------------------------------------

    op.execute("""
        CREATE OR REPLACE FUNCTION prevent_append_only_mutation()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION '% rows are immutable. UPDATE and DELETE are not permitted.', TG_TABLE_NAME;
        END;
        $$ LANGUAGE plpgsql
    """)
    for table in IMMUTABLE_TABLES:
        op.execute(f"""
            CREATE TRIGGER {table}_immutable
            BEFORE UPDATE OR DELETE ON {table}
            FOR EACH ROW EXECUTE FUNCTION prevent_append_only_mutation()
        """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    for table in reversed(IMMUTABLE_TABLES):
        op.execute(f"DROP TRIGGER IF EXISTS {table}_immutable ON {table}")
    op.execute("DROP FUNCTION IF EXISTS prevent_append_only_mutation()")

    op.drop_table("feed_items")
    op.drop_table("card_events")
    op.drop_table("card_follow_intervals")
    op.drop_table("board_follow_intervals")
    op.drop_table("comments")
    op.drop_table("cards")
    op.drop_table("boards")
