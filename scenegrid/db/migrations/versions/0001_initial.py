"""scenes, grid sessions and interaction logs

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "scenes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("scene_id", sa.Integer(), nullable=False),
        sa.Column("subscene_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=256), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("background_type", sa.String(length=64), nullable=False),
        sa.Column("background_path", sa.String(length=512), nullable=True),
        sa.Column("grid_config", sa.JSON(), nullable=False),
        sa.Column("tiles", sa.JSON(), nullable=False),
        sa.Column("choices", sa.JSON(), nullable=False),
        sa.Column("effects", sa.JSON(), nullable=False),
        sa.Column("next_scenes", sa.JSON(), nullable=False),
        sa.Column("echo_triggers", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("scene_id", "subscene_id", name="uq_scenes_scene_subscene"),
    )
    op.create_index("ix_scenes_scene_id", "scenes", ["scene_id"], unique=False)
    op.create_index("ix_scenes_subscene_id", "scenes", ["subscene_id"], unique=False)
    op.create_index("ix_scenes_is_active", "scenes", ["is_active"], unique=False)

    op.create_table(
        "grid_sessions",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column("owner_id", sa.String(length=128), nullable=True),
        sa.Column("session_name", sa.String(length=256), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_grid_sessions_owner_id", "grid_sessions", ["owner_id"], unique=False)
    op.create_index("ix_grid_sessions_is_active", "grid_sessions", ["is_active"], unique=False)
    op.create_index("ix_grid_sessions_updated_at", "grid_sessions", ["updated_at"], unique=False)

    op.create_table(
        "interaction_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "session_id",
            sa.String(length=128),
            sa.ForeignKey("grid_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("scene", sa.Integer(), nullable=False),
        sa.Column("subscene", sa.Integer(), nullable=False),
        sa.Column("grid_tile", sa.String(length=16), nullable=False),
        sa.Column("zoom_target", sa.String(length=16), nullable=True),
        sa.Column("next_scene", sa.JSON(), nullable=True),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_interaction_logs_session_id", "interaction_logs", ["session_id"], unique=False)
    op.create_index("ix_interaction_logs_timestamp", "interaction_logs", ["timestamp"], unique=False)
    op.create_index(
        "ix_interaction_logs_session_timestamp",
        "interaction_logs",
        ["session_id", "timestamp"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_interaction_logs_session_timestamp", table_name="interaction_logs")
    op.drop_index("ix_interaction_logs_timestamp", table_name="interaction_logs")
    op.drop_index("ix_interaction_logs_session_id", table_name="interaction_logs")
    op.drop_table("interaction_logs")
    op.drop_index("ix_grid_sessions_updated_at", table_name="grid_sessions")
    op.drop_index("ix_grid_sessions_is_active", table_name="grid_sessions")
    op.drop_index("ix_grid_sessions_owner_id", table_name="grid_sessions")
    op.drop_table("grid_sessions")
    op.drop_index("ix_scenes_is_active", table_name="scenes")
    op.drop_index("ix_scenes_subscene_id", table_name="scenes")
    op.drop_index("ix_scenes_scene_id", table_name="scenes")
    op.drop_table("scenes")
