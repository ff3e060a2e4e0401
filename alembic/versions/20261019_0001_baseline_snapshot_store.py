"""Baseline snapshot store: snapshots, validations, diffs.

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""

import sqlalchemy as sa

from alembic import op

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "snapshots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("image", sa.LargeBinary()),
        sa.Column("dom", sa.Text()),
        sa.Column("metadata", sa.Text()),
        sa.Column("label", sa.Text()),
        sa.Column("tags", sa.Text()),
        sa.Column("env_info", sa.Text()),
        sa.Column("archived", sa.Integer(), server_default="0", nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("idx_snapshots_timestamp", "snapshots", ["timestamp"])
    op.create_index("idx_snapshots_label", "snapshots", ["label"])
    op.create_index("idx_snapshots_archived", "snapshots", ["archived"])

    op.create_table(
        "validations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("snapshot_id", sa.Integer(), sa.ForeignKey("snapshots.id"), nullable=False),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("result", sa.Text()),
        sqlite_autoincrement=True,
    )
    op.create_index("idx_validations_snapshot_id", "validations", ["snapshot_id"])

    op.create_table(
        "diffs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("snapshot_id_a", sa.Integer(), sa.ForeignKey("snapshots.id"), nullable=False),
        sa.Column("snapshot_id_b", sa.Integer(), sa.ForeignKey("snapshots.id"), nullable=False),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("diff_image", sa.LargeBinary()),
        sa.Column("score", sa.Float(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("idx_diffs_snapshot_id_a", "diffs", ["snapshot_id_a"])
    op.create_index("idx_diffs_snapshot_id_b", "diffs", ["snapshot_id_b"])


def downgrade() -> None:
    op.drop_index("idx_diffs_snapshot_id_b", table_name="diffs")
    op.drop_index("idx_diffs_snapshot_id_a", table_name="diffs")
    op.drop_table("diffs")
    op.drop_index("idx_validations_snapshot_id", table_name="validations")
    op.drop_table("validations")
    op.drop_index("idx_snapshots_archived", table_name="snapshots")
    op.drop_index("idx_snapshots_label", table_name="snapshots")
    op.drop_index("idx_snapshots_timestamp", table_name="snapshots")
    op.drop_table("snapshots")
