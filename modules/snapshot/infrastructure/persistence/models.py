from datetime import UTC, datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, LargeBinary, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from shared.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Snapshot(Base):
    __tablename__ = "snapshots"
    __table_args__ = (
        Index("idx_snapshots_timestamp", "timestamp"),
        Index("idx_snapshots_label", "label"),
        Index("idx_snapshots_archived", "archived"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    image: Mapped[bytes | None] = mapped_column(LargeBinary)
    dom: Mapped[str | None] = mapped_column(Text)
    # "metadata" is reserved on declarative classes.
    metadata_json: Mapped[str | None] = mapped_column("metadata", Text)
    label: Mapped[str | None] = mapped_column(Text)
    tags: Mapped[str | None] = mapped_column(Text)
    env_info: Mapped[str | None] = mapped_column(Text)
    archived: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)


class Validation(Base):
    __tablename__ = "validations"
    __table_args__ = (
        Index("idx_validations_snapshot_id", "snapshot_id"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    snapshot_id: Mapped[int] = mapped_column(Integer, ForeignKey("snapshots.id"), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    result: Mapped[str | None] = mapped_column(Text)


class Diff(Base):
    __tablename__ = "diffs"
    __table_args__ = (
        Index("idx_diffs_snapshot_id_a", "snapshot_id_a"),
        Index("idx_diffs_snapshot_id_b", "snapshot_id_b"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    snapshot_id_a: Mapped[int] = mapped_column(Integer, ForeignKey("snapshots.id"), nullable=False)
    snapshot_id_b: Mapped[int] = mapped_column(Integer, ForeignKey("snapshots.id"), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    diff_image: Mapped[bytes | None] = mapped_column(LargeBinary)
    score: Mapped[float] = mapped_column(Float, nullable=False)


TABLES = {
    "snapshots": Snapshot,
    "validations": Validation,
    "diffs": Diff,
}
