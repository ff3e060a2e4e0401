from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager

from pydantic import ValidationError
from sqlalchemy import Engine, delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from modules.snapshot.adapters.schemas import (
    ComparisonRecord,
    SnapshotRecord,
    SnapshotSummary,
    ValidationPayload,
    ValidationRecord,
)
from modules.snapshot.application.ports import SnapshotStore
from modules.snapshot.domain.errors import (
    DiffNotFoundError,
    SightlineError,
    SnapshotNotFoundError,
    StorageError,
    ValidationNotFoundError,
)
from modules.snapshot.infrastructure.persistence.interchange import (
    export_rows,
    import_rows,
    resolve_table,
)
from modules.snapshot.infrastructure.persistence.models import Diff, Snapshot, Validation
from shared.db.base import Base
from shared.db.session import build_engine, build_session_factory

logger = logging.getLogger(__name__)

_KEEP = object()


class SqlSnapshotStore(SnapshotStore):
    """SQLAlchemy-backed store for snapshots, validations and diffs.

    One session per operation; nothing is cached between calls, so writes made
    by another process (the CLI, for instance) are visible on the next read.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._session_factory = build_session_factory(engine)

    @classmethod
    def from_url(
        cls, database_url: str | None = None, create_schema: bool = True
    ) -> SqlSnapshotStore:
        store = cls(build_engine(database_url))
        if create_schema:
            store.create_schema()
        return store

    def create_schema(self) -> None:
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"schema_create_failed: {exc}") from exc

    def close(self) -> None:
        self.engine.dispose()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SightlineError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("storage operation failed")
            raise StorageError(f"storage_failure: {exc}") from exc
        finally:
            session.close()

    # snapshots

    def create_snapshot(
        self,
        image: bytes | None,
        dom: str,
        metadata: dict,
        label: str | None = None,
        tags: list[str] | None = None,
        env_info: dict | None = None,
    ) -> int:
        row = Snapshot(
            image=image,
            dom=dom,
            metadata_json=json.dumps(metadata or {}),
            label=label,
            tags=_dump_optional(tags),
            env_info=_dump_optional(env_info),
            archived=0,
        )
        with self._session() as session:
            session.add(row)
            session.flush()
            snapshot_id = row.id
        logger.info("snapshot created id=%s label=%s", snapshot_id, label)
        return snapshot_id

    def get_snapshot(self, snapshot_id: int) -> SnapshotRecord:
        with self._session() as session:
            row = session.get(Snapshot, snapshot_id)
            if row is None:
                raise SnapshotNotFoundError(snapshot_id)
            return _row_to_snapshot(row)

    def list_snapshots(
        self,
        archived: bool | None = None,
        include_image: bool = False,
        label: str | None = None,
        tag: str | None = None,
    ) -> list[SnapshotSummary]:
        columns = [
            Snapshot.id,
            Snapshot.timestamp,
            Snapshot.metadata_json,
            Snapshot.label,
            Snapshot.tags,
            Snapshot.env_info,
            Snapshot.archived,
            Snapshot.image.is_not(None).label("has_image"),
        ]
        if include_image:
            columns.append(Snapshot.image)
        stmt = select(*columns).order_by(Snapshot.id)
        if archived is not None:
            stmt = stmt.where(Snapshot.archived == int(archived))
        if label is not None:
            stmt = stmt.where(Snapshot.label == label)
        with self._session() as session:
            rows = session.execute(stmt).mappings().all()
        summaries = []
        for row in rows:
            tags = _load_tags(row["tags"])
            if tag is not None and tag not in (tags or []):
                continue
            summaries.append(
                SnapshotSummary(
                    id=row["id"],
                    timestamp=row["timestamp"],
                    metadata=_load_metadata(row["metadata_json"]),
                    label=row["label"],
                    tags=tags,
                    env_info=_load_env_info(row["env_info"]),
                    archived=bool(row["archived"]),
                    has_image=bool(row["has_image"]),
                    image=row["image"] if include_image else None,
                )
            )
        return summaries

    def set_archived(self, snapshot_id: int, archived: bool) -> None:
        with self._session() as session:
            row = session.get(Snapshot, snapshot_id)
            if row is None:
                raise SnapshotNotFoundError(snapshot_id)
            if bool(row.archived) != archived:
                row.archived = int(archived)
                logger.info("snapshot id=%s archived=%s", snapshot_id, archived)

    def update_snapshot_meta(
        self, snapshot_id: int, *, label: object = _KEEP, tags: object = _KEEP
    ) -> SnapshotRecord:
        with self._session() as session:
            row = session.get(Snapshot, snapshot_id)
            if row is None:
                raise SnapshotNotFoundError(snapshot_id)
            if label is not _KEEP:
                row.label = label  # type: ignore[assignment]
            if tags is not _KEEP:
                row.tags = _dump_optional(tags)
            session.flush()
            return _row_to_snapshot(row)

    def delete_snapshot(self, snapshot_id: int) -> dict[str, int]:
        with self._session() as session:
            if session.get(Snapshot, snapshot_id) is None:
                raise SnapshotNotFoundError(snapshot_id)
            validations = session.execute(
                delete(Validation).where(Validation.snapshot_id == snapshot_id)
            ).rowcount
            diffs = session.execute(
                delete(Diff).where(
                    or_(Diff.snapshot_id_a == snapshot_id, Diff.snapshot_id_b == snapshot_id)
                )
            ).rowcount
            session.execute(delete(Snapshot).where(Snapshot.id == snapshot_id))
        logger.info(
            "snapshot deleted id=%s validations=%s diffs=%s", snapshot_id, validations, diffs
        )
        return {"validations": validations, "diffs": diffs}

    # validations

    def record_validation(self, snapshot_id: int, payload: ValidationPayload) -> int:
        with self._session() as session:
            if session.get(Snapshot, snapshot_id) is None:
                raise SnapshotNotFoundError(snapshot_id)
            row = Validation(snapshot_id=snapshot_id, result=json.dumps(payload.to_json_dict()))
            session.add(row)
            session.flush()
            return row.id

    def get_validation(self, validation_id: int) -> ValidationRecord:
        with self._session() as session:
            row = session.get(Validation, validation_id)
            if row is None:
                raise ValidationNotFoundError(f"validation not found: {validation_id}")
            return _row_to_validation(row)

    def list_validations(self, snapshot_id: int | None = None) -> list[ValidationRecord]:
        stmt = select(Validation).order_by(Validation.id)
        if snapshot_id is not None:
            stmt = stmt.where(Validation.snapshot_id == snapshot_id)
        with self._session() as session:
            return [_row_to_validation(row) for row in session.scalars(stmt)]

    # diffs

    def record_comparison(
        self, snapshot_id_a: int, snapshot_id_b: int, diff_image: bytes, score: float
    ) -> int:
        with self._session() as session:
            for snapshot_id in (snapshot_id_a, snapshot_id_b):
                if session.get(Snapshot, snapshot_id) is None:
                    raise SnapshotNotFoundError(snapshot_id)
            row = Diff(
                snapshot_id_a=snapshot_id_a,
                snapshot_id_b=snapshot_id_b,
                diff_image=diff_image,
                score=float(score),
            )
            session.add(row)
            session.flush()
            return row.id

    def get_comparison(self, diff_id: int) -> ComparisonRecord:
        with self._session() as session:
            row = session.get(Diff, diff_id)
            if row is None:
                raise DiffNotFoundError(f"diff not found: {diff_id}")
            return _row_to_comparison(row, include_image=True)

    def latest_comparison(self, snapshot_id_a: int, snapshot_id_b: int) -> ComparisonRecord:
        stmt = (
            select(Diff)
            .where(Diff.snapshot_id_a == snapshot_id_a, Diff.snapshot_id_b == snapshot_id_b)
            .order_by(Diff.id.desc())
            .limit(1)
        )
        with self._session() as session:
            row = session.scalars(stmt).first()
            if row is None:
                raise DiffNotFoundError(f"diff not found: {snapshot_id_a}/{snapshot_id_b}")
            return _row_to_comparison(row, include_image=True)

    def list_comparisons(
        self, snapshot_id: int | None = None, include_image: bool = False
    ) -> list[ComparisonRecord]:
        stmt = select(Diff).order_by(Diff.id)
        if snapshot_id is not None:
            stmt = stmt.where(
                or_(Diff.snapshot_id_a == snapshot_id, Diff.snapshot_id_b == snapshot_id)
            )
        with self._session() as session:
            return [
                _row_to_comparison(row, include_image=include_image)
                for row in session.scalars(stmt)
            ]

    # bulk interchange

    def export_table(self, table_name: str) -> list[dict]:
        model = resolve_table(table_name)
        with self._session() as session:
            return export_rows(session, model)

    def import_table(self, table_name: str, rows: object) -> int:
        model = resolve_table(table_name)
        with self._session() as session:
            count = import_rows(session, model, rows)
        logger.info("imported %s rows into %s", count, table_name)
        return count


def _dump_optional(value: object) -> str | None:
    if value is None:
        return None
    return json.dumps(value)


def _loads(raw: str | None) -> object:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None


def _load_metadata(raw: str | None) -> dict:
    value = _loads(raw)
    if isinstance(value, dict):
        return value
    if raw:
        return {"raw": raw}
    return {}


def _load_tags(raw: str | None) -> list[str] | None:
    value = _loads(raw)
    if isinstance(value, list):
        return [str(item) for item in value]
    return None


def _load_env_info(raw: str | None) -> dict | None:
    value = _loads(raw)
    return value if isinstance(value, dict) else None


def _row_to_snapshot(row: Snapshot) -> SnapshotRecord:
    return SnapshotRecord(
        id=row.id,
        timestamp=row.timestamp,
        image=row.image,
        dom=row.dom or "",
        metadata=_load_metadata(row.metadata_json),
        label=row.label,
        tags=_load_tags(row.tags),
        env_info=_load_env_info(row.env_info),
        archived=bool(row.archived),
    )


def _row_to_validation(row: Validation) -> ValidationRecord:
    raw = _loads(row.result)
    if isinstance(raw, dict) and "rules" not in raw and "selector" in raw:
        # Single-rule rows written by early CLI versions.
        raw = {"profile": None, "rules": [raw]}
    if not isinstance(raw, dict):
        raw = {}
    try:
        payload = ValidationPayload.model_validate(raw)
    except ValidationError as exc:
        raise StorageError(f"validation row {row.id} has an unreadable result") from exc
    return ValidationRecord(
        id=row.id,
        snapshot_id=row.snapshot_id,
        timestamp=row.timestamp,
        result=payload,
    )


def _row_to_comparison(row: Diff, include_image: bool) -> ComparisonRecord:
    return ComparisonRecord(
        id=row.id,
        snapshot_id_a=row.snapshot_id_a,
        snapshot_id_b=row.snapshot_id_b,
        timestamp=row.timestamp,
        diff_image=row.diff_image if include_image else None,
        score=row.score,
    )
