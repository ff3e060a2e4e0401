"""JSON interchange for whole tables.

Binary columns travel as base64 strings. Older exports stored them as Node-style
Buffer dumps, ``{"type": "Buffer", "data": [...]}`` objects, which are
accepted on import as well. JSON-encoded text columns are carried verbatim.
"""

from __future__ import annotations

import base64
import binascii
import json
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ValidationError
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from modules.snapshot.domain.errors import MalformedInputError
from modules.snapshot.infrastructure.persistence.models import TABLES, Diff, Snapshot, Validation


def _decode_binary(value: Any) -> bytes | None:
    if value is None:
        return None
    if isinstance(value, dict) and value.get("type") == "Buffer":
        data = value.get("data")
        if not isinstance(data, list):
            raise ValueError("Buffer object without data list")
        return bytes(data)
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as exc:
            raise ValueError("invalid base64") from exc
    raise ValueError("expected base64 string")


def _encode_json_text(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value)


Binary = Annotated[bytes | None, BeforeValidator(_decode_binary)]
JsonText = Annotated[str, BeforeValidator(_encode_json_text)]
OptionalJsonText = Annotated[str | None, BeforeValidator(_encode_json_text)]


class SnapshotRowV1(BaseModel):
    id: int | None = None
    timestamp: datetime | None = None
    image: Binary = None
    dom: str
    metadata: JsonText
    label: str | None = None
    tags: OptionalJsonText = None
    env_info: OptionalJsonText = None
    archived: bool = False

    model_config = {"extra": "forbid"}

    def to_values(self) -> dict:
        values = self.model_dump(exclude_none=False)
        values["archived"] = int(self.archived)
        return values


class ValidationRowV1(BaseModel):
    id: int | None = None
    snapshot_id: int
    timestamp: datetime | None = None
    result: JsonText

    model_config = {"extra": "forbid"}

    def to_values(self) -> dict:
        return self.model_dump()


class DiffRowV1(BaseModel):
    id: int | None = None
    snapshot_id_a: int
    snapshot_id_b: int
    timestamp: datetime | None = None
    diff_image: Binary = None
    score: float

    model_config = {"extra": "forbid"}

    def to_values(self) -> dict:
        return self.model_dump()


ROW_SCHEMAS: dict[type, type[BaseModel]] = {
    Snapshot: SnapshotRowV1,
    Validation: ValidationRowV1,
    Diff: DiffRowV1,
}


def resolve_table(table_name: str) -> type:
    model = TABLES.get(table_name)
    if model is None:
        allowed = ", ".join(sorted(TABLES))
        raise MalformedInputError(f"unknown table: {table_name} (expected one of {allowed})")
    return model


def _export_value(value: Any) -> Any:
    if isinstance(value, bytes | bytearray | memoryview):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def export_rows(session: Session, model: type) -> list[dict]:
    table = model.__table__
    rows = session.execute(select(table).order_by(table.c.id)).mappings().all()
    return [{key: _export_value(value) for key, value in row.items()} for row in rows]


def import_rows(session: Session, model: type, rows: object) -> int:
    """Insert every row or none of them.

    All rows are validated before anything is written; the first failure of any
    kind aborts the import with a ``MalformedInputError`` naming the row.
    """
    if not isinstance(rows, list):
        raise MalformedInputError("import payload must be a JSON array of row objects")
    schema = ROW_SCHEMAS[model]
    parsed: list[dict] = []
    problems: list[str] = []
    for index, raw in enumerate(rows):
        if not isinstance(raw, dict):
            problems.append(f"row {index}: expected an object")
            continue
        try:
            row = schema.model_validate(raw)
        except ValidationError as exc:
            for error in exc.errors():
                field = ".".join(str(part) for part in error["loc"]) or "<row>"
                problems.append(f"row {index}: {field}: {error['msg']}")
            continue
        values = row.to_values()
        for key in ("id", "timestamp"):
            if values.get(key) is None:
                values.pop(key, None)
        parsed.append(values)
    if problems:
        raise MalformedInputError("import rejected; " + "; ".join(problems))

    table = model.__table__
    for index, values in enumerate(parsed):
        try:
            session.execute(insert(table).values(**values))
        except IntegrityError as exc:
            raise MalformedInputError(f"import rejected; row {index}: {exc.orig}") from exc
    return len(parsed)


def dumps_rows(rows: list[dict]) -> str:
    return json.dumps(rows, indent=2, ensure_ascii=False)


def loads_rows(text: str) -> object:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedInputError(f"import file is not valid JSON: {exc}") from exc
