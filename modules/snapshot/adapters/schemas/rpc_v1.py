from typing import Any

from pydantic import BaseModel, Field

from modules.snapshot.adapters.schemas.v1 import ValidationMode, ValidationRule


class JsonRpcRequestV1(BaseModel):
    jsonrpc: str = "2.0"
    id: int | str | None = None
    method: str = Field(min_length=1)
    params: dict[str, Any] | list[Any] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}


class CallToolParamsV1(BaseModel):
    name: str = Field(min_length=1)
    arguments: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "ignore"}


class ReadResourceParamsV1(BaseModel):
    uri: str = Field(min_length=1)

    model_config = {"extra": "ignore"}


class TakeSnapshotArgsV1(BaseModel):
    url: str = Field(min_length=1)
    label: str | None = None
    tags: list[str] | None = None
    env_info: dict[str, Any] | None = None
    provider: str | None = None

    model_config = {"extra": "forbid"}


class ValidateSnapshotArgsV1(BaseModel):
    snapshot_id: int
    rules: list[ValidationRule]
    profile: str | None = None
    mode: ValidationMode = ValidationMode.selector

    model_config = {"extra": "forbid"}


class CompareSnapshotsArgsV1(BaseModel):
    snapshot_id_a: int
    snapshot_id_b: int
    threshold: float = Field(default=0.1, ge=0.0, le=1.0)

    model_config = {"extra": "forbid"}


class ListSnapshotsArgsV1(BaseModel):
    archived: bool | None = None
    label: str | None = None
    tag: str | None = None

    model_config = {"extra": "forbid"}


class SnapshotIdArgsV1(BaseModel):
    snapshot_id: int

    model_config = {"extra": "forbid"}


class ListRecordsArgsV1(BaseModel):
    snapshot_id: int | None = None

    model_config = {"extra": "forbid"}


class UpdateSnapshotArgsV1(BaseModel):
    snapshot_id: int
    label: str | None = None
    tags: list[str] | None = None

    model_config = {"extra": "forbid"}
