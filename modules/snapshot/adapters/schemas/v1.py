from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ValidationMode(str, Enum):
    selector = "selector"
    substring = "substring"


class SnapshotProviderConfig(BaseModel):
    provider_name: str
    timeout_seconds: int = 30
    user_agent: str | None = None
    flags: dict[str, str | int | float | bool | None] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}


class SnapshotRecord(BaseModel):
    id: int
    timestamp: datetime
    image: bytes | None = None
    dom: str
    metadata: dict = Field(default_factory=dict)
    label: str | None = None
    tags: list[str] | None = None
    env_info: dict | None = None
    archived: bool = False

    model_config = {"extra": "forbid"}


class SnapshotSummary(BaseModel):
    id: int
    timestamp: datetime
    metadata: dict = Field(default_factory=dict)
    label: str | None = None
    tags: list[str] | None = None
    env_info: dict | None = None
    archived: bool = False
    has_image: bool = False
    image: bytes | None = None

    model_config = {"extra": "forbid"}


class ValidationRule(BaseModel):
    selector: str = Field(min_length=1)
    text: str

    model_config = {"extra": "forbid"}


class RuleResult(BaseModel):
    selector: str
    expected_text: str = Field(alias="expectedText")
    found: bool

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ValidationPayload(BaseModel):
    profile: str | None = None
    rules: list[RuleResult] = Field(default_factory=list)

    model_config = {"extra": "forbid"}

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ValidationRecord(BaseModel):
    id: int
    snapshot_id: int
    timestamp: datetime
    result: ValidationPayload

    model_config = {"extra": "forbid"}


class ComparisonRecord(BaseModel):
    id: int
    snapshot_id_a: int
    snapshot_id_b: int
    timestamp: datetime
    diff_image: bytes | None = None
    score: float

    model_config = {"extra": "forbid"}


class ComparisonResult(BaseModel):
    diff_id: int
    snapshot_id_a: int
    snapshot_id_b: int
    threshold: float
    score: float
    width: int
    height: int

    model_config = {"extra": "forbid"}
