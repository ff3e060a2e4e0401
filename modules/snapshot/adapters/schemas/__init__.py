from modules.snapshot.adapters.schemas.rpc_v1 import (
    CallToolParamsV1,
    CompareSnapshotsArgsV1,
    JsonRpcRequestV1,
    ListRecordsArgsV1,
    ListSnapshotsArgsV1,
    ReadResourceParamsV1,
    SnapshotIdArgsV1,
    TakeSnapshotArgsV1,
    UpdateSnapshotArgsV1,
    ValidateSnapshotArgsV1,
)
from modules.snapshot.adapters.schemas.v1 import (
    ComparisonRecord,
    ComparisonResult,
    RuleResult,
    SnapshotProviderConfig,
    SnapshotRecord,
    SnapshotSummary,
    ValidationMode,
    ValidationPayload,
    ValidationRecord,
    ValidationRule,
)

__all__ = [
    "ComparisonRecord",
    "ComparisonResult",
    "RuleResult",
    "SnapshotProviderConfig",
    "SnapshotRecord",
    "SnapshotSummary",
    "ValidationMode",
    "ValidationPayload",
    "ValidationRecord",
    "ValidationRule",
    "CallToolParamsV1",
    "CompareSnapshotsArgsV1",
    "JsonRpcRequestV1",
    "ListRecordsArgsV1",
    "ListSnapshotsArgsV1",
    "ReadResourceParamsV1",
    "SnapshotIdArgsV1",
    "TakeSnapshotArgsV1",
    "UpdateSnapshotArgsV1",
    "ValidateSnapshotArgsV1",
]
