from __future__ import annotations


class SightlineError(Exception):
    """Base class for every error surfaced to RPC and CLI callers."""

    code = "sightline_error"


class NotFoundError(SightlineError):
    code = "not_found"


class SnapshotNotFoundError(NotFoundError):
    def __init__(self, snapshot_id: int) -> None:
        super().__init__(f"snapshot not found: {snapshot_id}")
        self.snapshot_id = snapshot_id


class DiffNotFoundError(NotFoundError):
    pass


class ValidationNotFoundError(NotFoundError):
    pass


class DimensionMismatchError(SightlineError):
    code = "dimension_mismatch"

    def __init__(self, size_a: tuple[int, int], size_b: tuple[int, int]) -> None:
        super().__init__(
            f"image dimensions differ: {size_a[0]}x{size_a[1]} vs {size_b[0]}x{size_b[1]}"
        )
        self.size_a = size_a
        self.size_b = size_b


class MalformedInputError(SightlineError):
    code = "malformed_input"


class UnsupportedOperationError(SightlineError):
    code = "unsupported_operation"


class DownstreamError(SightlineError):
    code = "downstream_failure"


class StorageError(DownstreamError):
    pass


class CaptureError(DownstreamError):
    pass


class CaptureTimeoutError(CaptureError):
    code = "capture_timeout"
