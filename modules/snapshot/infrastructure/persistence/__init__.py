from modules.snapshot.infrastructure.persistence.repository import SqlSnapshotStore

__all__ = ["SqlSnapshotStore"]
