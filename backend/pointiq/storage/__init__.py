"""Point history persistence: local JSON log, remote table, sync merge."""

from .local import LocalPointStore
from .remote import SupabasePointClient
from .sync import RemoteSyncWorker, SyncStatus, SyncingPointStore, merge_points

__all__ = [
    "LocalPointStore",
    "SupabasePointClient",
    "RemoteSyncWorker",
    "SyncStatus",
    "SyncingPointStore",
    "merge_points",
]
