"""
Reconciliation of Google account data with the local store.

    - records: LocalSubscription, LocalPlaylist, LocalPlaylistItem
    - importer: ImportEngine (remote imports and local-only subscriptions)
"""

from yt_account_sync.sync.importer import ImportEngine
from yt_account_sync.sync.records import LocalPlaylist, LocalPlaylistItem, LocalSubscription

__all__ = [
    "ImportEngine",
    "LocalPlaylist",
    "LocalPlaylistItem",
    "LocalSubscription",
]
