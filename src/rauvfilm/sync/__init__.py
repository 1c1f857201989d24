"""Reservation/booking dual-record synchronization."""

from rauvfilm.sync.synchronizer import DualRecordSynchronizer, SyncDrift, dual_record_sync

__all__ = [
    "DualRecordSynchronizer",
    "SyncDrift",
    "dual_record_sync",
]
