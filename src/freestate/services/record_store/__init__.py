"""Durable record store: object stores and the pending action queue."""

from freestate.services.record_store.store import RecordStore

__all__ = ["RecordStore"]
