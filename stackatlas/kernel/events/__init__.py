"""
Append-only audit log service.
"""

from stackatlas.kernel.events.event_store import EventStore

__all__ = ["EventStore"]
