"""
Session event log.

Attempt ids double as trace ids so every line for one resolution attempt can be grouped.
"""

from miniapp_session.core.events.jsonl import EventLogger, redact

__all__ = [
    "EventLogger",
    "redact",
]
