"""Change notifications and websocket delivery."""

from __future__ import annotations

from .broker import (
    TABLES,
    ChangeBroker,
    ChangeEvent,
    ConnectionLimitExceeded,
    Subscription,
    broker,
)

__all__ = [
    "TABLES",
    "ChangeBroker",
    "ChangeEvent",
    "ConnectionLimitExceeded",
    "Subscription",
    "broker",
]
