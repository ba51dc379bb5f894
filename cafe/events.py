"""
State-change notifications pushed to whoever renders the app state.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class Resource(str, Enum):
    MENU = "menu"
    ORDERS = "orders"
    EVENT_CONFIG = "event_config"
    OFFLINE_QUEUE = "offline_queue"
    CONNECTIVITY = "connectivity"
    LANGUAGE = "language"


class ChangeSource(str, Enum):
    LOCAL = "local"  # optimistic mutation on this device
    REMOTE = "remote"  # snapshot read from the remote store
    RESET = "reset"


class EventBase(BaseModel):
    event_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    event_version: int = 1
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"extra": "ignore"}


class StateChangedEvent(EventBase):
    resource: Resource
    source: ChangeSource
