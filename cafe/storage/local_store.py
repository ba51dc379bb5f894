"""
Durable key-value store for the device-local snapshot of the app.

Holds the last known-good menu, orders, offline queue and event config plus
small UI preferences. Everything is stored as JSON text under a fixed set of
keys. Reads never raise: a missing or corrupt entry falls back to the
compiled-in default for that key.
"""

import json
import logging
from typing import Any, Callable, TypeVar

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import delete, select
from sqlalchemy.engine import Engine

from cafe.metrics import LOCAL_CACHE_FALLBACKS
from cafe.models import (
    DEFAULT_LANGUAGE,
    LOCAL_DEFAULT_EVENT_CONFIG,
    EventConfig,
    Language,
    MenuItem,
    Order,
    Role,
    initial_menu,
)
from cafe.storage.database import LocalEntry, create_local_engine, create_session_factory

logger = logging.getLogger(__name__)

T = TypeVar("T")

MENU_KEY = "moa_menu"
ORDERS_KEY = "moa_orders"
QUEUE_KEY = "moa_offline_queue"
EVENT_KEY = "moa_event"
LANGUAGE_KEY_PREFIX = "moa_lang_"

_MENU_ADAPTER = TypeAdapter(list[MenuItem])
_ORDERS_ADAPTER = TypeAdapter(list[Order])


def _language_key(role: Role) -> str:
    return f"{LANGUAGE_KEY_PREFIX}{role.value}"


class LocalStore:
    def __init__(self, db_path: str) -> None:
        self._engine = create_local_engine(db_path)
        self._session_factory = create_session_factory(self._engine)

    # ------------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------------

    def get_raw(self, key: str) -> str | None:
        with self._session_factory() as session:
            entry = session.get(LocalEntry, key)
            return entry.value if entry is not None else None

    def set_raw(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            entry = session.get(LocalEntry, key)
            if entry is None:
                session.add(LocalEntry(key=key, value=value))
            else:
                entry.value = value
            session.commit()

    def keys(self) -> list[str]:
        with self._session_factory() as session:
            return list(session.scalars(select(LocalEntry.key)))

    def clear(self) -> None:
        with self._session_factory() as session:
            session.execute(delete(LocalEntry))
            session.commit()
        logger.info("Local store cleared")

    @property
    def engine(self) -> Engine:
        return self._engine

    def close(self) -> None:
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Typed snapshots
    # ------------------------------------------------------------------

    def _load(self, key: str, parse: Callable[[Any], T], default: Callable[[], T]) -> T:
        raw = self.get_raw(key)
        if raw is None:
            return default()
        try:
            return parse(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            # json.JSONDecodeError is a ValueError subclass
            LOCAL_CACHE_FALLBACKS.labels(key).inc()
            logger.warning(
                "Corrupt local cache entry, falling back to defaults",
                extra={"key": key, "error": str(exc)},
            )
            return default()

    def _save(self, key: str, payload: Any) -> None:
        self.set_raw(key, json.dumps(payload, ensure_ascii=False))

    def load_menu(self) -> list[MenuItem]:
        return self._load(MENU_KEY, _MENU_ADAPTER.validate_python, initial_menu)

    def save_menu(self, menu: list[MenuItem]) -> None:
        self._save(MENU_KEY, [item.to_wire() for item in menu])

    def load_orders(self) -> list[Order]:
        return self._load(ORDERS_KEY, _ORDERS_ADAPTER.validate_python, list)

    def save_orders(self, orders: list[Order]) -> None:
        self._save(ORDERS_KEY, [order.to_wire() for order in orders])

    def load_queue(self) -> list[Order]:
        return self._load(QUEUE_KEY, _ORDERS_ADAPTER.validate_python, list)

    def save_queue(self, queue: list[Order]) -> None:
        self._save(QUEUE_KEY, [order.to_wire() for order in queue])

    def load_event_config(self) -> EventConfig:
        return self._load(
            EVENT_KEY,
            EventConfig.model_validate,
            LOCAL_DEFAULT_EVENT_CONFIG.model_copy,
        )

    def save_event_config(self, config: EventConfig) -> None:
        self._save(EVENT_KEY, config.to_wire())

    def load_language(self, role: Role) -> Language:
        return self._load(_language_key(role), Language, lambda: DEFAULT_LANGUAGE)

    def save_language(self, role: Role, language: Language) -> None:
        self._save(_language_key(role), language.value)
