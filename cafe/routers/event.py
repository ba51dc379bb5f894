from fastapi import APIRouter, Depends

from cafe.dependencies import get_store
from cafe.models import EventConfig
from cafe.services.store import CafeStore

router = APIRouter()


@router.get("", response_model=EventConfig)
async def get_event_config(store: CafeStore = Depends(get_store)) -> EventConfig:
    return store.event_config


@router.put("", response_model=EventConfig)
async def update_event_config(
    config: EventConfig, store: CafeStore = Depends(get_store)
) -> EventConfig:
    return await store.update_event_config(config)
