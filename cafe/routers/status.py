import logging

from fastapi import APIRouter, Depends

from cafe.dependencies import get_store
from cafe.models import Order, Role
from cafe.schemas.requests import LanguageUpdate, OnlineUpdate
from cafe.schemas.responses import ConnectivityResponse, SalesSummaryResponse, SyncResponse
from cafe.services.store import CafeStore

router = APIRouter()
logger = logging.getLogger(__name__)


def _connectivity(store: CafeStore) -> ConnectivityResponse:
    state = store.connectivity
    return ConnectivityResponse(
        is_online=state.is_online,
        db_status=state.db_status,
        is_live=state.is_live,
        queued_orders=len(store.offline_queue),
        polling=store.engine.polling,
    )


@router.get("", response_model=ConnectivityResponse)
async def get_status(store: CafeStore = Depends(get_store)) -> ConnectivityResponse:
    return _connectivity(store)


@router.post("/online", response_model=ConnectivityResponse)
async def set_online(body: OnlineUpdate, store: CafeStore = Depends(get_store)) -> ConnectivityResponse:
    """Platform network-presence hook for hosts that learn about it from outside."""
    store.set_online(body.online)
    return _connectivity(store)


@router.get("/queue", response_model=list[Order])
async def get_offline_queue(store: CafeStore = Depends(get_store)) -> list[Order]:
    return store.offline_queue


@router.post("/sync", response_model=SyncResponse)
async def resync(store: CafeStore = Depends(get_store)) -> SyncResponse:
    resynced = await store.resync()
    logger.info("Manual resync requested", extra={"resynced": resynced})
    return SyncResponse(resynced=resynced)


@router.get("/summary", response_model=SalesSummaryResponse)
async def sales_summary(store: CafeStore = Depends(get_store)) -> SalesSummaryResponse:
    return SalesSummaryResponse.model_validate(store.sales_summary())


@router.get("/language/{role}", response_model=LanguageUpdate)
async def get_language(role: Role, store: CafeStore = Depends(get_store)) -> LanguageUpdate:
    return LanguageUpdate(language=store.language(role))


@router.put("/language/{role}", response_model=LanguageUpdate)
async def set_language(
    role: Role, body: LanguageUpdate, store: CafeStore = Depends(get_store)
) -> LanguageUpdate:
    store.set_language(role, body.language)
    return body


@router.post("/reset", response_model=ConnectivityResponse)
async def reset_data(store: CafeStore = Depends(get_store)) -> ConnectivityResponse:
    logger.warning("Local data reset requested")
    store.reset_data()
    return _connectivity(store)
