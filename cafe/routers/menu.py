import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from cafe.dependencies import get_store
from cafe.models import MenuItem
from cafe.services.state import UnknownMenuItemError
from cafe.services.store import CafeStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=list[MenuItem])
async def list_menu(store: CafeStore = Depends(get_store)) -> list[MenuItem]:
    return store.menu


@router.post("", response_model=MenuItem, status_code=status.HTTP_201_CREATED)
async def add_menu_item(item: MenuItem, store: CafeStore = Depends(get_store)) -> MenuItem:
    logger.info("Received add_menu_item request", extra={"item_id": item.id})
    try:
        return await store.add_menu_item(item)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.put("/{item_id}", response_model=MenuItem)
async def update_menu_item(
    item_id: str, item: MenuItem, store: CafeStore = Depends(get_store)
) -> MenuItem:
    if item.id != item_id:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Body id does not match path id",
        )
    try:
        return await store.update_menu_item(item)
    except UnknownMenuItemError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu item not found")


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_menu_item(item_id: str, store: CafeStore = Depends(get_store)) -> Response:
    logger.info("Received delete_menu_item request", extra={"item_id": item_id})
    try:
        await store.delete_menu_item(item_id)
    except UnknownMenuItemError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu item not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
