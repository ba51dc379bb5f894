import logging

from fastapi import APIRouter, Depends, HTTPException, status

from cafe.dependencies import get_store
from cafe.models import InvalidTransitionError, Order
from cafe.schemas.requests import CheckoutRequest, StatusUpdate
from cafe.services.state import UnknownMenuItemError, UnknownOrderError
from cafe.services.store import CafeStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=list[Order])
async def list_orders(store: CafeStore = Depends(get_store)) -> list[Order]:
    return store.orders


@router.post("", response_model=Order, status_code=status.HTTP_201_CREATED)
async def place_order(body: CheckoutRequest, store: CafeStore = Depends(get_store)) -> Order:
    logger.info(
        "Received place_order request",
        extra={"table_number": body.table_number, "line_count": len(body.items)},
    )
    try:
        cart = store.open_cart(body.table_number)
        for line in body.items:
            cart.add(
                store.menu_item(line.menu_item_id),
                sugar_level=line.sugar_level,
                ice_level=line.ice_level,
                extra_shot=line.extra_shot,
                notes=line.notes,
                quantity=line.quantity,
            )
        return await store.checkout(cart, body.payment_method)
    except UnknownMenuItemError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Menu item not found: {exc}",
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


@router.get("/{order_id}", response_model=Order)
async def get_order(order_id: str, store: CafeStore = Depends(get_store)) -> Order:
    order = store.find_order(order_id)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@router.patch("/{order_id}", response_model=Order)
async def update_order_status(
    order_id: str, body: StatusUpdate, store: CafeStore = Depends(get_store)
) -> Order:
    logger.info(
        "Received update_order_status request",
        extra={"order_id": order_id, "status": body.status.value},
    )
    try:
        return await store.update_order_status(order_id, body.status)
    except UnknownOrderError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
