# ecofinds/api/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ecofinds.api.deps import current_user_id
from ecofinds.data.database import get_db
from ecofinds.domain.errors import (
    EmptyCartError,
    NotAuthorizedError,
    OrderNotFoundError,
    PersistenceError,
    ProductUnavailableError,
)
from ecofinds.domain.schemas import (
    CheckoutIn,
    OrderListOut,
    OrderOut,
    SaleListOut,
    StatusUpdateIn,
)
from ecofinds.domain.status import OrderStatus
from ecofinds.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.post("/checkout", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn | None = None,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    """
    Turns the caller's cart into an order.
    The cart is emptied and the listed products are reserved.
    """
    payload = payload or CheckoutIn()
    svc = get_service(db)
    try:
        return svc.checkout(
            buyer_id=user_id,
            shipping_address=payload.shipping_address.model_dump() if payload.shipping_address else None,
            payment_method=payload.payment_method,
        )
    except EmptyCartError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProductUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("", response_model=OrderListOut)
def list_orders(
    status: OrderStatus | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    """
    Order history of the caller as a buyer.
    """
    svc = get_service(db)
    return svc.list_orders(user_id, status=status, page=page, limit=limit)


@router.get("/sales", response_model=SaleListOut)
def list_sales(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    """
    Items the caller has sold, across all orders.
    """
    svc = get_service(db)
    return svc.list_sales(user_id, page=page, limit=limit)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.get_order(order_id, user_id)
    except NotAuthorizedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: StatusUpdateIn,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
):
    """
    Moves the order along pending -> confirmed -> shipped -> delivered,
    or cancels it. Allowed for the buyer and for sellers in the order.
    Repeating the current status changes nothing, except that a repeated
    "shipped" with a new tracking number replaces the stored one.
    """
    svc = get_service(db)
    try:
        return svc.update_order_status(
            order_id,
            actor_id=user_id,
            new_status=payload.status,
            tracking_number=payload.tracking_number,
        )
    except NotAuthorizedError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
