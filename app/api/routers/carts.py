#app/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_cart_service
from app.domain.errors import BadReference, NotFound, ValidationFailed
from app.domain.schemas import ItemIn, QuantityIn, CartOut
from app.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])

#user_id przychodzi z warstwy auth (poza tym serwisem)


@router.get("/", response_model=CartOut)
def get_cart(
    user_id: str = Query(..., min_length=1),
    svc: CartService = Depends(get_cart_service),
):
    return svc.get_cart(user_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    user_id: str = Query(..., min_length=1),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.add_item(user_id, payload.product_id, payload.quantity)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except (BadReference, ValidationFailed) as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.put("/items", response_model=CartOut)
def update_item(
    payload: QuantityIn,
    user_id: str = Query(..., min_length=1),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.update_item_quantity(user_id, payload.product_id, payload.quantity)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except BadReference as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: str,
    user_id: str = Query(..., min_length=1),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.remove_item(user_id, product_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except BadReference as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.delete("/", response_model=CartOut)
def clear_cart(
    user_id: str = Query(..., min_length=1),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.clear_cart(user_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
