#app/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_catalog
from app.domain.errors import BadReference, NotFound, ValidationFailed
from app.domain.schemas import ProductIn, ProductOut, MessageOut
from app.services.catalog_service import CatalogService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=List[ProductOut])
def list_products(svc: CatalogService = Depends(get_catalog)):
    return svc.list_products()


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, svc: CatalogService = Depends(get_catalog)):
    try:
        return svc.get_product(product_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except BadReference as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(payload: ProductIn, svc: CatalogService = Depends(get_catalog)):
    try:
        return svc.create_product(payload.model_dump(exclude_unset=True))
    except ValidationFailed as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: str,
    payload: ProductIn,
    svc: CatalogService = Depends(get_catalog),
):
    try:
        return svc.update_product(product_id, payload.model_dump(exclude_unset=True))
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except (BadReference, ValidationFailed) as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.delete("/{product_id}", response_model=MessageOut)
def delete_product(product_id: str, svc: CatalogService = Depends(get_catalog)):
    try:
        return svc.delete_product(product_id)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except BadReference as e:
        raise HTTPException(status_code=400, detail=e.message)
