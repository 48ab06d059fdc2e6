# app/api/deps.py
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.services.cache_service import CacheService
from app.services.catalog_service import CatalogService
from app.services.cart_service import CartService


def get_cache(request: Request) -> CacheService:
    #jeden klient redisa na proces, tworzony w lifespan
    return request.app.state.cache


def get_catalog(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
) -> CatalogService:
    return CatalogService(db=db, cache=cache)


def get_cart_service(
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog),
) -> CartService:
    return CartService(db=db, catalog=catalog)
