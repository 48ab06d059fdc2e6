# app/services/catalog_service.py
import uuid
from decimal import Decimal
from typing import Any, Dict, List
from urllib.parse import quote

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from app.data.models.product import ProductModel
from app.domain.errors import BadReference, NotFound, ValidationFailed
from app.domain.schemas import ProductOut
from app.repos.product_repo import ProductRepo
from app.services.cache_service import CacheService
from app.utils.settings import CACHE_TTL_SECONDS, PLACEHOLDER_IMAGE_URL
from app.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS_KEY = "products:all"

REQUIRED_FIELDS = ("name", "description", "price", "brand", "category")
#pola aktualizowane "truthy fallback" - pusta wartosc zostawia poprzednia
MERGED_FIELDS = ("name", "description", "price", "brand", "category", "images")


def product_key(product_id: str) -> str:
    return f"product:{product_id}"


def parse_product_id(product_id: Any) -> str:
    """Normalizuje id produktu do postaci kanonicznej, BadReference gdy format jest zly."""
    try:
        return str(uuid.UUID(str(product_id)))
    except (TypeError, ValueError, AttributeError):
        raise BadReference(
            "Invalid product ID format",
            details={"product_id": str(product_id)},
        )


def serialize_product(product: ProductModel) -> Dict[str, Any]:
    #ten sam ksztalt z bazy i z cache
    return ProductOut.model_validate(product).model_dump(mode="json")


_PRODUCT_LIST = TypeAdapter(List[ProductOut])


def _cached_product(key: str, cached: Any, pid: str) -> Dict[str, Any] | None:
    """Wpis z cache tylko gdy ma ksztalt produktu, inaczej miss."""
    try:
        product = ProductOut.model_validate(cached)
    except ValidationError as e:
        logger.warning(f"Unexpected cache payload under {key}, treating as miss: {e.error_count()} errors")
        return None
    if product.id != pid:
        logger.warning(f"Cache entry {key} holds product {product.id}, treating as miss")
        return None
    return product.model_dump(mode="json")


def _cached_product_list(cached: Any) -> List[Dict[str, Any]] | None:
    try:
        products = _PRODUCT_LIST.validate_python(cached)
    except ValidationError as e:
        logger.warning(f"Unexpected cache payload under {PRODUCTS_KEY}, treating as miss: {e.error_count()} errors")
        return None
    return [p.model_dump(mode="json") for p in products]


class CatalogService:
    """
    Cache-aside dla produktow:
    query (get, list) - najpierw redis, potem baza i zapis do cache w tle
    commands (create, update, delete) - najpierw baza, potem usuniecie kluczy z cache
    """

    def __init__(self, db: Session, cache: CacheService, ttl: int = CACHE_TTL_SECONDS):
        self.repo = ProductRepo(db)
        self.cache = cache
        self.ttl = ttl

    #query
    def get_product(self, product_id: Any) -> Dict[str, Any]:
        pid = parse_product_id(product_id)
        key = product_key(pid)

        cached = self.cache.get_json(key)
        if cached is not None:
            cached = _cached_product(key, cached, pid)
        if cached is not None:
            logger.debug(f"Serving product {pid} from cache")
            return cached

        product = self.repo.find_by_id(pid)
        if product is None:
            raise NotFound("Product not found", details={"product_id": pid})

        data = serialize_product(product)
        self.cache.set_json_in_background(key, data, self.ttl)
        return data

    def list_products(self) -> List[Dict[str, Any]]:
        cached = self.cache.get_json(PRODUCTS_KEY)
        if cached is not None:
            cached = _cached_product_list(cached)
        if cached is not None:
            logger.debug("Serving products from cache")
            return cached

        logger.info("Fetching all products from DB")
        data = [serialize_product(p) for p in self.repo.find()]
        logger.info(f"Found {len(data)} products")

        self.cache.set_json_in_background(PRODUCTS_KEY, data, self.ttl)
        return data

    #commands
    def create_product(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        missing = [
            f for f in REQUIRED_FIELDS
            if fields.get(f) is None or fields.get(f) == ""
        ]
        if fields.get("count_in_stock") is None:
            missing.append("count_in_stock")
        if missing:
            raise ValidationFailed("Missing required fields", details={"missing": missing})

        self._check_non_negative(fields["price"], fields["count_in_stock"])

        images = [i for i in (fields.get("images") or []) if i]
        if not images:
            images = [PLACEHOLDER_IMAGE_URL + quote(fields["name"])]

        product = self.repo.create({
            "name": fields["name"],
            "description": fields["description"],
            "price": Decimal(str(fields["price"])),
            "brand": fields["brand"],
            "category": fields["category"],
            "count_in_stock": int(fields["count_in_stock"]),
            "images": images,
        })

        #delete, nie nadpisanie - nastepny odczyt zbuduje liste od nowa
        self.cache.delete(PRODUCTS_KEY)
        logger.info(f"Product {product.id} created and cache invalidation triggered")

        return serialize_product(product)

    def update_product(self, product_id: Any, fields: Dict[str, Any]) -> Dict[str, Any]:
        pid = parse_product_id(product_id)
        product = self.repo.find_by_id(pid)
        if product is None:
            raise NotFound("Product not found", details={"product_id": pid})

        """
        # Aktualizacja czesciowa: pole puste/falsy zostawia stara wartosc
        # (cena 0 albo pusty string NIE nadpisuja - zachowanie zamierzone do potwierdzenia)
        # count_in_stock nadpisywany zawsze gdy podany, wiec 0 dziala
        """
        changes = {}
        for field in MERGED_FIELDS:
            value = fields.get(field)
            if value:
                changes[field] = value
        if fields.get("count_in_stock") is not None:
            changes["count_in_stock"] = int(fields["count_in_stock"])

        self._check_non_negative(
            changes.get("price", product.price),
            changes.get("count_in_stock", product.count_in_stock),
        )
        if "price" in changes:
            changes["price"] = Decimal(str(changes["price"]))

        updated = self.repo.update_by_id(pid, changes)
        if updated is None:
            #usuniety pomiedzy odczytem a zapisem
            raise NotFound("Product not found", details={"product_id": pid})

        self.cache.delete(PRODUCTS_KEY, product_key(pid))
        logger.info(f"Product {pid} updated and cache invalidation triggered")

        return serialize_product(updated)

    def delete_product(self, product_id: Any) -> Dict[str, str]:
        pid = parse_product_id(product_id)
        product = self.repo.find_by_id(pid)
        if product is None:
            logger.info(f"Product not found for ID: {pid}")
            raise NotFound("Product not found", details={"product_id": pid})

        logger.info(f"Deleting product {pid} ({product.name})")
        self.repo.delete_by_id(pid)

        self.cache.delete(PRODUCTS_KEY, product_key(pid))
        logger.info(f"Product {pid} deleted and cache invalidation triggered")

        return {"message": "Product deleted successfully"}

    @staticmethod
    def _check_non_negative(price: Any, stock: Any) -> None:
        try:
            bad = Decimal(str(price)) < 0 or int(stock) < 0
        except (ArithmeticError, TypeError, ValueError):
            raise ValidationFailed("Price and stock must be numbers")
        if bad:
            raise ValidationFailed("Price and stock must be non-negative")
