from decimal import Decimal
from typing import Any, Dict, List, Tuple
from sqlalchemy.orm import Session
from app.data.models.cart import CartModel
from app.domain.errors import BadReference, NotFound, StoreFailure, ValidationFailed
from app.repos.cart_repo import CartRepo
from app.services.catalog_service import CatalogService, parse_product_id
from app.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


class CartService:
    """
    Koszyk per user, pozycje kluczowane po product_id
    commands (add, update, remove, clear) - read-modify-write na bazie
    query (get) - rozwiazuje pozycje przez katalog i sprzata osierocone

    Brak optimistic lockingu: dwa rownolegle add dla tego samego koszyka
    moga nadpisac sobie nawzajem ilosc (lost update).
    """

    def __init__(self, db: Session, catalog: CatalogService):
        self.repo = CartRepo(db)
        self.catalog = catalog

    #query - odczyt (z samonaprawa)
    def get_cart(self, user_id: str) -> Dict[str, Any]:
        cart = self.repo.get_by_user(user_id)

        if not cart:
            return self._empty_view(user_id)

        return self._render(cart)

    #commands
    def add_item(self, user_id: str, product_id: Any, quantity: int) -> Dict[str, Any]:
        self._check_quantity(quantity, positive=True)

        #NotFound / BadReference z katalogu
        product = self.catalog.get_product(product_id)
        pid = product["id"]

        cart = self.repo.get_by_user(user_id)

        if not cart:
            logger.info(f"Creating cart for user {user_id} with product {pid}")
            created = self.repo.create_if_absent({
                "user_id": user_id,
                "items": [{"product_id": pid, "quantity": quantity}],
            })
            if created is not None:
                return self._render(created)

            #rownolegly pierwszy add utworzyl koszyk - laczymy z nim
            logger.info(f"Cart for user {user_id} created concurrently, merging into it")
            cart = self.repo.get_by_user(user_id)
            if cart is None:
                raise StoreFailure("Cart could not be created", details={"user_id": user_id})

        items = self._items_of(cart)
        existing = self._find(items, pid)

        if existing is not None:
            logger.info(
                f"Product {pid} already in cart {cart.id}, increasing quantity "
                f"from {existing['quantity']} to {existing['quantity'] + quantity}"
            )
            existing["quantity"] += quantity
        else:
            logger.info(f"Adding product {pid} to cart {cart.id}")
            items.append({"product_id": pid, "quantity": quantity})

        cart = self.repo.update_by_id(cart.id, {"items": items})
        return self._render(cart)

    def update_item_quantity(self, user_id: str, product_id: Any, quantity: int) -> Dict[str, Any]:
        self._check_quantity(quantity, positive=False)

        product = self.catalog.get_product(product_id)
        pid = product["id"]

        cart = self._require_cart(user_id)
        items = self._items_of(cart)
        existing = self._require_item(items, pid)

        #replace, nie merge jak w add_item
        if quantity <= 0:
            logger.info(f"Quantity {quantity} for product {pid}, removing from cart {cart.id}")
            items.remove(existing)
        else:
            existing["quantity"] = quantity

        cart = self.repo.update_by_id(cart.id, {"items": items})
        return self._render(cart)

    def remove_item(self, user_id: str, product_id: Any) -> Dict[str, Any]:
        pid = parse_product_id(product_id)

        cart = self._require_cart(user_id)
        items = self._items_of(cart)
        items.remove(self._require_item(items, pid))

        logger.info(f"Removing product {pid} from cart {cart.id}")
        cart = self.repo.update_by_id(cart.id, {"items": items})
        return self._render(cart)

    def clear_cart(self, user_id: str) -> Dict[str, Any]:
        cart = self._require_cart(user_id)

        #rekord koszyka zostaje, znikaja tylko pozycje
        cart = self.repo.update_by_id(cart.id, {"items": []})
        logger.info(f"Cart {cart.id} cleared")
        return self._render(cart)

    @staticmethod
    def _check_quantity(quantity: Any, positive: bool) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or (positive and quantity <= 0):
            raise ValidationFailed(
                "Quantity must be a positive integer" if positive else "Quantity must be an integer",
                details={"quantity": quantity},
            )

    def _require_cart(self, user_id: str) -> CartModel:
        cart = self.repo.get_by_user(user_id)
        if not cart:
            raise NotFound("Cart not found", details={"user_id": user_id})
        return cart

    @classmethod
    def _require_item(cls, items: List[Dict[str, Any]], pid: str) -> Dict[str, Any]:
        item = cls._find(items, pid)
        if item is None:
            raise NotFound("Item not found in cart", details={"product_id": pid})
        return item

    @staticmethod
    def _find(items: List[Dict[str, Any]], pid: str) -> Dict[str, Any] | None:
        return next((i for i in items if i["product_id"] == pid), None)

    @staticmethod
    def _items_of(cart: CartModel) -> List[Dict[str, Any]]:
        return [{"product_id": i.product_id, "quantity": i.quantity} for i in cart.items]

    def _resolve(self, cart: CartModel) -> Tuple[List[Tuple[Dict[str, Any], Dict[str, Any]]], List[str]]:
        resolved, orphans = [], []
        for item in self._items_of(cart):
            try:
                product = self.catalog.get_product(item["product_id"])
            except (NotFound, BadReference):
                orphans.append(item["product_id"])
                continue
            resolved.append((item, product))
        return resolved, orphans

    def _render(self, cart: CartModel) -> Dict[str, Any]:
        resolved, orphans = self._resolve(cart)

        if orphans:
            #sprzatamy przy pierwszym odczycie, nie proaktywnie
            logger.info(f"Removing orphaned items {orphans} from cart {cart.id}")
            cart = self.repo.update_by_id(
                cart.id, {"items": [item for item, _ in resolved]}
            )

        view_items = []
        for item, product in resolved:
            price = Decimal(str(product["price"]))
            images = product.get("images") or []
            view_items.append({
                "product_id": item["product_id"],
                "name": product["name"],
                "price": price,
                "image": images[0] if images else None,
                "quantity": item["quantity"],
                "subtotal": (price * item["quantity"]).quantize(CENT),
            })

        return {
            "id": cart.id,
            "user_id": cart.user_id,
            "items": view_items,
            "total_items": sum(i["quantity"] for i in view_items),
            "total_price": sum((i["subtotal"] for i in view_items), Decimal("0.00")),
        }

    @staticmethod
    def _empty_view(user_id: str) -> Dict[str, Any]:
        return {
            "id": None,
            "user_id": user_id,
            "items": [],
            "total_items": 0,
            "total_price": Decimal("0.00"),
        }
