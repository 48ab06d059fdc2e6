# app/repos/cart_repo.py
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.domain.errors import StoreFailure
from app.repos.base import StoreRepo, store_call


class CartRepo(StoreRepo):
    """
    Koszyk traktowany jak dokument: pole "items" to uporzadkowana lista
    {"product_id", "quantity"}, zapisywana w calosci przy kazdym update
    """

    model = CartModel

    def get_by_user(self, user_id: str) -> CartModel | None:
        found = self.find(user_id=user_id)
        return found[0] if found else None

    @store_call
    def create(self, doc: Dict[str, Any]) -> CartModel:
        doc = dict(doc)
        items = doc.pop("items", [])
        cart = CartModel(**doc)
        self._sync_items(cart, items)
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def create_if_absent(self, doc: Dict[str, Any]) -> CartModel | None:
        """None gdy koszyk usera juz istnieje (unique user_id), np. rownolegly create."""
        try:
            return self.create(doc)
        except StoreFailure as e:
            if isinstance(e.__cause__, IntegrityError):
                return None
            raise

    @store_call
    def update_by_id(self, cart_id: str, partial: Dict[str, Any]) -> CartModel | None:
        cart = self.db.get(CartModel, cart_id)
        if cart is None:
            return None
        partial = dict(partial)
        if "items" in partial:
            self._sync_items(cart, partial.pop("items"))
        for field, value in partial.items():
            setattr(cart, field, value)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    @staticmethod
    def _sync_items(cart: CartModel, items: List[Dict[str, Any]]) -> None:
        #dopasowanie po product_id zamiast delete+insert (unique cart_id+product_id)
        existing = {i.product_id: i for i in cart.items}
        synced = []
        for position, item in enumerate(items):
            row = existing.pop(item["product_id"], None)
            if row is None:
                row = CartItemModel(product_id=item["product_id"])
            row.quantity = item["quantity"]
            row.position = position
            synced.append(row)
        #pozostale w existing znikaja przez delete-orphan
        cart.items = synced
