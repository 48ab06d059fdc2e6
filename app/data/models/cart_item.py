from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.data.database import Base
from app.data.models._common import new_id


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(String(36), primary_key=True, default=new_id)
    cart_id = Column(String(36), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    #slaba referencja - produkt moze zostac usuniety niezaleznie od koszyka
    product_id = Column(String(36), nullable=False)

    quantity = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    cart = relationship("CartModel", back_populates="items")

    __table_args__ = (UniqueConstraint("cart_id", "product_id", name="u_cart_product"),)
