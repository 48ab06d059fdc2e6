#app/data/models/cart.py
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from app.data.database import Base
from app.data.models._common import new_id, utcnow


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(String(36), primary_key=True, default=new_id)
    #jeden koszyk na usera
    user_id = Column(String(36), nullable=False, unique=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.position",
    )
