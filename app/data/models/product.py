#app/data/models/product.py
from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, JSON

from app.data.database import Base
from app.data.models._common import new_id, utcnow


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    brand = Column(String(100), nullable=False)
    category = Column(String(100), nullable=False, index=True)
    count_in_stock = Column(Integer, nullable=False, default=0)
    #lista url-i, zawsze co najmniej jeden
    images = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
