from app.data.models.product import ProductModel
from app.repos.base import StoreRepo


class ProductRepo(StoreRepo):
    model = ProductModel
