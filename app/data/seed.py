# app/data/seed.py
from decimal import Decimal

from app.data.database import SessionLocal, init_db
from app.repos.product_repo import ProductRepo
from app.services.cache_service import CacheService
from app.services.catalog_service import CatalogService
from app.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {
        "name": "Wireless Noise Cancelling Headphones",
        "description": "Premium wireless noise-cancelling headphones for commute and travel.",
        "brand": "SoundWave",
        "category": "Electronics",
        "price": Decimal("299.99"),
        "count_in_stock": 20,
        "images": ["https://images.pexels.com/photos/1649771/pexels-photo-1649771.jpeg"],
    },
    {
        "name": "Smart Watch Series 5",
        "description": "Heart rate monitoring and GPS in a slim smart watch.",
        "brand": "TechTime",
        "category": "Electronics",
        "price": Decimal("399.99"),
        "count_in_stock": 15,
        "images": ["https://images.pexels.com/photos/267394/pexels-photo-267394.jpeg"],
    },
    {
        "name": "Professional DSLR Camera",
        "description": "Professional DSLR camera kit.",
        "brand": "ClickMaster",
        "category": "Photography",
        "price": Decimal("1299.99"),
        "count_in_stock": 5,
        "images": ["https://images.pexels.com/photos/90946/pexels-photo-90946.jpeg"],
    },
    {
        "name": "Ultra-Slim Laptop",
        "description": "Power meets portability, designed for professionals on the go.",
        "brand": "CompTech",
        "category": "Computers",
        "price": Decimal("999.99"),
        "count_in_stock": 10,
        "images": ["https://images.pexels.com/photos/18105/pexels-photo.jpg"],
    },
    {
        "name": "Mechanical Gaming Keyboard",
        "description": "Responsive mechanical keys and customizable RGB lighting.",
        "brand": "KeyPro",
        "category": "Accessories",
        "price": Decimal("129.99"),
        "count_in_stock": 0,
        "images": [],
    },
]


def seed(db, cache: CacheService) -> int:
    # not forcing: only seed if empty
    if ProductRepo(db).find():
        return 0
    catalog = CatalogService(db=db, cache=cache)
    for fields in PRODUCTS:
        catalog.create_product(fields)
    logger.info(f"Seeded {len(PRODUCTS)} products")
    return len(PRODUCTS)


if __name__ == "__main__":
    configure_logging()
    init_db()
    cache = CacheService(background_writes=False)
    cache.start()
    db = SessionLocal()
    try:
        seed(db, cache)
    finally:
        db.close()
        cache.close()
