from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_cache
from app.data.database import get_db, ping_db
from app.services.cache_service import CacheService

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db), cache: CacheService = Depends(get_cache)):
    database_ok = ping_db(db)
    cache_ok = cache.ping()

    #bez redisa dzialamy dalej (degraded), bez bazy nie
    if not database_ok:
        status = "error"
    elif not cache_ok:
        status = "degraded"
    else:
        status = "ok"

    return {
        "status": status,
        "dependencies": {
            "database": "ok" if database_ok else "unavailable",
            "redis": "ok" if cache_ok else "unavailable",
        },
    }
