# app/domain/errors.py
from typing import Any, Dict, Optional


class ShopError(Exception):
    """Bazowy wyjatek domeny: kod maszynowy, komunikat i szczegoly."""

    code = "SHOP_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class NotFound(ShopError):
    """Produkt, koszyk albo pozycja koszyka nie istnieje."""

    code = "NOT_FOUND"


class BadReference(ShopError):
    """Id produktu ma zly format (blad wejscia, nie brak encji)."""

    code = "BAD_REFERENCE"


class ValidationFailed(ShopError):
    code = "VALIDATION_ERROR"


class CacheUnavailable(ShopError):
    """Blad redisa. Nigdy nie opuszcza CacheService."""

    code = "CACHE_UNAVAILABLE"


class StoreFailure(ShopError):
    """Blad bazy - zawsze propagowany, nie ma innego zrodla prawdy."""

    code = "STORE_FAILURE"
