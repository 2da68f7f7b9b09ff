# fitsched/routes/__init__.py
"""
HTTP routes. Business logic lives in the services; routes translate
domain exceptions into HTTP responses.
"""

from typing import NoReturn

from fastapi import HTTPException, status

from ..core.exceptions import DomainException


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
