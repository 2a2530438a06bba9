"""
API Routes
Progetto: Invoice Manager (Gestionale Fatture)

Router REST montati sotto `settings.api_prefix`.
"""

from fastapi import APIRouter

from app.api.routes import invoices, search
from app.core.config import settings

# Router aggregato
api_router = APIRouter(prefix=settings.api_prefix)

# Includi i router dei moduli
api_router.include_router(invoices.router)
api_router.include_router(search.router)

# Esportazione
__all__ = ["api_router"]
