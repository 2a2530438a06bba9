"""
Router FastAPI per la ricerca fatture
Progetto: Invoice Manager (Gestionale Fatture)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.routes.invoices import get_invoice_service
from app.core.database import get_db
from app.schemas.invoice import InvoiceRead
from app.services.invoice_service import InvoiceService

router = APIRouter(tags=["Ricerca"])


@router.get(
    "/search",
    name="ricerca_fatture",
    summary="Ricerca fatture",
    description="Ricerca case-insensitive per nome cliente, descrizione riga o UUID fattura.",
    response_model=list[InvoiceRead],
    status_code=status.HTTP_200_OK,
)
async def search_invoices(
    q: Optional[str] = Query(None, description="Termine di ricerca (vuoto = tutte le fatture)"),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> list[InvoiceRead]:
    """
    Ricerca le fatture.

    Un termine vuoto restituisce l'elenco completo,
    equivalente a GET /invoices.
    """
    return await service.search(db=db, query=q)
