"""
Router FastAPI per la Fatturazione
Progetto: Invoice Manager (Gestionale Fatture)

Definisce gli endpoint API per la gestione delle fatture:
CRUD, gestione righe e registrazione pagamenti.
"""

import logging

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.invoice import (
    InvoiceCreate,
    InvoiceRead,
    InvoiceUpdate,
    LineItemCreate,
    LineItemsReplace,
    PaymentCreate,
    PaymentRead,
)
from app.services.invoice_service import InvoiceService
from app.services.payment_service import PaymentService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/invoices",
    tags=["Fatturazione"],
)


# -------------------------------------------------------------------
# Dependency Injection
# -------------------------------------------------------------------

def get_invoice_service() -> InvoiceService:
    """
    Dependency per ottenere un'istanza dell'InvoiceService.

    Permette di sostituire il service nei test tramite
    app.dependency_overrides.
    """
    return InvoiceService()


def get_payment_service(
    invoice_service: InvoiceService = Depends(get_invoice_service),
) -> PaymentService:
    """Dependency per ottenere un'istanza del PaymentService."""
    return PaymentService(invoice_service)


InvoiceIdPath = Path(..., description="UUID della fattura")


# -------------------------------------------------------------------
# Endpoints per Fatture
# -------------------------------------------------------------------

@router.get(
    "",
    name="fatture_lista",
    summary="Lista fatture",
    description="Recupera tutte le fatture in ordine di creazione.",
    response_model=list[InvoiceRead],
    status_code=status.HTTP_200_OK,
)
async def get_invoices(
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> list[InvoiceRead]:
    return await service.get_all(db=db)


@router.post(
    "",
    name="crea_fattura",
    summary="Crea fattura",
    description="Crea una nuova fattura con eventuali righe iniziali.",
    response_model=InvoiceRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_invoice(
    data: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    """
    Crea una fattura non pagata con la data odierna.

    Esempio:
    ```json
    {"customerName": "Acme", "items": [{"description": "Widget", "price": 9.99}]}
    ```
    """
    return await service.create(db=db, customer_name=data.customer_name, items=data.items)


@router.get(
    "/{invoice_id}",
    name="fattura_dettaglio",
    summary="Dettaglio fattura",
    description="Recupera i dettagli di una fattura.",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def get_invoice(
    invoice_id: str = InvoiceIdPath,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    return await service.get_by_id(db=db, invoice_id=invoice_id)


@router.patch(
    "/{invoice_id}",
    name="aggiorna_fattura",
    summary="Aggiorna fattura",
    description="Aggiorna il nome del cliente di una fattura non pagata.",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def update_invoice(
    data: InvoiceUpdate,
    invoice_id: str = InvoiceIdPath,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    """
    Aggiorna una fattura.

    NOTA: La data di emissione non è modificabile.
    """
    return await service.rename(db=db, invoice_id=invoice_id, customer_name=data.customer_name)


@router.delete(
    "/{invoice_id}",
    name="elimina_fattura",
    summary="Elimina fattura",
    description="Elimina una fattura con le sue righe e i suoi pagamenti.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_invoice(
    invoice_id: str = InvoiceIdPath,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> None:
    await service.delete(db=db, invoice_id=invoice_id)


# -------------------------------------------------------------------
# Endpoints per Righe
# -------------------------------------------------------------------

@router.post(
    "/{invoice_id}/items",
    name="aggiungi_riga",
    summary="Aggiungi riga",
    description="Aggiunge una riga in coda alla fattura e ricalcola il totale.",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def add_item(
    data: LineItemCreate,
    invoice_id: str = InvoiceIdPath,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    return await service.add_item(
        db=db,
        invoice_id=invoice_id,
        description=data.description,
        price=data.price,
    )


@router.put(
    "/{invoice_id}/items",
    name="sostituisci_righe",
    summary="Sostituisci righe",
    description="Sostituisce l'intero elenco delle righe (aggiunta, modifica e rimozione in un'unica richiesta).",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def replace_items(
    data: LineItemsReplace,
    invoice_id: str = InvoiceIdPath,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    """
    Sostituisce le righe della fattura.

    Se una sola riga è invalida la richiesta è rifiutata
    e le righe esistenti restano invariate.
    """
    return await service.replace_items(db=db, invoice_id=invoice_id, items=data.items)


# -------------------------------------------------------------------
# Endpoints per Pagamenti
# -------------------------------------------------------------------

@router.post(
    "/{invoice_id}/payments",
    name="registra_pagamento",
    summary="Registra pagamento",
    description="Registra un pagamento (anche parziale) sulla fattura.",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
    tags=["Pagamenti"],
)
@router.post(
    "/{invoice_id}/pay",
    name="paga_fattura",
    summary="Paga fattura",
    description="Alias di POST /invoices/{invoice_id}/payments usato dalla UI.",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
    tags=["Pagamenti"],
)
async def pay_invoice(
    data: PaymentCreate,
    invoice_id: str = InvoiceIdPath,
    db: AsyncSession = Depends(get_db),
    service: PaymentService = Depends(get_payment_service),
) -> InvoiceRead:
    """
    Registra un pagamento.

    Regole:
    - l'importo deve essere positivo e non superare il saldo residuo
    - una fattura già pagata restituisce 409

    Esempio:
    ```json
    {"method": "CARD", "amount": 10.49, "date": "2025-01-18"}
    ```
    """
    return await service.pay(
        db=db,
        invoice_id=invoice_id,
        method=data.method,
        amount=data.amount,
        payment_date=data.payment_date,
        reference=data.reference,
    )


@router.get(
    "/{invoice_id}/payments",
    name="storico_pagamenti",
    summary="Storico pagamenti",
    description="Lista dei pagamenti della fattura ordinati per data.",
    response_model=list[PaymentRead],
    status_code=status.HTTP_200_OK,
    tags=["Pagamenti"],
)
async def get_invoice_payments(
    invoice_id: str = InvoiceIdPath,
    db: AsyncSession = Depends(get_db),
    service: PaymentService = Depends(get_payment_service),
) -> list[PaymentRead]:
    return await service.get_payments(db=db, invoice_id=invoice_id)
