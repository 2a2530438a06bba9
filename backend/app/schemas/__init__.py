"""
Schemas Pydantic per il progetto Invoice Manager

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle risposte API.
"""

# Import degli schemi per renderli disponibili tramite import diretto
# es: from app.schemas import InvoiceRead, PaymentCreate, etc.

from app.schemas.invoice import (
    PaymentMethod,
    LineItemBase,
    LineItemCreate,
    LineItemRead,
    LineItemsReplace,
    PaymentCreate,
    PaymentRead,
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceRead,
)

__all__ = [
    "PaymentMethod",
    "LineItemBase",
    "LineItemCreate",
    "LineItemRead",
    "LineItemsReplace",
    "PaymentCreate",
    "PaymentRead",
    "InvoiceCreate",
    "InvoiceUpdate",
    "InvoiceRead",
]
