"""
Modelli Database SQLAlchemy
Progetto: Invoice Manager (Gestionale Fatture)

Import centralizzato di tutti i modelli per create_all e usage generico.

Modelli:
- Invoice: Fatture
- LineItem: Righe fattura
- Payment: Pagamenti registrati su fattura
"""

# SQLAlchemy 2.0 Base declarativa
# Importato qui per essere disponibile per tutti i modelli
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from app.models.invoice import Invoice, LineItem, Payment

__all__ = [
    "Base",
    "Invoice",
    "LineItem",
    "Payment",
]
