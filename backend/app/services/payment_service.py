"""
Service per la registrazione dei pagamenti.
Progetto: Invoice Manager (Gestionale Fatture)

Politica di incasso:
- sono ammessi pagamenti parziali; la fattura risulta pagata quando
  la somma dei pagamenti raggiunge il totale
- un pagamento non può superare il saldo residuo
- una fattura pagata non accetta ulteriori pagamenti
"""

import logging
from datetime import date
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BusinessValidationError, ConflictError
from app.models import Invoice, Payment
from app.services.invoice_service import (
    InvoiceId,
    InvoiceService,
    clean_money,
    clean_text,
)

logger = logging.getLogger(__name__)


class PaymentService:
    """
    Service per i pagamenti delle fatture.

    Riusa InvoiceService per il caricamento (con lock) della fattura.
    """

    def __init__(self, invoice_service: Optional[InvoiceService] = None) -> None:
        self.invoice_service = invoice_service or InvoiceService()

    async def pay(
        self,
        db: AsyncSession,
        invoice_id: InvoiceId,
        method: Any,
        amount: Any,
        payment_date: Optional[date] = None,
        reference: Optional[str] = None,
    ) -> Invoice:
        """
        Registra un pagamento su una fattura.

        Args:
            db: Sessione database
            invoice_id: UUID della fattura
            method: Metodo di pagamento (testo libero, salvato in maiuscolo)
            amount: Importo pagato (> 0, non oltre il saldo residuo)
            payment_date: Data del pagamento (default: oggi)
            reference: Riferimento opzionale

        Returns:
            Invoice: La fattura aggiornata

        Raises:
            NotFoundError: Fattura non trovata
            ConflictError: Fattura già pagata
            BusinessValidationError: Importo o metodo non validi,
                importo superiore al saldo residuo
        """
        invoice = await self.invoice_service.get_by_id(db, invoice_id, for_update=True)

        if invoice.paid:
            logger.warning(f"Pagamento rifiutato: fattura {invoice.id} già pagata")
            raise ConflictError(
                f"La fattura {invoice.id} è già pagata",
                error_code="INVOICE_ALREADY_PAID",
            )

        clean_amount = clean_money(amount, "L'importo del pagamento", allow_zero=False)
        clean_method = clean_text(method, "Il metodo di pagamento", 50).upper()

        remaining = invoice.remaining_balance
        if clean_amount > remaining:
            raise BusinessValidationError(
                f"L'importo {clean_amount} supera il saldo residuo {remaining}",
                error_code="PAYMENT_EXCEEDS_BALANCE",
                extra={"remainingBalance": str(remaining)},
            )

        invoice.payments.append(
            Payment(
                amount=clean_amount,
                method=clean_method,
                payment_date=payment_date or date.today(),
                reference=(reference or "").strip(),
            )
        )
        await db.commit()

        updated = await self.invoice_service.reload(db, invoice)
        logger.info(
            f"Pagamento di {clean_amount} ({clean_method}) registrato su fattura {updated.id}; "
            f"residuo {updated.remaining_balance}, pagata={updated.paid}"
        )
        return updated

    async def get_payments(self, db: AsyncSession, invoice_id: InvoiceId) -> list[Payment]:
        """Storico pagamenti di una fattura, ordinato per data."""
        invoice = await self.invoice_service.get_by_id(db, invoice_id)
        return list(invoice.payments)
