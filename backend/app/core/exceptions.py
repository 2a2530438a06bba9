"""
Eccezioni di dominio della fatturazione.
Progetto: Invoice Manager (Gestionale Fatture)

Ogni eccezione porta con sé lo status HTTP e un codice errore stabile:
gli handler in main.py le convertono nel corpo JSON
`{"error": <messaggio>, "code": <codice>}` letto dalla UI.

NOTA: BusinessValidationError non va confusa con pydantic.ValidationError.
- pydantic.ValidationError: body malformato (tipi, campi mancanti), gestito da FastAPI
- BusinessValidationError: input ben formato ma non accettabile (es. prezzo negativo)
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "BusinessValidationError",
    "ValidationError",       # alias di BusinessValidationError
    "ConflictError",
]


class AppException(Exception):
    """
    Base delle eccezioni applicative.

    Attributes:
        status_code: Status HTTP della risposta
        error_code: Codice errore (es. "INVOICE_ALREADY_PAID")
        detail: Messaggio leggibile mostrato all'utente
        extra: Dati aggiuntivi opzionali (es. indice della riga non valida)
    """

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    default_detail: str = "Errore interno del server"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.detail = detail or self.default_detail
        if error_code is not None:
            self.error_code = error_code
        self.extra = extra
        super().__init__(self.detail)

    def to_payload(self) -> Dict[str, Any]:
        """Corpo JSON della risposta di errore (`error` è il campo letto dalla UI)."""
        payload: Dict[str, Any] = {"error": self.detail, "code": self.error_code}
        if self.extra:
            payload["extra"] = self.extra
        return payload


class NotFoundError(AppException):
    """Fattura inesistente o identificativo malformato (404)."""

    status_code = 404
    error_code = "RESOURCE_NOT_FOUND"
    default_detail = "Risorsa non trovata"


class BusinessValidationError(ValueError, AppException):
    """
    Input rifiutato dalle regole di business (422).

    Eredita da ValueError così un validatore Pydantic che la solleva
    produce un normale errore di validazione del body.

    Esempi:
        - "Il nome del cliente è obbligatorio"
        - "Riga 2: Il prezzo della riga deve essere un numero non negativo"
        - "L'importo 12.00 supera il saldo residuo 10.49"
    """

    status_code = 422
    error_code = "BUSINESS_VALIDATION_ERROR"
    default_detail = "Validazione dati fallita"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # Salta ValueError.__init__: gli argomenti li imposta AppException
        AppException.__init__(self, detail, error_code, extra)


# Alias usato dagli handler
ValidationError = BusinessValidationError


class ConflictError(AppException):
    """
    Operazione incompatibile con lo stato della fattura (409).

    Es. pagamento o modifica righe su una fattura già pagata.
    """

    status_code = 409
    error_code = "CONFLICT_STATE"
    default_detail = "Conflitto di stato"
