"""
Eccezioni del motore di import.

Le righe non valide NON sono errori (finiscono in 'unrecognised' o vengono
saltate); qui ci sono solo i casi che interrompono un import.
"""

from typing import List, Optional

from riconcilia.core.models import PersistResult


class RiconciliaError(Exception):
    """Base per tutti gli errori del motore."""


class UnsupportedFormatError(RiconciliaError):
    """Piattaforma OTA o formato file non gestito."""

    def __init__(self, selector: str, supported: List[str]):
        self.selector = selector
        self.supported = list(supported)
        super().__init__(
            f"Formato non supportato: '{selector}'. Disponibili: {', '.join(self.supported)}"
        )


class PersistenceError(RiconciliaError):
    """
    Scrittura di un lotto fallita: il lotto non è stato salvato.

    `committed` contiene i conteggi dei lotti precedenti, già salvati
    (non c'è transazione tra lotti diversi).
    """

    def __init__(
        self,
        message: str,
        batch_ref: Optional[str] = None,
        committed: Optional[PersistResult] = None,
        warnings: Optional[List[str]] = None,
    ):
        self.batch_ref = batch_ref
        self.committed = committed or PersistResult()
        self.warnings = list(warnings or [])
        super().__init__(message)


class StoreReadError(RiconciliaError):
    """Lettura dall'archivio fallita (controllo duplicati, abbinamento prenotazioni)."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Failed to read from the ledger ({operation}): {cause}")
