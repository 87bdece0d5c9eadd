"""
Contratto dell'archivio usato dal motore di import.

Il motore non sa dove finiscono i dati: legge e scrive solo attraverso
questi metodi. Implementazioni: WorkbookStore (file Excel) e SheetsStore
(Google Sheets).

Regola: create_transactions e create_payout_with_items sono atomici,
o vengono salvate tutte le righe del lotto o nessuna.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, List

from riconcilia.core.models import StoredBooking, StoredTransaction


class LedgerStore(ABC):

    @abstractmethod
    def exists_similar_transaction(
        self,
        property_id: str,
        date_from: date,
        date_to: date,
        amount_min: float,
        amount_max: float,
    ) -> bool:
        """True se esiste un movimento della proprietà nelle due finestre (estremi inclusi)."""

    @abstractmethod
    def find_transactions(self, property_id: str, date_from: date, date_to: date) -> List[StoredTransaction]:
        """Movimenti della proprietà con data in [date_from, date_to]."""

    @abstractmethod
    def create_transactions(self, rows: List[Dict]) -> int:
        """Salva le righe (chiavi = config.TRANSACTION_COLUMNS). Restituisce quante."""

    @abstractmethod
    def find_bookings(self, property_id: str) -> List[StoredBooking]:
        """Prenotazioni della proprietà, nell'ordine dell'archivio."""

    @abstractmethod
    def create_payout_with_items(self, payout_row: Dict, item_rows: List[Dict]) -> str:
        """Salva testata payout + righe in un'unica scrittura. Restituisce l'id del payout."""
