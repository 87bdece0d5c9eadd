"""
Controllo duplicati: evita di importare due volte lo stesso movimento.

Un movimento è un "probabile duplicato" se in archivio esiste già un
movimento della stessa proprietà con:
  - data entro ±1 giorno
  - importo entro ±1 unità di valuta
È un'euristica: due movimenti diversi ma simili vengono segnalati lo stesso.
Il duplicato non viene scartato, finisce in un elenco separato.
"""

from datetime import date, timedelta
from typing import Iterable, List, Optional

from riconcilia.config import DUPLICATE_AMOUNT_TOLERANCE, DUPLICATE_DAY_TOLERANCE
from riconcilia.core.exceptions import StoreReadError
from riconcilia.core.logging_config import get_logger
from riconcilia.core.models import StoredTransaction
from riconcilia.core.store import LedgerStore

logger = get_logger(__name__)


class DuplicateDetector:

    def __init__(
        self,
        store: LedgerStore,
        day_tolerance: int = DUPLICATE_DAY_TOLERANCE,
        amount_tolerance: float = DUPLICATE_AMOUNT_TOLERANCE,
    ):
        self.store = store
        self.day_tolerance = day_tolerance
        self.amount_tolerance = amount_tolerance
        self._cache_property: Optional[str] = None
        self._cache_from: Optional[date] = None
        self._cache_to: Optional[date] = None
        self._cache: List[StoredTransaction] = []

    def prefetch(self, property_id: str, dates: Iterable[date]) -> int:
        """
        Carica in una sola query tutti i movimenti che possono servire per
        le date indicate. I controlli successivi sulla stessa proprietà e
        dentro l'intervallo non interrogano più l'archivio.
        """
        dates = [d for d in dates if d is not None]
        if not dates:
            return 0
        delta = timedelta(days=self.day_tolerance)
        self._cache_property = property_id
        self._cache_from = min(dates) - delta
        self._cache_to = max(dates) + delta
        try:
            self._cache = self.store.find_transactions(property_id, self._cache_from, self._cache_to)
        except Exception as e:
            self.reset()
            logger.error("Lettura movimenti esistenti fallita", property_id=property_id, exc_info=True)
            raise StoreReadError("find_transactions", e) from e
        logger.debug("Movimenti esistenti caricati", property_id=property_id, count=len(self._cache))
        return len(self._cache)

    def _covered(self, property_id: str, low: date, high: date) -> bool:
        return (
            self._cache_property == property_id
            and self._cache_from is not None
            and self._cache_from <= low
            and high <= self._cache_to
        )

    def is_duplicate(self, amount: float, on: date, property_id: str) -> bool:
        abs_amount = abs(amount)
        low = on - timedelta(days=self.day_tolerance)
        high = on + timedelta(days=self.day_tolerance)
        amount_min = abs_amount - self.amount_tolerance
        amount_max = abs_amount + self.amount_tolerance

        if self._covered(property_id, low, high):
            return any(
                low <= tx.date <= high and amount_min <= abs(tx.amount) <= amount_max
                for tx in self._cache
            )
        try:
            return self.store.exists_similar_transaction(property_id, low, high, amount_min, amount_max)
        except Exception as e:
            logger.error("Controllo duplicato fallito", property_id=property_id, date=on.isoformat(), exc_info=True)
            raise StoreReadError("exists_similar_transaction", e) from e

    def reset(self):
        self._cache_property = None
        self._cache_from = None
        self._cache_to = None
        self._cache = []
