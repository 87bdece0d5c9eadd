"""
Abbinamento righe payout OTA → prenotazioni del gestionale.

Due strategie in cascata, vince la prima che trova qualcosa:
  1. codice prenotazione identico (senza distinzione maiuscole/minuscole)
  2. check-in entro ±1 giorno (solo se la riga ha il check-in)
Con più prenotazioni nella finestra si prende la prima trovata: è un limite
noto, le righe dubbie si sistemano a mano.
"""

from datetime import timedelta
from typing import Dict, List, Optional

from riconcilia.config import MATCH_DAY_WINDOW
from riconcilia.core.exceptions import StoreReadError
from riconcilia.core.logging_config import get_logger
from riconcilia.core.models import ParsedOTABooking, StoredBooking
from riconcilia.core.store import LedgerStore

logger = get_logger(__name__)


def match_by_reference(item: ParsedOTABooking, bookings: List[StoredBooking]) -> Optional[StoredBooking]:
    ref = (item.external_ref or "").strip().lower()
    if not ref:
        return None
    for b in bookings:
        if b.external_ref and b.external_ref.strip().lower() == ref:
            return b
    return None


def match_by_check_in(item: ParsedOTABooking, bookings: List[StoredBooking], day_window: int) -> Optional[StoredBooking]:
    if item.check_in is None:
        return None
    window = timedelta(days=day_window)
    for b in bookings:
        if b.check_in is not None and abs(b.check_in - item.check_in) <= window:
            return b
    return None


class BookingMatcher:

    def __init__(self, store: LedgerStore, day_window: int = MATCH_DAY_WINDOW):
        self.store = store
        self.day_window = day_window

    def match(self, items: List[ParsedOTABooking], property_id: str) -> Dict[str, str]:
        """Restituisce {external_ref: booking_id} per le sole righe abbinate."""
        match_map: Dict[str, str] = {}
        if not items:
            return match_map

        try:
            bookings = self.store.find_bookings(property_id)
        except Exception as e:
            logger.error("Lettura prenotazioni fallita", property_id=property_id, exc_info=True)
            raise StoreReadError("find_bookings", e) from e

        for item in items:
            found = match_by_reference(item, bookings)
            if found:
                match_map[item.external_ref] = found.id
                continue

            found = match_by_check_in(item, bookings, self.day_window)
            if found:
                match_map[item.external_ref] = found.id
                logger.info(
                    "Abbinamento OTA per data check-in",
                    external_ref=item.external_ref,
                    booking_id=found.id,
                )

        logger.debug("Abbinamento completato", items=len(items), matched=len(match_map))
        return match_map
