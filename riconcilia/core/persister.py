"""
Salvataggio in archivio dei risultati di import.

- Payout OTA: un lotto (testata + righe) = una scrittura atomica.
  Non c'è transazione tra lotti diversi: se il terzo lotto fallisce, i
  primi due restano salvati e l'errore riporta i conteggi già fatti.
- Movimenti bancari: tutto l'estratto conto in una sola scrittura.
"""

from datetime import date
from typing import Dict, List, Optional

from riconcilia.core.exceptions import PersistenceError
from riconcilia.core.logging_config import get_logger
from riconcilia.core.matcher import BookingMatcher
from riconcilia.core.models import OTAParseResult, ParsedOTAPayout, ParsedTransaction, PersistResult
from riconcilia.core.store import LedgerStore

logger = get_logger(__name__)

PAYOUT_STATUS_IMPORTED = "IMPORTED"
TRANSACTION_SOURCE = "BANK_IMPORT"
TRANSACTION_STATUS = "CLEARED"
NO_GUEST = "–"


def payout_net_amount(payout: ParsedOTAPayout) -> float:
    """Totale dichiarato dalla piattaforma se presente e diverso da zero, altrimenti somma dei netti."""
    if payout.amount_declared and payout.payout_amount:
        return payout.payout_amount
    return payout.total_net


def import_reference(bank_format: str, on: Optional[date] = None) -> str:
    return f"{bank_format.upper()}-IMPORT-{(on or date.today()).isoformat()}"


class BatchPersister:

    def __init__(self, store: LedgerStore, matcher: Optional[BookingMatcher] = None):
        self.store = store
        self.matcher = matcher or BookingMatcher(store)

    # ── Payout OTA ──────────────────────────────────────────────────────────

    def persist_payout(self, payout: ParsedOTAPayout, match_map: Dict[str, str], context: Dict) -> PersistResult:
        """
        Scrive testata + righe di un payout con una sola chiamata all'archivio.

        context: platform, property_id, organisation_id, period_start,
        period_end, import_filename.
        """
        payout_row = {
            "organisation_id": context.get("organisation_id"),
            "property_id": context.get("property_id"),
            "platform": context.get("platform"),
            "batch_ref": payout.batch_ref,
            "period_start": context.get("period_start"),
            "period_end": context.get("period_end"),
            "payout_date": payout.payout_date,
            "gross_amount": payout.total_gross,
            "total_commission": payout.total_commission,
            "net_amount": round(payout_net_amount(payout), 2),
            "status": PAYOUT_STATUS_IMPORTED,
            "import_filename": context.get("import_filename"),
        }

        item_rows = []
        matched = 0
        for item in payout.bookings:
            booking_id = match_map.get(item.external_ref)
            if booking_id:
                matched += 1
            item_rows.append({
                "booking_id": booking_id,
                "external_ref": item.external_ref,
                "guest_name": item.guest_name or NO_GUEST,
                "check_in": item.check_in or payout.payout_date,
                "check_out": item.check_out or payout.payout_date,
                "gross_amount": item.gross_amount,
                "commission": round(item.commission + item.service_fee, 2),
                "net_amount": item.net_amount,
                "status": item.status,
                "is_matched": booking_id is not None,
            })

        self.store.create_payout_with_items(payout_row, item_rows)
        return PersistResult(payouts_created=1, items_created=len(item_rows), items_matched=matched)

    def save_ota_result(
        self,
        result: OTAParseResult,
        property_id: str,
        organisation_id: str,
        import_filename: str,
    ) -> PersistResult:
        total = PersistResult(warnings=list(result.warnings))
        context = {
            "platform": result.platform,
            "property_id": property_id,
            "organisation_id": organisation_id,
            "period_start": result.period_start,
            "period_end": result.period_end,
            "import_filename": import_filename,
        }

        for payout in result.payouts:
            try:
                match_map = self.matcher.match(payout.bookings, property_id)
                total.add(self.persist_payout(payout, match_map, context))
            except Exception as e:
                logger.error(
                    "Salvataggio lotto payout fallito",
                    batch_ref=payout.batch_ref,
                    payouts_created=total.payouts_created,
                    exc_info=True,
                )
                raise PersistenceError(
                    f"Failed to save payout batch '{payout.batch_ref}': {e}",
                    batch_ref=payout.batch_ref,
                    committed=total,
                    warnings=total.warnings,
                ) from e

        logger.info(
            "Import OTA completato",
            platform=result.platform,
            payouts_created=total.payouts_created,
            items_created=total.items_created,
            items_matched=total.items_matched,
        )
        return total

    # ── Movimenti bancari ───────────────────────────────────────────────────

    def persist_transactions(
        self,
        transactions: List[ParsedTransaction],
        property_id: str,
        organisation_id: str,
        bank_format: str,
        on: Optional[date] = None,
    ) -> int:
        if not transactions:
            return 0
        reference = import_reference(bank_format, on)
        rows = [
            {
                "organisation_id": organisation_id,
                "property_id": property_id,
                "date": tx.date,
                "type": tx.type.value,
                "category": tx.category.value,
                "confidence": tx.confidence.value,
                "description": tx.description,
                "amount": tx.amount,
                "source": TRANSACTION_SOURCE,
                "status": TRANSACTION_STATUS,
                "reference": reference,
                "raw": tx.raw,
            }
            for tx in transactions
        ]
        try:
            created = self.store.create_transactions(rows)
        except Exception as e:
            logger.error("Salvataggio movimenti fallito", reference=reference, rows=len(rows), exc_info=True)
            raise PersistenceError(f"Failed to save bank transactions: {e}", batch_ref=reference) from e

        logger.info("Movimenti salvati", reference=reference, created=created)
        return created
