"""
Parser per l'estratto conto CSV di Lekkerslaap.

Come esportare:
  Dashboard → Statements → Download CSV

Colonne: Date, Booking reference, Description, Amount, Balance
Data in formato YYYY-MM-DD.

È un partitario: ogni prenotazione compare su più righe con lo stesso
'Booking reference':
  - 'Guest payment'        → importo pagato dall'ospite (lordo, positivo)
  - 'Commission'           → commissione Lekkerslaap (negativo)
  - 'Payment handling fee' → costo incasso (negativo)
  - 'Payout'               → data del bonifico all'host
Righe senza riferimento ('Opening Balance', 'Closing Balance', payout
cumulativi) sono ignorate.

Netto = lordo − commissione − costo incasso (commissione e costo in valore
assoluto). Le prenotazioni con la stessa data di bonifico formano un lotto.
"""

from collections import OrderedDict
from typing import Dict, List

from riconcilia.config import PLATFORM_LEKKERSLAAP
from riconcilia.core.logging_config import get_logger
from riconcilia.core.models import OTAParseResult, ParsedOTABooking, ParsedOTAPayout
from riconcilia.parsers.ota_common import build_result, cell_text, empty_result, read_payout_csv, to_date, to_float

logger = get_logger(__name__)

BALANCE_ROWS = ("opening balance", "closing balance")


def _new_entry() -> Dict:
    return {"guest_payment": 0.0, "commission": 0.0, "handling_fee": 0.0, "payout_date": None, "row_date": None}


def parse_lekkerslaap_csv(csv_content: str) -> OTAParseResult:
    warnings: List[str] = []
    df = read_payout_csv(csv_content, warnings)
    if df is None:
        return empty_result(PLATFORM_LEKKERSLAAP)

    # Accumula per riferimento prenotazione (ordine di prima comparsa)
    by_ref: "OrderedDict[str, Dict]" = OrderedDict()
    for _, row in df.iterrows():
        ref = cell_text(row, "booking reference")
        desc = cell_text(row, "description").lower()
        if not ref or desc in BALANCE_ROWS:
            continue

        entry = by_ref.setdefault(ref, _new_entry())
        amount = to_float(cell_text(row, "amount"))
        row_date = to_date(cell_text(row, "date"))
        if entry["row_date"] is None and row_date is not None:
            entry["row_date"] = row_date

        if desc == "guest payment":
            entry["guest_payment"] += amount
        elif desc == "commission":
            entry["commission"] += abs(amount)
        elif desc == "payment handling fee":
            entry["handling_fee"] += abs(amount)
        elif desc == "payout":
            entry["payout_date"] = row_date

    # Un lotto per data di bonifico
    batches: "OrderedDict[str, list]" = OrderedDict()
    for ref, data in by_ref.items():
        key_date = data["payout_date"] or data["row_date"]
        batch_key = key_date.isoformat() if key_date else "unknown"
        net = round(data["guest_payment"] - data["commission"] - data["handling_fee"], 2)
        batches.setdefault(batch_key, []).append(ParsedOTABooking(
            external_ref=ref,
            gross_amount=round(data["guest_payment"], 2),
            commission=round(data["commission"], 2),
            service_fee=round(data["handling_fee"], 2),
            vat_amount=0.0,  # Lekkerslaap non separa l'IVA
            net_amount=net,
            status="Okay",
            payout_date=data["payout_date"],
            payout_batch_ref=batch_key,
        ))

    payouts = []
    for batch_key, bookings in batches.items():
        payouts.append(ParsedOTAPayout(
            batch_ref=f"LS-BATCH-{batch_key}",
            payout_date=to_date(batch_key) if batch_key != "unknown" else None,
            payout_amount=round(sum(b.net_amount for b in bookings), 2),
            bookings=bookings,
        ))

    if not by_ref:
        warnings.append("No bookings found in Lekkerslaap CSV")

    result = build_result(PLATFORM_LEKKERSLAAP, payouts, warnings)
    logger.info(
        "Payout Lekkerslaap letti",
        payouts=len(payouts),
        bookings=result.booking_count,
        total_net=result.total_net,
    )
    return result
