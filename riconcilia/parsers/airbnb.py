"""
Parser per il CSV esportato da Airbnb.

Come esportare da Airbnb:
  Earnings → Transaction history (o Upcoming payouts) → Download CSV

Colonne usate: Date (MM/DD/YYYY, data del bonifico), Type,
Confirmation Code, Start date, End date, Nights, Guest, Listing, Amount,
Service fee, Gross earnings, Occupancy taxes.

Tipi di righe:
  - 'Reservation'      → prenotazione: Amount = netto già al netto del fee
  - 'Cancellation Fee' → penale di cancellazione (Amount negativo)
  - 'Payout'           → riepilogo del bonifico (ignorato, le righe
                         dello stesso giorno formano già il lotto)
  - altro              → rettifica, Amount usato così com'è

Tutte le righe con la stessa 'Date' formano un lotto.
"""

from collections import OrderedDict
from typing import List

from riconcilia.config import PLATFORM_AIRBNB
from riconcilia.core.logging_config import get_logger
from riconcilia.core.models import OTAParseResult, ParsedOTABooking, ParsedOTAPayout
from riconcilia.parsers.ota_common import build_result, cell_text, empty_result, read_payout_csv, to_date, to_float, to_int

logger = get_logger(__name__)

DATE_TOKEN = "MM/dd/yyyy"


def parse_airbnb_csv(csv_content: str) -> OTAParseResult:
    warnings: List[str] = []
    df = read_payout_csv(csv_content, warnings)
    if df is None:
        return empty_result(PLATFORM_AIRBNB)

    batches: "OrderedDict[str, List[ParsedOTABooking]]" = OrderedDict()
    reservation_count = 0
    missing_codes = 0

    for _, row in df.iterrows():
        row_type = cell_text(row, "type")
        if row_type.lower() == "payout":
            continue

        date_str = cell_text(row, "date")
        batch_key = date_str or "unknown"

        net = to_float(cell_text(row, "amount"))
        service_fee = to_float(cell_text(row, "service fee"))
        gross = to_float(cell_text(row, "gross earnings"))
        if not gross and row_type == "Reservation":
            gross = abs(net) + service_fee

        code = cell_text(row, "confirmation code")
        if not code:
            # Riferimento stabile: stesso file → stessi riferimenti
            missing_codes += 1
            code = f"AIR-{date_str}-{missing_codes}"

        if row_type == "Reservation":
            reservation_count += 1

        batches.setdefault(batch_key, []).append(ParsedOTABooking(
            external_ref=code,
            check_in=to_date(cell_text(row, "start date"), DATE_TOKEN),
            check_out=to_date(cell_text(row, "end date"), DATE_TOKEN),
            gross_amount=round(gross, 2),
            commission=service_fee,     # il "service fee" lato host è la commissione
            service_fee=0.0,
            vat_amount=to_float(cell_text(row, "occupancy taxes")),
            net_amount=net,
            status="Canceled" if row_type == "Cancellation Fee" else "Okay",
            property_name=cell_text(row, "listing") or None,
            guest_name=cell_text(row, "guest") or None,
            room_nights=to_int(cell_text(row, "nights")),
            payout_date=to_date(date_str, DATE_TOKEN),
            payout_batch_ref=batch_key,
        ))

    payouts = []
    for batch_key, bookings in batches.items():
        payouts.append(ParsedOTAPayout(
            batch_ref=f"AIR-BATCH-{batch_key.replace('/', '')}",
            payout_date=bookings[0].payout_date,
            payout_amount=round(sum(b.net_amount for b in bookings), 2),
            property_name=bookings[0].property_name,
            bookings=bookings,
        ))

    total_rows = sum(len(b) for b in batches.values())
    if total_rows == 0:
        warnings.append("No rows found in Airbnb CSV")
    elif reservation_count == 0:
        warnings.append("No 'Reservation' rows found: file may contain only cancellations/adjustments")

    result = build_result(PLATFORM_AIRBNB, payouts, warnings, booking_count=reservation_count)
    logger.info(
        "Payout Airbnb letti",
        payouts=len(payouts),
        rows=total_rows,
        bookings=reservation_count,
        total_net=result.total_net,
    )
    return result
