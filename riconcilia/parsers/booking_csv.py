"""
Parser per il file CSV esportato da Booking.com (Payout statement).

Come esportare da Booking:
  Extranet → Finance → Statements → Export CSV

Colonne principali (nomi dall'intestazione, senza distinzione maiuscole):
  Type/Transaction type, Statement Descriptor, Reference number,
  Check-in date, Check-out date, Reservation status, Room nights,
  Property ID, Property name, Gross amount, Commission,
  Payments Service Fee, VAT, Transaction amount, Payout amount, Payout date

Tipi di righe:
  - '(Payout)'    → bonifico all'host: data, importo e struttura del lotto
  - 'Reservation' → singola prenotazione del lotto
  - altro         → ignorato

Il lotto è identificato dallo 'Statement Descriptor' (compare tale e quale
nella causale del bonifico in banca). Commissione, costo servizio e IVA
sono negativi nel file: qui vengono salvati in valore assoluto.
"""

from collections import OrderedDict
from typing import Dict, List

from riconcilia.config import PLATFORM_BOOKING_COM
from riconcilia.core.logging_config import get_logger
from riconcilia.core.models import OTAParseResult, ParsedOTABooking, ParsedOTAPayout
from riconcilia.parsers.ota_common import build_result, cell_text, empty_result, read_payout_csv, to_date, to_float, to_int

logger = get_logger(__name__)

PAYOUT_ROW = "(Payout)"
RESERVATION_ROW = "Reservation"


def _reservation(row, descriptor: str) -> ParsedOTABooking:
    return ParsedOTABooking(
        external_ref=cell_text(row, "reference number"),
        check_in=to_date(cell_text(row, "check-in date")),
        check_out=to_date(cell_text(row, "check-out date")),
        gross_amount=to_float(cell_text(row, "gross amount")),
        commission=abs(to_float(cell_text(row, "commission"))),
        service_fee=abs(to_float(cell_text(row, "payments service fee"))),
        vat_amount=abs(to_float(cell_text(row, "vat"))),
        net_amount=to_float(cell_text(row, "transaction amount")),
        status=cell_text(row, "reservation status") or "Okay",
        property_id=cell_text(row, "property id") or None,
        property_name=cell_text(row, "property name").replace('"', "") or None,
        room_nights=to_int(cell_text(row, "room nights")) or 1,
        payout_date=to_date(cell_text(row, "payout date")),
        payout_batch_ref=descriptor,
    )


def parse_booking_csv(csv_content: str) -> OTAParseResult:
    """
    Legge il CSV Booking.com e restituisce i lotti di payout.

    Gestisce:
    - prenotazioni senza numero di riferimento (saltate, con avviso)
    - prenotazioni il cui lotto non ha la riga '(Payout)': il lotto viene
      creato lo stesso (data dalla prima prenotazione, importo = somma netti)
    """
    warnings: List[str] = []
    df = read_payout_csv(csv_content, warnings)
    if df is None:
        return empty_result(PLATFORM_BOOKING_COM)

    batch_info: "OrderedDict[str, Dict]" = OrderedDict()
    reservations: "OrderedDict[str, List[ParsedOTABooking]]" = OrderedDict()

    for _, row in df.iterrows():
        row_type = cell_text(row, "type/transaction type")
        descriptor = cell_text(row, "statement descriptor")

        if row_type == PAYOUT_ROW:
            batch_info[descriptor] = {
                "payout_date": to_date(cell_text(row, "payout date")),
                "payout_amount": to_float(cell_text(row, "payout amount")),
                "property_id": cell_text(row, "property id") or None,
                "property_name": cell_text(row, "property name").replace('"', "") or None,
            }
        elif row_type == RESERVATION_ROW:
            booking = _reservation(row, descriptor)
            if not booking.external_ref:
                warnings.append("Skipping reservation row with no reference number")
                continue
            reservations.setdefault(descriptor, []).append(booking)

    payouts = []
    for descriptor, info in batch_info.items():
        payouts.append(ParsedOTAPayout(
            batch_ref=descriptor,
            payout_date=info["payout_date"],
            payout_amount=info["payout_amount"],
            amount_declared=True,
            property_id=info["property_id"],
            property_name=info["property_name"],
            bookings=reservations.get(descriptor, []),
        ))

    # Prenotazioni senza riga '(Payout)'
    for descriptor, bookings in reservations.items():
        if descriptor in batch_info:
            continue
        warnings.append(f'Reservations found for batch "{descriptor}" with no matching payout row')
        logger.warning("Lotto Booking.com senza riga payout", batch_ref=descriptor, bookings=len(bookings))
        payouts.append(ParsedOTAPayout(
            batch_ref=descriptor,
            payout_date=bookings[0].payout_date,
            payout_amount=round(sum(b.net_amount for b in bookings), 2),
            property_id=bookings[0].property_id,
            property_name=bookings[0].property_name,
            bookings=bookings,
        ))

    if not reservations:
        warnings.append("No reservations found in Booking.com CSV")

    result = build_result(PLATFORM_BOOKING_COM, payouts, warnings, fees_include_vat=True)
    logger.info(
        "Payout Booking.com letti",
        payouts=len(payouts),
        bookings=result.booking_count,
        total_net=result.total_net,
    )
    return result
