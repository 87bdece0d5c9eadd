"""
Funzioni comuni ai parser dei payout OTA (pandas).
"""

from typing import List, Optional

import pandas as pd

from riconcilia.core.logging_config import get_logger
from riconcilia.core.models import OTAParseResult, ParsedOTAPayout
from riconcilia.core.normalizer import parse_amount, parse_date, split_csv_line, split_lines, strip_bom

logger = get_logger(__name__)

EMPTY_FILE_WARNING = "Empty or invalid CSV file"


def read_payout_csv(csv_content: str, warnings: Optional[List[str]] = None) -> Optional[pd.DataFrame]:
    """
    Legge il CSV come tabella di stringhe.
    Colonne in minuscolo senza BOM, valori senza spazi ai lati.
    File vuoto o illeggibile → None.

    Ogni riga ha la larghezza dell'intestazione: i campi mancanti diventano
    '' e quelli in più vengono ignorati (la riga resta). Se i campi ignorati
    non sono vuoti si aggiunge un avviso a `warnings`.
    """
    lines = split_lines(csv_content)
    if not lines:
        return None
    header = [strip_bom(h).strip().lower() for h in split_csv_line(lines[0])]
    if not any(header):
        return None

    width = len(header)
    rows = []
    overflowing = 0
    for line in lines[1:]:
        fields = split_csv_line(line)
        if any(fields[width:]):
            overflowing += 1
        rows.append((fields + [""] * width)[:width])

    if overflowing:
        logger.warning("Righe con più campi dell'intestazione", rows=overflowing, columns=width)
        if warnings is not None:
            warnings.append(f"{overflowing} row(s) had more fields than the header: extra fields ignored")

    return pd.DataFrame(rows, columns=header, dtype=str)


def cell_text(row, column: str) -> str:
    val = row.get(column, "")
    if val is None:
        return ""
    return str(val).strip()


def to_float(val) -> float:
    """Importo della piattaforma: '-' e valori mancanti → 0.0."""
    amount = parse_amount(val)
    return amount if amount is not None else 0.0


def to_int(val) -> Optional[int]:
    amount = parse_amount(val)
    return int(amount) if amount is not None else None


def to_date(val, token: str = "yyyy-MM-dd"):
    val = (val or "").strip()
    if not val or val == "-":
        return None
    return parse_date(val, token)


def empty_result(platform: str, warning: str = EMPTY_FILE_WARNING) -> OTAParseResult:
    return OTAParseResult(platform=platform, warnings=[warning])


def build_result(
    platform: str,
    payouts: List[ParsedOTAPayout],
    warnings: List[str],
    booking_count: Optional[int] = None,
    fees_include_vat: bool = False,
) -> OTAParseResult:
    """
    Totali e periodo calcolati dalle righe.
    Periodo = data payout minima/massima dei lotti (None se non ce ne sono).
    """
    bookings = [b for p in payouts for b in p.bookings]
    dates = [p.payout_date for p in payouts if p.payout_date is not None]
    service_fees = sum(b.service_fee + (b.vat_amount if fees_include_vat else 0.0) for b in bookings)

    return OTAParseResult(
        platform=platform,
        payouts=payouts,
        period_start=min(dates) if dates else None,
        period_end=max(dates) if dates else None,
        total_gross=round(sum(b.gross_amount for b in bookings), 2),
        total_commission=round(sum(b.commission for b in bookings), 2),
        total_service_fees=round(service_fees, 2),
        total_net=round(sum(b.net_amount for b in bookings), 2),
        booking_count=len(bookings) if booking_count is None else booking_count,
        warnings=warnings,
    )
