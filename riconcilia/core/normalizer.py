"""
Primitive comuni a tutti i parser: split CSV, importi, date.

Nessuna di queste funzioni solleva eccezioni su input sporco: restituiscono
None, e il chiamante tratta la riga come "non dati" (intestazioni, saldi,
totali, piè di pagina).
"""

import csv
import re
from datetime import date, datetime
from typing import List, Optional

BOM = "\ufeff"

# Token di formato data (stile estratto conto) → formato strptime
DATE_FORMATS = {
    "dd MMM yyyy": "%d %b %Y",
    "dd/MM/yyyy": "%d/%m/%Y",
    "yyyy/MM/dd": "%Y/%m/%d",
    "yyyy-MM-dd": "%Y-%m-%d",
    "MM/dd/yyyy": "%m/%d/%Y",
}

_LINE_BREAK = re.compile(r"\r?\n")
_NOT_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"^-?(\d+\.?\d*|\.\d+)")


def strip_bom(text: str) -> str:
    return text[1:] if text.startswith(BOM) else text


def split_lines(text: str) -> List[str]:
    """Divide il contenuto in righe, scarta quelle vuote e l'eventuale BOM iniziale."""
    return [line for line in _LINE_BREAK.split(strip_bom(text or "")) if line.strip()]


def split_csv_line(line: str) -> List[str]:
    """
    Divide una riga CSV in campi.
    Le virgole dentro i doppi apici fanno parte del campo.
    """
    try:
        fields = next(csv.reader([line]))
    except (csv.Error, StopIteration):
        return []
    return [f.strip() for f in fields]


def parse_amount(raw) -> Optional[float]:
    """
    Converte un importo testuale in float.
    Tiene solo cifre, segno meno e punto decimale ('R 1,250.00' → 1250.0).
    Campo vuoto o solo '-' → None (diverso da zero).
    """
    if raw is None:
        return None
    cleaned = _NOT_NUMERIC.sub("", str(raw))
    m = _LEADING_NUMBER.match(cleaned)
    if not m:
        return None
    return float(m.group(0))


def parse_date(raw, token: str) -> Optional[date]:
    """Data nel formato indicato dal token (es. 'dd/MM/yyyy'). Se non valida → None."""
    if raw is None:
        return None
    fmt = DATE_FORMATS.get(token, token)
    try:
        return datetime.strptime(str(raw).strip(), fmt).date()
    except ValueError:
        return None
