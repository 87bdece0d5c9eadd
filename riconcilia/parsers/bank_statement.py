"""
Parser per gli estratti conto CSV delle banche sudafricane.

Ogni banca ha il suo tracciato e la sua convenzione di segno:

  FNB            Date, Description, Amount, Balance
                 data 'dd MMM yyyy', importo con segno
  ABSA           Date, Description, Debit, Credit, Balance
                 data 'dd/MM/yyyy', dare/avere senza segno
  NEDBANK        Date, Description, Debit, Credit, Balance
                 data 'yyyy/MM/dd', dare/avere senza segno
  STANDARD_BANK  HIST, Date, -, Amount, Description, Reference
                 solo righe 'HIST' (le altre sono saldi/intestazioni),
                 data 'dd/MM/yyyy', importo con segno,
                 riferimento aggiunto alla descrizione se non è solo numerico
  CAPITEC        Nr, Date, Description, Reference, Amount, Balance
                 data 'dd/MM/yyyy', importo con segno,
                 riferimento aggiunto alla descrizione se presente

Ogni parser di riga restituisce NormalizedRow (importo con segno) oppure
None se la riga non è una riga dati. La prima riga del file è l'intestazione.
"""

from typing import Callable, Dict, List, Optional

from riconcilia.config import BANK_ABSA, BANK_CAPITEC, BANK_FNB, BANK_NEDBANK, BANK_STANDARD_BANK
from riconcilia.core.categoriser import categorise
from riconcilia.core.deduplicator import DuplicateDetector
from riconcilia.core.logging_config import get_logger
from riconcilia.core.models import BankImportResult, FlowType, NormalizedRow, ParsedTransaction
from riconcilia.core.normalizer import parse_amount, parse_date, split_csv_line, split_lines

logger = get_logger(__name__)

STANDARD_BANK_ROW_MARKER = "HIST"


def _field(fields: List[str], idx: int) -> str:
    return fields[idx].strip() if len(fields) > idx and fields[idx] else ""


def _from_debit_credit(fields: List[str], date_token: str) -> Optional[NormalizedRow]:
    """Tracciato dare/avere: avere → positivo, dare → negativo."""
    if len(fields) < 4:
        return None
    on = parse_date(_field(fields, 0), date_token)
    if on is None:
        return None
    description = _field(fields, 1)
    debit = parse_amount(_field(fields, 2))
    credit = parse_amount(_field(fields, 3))
    if credit is not None and credit != 0:
        return NormalizedRow(on, description, abs(credit))
    if debit is not None and debit != 0:
        return NormalizedRow(on, description, -abs(debit))
    return None


def parse_fnb_row(fields: List[str]) -> Optional[NormalizedRow]:
    if len(fields) < 3:
        return None
    on = parse_date(_field(fields, 0), "dd MMM yyyy")
    if on is None:
        return None
    amount = parse_amount(_field(fields, 2))
    if amount is None:
        return None
    return NormalizedRow(on, _field(fields, 1), amount)


def parse_absa_row(fields: List[str]) -> Optional[NormalizedRow]:
    return _from_debit_credit(fields, "dd/MM/yyyy")


def parse_nedbank_row(fields: List[str]) -> Optional[NormalizedRow]:
    return _from_debit_credit(fields, "yyyy/MM/dd")


def parse_standard_bank_row(fields: List[str]) -> Optional[NormalizedRow]:
    if _field(fields, 0) != STANDARD_BANK_ROW_MARKER or len(fields) < 5:
        return None
    on = parse_date(_field(fields, 1), "dd/MM/yyyy")
    if on is None:
        return None
    amount = parse_amount(_field(fields, 3))
    if amount is None:
        return None
    description = _field(fields, 4)
    reference = _field(fields, 5)
    if reference and not reference.isdigit():
        description = f"{description} | {reference}"
    return NormalizedRow(on, description, amount)


def parse_capitec_row(fields: List[str]) -> Optional[NormalizedRow]:
    if len(fields) < 5:
        return None
    on = parse_date(_field(fields, 1), "dd/MM/yyyy")
    if on is None:
        return None
    amount = parse_amount(_field(fields, 4))
    if amount is None:
        return None
    description = _field(fields, 2)
    reference = _field(fields, 3)
    if reference:
        description = f"{description} | {reference}"
    return NormalizedRow(on, description, amount)


BANK_PARSERS: Dict[str, Callable[[List[str]], Optional[NormalizedRow]]] = {
    BANK_FNB: parse_fnb_row,
    BANK_ABSA: parse_absa_row,
    BANK_NEDBANK: parse_nedbank_row,
    BANK_STANDARD_BANK: parse_standard_bank_row,
    BANK_CAPITEC: parse_capitec_row,
}


def to_transaction(row: NormalizedRow, raw: str, is_duplicate: bool = False) -> ParsedTransaction:
    """Segno → entrata/uscita, importo sempre positivo, categoria dalle regole."""
    cat = categorise(row.description)
    return ParsedTransaction(
        date=row.date,
        description=row.description,
        amount=abs(row.amount),
        type=FlowType.INCOME if row.amount >= 0 else FlowType.EXPENSE,
        category=cat.category,
        confidence=cat.confidence,
        is_duplicate=is_duplicate,
        raw=raw,
        rule=cat.rule,
    )


def parse_bank_statement(
    csv_content: str,
    bank_format: str,
    property_id: str,
    organisation_id: str,
    detector: Optional[DuplicateDetector] = None,
    skip_duplicate_check: bool = False,
) -> BankImportResult:
    """
    Legge un estratto conto CSV e restituisce movimenti, probabili duplicati
    e righe non riconosciute.

    - formato sconosciuto → tutte le righe del file in 'unrecognised'
    - skip_duplicate_check=True (anteprima) → nessuna query all'archivio
    """
    lines = split_lines(csv_content)
    result = BankImportResult()

    row_parser = BANK_PARSERS.get((bank_format or "").strip().upper())
    if row_parser is None:
        result.unrecognised.extend(lines)
        logger.warning("Formato estratto conto sconosciuto", bank_format=bank_format, lines=len(lines))
        return result

    # Salta intestazione (riga 0)
    parsed = []
    for line in lines[1:]:
        row = row_parser(split_csv_line(line))
        if row is None:
            result.unrecognised.append(line)
        else:
            parsed.append((row, line))

    check_duplicates = detector is not None and not skip_duplicate_check
    if check_duplicates:
        detector.prefetch(property_id, [row.date for row, _ in parsed])

    for row, line in parsed:
        is_duplicate = check_duplicates and detector.is_duplicate(abs(row.amount), row.date, property_id)
        tx = to_transaction(row, line, is_duplicate)
        if is_duplicate:
            result.potential_duplicates.append(tx)
        else:
            result.transactions.append(tx)

    logger.info(
        "Estratto conto letto",
        bank_format=bank_format,
        organisation_id=organisation_id,
        property_id=property_id,
        valid=len(result.transactions),
        duplicates=len(result.potential_duplicates),
        unrecognised=len(result.unrecognised),
    )
    return result
