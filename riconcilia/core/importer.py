"""
Punto di ingresso dell'import: file → parser → archivio.

Due percorsi:
  - estratto conto bancario: parse, controllo duplicati, salvataggio dei
    movimenti non duplicati (i duplicati solo se richiesto esplicitamente)
  - payout OTA: parse, abbinamento prenotazioni, salvataggio per lotto

Le righe scartate non sono errori; un errore di lettura o scrittura
sull'archivio diventa un esito con success=False e il messaggio.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from riconcilia.core.deduplicator import DuplicateDetector
from riconcilia.core.exceptions import PersistenceError, StoreReadError
from riconcilia.core.logging_config import clear_import_id, get_logger, set_import_id
from riconcilia.core.models import BankImportResult, Category, OTAParseResult, PersistResult
from riconcilia.core.persister import BatchPersister
from riconcilia.core.store import LedgerStore
from riconcilia.parsers.bank_statement import parse_bank_statement
from riconcilia.parsers.ota import parse_ota_payouts

logger = get_logger(__name__)

NO_PAYOUT_DATA = "No payout data found. Check the file format."


@dataclass
class BankImportOutcome:
    success: bool
    message: str = ""
    saved: int = 0
    duplicates: int = 0
    unrecognised: int = 0
    warnings: List[str] = field(default_factory=list)
    result: Optional[BankImportResult] = None


@dataclass
class OTAImportOutcome:
    success: bool
    message: str = ""
    payouts_created: int = 0
    items_created: int = 0
    items_matched: int = 0
    warnings: List[str] = field(default_factory=list)
    result: Optional[OTAParseResult] = None


def bank_warnings(result: BankImportResult, include_duplicates: bool = False) -> List[str]:
    """Avvisi non bloccanti: righe scartate e duplicati non importati."""
    warnings = []
    if result.potential_duplicates and not include_duplicates:
        warnings.append(f"{len(result.potential_duplicates)} potential duplicate(s) skipped")
    if result.unrecognised:
        warnings.append(f"{len(result.unrecognised)} line(s) not recognised")
    return warnings


def preview_bank_statement(csv_content: str, bank_format: str, property_id: str, organisation_id: str) -> BankImportResult:
    """Anteprima: nessuna lettura né scrittura in archivio."""
    return parse_bank_statement(csv_content, bank_format, property_id, organisation_id, skip_duplicate_check=True)


def import_bank_statement(
    store: LedgerStore,
    csv_content: str,
    bank_format: str,
    property_id: str,
    organisation_id: str,
    include_duplicates: bool = False,
    category_overrides: Optional[Dict[int, Category]] = None,
) -> BankImportOutcome:
    """
    Importa un estratto conto.

    category_overrides: {indice movimento: categoria} scelte a mano
    dall'utente in anteprima (indice in result.transactions).
    """
    set_import_id()
    try:
        try:
            result = parse_bank_statement(
                csv_content, bank_format, property_id, organisation_id,
                detector=DuplicateDetector(store),
            )
        except StoreReadError as e:
            return BankImportOutcome(success=False, message=str(e))

        to_save = list(result.transactions)
        for idx, category in (category_overrides or {}).items():
            if 0 <= idx < len(to_save):
                to_save[idx] = dataclasses.replace(to_save[idx], category=Category(category))
        if include_duplicates:
            to_save.extend(result.potential_duplicates)

        outcome = BankImportOutcome(
            success=True,
            duplicates=len(result.potential_duplicates),
            unrecognised=len(result.unrecognised),
            warnings=bank_warnings(result, include_duplicates),
            result=result,
        )
        try:
            outcome.saved = BatchPersister(store).persist_transactions(
                to_save, property_id, organisation_id, bank_format,
            )
        except PersistenceError as e:
            outcome.success = False
            outcome.message = str(e)
            return outcome

        outcome.message = f"{outcome.saved} transactions imported"
        return outcome
    finally:
        clear_import_id()


def import_ota_payout_csv(
    store: LedgerStore,
    platform: str,
    csv_content: str,
    property_id: str,
    organisation_id: str,
    filename: str,
) -> OTAImportOutcome:
    """Importa un file di payout OTA. Piattaforma sconosciuta → UnsupportedFormatError."""
    set_import_id()
    try:
        result = parse_ota_payouts(platform, csv_content)
        if result.booking_count == 0 and not result.payouts:
            logger.warning("Nessun payout nel file", platform=platform, filename=filename)
            return OTAImportOutcome(success=False, message=NO_PAYOUT_DATA, warnings=result.warnings, result=result)

        try:
            saved: PersistResult = BatchPersister(store).save_ota_result(result, property_id, organisation_id, filename)
        except PersistenceError as e:
            return OTAImportOutcome(
                success=False,
                message=str(e),
                payouts_created=e.committed.payouts_created,
                items_created=e.committed.items_created,
                items_matched=e.committed.items_matched,
                warnings=e.warnings,
                result=result,
            )

        return OTAImportOutcome(
            success=True,
            message=f"{saved.payouts_created} payouts imported",
            payouts_created=saved.payouts_created,
            items_created=saved.items_created,
            items_matched=saved.items_matched,
            warnings=saved.warnings,
            result=result,
        )
    finally:
        clear_import_id()
