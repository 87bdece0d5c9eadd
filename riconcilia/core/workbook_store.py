"""
Archivio su file Excel (openpyxl).

Fogli (vedi config.SHEET_LAYOUTS), riga 1 = intestazione:
  - transazioni   → movimenti bancari importati
  - prenotazioni  → prenotazioni del gestionale (sola lettura)
  - payout        → testate payout OTA
  - payout_righe  → righe dei payout (una per prenotazione)

Strategia di scrittura (un lotto = una chiamata):
  1. Backup automatico prima della prima scrittura
  2. Le righe del lotto vengono aggiunte al workbook in memoria
  3. Salvataggio su file temporaneo nella stessa cartella + os.replace
     → il file su disco ha o tutto il lotto o niente
  4. Se qualcosa va storto il workbook in memoria viene scartato e
     ricaricato da disco alla prossima operazione
"""

import os
import shutil
import tempfile
import uuid
from datetime import date, datetime
from typing import Callable, Dict, Iterator, List, Optional

from openpyxl import Workbook, load_workbook

from riconcilia.config import (
    SHEET_BOOKINGS,
    SHEET_LAYOUTS,
    SHEET_PAYOUT_ITEMS,
    SHEET_PAYOUTS,
    SHEET_TRANSACTIONS,
    WORKBOOK_PATH,
)
from riconcilia.core.logging_config import get_logger
from riconcilia.core.models import StoredBooking, StoredTransaction
from riconcilia.core.store import LedgerStore

logger = get_logger(__name__)


def _backup(excel_path: str) -> str:
    """Crea backup del file Excel prima di modificarlo."""
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    base = excel_path[:-5] if excel_path.endswith(".xlsx") else excel_path
    backup_path = f"{base}_backup_{ts}.xlsx"
    shutil.copy2(excel_path, backup_path)
    return backup_path


def _as_date(value) -> Optional[date]:
    """openpyxl restituisce datetime anche per le date: normalizza a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def _as_float(value) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _find_last_data_row(ws) -> int:
    """
    Ultima riga con un valore nella colonna A (id).
    max_row può contare righe vuote ma formattate: si scorre all'indietro.
    """
    for row_num in range(ws.max_row, 0, -1):
        cell = ws.cell(row=row_num, column=1)
        if cell.value is not None and str(cell.value).strip() != "":
            return row_num
    return 1


def _write_rows(ws, columns: List[str], rows: List[Dict]):
    current_row = _find_last_data_row(ws) + 1
    for row in rows:
        for col_idx, key in enumerate(columns, start=1):
            value = row.get(key)
            if value is not None:
                ws.cell(row=current_row, column=col_idx).value = value
        current_row += 1


class WorkbookStore(LedgerStore):

    def __init__(self, excel_path: Optional[str] = None, backup: bool = True):
        self.excel_path = excel_path or WORKBOOK_PATH
        self.backup = backup
        self._wb = None
        self._backed_up = False

    # ── Caricamento ─────────────────────────────────────────────────────────

    def _create_empty(self):
        wb = Workbook()
        wb.remove(wb.active)
        for sheet_name, columns in SHEET_LAYOUTS.items():
            ws = wb.create_sheet(sheet_name)
            ws.append(columns)
        folder = os.path.dirname(os.path.abspath(self.excel_path))
        os.makedirs(folder, exist_ok=True)
        wb.save(self.excel_path)
        logger.info("Creato nuovo archivio Excel", path=self.excel_path)

    def _workbook(self):
        if self._wb is None:
            if not os.path.exists(self.excel_path):
                self._create_empty()
            self._wb = load_workbook(self.excel_path)
            for sheet_name, columns in SHEET_LAYOUTS.items():
                if sheet_name not in self._wb.sheetnames:
                    ws = self._wb.create_sheet(sheet_name)
                    ws.append(columns)
        return self._wb

    def _iter_records(self, sheet_name: str) -> Iterator[Dict]:
        ws = self._workbook()[sheet_name]
        headers = None
        for row in ws.iter_rows(values_only=True):
            if headers is None:
                headers = [str(h).strip() if h is not None else "" for h in row]
                continue
            if not any(v is not None for v in row):
                continue
            yield dict(zip(headers, row))

    # ── Scrittura atomica ───────────────────────────────────────────────────

    def _save(self):
        folder = os.path.dirname(os.path.abspath(self.excel_path))
        fd, tmp_path = tempfile.mkstemp(suffix=".xlsx", dir=folder)
        os.close(fd)
        try:
            self._wb.save(tmp_path)
            os.replace(tmp_path, self.excel_path)
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def _write_batch(self, apply: Callable):
        wb = self._workbook()
        if self.backup and not self._backed_up and os.path.exists(self.excel_path):
            _backup(self.excel_path)
            self._backed_up = True
        try:
            apply(wb)
            self._save()
        except Exception:
            # Il lotto non è su disco: butta via le modifiche in memoria
            self._wb = None
            raise

    # ── Movimenti ───────────────────────────────────────────────────────────

    def find_transactions(self, property_id: str, date_from: date, date_to: date) -> List[StoredTransaction]:
        found = []
        for rec in self._iter_records(SHEET_TRANSACTIONS):
            if str(rec.get("property_id") or "") != str(property_id):
                continue
            tx_date = _as_date(rec.get("date"))
            if tx_date is None or not (date_from <= tx_date <= date_to):
                continue
            found.append(StoredTransaction(
                id=str(rec.get("id")),
                property_id=str(rec.get("property_id")),
                date=tx_date,
                amount=_as_float(rec.get("amount")),
                type=str(rec.get("type") or ""),
                category=str(rec.get("category") or ""),
                description=str(rec.get("description") or ""),
            ))
        return found

    def exists_similar_transaction(self, property_id, date_from, date_to, amount_min, amount_max) -> bool:
        for tx in self.find_transactions(property_id, date_from, date_to):
            if amount_min <= abs(tx.amount) <= amount_max:
                return True
        return False

    def create_transactions(self, rows: List[Dict]) -> int:
        if not rows:
            return 0
        rows = [dict(r, id=r.get("id") or uuid.uuid4().hex) for r in rows]
        columns = SHEET_LAYOUTS[SHEET_TRANSACTIONS]
        self._write_batch(lambda wb: _write_rows(wb[SHEET_TRANSACTIONS], columns, rows))
        return len(rows)

    # ── Prenotazioni e payout ───────────────────────────────────────────────

    def find_bookings(self, property_id: str) -> List[StoredBooking]:
        bookings = []
        for rec in self._iter_records(SHEET_BOOKINGS):
            if str(rec.get("property_id") or "") != str(property_id):
                continue
            ref = rec.get("external_ref")
            bookings.append(StoredBooking(
                id=str(rec.get("id")),
                property_id=str(rec.get("property_id")),
                external_ref=str(ref).strip() if ref not in (None, "") else None,
                guest_name=str(rec.get("guest_name") or ""),
                check_in=_as_date(rec.get("check_in")),
                check_out=_as_date(rec.get("check_out")),
            ))
        return bookings

    def create_payout_with_items(self, payout_row: Dict, item_rows: List[Dict]) -> str:
        payout_id = payout_row.get("id") or uuid.uuid4().hex
        header = dict(payout_row, id=payout_id)
        items = [dict(r, id=r.get("id") or uuid.uuid4().hex, payout_id=payout_id) for r in item_rows]

        def apply(wb):
            _write_rows(wb[SHEET_PAYOUTS], SHEET_LAYOUTS[SHEET_PAYOUTS], [header])
            _write_rows(wb[SHEET_PAYOUT_ITEMS], SHEET_LAYOUTS[SHEET_PAYOUT_ITEMS], items)

        self._write_batch(apply)
        return payout_id
