"""
Google Sheets come archivio (gspread).

Stessi fogli e colonne dell'archivio Excel (config.SHEET_LAYOUTS).
Autenticazione via Service Account (file JSON in config.SERVICE_ACCOUNT_FILE).

Setup una tantum:
  1. Crea Service Account su Google Cloud
  2. Condividi il Google Sheet con l'email del service account
  3. Imposta RICONCILIA_SPREADSHEET_ID e RICONCILIA_SERVICE_ACCOUNT

Atomicità: ogni lotto (payout + righe, oppure tutti i movimenti di un
estratto conto) viene scritto con UNA sola chiamata API.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

import gspread

from riconcilia.config import (
    SERVICE_ACCOUNT_FILE,
    SHEET_BOOKINGS,
    SHEET_LAYOUTS,
    SHEET_PAYOUT_ITEMS,
    SHEET_PAYOUTS,
    SHEET_TRANSACTIONS,
    SPREADSHEET_ID,
)
from riconcilia.core.logging_config import get_logger
from riconcilia.core.models import StoredBooking, StoredTransaction
from riconcilia.core.normalizer import parse_amount
from riconcilia.core.store import LedgerStore

logger = get_logger(__name__)


def _to_date(val) -> Optional[date]:
    """Le celle tornano come testo: prova i formati più comuni."""
    if val is None or str(val).strip() in ("", "-", "nan"):
        return None
    s = str(val).strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%m/%d/%Y"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def _cell(value):
    """Valore Python → valore cella."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return value


def _to_row(columns: List[str], record: Dict) -> list:
    return [_cell(record.get(c)) for c in columns]


class SheetsStore(LedgerStore):

    def __init__(
        self,
        spreadsheet=None,
        spreadsheet_id: Optional[str] = None,
        service_account_file: Optional[str] = None,
    ):
        self._sh = spreadsheet
        self.spreadsheet_id = spreadsheet_id or SPREADSHEET_ID
        self.service_account_file = service_account_file or SERVICE_ACCOUNT_FILE

    def _spreadsheet(self):
        if self._sh is None:
            gc = gspread.service_account(filename=self.service_account_file)
            self._sh = gc.open_by_key(self.spreadsheet_id)
        return self._sh

    def get_sheet(self, sheet_name: str):
        """Apre il foglio; se non esiste lo crea con la riga di intestazione."""
        sh = self._spreadsheet()
        try:
            return sh.worksheet(sheet_name)
        except gspread.WorksheetNotFound:
            columns = SHEET_LAYOUTS[sheet_name]
            ws = sh.add_worksheet(title=sheet_name, rows=1000, cols=len(columns))
            ws.append_row(columns)
            logger.info("Creato foglio mancante", sheet=sheet_name)
            return ws

    def _records(self, sheet_name: str) -> List[Dict]:
        all_values = self.get_sheet(sheet_name).get_all_values()
        if len(all_values) <= 1:
            return []
        headers = [h.strip() for h in all_values[0]]
        return [dict(zip(headers, row)) for row in all_values[1:] if any(str(v).strip() for v in row)]

    # ── Movimenti ───────────────────────────────────────────────────────────

    def find_transactions(self, property_id: str, date_from: date, date_to: date) -> List[StoredTransaction]:
        found = []
        for rec in self._records(SHEET_TRANSACTIONS):
            if rec.get("property_id", "").strip() != str(property_id):
                continue
            tx_date = _to_date(rec.get("date"))
            if tx_date is None or not (date_from <= tx_date <= date_to):
                continue
            found.append(StoredTransaction(
                id=rec.get("id", ""),
                property_id=rec.get("property_id", ""),
                date=tx_date,
                amount=parse_amount(rec.get("amount")) or 0.0,
                type=rec.get("type", ""),
                category=rec.get("category", ""),
                description=rec.get("description", ""),
            ))
        return found

    def exists_similar_transaction(self, property_id, date_from, date_to, amount_min, amount_max) -> bool:
        return any(
            amount_min <= abs(tx.amount) <= amount_max
            for tx in self.find_transactions(property_id, date_from, date_to)
        )

    def create_transactions(self, rows: List[Dict]) -> int:
        if not rows:
            return 0
        columns = SHEET_LAYOUTS[SHEET_TRANSACTIONS]
        values = [_to_row(columns, dict(r, id=r.get("id") or uuid.uuid4().hex)) for r in rows]
        # Batch append: una sola chiamata API
        self.get_sheet(SHEET_TRANSACTIONS).append_rows(values, value_input_option="USER_ENTERED")
        return len(values)

    # ── Prenotazioni e payout ───────────────────────────────────────────────

    def find_bookings(self, property_id: str) -> List[StoredBooking]:
        bookings = []
        for rec in self._records(SHEET_BOOKINGS):
            if rec.get("property_id", "").strip() != str(property_id):
                continue
            ref = rec.get("external_ref", "").strip()
            bookings.append(StoredBooking(
                id=rec.get("id", ""),
                property_id=rec.get("property_id", ""),
                external_ref=ref or None,
                guest_name=rec.get("guest_name", ""),
                check_in=_to_date(rec.get("check_in")),
                check_out=_to_date(rec.get("check_out")),
            ))
        return bookings

    def create_payout_with_items(self, payout_row: Dict, item_rows: List[Dict]) -> str:
        payout_id = payout_row.get("id") or uuid.uuid4().hex
        header = _to_row(SHEET_LAYOUTS[SHEET_PAYOUTS], dict(payout_row, id=payout_id))
        items = [
            _to_row(SHEET_LAYOUTS[SHEET_PAYOUT_ITEMS], dict(r, id=r.get("id") or uuid.uuid4().hex, payout_id=payout_id))
            for r in item_rows
        ]

        data = [{"range": self._next_range(SHEET_PAYOUTS, 1), "values": [header]}]
        if items:
            data.append({"range": self._next_range(SHEET_PAYOUT_ITEMS, len(items)), "values": items})

        # Testata + righe nella stessa richiesta batchUpdate
        self._spreadsheet().values_batch_update({"valueInputOption": "USER_ENTERED", "data": data})
        return payout_id

    def _next_range(self, sheet_name: str, n_rows: int) -> str:
        """
        Prima riga libera del foglio.
        values_batch_update non allarga la griglia (append_rows sì): se le
        righe non bastano si aggiungono prima della scrittura.
        """
        ws = self.get_sheet(sheet_name)
        next_row = len(ws.get_all_values()) + 1
        missing = next_row + n_rows - 1 - ws.row_count
        if missing > 0:
            ws.add_rows(missing)
            logger.info("Foglio allargato", sheet=sheet_name, rows_added=missing)
        return f"'{sheet_name}'!A{next_row}"
