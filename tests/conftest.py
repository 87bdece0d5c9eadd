"""
Fixture comuni: archivio in memoria e file CSV di esempio.
"""
from typing import Dict, List, Optional

import pytest

from riconcilia.core.models import StoredBooking, StoredTransaction
from riconcilia.core.store import LedgerStore


class FakeStore(LedgerStore):
    """Archivio in memoria che conta le chiamate e può fallire su richiesta."""

    def __init__(
        self,
        transactions: Optional[List[StoredTransaction]] = None,
        bookings: Optional[List[StoredBooking]] = None,
        fail_on_payout_call: Optional[int] = None,
        fail_on_transactions: bool = False,
        fail_on_find_transactions: bool = False,
        fail_on_bookings_call: Optional[int] = None,
    ):
        self.transactions = list(transactions or [])
        self.bookings = list(bookings or [])
        self.created_transactions: List[Dict] = []
        self.payouts: List[Dict] = []
        self.payout_items: List[Dict] = []
        self.fail_on_payout_call = fail_on_payout_call
        self.fail_on_transactions = fail_on_transactions
        self.fail_on_find_transactions = fail_on_find_transactions
        self.fail_on_bookings_call = fail_on_bookings_call
        self.calls = {"exists": 0, "find_transactions": 0, "find_bookings": 0, "payout": 0}

    def exists_similar_transaction(self, property_id, date_from, date_to, amount_min, amount_max):
        self.calls["exists"] += 1
        if self.fail_on_find_transactions:
            raise RuntimeError("store unavailable")
        return any(
            tx.property_id == property_id
            and date_from <= tx.date <= date_to
            and amount_min <= abs(tx.amount) <= amount_max
            for tx in self.transactions
        )

    def find_transactions(self, property_id, date_from, date_to):
        self.calls["find_transactions"] += 1
        if self.fail_on_find_transactions:
            raise RuntimeError("store unavailable")
        return [
            tx for tx in self.transactions
            if tx.property_id == property_id and date_from <= tx.date <= date_to
        ]

    def create_transactions(self, rows):
        if self.fail_on_transactions:
            raise RuntimeError("store unavailable")
        self.created_transactions.extend(rows)
        return len(rows)

    def find_bookings(self, property_id):
        self.calls["find_bookings"] += 1
        if self.fail_on_bookings_call == self.calls["find_bookings"]:
            raise RuntimeError("store unavailable")
        return [b for b in self.bookings if b.property_id == property_id]

    def create_payout_with_items(self, payout_row, item_rows):
        self.calls["payout"] += 1
        if self.fail_on_payout_call == self.calls["payout"]:
            raise RuntimeError("disk full")
        payout_id = f"payout-{self.calls['payout']}"
        self.payouts.append(dict(payout_row, id=payout_id))
        self.payout_items.extend(dict(r, payout_id=payout_id) for r in item_rows)
        return payout_id


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def make_store():
    """Costruisce un FakeStore con movimenti/prenotazioni già presenti."""
    return FakeStore


@pytest.fixture
def workbook_path(tmp_path):
    return str(tmp_path / "archivio.xlsx")


# =============================================================================
# FILE DI ESEMPIO
# =============================================================================

ABSA_CSV = (
    "Date,Description,Debit,Credit,Balance\n"
    "10/01/2025,Guest deposit,,500.00,1500.00\n"
    "11/01/2025,Eskom prepaid,120.00,,1380.00\n"
)

LEKKERSLAAP_CSV = (
    "Date,Booking reference,Description,Amount,Balance\n"
    "2025-01-01,,Opening Balance,,0.00\n"
    "2025-01-05,LS-5MJZMM,Guest payment,1000.00,1000.00\n"
    "2025-01-05,LS-5MJZMM,Commission,-172.50,827.50\n"
    "2025-01-05,LS-5MJZMM,Payment handling fee,-20.70,806.80\n"
    "2025-01-10,LS-5MJZMM,Payout,-806.80,0.00\n"
    "2025-01-06,LS-ABC123,Guest payment,500.00,500.00\n"
    "2025-01-06,LS-ABC123,Commission,-86.25,413.75\n"
    "2025-01-06,LS-ABC123,Payment handling fee,-10.35,403.40\n"
    "2025-01-31,,Closing Balance,,403.40\n"
)

BOOKING_COM_CSV = (
    "Type/Transaction type,Statement Descriptor,Reference number,Check-in date,Check-out date,"
    "Reservation status,Room nights,Property ID,Property name,Gross amount,Commission,"
    "Payments Service Fee,VAT,Transaction amount,Payout amount,Payout date\n"
    "(Payout),WKCTZRMZ,-,-,-,-,-,123,Golf Lodge,-,-,-,-,-,1615.00,2025-02-03\n"
    "Reservation,WKCTZRMZ,4001,2025-01-20,2025-01-22,Okay,2,123,Golf Lodge,"
    "2000.00,-300.00,-42.00,-43.00,1615.00,-,2025-02-03\n"
    "Reservation,ORPHAN1,4002,2025-01-25,2025-01-27,Okay,2,123,Golf Lodge,"
    "1000.00,-150.00,-21.00,-21.50,807.50,-,2025-02-10\n"
    "Reservation,ORPHAN1,,2025-01-25,2025-01-27,Okay,2,123,Golf Lodge,"
    "100.00,-15.00,0,0,85.00,-,2025-02-10\n"
)

AIRBNB_CSV = (
    "Date,Type,Confirmation Code,Start date,End date,Nights,Guest,Listing,Amount,"
    "Service fee,Gross earnings,Occupancy taxes\n"
    "02/15/2025,Reservation,HMYKHMDZM2,02/14/2025,02/16/2025,2,Jane Doe,Golf Villa,965.50,34.50,1000.00,\n"
    "02/15/2025,Cancellation Fee,,,,,,Golf Villa,-150.00,,,\n"
    "02/15/2025,Payout,,,,,,,815.50,,,\n"
)


@pytest.fixture
def absa_csv():
    return ABSA_CSV


@pytest.fixture
def lekkerslaap_csv():
    return LEKKERSLAAP_CSV


@pytest.fixture
def booking_com_csv():
    return BOOKING_COM_CSV


@pytest.fixture
def airbnb_csv():
    return AIRBNB_CSV
