"""
Modelli dati: righe estratto conto, payout OTA e loro righe, risultati di import.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class FlowType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Confidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Category(str, Enum):
    ACCOMMODATION = "ACCOMMODATION"
    FB = "FB"
    CLEANING = "CLEANING"
    UTILITIES = "UTILITIES"
    SALARIES = "SALARIES"
    MAINTENANCE = "MAINTENANCE"
    SUPPLIES = "SUPPLIES"
    OTA_COMMISSION = "OTA_COMMISSION"
    MARKETING = "MARKETING"
    OTHER = "OTHER"


@dataclass(frozen=True)
class NormalizedRow:
    """Riga dati restituita da un parser di estratto conto (importo con segno)."""
    date: date
    description: str
    amount: float


@dataclass(frozen=True)
class ParsedTransaction:
    """Un movimento bancario pronto per essere salvato. Non viene mai modificato."""
    date: date
    description: str
    amount: float           # sempre >= 0
    type: FlowType          # dal segno dell'importo originale
    category: Category
    confidence: Confidence
    is_duplicate: bool
    raw: str = ""           # riga CSV di origine (audit)
    rule: str = "default"   # regola di categorizzazione applicata


@dataclass
class BankImportResult:
    transactions: List[ParsedTransaction] = field(default_factory=list)
    potential_duplicates: List[ParsedTransaction] = field(default_factory=list)
    unrecognised: List[str] = field(default_factory=list)


@dataclass
class ParsedOTABooking:
    """Una prenotazione dentro un payout OTA."""
    external_ref: str                       # codice prenotazione della piattaforma
    gross_amount: float = 0.0
    commission: float = 0.0                 # sempre positivo
    service_fee: float = 0.0                # costo pagamento / servizio (positivo)
    vat_amount: float = 0.0                 # IVA trattenuta (positivo)
    net_amount: float = 0.0                 # importo netto all'host (autorevole)
    status: str = "Okay"                    # Okay | Canceled | Partially canceled
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    property_id: Optional[str] = None       # ID struttura lato piattaforma
    property_name: Optional[str] = None
    guest_name: Optional[str] = None
    room_nights: Optional[int] = None
    payout_date: Optional[date] = None
    payout_batch_ref: str = ""


@dataclass
class ParsedOTAPayout:
    """Un bonifico della piattaforma che raggruppa una o più prenotazioni."""
    batch_ref: str
    payout_date: Optional[date]
    payout_amount: float
    amount_declared: bool = False           # True se il totale è dichiarato dalla piattaforma
    property_id: Optional[str] = None
    property_name: Optional[str] = None
    bookings: List[ParsedOTABooking] = field(default_factory=list)

    @property
    def total_gross(self) -> float:
        return round(sum(b.gross_amount for b in self.bookings), 2)

    @property
    def total_commission(self) -> float:
        return round(sum(b.commission + b.service_fee for b in self.bookings), 2)

    @property
    def total_net(self) -> float:
        return round(sum(b.net_amount for b in self.bookings), 2)


@dataclass
class OTAParseResult:
    platform: str
    payouts: List[ParsedOTAPayout] = field(default_factory=list)
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    total_gross: float = 0.0
    total_commission: float = 0.0
    total_service_fees: float = 0.0
    total_net: float = 0.0
    booking_count: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def bookings(self) -> List[ParsedOTABooking]:
        return [b for p in self.payouts for b in p.bookings]


@dataclass
class PersistResult:
    payouts_created: int = 0
    items_created: int = 0
    items_matched: int = 0
    warnings: List[str] = field(default_factory=list)

    def add(self, other: "PersistResult") -> None:
        self.payouts_created += other.payouts_created
        self.items_created += other.items_created
        self.items_matched += other.items_matched


@dataclass
class StoredTransaction:
    """Movimento già presente in archivio (lettura)."""
    id: str
    property_id: str
    date: date
    amount: float
    type: str = FlowType.EXPENSE.value
    category: str = Category.OTHER.value
    description: str = ""


@dataclass
class StoredBooking:
    """Prenotazione esistente nel gestionale (sola lettura)."""
    id: str
    property_id: str
    external_ref: Optional[str]
    guest_name: str = ""
    check_in: Optional[date] = None
    check_out: Optional[date] = None
