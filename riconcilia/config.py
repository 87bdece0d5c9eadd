"""
Configurazione centralizzata - modifica qui percorsi, soglie e regole.
"""

import os

# Percorso del file Excel usato come archivio (WorkbookStore)
WORKBOOK_PATH = os.environ.get("RICONCILIA_WORKBOOK", "riconcilia.xlsx")

# Google Sheets (SheetsStore)
SPREADSHEET_ID = os.environ.get("RICONCILIA_SPREADSHEET_ID", "")
SERVICE_ACCOUNT_FILE = os.environ.get("RICONCILIA_SERVICE_ACCOUNT", "service_account.json")

# Nomi dei fogli
SHEET_TRANSACTIONS = "transazioni"
SHEET_BOOKINGS = "prenotazioni"
SHEET_PAYOUTS = "payout"
SHEET_PAYOUT_ITEMS = "payout_righe"

# Colonne dei fogli (l'ordine è quello scritto nel file)
TRANSACTION_COLUMNS = [
    "id", "organisation_id", "property_id", "date", "type", "category",
    "confidence", "description", "amount", "source", "status", "reference", "raw",
]

# Le prenotazioni vengono scritte da altre parti del gestionale: qui solo lettura
BOOKING_COLUMNS = [
    "id", "property_id", "external_ref", "guest_name", "check_in", "check_out",
]

PAYOUT_COLUMNS = [
    "id", "organisation_id", "property_id", "platform", "batch_ref",
    "period_start", "period_end", "payout_date", "gross_amount",
    "total_commission", "net_amount", "status", "import_filename",
]

PAYOUT_ITEM_COLUMNS = [
    "id", "payout_id", "booking_id", "external_ref", "guest_name",
    "check_in", "check_out", "gross_amount", "commission", "net_amount",
    "status", "is_matched",
]

SHEET_LAYOUTS = {
    SHEET_TRANSACTIONS: TRANSACTION_COLUMNS,
    SHEET_BOOKINGS: BOOKING_COLUMNS,
    SHEET_PAYOUTS: PAYOUT_COLUMNS,
    SHEET_PAYOUT_ITEMS: PAYOUT_ITEM_COLUMNS,
}

# Formati estratto conto supportati
BANK_FNB = "FNB"
BANK_ABSA = "ABSA"
BANK_NEDBANK = "NEDBANK"
BANK_STANDARD_BANK = "STANDARD_BANK"
BANK_CAPITEC = "CAPITEC"

# Piattaforme OTA supportate
PLATFORM_LEKKERSLAAP = "LEKKERSLAAP"
PLATFORM_BOOKING_COM = "BOOKING_COM"
PLATFORM_AIRBNB = "AIRBNB"

# Controllo duplicati: ±1 giorno, ±1 unità di valuta (costanti empiriche, non ritoccare)
DUPLICATE_DAY_TOLERANCE = 1
DUPLICATE_AMOUNT_TOLERANCE = 1.0

# Abbinamento payout → prenotazione: finestra sul check-in
MATCH_DAY_WINDOW = 1

# Spese ricorrenti
RECURRING_LOOKBACK_DAYS = 90
RECURRING_MAX_VARIANCE = 0.3
RECURRING_MIN_CONSECUTIVE_MONTHS = 2
RECURRING_KEY_LENGTH = 40

# Regole di categorizzazione: (parole chiave, categoria, confidenza).
# L'ORDINE CONTA: vince la prima regola con una parola chiave contenuta nel testo
# (es. "cleaning" prima di "booking", "commission" prima di "room").
CATEGORY_RULES = [
    (["cleanpro", "cleaning", "laundry", "cleaner"], "CLEANING", "HIGH"),
    (["city power", "eskom", "electricity", "water", "municipal", "utilities"], "UTILITIES", "HIGH"),
    (["food", "groceries", "woolworths", "pick n pay", "checkers", "breakfast", "restaurant"], "FB", "HIGH"),
    (["salary", "wages", "payroll", "staff"], "SALARIES", "HIGH"),
    (["repair", "maintenance", "plumber", "electrician", "handyman", "fixit"], "MAINTENANCE", "HIGH"),
    (["linen", "linenplus", "towels", "bedding"], "SUPPLIES", "HIGH"),
    (["booking.com", "airbnb", "lekkerslaap", "commission", "ota"], "OTA_COMMISSION", "HIGH"),
    (["marketing", "advertising", "google ads", "facebook ads"], "MARKETING", "HIGH"),
    (["accommodation", "room", "booking"], "ACCOMMODATION", "MEDIUM"),
]
