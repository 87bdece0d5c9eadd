"""
Scelta del parser payout in base alla piattaforma.
"""

from riconcilia.config import PLATFORM_AIRBNB, PLATFORM_BOOKING_COM, PLATFORM_LEKKERSLAAP
from riconcilia.core.exceptions import UnsupportedFormatError
from riconcilia.core.models import OTAParseResult
from riconcilia.parsers.airbnb import parse_airbnb_csv
from riconcilia.parsers.booking_csv import parse_booking_csv
from riconcilia.parsers.lekkerslaap import parse_lekkerslaap_csv

OTA_PARSERS = {
    PLATFORM_LEKKERSLAAP: parse_lekkerslaap_csv,
    PLATFORM_BOOKING_COM: parse_booking_csv,
    PLATFORM_AIRBNB: parse_airbnb_csv,
}


def parse_ota_payouts(platform: str, csv_content: str) -> OTAParseResult:
    parser = OTA_PARSERS.get((platform or "").strip().upper())
    if parser is None:
        raise UnsupportedFormatError(platform, list(OTA_PARSERS))
    return parser(csv_content)
