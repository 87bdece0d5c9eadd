"""
Test dei parser payout OTA: Lekkerslaap, Booking.com, Airbnb.
"""
from datetime import date

import pytest

from riconcilia.core.exceptions import UnsupportedFormatError
from riconcilia.parsers.airbnb import parse_airbnb_csv
from riconcilia.parsers.booking_csv import parse_booking_csv
from riconcilia.parsers.lekkerslaap import parse_lekkerslaap_csv
from riconcilia.parsers.ota import parse_ota_payouts
from riconcilia.parsers.ota_common import read_payout_csv


class TestReadPayoutCsv:

    def test_columns_lower_case_without_bom(self):
        df = read_payout_csv("\ufeffDate, Type \n 01/02/2025 ,Reservation\n")
        assert list(df.columns) == ["date", "type"]
        assert df.iloc[0]["date"] == "01/02/2025"

    def test_empty_content(self):
        assert read_payout_csv("") is None
        assert read_payout_csv("   \n") is None

    def test_long_and_short_rows_kept(self):
        warnings = []
        df = read_payout_csv("a,b,c\n1,2,3,\n4,5\n", warnings)
        assert len(df) == 2
        assert df.iloc[0].tolist() == ["1", "2", "3"]
        assert df.iloc[1].tolist() == ["4", "5", ""]
        # virgola finale: campo in più vuoto, nessun avviso
        assert warnings == []

    def test_extra_values_warned(self):
        warnings = []
        df = read_payout_csv("a,b\n1,2,surplus\n", warnings)
        assert df.iloc[0].tolist() == ["1", "2"]
        assert warnings == ["1 row(s) had more fields than the header: extra fields ignored"]


# =============================================================================
# LEKKERSLAAP
# =============================================================================

class TestLekkerslaap:

    def test_net_is_gross_minus_commission_minus_fee(self, lekkerslaap_csv):
        result = parse_lekkerslaap_csv(lekkerslaap_csv)
        for b in result.bookings:
            assert b.net_amount == pytest.approx(b.gross_amount - b.commission - b.service_fee)

        first = result.bookings[0]
        assert first.external_ref == "LS-5MJZMM"
        assert first.gross_amount == 1000.0
        assert first.commission == 172.5
        assert first.service_fee == pytest.approx(20.7)
        assert first.net_amount == pytest.approx(806.8)

    def test_batches_by_payout_date_then_row_date(self, lekkerslaap_csv):
        result = parse_lekkerslaap_csv(lekkerslaap_csv)
        assert [p.batch_ref for p in result.payouts] == ["LS-BATCH-2025-01-10", "LS-BATCH-2025-01-06"]
        assert result.payouts[0].payout_date == date(2025, 1, 10)
        assert result.payouts[1].payout_date == date(2025, 1, 6)

    def test_totals_and_period(self, lekkerslaap_csv):
        result = parse_lekkerslaap_csv(lekkerslaap_csv)
        assert result.platform == "LEKKERSLAAP"
        assert result.booking_count == 2
        assert result.total_gross == 1500.0
        assert result.total_commission == pytest.approx(258.75)
        assert result.total_service_fees == pytest.approx(31.05)
        assert result.total_net == pytest.approx(1210.2)
        assert result.period_start == date(2025, 1, 6)
        assert result.period_end == date(2025, 1, 10)
        assert result.warnings == []

    def test_balance_rows_skipped(self, lekkerslaap_csv):
        refs = [b.external_ref for b in parse_lekkerslaap_csv(lekkerslaap_csv).bookings]
        assert refs == ["LS-5MJZMM", "LS-ABC123"]

    def test_header_only(self):
        result = parse_lekkerslaap_csv("Date,Booking reference,Description,Amount,Balance\n")
        assert result.payouts == []
        assert result.period_start is None
        assert result.warnings == ["No bookings found in Lekkerslaap CSV"]

    def test_empty_file(self):
        result = parse_lekkerslaap_csv("")
        assert result.payouts == []
        assert result.warnings == ["Empty or invalid CSV file"]


# =============================================================================
# BOOKING.COM
# =============================================================================

class TestBookingCom:

    def test_declared_payout_batch(self, booking_com_csv):
        result = parse_booking_csv(booking_com_csv)
        batch = result.payouts[0]

        assert batch.batch_ref == "WKCTZRMZ"
        assert batch.amount_declared is True
        assert batch.payout_amount == 1615.0
        assert batch.payout_date == date(2025, 2, 3)
        assert batch.property_id == "123"
        assert batch.property_name == "Golf Lodge"

        reservation = batch.bookings[0]
        assert reservation.external_ref == "4001"
        assert reservation.commission == 300.0
        assert reservation.service_fee == 42.0
        assert reservation.vat_amount == 43.0
        assert reservation.net_amount == 1615.0
        assert reservation.check_in == date(2025, 1, 20)
        assert reservation.room_nights == 2
        assert reservation.status == "Okay"

    def test_orphan_descriptor_still_produces_a_batch(self, booking_com_csv):
        result = parse_booking_csv(booking_com_csv)
        orphan = result.payouts[1]

        assert orphan.batch_ref == "ORPHAN1"
        assert orphan.amount_declared is False
        assert orphan.payout_date == date(2025, 2, 10)
        assert orphan.payout_amount == 807.5
        assert 'Reservations found for batch "ORPHAN1" with no matching payout row' in result.warnings

    def test_each_descriptor_resolves_to_one_batch(self, booking_com_csv):
        refs = [p.batch_ref for p in parse_booking_csv(booking_com_csv).payouts]
        assert sorted(refs) == sorted(set(refs))

    def test_reservation_without_reference_skipped(self, booking_com_csv):
        result = parse_booking_csv(booking_com_csv)
        assert "Skipping reservation row with no reference number" in result.warnings
        assert result.booking_count == 2

    def test_service_fees_include_vat(self, booking_com_csv):
        result = parse_booking_csv(booking_com_csv)
        assert result.total_service_fees == pytest.approx(42 + 43 + 21 + 21.5)
        assert result.total_commission == pytest.approx(450.0)
        assert result.period_start == date(2025, 2, 3)
        assert result.period_end == date(2025, 2, 10)

    def test_reservation_with_trailing_comma(self):
        content = (
            "Type/Transaction type,Statement Descriptor,Reference number,Gross amount,"
            "Transaction amount,Payout amount,Payout date\n"
            "(Payout),D1,-,-,-,100.00,2025-02-03\n"
            "Reservation,D1,4001,120.00,100.00,-,2025-02-03,\n"
        )
        result = parse_booking_csv(content)
        assert result.booking_count == 1
        assert result.payouts[0].bookings[0].external_ref == "4001"
        assert result.payouts[0].bookings[0].net_amount == 100.0
        assert result.warnings == []

    def test_no_reservations(self):
        content = "Type/Transaction type,Statement Descriptor,Payout amount,Payout date\n(Payout),ABC,100.00,2025-02-03\n"
        result = parse_booking_csv(content)
        assert len(result.payouts) == 1
        assert "No reservations found in Booking.com CSV" in result.warnings


# =============================================================================
# AIRBNB
# =============================================================================

class TestAirbnb:

    def test_end_to_end_reservation_and_cancellation(self, airbnb_csv):
        result = parse_airbnb_csv(airbnb_csv)

        assert len(result.payouts) == 1
        assert result.booking_count == 1
        batch = result.payouts[0]
        assert batch.batch_ref == "AIR-BATCH-02152025"
        assert batch.payout_date == date(2025, 2, 15)
        assert batch.total_net == pytest.approx(815.50)
        assert len(batch.bookings) == 2

    def test_reservation_fields(self, airbnb_csv):
        reservation = parse_airbnb_csv(airbnb_csv).bookings[0]
        assert reservation.external_ref == "HMYKHMDZM2"
        assert reservation.gross_amount == 1000.0
        assert reservation.commission == 34.5
        assert reservation.service_fee == 0.0
        assert reservation.net_amount == 965.5
        assert reservation.guest_name == "Jane Doe"
        assert reservation.check_in == date(2025, 2, 14)
        assert reservation.check_out == date(2025, 2, 16)
        assert reservation.room_nights == 2

    def test_cancellation_fee(self, airbnb_csv):
        cancellation = parse_airbnb_csv(airbnb_csv).bookings[1]
        assert cancellation.status == "Canceled"
        assert cancellation.net_amount == -150.0
        assert cancellation.gross_amount == 0.0

    def test_missing_code_gets_stable_reference(self, airbnb_csv):
        first = parse_airbnb_csv(airbnb_csv).bookings[1].external_ref
        second = parse_airbnb_csv(airbnb_csv).bookings[1].external_ref
        assert first == second == "AIR-02/15/2025-1"

    def test_gross_derived_when_missing(self):
        content = (
            "Date,Type,Confirmation Code,Amount,Service fee,Gross earnings\n"
            "03/01/2025,Reservation,HM1,965.50,34.50,\n"
        )
        assert parse_airbnb_csv(content).bookings[0].gross_amount == pytest.approx(1000.0)

    def test_only_cancellations_warns(self):
        content = "Date,Type,Confirmation Code,Amount\n03/01/2025,Cancellation Fee,HM2,-100.00\n"
        result = parse_airbnb_csv(content)
        assert result.booking_count == 0
        assert len(result.warnings) == 1
        assert "No 'Reservation' rows found" in result.warnings[0]

    def test_no_rows(self):
        result = parse_airbnb_csv("Date,Type,Confirmation Code,Amount\n")
        assert result.warnings == ["No rows found in Airbnb CSV"]


class TestDispatch:

    def test_selector_is_case_insensitive(self, airbnb_csv):
        assert parse_ota_payouts("airbnb", airbnb_csv).platform == "AIRBNB"

    def test_unknown_platform(self):
        with pytest.raises(UnsupportedFormatError) as exc:
            parse_ota_payouts("EXPEDIA", "")
        assert exc.value.selector == "EXPEDIA"
        assert "BOOKING_COM" in exc.value.supported
