"""
Comprehensive tests for the scan parser.

Tests cover:
- Check digit calculation and GTIN validation
- GS1 date decoding (day 00, invalid months and days)
- Format detection
- Parenthesized GS1 decoding
- Plain GTIN-14 / EAN-13 / EAN-8 / legacy 12-digit codes
- Parenthesized and positional equivalence
- Empty and garbage input
"""

import pytest
from datetime import date

from pharmascan import (
    BarcodeFormat,
    ErrorCode,
    ParseOptions,
    detect_format,
    parse_barcode,
    parse_simple,
)
from pharmascan.core.ai_table import AI_TABLE, AIKind, DEFAULT_TRIE
from pharmascan.validators import (
    calculate_check_digit_mod10,
    decode_yymmdd,
    sanitize_text,
    validate_check_digit,
    validate_date,
    validate_gtin,
)

ROUND_TRIP = "(01)00012345678905(17)260630(10)BATCH1(21)SER99"


def codes(result):
    return [e.code for e in result.errors]


class TestCheckDigit:
    """Tests for check digit calculation and validation."""

    def test_mod10_gtin14(self):
        """Test Mod10 check digit for GTIN-14."""
        # GTIN without check digit
        assert calculate_check_digit_mod10("0628509600084") == 2
        assert calculate_check_digit_mod10("0061180000221") == 9

    def test_mod10_ean13(self):
        """Check digit of a 13-digit retail code."""
        assert calculate_check_digit_mod10("629110743935") == 8

    def test_mod10_rejects_non_digits(self):
        with pytest.raises(ValueError):
            calculate_check_digit_mod10("12A4")

    def test_validate_gtin_valid(self):
        """Test validation of valid GTIN."""
        result = validate_check_digit("06285096000842")
        assert result.valid
        assert result.meta['check_digit_valid']

    def test_validate_gtin_invalid(self):
        """Test validation of invalid GTIN."""
        result = validate_check_digit("06285096000841")  # Wrong check digit
        assert not result.valid
        assert 'check digit mismatch' in result.errors[0].lower()

    def test_validate_gtin_length(self):
        assert validate_gtin("00012345678905").valid
        assert not validate_gtin("0001234567890").valid
        assert not validate_gtin("0001234567890²").valid


class TestDateValidation:
    """Tests for GS1 YYMMDD decoding."""

    def test_yymmdd_valid(self):
        """Test valid YYMMDD date."""
        result = validate_date("290131")
        assert result.valid
        assert result.meta['date'] == date(2029, 1, 31)
        assert result.meta['iso_date'] == "2029-01-31"

    def test_yymmdd_invalid_month(self):
        """Test invalid month in YYMMDD."""
        result = validate_date("291301")
        assert not result.valid
        assert 'month' in result.errors[0].lower()

    def test_yymmdd_invalid_day(self):
        """Test invalid day for month."""
        result = validate_date("290231")  # Feb 31 doesn't exist
        assert not result.valid

    def test_day_zero_is_last_day_of_month(self):
        """260600 decodes to 30 June 2026, never an error."""
        result = validate_date("260600")
        assert result.valid
        assert result.meta['day_unspecified']
        assert result.meta['date'] == date(2026, 6, 30)

    def test_day_zero_leap_february(self):
        assert decode_yymmdd("280200") == date(2028, 2, 29)
        assert decode_yymmdd("290200") == date(2029, 2, 28)

    def test_century_is_always_2000s(self):
        """No pivot: 99 means 2099."""
        assert decode_yymmdd("991231") == date(2099, 12, 31)
        assert decode_yymmdd("000101") == date(2000, 1, 1)

    def test_not_six_digits(self):
        assert decode_yymmdd("26063") is None
        assert decode_yymmdd("2606AB") is None


class TestSanitizeText:
    """Batch and serial cleaning."""

    def test_non_printable_removed(self):
        assert sanitize_text("AB\x1dC\x00D") == "ABCD"

    def test_trimmed_then_capped(self):
        assert sanitize_text("  " + "X" * 25 + "  ") == "X" * 20

    def test_non_ascii_removed(self):
        assert sanitize_text("LOTé€1") == "LOT1"


class TestAITable:
    """The shared AI descriptor table."""

    def test_fixed_and_variable(self):
        assert AI_TABLE["01"].kind is AIKind.FIXED
        assert AI_TABLE["01"].length == 14
        assert AI_TABLE["10"].kind is AIKind.VARIABLE
        assert AI_TABLE["21"].kind is AIKind.VARIABLE
        assert AI_TABLE["310"].length == 6

    def test_longest_prefix_match(self):
        descriptor, length = DEFAULT_TRIE.find_longest_match("310000125", 0)
        assert descriptor.ai == "310"
        assert length == 3

    def test_no_match(self):
        assert DEFAULT_TRIE.find_longest_match("99ABC", 0) == (None, 0)


class TestFormatDetection:
    """Decision order of detect_format."""

    def test_parenthesized(self):
        assert detect_format(ROUND_TRIP) == BarcodeFormat.GS1_PARENTHESIZED

    def test_positional(self):
        assert detect_format("010001234567890517260630") == BarcodeFormat.GS1_POSITIONAL

    @pytest.mark.parametrize("raw,expected", [
        ("00012345678905", BarcodeFormat.GTIN14),
        ("6291107439358", BarcodeFormat.EAN13),
        ("012345678905", BarcodeFormat.LEGACY12),
        ("96385074", BarcodeFormat.EAN8),
        ("6291-1074-39358", BarcodeFormat.EAN13),
        ("1234567", BarcodeFormat.UNKNOWN),
        ("1234567890", BarcodeFormat.UNKNOWN),
        ("HELLO", BarcodeFormat.UNKNOWN),
        ("", BarcodeFormat.UNKNOWN),
    ])
    def test_digit_count(self, raw, expected):
        assert detect_format(raw) == expected

    def test_bare_gtin_starting_01_is_not_gs1(self):
        """A 14-digit "01..." string is a plain GTIN-14."""
        assert detect_format("01234567890128") == BarcodeFormat.GTIN14

    def test_gtin_slot_only_is_not_gs1(self):
        """ "01" + GTIN and nothing else is 16 characters: not positional GS1."""
        assert detect_format("0106285096000842") == BarcodeFormat.UNKNOWN

    def test_marker_must_follow_gtin_slot(self):
        """AI-like digits inside the GTIN slot do not count."""
        assert detect_format("01171010171017" + "999") == BarcodeFormat.UNKNOWN

    def test_detection_is_pure(self):
        for raw in (ROUND_TRIP, "6291107439358", "garbage", "\x1d\x1d"):
            assert detect_format(raw) == detect_format(raw)

    def test_non_string_input(self):
        assert detect_format(None) == BarcodeFormat.UNKNOWN
        assert detect_format(b"6291107439358") == BarcodeFormat.EAN13
        assert detect_format(6291107439358) == BarcodeFormat.EAN13


class TestParenthesized:
    """Tests for "(AI)value" decoding."""

    def test_round_trip_fields(self):
        result = parse_barcode(ROUND_TRIP)

        assert result.format == BarcodeFormat.GS1_PARENTHESIZED
        assert result.gtin == "00012345678905"
        assert result.expiry_raw == "260630"
        assert result.expiry_date == date(2026, 6, 30)
        assert result.expiry_source == "barcode"
        assert result.batch == "BATCH1"
        assert result.serial == "SER99"
        assert result.errors == []
        assert result.is_gs1
        assert result.gtin_check_digit_valid

    def test_any_order(self):
        result = parse_barcode("(17)260630(10)L1(01)00012345678905")

        assert result.gtin == "00012345678905"
        assert result.batch == "L1"
        assert list(result.elements) == ["17", "10", "01"]

    def test_production_date_count_and_weight(self):
        result = parse_barcode("(01)00012345678905(11)250115(37)24(310)000125")

        assert result.production_date == date(2025, 1, 15)
        assert result.count == "24"
        assert result.net_weight == "000125"

    def test_day_zero_expiry(self):
        result = parse_barcode("(01)00012345678905(17)260600")
        assert result.expiry_date == date(2026, 6, 30)

    def test_separator_in_batch_removed(self):
        result = parse_barcode("(01)00012345678905(10)ABC\x1d(21)X1")
        assert result.batch == "ABC"
        assert result.serial == "X1"

    def test_truncated_gtin(self):
        result = parse_barcode("(01)0001234567(17)260630")

        assert result.gtin is None
        assert not result.usable
        assert ErrorCode.TRUNCATED_DATA in codes(result)
        assert ErrorCode.INVALID_GTIN in codes(result)
        assert result.expiry_date == date(2026, 6, 30)

    def test_invalid_expiry_keeps_raw(self):
        result = parse_barcode("(01)00012345678905(17)261301")

        assert result.expiry_raw == "261301"
        assert result.expiry_date is None
        assert ErrorCode.INVALID_DATE in codes(result)

    def test_batch_capped_at_20(self):
        result = parse_barcode("(01)00012345678905(10)" + "B" * 40)
        assert result.batch == "B" * 20


class TestSimpleCodes:
    """Plain numeric codes map to the 14-digit GTIN."""

    @pytest.mark.parametrize("raw,fmt,gtin", [
        ("00012345678905", BarcodeFormat.GTIN14, "00012345678905"),
        ("6291107439358", BarcodeFormat.EAN13, "06291107439358"),
        ("012345678905", BarcodeFormat.LEGACY12, "00012345678905"),
        ("96385074", BarcodeFormat.EAN8, "00000096385074"),
    ])
    def test_zero_padded(self, raw, fmt, gtin):
        result = parse_barcode(raw)

        assert result.format == fmt
        assert result.gtin == gtin
        assert result.expiry_date is None
        assert result.errors == []
        assert not result.is_gs1

    def test_gtin14_identity(self):
        """Any 14-digit GTIN comes back unchanged."""
        for gtin in ("00012345678905", "06285096000842", "99999999999999"):
            assert parse_simple(gtin, BarcodeFormat.GTIN14).gtin == gtin

    def test_length_mismatch_falls_back_to_unknown(self):
        result = parse_simple("12345678", BarcodeFormat.EAN13)

        assert result.format == BarcodeFormat.UNKNOWN
        assert result.gtin is None
        assert ErrorCode.UNRECOGNIZED_FORMAT in codes(result)

    def test_short_code_is_unknown(self):
        result = parse_barcode("1234567")

        assert result.format == BarcodeFormat.UNKNOWN
        assert not result.usable
        assert ErrorCode.UNRECOGNIZED_FORMAT in codes(result)

    def test_raw_kept_unmodified(self):
        raw = "  6291107439358\r\n"
        assert parse_barcode(raw).raw == raw


class TestPositionalEquivalence:
    """Positional scans with separators decode like the parenthesized form."""

    def test_same_record_as_parenthesized(self):
        positional = "0100012345678905" + "17260630" + "10BATCH1" + "\x1d" + "21SER99"

        a = parse_barcode(ROUND_TRIP).to_dict()
        b = parse_barcode(positional).to_dict()

        assert b['format'] == BarcodeFormat.GS1_POSITIONAL.value
        for record in (a, b):
            record.pop('raw')
            record.pop('format')
        assert a == b


class TestEmptyAndGarbage:
    """Parsing is total."""

    @pytest.mark.parametrize("raw", ["", "   ", "\r\n\t", None])
    def test_empty_input(self, raw):
        result = parse_barcode(raw)

        assert result.format == BarcodeFormat.UNKNOWN
        assert not result.usable
        assert codes(result) == [ErrorCode.EMPTY_INPUT]

    @pytest.mark.parametrize("raw", [
        "(01)",
        "(01)(17)(10)(21)",
        "((((((01))))))",
        "\x00\x01\x02\xff",
        "]d2",
        "01" * 50,
        "(01)" + "9" * 1000,
        b"\xff\xfe(01)00012345678905",
    ])
    def test_never_raises(self, raw):
        result = parse_barcode(raw)
        assert result.format in set(BarcodeFormat)

    def test_custom_separator_spelling(self):
        options = ParseOptions(gs_characters=frozenset({"\x1d", "|"}))
        result = parse_barcode("0100012345678905" + "10LOT17|17260630", options=options)

        assert result.batch == "LOT17"
        assert result.expiry_date == date(2026, 6, 30)

    def test_symbology_prefix_kept_when_disabled(self):
        options = ParseOptions(strip_symbology=False)
        assert parse_barcode("]C1" + ROUND_TRIP, options=options).gtin == "00012345678905"
