"""
Tests for JSON formatter output.

Ensures clean JSON output with:
- Human-readable field names
- Proper date formatting (dd/mm/yyyy)
- Catalog match and expiry status alongside parsed fields
"""

import json
from datetime import date

import pytest

from pharmascan import CatalogEntry, build_index, scan_barcode
from pharmascan.__main__ import main
from pharmascan.formatters import (
    format_ddmmyyyy,
    format_parsed_fields,
    format_scan_json,
    format_scan_result,
)
from pharmascan.core.parser import parse_barcode

TODAY = date(2026, 1, 1)


class TestJSONOutput:
    """Test JSON output formatting."""

    def test_basic_json_output(self):
        """Test basic JSON output format."""
        barcode = "01062867400002491728043010GB2C2171490437969853"

        data = json.loads(format_scan_json(scan_barcode(barcode), today=TODAY))

        # Check field names are human-readable
        assert data["GTIN Code"] == "06286740000249"
        assert data["Expiry Date"] == "30/04/2028"
        assert data["Batch/Lot Number"] == "GB2C"
        assert data["Serial Number"] == "71490437969853"
        assert data["Format"] == "GS1_POSITIONAL"

        # Should NOT contain AI codes like "01", "17", etc.
        for ai in ("01", "17", "10", "21"):
            assert ai not in data

    def test_date_formatting_ddmmyyyy(self):
        """Test date is formatted as dd/mm/yyyy."""
        assert format_ddmmyyyy(date(2029, 1, 31)) == "31/01/2029"
        assert format_ddmmyyyy(None) == ""

    def test_day_00_formatted_as_month_end(self):
        data = format_parsed_fields(parse_barcode("(01)00012345678905(17)290400"))
        assert data["Expiry Date"] == "30/04/2029"

    def test_invalid_date_shows_raw_token(self):
        data = format_parsed_fields(parse_barcode("(01)00012345678905(17)291301"))
        assert data["Expiry Date"] == "291301"

    def test_raw_values_optional(self):
        parsed = parse_barcode("010628509600084217290131")

        assert format_parsed_fields(parsed)["Expiry Date"] == "31/01/2029"
        data = format_parsed_fields(parsed, include_raw_values=True)
        assert data["Expiry Date"] == {"formatted": "31/01/2029", "raw": "290131"}

    def test_plain_code_has_gtin(self):
        data = format_parsed_fields(parse_barcode("6291107439358"))
        assert data == {"GTIN Code": "06291107439358"}

    def test_no_errors_for_clean_scan(self):
        data = format_scan_result(scan_barcode("010628509600084217290131"), today=TODAY)
        assert "Errors" not in data

    def test_errors_listed(self):
        data = format_scan_result(scan_barcode("(01)00012345678905(17)291301"), today=TODAY)
        assert any(e.startswith("INVALID_DATE") for e in data["Errors"])


class TestScanResultOutput:
    """Catalog and expiry fields in the output."""

    def test_matched_product(self):
        index = build_index([CatalogEntry("6291107439358", "Zyrtec 75ml Bottle", "220155756")])
        result = scan_barcode("(01)06291107439358(17)260630", index=index)

        data = format_scan_result(result, today=TODAY)

        assert data["Product Name"] == "Zyrtec 75ml Bottle"
        assert data["Reference Code"] == "220155756"
        assert data["Match"] == "EXACT"
        assert data["Expiry Status"] == "OK"
        assert data["Days To Expiry"] == 180
        assert data["Expiry Source"] == "barcode"

    def test_unknown_product(self):
        data = format_scan_result(scan_barcode("6291107439358"), today=TODAY)

        assert data["Product Name"] == "Unknown Product"
        assert data["Match"] == "NONE"
        assert data["Expiry Status"] == "UNKNOWN"
        assert "Days To Expiry" not in data

    def test_ocr_expiry_shown(self):
        result = scan_barcode("6291107439358", ocr_text="EXP 03/2026")
        data = format_scan_result(result, today=TODAY)

        assert data["Expiry Date"] == "31/03/2026"
        assert data["Expiry Source"] == "ocr"
        assert data["Expiry Status"] == "EXPIRING"

    def test_soon_threshold(self):
        result = scan_barcode("(01)06291107439358(17)260630")
        data = format_scan_result(result, today=TODAY, soon_threshold_days=200)
        assert data["Expiry Status"] == "EXPIRING"


class TestCommandLine:
    """python -m pharmascan"""

    def test_json_output(self, capsys):
        code = main(["(01)00012345678905(17)260630(10)BATCH1", "--json", "--today", "2026-01-01"])

        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["GTIN Code"] == "00012345678905"
        assert data["Expiry Status"] == "OK"

    def test_text_output(self, capsys):
        code = main(["6291107439358", "--today", "2026-01-01"])

        out = capsys.readouterr().out
        assert code == 0
        assert "PharmaScan Result" in out
        assert "06291107439358" in out

    def test_unusable_scan_exit_code(self, capsys):
        assert main(["hello", "--json"]) == 1
        data = json.loads(capsys.readouterr().out)
        assert data["Format"] == "UNKNOWN"

    def test_catalog_file(self, tmp_path, capsys):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([
            {"BARCODE": "06291107439358", "NAME": "Zyrtec 75ml Bottle", "RMS": "220155756"},
            {"barcode": "123", "name": "too short"},
        ]))

        code = main(["07439358", "--catalog", str(path), "--json", "--today", "2026-01-01"])

        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["Product Name"] == "Zyrtec 75ml Bottle"
        assert data["Match"] == "PARTIAL"

    def test_missing_catalog_file(self, tmp_path, capsys):
        assert main(["6291107439358", "--catalog", str(tmp_path / "nope.json")]) == 2
        assert "Cannot load catalog" in capsys.readouterr().err

    @pytest.mark.parametrize("ocr", ["BEST BEFORE 260630", "EXP 06/2026"])
    def test_ocr_text_argument(self, ocr, capsys):
        main(["6291107439358", "--ocr-text", ocr, "--json", "--today", "2026-01-01"])
        data = json.loads(capsys.readouterr().out)
        assert data["Expiry Date"] == "30/06/2026"
