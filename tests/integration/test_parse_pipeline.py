from __future__ import annotations

import pytest

from pricing_import.models.parsed_row import ProductRow, SectionHeaderRow, WineColor
from pricing_import.services.pipeline import parse_file, parse_sheet, parse_upload


def _check_klawer_result(result):
    assert result.total_rows == 8
    assert result.section_headers == 1
    assert result.valid_rows == 6
    assert result.invalid_rows == 1
    assert result.errors == ["packed_case: Case must be a whole number of at least 1"]
    assert len(result.warnings) == 3

    rows = result.rows
    assert isinstance(rows[0], SectionHeaderRow)
    assert rows[0].row_number == 3
    assert [r.row_number for r in rows[1:]] == [4, 5, 7, 9, 10, 11, 12]

    chardonnay = rows[1]
    assert chardonnay.color is WineColor.WHITE
    assert chardonnay.display_price == pytest.approx(219.29, abs=0.01)
    assert chardonnay.duplicate_count == 2
    assert "Duplicate found: 2 rows with same product+size" in chardonnay.warnings

    pinotage = rows[3]
    assert pinotage.brand == "KLAWER CELLARS"
    assert pinotage.color is WineColor.RED
    assert pinotage.display_price == 230.0

    assert rows[4].color is WineColor.WHITE  # from "White Wine"
    assert rows[5].color is WineColor.RED  # explicit column value
    assert rows[6].is_valid is False
    assert rows[7].warnings == ["No unit price available - check ex/inc VAT fields"]


def test_parse_xlsx(write_xlsx, price_sheet_rows):
    path = write_xlsx("klawer.xlsx", price_sheet_rows)
    result = parse_file(path)
    assert result.source_file == "klawer.xlsx"
    _check_klawer_result(result)


def test_parse_csv_upload(sheet_csv_bytes, price_sheet_rows):
    result = parse_upload(sheet_csv_bytes(price_sheet_rows), "klawer.csv")
    assert result.source_file == "klawer.csv"
    _check_klawer_result(result)


def test_summary_counts_match_rows(sheet_csv_bytes, price_sheet_rows):
    result = parse_upload(sheet_csv_bytes(price_sheet_rows), "klawer.csv")
    products = [r for r in result.rows if isinstance(r, ProductRow)]
    assert result.total_rows == len(result.rows)
    assert result.valid_rows + result.invalid_rows == len(products)
    assert result.section_headers == len(result.rows) - len(products)


def test_empty_sheet():
    result = parse_sheet([], "empty.xlsx")
    assert result.rows == []
    assert result.total_rows == 0
    assert result.errors == []


def test_sheet_without_product_column_drops_data_rows():
    raw = [["Brand", "Area", "Case", "Size"], ["Klawer", "WC", 6, "750ml"]]
    result = parse_sheet(raw, "odd.csv")
    assert result.rows == []
