from __future__ import annotations

from pathlib import Path

from pricing_import.excel.reader import read_sheet
from pricing_import.excel.template import TEMPLATE_HEADER, write_template
from pricing_import.models.parsed_row import WineColor
from pricing_import.services.pipeline import parse_file


def test_template_round_trips_through_parser(tmp_path: Path):
    path = write_template(tmp_path / "template.xlsx")
    raw = read_sheet(path)
    assert raw[0] == TEMPLATE_HEADER

    result = parse_file(path)
    assert result.total_rows == 6
    assert result.section_headers == 2
    assert result.valid_rows == 4
    assert result.invalid_rows == 0
    sauvignon = next(r for r in result.product_rows if r.product_name == "Sauvignon Blanc")
    assert sauvignon.color is WineColor.WHITE
    assert sauvignon.inc_vat_per_unit == 276.0
