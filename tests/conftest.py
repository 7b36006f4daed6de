# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from pricing_import.logging.init import reset_logging
from pricing_import.models.parsed_row import ProductRow, WineColor
from pricing_import.services.validator import refresh_row

HEADER = [
    "Brand", "Area", "Product", "Case", "Size", "Color",
    "Exv Per case", "Exv Per unit", "Inv Per case", "Inv Per unit",
]
_BLANK = [""] * 9


@pytest.fixture(autouse=True)
def clean_logging():
    # setup_logging() は stdout を掴むので毎テストで作り直す
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """chunk_size: 2
queue_directory: ./queue
target_table: product_prices
conflict_columns: [brand, product_name, size_text]
parser:
  header_scan_rows: 5
  header_min_matches: 3
  section_blank_ratio: 0.7
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: pricing
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def price_sheet_rows() -> list[list[Any]]:
    """Klawer price list: title row, header, brand section, color sections.

    Parsed rows (index: sheet row):
      0: 3 KLAWER CELLARS section header
      1: 4 Chardonnay (duplicate, case prices only)
      2: 5 Chardonnay (duplicate)
      3: 7 Pinotage (brand from section, RED from "Red Wine")
      4: 9 Sauvignon Blanc (WHITE from "White Wine")
      5: 10 Shiraz (explicit RED inside the white section)
      6: 11 Chenin Blanc (case 0 -> invalid)
      7: 12 Mystery Cuvee (no prices)
    Sheet row 13 has no product name and is dropped.
    """
    return [
        ["Klawer Price List 2025", *_BLANK],
        list(HEADER),
        ["KLAWER CELLARS", *_BLANK],
        ["Klawer Cellars", "Western Cape", "Chardonnay", 12, "750ml", "", "2 288,23", "", "2 631,47", ""],
        ["Klawer Cellars", "Western Cape", "Chardonnay", 12, "750ml", "", "2 288,23", "", "2 631,47", ""],
        ["Red Wine", *_BLANK],
        ["", "Western Cape", "Pinotage", 6, "750ml", "", "1 200,00", "200,00", "1 380,00", "230,00"],
        ["White Wine", *_BLANK],
        ["Klawer Cellars", "Western Cape", "Sauvignon Blanc", 6, "750ml", "", "900,00", "150,00", "1 035,00", "172,50"],
        ["Klawer Cellars", "Western Cape", "Shiraz", 6, "750ml", "RED", "1 080,00", "180,00", "1 242,00", "207,00"],
        ["Klawer Cellars", "Western Cape", "Chenin Blanc", 0, "750ml", "", "840,00", "140,00", "966,00", "161,00"],
        ["Klawer Cellars", "Western Cape", "Mystery Cuvee", 6, "750ml", "", "", "", "", ""],
        ["Klawer Cellars", "Western Cape", "", 6, "750ml", "", "", "", "", ""],
    ]


@pytest.fixture()
def write_xlsx(temp_workdir: Path) -> Callable[[str, list[list[Any]]], Path]:
    def _write(name: str, rows: list[list[Any]]) -> Path:
        path = temp_workdir / "data" / name
        pd.DataFrame(rows).to_excel(path, header=False, index=False, engine="openpyxl")
        return path
    return _write


@pytest.fixture()
def sheet_csv_bytes() -> Callable[[list[list[Any]]], bytes]:
    def _build(rows: list[list[Any]]) -> bytes:
        return pd.DataFrame(rows).to_csv(header=False, index=False).encode("utf-8")
    return _build


@pytest.fixture()
def make_product() -> Callable[..., ProductRow]:
    """Factory for validated ProductRow objects (valid by default)."""
    def _make(
        row_number: int = 2,
        brand: str = "Klawer Cellars",
        area: str = "Western Cape",
        color: WineColor | None = WineColor.WHITE,
        product_name: str = "Chardonnay",
        packed_case: int = 12,
        size_text: str = "750ml",
        **prices: float | None,
    ) -> ProductRow:
        if not prices:
            prices = {"inc_vat_per_unit": 219.29}
        row = ProductRow(
            row_number=row_number,
            source_file="prices.xlsx",
            brand=brand,
            area=area,
            color=color,
            product_name=product_name,
            packed_case=packed_case,
            size_text=size_text,
            **prices,
        )
        return refresh_row(row)
    return _make


class RecordingStore:
    """Store double: records every upsert call, fails on the given call numbers (1-based)."""

    def __init__(self, fail_on: tuple[int, ...] = ()) -> None:
        self.calls: list[list[dict[str, Any]]] = []
        self.fail_on = set(fail_on)

    def upsert_rows(self, records):
        self.calls.append(list(records))
        if len(self.calls) in self.fail_on:
            raise RuntimeError("duplicate key value violates unique constraint")


@pytest.fixture()
def recording_store() -> Callable[..., RecordingStore]:
    return RecordingStore
