from __future__ import annotations

from pathlib import Path

import pandas as pd

"""Sample pricing workbook in the layout the parser accepts.

Shows every recognised column, brand section rows, a color-section row and
locale-formatted prices ("2 288,23").
"""

__all__ = [
    "TEMPLATE_HEADER",
    "TEMPLATE_ROWS",
    "write_template",
]

TEMPLATE_HEADER: list[str] = [
    "Brand", "Area", "Product", "Case", "Size", "Color",
    "Exv Per case", "Exv Per unit", "Inv Per case", "Inv Per unit",
]

TEMPLATE_ROWS: list[list[object]] = [
    ["KLAWER CELLARS", "", "", "", "", "", "", "", "", ""],
    ["Klawer Cellars", "Western Cape", "Chardonnay", 12, "750ml", "WHITE", "2 288,23", "190,69", "2 631,47", "219,29"],
    ["Klawer Cellars", "Western Cape", "Cabernet Sauvignon", 12, "750ml", "RED", "2 520,00", "210,00", "2 898,00", "241,50"],
    ["", "", "", "", "", "", "", "", "", ""],
    ["BOSCHENDAL ESTATE", "", "", "", "", "", "", "", "", ""],
    ["White Wine", "", "", "", "", "", "", "", "", ""],
    ["Boschendal", "Stellenbosch", "Sauvignon Blanc", 6, "750ml", "", "1 440,00", "240,00", "1 656,00", "276,00"],
    ["Boschendal", "Stellenbosch", "Pinot Noir", 6, "750ml", "RED", "2 880,00", "480,00", "3 312,00", "552,00"],
]

SHEET_NAME = "Pricing Template"


def write_template(path: Path) -> Path:
    df = pd.DataFrame([TEMPLATE_HEADER, *TEMPLATE_ROWS])
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, header=False, index=False)
        sheet = writer.sheets[SHEET_NAME]
        for letter, width in zip("ABCDEFGHIJ", (20, 15, 30, 8, 10, 10, 15, 15, 15, 15), strict=True):
            sheet.column_dimensions[letter].width = width
    return path
