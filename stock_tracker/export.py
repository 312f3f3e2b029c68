import os
from io import BytesIO

import pandas as pd

EXPORT_COLUMNS = [
    ("name", "Name"),
    ("stock_awal", "Stock Awal"),
    ("keluar_manual", "Keluar Manual"),
    ("keluar_pos", "Keluar POS"),
    ("stock_akhir", "Stock Akhir"),
    ("qty_di_pesan", "Qty Di Pesan"),
    ("selisih", "Selisih"),
    ("days_to_order", "Days To Order"),
]

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _export_row(row):
    values = {}
    for key, label in EXPORT_COLUMNS:
        value = row.get(key)
        if value is None:
            value = "" if key == "name" else 0
        values[label] = value
    return values


def build_stock_frame(rows):
    return pd.DataFrame(
        [_export_row(row) for row in rows],
        columns=[label for _, label in EXPORT_COLUMNS],
    )


def stock_csv(rows):
    return build_stock_frame(rows).to_csv(index=False)


def stock_xlsx(rows):
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        build_stock_frame(rows).to_excel(writer, index=False, sheet_name="Stock")
    output.seek(0)
    return output.read()


def export_filename(stamp, extension="csv"):
    return f"stock_{stamp.strftime('%Y%m%d_%H%M%S')}.{extension}"


def write_archive(rows, directory, stamp):
    """Simpan snapshot stok sebagai CSV di directory, kembalikan path file."""
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, export_filename(stamp))
    build_stock_frame(rows).to_csv(path, index=False)
    return path
