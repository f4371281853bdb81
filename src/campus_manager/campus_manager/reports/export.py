"""Excel export for report tables (pandas + openpyxl)."""

from __future__ import annotations

import io
from typing import Iterable, Mapping

import pandas as pd
from flask import send_file

from ..common.serialization import to_json

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _frame(rows: Iterable[Mapping]) -> pd.DataFrame:
    df = pd.DataFrame([to_json(dict(row)) for row in rows])
    # Lists (fee types) become a readable cell value
    for column in df.columns:
        if df[column].map(lambda v: isinstance(v, list)).any():
            df[column] = df[column].map(lambda v: ", ".join(map(str, v)) if isinstance(v, list) else v)
    return df


def workbook(sheets: Mapping[str, Iterable[Mapping]]) -> io.BytesIO:
    """Write one sheet per entry; sheet names are trimmed to Excel's 31 chars."""
    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            _frame(rows).to_excel(writer, sheet_name=name[:31], index=False)
    out.seek(0)
    return out


def xlsx_response(sheets: Mapping[str, Iterable[Mapping]], filename: str):
    return send_file(workbook(sheets), mimetype=XLSX_MIMETYPE, as_attachment=True, download_name=filename)


def summary_rows(sections: Mapping[str, Mapping]) -> list[dict]:
    """Flatten {section: {metric: value}} into sheet rows, skipping nested tables."""
    rows = []
    for section, metrics in sections.items():
        for metric, value in metrics.items():
            if isinstance(value, (list, tuple, dict)):
                continue
            rows.append({"section": section, "metric": metric, "value": value})
    return rows
