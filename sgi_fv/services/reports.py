from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Sequence

import pandas as pd
from fastapi.responses import StreamingResponse

from sgi_fv.schemas.dashboard import FinancialRow

EXPORT_FORMATS = ("csv", "xlsx", "pdf")

FINANCIAL_COLUMNS = [
    "usuario",
    "organizacao",
    "protocolo",
    "status",
    "valor_total",
    "valor_pago",
    "valor_pendente",
]


# PUBLIC_INTERFACE
def financial_dataframe(rows: Sequence[FinancialRow]) -> pd.DataFrame:
    """Tabular form of the financial rows, one line per member."""
    data = [
        {
            "usuario": row.user_name,
            "organizacao": row.organization_name,
            "protocolo": row.protocol,
            "status": row.status.legacy_label,
            "valor_total": row.total,
            "valor_pago": row.paid,
            "valor_pendente": row.pending,
        }
        for row in rows
    ]
    return pd.DataFrame(data, columns=FINANCIAL_COLUMNS)


def _csv_response(df: pd.DataFrame, filename_base: str) -> StreamingResponse:
    buffer = io.StringIO()
    df.to_csv(buffer, index=False)
    buffer.seek(0)
    headers = {"Content-Disposition": f'attachment; filename="{filename_base}.csv"'}
    return StreamingResponse(buffer, media_type="text/csv", headers=headers)


# PUBLIC_INTERFACE
def export_dataframe(df: pd.DataFrame, filename_base: str, export_format: str) -> StreamingResponse:
    """
    Convert a DataFrame to the requested format and return a StreamingResponse.

    Supported formats:
      - csv: text/csv
      - xlsx: application/vnd.openxmlformats-officedocument.spreadsheetml.sheet
      - pdf: application/pdf (simple tabular rendering)
    Unknown formats fall back to CSV.
    """
    export_format = (export_format or "csv").lower()

    if export_format in ("xlsx", "excel"):
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Financeiro")
        buffer.seek(0)
        headers = {"Content-Disposition": f'attachment; filename="{filename_base}.xlsx"'}
        return StreamingResponse(
            buffer,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers=headers,
        )

    if export_format == "pdf":
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import A4, landscape
        from reportlab.lib.styles import getSampleStyleSheet
        from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=landscape(A4), leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18
        )
        styles = getSampleStyleSheet()
        generated = datetime.now(timezone.utc).strftime("%d/%m/%Y %H:%M UTC")
        elements: list = [
            Paragraph(f"{filename_base.replace('_', ' ').title()} ({generated})", styles["Title"])
        ]

        data = [list(df.columns)] + df.astype(str).values.tolist()
        table = Table(data, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
                    ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ]
            )
        )
        elements.append(table)
        doc.build(elements)
        buffer.seek(0)
        headers = {"Content-Disposition": f'attachment; filename="{filename_base}.pdf"'}
        return StreamingResponse(buffer, media_type="application/pdf", headers=headers)

    return _csv_response(df, filename_base)
