"""
Access-history workbook built with xlsxwriter.

``ExcelExporter`` writes a single worksheet in memory: an institutional
title, the generation timestamp, one row per applied filter, and the
session table with alternating row shading. ``build_accesos_workbook``
is the entry point used by ``GET /api/accesos/exportar``.

Usage example::

    exporter = ExcelExporter(title="Historial de accesos", filters={"Fecha": "2025-03-10"})
    exporter.add_header(generado=now)
    exporter.add_data_table(headers, rows)
    file_bytes = exporter.finalize()
"""

from __future__ import annotations

import io
from datetime import datetime
from typing import Any, Iterable, Sequence

import xlsxwriter

_COLOR_PRIMARY = "#7A1F2B"
_COLOR_SUBHEADER_BG = "#3F0F16"
_COLOR_WHITE = "#FFFFFF"
_COLOR_LIGHT_GREY = "#F3F4F6"

_MAX_COL_WIDTH = 60
_MIN_COL_WIDTH = 8

ACCESOS_HEADERS: tuple[str, ...] = (
    "Fecha",
    "Nombre",
    "Rol",
    "Carnet",
    "N° Tarjeta",
    "Hora entrada",
    "Hora salida",
)


class ExcelExporter:
    """Stateful single-sheet workbook builder.

    Args:
        title: Title written in the merged first row.
        filters: Applied filter labels, e.g. ``{"Rol": "Visitante"}``.
        sheet_name: Worksheet tab name.
    """

    def __init__(
        self,
        title: str,
        filters: dict[str, str] | None = None,
        sheet_name: str = "Accesos",
    ) -> None:
        self._title = title
        self._filters = filters or {}

        self._buffer = io.BytesIO()
        self._workbook = xlsxwriter.Workbook(self._buffer, {"in_memory": True})
        self._worksheet = self._workbook.add_worksheet(sheet_name)

        self._current_row = 0
        self._num_cols = len(ACCESOS_HEADERS)
        self._formats = self._build_formats()

    def _build_formats(self) -> dict[str, Any]:
        wb = self._workbook
        base_cell = {
            "font_size": 9,
            "font_color": "#111827",
            "align": "left",
            "valign": "vcenter",
            "border": 1,
            "border_color": "#E5E7EB",
        }
        return {
            "title": wb.add_format({
                "bold": True,
                "font_size": 16,
                "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_PRIMARY,
                "align": "center",
                "valign": "vcenter",
            }),
            "subtitle": wb.add_format({
                "font_size": 10,
                "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_SUBHEADER_BG,
                "align": "center",
                "valign": "vcenter",
            }),
            "filter_key": wb.add_format({
                "bold": True,
                "font_size": 9,
                "bg_color": "#E5E7EB",
                "align": "right",
            }),
            "filter_value": wb.add_format({"font_size": 9, "bg_color": "#F9FAFB"}),
            "col_header": wb.add_format({
                "bold": True,
                "font_size": 10,
                "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_SUBHEADER_BG,
                "align": "center",
                "valign": "vcenter",
                "border": 1,
                "border_color": "#CBD5E1",
            }),
            "data": wb.add_format({**base_cell, "bg_color": _COLOR_WHITE}),
            "data_alt": wb.add_format({**base_cell, "bg_color": _COLOR_LIGHT_GREY}),
        }

    def add_header(self, generado: datetime) -> "ExcelExporter":
        """Write the title, the generation timestamp and the filter rows."""
        ws = self._worksheet
        last_col = self._num_cols - 1

        ws.set_row(self._current_row, 30)
        ws.merge_range(
            self._current_row, 0, self._current_row, last_col,
            self._title, self._formats["title"],
        )
        self._current_row += 1

        ws.merge_range(
            self._current_row, 0, self._current_row, last_col,
            f"Generado: {generado.strftime('%d/%m/%Y %H:%M')}", self._formats["subtitle"],
        )
        self._current_row += 1

        for key, value in self._filters.items():
            ws.write(self._current_row, 0, key, self._formats["filter_key"])
            ws.merge_range(
                self._current_row, 1, self._current_row, last_col,
                value, self._formats["filter_value"],
            )
            self._current_row += 1

        self._current_row += 1
        return self

    def add_data_table(
        self,
        headers: Sequence[str],
        rows: Iterable[Sequence[Any]],
    ) -> "ExcelExporter":
        """Write column headers and data rows; columns are auto-sized."""
        ws = self._worksheet
        col_widths = [len(h) for h in headers]

        for ci, hdr in enumerate(headers):
            ws.write(self._current_row, ci, hdr, self._formats["col_header"])
        self._current_row += 1

        for ri, row in enumerate(rows):
            fmt = self._formats["data_alt"] if ri % 2 else self._formats["data"]
            for ci, value in enumerate(row):
                text = "" if value is None else str(value)
                ws.write_string(self._current_row, ci, text, fmt)
                col_widths[ci] = min(_MAX_COL_WIDTH, max(col_widths[ci], len(text)))
            self._current_row += 1

        for ci, width in enumerate(col_widths):
            ws.set_column(ci, ci, max(width + 2, _MIN_COL_WIDTH))
        return self

    def finalize(self) -> bytes:
        """Close the workbook and return the ``.xlsx`` bytes."""
        self._workbook.close()
        self._buffer.seek(0)
        return self._buffer.read()


def _acceso_row(acceso) -> tuple[str, ...]:
    return (
        acceso.fecha.isoformat(),
        acceso.nombre,
        acceso.rol_universidad or "",
        acceso.carnet or "",
        acceso.numero_tarjeta or "",
        acceso.hora_entrada.strftime("%H:%M:%S"),
        acceso.hora_salida.strftime("%H:%M:%S") if acceso.hora_salida else "",
    )


def build_accesos_workbook(
    accesos: Iterable,
    filtros: dict[str, str],
    generado: datetime,
) -> bytes:
    """Render access sessions (already filtered and ordered) as ``.xlsx`` bytes."""
    exporter = ExcelExporter(
        title="Historial de accesos",
        filters={k: v for k, v in filtros.items() if v},
    )
    exporter.add_header(generado)
    exporter.add_data_table(ACCESOS_HEADERS, (_acceso_row(a) for a in accesos))
    return exporter.finalize()
