"""
Report output: styled Excel workbook and an HTML payoff chart.

Deps: openpyxl (workbook), plotly (chart), pandas.
"""

from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd
import plotly.graph_objects as go
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from . import config as cfg
from .engine import Quote, curve_frame, quote_frame

# ---------------------------------------------------------------------------
# Style constants
# ---------------------------------------------------------------------------

_HEADER_FILL = PatternFill("solid", fgColor="1F3864")
_HEADER_FONT = Font(name="Calibri", bold=True, color="FFFFFF", size=10)
_BODY_FONT = Font(name="Calibri", size=10)
_THIN_BORDER = Border(bottom=Side(style="thin", color="D9D9D9"))
_CENTER = Alignment(horizontal="center", vertical="center")
_LEFT = Alignment(horizontal="left", vertical="center")

_PNL_FILLS = {"gain": "DCFCE7", "loss": "FEE2E2"}

_BUYER_COLOR = "#059669"
_SELLER_COLOR = "#DC2626"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _style_header(ws, ncols: int):
    for col in range(1, ncols + 1):
        cell = ws.cell(row=1, column=col)
        cell.fill = _HEADER_FILL
        cell.font = _HEADER_FONT
        cell.alignment = _CENTER


def _auto_width(ws, min_width: int = 10, max_width: int = 60):
    for col_cells in ws.columns:
        lengths = [len(str(c.value)) for c in col_cells if c.value is not None]
        if lengths:
            best = min(max(max(lengths) + 2, min_width), max_width)
            ws.column_dimensions[get_column_letter(col_cells[0].column)].width = best


def _format_col(ws, col_idx: int, fmt: str, start_row: int, end_row: int):
    """Apply a number format to a column."""
    for row in range(start_row, end_row + 1):
        cell = ws.cell(row=row, column=col_idx)
        if cell.value is not None:
            cell.number_format = fmt


def _write_sheet(wb, name: str, df: pd.DataFrame, col_formats: Optional[dict] = None):
    """Write a DataFrame as a styled sheet."""
    ws = wb.create_sheet(title=name)

    for c, header in enumerate(df.columns, 1):
        ws.cell(row=1, column=c, value=header)
    _style_header(ws, len(df.columns))

    for r, (_, row) in enumerate(df.iterrows(), 2):
        for c, val in enumerate(row, 1):
            cell = ws.cell(row=r, column=c)
            if pd.isna(val):
                cell.value = None
            elif isinstance(val, float):
                cell.value = round(val, 6)
            else:
                cell.value = val
            cell.font = _BODY_FONT
            cell.border = _THIN_BORDER
            cell.alignment = _CENTER

    nrows = len(df)
    if col_formats:
        for col_name, fmt in col_formats.items():
            if col_name in df.columns:
                col_idx = list(df.columns).index(col_name) + 1
                _format_col(ws, col_idx, fmt, 2, nrows + 1)

    _auto_width(ws)
    ws.freeze_panes = "A2"
    return ws


def _color_pnl(ws, col_idx: int, nrows: int):
    for row in range(2, nrows + 2):
        cell = ws.cell(row=row, column=col_idx)
        if cell.value is None or cell.value == 0:
            continue
        key = "gain" if cell.value > 0 else "loss"
        cell.fill = PatternFill("solid", fgColor=_PNL_FILLS[key])


# ---------------------------------------------------------------------------
# Excel
# ---------------------------------------------------------------------------


def generate_excel(quote: Quote, output_path: Optional[str] = None) -> str:
    """
    Write the quote, its Greeks and its payoff curve to a workbook.

    Returns the path of the written file.
    """
    if output_path is None:
        output_path = default_filename(quote, "xlsx")

    wb = Workbook()
    wb.remove(wb.active)

    # Sheet 1: Quote
    q = quote_frame(quote)[
        [
            "asset",
            "side",
            "spot",
            "strike",
            "days",
            "volatility",
            "vol_source",
            "rate",
            "premium",
            "premium_pct",
            "breakeven",
        ]
    ].copy()
    q["premium_pct"] = q["premium_pct"] / 100.0
    q.columns = [
        "Asset",
        "Side",
        "Spot",
        "Strike",
        "Days",
        "Volatility",
        "Vol Source",
        "Rate",
        "Premium",
        "% of Spot",
        "Breakeven",
    ]
    _write_sheet(
        wb,
        "Quote",
        q,
        {
            "Spot": "$#,##0.00",
            "Strike": "$#,##0.00",
            "Days": "0.00",
            "Volatility": "0.00%",
            "Rate": "0.00%",
            "Premium": "$#,##0.00",
            "% of Spot": "0.00%",
            "Breakeven": "$#,##0.00",
        },
    )

    # Sheet 2: Greeks
    greeks_df = pd.DataFrame(
        [
            {"Greek": name.capitalize(), "Value": value, "Meaning": cfg.GREEK_DESCRIPTIONS[name]}
            for name, value in quote.greeks.as_dict().items()
        ]
    )
    ws_g = _write_sheet(wb, "Greeks", greeks_df, {"Value": "0.0000"})
    for row in range(2, len(greeks_df) + 2):
        ws_g.cell(row=row, column=3).alignment = _LEFT

    # Sheet 3: Payoff
    curve = curve_frame(quote)
    curve.columns = ["Price", "Buyer P&L", "Seller P&L"]
    ws_p = _write_sheet(
        wb,
        "Payoff",
        curve,
        {"Price": "$#,##0.00", "Buyer P&L": "#,##0.00", "Seller P&L": "#,##0.00"},
    )
    _color_pnl(ws_p, 2, len(curve))
    _color_pnl(ws_p, 3, len(curve))

    # Sheet 4: Methodology
    method_data = [
        ["Section", "Detail"],
        ["Run Date", date.today().isoformat()],
        ["Model", "Black-Scholes (European, no dividends)"],
        ["Normal CDF", "Abramowitz-Stegun 7.1.26 erf approximation"],
        ["Day Count", f"{cfg.DAYS_PER_YEAR:.0f}-day year"],
        ["Theta", "Per calendar day"],
        ["Vega / Rho", "Per 1 percentage point"],
        [
            "Payoff Range",
            f"Strike +/- {cfg.PAYOFF_RANGE:.0%} of spot, {cfg.PAYOFF_STEPS} steps",
        ],
        ["Volatility Source", quote.vol_source],
    ]
    ws_m = wb.create_sheet(title="Methodology")
    for r, row in enumerate(method_data, 1):
        for c, val in enumerate(row, 1):
            cell = ws_m.cell(row=r, column=c, value=val)
            if r == 1:
                cell.fill = _HEADER_FILL
                cell.font = _HEADER_FONT
                cell.alignment = _CENTER
            else:
                cell.font = _BODY_FONT
                cell.alignment = _LEFT
    _auto_width(ws_m)

    wb.save(output_path)
    return str(output_path)


# ---------------------------------------------------------------------------
# Payoff chart
# ---------------------------------------------------------------------------


def payoff_figure(quote: Quote) -> go.Figure:
    """Buyer and seller P&L lines with strike and spot reference lines."""
    df = curve_frame(quote)
    c = quote.contract
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=df["price"],
            y=df["buyer_pnl"],
            mode="lines",
            name="Buyer P&L",
            line=dict(color=_BUYER_COLOR, width=2),
        )
    )
    fig.add_trace(
        go.Scatter(
            x=df["price"],
            y=df["seller_pnl"],
            mode="lines",
            name="Seller P&L",
            line=dict(color=_SELLER_COLOR, width=2),
        )
    )
    fig.add_hline(y=0, line=dict(color="#9CA3AF", width=1))
    fig.add_vline(
        x=c.strike,
        line=dict(color="#6B7280", dash="dash"),
        annotation_text="Strike",
    )
    fig.add_vline(
        x=c.spot,
        line=dict(color="#2563EB", dash="dot"),
        annotation_text="Spot",
    )
    title = f"{quote.asset or 'Option'} {c.side} payoff (premium ${quote.premium:,.2f})"
    fig.update_layout(
        title=title,
        xaxis_title="Underlying price at expiry",
        yaxis_title="Profit / loss",
        paper_bgcolor="white",
        plot_bgcolor="white",
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        margin=dict(l=60, r=30, t=70, b=50),
    )
    fig.update_xaxes(showgrid=True, gridcolor="#E5E7EB")
    fig.update_yaxes(showgrid=True, gridcolor="#E5E7EB")
    return fig


def write_payoff_html(quote: Quote, output_path: Optional[str] = None) -> str:
    if output_path is None:
        output_path = default_filename(quote, "html")
    payoff_figure(quote).write_html(str(output_path), include_plotlyjs="cdn")
    return str(output_path)


def default_filename(quote: Quote, ext: str) -> str:
    label = (quote.asset or "option").lower()
    name = f"{label}_{quote.contract.side}_{date.today().isoformat()}.{ext}"
    return str(Path.cwd() / name)
