"""Table frames, line charts and a static HTML report for a dashboard session."""

from __future__ import annotations

import html
from collections.abc import Sequence
from pathlib import Path

import pandas as pd
import plotly.express as px
from plotly.graph_objects import Figure

from coinboard.controller import DashboardController
from coinboard.domain.models import MarketEntity
from coinboard.domain.state import Displaying, Failed
from coinboard.formatting import format_currency
from coinboard.timeseries import TimeSeriesWindow

TABLE_COLUMNS = ["Name", "Current Price", "Circulating Supply"]


def table_frame(entities: Sequence[MarketEntity]) -> pd.DataFrame:
    """Return display rows in entity order, prices formatted in each row's currency."""
    rows = [
        {
            "Name": entity.name,
            "Current Price": format_currency(entity.current_price, entity.currency),
            "Circulating Supply": entity.circulating_supply,
        }
        for entity in entities
    ]
    return pd.DataFrame(rows, columns=TABLE_COLUMNS)


def chart_figure(points: TimeSeriesWindow, title: str = "", small: bool = False) -> Figure:
    """Line chart of a window; ``small`` renders an axis-free sparkline."""
    frame = points.to_frame()
    figure = px.line(frame, x="date", y="price", title=title or None)
    if small:
        figure.update_xaxes(visible=False)
        figure.update_yaxes(visible=False)
        figure.update_layout(height=100, margin={"l": 0, "r": 0, "t": 0, "b": 0})
    return figure


def write_report(controller: DashboardController, output_html_path: str) -> Path:
    """Render the current session state to a standalone HTML page."""
    output = Path(output_html_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    state = controller.state
    html_parts = [
        "<html><head><meta charset='utf-8'><title>Coins &amp; Markets</title></head><body>",
        "<h1>Coins &amp; Markets</h1>",
    ]
    if isinstance(state, Failed):
        html_parts.append(f"<h2>{html.escape(state.reason)}</h2>")
    elif isinstance(state, Displaying):
        html_parts.append(table_frame(state.entities).to_html(index=False))
        include_js: str | bool = "cdn"
        for index, entity in enumerate(state.entities):
            sparkline = chart_figure(controller.sparkline(index), small=True)
            html_parts.append(f"<h3>{html.escape(entity.name)}</h3>")
            html_parts.append(sparkline.to_html(full_html=False, include_plotlyjs=include_js))
            include_js = False
        detail = controller.detail_window()
        selected = controller.selected_entity
        if detail is not None and selected is not None:
            figure = chart_figure(detail, title=selected.name)
            html_parts.append(figure.to_html(full_html=False, include_plotlyjs=include_js))
    else:
        html_parts.append("<p>Loading...</p>")
    html_parts.append("</body></html>")
    output.write_text("".join(html_parts), encoding="utf-8")
    return output
