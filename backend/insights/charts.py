"""
Chart Selector

Picks up to three charts for a dataset (top-N bar, category doughnut, time
trend line) and encodes each as a chart-image service URL. Only the chart
configuration is produced here; the image itself is rendered remotely.
"""

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence
from urllib.parse import quote

from analysis.orchestrator import AnalysisResult, analysis_orchestrator
from analysis.patterns import distribution_analyzer
from analysis.statistical import distinct_count
from config import get_settings
from core.cells import CellKind, parse_date
from core.dataset import Dataset
from core.data_understanding import find_column
from core.logging_config import chart_logger as logger


BAR_PALETTE = ["#EA580C", "#FB923C", "#FED7AA", "#FDBA74", "#F97316"]
DOUGHNUT_PALETTE = BAR_PALETTE + ["#C2410C"]
ACCENT_COLOR = "#EA580C"
TREND_FILL = "rgba(234, 88, 12, 0.1)"
GRID_COLOR = "#E5E7EB"

LABEL_KEYWORDS = ("name", "product", "category", "title")
BAR_LABEL_LENGTH = 15
DOUGHNUT_LABEL_LENGTH = 12

# Characters JavaScript's encodeURIComponent leaves alone
URI_SAFE = "-_.!~*'()"


@dataclass
class ChartSpec:
    """One proposed chart."""

    chart_type: str
    title: str
    description: str
    config: dict[str, Any]
    chart_url: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "chart_type": self.chart_type,
            "title": self.title,
            "description": self.description,
            "config": self.config,
            "chart_url": self.chart_url,
        }


def chart_image_url(config: Mapping[str, Any]) -> str:
    """Chart-image service URL with the configuration percent-encoded."""
    charts = get_settings().charts
    encoded = quote(json.dumps(config, separators=(",", ":"), ensure_ascii=False), safe=URI_SAFE)
    return (
        f"{charts.service_url}?c={encoded}&width={charts.width}"
        f"&height={charts.height}&devicePixelRatio={charts.device_pixel_ratio}"
    )


def _chart_number(value: float) -> Any:
    return int(value) if float(value).is_integer() else value


def _title_plugin(text: str) -> dict[str, Any]:
    return {"display": True, "text": text, "font": {"size": 16, "weight": "bold"}}


def _axis_scales() -> dict[str, Any]:
    return {
        "y": {"beginAtZero": True, "grid": {"color": GRID_COLOR}},
        "x": {"grid": {"display": False}},
    }


class ChartSelector:
    """Deterministic chart proposals from the column classification."""

    def __init__(self):
        self.settings = get_settings().charts

    def select(self, dataset: Dataset, analysis: Optional[AnalysisResult] = None) -> list[ChartSpec]:
        if not dataset.rows:
            return []

        if analysis is None:
            analysis = analysis_orchestrator.build(dataset)

        charts = []
        for build in (self.top_values_chart, self.distribution_chart, self.trend_chart):
            spec = build(dataset, analysis)
            if spec is not None:
                charts.append(spec)

        logger.info(f"Selected {len(charts)} charts for {dataset.file_name}")
        return charts

    def top_values_chart(self, dataset: Dataset, analysis: AnalysisResult) -> Optional[ChartSpec]:
        """Highest values of the first numeric column."""
        if not analysis.numeric_columns:
            return None

        column = analysis.numeric_columns[0]
        label_column = find_column(dataset.columns, LABEL_KEYWORDS)

        values = dataset.column_cells(column)
        labels = dataset.column_cells(label_column) if label_column else ()
        ranked = sorted(
            (i for i, cell in enumerate(values) if cell.kind == CellKind.NUMBER),
            key=lambda i: values[i].value,
            reverse=True,
        )[:self.settings.top_n]

        if not ranked:
            return None

        chart_labels = []
        for position, row_index in enumerate(ranked, start=1):
            text = labels[row_index].as_text() if labels else ""
            chart_labels.append(text[:BAR_LABEL_LENGTH] if text else f"Item {position}")

        title = f"Top {self.settings.top_n} by {column}"
        config = {
            "type": "bar",
            "data": {
                "labels": chart_labels,
                "datasets": [{
                    "label": column,
                    "data": [_chart_number(values[i].value) for i in ranked],
                    "backgroundColor": BAR_PALETTE,
                    "borderColor": ACCENT_COLOR,
                    "borderWidth": 2,
                }],
            },
            "options": {
                "responsive": True,
                "plugins": {"title": _title_plugin(title), "legend": {"display": False}},
                "scales": _axis_scales(),
            },
        }

        return ChartSpec(
            chart_type="bar",
            title=f"📊 {title}",
            description=f"Highest performing items based on {column} values",
            config=config,
            chart_url=chart_image_url(config),
        )

    def distribution_chart(self, dataset: Dataset, analysis: AnalysisResult) -> Optional[ChartSpec]:
        """Share of each value in the first low-cardinality categorical column."""
        column = None
        for candidate in analysis.text_columns:
            present = [c.as_text() for c in dataset.column_cells(candidate) if not c.is_null]
            if 1 < distinct_count(present) <= self.settings.max_categories:
                column = candidate
                break

        if column is None:
            return None

        distribution = distribution_analyzer.categorical_distribution(
            column, dataset.column_cells(column), include_nulls=True
        )
        slices = distribution.top(self.settings.doughnut_slices)

        title = f"{column} Distribution"
        config = {
            "type": "doughnut",
            "data": {
                "labels": [s.value[:DOUGHNUT_LABEL_LENGTH] for s in slices],
                "datasets": [{
                    "data": [s.count for s in slices],
                    "backgroundColor": DOUGHNUT_PALETTE,
                    "borderWidth": 2,
                    "borderColor": "#FFFFFF",
                }],
            },
            "options": {
                "responsive": True,
                "plugins": {
                    "title": _title_plugin(title),
                    "legend": {"position": "right", "labels": {"font": {"size": 12}}},
                },
            },
        }

        return ChartSpec(
            chart_type="doughnut",
            title=f"🥧 {title}",
            description=f"Breakdown of data by {column} categories",
            config=config,
            chart_url=chart_image_url(config),
        )

    def trend_chart(self, dataset: Dataset, analysis: AnalysisResult) -> Optional[ChartSpec]:
        """First numeric column over the first date column, oldest first."""
        if not analysis.date_columns or not analysis.numeric_columns:
            return None

        date_column = analysis.date_columns[0]
        value_column = analysis.numeric_columns[0]

        points = []
        for date_cell, value_cell in zip(
            dataset.column_cells(date_column), dataset.column_cells(value_column)
        ):
            if value_cell.kind != CellKind.NUMBER:
                continue
            when = parse_date(date_cell)
            if when is not None:
                points.append((when, value_cell.value))

        points.sort(key=lambda point: point[0])
        points = points[:self.settings.trend_points]

        if len(points) <= 2:
            return None

        title = f"{value_column} Trend Over Time"
        config = {
            "type": "line",
            "data": {
                "labels": [f"{when.month}/{when.day}/{when.year}" for when, _ in points],
                "datasets": [{
                    "label": value_column,
                    "data": [_chart_number(value) for _, value in points],
                    "borderColor": ACCENT_COLOR,
                    "backgroundColor": TREND_FILL,
                    "borderWidth": 3,
                    "fill": True,
                    "tension": 0.4,
                }],
            },
            "options": {
                "responsive": True,
                "plugins": {"title": _title_plugin(title), "legend": {"display": False}},
                "scales": _axis_scales(),
            },
        }

        return ChartSpec(
            chart_type="line",
            title=f"📈 {value_column} Trend",
            description=f"Time-based trend analysis of {value_column}",
            config=config,
            chart_url=chart_image_url(config),
        )


# Global instance
chart_selector = ChartSelector()


def select_charts(
    data: Sequence[Mapping[str, Any]],
    columns: Sequence[str],
    file_name: str = "dataset",
) -> list[ChartSpec]:
    """Charts for raw rows and column names."""
    dataset = Dataset.from_records(file_name, list(data), list(columns))
    return chart_selector.select(dataset)
