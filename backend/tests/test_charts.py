"""
Test Chart Selector

Chart proposals and their image-service URLs.
"""

import json
from urllib.parse import unquote

import pytest

from core.dataset import Dataset
from insights.charts import ChartSelector, chart_image_url, select_charts


@pytest.fixture
def selector():
    return ChartSelector()


@pytest.fixture
def orders_dataset():
    regions = ["North", "South", "East"]
    rows = [
        {
            "product": f"Product {i}",
            "region": regions[i % 3],
            "order_date": f"2024-02-{i + 1:02d}",
            "sales": 100 + i * 10,
        }
        for i in range(25)
    ]
    return Dataset.from_records("orders.csv", rows)


def decode_config(url: str) -> dict:
    encoded = url.split("?c=", 1)[1].split("&width=", 1)[0]
    return json.loads(unquote(encoded))


class TestChartSelector:
    def test_all_three_charts(self, selector, orders_dataset):
        charts = selector.select(orders_dataset)

        assert [c.chart_type for c in charts] == ["bar", "doughnut", "line"]

    def test_top_values_bar(self, selector, orders_dataset):
        bar = selector.select(orders_dataset)[0]

        assert bar.title == "📊 Top 5 by sales"
        assert bar.config["data"]["labels"] == [
            "Product 24", "Product 23", "Product 22", "Product 21", "Product 20",
        ]
        assert bar.config["data"]["datasets"][0]["data"] == [340, 330, 320, 310, 300]

    def test_bar_labels_fall_back_to_positions(self, selector):
        dataset = Dataset.from_records("scores.csv", [{"score": v} for v in [3, 9, 1]])

        bar = selector.select(dataset)[0]

        assert bar.config["data"]["labels"] == ["Item 1", "Item 2", "Item 3"]
        assert bar.config["data"]["datasets"][0]["data"] == [9, 3, 1]

    def test_bar_labels_truncated(self, selector):
        rows = [{"name": "An unusually long product name", "amount": 5}]
        dataset = Dataset.from_records("x.csv", rows)

        bar = selector.select(dataset)[0]

        assert bar.config["data"]["labels"] == ["An unusually lo"]

    def test_doughnut_counts(self, selector, orders_dataset):
        doughnut = selector.select(orders_dataset)[1]

        assert doughnut.title == "🥧 region Distribution"
        assert doughnut.config["data"]["labels"] == ["North", "South", "East"]
        assert doughnut.config["data"]["datasets"][0]["data"] == [9, 8, 8]

    def test_doughnut_needs_few_categories(self, selector):
        many = Dataset.from_records("x.csv", [{"code": f"c{i}"} for i in range(11)])
        single = Dataset.from_records("x.csv", [{"code": "same"} for _ in range(5)])

        assert selector.select(many) == []
        assert selector.select(single) == []

    def test_doughnut_counts_missing_as_unknown(self, selector):
        rows = [{"tier": "gold"}, {"tier": "gold"}, {"tier": "silver"}, {"tier": None}]
        dataset = Dataset.from_records("x.csv", rows)

        doughnut = selector.select(dataset)[0]

        assert doughnut.config["data"]["labels"] == ["gold", "silver", "Unknown"]

    def test_doughnut_slices_capped(self, selector):
        rows = [{"team": f"team{i % 9}"} for i in range(27)]
        dataset = Dataset.from_records("x.csv", rows)

        doughnut = selector.select(dataset)[0]

        assert len(doughnut.config["data"]["labels"]) == 6

    def test_trend_line(self, selector, orders_dataset):
        line = selector.select(orders_dataset)[2]

        labels = line.config["data"]["labels"]
        assert line.title == "📈 sales Trend"
        assert len(labels) == 20
        assert labels[0] == "2/1/2024"
        assert line.config["data"]["datasets"][0]["data"][0] == 100

    def test_trend_sorted_oldest_first(self, selector):
        rows = [
            {"created_date": "2024-03-03", "calls": 3},
            {"created_date": "2024-03-01", "calls": 1},
            {"created_date": "2024-03-02", "calls": 2},
        ]
        dataset = Dataset.from_records("x.csv", rows)

        line = selector.select(dataset)[-1]

        assert line.chart_type == "line"
        assert line.config["data"]["datasets"][0]["data"] == [1, 2, 3]

    def test_trend_needs_more_than_two_points(self, selector):
        rows = [
            {"created_date": "2024-03-01", "calls": 1},
            {"created_date": "2024-03-02", "calls": 2},
        ]
        dataset = Dataset.from_records("x.csv", rows)

        assert [c.chart_type for c in selector.select(dataset)] == ["bar"]

    def test_empty_dataset(self, selector):
        assert selector.select(Dataset.from_records("x.csv", [], columns=["a"])) == []

    def test_huge_integers_are_skipped(self, selector):
        rows = [{"score": v} for v in list(range(12)) + [10**400]]

        charts = select_charts(rows, ["score"], "scores.csv")

        assert charts[0].chart_type == "bar"
        assert charts[0].config["data"]["datasets"][0]["data"] == [11, 10, 9, 8, 7]


class TestChartURL:
    def test_config_round_trips(self, selector, orders_dataset):
        for chart in selector.select(orders_dataset):
            assert decode_config(chart.chart_url) == chart.config

    def test_service_parameters(self):
        url = chart_image_url({"type": "bar"})

        assert url.startswith("https://quickchart.io/chart?c=")
        assert url.endswith("&width=600&height=400&devicePixelRatio=2")

    def test_reserved_characters_encoded(self):
        url = chart_image_url({"labels": ["R&D", "a b"]})

        encoded = url.split("?c=", 1)[1].split("&width=", 1)[0]
        assert "&" not in encoded
        assert " " not in encoded


def test_select_charts_from_rows():
    charts = select_charts([{"score": 1}, {"score": 2}], ["score"], "s.csv")

    assert len(charts) == 1
    assert charts[0].chart_type == "bar"
