"""
Test Analysis Engines

Unit tests for statistics, outliers, correlations, quality, distributions
and the orchestrator that combines them.
"""

import numpy as np
import pytest

from analysis.correlations import CorrelationAnalyzer, CorrelationPair, pearson
from analysis.orchestrator import AnalysisOrchestrator
from analysis.outliers import OutlierDetector
from analysis.patterns import DistributionAnalyzer
from analysis.quality import DataQualityScorer
from analysis.statistical import StatisticsEngine, distinct_count, value_frequencies
from core.cells import to_cell
from core.data_profiler import DataProfiler
from core.dataset import Dataset


def cells(values):
    return tuple(to_cell(v) for v in values)


@pytest.fixture
def engine():
    return StatisticsEngine()


@pytest.fixture
def outlier_detector():
    return OutlierDetector()


@pytest.fixture
def correlation_analyzer():
    return CorrelationAnalyzer()


@pytest.fixture
def scorer():
    return DataQualityScorer()


@pytest.fixture
def distribution_analyzer():
    return DistributionAnalyzer()


@pytest.fixture
def orchestrator():
    return AnalysisOrchestrator()


@pytest.fixture
def mixed_dataset():
    rows = [
        {
            "id": i + 1,
            "name": f"Customer {i}",
            "region": ["North", "South", "East"][i % 3],
            "signup_date": f"2024-01-{i + 1:02d}",
            "amount": 100.0 + i * 12.5,
            "visits": (i * 7) % 11,
            "active": "true" if i % 2 else "false",
        }
        for i in range(12)
    ]
    return Dataset.from_records("customers.csv", rows)


class TestStatisticsEngine:
    def test_descriptive_stats(self, engine):
        stats = engine.compute_numeric(np.array([1, 2, 3, 4, 5, 100], dtype=float))

        assert stats.count == 6
        assert stats.min == 1
        assert stats.max == 100
        assert stats.mean == pytest.approx(115 / 6)
        assert stats.q1 == 2
        assert stats.q3 == 5

    def test_median_takes_upper_middle_for_even_count(self, engine):
        stats = engine.compute_numeric(np.array([1, 2, 3, 4], dtype=float))

        assert stats.median == 3

    def test_population_std_dev(self, engine):
        stats = engine.compute_numeric(np.array([2, 4, 4, 4, 5, 5, 7, 9], dtype=float))

        assert stats.std_dev == pytest.approx(2.0)

    def test_all_equal_values(self, engine):
        stats = engine.compute_numeric(np.array([0.1, 0.1, 0.1]))

        assert stats.std_dev == 0
        assert stats.skewness is None
        assert stats.min <= stats.mean <= stats.max
        assert stats.distribution == "normal"

    def test_right_skew(self, engine):
        stats = engine.compute_numeric(np.array([1, 1, 1, 1, 10], dtype=float))

        assert stats.skewness == pytest.approx(1.5)
        assert stats.distribution == "right_skewed"

    def test_left_skew(self, engine):
        stats = engine.compute_numeric(np.array([10, 10, 10, 10, 1], dtype=float))

        assert stats.distribution == "left_skewed"

    def test_no_values(self, engine):
        assert engine.compute_numeric(np.array([])) is None

    def test_ordering_holds_for_random_columns(self, engine):
        rng = np.random.default_rng(42)
        for _ in range(20):
            values = rng.normal(50, 20, rng.integers(1, 200))
            stats = engine.compute_numeric(values)

            assert stats.min <= stats.median <= stats.max
            assert stats.min <= stats.mean <= stats.max

    def test_column_mode_and_counts(self, engine):
        stats = engine.compute_column("source", cells(["web", "ads", "web", None]), numeric=False)

        assert stats.mode == "web"
        assert stats.null_count == 1
        assert stats.unique_count == 2
        assert stats.numeric is None

    def test_mode_tie_keeps_first_seen(self, engine):
        stats = engine.compute_column("c", cells(["x", "y"]), numeric=False)

        assert stats.mode == "x"

    def test_numeric_column_without_numbers(self, engine):
        stats = engine.compute_column("c", cells([None, None]), numeric=True)

        assert stats.numeric is None
        assert stats.null_count == 2

    def test_summary_statistics(self, engine):
        stats = engine.from_summary(count=10, low=1.0, high=9.0, mean=4.0, median=5.0)

        assert stats.mean == 4.0
        assert stats.std_dev is None
        assert stats.q1 is None

    def test_summary_statistics_with_spread(self, engine):
        stats = engine.from_summary(
            count=10, low=1.0, high=9.0, mean=4.0, median=5.0,
            std_dev=2.5, skewness=0.8, q1=2.0, q3=7.0,
        )

        assert stats.std_dev == 2.5
        assert stats.skewness == 0.8
        assert stats.distribution == "right_skewed"
        assert (stats.q1, stats.q3) == (2.0, 7.0)

    def test_summary_quartiles_clamped_to_range(self, engine):
        stats = engine.from_summary(
            count=4, low=1.0, high=9.0, mean=4.0, median=5.0, q1=0.5, q3=9.5,
        )

        assert (stats.q1, stats.q3) == (1.0, 9.0)

    def test_value_frequencies_order(self):
        frequencies = value_frequencies(["b", "a", "b", "a", "c"])

        assert frequencies == [("b", 2), ("a", 2), ("c", 1)]
        assert value_frequencies([]) == []

    def test_distinct_count(self):
        assert distinct_count(["x", "y", "x"]) == 2
        assert distinct_count([]) == 0

    def test_summary_without_range(self, engine):
        assert engine.from_summary(count=10, low=None, high=None, mean=None, median=None) is None


class TestOutlierDetector:
    def test_single_outlier(self, outlier_detector):
        result = outlier_detector.detect(np.array([1, 2, 3, 4, 5, 100], dtype=float), "v")

        assert result.count == 1
        assert result.max_outlier == 100
        assert result.min_outlier == 100
        assert result.lower_bound == pytest.approx(-2.5)
        assert result.upper_bound == pytest.approx(9.5)
        assert result.percentage == pytest.approx(100 / 6)

    def test_all_equal_has_no_outliers(self, outlier_detector):
        result = outlier_detector.detect(np.full(10, 5.0))

        assert result.count == 0
        assert result.min_outlier is None

    def test_too_few_values(self, outlier_detector):
        result = outlier_detector.detect(np.array([1.0, 2.0, 100.0]))

        assert result.count == 0
        assert result.lower_bound is None
        assert result.total_count == 3

    def test_custom_multiplier(self, outlier_detector):
        values = np.array([1, 2, 3, 4, 5, 12], dtype=float)

        assert outlier_detector.detect(values).count == 1
        assert outlier_detector.detect(values, multiplier=3.0).count == 0


class TestCorrelationAnalyzer:
    def test_identical_columns(self, correlation_analyzer):
        column = cells([1, 2, 3, 4, 5])

        pair = correlation_analyzer.compute_correlation_pair("a", column, "b", column)

        assert pair.pearson == pytest.approx(1.0)
        assert pair.strength == "strong"
        assert pair.direction == "positive"

    def test_constant_column(self, correlation_analyzer):
        pair = correlation_analyzer.compute_correlation_pair(
            "a", cells([1, 2, 3, 4]), "b", cells([3, 3, 3, 3])
        )

        assert pair.pearson == 0
        assert pair.direction == "none"

    def test_constant_fractional_column(self, correlation_analyzer):
        x = np.arange(1, 8, dtype=float)

        assert pearson(x, np.full(7, 0.1)) == 0.0
        assert pearson(np.full(7, 1.1), x) == 0.0

        pair = correlation_analyzer.compute_correlation_pair(
            "a", cells(list(range(1, 8))), "b", cells([0.1] * 7)
        )
        assert pair.pearson == 0
        assert pair.strength == "negligible"

    def test_missing_values_dropped_per_pair(self, correlation_analyzer):
        pair = correlation_analyzer.compute_correlation_pair(
            "a", cells([1, 2, None, 4]), "b", cells([2, 4, 6, 8])
        )

        assert pair.sample_size == 3
        assert pair.pearson == pytest.approx(1.0)

    def test_negative_correlation(self):
        r = pearson(np.array([1.0, 2.0, 3.0]), np.array([3.0, 2.0, 1.0]))

        assert r == pytest.approx(-1.0)

    def test_empty_input(self):
        assert pearson(np.array([]), np.array([])) == 0.0

    def test_ranking_is_capped(self, correlation_analyzer):
        by_column = {
            "a": cells([1, 2, 3, 4, 5]),
            "b": cells([2, 1, 4, 3, 5]),
            "c": cells([5, 4, 3, 2, 1]),
            "d": cells([1, 3, 2, 5, 4]),
        }

        pairs = correlation_analyzer.rank_correlations(by_column, ["a", "b", "c", "d"])

        assert len(pairs) == 3
        assert all("d" not in (p.column1, p.column2) for p in pairs)
        strengths = [abs(p.pearson) for p in pairs]
        assert strengths == sorted(strengths, reverse=True)
        assert pairs[0].pearson == pytest.approx(-1.0)

    def test_strength_words(self):
        assert CorrelationPair("a", "b", 0.75, 10).strength == "strong"
        assert CorrelationPair("a", "b", -0.5, 10).strength == "moderate"
        assert CorrelationPair("a", "b", 0.25, 10).strength == "weak"
        assert CorrelationPair("a", "b", 0.1, 10).strength == "negligible"


class TestDataQualityScorer:
    def test_complete_unique_column(self, scorer):
        quality = scorer.score_column("id", cells([1, 2, 3, 4]))

        assert quality.completeness == 100
        assert quality.uniqueness == 100
        assert not quality.has_issues

    def test_single_value_column(self, scorer):
        quality = scorer.score_column("flag", cells(["y", "y", "y"]))

        assert quality.unique_count == 1
        assert quality.has_issues

    def test_incomplete_column(self, scorer):
        quality = scorer.score_column("email", cells(["a", "b", "c", "d", None]))

        assert quality.completeness == pytest.approx(80.0)
        assert quality.missing_percentage == pytest.approx(20.0)
        assert quality.has_issues

    def test_empty_column(self, scorer):
        quality = scorer.score_column("blank", cells([None, None]))

        assert quality.completeness == 0
        assert quality.uniqueness == 0

    def test_overall_score(self, scorer):
        full = scorer.score_column("a", cells([1, 2, 3, 4]))
        half = scorer.score_column("b", cells([1, 2, None, None]))

        # (100 + 0.7 * 50 + 0.3 * 100) / 2 = 82.5
        assert scorer.overall_score([full]) == 100
        assert scorer.overall_score([full, half]) == 83
        assert scorer.overall_score([]) == 0

    def test_columns_with_missing_data(self, scorer):
        qualities = [
            scorer.score_column("full", cells([1, 2, 3, 4, 5, 6, 7, 8, 9, 10])),
            scorer.score_column("sparse", cells([1, 2, None, 4, 5, 6, 7, 8, 9, 10])),
            scorer.score_column("gappy", cells([1, None, None, 4, 5, 6, 7, 8, 9, 10])),
        ]

        assert scorer.columns_with_missing_data(qualities) == ["gappy"]

    def test_duplicates(self, scorer):
        report = scorer.detect_duplicates({"a": cells([1, 1, 2])})

        assert report.count == 1
        assert report.percentage == pytest.approx(100 / 3)

    def test_duplicates_across_columns(self, scorer):
        report = scorer.detect_duplicates({
            "a": cells([1, 1, 1, None, None]),
            "b": cells(["x", "x", "y", None, None]),
        })

        assert report.count == 2
        assert report.percentage == pytest.approx(40.0)

    def test_duplicates_empty(self, scorer):
        assert scorer.detect_duplicates({}).count == 0

    def test_type_consistency(self, scorer):
        score = scorer.type_consistency({
            "uniform": cells([1, 2, None]),
            "mixed": cells([1, "x"]),
        })

        assert score == pytest.approx(87.5)


class TestDistributionAnalyzer:
    def test_categorical_distribution(self, distribution_analyzer):
        dist = distribution_analyzer.categorical_distribution("c", cells(["a", "b", "a", None]))

        assert dist.total == 4
        assert dist.dominant.value == "a"
        assert dist.dominant.percentage == pytest.approx(50.0)
        assert {s.value for s in dist.shares} == {"a", "b", "Unknown"}

    def test_distribution_without_nulls(self, distribution_analyzer):
        dist = distribution_analyzer.categorical_distribution(
            "c", cells(["a", "b", "a", None]), include_nulls=False
        )

        assert dist.total == 3
        assert dist.distinct_count == 2

    def test_day_of_week_peak(self, distribution_analyzer):
        # Two Mondays and a Wednesday
        pattern = distribution_analyzer.temporal_pattern(
            "created", cells(["2024-01-01", "2024-01-08", "2024-01-03", None])
        )

        assert pattern.peak_day == "Monday"
        assert pattern.valid_dates == 3
        assert pattern.describe() == "Peak activity on Monday (67%)"

    def test_day_of_week_tie_goes_to_earlier_day(self, distribution_analyzer):
        # Wednesday seen first, one Monday and one Wednesday
        pattern = distribution_analyzer.temporal_pattern(
            "created", cells(["2024-01-03", "2024-01-01"])
        )

        assert pattern.peak_day == "Monday"

    def test_no_dates(self, distribution_analyzer):
        pattern = distribution_analyzer.temporal_pattern("created", cells(["soon", None]))

        assert pattern.peak_day is None
        assert pattern.describe() == "No valid dates found"


class TestAnalysisOrchestrator:
    def test_columns_are_partitioned(self, orchestrator, mixed_dataset):
        result = orchestrator.build(mixed_dataset)

        groups = [result.numeric_columns, result.text_columns, result.date_columns]
        flattened = [column for group in groups for column in group]
        assert sorted(flattened) == sorted(mixed_dataset.columns)
        assert len(flattened) == len(set(flattened))

    def test_column_classification(self, orchestrator, mixed_dataset):
        result = orchestrator.build(mixed_dataset)

        assert result.numeric_columns == ["id", "amount", "visits"]
        assert result.date_columns == ["signup_date"]
        assert "active" in result.text_columns
        assert result.profiles["id"].domain_role.value == "identifier"

    def test_analysis_contents(self, orchestrator, mixed_dataset):
        result = orchestrator.build(mixed_dataset)

        assert len(result.correlations) == 3
        assert set(result.outliers) == {"id", "amount", "visits"}
        assert result.distributions["region"].distinct_count == 3
        assert "signup_date" in result.temporal_patterns
        assert result.sample_values["name"][:2] == ["Customer 0", "Customer 1"]
        assert 0 <= result.quality_score <= 100
        assert result.duplicate_rows == 0

    def test_metadata_path_matches_raw_path(self, orchestrator, mixed_dataset):
        with_metadata = mixed_dataset.with_metadata(DataProfiler().build_metadata(mixed_dataset))

        raw = orchestrator.build(mixed_dataset)
        cached = orchestrator.build(with_metadata)

        assert cached.from_metadata
        assert cached.numeric_columns == raw.numeric_columns
        assert cached.text_columns == raw.text_columns
        assert cached.date_columns == raw.date_columns
        assert cached.quality_score == raw.quality_score
        assert cached.numeric_stats("amount").mean == pytest.approx(raw.numeric_stats("amount").mean)
        assert cached.numeric_stats("amount").std_dev == pytest.approx(raw.numeric_stats("amount").std_dev)
        assert cached.numeric_stats("visits").skewness == pytest.approx(raw.numeric_stats("visits").skewness)
        assert cached.numeric_stats("amount").q3 == pytest.approx(raw.numeric_stats("amount").q3)

    def test_partial_metadata_falls_back_to_inference(self, orchestrator, mixed_dataset):
        metadata = DataProfiler().build_metadata(mixed_dataset)
        partial = type(metadata)(
            data_types={"amount": "number"},
            statistics={"amount": metadata.statistics["amount"]},
        )

        result = orchestrator.build(mixed_dataset.with_metadata(partial))

        assert result.numeric_columns == ["id", "amount", "visits"]
        assert result.date_columns == ["signup_date"]

    def test_empty_column_is_text(self, orchestrator):
        dataset = Dataset.from_records("x.csv", [{"a": None, "b": 1}, {"a": None, "b": 2}])

        result = orchestrator.build(dataset)

        assert result.text_columns == ["a"]
        assert result.statistics["a"].null_count == 2
