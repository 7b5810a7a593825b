"""
Narrative Generator

Turns a free-text question about a dataset into a spoken-style answer.

The question is routed to one intent (deep dive, top performers, patterns,
problems, summary, structure) and the matching template is filled from an
AnalysisResult. No model is involved: the same question over the same data
always produces the same sentence. Number formatting lives in one place so
every template rounds the same way.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Union

from analysis.orchestrator import AnalysisResult, analysis_orchestrator
from config import get_settings
from core.dataset import Dataset
from core.data_understanding import DomainLabel
from core.logging_config import narration_logger as logger


class Intent(str, Enum):
    """What the user is asking about."""

    DEEP = "deep"
    TOP_PERFORMERS = "top_performers"
    PATTERN = "pattern"
    PROBLEM = "problem"
    SUMMARY = "summary"
    STRUCTURE = "structure"


# Checked in order; the first intent with a matching keyword wins
INTENT_KEYWORDS: tuple[tuple[Intent, tuple[str, ...]], ...] = (
    (Intent.DEEP, ("deep", "detailed", "comprehensive")),
    (Intent.TOP_PERFORMERS, ("top", "best", "highest")),
    (Intent.PATTERN, ("pattern", "trend", "correlation")),
    (Intent.PROBLEM, ("problem", "issue", "concern", "quality")),
    (Intent.SUMMARY, ("summary", "overview", "insights")),
    (Intent.STRUCTURE, ("column", "field", "data type")),
)

# Share of the way from average to maximum that counts as excellent
EXCELLENT_FRACTION = 0.7

# Below this share of unique values a metric looks like a fixed scale
STANDARDIZED_UNIQUE_RATIO = 0.8

LOW_VALUE_RATIO = 0.3
HIGH_VALUE_RATIO = 3.0

MAX_LISTED_ISSUES = 3

SHAPE_WORDS = {
    "right_skewed": "right-skewed",
    "left_skewed": "left-skewed",
    "normal": "roughly symmetric",
}


FALLBACK_TEMPLATE = (
    "I'm analyzing your {file_name} with {row_count} rows. Let me process this "
    "data and provide insights based on your query: \"{query}\"."
)

DEEP_TEMPLATE = (
    "Deep analysis of {file_name} with {row_count} records reveals: {findings}. "
    "I can dive deeper into statistical distributions, outlier detection, or "
    "correlation analysis. What specific area interests you?"
)

TOP_TEMPLATE = (
    "Top performers in {file_name} based on {metric}: Excellent performers score "
    "above {threshold} (average is {average}, maximum is {maximum}). {standardized}"
    "Would you like me to identify specific top performers or analyze what "
    "factors contribute to high performance?"
)

TOP_STANDARDIZED_TEMPLATE = (
    "I notice {metric} has {unique_count} unique values, suggesting some "
    "standardized scoring. "
)

TOP_NO_STATS_TEMPLATE = (
    "Analyzing top performers in your {file_name} across {metric_count} metrics. "
    "Which specific performance indicator should I focus on: {metrics}?"
)

TOP_NO_NUMERIC_TEMPLATE = (
    "Your {file_name} doesn't have numeric performance metrics. I can analyze "
    "categorical patterns or text-based insights instead. Available dimensions: "
    "{dimensions}. What would you like to explore?"
)

PATTERN_TEMPLATE = (
    "Pattern analysis of {file_name}: {patterns}. I can explore seasonal trends, "
    "performance correlations, or categorical clustering. Which pattern would "
    "you like me to investigate further?"
)

PATTERN_NONE_TEMPLATE = (
    "Analyzing patterns in {file_name} with {row_count} records. I can identify "
    "trends, correlations, and behavioral patterns across {numeric_count} numeric "
    "and {text_count} categorical dimensions. What specific pattern are you "
    "looking for?"
)

PROBLEM_TEMPLATE = (
    "Problem analysis of {file_name} identified: {issues}. I can provide specific "
    "recommendations for addressing these issues. Which problem should we tackle "
    "first?"
)

PROBLEM_NONE_TEMPLATE = (
    "Problem analysis of {file_name}: No major data quality or performance issues "
    "detected. Overall data quality score: {quality_score} out of 100. The dataset "
    "appears healthy with {row_count} records. Would you like me to look for "
    "subtle patterns or potential improvement areas?"
)

SUMMARY_TEMPLATE = (
    "Analysis summary of {file_name}: {items}.{domain_insight} I can provide "
    "deeper insights on performance trends, outlier detection, correlation "
    "analysis, or predictive patterns. What would you like to explore?"
)

STRUCTURE_TEMPLATE = (
    "Data structure of {file_name}: {sections}. Each column has been analyzed "
    "for data type, completeness, and statistical properties. Which specific "
    "column would you like me to examine in detail?"
)

DOMAIN_INSIGHTS = {
    DomainLabel.LEAD_MANAGEMENT: (
        "Lead pipeline analysis shows conversion opportunities, source performance "
        "tracking available, and qualification status distribution ready for review."
    ),
    DomainLabel.SALES: (
        "Revenue analysis available, product performance metrics ready, and "
        "customer segmentation patterns identified."
    ),
    DomainLabel.ACADEMIC: (
        "Academic performance analysis available, grade distribution patterns "
        "identified, and improvement opportunities detected."
    ),
    DomainLabel.HR: (
        "Workforce analysis available, with department and compensation "
        "breakdowns ready for review."
    ),
    DomainLabel.FINANCIAL: (
        "Spending and profitability analysis available, with cost drivers ready "
        "for review."
    ),
    DomainLabel.CONTACT_CRM: (
        "Contact records are ready for completeness checks and segmentation."
    ),
    DomainLabel.ANALYTICS: (
        "Metric-heavy dataset, well suited to correlation and trend analysis."
    ),
    DomainLabel.BUSINESS: (
        "General business data, ready for categorical and metric breakdowns."
    ),
}


# Formatting

def format_measure(value: float) -> str:
    """Means, standard deviations, thresholds, extremes."""
    return f"{value:.2f}"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_names(names: Sequence[str], limit: Optional[int] = None) -> str:
    if limit is not None:
        names = names[:limit]
    return ", ".join(names)


def classify_intent(query: str) -> Intent:
    """Intent of a query; SUMMARY when no keyword matches."""
    lowered = (query or "").lower()
    for intent, keywords in INTENT_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return intent
    return Intent.SUMMARY


@dataclass
class Narration:
    """A rendered answer and how it was produced."""

    text: str
    intent: Optional[Intent]
    domain: Optional[DomainLabel] = None
    fallback: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "intent": self.intent.value if self.intent else None,
            "domain": self.domain.value if self.domain else None,
            "fallback": self.fallback,
        }


class InsightNarrator:
    """
    Deterministic template engine over AnalysisResult.

    ``narrate`` never raises: malformed input and unexpected failures both
    produce the generic processing sentence.
    """

    def __init__(self):
        self.settings = get_settings()
        self.renderers = {
            Intent.DEEP: self.render_deep,
            Intent.TOP_PERFORMERS: self.render_top_performers,
            Intent.PATTERN: self.render_patterns,
            Intent.PROBLEM: self.render_problems,
            Intent.SUMMARY: self.render_summary,
            Intent.STRUCTURE: self.render_structure,
        }

    def narrate(
        self,
        query: str,
        dataset: Union[Dataset, Mapping[str, Any]],
    ) -> Narration:
        try:
            if not isinstance(dataset, Dataset):
                dataset = Dataset.from_payload(dataset)

            if not (query or "").strip() or not dataset.columns or not dataset.rows:
                logger.debug("Malformed query or empty dataset, using fallback")
                return Narration(
                    text=self.fallback_text(query, dataset),
                    intent=None,
                    fallback=True,
                )

            intent = classify_intent(query)
            analysis = analysis_orchestrator.build(dataset)
            text = self.renderers[intent](analysis, dataset)

            logger.info(f"Narrated {intent.value} for {dataset.file_name}")
            return Narration(text=text, intent=intent, domain=analysis.domain)

        except Exception as e:
            logger.exception(f"Narration failed: {e}")
            return Narration(
                text=self.fallback_text(query, dataset),
                intent=None,
                fallback=True,
            )

    def analyze(self, query: str, dataset: Union[Dataset, Mapping[str, Any]]) -> str:
        return self.narrate(query, dataset).text

    def fallback_text(self, query: Optional[str], dataset: Any) -> str:
        file_name, row_count = "dataset", 0
        if isinstance(dataset, Dataset):
            file_name, row_count = dataset.file_name, dataset.row_count
        elif isinstance(dataset, Mapping):
            file_name = str(dataset.get("fileName") or "dataset")
            rows = dataset.get("data")
            if isinstance(rows, (list, tuple)):
                row_count = len(rows)
            stated = dataset.get("rowCount")
            if isinstance(stated, int) and not isinstance(stated, bool):
                row_count = stated

        return FALLBACK_TEMPLATE.format(
            file_name=file_name,
            row_count=row_count,
            query=query if isinstance(query, str) else "",
        )

    # Renderers

    def render_deep(self, analysis: AnalysisResult, dataset: Dataset) -> str:
        findings = []

        if len(analysis.sheet_names) > 1:
            findings.append(
                f"Workbook contains {len(analysis.sheet_names)} sheets, analyzing the primary sheet"
            )

        metric = analysis.primary_metric
        stats = analysis.numeric_stats(metric) if metric else None
        if stats is not None:
            findings.append(
                f"{metric} ranges from {format_measure(stats.min)} to "
                f"{format_measure(stats.max)} with average {format_measure(stats.mean)}"
            )
            if stats.std_dev is not None:
                findings.append(f"Standard deviation of {metric} is {format_measure(stats.std_dev)}")
            findings.append(
                f"Median {metric} is {format_measure(stats.median)}, indicating "
                f"a {SHAPE_WORDS[self._shape(stats)]} distribution"
            )

            outliers = analysis.outliers.get(metric)
            if outliers is not None and outliers.count > 0:
                findings.append(
                    f"{outliers.count} outliers in {metric} "
                    f"({format_percent(outliers.percentage)} of values)"
                )

        correlation = self._strongest_correlation(analysis)
        if correlation is not None:
            findings.append(self._correlation_phrase(correlation))

        if analysis.text_columns:
            findings.append(
                f"Found {len(analysis.text_columns)} categorical dimensions: "
                f"{format_names(analysis.text_columns, 3)}"
            )

        if analysis.date_columns:
            findings.append(
                f"Detected {len(analysis.date_columns)} date columns for time-series analysis"
            )

        issue_columns = [q for q in analysis.data_quality.values() if q.has_issues]
        if issue_columns:
            findings.append(f"Data quality concerns in {len(issue_columns)} columns")
        else:
            findings.append("Excellent data quality across all columns")

        return DEEP_TEMPLATE.format(
            file_name=analysis.file_name,
            row_count=analysis.row_count,
            findings=". ".join(findings),
        )

    def render_top_performers(self, analysis: AnalysisResult, dataset: Dataset) -> str:
        if not analysis.numeric_columns:
            dimensions = analysis.text_columns or analysis.date_columns
            return TOP_NO_NUMERIC_TEMPLATE.format(
                file_name=analysis.file_name,
                dimensions=format_names(dimensions, 3),
            )

        metric = analysis.primary_metric
        stats = analysis.numeric_stats(metric)
        if stats is None:
            return TOP_NO_STATS_TEMPLATE.format(
                file_name=analysis.file_name,
                metric_count=len(analysis.numeric_columns),
                metrics=format_names(analysis.numeric_columns, 3),
            )

        threshold = stats.mean + (stats.max - stats.mean) * EXCELLENT_FRACTION

        standardized = ""
        unique_count = analysis.statistics[metric].unique_count
        if 0 < unique_count < analysis.row_count * STANDARDIZED_UNIQUE_RATIO:
            standardized = TOP_STANDARDIZED_TEMPLATE.format(
                metric=metric,
                unique_count=unique_count,
            )

        return TOP_TEMPLATE.format(
            file_name=analysis.file_name,
            metric=metric,
            threshold=format_measure(threshold),
            average=format_measure(stats.mean),
            maximum=format_measure(stats.max),
            standardized=standardized,
        )

    def render_patterns(self, analysis: AnalysisResult, dataset: Dataset) -> str:
        patterns = []

        correlation = self._strongest_correlation(analysis)
        if correlation is not None:
            patterns.append(self._correlation_phrase(correlation))

        if analysis.text_columns and analysis.numeric_columns:
            category = analysis.text_columns[0]
            patterns.append(
                f"Categorical patterns found in {category} affecting {analysis.numeric_columns[0]}"
            )
            distribution = analysis.distributions.get(category)
            if distribution is not None and distribution.distinct_count > 1:
                dominant = distribution.dominant
                patterns.append(
                    f"Most common {category} is {dominant.value} "
                    f"({format_percent(dominant.percentage)})"
                )

        if analysis.date_columns:
            date_column = analysis.date_columns[0]
            patterns.append(f"Time-based trends available through {date_column}")
            temporal = analysis.temporal_patterns.get(date_column)
            if temporal is not None:
                patterns.append(
                    f"Peak activity on {temporal.peak_day} "
                    f"({format_percent(temporal.peak_percentage)})"
                )

        metric = analysis.primary_metric
        stats = analysis.numeric_stats(metric) if metric else None
        if stats is not None:
            shape = self._shape(stats)
            if shape != "normal":
                patterns.append(f"Significant {SHAPE_WORDS[shape]} distribution in {metric}")

        if not patterns:
            return PATTERN_NONE_TEMPLATE.format(
                file_name=analysis.file_name,
                row_count=analysis.row_count,
                numeric_count=len(analysis.numeric_columns),
                text_count=len(analysis.text_columns),
            )

        return PATTERN_TEMPLATE.format(
            file_name=analysis.file_name,
            patterns=". ".join(patterns),
        )

    def render_problems(self, analysis: AnalysisResult, dataset: Dataset) -> str:
        threshold = self.settings.analysis.quality_completeness_threshold
        issues = []

        for column, quality in analysis.data_quality.items():
            if not quality.has_issues:
                continue
            if quality.completeness < threshold:
                issues.append(
                    f"{column} has {format_percent(quality.missing_percentage)} missing data"
                )
            if quality.unique_count == 1:
                issues.append(f"{column} contains only one unique value")

        for column in analysis.numeric_columns:
            stats = analysis.numeric_stats(column)
            if stats is None or stats.mean <= 0:
                continue
            if stats.min < stats.mean * LOW_VALUE_RATIO:
                issues.append(
                    f"{column} has concerning low values (minimum: {format_measure(stats.min)})"
                )
            if stats.max > stats.mean * HIGH_VALUE_RATIO:
                issues.append(
                    f"{column} has potential outliers (maximum: {format_measure(stats.max)} "
                    f"vs average: {format_measure(stats.mean)})"
                )

        if analysis.duplicate_rows > 0:
            share = analysis.duplicate_rows / analysis.row_count * 100
            issues.append(
                f"{analysis.duplicate_rows} duplicate rows ({format_percent(share)})"
            )

        if analysis.type_consistency < 100:
            issues.append(
                f"mixed value types lower type consistency to "
                f"{format_percent(analysis.type_consistency)}"
            )

        if not issues:
            return PROBLEM_NONE_TEMPLATE.format(
                file_name=analysis.file_name,
                quality_score=analysis.quality_score,
                row_count=analysis.row_count,
            )

        listed = issues[:MAX_LISTED_ISSUES]
        if len(issues) > MAX_LISTED_ISSUES:
            listed.append(f"and {len(issues) - MAX_LISTED_ISSUES} more")

        return PROBLEM_TEMPLATE.format(
            file_name=analysis.file_name,
            issues=", ".join(listed),
        )

    def render_summary(self, analysis: AnalysisResult, dataset: Dataset) -> str:
        items = [
            f"{analysis.row_count} records with {len(analysis.numeric_columns)} numeric "
            f"and {len(analysis.text_columns)} categorical columns"
        ]

        if analysis.date_columns:
            items.append(f"{len(analysis.date_columns)} date columns for temporal analysis")

        metric = analysis.primary_metric
        stats = analysis.numeric_stats(metric) if metric else None
        if stats is not None:
            items.append(f"Primary metric {metric} averages {format_measure(stats.mean)}")

        items.append(f"Data quality score: {analysis.quality_score} out of 100")

        if len(analysis.sheet_names) > 1:
            items.append(f"Workbook with {len(analysis.sheet_names)} sheets")

        return SUMMARY_TEMPLATE.format(
            file_name=analysis.file_name,
            items=", ".join(items),
            domain_insight=f" Key insights: {DOMAIN_INSIGHTS[analysis.domain]}",
        )

    def render_structure(self, analysis: AnalysisResult, dataset: Dataset) -> str:
        sections = []

        if analysis.numeric_columns:
            sections.append(
                f"Numeric columns ({len(analysis.numeric_columns)}): "
                f"{format_names(analysis.numeric_columns, 4)}"
            )
        if analysis.text_columns:
            sections.append(
                f"Text columns ({len(analysis.text_columns)}): "
                f"{format_names(analysis.text_columns, 4)}"
            )
        if analysis.date_columns:
            sections.append(
                f"Date columns ({len(analysis.date_columns)}): "
                f"{format_names(analysis.date_columns, 4)}"
            )

        sample_column = analysis.primary_metric or (
            analysis.text_columns[0] if analysis.text_columns else None
        )
        samples = analysis.sample_values.get(sample_column) if sample_column else None
        if samples:
            sections.append(f"Sample {sample_column} values: {format_names(samples, 3)}")

        return STRUCTURE_TEMPLATE.format(
            file_name=analysis.file_name,
            sections=". ".join(sections),
        )

    # Helpers

    @staticmethod
    def _shape(stats) -> str:
        """Skew from the skewness coefficient, or mean vs median without one."""
        if stats.skewness is not None:
            return stats.distribution
        if stats.mean > stats.median:
            return "right_skewed"
        if stats.mean < stats.median:
            return "left_skewed"
        return "normal"

    @staticmethod
    def _strongest_correlation(analysis: AnalysisResult):
        if analysis.correlations and analysis.correlations[0].strength != "negligible":
            return analysis.correlations[0]
        return None

    @staticmethod
    def _correlation_phrase(pair) -> str:
        return (
            f"{pair.strength.capitalize()} {pair.direction} correlation between "
            f"{pair.column1} and {pair.column2} (r = {format_measure(pair.pearson)})"
        )


# Global instance
insight_narrator = InsightNarrator()


def analyze(query: str, dataset: Union[Dataset, Mapping[str, Any]]) -> str:
    """Narrate an answer to ``query`` over ``dataset``. Never raises."""
    return insight_narrator.analyze(query, dataset)
