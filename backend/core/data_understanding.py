"""
Data Understanding Layer

Works out what a dataset's columns mean before any statistics run:
- Which columns are numeric, dates, booleans or free text
- Which role a column plays (identifier, geography, currency, score, category)
- Which business domain the dataset belongs to (leads, sales, academic, ...)

Roles and domains are read from column names only. The keyword tables are
immutable and handed to the classifiers, so alternative vocabularies can be
injected without touching module state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from config import get_settings
from core.cells import Cell, CellKind, parse_date
from core.logging_config import data_logger


class ColumnType(str, Enum):
    """Inferred column data types."""

    NUMERIC = "numeric"
    TEXT = "text"
    DATE = "date"
    BOOLEAN = "boolean"
    MIXED = "mixed"


class DomainRole(str, Enum):
    """Semantic roles a column can play."""

    IDENTIFIER = "identifier"
    GEO = "geo"
    CURRENCY = "currency"
    SCORE = "score"
    CATEGORY = "category"


class DomainLabel(str, Enum):
    """Business domain of a dataset. Only used to pick narration phrasing."""

    LEAD_MANAGEMENT = "lead_management"
    SALES = "sales"
    ACADEMIC = "academic"
    HR = "hr"
    FINANCIAL = "financial"
    CONTACT_CRM = "contact_crm"
    ANALYTICS = "analytics"
    BUSINESS = "business"


DATE_KEYWORDS = ("date", "time", "created", "updated")

# Checked in order; the first role with a matching keyword wins
ROLE_KEYWORDS: tuple[tuple[DomainRole, tuple[str, ...]], ...] = (
    (DomainRole.IDENTIFIER, ("_id", "id_", "uuid", "guid", "identifier", "serial")),
    (DomainRole.GEO, ("city", "state", "country", "region", "location")),
    (DomainRole.CURRENCY, (
        "price", "amount", "revenue", "cost", "salary", "budget", "expense",
        "profit", "income", "fee", "sales",
    )),
    (DomainRole.SCORE, ("score", "rating", "priority", "grade", "marks", "value")),
    (DomainRole.CATEGORY, (
        "type", "category", "class", "group", "segment", "status", "stage",
        "source", "channel", "department",
    )),
)

# Iteration order is the tie-break order
DOMAIN_KEYWORDS: tuple[tuple[DomainLabel, tuple[str, ...]], ...] = (
    (DomainLabel.LEAD_MANAGEMENT, (
        "lead", "prospect", "contact", "deal", "stage", "source", "owner",
        "company", "qualification",
    )),
    (DomainLabel.SALES, (
        "revenue", "price", "amount", "sales", "product", "order", "customer",
        "purchase",
    )),
    (DomainLabel.ACADEMIC, (
        "student", "grade", "marks", "score", "exam", "subject", "class",
        "academic",
    )),
    (DomainLabel.HR, (
        "employee", "staff", "department", "salary", "hire", "performance",
        "manager",
    )),
    (DomainLabel.FINANCIAL, (
        "budget", "expense", "cost", "profit", "financial", "accounting",
        "invoice",
    )),
)

EMAIL_KEYWORDS = ("email", "mail")
PHONE_KEYWORDS = ("phone", "tel")
NAME_KEYWORDS = ("name", "first", "last")

# File-name hints consulted only when column names carry no domain signal
FILE_NAME_KEYWORDS: tuple[tuple[DomainLabel, tuple[str, ...]], ...] = (
    (DomainLabel.LEAD_MANAGEMENT, ("lead", "prospect")),
    (DomainLabel.SALES, ("sales", "revenue")),
    (DomainLabel.ACADEMIC, ("student", "grade", "exam")),
    (DomainLabel.HR, ("employee", "staff", "hr_")),
    (DomainLabel.FINANCIAL, ("finance", "budget", "expense", "invoice")),
)


@dataclass(frozen=True)
class KeywordTables:
    """Keyword vocabulary used by the column and domain classifiers."""

    date_keywords: tuple[str, ...] = DATE_KEYWORDS
    role_keywords: tuple[tuple[DomainRole, tuple[str, ...]], ...] = ROLE_KEYWORDS
    domain_keywords: tuple[tuple[DomainLabel, tuple[str, ...]], ...] = DOMAIN_KEYWORDS
    email_keywords: tuple[str, ...] = EMAIL_KEYWORDS
    phone_keywords: tuple[str, ...] = PHONE_KEYWORDS
    name_keywords: tuple[str, ...] = NAME_KEYWORDS
    file_name_keywords: tuple[tuple[DomainLabel, tuple[str, ...]], ...] = FILE_NAME_KEYWORDS


DEFAULT_KEYWORDS = KeywordTables()


def name_matches(name: str, keywords: Sequence[str]) -> bool:
    """Case-insensitive substring match of any keyword in a column name."""
    lowered = name.lower()
    return any(keyword in lowered for keyword in keywords)


def find_column(columns: Sequence[str], keywords: Sequence[str]) -> Optional[str]:
    """First column whose name contains any of the keywords."""
    for column in columns:
        if name_matches(column, keywords):
            return column
    return None


class ColumnTypeInferer:
    """
    Classifies a column from a small sample of its values.

    A column is numeric when every sampled value is a finite number. It is a
    date only when its name says so (``date``, ``time``, ...) *and* most
    samples parse as dates; the same ISO strings under a neutral name stay
    text.
    """

    def __init__(self, keywords: KeywordTables = DEFAULT_KEYWORDS):
        self.keywords = keywords
        self.settings = get_settings().analysis

    def sample(self, cells: Sequence[Cell]) -> list[Cell]:
        """First non-null cells, up to the configured sample size."""
        samples = []
        for cell in cells:
            if cell.is_null:
                continue
            samples.append(cell)
            if len(samples) >= self.settings.type_sample_size:
                break
        return samples

    def infer(self, name: str, cells: Sequence[Cell]) -> ColumnType:
        samples = self.sample(cells)

        if not samples:
            return ColumnType.TEXT

        if all(cell.kind == CellKind.NUMBER for cell in samples):
            return ColumnType.NUMERIC

        if all(cell.kind == CellKind.BOOL for cell in samples):
            return ColumnType.BOOLEAN

        if self.is_date_name(name):
            parsed = sum(1 for cell in samples if parse_date(cell) is not None)
            if parsed > len(samples) * self.settings.date_majority_ratio:
                return ColumnType.DATE

        return ColumnType.TEXT

    def is_date_name(self, name: str) -> bool:
        return name_matches(name, self.keywords.date_keywords)

    def infer_role(self, name: str) -> Optional[DomainRole]:
        """Role from the column name alone; None when nothing matches."""
        lowered = name.lower()
        if lowered == "id":
            return DomainRole.IDENTIFIER
        for role, keywords in self.keywords.role_keywords:
            if name_matches(lowered, keywords):
                return role
        return None


@dataclass
class DomainScore:
    """Keyword hits for one domain label."""

    label: DomainLabel
    score: int
    matched: list[str] = field(default_factory=list)


class DomainClassifier:
    """
    Scores a dataset against per-domain keyword sets.

    Each keyword counts once if it appears in any column name. The best
    score wins, earlier labels winning ties. With no hits at all the
    dataset's shape decides: contact lists, numeric-heavy analytics data,
    or generic business data.
    """

    def __init__(self, keywords: KeywordTables = DEFAULT_KEYWORDS):
        self.keywords = keywords
        self.settings = get_settings().analysis
        self.logger = data_logger

    def score(self, columns: Sequence[str]) -> list[DomainScore]:
        names = [column.lower() for column in columns]
        scores = []
        for label, keywords in self.keywords.domain_keywords:
            matched = [kw for kw in keywords if any(kw in name for name in names)]
            scores.append(DomainScore(label=label, score=len(matched), matched=matched))
        return scores

    def classify(
        self,
        columns: Sequence[str],
        numeric_columns: Sequence[str] = (),
        file_name: Optional[str] = None,
    ) -> DomainLabel:
        scores = self.score(columns)

        best = scores[0] if scores else None
        for candidate in scores[1:]:
            if candidate.score > best.score:
                best = candidate

        if best is not None and best.score > 0:
            self.logger.debug(f"Domain {best.label.value} matched on {best.matched}")
            return best.label

        if (
            find_column(columns, self.keywords.email_keywords)
            and find_column(columns, self.keywords.phone_keywords)
            and find_column(columns, self.keywords.name_keywords)
        ):
            return DomainLabel.CONTACT_CRM

        if columns and len(numeric_columns) > len(columns) * self.settings.analytics_numeric_ratio:
            return DomainLabel.ANALYTICS

        if file_name:
            for label, keywords in self.keywords.file_name_keywords:
                if name_matches(file_name, keywords):
                    return label

        return DomainLabel.BUSINESS


# Global instances
column_type_inferer = ColumnTypeInferer()
domain_classifier = DomainClassifier()
