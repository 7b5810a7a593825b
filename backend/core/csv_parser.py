"""
CSV Parser

Uses Polars for fast CSV parsing with automatic encoding detection, and
hands the result to the engine as a Dataset with upload metadata attached.
"""

import io
from pathlib import Path
from typing import Optional, Sequence, Union

import chardet
import polars as pl

from core.data_profiler import data_profiler
from core.data_understanding import DATE_KEYWORDS
from core.dataset import Dataset
from core.logging_config import upload_logger as logger


# Bytes sampled for encoding detection
ENCODING_SAMPLE_BYTES = 102400

DATE_FORMATS = [
    "%Y-%m-%dT%H:%M:%S",  # 2024-01-15T10:30:00
    "%Y-%m-%d %H:%M:%S",  # 2024-01-15 10:30:00
    "%Y-%m-%d",           # 2024-01-15
    "%m/%d/%Y",           # 01/15/2024
    "%d/%m/%Y",           # 15/01/2024
    "%Y/%m/%d",           # 2024/01/15
    "%m-%d-%Y",           # 01-15-2024
    "%d-%m-%Y",           # 15-01-2024
    "%B %d, %Y",          # January 15, 2024
    "%b %d, %Y",          # Jan 15, 2024
    "%d %B %Y",           # 15 January 2024
    "%d %b %Y",           # 15 Jan 2024
]


class CSVParser:
    """CSV parser using Polars."""

    def detect_encoding(self, data: bytes) -> str:
        """Detect encoding from the first 100KB using chardet."""
        result = chardet.detect(data[:ENCODING_SAMPLE_BYTES])
        return result.get("encoding") or "utf-8"

    def read_frame(self, data: bytes, infer_schema_length: int = 10000) -> pl.DataFrame:
        """
        Decode and parse CSV bytes into a DataFrame.

        Raises:
            ValueError: when the bytes hold no parsable table
        """
        encoding = self.detect_encoding(data)

        try:
            text = data.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            # latin-1 accepts any byte
            text = data.decode("latin-1")

        if not text.strip():
            raise ValueError("File is empty")

        try:
            df = pl.read_csv(
                io.StringIO(text),
                infer_schema_length=infer_schema_length,
                try_parse_dates=False,
                ignore_errors=True,
                truncate_ragged_lines=True,
            )
        except pl.exceptions.PolarsError as e:
            raise ValueError(f"Could not parse CSV: {e}") from e

        return self._parse_date_strings(df)

    def _parse_date_strings(self, df: pl.DataFrame) -> pl.DataFrame:
        """
        Convert string columns with date-like names to datetimes.

        A format is accepted when it parses at least half of the rows;
        otherwise the column stays text and is parsed on demand.
        """
        for col in df.columns:
            if df[col].dtype != pl.String:
                continue
            if not any(keyword in col.lower() for keyword in DATE_KEYWORDS):
                continue

            for fmt in DATE_FORMATS:
                parsed = df[col].str.to_datetime(fmt, strict=False)
                if parsed.null_count() <= len(df) * 0.5:
                    df = df.with_columns(parsed.alias(col))
                    break

        return df

    def to_dataset(
        self,
        df: pl.DataFrame,
        filename: str,
        file_type: str = "csv",
        sheet_names: Sequence[str] = (),
    ) -> Dataset:
        """Wrap a frame as a Dataset and attach upload metadata."""
        dataset = Dataset.from_records(
            file_name=filename,
            rows=df.to_dicts(),
            columns=df.columns,
            file_type=file_type,
        )
        return dataset.with_metadata(data_profiler.build_metadata(dataset, sheet_names))

    def parse_bytes(self, data: bytes, filename: str = "upload.csv") -> Dataset:
        """
        Parse CSV bytes into a Dataset.

        Args:
            data: Raw CSV bytes
            filename: Original filename

        Returns:
            Dataset with metadata attached
        """
        df = self.read_frame(data)
        logger.info(f"Parsed {filename}: {len(df)} rows, {len(df.columns)} columns")
        return self.to_dataset(df, filename)

    def parse_file(self, file_path: Union[str, Path], filename: Optional[str] = None) -> Dataset:
        path = Path(file_path)
        return self.parse_bytes(path.read_bytes(), filename or path.name)


# Global parser instance
csv_parser = CSVParser()
