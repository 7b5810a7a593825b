"""
Excel Parser

Reads .xlsx workbooks with Polars, keeps the sheet with the most rows and
records every sheet name in the upload metadata.
"""

import io
from pathlib import Path
from typing import Optional, Union

import polars as pl

from core.csv_parser import csv_parser
from core.dataset import Dataset
from core.logging_config import upload_logger as logger


EXCEL_EXTENSIONS = (".xlsx",)


class ExcelParser:
    """Workbook parser using Polars' calamine engine."""

    def read_workbook(self, data: bytes) -> dict[str, pl.DataFrame]:
        """
        Read every sheet of a workbook.

        Raises:
            ValueError: when the bytes are not a readable workbook
        """
        if not data:
            raise ValueError("File is empty")

        try:
            sheets = pl.read_excel(io.BytesIO(data), sheet_id=0)
        except Exception as e:
            raise ValueError(f"Could not parse Excel workbook: {e}") from e

        if not sheets:
            raise ValueError("No valid worksheet found in Excel file")
        return sheets

    def best_sheet(self, sheets: dict[str, pl.DataFrame]) -> str:
        """Name of the sheet with the most rows; the earlier sheet wins ties."""
        best_name, best_rows = None, -1
        for name, df in sheets.items():
            if df.height > best_rows:
                best_name, best_rows = name, df.height
        return best_name

    def parse_bytes(self, data: bytes, filename: str = "upload.xlsx") -> Dataset:
        """
        Parse workbook bytes into a Dataset built from its largest sheet.

        Date-named text columns get the same conversion as CSV uploads.
        """
        sheets = self.read_workbook(data)
        sheet = self.best_sheet(sheets)
        df = csv_parser._parse_date_strings(sheets[sheet])

        logger.info(
            f"Parsed {filename} sheet '{sheet}': {len(df)} rows, "
            f"{len(df.columns)} columns ({len(sheets)} sheets)"
        )
        return csv_parser.to_dataset(
            df, filename, file_type="excel", sheet_names=list(sheets)
        )

    def parse_file(self, file_path: Union[str, Path], filename: Optional[str] = None) -> Dataset:
        path = Path(file_path)
        return self.parse_bytes(path.read_bytes(), filename or path.name)


def is_excel(filename: str) -> bool:
    return filename.lower().endswith(EXCEL_EXTENSIONS)


# Global parser instance
excel_parser = ExcelParser()
