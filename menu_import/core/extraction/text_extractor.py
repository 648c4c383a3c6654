"""
Text Extraction
Converts an uploaded menu file into a single text blob for the model.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

import openpyxl

from menu_import.exceptions import UnsupportedFileType

logger = logging.getLogger(__name__)

# Caps model-call cost and memory for oversized uploads
MAX_TEXT_LENGTH = 200_000

SEPARATOR_WIDTH = 50


@dataclass(frozen=True)
class ExtractionMetadata:
    row_count: Optional[int] = None
    sheet_names: List[str] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    truncated: bool = False


@dataclass(frozen=True)
class TextExtractionResult:
    text: str
    metadata: ExtractionMetadata


class TextExtractor:
    """Turns raw file bytes into model-readable text"""

    def __init__(self, max_length: int = MAX_TEXT_LENGTH):
        self.max_length = max_length

    def extract(self, content: bytes, file_type: str) -> TextExtractionResult:
        """
        Extract text from a file by its declared type.

        Args:
            content: Raw file bytes
            file_type: One of xlsx, csv, json, md, txt

        Returns:
            Text plus extraction metadata, truncated to ``max_length``

        Raises:
            UnsupportedFileType: If the declared type is unknown
        """
        if file_type == "xlsx":
            result = self.from_spreadsheet(content)
        elif file_type == "csv":
            result = self.from_csv(content)
        elif file_type == "json":
            result = self.from_json(content)
        elif file_type in ("md", "txt"):
            result = self.from_text(content)
        else:
            raise UnsupportedFileType(f"Unsupported file type: {file_type}")

        if len(result.text) > self.max_length:
            logger.warning(
                "Menu text truncated due to size limit (original=%d, max=%d)",
                len(result.text),
                self.max_length,
            )
            result = TextExtractionResult(
                text=result.text[: self.max_length],
                metadata=replace(result.metadata, truncated=True),
            )

        return result

    def from_spreadsheet(self, content: bytes) -> TextExtractionResult:
        # Every sheet becomes a CSV block under a sheet header
        workbook = openpyxl.load_workbook(
            io.BytesIO(content), read_only=True, data_only=True
        )
        try:
            blocks = []
            total_rows = 0
            sheet_names = list(workbook.sheetnames)

            for sheet_name in sheet_names:
                rows = [
                    ["" if cell is None else str(cell) for cell in row]
                    for row in workbook[sheet_name].iter_rows(values_only=True)
                ]
                rows = [row for row in rows if any(value.strip() for value in row)]

                buf = io.StringIO()
                writer = csv.writer(buf, lineterminator="\n")
                writer.writerows(rows)
                blocks.append(f"## Sheet: {sheet_name}\n{buf.getvalue()}")

                # First row is the header
                total_rows += max(len(rows) - 1, 0)
        finally:
            workbook.close()

        return TextExtractionResult(
            text="\n\n".join(blocks).strip(),
            metadata=ExtractionMetadata(row_count=total_rows, sheet_names=sheet_names),
        )

    def from_csv(self, content: bytes) -> TextExtractionResult:
        raw = content.decode("utf-8-sig", errors="replace")
        reader = csv.reader(io.StringIO(raw), _sniff_dialect(raw))
        rows = [row for row in reader if any(cell.strip() for cell in row)]
        if not rows:
            return TextExtractionResult(text="", metadata=ExtractionMetadata(row_count=0))

        headers = [h.strip() for h in rows[0]]
        body = [
            [(row[i].strip() if i < len(row) else "") for i in range(len(headers))]
            for row in rows[1:]
        ]

        widths = [
            max([len(headers[i])] + [len(row[i]) for row in body])
            for i in range(len(headers))
        ]

        def render(values: List[str]) -> str:
            return " | ".join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

        table_width = sum(widths) + 3 * (len(widths) - 1)
        lines = [render(headers), "-" * max(SEPARATOR_WIDTH, table_width)]
        lines.extend(render(row) for row in body)

        return TextExtractionResult(
            text="\n".join(lines).strip(),
            metadata=ExtractionMetadata(row_count=len(body), headers=headers),
        )

    def from_json(self, content: bytes) -> TextExtractionResult:
        data = json.loads(content.decode("utf-8-sig"))
        return TextExtractionResult(
            text=json.dumps(data, indent=2, ensure_ascii=False),
            metadata=ExtractionMetadata(),
        )

    def from_text(self, content: bytes) -> TextExtractionResult:
        return TextExtractionResult(
            text=content.decode("utf-8-sig", errors="replace").strip(),
            metadata=ExtractionMetadata(),
        )


def _sniff_dialect(sample: str):
    try:
        return csv.Sniffer().sniff(sample[:4096], delimiters=",;\t|")
    except csv.Error:
        return csv.excel


def extract_text_from_file(content: bytes, file_type: str) -> TextExtractionResult:
    """Convenience wrapper using the default length cap"""
    return TextExtractor().extract(content, file_type)
