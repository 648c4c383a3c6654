"""Tests for file-to-text extraction."""

import io
import json

import openpyxl
import pytest

from menu_import.core.extraction.text_extractor import (
    MAX_TEXT_LENGTH,
    TextExtractor,
    extract_text_from_file,
)
from menu_import.exceptions import UnsupportedFileType


def _workbook_bytes() -> bytes:
    workbook = openpyxl.Workbook()
    food = workbook.active
    food.title = "Food"
    food.append(["Name", "Price"])
    food.append(["Pizza", 9.5])
    drinks = workbook.create_sheet("Drinks")
    drinks.append(["Name", "Price"])
    drinks.append(["Cola", 2.5])
    drinks.append([None, None])
    drinks.append(["Water", 1.5])

    buf = io.BytesIO()
    workbook.save(buf)
    return buf.getvalue()


def test_oversized_text_is_truncated_to_cap():
    result = extract_text_from_file(("a" * 250_000).encode(), "txt")

    assert len(result.text) == MAX_TEXT_LENGTH == 200_000
    assert result.metadata.truncated is True


def test_text_under_cap_is_not_truncated():
    result = extract_text_from_file(b"  # Menu\n\nPizza 9.50  \n", "md")

    assert result.text == "# Menu\n\nPizza 9.50"
    assert result.metadata.truncated is False


def test_truncation_applies_to_every_format():
    payload = json.dumps({"items": ["x" * 100] * 50}).encode()

    result = TextExtractor(max_length=300).extract(payload, "json")

    assert len(result.text) == 300
    assert result.metadata.truncated is True


def test_csv_rendered_as_fixed_width_table():
    result = extract_text_from_file(b"name,price\nCola,2.50\nWater,1.50\n", "csv")
    lines = result.text.split("\n")

    assert lines[0] == "name  | price"
    assert lines[1] == "-" * 50
    assert lines[2] == "Cola  | 2.50"
    assert lines[3] == "Water | 1.50"
    assert result.metadata.row_count == 2
    assert result.metadata.headers == ["name", "price"]


def test_csv_with_semicolons():
    result = extract_text_from_file(b"name;price\nPizza;9.50\nPasta;8.00\n", "csv")

    assert result.text.split("\n")[2] == "Pizza | 9.50"
    assert result.metadata.row_count == 2


def test_empty_csv():
    result = extract_text_from_file(b"", "csv")

    assert result.text == ""
    assert result.metadata.row_count == 0


def test_json_is_pretty_printed():
    result = extract_text_from_file(b'{"drinks": [{"name": "Cola"}]}', "json")

    assert json.loads(result.text) == {"drinks": [{"name": "Cola"}]}
    assert '\n  "drinks"' in result.text


def test_spreadsheet_sheets_become_csv_blocks():
    result = extract_text_from_file(_workbook_bytes(), "xlsx")

    assert "## Sheet: Food\nName,Price\nPizza,9.5" in result.text
    assert "## Sheet: Drinks\nName,Price\nCola,2.5\nWater,1.5" in result.text
    assert result.metadata.sheet_names == ["Food", "Drinks"]
    # Header rows and blank rows are not counted
    assert result.metadata.row_count == 3


def test_unsupported_type_fails_fast():
    with pytest.raises(UnsupportedFileType):
        extract_text_from_file(b"%PDF-1.4", "pdf")
