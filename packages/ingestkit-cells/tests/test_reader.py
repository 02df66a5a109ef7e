"""Tests for the reader entry points: read_cells on decoded sheets and
read_excel / excel_sheets on real .xlsx workbooks."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd
import pytest

from ingestkit_cells.config import CellReaderConfig
from ingestkit_cells.errors import CellReadException, ErrorCode
from ingestkit_cells.models import (
    ColumnType,
    DateSystem,
    RawCell,
    RecordKind,
    SheetCells,
    StyleTable,
)
from ingestkit_cells.reader import (
    excel_format,
    excel_sheets,
    read_cells,
    read_excel,
    read_xlsx,
    standardise_sheet,
)

UTC = timezone.utc


def _num(row: int, col: int, value: float, format_id: int = 0) -> RawCell:
    return RawCell(
        row=row, col=col, record_kind=RecordKind.NUMBER, numeric_value=value, format_id=format_id
    )


def _text(row: int, col: int, value: str) -> RawCell:
    return RawCell(row=row, col=col, record_kind=RecordKind.LABEL_SST, text_value=value)


def _sheet(
    cells: list[RawCell],
    styles: StyleTable | None = None,
    date_system: DateSystem = DateSystem.SYSTEM_1900,
) -> SheetCells:
    return SheetCells(name="S", cells=cells, styles=styles, date_system=date_system)


# ---------------------------------------------------------------------------
# read_cells: type resolution and coercion
# ---------------------------------------------------------------------------


class TestReadCellsTyping:
    def test_late_text_in_numeric_column_is_coerced(self) -> None:
        sheet = _sheet([_text(0, 0, "x"), _num(1, 0, 1.0), _text(2, 0, "N/A")])

        result = read_cells(sheet, guess_max=1)

        assert result.columns[0].type is ColumnType.NUMERIC
        assert result.frame["x"].dtype == "float64"
        assert result.frame["x"][0] == 1.0
        assert pd.isna(result.frame["x"][1])
        assert result.warnings == ["W_TYPE_COERCED: [3, 1]: expecting numeric: got 'N/A'"]
        assert result.error_details[0].row == 2
        assert result.error_details[0].col == 0

    def test_na_string_is_missing_without_warning(self) -> None:
        sheet = _sheet([_text(0, 0, "x"), _num(1, 0, 1.0), _text(2, 0, "N/A")])

        result = read_cells(sheet, na=["", "N/A"])

        assert result.columns[0].type is ColumnType.NUMERIC
        assert result.warnings == []
        assert result.rows_read == 2

    def test_guess_covers_whole_sample(self) -> None:
        sheet = _sheet([_text(0, 0, "x"), _num(1, 0, 1.0), _text(2, 0, "a")])

        result = read_cells(sheet)

        assert result.columns[0].type is ColumnType.TEXT
        assert result.frame["x"].tolist() == ["1", "a"]

    def test_guess_max_zero_gives_blank_columns(self) -> None:
        sheet = _sheet([_text(0, 0, "a"), _num(1, 0, 1.0)])

        result = read_cells(sheet, guess_max=0)

        assert result.columns[0].type is ColumnType.BLANK
        assert result.frame.shape == (1, 1)
        assert result.frame["a"].isna().all()
        assert result.warnings == ["W_TYPE_COERCED: [2, 1]: expecting blank: got '1'"]

    def test_dates_from_style_table(self, styles: StyleTable) -> None:
        sheet = _sheet(
            [_text(0, 0, "when"), _num(1, 0, 36526.0, 1), _num(2, 0, 36527.5, 2)],
            styles=styles,
        )

        result = read_cells(sheet)

        assert result.columns[0].type is ColumnType.DATE
        assert result.frame["when"].tolist() == [
            pd.Timestamp("2000-01-01", tz="UTC"),
            pd.Timestamp("2000-01-02 12:00", tz="UTC"),
        ]

    def test_1904_date_system(self, styles: StyleTable) -> None:
        sheet = _sheet(
            [_text(0, 0, "when"), _num(1, 0, 35064.0, 1)],
            styles=styles,
            date_system=DateSystem.SYSTEM_1904,
        )

        result = read_cells(sheet)

        assert result.frame["when"][0] == pd.Timestamp("2000-01-01", tz="UTC")

    def test_dates_without_styles_read_as_numbers(self) -> None:
        sheet = _sheet([_text(0, 0, "when"), _num(1, 0, 36526.0, 1)], styles=None)

        result = read_cells(sheet)

        assert result.columns[0].type is ColumnType.NUMERIC
        assert result.frame["when"][0] == 36526.0

    def test_text_override_renders_every_cell(self, styles: StyleTable) -> None:
        sheet = _sheet(
            [
                _text(0, 0, "v"),
                _num(1, 0, 1.5),
                _num(2, 0, 36526.0, 1),
                _text(3, 0, "a"),
            ],
            styles=styles,
        )

        result = read_cells(sheet, col_types="text")

        assert result.frame["v"].tolist() == ["1.5", "2000-01-01T00:00:00Z", "a"]
        assert result.warnings == []

    def test_list_column_keeps_each_cell_type(self, styles: StyleTable) -> None:
        sheet = _sheet(
            [
                _text(0, 0, "v"),
                _num(1, 0, 1.0),
                _text(3, 0, "a"),
                _num(4, 0, 36526.0, 1),
            ],
            styles=styles,
        )

        result = read_cells(sheet, col_types=["list"])

        assert result.columns[0].type is ColumnType.LIST
        assert result.frame["v"].tolist() == [
            1.0,
            None,
            "a",
            datetime(2000, 1, 1, tzinfo=UTC),
        ]

    def test_unknown_record_kind_reads_as_numeric(self) -> None:
        sheet = _sheet(
            [_text(0, 0, "v"), RawCell(row=1, col=0, record_kind=517, numeric_value=1.0)]
        )

        result = read_cells(sheet)

        assert result.columns[0].type is ColumnType.NUMERIC
        assert result.frame["v"][0] == 1.0
        assert result.warnings == ["W_UNKNOWN_RECORD_KIND: Unknown type: 517 at [2, 1]"]

    def test_types_length_mismatch(self) -> None:
        sheet = _sheet([_num(0, 0, 1.0), _num(0, 1, 2.0), _num(1, 0, 3.0)])

        with pytest.raises(CellReadException) as exc_info:
            read_cells(sheet, col_types=["numeric", "numeric", "text"])

        assert exc_info.value.code is ErrorCode.E_TYPES_LENGTH
        assert exc_info.value.message == "Sheet has 2 columns, but types has length 3."


# ---------------------------------------------------------------------------
# read_cells: names, skipping and extents
# ---------------------------------------------------------------------------


class TestReadCellsLayout:
    def test_skip_column_removed(self) -> None:
        sheet = _sheet(
            [_text(0, 0, "a"), _text(0, 1, "b"), _num(1, 0, 1.0), _num(1, 1, 2.0)]
        )

        result = read_cells(sheet, col_types=["skip", "numeric"])

        assert list(result.frame.columns) == ["b"]
        assert result.frame["b"].tolist() == [2.0]
        assert [c.type for c in result.columns] == [ColumnType.SKIP, ColumnType.NUMERIC]

    def test_blank_type_deprecated_and_skipped(self) -> None:
        sheet = _sheet(
            [_text(0, 0, "a"), _text(0, 1, "b"), _num(1, 0, 1.0), _text(1, 1, "x")]
        )

        result = read_cells(sheet, col_types=["blank", "numeric"])

        assert list(result.frame.columns) == ["b"]
        assert result.warnings == [
            'W_BLANK_TYPE_DEPRECATED: `col_type = "blank"` deprecated. Use "skip" instead.',
            "W_TYPE_COERCED: [2, 2]: expecting numeric: got 'x'",
        ]

    def test_header_names_repaired(self) -> None:
        sheet = _sheet(
            [
                _text(0, 0, "a"),
                _text(0, 1, "a"),
                _num(0, 3, 2019.0),
                _num(1, 0, 1.0),
                _num(1, 1, 1.0),
                _num(1, 2, 1.0),
                _num(1, 3, 1.0),
            ]
        )

        result = read_cells(sheet)

        assert list(result.frame.columns) == ["a", "a__1", "X__3", "2019"]

    def test_generated_names_when_col_names_false(self) -> None:
        sheet = _sheet([_num(0, 0, 1.0), _num(0, 1, 2.0), _num(1, 0, 3.0)])

        result = read_cells(sheet, col_names=False)

        assert list(result.frame.columns) == ["X__1", "X__2"]
        assert result.rows_read == 2
        assert result.frame["X__1"].tolist() == [1.0, 3.0]

    def test_caller_names_for_kept_columns(self) -> None:
        sheet = _sheet([_num(0, 0, 1.0), _num(0, 1, 2.0), _num(0, 2, 3.0)])

        result = read_cells(
            sheet, col_names=["first", "third"], col_types=["numeric", "skip", "numeric"]
        )

        assert list(result.frame.columns) == ["first", "third"]
        assert result.frame["third"].tolist() == [3.0]

    def test_names_length_mismatch(self) -> None:
        sheet = _sheet([_num(0, 0, 1.0), _num(0, 1, 2.0), _num(0, 2, 3.0)])

        with pytest.raises(CellReadException) as exc_info:
            read_cells(sheet, col_names=["a", "b"])

        assert exc_info.value.code is ErrorCode.E_NAMES_LENGTH
        assert exc_info.value.message == "Received 2 names but 3 columns."

    def test_skip_and_leading_empty_rows(self) -> None:
        sheet = _sheet(
            [
                _text(0, 0, "title"),
                RawCell(row=1, col=0, record_kind=RecordKind.BLANK, format_id=0),
                _text(3, 0, "v"),
                _num(4, 0, 1.0),
                _num(6, 0, 2.0),
            ]
        )

        result = read_cells(sheet, skip=1)

        assert list(result.frame.columns) == ["v"]
        assert result.rows_read == 3
        assert result.frame["v"].tolist()[0] == 1.0
        assert pd.isna(result.frame["v"][1])
        assert result.frame["v"][2] == 2.0

    def test_cells_given_out_of_order(self) -> None:
        sheet = _sheet([_num(2, 0, 2.0), _num(1, 0, 1.0), _text(0, 0, "v")])

        result = read_cells(sheet)

        assert result.frame["v"].tolist() == [1.0, 2.0]

    def test_empty_sheet(self) -> None:
        result = read_cells(_sheet([]))

        assert result.frame.shape == (0, 0)
        assert result.rows_read == 0
        assert result.warnings == []

    def test_header_only(self) -> None:
        result = read_cells(_sheet([_text(0, 0, "a"), _text(0, 1, "b")]))

        assert list(result.frame.columns) == ["a", "b"]
        assert result.frame.shape == (0, 2)

    def test_config_defaults_apply(self) -> None:
        sheet = _sheet([_text(0, 0, "x"), _num(1, 0, 1.0), _text(2, 0, "-")])
        config = CellReaderConfig(na=["", "-"])

        result = read_cells(sheet, config=config)

        assert result.columns[0].type is ColumnType.NUMERIC
        assert result.warnings == []

    def test_options_validated_before_reading(self) -> None:
        with pytest.raises(CellReadException) as exc_info:
            read_cells(_sheet([]), col_types=["foo"])
        assert exc_info.value.code is ErrorCode.E_TYPES_ILLEGAL


class TestCoercionLogging:
    def _sheet(self) -> SheetCells:
        return _sheet([_text(0, 0, "x"), _num(1, 0, 1.0), _text(2, 0, "secret")])

    def test_values_redacted_by_default(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="ingestkit_cells"):
            result = read_cells(self._sheet(), guess_max=1)
        assert "secret" not in caplog.text
        assert "<text>" in caplog.text
        # The returned diagnostic always carries the value.
        assert "'secret'" in result.warnings[0]

    def test_values_logged_when_enabled(self, caplog: pytest.LogCaptureFixture) -> None:
        config = CellReaderConfig(log_cell_values=True)
        with caplog.at_level(logging.WARNING, logger="ingestkit_cells"):
            read_cells(self._sheet(), guess_max=1, config=config)
        assert "'secret'" in caplog.text


# ---------------------------------------------------------------------------
# Dispatch helpers
# ---------------------------------------------------------------------------


class TestExcelFormat:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [("a.xls", "xls"), ("a.XLS", "xls"), ("a.xlsx", "xlsx"), ("a.xlsm", "xlsx")],
    )
    def test_known(self, path: str, expected: str) -> None:
        assert excel_format(path) == expected

    def test_unknown_extension(self) -> None:
        with pytest.raises(CellReadException) as exc_info:
            excel_format("data.csv")
        assert exc_info.value.code is ErrorCode.E_FORMAT_UNKNOWN
        assert exc_info.value.message == "Unknown file extension: csv"

    def test_missing_extension(self) -> None:
        with pytest.raises(CellReadException) as exc_info:
            excel_format("data")
        assert exc_info.value.message == "Missing file extension."


class TestStandardiseSheet:
    def test_index(self) -> None:
        assert standardise_sheet(1, ["a", "b"]) == 1

    def test_name(self) -> None:
        assert standardise_sheet("b", ["a", "b"]) == 1

    def test_index_out_of_range(self) -> None:
        with pytest.raises(CellReadException) as exc_info:
            standardise_sheet(5, ["a", "b"])
        assert exc_info.value.code is ErrorCode.E_SHEET_NOT_FOUND
        assert exc_info.value.message == "Sheet 5 not found: workbook has 2 sheet(s)."

    def test_unknown_name(self) -> None:
        with pytest.raises(CellReadException) as exc_info:
            standardise_sheet("Nope", ["a", "b"])
        assert exc_info.value.code is ErrorCode.E_SHEET_NOT_FOUND
        assert exc_info.value.message == "Sheet 'Nope' not found"

    @pytest.mark.parametrize("sheet", [-1, True, 1.0, None])
    def test_invalid(self, sheet: object) -> None:
        with pytest.raises(CellReadException) as exc_info:
            standardise_sheet(sheet, ["a"])  # type: ignore[arg-type]
        assert exc_info.value.code is ErrorCode.E_SHEET_INVALID


# ---------------------------------------------------------------------------
# read_excel on .xlsx workbooks
# ---------------------------------------------------------------------------


class TestReadExcelXlsx:
    def test_guessed_dtypes(self, write_xlsx) -> None:
        path = write_xlsx(
            {
                "Data": [
                    ["id", "name", "when", "flag"],
                    [1, "a", datetime(2000, 1, 1), True],
                    [2, "b", datetime(2001, 1, 1, 6), False],
                ]
            }
        )

        result = read_excel(path)

        frame = result.frame
        assert result.sheet_name == "Data"
        assert list(frame.columns) == ["id", "name", "when", "flag"]
        assert [c.type for c in result.columns] == [
            ColumnType.NUMERIC,
            ColumnType.TEXT,
            ColumnType.DATE,
            ColumnType.NUMERIC,
        ]
        assert frame["id"].tolist() == [1.0, 2.0]
        assert frame["name"].tolist() == ["a", "b"]
        assert frame["when"].tolist() == [
            pd.Timestamp("2000-01-01", tz="UTC"),
            pd.Timestamp("2001-01-01 06:00", tz="UTC"),
        ]
        assert frame["flag"].tolist() == [1.0, 0.0]
        assert result.warnings == []

    def test_1904_workbook_reads_same_dates(self, write_xlsx) -> None:
        rows = [["when"], [datetime(2000, 1, 1)]]
        path_1900 = write_xlsx({"S": rows}, filename="a.xlsx")
        path_1904 = write_xlsx({"S": rows}, filename="b.xlsx", mac_epoch=True)

        assert (
            read_excel(path_1900).frame["when"][0]
            == read_excel(path_1904).frame["when"][0]
            == pd.Timestamp("2000-01-01", tz="UTC")
        )

    def test_sheet_by_name_and_index(self, write_xlsx) -> None:
        path = write_xlsx({"First": [["a"], [1]], "Second": [["b"], ["x"]]})

        assert excel_sheets(path) == ["First", "Second"]
        assert list(read_excel(path, sheet="Second").frame.columns) == ["b"]
        assert read_excel(path, sheet=1).sheet_name == "Second"

    def test_sheet_not_found(self, write_xlsx) -> None:
        path = write_xlsx({"First": [["a"]]})

        with pytest.raises(CellReadException) as exc_info:
            read_excel(path, sheet=3)

        assert exc_info.value.code is ErrorCode.E_SHEET_NOT_FOUND

    def test_read_xlsx_forces_container(self, write_xlsx) -> None:
        path = write_xlsx({"S": [["a"], [1]]})
        assert read_xlsx(path).frame["a"].tolist() == [1.0]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CellReadException) as exc_info:
            read_excel(str(tmp_path / "missing.xlsx"))
        assert exc_info.value.code is ErrorCode.E_FILE_NOT_FOUND
        assert "does not exist" in exc_info.value.message

    def test_unknown_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "data.csv"
        path.write_text("a,b\n")
        with pytest.raises(CellReadException) as exc_info:
            read_excel(str(path))
        assert exc_info.value.code is ErrorCode.E_FORMAT_UNKNOWN

    def test_options_checked_before_file(self, tmp_path: Path) -> None:
        with pytest.raises(CellReadException) as exc_info:
            read_excel(str(tmp_path / "missing.xlsx"), guess_max=-1)
        assert exc_info.value.code is ErrorCode.E_GUESS_MAX_INVALID


class TestReadCellsDateRange:
    def test_open_ended_end_date(self, styles: StyleTable) -> None:
        sheet = _sheet(
            [_text(0, 0, "end"), _num(1, 0, 43831.0, 1), _num(2, 0, 2958465.0, 1)],
            styles=styles,
        )

        result = read_cells(sheet)

        assert result.columns[0].type is ColumnType.DATE
        assert result.frame["end"][0] == pd.Timestamp("2020-01-01", tz="UTC")
        assert result.frame["end"][1] == pd.Timestamp("9999-12-31", tz="UTC")
        assert result.warnings == []

    def test_unrepresentable_serial_is_missing(self, styles: StyleTable) -> None:
        sheet = _sheet(
            [_text(0, 0, "when"), _num(1, 0, 43831.0, 1), _num(2, 0, 1e9, 1)],
            styles=styles,
        )

        result = read_cells(sheet)

        assert result.frame.shape == (2, 1)
        assert pd.isna(result.frame["when"][1])
        assert result.warnings == [
            "W_DATE_OUT_OF_RANGE: [3, 1]: date serial out of range: got '1000000000'"
        ]

    def test_list_column_with_unrepresentable_serial(self, styles: StyleTable) -> None:
        sheet = _sheet([_text(0, 0, "v"), _num(1, 0, 1e9, 1)], styles=styles)

        result = read_cells(sheet, col_types="list")

        assert result.frame["v"].tolist() == [None]
        assert result.error_details[0].code is ErrorCode.W_DATE_OUT_OF_RANGE

    def test_date_header_rendered_as_iso(self, styles: StyleTable) -> None:
        sheet = _sheet(
            [_num(0, 0, 42736.0, 1), _num(0, 1, 7.0), _num(1, 0, 1.0), _num(1, 1, 2.0)],
            styles=styles,
        )

        result = read_cells(sheet)

        assert list(result.frame.columns) == ["2017-01-01T00:00:00Z", "7"]
