import textwrap
from pathlib import Path

import pytest

from firefly_importer.ingest.adapters.piraeus_tsv import (
    HeaderNotFoundError,
    MalformedHeaderError,
    clean_account_ref,
    iter_rows,
    locate_header,
    normalize_amount,
    normalize_date,
    split_fields,
)
from firefly_importer.ingest.utils import EmptyStatementError, read_statement_lines
from firefly_importer.models import NormalizedRow

HEADER = "Κατηγορία\tΠεριγραφή Συναλλαγής (είδος)\tΗμερομηνία Καταχώρησης\tΑριθμός Προϊόντος\tΠοσό\t"


def _lines(s: str) -> list[str]:
    # Write rows with "|" for readability; the export uses tabs.
    return textwrap.dedent(s).strip("\n").replace("|", "\t").splitlines()


# ---- Field normalization ------------------------------------------------------


def test_normalize_amount_examples():
    assert normalize_amount("1.234,56") == "1234.56"
    assert normalize_amount("-12,30 EUR") == "-12.30"
    assert normalize_amount("0,05") == "0.05"
    assert normalize_amount("-1.000.000,00 EUR") == "-1000000.00"


def test_normalize_date_converts_day_month_year_to_iso():
    assert normalize_date("3/7/2025") == "2025-07-03"
    assert normalize_date("31/12/2024") == "2024-12-31"


@pytest.mark.parametrize("raw", ["31/13/2025", "2025-03-01", "", "1/1/25"])
def test_normalize_date_keeps_unparseable_values(raw):
    assert normalize_date(raw) == raw


def test_clean_account_ref_strips_friendly_name_and_spaces():
    assert clean_account_ref("5100 1234 5678 (Χρεωστική Κάρτα)") == "510012345678"
    assert clean_account_ref("GR16 0110 1250 0000 0001 2300 695") == "GR1601101250000000012300695"
    assert clean_account_ref("6001(a) 0001 (b)") == "60010001"


def test_split_fields_ignores_trailing_empty_columns():
    assert len(split_fields(HEADER)) == 5
    assert split_fields("\ta\tb") == ["", "a", "b"]


# ---- Header detection -------------------------------------------------------------


def test_locate_header_skips_leading_info_lines():
    lines = ["Τράπεζα Πειραιώς", "Κατηγορία μόνο", "", HEADER, "x"]
    assert locate_header(lines) == 3


def test_missing_header_raises():
    with pytest.raises(HeaderNotFoundError):
        locate_header(["info", "Κατηγορία\tΠοσό", "more info"])


def test_header_with_wrong_column_count_raises():
    with pytest.raises(MalformedHeaderError) as exc:
        locate_header(["Κατηγορία\tΠεριγραφή Συναλλαγής\tΠοσό"])
    assert exc.value.found == 3
    assert "expected 5" in str(exc.value)


def test_iter_rows_validates_header_before_iteration():
    # Raised at call time, not on first next()
    with pytest.raises(HeaderNotFoundError):
        iter_rows(["nothing here"])


# ---- Data rows ------------------------------------------------------------------


def test_iter_rows_normalizes_every_field():
    lines = [
        "Info line",
        HEADER,
        *_lines(
            """
            Σούπερ μάρκετ|ΑΓΟΡΑ ΜΕ ΚΑΡΤΑ|3/3/2025|5100 1234 5678 (Κάρτα)|-1.045,20 EUR
            """
        ),
    ]
    rows = list(iter_rows(lines))
    assert rows == [
        NormalizedRow(
            category="Σούπερ μάρκετ",
            description="ΑΓΟΡΑ ΜΕ ΚΑΡΤΑ",
            date="2025-03-03",
            account_ref="510012345678",
            amount="-1045.20",
            line_no=3,
        )
    ]


def test_blank_lines_are_skipped_and_footer_ends_rows():
    lines = [
        HEADER,
        *_lines(
            """
            A|first|1/3/2025|111|10,00 EUR

            B|second|2/3/2025|222|-5,00 EUR
            Σύνολο|5,00 EUR
            C|after footer|3/3/2025|333|1,00 EUR
            """
        ),
    ]
    rows = list(iter_rows(lines))
    assert [r.description for r in rows] == ["first", "second"]
    assert [r.line_no for r in rows] == [2, 4]


def test_header_without_rows_yields_nothing():
    assert list(iter_rows([HEADER])) == []


# ---- File loading -----------------------------------------------------------------


def test_read_statement_lines_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        read_statement_lines(tmp_path / "missing.tsv")


def test_read_statement_lines_empty_file(tmp_path: Path):
    p = tmp_path / "empty.tsv"
    p.write_text("", encoding="utf-8")
    with pytest.raises(EmptyStatementError):
        read_statement_lines(p)


def test_sample_statement_parses_until_footer(sample_statement: Path):
    rows = list(iter_rows(read_statement_lines(sample_statement)))
    assert len(rows) == 10
    assert rows[0].amount == "-45.20"
    assert rows[1].amount == "1850.00"
    assert rows[-1].date == "31/13/2025"
    assert all(r.description != "ΑΓΟΡΑ ΜΕΤΑ ΤΟ ΣΥΝΟΛΟ" for r in rows)
