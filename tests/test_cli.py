"""
CLI smoke tests: each sub-command writes its output and prints the path.
"""
import pytest
from docx import Document
from openpyxl import load_workbook

from app.cli import main, parse_args
from fixtures.generate_fixtures import (
    BATCH_CSV,
    create_batch_document,
    create_fill_workbook,
    create_table_document,
    create_table_workbook,
)


def _dirs(assets_dir, out_dir):
    return ["--template-dir", str(assets_dir), "--output-dir", str(out_dir)]


def test_fill_xlsx(assets_dir, out_dir, write_csv, capsys):
    create_fill_workbook(assets_dir / "Template.xlsx")
    write_csv("Name,Age\nAlice,30\n")

    code = main(["fill-xlsx", "Template.xlsx", "Data.csv", *_dirs(assets_dir, out_dir)])

    out_path = out_dir / "Output_Filled.xlsx"
    assert code == 0
    assert str(out_path) in capsys.readouterr().out
    assert load_workbook(out_path)["Letter"]["A1"].value == "Hello Alice"


def test_append_xlsx_with_sheet_and_separator(assets_dir, out_dir, write_csv):
    create_table_workbook(assets_dir / "Table.xlsx")
    write_csv("Name;Amount\nAlice;1.5\n")

    code = main([
        "append-xlsx", "Table.xlsx", "Data.csv", *_dirs(assets_dir, out_dir),
        "--separator", ";", "--sheet", "Report", "--output", "Rows.xlsx",
    ])

    assert code == 0
    ws = load_workbook(out_dir / "Rows.xlsx")["Report"]
    assert ws["A2"].value == "Alice"
    assert ws["B2"].value == 1.5


def test_fill_docx_per_row_options(assets_dir, out_dir, write_csv):
    create_batch_document(assets_dir / "Template.docx")
    write_csv(BATCH_CSV)

    code = main([
        "fill-docx", "Template.docx", "Data.csv", *_dirs(assets_dir, out_dir),
        "--options-source", "per_row",
    ])

    assert code == 0
    doc = Document(str(out_dir / "Bob_Kim_Rome_B2.docx"))
    assert doc.tables[1].cell(0, 0).text == "blue"


def test_append_docx_first_table(assets_dir, out_dir, write_csv):
    create_table_document(assets_dir / "Table.docx")
    write_csv("Name,Age\nAlice,30\n")

    code = main(["append-docx", "Table.docx", "Data.csv", *_dirs(assets_dir, out_dir), "--first-table"])

    assert code == 0
    decoy, target = Document(str(out_dir / "Output_Table.docx")).tables
    assert len(decoy.rows) == 2
    assert len(target.rows) == 1


def test_merge_error_returns_nonzero(assets_dir, out_dir, write_csv, capsys):
    create_fill_workbook(assets_dir / "Template.xlsx")
    write_csv("Name,Age\n")

    code = main(["fill-xlsx", "Template.xlsx", "Data.csv", *_dirs(assets_dir, out_dir)])

    assert code == 1
    assert "[error] CSV has no data rows." in capsys.readouterr().out
    assert not (out_dir / "Output_Filled.xlsx").exists()


def test_missing_template_returns_nonzero(assets_dir, out_dir, write_csv, capsys):
    write_csv("Name\nAlice\n")

    code = main(["fill-xlsx", "Nope.xlsx", "Data.csv", *_dirs(assets_dir, out_dir)])

    assert code == 1
    assert "Nope.xlsx" in capsys.readouterr().out


def test_bad_name_pattern_returns_nonzero(assets_dir, out_dir, write_csv, capsys):
    create_batch_document(assets_dir / "Template.docx")
    write_csv(BATCH_CSV)

    code = main([
        "fill-docx", "Template.docx", "Data.csv", *_dirs(assets_dir, out_dir),
        "--name-pattern", "{name}.docx",
    ])

    assert code == 1
    assert "[error] Invalid output name pattern" in capsys.readouterr().out


def test_separator_must_be_single_character():
    with pytest.raises(SystemExit):
        parse_args(["fill-xlsx", "T.xlsx", "D.csv", "--separator", ";;"])


def test_command_is_required():
    with pytest.raises(SystemExit):
        parse_args([])
