import gspread
import pandas as pd
import pytest
import requests

import sheets
from sheets import (
    SheetLoadError,
    csv_export_url,
    gviz_url,
    load_sheet,
    load_sheet_from_url,
    load_sheet_or_empty,
    normalize_sheet_url,
    parse_csv,
    parse_gviz,
)
from tests.conftest import FakeResponse, FakeSession

GVIZ_TEXT = (
    "/*O_o*/\ngoogle.visualization.Query.setResponse("
    '{"version":"0.6","table":{"cols":[{"id":"A","label":"code"},{"id":"B","label":""},{"id":"C","label":"Precio"}],'
    '"rows":[{"c":[{"v":"ab-1"},{"v":"Jabón"},{"v":1500,"f":"1.500"}]},'
    '{"c":[{"v":"ab-2"},null,{"v":null,"f":"2.000"}]}]}});'
)


def test_normalize_sheet_url_edit_link():
    ref = normalize_sheet_url("https://docs.google.com/spreadsheets/d/abc_123-X/edit?gid=42#gid=42")
    assert ref.id == "abc_123-X"
    assert ref.gid == "42"
    assert ref.csv_url == csv_export_url("abc_123-X", "42")


def test_normalize_sheet_url_defaults_gid_and_handles_garbage():
    assert normalize_sheet_url("https://docs.google.com/spreadsheets/d/abc/edit").gid == "0"
    ref = normalize_sheet_url("no es una url")
    assert ref.id == "" and ref.csv_url == ""


def test_parse_csv_quotes_commas_and_newlines():
    text = 'code,name,precio\r\nA1,"Jabón, líquido",1.500\r\nA2,"Línea 1\nLínea 2",""\r\n'
    df = parse_csv(text)
    assert list(df.columns) == ["code", "name", "precio"]
    assert df.loc[0, "name"] == "Jabón, líquido"
    assert df.loc[1, "name"] == "Línea 1\nLínea 2"
    assert df.loc[1, "precio"] == ""


def test_parse_csv_escaped_quotes_and_duplicate_headers():
    df = parse_csv('a,a,\n"di ""hola""",x,y\n')
    assert list(df.columns) == ["a", "a_1", "col_3"]
    assert df.loc[0, "a"] == 'di "hola"'


def test_parse_csv_drops_blank_rows_and_empty_text():
    df = parse_csv("a,b\n1,2\n,\n3,4\n")
    assert len(df) == 2
    assert parse_csv("").empty


def test_parse_gviz_labels_and_cells():
    df = parse_gviz(GVIZ_TEXT)
    assert list(df.columns) == ["code", "B", "Precio"]
    assert df.loc[0, "Precio"] == 1500
    assert df.loc[1, "B"] == ""
    assert df.loc[1, "Precio"] == "2.000"


def test_parse_gviz_rejects_unknown_format():
    with pytest.raises(ValueError):
        parse_gviz("<html>login</html>")


def test_load_sheet_prefers_csv():
    session = FakeSession({"export?format=csv": FakeResponse("code,name\nA,Uno\n")})
    df = load_sheet("ID", "0", "Catálogo", session=session)
    assert df.to_dict("records") == [{"code": "A", "name": "Uno"}]
    assert len(session.calls) == 1


def test_load_sheet_falls_back_to_gviz():
    session = FakeSession(
        {
            "export?format=csv": FakeResponse(status=403),
            "gviz/tq": FakeResponse(GVIZ_TEXT),
        }
    )
    df = load_sheet("ID", "7", "Catálogo", session=session)
    assert len(df) == 2
    assert session.calls == [csv_export_url("ID", "7"), gviz_url("ID", "7")]


def test_load_sheet_empty_csv_falls_back_to_gviz():
    session = FakeSession(
        {
            "export?format=csv": FakeResponse(""),
            "gviz/tq": FakeResponse(GVIZ_TEXT),
        }
    )
    assert len(load_sheet("ID", "0", "Metas", session=session)) == 2


def test_load_sheet_raises_when_every_source_fails():
    session = FakeSession(
        {
            "export?format=csv": requests.ConnectionError("sin red"),
            "gviz/tq": FakeResponse("no json"),
        }
    )
    with pytest.raises(SheetLoadError, match="Clientes: no se pudo leer"):
        load_sheet("ID", "0", "Clientes", session=session)


def test_load_sheet_uses_service_account_client_first():
    class FakeWorksheet:
        def get_all_values(self):
            return [["code", "name"], ["Z9", "Privado"], ["", ""]]

    class FakeSpreadsheet:
        def get_worksheet_by_id(self, gid):
            assert gid == 5
            return FakeWorksheet()

    class FakeClient:
        def open_by_key(self, key):
            assert key == "PRIV"
            return FakeSpreadsheet()

    session = FakeSession({})
    df = load_sheet("PRIV", "5", "Privada", client=FakeClient(), session=session)
    assert df.to_dict("records") == [{"code": "Z9", "name": "Privado"}]
    assert session.calls == []


def test_load_sheet_from_url_invalid():
    with pytest.raises(SheetLoadError, match="URL inválida"):
        load_sheet_from_url("https://example.com/x", "Catálogo", session=FakeSession({}))


def test_load_sheet_or_empty_degrades():
    df = load_sheet_or_empty("ID", "0", "Metas", session=FakeSession({}))
    assert isinstance(df, pd.DataFrame) and df.empty


def test_get_client_without_credentials(monkeypatch):
    monkeypatch.setattr(sheets, "SERVICE_ACCOUNT_FILE", None)
    assert sheets.get_client_or_none() is None


def test_parse_csv_pads_short_rows():
    df = parse_csv("a,b,c\n1,2\n")
    assert df.to_dict("records") == [{"a": "1", "b": "2", "c": ""}]


def test_parse_csv_ignores_cells_beyond_header():
    df = parse_csv("a,b\n1,2,sobra\n3,4\n")
    assert list(df.columns) == ["a", "b"]
    assert df.to_dict("records") == [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}]


def test_parse_gviz_falls_back_to_outer_braces():
    text = (
        'google.visualization.Query.setResponse({"table":{"cols":[{"id":"A","label":"code"}],'
        '"rows":[{"c":[{"v":"x1"}]}]}}, "extra");'
    )
    df = parse_gviz(text)
    assert df.to_dict("records") == [{"code": "x1"}]


def test_parse_gviz_header_without_label_or_id():
    text = (
        'google.visualization.Query.setResponse({"table":{"cols":[{"id":"","label":""},{"label":""}],'
        '"rows":[{"c":[{"v":1},{"v":2}]}]}});'
    )
    assert list(parse_gviz(text).columns) == ["col", "col_1"]


def test_load_sheet_parser_error_falls_back_to_gviz(monkeypatch):
    def broken(text):
        raise pd.errors.ParserError("Expected 2 fields in line 3, saw 3")

    monkeypatch.setattr(sheets, "parse_csv", broken)
    session = FakeSession(
        {
            "export?format=csv": FakeResponse("a,b\n1,2\n"),
            "gviz/tq": FakeResponse(GVIZ_TEXT),
        }
    )
    assert len(load_sheet("ID", "0", "Catálogo", session=session)) == 2
    assert session.calls == [csv_export_url("ID", "0"), gviz_url("ID", "0")]


@pytest.mark.parametrize(
    "error",
    [PermissionError(), gspread.exceptions.SpreadsheetNotFound()],
)
def test_load_sheet_service_account_denied_uses_public_export(error):
    class DeniedClient:
        def open_by_key(self, key):
            raise error

    session = FakeSession({"export?format=csv": FakeResponse("code,name\nA,Uno\n")})
    df = load_sheet("ID", "0", "Catálogo", client=DeniedClient(), session=session)
    assert df.to_dict("records") == [{"code": "A", "name": "Uno"}]


def test_get_client_with_malformed_file(monkeypatch, tmp_path):
    bad = tmp_path / "sa.json"
    bad.write_text("{not json", encoding="utf-8")
    monkeypatch.setattr(sheets, "SERVICE_ACCOUNT_FILE", bad)
    assert sheets.get_client_or_none() is None


def test_get_client_with_incomplete_credentials(monkeypatch, tmp_path):
    partial = tmp_path / "sa.json"
    partial.write_text('{"type": "service_account", "client_email": "x@y.iam.gserviceaccount.com"}', encoding="utf-8")
    monkeypatch.setattr(sheets, "SERVICE_ACCOUNT_FILE", partial)
    assert sheets.get_client_or_none() is None
