"""
Extract tests: CSV parsing, schema gate, spreadsheet fetch over a mock transport
"""
import io

import httpx
import pytest

from his_dashboard.core.errors import (
    EmptyDatasetError,
    FetchError,
    InvalidSheetUrlError,
    SchemaError,
    SheetAccessDeniedError,
    SheetNotFoundError,
)
from his_dashboard.extract.extract_records import (
    build_export_url,
    extract_sheet_id,
    fetch_sheet_csv,
    read_records,
    read_records_text,
    read_sheet,
    validate_columns,
)

SHEET_URL = "https://docs.google.com/spreadsheets/d/1AbC-d_9/edit#gid=0"


def _client(status=200, text="", seen=None):
    def handler(request):
        if seen is not None:
            seen.append(str(request.url))
        return httpx.Response(status, text=text)
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_read_records_keeps_text(csv_text):
    df = read_records(io.StringIO(csv_text))
    assert len(df) == 2
    assert df.loc[0, "THANH_TIEN"] == "1,200,000"
    assert df.loc[1, "MA_LOAI_KCB"] == "01"


def test_read_records_from_path_with_bom(tmp_path, csv_text):
    path = tmp_path / "export.csv"
    path.write_text(csv_text, encoding="utf-8-sig")
    df = read_records(path)
    assert list(df.columns)[0] == "MA_LK"


def test_blank_text_is_empty_dataset():
    with pytest.raises(EmptyDatasetError):
        read_records_text("")


def test_validate_columns_lists_missing():
    df = read_records_text("MA_LK,THANH_TIEN\nV1,10\n")
    with pytest.raises(SchemaError) as exc:
        validate_columns(df)
    assert exc.value.missing == ["MA_BN", "KHOA"]
    assert "MA_BN, KHOA" in str(exc.value)


def test_extract_sheet_id():
    assert extract_sheet_id(SHEET_URL) == "1AbC-d_9"
    with pytest.raises(InvalidSheetUrlError):
        extract_sheet_id("https://example.com/sheet")


def test_build_export_url():
    assert build_export_url("abc", host="https://docs.google.com") == (
        "https://docs.google.com/spreadsheets/d/abc/export?format=csv"
    )


def test_fetch_ok(csv_text):
    seen = []
    df = read_sheet(SHEET_URL, client=_client(text=csv_text, seen=seen))
    assert seen == ["https://docs.google.com/spreadsheets/d/1AbC-d_9/export?format=csv"]
    assert df["MA_LK"].tolist() == ["V1", "V2"]


@pytest.mark.parametrize("status, error", [
    (404, SheetNotFoundError),
    (403, SheetAccessDeniedError),
    (401, SheetAccessDeniedError),
    (500, FetchError),
])
def test_fetch_http_errors(status, error):
    with pytest.raises(error) as exc:
        fetch_sheet_csv(SHEET_URL, client=_client(status=status))
    assert exc.value.status_code == status


def test_fetch_connection_error():
    def handler(request):
        raise httpx.ConnectError("boom", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    with pytest.raises(FetchError) as exc:
        fetch_sheet_csv(SHEET_URL, client=client)
    assert exc.value.status_code is None


def test_invalid_url_is_rejected_before_fetch():
    seen = []
    with pytest.raises(InvalidSheetUrlError):
        fetch_sheet_csv("https://docs.google.com/spreadsheets/", client=_client(seen=seen))
    assert seen == []
