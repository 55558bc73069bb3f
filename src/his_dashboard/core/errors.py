"""
Errors raised while loading a dataset.

Field-level problems (bad dates, bad numbers) are never raised; they are
defaulted by the normalizer. Everything here rejects the whole load.
"""

from __future__ import annotations


class DataSourceError(Exception):
    """Base class for a rejected load."""


class SchemaError(DataSourceError):
    """Raised when required columns are missing from the header row."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Dữ liệu thiếu các cột bắt buộc: {', '.join(self.missing)}")


class EmptyDatasetError(DataSourceError):
    """Raised when the source parsed but produced no usable rows."""

    def __init__(self, message: str = "File không có dữ liệu hợp lệ."):
        super().__init__(message)


class InvalidSheetUrlError(DataSourceError):
    """Raised when a spreadsheet URL carries no /d/<id> segment."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(
            "Đường dẫn không hợp lệ. Vui lòng dùng link dạng 'docs.google.com/spreadsheets/d/...'"
        )


class FetchError(DataSourceError):
    """Raised when the remote CSV export could not be downloaded."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SheetNotFoundError(FetchError):
    def __init__(self, status_code: int = 404):
        super().__init__("Không tìm thấy Sheet. Kiểm tra lại đường dẫn.", status_code)


class SheetAccessDeniedError(FetchError):
    """The sheet exists but is not shared publicly."""

    def __init__(self, status_code: int = 403):
        super().__init__(
            "Không có quyền truy cập. Vui lòng chuyển Sheet sang chế độ "
            "'Bất kỳ ai có liên kết' (Anyone with the link).",
            status_code,
        )
