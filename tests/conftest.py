"""Shared test fixtures for the HIS dashboard tests."""

from datetime import datetime

import pytest

from his_dashboard.transforms.transform_records import normalize_records

NOW = datetime(2024, 6, 15, 10, 30)


def make_row(**overrides):
    """One raw HIS export row with sensible defaults."""
    row = {
        "MA_LK": "V1",
        "MA_BN": "BN1",
        "THANH_TIEN": "100000",
        "KHOA": "Khoa Nội",
        "TEN_DOI_TUONG": "BHYT",
        "NGAY_VAO_VIEN": "20240301",
        "NGAY_RA_VIEN": "20240303",
        "NGAY_THANH_TOAN": "20240303",
        "MA_BENH": "J18",
        "CHAN_DOAN": "Viêm phổi",
        "BAC_SY": "BS An",
        "TEN_NHOM": "Thuốc",
        "DICH_VU": "Paracetamol",
        "SO_LUONG": "1",
        "MA_LOAI_KCB": "01",
        "KET_QUA_DTRI": "Khỏi",
        "TINH_TRANG_RV": "Ra viện",
    }
    row.update(overrides)
    return row


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def raw_rows():
    """Two visits over two months, four service groups."""
    return [
        make_row(MA_LK="V1", THANH_TIEN="100", MA_LOAI_KCB="03", TEN_NHOM="Thuốc", DICH_VU="Paracetamol"),
        make_row(MA_LK="V1", THANH_TIEN="50", MA_LOAI_KCB="02", TEN_NHOM="Xét nghiệm", DICH_VU="Công thức máu"),
        make_row(MA_LK="V2", MA_BN="BN2", THANH_TIEN="30", MA_LOAI_KCB="01", TEN_NHOM="Tiền giường",
                 DICH_VU="Giường nội khoa", KHOA="Khoa Ngoại", BAC_SY="BS Binh",
                 NGAY_THANH_TOAN="05/04/2024", MA_BENH="I10"),
        make_row(MA_LK="V3", MA_BN="BN3", THANH_TIEN="20", MA_LOAI_KCB="", TEN_NHOM="CĐHA",
                 DICH_VU="Siêu âm bụng", BAC_SY="", NGAY_THANH_TOAN="2024-04-20", MA_BENH=""),
    ]


@pytest.fixture
def records(raw_rows, now):
    return normalize_records(raw_rows, now=now)


@pytest.fixture
def csv_text():
    return (
        "MA_LK,MA_BN,THANH_TIEN,KHOA,TEN_NHOM,DICH_VU,MA_LOAI_KCB,NGAY_THANH_TOAN\n"
        'V1,BN1,"1,200,000",Khoa Nội,Thuốc,Paracetamol,03,20240301\n'
        "V2,BN2,300000,Khoa Ngoại,Xét nghiệm,Công thức máu,01,15/03/2024\n"
    )


@pytest.fixture
def row():
    return make_row
