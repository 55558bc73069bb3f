"""
Category and visit-type classifier tests
"""
import pandas as pd
import pytest

from his_dashboard.analysis.categories import (
    Category,
    VisitType,
    category_totals,
    classify_category,
    classify_visit_type,
    fold,
    resolve_visit_types,
)


def test_fold_removes_diacritics_and_case():
    assert fold("  Thuốc   Đông Y ") == "thuoc dong y"
    assert fold(None) == ""


@pytest.mark.parametrize("label, expected", [
    ("Thuốc", Category.MEDICINE),
    ("THUOC TAN DUOC", Category.MEDICINE),
    ("Vắc xin", Category.MEDICINE),
    ("4", Category.MEDICINE),
    ("Chẩn đoán hình ảnh", Category.IMAGING),
    ("Siêu âm", Category.IMAGING),
    ("Chụp CT", Category.IMAGING),
    ("CĐHA", Category.IMAGING),
    ("3", Category.IMAGING),
    ("Xét nghiệm", Category.LAB),
    ("XN sinh hóa", Category.LAB),
    ("1", Category.LAB),
    ("Tiền giường", Category.BED),
    ("15", Category.BED),
    ("Phẫu thuật", Category.OTHER),
    ("XNK", Category.OTHER),
    ("", Category.OTHER),
    ("Other", Category.OTHER),
])
def test_classify_category(label, expected):
    assert classify_category(label) is expected


def test_medicine_wins_over_lab():
    """First matching rule wins."""
    assert classify_category("Thuốc dùng trong xét nghiệm") is Category.MEDICINE


def test_category_totals_partition_the_total(records):
    totals = category_totals(records)
    assert set(totals) == set(Category)
    assert totals[Category.MEDICINE] == 100
    assert totals[Category.LAB] == 50
    assert totals[Category.BED] == 30
    assert totals[Category.IMAGING] == 20
    assert totals[Category.OTHER] == 0
    assert sum(totals.values()) == pytest.approx(records["line_amount"].sum())


@pytest.mark.parametrize("code, expected", [
    ("03", VisitType.INPATIENT),
    ("3", VisitType.INPATIENT),
    ("Nội trú", VisitType.INPATIENT),
    ("02", VisitType.OUTPATIENT_TREATMENT),
    ("Điều trị ngoại trú", VisitType.OUTPATIENT_TREATMENT),
    ("ĐT ngoại trú", VisitType.OUTPATIENT_TREATMENT),
    ("01", VisitType.CONSULTATION),
    ("Khám bệnh", VisitType.CONSULTATION),
    ("Khám sức khỏe", VisitType.OTHER),
    ("", VisitType.OTHER),
    ("09", VisitType.OTHER),
])
def test_classify_visit_type(code, expected):
    assert classify_visit_type(code) is expected


def test_visit_type_takes_highest_priority_row():
    df = pd.DataFrame({
        "visit_id": ["V1", "V1", "V1", "V2", "V2", "V3"],
        "visit_type_code": ["03", "02", "01", "", "01", "02"],
    })
    resolved = resolve_visit_types(df)
    assert resolved.index.tolist() == ["V1", "V2", "V3"]
    assert resolved.tolist() == [VisitType.INPATIENT, VisitType.CONSULTATION, VisitType.OUTPATIENT_TREATMENT]


def test_inpatient_not_downgraded_by_later_row():
    df = pd.DataFrame({"visit_id": ["V1", "V1"], "visit_type_code": ["02", "03"]})
    assert resolve_visit_types(df)["V1"] is VisitType.INPATIENT


@pytest.mark.parametrize("codes, expected", [
    (["", "03", "02"], VisitType.INPATIENT),
    (["02", ""], VisitType.OUTPATIENT_TREATMENT),
    (["", "01"], VisitType.CONSULTATION),
])
def test_visit_type_resolution_order(codes, expected):
    df = pd.DataFrame({"visit_id": ["V"] * len(codes), "visit_type_code": codes})
    assert resolve_visit_types(df)["V"] is expected


@pytest.mark.parametrize("label, expected", [
    ("Chụp CT sọ não", Category.IMAGING),
    ("CT", Category.IMAGING),
    ("CTscan", Category.OTHER),
    ("Doctor fee", Category.OTHER),
    ("Gói XN", Category.LAB),
    ("XNK", Category.OTHER),
])
def test_abbreviations_match_whole_words_only(label, expected):
    assert classify_category(label) is expected
