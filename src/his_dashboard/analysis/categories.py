"""
Revenue categories and visit types inferred from free-text HIS labels.

Both classifiers are ordered rule lists: the first rule that matches wins, so
list order is the priority order. Labels are compared on a folded form
(case-folded, Vietnamese diacritics removed) so "Thuốc", "THUOC" and
"thuốc " all match the same keyword.
"""

from __future__ import annotations
import re
import unicodedata
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Callable
import pandas as pd

TOKEN_RX = re.compile(r"[a-z0-9]+")

def fold(text) -> str:
    s = unicodedata.normalize("NFD", str(text or "")).replace("đ", "d").replace("Đ", "D")
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    return " ".join(s.casefold().split())


class Category(str, Enum):
    MEDICINE = "Medicine"
    IMAGING = "Imaging"
    LAB = "Lab"
    BED = "Bed"
    OTHER = "Other"


CATEGORY_LABELS = {
    Category.MEDICINE: "Thuốc",
    Category.IMAGING: "Chẩn đoán hình ảnh",
    Category.LAB: "Xét nghiệm",
    Category.BED: "Tiền giường",
    Category.OTHER: "Khác",
}


@dataclass(frozen=True)
class CategoryRule:
    category: Category
    codes: frozenset[str]
    keywords: tuple[str, ...]
    # short abbreviations only count as whole words
    abbreviations: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "keywords", tuple(fold(k) for k in self.keywords))
        object.__setattr__(self, "abbreviations", frozenset(fold(a) for a in self.abbreviations))

    def matches(self, raw: str, folded: str, tokens: set[str]) -> bool:
        if raw in self.codes:
            return True
        if any(k in folded for k in self.keywords):
            return True
        return bool(self.abbreviations & tokens)


# standard XML export codes: 1 lab, 2-3 imaging/functional tests, 4-6 drugs, 14-15 beds
CATEGORY_RULES = [
    CategoryRule(
        Category.MEDICINE,
        codes=frozenset({"4", "5", "6"}),
        keywords=("thuốc", "dược", "vắc xin", "vaccine", "huyết thanh"),
    ),
    CategoryRule(
        Category.IMAGING,
        codes=frozenset({"2", "3"}),
        keywords=(
            "chẩn đoán hình ảnh", "x-quang", "xquang", "x quang", "siêu âm",
            "ct scanner", "cắt lớp", "mri", "cộng hưởng từ",
        ),
        # whole tokens only, so "doctor" and "CTscan" are not imaging
        abbreviations=frozenset({"ct", "cđha"}),
    ),
    CategoryRule(
        Category.LAB,
        codes=frozenset({"1"}),
        keywords=("xét nghiệm", "huyết học", "sinh hóa", "vi sinh", "miễn dịch", "giải phẫu bệnh"),
        # whole token only, "XNK" is not lab
        abbreviations=frozenset({"xn"}),
    ),
    CategoryRule(
        Category.BED,
        codes=frozenset({"14", "15"}),
        keywords=("giường",),
    ),
]

def classify_category(label) -> Category:
    raw = str(label or "").strip()
    folded = fold(raw)
    tokens = set(TOKEN_RX.findall(folded))
    for rule in CATEGORY_RULES:
        if rule.matches(raw, folded, tokens):
            return rule.category
    return Category.OTHER

def categorize(labels: pd.Series) -> pd.Series:
    """Category of every service-group label in `labels` (same index)."""
    lookup = {label: classify_category(label) for label in labels.unique()}
    return labels.map(lookup)

def category_totals(records: pd.DataFrame) -> dict[Category, float]:
    """Line-amount total per category; the totals add up to the frame's total."""
    categories = categorize(records["service_group"])
    amounts = records["line_amount"]
    return {cat: float(amounts[categories == cat].sum()) for cat in Category}


class VisitType(IntEnum):
    # value is the resolution priority
    OTHER = 0
    CONSULTATION = 1
    OUTPATIENT_TREATMENT = 2
    INPATIENT = 3


VISIT_TYPE_LABELS = {
    VisitType.CONSULTATION: "Khám bệnh (01)",
    VisitType.OUTPATIENT_TREATMENT: "ĐT Ngoại trú (02)",
    VisitType.INPATIENT: "Nội trú (03)",
    VisitType.OTHER: "Khác",
}

VisitPredicate = Callable[[str, str], bool]

VISIT_TYPE_RULES: list[tuple[VisitType, VisitPredicate]] = [
    (VisitType.INPATIENT,
     lambda raw, folded: raw in ("03", "3") or "noi" in folded),
    (VisitType.OUTPATIENT_TREATMENT,
     lambda raw, folded: raw in ("02", "2") or "dieu tri ngoai" in folded or "dt ngoai" in folded),
    (VisitType.CONSULTATION,
     lambda raw, folded: raw in ("01", "1") or ("kham" in folded and "suc khoe" not in folded)),
]

def classify_visit_type(code) -> VisitType:
    raw = str(code or "").strip()
    folded = fold(raw)
    for visit_type, predicate in VISIT_TYPE_RULES:
        if predicate(raw, folded):
            return visit_type
    return VisitType.OTHER

def resolve_visit_types(records: pd.DataFrame) -> pd.Series:
    """Resolved type of every visit, indexed by visit_id in first-seen order.

    A visit takes the highest-priority type found on any of its rows, so an
    inpatient row can never be downgraded by a later outpatient row.
    """
    codes = records["visit_type_code"]
    lookup = {code: int(classify_visit_type(code)) for code in codes.unique()}
    ranks = codes.map(lookup).astype(int)
    resolved = ranks.groupby(records["visit_id"], sort=False).max()
    return pd.Series([VisitType(r) for r in resolved], index=resolved.index, dtype=object)
