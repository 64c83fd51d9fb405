# chatbot/query_planner.py

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from data_store import NARROW_SCOPE_WORDS, DatasetRegistry, build_registry
from intent_classifier import Intent, contains_any, contains_keyword, normalize_text
from roster import PredicateKind, StudentPredicate

log = logging.getLogger(__name__)

# -----------------------------
# Forecast vocabularies
# -----------------------------

BAR_KEYWORDS = ("แท่ง", "bar", "column")
LINE_KEYWORDS = ("เส้น", "line")

BUDGET_WORDS = ("งบประมาณ", "budget", "งบ")
REVENUE_WORDS = ("รายรับ", "revenue")
EXPENSE_WORDS = ("รายจ่าย", "expense")
STUDENT_COUNT_WORDS = ("นิสิต", "นักศึกษา", "student")

# composite key -> the specific key that supersedes it
COMPOSITE_DATASETS = {
    "university_budget": "university_budget_revenue",
}

# Numbers directly followed by one of these are counts, never years.
_COUNT_UNITS = r"(?:คน|ราย|people|students|records|rows)"

YEAR_WORD_PATTERN = re.compile(
    r"(?:ปี|พ\.ศ\.|\byears?)\s*"
    r"(\d{2,4}(?!\d)(?!\s*" + _COUNT_UNITS + r")"
    r"(?:\s*(?:,|-|และ|ถึง|and|&)?\s*\d{2,4}(?!\d)(?!\s*" + _COUNT_UNITS + r"))*)",
    re.ASCII,
)
FREESTANDING_NUMBER = re.compile(
    r"\b(\d{2,4})\b(?!\s*" + _COUNT_UNITS + r")",
    re.ASCII,
)

# -----------------------------
# Student-search vocabularies
# -----------------------------

LIMIT_PATTERN = re.compile(r"(?<!\d)(\d+)\s*(?:คน|ราย|รายการ|people|students|records|rows)", re.ASCII)
LOOSE_LIMIT_PATTERN = re.compile(
    r"(?:แค่|ขอ|เอา|แสดง|โชว์|\bshow|\bjust|\bonly|\btop|\bfirst|\blimit)\s*(\d+)",
    re.ASCII,
)

ID_KEYWORD_PATTERN = re.compile(r"(?:รหัส|\bid)\s*(\d{2,8})(?!\d)", re.ASCII)
ID_TOKEN_PATTERN = re.compile(r"\b(6\d{1,7})\b(?!\s*" + _COUNT_UNITS + r")", re.ASCII)

NAME_KEYWORDS = ("ค้นหา", "ชื่อ", "หา", "search", "find", "named", "name")

MAJOR_KEYWORDS = [
    ("คอม", "Computer Science"),
    ("ไอที", "Information Technology"),
    ("it", "Information Technology"),
    ("คณิต", "Mathematics"),
    ("เคมี", "Chemistry"),
    ("ฟิสิกส์", "Physics"),
    ("ชีว", "Biology"),
    ("ข้อมูล", "Data Science"),
    ("data", "Data Science"),
    ("สถิติ", "Statistics"),
    ("comp", "Computer Science"),
    ("information tech", "Information Technology"),
    ("math", "Mathematics"),
    ("chem", "Chemistry"),
    ("physics", "Physics"),
    ("bio", "Biology"),
    ("statistic", "Statistics"),
]

ROSTER_CONTEXT_WORDS = (
    "สาขา", "นักศึกษา", "นิสิต", "คน", "รายชื่อ", "ใคร",
    "major", "student", "list", "who",
)

STUDY_YEAR_PATTERN = re.compile(r"(?:ชั้นปี|ปี|\byear)\s*(\d)(?!\d)", re.ASCII)

BELOW_THRESHOLD_KEYWORDS = (
    "รอพินิจ", "เกรดต่ำ", "เสี่ยง",
    "at-risk", "at risk", "probation", "low gpa", "low grade",
)
ABOVE_THRESHOLD_KEYWORDS = (
    "เกรดสูง", "เกียรตินิยม", "gpa สูง",
    "honors", "honours", "high gpa", "high grade",
)

# A name search term must not itself be a roster word ("รายชื่อนักศึกษา...").
_NAME_STOP_WORDS = ROSTER_CONTEXT_WORDS + (
    "รหัส", "ชั้นปี", "รอพินิจ", "เกรด", "เกียรตินิยม", "students",
)


@dataclass
class ForecastIntent:
    target_years: List[int]
    chart_kind: str = "line"
    dataset_keys: List[str] = field(default_factory=list)
    scope_is_narrow: bool = False


@dataclass
class StudentSearchIntent:
    predicate: StudentPredicate
    result_limit: int = 0   # 0 = unlimited


QueryPlan = Union[ForecastIntent, StudentSearchIntent]


# -----------------------------
# Forecast slots
# -----------------------------

def extract_chart_kind(query: str) -> str:
    chart_kind = "line"
    if contains_any(query, BAR_KEYWORDS):
        chart_kind = "bar"
    # line is checked last and wins when both appear
    if contains_any(query, LINE_KEYWORDS):
        chart_kind = "line"
    return chart_kind


def extract_target_years(query: str, default_years: Optional[List[int]] = None) -> List[int]:
    """
    Years named after a year word ("ปี 70 71", "year 2570") first; otherwise
    freestanding 2-4 digit numbers that look like Buddhist-era years.
    Two-digit years are shifted by +2500.
    """
    years = []

    for match in YEAR_WORD_PATTERN.finditer(query):
        for token in re.findall(r"\d{2,4}", match.group(1)):
            year = int(token)
            years.append(year + 2500 if year < 100 else year)

    if not years:
        for match in FREESTANDING_NUMBER.finditer(query):
            year = int(match.group(1))
            if 2500 <= year <= 2600:
                years.append(year)
            elif 60 <= year <= 99:
                years.append(year + 2500)

    if not years:
        years = list(default_years or [])

    return sorted(set(years))


def is_narrow_scope(query: str) -> bool:
    return contains_any(query, NARROW_SCOPE_WORDS)


def _narrow_fallback(query: str) -> List[str]:
    if contains_any(query, BUDGET_WORDS + REVENUE_WORDS + EXPENSE_WORDS):
        if contains_any(query, EXPENSE_WORDS):
            return ["science_budget_expense"]
        return ["science_budget_revenue"]
    if contains_any(query, STUDENT_COUNT_WORDS):
        return ["science_students"]
    return []


def _broad_fallback(query: str) -> List[str]:
    if contains_any(query, BUDGET_WORDS):
        return ["university_budget"]
    if contains_any(query, REVENUE_WORDS):
        return ["university_budget_revenue"]
    if contains_any(query, EXPENSE_WORDS):
        return ["university_budget_expense"]
    if contains_any(query, STUDENT_COUNT_WORDS):
        return ["university_students"]
    return []


def dedupe_datasets(keys: List[str]) -> List[str]:
    keys = list(dict.fromkeys(keys))
    for composite, specific in COMPOSITE_DATASETS.items():
        if composite in keys and specific in keys:
            keys.remove(composite)
    return keys


def select_datasets(query: str, is_narrow: bool, registry: DatasetRegistry) -> List[str]:
    """
    Precise keyword+scope match first, then single-keyword defaults:
    narrow-scope defaults, then institution-wide defaults.
    """
    known = set(registry.keys())
    keys = registry.match_by_keyword_and_scope(query, is_narrow)

    if not keys and is_narrow:
        keys = [k for k in _narrow_fallback(query) if k in known]

    if not keys:
        keys = [k for k in _broad_fallback(query) if k in known]

    return dedupe_datasets(keys)


def plan_forecast(user_input: str, registry: DatasetRegistry) -> ForecastIntent:
    query = normalize_text(user_input)
    narrow = is_narrow_scope(query)

    return ForecastIntent(
        target_years=extract_target_years(query, registry.default_target_years()),
        chart_kind=extract_chart_kind(query),
        dataset_keys=select_datasets(query, narrow, registry),
        scope_is_narrow=narrow,
    )


# -----------------------------
# Student-search slots
# -----------------------------

def extract_result_limit(query: str) -> int:
    match = LIMIT_PATTERN.search(query)
    if match:
        return int(match.group(1))

    match = LOOSE_LIMIT_PATTERN.search(query)
    if match:
        return int(match.group(1))

    return 0


def _match_id_prefix(query: str) -> Optional[StudentPredicate]:
    match = ID_KEYWORD_PATTERN.search(query) or ID_TOKEN_PATTERN.search(query)
    if match:
        return StudentPredicate(PredicateKind.ID_PREFIX, match.group(1))
    return None


def _keyword_ends(query: str, keyword: str):
    if keyword.isascii():
        pattern = r"(?<![a-z0-9])" + re.escape(keyword)
    elif keyword == "หา":
        # not the "หา" inside "มหาวิทยาลัย"
        pattern = r"(?<!ม)หา"
    else:
        pattern = re.escape(keyword)
    return [m.end() for m in re.finditer(pattern, query)]


def _match_name(query: str) -> Optional[StudentPredicate]:
    for keyword in NAME_KEYWORDS:
        for end in _keyword_ends(query, keyword):
            rest = query[end:].split()
            if not rest:
                continue
            term = rest[0]
            if len(term) >= 2 and not contains_any(term, _NAME_STOP_WORDS):
                return StudentPredicate(PredicateKind.NAME_CONTAINS, term)
    return None


def _match_major(query: str) -> Optional[StudentPredicate]:
    if not contains_any(query, ROSTER_CONTEXT_WORDS):
        return None
    for keyword, major in MAJOR_KEYWORDS:
        if contains_keyword(query, keyword):
            return StudentPredicate(PredicateKind.MAJOR_EQUALS, major)
    return None


def _match_study_year(query: str) -> Optional[StudentPredicate]:
    if not contains_any(query, ROSTER_CONTEXT_WORDS):
        return None
    for match in STUDY_YEAR_PATTERN.finditer(query):
        year = int(match.group(1))
        if 1 <= year <= 4:
            return StudentPredicate(PredicateKind.YEAR_EQUALS, year)
    return None


def _match_gpa_threshold(query: str) -> Optional[StudentPredicate]:
    if contains_any(query, BELOW_THRESHOLD_KEYWORDS):
        return StudentPredicate(PredicateKind.BELOW_THRESHOLD)
    if contains_any(query, ABOVE_THRESHOLD_KEYWORDS):
        return StudentPredicate(PredicateKind.ABOVE_THRESHOLD)
    return None


# Evaluated in order; the first extractor that finds its pattern wins.
PREDICATE_EXTRACTORS = [
    _match_id_prefix,
    _match_name,
    _match_major,
    _match_study_year,
    _match_gpa_threshold,
]


def plan_student_search(user_input: str) -> Optional[StudentSearchIntent]:
    query = normalize_text(user_input)
    limit = extract_result_limit(query)

    for extractor in PREDICATE_EXTRACTORS:
        predicate = extractor(query)
        if predicate is not None:
            return StudentSearchIntent(predicate=predicate, result_limit=limit)

    return None


# -----------------------------
# Entry point
# -----------------------------

def plan_query(user_input: str, intent: Intent, registry: Optional[DatasetRegistry] = None) -> Optional[QueryPlan]:
    """
    Converts (user_input, intent) into a structured plan, or None when
    the local pipeline cannot handle the question.
    """
    if intent == Intent.FORECAST:
        plan = plan_forecast(user_input, registry or build_registry())
    elif intent == Intent.STUDENT_SEARCH:
        plan = plan_student_search(user_input)
    else:
        plan = None

    log.debug("plan=%s", plan)
    return plan
