# chatbot/intent_classifier.py

import logging
import re
from enum import Enum
from typing import Callable, Iterable, List, Tuple

log = logging.getLogger(__name__)


class Intent(str, Enum):
    FORECAST = "FORECAST"               # regression forecast over a dataset
    STUDENT_SEARCH = "STUDENT_SEARCH"   # roster lookup
    UNKNOWN = "UNKNOWN"                 # not handled by the local pipeline


# -----------------------------
# Vocabularies
# -----------------------------

FORECAST_KEYWORDS = (
    "พยากรณ์", "คาดการณ์", "ประมาณการ", "ทำนาย", "คาดว่า",
    "predict", "forecast", "estimate", "projection",
)

STUDENT_KEYWORDS = (
    "รหัส", "รายชื่อ", "หานักศึกษา", "ค้นหานักศึกษา", "นักศึกษา", "นิสิต",
    "สาขา", "ชั้นปี", "รอพินิจ", "เกรดต่ำ", "เกรดสูง", "เกียรตินิยม",
    "student", "roster", "major", "at-risk", "honors",
)

# A student keyword alone is not enough: one of these (or a number) must appear too.
STUDENT_SIGNAL_KEYWORDS = (
    "สาขา", "ชั้นปี", "รอพินิจ", "เกรดต่ำ", "เกรดสูง", "เกียรตินิยม",
    "รายชื่อ", "ใคร", "คน",
    "major", "year", "at-risk", "honors", "list", "who", "count",
)

_DIGIT_TABLE = str.maketrans(
    "๐๑๒๓๔๕๖๗๘๙０１２３４５６７８９",
    "01234567890123456789",
)

_MULTI_DIGIT = re.compile(r"\d{2,}", re.ASCII)


def normalize_text(text: str) -> str:
    """
    Lowercase and fold Thai and full-width digits to ASCII.
    """
    return (text or "").translate(_DIGIT_TABLE).lower().strip()


def contains_keyword(query: str, keyword: str) -> bool:
    """
    Thai keywords match as substrings (Thai has no word spacing);
    ASCII keywords must start at a word boundary so "it" does not fire on "with";
    two-letter ones must also end at one ("hi" is not "history").
    """
    if keyword.isascii():
        pattern = r"(?<![a-z0-9])" + re.escape(keyword)
        if len(keyword) <= 2:
            pattern += r"(?![a-z0-9])"
        return re.search(pattern, query) is not None
    return keyword in query


def contains_any(query: str, keywords: Iterable[str]) -> bool:
    return any(contains_keyword(query, k) for k in keywords)


# -----------------------------
# Detection rules
# -----------------------------

def is_forecast_request(query: str) -> bool:
    return contains_any(query, FORECAST_KEYWORDS)


def is_student_query(query: str) -> bool:
    if not contains_any(query, STUDENT_KEYWORDS):
        return False
    return bool(_MULTI_DIGIT.search(query)) or contains_any(query, STUDENT_SIGNAL_KEYWORDS)


# Evaluated in order; the first rule that fires decides the intent.
RULES: List[Tuple[Intent, Callable[[str], bool]]] = [
    (Intent.FORECAST, is_forecast_request),
    (Intent.STUDENT_SEARCH, is_student_query),
]


def classify_intent(user_query: str) -> Intent:
    """
    Classifies user query into a predefined intent.
    """
    query = normalize_text(user_query)

    for intent, rule in RULES:
        if rule(query):
            log.debug("intent=%s query=%r", intent.value, query)
            return intent

    log.debug("intent=UNKNOWN query=%r", query)
    return Intent.UNKNOWN
