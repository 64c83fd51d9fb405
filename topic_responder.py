# chatbot/topic_responder.py

import re
from typing import Callable, List, Tuple

from data_store import BROAD_SCOPE_LABEL, NARROW_SCOPE_LABEL, DatasetRegistry
from intent_classifier import contains_any, normalize_text
from query_planner import is_narrow_scope
from response_builder import ChatResponse
from roster import AT_RISK_GPA, Roster

# -----------------------------
# Topic vocabularies
# -----------------------------

BUDGET_TOPIC_WORDS = ("งบประมาณ", "budget", "รายรับ", "รายจ่าย", "คงเหลือ", "surplus")
STUDENT_STATS_WORDS = ("นิสิต", "นักศึกษา", "จำนวน", "student", "สถิติ", "enrollment")
GPA_WORDS = ("เกรด", "gpa", "ผลการเรียน")
GREETING_WORDS = ("สวัสดี", "หวัดดี", "hello", "hi")
HELP_WORDS = ("ช่วย", "ทำอะไรได้", "help")

GOOD_GPA = 3.0

BUDGET_YEAR_PATTERN = re.compile(r"ปี\s*(\d{2,4})", re.ASCII)

NO_DATA_MESSAGE = (
    "ไม่มีข้อมูลนี้ในระบบ 🙏\n\n"
    "ลองถามเกี่ยวกับ: นักศึกษา (รหัส/สาขา/ชั้นปี), งบประมาณ, สถิตินิสิต, "
    'หรือพิมพ์ "ช่วย" เพื่อดูสิ่งที่ผมทำได้ครับ'
)

GREETING_MESSAGE = (
    "สวัสดีครับ! 👋 ผม MJU AI Assistant ช่วยได้หลายอย่างเลยครับ:\n\n"
    '🔍 **ค้นหานักศึกษา** — "รายชื่อนักศึกษารหัส 63" / "นักศึกษาสาขาคอม 5 คน"\n'
    '📊 **ข้อมูลสถิติ** — "สถิตินิสิตคณะวิทย์" / "งบประมาณปี 2568"\n'
    '🔮 **พยากรณ์** — "พยากรณ์งบฯ คณะวิทย์ ปี 70 71 เป็นกราฟ"'
)

HELP_MESSAGE = (
    "📚 **ผมช่วยได้ดังนี้:**\n\n"
    "🔍 **ค้นหานักศึกษา:**\n"
    '• "รายชื่อรหัส 63" — หาตามรหัส\n'
    '• "นักศึกษาสาขาคอม" — หาตามสาขา\n'
    '• "นิสิตชั้นปี 2" — หาตามชั้นปี\n'
    '• "นักศึกษารอพินิจ" — สถานะเสี่ยง\n'
    '• "นักศึกษาเกรดสูง 5 คน" — จำกัดจำนวน\n\n'
    "📊 **ข้อมูลระบบ:**\n"
    "• งบประมาณ (มหาวิทยาลัย/คณะวิทย์)\n"
    "• สถิตินิสิต, GPA\n\n"
    "🔮 **พยากรณ์ + กราฟ:**\n"
    '• "พยากรณ์งบฯ คณะวิทย์ ปี 70 71 เป็นกราฟ"\n'
    '• "คาดการณ์นิสิต ปี 2570 แบบกราฟแท่ง"'
)


def _fmt(value) -> str:
    """
    Thousands separators; whole floats print without a trailing .0
    """
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}"


# -----------------------------
# Topic handlers
# -----------------------------

def _budget_summary(query: str, registry: DatasetRegistry, roster: Roster) -> str:
    narrow = is_narrow_scope(query)
    df = registry.table("science_budget" if narrow else "university_budget")
    scope = NARROW_SCOPE_LABEL if narrow else BROAD_SCOPE_LABEL

    match = BUDGET_YEAR_PATTERN.search(query)
    if match:
        year = int(match.group(1))
        if year < 100:
            year += 2500
        found = df[df["year"] == year]
        if not found.empty:
            row = found.iloc[-1]
            tag = " (พยากรณ์)" if row["type"] == "forecast" else ""
            return (
                f"📊 **งบประมาณ{scope} ปี {year}**{tag}\n\n"
                f"💰 รายรับ: **{_fmt(float(row['revenue']))}** ล้านบาท\n"
                f"📉 รายจ่าย: **{_fmt(float(row['expense']))}** ล้านบาท\n"
                f"💎 คงเหลือ: **{_fmt(float(row['surplus']))}** ล้านบาท\n"
                f"📈 % การใช้จ่าย: {row['expense'] / row['revenue'] * 100:.1f}%"
            )

    actual = df[df["type"] == "actual"].sort_values("year")
    latest = actual.iloc[-1]
    history = "\n".join(
        f"• ปี {int(r.year)}: รับ {_fmt(float(r.revenue))} / จ่าย {_fmt(float(r.expense))} / เหลือ {_fmt(float(r.surplus))}"
        for r in actual.itertuples()
    )

    return (
        f"📊 **งบประมาณ{scope}**\n\n"
        f"📅 ข้อมูลล่าสุด ปี {int(latest['year'])}:\n"
        f"💰 รายรับ: **{_fmt(float(latest['revenue']))}** ล้านบาท\n"
        f"📉 รายจ่าย: **{_fmt(float(latest['expense']))}** ล้านบาท\n"
        f"💎 คงเหลือ: **{_fmt(float(latest['surplus']))}** ล้านบาท\n"
        f"📈 % การใช้จ่าย: {latest['expense'] / latest['revenue'] * 100:.1f}%\n\n"
        f"📋 ข้อมูลย้อนหลัง {len(actual)} ปี ({int(actual['year'].iloc[0])}–{int(latest['year'])})\n"
        f"{history}\n\n"
        '💡 ลองถาม "พยากรณ์งบประมาณปี 70 71 เป็นกราฟ" เพื่อดูกราฟ'
    )


def _student_statistics(query: str, registry: DatasetRegistry, roster: Roster) -> str:
    if is_narrow_scope(query):
        df = registry.table("science_enrollment").sort_values("year")
        lines = "\n".join(
            f"• ปี {int(year)}: {_fmt(int(count))} คน"
            for year, count in zip(df["year"].tolist(), df["count"].tolist())
        )
        return (
            f"🔬 **สถิตินิสิตคณะวิทยาศาสตร์**\n\n"
            f"📊 แยกตามปีเข้า:\n{lines}\n"
            f"━━━━━━━━━━━━━━━━━━━\n"
            f"📌 รวม {len(df)} ปี: **{_fmt(int(df['count'].sum()))}** คน"
        )

    df = registry.table("university_students")
    latest = df[df["type"] == "actual"].sort_values("year").iloc[-1]
    return (
        f"📊 **สถิตินิสิตคงอยู่ {BROAD_SCOPE_LABEL} ปี {int(latest['year'])}**\n\n"
        f"🎓 ปริญญาตรี: {_fmt(int(latest['bachelor']))} คน\n"
        f"📘 ปริญญาโท: {_fmt(int(latest['master']))} คน\n"
        f"📕 ปริญญาเอก: {_fmt(int(latest['doctoral']))} คน\n"
        f"━━━━━━━━━━━━━━━━━━━\n"
        f"📌 รวมทั้งหมด: **{_fmt(int(latest['total']))}** คน\n\n"
        '💡 ลอง "พยากรณ์จำนวนนิสิตปี 70 71 แบบกราฟ"'
    )


def _gpa_summary(query: str, registry: DatasetRegistry, roster: Roster) -> str:
    count = len(roster)
    if count == 0:
        return NO_DATA_MESSAGE

    above = sum(1 for s in roster if s.gpa >= GOOD_GPA)
    below = sum(1 for s in roster if s.gpa < AT_RISK_GPA)
    return (
        f"📊 **สรุป GPA นักศึกษา** (จากข้อมูลในระบบ {count} คน)\n\n"
        f"📈 GPA เฉลี่ย: **{roster.average_gpa():.2f}**\n"
        f"🟢 GPA ≥ 3.00: {above} คน ({above / count * 100:.0f}%)\n"
        f"🔴 GPA < 2.00 (รอพินิจ): {below} คน ({below / count * 100:.0f}%)\n\n"
        '💡 ลอง "นักศึกษาเกรดสูง" หรือ "นักศึกษารอพินิจ" เพื่อดูรายชื่อ'
    )


def _greeting(query: str, registry: DatasetRegistry, roster: Roster) -> str:
    return GREETING_MESSAGE


def _help(query: str, registry: DatasetRegistry, roster: Roster) -> str:
    return HELP_MESSAGE


# Evaluated in order; the first topic whose words appear answers.
TOPICS: List[Tuple[str, Tuple[str, ...], Callable[[str, DatasetRegistry, Roster], str]]] = [
    ("budget", BUDGET_TOPIC_WORDS, _budget_summary),
    ("student_stats", STUDENT_STATS_WORDS, _student_statistics),
    ("gpa", GPA_WORDS, _gpa_summary),
    ("greeting", GREETING_WORDS, _greeting),
    ("help", HELP_WORDS, _help),
]


def respond_to_topic(user_input: str, registry: DatasetRegistry, roster: Roster) -> ChatResponse:
    """
    Canned answers over local tables for questions the pipeline does
    not handle. Always answers; unknown topics get the no-data message.
    """
    query = normalize_text(user_input)

    for name, words, handler in TOPICS:
        if contains_any(query, words):
            return ChatResponse(handler(query, registry, roster), source="topic", kind=name)

    return ChatResponse(NO_DATA_MESSAGE, source="topic", kind="unknown")
