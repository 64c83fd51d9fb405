from query_planner import ForecastIntent, StudentSearchIntent
from roster import PredicateKind

# -----------------------------
# Utterances the local pipeline answers
# -----------------------------

FORECAST_SCIENCE_BUDGET = "พยากรณ์งบประมาณคณะวิทยาศาสตร์ ปี 70 71 เป็นกราฟ"
FORECAST_UNIVERSITY_STUDENTS = "พยากรณ์จำนวนนิสิตมหาวิทยาลัย ปี 70 71 แบบกราฟแท่ง"
FORECAST_UNIVERSITY_BUDGET = "พยากรณ์งบประมาณมหาวิทยาลัย ปี 2570 2571 เป็นกราฟเส้น"
SEARCH_HONORS = "นักศึกษาเกรดสูง 5 คน"
SEARCH_AT_RISK = "นักศึกษารอพินิจ"
SEARCH_COMPUTER_SCIENCE = "นักศึกษาสาขาคอม 5 คน"
BUDGET_SCIENCE = "งบประมาณคณะวิทยาศาสตร์"
GPA_OVERVIEW = "สรุปเกรดเฉลี่ย GPA"

QUICK_ACTIONS = [
    FORECAST_SCIENCE_BUDGET,
    FORECAST_UNIVERSITY_STUDENTS,
    FORECAST_UNIVERSITY_BUDGET,
]


def suggest_followups(response_kind, plan=None):
    """
    Return at most two follow-up questions the local pipeline can answer.
    """

    suggestions = []

    # -----------------------------
    # FORECAST → another series or the underlying table
    # -----------------------------
    if response_kind == "forecast":
        keys = plan.dataset_keys if isinstance(plan, ForecastIntent) else []
        if any(k.endswith("students") for k in keys):
            suggestions.append(FORECAST_SCIENCE_BUDGET)
        else:
            suggestions.append(FORECAST_UNIVERSITY_STUDENTS)
        suggestions.append(BUDGET_SCIENCE)

    # -----------------------------
    # STUDENT SEARCH → the other GPA bands
    # -----------------------------
    elif response_kind == "student_search":
        kind = plan.predicate.kind if isinstance(plan, StudentSearchIntent) else None
        if kind != PredicateKind.ABOVE_THRESHOLD:
            suggestions.append(SEARCH_HONORS)
        if kind != PredicateKind.BELOW_THRESHOLD:
            suggestions.append(SEARCH_AT_RISK)
        suggestions.append(GPA_OVERVIEW)

    # -----------------------------
    # Topic answers → the matching forecast or search
    # -----------------------------
    elif response_kind == "budget":
        suggestions.append(FORECAST_UNIVERSITY_BUDGET)
        suggestions.append(FORECAST_SCIENCE_BUDGET)

    elif response_kind == "student_stats":
        suggestions.append(FORECAST_UNIVERSITY_STUDENTS)
        suggestions.append(SEARCH_COMPUTER_SCIENCE)

    elif response_kind == "gpa":
        suggestions.append(SEARCH_HONORS)
        suggestions.append(SEARCH_AT_RISK)

    elif response_kind in {"greeting", "help", "unknown"}:
        suggestions.extend(QUICK_ACTIONS)

    return suggestions[:2]
