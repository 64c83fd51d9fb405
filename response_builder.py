# chatbot/response_builder.py

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from chart_spec import ChartSeries, ChartSpec, forecast_options
from data_store import DatasetDescriptor, DatasetRegistry, SeriesPoint
from intent_classifier import classify_intent
from query_planner import ForecastIntent, QueryPlan, StudentSearchIntent, plan_query
from regression import MIN_POINTS, RegressionModel, fit
from roster import Roster

log = logging.getLogger(__name__)


# -----------------------------
# Constants
# -----------------------------

FORECAST_FOOTNOTE = "💡 _อ้างอิงจากข้อมูลในระบบเท่านั้น (Linear Regression)_"

NO_DATASET_MESSAGE = (
    "⚠️ **ข้อมูลไม่เพียงพอในการคาดการณ์**\n\n"
    "ระบบมีข้อมูลสำหรับพยากรณ์ดังนี้:\n"
    "• 📈 งบประมาณมหาวิทยาลัย (รายรับ/รายจ่าย)\n"
    "• 🔬 งบประมาณคณะวิทยาศาสตร์ (รายรับ/รายจ่าย)\n"
    "• 👨‍🎓 จำนวนนิสิตมหาวิทยาลัย\n"
    "• 🧪 จำนวนนิสิตคณะวิทยาศาสตร์\n\n"
    'ลองถามใหม่ เช่น "พยากรณ์งบประมาณคณะวิทยาศาสตร์ ปี 70 71 แบบกราฟ"'
)

# (lower bound, glyph), checked top-down
GPA_BANDS = [
    (3.5, "🟢"),
    (2.5, "🟡"),
    (2.0, "🟠"),
]
GPA_BELOW_BANDS = "🔴"


@dataclass
class ChatResponse:
    text: str
    chart: Optional[ChartSpec] = None
    source: str = "local"          # local | remote | topic | error
    superseded: bool = False
    kind: Optional[str] = None     # forecast | student_search | topic name
    plan: Optional[QueryPlan] = None
    followups: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "reply": self.text,
            "chart": self.chart.to_dict() if self.chart else None,
            "source": self.source,
            "followups": list(self.followups),
            "superseded": self.superseded,
        }


# -----------------------------
# Public entry points
# -----------------------------

def build_response(plan: QueryPlan, registry: DatasetRegistry, roster: Roster) -> ChatResponse:
    """
    Build the final chatbot response for a structured plan.
    """
    try:
        if isinstance(plan, ForecastIntent):
            return _handle_forecast(plan, registry)

        if isinstance(plan, StudentSearchIntent):
            return _handle_student_search(plan, roster)

    except (KeyError, ValueError) as e:
        log.warning("Could not build response for %s: %s", plan, e)
        return ChatResponse(f"⚠️ {e}", plan=plan)

    raise TypeError(f"Unsupported plan type: {type(plan).__name__}")


def answer_locally(user_input: str, registry: DatasetRegistry, roster: Roster) -> Optional[ChatResponse]:
    """
    Classify, plan and answer with local data only. None means the
    utterance is not handled by the local pipeline.
    """
    intent = classify_intent(user_input)
    plan = plan_query(user_input, intent, registry)
    if plan is None:
        return None
    return build_response(plan, registry, roster)


# --------------------------------------------------
# Forecast
# --------------------------------------------------

def _handle_forecast(plan: ForecastIntent, registry: DatasetRegistry) -> ChatResponse:
    if not plan.dataset_keys:
        return ChatResponse(NO_DATASET_MESSAGE, kind="forecast", plan=plan)

    sections = []
    fitted: List[Tuple[DatasetDescriptor, List[SeriesPoint], RegressionModel]] = []

    for key in plan.dataset_keys:
        descriptor = registry.lookup(key)
        points = descriptor.points()

        if len(points) < MIN_POINTS:
            sections.append(f"⚠️ {descriptor.label}: ข้อมูลไม่เพียงพอ (ต้องมีอย่างน้อย {MIN_POINTS} ปี)")
            continue

        model = fit(points)
        if model is None:
            sections.append(f"⚠️ {descriptor.label}: ไม่สามารถสร้างโมเดลพยากรณ์ได้")
            continue

        fitted.append((descriptor, points, model))
        sections.append(_forecast_summary(descriptor, points, model, plan.target_years))

    chart = _forecast_chart(fitted, plan) if fitted else None
    text = "\n\n".join(sections) + "\n\n" + FORECAST_FOOTNOTE

    return ChatResponse(text, chart=chart, kind="forecast", plan=plan)


def _forecast_summary(descriptor, points, model, target_years) -> str:
    years = [p.year for p in points]
    predictions = "\n".join(
        f"   ปี {y}: ~{model.predict(y):,} {descriptor.unit}" for y in target_years
    )
    return (
        f"📊 **{descriptor.label}**\n"
        f"ข้อมูลจริง: {years[0]}-{years[-1]} ({len(years)} ปี)\n"
        f"พยากรณ์ (Linear Regression):\n{predictions}"
    )


def _forecast_chart(fitted, plan: ForecastIntent) -> ChartSpec:
    """
    One shared year axis; two aligned series (actual, forecast) per dataset.
    """
    axis = set(plan.target_years)
    for _, points, _ in fitted:
        axis.update(p.year for p in points)
    axis = sorted(axis)

    series = []
    for descriptor, points, model in fitted:
        actual_series, forecast_series = _aligned_values(points, model, axis)
        series.append(ChartSeries(
            f"{descriptor.label} (ข้อมูลจริง)",
            actual_series,
            _actual_style(descriptor.color_hint, plan.chart_kind),
        ))
        series.append(ChartSeries(
            f"{descriptor.label} (พยากรณ์)",
            forecast_series,
            _forecast_style(descriptor.color_hint, plan.chart_kind),
        ))

    return ChartSpec(
        chart_kind=plan.chart_kind,
        labels=[f"ปี {y}" for y in axis],
        series=series,
        options=forecast_options(),
    )


def _aligned_values(points, model, axis):
    history = {p.year: p.value for p in points}
    latest = max(history)

    actual_values = []
    forecast_values = []
    for year in axis:
        if year in history:
            actual_values.append(history[year])
            # connecting point: the forecast line starts where the actual one ends
            forecast_values.append(history[year] if year == latest else None)
        else:
            actual_values.append(None)
            forecast_values.append(model.predict(year))

    return actual_values, forecast_values


def _actual_style(color: str, chart_kind: str) -> dict:
    return {
        "borderColor": color,
        "backgroundColor": color + "20",
        "fill": chart_kind == "line",
        "tension": 0.4,
        "pointBackgroundColor": color,
        "pointRadius": 5,
        "borderWidth": 2,
        "borderRadius": 6 if chart_kind == "bar" else 0,
    }


def _forecast_style(color: str, chart_kind: str) -> dict:
    return {
        "borderColor": color,
        "borderDash": [6, 3],
        "backgroundColor": color + "40",
        "tension": 0.4,
        "pointBackgroundColor": color + "cc",
        "pointRadius": 5,
        "pointStyle": "triangle",
        "borderWidth": 2,
        "borderRadius": 6 if chart_kind == "bar" else 0,
    }


# --------------------------------------------------
# Student search
# --------------------------------------------------

def gpa_glyph(gpa: float) -> str:
    for lower, glyph in GPA_BANDS:
        if gpa >= lower:
            return glyph
    return GPA_BELOW_BANDS


def _handle_student_search(plan: StudentSearchIntent, roster: Roster) -> ChatResponse:
    results = roster.filter(plan.predicate)
    description = plan.predicate.describe()
    total = len(results)

    if total == 0:
        return ChatResponse(
            f"🔍 ไม่พบนักศึกษา{description} ในระบบ",
            kind="student_search",
            plan=plan,
        )

    limit = plan.result_limit
    if limit > 0:
        results = results[:limit]

    text = f"📋 **พบนักศึกษา {description}** จำนวน {total} คน"
    if limit > 0 and total > limit:
        text += f" (แสดง {limit} คน)"
    text += "\n\n"

    for i, s in enumerate(results, 1):
        text += f"**{i}.** `{s.id}` {s.name}\n"
        text += f"   📚 {s.major} | ชั้นปี {s.year} | {gpa_glyph(s.gpa)} GPA {s.gpa} | {s.status_label}\n"

    if total > len(results):
        text += f'\n_...และอีก {total - len(results)} คน (พิมพ์ "ขอทั้งหมด" เพื่อดูเพิ่ม)_'

    return ChatResponse(text, kind="student_search", plan=plan)
