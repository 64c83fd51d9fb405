import pandas as pd


def _rows(df: pd.DataFrame, columns) -> list:
    lines = []
    for record in df.sort_values("year").to_dict("records"):
        values = " / ".join(f"{label} {record[col]}" for col, label in columns)
        lines.append(f"- ปี {int(record['year'])}: {values}")
    return lines


def _split_by_type(df: pd.DataFrame, columns) -> list:
    if "type" not in df.columns:
        return _rows(df, columns)

    lines = ["ข้อมูลจริง:"]
    lines += _rows(df[df["type"] == "actual"], columns)

    forecast = df[df["type"] == "forecast"]
    if not forecast.empty:
        lines.append("พยากรณ์:")
        lines += _rows(forecast, columns)
    return lines


BUDGET_COLUMNS = [("revenue", "รายรับ"), ("expense", "รายจ่าย"), ("surplus", "คงเหลือ")]
STUDENT_COLUMNS = [("total", "รวม"), ("bachelor", "ป.ตรี"), ("master", "ป.โท"), ("doctoral", "ป.เอก")]
ENROLLMENT_COLUMNS = [("count", "จำนวน")]


def build_context(registry, roster) -> dict:
    """
    Snapshot of every table the assistant knows about, as plain text
    sections ready for the system instruction.
    """
    sections = {}

    sections["งบประมาณมหาวิทยาลัย (ล้านบาท)"] = _split_by_type(
        registry.table("university_budget"), BUDGET_COLUMNS
    )
    sections["งบประมาณคณะวิทยาศาสตร์ (ล้านบาท)"] = _split_by_type(
        registry.table("science_budget"), BUDGET_COLUMNS
    )
    sections["จำนวนนิสิตมหาวิทยาลัย (คน)"] = _split_by_type(
        registry.table("university_students"), STUDENT_COLUMNS
    )
    sections["นิสิตคณะวิทยาศาสตร์แยกตามปีที่เข้า (คน)"] = _split_by_type(
        registry.table("science_enrollment"), ENROLLMENT_COLUMNS
    )

    records = list(roster)
    if records:
        below = sum(1 for s in records if s.status == "at-risk")
        sections["รายชื่อนักศึกษาในระบบ"] = [
            f"- จำนวน: {len(records)} คน",
            f"- GPA เฉลี่ย: {roster.average_gpa():.2f}",
            f"- สถานะรอพินิจ: {below} คน",
        ]

    return {
        "datasets": [
            {"key": d.key, "label": d.label, "unit": d.unit, "scope": d.scope}
            for d in registry.descriptors()
        ],
        "sections": sections,
    }
