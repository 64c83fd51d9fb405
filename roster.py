# chatbot/roster.py
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Union

MAJORS = [
    "Computer Science",
    "Information Technology",
    "Mathematics",
    "Chemistry",
    "Physics",
    "Biology",
    "Data Science",
    "Statistics",
]

FIRST_NAMES = [
    "สมชาย", "สมหญิง", "กิตติ", "ปิยะ", "วรัญญา", "จิรา", "ณัฐ", "พิมพ์", "อรุณ", "ธนา",
    "สุภา", "ชัยวัฒน์", "นภา", "วิภา", "เอก", "ภูมิ", "แก้ว", "ดวง", "พลอย", "มาลี",
]
LAST_NAMES = [
    "ใจดี", "สุขสันต์", "รัตนา", "ศรีสุข", "วงศ์ดี", "จันทร์เพ็ญ", "แสงทอง", "มาลัย",
    "พงษ์ดี", "บุญมา", "ทองดี", "สมบูรณ์", "เจริญ", "รุ่งเรือง", "สว่าง",
]

AT_RISK_GPA = 2.0
HONORS_GPA = 3.5

STATUS_LABELS = {
    "at-risk": "รอพินิจ",
    "normal": "ปกติ",
}


@dataclass(frozen=True)
class StudentRecord:
    id: str
    name: str
    major: str
    year: int
    gpa: float

    @property
    def status(self) -> str:
        return "at-risk" if self.gpa < AT_RISK_GPA else "normal"

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.status]


class PredicateKind(str, Enum):
    ID_PREFIX = "ID_PREFIX"
    NAME_CONTAINS = "NAME_CONTAINS"
    MAJOR_EQUALS = "MAJOR_EQUALS"
    YEAR_EQUALS = "YEAR_EQUALS"
    BELOW_THRESHOLD = "BELOW_THRESHOLD"   # gpa < 2.00
    ABOVE_THRESHOLD = "ABOVE_THRESHOLD"   # gpa >= 3.50, best first


@dataclass(frozen=True)
class StudentPredicate:
    kind: PredicateKind
    value: Optional[Union[str, int]] = None

    def matches(self, record: StudentRecord) -> bool:
        if self.kind == PredicateKind.ID_PREFIX:
            return record.id.startswith(str(self.value))
        if self.kind == PredicateKind.NAME_CONTAINS:
            return str(self.value).lower() in record.name.lower()
        if self.kind == PredicateKind.MAJOR_EQUALS:
            return record.major == self.value
        if self.kind == PredicateKind.YEAR_EQUALS:
            return record.year == self.value
        if self.kind == PredicateKind.BELOW_THRESHOLD:
            return record.gpa < AT_RISK_GPA
        if self.kind == PredicateKind.ABOVE_THRESHOLD:
            return record.gpa >= HONORS_GPA
        return False

    def describe(self) -> str:
        if self.kind == PredicateKind.ID_PREFIX:
            return f'รหัสขึ้นต้นด้วย "{self.value}"'
        if self.kind == PredicateKind.NAME_CONTAINS:
            return f'ชื่อ "{self.value}"'
        if self.kind == PredicateKind.MAJOR_EQUALS:
            return f"สาขา{self.value}"
        if self.kind == PredicateKind.YEAR_EQUALS:
            return f"ชั้นปี {self.value}"
        if self.kind == PredicateKind.BELOW_THRESHOLD:
            return "สถานะรอพินิจ (GPA < 2.00)"
        return "GPA สูง (≥ 3.50)"


# --------------------------------------------------
# Deterministic generator
# --------------------------------------------------

def seeded_random(seed: int):
    """
    Park-Miller minimal standard generator yielding floats in [0, 1).
    """
    state = seed

    def next_value() -> float:
        nonlocal state
        state = (state * 16807) % 2147483647
        return (state - 1) / 2147483646

    return next_value


def generate_roster(size: int = 50, seed: int = 42) -> List[StudentRecord]:
    rng = seeded_random(seed)
    records = []

    for i in range(size):
        year = [1, 2, 3, 4][int(rng() * 4)]
        major = MAJORS[int(rng() * len(MAJORS))]
        gpa = round(1.5 + rng() * 2.5, 2)
        first = FIRST_NAMES[int(rng() * len(FIRST_NAMES))]
        last = LAST_NAMES[int(rng() * len(LAST_NAMES))]

        records.append(StudentRecord(
            # cohort digit: first-years are 5, fourth-years are 2
            id=f"6{6 - year}01{i:04d}",
            name=f"{first} {last}",
            major=major,
            year=year,
            gpa=gpa,
        ))

    return records


class Roster:
    """
    Read-only student corpus. Built once by the caller and passed in.
    """

    def __init__(self, records: Iterable[StudentRecord]):
        self.records = tuple(records)

    @classmethod
    def generate(cls, size: int = 50, seed: int = 42) -> "Roster":
        return cls(generate_roster(size=size, seed=seed))

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[StudentRecord]:
        return iter(self.records)

    def filter(self, predicate: StudentPredicate) -> List[StudentRecord]:
        results = [r for r in self.records if predicate.matches(r)]
        if predicate.kind == PredicateKind.ABOVE_THRESHOLD:
            results.sort(key=lambda r: r.gpa, reverse=True)
        return results

    def average_gpa(self) -> float:
        if not self.records:
            return 0.0
        return sum(r.gpa for r in self.records) / len(self.records)
