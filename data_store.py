# chatbot/data_store.py
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

import pandas as pd


# --------------------------------------------------
# Scope vocabularies
# --------------------------------------------------

NARROW_SCOPE_WORDS = ("คณะวิทยาศาสตร์", "วิทยาศาสตร์", "science", "คณะวิทย์")
BROAD_SCOPE_WORDS = ("มหาวิทยาลัย", "มจ", "mju", "ทั้งหมด")

NARROW_SCOPE_LABEL = "คณะวิทยาศาสตร์"
BROAD_SCOPE_LABEL = "มหาวิทยาลัย"


class SeriesPoint(NamedTuple):
    year: int
    value: float


@dataclass(frozen=True)
class DatasetDescriptor:
    """
    One forecastable time series and the words that select it.
    """
    key: str
    label: str
    unit: str
    scope: str
    color_hint: str
    keyword_triggers: Tuple[str, ...]
    scope_triggers: Tuple[str, ...]
    data_accessor: Callable[[], List[SeriesPoint]] = field(compare=False, repr=False)

    def points(self) -> List[SeriesPoint]:
        return self.data_accessor()

    def matches_keywords(self, query: str) -> bool:
        return any(k in query for k in self.keyword_triggers)

    def matches_scope(self, is_narrow: bool) -> bool:
        vocabulary = NARROW_SCOPE_WORDS if is_narrow else BROAD_SCOPE_WORDS
        return any(t in vocabulary for t in self.scope_triggers)


# --------------------------------------------------
# Static source tables (synthetic, illustrative)
# --------------------------------------------------

def _budget_table(rows) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=["year", "type", "revenue", "expense"])
    df["surplus"] = (df["revenue"] - df["expense"]).round(2)
    return df


def default_tables() -> Dict[str, pd.DataFrame]:
    university_budget = _budget_table([
        (2563, "actual", 2150.4, 1982.6),
        (2564, "actual", 2212.8, 2046.1),
        (2565, "actual", 2298.5, 2110.3),
        (2566, "actual", 2365.2, 2187.9),
        (2567, "actual", 2441.7, 2254.0),
        (2568, "forecast", 2515.0, 2320.0),
        (2569, "forecast", 2590.0, 2388.0),
    ])

    science_budget = _budget_table([
        (2563, "actual", 12.1, 11.3),
        (2564, "actual", 12.6, 11.8),
        (2565, "actual", 13.2, 12.3),
        (2566, "actual", 13.8, 12.9),
        (2567, "actual", 14.5, 13.4),
        (2568, "forecast", 15.1, 14.0),
        (2569, "forecast", 15.7, 14.5),
    ])

    university_students = pd.DataFrame(
        [
            (2563, "actual", 18950, 17820, 930, 200),
            (2564, "actual", 19120, 17980, 935, 205),
            (2565, "actual", 19388, 18240, 938, 210),
            (2566, "actual", 19602, 18440, 947, 215),
            (2567, "actual", 19821, 18650, 951, 220),
            (2568, "forecast", 20050, 18860, 965, 225),
            (2569, "forecast", 20270, 19060, 980, 230),
        ],
        columns=["year", "type", "total", "bachelor", "master", "doctoral"],
    )

    science_enrollment = pd.DataFrame(
        [
            (2563, 298),
            (2564, 312),
            (2565, 325),
            (2566, 318),
            (2567, 338),
        ],
        columns=["year", "count"],
    )

    return {
        "university_budget": university_budget,
        "science_budget": science_budget,
        "university_students": university_students,
        "science_enrollment": science_enrollment,
    }


def _actual_series(table: pd.DataFrame, column: str) -> Callable[[], List[SeriesPoint]]:
    """
    Accessor over the recorded rows of one column: sorted by year,
    one value per year (the last row wins on duplicates).
    """
    def accessor() -> List[SeriesPoint]:
        df = table
        if "type" in df.columns:
            df = df[df["type"] == "actual"]
        df = (
            df[["year", column]]
            .dropna()
            .drop_duplicates(subset="year", keep="last")
            .sort_values("year")
        )
        return [
            SeriesPoint(int(year), value)
            for year, value in zip(df["year"].tolist(), df[column].tolist())
        ]

    return accessor


# --------------------------------------------------
# Registry
# --------------------------------------------------

class DatasetRegistry:
    """
    Fixed catalog of forecastable series, iterated in insertion order.
    """

    def __init__(self, descriptors: Iterable[DatasetDescriptor], tables: Optional[Dict[str, pd.DataFrame]] = None):
        self._descriptors: Dict[str, DatasetDescriptor] = {}
        for descriptor in descriptors:
            self._descriptors[descriptor.key] = descriptor
        self.tables = tables or {}

    # --------------------------------------------------
    # Public API
    # --------------------------------------------------

    def lookup(self, key: str) -> DatasetDescriptor:
        if key not in self._descriptors:
            raise KeyError(f"Dataset not found: {key}")
        return self._descriptors[key]

    def keys(self) -> List[str]:
        return list(self._descriptors)

    def descriptors(self) -> List[DatasetDescriptor]:
        return list(self._descriptors.values())

    def match_by_keyword_and_scope(self, utterance: str, is_narrow: bool) -> List[str]:
        query = utterance.lower()
        return [
            d.key for d in self._descriptors.values()
            if d.matches_keywords(query) and d.matches_scope(is_narrow)
        ]

    def table(self, name: str) -> pd.DataFrame:
        if name not in self.tables:
            raise ValueError(f"Table not found: {name}")
        return self.tables[name]

    def default_target_years(self, count: int = 2) -> List[int]:
        """
        The years right after the latest year any table knows about,
        forecast rows included.
        """
        anchors = [int(df["year"].max()) for df in self.tables.values() if not df.empty]
        if not anchors:
            anchors = [
                p.year for d in self._descriptors.values() for p in d.points()
            ]
        if not anchors:
            return []
        anchor = max(anchors)
        return [anchor + i for i in range(1, count + 1)]


def build_registry(tables: Optional[Dict[str, pd.DataFrame]] = None) -> DatasetRegistry:
    """
    Build the standard catalog over the given tables (defaults to the
    bundled synthetic tables). Tests pass fixture tables here.
    """
    tables = tables if tables is not None else default_tables()
    university_budget = tables["university_budget"]
    science_budget = tables["science_budget"]
    university_students = tables["university_students"]
    science_enrollment = tables["science_enrollment"]

    descriptors = [
        DatasetDescriptor(
            key="university_budget_revenue",
            label="รายรับมหาวิทยาลัย",
            unit="ล้านบาท",
            scope=BROAD_SCOPE_LABEL,
            color_hint="#00a651",
            keyword_triggers=("รายรับ", "revenue"),
            scope_triggers=BROAD_SCOPE_WORDS,
            data_accessor=_actual_series(university_budget, "revenue"),
        ),
        DatasetDescriptor(
            key="university_budget_expense",
            label="รายจ่ายมหาวิทยาลัย",
            unit="ล้านบาท",
            scope=BROAD_SCOPE_LABEL,
            color_hint="#E91E63",
            keyword_triggers=("รายจ่าย", "expense", "ค่าใช้จ่าย"),
            scope_triggers=BROAD_SCOPE_WORDS,
            data_accessor=_actual_series(university_budget, "expense"),
        ),
        DatasetDescriptor(
            key="university_budget",
            label="งบประมาณมหาวิทยาลัย (รายรับ)",
            unit="ล้านบาท",
            scope=BROAD_SCOPE_LABEL,
            color_hint="#00a651",
            keyword_triggers=("งบประมาณ", "budget", "งบ"),
            scope_triggers=BROAD_SCOPE_WORDS,
            data_accessor=_actual_series(university_budget, "revenue"),
        ),
        DatasetDescriptor(
            key="science_budget_revenue",
            label="รายรับคณะวิทยาศาสตร์",
            unit="ล้านบาท",
            scope=NARROW_SCOPE_LABEL,
            color_hint="#006838",
            keyword_triggers=("รายรับ", "revenue", "งบประมาณ", "budget", "งบ"),
            scope_triggers=NARROW_SCOPE_WORDS,
            data_accessor=_actual_series(science_budget, "revenue"),
        ),
        DatasetDescriptor(
            key="science_budget_expense",
            label="รายจ่ายคณะวิทยาศาสตร์",
            unit="ล้านบาท",
            scope=NARROW_SCOPE_LABEL,
            color_hint="#A23B72",
            keyword_triggers=("รายจ่าย", "expense", "ค่าใช้จ่าย"),
            scope_triggers=NARROW_SCOPE_WORDS,
            data_accessor=_actual_series(science_budget, "expense"),
        ),
        DatasetDescriptor(
            key="university_students",
            label="จำนวนนิสิตมหาวิทยาลัย",
            unit="คน",
            scope=BROAD_SCOPE_LABEL,
            color_hint="#7B68EE",
            keyword_triggers=("นิสิต", "นักศึกษา", "student", "จำนวนนิสิต"),
            scope_triggers=BROAD_SCOPE_WORDS,
            data_accessor=_actual_series(university_students, "total"),
        ),
        DatasetDescriptor(
            key="science_students",
            label="จำนวนนิสิตคณะวิทยาศาสตร์",
            unit="คน",
            scope=NARROW_SCOPE_LABEL,
            color_hint="#006838",
            keyword_triggers=("นิสิต", "นักศึกษา", "student", "จำนวนนิสิต"),
            scope_triggers=NARROW_SCOPE_WORDS,
            data_accessor=_actual_series(science_enrollment, "count"),
        ),
    ]

    return DatasetRegistry(descriptors, tables=tables)
