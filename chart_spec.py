# chatbot/chart_spec.py
import copy
from typing import Any, Dict, List, Optional

DEFAULT_CHART_TYPE = "bar"

# Chart types drawn on a radial axis instead of x/y scales.
RADIAL_CHART_TYPES = {"radar", "polarArea"}

AXIS_COLOR = "#9ca3af"
GRID_COLOR = "rgba(255,255,255,0.05)"


class ChartSeries:
    def __init__(self, label: str, values: List[Optional[float]], style_hints: Optional[Dict[str, Any]] = None):
        self.label = label
        self.values = list(values)
        self.style_hints = dict(style_hints or {})

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "data": list(self.values), **self.style_hints}

    def __repr__(self):
        return f"ChartSeries(label={self.label!r}, values={self.values!r})"


class ChartSpec:
    """
    Renderer-neutral chart description. `None` in a series means no point
    at that label, which keeps several series aligned on one axis.
    """

    def __init__(self, chart_kind: str, labels: List[str], series: Optional[List[ChartSeries]] = None,
                 options: Optional[Dict[str, Any]] = None):
        self.chart_kind = chart_kind
        self.labels = list(labels)
        self.series = list(series or [])
        self.options = dict(options or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chartType": self.chart_kind,
            "data": {
                "labels": list(self.labels),
                "datasets": [s.to_dict() for s in self.series],
            },
            "options": copy.deepcopy(self.options),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ChartSpec":
        """
        Parse a chart block of shape {chartType, data: {labels, datasets}, options?}.
        Raises ValueError when the shape is wrong.
        """
        if not isinstance(payload, dict):
            raise ValueError("Chart block must be a JSON object")

        data = payload.get("data")
        if not isinstance(data, dict):
            raise ValueError("Chart block is missing 'data'")

        labels = data.get("labels") or []
        datasets = data.get("datasets") or []
        if not isinstance(labels, list) or not isinstance(datasets, list):
            raise ValueError("Chart 'labels' and 'datasets' must be lists")

        series = []
        for ds in datasets:
            if not isinstance(ds, dict):
                raise ValueError("Each chart dataset must be an object")
            values = ds.get("data") or []
            if not isinstance(values, list):
                raise ValueError("Chart dataset 'data' must be a list")
            style = {k: v for k, v in ds.items() if k not in {"label", "data"}}
            series.append(ChartSeries(str(ds.get("label", "")), values, style))

        options = payload.get("options") or {}
        if not isinstance(options, dict):
            options = {}

        chart_kind = payload.get("chartType")
        if not isinstance(chart_kind, str) or not chart_kind:
            chart_kind = DEFAULT_CHART_TYPE

        return cls(
            chart_kind=chart_kind,
            labels=[str(label) for label in labels],
            series=series,
            options=options,
        )

    def __repr__(self):
        return f"ChartSpec(chart_kind={self.chart_kind!r}, labels={self.labels!r}, series={self.series!r})"


def _section(options: Dict[str, Any], key: str) -> Dict[str, Any]:
    # model-written options may hold a non-object where a section belongs
    if not isinstance(options.get(key), dict):
        options[key] = {}
    return options[key]


def apply_theme(spec: ChartSpec) -> ChartSpec:
    """
    Dark-theme radial scale for radar/polar charts; other kinds pass through.
    """
    if spec.chart_kind not in RADIAL_CHART_TYPES:
        return spec

    options = copy.deepcopy(spec.options)
    scales = _section(options, "scales")
    radial = _section(scales, "r")
    radial.setdefault("angleLines", {"color": "rgba(255,255,255,0.1)"})
    radial.setdefault("grid", {"color": "rgba(255,255,255,0.1)"})
    radial.setdefault("pointLabels", {"color": AXIS_COLOR, "font": {"size": 10}})
    radial.setdefault("ticks", {"color": AXIS_COLOR, "backdropColor": "transparent"})

    plugins = _section(options, "plugins")
    plugins.setdefault("legend", {"position": "bottom", "labels": {"color": AXIS_COLOR}})

    return ChartSpec(spec.chart_kind, spec.labels, spec.series, options)


def forecast_options() -> Dict[str, Any]:
    return {
        "responsive": True,
        "maintainAspectRatio": False,
        "plugins": {
            "legend": {
                "position": "bottom",
                "labels": {"color": AXIS_COLOR, "padding": 8, "font": {"size": 10}},
            },
        },
        "scales": {
            "x": {"ticks": {"color": AXIS_COLOR, "font": {"size": 10}}, "grid": {"display": False}},
            "y": {"ticks": {"color": AXIS_COLOR, "font": {"size": 10}}, "grid": {"color": GRID_COLOR}},
        },
    }
