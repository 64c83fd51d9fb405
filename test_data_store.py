import pandas as pd
import pytest

from data_store import DatasetRegistry, SeriesPoint, build_registry
from query_planner import plan_forecast
from response_builder import NO_DATASET_MESSAGE, build_response


def test_points_are_sorted_and_unique(registry):
    for descriptor in registry.descriptors():
        years = [p.year for p in descriptor.points()]
        assert years == sorted(set(years))


def test_forecast_rows_are_not_history(registry):
    points = registry.lookup("university_budget_revenue").points()
    assert [p.year for p in points] == [2563, 2564, 2565, 2566, 2567]
    assert points[-1].value == pytest.approx(2441.7)


def test_duplicate_years_keep_last_row(tables):
    tables["science_enrollment"] = pd.DataFrame(
        [(2565, 300), (2563, 1), (2565, 310)], columns=["year", "count"]
    )
    points = build_registry(tables).lookup("science_students").points()
    assert points == [SeriesPoint(2563, 1), SeriesPoint(2565, 310)]


def test_match_narrow_scope(registry):
    keys = registry.match_by_keyword_and_scope("พยากรณ์งบประมาณคณะวิทยาศาสตร์", True)
    assert keys == ["science_budget_revenue"]


def test_match_broad_scope_keeps_insertion_order(registry):
    keys = registry.match_by_keyword_and_scope("Budget revenue", False)
    assert keys == ["university_budget_revenue", "university_budget"]


def test_match_nothing(registry):
    assert registry.match_by_keyword_and_scope("weather", False) == []


def test_lookup_unknown_key(registry):
    with pytest.raises(KeyError):
        registry.lookup("tuition")


def test_default_target_years_follow_latest_table_year(registry):
    assert registry.default_target_years() == [2570, 2571]


def test_default_target_years_without_any_data():
    empty = DatasetRegistry([])
    assert empty.default_target_years() == []


def test_forecast_over_an_empty_registry_is_answered():
    plan = plan_forecast("พยากรณ์งบประมาณ", DatasetRegistry([]))
    assert plan.target_years == []

    response = build_response(plan, DatasetRegistry([]), None)
    assert response.text == NO_DATASET_MESSAGE
