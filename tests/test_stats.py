from __future__ import annotations

import pytest

from conftest import make_log
from fleetlog.schemas import Tractor
from fleetlog.stats import compute_stats, fleet_efficiency

TRACTORS = [
    Tractor(id="t1", name="Trator 01", model="JD", current_horimeter=100, expected_consumption=10),
    Tractor(id="t2", name="Trator 02", model="MF", current_horimeter=200, expected_consumption=8),
    Tractor(id="t3", name="Trator 03", model="Case", current_horimeter=300, expected_consumption=7.5),
]


def _logs():
    return [
        make_log(id="1", tractor_id="t1", service_name="Aragem", total_hours=4.0, fuel_liters=40.0),
        make_log(id="2", tractor_id="t2", service_name="Plantio", total_hours=2.5, fuel_liters=20.0),
        make_log(id="3", tractor_id="t1", service_name="Plantio", total_hours=1.5, fuel_liters=18.0),
        make_log(id="4", tractor_id="gone", service_name="Transporte", total_hours=3.0, fuel_liters=9.0),
    ]


def test_unfiltered_totals() -> None:
    logs = _logs()
    stats = compute_stats(logs, TRACTORS)
    assert stats.total_hours == sum(log.total_hours for log in logs)
    assert stats.total_fuel == 87.0
    assert stats.average_consumption == pytest.approx(87.0 / 11.0)
    assert stats.log_count == 4


def test_all_sentinel_matches_no_filter() -> None:
    assert compute_stats(_logs(), TRACTORS, "all") == compute_stats(_logs(), TRACTORS, None)


def test_zero_hours_gives_zero_average() -> None:
    logs = [make_log(total_hours=0.0, fuel_liters=25.0)]
    stats = compute_stats(logs, TRACTORS)
    assert stats.total_fuel == 25.0
    assert stats.average_consumption == 0

    empty = compute_stats([], TRACTORS)
    assert empty.total_hours == 0
    assert empty.average_consumption == 0
    assert empty.service_distribution == []


def test_filter_limits_totals_but_not_machine_comparison() -> None:
    logs = _logs()
    unfiltered = compute_stats(logs, TRACTORS)
    stats = compute_stats(logs, TRACTORS, "t1")

    assert stats.total_hours == 5.5
    assert stats.total_fuel == 58.0
    assert stats.log_count == 2
    assert stats.machine_hours == unfiltered.machine_hours
    assert [(m.tractor_id, m.hours) for m in stats.machine_hours] == [("t1", 5.5), ("t2", 2.5), ("t3", 0)]
    assert [(s.name, s.hours) for s in stats.service_distribution] == [("Aragem", 4.0), ("Plantio", 1.5)]


def test_service_distribution_keeps_top_five() -> None:
    hours = {"A": 10, "B": 30, "C": 5, "D": 20, "E": 2, "F": 1}
    logs = [
        make_log(id=str(index), service_name=name, total_hours=float(value))
        for index, (name, value) in enumerate(hours.items())
    ]
    distribution = compute_stats(logs, TRACTORS).service_distribution
    assert [(s.name, s.hours) for s in distribution] == [("B", 30), ("D", 20), ("A", 10), ("C", 5), ("E", 2)]


def test_service_ties_keep_encounter_order() -> None:
    logs = [
        make_log(id="1", service_name="Gradagem", total_hours=2.0),
        make_log(id="2", service_name="Aragem", total_hours=2.0),
        make_log(id="3", service_name="Colheita", total_hours=3.0),
    ]
    names = [s.name for s in compute_stats(logs, TRACTORS).service_distribution]
    assert names == ["Colheita", "Gradagem", "Aragem"]


def test_service_hours_accumulate_per_name() -> None:
    logs = [
        make_log(id="1", service_name="Aragem", total_hours=1.25),
        make_log(id="2", service_name="Aragem", total_hours=2.5),
    ]
    assert compute_stats(logs, TRACTORS).service_distribution[0].hours == 3.75


def test_fleet_efficiency_flags_over_target() -> None:
    summary = {entry.tractor_id: entry for entry in fleet_efficiency(_logs(), TRACTORS)}

    t1 = summary["t1"]
    assert t1.total_hours == 5.5
    assert t1.average_consumption == pytest.approx(58.0 / 5.5)
    assert t1.over_target is True
    assert t1.target_ratio == 100.0

    t2 = summary["t2"]
    assert t2.average_consumption == 8.0
    assert t2.over_target is False
    assert t2.target_ratio == 100.0

    t3 = summary["t3"]
    assert t3.total_hours == 0
    assert t3.average_consumption == 0
    assert t3.over_target is False
    assert t3.target_ratio == 0
