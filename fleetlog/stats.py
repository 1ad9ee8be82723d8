from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .schemas import CamelModel, Tractor, WorkLog

ALL_TRACTORS = "all"
TOP_SERVICES = 5


class MachineHours(CamelModel):
    tractor_id: str
    name: str
    hours: float


class ServiceHours(CamelModel):
    name: str
    hours: float


class DashboardStats(CamelModel):
    total_hours: float
    total_fuel: float
    average_consumption: float
    log_count: int
    machine_hours: List[MachineHours]
    service_distribution: List[ServiceHours]


class TractorEfficiency(CamelModel):
    tractor_id: str
    name: str
    model: str
    current_horimeter: float
    last_update_date: Optional[str] = None
    total_hours: float
    total_fuel: float
    average_consumption: float
    expected_consumption: float
    over_target: bool
    target_ratio: float


def _average(fuel: float, hours: float) -> float:
    return fuel / hours if hours > 0 else 0.0


def filter_logs(logs: Sequence[WorkLog], tractor_id: Optional[str] = None) -> List[WorkLog]:
    if not tractor_id or tractor_id == ALL_TRACTORS:
        return list(logs)
    return [log for log in logs if log.tractor_id == tractor_id]


def compute_stats(
    logs: Sequence[WorkLog],
    tractors: Sequence[Tractor],
    filter_tractor_id: Optional[str] = None,
) -> DashboardStats:
    """Dashboard figures for the selected tractor, or the whole fleet.

    The machine comparison always covers every log; only the totals and the
    service distribution follow the filter.
    """
    selected = filter_logs(logs, filter_tractor_id)
    total_hours = sum(log.total_hours for log in selected)
    total_fuel = sum(log.fuel_liters for log in selected)

    machine_hours = [
        MachineHours(
            tractor_id=tractor.id,
            name=tractor.name,
            hours=sum(log.total_hours for log in logs if log.tractor_id == tractor.id),
        )
        for tractor in tractors
    ]

    per_service: Dict[str, float] = {}
    for log in selected:
        per_service[log.service_name] = per_service.get(log.service_name, 0.0) + log.total_hours
    ranked = sorted(per_service.items(), key=lambda item: item[1], reverse=True)[:TOP_SERVICES]

    return DashboardStats(
        total_hours=total_hours,
        total_fuel=total_fuel,
        average_consumption=_average(total_fuel, total_hours),
        log_count=len(selected),
        machine_hours=machine_hours,
        service_distribution=[ServiceHours(name=name, hours=hours) for name, hours in ranked],
    )


def fleet_efficiency(logs: Sequence[WorkLog], tractors: Sequence[Tractor]) -> List[TractorEfficiency]:
    summary: List[TractorEfficiency] = []
    for tractor in tractors:
        own = [log for log in logs if log.tractor_id == tractor.id]
        hours = sum(log.total_hours for log in own)
        fuel = sum(log.fuel_liters for log in own)
        average = _average(fuel, hours)
        expected = tractor.expected_consumption
        ratio = min(average / expected * 100, 100.0) if expected > 0 else 0.0
        summary.append(
            TractorEfficiency(
                tractor_id=tractor.id,
                name=tractor.name,
                model=tractor.model,
                current_horimeter=tractor.current_horimeter,
                last_update_date=tractor.last_update_date,
                total_hours=hours,
                total_fuel=fuel,
                average_consumption=average,
                expected_consumption=expected,
                over_target=round(average, 1) > expected,
                target_ratio=ratio,
            )
        )
    return summary


__all__ = [
    "ALL_TRACTORS",
    "DashboardStats",
    "MachineHours",
    "ServiceHours",
    "TractorEfficiency",
    "compute_stats",
    "filter_logs",
    "fleet_efficiency",
]
