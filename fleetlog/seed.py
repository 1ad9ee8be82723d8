"""Built-in dataset written to local storage the first time a slot is missing."""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from .schemas import ServiceType, Tractor, User, UserRole


def initial_tractors(today: Optional[dt.date] = None) -> List[Tractor]:
    stamp = (today or dt.datetime.now(dt.timezone.utc).date()).isoformat()
    return [
        Tractor(id="t1", name="Trator 01", model="John Deere 6115J", current_horimeter=1250.5,
                expected_consumption=12, last_update_date=stamp),
        Tractor(id="t2", name="Trator 02", model="Massey Ferguson 4275", current_horimeter=840.2,
                expected_consumption=8, last_update_date=stamp),
        Tractor(id="t3", name="Trator 03", model="Case IH Farmall 80", current_horimeter=2100.8,
                expected_consumption=7.5, last_update_date=stamp),
    ]


def initial_users() -> List[User]:
    return [
        User(id="u1", name="Admin Mucambinho", role=UserRole.ADMIN, pin="1234"),
        User(id="u2", name="João da Silva", role=UserRole.OPERATOR, pin="0001"),
        User(id="u3", name="Manoel Oliveira", role=UserRole.OPERATOR, pin="0002"),
    ]


def initial_services() -> List[ServiceType]:
    names = ["Aragem", "Gradagem", "Plantio", "Pulverização", "Colheita", "Transporte"]
    return [ServiceType(id=f"s{index}", name=name) for index, name in enumerate(names, start=1)]


__all__ = ["initial_tractors", "initial_users", "initial_services"]
