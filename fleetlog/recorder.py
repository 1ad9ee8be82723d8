from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Callable, Optional

from .auth import SessionManager
from .errors import (
    InvalidHorimeterRange,
    InvalidNumericInput,
    MissingEvidence,
    MissingServiceName,
    UnknownTractor,
)
from .remote import RemoteMirror
from .schemas import SyncSnapshot, WorkLog, WorkLogDraft
from .store import Collection, EntityStore
from .utils import coerce_number, isoformat_utc, parse_number, slugify_service, timestamp_identifier, utcnow

logger = logging.getLogger(__name__)


class WorkLogRecorder:
    """Turns operator drafts into immutable work logs."""

    def __init__(
        self,
        store: EntityStore,
        sessions: SessionManager,
        mirror: Optional[RemoteMirror] = None,
        *,
        clock: Callable[[], dt.datetime] = utcnow,
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._mirror = mirror
        self._clock = clock

    def submit(self, draft: WorkLogDraft) -> WorkLog:
        operator = self._sessions.require_user()

        if not draft.start_photo or not draft.end_photo:
            raise MissingEvidence("Both the start and the end horimeter photos must be attached.")

        start = parse_number(draft.start_horimeter)
        end = parse_number(draft.end_horimeter)
        # NaN never compares smaller, so unparseable input reaches the numeric check below.
        if end < start:
            raise InvalidHorimeterRange("The end horimeter cannot be lower than the start horimeter.")
        for value in (start, end):
            if not math.isfinite(value) or value < 0:
                raise InvalidNumericInput("Horimeter readings must be non-negative numbers.")

        tractor = self._store.find(Collection.TRACTORS, draft.tractor_id)
        if tractor is None:
            raise UnknownTractor(f"Tractor '{draft.tractor_id}' does not exist.")

        service_name = draft.service_name.strip()
        if not service_name:
            raise MissingServiceName("A service name is required.")

        now = self._clock()
        log = WorkLog(
            id=timestamp_identifier(now),
            operator_id=operator.id,
            operator_name=operator.name,
            tractor_id=tractor.id,
            tractor_name=tractor.name or "?",
            service_id=slugify_service(service_name),
            service_name=service_name,
            service_description=draft.service_description,
            date=now.date().isoformat(),
            start_horimeter=start,
            end_horimeter=end,
            start_horimeter_photo=draft.start_photo,
            end_horimeter_photo=draft.end_photo,
            fuel_liters=coerce_number(draft.fuel_liters),
            notes=draft.notes,
            total_hours=end - start,
            created_at=isoformat_utc(now),
        )
        self._store.append(Collection.LOGS, log)
        logger.info(
            "Recorded work log %s: %s on %s, %.1f h",
            log.id,
            operator.name,
            tractor.name,
            log.total_hours,
        )

        # Admin edits made since the lookup above must survive the cascade.
        self._store.patch_by_id(
            Collection.TRACTORS,
            tractor.id,
            current_horimeter=end,
            last_update_date=now.date().isoformat(),
        )

        if self._mirror is not None and self._store.get_config().auto_sync_enabled:
            result = self._mirror.push(
                SyncSnapshot(logs=[log], tractors=self._store.get(Collection.TRACTORS))
            )
            if not result.success:
                logger.warning("Auto-sync after work log %s failed: %s", log.id, result.message)
        return log


__all__ = ["WorkLogRecorder"]
