"""HTTP mirror of the local collections on a remote document endpoint."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Callable, Optional

import requests
from pydantic import ValidationError

from .schemas import RemotePayload, SyncResult, SyncSnapshot
from .store import Collection, EntityStore
from .utils import utcnow

logger = logging.getLogger(__name__)


class RemoteMirror:
    """Push and pull the store against a remote endpoint.

    Push is fire-and-forget: the response is never read, so only transport
    failures are reported. Pull replaces every collection present in the
    response wholesale, without merging.
    """

    def __init__(
        self,
        store: EntityStore,
        *,
        http: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        clock: Callable[[], dt.datetime] = utcnow,
    ) -> None:
        self._store = store
        self._http = http or requests.Session()
        self.timeout = timeout
        self._clock = clock

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _endpoint(self) -> Optional[str]:
        url = self._store.get_config().remote_endpoint_url.strip()
        return url or None

    @staticmethod
    def _not_configured() -> SyncResult:
        return SyncResult(success=False, message="Remote endpoint URL is not configured")

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------
    def push(self, snapshot: SyncSnapshot) -> SyncResult:
        url = self._endpoint()
        if url is None:
            return self._not_configured()
        payload = snapshot.model_dump(mode="json", by_alias=True, exclude_none=True)
        try:
            self._http.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Push to %s failed: %s", url, exc)
            return SyncResult(success=False, message=f"Push failed: {exc}")
        sent = ", ".join(f"{len(items)} {name}" for name, items in payload.items()) or "nothing"
        logger.info("Pushed %s to remote mirror", sent)
        return SyncResult(success=True, message=f"Sent {sent} to the remote mirror")

    def push_all(self) -> SyncResult:
        snapshot = SyncSnapshot(
            logs=self._store.get(Collection.LOGS),
            tractors=self._store.get(Collection.TRACTORS),
            users=self._store.get(Collection.USERS),
        )
        return self.push(snapshot)

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------
    def pull(self) -> SyncResult:
        url = self._endpoint()
        if url is None:
            return self._not_configured()
        params = {"t": int(self._clock().timestamp() * 1000)}
        try:
            response = self._http.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Pull from %s failed: %s", url, exc)
            return SyncResult(success=False, message=f"Pull failed: {exc}")

        if not 200 <= response.status_code < 300:
            logger.warning("Pull from %s returned HTTP %s", url, response.status_code)
            return SyncResult(success=False, message=f"Remote returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            return SyncResult(success=False, message="Remote response is not valid JSON")
        if not isinstance(body, dict):
            return SyncResult(success=False, message="Remote response has an unexpected shape")
        if body.get("error"):
            return SyncResult(success=False, message=f"Remote error: {body['error']}")

        try:
            remote = RemotePayload.model_validate(body)
        except ValidationError as exc:
            logger.warning("Pull from %s returned invalid records: %s", url, exc)
            return SyncResult(success=False, message="Remote data contains invalid records")

        applied = []
        for collection, items in (
            (Collection.LOGS, remote.logs),
            (Collection.TRACTORS, remote.tractors),
            (Collection.USERS, remote.users),
        ):
            if items is None:
                continue
            self._store.replace_all(collection, items)
            applied.append(f"{len(items)} {collection.value}")

        if not applied:
            return SyncResult(success=True, message="Remote returned no collections; nothing changed")
        summary = ", ".join(applied)
        logger.info("Pulled %s from remote mirror", summary)
        return SyncResult(success=True, message=f"Loaded {summary} from the remote mirror")


__all__ = ["RemoteMirror"]
