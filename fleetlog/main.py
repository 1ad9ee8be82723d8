from __future__ import annotations

from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from . import models
from .auth import SessionManager
from .config import Settings, settings
from .database import SessionLocal, engine
from .errors import EntityNotFound, FleetLogError
from .exports import export_logs_csv, export_logs_xlsx
from .recorder import WorkLogRecorder
from .remote import RemoteMirror
from .schemas import (
    ConfigUpdateRequest,
    ExportFormat,
    LoginRequest,
    ServiceType,
    ServiceTypeRequest,
    SessionResponse,
    SessionUser,
    SyncConfig,
    SyncResult,
    Tractor,
    TractorCreateRequest,
    TractorUpdateRequest,
    User,
    UserCreateRequest,
    UserRole,
    UserUpdateRequest,
    WorkLog,
    WorkLogDraft,
)
from .stats import ALL_TRACTORS, DashboardStats, TractorEfficiency, compute_stats, fleet_efficiency
from .storage import LocalStorage
from .store import Collection, EntityStore
from .utils import timestamp_identifier, utcnow


def attach_services(target: FastAPI, session_factory: sessionmaker, config: Settings = settings) -> None:
    """Build the store and its collaborators and hang them on ``target.state``."""
    storage = LocalStorage(session_factory)
    store = EntityStore(
        storage,
        prefix=config.storage_prefix,
        default_config=SyncConfig(
            remote_endpoint_url=config.remote_endpoint_url,
            auto_sync_enabled=config.auto_sync,
        ),
    )
    sessions = SessionManager(store)
    mirror = RemoteMirror(store, timeout=config.remote_timeout_seconds)
    target.state.store = store
    target.state.sessions = sessions
    target.state.mirror = mirror
    target.state.recorder = WorkLogRecorder(store, sessions, mirror)


models.Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.app_name)
attach_services(app, SessionLocal)


@app.exception_handler(FleetLogError)
def handle_domain_error(request: Request, exc: FleetLogError) -> JSONResponse:
    return JSONResponse({"detail": exc.message, "code": exc.code}, status_code=exc.status_code)


# ----------------------------------------------------------------------
# Dependencies
# ----------------------------------------------------------------------
def get_store(request: Request) -> EntityStore:
    return request.app.state.store


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def get_mirror(request: Request) -> RemoteMirror:
    return request.app.state.mirror


def get_recorder(request: Request) -> WorkLogRecorder:
    return request.app.state.recorder


def require_user(sessions: SessionManager = Depends(get_sessions)) -> User:
    return sessions.require_user()


def require_admin(sessions: SessionManager = Depends(get_sessions)) -> User:
    return sessions.require_role(UserRole.ADMIN)


def require_operator(sessions: SessionManager = Depends(get_sessions)) -> User:
    return sessions.require_role(UserRole.OPERATOR)


def _new_id() -> str:
    return timestamp_identifier(utcnow())


def _today() -> str:
    return utcnow().date().isoformat()


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


# ----------------------------------------------------------------------
# Session
# ----------------------------------------------------------------------
@app.post("/auth/login", response_model=SessionResponse)
def login(payload: LoginRequest, sessions: SessionManager = Depends(get_sessions)) -> SessionResponse:
    user = sessions.login(payload.pin)
    return SessionResponse(authenticated=True, user=SessionUser.from_user(user))


@app.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(sessions: SessionManager = Depends(get_sessions)) -> Response:
    sessions.logout()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/auth/session", response_model=SessionResponse)
def current_session(sessions: SessionManager = Depends(get_sessions)) -> SessionResponse:
    return SessionResponse(
        authenticated=sessions.is_authenticated,
        user=SessionUser.from_user(sessions.current_user),
    )


# ----------------------------------------------------------------------
# Tractors
# ----------------------------------------------------------------------
@app.get("/tractors", response_model=List[Tractor])
def list_tractors(_: User = Depends(require_user), store: EntityStore = Depends(get_store)) -> List[Tractor]:
    return store.get(Collection.TRACTORS)


@app.post("/tractors", response_model=Tractor, status_code=status.HTTP_201_CREATED)
def create_tractor(
    payload: TractorCreateRequest,
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> Tractor:
    tractor = Tractor(
        id=payload.id or _new_id(),
        name=payload.name,
        model=payload.model,
        current_horimeter=payload.current_horimeter,
        expected_consumption=payload.expected_consumption,
        last_update_date=payload.last_update_date.isoformat() if payload.last_update_date else _today(),
    )
    return store.append(Collection.TRACTORS, tractor)


@app.put("/tractors/{tractor_id}", response_model=Tractor)
def update_tractor(
    tractor_id: str,
    payload: TractorUpdateRequest,
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> Tractor:
    tractor = Tractor(
        id=tractor_id,
        name=payload.name,
        model=payload.model,
        current_horimeter=payload.current_horimeter,
        expected_consumption=payload.expected_consumption,
        last_update_date=payload.last_update_date.isoformat() if payload.last_update_date else _today(),
    )
    return store.update_by_id(Collection.TRACTORS, tractor_id, tractor)


@app.delete("/tractors/{tractor_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tractor(
    tractor_id: str,
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> Response:
    store.remove_by_id(Collection.TRACTORS, tractor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ----------------------------------------------------------------------
# Service catalog
# ----------------------------------------------------------------------
@app.get("/services", response_model=List[ServiceType])
def list_services(_: User = Depends(require_user), store: EntityStore = Depends(get_store)) -> List[ServiceType]:
    return store.get(Collection.SERVICES)


@app.post("/services", response_model=ServiceType, status_code=status.HTTP_201_CREATED)
def create_service(
    payload: ServiceTypeRequest,
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> ServiceType:
    return store.append(Collection.SERVICES, ServiceType(id=_new_id(), name=payload.name.strip()))


@app.put("/services/{service_id}", response_model=ServiceType)
def update_service(
    service_id: str,
    payload: ServiceTypeRequest,
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> ServiceType:
    return store.update_by_id(Collection.SERVICES, service_id, ServiceType(id=service_id, name=payload.name.strip()))


@app.delete("/services/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    service_id: str,
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> Response:
    store.remove_by_id(Collection.SERVICES, service_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ----------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------
@app.get("/users", response_model=List[User])
def list_users(_: User = Depends(require_admin), store: EntityStore = Depends(get_store)) -> List[User]:
    return store.get(Collection.USERS)


@app.post("/users", response_model=User, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreateRequest,
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> User:
    user = User(id=payload.id or _new_id(), name=payload.name, role=payload.role, pin=payload.pin)
    return store.append(Collection.USERS, user)


@app.put("/users/{user_id}", response_model=User)
def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> User:
    user = User(id=user_id, name=payload.name, role=payload.role, pin=payload.pin)
    return store.update_by_id(Collection.USERS, user_id, user)


@app.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> Response:
    store.remove_by_id(Collection.USERS, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ----------------------------------------------------------------------
# Work logs
# ----------------------------------------------------------------------
@app.post("/logs", response_model=WorkLog, status_code=status.HTTP_201_CREATED)
def submit_log(
    payload: WorkLogDraft,
    _: User = Depends(require_operator),
    recorder: WorkLogRecorder = Depends(get_recorder),
) -> WorkLog:
    return recorder.submit(payload)


@app.get("/logs", response_model=List[WorkLog])
def list_logs(
    tractor_id: Optional[str] = Query(default=None),
    operator_id: Optional[str] = Query(default=None),
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> List[WorkLog]:
    logs = store.get(Collection.LOGS)
    if tractor_id and tractor_id != ALL_TRACTORS:
        logs = [log for log in logs if log.tractor_id == tractor_id]
    if operator_id:
        logs = [log for log in logs if log.operator_id == operator_id]
    return sorted(logs, key=lambda log: log.created_at, reverse=True)


@app.get("/logs/{log_id}", response_model=WorkLog)
def read_log(log_id: str, _: User = Depends(require_admin), store: EntityStore = Depends(get_store)) -> WorkLog:
    log = store.find(Collection.LOGS, log_id)
    if log is None:
        raise EntityNotFound(f"logs record '{log_id}' not found")
    return log


# ----------------------------------------------------------------------
# Dashboard and exports
# ----------------------------------------------------------------------
@app.get("/stats", response_model=DashboardStats)
def read_stats(
    tractor_id: str = Query(default=ALL_TRACTORS),
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> DashboardStats:
    return compute_stats(store.get(Collection.LOGS), store.get(Collection.TRACTORS), tractor_id)


@app.get("/stats/fleet", response_model=List[TractorEfficiency])
def read_fleet_efficiency(
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> List[TractorEfficiency]:
    return fleet_efficiency(store.get(Collection.LOGS), store.get(Collection.TRACTORS))


@app.get("/exports/logs")
def export_logs(
    fmt: ExportFormat = Query(default="csv", alias="format"),
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> Response:
    logs = store.get(Collection.LOGS)
    stamp = _today()
    if fmt == "xlsx":
        content = export_logs_xlsx(logs)
        media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    else:
        content = export_logs_csv(logs).encode("utf-8")
        media_type = "text/csv; charset=utf-8"
    headers = {"Content-Disposition": f'attachment; filename="fleetlog_logs_{stamp}.{fmt}"'}
    return Response(content=content, media_type=media_type, headers=headers)


# ----------------------------------------------------------------------
# Remote mirror configuration and sync
# ----------------------------------------------------------------------
@app.get("/config", response_model=SyncConfig)
def read_config(_: User = Depends(require_admin), store: EntityStore = Depends(get_store)) -> SyncConfig:
    return store.get_config()


@app.put("/config", response_model=SyncConfig)
def write_config(
    payload: ConfigUpdateRequest,
    _: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> SyncConfig:
    config = SyncConfig(
        remote_endpoint_url=payload.remote_endpoint_url.strip(),
        auto_sync_enabled=payload.auto_sync_enabled,
    )
    return store.save_config(config)


@app.post("/sync/push", response_model=SyncResult)
def sync_push(_: User = Depends(require_admin), mirror: RemoteMirror = Depends(get_mirror)) -> SyncResult:
    return mirror.push_all()


@app.post("/sync/pull", response_model=SyncResult)
def sync_pull(_: User = Depends(require_admin), mirror: RemoteMirror = Depends(get_mirror)) -> SyncResult:
    return mirror.pull()
