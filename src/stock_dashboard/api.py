"""FastAPI router configuration."""
from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Sequence

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response, status
from sqlalchemy.exc import NoResultFound
from sqlalchemy.ext.asyncio import AsyncSession

from . import crud, schemas
from .aggregation import group_inventory_by_code
from .codes import CodeResolver
from .config import Settings, get_settings
from .crud import SnapshotLoadError
from .dashboard import DashboardStore
from .database import get_session
from .domain import ClientRecord, DashboardSnapshot, ProductRecord
from .export import (
    PRODUCTION_EXPORT_FILENAME,
    SHIPMENTS_EXPORT_FILENAME,
    production_export_rows,
    shipment_export_rows,
    to_csv,
)
from .logging_config import configure_logging
from .notifications import PRODUCTION_CHANNEL, SHIPMENTS_CHANNEL, ChangeNotifier
from .reports import build_calendar_month, build_period_report, build_summary_report

router = APIRouter()


def provide_settings() -> Settings:
    """Dependency returning the active :class:`Settings` instance."""

    return get_settings()


def get_store(request: Request) -> DashboardStore:
    return request.app.state.store


def get_notifier(request: Request) -> ChangeNotifier:
    return request.app.state.notifier


async def _current_snapshot(store: DashboardStore, session: AsyncSession) -> DashboardSnapshot:
    try:
        return await store.current(session)
    except SnapshotLoadError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


def _not_found(exc: NoResultFound) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _bad_request(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("/health", response_model=schemas.HealthStatus, tags=["system"])
async def health_check(settings: Settings = Depends(provide_settings)) -> schemas.HealthStatus:
    return schemas.HealthStatus(environment=settings.environment)


@router.post("/products", response_model=schemas.ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: schemas.ProductCreate, session: AsyncSession = Depends(get_session)
) -> schemas.ProductOut:
    product = await crud.create_product(session, payload)
    await session.commit()
    return schemas.ProductOut.model_validate(product)


@router.get("/products", response_model=list[schemas.ProductOut])
async def list_products(session: AsyncSession = Depends(get_session)) -> Sequence[schemas.ProductOut]:
    products = await crud.list_products(session)
    return [schemas.ProductOut.model_validate(product) for product in products]


@router.get("/products/options", response_model=list[schemas.StandardProductOptionOut])
async def list_product_options(
    session: AsyncSession = Depends(get_session),
) -> Sequence[schemas.StandardProductOptionOut]:
    products = await crud.list_products(session)
    resolver = CodeResolver(ProductRecord.from_model(product) for product in products)
    return [schemas.StandardProductOptionOut.model_validate(option) for option in resolver.options()]


@router.post("/clients", response_model=schemas.ClientOut, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: schemas.ClientCreate, session: AsyncSession = Depends(get_session)
) -> schemas.ClientOut:
    client = await crud.create_client(session, payload)
    await session.commit()
    return schemas.ClientOut.model_validate(client)


@router.get("/clients", response_model=list[schemas.ClientOut])
async def list_clients(session: AsyncSession = Depends(get_session)) -> Sequence[schemas.ClientOut]:
    clients = await crud.list_clients(session)
    return [schemas.ClientOut.model_validate(client) for client in clients]


@router.post(
    "/production", response_model=schemas.ProductionOut, status_code=status.HTTP_201_CREATED
)
async def create_production(
    payload: schemas.ProductionCreate,
    session: AsyncSession = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> schemas.ProductionOut:
    try:
        entry = await crud.create_production(session, payload)
    except ValueError as exc:
        raise _bad_request(exc) from exc
    await session.commit()
    await session.refresh(entry)
    await notifier.publish(PRODUCTION_CHANNEL)
    return schemas.ProductionOut.model_validate(entry)


@router.get("/production", response_model=list[schemas.ProductionOut])
async def list_production(
    since: date | None = None, session: AsyncSession = Depends(get_session)
) -> Sequence[schemas.ProductionOut]:
    entries = await crud.list_production(session, since=since)
    return [schemas.ProductionOut.model_validate(entry) for entry in entries]


@router.get("/production/{entry_id}", response_model=schemas.ProductionOut)
async def get_production(
    entry_id: int, session: AsyncSession = Depends(get_session)
) -> schemas.ProductionOut:
    try:
        entry = await crud.get_production(session, entry_id)
    except NoResultFound as exc:
        raise _not_found(exc) from exc
    return schemas.ProductionOut.model_validate(entry)


@router.put("/production/{entry_id}", response_model=schemas.ProductionOut)
async def update_production(
    entry_id: int,
    payload: schemas.ProductionUpdate,
    session: AsyncSession = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> schemas.ProductionOut:
    try:
        entry = await crud.get_production(session, entry_id)
        entry = await crud.update_production(session, entry, payload)
    except NoResultFound as exc:
        raise _not_found(exc) from exc
    except ValueError as exc:
        raise _bad_request(exc) from exc
    await session.commit()
    await session.refresh(entry)
    await notifier.publish(PRODUCTION_CHANNEL)
    return schemas.ProductionOut.model_validate(entry)


@router.delete("/production/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_production(
    entry_id: int,
    session: AsyncSession = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> None:
    try:
        entry = await crud.get_production(session, entry_id)
    except NoResultFound as exc:
        raise _not_found(exc) from exc
    await crud.delete_production(session, entry)
    await session.commit()
    await notifier.publish(PRODUCTION_CHANNEL)


@router.post("/shipments", response_model=schemas.ShipmentOut, status_code=status.HTTP_201_CREATED)
async def create_shipment(
    payload: schemas.ShipmentCreate,
    session: AsyncSession = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> schemas.ShipmentOut:
    try:
        entry = await crud.create_shipment(session, payload)
    except ValueError as exc:
        raise _bad_request(exc) from exc
    await session.commit()
    await session.refresh(entry)
    await notifier.publish(SHIPMENTS_CHANNEL)
    return schemas.ShipmentOut.model_validate(entry)


@router.get("/shipments", response_model=list[schemas.ShipmentOut])
async def list_shipments(
    since: date | None = None, session: AsyncSession = Depends(get_session)
) -> Sequence[schemas.ShipmentOut]:
    entries = await crud.list_shipments(session, since=since)
    return [schemas.ShipmentOut.model_validate(entry) for entry in entries]


@router.get("/shipments/{entry_id}", response_model=schemas.ShipmentOut)
async def get_shipment(
    entry_id: int, session: AsyncSession = Depends(get_session)
) -> schemas.ShipmentOut:
    try:
        entry = await crud.get_shipment(session, entry_id)
    except NoResultFound as exc:
        raise _not_found(exc) from exc
    return schemas.ShipmentOut.model_validate(entry)


@router.put("/shipments/{entry_id}", response_model=schemas.ShipmentOut)
async def update_shipment(
    entry_id: int,
    payload: schemas.ShipmentUpdate,
    session: AsyncSession = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> schemas.ShipmentOut:
    try:
        entry = await crud.get_shipment(session, entry_id)
        entry = await crud.update_shipment(session, entry, payload)
    except NoResultFound as exc:
        raise _not_found(exc) from exc
    except ValueError as exc:
        raise _bad_request(exc) from exc
    await session.commit()
    await session.refresh(entry)
    await notifier.publish(SHIPMENTS_CHANNEL)
    return schemas.ShipmentOut.model_validate(entry)


@router.delete("/shipments/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shipment(
    entry_id: int,
    session: AsyncSession = Depends(get_session),
    notifier: ChangeNotifier = Depends(get_notifier),
) -> None:
    try:
        entry = await crud.get_shipment(session, entry_id)
    except NoResultFound as exc:
        raise _not_found(exc) from exc
    await crud.delete_shipment(session, entry)
    await session.commit()
    await notifier.publish(SHIPMENTS_CHANNEL)


@router.get("/inventory", response_model=list[schemas.GroupedInventoryOut])
async def list_inventory(
    session: AsyncSession = Depends(get_session),
    store: DashboardStore = Depends(get_store),
) -> Sequence[schemas.GroupedInventoryOut]:
    snapshot = await _current_snapshot(store, session)
    return [
        schemas.GroupedInventoryOut.model_validate(row)
        for row in group_inventory_by_code(snapshot.inventory)
    ]


@router.get("/inventory/raw", response_model=list[schemas.InventorySummaryOut])
async def list_inventory_rows(
    session: AsyncSession = Depends(get_session),
) -> Sequence[schemas.InventorySummaryOut]:
    rows = await crud.inventory_summary(session)
    return [schemas.InventorySummaryOut.model_validate(row) for row in rows]


def _dashboard_state(store: DashboardStore, settings: Settings) -> schemas.DashboardStateOut:
    if store.snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=store.error or "Dashboard data is not available",
        )
    summary = build_summary_report(
        store.snapshot,
        store.today(),
        history_days=settings.history_window_days,
        top_clients=settings.top_clients_limit,
        package_kg=settings.standard_package_kg,
    )
    return schemas.DashboardStateOut(
        last_updated=store.last_updated,
        error=store.error,
        summary=schemas.SummaryReportOut.model_validate(summary),
    )


@router.get("/dashboard", response_model=schemas.DashboardStateOut)
async def get_dashboard(
    session: AsyncSession = Depends(get_session),
    store: DashboardStore = Depends(get_store),
    settings: Settings = Depends(provide_settings),
) -> schemas.DashboardStateOut:
    if store.stale or store.snapshot is None:
        await store.refresh(session)
    return _dashboard_state(store, settings)


@router.post("/dashboard/refresh", response_model=schemas.DashboardStateOut)
async def refresh_dashboard(
    session: AsyncSession = Depends(get_session),
    store: DashboardStore = Depends(get_store),
    settings: Settings = Depends(provide_settings),
) -> schemas.DashboardStateOut:
    await store.refresh(session)
    return _dashboard_state(store, settings)


@router.get("/reports/period", response_model=schemas.PeriodReportOut)
async def get_period_report(
    month: int | None = Query(None, ge=1, le=12),
    year: int | None = Query(None, ge=1900, le=2100),
    session: AsyncSession = Depends(get_session),
    store: DashboardStore = Depends(get_store),
    settings: Settings = Depends(provide_settings),
) -> schemas.PeriodReportOut:
    snapshot = await _current_snapshot(store, session)
    report = build_period_report(
        snapshot,
        store.today(),
        month=month,
        year=year,
        history_days=settings.history_window_days,
        top_clients=settings.top_clients_limit,
    )
    return schemas.PeriodReportOut.model_validate(report)


@router.get("/reports/calendar", response_model=list[schemas.CalendarDayOut])
async def get_calendar(
    year: int = Query(..., ge=1900, le=2100),
    month: int = Query(..., ge=1, le=12),
    session: AsyncSession = Depends(get_session),
    store: DashboardStore = Depends(get_store),
) -> Sequence[schemas.CalendarDayOut]:
    snapshot = await _current_snapshot(store, session)
    return [
        schemas.CalendarDayOut.model_validate(day)
        for day in build_calendar_month(snapshot, year, month)
    ]


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/exports/production.csv", response_class=Response)
async def export_production(
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(provide_settings),
) -> Response:
    products = await crud.list_products(session)
    entries = await crud.list_production_for_export(session)
    resolver = CodeResolver(ProductRecord.from_model(product) for product in products)
    rows = production_export_rows(
        entries,
        resolver,
        settings.standard_package_kg,
    )
    return _csv_response(to_csv(rows), PRODUCTION_EXPORT_FILENAME)


@router.get("/exports/shipments.csv", response_class=Response)
async def export_shipments(
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(provide_settings),
) -> Response:
    products = await crud.list_products(session)
    clients = await crud.list_clients(session)
    entries = await crud.list_shipments_for_export(session)
    resolver = CodeResolver(ProductRecord.from_model(product) for product in products)
    rows = shipment_export_rows(
        entries,
        resolver,
        [ClientRecord.from_model(client) for client in clients],
        settings.standard_package_kg,
    )
    return _csv_response(to_csv(rows), SHIPMENTS_EXPORT_FILENAME)


def create_app(
    settings: Settings | None = None,
    *,
    clock: Callable[[], date] | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)

    app = FastAPI(title=settings.app_name)
    app.dependency_overrides[provide_settings] = lambda: settings
    app.state.notifier = ChangeNotifier()
    app.state.store = DashboardStore(
        app.state.notifier,
        window_months=settings.snapshot_window_months,
        clock=clock or date.today,
    )
    app.include_router(router)
    return app


app = create_app()


__all__ = ["app", "create_app"]
