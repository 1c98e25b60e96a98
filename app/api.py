"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response

from datastore.measurement_store import MeasurementStore, build_default_store
from errors import MeasurementError
from models.records import Measurement
from services.ingestion import IngestionService
from services.queries import QueryEngine

router = APIRouter()


def get_store() -> MeasurementStore:
    return build_default_store()


def get_ingestion(store: MeasurementStore = Depends(get_store)) -> IngestionService:
    return IngestionService(store)


def get_query_engine(store: MeasurementStore = Depends(get_store)) -> QueryEngine:
    return QueryEngine(store)


def error_response(exc: MeasurementError) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _as_json(records: list[Measurement]) -> JSONResponse:
    return JSONResponse([record.to_wire() for record in records])


@router.get(
    "/get",
    summary="Measurements from the last seven days, newest first.",
    response_model=None,
)
def get_recent(engine: QueryEngine = Depends(get_query_engine)) -> Response:
    try:
        records = engine.rolling_window()
    except MeasurementError as exc:
        return error_response(exc)
    return _as_json(records)


@router.get(
    "/latest",
    summary="The most recent measurement as a zero- or one-element array.",
    response_model=None,
)
def get_latest(engine: QueryEngine = Depends(get_query_engine)) -> Response:
    try:
        records = engine.latest()
    except MeasurementError as exc:
        return error_response(exc)
    return _as_json(records)


@router.post(
    "/add",
    summary="Store a measurement posted by the sensor client.",
    response_model=None,
)
async def add_measurement(
    request: Request,
    ingestion: IngestionService = Depends(get_ingestion),
) -> Response:
    body = await request.body()
    try:
        await run_in_threadpool(ingestion.ingest, body)
    except MeasurementError as exc:
        return error_response(exc)
    return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
