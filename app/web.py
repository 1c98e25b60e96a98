from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from app.api import error_response, get_query_engine
from errors import MeasurementError
from services.chart import ChartTransformer, build_default_transformer
from services.queries import QueryEngine


# Built once at import and only read afterwards.
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def get_transformer() -> ChartTransformer:
    return build_default_transformer()


router = APIRouter(include_in_schema=False)


@router.get("/", name="chart", response_class=HTMLResponse)
def show_chart(
    request: Request,
    engine: QueryEngine = Depends(get_query_engine),
    transformer: ChartTransformer = Depends(get_transformer),
) -> Response:
    try:
        records = engine.full_window()
    except MeasurementError as exc:
        return error_response(exc)

    chart = transformer.transform(records)
    return templates.TemplateResponse(
        request,
        "chart.html",
        {
            "chart": chart.model_dump(mode="json"),
            "record_count": len(records),
        },
    )
