from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import KpiBlockResponse, KpisModel, PeriodResponse, ReportSettingsModel, ViewListResponse
from sales_core.charts import render_view
from sales_core.data import load_report
from sales_core.errors import SourceDataError
from sales_core.report import SalesReport, format_kpi_block
from sales_core.settings import ReportSettings, normalize_settings
from sales_core.views import ViewPayload


app = FastAPI(title="Sales Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/kpis")
def kpis():
    try:
        report = load_report()
        model = KpisModel(**report.kpis.metrics)
        return _json(KpiBlockResponse(kpis=model, text=format_kpi_block(report.kpis)).model_dump())
    except SourceDataError as exc:
        logger.error("kpis: source unavailable: %s", exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("kpis failed")
        return _error(exc, 500)


@app.get("/period")
def period():
    try:
        span = load_report().span
        if span is None:
            body = PeriodResponse(available=False, label="—")
        else:
            body = PeriodResponse(available=True, start=span.start.isoformat(), end=span.end.isoformat(), label=span.label)
        return _json(body.model_dump())
    except SourceDataError as exc:
        logger.error("period: source unavailable: %s", exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("period failed")
        return _error(exc, 500)


@app.get("/views")
def views():
    try:
        report = load_report()
        body = ViewListResponse(views=list(report.views), unavailable=list(report.unavailable))
        return _json(body.model_dump())
    except SourceDataError as exc:
        logger.error("views: source unavailable: %s", exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("views failed")
        return _error(exc, 500)


def _settings_from_model(model: ReportSettingsModel) -> ReportSettings:
    return normalize_settings(model.model_dump(exclude_none=True))


def _lookup(report: SalesReport, name: str) -> Optional[ViewPayload]:
    return report.views.get(name)


def _unknown_view(name: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": f"Unknown view: {name}", "type": "KeyError"})


@app.get("/views/{name}")
def view(name: str):
    try:
        payload = _lookup(load_report(), name)
        if payload is None:
            return _unknown_view(name)
        return _json(payload.to_dict())
    except SourceDataError as exc:
        logger.error("view %s: source unavailable: %s", name, exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("view %s failed", name)
        return _error(exc, 500)


@app.post("/views/{name}")
def view_with_settings(name: str, settings: ReportSettingsModel):
    try:
        payload = _lookup(load_report(settings=_settings_from_model(settings)), name)
        if payload is None:
            return _unknown_view(name)
        return _json(payload.to_dict())
    except SourceDataError as exc:
        logger.error("view %s: source unavailable: %s", name, exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("view %s failed", name)
        return _error(exc, 500)


@app.get("/charts/{name}")
def chart(name: str):
    try:
        payload = _lookup(load_report(), name)
        if payload is None:
            return _unknown_view(name)
        spec = render_view(payload)
        return _json({"name": name, "available": payload.available, "message": payload.message, "spec": spec})
    except SourceDataError as exc:
        logger.error("chart %s: source unavailable: %s", name, exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("chart %s failed", name)
        return _error(exc, 500)


@app.get("/report")
def report():
    try:
        return _json(load_report().to_dict())
    except SourceDataError as exc:
        logger.error("report: source unavailable: %s", exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("report failed")
        return _error(exc, 500)


@app.post("/report")
def report_with_settings(settings: ReportSettingsModel):
    try:
        return _json(load_report(settings=_settings_from_model(settings)).to_dict())
    except SourceDataError as exc:
        logger.error("report: source unavailable: %s", exc)
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("report failed")
        return _error(exc, 500)
