from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class KpisModel(BaseModel):
    gross_value: float
    net_value: float
    total_units: float
    product_revenue: float
    advertised_value: float
    organic_value: float
    advertising_share_pct: float
    average_ticket: float
    record_count: int
    period: str
    period_available: bool


class PeriodResponse(BaseModel):
    available: bool
    start: Optional[str] = None
    end: Optional[str] = None
    label: str


class ViewListResponse(BaseModel):
    views: List[str]
    unavailable: List[str]


class KpiBlockResponse(BaseModel):
    kpis: KpisModel
    text: str


class ReportSettingsModel(BaseModel):
    top_dates: Optional[int] = None
    top_products: Optional[int] = None
    top_products_combo: Optional[int] = None
    top_municipalities: Optional[int] = None
    top_days: Optional[int] = None
    region_pie_max: Optional[int] = None
    region_bar_limit: Optional[int] = None
    advertising_days: Optional[int] = None
