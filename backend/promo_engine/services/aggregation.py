"""
Sales Aggregation Service - Reduce raw daily sales rows to per-product series and totals.
Rows may be product-day aggregates or single transaction lines; same product+date rows are summed.
Malformed values are coerced here so one bad row never drops a product's history.
"""

import numpy as np
import pandas as pd
from pydantic import BaseModel
from datetime import date, datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Union
import logging

from promo_engine.schemas.sales import ProductSalesTotals

logger = logging.getLogger(__name__)

PRODUCT_CODE_KEYS = ("product_code", "productCode", "article_code", "articleCode", "artikal_id")
PRODUCT_NAME_KEYS = ("product_name", "productName", "article_name", "articleName")
COLUMNS = ["product_code", "product_name", "date", "quantity", "amount"]

SalesInput = Union[pd.DataFrame, Iterable[Union[Mapping[str, Any], BaseModel]]]


def _first_present(row: Mapping[str, Any], keys, default=None):
    for key in keys:
        if row.get(key) is not None:
            return row[key]
    return default


def parse_day(value: Any) -> Optional[date]:
    """Truncate a date, datetime or ISO string to its calendar day. Returns None when unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _finite_or_nan(values: pd.Series) -> pd.Series:
    # "inf" and "1e400" parse as numbers; treat them like any other unreadable value
    numeric = pd.to_numeric(values, errors="coerce").astype(float)
    return numeric.where(np.isfinite(numeric))


def sales_frame(daily_sales: SalesInput) -> pd.DataFrame:
    """
    Normalize raw sales rows into a DataFrame.

    Args:
        daily_sales: Iterable of dicts / DailySalesRecord models, or an already normalized frame

    Returns:
        DataFrame with columns product_code, product_name, date (datetime64, NaT when
        unparseable), quantity and amount (non-numeric or non-finite coerced to 0)
    """
    if isinstance(daily_sales, pd.DataFrame):
        return daily_sales

    records = []
    for row in daily_sales:
        data = row.model_dump() if isinstance(row, BaseModel) else row
        records.append({
            "product_code": str(_first_present(data, PRODUCT_CODE_KEYS, "")).strip(),
            "product_name": _first_present(data, PRODUCT_NAME_KEYS, ""),
            "date": parse_day(data.get("date")),
            "quantity": data.get("quantity"),
            "amount": data.get("amount"),
        })

    df = pd.DataFrame.from_records(records, columns=COLUMNS)

    # Rows without a product identifier cannot be attributed
    df = df[df["product_code"] != ""].copy()

    quantity = _finite_or_nan(df["quantity"])
    amount = _finite_or_nan(df["amount"])
    df["date"] = pd.to_datetime(df["date"])

    malformed = int(
        (quantity.isna() & df["quantity"].notna()).sum()
        + (amount.isna() & df["amount"].notna()).sum()
        + df["date"].isna().sum()
    )
    if malformed:
        logger.warning(f"Coerced {malformed} malformed sales values (bad dates or unreadable numbers)")

    df["quantity"] = quantity.fillna(0.0).astype(float)
    df["amount"] = amount.fillna(0.0).astype(float)
    df["product_name"] = df["product_name"].fillna("").astype(str)
    return df.reset_index(drop=True)


def group_daily_quantities(daily_sales: SalesInput) -> Dict[str, pd.Series]:
    """
    Per product, a date-ordered Series of summed quantity (index: calendar day).
    Rows with an unparseable date are left out of the series.
    """
    df = sales_frame(daily_sales)
    dated = df.dropna(subset=["date"])
    if dated.empty:
        return {}

    summed = dated.groupby(["product_code", "date"], sort=True)["quantity"].sum()
    return {
        code: series.droplevel("product_code")
        for code, series in summed.groupby(level="product_code", sort=True)
    }


def aggregate_period_totals(daily_sales: SalesInput) -> Dict[str, ProductSalesTotals]:
    """
    Per product quantity/amount totals and the number of distinct days with data.
    """
    df = sales_frame(daily_sales)
    totals = {}
    for code, group in df.groupby("product_code", sort=True):
        names = group.loc[group["product_name"] != "", "product_name"]
        totals[code] = ProductSalesTotals(
            product_code=code,
            product_name=names.iloc[0] if len(names) else "",
            quantity=float(group["quantity"].sum()),
            amount=float(group["amount"].sum()),
            day_count=int(group["date"].nunique()),
        )
    return totals
