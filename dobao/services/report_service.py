"""pandas views over reservations for the admin panel."""
from typing import Iterable, Optional

import pandas as pd

from dobao.models.db_models import Booking, BookingStatus

COLUMNS = [
    "id", "date", "slot", "status", "customer_name", "email", "phone",
    "guests", "purpose", "event_cost", "deposit", "created_at",
]


def bookings_frame(bookings: Iterable[Booking]) -> pd.DataFrame:
    records = [b.model_dump(include=set(COLUMNS)) for b in bookings]
    df = pd.DataFrame.from_records(records, columns=COLUMNS)
    if df.empty:
        return df
    df["date"] = pd.to_datetime(df["date"])
    df["slot"] = df["slot"].map(lambda s: s.value)
    df["status"] = df["status"].map(lambda s: s.value)
    df["event_cost"] = pd.to_numeric(df["event_cost"]).fillna(0.0)
    df["deposit"] = pd.to_numeric(df["deposit"]).fillna(0.0)
    return df.sort_values(["date", "slot"]).reset_index(drop=True)


def filter_period(df: pd.DataFrame, year: Optional[int] = None, month: Optional[int] = None) -> pd.DataFrame:
    """Year/month filter used by the admin list; None keeps everything."""
    if df.empty:
        return df
    mask = pd.Series(True, index=df.index)
    if year is not None:
        mask &= df["date"].dt.year == year
    if month is not None:
        mask &= df["date"].dt.month == month
    return df[mask].reset_index(drop=True)


def summary(df: pd.DataFrame) -> dict:
    if df.empty:
        return {
            "total": 0,
            "by_status": {s.value: 0 for s in BookingStatus},
            "guests": 0,
            "event_cost": 0.0,
            "deposits": 0.0,
            "outstanding": 0.0,
        }

    # Cancelled reservations stay listed but do not count as revenue
    active = df[df["status"] != BookingStatus.CANCELLED.value]
    counts = df["status"].value_counts()
    event_cost = float(active["event_cost"].sum())
    deposits = float(active["deposit"].sum())
    return {
        "total": int(len(df)),
        "by_status": {s.value: int(counts.get(s.value, 0)) for s in BookingStatus},
        "guests": int(active["guests"].sum()),
        "event_cost": event_cost,
        "deposits": deposits,
        "outstanding": event_cost - deposits,
    }
