from datetime import datetime, date, timezone


def now_utc() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def now_local() -> datetime:
    """Naive local timestamp, the form the ledgers store."""
    return datetime.now()


def fmt_date(value: datetime | date | None) -> str:
    """Format as dd/mm/YYYY, the way certificates print dates."""
    if not value:
        return ""
    return value.strftime("%d/%m/%Y")


def fmt_dt(value: datetime | date | None) -> str:
    """Format datetimes without seconds; dates use dd/mm/YYYY."""
    if not value:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y %H:%M")
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    return str(value)
