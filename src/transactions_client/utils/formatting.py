"""Display formatting for amounts and dates (es-CL conventions)."""

from __future__ import annotations

from datetime import datetime, tzinfo

from transactions_client.utils.time import parse_instant

_MONTHS_ES = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)


def format_currency(amount: int) -> str:
    """Format an amount in Chilean pesos, e.g. ``15000 -> "$15.000"``."""
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(int(amount)):,}".replace(",", ".")
    return f"{sign}${grouped}"


def _local(value: datetime | str, tz: tzinfo | None) -> datetime:
    instant = parse_instant(value)
    return instant.astimezone(tz) if tz is not None else instant.astimezone()


def format_date(value: datetime | str | None, tz: tzinfo | None = None) -> str:
    """Long display form, e.g. ``"1 de enero de 2024, 10:00"``.

    Returns an empty string for missing values.
    """
    if not value:
        return ""
    local = _local(value, tz)
    month = _MONTHS_ES[local.month - 1]
    return f"{local.day} de {month} de {local.year}, {local:%H:%M}"


def format_date_for_input(value: datetime | str | None, tz: tzinfo | None = None) -> str:
    """Render ``YYYY-MM-DDTHH:MM`` in local time, the datetime-local input shape."""
    if not value:
        return ""
    return f"{_local(value, tz):%Y-%m-%dT%H:%M}"


def current_datetime_input(tz: tzinfo | None = None) -> str:
    return format_date_for_input(datetime.now().astimezone(), tz)


def truncate_text(text: str | None, max_length: int = 50) -> str:
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."
