"""Date parsing and display formatting."""
from datetime import date, datetime
from typing import Optional, Union

from tuition.core.config import settings

# Display formats offered by the settings screen, mapped to strftime.
DATE_FORMATS = {
    "MM/dd/yyyy": "%m/%d/%Y",
    "dd/MM/yyyy": "%d/%m/%Y",
    "yyyy-MM-dd": "%Y-%m-%d",
    "dd.MM.yyyy": "%d.%m.%Y",
    "dd-MM-yyyy": "%d-%m-%Y",
    "MMM d, yyyy": "%b {day}, %Y",
}


def coerce_date(value) -> Optional[date]:
    """Accept date, datetime, ISO date or ISO timestamp strings."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        # Browser backups store full timestamps, e.g. 2024-03-01T00:00:00.000Z
        return date.fromisoformat(text[:10])
    raise ValueError(f"Invalid date: {value!r}")


def format_date(value: Union[date, datetime, str, None], date_format: Optional[str] = None) -> str:
    """Render a date with the school's display format; empty for None."""
    day = coerce_date(value)
    if day is None:
        return ""
    pattern = DATE_FORMATS.get(date_format or "")
    if pattern is None:
        pattern = DATE_FORMATS.get(settings.DEFAULT_DATE_FORMAT, "%m/%d/%Y")
    return day.strftime(pattern.replace("{day}", str(day.day)))
