"""
Display helpers shared by the portal pages.
"""
import math
from datetime import date, datetime, timezone
from typing import Optional, Union

FILE_SIZE_UNITS = ["B", "KB", "MB", "GB"]


def _short_date(value: date) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def relative_time(value: Union[datetime, str], now: Optional[datetime] = None) -> str:
    """
    "Just now", "3h ago", "2d ago", or the date once a week has passed.

    Naive datetimes are taken as UTC.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    hours = (now - value).total_seconds() / 3600
    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{math.floor(hours)}h ago"
    if hours < 24 * 7:
        return f"{math.floor(hours / 24)}d ago"
    return _short_date(value.date())


def file_size(size: Optional[int]) -> str:
    """Human readable size in 1024 steps, at most two decimals: "1.5 KB"."""
    if not size:
        return "0 B"
    index = 0
    while size >= 1024 ** (index + 1) and index < len(FILE_SIZE_UNITS) - 1:
        index += 1
    text = f"{size / 1024 ** index:.2f}".rstrip("0").rstrip(".")
    return f"{text} {FILE_SIZE_UNITS[index]}"


def due_label(due: Optional[date], today: Optional[date] = None) -> str:
    """Coursework due date relative to today."""
    if due is None:
        return "No due date"

    today = today or date.today()
    days = (due - today).days

    if days < 0:
        return f"{abs(days)} days overdue"
    if days == 0:
        return "Due today"
    if days == 1:
        return "Due tomorrow"
    if days < 7:
        return f"Due in {days} days"
    return _short_date(due)


def clock_time(hours: int = 0, minutes: int = 0) -> str:
    """12-hour clock: clock_time(13, 5) == "1:05 PM"."""
    suffix = "PM" if hours >= 12 else "AM"
    display = hours % 12 or 12
    return f"{display}:{minutes:02d} {suffix}"


def file_kind(mime_type: str) -> str:
    """Icon name for a Drive mime type."""
    if "folder" in mime_type:
        return "folder"
    if "image" in mime_type:
        return "image"
    if "video" in mime_type:
        return "video"
    if "audio" in mime_type:
        return "audio"
    if "pdf" in mime_type:
        return "picture_as_pdf"
    if "word" in mime_type or "document" in mime_type:
        return "description"
    if "sheet" in mime_type or "spreadsheet" in mime_type:
        return "table_chart"
    if "presentation" in mime_type or "slides" in mime_type:
        return "slideshow"
    if "text" in mime_type:
        return "text_snippet"
    return "insert_drive_file"
