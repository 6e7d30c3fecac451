"""
Booking housekeeping over a bookings table.

The table is a DataFrame with the record-store columns BookingID,
MeetingTime (UTC ISO timestamps), BookingStatus, SessionStatus, InviteeID,
BookerUsername, InvitedUsername and Notes.
"""

import logging
from typing import List, Mapping, Optional, Tuple

import pandas as pd

from config import BOOKING_TIMEZONE, ICS_PRODID, ICS_UID_DOMAIN

log = logging.getLogger(__name__)

PENDING = "Pending"
CONFIRMED = "Confirmed"
RESCHEDULED = "Rescheduled"
CANCELLED = "Cancelled"
COMPLETED = "Completed"

# statuses the daily job closes out
OPEN_STATUSES = (CONFIRMED, PENDING, RESCHEDULED)
# statuses that block a mentor's time
BLOCKING_STATUSES = (CONFIRMED, PENDING)

MEETING_LENGTH = pd.Timedelta(hours=1)
REMINDER = "-PT15M"

Window = Tuple[pd.Timestamp, pd.Timestamp]


class BookingError(ValueError):
    """A booking record is missing or has an unusable field."""


def _as_utc(ts) -> pd.Timestamp:
    ts = pd.Timestamp(ts)
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def yesterday_window(now=None, tz: str = BOOKING_TIMEZONE) -> Window:
    """
    Start and end of the previous calendar day in ``tz``.

    Returns tz-aware timestamps for 00:00:00.000 and 23:59:59.999 local time.
    A naive ``now`` is taken as UTC.
    """
    local_now = pd.Timestamp.now(tz=tz) if now is None else _as_utc(now).tz_convert(tz)
    today = local_now.normalize()
    start = (today - pd.DateOffset(days=1)).normalize()
    end = today - pd.Timedelta(milliseconds=1)
    return start, end


def _meeting_times(df: pd.DataFrame) -> pd.Series:
    return pd.to_datetime(df["MeetingTime"], utc=True, errors="coerce")


def _has_columns(df: pd.DataFrame, *columns: str) -> bool:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        log.warning("Bookings table is missing columns: %s", missing)
        return False
    return True


def _to_complete_mask(df: pd.DataFrame, window: Window) -> pd.Series:
    if df.empty or not _has_columns(df, "MeetingTime", "BookingStatus"):
        return pd.Series(False, index=df.index)
    start, end = window
    times = _meeting_times(df)
    return (times > start) & (times < end) & df["BookingStatus"].isin(OPEN_STATUSES)


def bookings_to_complete(df: pd.DataFrame, window: Window) -> pd.DataFrame:
    """Open bookings whose meeting time falls strictly inside ``window``."""
    return df[_to_complete_mask(df, window)]


def mark_completed(df: pd.DataFrame, window: Window) -> Tuple[pd.DataFrame, List[str]]:
    """
    Set SessionStatus to Completed on yesterday's open bookings.

    Returns a new frame and the ids of the bookings that changed.
    """
    mask = _to_complete_mask(df, window)
    updated = df.copy()
    if "SessionStatus" not in updated.columns:
        updated["SessionStatus"] = ""
    updated.loc[mask, "SessionStatus"] = COMPLETED

    if "BookingID" in updated.columns:
        ids = updated.loc[mask, "BookingID"].astype(str).tolist()
    else:
        ids = [str(i) for i in updated.index[mask]]
    log.info("Found %d bookings to mark as completed", len(ids))
    return updated, ids


def find_conflicts(df: pd.DataFrame, mentor_id: str, start, end) -> pd.DataFrame:
    """Confirmed or pending bookings for the mentor strictly between ``start`` and ``end``."""
    columns = ["BookingID", "MeetingTime", "BookingStatus"]
    if df.empty or not _has_columns(df, "InviteeID", "MeetingTime", "BookingStatus"):
        return pd.DataFrame(columns=columns)
    times = _meeting_times(df)
    mask = (
        (df["InviteeID"].astype(str) == str(mentor_id))
        & df["BookingStatus"].isin(BLOCKING_STATUSES)
        & (times > _as_utc(start))
        & (times < _as_utc(end))
    )
    return df.loc[mask, [c for c in columns if c in df.columns]].reset_index(drop=True)


def _ics_date(ts: pd.Timestamp) -> str:
    return _as_utc(ts).strftime("%Y%m%dT%H%M%SZ")


def _ics_text(value) -> str:
    text = "" if value is None else str(value)
    return (text.replace("\\", "\\\\").replace(";", "\\;")
            .replace(",", "\\,").replace("\n", "\\n"))


def _field(booking: Mapping, name: str) -> str:
    value = booking.get(name)
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value)


def ics_filename(booking_id: str) -> str:
    return f"meeting-{booking_id}.ics"


def booking_to_ics(booking: Mapping, now=None) -> str:
    """
    Render one booking as an iCalendar file (CRLF line endings).

    Raises:
        BookingError: when MeetingTime is missing or not a timestamp.
    """
    raw_time = booking.get("MeetingTime")
    try:
        start = _as_utc(raw_time)
    except (TypeError, ValueError) as e:
        raise BookingError(f"Invalid meeting time: {raw_time!r}") from e
    if pd.isna(start):
        raise BookingError(f"Invalid meeting time: {raw_time!r}")

    stamp = _as_utc(now) if now is not None else pd.Timestamp.now(tz="UTC")
    booking_id = _field(booking, "BookingID")
    booker = _field(booking, "BookerUsername")
    invitee = _field(booking, "InvitedUsername")
    status = _field(booking, "BookingStatus")
    notes = _field(booking, "Notes")

    description = [
        f"Meeting between {booker} and {invitee}",
        f"Notes: {notes}" if notes else "",
        "This meeting has been rescheduled by the mentor." if status == RESCHEDULED else "",
        "Google Meet Instructions:",
        "• Google Meet link has been created and sent to participants" if status == CONFIRMED
        else "• A Google Meet link will be created automatically when the mentor confirms this booking",
        "• Check your email for the Google Meet link" if status == CONFIRMED
        else "• You will receive the Google Meet link via email notification",
        f"Booking ID: {booking_id}",
        f"Status: {status}",
    ]

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{ICS_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:{booking_id}@{ICS_UID_DOMAIN}",
        f"DTSTAMP:{_ics_date(stamp)}",
        f"DTSTART:{_ics_date(start)}",
        f"DTEND:{_ics_date(start + MEETING_LENGTH)}",
        f"SUMMARY:{_ics_text(f'Meeting: {booker} & {invitee}')}",
        "DESCRIPTION:" + "\\n".join(_ics_text(line) for line in description if line),
        "LOCATION:Google Meet (Link will be provided upon confirmation)",
        f"STATUS:{'CONFIRMED' if status == CONFIRMED else 'TENTATIVE'}",
        f"ORGANIZER:CN={_ics_text(booker)}",
        f"ATTENDEE:CN={_ics_text(invitee)}",
        "BEGIN:VALARM",
        f"TRIGGER:{REMINDER}",
        "ACTION:DISPLAY",
        "DESCRIPTION:Meeting reminder - 15 minutes",
        "END:VALARM",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(lines) + "\r\n"
