"""Display helpers for contacts: initials, birthdays, cadence status."""

from datetime import date, datetime, timedelta
from typing import Dict, Optional, Union

from app.shared.constants import DEFAULT_TARGET_DAYS, FALLBACK_TARGET_DAYS

DateLike = Union[str, date, datetime, None]

FREQUENCY_DAYS = {
    "weekly": 7,
    "biweekly": 14,
    "monthly": 30,
    "quarterly": 90,
    "biannual": 182,
}


def parse_date(value: DateLike) -> Optional[date]:
    """Parse an ISO date or timestamp into a date; None when missing or invalid."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
    except ValueError:
        return None


def get_initials(name: Optional[str]) -> str:
    return "".join(part[0] for part in (name or "").split() if part).upper()[:2]


CONTEXT_FIELDS = ("where_met", "who_introduced", "notes", "relationship_summary", "interests")


def has_context(data: Dict) -> bool:
    """True when any field that tells the user who this person is has a value."""
    return any(data.get(field) for field in CONTEXT_FIELDS)


def build_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return " ".join(part for part in (first_name or "", last_name or "") if part).strip()


def _next_birthday(birthday: date, today: date) -> date:
    for year in (today.year, today.year + 1):
        try:
            candidate = birthday.replace(year=year)
        except ValueError:
            # Feb 29 outside a leap year
            candidate = date(year, 3, 1)
        if candidate >= today:
            return candidate
    return candidate


def days_until_birthday(birthday: DateLike, today: Optional[date] = None) -> Optional[int]:
    parsed = parse_date(birthday)
    if parsed is None:
        return None
    today = today or date.today()
    return (_next_birthday(parsed, today) - today).days


def get_birthday_info(birthday: DateLike, today: Optional[date] = None) -> Optional[Dict]:
    """
    Birthday badge data.

    today: birthday is today; upcoming: within 30 days; distant: later.
    """
    parsed = parse_date(birthday)
    if parsed is None:
        return None

    today = today or date.today()
    upcoming = _next_birthday(parsed, today)
    days_until = (upcoming - today).days
    date_label = f"{upcoming.strftime('%b')} {upcoming.day}"

    if days_until == 0:
        kind, label = "today", "Today!"
    elif days_until <= 30:
        kind, label = "upcoming", date_label
    else:
        kind, label = "distant", date_label

    return {"type": kind, "label": label, "date_label": date_label, "days_until": days_until}


def get_frequency_status(
    last_contact: DateLike,
    frequency: Union[str, int],
    today: Optional[date] = None,
) -> Dict:
    """
    Cadence status for a named frequency (weekly, monthly, ...) or a cadence
    in days.

    overdue when the next contact date has passed, due-soon within 14 days,
    on-track otherwise, never when there was no contact.
    """
    last = parse_date(last_contact)
    if last is None:
        return {"status": "never", "label": "Never"}

    today = today or date.today()
    if isinstance(frequency, int) and frequency > 0:
        target_days = frequency
    else:
        target_days = FREQUENCY_DAYS.get(frequency, FALLBACK_TARGET_DAYS)
    remaining = (last + timedelta(days=target_days) - today).days

    if remaining < 0:
        return {"status": "overdue", "label": f"{abs(remaining)}d overdue", "days_remaining": remaining}
    if remaining <= 14:
        return {"status": "due-soon", "label": f"Due {remaining}d", "days_remaining": remaining}
    return {"status": "on-track", "label": "On track", "days_remaining": remaining}


def frequency_label(days: Optional[int]) -> str:
    if not days:
        return "None"
    if days <= 7:
        return "Weekly"
    if days <= 14:
        return "Bi-weekly"
    if days <= 30:
        return "Monthly"
    if days <= 90:
        return "Quarterly"
    if days <= 180:
        return "Twice a year"
    return "Yearly"


def get_status_message(contact: Dict, today: Optional[date] = None) -> Dict:
    """
    Suggested next action shown under a contact's name.

    Order: birthday within a week, first reach-out, drifting or neglected
    (30 days past the importance threshold), up to date.
    """
    today = today or date.today()

    until = days_until_birthday(contact.get("birthday"), today)
    if until is not None and until <= 7:
        message = (
            "Reach out for their birthday today!" if until == 0
            else "Reach out for their upcoming milestone!"
        )
        return {"state": "milestone", "label": message}

    last = parse_date(contact.get("last_interaction_date") or contact.get("last_contact"))
    if last is None:
        return {"state": "new", "label": "Initiate your first reach-out"}

    days_ago = abs((today - last).days)
    threshold = DEFAULT_TARGET_DAYS.get(contact.get("importance") or "medium", FALLBACK_TARGET_DAYS)

    if days_ago >= threshold + 30:
        return {"state": "neglected", "label": "Nurture this connection"}
    if days_ago >= threshold:
        return {"state": "drifting", "label": "Reconnect with this drifting contact"}
    return {"state": "up_to_date", "label": "Up to Date"}
