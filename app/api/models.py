import re
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from app.shared.constants import INTERACTION_TYPES

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^[+\d\s()-]*$")

Importance = Literal["high", "medium", "low"]


class _Trimmed(BaseModel):
    """Strings are trimmed before length checks."""

    model_config = ConfigDict(str_strip_whitespace=True)


def _check_email(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.lower()
    if not _EMAIL_RE.match(value):
        raise ValueError("Invalid email address")
    return value


def _check_phone(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    if not _PHONE_RE.match(value):
        raise ValueError("Phone may only contain digits, spaces, +, -, ( and )")
    return value


def _check_interaction_type(value: str) -> str:
    if value not in INTERACTION_TYPES:
        raise ValueError(f"Interaction type must be one of: {', '.join(INTERACTION_TYPES)}")
    return value


Email = Annotated[Optional[str], AfterValidator(_check_email)]
Phone = Annotated[Optional[str], AfterValidator(_check_phone)]
InteractionType = Annotated[str, AfterValidator(_check_interaction_type)]


# =========================================================================
# CONTACT MODELS
# =========================================================================

class ContactCreate(_Trimmed):
    name: str = Field(min_length=1, max_length=100)
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)
    email: Email = Field(default=None, max_length=255)
    phone: Phone = Field(default=None, max_length=30)
    birthday: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, max_length=500)
    company: Optional[str] = Field(default=None, max_length=100)
    job_title: Optional[str] = Field(default=None, max_length=100)
    where_met: Optional[str] = Field(default=None, max_length=200)
    who_introduced: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=5000)
    relationship_summary: Optional[str] = Field(default=None, max_length=500)
    interests: Optional[List[str]] = None
    importance: Optional[Importance] = "medium"
    target_frequency_days: Optional[int] = Field(default=None, ge=1, le=365)
    is_favorite: bool = False


class ContactUpdate(_Trimmed):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)
    email: Email = Field(default=None, max_length=255)
    phone: Phone = Field(default=None, max_length=30)
    birthday: Optional[str] = None
    photo_url: Optional[str] = Field(default=None, max_length=500)
    company: Optional[str] = Field(default=None, max_length=100)
    job_title: Optional[str] = Field(default=None, max_length=100)
    where_met: Optional[str] = Field(default=None, max_length=200)
    who_introduced: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=5000)
    relationship_summary: Optional[str] = Field(default=None, max_length=500)
    deep_lore: Optional[str] = Field(default=None, max_length=5000)
    interests: Optional[List[str]] = None
    importance: Optional[Importance] = None
    target_frequency_days: Optional[int] = Field(default=None, ge=1, le=365)


class ArchiveRequest(BaseModel):
    archived: bool = True
    reason: Optional[str] = Field(default=None, max_length=200)


class FavoriteRequest(BaseModel):
    is_favorite: bool


class ImportanceRequest(BaseModel):
    importance: Importance


class TagsRequest(_Trimmed):
    add: List[str] = Field(default_factory=list)
    remove: List[str] = Field(default_factory=list)


class SharedMemoryRequest(_Trimmed):
    content: str = Field(min_length=1, max_length=1000)


class VCardImportRequest(BaseModel):
    content: str = Field(min_length=1)


# =========================================================================
# INTERACTION MODELS
# =========================================================================

class InteractionCreate(_Trimmed):
    person_id: str
    interaction_type: InteractionType = "other"
    interaction_date: Optional[str] = None  # ISO timestamp, defaults to now
    notes: Optional[str] = Field(default=None, max_length=2000)


class GroupInteractionCreate(_Trimmed):
    person_ids: List[str] = Field(min_length=1)
    interaction_type: InteractionType = "meeting"
    interaction_date: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class MergeRequest(BaseModel):
    keeper_id: str
    duplicate_ids: List[str] = Field(min_length=1)


# =========================================================================
# CALENDAR MODELS
# =========================================================================

class PreferencesUpdate(BaseModel):
    calendar_enabled: Optional[bool] = None
    notification_time: Optional[int] = Field(default=None, ge=5, le=120)
    only_known_contacts: Optional[bool] = None


# =========================================================================
# AI MODELS
# =========================================================================

class SummaryRequest(_Trimmed):
    """Either a stored contact (contact_id) or ad-hoc form fields."""

    contact_id: Optional[str] = None
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    where_met: Optional[str] = None
    who_introduced: Optional[str] = None
    birthday: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=5000)
    existing_summary: Optional[str] = None
    save: bool = False


class LastContact(BaseModel):
    notes: Optional[str] = None
    days_ago: Optional[int] = None


class StartersRequest(_Trimmed):
    contact_id: Optional[str] = None
    name: Optional[str] = None
    meeting_title: Optional[str] = None
    meeting_type: Optional[str] = None
    where_we_met: Optional[str] = None
    when_we_met: Optional[str] = None
    how_we_met: Optional[str] = None
    what_we_talked_about: Optional[List[str]] = None
    why_stay_in_contact: Optional[str] = None
    what_matters_to_them: Optional[List[str]] = None
    last_contact: Optional[LastContact] = None
    interests: Optional[List[str]] = None


class Milestone(BaseModel):
    contact_name: str
    label: str
    days_remaining: int


class ThirstyTribe(BaseModel):
    name: str
    days_since_contact: Optional[int] = None


class PriorityNurture(BaseModel):
    name: str
    last_contact_date: Optional[str] = None
    days_since: Optional[int] = None


class BriefingRequest(_Trimmed):
    user_name: Optional[str] = Field(default=None, max_length=100)
    milestones: List[Milestone] = Field(default_factory=list)
    thirsty_tribes: List[ThirstyTribe] = Field(default_factory=list)
    priority_nurtures: List[PriorityNurture] = Field(default_factory=list)


class ParseContactRequest(BaseModel):
    transcript: str = Field(default="", max_length=20000)


# =========================================================================
# PRACTICE MODELS
# =========================================================================

class EventPrepRequest(BaseModel):
    title: Optional[str] = None
    attendee_emails: List[str] = Field(default_factory=list)


class LevelCheckRequest(BaseModel):
    xp: int = Field(ge=0)
    level: int = Field(ge=1)


class AwardXPRequest(BaseModel):
    amount: int = Field(ge=1, le=1000)
