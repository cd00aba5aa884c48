import pytest

from app.core import database
from app.core.config import settings
from app.features.database.repositories.calendar import public_preferences
from app.shared.errors import DatabaseError

from tests.conftest import OTHER_USER_ID, USER_ID


@pytest.fixture
def people(supabase):
    return supabase.seed(
        "persons",
        {"user_id": USER_ID, "name": "Zoe Park", "email": "zoe@acme.com", "importance": "high", "is_favorite": True},
        {"user_id": USER_ID, "name": "Adam Lee", "company": "Acme", "importance": "low"},
        {"user_id": USER_ID, "name": "Acme Archivist", "archive_status": True},
        {"user_id": USER_ID, "name": "Old Row", "archive_status": False},
        {"user_id": OTHER_USER_ID, "name": "Acme Stranger"},
    )


def _names(rows):
    return [r["name"] for r in rows]


class TestPersons:
    def test_list_is_scoped_sorted_and_hides_archived(self, db, people):
        assert _names(db.persons.list(USER_ID)) == ["Adam Lee", "Old Row", "Zoe Park"]

    def test_include_archived(self, db, people):
        assert "Acme Archivist" in _names(db.persons.list(USER_ID, include_archived=True))

    def test_search_matches_name_email_and_company(self, db, people):
        assert _names(db.persons.list(USER_ID, search="acme")) == ["Adam Lee", "Zoe Park"]
        assert _names(db.persons.list(USER_ID, search="acme", include_archived=True)) == [
            "Acme Archivist", "Adam Lee", "Zoe Park",
        ]

    def test_filters(self, db, people):
        assert _names(db.persons.list(USER_ID, importance="low")) == ["Adam Lee"]
        assert _names(db.persons.list(USER_ID, favorites_only=True)) == ["Zoe Park"]
        assert len(db.persons.list(USER_ID, limit=1)) == 1

    def test_archived_list(self, db, people):
        assert _names(db.persons.list_archived(USER_ID)) == ["Acme Archivist"]

    def test_get_requires_owner(self, db, people):
        stranger = people[-1]
        assert db.persons.get(USER_ID, stranger["id"]) is None
        assert db.persons.get(OTHER_USER_ID, stranger["id"])["name"] == "Acme Stranger"

    def test_update_and_delete_require_owner(self, db, supabase, people):
        stranger = people[-1]

        assert db.persons.update(USER_ID, stranger["id"], {"name": "Hijacked"}) is None
        assert db.persons.delete(USER_ID, stranger["id"]) is False
        assert supabase.tables["persons"][-1]["name"] == "Acme Stranger"

        updated = db.persons.update(OTHER_USER_ID, stranger["id"], {"name": "Renamed"})
        assert updated["name"] == "Renamed"
        assert updated["updated_at"]

    def test_create_sets_owner(self, db):
        created = db.persons.create(USER_ID, {"name": "New", "user_id": "spoofed"})
        assert created["user_id"] == USER_ID

    def test_archive_uses_rpc(self, db, supabase, people):
        db.persons.archive(USER_ID, people[0]["id"], True, "moved away")

        name, params = supabase.rpc_calls[0]
        assert name == "archive_contact"
        assert params == {
            "p_contact_id": people[0]["id"],
            "p_user_id": USER_ID,
            "p_archived": True,
            "p_reason": "moved away",
        }
        assert "Zoe Park" not in _names(db.persons.list(USER_ID))

    def test_existing_emails_are_lowercased(self, db, supabase):
        supabase.seed("persons", {"user_id": USER_ID, "name": "A", "email": "A@B.com"})
        assert db.persons.existing_emails(USER_ID) == ["a@b.com"]

    def test_failures_become_database_errors(self, db, supabase):
        supabase.failing_tables.add("persons")
        with pytest.raises(DatabaseError) as exc_info:
            db.persons.list(USER_ID)
        assert exc_info.value.details == {"operation": "list contacts"}


class TestTagsAndMemories:
    def test_names_for_persons(self, db, supabase):
        investor, family = supabase.seed(
            "tags", {"user_id": USER_ID, "name": "Investor"}, {"user_id": USER_ID, "name": "Family"},
        )
        supabase.seed(
            "person_tags",
            {"person_id": "p1", "tag_id": investor["id"]},
            {"person_id": "p1", "tag_id": family["id"]},
            {"person_id": "p2", "tag_id": family["id"]},
        )

        assert db.tags.names_for_persons(["p1", "p2", "p3"]) == {
            "p1": ["Investor", "Family"],
            "p2": ["Family"],
        }
        assert db.tags.names_for_persons([]) == {}

    def test_memories_are_capped_per_person(self, db, supabase):
        supabase.seed("shared_memories", *[{"person_id": "p1", "content": f"memory {i}"} for i in range(5)])
        assert db.shared_memories.for_persons(["p1"]) == {"p1": ["memory 0", "memory 1", "memory 2"]}


class TestCalendarRepositories:
    def test_public_preferences_never_include_tokens(self):
        row = {
            "user_id": USER_ID,
            "calendar_enabled": True,
            "access_token_encrypted": "a:b:c",
            "refresh_token_encrypted": "d:e:f",
        }
        public = public_preferences(row)
        assert "access_token_encrypted" not in public
        assert "refresh_token_encrypted" not in public
        assert public["calendar_enabled"] is True

    def test_defaults_without_row(self):
        assert public_preferences(None)["notification_time"] == 30

    def test_save_tokens_upserts_per_user(self, db, supabase):
        db.calendar_preferences.save_tokens(USER_ID, "google", "enc-a", "enc-r", "2030-01-01T00:00:00+00:00")
        db.calendar_preferences.save_tokens(USER_ID, "google", "enc-b", None, "2030-01-01T00:00:00+00:00")

        rows = supabase.tables["calendar_preferences"]
        assert len(rows) == 1
        assert rows[0]["access_token_encrypted"] == "enc-b"
        assert rows[0]["refresh_token_encrypted"] == "enc-r"


class TestWeeklyRescues:
    def test_contact_ids_for_week_are_scoped(self, db):
        db.weekly_rescues.upsert_many([
            {"user_id": USER_ID, "contact_id": "c-1", "week_date": "2024-06-17", "status": "skipped"},
            {"user_id": USER_ID, "contact_id": "c-2", "week_date": "2024-06-10", "status": "pending"},
            {"user_id": OTHER_USER_ID, "contact_id": "c-3", "week_date": "2024-06-17", "status": "pending"},
        ])

        assert db.weekly_rescues.contact_ids_for_week(USER_ID, "2024-06-17") == {"c-1"}


class TestSupabaseClient:
    @pytest.fixture(autouse=True)
    def fresh_cache(self):
        database.get_supabase.cache_clear()
        yield
        database.get_supabase.cache_clear()

    def test_built_once_from_service_key(self, monkeypatch):
        created = []
        monkeypatch.setattr(settings, "SUPABASE_URL", "https://db.example.com")
        monkeypatch.setattr(settings, "SUPABASE_KEY", "service-role-key")
        monkeypatch.setattr(database, "create_client", lambda url, key: created.append((url, key)) or object())

        assert database.get_supabase() is database.get_supabase()
        assert created == [("https://db.example.com", "service-role-key")]

    def test_missing_key(self, monkeypatch):
        monkeypatch.setattr(settings, "SUPABASE_URL", "https://db.example.com")
        monkeypatch.setattr(settings, "SUPABASE_KEY", None)

        with pytest.raises(ValueError, match="SUPABASE_SERVICE_ROLE_KEY"):
            database.get_supabase()
