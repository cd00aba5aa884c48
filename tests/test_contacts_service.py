import pytest

from app.features.contacts import service
from app.shared.errors import NotFoundError, ValidationFailedError

from tests.conftest import OTHER_USER_ID, USER_ID

JUNE_1 = "2024-06-01T09:00:00+00:00"
JUNE_10 = "2024-06-10T18:30:00+00:00"
MAY_1 = "2024-05-01T12:00:00+00:00"


@pytest.fixture
def contact(supabase):
    row, = supabase.seed("persons", {
        "user_id": USER_ID,
        "name": "Jane Doe",
        "last_interaction_date": JUNE_1,
        "last_contact_method": "email",
        "interaction_count": 2,
    })
    return row


def _person(supabase, person_id):
    return next(p for p in supabase.tables["persons"] if p["id"] == person_id)


class TestLogInteraction:
    def test_newer_interaction_moves_last_contact(self, db, supabase, contact):
        interaction = service.log_interaction(db, USER_ID, contact["id"], "call", JUNE_10, "Caught up")

        assert interaction["notes"] == "Caught up"
        assert interaction["user_id"] == USER_ID
        person = _person(supabase, contact["id"])
        assert person["last_interaction_date"] == JUNE_10
        assert person["last_contact_method"] == "call"
        assert person["interaction_count"] == 3

    def test_backdated_interaction_only_counts(self, db, supabase, contact):
        service.log_interaction(db, USER_ID, contact["id"], "in-person", MAY_1)

        person = _person(supabase, contact["id"])
        assert person["last_interaction_date"] == JUNE_1
        assert person["last_contact_method"] == "email"
        assert person["interaction_count"] == 3
        assert len(supabase.tables["interactions"]) == 1

    def test_first_interaction(self, db, supabase):
        new, = supabase.seed("persons", {"user_id": USER_ID, "name": "New"})
        service.log_interaction(db, USER_ID, new["id"], "text", MAY_1)

        person = _person(supabase, new["id"])
        assert person["last_interaction_date"] == MAY_1
        assert person["interaction_count"] == 1

    def test_other_users_contact_is_not_found(self, db, supabase, contact):
        with pytest.raises(NotFoundError):
            service.log_interaction(db, OTHER_USER_ID, contact["id"], "call", JUNE_10)
        assert supabase.tables.get("interactions", []) == []


class TestGroupInteraction:
    def test_logs_once_per_contact(self, db, supabase, contact):
        other, = supabase.seed("persons", {"user_id": USER_ID, "name": "Omar"})

        logged = service.log_group_interaction(
            db, USER_ID, [contact["id"], other["id"], contact["id"]], "in-person", JUNE_10, "Dinner",
        )

        assert len(logged) == 2
        assert _person(supabase, other["id"])["last_contact_method"] == "in-person"

    def test_unknown_contact_logs_nothing(self, db, supabase, contact):
        with pytest.raises(NotFoundError):
            service.log_group_interaction(db, USER_ID, [contact["id"], "missing"], "call", JUNE_10)
        assert supabase.tables.get("interactions", []) == []

    def test_empty_list(self, db):
        with pytest.raises(ValidationFailedError):
            service.log_group_interaction(db, USER_ID, [], "call", JUNE_10)


class TestDeleteInteraction:
    def test_recomputes_from_remaining(self, db, supabase):
        person, = supabase.seed("persons", {"user_id": USER_ID, "name": "Jane"})
        first = service.log_interaction(db, USER_ID, person["id"], "email", JUNE_1)
        latest = service.log_interaction(db, USER_ID, person["id"], "call", JUNE_10)

        service.delete_interaction(db, USER_ID, latest["id"])

        row = _person(supabase, person["id"])
        assert row["last_interaction_date"] == JUNE_1
        assert row["last_contact_method"] == "email"
        assert row["interaction_count"] == 1

        service.delete_interaction(db, USER_ID, first["id"])
        row = _person(supabase, person["id"])
        assert row["last_interaction_date"] is None
        assert row["interaction_count"] == 0

    def test_missing(self, db):
        with pytest.raises(NotFoundError):
            service.delete_interaction(db, USER_ID, "nope")


class TestMerge:
    def test_merges_each_duplicate(self, db, supabase, contact):
        dup_a, dup_b = supabase.seed(
            "persons",
            {"user_id": USER_ID, "name": "Jane D."},
            {"user_id": USER_ID, "name": "J. Doe"},
        )

        result = service.merge_duplicates(db, USER_ID, contact["id"], [dup_a["id"], dup_b["id"], dup_a["id"]])

        assert result == {"keeper_id": contact["id"], "merged": [dup_a["id"], dup_b["id"]], "count": 2}
        assert [p["id"] for p in supabase.tables["persons"]] == [contact["id"]]
        assert supabase.rpc_calls[0] == (
            "merge_contacts",
            {"keeper_id": contact["id"], "duplicate_id": dup_a["id"], "p_user_id": USER_ID},
        )

    def test_validation(self, db, contact):
        with pytest.raises(ValidationFailedError):
            service.merge_duplicates(db, USER_ID, contact["id"], [])
        with pytest.raises(ValidationFailedError):
            service.merge_duplicates(db, USER_ID, contact["id"], [contact["id"]])
        with pytest.raises(NotFoundError):
            service.merge_duplicates(db, OTHER_USER_ID, contact["id"], ["x"])


class TestTagsAndMemories:
    def test_add_and_remove_tags(self, db, supabase, contact):
        assert service.set_tags(db, USER_ID, contact["id"], ["Investor", "Family"], []) == ["Investor", "Family"]
        assert service.set_tags(db, USER_ID, contact["id"], ["investor"], []) == ["Investor", "Family"]
        assert len(supabase.tables["tags"]) == 2

        assert service.set_tags(db, USER_ID, contact["id"], [], ["INVESTOR"]) == ["Family"]

    def test_shared_memory(self, db, supabase, contact):
        memory = service.add_shared_memory(db, USER_ID, contact["id"], "Ramen in Osaka")
        assert memory["person_id"] == contact["id"]

        with pytest.raises(NotFoundError):
            service.add_shared_memory(db, OTHER_USER_ID, contact["id"], "nope")
