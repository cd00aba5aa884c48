from app.features.contacts.matching import (
    find_potential_duplicates,
    levenshtein_distance,
    similarity,
)


def _contact(id, name, **fields):
    first, _, last = name.partition(" ")
    return {"id": id, "name": name, "first_name": first, "last_name": last or None, **fields}


def test_levenshtein_distance():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("same", "same") == 0


def test_similarity_bounds():
    assert similarity("john smith", "john smith") == 1.0
    assert similarity("john smith", "jon smith") == 0.9
    assert similarity("", "anything") == 0.0
    assert similarity(None, "x") == 0.0


def test_email_match_groups_under_most_active_contact():
    quiet = _contact("a", "John Smith", email="JOHN@example.com", interaction_count=1)
    active = _contact("b", "Johnny Smithers", email="john@example.com", interaction_count=9)

    groups = find_potential_duplicates([quiet, active])

    assert len(groups) == 1
    group = groups[0]
    assert group.id == "group-b"
    assert group.keeper["id"] == "b"
    assert [d["id"] for d in group.duplicates] == ["a"]
    assert group.score == 1.0
    assert group.reasons[0] == "Exact Email Match"


def test_phone_match_needs_seven_digits():
    short = [
        _contact("a", "Ann Lee", phone="12-34-56"),
        _contact("b", "Bob Ray", phone="123456"),
    ]
    assert find_potential_duplicates(short) == []

    long = [
        _contact("a", "Ann Lee", phone="+1 (555) 123-4567"),
        _contact("b", "Bob Ray", phone="15551234567"),
    ]
    groups = find_potential_duplicates(long)
    assert len(groups) == 1
    assert groups[0].reasons == ["Exact Phone Match"]


def test_similar_name():
    groups = find_potential_duplicates([
        _contact("a", "John Smith"),
        _contact("b", "Jon Smith"),
    ])
    assert len(groups) == 1
    assert groups[0].score == 0.9
    assert groups[0].reasons == ["Similar Name (90%)"]


def test_first_name_with_missing_last_name():
    groups = find_potential_duplicates([
        _contact("a", "Maria Gonzalez", interaction_count=3),
        _contact("b", "Maria"),
    ])
    assert len(groups) == 1
    assert groups[0].score == 0.85
    assert groups[0].reasons == ["First Name Match (Missing Last Name)"]


def test_first_name_with_last_initial():
    groups = find_potential_duplicates([
        _contact("a", "Peter Parkinson", interaction_count=2),
        _contact("b", "Peter P"),
    ])
    assert len(groups) == 1
    assert groups[0].score == 0.88
    assert groups[0].reasons == ["First Name + Last Initial Match"]


def test_unrelated_contacts_are_not_grouped():
    groups = find_potential_duplicates([
        _contact("a", "Alice Walker", email="alice@example.com"),
        _contact("b", "Bob Stone", email="bob@example.com"),
        _contact("c", "Carol King"),
    ])
    assert groups == []


def test_contact_joins_at_most_one_group():
    contacts = [
        _contact("a", "Sam Taylor", email="sam@example.com", interaction_count=5),
        _contact("b", "Sam Tailor", email="sam@example.com", interaction_count=4),
        _contact("c", "Sam Taylor", interaction_count=3),
    ]
    groups = find_potential_duplicates(contacts)

    assert len(groups) == 1
    assert {d["id"] for d in groups[0].duplicates} == {"b", "c"}
    assert len(groups[0].reasons) == len(set(groups[0].reasons))
