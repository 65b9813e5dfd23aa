import copy

import pytest

from mm_history.errors import SchemaMismatchError
from mm_history.posts.schema import validate_post_list, validate_user_list

USERS = [
    {"id": "u1", "username": "alice", "nickname": "Al", "email": "alice@example.com", "roles": "system_user"},
    {"id": "u2", "username": "bob"},
]

POSTS = {
    "order": ["p2", "p1"],
    "posts": {
        "p1": {"id": "p1", "user_id": "u1", "create_at": 1000, "message": "hi", "type": ""},
        "p2": {"id": "p2", "user_id": "u2", "create_at": 2000.5, "message": "bye"},
    },
    "next_post_id": "",
    "prev_post_id": "",
}


# ── user list ────────────────────────────────────────────────────────────────

def test_user_list_valid():
    users = validate_user_list(USERS)
    assert [u.id for u in users] == ["u1", "u2"]
    assert users[0].username == "alice"
    assert users[0].email == "alice@example.com"
    assert users[1].nickname is None


def test_user_list_empty_is_valid():
    assert validate_user_list([]) == []


def test_user_list_missing_username_reports_index():
    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_user_list([{"id": "u1", "username": "alice"}, {"id": "u2"}])
    assert exc_info.value.location == "[1].username"
    assert "user list" in str(exc_info.value)


def test_user_list_numeric_id_is_not_coerced():
    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_user_list([{"id": 42, "username": "alice"}])
    assert exc_info.value.location == "[0].id"


def test_user_list_must_be_array():
    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_user_list({"id": "u1", "username": "alice"})
    assert exc_info.value.location == ""
    assert "<root>" in str(exc_info.value)


def test_user_list_element_must_be_object():
    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_user_list(["alice"])
    assert exc_info.value.location == "[0]"


# ── post list ────────────────────────────────────────────────────────────────

def test_post_list_valid():
    post_list = validate_post_list(POSTS)
    assert post_list.order == ["p2", "p1"]
    assert post_list.posts["p1"].create_at == 1000
    assert post_list.posts["p2"].create_at == 2000.5
    assert post_list.posts["p1"].message == "hi"


def test_post_list_message_defaults_to_empty():
    post_list = validate_post_list({"order": ["p1"], "posts": {"p1": {"user_id": "u1", "create_at": 5}}})
    assert post_list.posts["p1"].message == ""


def test_post_list_does_not_mutate_input():
    raw = copy.deepcopy(POSTS)
    validate_post_list(raw)
    assert raw == POSTS


def test_post_list_missing_order():
    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_post_list({"posts": {}})
    assert exc_info.value.location == "order"


def test_post_list_order_entries_must_be_strings():
    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_post_list({"order": ["p1", 2], "posts": {}})
    assert exc_info.value.location == "order[1]"


def test_post_list_posts_must_be_object():
    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_post_list({"order": [], "posts": []})
    assert exc_info.value.location == "posts"


def test_post_list_missing_user_id():
    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_post_list({"order": ["p1"], "posts": {"p1": {"create_at": 1}}})
    assert exc_info.value.location == "posts.p1.user_id"


@pytest.mark.parametrize("bad", ["1000", True, None])
def test_post_list_create_at_must_be_number(bad):
    raw = {"order": ["p1"], "posts": {"p1": {"user_id": "u1", "create_at": bad}}}
    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_post_list(raw)
    assert exc_info.value.location == "posts.p1.create_at"
    assert exc_info.value.shape == "post list"


def test_post_list_post_must_be_object():
    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_post_list({"order": ["p1"], "posts": {"p1": "hi"}})
    assert exc_info.value.location == "posts.p1"


def test_optional_fields_are_not_type_checked():
    users = validate_user_list([{"id": "u1", "username": "alice", "nickname": 7, "email": None}])
    assert users[0].nickname == 7
    post_list = validate_post_list({"order": ["p1"], "posts": {"p1": {"user_id": "u1", "create_at": 1, "message": None}}})
    assert post_list.posts["p1"].message is None


@pytest.mark.parametrize("post_id", ["int", "float"])
def test_post_ids_named_like_types_keep_full_location(post_id):
    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_post_list({"order": [post_id], "posts": {post_id: {"create_at": 1}}})
    assert exc_info.value.location == f"posts.{post_id}.user_id"

    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_post_list({"order": [post_id], "posts": {post_id: {"user_id": "u1", "create_at": "x"}}})
    assert exc_info.value.location == f"posts.{post_id}.create_at"

    with pytest.raises(SchemaMismatchError) as exc_info:
        validate_post_list({"order": [post_id], "posts": {post_id: "hi"}})
    assert exc_info.value.location == f"posts.{post_id}"
