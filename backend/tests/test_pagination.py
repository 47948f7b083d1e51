import re

import pytest
from bson import ObjectId

from cms.errors import InvalidCursor
from cms.services.pagination import (
    decode_cursor,
    decode_keyset_cursor,
    decode_object_id,
    encode_cursor,
    keyset_filter,
    last_cursor,
    parse_limit,
    prefix_filter
)


def test_parse_limit():
    assert parse_limit(None, 20, 1000) == 20
    assert parse_limit("", 20, 1000) == 20
    assert parse_limit("5", 20, 1000) == 5
    assert parse_limit("5000", 20, 1000) == 1000


@pytest.mark.parametrize("raw", ["0", "-3", "ten", "1.5"])
def test_parse_limit_rejects_non_positive_integers(raw):
    with pytest.raises(ValueError):
        parse_limit(raw, 20, 1000)


def test_cursor_is_url_safe_and_reversible():
    object_id = ObjectId()
    cursor = encode_cursor("héllo/wörld?", object_id)

    assert re.fullmatch(r"[A-Za-z0-9_-]+", cursor)
    assert decode_cursor(cursor, 2) == ["héllo/wörld?", str(object_id)]


@pytest.mark.parametrize("cursor", ["***", "bm90IGpzb24", encode_cursor("a"), encode_cursor("a", "b", "c")])
def test_malformed_cursors_are_rejected(cursor):
    with pytest.raises(InvalidCursor):
        decode_cursor(cursor, 2)


def test_invalid_cursor_is_a_value_error_with_bad_request_status():
    error = InvalidCursor("bad")
    assert isinstance(error, ValueError)
    assert error.status_code == 400


def test_decode_object_id():
    object_id = ObjectId()
    assert decode_object_id(str(object_id)) == object_id
    with pytest.raises(InvalidCursor):
        decode_object_id("nope")
    with pytest.raises(InvalidCursor):
        decode_object_id(None)


def test_keyset_filter_is_strict_on_both_fields():
    object_id = ObjectId()
    assert keyset_filter("name", "b", object_id) == {
        "$or": [
            {"name": {"$gt": "b"}},
            {"name": "b", "_id": {"$gt": object_id}},
        ]
    }


def test_prefix_filter_is_anchored_and_literal():
    pattern = re.compile(prefix_filter("a.b*")["$regex"])

    assert pattern.match("a.b*c")
    assert not pattern.match("axbc")
    assert not pattern.match("za.b*")


def test_last_cursor_only_for_full_pages():
    rows = [{"name": "a", "_id": 1}, {"name": "b", "_id": 2}]

    assert last_cursor(rows, 3, "name", "_id") is None
    assert last_cursor([], 3, "name") is None
    assert decode_cursor(last_cursor(rows, 2, "name", "_id"), 2) == ["b", 2]


def test_keyset_cursor_checks_the_sort_value_type():
    object_id = ObjectId()

    assert decode_keyset_cursor(encode_cursor(5, object_id), int) == (5, object_id)
    for value in ({"$gt": 0}, "5", True, None):
        with pytest.raises(InvalidCursor):
            decode_keyset_cursor(encode_cursor(value, object_id), int)
