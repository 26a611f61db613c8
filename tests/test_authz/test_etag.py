"""Tests for weak ETags over filtered list payloads."""

from app.authz.context import Viewer
from app.authz.etag import compute_list_etag, if_none_match_satisfied, make_weak_etag
from app.authz.privacy import DONATION_POLICY, filter_contact_fields
from app.authz.roles import Role


def test_etag_is_weak_and_stable():
    tag = make_weak_etag([{"id": "a", "n": 1}])
    assert tag.startswith('W/"')
    assert tag == make_weak_etag([{"n": 1, "id": "a"}])


def test_row_order_does_not_change_tag():
    rows = [{"id": "b", "v": 2}, {"id": "a", "v": 1}]
    assert compute_list_etag(rows) == compute_list_etag(list(reversed(rows)))


def test_key_projection():
    rows = [{"id": "a", "v": 1, "noise": 1}]
    assert compute_list_etag(rows, keys=["id", "v"]) == compute_list_etag([{"id": "a", "v": 1, "noise": 2}], keys=["id", "v"])


def test_hidden_change_does_not_change_stranger_tag():
    viewer = Viewer(id="u3", role=Role.USER)
    before = {"id": "d1", "name": "Water", "donor_phone": "0912", "created_by_id": "u1"}
    after = dict(before, donor_phone="0999")

    tag_before = compute_list_etag([filter_contact_fields(before, viewer, "u2", DONATION_POLICY)])
    tag_after = compute_list_etag([filter_contact_fields(after, viewer, "u2", DONATION_POLICY)])

    assert tag_before == tag_after


def test_visible_change_changes_owner_tag():
    viewer = Viewer(id="u2", role=Role.USER)
    before = {"id": "d1", "name": "Water", "donor_phone": "0912", "created_by_id": "u1"}
    after = dict(before, donor_phone="0999")

    assert compute_list_etag([filter_contact_fields(before, viewer, "u2", DONATION_POLICY)]) != compute_list_etag(
        [filter_contact_fields(after, viewer, "u2", DONATION_POLICY)]
    )


def test_if_none_match():
    tag = make_weak_etag([])
    assert if_none_match_satisfied(tag, tag)
    assert if_none_match_satisfied(tag.removeprefix("W/"), tag)
    assert if_none_match_satisfied(f'"other", {tag}', tag)
    assert if_none_match_satisfied("*", tag)
    assert not if_none_match_satisfied(None, tag)
    assert not if_none_match_satisfied('W/"nope"', tag)
