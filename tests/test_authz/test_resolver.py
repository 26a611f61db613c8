"""Tests for acting-role resolution and the Viewer it produces."""

import pytest

from app.authz.errors import AuthenticationError, AuthorizationError
from app.authz.resolver import resolve_acting_role, resolve_viewer
from app.authz.roles import Role


def test_unauthenticated_caller_acts_as_guest():
    assert resolve_acting_role(None, None) == Role.GUEST


def test_stored_role_used_without_override():
    assert resolve_acting_role(Role.GRID_MANAGER, "") == Role.GRID_MANAGER


def test_user_cannot_override_to_admin():
    with pytest.raises(AuthorizationError):
        resolve_acting_role(Role.USER, "admin")


def test_user_cannot_override_downwards_either():
    with pytest.raises(AuthorizationError):
        resolve_acting_role(Role.USER, "guest")


def test_guest_cannot_override():
    with pytest.raises(AuthorizationError):
        resolve_acting_role(None, "super_admin")


def test_override_matching_real_role_is_noop():
    assert resolve_acting_role(Role.USER, "user") == Role.USER
    assert resolve_acting_role(None, "guest") == Role.GUEST


@pytest.mark.parametrize("real", [Role.ADMIN, Role.SUPER_ADMIN])
@pytest.mark.parametrize("target", list(Role))
def test_admin_tier_may_view_as_any_role(real, target):
    assert resolve_acting_role(real, target.value) == target


def test_unknown_override_rejected_even_for_admin():
    with pytest.raises(AuthorizationError):
        resolve_acting_role(Role.ADMIN, "root")


def test_resolve_viewer_anonymous():
    viewer = resolve_viewer(None, None)

    assert viewer.id is None
    assert viewer.role == Role.GUEST
    assert not viewer.is_authenticated
    assert not viewer.is_overridden


def test_resolve_viewer_admin_view_as_guest():
    viewer = resolve_viewer("u1", "admin", "guest")

    assert viewer.role == Role.GUEST
    assert viewer.real_role == Role.ADMIN
    assert viewer.is_overridden
    assert not viewer.is_admin
    assert viewer.to_dict() == {"id": "u1", "role": "guest", "real_role": "admin", "is_overridden": True}


@pytest.mark.parametrize("stored", [None, "", "owner", "ADMIN"])
def test_corrupt_stored_role_is_authentication_error(stored):
    with pytest.raises(AuthenticationError):
        resolve_viewer("u1", stored)
