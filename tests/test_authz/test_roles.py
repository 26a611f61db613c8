"""Tests for the role and action vocabularies."""

import pytest

from app.authz.roles import ROLE_ORDER, Action, Role, parse_action, parse_role


def test_admin_tier():
    assert {r for r in Role if r.is_admin} == {Role.ADMIN, Role.SUPER_ADMIN}


def test_role_order_covers_every_role():
    assert set(ROLE_ORDER) == set(Role)
    assert ROLE_ORDER[0] == Role.SUPER_ADMIN


def test_action_columns():
    assert [a.column for a in Action] == ["can_view", "can_create", "can_edit", "can_delete", "can_manage"]


def test_parse_is_strict():
    assert parse_role(" grid_manager ") == Role.GRID_MANAGER
    assert parse_action("manage") == Action.MANAGE
    with pytest.raises(ValueError):
        parse_role("Admin")
    with pytest.raises(ValueError):
        parse_action("approve")
    with pytest.raises(ValueError):
        parse_role(None)
