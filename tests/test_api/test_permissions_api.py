"""Tests for permission administration, capability checks and cache invalidation."""


def _rule_id(client, headers, role, key):
    rows = client.get(f"/api/permissions/role/{role}", headers=headers).json()
    return next(r["id"] for r in rows if r["permission_key"] == key)


def test_listing_requires_permission(client, users, auth_headers):
    assert client.get("/api/permissions").status_code == 401
    assert client.get("/api/permissions", headers=auth_headers(users["creator"])).status_code == 403


def test_listing_ordered_by_role(client, users, auth_headers):
    rows = client.get("/api/permissions", headers=auth_headers(users["admin"])).json()

    roles = [r["role"] for r in rows]
    assert roles[0] == "super_admin"
    assert roles[-1] == "guest"


def test_categories(client, users, auth_headers):
    resp = client.get("/api/permissions/categories", headers=auth_headers(users["admin"]))
    assert "core" in resp.json()
    assert resp.json() == sorted(resp.json())


def test_check_uses_acting_role(client, users, auth_headers):
    params = {"resource_key": "grids", "action": "create"}

    assert client.get("/api/permissions/check", params=params).json()["has_permission"] is False
    body = client.get("/api/permissions/check", params=params, headers=auth_headers(users["creator"])).json()
    assert body == {"role": "user", "resource_key": "grids", "action": "create", "has_permission": True}


def test_check_unconfigured_pair_is_false(client, users, auth_headers):
    params = {"resource_key": "does_not_exist", "action": "view"}
    body = client.get("/api/permissions/check", params=params, headers=auth_headers(users["super_admin"])).json()
    assert body["has_permission"] is False


def test_my_capabilities(client):
    body = client.get("/api/permissions/me").json()

    assert body["role"] == "guest"
    assert body["permissions"]["grids"]["view"] is True
    assert body["permissions"]["grids"]["create"] is False
    assert "users" not in body["permissions"]


def test_patch_invalidates_cache(client, users, auth_headers):
    admin = auth_headers(users["admin"])
    user = auth_headers(users["creator"])
    assert client.get("/admin/users", headers=user).status_code == 403

    rule_id = _rule_id(client, admin, "user", "users")
    resp = client.patch(f"/api/permissions/{rule_id}", json={"can_view": True}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["can_view"] is True

    assert client.get("/admin/users", headers=user).status_code == 200


def test_patch_without_fields(client, users, auth_headers):
    admin = auth_headers(users["admin"])
    rule_id = _rule_id(client, admin, "user", "users")
    assert client.patch(f"/api/permissions/{rule_id}", json={}, headers=admin).status_code == 400


def test_patch_missing_rule(client, users, auth_headers):
    assert client.patch("/api/permissions/999999", json={"can_view": True}, headers=auth_headers(users["admin"])).status_code == 404


def test_batch_update_requires_manage(client, users, auth_headers):
    admin = auth_headers(users["admin"])
    rule_id = _rule_id(client, admin, "guest", "grids")
    body = {"permissions": [{"id": rule_id, "can_view": False}]}

    assert client.post("/api/permissions/batch-update", json=body, headers=admin).status_code == 403


def test_batch_update_applies_and_invalidates(client, users, auth_headers):
    root = auth_headers(users["super_admin"])
    rule_id = _rule_id(client, root, "guest", "grids")

    resp = client.post(
        "/api/permissions/batch-update", json={"permissions": [{"id": rule_id, "can_view": False}]}, headers=root
    )
    assert resp.status_code == 200
    assert resp.json() == {"updated": 1}
    assert client.get("/grids").status_code == 401


def test_batch_update_with_unknown_id_changes_nothing(client, users, auth_headers):
    root = auth_headers(users["super_admin"])
    rule_id = _rule_id(client, root, "guest", "grids")

    resp = client.post(
        "/api/permissions/batch-update",
        json={"permissions": [{"id": rule_id, "can_view": False}, {"id": 999999, "can_view": True}]},
        headers=root,
    )
    assert resp.status_code == 404
    assert client.get("/grids").status_code == 200


def test_batch_update_rejects_empty_list(client, users, auth_headers):
    resp = client.post("/api/permissions/batch-update", json={"permissions": []}, headers=auth_headers(users["super_admin"]))
    assert resp.status_code == 422


def test_check_with_unknown_key_does_not_warn(client, caplog):
    params = {"resource_key": "made_up_by_client", "action": "view"}

    with caplog.at_level("WARNING", logger="app.authz.store"):
        resp = client.get("/api/permissions/check", params=params)

    assert resp.status_code == 200
    assert resp.json()["has_permission"] is False
    assert not [r for r in caplog.records if r.levelname == "WARNING"]


def test_conflicting_rule_rows_deny_instead_of_failing(client, api_session_factory, users, auth_headers):
    from app.models.security import RolePermission

    with api_session_factory() as db:
        db.add(
            RolePermission(
                role=" user",
                permission_key="grids",
                permission_name="Grids",
                permission_category="core",
                can_view=True,
            )
        )
        db.commit()
    client.app.state.permission_cache.invalidate()

    resp = client.get("/grids", headers=auth_headers(users["creator"]))

    assert resp.status_code == 403
