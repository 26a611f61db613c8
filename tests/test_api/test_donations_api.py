"""Tests for supply donations: donor contact visibility."""

import pytest


@pytest.fixture
def donation(client, users, auth_headers, grid):
    resp = client.post(
        "/supply-donations",
        json={
            "grid_id": grid["id"],
            "name": "Shovels",
            "quantity": 20,
            "unit": "pcs",
            "donor_name": "王小明",
            "donor_phone": "0912345678",
        },
        headers=auth_headers(users["volunteer"]),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _only(client, headers=None):
    rows = client.get("/supply-donations", headers=headers).json()
    assert len(rows) == 1
    return rows[0]


def test_stranger_sees_donation_without_donor_details(client, users, auth_headers, donation):
    row = _only(client, auth_headers(users["other"]))

    assert "donor_name" not in row
    assert "donor_phone" not in row
    assert row["created_by_id"] == users["volunteer"]
    assert row["name"] == "Shovels"
    assert row["quantity"] == 20


def test_donor_grid_owner_and_admin_see_details(client, users, auth_headers, donation):
    for who in ("volunteer", "creator", "admin", "super_admin"):
        assert _only(client, auth_headers(users[who]))["donor_phone"] == "0912345678"


def test_guest_sees_donations_redacted(client, donation):
    row = _only(client)
    assert "donor_name" not in row
    assert "donor_email" not in row


def test_filter_by_grid(client, donation):
    assert client.get("/supply-donations", params={"grid_id": "elsewhere"}).json() == []


def test_guest_cannot_donate(client, grid):
    resp = client.post("/supply-donations", json={"grid_id": grid["id"], "name": "x", "quantity": 1, "unit": "pcs"})
    assert resp.status_code == 401


def test_donation_to_missing_grid(client, users, auth_headers):
    resp = client.post(
        "/supply-donations",
        json={"grid_id": "nope", "name": "x", "quantity": 1, "unit": "pcs"},
        headers=auth_headers(users["volunteer"]),
    )
    assert resp.status_code == 404
