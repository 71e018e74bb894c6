"""Tests for user administration, profiles and the admin dashboards."""

import uuid

from trail_directory.tests.conftest import add_user, make_event


class TestProfiles:
    def test_view_own_profile(self, client, fake_db):
        user, headers = add_user(fake_db)
        data = client.get(f"/api/v2/users/{user['id']}", headers=headers).json()
        assert data["id"] == user["id"]
        assert "password_hash" not in data

    def test_cannot_view_others(self, client, fake_db):
        other, _ = add_user(fake_db)
        _, headers = add_user(fake_db)
        assert client.get(f"/api/v2/users/{other['id']}", headers=headers).status_code == 403

    def test_admin_views_anyone(self, client, fake_db):
        other, _ = add_user(fake_db)
        _, headers = add_user(fake_db, role="ADMIN")
        assert client.get(f"/api/v2/users/{other['id']}", headers=headers).status_code == 200

    def test_update_profile(self, client, fake_db):
        user, headers = add_user(fake_db)
        resp = client.patch(f"/api/v2/users/{user['id']}", headers=headers,
                            json={"bio": "Skyrunner", "language": "EN"})
        assert resp.status_code == 200
        assert resp.json()["bio"] == "Skyrunner"
        assert resp.json()["language"] == "EN"

    def test_username_taken(self, client, fake_db):
        add_user(fake_db, username="taken")
        user, headers = add_user(fake_db)
        resp = client.patch(f"/api/v2/users/{user['id']}", headers=headers, json={"username": "taken"})
        assert resp.status_code == 400

    def test_role_not_self_editable(self, client, fake_db):
        user, headers = add_user(fake_db)
        client.patch(f"/api/v2/users/{user['id']}", headers=headers, json={"role": "ADMIN"})
        assert fake_db.store["users"][0]["role"] == "ATHLETE"


class TestAdministration:
    def test_list_requires_admin(self, client, fake_db):
        _, headers = add_user(fake_db)
        assert client.get("/api/v2/users", headers=headers).status_code == 403

    def test_list_and_filter(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN", username="boss")
        add_user(fake_db, role="ORGANIZER", username="org")
        data = client.get("/api/v2/users?role=ORGANIZER", headers=headers).json()
        assert [u["username"] for u in data["results"]] == ["org"]
        assert "password_hash" not in data["results"][0]
        assert client.get("/api/v2/users?search=boss", headers=headers).json()["count"] == 1

    def test_set_role(self, client, fake_db):
        user, _ = add_user(fake_db)
        _, headers = add_user(fake_db, role="ADMIN")
        resp = client.patch(f"/api/v2/users/{user['id']}/role", headers=headers, json={"role": "ORGANIZER"})
        assert resp.json()["role"] == "ORGANIZER"
        assert fake_db.store["audit_log"][0]["action"] == "user_role_changed"

    def test_invalid_role(self, client, fake_db):
        user, _ = add_user(fake_db)
        _, headers = add_user(fake_db, role="ADMIN")
        resp = client.patch(f"/api/v2/users/{user['id']}/role", headers=headers, json={"role": "KING"})
        assert resp.status_code == 422

    def test_deactivate_revokes_tokens(self, client, fake_db):
        from trail_directory.services.auth import create_refresh_token
        user, user_headers = add_user(fake_db)
        admin, headers = add_user(fake_db, role="ADMIN")
        create_refresh_token(user)
        resp = client.patch(f"/api/v2/users/{user['id']}/active", headers=headers, json={"is_active": False})
        assert resp.json()["is_active"] is False
        assert fake_db.store["refresh_tokens"] == []
        assert client.get("/api/v2/auth/me", headers=user_headers).status_code == 401

    def test_cannot_deactivate_self(self, client, fake_db):
        admin, headers = add_user(fake_db, role="ADMIN")
        resp = client.patch(f"/api/v2/users/{admin['id']}/active", headers=headers, json={"is_active": False})
        assert resp.status_code == 400

    def test_delete(self, client, fake_db):
        user, _ = add_user(fake_db)
        admin, headers = add_user(fake_db, role="ADMIN")
        fake_db.store["favorites"].append({"id": "f", "user_id": user["id"], "competition_id": "c"})
        assert client.delete(f"/api/v2/users/{user['id']}", headers=headers).json() == {"deleted": True}
        assert [u["id"] for u in fake_db.store["users"]] == [admin["id"]]
        assert fake_db.store["favorites"] == []
        assert client.delete(f"/api/v2/users/{admin['id']}", headers=headers).status_code == 400

    def test_delete_missing(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        assert client.delete(f"/api/v2/users/{uuid.uuid4()}", headers=headers).status_code == 404


class TestDashboards:
    def test_admin_stats(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        add_user(fake_db)
        fake_db.store["events"].extend([make_event(status="DRAFT"), make_event()])
        data = client.get("/api/v2/admin/stats", headers=headers).json()
        assert data["users"]["total"] == 2
        assert data["users"]["by_role"]["ADMIN"] == 1
        assert data["events"]["by_status"]["PUBLISHED"] == 1
        assert data["pending"]["events"] == 1

    def test_audit_log(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        from trail_directory import supabase_client as db
        db.log_action("event_approved", "event", "e1", "ok")
        entries = client.get("/api/v2/admin/audit-log", headers=headers).json()
        assert entries[0]["action"] == "event_approved"
