"""Tests for per-edition ratings and the averages stored on editions."""

import uuid

import pytest

from trail_directory.tests.conftest import add_user, make_edition, seed_tree


def _scores(value=4, **overrides):
    scores = {c: value for c in (
        "rating_info_briefing", "rating_race_pack", "rating_village", "rating_marking",
        "rating_aid", "rating_finisher", "rating_eco",
    )}
    scores.update(overrides)
    return scores


def _rate(client, headers, edition, **body):
    return client.post(f"/api/v2/editions/{edition['id']}/ratings", headers=headers, json=body or _scores())


class TestAverages:
    def test_rating_average(self):
        from trail_directory.services.edition_ratings import rating_average
        assert rating_average(_scores(4, rating_eco=1)) == pytest.approx(25 / 7)

    def test_recalculate_empty(self, fake_db):
        from trail_directory.services.edition_ratings import recalculate
        _, _, edition = seed_tree(fake_db, avg_rating=3.5, total_ratings=2)
        assert recalculate(edition["id"]) == {"avg_rating": None, "total_ratings": 0}
        assert fake_db.store["editions"][0]["total_ratings"] == 0


class TestCreate:
    def test_create_updates_edition(self, client, fake_db):
        user, headers = add_user(fake_db)
        _, headers_b = add_user(fake_db)
        _, _, edition = seed_tree(fake_db)
        resp = _rate(client, headers, edition, **_scores(4), comment="Great aid stations")
        assert resp.status_code == 201
        assert resp.json()["user"]["id"] == user["id"]
        _rate(client, headers_b, edition, **_scores(3, rating_eco=1))

        stored = fake_db.store["editions"][0]
        assert stored["total_ratings"] == 2
        # (4 + 19/7) / 2
        assert stored["avg_rating"] == 3.36

    def test_one_per_user(self, client, fake_db):
        _, headers = add_user(fake_db)
        _, _, edition = seed_tree(fake_db)
        _rate(client, headers, edition)
        resp = _rate(client, headers, edition)
        assert resp.status_code == 409
        assert resp.json()["detail"] == "You have already rated this edition. Use update instead."

    def test_criteria_range(self, client, fake_db):
        _, headers = add_user(fake_db)
        _, _, edition = seed_tree(fake_db)
        assert _rate(client, headers, edition, **_scores(5)).status_code == 422
        assert _rate(client, headers, edition, **_scores(4, rating_aid=0)).status_code == 422

    def test_requires_login(self, client, fake_db):
        _, _, edition = seed_tree(fake_db)
        assert client.post(f"/api/v2/editions/{edition['id']}/ratings", json=_scores()).status_code == 401

    def test_unknown_edition(self, client, fake_db):
        _, headers = add_user(fake_db)
        resp = client.post(f"/api/v2/editions/{uuid.uuid4()}/ratings", headers=headers, json=_scores())
        assert resp.status_code == 404


class TestOwnership:
    def test_update_recalculates(self, client, fake_db):
        _, headers = add_user(fake_db)
        _, _, edition = seed_tree(fake_db)
        rating = _rate(client, headers, edition).json()
        resp = client.patch(f"/api/v2/ratings/{rating['id']}", headers=headers, json=_scores(2))
        assert resp.status_code == 200
        assert fake_db.store["editions"][0]["avg_rating"] == 2.0

    def test_only_author_can_change(self, client, fake_db):
        _, headers = add_user(fake_db)
        _, admin_headers = add_user(fake_db, role="ADMIN")
        _, _, edition = seed_tree(fake_db)
        rating = _rate(client, headers, edition).json()
        url = f"/api/v2/ratings/{rating['id']}"
        resp = client.patch(url, headers=admin_headers, json={"rating_eco": 1})
        assert resp.status_code == 403
        assert resp.json()["detail"] == "You can only update your own ratings"
        assert client.delete(url, headers=admin_headers).json()["detail"] == "You can only delete your own ratings"

    def test_null_criterion_rejected(self, client, fake_db):
        _, headers = add_user(fake_db)
        _, _, edition = seed_tree(fake_db)
        rating = _rate(client, headers, edition).json()
        resp = client.patch(f"/api/v2/ratings/{rating['id']}", headers=headers, json={"rating_eco": None})
        assert resp.status_code == 400

    def test_delete_resets_edition(self, client, fake_db):
        _, headers = add_user(fake_db)
        _, _, edition = seed_tree(fake_db)
        rating = _rate(client, headers, edition).json()
        assert client.delete(f"/api/v2/ratings/{rating['id']}", headers=headers).json() == {"deleted": True}
        assert fake_db.store["editions"][0]["avg_rating"] is None
        assert fake_db.store["editions"][0]["total_ratings"] == 0

    def test_user_delete_recalculates(self, client, fake_db):
        _, admin_headers = add_user(fake_db, role="ADMIN")
        user, headers = add_user(fake_db)
        _, _, edition = seed_tree(fake_db)
        _rate(client, headers, edition)
        assert client.delete(f"/api/v2/users/{user['id']}", headers=admin_headers).status_code == 200
        assert fake_db.store["edition_ratings"] == []
        assert fake_db.store["editions"][0]["total_ratings"] == 0


class TestReads:
    def test_list_for_edition(self, client, fake_db):
        _, headers_a = add_user(fake_db)
        _, headers_b = add_user(fake_db)
        event, comp, edition = seed_tree(fake_db)
        _rate(client, headers_a, edition)
        _rate(client, headers_b, edition, **_scores(2))
        data = client.get(f"/api/v2/editions/{edition['id']}/ratings").json()
        assert data["count"] == 2
        assert data["summary"] == {"avg_rating": 3.0, "total_ratings": 2}
        assert data["results"][0]["edition"]["competition"]["event"]["id"] == event["id"]

    def test_mine(self, client, fake_db):
        _, headers = add_user(fake_db)
        _, other_headers = add_user(fake_db)
        _, comp, edition = seed_tree(fake_db, year=2026)
        older = make_edition(competition_id=comp["id"], year=2025, slug="utmb-171k-2025")
        fake_db.store["editions"].append(older)
        _rate(client, headers, edition)
        _rate(client, headers, older)
        _rate(client, other_headers, edition)
        data = client.get("/api/v2/ratings/me", headers=headers).json()
        assert data["count"] == 2

    def test_recent_skips_draft_events(self, client, fake_db):
        _, headers = add_user(fake_db)
        _, _, live = seed_tree(fake_db, slug="live-2026")
        hidden_event, _, hidden = seed_tree(fake_db, slug="hidden-2026")
        _rate(client, headers, live)
        _rate(client, headers, hidden)
        hidden_event["status"] = "DRAFT"
        slugs = [r["edition"]["slug"] for r in client.get("/api/v2/ratings/recent").json()]
        assert slugs == ["live-2026"]

    def test_get_by_id(self, client, fake_db):
        _, headers = add_user(fake_db)
        _, _, edition = seed_tree(fake_db)
        rating = _rate(client, headers, edition).json()
        assert client.get(f"/api/v2/ratings/{rating['id']}").json()["average"] == 4.0
        assert client.get(f"/api/v2/ratings/{uuid.uuid4()}").status_code == 404
