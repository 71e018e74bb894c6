"""Tests for the events directory: listing, search, geo, writes and moderation."""

import uuid

import pytest

from trail_directory.tests.conftest import add_user, make_competition, make_edition, make_event, make_organizer


def _seed(fake_db, *events):
    fake_db.store["events"].extend(events)
    return events


class TestListEvents:
    def test_only_published_for_public(self, client, fake_db):
        _seed(fake_db, make_event(name="Zegama", slug="zegama"),
              make_event(name="Draft Race", slug="draft", status="DRAFT"))
        resp = client.get("/api/v2/events")
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 1
        assert data["results"][0]["name"] == "Zegama"
        assert data["results"][0]["competition_count"] == 0
        assert set(data) == {"results", "count", "page", "limit", "pages"}

    def test_status_param_ignored_for_non_admin(self, client, fake_db):
        _seed(fake_db, make_event(name="Draft Race", status="DRAFT"))
        resp = client.get("/api/v2/events?status=DRAFT")
        assert resp.json()["count"] == 0

    def test_admin_can_list_drafts(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        _seed(fake_db, make_event(name="Draft Race", status="DRAFT"))
        resp = client.get("/api/v2/events?status=DRAFT", headers=headers)
        assert resp.json()["count"] == 1

    def test_search_and_country(self, client, fake_db):
        _seed(fake_db,
              make_event(name="Zegama Aizkorri", city="Zegama", country="Spain"),
              make_event(name="Lavaredo", city="Cortina", country="Italy"))
        assert client.get("/api/v2/events?search=zegama").json()["count"] == 1
        assert client.get("/api/v2/events?country=italy").json()["results"][0]["name"] == "Lavaredo"

    def test_competition_counts(self, client, fake_db):
        event = make_event()
        _seed(fake_db, event)
        fake_db.store["competitions"].extend([make_competition(event_id=event["id"]) for _ in range(3)])
        assert client.get("/api/v2/events").json()["results"][0]["competition_count"] == 3

    def test_sort_by_name(self, client, fake_db):
        _seed(fake_db, make_event(name="Bravo"), make_event(name="Alpha"))
        resp = client.get("/api/v2/events?sort_by=name&sort_order=asc")
        assert [e["name"] for e in resp.json()["results"]] == ["Alpha", "Bravo"]


class TestSearch:
    def test_minimum_length(self, client, fake_db):
        resp = client.get("/api/v2/events/search?q=z")
        assert resp.status_code == 400

    def test_relevance_order(self, client, fake_db):
        _seed(fake_db,
              make_event(name="Alpine Classic", city="Chamonix", country="France", view_count=500),
              make_event(name="Chamonix Marathon", city="Chamonix", country="France", view_count=10),
              make_event(name="Mont Blanc Ultra", city="Courmayeur", country="Italy",
                         description="Finishes in chamonix", view_count=999))
        names = [e["name"] for e in client.get("/api/v2/events/search?q=chamonix").json()]
        assert names == ["Chamonix Marathon", "Alpine Classic", "Mont Blanc Ultra"]

    def test_excludes_drafts(self, client, fake_db):
        _seed(fake_db, make_event(name="Secret Chamonix", status="DRAFT"))
        assert client.get("/api/v2/events/search?q=chamonix").json() == []

    def test_name_match_beats_large_description_pool(self, client, fake_db):
        _seed(fake_db, *[
            make_event(name=f"Alpine Loop {i}", city="Argentiere", country="France",
                       description="Passes through chamonix", view_count=1000 + i)
            for i in range(250)
        ])
        _seed(fake_db, make_event(name="Chamonix Vertical", city="Argentiere", view_count=0))
        results = client.get("/api/v2/events/search?q=chamonix").json()
        assert results[0]["name"] == "Chamonix Vertical"
        assert results[1]["view_count"] == 1249
        assert len(results) == 20


class TestNearbyAndFeatured:
    def test_nearby(self, client, fake_db):
        _seed(fake_db,
              make_event(name="Chamonix", latitude=45.9237, longitude=6.8694),
              make_event(name="Barcelona", latitude=41.3874, longitude=2.1686),
              make_event(name="No coords", latitude=None, longitude=None))
        resp = client.get("/api/v2/events/nearby?lat=45.9&lon=6.9&radius=30")
        assert resp.status_code == 200
        rows = resp.json()
        assert [r["name"] for r in rows] == ["Chamonix"]
        assert "distance_km" in rows[0]

    def test_nearby_validates_coordinates(self, client, fake_db):
        assert client.get("/api/v2/events/nearby?lat=120&lon=0").status_code == 422

    def test_featured_requires_flag(self, client, fake_db):
        _seed(fake_db,
              make_event(name="Popular", view_count=900, featured=False),
              make_event(name="Featured low", view_count=5, featured=True),
              make_event(name="Featured high", view_count=50, featured=True))
        names = [e["name"] for e in client.get("/api/v2/events/featured").json()]
        assert names == ["Featured high", "Featured low"]

    def test_by_country(self, client, fake_db):
        _seed(fake_db, make_event(name="A", country="Spain"), make_event(name="B", country="France"))
        data = client.get("/api/v2/events/country/spain").json()
        assert [e["name"] for e in data["results"]] == ["A"]


class TestDetail:
    def test_get_increments_views_and_embeds(self, client, fake_db):
        owner, _ = add_user(fake_db, role="ORGANIZER")
        organizer = make_organizer()
        fake_db.store["organizers"].append(organizer)
        event = make_event(user_id=owner["id"], organizer_id=organizer["id"], view_count=7)
        _seed(fake_db, event)
        short = make_competition(event_id=event["id"], name="Short", base_distance=20)
        long_ = make_competition(event_id=event["id"], name="Long", base_distance=100)
        hidden = make_competition(event_id=event["id"], name="Hidden", status="DRAFT")
        fake_db.store["competitions"].extend([long_, short, hidden])
        fake_db.store["editions"].append(make_edition(competition_id=long_["id"]))

        data = client.get(f"/api/v2/events/{event['id']}").json()
        assert data["view_count"] == 8
        assert fake_db.store["events"][0]["view_count"] == 8
        assert data["creator"]["username"] == owner["username"]
        assert "email" not in data["creator"]
        assert data["organizer"]["id"] == organizer["id"]
        assert [c["name"] for c in data["competitions"]] == ["Short", "Long"]
        assert data["competitions"][1]["edition_count"] == 1
        assert data["competition_count"] == 2

    def test_by_slug(self, client, fake_db):
        _seed(fake_db, make_event(slug="zegama"))
        assert client.get("/api/v2/events/slug/zegama").status_code == 200
        assert client.get("/api/v2/events/slug/nope").status_code == 404

    def test_draft_hidden_from_public(self, client, fake_db):
        event = make_event(status="DRAFT")
        _seed(fake_db, event)
        assert client.get(f"/api/v2/events/{event['id']}").status_code == 404

    def test_draft_visible_to_owner(self, client, fake_db):
        owner, headers = add_user(fake_db, role="ORGANIZER")
        event = make_event(status="DRAFT", user_id=owner["id"])
        _seed(fake_db, event)
        assert client.get(f"/api/v2/events/{event['id']}", headers=headers).status_code == 200

    def test_invalid_uuid(self, client, fake_db):
        assert client.get("/api/v2/events/not-a-uuid").status_code == 422

    def test_missing(self, client, fake_db):
        resp = client.get(f"/api/v2/events/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Event not found"

    def test_stats(self, client, fake_db):
        event = make_event(view_count=3)
        _seed(fake_db, event)
        comp = make_competition(event_id=event["id"])
        fake_db.store["competitions"].append(comp)
        fake_db.store["editions"].extend([
            make_edition(competition_id=comp["id"], year=2025, current_participants=100),
            make_edition(competition_id=comp["id"], year=2026, current_participants=50),
        ])
        data = client.get(f"/api/v2/events/{event['id']}/stats").json()
        assert data["total_competitions"] == 1
        assert data["total_editions"] == 2
        assert data["total_participants"] == 150

    def test_check_slug(self, client, fake_db):
        _seed(fake_db, make_event(slug="zegama"))
        assert client.get("/api/v2/events/check-slug/zegama").json()["available"] is False
        assert client.get("/api/v2/events/check-slug/lavaredo").json()["available"] is True


class TestCreateEvent:
    BODY = {"name": "Zegama Aizkorri", "country": "Spain", "city": "Zegama"}

    def test_athlete_forbidden(self, client, fake_db):
        _, headers = add_user(fake_db, role="ATHLETE")
        assert client.post("/api/v2/events", json=self.BODY, headers=headers).status_code == 403

    def test_organizer_creates_draft(self, client, fake_db):
        user, headers = add_user(fake_db, role="ORGANIZER")
        resp = client.post("/api/v2/events", json={**self.BODY, "featured": True}, headers=headers)
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "DRAFT"
        assert data["slug"] == "zegama-aizkorri"
        assert data["featured"] is False
        assert data["user_id"] == user["id"]

    def test_admin_creates_published(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        data = client.post("/api/v2/events", json={**self.BODY, "featured": True}, headers=headers).json()
        assert data["status"] == "PUBLISHED"
        assert data["featured"] is True

    def test_generated_slug_is_unique(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        _seed(fake_db, make_event(slug="zegama-aizkorri"))
        data = client.post("/api/v2/events", json=self.BODY, headers=headers).json()
        assert data["slug"] == "zegama-aizkorri-1"

    def test_explicit_slug_conflict(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        _seed(fake_db, make_event(slug="taken"))
        resp = client.post("/api/v2/events", json={**self.BODY, "slug": "taken"}, headers=headers)
        assert resp.status_code == 409

    def test_unknown_organizer(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        resp = client.post("/api/v2/events", json={**self.BODY, "organizer_id": str(uuid.uuid4())},
                           headers=headers)
        assert resp.status_code == 400

    def test_half_coordinates(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        resp = client.post("/api/v2/events", json={**self.BODY, "latitude": 43.0}, headers=headers)
        assert resp.status_code == 400

    def test_validation(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        resp = client.post("/api/v2/events", json={**self.BODY, "typical_month": 13}, headers=headers)
        assert resp.status_code == 422


class TestUpdateEvent:
    def test_owner_updates(self, client, fake_db):
        owner, headers = add_user(fake_db, role="ORGANIZER")
        event = make_event(user_id=owner["id"], status="DRAFT")
        _seed(fake_db, event)
        resp = client.patch(f"/api/v2/events/{event['id']}", json={"city": "Bilbao"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["city"] == "Bilbao"

    def test_put_alias(self, client, fake_db):
        owner, headers = add_user(fake_db, role="ORGANIZER")
        event = make_event(user_id=owner["id"])
        _seed(fake_db, event)
        resp = client.put(f"/api/v2/events/{event['id']}", json={"city": "Bilbao"}, headers=headers)
        assert resp.status_code == 200

    def test_other_organizer_forbidden(self, client, fake_db):
        _, headers = add_user(fake_db, role="ORGANIZER")
        event = make_event(user_id=str(uuid.uuid4()))
        _seed(fake_db, event)
        resp = client.patch(f"/api/v2/events/{event['id']}", json={"city": "Bilbao"}, headers=headers)
        assert resp.status_code == 403

    def test_organizer_cannot_publish_or_feature(self, client, fake_db):
        owner, headers = add_user(fake_db, role="ORGANIZER")
        event = make_event(user_id=owner["id"], status="DRAFT")
        _seed(fake_db, event)
        url = f"/api/v2/events/{event['id']}"
        assert client.patch(url, json={"status": "PUBLISHED"}, headers=headers).status_code == 403
        assert client.patch(url, json={"featured": True}, headers=headers).status_code == 403
        assert client.patch(f"{url}/status", json={"status": "PUBLISHED"}, headers=headers).status_code == 403

    def test_slug_conflict(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        event = make_event(slug="mine")
        _seed(fake_db, event, make_event(slug="theirs"))
        resp = client.patch(f"/api/v2/events/{event['id']}", json={"slug": "theirs"}, headers=headers)
        assert resp.status_code == 409

    def test_null_on_required_column_rejected(self, client, fake_db):
        owner, headers = add_user(fake_db, role="ORGANIZER")
        event = make_event(user_id=owner["id"], name="Transvulcania")
        _seed(fake_db, event)
        resp = client.patch(f"/api/v2/events/{event['id']}", json={"name": None, "slug": None}, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Fields cannot be null: name, slug"
        assert fake_db.store["events"][0]["name"] == "Transvulcania"

    def test_null_clears_optional_column(self, client, fake_db):
        owner, headers = add_user(fake_db, role="ORGANIZER")
        event = make_event(user_id=owner["id"], description="Volcanic ridge")
        _seed(fake_db, event)
        resp = client.patch(f"/api/v2/events/{event['id']}", json={"description": None}, headers=headers)
        assert resp.status_code == 200
        assert fake_db.store["events"][0]["description"] is None


class TestMyEvents:
    def test_scoped_to_owner(self, client, fake_db):
        owner, headers = add_user(fake_db, role="ORGANIZER")
        _seed(fake_db, make_event(user_id=owner["id"], status="DRAFT"), make_event(user_id=str(uuid.uuid4())))
        data = client.get("/api/v2/events/my-events", headers=headers).json()
        assert data["count"] == 1

    def test_stats(self, client, fake_db):
        owner, headers = add_user(fake_db, role="ORGANIZER")
        _seed(fake_db,
              make_event(user_id=owner["id"], status="PUBLISHED"),
              make_event(user_id=owner["id"], status="DRAFT"),
              make_event(user_id=owner["id"], status="CANCELLED"),
              make_event(user_id=owner["id"], status="PUBLISHED"))
        data = client.get("/api/v2/events/stats", headers=headers).json()
        assert data == {"total_events": 4, "published": 2, "draft": 1, "rejected": 1, "approval_rate": "50.0"}

    def test_stats_empty(self, client, fake_db):
        _, headers = add_user(fake_db, role="ORGANIZER")
        assert client.get("/api/v2/events/stats", headers=headers).json()["approval_rate"] == "0.0"


class TestModeration:
    def test_pending_oldest_first(self, client, fake_db):
        creator, _ = add_user(fake_db, role="ORGANIZER")
        _, headers = add_user(fake_db, role="ADMIN")
        _seed(fake_db,
              make_event(name="Newer", status="DRAFT", created_at="2026-02-01", user_id=creator["id"]),
              make_event(name="Older", status="DRAFT", created_at="2026-01-01"))
        data = client.get("/api/v2/events/pending", headers=headers).json()
        assert [e["name"] for e in data["results"]] == ["Older", "Newer"]
        assert data["results"][1]["creator"]["id"] == creator["id"]

    def test_pending_admin_only(self, client, fake_db):
        _, headers = add_user(fake_db, role="ORGANIZER")
        assert client.get("/api/v2/events/pending", headers=headers).status_code == 403

    def test_approve_and_reject_are_audited(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        a, b = make_event(status="DRAFT"), make_event(status="DRAFT")
        _seed(fake_db, a, b)
        assert client.post(f"/api/v2/events/{a['id']}/approve", headers=headers).json()["status"] == "PUBLISHED"
        resp = client.post(f"/api/v2/events/{b['id']}/reject", json={"reason": "Duplicate"}, headers=headers)
        assert resp.json()["status"] == "CANCELLED"
        actions = [e["action"] for e in fake_db.store["audit_log"]]
        assert actions == ["event_approved", "event_rejected"]
        assert "Duplicate" in fake_db.store["audit_log"][1]["details"]

    def test_toggle_featured(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        event = make_event(featured=False)
        _seed(fake_db, event)
        assert client.patch(f"/api/v2/events/{event['id']}/featured", headers=headers).json()["featured"] is True

    def test_delete_cascades(self, client, fake_db):
        _, headers = add_user(fake_db, role="ADMIN")
        event = make_event()
        _seed(fake_db, event)
        comp = make_competition(event_id=event["id"])
        edition = make_edition(competition_id=comp["id"])
        fake_db.store["competitions"].append(comp)
        fake_db.store["editions"].append(edition)
        fake_db.store["participants"].append({"id": "p1", "edition_id": edition["id"]})
        fake_db.store["favorites"].append({"id": "f1", "competition_id": comp["id"], "user_id": "u"})

        resp = client.delete(f"/api/v2/events/{event['id']}", headers=headers)
        assert resp.json() == {"deleted": True, "competitions_deleted": 1}
        for table in ("events", "competitions", "editions", "participants", "favorites"):
            assert fake_db.store[table] == []
        assert fake_db.store["audit_log"][0]["action"] == "event_deleted"


class TestCanManage:
    @pytest.mark.parametrize("role,own,expected", [
        ("ADMIN", False, True),
        ("ORGANIZER", True, True),
        ("ORGANIZER", False, False),
    ])
    def test_matrix(self, role, own, expected):
        from trail_directory.services.events import can_manage
        user = {"id": "u1", "role": role}
        event = {"user_id": "u1" if own else "u2"}
        assert can_manage(user, event) is expected

    def test_anonymous(self):
        from trail_directory.services.events import can_manage
        assert can_manage(None, {"user_id": None}) is False
