"""Tests for slug generation and per-table uniqueness."""

from trail_directory.tests.conftest import make_event


class TestSlugify:
    def test_basic(self):
        from trail_directory.services.slugs import slugify
        assert slugify("Ultra Trail du Mont-Blanc 2025") == "ultra-trail-du-mont-blanc-2025"

    def test_strips_accents(self):
        from trail_directory.services.slugs import slugify
        assert slugify("Transvulcânia Marató") == "transvulcania-marato"

    def test_collapses_separators(self):
        from trail_directory.services.slugs import slugify
        assert slugify("  Zegama -- Aizkorri  ") == "zegama-aizkorri"

    def test_underscores_become_dashes(self):
        from trail_directory.services.slugs import slugify
        assert slugify("trail_running_club") == "trail-running-club"

    def test_drops_punctuation(self):
        from trail_directory.services.slugs import slugify
        assert slugify("Lavaredo! (120K)") == "lavaredo-120k"

    def test_empty_falls_back(self):
        from trail_directory.services.slugs import slugify
        assert slugify("!!!") == "item"
        assert slugify(None) == "item"


class TestUniqueSlug:
    def test_free_slug_unchanged(self, fake_db):
        from trail_directory.services.slugs import unique_slug
        assert unique_slug("events", "Zegama") == "zegama"

    def test_appends_counter(self, fake_db):
        from trail_directory.services.slugs import unique_slug
        fake_db.store["events"].append(make_event(slug="zegama"))
        fake_db.store["events"].append(make_event(slug="zegama-1"))
        assert unique_slug("events", "Zegama") == "zegama-2"

    def test_excluded_row_does_not_conflict(self, fake_db):
        from trail_directory.services.slugs import is_available
        event = make_event(slug="zegama")
        fake_db.store["events"].append(event)
        assert is_available("events", "zegama") is False
        assert is_available("events", "zegama", exclude_id=event["id"]) is True

    def test_scoped_per_table(self, fake_db):
        from trail_directory.services.slugs import is_available
        fake_db.store["events"].append(make_event(slug="zegama"))
        assert is_available("organizers", "zegama") is True
