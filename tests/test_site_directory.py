"""Tests for the site directory"""

from bizbud.models.site import content_key, settings_key
from bizbud.services import SiteDirectory


def test_site_ids_sorted(seeded_store):
    directory = SiteDirectory(seeded_store)
    assert directory.site_ids() == ["acme", "beta", "coastal-breeze"]


def test_settings_without_content_is_not_a_site(store):
    store.set(settings_key("orphan"), {"adminPasswordHash": "x"})
    directory = SiteDirectory(store)

    assert directory.site_ids() == []
    assert not directory.site_exists("orphan")


def test_summary_fields(store):
    store.set(content_key("acme"), {"siteTitle": "Acme Plumbing", "businessType": "plumber", "lastUpdated": "2024-05-01T00:00:00.000Z"})
    store.set(settings_key("acme"), {"adminEmail": "bob@acme.test", "createdAt": "2024-01-01T00:00:00.000Z"})

    summary = SiteDirectory(store).summarize("acme").to_public()

    assert summary == {
        "siteId": "acme",
        "businessName": "Acme Plumbing",
        "businessType": "plumber",
        "email": "bob@acme.test",
        "createdAt": "2024-01-01T00:00:00.000Z",
        "lastUpdated": "2024-05-01T00:00:00.000Z",
    }


def test_summary_defaults(store):
    store.set(content_key("bare"), {})
    store.set(settings_key("bare"), {"createdAt": "2024-01-01T00:00:00.000Z"})

    summary = SiteDirectory(store).summarize("bare")

    assert summary.business_name == "bare"
    assert summary.last_updated == "2024-01-01T00:00:00.000Z"
    assert summary.email == ""


def test_unreadable_site_becomes_stub(seeded_store, monkeypatch):
    directory = SiteDirectory(seeded_store)
    original = directory.summarize

    def flaky(site_id):
        if site_id == "beta":
            raise ValueError("corrupt record")
        return original(site_id)

    monkeypatch.setattr(directory, "summarize", flaky)
    rows = [s.to_public() for s in directory.list_sites()]

    assert [r["siteId"] for r in rows] == ["acme", "beta", "coastal-breeze"]
    assert rows[1] == {"siteId": "beta", "error": "Failed to load site data"}
    assert rows[0]["businessName"] == "Acme"


def test_find_sites_by_subscription(seeded_store):
    seeded_store.set(content_key("acme"), {"siteTitle": "Acme", "subscriptionId": "sub_1"})
    seeded_store.set(settings_key("beta"), {"adminPasswordHash": "x", "subscriptionId": "sub_1"})

    directory = SiteDirectory(seeded_store)

    assert directory.find_sites_by_subscription("sub_1") == ["acme", "beta"]
    assert directory.find_sites_by_subscription("sub_unknown") == []
