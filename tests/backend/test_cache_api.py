"""Tests for cache administration endpoints."""


class TestClearRepoCache:
    def test_clears_repository_entries(self, client, cache):
        client.portal.call(cache.cache_repo_metadata, "acme", "widget", {"stars": 10})
        client.portal.call(cache.cache_query_selection, "acme", "widget", "auth", ["src/auth.py"])

        response = client.delete("/api/v1/cache/repos/acme/widget")

        assert response.status_code == 200
        assert response.json() == {"owner": "acme", "repo": "widget", "deleted": 2}
        assert client.portal.call(cache.get_cached_repo_metadata, "acme", "widget") is None

    def test_nothing_cached(self, client):
        response = client.delete("/api/v1/cache/repos/acme/widget")

        assert response.status_code == 200
        assert response.json()["deleted"] == 0

    def test_cache_down_still_succeeds(self, down_client):
        response = down_client.delete("/api/v1/cache/repos/acme/widget")

        assert response.status_code == 200
        assert response.json()["deleted"] == 0

    def test_rejects_bad_names(self, client):
        response = client.delete("/api/v1/cache/repos/ac:me/widget")

        assert response.status_code == 422


class TestCacheStatus:
    def test_status(self, client):
        body = client.get("/api/v1/cache/status").json()

        assert body["available"] is True
        assert body["backend"] == "memory"
        assert body["stats"]["errors"] == 0

    def test_status_when_down(self, down_client):
        body = down_client.get("/api/v1/cache/status").json()

        assert body["available"] is False
