"""Tests for context acquisition endpoints."""


class TestBuildContext:
    def test_builds_context(self, client):
        response = client.post(
            "/api/v1/context",
            json={"owner": "acme", "repo": "widget", "query": "How does auth work?"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["branch"] == "main"
        assert body["selected_paths"] == ["src/auth.py"]
        assert body["files"] == {"src/auth.py": "<src/auth.py@c3>"}

    def test_second_request_served_from_cache(self, client, collaborators):
        payload = {"owner": "acme", "repo": "widget", "query": "How does auth work?"}

        client.post("/api/v1/context", json=payload)
        client.post("/api/v1/context", json={**payload, "query": "  how does AUTH work?  "})

        assert collaborators.file_selector.select_files.await_count == 1
        assert collaborators.content_fetcher.fetch_file.await_count == 1

    def test_works_with_cache_down(self, down_client, collaborators):
        payload = {"owner": "acme", "repo": "widget", "query": "auth"}

        first = down_client.post("/api/v1/context", json=payload)
        second = down_client.post("/api/v1/context", json=payload)

        assert first.status_code == second.status_code == 200
        assert collaborators.file_selector.select_files.await_count == 2

    def test_upstream_failure_is_502(self, client, collaborators):
        collaborators.metadata_fetcher.fetch_repo.side_effect = RuntimeError("GitHub 500")

        response = client.post(
            "/api/v1/context",
            json={"owner": "acme", "repo": "widget", "query": "auth"},
        )

        assert response.status_code == 502
        assert response.json()["detail"] == "Upstream service unavailable"

    def test_error_body_omits_request_id(self, client, collaborators):
        collaborators.metadata_fetcher.fetch_repo.side_effect = RuntimeError("GitHub 500")

        response = client.post(
            "/api/v1/context",
            json={"owner": "acme", "repo": "widget", "query": "auth"},
            headers={"X-Request-ID": "trace-42"},
        )

        assert response.headers["x-request-id"] == "trace-42"
        assert set(response.json()) == {"detail", "status_code"}

    def test_validation(self, client):
        response = client.post("/api/v1/context", json={"owner": "acme", "repo": "widget", "query": ""})

        assert response.status_code == 422

    def test_not_configured(self, bare_client):
        response = bare_client.post(
            "/api/v1/context",
            json={"owner": "acme", "repo": "widget", "query": "auth"},
        )

        assert response.status_code == 503


class TestProfile:
    def test_profile_cached(self, client, collaborators):
        first = client.get("/api/v1/profiles/octocat")
        second = client.get("/api/v1/profiles/octocat")

        assert first.json() == second.json() == {"login": "octocat", "followers": 3000}
        collaborators.metadata_fetcher.fetch_profile.assert_awaited_once_with("octocat")
