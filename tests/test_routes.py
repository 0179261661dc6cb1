"""Tests for the Flask routes."""

from unittest.mock import patch

from app import GitHubAPIError


class TestAnalyzeEndpoint:
    """Test /api/analyze."""

    def test_missing_username(self, client):
        resp = client.get("/api/analyze")

        assert resp.status_code == 400
        assert resp.get_json()["title"] == "Username required"

    def test_invalid_username(self, client):
        resp = client.get("/api/analyze?username=../etc/passwd")

        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid GitHub username format."

    @patch("app.fetch_user")
    def test_success_get(self, mock_fetch, client, profile, repo_factory):
        mock_fetch.return_value = (profile, [repo_factory(name="a", stars=5), repo_factory(name="b", stars=100)])

        resp = client.get("/api/analyze?username=octocat")

        assert resp.status_code == 200
        data = resp.get_json()
        assert data["profile"]["login"] == "octocat"
        assert data["stats"]["total_stars"] == 105
        assert [r["name"] for r in data["repositories"]] == ["b", "a"]
        mock_fetch.assert_called_once_with("octocat")

    @patch("app.fetch_user")
    def test_success_post_json(self, mock_fetch, client, profile):
        mock_fetch.return_value = (profile, [])

        resp = client.post("/api/analyze", json={"username": " octocat "})

        assert resp.status_code == 200
        mock_fetch.assert_called_once_with("octocat")

    def test_post_json_that_is_not_an_object(self, client):
        resp = client.post("/api/analyze", json=["octocat"])

        assert resp.status_code == 400
        assert resp.get_json()["title"] == "Username required"

    @patch("app.requests.get")
    def test_non_json_upstream_body_is_bad_gateway(self, mock_get, client):
        mock_get.return_value.status_code = 200
        mock_get.return_value.json.side_effect = ValueError("Expecting value")

        resp = client.get("/api/analyze?username=octocat")

        assert resp.status_code == 502
        assert resp.get_json()["error"] == "Failed to fetch user profile (invalid response)"

    @patch("app.fetch_user")
    def test_success_post_form(self, mock_fetch, client, profile):
        mock_fetch.return_value = (profile, [])

        resp = client.post("/api/analyze", data={"username": "octocat"})

        assert resp.status_code == 200

    @patch("app.fetch_user")
    def test_user_not_found(self, mock_fetch, client):
        mock_fetch.side_effect = GitHubAPIError("User not found", status=404)

        resp = client.get("/api/analyze?username=ghost-user")

        assert resp.status_code == 404
        data = resp.get_json()
        assert data == {"title": "Analysis failed", "error": "User not found"}

    @patch("app.fetch_user")
    def test_upstream_failure_returns_no_partial_results(self, mock_fetch, client):
        mock_fetch.side_effect = GitHubAPIError("Failed to fetch repositories (HTTP 500)")

        resp = client.get("/api/analyze?username=octocat")

        assert resp.status_code == 502
        assert "profile" not in resp.get_json()

    @patch("app.fetch_user")
    def test_unexpected_error(self, mock_fetch, client):
        mock_fetch.side_effect = KeyError("boom")

        resp = client.get("/api/analyze?username=octocat")

        assert resp.status_code == 500
        assert resp.get_json()["error"] == "An error occurred"


def test_home_renders_page(client):
    resp = client.get("/")

    assert resp.status_code == 200
    assert b"GitHub Analyzer" in resp.data


def test_healthz(client):
    resp = client.get("/healthz")

    assert resp.status_code == 200
    assert resp.get_json()["ok"] is True
