"""Tests for the email API endpoints."""


class TestSendEmail:
    def test_requires_auth(self, client):
        response = client.post("/api/email/send", json={"subject": "Hi", "html": "<p>Hi</p>"})
        assert response.status_code == 401

    def test_send_to_self(self, app, client, auth_headers, test_user_email):
        response = client.post(
            "/api/email/send",
            json={"subject": "Hi", "html": "<p>Hi</p>", "template": "welcome"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["success"] is True
        assert data["provider"] == "brevo"

        entry = app.state.container.email_log.entries[0]
        assert entry.to_email == test_user_email
        assert entry.user_id == "test-user-123"

    def test_invalid_category(self, client, auth_headers):
        response = client.post(
            "/api/email/send",
            json={"subject": "Hi", "html": "<p>Hi</p>", "category": "spam"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestProviderStatus:
    def test_forbidden_for_regular_user(self, client, auth_headers):
        response = client.get("/api/email/providers", headers=auth_headers)

        assert response.status_code == 403
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "FORBIDDEN"

    def test_admin_sees_providers(self, client, admin_headers):
        client.post(
            "/api/email/send",
            json={"subject": "Hi", "html": "<p>Hi</p>"},
            headers=admin_headers,
        )

        response = client.get("/api/email/providers", headers=admin_headers)

        assert response.status_code == 200
        providers = response.json()["data"]["providers"]
        assert [p["name"] for p in providers] == ["brevo", "resend"]
        assert providers[0]["daily_requests"] == 1
        assert providers[1]["daily_requests"] == 0
