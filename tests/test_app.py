"""HTTP-level tests for the unsubscribe and send-emails routes."""

from conftest import OPERATOR_TOKEN, RecordingMailer, StaticVerifier

from unsub.app import create_app

ONE_CLICK_BODY = "List-Unsubscribe=One-Click"
FORM = "application/x-www-form-urlencoded"


class TestMissingAndInvalidToken:
    def test_get_without_token(self, client):
        response = client.get("/unsubscribe")
        assert response.status_code == 400
        assert response.get_json() == {"success": False, "error": "Missing token parameter"}

    def test_post_without_token(self, client, store):
        response = client.post("/unsubscribe", data=ONE_CLICK_BODY, content_type=FORM)
        assert response.status_code == 400
        assert response.get_json()["error"] == "Missing token parameter"
        assert store.records == {}

    def test_get_with_invalid_token(self, client):
        response = client.get("/unsubscribe?token=nope")
        assert response.status_code == 400
        assert response.get_json() == {"success": False, "error": "Invalid or expired token"}

    def test_post_with_invalid_token(self, client):
        response = client.post("/unsubscribe?token=nope", data="action=unsubscribe", content_type=FORM)
        assert response.status_code == 400
        assert response.headers["Access-Control-Allow-Origin"] == "*"


class TestCheckStatus:
    def test_not_unsubscribed(self, client, codec):
        response = client.get("/unsubscribe", query_string={"token": codec.issue("grace@example.com")})
        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.get_json() == {
            "success": True,
            "email": "gr***e@example.com",
            "fullEmail": "grace@example.com",
            "isUnsubscribed": False,
        }

    def test_store_failure_is_500_with_message(self, client, codec, store):
        store.fail_with = "connection reset"
        response = client.get("/unsubscribe", query_string={"token": codec.issue("grace@example.com")})
        assert response.status_code == 500
        assert response.get_json() == {"success": False, "error": "connection reset"}


class TestRecordUnsubscribe:
    def test_one_click(self, client, codec, store):
        token = codec.issue("heidi@example.com")
        response = client.post(
            f"/unsubscribe?token={token}",
            data=ONE_CLICK_BODY,
            content_type=FORM,
            headers={"User-Agent": "ExampleMail/2.0"},
        )
        assert response.status_code == 200
        assert response.mimetype == "text/plain"
        assert response.get_data(as_text=True) == "OK"
        assert response.headers["Access-Control-Allow-Origin"] == "*"

        record = store.records["heidi@example.com"]
        assert record.source == "one-click"
        assert record.user_agent == "ExampleMail/2.0"

    def test_manual(self, client, codec, store):
        token = codec.issue("heidi@example.com")
        response = client.post(f"/unsubscribe?token={token}", data="action=unsubscribe", content_type=FORM)
        assert response.status_code == 200
        assert response.get_json() == {
            "success": True,
            "message": "Successfully unsubscribed",
            "email": "heidi@example.com",
        }
        assert store.records["heidi@example.com"].source == "manual"

    def test_status_reflects_unsubscribe(self, client, codec):
        token = codec.issue("ivan@example.com")
        client.post(f"/unsubscribe?token={token}", data=ONE_CLICK_BODY, content_type=FORM)

        body = client.get("/unsubscribe", query_string={"token": token}).get_json()
        assert body["isUnsubscribed"] is True
        assert "unsubscribedAt" in body

    def test_store_failure_is_500(self, client, codec, store):
        store.fail_with = "write throttled"
        token = codec.issue("ivan@example.com")
        response = client.post(f"/unsubscribe?token={token}", data=ONE_CLICK_BODY, content_type=FORM)
        assert response.status_code == 500
        assert response.get_json()["error"] == "write throttled"


class TestSendEmails:
    auth = {"Authorization": f"Bearer {OPERATOR_TOKEN}"}

    def test_requires_bearer_token(self, client, mailer):
        response = client.post("/send-emails", json={"count": 2})
        assert response.status_code == 401
        assert response.get_json()["success"] is False
        assert mailer.attempts == []

    def test_rejects_wrong_token(self, client):
        response = client.post(
            "/send-emails", json={"count": 2}, headers={"Authorization": "Bearer forged"})
        assert response.status_code == 401

    def test_sends_batch(self, client, mailer):
        response = client.post("/send-emails", headers=self.auth, json={
            "count": 2,
            "subject": "Batch subject",
            "additionalEmails": ["not-an-email", " judy@example.com "],
        })
        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is True
        assert body["sentCount"] == 3
        assert body["emails"][-1] == "judy@example.com"
        assert body["errors"] == []
        assert {m.subject for m in mailer.sent} == {"Batch subject"}

    def test_empty_body_sends_nothing(self, client, mailer):
        response = client.post("/send-emails", headers=self.auth)
        assert response.status_code == 200
        assert response.get_json()["sentCount"] == 0
        assert mailer.attempts == []

    def test_partial_failure_is_still_200(self, settings, store):
        mailer = RecordingMailer(failing={"bad@example.com"})
        app = create_app(settings, store=store, mailer=mailer, identity_verifier=StaticVerifier())
        response = app.test_client().post("/send-emails", headers=self.auth, json={
            "additionalEmails": ["good@example.com", "bad@example.com"],
        })
        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is False
        assert body["emails"] == ["good@example.com"]
        assert body["errors"] == ["Failed to send to bad@example.com: mailbox unavailable"]

    def test_mailer_crash_does_not_abort_batch(self, settings, store):
        class DroppingMailer(RecordingMailer):
            def send(self, message):
                if message.recipient == "bad@example.com":
                    raise ConnectionError("socket closed")
                super().send(message)

        mailer = DroppingMailer()
        app = create_app(settings, store=store, mailer=mailer, identity_verifier=StaticVerifier())
        response = app.test_client().post("/send-emails", headers=self.auth, json={
            "additionalEmails": ["a@example.com", "bad@example.com", "c@example.com"],
        })
        assert response.status_code == 200
        body = response.get_json()
        assert body["emails"] == ["a@example.com", "c@example.com"]
        assert body["errors"] == ["Failed to send to bad@example.com: socket closed"]

    def test_invalid_json(self, client):
        response = client.post(
            "/send-emails", headers=self.auth, data="{count:", content_type="application/json")
        assert response.status_code == 400

    def test_count_must_be_integer(self, client):
        response = client.post("/send-emails", headers=self.auth, json={"count": "five"})
        assert response.status_code == 400
        assert response.get_json()["error"] == "count must be an integer"

    def test_unconfigured_auth_rejects(self, settings, store, mailer):
        app = create_app(settings, store=store, mailer=mailer)
        response = app.test_client().post("/send-emails", json={"count": 1})
        assert response.status_code == 401
        assert mailer.attempts == []


def test_preflight(client):
    response = client.options("/send-emails")
    assert response.status_code == 204
    assert response.headers["Access-Control-Allow-Origin"] == "*"
    assert "Authorization" in response.headers["Access-Control-Allow-Headers"]


def test_unknown_route_is_json_404(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.get_json()["success"] is False
