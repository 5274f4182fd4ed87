"""Tests for the Graph email service"""
import json

import httpx
import pytest

from injury_automation.config.settings import Settings
from injury_automation.domain.errors import EmailSendError
from injury_automation.services.email_service import EmailService


def graph_settings(**overrides) -> Settings:
    values = {
        "aad_tenant_id": "tenant-1",
        "aad_client_id": "client-1",
        "aad_client_secret": "secret",
        "service_mailbox_email": "noreply@club.org",
        "service_mailbox_password": "pw",
        "email_enabled": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class GraphStub:
    """Records requests and answers like the token and sendMail endpoints"""

    def __init__(self, send_status: int = 202, token_status: int = 200):
        self.requests = []
        self.send_status = send_status
        self.token_status = token_status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/oauth2/v2.0/token"):
            if self.token_status != 200:
                return httpx.Response(self.token_status, text="invalid_grant")
            return httpx.Response(200, json={"access_token": "tok-123", "expires_in": 3600})
        if request.url.path.endswith("/me/sendMail"):
            return httpx.Response(self.send_status, text="" if self.send_status < 300 else "denied")
        return httpx.Response(404)

    def paths(self):
        return [request.url.path for request in self.requests]


class TestSendEmail:

    def test_sends_through_graph(self):
        stub = GraphStub()
        service = EmailService(config=graph_settings(), transport=httpx.MockTransport(stub))

        assert service.send_email("coach@club.org", "Injury SUB-1", "<p>Hello</p>") is True

        assert stub.paths() == ["/tenant-1/oauth2/v2.0/token", "/v1.0/me/sendMail"]
        send_request = stub.requests[1]
        assert send_request.headers["Authorization"] == "Bearer tok-123"
        payload = json.loads(send_request.content)
        assert payload["message"]["subject"] == "Injury SUB-1"
        assert payload["message"]["body"] == {"contentType": "HTML", "content": "<p>Hello</p>"}
        assert payload["message"]["toRecipients"] == [{"emailAddress": {"address": "coach@club.org"}}]

    def test_token_is_cached(self):
        stub = GraphStub()
        service = EmailService(config=graph_settings(), transport=httpx.MockTransport(stub))

        service.send_email("a@club.org", "s", "b")
        service.send_email("b@club.org", "s", "b")

        assert stub.paths().count("/tenant-1/oauth2/v2.0/token") == 1
        assert stub.paths().count("/v1.0/me/sendMail") == 2

    def test_rejected_request_returns_false(self):
        stub = GraphStub(send_status=403)
        service = EmailService(config=graph_settings(), transport=httpx.MockTransport(stub))

        assert service.send_email("coach@club.org", "s", "b") is False

    def test_disabled_email_sends_nothing(self):
        stub = GraphStub()
        service = EmailService(config=graph_settings(email_enabled=False), transport=httpx.MockTransport(stub))

        assert service.send_email("coach@club.org", "s", "b") is False
        assert stub.requests == []

    def test_missing_credentials_send_nothing(self):
        stub = GraphStub()
        service = EmailService(config=graph_settings(aad_client_secret=""), transport=httpx.MockTransport(stub))

        assert service.send_email("coach@club.org", "s", "b") is False
        assert stub.requests == []


class TestFailures:

    def test_token_failure_raises(self):
        stub = GraphStub(token_status=400)
        service = EmailService(config=graph_settings(), transport=httpx.MockTransport(stub))

        with pytest.raises(EmailSendError):
            service.send_email("coach@club.org", "s", "b")

    def test_transport_error_raises(self):
        def unreachable(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        service = EmailService(config=graph_settings(), transport=httpx.MockTransport(unreachable))

        with pytest.raises(EmailSendError) as exc_info:
            service.send_email("coach@club.org", "s", "b")
        assert exc_info.value.details["error_type"] == "ConnectError"
