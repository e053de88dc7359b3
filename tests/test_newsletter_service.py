"""Tests for NewsletterService against a mocked Brevo API."""
import sys
sys.path.insert(0, 'backend')

import asyncio
import json
import httpx
import pytest

from services.errors import ConfigurationError, UpstreamAuthError, UpstreamNetworkError, UpstreamUnknownError
from services.newsletter_service import BREVO_BASE_URL, EXISTS, NEW, UPDATED, NewsletterService, is_valid_email


class FakeBrevo:
    """In-memory stand-in for the Brevo contacts endpoints."""

    def __init__(self, update_status=204):
        self.contacts = {}
        self.update_status = update_status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST" and request.url.path == "/v3/contacts":
            body = json.loads(request.content)
            if body["email"] in self.contacts:
                return httpx.Response(400, json={"code": "duplicate_parameter", "message": "Contact already exist"})
            self.contacts[body["email"]] = set(body["listIds"])
            return httpx.Response(201, json={"id": len(self.contacts)})
        if request.method == "PUT":
            return httpx.Response(self.update_status)
        return httpx.Response(404)


def make_service(handler, list_id=7):
    client = httpx.AsyncClient(base_url=BREVO_BASE_URL, transport=httpx.MockTransport(handler))
    return NewsletterService(api_key="xkeysib-test", list_id=list_id, client=client)


class TestEmailValidation:

    @pytest.mark.parametrize("email", ["ana@example.com", "  ana.lopez@correo.mx  "])
    def test_valid(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", [None, "", "ana", "ana@", "ana@example", "a b@example.com", 42])
    def test_invalid(self, email):
        assert not is_valid_email(email)


class TestSubscribe:
    """Subscription flow."""

    def test_new_contact(self):
        brevo = FakeBrevo()
        service = make_service(brevo)

        result = asyncio.run(service.subscribe("ana@example.com"))

        assert result.success is True
        assert result.status == NEW
        sent = json.loads(brevo.requests[0].content)
        assert sent == {"email": "ana@example.com", "listIds": [7], "updateEnabled": False}

    def test_subscribing_twice_is_idempotent(self):
        brevo = FakeBrevo()
        service = make_service(brevo)

        async def subscribe_twice():
            first = await service.subscribe("ana@example.com")
            second = await service.subscribe("ana@example.com")
            return first, second

        first, second = asyncio.run(subscribe_twice())

        assert first.status == NEW
        assert second.success is True
        assert second.status == UPDATED
        assert brevo.requests[-1].method == "PUT"
        assert brevo.requests[-1].url.path.startswith("/v3/contacts/ana")
        assert json.loads(brevo.requests[-1].content) == {"listIds": [7]}

    def test_existing_contact_update_fails(self):
        brevo = FakeBrevo(update_status=500)
        brevo.contacts["ana@example.com"] = {7}
        service = make_service(brevo)

        result = asyncio.run(service.subscribe("ana@example.com"))

        assert result.success is True
        assert result.status == EXISTS

    def test_duplicate_without_code_treated_as_existing(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(400, text="not json")
            return httpx.Response(204)

        result = asyncio.run(make_service(handler).subscribe("ana@example.com"))
        assert result.status == UPDATED

    def test_other_bad_request_is_error(self):
        service = make_service(lambda request: httpx.Response(400, json={"code": "invalid_parameter"}))
        with pytest.raises(UpstreamUnknownError):
            asyncio.run(service.subscribe("ana@example.com"))

    def test_unauthorized(self):
        service = make_service(lambda request: httpx.Response(401, json={"code": "unauthorized"}))
        with pytest.raises(UpstreamAuthError) as exc_info:
            asyncio.run(service.subscribe("ana@example.com"))
        assert exc_info.value.code == "auth_error"

    def test_server_error(self):
        service = make_service(lambda request: httpx.Response(502))
        with pytest.raises(UpstreamUnknownError):
            asyncio.run(service.subscribe("ana@example.com"))

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamNetworkError):
            asyncio.run(make_service(handler).subscribe("ana@example.com"))

    def test_not_configured(self):
        service = NewsletterService(api_key=None, list_id=7)
        assert service.configured is False
        with pytest.raises(ConfigurationError):
            asyncio.run(service.subscribe("ana@example.com"))

    def test_missing_list_id_not_configured(self):
        assert NewsletterService(api_key="xkeysib-test", list_id=0).configured is False
