"""Tests for build_credentials/credentials/api_store.py - the REST credential store."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from build_credentials.credentials.api_store import SESSION_HEADER, ApiCredentialStore
from build_credentials.credentials.keytool import KeytoolGenerator
from build_credentials.exceptions import RemoteOperationError
from tests.conftest import make_keystore

BASE_URL = "https://api.example.com/--/api/v2/"


class RecordingHandler:
    """MockTransport handler returning canned responses and keeping requests."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def make_store(handler, session_secret="secret-token", generator=None) -> ApiCredentialStore:
    return ApiCredentialStore(
        BASE_URL,
        session_secret=session_secret,
        generator=generator,
        transport=httpx.MockTransport(handler),
    )


def credentials_payload() -> dict:
    return {
        "experienceName": "@jane/app",
        "keystore": make_keystore().to_api(),
        "pushCredentials": {"fcmApiKey": "fcm-key"},
    }


# =============================================================================
# fetch
# =============================================================================


class TestFetch:
    """Tests for reading stored credentials."""

    @pytest.mark.asyncio
    async def test_fetch_parses_credentials(self):
        handler = RecordingHandler(httpx.Response(200, json=credentials_payload()))

        async with make_store(handler) as store:
            credentials = await store.fetch("@jane/app")

        assert credentials.experience_name == "@jane/app"
        assert credentials.keystore == make_keystore()
        assert credentials.push_credentials.fcm_api_key == "fcm-key"
        request = handler.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/--/api/v2/credentials/android/@jane/app"
        assert request.headers[SESSION_HEADER] == "secret-token"

    @pytest.mark.asyncio
    async def test_fetch_unwraps_data_envelope(self):
        handler = RecordingHandler(httpx.Response(200, json={"data": credentials_payload()}))

        async with make_store(handler) as store:
            credentials = await store.fetch("@jane/app")

        assert credentials.usable_keystore == make_keystore()

    @pytest.mark.asyncio
    async def test_fetch_keeps_incomplete_keystore(self):
        """Completeness is judged by the views, not by the store."""
        payload = {"keystore": {"keystore": "AAAA", "keystorePassword": "p", "keyAlias": "a", "keyPassword": ""}}
        handler = RecordingHandler(httpx.Response(200, json=payload))

        async with make_store(handler) as store:
            credentials = await store.fetch("@jane/app")

        assert credentials.keystore.missing_fields == ["key_password"]
        assert credentials.usable_keystore is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(404, json={"error": "not found"}),
            httpx.Response(200, content=b""),
            httpx.Response(200, json={}),
            httpx.Response(200, json={"experienceName": "@jane/app"}),
        ],
    )
    async def test_fetch_absent_returns_none(self, response):
        async with make_store(RecordingHandler(response)) as store:
            assert await store.fetch("@jane/app") is None

    @pytest.mark.asyncio
    async def test_fetch_server_error_raises(self):
        handler = RecordingHandler(httpx.Response(500, text="boom"))

        async with make_store(handler) as store:
            with pytest.raises(RemoteOperationError) as exc_info:
                await store.fetch("@jane/app")

        assert exc_info.value.status_code == 500
        assert exc_info.value.response_text == "boom"

    @pytest.mark.asyncio
    async def test_fetch_malformed_json_raises(self):
        handler = RecordingHandler(httpx.Response(200, content=b"{not json"))

        async with make_store(handler) as store:
            with pytest.raises(RemoteOperationError, match="malformed JSON"):
                await store.fetch("@jane/app")

    @pytest.mark.asyncio
    async def test_transport_error_raises_remote_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_store(handler) as store:
            with pytest.raises(RemoteOperationError, match="connection refused"):
                await store.fetch("@jane/app")

    @pytest.mark.asyncio
    async def test_no_session_header_without_secret(self):
        handler = RecordingHandler(httpx.Response(404))

        async with make_store(handler, session_secret=None) as store:
            await store.fetch("@jane/app")

        assert SESSION_HEADER not in handler.requests[0].headers


# =============================================================================
# Writes
# =============================================================================


class TestWrites:
    """Tests for put, put_push_key and delete."""

    @pytest.mark.asyncio
    async def test_put_sends_keystore_body(self):
        handler = RecordingHandler(httpx.Response(200, json={}))

        async with make_store(handler) as store:
            await store.put("@jane/app", make_keystore())

        request = handler.requests[0]
        assert request.method == "PUT"
        assert request.url.path == "/--/api/v2/credentials/android/keystore/@jane/app"
        body = json.loads(request.content)
        assert body == {
            "keystore": {
                "keystore": make_keystore().keystore,
                "keystorePassword": "store-pass",
                "keyAlias": "QGphbmUvYXBw",
                "keyPassword": "key-pass",
                "keystoreType": "JKS",
            }
        }

    @pytest.mark.asyncio
    async def test_put_failure_is_not_retried(self):
        handler = RecordingHandler(httpx.Response(503, text="unavailable"))

        async with make_store(handler) as store:
            with pytest.raises(RemoteOperationError) as exc_info:
                await store.put("@jane/app", make_keystore())

        assert exc_info.value.status_code == 503
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_put_push_key_sends_fcm_key(self):
        handler = RecordingHandler(httpx.Response(200, json={}))

        async with make_store(handler) as store:
            await store.put_push_key("@jane/app", "fcm-key")

        request = handler.requests[0]
        assert request.url.path == "/--/api/v2/credentials/android/push/@jane/app"
        assert json.loads(request.content) == {"fcmApiKey": "fcm-key"}

    @pytest.mark.asyncio
    async def test_delete(self):
        handler = RecordingHandler(httpx.Response(204))

        async with make_store(handler) as store:
            await store.delete("@jane/app")

        assert handler.requests[0].method == "DELETE"
        assert handler.requests[0].url.path == "/--/api/v2/credentials/android/@jane/app"

    @pytest.mark.asyncio
    async def test_delete_absent_is_noop(self):
        async with make_store(RecordingHandler(httpx.Response(404))) as store:
            await store.delete("@jane/app")

    @pytest.mark.asyncio
    async def test_delete_server_error_raises(self):
        async with make_store(RecordingHandler(httpx.Response(500))) as store:
            with pytest.raises(RemoteOperationError) as exc_info:
                await store.delete("@jane/app")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_experience_name_is_escaped(self):
        handler = RecordingHandler(httpx.Response(404))

        async with make_store(handler) as store:
            await store.fetch("@jane/my app")

        assert handler.requests[0].url.raw_path.endswith(b"/credentials/android/@jane/my%20app")


# =============================================================================
# generate
# =============================================================================


@pytest.mark.asyncio
async def test_generate_delegates_to_keytool(tmp_path):
    generator = MagicMock(spec=KeytoolGenerator)
    generator.generate = AsyncMock(return_value=make_keystore())
    store = make_store(RecordingHandler(), generator=generator)

    keystore = await store.generate(tmp_path / "app_tmp.jks", "com.jane.app", "@jane/app")

    assert keystore == make_keystore()
    generator.generate.assert_awaited_once_with(tmp_path / "app_tmp.jks", "com.jane.app", "@jane/app")
    await store.close()
