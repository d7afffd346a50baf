"""Tests for the remote gateway and failure normalization."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Callable

import httpx
import pytest
from conftest import make_record

from transactions_client.gateway.client_id import ClientIdStore, LocalStorage
from transactions_client.gateway.errors import (
    CONNECTIVITY_MESSAGE,
    DEFAULT_SERVICE_MESSAGE,
    LocalFailure,
    ServiceError,
    TransportError,
)
from transactions_client.gateway.remote import CLIENT_ID_HEADER, TransactionGateway

BASE_URL = "http://testserver/api"

_RECORD_PAYLOAD = {
    "id": 1,
    "amount": 15000,
    "businessName": "Farmacia",
    "name": "Juan Pérez",
    "transactionDate": "2024-01-01T10:00:00Z",
}


@pytest.fixture
def client_ids(tmp_path) -> ClientIdStore:
    return ClientIdStore(LocalStorage(str(tmp_path / "state.sqlite")))


def _gateway(
    client_ids: ClientIdStore,
    handler: Callable[[httpx.Request], httpx.Response],
) -> TransactionGateway:
    return TransactionGateway(BASE_URL, client_ids, transport=httpx.MockTransport(handler))


class TestOperations:
    @pytest.mark.asyncio
    async def test_list_decodes_records_and_sends_client_id(self, client_ids) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[_RECORD_PAYLOAD])

        async with _gateway(client_ids, handler) as gateway:
            records = await gateway.list()

        assert seen[0].method == "GET"
        assert seen[0].url.path == "/api/transaction"
        assert seen[0].headers[CLIENT_ID_HEADER] == client_ids.get()
        assert records[0].id == 1
        assert records[0].business_category == "Farmacia"
        assert records[0].counterparty_name == "Juan Pérez"
        assert records[0].transaction_date == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_same_client_id_on_every_request(self, client_ids) -> None:
        ids: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            ids.append(request.headers[CLIENT_ID_HEADER])
            return httpx.Response(200, json=_RECORD_PAYLOAD)

        async with _gateway(client_ids, handler) as gateway:
            await gateway.get_by_id(1)
            await gateway.get_by_id(1)

        assert len(set(ids)) == 1

    @pytest.mark.asyncio
    async def test_get_by_counterparty_encodes_name(self, client_ids) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.raw_path.decode())
            return httpx.Response(200, json=[])

        async with _gateway(client_ids, handler) as gateway:
            assert await gateway.get_by_counterparty("Juan Pérez/2") == []

        assert paths == ["/api/transaction/tenpista/Juan%20P%C3%A9rez%2F2"]

    @pytest.mark.asyncio
    async def test_create_posts_wire_payload(self, client_ids) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={**_RECORD_PAYLOAD, "id": 42})

        record = make_record(None)
        async with _gateway(client_ids, handler) as gateway:
            created = await gateway.create(record)

        assert created.id == 42
        assert bodies == [
            {
                "amount": 15000,
                "businessName": "Farmacia",
                "name": "Juan Pérez",
                "transactionDate": "2024-01-01T10:00:00.000Z",
            }
        ]

    @pytest.mark.asyncio
    async def test_update_and_delete_use_item_path(self, client_ids) -> None:
        calls: list[tuple[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.method, request.url.path))
            if request.method == "DELETE":
                return httpx.Response(204)
            return httpx.Response(200, json=_RECORD_PAYLOAD)

        async with _gateway(client_ids, handler) as gateway:
            await gateway.update(1, make_record(1))
            assert await gateway.delete(1) is None

        assert calls == [("PUT", "/api/transaction/1"), ("DELETE", "/api/transaction/1")]

    @pytest.mark.asyncio
    async def test_response_without_date_is_accepted(self, client_ids) -> None:
        payload = {key: value for key, value in _RECORD_PAYLOAD.items() if key != "transactionDate"}

        async with _gateway(client_ids, lambda _: httpx.Response(200, json=payload)) as gateway:
            record = await gateway.get_by_id(1)

        assert record.transaction_date is None


class TestFailureNormalization:
    @pytest.mark.asyncio
    async def test_service_error_joins_details(self, client_ids) -> None:
        def handler(_: httpx.Request) -> httpx.Response:
            return httpx.Response(
                429,
                json={
                    "status": 429,
                    "error": "Rate Limit Exceeded",
                    "message": "Too many requests",
                    "details": ["retry after 30s"],
                    "timestamp": "2024-01-01T10:00:00",
                    "path": "/api/transaction",
                },
            )

        async with _gateway(client_ids, handler) as gateway:
            with pytest.raises(ServiceError) as exc_info:
                await gateway.list()

        error = exc_info.value
        assert error.http_status == 429
        assert error.message == "Too many requests: retry after 30s"
        assert error.raw_details == ("retry after 30s",)
        assert error.to_dict() == {
            "httpStatus": 429,
            "message": "Too many requests: retry after 30s",
            "rawDetails": ["retry after 30s"],
        }

    @pytest.mark.asyncio
    async def test_service_error_with_multiple_details(self, client_ids) -> None:
        body = {"message": "Validation failed", "details": ["amount negative", "name blank"]}

        async with _gateway(client_ids, lambda _: httpx.Response(400, json=body)) as gateway:
            with pytest.raises(ServiceError, match="Validation failed: amount negative, name blank"):
                await gateway.create(make_record(None))

    @pytest.mark.asyncio
    async def test_service_error_without_json_body(self, client_ids) -> None:
        async with _gateway(client_ids, lambda _: httpx.Response(502, text="bad gateway")) as gateway:
            with pytest.raises(ServiceError) as exc_info:
                await gateway.list()

        assert exc_info.value.http_status == 502
        assert exc_info.value.message == DEFAULT_SERVICE_MESSAGE
        assert exc_info.value.raw_details is None

    @pytest.mark.asyncio
    async def test_connect_error_is_transport_error(self, client_ids) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _gateway(client_ids, handler) as gateway:
            with pytest.raises(TransportError) as exc_info:
                await gateway.list()

        assert exc_info.value.http_status == 0
        assert exc_info.value.message == CONNECTIVITY_MESSAGE

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self, client_ids) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with _gateway(client_ids, handler) as gateway:
            with pytest.raises(TransportError):
                await gateway.get_by_id(1)

    @pytest.mark.asyncio
    async def test_client_id_storage_failure_is_local(self, client_ids, monkeypatch) -> None:
        def broken() -> str:
            raise OSError("disk unavailable")

        monkeypatch.setattr(client_ids, "get", broken)
        handler_calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            handler_calls.append(request)
            return httpx.Response(200, json=[])

        async with _gateway(client_ids, handler) as gateway:
            with pytest.raises(LocalFailure) as exc_info:
                await gateway.list()

        assert exc_info.value.http_status == 0
        assert exc_info.value.message == "disk unavailable"
        assert handler_calls == []

    @pytest.mark.asyncio
    async def test_missing_id_is_local_failure(self, client_ids) -> None:
        async with _gateway(client_ids, lambda _: httpx.Response(200, json={})) as gateway:
            with pytest.raises(LocalFailure):
                await gateway.delete("")
            with pytest.raises(LocalFailure):
                await gateway.get_by_counterparty("  ")

    @pytest.mark.asyncio
    async def test_malformed_success_payload(self, client_ids) -> None:
        async with _gateway(client_ids, lambda _: httpx.Response(200, json={"id": 1})) as gateway:
            with pytest.raises(ServiceError, match="Unexpected response payload"):
                await gateway.get_by_id(1)

    @pytest.mark.asyncio
    async def test_undecodable_response_is_service_error(self, client_ids) -> None:
        def handler(_: httpx.Request) -> httpx.Response:
            return httpx.Response(
                201,
                headers={"Content-Encoding": "gzip"},
                stream=httpx.ByteStream(b"definitely not gzip"),
            )

        async with _gateway(client_ids, handler) as gateway:
            with pytest.raises(ServiceError) as exc_info:
                await gateway.create(make_record(None))

        assert exc_info.value.http_status == 0
        assert exc_info.value.message

    @pytest.mark.asyncio
    async def test_redirect_loop_is_service_error(self, client_ids) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.TooManyRedirects("Exceeded maximum allowed redirects", request=request)

        async with _gateway(client_ids, handler) as gateway:
            with pytest.raises(ServiceError, match="redirects"):
                await gateway.list()

    @pytest.mark.asyncio
    async def test_redirect_is_not_followed(self, client_ids) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(302, headers={"Location": "http://testserver/elsewhere"})

        async with _gateway(client_ids, handler) as gateway:
            with pytest.raises(ServiceError) as exc_info:
                await gateway.list()

        assert seen == ["/api/transaction"]
        assert exc_info.value.http_status == 302
        assert exc_info.value.message == DEFAULT_SERVICE_MESSAGE

    @pytest.mark.asyncio
    async def test_non_string_details_keep_server_message(self, client_ids) -> None:
        body = {"message": "Validation failed", "details": ["amount negative", 2]}

        async with _gateway(client_ids, lambda _: httpx.Response(400, json=body)) as gateway:
            with pytest.raises(ServiceError) as exc_info:
                await gateway.create(make_record(None))

        assert exc_info.value.message == "Validation failed: amount negative, 2"
        assert exc_info.value.raw_details == ("amount negative", "2")
