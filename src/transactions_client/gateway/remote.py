"""Async gateway to the transactions CRUD service."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

import httpx
from pydantic import ValidationError

from transactions_client.domain.models import Transaction, TransactionId
from transactions_client.gateway.client_id import ClientIdStore
from transactions_client.gateway.errors import (
    DEFAULT_SERVICE_MESSAGE,
    ErrorBody,
    LocalFailure,
    ServiceError,
    TransportError,
)
from transactions_client.utils.http import path_segment

logger = logging.getLogger(__name__)

CLIENT_ID_HEADER = "X-Client-Id"
RESOURCE_PATH = "/transaction"

# Client id lookup and request building.
_PREPARE_ERRORS = (
    httpx.HTTPError,
    httpx.InvalidURL,
    sqlite3.Error,
    OSError,
    TypeError,
    ValueError,
)
# Raised by httpx before anything reaches the wire.
_LOCAL_HTTPX_ERRORS = (httpx.UnsupportedProtocol, httpx.LocalProtocolError)


class TransactionGateway:
    """CRUD operations with failures normalized into ``GatewayError``.

    Every request carries the installation's client identifier. Nothing is
    retried; each call is bounded by the client timeout.
    """

    def __init__(
        self,
        base_url: str,
        client_ids: ClientIdStore,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client_ids = client_ids
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "TransactionGateway":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list(self) -> list[Transaction]:
        response = await self._request("GET", RESOURCE_PATH)
        return _decode_records(response)

    async def get_by_id(self, transaction_id: TransactionId) -> Transaction:
        response = await self._request("GET", _item_path(transaction_id))
        return _decode_record(response)

    async def get_by_counterparty(self, name: str) -> list[Transaction]:
        if not name or not name.strip():
            raise LocalFailure("Counterparty name is required")
        response = await self._request(
            "GET", f"{RESOURCE_PATH}/tenpista/{path_segment(name)}"
        )
        return _decode_records(response)

    async def create(self, record: Transaction) -> Transaction:
        response = await self._request("POST", RESOURCE_PATH, json_body=record.to_payload())
        created = _decode_record(response)
        logger.info("Created transaction id=%s", created.id)
        return created

    async def update(self, transaction_id: TransactionId, record: Transaction) -> Transaction:
        response = await self._request(
            "PUT", _item_path(transaction_id), json_body=record.to_payload()
        )
        updated = _decode_record(response)
        logger.info("Updated transaction id=%s", transaction_id)
        return updated

    async def delete(self, transaction_id: TransactionId) -> None:
        await self._request("DELETE", _item_path(transaction_id))
        logger.info("Deleted transaction id=%s", transaction_id)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, object] | None = None,
    ) -> httpx.Response:
        try:
            headers = {CLIENT_ID_HEADER: self._client_ids.get()}
            request = self._client.build_request(method, path, json=json_body, headers=headers)
        except _PREPARE_ERRORS as exc:
            logger.warning("Could not prepare %s %s: %s", method, path, exc)
            raise LocalFailure(str(exc)) from exc

        try:
            response = await self._client.send(request)
        except _LOCAL_HTTPX_ERRORS as exc:
            logger.warning("Request %s %s rejected locally: %s", method, path, exc)
            raise LocalFailure(str(exc)) from exc
        except httpx.TransportError as exc:
            logger.warning("No response for %s %s: %s", method, path, exc)
            raise TransportError() from exc
        except httpx.RequestError as exc:
            # A response arrived but could not be read (bad encoding, redirect loop).
            logger.warning("Unreadable response for %s %s: %s", method, path, exc)
            raise ServiceError(str(exc) or DEFAULT_SERVICE_MESSAGE, http_status=0) from exc

        if response.is_success:
            logger.debug("%s %s -> %d", method, path, response.status_code)
            return response

        error = ServiceError.from_body(response.status_code, _parse_error_body(response))
        logger.warning(
            "%s %s failed with status %d: %s",
            method,
            path,
            response.status_code,
            error.message,
        )
        raise error


def _item_path(transaction_id: TransactionId) -> str:
    if transaction_id is None or str(transaction_id).strip() == "":
        raise LocalFailure("Transaction id is required")
    return f"{RESOURCE_PATH}/{path_segment(transaction_id)}"


def _parse_error_body(response: httpx.Response) -> ErrorBody | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    try:
        return ErrorBody.model_validate(payload)
    except ValidationError:
        return None


def _json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise ServiceError(
            "Unexpected response payload", http_status=response.status_code
        ) from exc


def _decode_record(response: httpx.Response) -> Transaction:
    try:
        return Transaction.from_payload(_json(response))
    except ValidationError as exc:
        raise ServiceError(
            "Unexpected response payload", http_status=response.status_code
        ) from exc


def _decode_records(response: httpx.Response) -> list[Transaction]:
    payload = _json(response)
    if not isinstance(payload, list):
        raise ServiceError("Unexpected response payload", http_status=response.status_code)
    try:
        return [Transaction.from_payload(item) for item in payload]
    except ValidationError as exc:
        raise ServiceError(
            "Unexpected response payload", http_status=response.status_code
        ) from exc
