"""Remote gateway to the transactions service."""

from transactions_client.gateway.client_id import ClientIdStore, LocalStorage
from transactions_client.gateway.errors import (
    GatewayError,
    LocalFailure,
    ServiceError,
    TransportError,
)
from transactions_client.gateway.remote import TransactionGateway

__all__ = [
    "ClientIdStore",
    "GatewayError",
    "LocalFailure",
    "LocalStorage",
    "ServiceError",
    "TransactionGateway",
    "TransportError",
]
