"""Derived views over cached transaction snapshots."""

from transactions_client.views.list_view import (
    ListProjection,
    ListView,
    SortDirection,
    SortField,
    SortSpec,
    project,
)

__all__ = [
    "ListProjection",
    "ListView",
    "SortDirection",
    "SortField",
    "SortSpec",
    "project",
]
