"""Shared plumbing for feature facades."""

from dataclasses import fields, replace
from typing import Any
from urllib.parse import quote, urlencode

from openrouter_client.security.validation import check_api_key
from openrouter_client.transport.http import HttpTransport

API_PREFIX = "/api/v1"


def compact(values: dict[str, Any]) -> dict[str, Any]:
    """Drop unset (None) entries so they are omitted rather than sent as null."""
    return {k: v for k, v in values.items() if v is not None}


def path_segment(value: str) -> str:
    return quote(value, safe="")


def with_query(endpoint: str, params: dict[str, Any]) -> str:
    params = compact(params)
    return f"{endpoint}?{urlencode(params)}" if params else endpoint


class Options:
    """Mixin for option dataclasses: None fields are unset and never sent."""

    def to_payload(self) -> dict[str, Any]:
        return compact({f.name: getattr(self, f.name) for f in fields(self)})


def merge_options(cls: type, options: Any, overrides: dict[str, Any]) -> Any:
    """Apply keyword overrides on top of an options object (unknown names raise TypeError)."""
    base = options if options is not None else cls()
    return replace(base, **overrides) if overrides else base


class Feature:
    """A facade bound to one credential and the shared transport."""

    def __init__(self, credential: str, transport: HttpTransport):
        self._credential = credential
        self._transport = transport

    def _check_auth(self) -> None:
        check_api_key(self._credential)
