"""Fake HTTP responses and transport shared by the test modules."""

from __future__ import annotations

import json
from typing import Any

import requests


def make_response(status: int = 200, body: Any = None, content_type: str = "application/json", text: str | None = None) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r.headers["Content-Type"] = content_type
    r.encoding = "utf-8"
    if text is None:
        text = json.dumps(body) if body is not None else ""
    r._content = text.encode("utf-8")
    return r


class FakeTransport:
    """Records every call and answers with queued responses (or raises)."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.responses: list[Any] = []

    def queue(self, *items: Any) -> None:
        self.responses.extend(items)

    def __call__(self, method, url, headers=None, params=None, timeout=None, **kwargs):
        self.calls.append({"method": method, "url": url, "headers": headers, "params": params, "timeout": timeout})
        if not self.responses:
            return make_response(200, {})
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item
