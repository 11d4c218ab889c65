# league_standings/kv_client.py
"""
Thin HTTP client wrapper for a REST key-value store.

Speaks the Upstash-style REST dialect: GET {base}/<command>/<key> with a bearer
token, responding with {"result": ...}.
"""

from __future__ import annotations

from typing import Any, Dict, List
from urllib.parse import quote

import requests


class KVClient:
    """A minimal client for reading and writing keys over the KV REST API."""

    def __init__(self, base_url: str, token: str, timeout: int = 10) -> None:
        """Store the base URL and build request headers."""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {token}",
            "User-Agent": "league-standings/1.0",
        }

    def _url(self, command: str, key: str) -> str:
        return f"{self.base_url}/{command}/{quote(key, safe='')}"

    def _result(self, r: requests.Response) -> Any:
        """
        Raise on non-2xx responses and unwrap the "result" field.

        Raises:
            requests.HTTPError on non-2xx responses.
            ValueError if the body is not JSON or reports an error.
        """
        r.raise_for_status()
        body: Dict[str, Any] = r.json()
        if isinstance(body, dict) and body.get("error"):
            raise ValueError(f"KV error: {body['error']}")
        return body.get("result") if isinstance(body, dict) else None

    def get(self, key: str) -> Any:
        """Return the raw stored value for key (None if absent)."""
        r = requests.get(self._url("get", key), timeout=self.timeout, headers=self._headers)
        return self._result(r)

    def set(self, key: str, value: str) -> None:
        """Store a string value under key."""
        r = requests.post(
            self._url("set", key),
            data=value.encode("utf-8"),
            timeout=self.timeout,
            headers=self._headers,
        )
        self._result(r)

    def smembers(self, key: str) -> List[str]:
        """Return the members of a set key (empty list if absent)."""
        r = requests.get(self._url("smembers", key), timeout=self.timeout, headers=self._headers)
        result = self._result(r)
        return [str(x) for x in result] if isinstance(result, list) else []
