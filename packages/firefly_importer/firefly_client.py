"""Thin client for the Firefly III REST API.

Non-streaming ``GET`` requests against ``<base_url>/api/v1/...`` authenticated
with a Personal Access Token (``Authorization: Bearer <token>``). Responses are
parsed as JSON and validated with the pydantic DTOs from
:mod:`firefly_importer.models`.

The client performs no retries. Every failure (HTTP status, transport, empty
body, malformed JSON or payload shape) is raised as :class:`FireflyApiError`
so callers can decide whether it is fatal.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Protocol

from pydantic import ValidationError

from .logging_setup import get_logger
from .models import AboutData, AboutResponse, Account, AccountsResponse

ABOUT_PATH = "/api/v1/about"
ACCOUNTS_PATH = "/api/v1/accounts"

_logger = get_logger("firefly_importer.firefly_client")


class FireflyApiError(RuntimeError):
    """A Firefly III request failed or returned an unusable payload."""

    def __init__(self, message: str, *, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class AccountDirectory(Protocol):
    """Read-only source of accounts used to resolve statement references."""

    def list_accounts(self) -> list[Account]: ...


def build_url(base_url: str, path: str) -> str:
    """Join ``base_url`` and ``path`` with exactly one ``/`` between them."""

    url = base_url[:-1] if base_url.endswith("/") else base_url
    return url + (path if path.startswith("/") else "/" + path)


class FireflyClient:
    """Minimal Firefly III API client implementing :class:`AccountDirectory`."""

    def __init__(self, base_url: str, token: str, *, timeout: float | None = None) -> None:
        if not base_url or not base_url.strip():
            raise ValueError("Firefly III URL is required")
        if not token or not token.strip():
            raise ValueError("Firefly III API token is required")
        self.base_url = base_url.strip()
        self._token = token.strip()
        self._timeout = timeout

    def get_json(self, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute ``GET path`` and return the decoded JSON object."""

        url = build_url(self.base_url, path)
        if params:
            url += "?" + urllib.parse.urlencode(params)
        req = urllib.request.Request(url, method="GET")
        req.add_header("Authorization", f"Bearer {self._token}")
        req.add_header("Accept", "application/json")

        _logger.debug("GET %s", url)
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                status = resp.status
                body = resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            try:
                err_body = e.read().decode("utf-8", errors="replace")
            except Exception:  # noqa: BLE001 - best effort only
                err_body = ""
            raise FireflyApiError(
                f"HTTP error {e.code} for {path}", status=e.code, body=err_body
            ) from e
        except (urllib.error.URLError, OSError) as e:
            raise FireflyApiError(f"request to {url} failed: {e}") from e

        if status != 200:
            raise FireflyApiError(f"HTTP error {status} for {path}", status=status, body=body)
        if not body:
            raise FireflyApiError(f"empty response body for {path}", status=status)

        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            raise FireflyApiError(f"failed to parse JSON response for {path}: {e}") from e
        if not isinstance(payload, dict):
            raise FireflyApiError(f"unexpected JSON payload for {path}: expected an object")
        return payload

    def about(self) -> AboutData:
        """Return the instance information exposed by ``/api/v1/about``."""

        payload = self.get_json(ABOUT_PATH)
        try:
            about = AboutResponse.model_validate(payload)
        except ValidationError as e:
            raise FireflyApiError(f"could not parse about response: {e}") from e
        if about.data is None:
            raise FireflyApiError("about response has no data")
        return about.data

    def list_accounts(self) -> list[Account]:
        """Return every account, following the API's pagination."""

        accounts: list[Account] = []
        page = 1
        while True:
            payload = self.get_json(ACCOUNTS_PATH, params={"page": page})
            try:
                parsed = AccountsResponse.model_validate(payload)
            except ValidationError as e:
                raise FireflyApiError(f"could not parse accounts response: {e}") from e

            for item in parsed.data or []:
                if item is None or item.attributes is None:
                    continue
                a = item.attributes
                accounts.append(
                    Account(
                        id=item.id,
                        name=a.name,
                        account_number=a.account_number,
                        iban=a.iban,
                        notes=a.notes,
                    )
                )

            # Page by our own counter so a server ignoring ``page`` cannot loop us.
            if page >= parsed.total_pages():
                break
            page += 1

        _logger.debug("Fetched %d accounts from Firefly III", len(accounts))
        return accounts


__all__ = [
    "ABOUT_PATH",
    "ACCOUNTS_PATH",
    "AccountDirectory",
    "FireflyApiError",
    "FireflyClient",
    "build_url",
]
