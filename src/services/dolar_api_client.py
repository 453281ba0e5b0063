from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests
from requests import Response

from domain.errors import FetchError, FormatError

logger = logging.getLogger(__name__)

# API docs: https://dolarapi.com/docs/
IDENTIFIER_FIELD = "casa"
BUY_FIELD = "compra"
SELL_FIELD = "venta"


@dataclass(frozen=True)
class RawExternalItem:
    """One provider entry before source mapping and price validation."""

    identifier: Any
    buy_raw: Any
    sell_raw: Any


class DolarApiClient:
    def __init__(
        self,
        *,
        base_url: str = "https://dolarapi.com/v1/dolares",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if timeout <= 0:
            msg = "timeout must be > 0"
            raise ValueError(msg)

        self.base_url = base_url
        self.timeout = timeout
        self._session = session or requests.Session()

    def get_items(self) -> list[RawExternalItem]:
        payload = self._request()
        if not isinstance(payload, list):
            raise FormatError("Quote provider returned unexpected payload type", payload=payload)

        items: list[RawExternalItem] = []
        for entry in payload:
            if not isinstance(entry, dict):
                logger.debug("Dropping non-object provider entry: %r", entry)
                continue
            items.append(
                RawExternalItem(
                    identifier=entry.get(IDENTIFIER_FIELD),
                    buy_raw=entry.get(BUY_FIELD),
                    sell_raw=entry.get(SELL_FIELD),
                )
            )
        return items

    def _request(self) -> Any:
        try:
            response = self._session.request(
                "GET",
                self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            status_code = getattr(resp, "status_code", None)
            raise FetchError(
                f"Quote provider returned status {status_code}",
                status_code=status_code,
                payload=self._extract_error(resp),
            ) from exc
        except requests.Timeout as exc:
            raise FetchError(f"Quote provider did not respond within {self.timeout}s") from exc
        except requests.RequestException as exc:
            status_code = getattr(getattr(exc, "response", None), "status_code", None)
            raise FetchError("Quote provider request failed", status_code=status_code) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise FormatError("Quote provider returned invalid JSON", payload=response.text) from exc

    @staticmethod
    def _extract_error(response: Response | None) -> Any | None:
        if response is None:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text


__all__ = ["DolarApiClient", "RawExternalItem"]
