"""
Crossmint API client.

Reads collections/templates and mints NFTs.
API docs: https://docs.crossmint.com/api-reference/minting/nfts/mint-nft

Every call returns a ProviderResult: the provider's answer is classified as
success or failure here, once, and callers only look at `ok`.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from nft_sender.core.config import settings
from nft_sender.core.constants import NETWORK_ERROR_MESSAGE

logger = logging.getLogger(__name__)


@dataclass
class ProviderResult:
    """Normalized provider response."""
    ok: bool
    status_code: int
    data: Any = None
    error: Optional[str] = None
    details: Any = None
    transport_error: bool = False

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ProviderResult":
        body = parse_body(response.text)
        if response.is_success and not _reports_failure(body):
            return cls(ok=True, status_code=response.status_code, data=body)
        return cls(
            ok=False,
            status_code=response.status_code,
            data=body,
            error=extract_error_message(body, response.status_code),
            details=body,
        )

    @classmethod
    def network_failure(cls, exc: Exception) -> "ProviderResult":
        return cls(
            ok=False,
            status_code=500,
            error=NETWORK_ERROR_MESSAGE,
            details=str(exc) or exc.__class__.__name__,
            transport_error=True,
        )


def parse_body(text: str) -> Any:
    """JSON body, or the raw text wrapped as {"text": ...}."""
    if not text:
        return {}
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return {"text": text}


def _reports_failure(body: Any) -> bool:
    if not isinstance(body, dict):
        return False
    return bool(body.get("error")) or body.get("success") is False


def extract_error_message(body: Any, status_code: int) -> str:
    """Pull a human-readable message out of a provider error body."""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("message"):
            return str(body["message"])
        if body.get("text"):
            return str(body["text"])
    return f"HTTP {status_code}"


class CrossmintClient:
    """Client for the Crossmint REST API. The API key is supplied per call (one per project)."""

    def __init__(self, base_url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._base_url = (base_url or settings.crossmint_api_url).rstrip("/")
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def _headers(api_key: str) -> Dict[str, str]:
        return {
            "x-api-key": api_key,
            "accept": "application/json",
            "content-type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        api_key: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> ProviderResult:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.request(method, url, headers=self._headers(api_key), json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Crossmint {method} {path} failed: {e!r}")
            return ProviderResult.network_failure(e)

        logger.info(f"Crossmint {method} {path} -> {resp.status_code}")
        return ProviderResult.from_response(resp)

    async def get_collection(self, collection_id: str, api_key: str) -> ProviderResult:
        """GET /collections/{id}: collection metadata and chain."""
        return await self._request("GET", f"/collections/{collection_id}", api_key)

    async def list_templates(self, collection_id: str, api_key: str) -> ProviderResult:
        """GET /collections/{id}/templates: templates defined in a collection."""
        return await self._request("GET", f"/collections/{collection_id}/templates", api_key)

    async def mint_nft(
        self,
        collection_id: str,
        api_key: str,
        recipient: str,
        template_id: Optional[str] = None,
    ) -> ProviderResult:
        """
        POST /collections/{id}/nfts: mint one NFT to one recipient.

        `recipient` must already be a provider locator (see services.addressing).
        """
        payload: Dict[str, Any] = {"recipient": recipient}
        if template_id:
            payload["templateId"] = template_id
        return await self._request("POST", f"/collections/{collection_id}/nfts", api_key, payload)


# Singleton instance
crossmint_client = CrossmintClient()
