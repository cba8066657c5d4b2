"""
Mint handler.

Stateless: one mint request in, one Crossmint call out. Validates the input,
turns the recipient into a provider locator, calls the provider and shapes the
answer into the edge function envelope:

    {success: true,  data, mintingDetails}       provider status
    {success: false, error: {message, details}}  provider status, 400 or 500

When asked to reconcile, the outcome is also written to the minting record
identified by recordId. Records are matched by id only, never by
recipient/template, so duplicate recipients cannot pick up each other's result.
No retry happens here; retrying is the dispatcher's job.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import status

from nft_sender.blockchain import Blockchain
from nft_sender.models.minting import MintStatus
from nft_sender.schemas.minting import MintFunctionRequest
from nft_sender.services.addressing import explain_provider_error, format_recipient
from nft_sender.services.crossmint import CrossmintClient, ProviderResult, crossmint_client
from nft_sender.services.record_store import MintingRecordStore, record_store

logger = logging.getLogger(__name__)


@dataclass
class MintHandlerResponse:
    status_code: int
    body: Dict[str, Any]
    result: Optional[ProviderResult] = None

    @property
    def success(self) -> bool:
        return bool(self.result and self.result.ok)

    @property
    def error_message(self) -> Optional[str]:
        error = self.body.get("error")
        if isinstance(error, dict):
            return error.get("message")
        return None


def _failure(message: str, details: Any = None) -> Dict[str, Any]:
    return {"success": False, "error": {"message": message, "details": details}}


class MintHandler:
    """Crossmint mint call plus best-effort reconciliation of the minting record."""

    def __init__(self, client: CrossmintClient, store: MintingRecordStore):
        self._client = client
        self._store = store

    async def handle(self, request: MintFunctionRequest, reconcile: bool = True) -> MintHandlerResponse:
        logger.info(
            f"[mint] request received: recipient={request.recipient} "
            f"templateId={request.template_id} collectionId={request.collection_id} "
            f"blockchain={request.blockchain} recordId={request.record_id} "
            f"apiKeyProvided={bool(request.api_key)}"
        )

        missing = []
        if not request.recipient:
            missing.append("recipient")
        if not request.api_key:
            missing.append("apiKey")
        if not request.template_id and not request.collection_id:
            missing.append("templateId or collectionId")
        if missing:
            message = f"Missing required parameters: {', '.join(missing)}"
            logger.error(f"[mint] rejected: {message}")
            return MintHandlerResponse(
                status.HTTP_400_BAD_REQUEST,
                _failure(message, {"missing": missing}),
            )

        try:
            blockchain = Blockchain(request.blockchain or Blockchain.CHILIZ)
        except ValueError:
            message = f"Unsupported blockchain: {request.blockchain}"
            logger.error(f"[mint] rejected: {message}")
            return MintHandlerResponse(
                status.HTTP_400_BAD_REQUEST,
                _failure(message, {"supported": [c.value for c in Blockchain]}),
            )

        collection_id = request.collection_id or request.template_id
        template_id = request.template_id if request.template_id and request.template_id != collection_id else None
        locator = format_recipient(request.recipient, blockchain)
        logger.info(f"[mint] formatted recipient {request.recipient} -> {locator} (collection {collection_id})")

        result = await self._client.mint_nft(
            collection_id=collection_id,
            api_key=request.api_key,
            recipient=locator,
            template_id=template_id,
        )

        if result.transport_error:
            logger.error(f"[mint] network error for {request.recipient}: {result.details}")
            response = MintHandlerResponse(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                _failure(result.error, result.details),
                result,
            )
        elif result.ok:
            logger.info(f"[mint] minted for {request.recipient} on {blockchain.value} ({result.status_code})")
            response = MintHandlerResponse(
                result.status_code,
                {
                    "success": True,
                    "data": result.data,
                    "mintingDetails": {
                        "recipient": request.recipient,
                        "formattedRecipient": locator,
                        "collectionId": collection_id,
                        "templateId": request.template_id,
                        "blockchain": blockchain.value,
                    },
                },
                result,
            )
        else:
            message = explain_provider_error(result.error, request.recipient, blockchain)
            logger.error(f"[mint] provider rejected {request.recipient} ({result.status_code}): {message}")
            response = MintHandlerResponse(
                result.status_code,
                _failure(message, result.details),
                result,
            )

        if reconcile:
            await self._reconcile(request.record_id, response)
        return response

    async def _reconcile(self, record_id: Optional[str], response: MintHandlerResponse) -> None:
        if not record_id:
            logger.info("[mint] no recordId supplied, skipping record reconciliation")
            return
        if response.success:
            written = await self._store.update_status(record_id, MintStatus.MINTED)
        else:
            written = await self._store.update_status(record_id, MintStatus.FAILED, response.error_message)
        logger.info(f"[mint] reconciled record {record_id}: written={written}")


# Singleton instance
mint_handler = MintHandler(crossmint_client, record_store)
