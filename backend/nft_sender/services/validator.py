"""
Template/collection validation.

Checks with Crossmint that a template/collection id is usable with an API key
and reports its display name, preview image and chain. Network errors, parse
errors and provider rejections all end up as INVALID with a reason; nothing is
retried.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import status

from nft_sender.blockchain import Blockchain, chain_registry
from nft_sender.core.config import settings
from nft_sender.services.crossmint import CrossmintClient, crossmint_client

logger = logging.getLogger(__name__)


class ValidationState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"


@dataclass
class TemplateDetails:
    id: str
    name: Optional[str]
    description: Optional[str]
    image: Optional[str]
    chain: Optional[str]
    readable_chain: Optional[str]
    blockchain: Blockchain
    compatible_wallets: Dict[str, Any] = field(default_factory=dict)

    def to_response(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "metadata": {"image": self.image},
            "chain": self.chain,
            "readableChain": self.readable_chain,
            "standardizedChain": self.blockchain.value,
            "compatibleWallets": self.compatible_wallets,
        }


@dataclass
class ValidationResult:
    state: ValidationState
    reason: Optional[str] = None
    details: Optional[TemplateDetails] = None
    status_code: int = status.HTTP_200_OK

    @classmethod
    def invalid(cls, reason: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> "ValidationResult":
        return cls(ValidationState.INVALID, reason=reason, status_code=status_code)

    @property
    def is_valid(self) -> bool:
        return self.state == ValidationState.VALID


def _metadata(entry: Dict[str, Any]) -> Dict[str, Any]:
    metadata = entry.get("metadata")
    return metadata if isinstance(metadata, dict) else {}


def _image(entry: Dict[str, Any]) -> Optional[str]:
    metadata = _metadata(entry)
    return metadata.get("imageUrl") or metadata.get("image") or entry.get("imageUrl")


def _chain(entry: Dict[str, Any]) -> Optional[str]:
    on_chain = entry.get("onChain")
    if isinstance(on_chain, dict) and on_chain.get("chain"):
        return on_chain["chain"]
    return entry.get("chain")


def _template_entries(data: Any) -> list[Dict[str, Any]]:
    if isinstance(data, list):
        return [entry for entry in data if isinstance(entry, dict)]
    if isinstance(data, dict):
        for key in ("templates", "results", "data"):
            if isinstance(data.get(key), list):
                return [entry for entry in data[key] if isinstance(entry, dict)]
    return []


class TemplateValidator:
    def __init__(self, client: CrossmintClient):
        self._client = client

    async def validate(
        self,
        template_id: Optional[str],
        collection_id: Optional[str],
        api_key: Optional[str],
    ) -> ValidationResult:
        if not (template_id or collection_id) or not api_key:
            return ValidationResult.invalid("Missing templateId or apiKey")

        collection = collection_id or template_id
        logger.info(f"Validating template {template_id} in collection {collection}")
        try:
            return await self._validate(template_id or collection, collection, api_key)
        except Exception as e:
            logger.error(f"Failed to validate template {template_id}: {e!r}")
            return ValidationResult.invalid(
                f"Failed to parse Crossmint API response: {e}",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

    async def _validate(self, template_id: str, collection_id: str, api_key: str) -> ValidationResult:
        result = await self._client.get_collection(collection_id, api_key)
        if not result.ok:
            logger.error(f"Template validation failed for {collection_id}: {result.error}")
            return ValidationResult.invalid(result.error, result.status_code)
        if not isinstance(result.data, dict):
            return ValidationResult.invalid(
                "Unexpected collection response", status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        collection = result.data
        metadata = _metadata(collection)
        name = metadata.get("name") or collection.get("name")
        description = metadata.get("description") or collection.get("description")
        image = _image(collection)

        if template_id != collection_id:
            templates = await self._client.list_templates(collection_id, api_key)
            if templates.ok:
                entry = next(
                    (t for t in _template_entries(templates.data) if t.get("templateId") == template_id),
                    None,
                )
                if entry is None:
                    return ValidationResult.invalid(
                        f"Template {template_id} not found in collection {collection_id}",
                        status.HTTP_404_NOT_FOUND,
                    )
                template_metadata = _metadata(entry)
                name = template_metadata.get("name") or name
                description = template_metadata.get("description") or description
                image = _image(entry) or image
            else:
                logger.warning(
                    f"Could not list templates of {collection_id} ({templates.error}), "
                    "using collection metadata"
                )

        chain = _chain(collection)
        blockchain = chain_registry.infer(chain)
        details = TemplateDetails(
            id=template_id,
            name=name,
            description=description,
            image=image,
            chain=chain,
            readable_chain=chain_registry.readable_chain(chain) or chain_registry.get(blockchain).readable_name,
            blockchain=blockchain,
            compatible_wallets=chain_registry.compatible_wallets(chain),
        )
        logger.info(f"Template {template_id} valid: name={name!r} chain={chain} -> {blockchain.value}")
        return ValidationResult(ValidationState.VALID, details=details)


class DebouncedValidator:
    """
    Coalesces validation requests triggered by form edits.

    Each schedule() call cancels the previous not-yet-finished validation; only
    the last call within the debounce window reaches the provider.
    """

    def __init__(self, validator: TemplateValidator, delay: Optional[float] = None):
        self._validator = validator
        self._delay = settings.validation_debounce_seconds if delay is None else delay
        self._task: Optional[asyncio.Task] = None
        self.state = ValidationState.IDLE
        self.result: Optional[ValidationResult] = None

    def schedule(
        self,
        template_id: Optional[str],
        collection_id: Optional[str],
        api_key: Optional[str],
    ) -> Optional[asyncio.Task]:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

        if not (template_id or collection_id) or not api_key:
            self.state = ValidationState.IDLE
            self.result = None
            return None

        self.state = ValidationState.VALIDATING
        self._task = asyncio.create_task(self._run(template_id, collection_id, api_key))
        return self._task

    async def _run(self, template_id: Optional[str], collection_id: Optional[str], api_key: str) -> ValidationResult:
        await asyncio.sleep(self._delay)
        result = await self._validator.validate(template_id, collection_id, api_key)
        self.result = result
        self.state = result.state
        return result

    async def wait(self) -> Optional[ValidationResult]:
        """Wait for the latest scheduled validation to settle."""
        task = self._task
        if task is None:
            return self.result
        await asyncio.wait({task})
        if task.cancelled():
            return self.result
        return task.result()

    async def close(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})


# Singleton instance
template_validator = TemplateValidator(crossmint_client)
