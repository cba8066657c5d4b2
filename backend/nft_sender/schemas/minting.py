from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from nft_sender.blockchain import Blockchain
from nft_sender.models.minting import MintStatus


class MintFunctionRequest(BaseModel):
    """Body of the crossmint-nft edge function (camelCase on the wire)."""
    model_config = ConfigDict(populate_by_name=True)

    recipient: Optional[str] = Field(None, description="Email or wallet address")
    api_key: Optional[str] = Field(None, alias="apiKey", description="Project's Crossmint API key")
    template_id: Optional[str] = Field(None, alias="templateId")
    collection_id: Optional[str] = Field(None, alias="collectionId", description="Defaults to templateId")
    blockchain: Optional[str] = Field(None, description="Target chain, e.g. polygon-amoy")
    record_id: Optional[str] = Field(None, alias="recordId", description="Minting record to reconcile")


class ProjectCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    api_key: str = Field(..., min_length=1, description="Crossmint server API key")
    template_id: str = Field(..., min_length=1)
    collection_id: Optional[str] = Field(None, description="Defaults to template_id")
    blockchain: Blockchain = Field(default=Blockchain.CHILIZ)


class ProjectUpdateRequest(BaseModel):
    name: Optional[str] = None
    api_key: Optional[str] = None
    template_id: Optional[str] = None
    collection_id: Optional[str] = None
    blockchain: Optional[Blockchain] = None


class RecordResponse(BaseModel):
    id: str
    recipient: str
    status: MintStatus
    error_message: Optional[str] = None
    project_id: Optional[str] = None
    template_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RecipientsTextRequest(BaseModel):
    text: str = Field(..., description="Emails or wallet addresses, separated by whitespace or commas")


class RecipientsLoadedResponse(BaseModel):
    count: int
    discarded: list[str] = Field(default_factory=list)
    records: list[RecordResponse]


class RecordIdsRequest(BaseModel):
    record_ids: list[str] = Field(default_factory=list)


class MintingStatsResponse(BaseModel):
    total: int
    minted: int
    pending: int
    failed: int


class MintBatchResponse(BaseModel):
    success_count: int
    failure_count: int
    records: list[RecordResponse]
    stats: MintingStatsResponse


class RetryResponse(BaseModel):
    retried: bool
    success: Optional[bool] = None
    error: Optional[str] = None
    record: Optional[RecordResponse] = None


class DeleteResponse(BaseModel):
    deleted: bool
    count: int = 0


class TemplateValidationResponse(BaseModel):
    """Normalized template/collection details returned by validate-template."""
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    chain: Optional[str] = None
    readableChain: Optional[str] = None
    standardizedChain: Blockchain
    compatibleWallets: Dict[str, Any] = Field(default_factory=dict)
