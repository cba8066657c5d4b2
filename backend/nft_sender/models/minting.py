"""
Tortoise ORM models for the NFT sender.

These models track:
- Minting projects (provider credentials, template/collection, target chain)
- One minting record per recipient submitted against a project
"""

from enum import Enum

from tortoise import fields, models
from tortoise.contrib.pydantic import pydantic_model_creator

from nft_sender.blockchain.base import Blockchain


class MintStatus(str, Enum):
    """Minting record status."""
    PENDING = "pending"
    MINTED = "minted"
    FAILED = "failed"


# pending -> pending is accepted as a no-op; minted is terminal
ALLOWED_TRANSITIONS: dict[MintStatus, frozenset[MintStatus]] = {
    MintStatus.PENDING: frozenset({MintStatus.PENDING, MintStatus.MINTED, MintStatus.FAILED}),
    MintStatus.FAILED: frozenset({MintStatus.PENDING}),
    MintStatus.MINTED: frozenset(),
}


def can_transition(current: MintStatus, new: MintStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[MintStatus(current)]


class Project(models.Model):
    """
    A minting project: provider API key plus the template/collection to mint from.

    collection_id may be empty, in which case the template id doubles as the
    collection id when minting.
    """
    id = fields.UUIDField(pk=True)
    name = fields.CharField(max_length=255)

    # Crossmint credentials and target
    api_key = fields.CharField(max_length=255)
    template_id = fields.CharField(max_length=255)
    collection_id = fields.CharField(max_length=255, null=True)
    blockchain = fields.CharEnumField(Blockchain, max_length=32, default=Blockchain.CHILIZ)

    # Timestamps
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "nft_projects"
        ordering = ["-created_at"]

    @property
    def effective_collection_id(self) -> str:
        return self.collection_id or self.template_id


class MintingRecord(models.Model):
    """
    One recipient's mint against a project.

    project_id is a plain column rather than a foreign key: deleting a project
    leaves its records in place, still queryable by project_id.
    """
    id = fields.UUIDField(pk=True)

    recipient = fields.CharField(max_length=255, index=True)
    status = fields.CharEnumField(MintStatus, max_length=20, default=MintStatus.PENDING)
    error_message = fields.TextField(null=True)

    project_id = fields.UUIDField(null=True, index=True)
    # Template at creation time; later project edits do not rewrite it
    template_id = fields.CharField(max_length=255, null=True)

    # Timestamps
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "nft_mints"
        indexes = [
            ("project_id", "status"),
        ]


# Pydantic model for API responses (auto-generated, API key excluded)
Project_Pydantic = pydantic_model_creator(Project, name="Project", exclude=("api_key",))
