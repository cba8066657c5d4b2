"""
Minting record persistence.

Thin async layer over the nft_mints / nft_projects tables. Writes issued while
minting are best-effort: failures are logged and reported as False, never
raised, so in-memory state can move on even when the database lags behind.
"""

import logging
import time
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Iterable, Optional

from nft_sender.blockchain import Blockchain
from nft_sender.core.constants import TEMP_ID_PREFIX
from nft_sender.models.minting import MintingRecord, MintStatus, Project

logger = logging.getLogger(__name__)


def is_temporary_id(record_id: Optional[str]) -> bool:
    """True for ids that were never persisted (missing or temp- placeholders)."""
    return not record_id or str(record_id).startswith(TEMP_ID_PREFIX)


def build_temporary_id(index: int) -> str:
    return f"{TEMP_ID_PREFIX}{int(time.time() * 1000)}-{index}"


def _parse_uuid(value: Optional[str]) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class RecordSnapshot:
    """In-memory view of a minting record."""
    id: str
    recipient: str
    status: MintStatus = MintStatus.PENDING
    error_message: Optional[str] = None
    project_id: Optional[str] = None
    template_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_temporary(self) -> bool:
        return is_temporary_id(self.id)

    def with_status(self, status: MintStatus, error_message: Optional[str] = None) -> "RecordSnapshot":
        return replace(
            self,
            status=status,
            error_message=error_message if status == MintStatus.FAILED else None,
            updated_at=datetime.now(timezone.utc),
        )

    @classmethod
    def from_model(cls, record: MintingRecord) -> "RecordSnapshot":
        return cls(
            id=str(record.id),
            recipient=record.recipient,
            status=MintStatus(record.status),
            error_message=record.error_message,
            project_id=str(record.project_id) if record.project_id else None,
            template_id=record.template_id,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


@dataclass(frozen=True)
class ProjectConfig:
    """Project settings needed to dispatch mints."""
    api_key: str
    template_id: str
    collection_id: str
    blockchain: Blockchain = Blockchain.CHILIZ
    id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_model(cls, project: Project) -> "ProjectConfig":
        return cls(
            id=str(project.id),
            name=project.name,
            api_key=project.api_key,
            template_id=project.template_id,
            collection_id=project.effective_collection_id,
            blockchain=Blockchain(project.blockchain),
        )


class MintingRecordStore:
    """CRUD over minting records, keyed by record id."""

    async def create_pending(
        self,
        recipients: Iterable[str],
        project: ProjectConfig,
    ) -> list[RecordSnapshot]:
        """
        Persist one pending record per recipient, in input order.

        Recipients that cannot be saved (or a project without an id) still
        produce a snapshot, under a temporary id.
        """
        project_uuid = _parse_uuid(project.id)
        snapshots: list[RecordSnapshot] = []
        for index, recipient in enumerate(recipients):
            if project_uuid is None:
                snapshots.append(self._temporary(index, recipient, project))
                continue
            try:
                record = await MintingRecord.create(
                    recipient=recipient,
                    status=MintStatus.PENDING,
                    project_id=project_uuid,
                    template_id=project.template_id,
                )
                snapshots.append(RecordSnapshot.from_model(record))
            except Exception as e:
                logger.error(f"Error saving minting record for {recipient}: {e}")
                snapshots.append(self._temporary(index, recipient, project))
        return snapshots

    @staticmethod
    def _temporary(index: int, recipient: str, project: ProjectConfig) -> RecordSnapshot:
        now = datetime.now(timezone.utc)
        return RecordSnapshot(
            id=build_temporary_id(index),
            recipient=recipient,
            project_id=project.id,
            template_id=project.template_id,
            created_at=now,
            updated_at=now,
        )

    async def update_status(
        self,
        record_id: Optional[str],
        status: MintStatus,
        error_message: Optional[str] = None,
    ) -> bool:
        """
        Best-effort point write of a status transition.

        Skipped for temporary ids. Minted rows are never overwritten.
        """
        if is_temporary_id(record_id):
            return False
        record_uuid = _parse_uuid(record_id)
        if record_uuid is None:
            logger.warning(f"Not updating record with malformed id {record_id!r}")
            return False

        try:
            updated = await (
                MintingRecord.filter(id=record_uuid)
                .exclude(status=MintStatus.MINTED)
                .update(
                    status=status,
                    error_message=error_message if status == MintStatus.FAILED else None,
                    updated_at=datetime.now(timezone.utc),
                )
            )
        except Exception as e:
            logger.error(f"Error updating minting record {record_id}: {e}")
            return False

        if not updated:
            logger.warning(f"Minting record {record_id} not updated to {status.value} (missing or already minted)")
        return bool(updated)

    async def delete_records(self, record_ids: Iterable[Optional[str]]) -> int:
        """Delete persisted records. Temporary and unknown ids are skipped."""
        persisted = [
            record_uuid
            for record_uuid in (_parse_uuid(rid) for rid in record_ids if not is_temporary_id(rid))
            if record_uuid is not None
        ]
        if not persisted:
            return 0
        return await MintingRecord.filter(id__in=persisted).delete()

    async def list_for_project(self, project_id: Optional[str]) -> list[RecordSnapshot]:
        """All records of a project, newest first. Empty on any error."""
        project_uuid = _parse_uuid(project_id)
        if project_uuid is None:
            return []
        try:
            records = await MintingRecord.filter(project_id=project_uuid).order_by("-created_at")
        except Exception as e:
            logger.error(f"Error fetching minting records for project {project_id}: {e}")
            return []
        return [RecordSnapshot.from_model(record) for record in records]

    async def get_record(self, record_id: Optional[str]) -> Optional[RecordSnapshot]:
        record_uuid = _parse_uuid(record_id)
        if is_temporary_id(record_id) or record_uuid is None:
            return None
        record = await MintingRecord.get_or_none(id=record_uuid)
        return RecordSnapshot.from_model(record) if record else None

    async def get_project_config(self, project_id: Optional[str]) -> Optional[ProjectConfig]:
        project_uuid = _parse_uuid(project_id)
        if project_uuid is None:
            return None
        project = await Project.get_or_none(id=project_uuid)
        return ProjectConfig.from_model(project) if project else None


# Singleton instance
record_store = MintingRecordStore()
