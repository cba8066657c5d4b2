"""
Mint dispatcher.

Drives minting for selected records: pending records are split into fixed-size
batches, batches run one after another and the mints inside a batch run
concurrently, so at most `batch_size` provider calls are in flight.

Every status transition has two effects, in this order:
1. a best-effort write to the record store, keyed by record id (temporary ids
   are skipped)
2. a synchronous call to the `update_status` callback supplied by the caller

They are not transactional: a failed store write does not stop the callback,
so in-memory state can run ahead of the database until the next reload.

The store write is not gated by dispatch generations. If two runs overlap on
the same record, the board drops the superseded run's callbacks but its
store writes still land (last writer wins, except that a minted row is never
overwritten). A reload from the store reflects the database, not the board.

A project without an API key or collection id fails the record through the
callback only; nothing is written and no provider call is made.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from nft_sender.core.config import settings
from nft_sender.core.constants import (
    MISSING_CONFIG_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    NO_FAILED_RECORDS_MESSAGE,
    NO_PENDING_RECORDS_MESSAGE,
)
from nft_sender.models.minting import MintStatus
from nft_sender.schemas.minting import MintFunctionRequest
from nft_sender.services.mint_handler import MintHandler, mint_handler
from nft_sender.services.record_store import (
    MintingRecordStore,
    ProjectConfig,
    RecordSnapshot,
    is_temporary_id,
    record_store,
)
from nft_sender.services.state import StatusCallback

logger = logging.getLogger(__name__)


class MintingError(Exception):
    """Pre-flight violation; raised before any provider call."""


class NoPendingRecordsError(MintingError):
    def __init__(self, message: str = NO_PENDING_RECORDS_MESSAGE):
        super().__init__(message)


class NoFailedRecordsError(MintingError):
    def __init__(self, message: str = NO_FAILED_RECORDS_MESSAGE):
        super().__init__(message)


class MissingProjectConfigError(MintingError):
    def __init__(self, message: str = MISSING_CONFIG_MESSAGE):
        super().__init__(message)


@dataclass
class MintOutcome:
    record_id: str
    recipient: str
    success: bool
    error: Optional[str] = None


@dataclass
class BatchSummary:
    success_count: int = 0
    failure_count: int = 0
    outcomes: list[MintOutcome] = field(default_factory=list)


class MintingService:
    """Batch minting, retry and deletion of minting records."""

    def __init__(
        self,
        handler: MintHandler,
        store: MintingRecordStore,
        batch_size: Optional[int] = None,
    ):
        self._handler = handler
        self._store = store
        self.batch_size = max(1, batch_size or settings.mint_batch_size)

    async def _transition(
        self,
        record: RecordSnapshot,
        status: MintStatus,
        update_status: StatusCallback,
        error_message: Optional[str] = None,
    ) -> None:
        if not is_temporary_id(record.id):
            await self._store.update_status(record.id, status, error_message)
        update_status(record.id, status, error_message)

    async def mint_nft(
        self,
        record: RecordSnapshot,
        project: ProjectConfig,
        update_status: StatusCallback,
    ) -> MintOutcome:
        """Issue exactly one mint call for one record."""
        logger.info(
            f"Starting mint for {record.recipient} "
            f"(template={project.template_id}, collection={project.collection_id}, "
            f"blockchain={project.blockchain.value}, apiKeyProvided={bool(project.api_key)})"
        )

        if not project.api_key or not project.collection_id:
            # fails locally: no provider call and no store write
            logger.error(f"Not minting {record.recipient}: {MISSING_CONFIG_MESSAGE}")
            update_status(record.id, MintStatus.FAILED, MISSING_CONFIG_MESSAGE)
            return MintOutcome(record.id, record.recipient, False, MISSING_CONFIG_MESSAGE)

        request = MintFunctionRequest(
            recipient=record.recipient,
            api_key=project.api_key,
            template_id=project.template_id,
            collection_id=project.collection_id,
            blockchain=project.blockchain.value,
            record_id=None if is_temporary_id(record.id) else record.id,
        )

        try:
            response = await self._handler.handle(request, reconcile=False)
        except Exception as e:
            message = str(e) or NETWORK_ERROR_MESSAGE
            logger.error(f"Unhandled error minting for {record.recipient}: {e!r}")
            await self._transition(record, MintStatus.FAILED, update_status, message)
            return MintOutcome(record.id, record.recipient, False, message)

        if response.success:
            logger.info(f"Minted NFT for {record.recipient} on {project.blockchain.value}")
            await self._transition(record, MintStatus.MINTED, update_status)
            return MintOutcome(record.id, record.recipient, True)

        message = response.error_message or "Unknown error"
        logger.error(f"Failed to mint NFT for {record.recipient} on {project.blockchain.value}: {message}")
        await self._transition(record, MintStatus.FAILED, update_status, message)
        return MintOutcome(record.id, record.recipient, False, message)

    @staticmethod
    def _check_project(project: ProjectConfig) -> None:
        if not project.api_key or not project.template_id or not project.collection_id:
            raise MissingProjectConfigError()

    def pending_to_mint(self, records: Iterable[RecordSnapshot], project: ProjectConfig) -> list[RecordSnapshot]:
        """
        The records process_multiple_mints would dispatch.

        Raises NoPendingRecordsError when nothing is pending and
        MissingProjectConfigError when the project cannot mint.
        """
        pending = [record for record in records if record.status == MintStatus.PENDING]
        if not pending:
            raise NoPendingRecordsError()
        self._check_project(project)
        return pending

    def failed_to_retry(self, records: Iterable[RecordSnapshot], project: ProjectConfig) -> list[RecordSnapshot]:
        """The records retry_failed would dispatch; raises like pending_to_mint."""
        failed = [record for record in records if record.status == MintStatus.FAILED]
        if not failed:
            raise NoFailedRecordsError()
        self._check_project(project)
        return failed

    async def process_multiple_mints(
        self,
        records: Iterable[RecordSnapshot],
        project: ProjectConfig,
        update_status: StatusCallback,
    ) -> BatchSummary:
        """
        Mint every pending record among `records`.

        Pre-flight violations (see pending_to_mint) raise before any provider
        call.
        """
        pending = self.pending_to_mint(records, project)

        logger.info(f"Minting started for {len(pending)} records in batches of {self.batch_size}")
        summary = BatchSummary()
        for start in range(0, len(pending), self.batch_size):
            batch = pending[start:start + self.batch_size]
            outcomes = await asyncio.gather(
                *(self.mint_nft(record, project, update_status) for record in batch)
            )
            summary.outcomes.extend(outcomes)

        summary.success_count = sum(1 for outcome in summary.outcomes if outcome.success)
        summary.failure_count = len(summary.outcomes) - summary.success_count
        logger.info(
            f"Minting completed: {summary.success_count} minted, {summary.failure_count} failed"
        )
        return summary

    async def retry_mint(
        self,
        record: RecordSnapshot,
        project: ProjectConfig,
        update_status: StatusCallback,
    ) -> Union[MintOutcome, bool]:
        """Retry a failed record. Returns False, without side effects, for any other status."""
        if record.status != MintStatus.FAILED:
            return False

        logger.info(f"Retrying mint for {record.recipient} on {project.blockchain.value}")
        await self._transition(record, MintStatus.PENDING, update_status)
        return await self.mint_nft(record.with_status(MintStatus.PENDING), project, update_status)

    async def retry_failed(
        self,
        records: Iterable[RecordSnapshot],
        project: ProjectConfig,
        update_status: StatusCallback,
    ) -> BatchSummary:
        """Reset every failed record to pending and mint them as one batch run."""
        failed = self.failed_to_retry(records, project)

        logger.info(f"Retrying {len(failed)} failed mints")
        reset = []
        for record in failed:
            await self._transition(record, MintStatus.PENDING, update_status)
            reset.append(record.with_status(MintStatus.PENDING))
        return await self.process_multiple_mints(reset, project, update_status)

    async def delete_record(self, record: RecordSnapshot) -> bool:
        """Delete one record from the store. Temporary or already-deleted records are fine."""
        try:
            await self._store.delete_records([record.id])
        except Exception as e:
            logger.error(f"Error deleting record {record.id}: {e}")
            return False
        logger.info(f"Removed record for {record.recipient}")
        return True

    async def delete_multiple_records(self, record_ids: Iterable[str]) -> bool:
        ids = list(record_ids)
        try:
            deleted = await self._store.delete_records(ids)
        except Exception as e:
            logger.error(f"Error deleting records: {e}")
            return False
        logger.info(f"Deleted {deleted} of {len(ids)} selected records from the store")
        return True

    async def load_minting_records_for_project(self, project_id: str) -> list[RecordSnapshot]:
        """Records of a project, newest first; empty when the store cannot be read."""
        return await self._store.list_for_project(project_id)


# Singleton instance
minting_service = MintingService(mint_handler, record_store)
