import logging

from fastapi import APIRouter, HTTPException, status

from nft_sender.models.minting import MintStatus
from nft_sender.schemas.minting import MintBatchResponse, RecordIdsRequest, RetryResponse
from nft_sender.services.minting import BatchSummary, MintingError, minting_service
from nft_sender.services.state import MintingStateReducer

from .common import (
    get_board,
    get_project_config,
    get_record_or_404,
    record_response,
    stats_response,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _rejected(project_id: str, error: MintingError) -> HTTPException:
    logger.warning(f"Minting request for project {project_id} rejected: {error}")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def _batch_response(summary: BatchSummary, board: MintingStateReducer) -> MintBatchResponse:
    return MintBatchResponse(
        success_count=summary.success_count,
        failure_count=summary.failure_count,
        records=[record_response(record) for record in board.records()],
        stats=stats_response(board),
    )


@router.post(
    "/projects/{project_id}/mint",
    response_model=MintBatchResponse,
    summary="Mint selected records",
    description="Mints the pending records among record_ids in batches; the response reflects the final state.",
)
async def mint_selected(project_id: str, request: RecordIdsRequest) -> MintBatchResponse:
    project = await get_project_config(project_id)
    board = await get_board(project_id)
    try:
        pending = minting_service.pending_to_mint(board.select(request.record_ids), project)
    except MintingError as e:
        raise _rejected(project_id, e)

    # Only records that are about to be dispatched get a new generation
    generation = board.begin_dispatch([record.id for record in pending])
    summary = await minting_service.process_multiple_mints(pending, project, board.updater(generation))
    return _batch_response(summary, board)


@router.post(
    "/projects/{project_id}/records/{record_id}/retry",
    response_model=RetryResponse,
    summary="Retry a failed mint",
)
async def retry_record(project_id: str, record_id: str) -> RetryResponse:
    project = await get_project_config(project_id)
    board = await get_board(project_id)
    record = get_record_or_404(board, record_id)

    if record.status != MintStatus.FAILED:
        return RetryResponse(
            retried=False,
            error=f"Only failed records can be retried (status is {record.status.value})",
            record=record_response(record),
        )

    generation = board.begin_dispatch([record.id])
    outcome = await minting_service.retry_mint(record, project, board.updater(generation))
    return RetryResponse(
        retried=True,
        success=outcome.success,
        error=outcome.error,
        record=record_response(board.get(record_id)),
    )


@router.post(
    "/projects/{project_id}/retry-failed",
    response_model=MintBatchResponse,
    summary="Retry all failed mints",
)
async def retry_failed(project_id: str) -> MintBatchResponse:
    project = await get_project_config(project_id)
    board = await get_board(project_id)
    try:
        failed = minting_service.failed_to_retry(board.records(), project)
    except MintingError as e:
        raise _rejected(project_id, e)

    generation = board.begin_dispatch([record.id for record in failed])
    summary = await minting_service.retry_failed(failed, project, board.updater(generation))
    return _batch_response(summary, board)
