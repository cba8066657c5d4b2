from fastapi import APIRouter, HTTPException, status

from nft_sender.schemas.minting import DeleteResponse, RecordIdsRequest, RecordResponse
from nft_sender.services.minting import minting_service

from .common import get_board, get_project_or_404, get_record_or_404, record_response

router = APIRouter()


@router.get(
    "/projects/{project_id}/records",
    response_model=list[RecordResponse],
    summary="List minting records",
)
async def list_records(project_id: str, reload: bool = False) -> list[RecordResponse]:
    """Minting records of a project, newest first. `reload` re-reads them from the database."""
    await get_project_or_404(project_id)
    board = await get_board(project_id)
    if reload:
        board.load(await minting_service.load_minting_records_for_project(project_id))
    return [record_response(record) for record in board.records()]


@router.delete(
    "/projects/{project_id}/records/{record_id}",
    response_model=DeleteResponse,
    summary="Delete a minting record",
)
async def delete_record(project_id: str, record_id: str) -> DeleteResponse:
    await get_project_or_404(project_id)
    board = await get_board(project_id)
    record = get_record_or_404(board, record_id)
    if not await minting_service.delete_record(record):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete the record",
        )
    board.remove([record_id])
    return DeleteResponse(deleted=True, count=1)


@router.post(
    "/projects/{project_id}/records/delete",
    response_model=DeleteResponse,
    summary="Delete selected minting records",
)
async def delete_records(project_id: str, request: RecordIdsRequest) -> DeleteResponse:
    """
    Delete several records of this project.

    Ids that do not belong to the project are ignored. Records that were never
    saved are only dropped from the dashboard.
    """
    if not request.record_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please select at least one record to delete",
        )
    await get_project_or_404(project_id)
    board = await get_board(project_id)
    record_ids = [record.id for record in board.select(dict.fromkeys(request.record_ids))]
    if not record_ids:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"None of the selected records belong to project {project_id}",
        )
    if not await minting_service.delete_multiple_records(record_ids):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete the selected records",
        )
    board.remove(record_ids)
    return DeleteResponse(deleted=True, count=len(record_ids))
