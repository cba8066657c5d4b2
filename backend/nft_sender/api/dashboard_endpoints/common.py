import uuid

from fastapi import HTTPException, status

from nft_sender.models.minting import Project
from nft_sender.schemas.minting import MintingStatsResponse, RecordResponse
from nft_sender.services.minting import minting_service
from nft_sender.services.record_store import ProjectConfig, RecordSnapshot
from nft_sender.services.state import MintingStateReducer, boards


async def get_project_or_404(project_id: str) -> Project:
    try:
        project_uuid = uuid.UUID(project_id)
    except ValueError:
        project_uuid = None
    project = await Project.get_or_none(id=project_uuid) if project_uuid else None
    if not project:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project {project_id} not found",
        )
    return project


async def get_project_config(project_id: str) -> ProjectConfig:
    return ProjectConfig.from_model(await get_project_or_404(project_id))


async def get_board(project_id: str) -> MintingStateReducer:
    """The project's in-memory records, loaded from the store on first use."""
    board = boards.get(project_id)
    if not board.loaded:
        board.load(await minting_service.load_minting_records_for_project(project_id))
        board.loaded = True
    return board


def get_record_or_404(board: MintingStateReducer, record_id: str) -> RecordSnapshot:
    record = board.get(record_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Minting record {record_id} not found",
        )
    return record


def record_response(record: RecordSnapshot) -> RecordResponse:
    return RecordResponse(
        id=record.id,
        recipient=record.recipient,
        status=record.status,
        error_message=record.error_message,
        project_id=record.project_id,
        template_id=record.template_id,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def stats_response(board: MintingStateReducer) -> MintingStatsResponse:
    return MintingStatsResponse(**board.stats())
