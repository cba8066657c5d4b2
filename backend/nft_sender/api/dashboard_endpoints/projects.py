import logging

from fastapi import APIRouter, status

from nft_sender.models.minting import Project, Project_Pydantic
from nft_sender.schemas.minting import (
    DeleteResponse,
    MintingStatsResponse,
    ProjectCreateRequest,
    ProjectUpdateRequest,
)
from nft_sender.services.state import boards

from .common import get_board, get_project_or_404, stats_response

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/projects",
    response_model=Project_Pydantic,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
)
async def create_project(request: ProjectCreateRequest):
    """Save a Crossmint API key with the template/collection and chain to mint on."""
    project = await Project.create(
        name=request.name,
        api_key=request.api_key,
        template_id=request.template_id,
        collection_id=request.collection_id or None,
        blockchain=request.blockchain,
    )
    logger.info(f"Created project {project.id} ({project.name}) on {project.blockchain}")
    return await Project_Pydantic.from_tortoise_orm(project)


@router.get(
    "/projects",
    response_model=list[Project_Pydantic],
    summary="List projects",
)
async def list_projects():
    """All projects, most recently created first."""
    return await Project_Pydantic.from_queryset(Project.all().order_by("-created_at"))


@router.get(
    "/projects/{project_id}",
    response_model=Project_Pydantic,
    summary="Get a project",
)
async def get_project(project_id: str):
    project = await get_project_or_404(project_id)
    return await Project_Pydantic.from_tortoise_orm(project)


@router.put(
    "/projects/{project_id}",
    response_model=Project_Pydantic,
    summary="Update a project",
)
async def update_project(project_id: str, request: ProjectUpdateRequest):
    """
    Update project settings.

    Existing minting records keep the template they were created with.
    """
    project = await get_project_or_404(project_id)
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    for field_name, value in changes.items():
        setattr(project, field_name, value)
    # An explicit empty/null collection_id falls back to the template id
    if "collection_id" in request.model_fields_set:
        project.collection_id = request.collection_id or None
    await project.save()
    logger.info(f"Updated project {project.id}: {sorted(changes)}")
    return await Project_Pydantic.from_tortoise_orm(project)


@router.delete(
    "/projects/{project_id}",
    response_model=DeleteResponse,
    summary="Delete a project",
)
async def delete_project(project_id: str) -> DeleteResponse:
    """Delete a project. Its minting records are kept and stay queryable by project id."""
    project = await get_project_or_404(project_id)
    await project.delete()
    boards.discard(project_id)
    logger.info(f"Deleted project {project_id}; minting records left in place")
    return DeleteResponse(deleted=True, count=1)


@router.get(
    "/projects/{project_id}/stats",
    response_model=MintingStatsResponse,
    summary="Minting statistics",
)
async def get_stats(project_id: str) -> MintingStatsResponse:
    await get_project_or_404(project_id)
    return stats_response(await get_board(project_id))
