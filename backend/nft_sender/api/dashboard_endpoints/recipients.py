import logging

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from nft_sender.schemas.minting import RecipientsLoadedResponse, RecipientsTextRequest
from nft_sender.services.recipients import (
    NoValidRecipientsError,
    ParsedRecipients,
    SpreadsheetError,
    extract_first_column,
    parse_recipients,
    parse_rows,
    require_recipients,
)
from nft_sender.services.record_store import record_store

from .common import get_board, get_project_config, record_response

logger = logging.getLogger(__name__)
router = APIRouter()


async def _load_recipients(project_id: str, parsed: ParsedRecipients) -> RecipientsLoadedResponse:
    project = await get_project_config(project_id)
    try:
        require_recipients(parsed)
    except NoValidRecipientsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    records = await record_store.create_pending(parsed.recipients, project)
    board = await get_board(project_id)
    board.add(records)
    logger.info(f"{parsed.count} recipients ready to receive NFTs for project {project_id}")

    return RecipientsLoadedResponse(
        count=parsed.count,
        discarded=parsed.discarded,
        records=[record_response(record) for record in records],
    )


@router.post(
    "/projects/{project_id}/recipients",
    response_model=RecipientsLoadedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add recipients from text",
)
async def add_recipients(project_id: str, request: RecipientsTextRequest) -> RecipientsLoadedResponse:
    """Parse pasted emails/wallets and store them as pending minting records."""
    return await _load_recipients(project_id, parse_recipients(request.text))


@router.post(
    "/projects/{project_id}/recipients/upload",
    response_model=RecipientsLoadedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add recipients from a spreadsheet",
    description="Reads the first column of the first sheet of a .csv or .xlsx file (header row skipped).",
)
async def upload_recipients(project_id: str, file: UploadFile = File(...)) -> RecipientsLoadedResponse:
    content = await file.read()
    try:
        values = extract_first_column(file.filename, content)
    except SpreadsheetError as e:
        logger.error(f"Error parsing uploaded file {file.filename}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return await _load_recipients(project_id, parse_rows(values))
