"""
Edge functions.

HTTP contracts of the serverless handlers the dashboard calls directly:
- POST /functions/crossmint-nft       mint one NFT and reconcile its record
- GET  /functions/validate-template   validate a template/collection id

Every response, preflight included, carries permissive CORS headers.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Response, status
from fastapi.responses import JSONResponse

from nft_sender.core.constants import CORS_HEADERS
from nft_sender.schemas.minting import MintFunctionRequest, TemplateValidationResponse
from nft_sender.services.mint_handler import mint_handler
from nft_sender.services.validator import template_validator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/functions", tags=["functions"])


def _preflight() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


@router.options("/crossmint-nft", include_in_schema=False)
async def crossmint_nft_preflight() -> Response:
    return _preflight()


@router.post(
    "/crossmint-nft",
    summary="Mint an NFT",
    description="Formats the recipient for the target chain, calls Crossmint and records the outcome on the minting record given by recordId.",
)
async def crossmint_nft(request: MintFunctionRequest) -> JSONResponse:
    response = await mint_handler.handle(request)
    return JSONResponse(response.body, status_code=response.status_code, headers=CORS_HEADERS)


@router.options("/validate-template", include_in_schema=False)
async def validate_template_preflight() -> Response:
    return _preflight()


@router.get(
    "/validate-template",
    summary="Validate a template",
    responses={status.HTTP_200_OK: {"model": TemplateValidationResponse}},
)
async def validate_template(
    templateId: Optional[str] = None,
    collectionId: Optional[str] = None,
    apiKey: Optional[str] = None,
) -> JSONResponse:
    """Check a template/collection id against Crossmint and report its chain."""
    result = await template_validator.validate(templateId, collectionId, apiKey)
    if not result.is_valid:
        return JSONResponse(
            {"error": True, "message": result.reason},
            status_code=result.status_code,
            headers=CORS_HEADERS,
        )
    return JSONResponse(result.details.to_response(), headers=CORS_HEADERS)
