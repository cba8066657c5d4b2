from fastapi import APIRouter

from nft_sender.api.dashboard_endpoints.minting import router as minting_router
from nft_sender.api.dashboard_endpoints.projects import router as projects_router
from nft_sender.api.dashboard_endpoints.recipients import router as recipients_router
from nft_sender.api.dashboard_endpoints.records import router as records_router

router = APIRouter(tags=["dashboard"])

router.include_router(projects_router)
router.include_router(recipients_router)
router.include_router(records_router)
router.include_router(minting_router)
