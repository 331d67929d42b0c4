from fastapi import APIRouter

from slunch.api.admin import router as admin_router
from slunch.api.comcigan import router as comcigan_router
from slunch.api.neis import router as neis_router
from slunch.api.notices import router as notices_router
from slunch.api.subscriptions import router as subscriptions_router

api_router = APIRouter()
api_router.include_router(neis_router)
api_router.include_router(comcigan_router)
api_router.include_router(subscriptions_router)
api_router.include_router(admin_router)
api_router.include_router(notices_router)
