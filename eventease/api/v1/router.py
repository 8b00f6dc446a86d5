from fastapi import APIRouter

from eventease.api.v1.auth import router as auth_router
from eventease.api.v1.events import router as events_router
from eventease.api.v1.rsvps import router as rsvps_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(events_router)
router.include_router(rsvps_router)
