from fastapi import APIRouter
from api.v1.routes.notifications import router as notifications_router


router = APIRouter()
router.include_router(notifications_router)
