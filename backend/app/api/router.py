from fastapi import APIRouter

from app.api.routes.datasets import router as datasets_router
from app.api.routes.events import router as events_router

api_router = APIRouter()

api_router.include_router(datasets_router)
api_router.include_router(events_router)
