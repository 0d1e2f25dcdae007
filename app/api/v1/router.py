from fastapi import APIRouter

from app.api.v1.endpoints import cron

api_router = APIRouter()
api_router.include_router(cron.router)
