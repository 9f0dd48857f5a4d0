from fastapi import APIRouter
from app.api import requests

router = APIRouter()
router.include_router(requests.router, prefix="/requests", tags=["Requests"])
