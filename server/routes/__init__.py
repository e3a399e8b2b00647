from fastapi import APIRouter
from . import preferences, reminders, prometheus

router = APIRouter()

router.include_router(preferences.router, prefix="/preferences", tags=["Preferences"])
router.include_router(reminders.router, prefix="/reminders", tags=["Reminders"])
router.include_router(prometheus.router, prefix="/metrics", tags=["Metrics"])
