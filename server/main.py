import logging
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from reminders.service import create_service
from server.dependencies import set_service, get_service
from server.routes import router
from server.routes.prometheus import metrics_middleware

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# =========================================================
# FASTAPI APP
# =========================================================

app = FastAPI(title="Reminder Settings API")

origins = [
    "http://localhost:8081",
    "http://localhost:19006",
    "http://localhost",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],      # IMPORTANT – allows OPTIONS
    allow_headers=["*"],
)

# Register Prometheus middleware
app.middleware("http")(metrics_middleware)

# Include API Router
app.include_router(router)

@app.get("/health")
def health():
    return {"status": "ok"}

# =========================================================
# REMINDER ENGINE LIFECYCLE
# =========================================================
@app.on_event("startup")
def start_reminder_service():
    logger.info("🔄 Loading notification preferences and resyncing reminders...")
    service = create_service()
    service.initialize()
    if service.available:
        service.start_refresh()
    set_service(service)

@app.on_event("shutdown")
def stop_reminder_service():
    try:
        service = get_service()
    except HTTPException:
        return
    service.shutdown()
    set_service(None)
