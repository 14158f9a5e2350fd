import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from xmail import config
from xmail.api.v1.api import api_router
from xmail.api.v1.endpoints import realtime
from xmail.database import engine, Base
from xmail.logging_config import get_logger
from xmail.models import User, Mail, BotSettings

logger = get_logger("xmail")

app = FastAPI(
    title="Xmail",
    description="Webmail backend: accounts, mail folders, attachments, AI compose",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup():
    """Create database tables on startup."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")
    logger.info("Allowed origins: %s", ", ".join(config.ALLOWED_ORIGINS))
    logger.info("GOOGLE_API_KEY loaded: %s", bool(config.GOOGLE_API_KEY))
    logger.info("ASSEMBLYAI_API_KEY loaded: %s", bool(config.ASSEMBLYAI_API_KEY))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(api_router)
app.include_router(realtime.router)

os.makedirs(config.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR), name="uploads")


@app.get("/")
def health_check():
    return {"status": "ok", "service": "xmail"}


def run():
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "5000")))


if __name__ == "__main__":
    run()
