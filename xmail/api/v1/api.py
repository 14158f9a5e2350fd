from fastapi import APIRouter
from xmail.api.v1.endpoints import ai, auth, bot, drafts, mail, users

api_router = APIRouter(prefix="/api/v1")

# Include all endpoint routers
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(mail.router)
api_router.include_router(drafts.router)
api_router.include_router(bot.router)
api_router.include_router(ai.router)
