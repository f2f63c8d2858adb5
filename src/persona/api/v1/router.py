from fastapi import APIRouter

from src.persona.api.v1 import internal, oauth, token

api_router = APIRouter()
api_router.include_router(oauth.router)
api_router.include_router(token.router)
api_router.include_router(internal.router)
