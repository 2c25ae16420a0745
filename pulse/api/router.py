from fastapi import APIRouter

from pulse.api.v1.routes import auth, comments, health, posts, realtime, users

api_router = APIRouter()
api_router.include_router(health.router, prefix="/v1", tags=["health"])
api_router.include_router(auth.router, prefix="/v1/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/v1/users", tags=["users"])
api_router.include_router(posts.router, prefix="/v1/posts", tags=["posts"])
api_router.include_router(comments.router, prefix="/v1/comments", tags=["comments"])
api_router.include_router(realtime.router, prefix="/v1/realtime", tags=["realtime"])
