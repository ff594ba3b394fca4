from __future__ import annotations

from fastapi import APIRouter

from .endpoints import chat, clusters, health, metadata, notes, reviews, tags, todos

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(notes.router, prefix="/notes", tags=["notes"])
api_router.include_router(tags.router, prefix="/tags", tags=["tags"])
api_router.include_router(clusters.router, prefix="/clusters", tags=["clusters"])
api_router.include_router(todos.router, prefix="/todos", tags=["todos"])
api_router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])
api_router.include_router(metadata.router, prefix="/metadata", tags=["metadata"])
