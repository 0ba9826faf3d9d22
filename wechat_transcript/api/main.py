"""
WeChat Transcript - FastAPI Application

Main entry point for the transcript API.
Provides REST endpoints for configuration, conversation listing
and transcript rendering/export.
"""

import logging

from fastapi import FastAPI

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="微信聊天记录导出",
    description="WeChat Transcript - render local chat history as dialogue transcripts",
    version="1.0.0",
)


@app.get("/")
async def root():
    return {"message": "WeChat Transcript API", "docs": "/docs"}


@app.get("/api/health")
async def health():
    """Health check endpoint"""
    return {"status": "ok"}


# Include routers
from wechat_transcript.api.routes import contacts, settings, transcripts

app.include_router(settings.router, prefix="/api/config", tags=["config"])
app.include_router(contacts.router, prefix="/api/contacts", tags=["contacts"])
app.include_router(transcripts.router, prefix="/api/transcripts", tags=["transcripts"])
