"""
Transcript routes for the transcript API.

Provides endpoints for:
- Render a conversation as a dialogue
- Export one conversation to a JSON file
- Export several conversations at once
"""

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from wechat_transcript.api.routes.dependencies import (
    get_export_service,
    get_extractor,
)
from wechat_transcript.core.export import ExportService
from wechat_transcript.core.extractor import ChatExtractor


router = APIRouter()


class DialogueResponse(BaseModel):
    index: int
    speaker: str
    text: str
    time: str


class SessionResponse(BaseModel):
    """Response model for a rendered conversation"""

    instruction: str
    dialogue: List[DialogueResponse]


class ExportMultipleRequest(BaseModel):
    """Request model for exporting multiple conversations"""

    talkers: List[str]


class ExportResponse(BaseModel):
    """Response model for export"""

    success: bool
    file_path: str
    message: str


class ExportMultipleResponse(BaseModel):
    """Response model for multiple exports"""

    success: bool
    file_paths: List[str]
    failed: List[str]
    count: int
    message: str


def _export_one(
    talker: str, extractor: ChatExtractor, export_service: ExportService
) -> str:
    session = extractor.extract(talker)
    return export_service.export_session(
        session,
        self_name=extractor.display_name(extractor.self_wxid),
        target_name=extractor.display_name(talker),
    )


@router.get("/{talker}", response_model=SessionResponse)
async def get_transcript(
    talker: str, extractor: ChatExtractor = Depends(get_extractor)
):
    """Render a conversation"""
    try:
        session = extractor.extract(talker)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return asdict(session)


@router.post("/export", response_model=ExportMultipleResponse)
async def export_multiple(
    req: ExportMultipleRequest,
    extractor: ChatExtractor = Depends(get_extractor),
    export_service: ExportService = Depends(get_export_service),
):
    """Export several conversations; failures are reported, not fatal"""
    if not req.talkers:
        raise HTTPException(status_code=400, detail="No talkers provided")

    file_paths: List[str] = []
    failed: List[str] = []
    seen = set()
    for talker in req.talkers:
        if talker in seen:
            continue
        seen.add(talker)
        try:
            file_paths.append(_export_one(talker, extractor, export_service))
        except (ValueError, OSError):
            failed.append(talker)

    return {
        "success": not failed,
        "file_paths": file_paths,
        "failed": failed,
        "count": len(file_paths),
        "message": f"Exported {len(file_paths)} of {len(seen)} chats",
    }


@router.post("/{talker}/export", response_model=ExportResponse)
async def export_transcript(
    talker: str,
    extractor: ChatExtractor = Depends(get_extractor),
    export_service: ExportService = Depends(get_export_service),
):
    """Export a conversation to a JSON file"""
    try:
        file_path = _export_one(talker, extractor, export_service)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Export failed: {str(e)}")

    return {
        "success": True,
        "file_path": file_path,
        "message": f"Chat exported successfully to {file_path}",
    }
