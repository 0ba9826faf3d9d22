"""
Contacts routes for the transcript API.

Provides endpoints for:
- List conversations that have messages, with counts
"""

import sqlite3
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from wechat_transcript.api.routes.dependencies import get_db_handler
from wechat_transcript.core.db_handler import WeChatDBHandler
from wechat_transcript.models.chat import CHATROOM_SUFFIX


router = APIRouter()


class ContactResponse(BaseModel):
    """Response model for a conversation"""

    username: str
    nickname: str = ""
    display_name: str
    message_count: int = 0
    is_chatroom: bool = False


class ContactListResponse(BaseModel):
    """Response model for contact list"""

    contacts: List[ContactResponse]
    count: int


@router.get("/", response_model=ContactListResponse)
async def list_contacts(db_handler: WeChatDBHandler = Depends(get_db_handler)):
    """Get conversations ordered by message count"""
    try:
        contacts = db_handler.get_contacts()
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Failed to get contacts: {str(e)}")

    return {
        "contacts": [
            {
                "username": c.username,
                "nickname": c.nickname,
                "display_name": c.display_name,
                "message_count": c.message_count,
                "is_chatroom": c.username.endswith(CHATROOM_SUFFIX),
            }
            for c in contacts
        ],
        "count": len(contacts),
    }
