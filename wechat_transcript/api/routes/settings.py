"""
Configuration routes.

Provides endpoints for:
- Read current configuration
- Set the account data directory
- Set the export directory
"""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from wechat_transcript.core.config import load_config, update_config
from wechat_transcript.core.data_dir import WXID_PREFIX, validate_data_dir


router = APIRouter()


class SetPathRequest(BaseModel):
    """Request model for setting a directory"""

    path: str


class ConfigResponse(BaseModel):
    """Response model for configuration"""

    data_path: Optional[str] = None
    export_dir: str
    self_wxid: Optional[str] = None


def _config_response() -> dict:
    cfg = load_config()
    self_wxid = None
    if cfg.data_path and Path(cfg.data_path).name.startswith(WXID_PREFIX):
        self_wxid = Path(cfg.data_path).name
    return {
        "data_path": cfg.data_path,
        "export_dir": str(cfg.resolved_export_dir()),
        "self_wxid": self_wxid,
    }


@router.get("", response_model=ConfigResponse)
async def get_config():
    """Get current configuration"""
    return _config_response()


@router.post("/data-path", response_model=ConfigResponse)
async def update_data_path(req: SetPathRequest):
    """Set the wxid_* account directory"""
    if not req.path:
        raise HTTPException(status_code=400, detail="Path is required")

    if not validate_data_dir(req.path):
        raise HTTPException(
            status_code=400,
            detail="Invalid data path. It must contain Msg/MicroMsg.db and Msg/Multi/MSG*.db.",
        )
    if not Path(req.path).name.startswith(WXID_PREFIX):
        raise HTTPException(
            status_code=400, detail="Data path must be a wxid_* account directory"
        )

    update_config(data_path=req.path)
    return _config_response()


@router.post("/export-dir", response_model=ConfigResponse)
async def update_export_dir(req: SetPathRequest):
    """Set the directory JSON transcripts are written to"""
    if not req.path:
        raise HTTPException(status_code=400, detail="Path is required")

    update_config(export_dir=req.path)
    return _config_response()
