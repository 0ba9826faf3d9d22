"""
Shared dependencies for API routes.

Provides FastAPI dependency injection for:
- WeChatDBHandler
- ChatExtractor
- ExportService
"""

from fastapi import Depends, HTTPException

from wechat_transcript.core.config import load_config
from wechat_transcript.core.data_dir import DataDirError, guess_self_wxid
from wechat_transcript.core.db_handler import WeChatDBHandler
from wechat_transcript.core.export import ExportService
from wechat_transcript.core.extractor import ChatExtractor


def get_data_path() -> str:
    """Get the configured account data directory.

    Raises:
        HTTPException: If the data path is not configured
    """
    cfg = load_config()
    if not cfg.data_path:
        raise HTTPException(
            status_code=400,
            detail="Data path not set. Please use /api/config/data-path first.",
        )
    return cfg.data_path


def get_db_handler(data_path: str = Depends(get_data_path)) -> WeChatDBHandler:
    try:
        return WeChatDBHandler(data_path)
    except DataDirError as e:
        raise HTTPException(status_code=400, detail=str(e))


def get_extractor(
    data_path: str = Depends(get_data_path),
    db_handler: WeChatDBHandler = Depends(get_db_handler),
) -> ChatExtractor:
    """Get ChatExtractor instance.

    No .dat decryptor is wired in; encrypted images keep their original path.
    """
    try:
        self_wxid = guess_self_wxid(data_path)
    except DataDirError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ChatExtractor(db_handler, data_path, self_wxid)


def get_export_service() -> ExportService:
    """Get ExportService writing to the configured export directory."""
    cfg = load_config()
    return ExportService(str(cfg.resolved_export_dir()))
