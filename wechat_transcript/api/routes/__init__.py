"""API 路由模块"""

from wechat_transcript.api.routes import contacts, settings, transcripts

__all__ = ["contacts", "settings", "transcripts"]
