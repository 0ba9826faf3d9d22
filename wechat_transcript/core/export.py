"""
Export chat transcripts to files.

Writes a ChatSession as UTF-8 JSON named after both participants and the
date range of the dialogue.
"""

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from wechat_transcript.core.extractor import TIME_FORMAT
from wechat_transcript.models.chat import ChatSession


INVALID_FILENAME_CHARS = '<>:"/\\|?*'


def safe_filename(name: str, max_len: int = 50) -> str:
    """Convert name to safe filename"""
    for char in INVALID_FILENAME_CHARS:
        name = name.replace(char, "_")
    return name[:max_len]


def _date_part(time_str: str) -> str:
    # 2024-01-05 08:00:00 -> 2024_1_5
    try:
        dt = datetime.strptime(time_str, TIME_FORMAT)
    except ValueError:
        # zero date, year 1
        return "1_1_1"
    return f"{dt.year}_{dt.month}_{dt.day}"


class ExportService:
    """Export chat transcripts to JSON files"""

    def __init__(self, export_dir: str):
        self.export_dir = Path(export_dir)
        self.export_dir.mkdir(parents=True, exist_ok=True)

    def date_range(self, session: ChatSession) -> Tuple[str, str]:
        if not session.dialogue:
            return _date_part(""), _date_part("")
        return (
            _date_part(session.dialogue[0].time),
            _date_part(session.dialogue[-1].time),
        )

    def build_filename(
        self, session: ChatSession, self_name: str, target_name: str
    ) -> str:
        start, end = self.date_range(session)
        return (
            f"{safe_filename(self_name)}_{safe_filename(target_name)}"
            f"{start}_{end}.json"
        )

    def export_session(
        self,
        session: ChatSession,
        self_name: str,
        target_name: str,
        filename: Optional[str] = None,
    ) -> str:
        """
        Write a session to a JSON file.

        Args:
            session: Transcript to write
            self_name: Display name of the local account
            target_name: Display name of the conversation
            filename: Optional custom filename

        Returns: Path to exported file
        """
        if filename is None:
            filename = self.build_filename(session, self_name, target_name)

        filepath = self.export_dir / filename
        payload = [asdict(session)]
        filepath.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8"
        )
        return str(filepath)
