"""Attachment path resolution.

Paths stored in BytesExtra are hints: they are relative to the account
directory, use Windows separators, are sometimes prefixed with the account's
wxid and often point at a sibling directory of where the file actually lives
(Thumb vs Image, ...). Resolution tries an ordered list of strategies and
returns the first path that exists.

Content-addressed searches walk a directory tree in lexicographic order and
match files whose path (relative to the searched tree) contains the message's
MsgSvrID.
"""

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from wechat_transcript.core.bytes_extra import sender_from_entries
from wechat_transcript.core.data_dir import get_file_storage_dir
from wechat_transcript.core.diagnostics import Diagnostics
from wechat_transcript.models.chat import (
    EXTRA_FIELD_ATTACHMENT,
    EXTRA_FIELD_THUMB,
    MISC_FILE,
    MSG_TYPE_MISC,
    MSG_TYPE_PICTURE,
    MSG_TYPE_VIDEO,
    MSG_TYPE_VOICE,
    ExtensionEntry,
    RawMessage,
    Resolution,
    ResolutionStatus,
    ResolvedAttachment,
)


FILE_STORAGE_DIR = "FileStorage"

# Sibling directory names tried in place of the hint's parent directory
DIR_VARIANTS = ("Thumb", "Image", "Video", "File", "Voice", "Cache")

# Types whose field 3/4 hints point at media
MEDIA_TYPES = (MSG_TYPE_PICTURE, MSG_TYPE_VIDEO, MSG_TYPE_MISC)


@dataclass(frozen=True)
class ResolveContext:
    data_path: Path
    hint: str  # normalized, account prefix already stripped
    msg_svr_id: str

    @property
    def file_storage(self) -> Path:
        return self.data_path / FILE_STORAGE_DIR


Strategy = Callable[[ResolveContext], Optional[str]]


def normalize_hint(hint: str) -> str:
    """Convert a stored hint to a relative POSIX-style path."""
    return hint.replace("\\", "/").lstrip("/")


def _existing(p: Path) -> Optional[str]:
    try:
        return str(p) if p.exists() else None
    except OSError:
        return None


def _searchable_id(msg_svr_id: str) -> bool:
    # An empty or zero id would match every file in the tree
    return bool(msg_svr_id) and msg_svr_id != "0"


def iter_files_containing(root: Path, needle: str) -> Iterator[Path]:
    """Yield files under root whose relative path contains needle.

    Traversal order is lexicographic (directories and files sorted by name),
    so the first hit is stable across platforms.
    """
    if not _searchable_id(needle) or not root.is_dir():
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        rel_dir = os.path.relpath(dirpath, root)
        for name in sorted(filenames):
            rel = name if rel_dir == "." else os.path.join(rel_dir, name)
            if needle in rel:
                yield Path(dirpath) / name


def first_file_containing(root: Path, needle: str) -> Optional[str]:
    for p in iter_files_containing(root, needle):
        return str(p)
    return None


# Resolution strategies, evaluated in this order by PathResolver.resolve


def direct_join(ctx: ResolveContext) -> Optional[str]:
    if not ctx.hint:
        return None
    return _existing(ctx.data_path / ctx.hint)


def directory_variants(ctx: ResolveContext) -> Optional[str]:
    parts = PurePosixPath(ctx.hint).parts
    if len(parts) < 2:
        return None
    head, parent, name = parts[:-2], parts[-2], parts[-1]
    for variant in DIR_VARIANTS:
        if variant == parent:
            continue
        hit = _existing(ctx.data_path.joinpath(*head, variant, name))
        if hit:
            return hit
    return None


def msgattach_search(ctx: ResolveContext) -> Optional[str]:
    candidates = list(
        iter_files_containing(ctx.file_storage / "MsgAttach", ctx.msg_svr_id)
    )
    if not candidates:
        return None
    base_name = PurePosixPath(ctx.hint).name.lower()
    if base_name:
        for c in candidates:
            if base_name in c.name.lower():
                return str(c)
    return str(candidates[0])


def cache_search(ctx: ResolveContext) -> Optional[str]:
    return first_file_containing(ctx.file_storage / "Cache", ctx.msg_svr_id)


DEFAULT_STRATEGIES: Tuple[Strategy, ...] = (
    direct_join,
    directory_variants,
    msgattach_search,
    cache_search,
)


class PathResolver:
    """Find real files for attachment hints under one account directory."""

    def __init__(
        self,
        data_path: str,
        self_wxid: str = "",
        diagnostics: Optional[Diagnostics] = None,
        strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
    ):
        self.data_path = Path(data_path)
        self.self_wxid = self_wxid
        self.file_storage = get_file_storage_dir(data_path)
        self.diagnostics = diagnostics or Diagnostics()
        self.strategies: List[Strategy] = list(strategies)

    def strip_account_prefix(self, hint: str) -> str:
        """Remove one leading occurrence of the local account's wxid."""
        if self.self_wxid and hint.startswith(self.self_wxid):
            return hint[len(self.self_wxid) :]
        return hint

    def _context(self, hint: str, msg_svr_id: str) -> ResolveContext:
        return ResolveContext(
            data_path=self.data_path,
            hint=normalize_hint(self.strip_account_prefix(hint)),
            msg_svr_id=msg_svr_id,
        )

    def resolve(self, hint: str, msg_svr_id: str) -> str:
        """Return an existing path for the hint, or "" when nothing matches."""
        ctx = self._context(hint, msg_svr_id)
        for strategy in self.strategies:
            hit = strategy(ctx)
            if hit:
                self.diagnostics.debug(
                    "attachment_resolved",
                    strategy=strategy.__name__,
                    path=hit,
                )
                return hit
        self.diagnostics.debug(
            "attachment_not_found", hint=hint, msg_svr_id=msg_svr_id
        )
        return ""

    def guess_path(self, hint: str) -> str:
        """Best-guess location of a hint; never checked for existence."""
        rel = normalize_hint(self.strip_account_prefix(hint))
        return str(self.data_path / rel) if rel else ""

    def locate(self, hint: str, msg_svr_id: str) -> Resolution:
        if not hint:
            return Resolution(ResolutionStatus.NOT_FOUND)
        hit = self.resolve(hint, msg_svr_id)
        if hit:
            return Resolution(ResolutionStatus.RESOLVED, hit)
        guess = self.guess_path(hint)
        if guess:
            return Resolution(ResolutionStatus.GUESSED, guess)
        return Resolution(ResolutionStatus.NOT_FOUND)

    # Lookups by MsgSvrID only, used when a message carried no hint

    def _search(self, msg_svr_id: str, *subdirs: str) -> str:
        for sub in subdirs:
            hit = first_file_containing(self.file_storage / sub, msg_svr_id)
            if hit:
                return hit
        return ""

    def find_image(self, msg_svr_id: str) -> str:
        return self._search(msg_svr_id, "Cache", "MsgAttach")

    def find_video(self, msg_svr_id: str) -> str:
        return self._search(msg_svr_id, "MsgAttach")

    def find_emoji(self, msg_svr_id: str) -> str:
        return self._search(msg_svr_id, "MsgAttach")

    def find_forward_file(self, msg_svr_id: str) -> str:
        return self._search(msg_svr_id, "MsgAttach")

    def find_channels_file(self, msg_svr_id: str) -> str:
        return self._search(msg_svr_id, "MsgAttach")

    def find_file(self, msg_svr_id: str, file_name: str = "") -> str:
        hit = self._search(msg_svr_id, "MsgAttach")
        if hit:
            return hit
        file_dir = self.file_storage / "File"
        if not file_dir.is_dir():
            return ""
        for dirpath, dirnames, filenames in os.walk(file_dir):
            dirnames.sort()
            for name in sorted(filenames):
                full = os.path.join(dirpath, name)
                rel = os.path.relpath(full, file_dir)
                if (_searchable_id(msg_svr_id) and msg_svr_id in rel) or (
                    file_name and file_name in name
                ):
                    return full
        return ""

    def voice_path(self, msg_svr_id: str) -> str:
        """Conventional location of a voice message, whether or not it exists."""
        return str(self.file_storage / "Voice" / f"{msg_svr_id}.mp3")


class AttachmentResolver:
    """Apply decoded BytesExtra entries to a message."""

    def __init__(self, paths: PathResolver):
        self.paths = paths

    def resolve(
        self, message: RawMessage, entries: Sequence[ExtensionEntry]
    ) -> ResolvedAttachment:
        att = ResolvedAttachment()
        if message.is_chatroom:
            att.sender_wxid = sender_from_entries(entries)

        for entry in entries:
            if entry.field_id == EXTRA_FIELD_THUMB:
                if entry.value and message.msg_type in MEDIA_TYPES:
                    att.thumb_path = self.paths.locate(
                        entry.value, message.msg_svr_id
                    ).path
            elif entry.field_id == EXTRA_FIELD_ATTACHMENT:
                if not entry.value:
                    continue
                path = self.paths.locate(entry.value, message.msg_svr_id).path
                if message.msg_type == MSG_TYPE_MISC and message.sub_type == MISC_FILE:
                    att.file_path = path
                    att.file_name = PurePosixPath(normalize_hint(entry.value)).name
                elif message.msg_type in MEDIA_TYPES:
                    att.image_path = path
                    att.video_path = path

        if message.msg_type == MSG_TYPE_VOICE:
            voice = self.paths.voice_path(message.msg_svr_id)
            if _existing(Path(voice)):
                att.voice_path = voice

        return att
