"""Conversion of encrypted ``.dat`` images into viewable files.

WeChat stores received images as ``.dat`` containers. The decryption itself is
provided by the caller as ``decryptor(encrypted_path, output_path) -> bool``;
this module decides where the result goes, picks its extension from the
decrypted bytes and caches the output by file name.
"""

import os
import tempfile
from pathlib import Path
from typing import Callable, Optional

from wechat_transcript.core.diagnostics import Diagnostics
from wechat_transcript.core.paths import FILE_STORAGE_DIR


Decryptor = Callable[[str, str], bool]

DAT_SUFFIX = ".dat"
DEFAULT_IMAGE_EXT = ".jpeg"
IMAGE_EXTENSIONS = (".jpeg", ".png", ".gif")

# (magic bytes, extension), checked in order
IMAGE_SIGNATURES = (
    (b"\xff\xd8", ".jpeg"),
    (b"\x89PNG", ".png"),
    (b"GIF", ".gif"),
)


def sniff_image_extension(data: bytes) -> str:
    """Pick an image extension from the first bytes of a decrypted payload."""
    if len(data) < 4:
        return DEFAULT_IMAGE_EXT
    for magic, ext in IMAGE_SIGNATURES:
        if data.startswith(magic):
            return ext
    return DEFAULT_IMAGE_EXT


def is_dat_file(path: str) -> bool:
    return path.lower().endswith(DAT_SUFFIX)


class DatTranscoder:
    """Decrypt ``.dat`` attachments into ``FileStorage/Image``."""

    def __init__(
        self,
        data_path: str,
        decryptor: Optional[Decryptor] = None,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.target_dir = Path(data_path) / FILE_STORAGE_DIR / "Image"
        self.decryptor = decryptor
        self.diagnostics = diagnostics or Diagnostics()

    def cached_target(self, stem: str) -> Optional[str]:
        for ext in IMAGE_EXTENSIONS:
            candidate = self.target_dir / f"{stem}{ext}"
            if candidate.exists():
                return str(candidate)
        return None

    def to_viewable(self, original_path: str, msg_svr_id: str = "") -> str:
        """Return a viewable image path for original_path.

        Non-existing and non-``.dat`` paths are returned unchanged. On any
        failure the original (still encrypted) path is returned.
        """
        if not original_path or not os.path.exists(original_path):
            return original_path
        if not is_dat_file(original_path):
            return original_path

        stem = Path(original_path).stem
        cached = self.cached_target(stem)
        if cached:
            self.diagnostics.debug("image_cache_hit", path=cached)
            return cached

        if self.decryptor is None:
            self.diagnostics.warn(
                "dat_decryptor_unavailable",
                path=original_path,
                msg_svr_id=msg_svr_id,
            )
            return original_path

        try:
            self.target_dir.mkdir(parents=True, exist_ok=True)
            data = self._decrypt(original_path, stem)
            if data is None:
                return original_path
            target = self.target_dir / f"{stem}{sniff_image_extension(data)}"
            self._write_atomic(target, data)
        except Exception as e:
            self.diagnostics.warn(
                "dat_transcode_failed",
                path=original_path,
                msg_svr_id=msg_svr_id,
                error=str(e),
            )
            return original_path

        self.diagnostics.info(
            "dat_transcoded", source=original_path, target=str(target)
        )
        return str(target)

    def _decrypt(self, original_path: str, stem: str) -> Optional[bytes]:
        fd, tmp = tempfile.mkstemp(prefix=f"temp_{stem}", dir=str(self.target_dir))
        os.close(fd)
        try:
            if not self.decryptor(original_path, tmp):
                self.diagnostics.warn("dat_decrypt_failed", path=original_path)
                return None
            return Path(tmp).read_bytes()
        finally:
            try:
                os.remove(tmp)
            except OSError:
                pass

    def _write_atomic(self, target: Path, data: bytes) -> None:
        # Readers never observe a half-written target
        fd, tmp = tempfile.mkstemp(prefix=f".{target.name}", dir=str(target.parent))
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp, target)
        except Exception:
            try:
                os.remove(tmp)
            except OSError:
                pass
            raise
