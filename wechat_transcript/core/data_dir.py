"""WeChat account data directory checks.

An account directory (``wxid_*``) is expected to look like::

    wxid_xxx/
        Msg/MicroMsg.db
        Msg/Multi/MSG.db | MSG0.db, MSG1.db, ...
        FileStorage/{Cache,MsgAttach,Voice,File,Image,Thumb,Video}/
"""

from pathlib import Path
from typing import List


WXID_PREFIX = "wxid_"


class DataDirError(ValueError):
    """数据目录无效"""

    pass


def _is_nonempty_file(p: Path) -> bool:
    try:
        return p.is_file() and p.stat().st_size > 0
    except OSError:
        return False


def get_micromsg_path(data_path: str) -> Path:
    return Path(data_path) / "Msg" / "MicroMsg.db"


def get_multi_dir(data_path: str) -> Path:
    return Path(data_path) / "Msg" / "Multi"


def get_file_storage_dir(data_path: str) -> Path:
    return Path(data_path) / "FileStorage"


def get_message_db_paths(data_path: str) -> List[str]:
    """List message stores in shard order.

    The first shard is ``MSG.db`` or, when absent, ``MSG0.db``; further shards
    are ``MSG1.db``, ``MSG2.db``, ... up to the first missing number.
    """
    multi = get_multi_dir(data_path)
    paths: List[str] = []
    i = 0
    while True:
        if i == 0:
            candidate = multi / "MSG.db"
            if not candidate.exists():
                candidate = multi / "MSG0.db"
        else:
            candidate = multi / f"MSG{i}.db"
        if not candidate.exists():
            break
        paths.append(str(candidate))
        i += 1
    return paths


def validate_data_dir(path: str) -> bool:
    """
    Validate that a path is a usable account data directory.

    Checks:
    - Path exists and is a directory
    - Msg/MicroMsg.db is a non-empty file
    - At least one message store exists under Msg/Multi

    Args:
        path (str): Path to validate

    Returns:
        bool: True if valid, False otherwise
    """
    p = Path(path)
    if not p.is_dir():
        return False
    if not _is_nonempty_file(get_micromsg_path(path)):
        return False
    return bool(get_message_db_paths(path))


def guess_self_wxid(data_path: str) -> str:
    """Derive the local account id from the data directory name.

    Raises:
        DataDirError: The directory name is not a wxid
    """
    name = Path(data_path).name
    if not name.startswith(WXID_PREFIX):
        raise DataDirError(f"Cannot derive wxid from data path: {data_path}")
    return name
