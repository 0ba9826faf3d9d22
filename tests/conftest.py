"""
共享的 pytest fixtures 和配置
"""

import os
import sys
import sqlite3
import tempfile
import shutil
from pathlib import Path
from typing import Iterable, Optional, Tuple

import pytest


@pytest.fixture(scope="session", autouse=True)
def _isolate_app_config():
    """Isolate on-disk config from developer machine.

    Tests should not read/write user home config.json.
    """

    tmp_cfg_dir = Path(tempfile.mkdtemp())
    os.environ["WECHAT_TRANSCRIPT_CONFIG_DIR"] = str(tmp_cfg_dir)
    try:
        yield
    finally:
        try:
            shutil.rmtree(tmp_cfg_dir, ignore_errors=True)
        finally:
            os.environ.pop("WECHAT_TRANSCRIPT_CONFIG_DIR", None)


# 添加项目根目录到 Python 路径
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

SELF_WXID = "wxid_self123"


def _varint(n: int) -> bytes:
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n:
            out.append(b | 0x80)
        else:
            out.append(b)
            return bytes(out)


def _length_delimited(tag: int, payload: bytes) -> bytes:
    return bytes([tag]) + _varint(len(payload)) + payload


def encode_bytes_extra(
    entries: Iterable[Tuple[int, str]], with_header: bool = True
) -> bytes:
    """Build a BytesExtra protobuf blob: header (field 1) + entries (field 3)"""
    buf = b""
    if with_header:
        buf += _length_delimited(0x0A, b"\x08\x01\x10\x00")
    for field_id, value in entries:
        entry = b"\x08" + _varint(field_id) + _length_delimited(0x12, value.encode("utf-8"))
        buf += _length_delimited(0x1A, entry)
    return buf


MSG_COLUMNS = (
    "localId",
    "MsgSvrID",
    "Type",
    "SubType",
    "IsSender",
    "CreateTime",
    "StrTalker",
    "StrContent",
    "CompressContent",
    "BytesExtra",
)


def create_mock_micromsg(path: Path, contacts: Iterable[Tuple[str, str]]) -> None:
    """创建模拟的 MicroMsg.db 数据库"""
    conn = sqlite3.connect(str(path))
    conn.execute("""CREATE TABLE Contact (
        UserName TEXT PRIMARY KEY,
        Alias TEXT,
        NickName TEXT,
        Type INTEGER
    )""")
    for user_name, nick_name in contacts:
        conn.execute(
            "INSERT INTO Contact (UserName, NickName, Type) VALUES (?, ?, 1)",
            (user_name, nick_name),
        )
    conn.commit()
    conn.close()


def create_mock_msg(path: Path, rows: Iterable[tuple] = ()) -> None:
    """创建模拟的 MSGn.db 数据库"""
    conn = sqlite3.connect(str(path))
    conn.execute("""CREATE TABLE MSG (
        localId INTEGER PRIMARY KEY,
        MsgSvrID INTEGER,
        Type INTEGER,
        SubType INTEGER,
        IsSender INTEGER,
        CreateTime INTEGER,
        StrTalker TEXT,
        StrContent TEXT,
        CompressContent BLOB,
        BytesExtra BLOB
    )""")
    add_messages(conn, rows)
    conn.commit()
    conn.close()


def add_messages(conn: sqlite3.Connection, rows: Iterable[tuple]) -> None:
    placeholders = ", ".join("?" for _ in MSG_COLUMNS)
    for row in rows:
        conn.execute(
            f"INSERT INTO MSG ({', '.join(MSG_COLUMNS)}) VALUES ({placeholders})",
            row,
        )


def msg_row(
    local_id: int,
    svr_id: int,
    msg_type: int,
    talker: str,
    content: str = "",
    create_time: int = 1704067200,
    is_sender: int = 0,
    sub_type: int = 0,
    bytes_extra: Optional[bytes] = None,
) -> tuple:
    return (
        local_id,
        svr_id,
        msg_type,
        sub_type,
        is_sender,
        create_time,
        talker,
        content,
        None,
        bytes_extra,
    )


@pytest.fixture
def temp_dir():
    """创建临时目录，测试后自动清理"""
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def data_path(temp_dir: Path) -> Path:
    """创建模拟的账号数据目录结构 (wxid_self123)"""
    account = temp_dir / SELF_WXID
    (account / "Msg" / "Multi").mkdir(parents=True)
    for sub in ("Cache", "MsgAttach", "Voice", "File", "Image", "Thumb", "Video"):
        (account / "FileStorage" / sub).mkdir(parents=True)

    create_mock_micromsg(
        account / "Msg" / "MicroMsg.db",
        [
            (SELF_WXID, "Me"),
            ("wxid_alice", "Alice"),
            ("wxid_bob", "Bob"),
            ("wxid_noname", ""),
            ("12345@chatroom", "Test Group"),
        ],
    )
    create_mock_msg(account / "Msg" / "Multi" / "MSG0.db")
    return account


@pytest.fixture
def msg_db(data_path: Path) -> Path:
    return data_path / "Msg" / "Multi" / "MSG0.db"


def touch(path: Path, data: bytes = b"x") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path
