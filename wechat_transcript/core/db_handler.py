"""
微信数据库读取模块

从已解密的 MicroMsg.db 和 Msg/Multi/MSG*.db 中读取联系人、昵称和消息
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from wechat_transcript.core.data_dir import (
    DataDirError,
    get_message_db_paths,
    get_micromsg_path,
)
from wechat_transcript.models.chat import Contact, RawMessage


logger = logging.getLogger(__name__)


class WeChatDBHandler:
    """微信数据库处理器

    负责单个账号目录下数据库的连接和数据读取
    """

    def __init__(self, data_path: str):
        """初始化数据库处理器

        Args:
            data_path: 账号数据目录路径 (wxid_xxx)

        Raises:
            DataDirError: 数据目录不存在
        """
        self.data_path = Path(data_path)
        if not self.data_path.is_dir():
            raise DataDirError(f"数据路径不存在: {data_path}")
        self._micromsg_path = get_micromsg_path(data_path)
        # wxid -> (显示名, 是否找到)，查询失败的结果不缓存
        self._nicknames: Dict[str, Tuple[str, bool]] = {}

    @staticmethod
    def connect(db_path: str) -> sqlite3.Connection:
        return sqlite3.connect(db_path)

    @staticmethod
    def _to_text(v: object) -> str:
        if v is None:
            return ""
        if isinstance(v, (bytes, bytearray, memoryview)):
            return bytes(v).decode("utf-8", errors="replace")
        return str(v)

    @staticmethod
    def _to_bytes(v: object) -> bytes:
        if v is None:
            return b""
        if isinstance(v, (bytes, bytearray, memoryview)):
            return bytes(v)
        if isinstance(v, str):
            return v.encode("utf-8")
        return b""

    @staticmethod
    def _to_int(v: Any) -> int:
        try:
            return int(v or 0)
        except (TypeError, ValueError):
            return 0

    @staticmethod
    def _find_table(conn: sqlite3.Connection, candidates: List[str]) -> Optional[str]:
        try:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
        except sqlite3.Error:
            return None

        table_map = {str(r[0]).lower(): str(r[0]) for r in rows}
        for c in candidates:
            hit = table_map.get(c.lower())
            if hit:
                return hit
        return None

    @staticmethod
    def _column_map(conn: sqlite3.Connection, table: str) -> Dict[str, str]:
        cols = conn.execute(f"PRAGMA table_info({table})").fetchall()
        return {str(r[1]).lower(): str(r[1]) for r in cols}

    def get_message_db_paths(self) -> List[str]:
        """获取所有 MSG 数据库文件路径"""
        return get_message_db_paths(str(self.data_path))

    def lookup_nickname(self, wxid: str) -> Tuple[str, bool]:
        """查询用户昵称

        Returns:
            (显示名, 是否找到)。昵称为空时返回 wxid；查询失败时返回 (wxid, False)
        """
        cached = self._nicknames.get(wxid)
        if cached is not None:
            return cached
        if not self._micromsg_path.exists():
            return wxid, False

        conn = self.connect(str(self._micromsg_path))
        try:
            row = conn.execute(
                "SELECT NickName FROM Contact WHERE UserName = ?", (wxid,)
            ).fetchone()
        except sqlite3.Error as e:
            logger.warning(f"查询用户 {wxid} 的昵称失败: {e}")
            return wxid, False
        finally:
            conn.close()

        if row is None:
            result = (wxid, False)
        else:
            result = (self._to_text(row[0]) or wxid, True)
        self._nicknames[wxid] = result
        return result

    def get_messages(self, talker: str) -> List[RawMessage]:
        """读取与指定会话的全部消息

        Args:
            talker: 会话 ID (wxid 或 xxx@chatroom)

        Returns:
            按 CreateTime 升序排列的消息列表
        """
        messages: List[RawMessage] = []
        for db_path in self.get_message_db_paths():
            try:
                messages.extend(self._get_messages_from_db(db_path, talker))
            except sqlite3.Error as e:
                logger.warning(f"查询 {db_path} 中的消息失败: {e}")
                continue

        messages.sort(key=lambda m: m.create_time)
        return messages

    def _get_messages_from_db(self, db_path: str, talker: str) -> List[RawMessage]:
        conn = self.connect(db_path)
        try:
            msg_table = self._find_table(conn, ["MSG", "msg"])
            if not msg_table:
                return []

            col_map = self._column_map(conn, msg_table)

            def _pick(*names: str) -> Optional[str]:
                for n in names:
                    hit = col_map.get(n.lower())
                    if hit:
                        return hit
                return None

            col_local_id = _pick("localId")
            col_svr_id = _pick("MsgSvrID")
            col_type = _pick("Type")
            col_sub_type = _pick("SubType")
            col_sender = _pick("IsSender")
            col_create = _pick("CreateTime")
            col_talker = _pick("StrTalker", "Talker")
            col_content = _pick("StrContent", "Content")
            col_extra = _pick("BytesExtra")

            if not (col_talker and col_type and col_create):
                return []

            select_cols = [
                col_local_id or "0",
                col_svr_id or "0",
                col_type,
                col_sub_type or "0",
                col_sender or "0",
                col_create,
                col_talker,
                col_content or "''",
                col_extra or "NULL",
            ]
            sql = (
                f"SELECT {', '.join(select_cols)} FROM {msg_table} "
                f"WHERE {col_talker} = ? ORDER BY {col_create} ASC"
            )
            cursor = conn.execute(sql, (talker,))

            messages = []
            for row in cursor.fetchall():
                messages.append(
                    RawMessage(
                        local_id=self._to_int(row[0]),
                        msg_svr_id=str(self._to_int(row[1])),
                        msg_type=self._to_int(row[2]),
                        sub_type=self._to_int(row[3]),
                        is_sender=self._to_int(row[4]) == 1,
                        create_time=self._to_int(row[5]),
                        talker=self._to_text(row[6]),
                        content=self._to_text(row[7]),
                        bytes_extra=self._to_bytes(row[8]),
                    )
                )
            return messages
        finally:
            conn.close()

    def get_contacts(self) -> List[Contact]:
        """读取有聊天记录的联系人

        昵称来自 MicroMsg.db 的 Contact 表，消息数量汇总自所有 MSG 数据库。
        Contact 表中不存在的会话也会返回（昵称为空）。

        Returns:
            按消息数量降序排列的联系人列表
        """
        contacts: Dict[str, Contact] = {}

        if self._micromsg_path.exists():
            conn = self.connect(str(self._micromsg_path))
            try:
                for user_name, nick_name in conn.execute(
                    "SELECT UserName, NickName FROM Contact WHERE UserName != ''"
                ).fetchall():
                    contacts[str(user_name)] = Contact(
                        username=str(user_name), nickname=self._to_text(nick_name)
                    )
            except sqlite3.Error as e:
                logger.warning(f"查询联系人失败: {e}")
            finally:
                conn.close()

        for db_path in self.get_message_db_paths():
            conn = self.connect(db_path)
            try:
                rows = conn.execute(
                    "SELECT StrTalker, COUNT(*) FROM MSG "
                    "WHERE StrTalker != '' GROUP BY StrTalker"
                ).fetchall()
            except sqlite3.Error as e:
                logger.warning(f"查询 {db_path} 中的消息统计失败: {e}")
                continue
            finally:
                conn.close()

            for user_name, count in rows:
                user_name = str(user_name)
                contact = contacts.get(user_name)
                if contact is None:
                    contact = Contact(username=user_name)
                    contacts[user_name] = contact
                contact.message_count += int(count or 0)

        result = [c for c in contacts.values() if c.message_count > 0]
        result.sort(key=lambda c: (-c.message_count, c.username))
        return result
