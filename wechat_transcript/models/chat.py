"""
微信聊天记录相关的数据模型

定义了原始消息、扩展字段、附件路径、联系人和导出对话的数据结构
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


# 消息类型
MSG_TYPE_TEXT = 1
MSG_TYPE_PICTURE = 3
MSG_TYPE_VOICE = 34
MSG_TYPE_VISIT_CARD = 42
MSG_TYPE_VIDEO = 43
MSG_TYPE_EMOJI = 47
MSG_TYPE_LOCATION = 48
MSG_TYPE_MISC = 49
MSG_TYPE_VOIP = 50
MSG_TYPE_SYSTEM = 10000

# Type=49 的子类型
MISC_FILE = 6
MISC_CUSTOM_EMOJI = 8
MISC_SHARE_EMOJI = 15
MISC_FORWARD_MESSAGE = 19
MISC_APPLET = 33
MISC_APPLET2 = 36
MISC_CHANNELS = 51
MISC_REFER = 57
MISC_LIVE = 63
MISC_GAME = 68
MISC_NOTICE = 87
MISC_LIVE2 = 88
MISC_TING_LISTEN = 92
MISC_TRANSFER = 2000
MISC_RED_PACKET = 2003

# BytesExtra 中有意义的字段编号
EXTRA_FIELD_SENDER = 1
EXTRA_FIELD_THUMB = 3
EXTRA_FIELD_ATTACHMENT = 4

CHATROOM_SUFFIX = "@chatroom"


@dataclass(frozen=True)
class RawMessage:
    """MSG 表中的一行消息"""

    local_id: int = 0
    msg_svr_id: str = ""  # 64 位整数的十进制字符串
    msg_type: int = MSG_TYPE_TEXT
    sub_type: int = 0
    is_sender: bool = False
    create_time: int = 0
    talker: str = ""
    content: str = ""
    bytes_extra: bytes = b""

    @property
    def is_chatroom(self) -> bool:
        return self.talker.endswith(CHATROOM_SUFFIX)


@dataclass(frozen=True)
class ExtensionEntry:
    """BytesExtra 解码后的一项 (字段编号, 字符串值)"""

    field_id: int
    value: str


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"  # 已确认存在
    GUESSED = "guessed"  # 拼接出的路径，未检查是否存在
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Resolution:
    """路径查找结果"""

    status: ResolutionStatus
    path: str = ""

    @property
    def found(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED


@dataclass
class ResolvedAttachment:
    """单条消息的附件路径，空字符串表示不适用或未找到"""

    thumb_path: str = ""
    image_path: str = ""
    video_path: str = ""
    voice_path: str = ""
    file_path: str = ""
    file_name: str = ""
    sender_wxid: str = ""  # 群聊消息的真实发送者


@dataclass
class Contact:
    """联系人数据模型"""

    username: str  # wxid 或 xxx@chatroom
    nickname: str = ""
    message_count: int = 0

    @property
    def display_name(self) -> str:
        return self.nickname or self.username


@dataclass
class Dialogue:
    """导出记录中的一句对话"""

    index: int
    speaker: str
    text: str
    time: str


@dataclass
class ChatSession:
    """一个会话的完整导出记录"""

    instruction: str
    dialogue: List[Dialogue] = field(default_factory=list)
