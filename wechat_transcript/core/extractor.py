"""
Assemble a conversation transcript from raw message rows.

For every message: decode BytesExtra, resolve attachment paths, render the
display text and pick the speaker. One-to-one chats use the IsSender flag;
chatrooms go through GroupSenderResolver.
"""

from datetime import datetime
from typing import Optional

from wechat_transcript.core.bytes_extra import decode_bytes_extra
from wechat_transcript.core.db_handler import WeChatDBHandler
from wechat_transcript.core.diagnostics import Diagnostics
from wechat_transcript.core.media import DatTranscoder, Decryptor
from wechat_transcript.core.paths import AttachmentResolver, PathResolver
from wechat_transcript.core.renderer import ContentRenderer
from wechat_transcript.core.sender import GroupSenderResolver
from wechat_transcript.models.chat import ChatSession, Dialogue, RawMessage


TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_time(timestamp: int) -> str:
    """Format epoch seconds in host local time."""
    return datetime.fromtimestamp(timestamp).strftime(TIME_FORMAT)


class ChatExtractor:
    """Extract one conversation into a ChatSession"""

    def __init__(
        self,
        db: WeChatDBHandler,
        data_path: str,
        self_wxid: str,
        decryptor: Optional[Decryptor] = None,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.db = db
        self.self_wxid = self_wxid
        self.diagnostics = diagnostics or Diagnostics()

        self.paths = PathResolver(data_path, self_wxid, self.diagnostics)
        self.attachments = AttachmentResolver(self.paths)
        self.transcoder = DatTranscoder(data_path, decryptor, self.diagnostics)
        self.renderer = ContentRenderer(self.paths, self.transcoder)
        self.senders = GroupSenderResolver(db.lookup_nickname, self.diagnostics)

    def display_name(self, wxid: str) -> str:
        """Nickname of wxid, or wxid itself when unknown."""
        name, found = self.db.lookup_nickname(wxid)
        if not found:
            self.diagnostics.debug("nickname_not_found", wxid=wxid)
        return name or wxid

    def render_message(
        self,
        message: RawMessage,
        index: int,
        self_name: str,
        target_name: str,
    ) -> Dialogue:
        entries = decode_bytes_extra(message.bytes_extra, self.diagnostics)
        attachments = self.attachments.resolve(message, entries)
        text = self.renderer.render(message, attachments)

        if message.is_chatroom:
            speaker = self.senders.resolve(
                message, attachments, message.is_sender, self_name, target_name
            )
        else:
            speaker = self_name if message.is_sender else target_name

        return Dialogue(
            index=index,
            speaker=speaker,
            text=text,
            time=format_time(message.create_time),
        )

    def extract(self, talker: str) -> ChatSession:
        """
        Extract the full history of a conversation.

        Args:
            talker: Conversation id (wxid or xxx@chatroom)

        Returns: ChatSession with dialogue ordered by CreateTime

        Raises:
            ValueError: The conversation has no messages
        """
        messages = self.db.get_messages(talker)
        if not messages:
            raise ValueError(f"No chat history found for {talker}")

        self_name = self.display_name(self.self_wxid)
        target_name = self.display_name(talker)

        dialogue = [
            self.render_message(msg, i + 1, self_name, target_name)
            for i, msg in enumerate(messages)
        ]
        self.diagnostics.info(
            "conversation_extracted", talker=talker, messages=len(dialogue)
        )
        return ChatSession(
            instruction=f"Chat history with {target_name}",
            dialogue=dialogue,
        )
