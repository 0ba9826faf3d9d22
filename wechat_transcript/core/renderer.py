"""Display text for each message type.

Dispatch is keyed by ``Type`` and, for ``Type=49``, by ``SubType``. Unknown
codes fall back to the raw content.
"""

import os
from typing import Callable, Dict

from wechat_transcript.core.media import DatTranscoder
from wechat_transcript.core.paths import PathResolver
from wechat_transcript.models.chat import (
    MISC_APPLET,
    MISC_APPLET2,
    MISC_CHANNELS,
    MISC_CUSTOM_EMOJI,
    MISC_FILE,
    MISC_FORWARD_MESSAGE,
    MISC_GAME,
    MISC_LIVE,
    MISC_LIVE2,
    MISC_RED_PACKET,
    MISC_SHARE_EMOJI,
    MISC_TRANSFER,
    MSG_TYPE_EMOJI,
    MSG_TYPE_LOCATION,
    MSG_TYPE_MISC,
    MSG_TYPE_PICTURE,
    MSG_TYPE_SYSTEM,
    MSG_TYPE_TEXT,
    MSG_TYPE_VIDEO,
    MSG_TYPE_VOICE,
    MSG_TYPE_VOIP,
    RawMessage,
    ResolvedAttachment,
)


TAG_IMAGE = "[Image]"
TAG_VOICE = "[Voice]"
TAG_VIDEO = "[Video]"
TAG_EMOJI = "[Emoji]"
TAG_LOCATION = "[Location]"
TAG_FILE = "[File]"
TAG_CUSTOM_EMOJI = "[Custom Emoji]"
TAG_FORWARDED = "[Forwarded]"
TAG_APPLET = "[Mini-App]"
TAG_CHANNEL = "[Channel]"
TAG_GAME = "[Game]"
TAG_TRANSFER = "[Transfer]"
TAG_RED_PACKET = "[Gift Money]"
TAG_CALL = "[Call]"
TAG_SYSTEM = "[System]"


Handler = Callable[[RawMessage, ResolvedAttachment], str]


def tagged(tag: str, *parts: str) -> str:
    """Join a tag with its non-empty parts."""
    return " ".join([tag] + [p for p in parts if p])


class ContentRenderer:
    """Render the canonical display text of a message."""

    def __init__(self, paths: PathResolver, transcoder: DatTranscoder):
        self.paths = paths
        self.transcoder = transcoder

        self._by_type: Dict[int, Handler] = {
            MSG_TYPE_TEXT: self._text,
            MSG_TYPE_PICTURE: self._picture,
            MSG_TYPE_VOICE: self._voice,
            MSG_TYPE_VIDEO: self._video,
            MSG_TYPE_EMOJI: self._emoji,
            MSG_TYPE_LOCATION: lambda m, a: tagged(TAG_LOCATION, m.content),
            MSG_TYPE_MISC: self._misc,
            MSG_TYPE_VOIP: lambda m, a: TAG_CALL,
            MSG_TYPE_SYSTEM: lambda m, a: tagged(TAG_SYSTEM, m.content),
        }
        self._by_misc_subtype: Dict[int, Handler] = {
            MISC_FILE: self._file,
            MISC_CUSTOM_EMOJI: lambda m, a: TAG_CUSTOM_EMOJI,
            MISC_SHARE_EMOJI: lambda m, a: TAG_CUSTOM_EMOJI,
            MISC_FORWARD_MESSAGE: self._forwarded,
            MISC_APPLET: lambda m, a: tagged(TAG_APPLET, m.content),
            MISC_APPLET2: lambda m, a: tagged(TAG_APPLET, m.content),
            MISC_CHANNELS: self._channels,
            MISC_LIVE: self._channels,
            MISC_LIVE2: self._channels,
            MISC_GAME: lambda m, a: tagged(TAG_GAME, m.content),
            MISC_TRANSFER: lambda m, a: tagged(TAG_TRANSFER, m.content),
            MISC_RED_PACKET: lambda m, a: tagged(TAG_RED_PACKET, m.content),
        }

    def render(self, message: RawMessage, attachments: ResolvedAttachment) -> str:
        handler = self._by_type.get(message.msg_type, self._text)
        return handler(message, attachments)

    @staticmethod
    def _text(message: RawMessage, attachments: ResolvedAttachment) -> str:
        return message.content

    def _misc(self, message: RawMessage, attachments: ResolvedAttachment) -> str:
        handler = self._by_misc_subtype.get(message.sub_type, self._text)
        return handler(message, attachments)

    def _picture(self, message: RawMessage, attachments: ResolvedAttachment) -> str:
        path = (
            attachments.image_path
            or attachments.thumb_path
            or self.paths.find_image(message.msg_svr_id)
        )
        if not path:
            return TAG_IMAGE
        return tagged(TAG_IMAGE, self.transcoder.to_viewable(path, message.msg_svr_id))

    def _voice(self, message: RawMessage, attachments: ResolvedAttachment) -> str:
        path = attachments.voice_path
        if not path:
            candidate = self.paths.voice_path(message.msg_svr_id)
            if message.msg_svr_id and os.path.exists(candidate):
                path = candidate
        return tagged(TAG_VOICE, path)

    def _video(self, message: RawMessage, attachments: ResolvedAttachment) -> str:
        path = (
            attachments.video_path
            or attachments.thumb_path
            or self.paths.find_video(message.msg_svr_id)
        )
        return tagged(TAG_VIDEO, path)

    def _emoji(self, message: RawMessage, attachments: ResolvedAttachment) -> str:
        return tagged(TAG_EMOJI, self.paths.find_emoji(message.msg_svr_id))

    def _file(self, message: RawMessage, attachments: ResolvedAttachment) -> str:
        path = attachments.file_path or self.paths.find_file(
            message.msg_svr_id, attachments.file_name
        )
        return tagged(TAG_FILE, attachments.file_name, path)

    def _forwarded(self, message: RawMessage, attachments: ResolvedAttachment) -> str:
        path = attachments.thumb_path or self.paths.find_forward_file(
            message.msg_svr_id
        )
        return tagged(TAG_FORWARDED, message.content, path)

    def _channels(self, message: RawMessage, attachments: ResolvedAttachment) -> str:
        path = attachments.thumb_path or self.paths.find_channels_file(
            message.msg_svr_id
        )
        return tagged(TAG_CHANNEL, message.content, path)
