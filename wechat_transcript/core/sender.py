"""Speaker attribution for chatroom messages.

The real author of a chatroom message is normally carried in BytesExtra
(field 1). When it is missing, the message text is searched for a
``name: text`` prefix or an ``@name`` mention. If nothing is found the
conversation's display name is used, which can misattribute messages in busy
groups.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from wechat_transcript.core.diagnostics import Diagnostics
from wechat_transcript.models.chat import RawMessage, ResolvedAttachment


NicknameLookup = Callable[[str], Tuple[str, bool]]

# Text that marks a system notice rather than a member name
SYSTEM_NOTICE_MARKERS = (
    "[",
    "]",
    "系统消息",
    "撤回了一条消息",
    "System Notice",
    "recalled a message",
)

MAX_COLON_OFFSET = 50
MAX_COLON_NAME_LEN = 30
MAX_MENTION_NAME_LEN = 50


@dataclass(frozen=True)
class SenderContext:
    text: str


SenderStrategy = Callable[[SenderContext], Optional[str]]


def _acceptable(candidate: str, max_len: int) -> bool:
    if any(marker in candidate for marker in SYSTEM_NOTICE_MARKERS):
        return False
    return 0 < len(candidate) < max_len


def colon_sender(ctx: SenderContext) -> Optional[str]:
    """``Alice: hello`` -> ``Alice``"""
    idx = ctx.text.find(":")
    if not 0 < idx < MAX_COLON_OFFSET:
        return None
    candidate = ctx.text[:idx].strip()
    if _acceptable(candidate, MAX_COLON_NAME_LEN):
        return candidate
    return None


def mention_sender(ctx: SenderContext) -> Optional[str]:
    """``please check @Bob now`` -> ``Bob``"""
    idx = ctx.text.find("@")
    if idx < 0:
        return None
    after = ctx.text[idx + 1 :]
    ends = [i for i in (after.find(" "), after.find("\n")) if i >= 0]
    if not ends:
        return None
    end = min(ends)
    if end <= 0:
        return None
    candidate = after[:end].strip()
    if _acceptable(candidate, MAX_MENTION_NAME_LEN):
        return candidate
    return None


DEFAULT_SENDER_STRATEGIES: Tuple[SenderStrategy, ...] = (colon_sender, mention_sender)


def guess_sender_from_text(
    text: str, strategies: Sequence[SenderStrategy] = DEFAULT_SENDER_STRATEGIES
) -> Optional[str]:
    ctx = SenderContext(text=text or "")
    for strategy in strategies:
        name = strategy(ctx)
        if name:
            return name
    return None


class GroupSenderResolver:
    """Resolve the display name of a chatroom message's author."""

    def __init__(
        self,
        lookup_nickname: NicknameLookup,
        diagnostics: Optional[Diagnostics] = None,
        strategies: Sequence[SenderStrategy] = DEFAULT_SENDER_STRATEGIES,
    ):
        self.lookup_nickname = lookup_nickname
        self.diagnostics = diagnostics or Diagnostics()
        self.strategies = tuple(strategies)

    def resolve(
        self,
        message: RawMessage,
        attachments: ResolvedAttachment,
        is_local_author: bool,
        local_display_name: str,
        conversation_display_name: str,
    ) -> str:
        if is_local_author:
            return local_display_name

        sender_wxid = attachments.sender_wxid
        if sender_wxid:
            try:
                name, found = self.lookup_nickname(sender_wxid)
            except Exception as e:
                self.diagnostics.warn(
                    "sender_lookup_failed", wxid=sender_wxid, error=str(e)
                )
                return sender_wxid
            if not found or not name:
                self.diagnostics.debug("sender_nickname_missing", wxid=sender_wxid)
                return sender_wxid
            return name

        guessed = guess_sender_from_text(message.content, self.strategies)
        if guessed:
            return guessed

        self.diagnostics.debug(
            "group_sender_unresolved",
            local_id=message.local_id,
            talker=message.talker,
        )
        return conversation_display_name
