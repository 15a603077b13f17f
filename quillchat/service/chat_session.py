"""Conversation session driving the completion client.

Purpose
-------
Glue between the UI/CLI and the completion layer:

- keeps the transcript in a :class:`RecordStore` (``conversations`` and
  ``messages`` stores, messages indexed ``by-conversationId``);
- builds each :class:`CompletionRequest` from the active provider settings
  (default model, temperature, custom instructions as a leading system
  message);
- streams the reply, forwarding every delta to an optional callback;
- on failure keeps whatever was already received as the assistant message
  and records an :class:`ErrorBanner` in :attr:`ChatSession.last_error`.

The session never retries; a failed turn is terminal for that turn.
"""

from __future__ import annotations

import inspect
import logging
import time
from typing import List, Optional

from ..base.cancellation import CancellationToken
from ..base.dto import ChatMessage, CompletionRequest
from ..base.errors import CompletionError
from ..base.interfaces import DeltaCallback, RecordStore, SettingsStore
from ..base.logging import LogContext, get_logger, log_event
from ..base.models import ConversationRecord, ErrorBanner, MessageRecord
from ..openai_compat.client import ChatCompletionClient

CONVERSATIONS = "conversations"
MESSAGES = "messages"
BY_CONVERSATION = "by-conversationId"
TITLE_MAX_CHARS = 48
DEFAULT_TITLE = "New conversation"


def title_from_prompt(prompt: str) -> str:
    """Return a one-line conversation title derived from the first prompt."""
    line = " ".join(prompt.split())
    if not line:
        return DEFAULT_TITLE
    if len(line) <= TITLE_MAX_CHARS:
        return line
    return line[: TITLE_MAX_CHARS - 3].rstrip() + "..."


class ChatSession:
    """Stateful chat over one record store and one settings store.

    Parameters:
        client: Completion client used for every turn.
        settings: Provider settings source (active provider is used).
        records: Transcript persistence.
        use_proxy: Route calls through the relay instead of the provider.
        logger: Optional logger; defaults to ``quillchat.session``.
    """

    def __init__(
        self,
        client: ChatCompletionClient,
        settings: SettingsStore,
        records: RecordStore,
        *,
        use_proxy: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.client = client
        self.settings = settings
        self.records = records
        self.use_proxy = use_proxy
        self.conversation_id: Optional[str] = None
        self.last_error: Optional[ErrorBanner] = None
        self._logger = logger or get_logger("quillchat.session")

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def start_conversation(self, title: str = DEFAULT_TITLE) -> ConversationRecord:
        conversation = ConversationRecord(title=title)
        self.records.put(CONVERSATIONS, conversation)
        self.conversation_id = conversation.id
        return conversation

    def select(self, conversation_id: Optional[str]) -> None:
        self.conversation_id = conversation_id
        self.last_error = None

    def conversations(self) -> List[ConversationRecord]:
        """Return conversations, most recently updated first."""
        return sorted(self.records.get_all(CONVERSATIONS), key=lambda c: c.updated_at, reverse=True)

    def messages(self, conversation_id: Optional[str] = None) -> List[MessageRecord]:
        """Return the transcript of a conversation in creation order."""
        cid = conversation_id or self.conversation_id
        if cid is None:
            return []
        found = self.records.get_by_index(MESSAGES, BY_CONVERSATION, cid)
        return sorted(found, key=lambda m: m.created_at)

    def remove_conversation(self, conversation_id: str) -> None:
        for message in self.records.get_by_index(MESSAGES, BY_CONVERSATION, conversation_id):
            self.records.delete(MESSAGES, message.id)
        self.records.delete(CONVERSATIONS, conversation_id)
        if self.conversation_id == conversation_id:
            self.select(None)

    def clear_error(self) -> None:
        self.last_error = None

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def build_request(self, history: List[MessageRecord]) -> CompletionRequest:
        """Build the request for the active provider from ``history``."""
        provider = self.settings.active_provider()
        messages: List[ChatMessage] = []
        if provider.custom_instructions.strip():
            messages.append(ChatMessage(role="system", content=provider.custom_instructions.strip()))
        messages.extend(
            ChatMessage(role=m.role, content=m.content)
            for m in history
            if m.role in ("user", "assistant") and m.content
        )
        return CompletionRequest(
            model=provider.default_model,
            messages=messages,
            temperature=provider.temperature,
        )

    async def send(
        self,
        prompt: str,
        on_delta: Optional[DeltaCallback] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[MessageRecord]:
        """Append ``prompt`` and stream the assistant reply.

        Returns the stored assistant message, or ``None`` when the turn failed
        before any text arrived. Failures are recorded in :attr:`last_error`.
        """
        self.last_error = None
        conversation = self._current_or_new(prompt)
        self.records.put(MESSAGES, MessageRecord(conversation.id, "user", prompt))
        request = self.build_request(self.messages(conversation.id))
        provider = self.settings.active_provider()

        parts: List[str] = []

        async def collect(delta: str) -> None:
            parts.append(delta)
            if on_delta is not None:
                result = on_delta(delta)
                if inspect.isawaitable(result):
                    await result

        try:
            await self.client.stream(
                provider.base_url,
                request,
                collect,
                api_key=provider.api_key or None,
                use_proxy=self.use_proxy,
                cancel_token=cancel_token,
            )
        except CompletionError as exc:
            self.last_error = ErrorBanner.from_error(exc, conversation_id=conversation.id)
            log_event(
                self._logger,
                "session.turn_failed",
                LogContext(mode=exc.mode.value, model=request.model),
                level=logging.WARNING,
                code=exc.code.value,
                partial_chars=sum(len(p) for p in parts),
            )
        reply = self._store_reply(conversation, "".join(parts))
        return reply

    def _current_or_new(self, prompt: str) -> ConversationRecord:
        if self.conversation_id is not None:
            for conversation in self.records.get_all(CONVERSATIONS):
                if conversation.id == self.conversation_id:
                    return conversation
        return self.start_conversation(title_from_prompt(prompt))

    def _store_reply(self, conversation: ConversationRecord, text: str) -> Optional[MessageRecord]:
        conversation.updated_at = int(time.time() * 1000)
        self.records.put(CONVERSATIONS, conversation)
        if not text:
            return None
        reply = MessageRecord(conversation.id, "assistant", text)
        self.records.put(MESSAGES, reply)
        return reply


__all__ = ["ChatSession", "title_from_prompt"]
