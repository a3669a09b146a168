"""Manager — runs one conversational turn end to end."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from assistant.agent.code_change import acknowledgement, detect, serialize_context
from assistant.agent.intent import classify
from assistant.agent.results import CodeChangeAck, TurnResponse
from assistant.config import settings as default_settings
from assistant.context.models import has_content
from assistant.conversation import (
    check_conversation,
    fresh_channel,
    load_history,
    resolve_conversation,
)
from assistant.errors import AssistantError, ContextProviderError, ValidationError
from assistant.llm.prompt import build_messages
from assistant.memory.extraction import extract
from assistant.memory.retriever import retrieve_memories
from assistant.retry import RetryPolicy, execute_with_retry, exponential_backoff

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from assistant.agent.code_change import CodeChangeDetection
    from assistant.agent.results import TurnResult
    from assistant.config import Settings
    from assistant.context.models import OpaqueContext, ParaContext
    from assistant.context.providers import ContextProvider
    from assistant.conversation import ConversationRef
    from assistant.llm.client import Completion, ModelBackend
    from assistant.observability import ObservabilitySink
    from assistant.store.base import RecordStore
    from assistant.store.models import Memory, Message

logger = logging.getLogger(__name__)

AGENT_TYPE = "manager"


class Manager:
    """Orchestrates a turn: load, classify, gather, generate, extract, persist.

    All collaborators are injected. Turns are independent; the only state
    shared between them is what the store holds. Callers must serialize
    turns on the same conversation.

    Args:
        store: Record store for conversations, messages, memories and requests.
        context_provider: Source of PARA context for query-like utterances.
        backend: Model backend used to generate replies.
        sink: Receives one event per failed generation attempt.
        settings: Limits and model parameters. Defaults to the global settings.
        retry_policy: Overrides the policy derived from settings.
        sleep: Awaitable delay used between retries, injectable for tests.
    """

    def __init__(
        self,
        store: RecordStore,
        context_provider: ContextProvider,
        backend: ModelBackend,
        sink: ObservabilitySink | None = None,
        *,
        settings: Settings | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._context_provider = context_provider
        self._backend = backend
        self._sink = sink
        self._settings = settings or default_settings
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=self._settings.retry_max_attempts,
            backoff=exponential_backoff(self._settings.retry_base_delay),
        )
        self._sleep = sleep

    async def handle_turn(
        self,
        utterance: str,
        user_id: str,
        conversation: ConversationRef | None = None,
    ) -> TurnResult:
        """Process one user utterance and return the typed result.

        Raises:
            ValidationError: Before any write, for blank input or a bad
                conversation reference.
            CollaboratorError: When the store or context provider fails.
            ExhaustedRetriesError: When every generation attempt failed. The
                user message stays persisted so the turn can be retried.
        """
        if not utterance or not utterance.strip():
            raise ValidationError("utterance must not be empty")
        if not user_id or not user_id.strip():
            raise ValidationError("user_id must not be empty")

        ref = conversation or fresh_channel(self._settings.default_platform)
        await check_conversation(self._store, ref, user_id)

        conversation_id = await resolve_conversation(self._store, ref, user_id)
        user_message_id = await self._store.append_message(
            conversation_id, "user", utterance, {}
        )
        logger.info("Turn for user %s in %s: %s", user_id, conversation_id, utterance[:80])

        history = await load_history(self._store, conversation_id, self._settings.history_limit)
        memories = await retrieve_memories(self._store, user_id, self._settings.memory_limit)

        intent = classify(utterance)
        detection = detect(utterance, history)
        if detection.detected:
            return await self._capture_change_request(detection, user_id, conversation_id, history)

        context = None
        if intent.requires_external_context:
            context = await self._gather_context(utterance, user_id)
        context_used = has_content(context)

        prior_turns = [m for m in history if m.id != user_message_id]
        completion = await execute_with_retry(
            lambda: self._generate(utterance, prior_turns, memories, context),
            policy=self._retry_policy,
            operation_name="generate_response",
            context={"user_id": user_id, "conversation_id": conversation_id},
            sink=self._sink,
            sleep=self._sleep,
        )

        extracted = extract(utterance, completion.content)
        for memory in extracted:
            await self._store.append_memory(
                user_id, memory.type, memory.content, memory.importance
            )

        await self._store.append_message(
            conversation_id,
            "assistant",
            completion.content,
            {
                "agent_type": AGENT_TYPE,
                "context_used": context_used,
                "memory_extracted": bool(extracted),
            },
        )
        await self._store.touch_conversation_activity(conversation_id)

        logger.info(
            "Turn complete for %s (intent=%s, context=%s, memories=%d)",
            conversation_id,
            intent.label,
            context_used,
            len(extracted),
        )
        return TurnResponse(
            content=completion.content,
            memories_extracted=len(extracted),
            conversation_id=conversation_id,
        )

    # -- Steps -----------------------------------------------------------------

    async def _capture_change_request(
        self,
        detection: CodeChangeDetection,
        user_id: str,
        conversation_id: str,
        history: list[Message],
    ) -> CodeChangeAck:
        request_id = await self._store.create_code_change_request(
            user_id,
            detection.request,
            serialize_context(
                history,
                turns=self._settings.code_change_context_turns,
                max_chars=self._settings.code_change_context_max_chars,
            ),
            detection.priority,
            detection.category,
        )
        await self._store.touch_conversation_activity(conversation_id)
        return CodeChangeAck(
            message=acknowledgement(detection.request),
            request_id=request_id,
            conversation_id=conversation_id,
        )

    async def _gather_context(
        self, utterance: str, user_id: str
    ) -> ParaContext | OpaqueContext | None:
        try:
            return await self._context_provider.gather(utterance, user_id)
        except AssistantError:
            raise
        except Exception as exc:
            logger.exception("Context provider failed for user %s", user_id)
            raise ContextProviderError(f"Context gathering failed: {exc}") from exc

    async def _generate(
        self,
        utterance: str,
        history: list[Message],
        memories: list[Memory],
        context: ParaContext | OpaqueContext | None,
    ) -> Completion:
        messages = build_messages(
            utterance,
            history,
            context=context,
            memories=memories,
            history_limit=self._settings.prompt_history_limit,
        )
        return await self._backend.complete(
            messages,
            model=self._settings.get_chat_model(),
            temperature=self._settings.temperature,
            max_tokens=self._settings.max_tokens,
        )
