"""
Client-side moderation gate for the send-message form.

The verdict is advisory: it only decides whether the composer lets the
visitor press send. The backend accepts any message regardless.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Any, List, Optional, Union

import httpx

from .api_client import APIClient, APIError

logger = logging.getLogger(__name__)

CHECK_FAILED = "Failed to check message content"

MODERATION_PROMPT = """
You are a content moderation assistant. Analyze the following message for appropriateness:

"{draft}"

Consider the following criteria:
1. Profanity or explicit language
2. Hate speech or discriminatory content
3. Personal attacks or bullying
4. Potentially harmful or dangerous content
5. Spam or irrelevant content

Respond EXACTLY with one of these options:
- "APPROPRIATE" if the message is acceptable.
- "INAPPROPRIATE: [specific reason]" if the message violates any of the above criteria.

Be thorough in your analysis and consistent in your judgments.
"""


@dataclass(frozen=True)
class Appropriate:
    reply: str = "APPROPRIATE"


@dataclass(frozen=True)
class Inappropriate:
    reason: str
    reply: str = ""


@dataclass(frozen=True)
class Indeterminate:
    """No verdict: waiting for input (``error`` is None) or the check failed."""

    error: Optional[str] = None


Verdict = Union[Appropriate, Inappropriate, Indeterminate]


def build_moderation_prompt(draft: str) -> str:
    return MODERATION_PROMPT.format(draft=draft)


def classify_reply(reply: str) -> Verdict:
    """
    Map the model's reply onto a verdict. Anything that does not start with
    one of the two expected tokens is treated as no verdict at all.
    """
    text = reply.strip().strip("\"'").strip()
    lowered = text.lower()

    if lowered.startswith("inappropriate"):
        _, _, reason = text.partition(":")
        return Inappropriate(reason=reason.strip() or "Unspecified", reply=text)
    if lowered.startswith("appropriate"):
        return Appropriate(reply=text)
    return Indeterminate(error=f"Unrecognised moderation reply: {text[:80]!r}")


class ModerationChecker:
    """
    Debounced wrapper around POST /messages-check.

    Every update() cancels the pending check; the request only goes out once
    the draft has been stable for ``delay`` seconds. Must be driven from a
    running event loop.
    """

    def __init__(
        self,
        client: APIClient,
        on_verdict: Optional[Callable[[Verdict], None]] = None,
        delay: float = 0.5,
    ) -> None:
        self.client = client
        self.on_verdict = on_verdict
        self.delay = delay
        self.verdict: Verdict = Indeterminate()
        self._task: Optional[asyncio.Task[None]] = None

    def update(self, draft: str) -> None:
        """Drop the verdict of the previous draft and schedule a fresh check."""

        self.cancel()
        self._publish(Indeterminate())
        if not draft.strip():
            return
        self._task = asyncio.get_running_loop().create_task(self._debounced(draft))

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> Verdict:
        """Block until the scheduled check (if any) has published."""

        task = self._task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return self.verdict

    async def check(self, draft: str) -> Verdict:
        """Run one check immediately, without debouncing."""

        try:
            reply = await self.client.check_message(build_moderation_prompt(draft))
        except (APIError, httpx.HTTPError) as exc:
            logger.warning("Error checking message: %s", exc)
            return Indeterminate(error=CHECK_FAILED)
        return classify_reply(reply)

    async def _debounced(self, draft: str) -> None:
        await asyncio.sleep(self.delay)
        self._publish(await self.check(draft))

    def _publish(self, verdict: Verdict) -> None:
        self.verdict = verdict
        if self.on_verdict is not None:
            self.on_verdict(verdict)


class SubmitBlocked(Exception):
    """The composer refused to send the current draft."""


class MessageComposer:
    """
    State behind the public send-message form for one profile link.

    Submitting is blocked while a send is in flight, while the draft is
    blank, or while the latest verdict is Inappropriate. An Indeterminate
    verdict does not block.
    """

    def __init__(
        self,
        client: APIClient,
        username: str,
        delay: float = 0.5,
        on_verdict: Optional[Callable[[Verdict], None]] = None,
    ) -> None:
        self.client = client
        self.username = username
        self.checker = ModerationChecker(client, on_verdict=on_verdict, delay=delay)
        self.draft = ""
        self.sending = False

    @property
    def verdict(self) -> Verdict:
        return self.checker.verdict

    @property
    def can_submit(self) -> bool:
        if self.sending or not self.draft.strip():
            return False
        return not isinstance(self.verdict, Inappropriate)

    def set_draft(self, text: str) -> None:
        self.draft = text
        self.checker.update(text)

    async def submit(self) -> Dict[str, Any]:
        if not self.can_submit:
            if isinstance(self.verdict, Inappropriate):
                raise SubmitBlocked(f"Message flagged: {self.verdict.reason}")
            raise SubmitBlocked("Nothing to send")

        self.sending = True
        try:
            result = await self.client.send_message(self.username, self.draft)
        finally:
            self.sending = False

        self.set_draft("")
        return result

    async def suggestions(self) -> List[str]:
        return await self.client.suggest_messages()
