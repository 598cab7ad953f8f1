"""
Concurrent per-message fan-out and thread collapsing.

A listing returns bare ids; the details come from one upstream call per id.
Those calls run concurrently and individual failures are tolerated: a message
whose fetch fails is left out of the listing instead of failing it, and the
failure is reported back to the caller alongside the surviving items.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from mailbridge.integrations.email.types import MessageSummary

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class MessageRef:
    """An id from an upstream listing plus its conversation id."""

    id: str
    thread_id: str = ""


@dataclass
class FanOutResult(Generic[T]):
    """Surviving items in input order, plus the ids that failed and why."""

    items: list[T] = field(default_factory=list)
    failures: list[tuple[str, Exception]] = field(default_factory=list)

    @property
    def failed_ids(self) -> list[str]:
        return [message_id for message_id, _ in self.failures]


async def fan_out(
    refs: Sequence[MessageRef],
    fetch: Callable[[MessageRef], Awaitable[T]],
) -> FanOutResult[T]:
    """Run *fetch* for every ref concurrently and keep the successes.

    Order of ``items`` follows *refs*, never completion order.

    Args:
        refs: Message references in upstream order
        fetch: Coroutine function fetching one message

    Returns:
        FanOutResult with successful items and (id, exception) failures
    """
    if not refs:
        return FanOutResult()

    outcomes = await asyncio.gather(*(fetch(ref) for ref in refs), return_exceptions=True)

    result: FanOutResult[T] = FanOutResult()
    for ref, outcome in zip(refs, outcomes, strict=True):
        if isinstance(outcome, Exception):
            logger.warning(f"Failed to fetch message {ref.id}", exc_info=outcome)
            result.failures.append((ref.id, outcome))
        elif isinstance(outcome, BaseException):
            # Cancellation and interpreter exits are not per-item failures
            raise outcome
        else:
            result.items.append(outcome)

    if result.failures:
        logger.warning(
            f"Dropped {len(result.failures)} of {len(refs)} messages during fan-out",
            extra={"failed_ids": result.failed_ids},
        )
    return result


def _date_key(summary: MessageSummary) -> tuple[bool, str]:
    # Dates compare as opaque strings; a missing date sorts lowest
    return (summary.date is not None, summary.date or "")


def collapse_threads(summaries: Sequence[MessageSummary]) -> list[MessageSummary]:
    """Reduce *summaries* to one representative per conversation.

    The representative is the member with the greatest date string and carries
    the group size in ``messages_in_thread``. Representatives come back sorted
    by date string, newest first.
    """
    threads: dict[str, list[MessageSummary]] = {}
    for summary in summaries:
        threads.setdefault(summary.thread_id, []).append(summary)

    representatives = [
        max(members, key=_date_key).model_copy(update={"messages_in_thread": len(members)})
        for members in threads.values()
    ]
    return sorted(representatives, key=_date_key, reverse=True)
