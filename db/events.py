"""
Post-commit review mutation events.

The review service publishes an event once a create/update/delete has been
committed; subscribers (the rating aggregator) react outside the mutation's
transaction. Subscriber failures are logged and never reach the publisher.
"""

import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from domain.enums import ReviewMutationKind


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewMutation:
    """A committed review change and the restaurants whose review set it touched."""
    kind: ReviewMutationKind
    review_id: int
    restaurant_ids: Tuple[int, ...]


ReviewMutationHandler = Callable[[ReviewMutation], None]


class ReviewMutationDispatcher:
    """Fans committed review mutations out to subscribers."""

    def __init__(self, executor: Optional[Executor] = None):
        """
        Args:
            executor: When given, handlers run fire-and-forget on it;
                otherwise they run inline after the commit
        """
        self.executor = executor
        self._handlers: List[ReviewMutationHandler] = []

    def subscribe(self, handler: ReviewMutationHandler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: ReviewMutationHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, event: ReviewMutation) -> None:
        """Deliver an event to every subscriber."""
        for handler in list(self._handlers):
            if self.executor is not None:
                self.executor.submit(self._deliver, handler, event)
            else:
                self._deliver(handler, event)

    @staticmethod
    def _deliver(handler: ReviewMutationHandler, event: ReviewMutation) -> None:
        try:
            handler(event)
        except Exception:
            logger.exception(
                "Review mutation handler failed",
                extra={
                    "kind": event.kind.value,
                    "review_id": event.review_id,
                    "restaurant_ids": list(event.restaurant_ids),
                }
            )
