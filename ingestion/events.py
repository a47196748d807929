"""
Job lifecycle events

Subscribers receive events in the order they were published. A subscriber
that raises is logged and does not affect other subscribers or the job.
"""

import asyncio
import inspect
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, List, Union
from pydantic import Field
from schemas.base import CamelModel
from schemas.job import Job, utcnow
import logging

logger = logging.getLogger(__name__)


class JobEventType(str, Enum):
    CREATED = "job:created"
    STARTED = "job:started"
    COMPLETED = "job:completed"
    FAILED = "job:failed"
    PAUSED = "job:paused"
    RESUMED = "job:resumed"
    CANCELLED = "job:cancelled"


class JobEvent(CamelModel):
    """Snapshot of a job at the moment of a transition"""
    type: JobEventType
    job: Job
    timestamp: datetime = Field(default_factory=utcnow)


Subscriber = Callable[[JobEvent], Union[None, Awaitable[None]]]


class EventBus:
    """Ordered fan-out of job events to callbacks and queues"""

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self._queues: List[asyncio.Queue] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a sync or async callback.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def queue(self, maxsize: int = 0) -> asyncio.Queue:
        """Open a queue that receives every subsequent event"""
        events: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._queues.append(events)
        return events

    def close_queue(self, events: asyncio.Queue) -> None:
        if events in self._queues:
            self._queues.remove(events)

    async def publish(self, event_type: JobEventType, job: Job) -> JobEvent:
        event = JobEvent(type=event_type, job=job.model_copy(deep=True))
        logger.debug(f"Event {event_type.value} for job {job.id}")

        for callback in list(self._subscribers):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Event subscriber failed on {event_type.value} for job {job.id}: {e}")

        for events in list(self._queues):
            try:
                events.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"Event queue full; dropped {event_type.value} for job {job.id}")

        return event
