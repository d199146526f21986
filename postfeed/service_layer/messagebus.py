from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Type, Union
import uuid

from postfeed.domain import commands, events, exceptions
from postfeed.service_layer import unit_of_work

logger = logging.getLogger(__name__)

Message = Union[commands.Command, events.Event]


class MessageBus:
    """
    Dispatches one command to its handler, then drains the domain events the
    handler left on the aggregates it touched. A command's failure reaches the
    caller; an event handler's failure is only logged.
    """

    def __init__(
        self,
        uow: unit_of_work.AbstractUnitOfWork,
        event_handlers: Dict[Type[events.Event], List[Callable]],
        command_handlers: Dict[Type[commands.Command], Callable],
    ) -> None:
        self.uow = uow
        self.event_handlers = event_handlers
        self.command_handlers = command_handlers

    def handle(self, message: Message) -> List[Any]:
        """Process ``message`` and everything it triggers; return the command results."""
        trace = uuid.uuid4().hex[:8]
        pending: Deque[Message] = deque([message])
        results: List[Any] = []

        while pending:
            current = pending.popleft()
            if isinstance(current, commands.Command):
                results.append(self._run_command(current, trace))
            elif isinstance(current, events.Event):
                self._publish(current, trace)
            else:
                raise TypeError(f"{current!r} is neither an Event nor a Command")
            pending.extend(self.uow.collect_new_events())

        return results

    def _run_command(self, command: commands.Command, trace: str) -> Any:
        name = type(command).__name__
        try:
            handler = self.command_handlers[type(command)]
        except KeyError:
            raise LookupError(f"No handler registered for {name}") from None

        logger.debug("[%s] %s -> %s", trace, name, command)
        try:
            return handler(command)
        except exceptions.DomainError as e:
            logger.info("[%s] %s refused: %s", trace, name, e)
            raise

    def _publish(self, event: events.Event, trace: str) -> None:
        for handler in self.event_handlers.get(type(event), ()):
            logger.debug("[%s] %s -> %r", trace, type(event).__name__, handler)
            try:
                handler(event)
            except Exception:
                logger.exception("[%s] handler %r failed on %s", trace, handler, event)
