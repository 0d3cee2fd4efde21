"""
Site lifecycle events.

Listeners are registered per event type on an EventBus owned by a site. A
listener is either a callable, invoked with the event, or the name of a
command, run through the site's command runner. Dispatch is sequential and
stops at the first listener that returns False (a veto). A veto is a control
signal, not an error: exceptions raised by listeners propagate unchanged.
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Optional, Union


class EventType(Enum):
    """Lifecycle events dispatched by the build and update pipelines."""

    BEFORE_BUILD = "beforeBuild"
    BEFORE_SAVE = "beforeSave"
    AFTER_BUILD = "afterBuild"
    BEFORE_UPDATE = "beforeUpdate"
    AFTER_UPDATE = "afterUpdate"

    @classmethod
    def from_value(cls, value: Union["EventType", str]) -> "EventType":
        """Accept an EventType or its name (``beforeBuild``)."""
        if isinstance(value, EventType):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown event type '{value}'. Valid types: {valid}") from None


@dataclass(frozen=True)
class Event:
    """A dispatched event. Update events carry the changed files."""

    type: EventType
    files: Optional[FrozenSet[str]] = None


class ListenerKind(Enum):
    CALLABLE = "callable"
    COMMAND = "command"


@dataclass(frozen=True)
class Listener:
    """A callable listener or a reference to a named command.

    Two listeners are the same listener when they have the same kind and
    target, so registering one twice has no effect.
    """

    kind: ListenerKind
    target: Any

    @classmethod
    def of(cls, value: Union["Listener", str, Callable[[Event], Any]]) -> "Listener":
        if isinstance(value, Listener):
            return value
        if isinstance(value, str):
            return cls(ListenerKind.COMMAND, value)
        if callable(value):
            return cls(ListenerKind.CALLABLE, value)
        raise TypeError(f"Listener must be a callable or a command name, got {value!r}")

    def __str__(self) -> str:
        if self.kind is ListenerKind.COMMAND:
            return f"command '{self.target}'"
        return getattr(self.target, "__qualname__", repr(self.target))


CommandRunner = Callable[[str], Awaitable[bool]]


class EventBus:
    """
    Listener registry and dispatcher for one site.

    Example usage:
        bus = EventBus(site.run)
        bus.register("beforeBuild", lambda event: print("building"))
        bus.register("afterBuild", "deploy")
        if not await bus.dispatch(Event(EventType.BEFORE_BUILD)):
            ...  # a listener vetoed
    """

    def __init__(self, command_runner: CommandRunner):
        """
        Initialize the event bus.

        Args:
            command_runner: Coroutine function running a named command and
                returning whether it succeeded
        """
        self.command_runner = command_runner
        # dict keys as an insertion-ordered set
        self._listeners: Dict[EventType, Dict[Listener, None]] = {}

    def register(
        self,
        type: Union[EventType, str],
        listener: Union[Listener, str, Callable[[Event], Any]],
    ) -> None:
        event_type = EventType.from_value(type)
        self._listeners.setdefault(event_type, {})[Listener.of(listener)] = None

    def listeners(self, type: Union[EventType, str]) -> List[Listener]:
        """Listeners registered for an event type, in dispatch order."""
        return list(self._listeners.get(EventType.from_value(type), {}))

    async def dispatch(self, event: Event) -> bool:
        """
        Invoke the listeners of an event in order.

        Returns:
            False as soon as one listener vetoes, True otherwise (including
            when nothing listens to the event)
        """
        for listener in list(self._listeners.get(event.type, {})):
            if not await self._invoke(listener, event):
                logging.warning(f"{event.type.value} vetoed by {listener}")
                return False
        return True

    async def _invoke(self, listener: Listener, event: Event) -> bool:
        if listener.kind is ListenerKind.COMMAND:
            return bool(await self.command_runner(listener.target))

        result = listener.target(event)
        if inspect.isawaitable(result):
            result = await result
        # Only an explicit False is a veto; None means "no opinion"
        return result is not False
