"""
Keyboard shortcut dispatcher.

Interprets a stream of key-down events and fires registered actions for
single-key shortcuts (with an optional modifier) and for ordered multi-key
sequences such as ``g`` then ``i``. Events whose target is a text-entry
surface are ignored so shortcuts never interfere with typing.

The dispatcher never raises into its host: unmatched keys and malformed
bindings simply do nothing, and a failing action is logged.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

SEQUENCE_TIMEOUT = 1.0  # seconds
TEXT_ENTRY_TAGS = frozenset({"input", "textarea"})

Action = Callable[[], None]

class Modifier(str, Enum):
    NONE = "none"
    CTRL = "ctrl"
    META = "meta"
    ALT = "alt"
    SHIFT = "shift"

class KeyEvent(BaseModel):
    """A key-down event as delivered by the host (browser field names accepted)."""
    model_config = ConfigDict(populate_by_name=True)

    key: str
    ctrl: bool = Field(False, alias="ctrlKey")
    meta: bool = Field(False, alias="metaKey")
    alt: bool = Field(False, alias="altKey")
    shift: bool = Field(False, alias="shiftKey")
    target_tag: Optional[str] = Field(None, alias="targetTag")
    content_editable: bool = Field(False, alias="isContentEditable")
    default_prevented: bool = False

    @property
    def is_text_entry(self) -> bool:
        tag = (self.target_tag or "").lower()
        return tag in TEXT_ENTRY_TAGS or self.content_editable

    @property
    def has_modifier(self) -> bool:
        return self.ctrl or self.meta or self.alt or self.shift

    def is_held(self, modifier: Modifier) -> bool:
        if modifier is Modifier.CTRL:
            return self.ctrl
        if modifier is Modifier.META:
            return self.meta
        if modifier is Modifier.ALT:
            return self.alt
        if modifier is Modifier.SHIFT:
            return self.shift
        return not self.has_modifier

    def prevent_default(self):
        self.default_prevented = True

class Shortcut(BaseModel):
    key: str
    action: Action
    description: str = ""
    modifier: Modifier = Modifier.NONE

    def matches(self, event: KeyEvent) -> bool:
        # A declared modifier must be held; other modifiers are not checked.
        # An empty key never matches.
        return bool(self.key) and event.key.lower() == self.key.lower() and event.is_held(self.modifier)

class SequenceShortcut(BaseModel):
    keys: List[str]
    action: Action
    description: str = ""

    def matches_tail(self, buffer: List[str]) -> bool:
        size = len(self.keys)
        if size == 0 or len(buffer) < size or not all(self.keys):
            return False
        return buffer[len(buffer) - size:] == [k.lower() for k in self.keys]

KeyListener = Callable[[KeyEvent], None]

class KeyEventSource:
    """Document-level registry of key-down listeners."""

    def __init__(self):
        self._listeners: List[KeyListener] = []

    def add_listener(self, listener: KeyListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: KeyListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def dispatch(self, event: KeyEvent) -> KeyEvent:
        for listener in list(self._listeners):
            listener(event)
        return event

class Cancellable(Protocol):
    def cancel(self) -> None: ...

class Scheduler(ABC):
    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        """Run ``callback`` once after ``delay`` seconds unless cancelled."""

class AsyncioScheduler(Scheduler):
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)

class KeyboardShortcutDispatcher:
    def __init__(
        self,
        shortcuts: Iterable[Shortcut] = (),
        sequences: Iterable[SequenceShortcut] = (),
        scheduler: Optional[Scheduler] = None,
        sequence_timeout: float = SEQUENCE_TIMEOUT,
    ):
        self.shortcuts: List[Shortcut] = list(shortcuts)
        self.sequences: List[SequenceShortcut] = list(sequences)
        self.scheduler = scheduler or AsyncioScheduler()
        self.sequence_timeout = sequence_timeout
        self.sequence_buffer: List[str] = []
        self._timer: Optional[Cancellable] = None
        self._source: Optional[KeyEventSource] = None

    @property
    def active(self) -> bool:
        return self._source is not None

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None

    def start(self, source: KeyEventSource):
        if self._source is source:
            return
        if self._source is not None:
            self.stop()
        source.add_listener(self.handle_key_down)
        self._source = source
        logger.debug(f"Shortcut dispatcher started: {len(self.shortcuts)} shortcuts, {len(self.sequences)} sequences")

    def stop(self):
        if self._source is not None:
            self._source.remove_listener(self.handle_key_down)
            self._source = None
        self._reset_sequence()

    @contextmanager
    def attached(self, source: KeyEventSource) -> Iterator["KeyboardShortcutDispatcher"]:
        self.start(source)
        try:
            yield self
        finally:
            self.stop()

    def handle_key_down(self, event: KeyEvent):
        if not self.active or event.is_text_entry:
            return

        for shortcut in self.shortcuts:
            if shortcut.matches(event):
                event.prevent_default()
                self._invoke(shortcut.action, shortcut.description)
                self._reset_sequence()
                return

        if not self.sequences:
            return

        self.sequence_buffer.append(event.key.lower())
        self._cancel_timer()

        for sequence in self.sequences:
            if sequence.matches_tail(self.sequence_buffer):
                event.prevent_default()
                self._invoke(sequence.action, sequence.description)
                self._reset_sequence()
                return

        self._start_timer()

    def _invoke(self, action: Action, description: str):
        try:
            action()
        except Exception:
            logger.exception(f"Shortcut action failed: {description or action!r}")

    def _start_timer(self):
        try:
            self._timer = self.scheduler.call_later(self.sequence_timeout, self._expire_sequence)
        except RuntimeError as e:
            # No running event loop: the buffer then only resets on a match.
            logger.warning(f"Sequence timeout not scheduled: {e}")
            self._timer = None

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _expire_sequence(self):
        self._timer = None
        self.sequence_buffer = []

    def _reset_sequence(self):
        self.sequence_buffer = []
        self._cancel_timer()
