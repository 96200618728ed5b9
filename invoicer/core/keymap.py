from typing import Any, Callable, Dict, List, Optional, Tuple

from invoicer.core.config import settings
from invoicer.core.shortcuts import (
    KeyboardShortcutDispatcher,
    Modifier,
    Scheduler,
    SequenceShortcut,
    Shortcut,
)

# Application key bindings. Actions do not touch the page themselves; they emit
# UI commands that the browser carries out.

UiCommand = Dict[str, Any]
Emit = Callable[[UiCommand], None]

MODIFIER_LABELS = {
    Modifier.CTRL: "Ctrl",
    Modifier.META: "Meta",
    Modifier.ALT: "Alt",
    Modifier.SHIFT: "Shift",
}

def navigate(emit: Emit, href: str) -> Callable[[], None]:
    return lambda: emit({"type": "navigate", "href": href})

def build_default_bindings(emit: Emit) -> Tuple[List[Shortcut], List[SequenceShortcut]]:
    shortcuts = [
        Shortcut(key="n", action=navigate(emit, "/invoices/new"), description="New invoice"),
        # "?" is typed with shift held on most layouts
        Shortcut(
            key="?",
            modifier=Modifier.SHIFT,
            action=lambda: emit({"type": "open_dialog", "dialog": "shortcuts"}),
            description="Show keyboard shortcuts",
        ),
        Shortcut(
            key="k",
            modifier=Modifier.CTRL,
            action=lambda: emit({"type": "toggle_palette"}),
            description="Open command palette",
        ),
        Shortcut(
            key="k",
            modifier=Modifier.META,
            action=lambda: emit({"type": "toggle_palette"}),
            description="Open command palette",
        ),
    ]
    sequences = [
        SequenceShortcut(keys=["g", "i"], action=navigate(emit, "/invoices"), description="Go to invoices"),
        SequenceShortcut(keys=["g", "s"], action=navigate(emit, "/settings"), description="Go to settings"),
    ]
    return shortcuts, sequences

def build_default_dispatcher(
    emit: Emit,
    scheduler: Optional[Scheduler] = None,
    sequence_timeout: Optional[float] = None,
) -> KeyboardShortcutDispatcher:
    shortcuts, sequences = build_default_bindings(emit)
    if sequence_timeout is None:
        sequence_timeout = settings.SHORTCUT_SEQUENCE_TIMEOUT_MS / 1000
    return KeyboardShortcutDispatcher(
        shortcuts=shortcuts,
        sequences=sequences,
        scheduler=scheduler,
        sequence_timeout=sequence_timeout,
    )

def _key_label(key: str) -> str:
    return key.upper() if len(key) == 1 else key

def shortcut_help() -> List[Dict[str, Any]]:
    """Key labels and descriptions for the shortcut help dialog."""
    shortcuts, sequences = build_default_bindings(lambda command: None)
    entries = []
    for shortcut in shortcuts:
        keys = [_key_label(shortcut.key)]
        # "?" already implies shift
        if shortcut.modifier not in (Modifier.NONE, Modifier.SHIFT):
            keys.insert(0, MODIFIER_LABELS[shortcut.modifier])
        entries.append({"keys": keys, "description": shortcut.description})
    for sequence in sequences:
        entries.append({"keys": [_key_label(k) for k in sequence.keys], "description": sequence.description})
    return entries
