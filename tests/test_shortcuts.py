import asyncio

import pytest

from invoicer.core.shortcuts import (
    KeyboardShortcutDispatcher,
    KeyEvent,
    KeyEventSource,
    Modifier,
    SequenceShortcut,
    Shortcut,
)

class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, name):
        return lambda: self.calls.append(name)

@pytest.fixture
def recorder():
    return Recorder()

@pytest.fixture
def source():
    return KeyEventSource()

def make_dispatcher(recorder, scheduler, source, shortcuts=(), sequences=()):
    dispatcher = KeyboardShortcutDispatcher(
        shortcuts=shortcuts, sequences=sequences, scheduler=scheduler, sequence_timeout=1.0
    )
    dispatcher.start(source)
    return dispatcher

def key(value, **kwargs):
    return KeyEvent(key=value, **kwargs)

def test_single_key_fires_and_prevents_default(recorder, scheduler, source):
    make_dispatcher(recorder, scheduler, source, shortcuts=[Shortcut(key="n", action=recorder("new"))])
    event = source.dispatch(key("n"))
    assert recorder.calls == ["new"]
    assert event.default_prevented

def test_key_match_is_case_insensitive(recorder, scheduler, source):
    make_dispatcher(recorder, scheduler, source, shortcuts=[Shortcut(key="n", action=recorder("new"))])
    source.dispatch(key("N"))
    assert recorder.calls == ["new"]

def test_unbound_key_does_nothing(recorder, scheduler, source):
    make_dispatcher(recorder, scheduler, source, shortcuts=[Shortcut(key="n", action=recorder("new"))])
    event = source.dispatch(key("x"))
    assert recorder.calls == []
    assert not event.default_prevented

def test_modifier_required(recorder, scheduler, source):
    shortcut = Shortcut(key="k", modifier=Modifier.CTRL, action=recorder("palette"))
    make_dispatcher(recorder, scheduler, source, shortcuts=[shortcut])

    plain = source.dispatch(key("k"))
    assert recorder.calls == []
    assert not plain.default_prevented

    held = source.dispatch(key("k", ctrl=True))
    assert recorder.calls == ["palette"]
    assert held.default_prevented

def test_declared_modifier_ignores_other_modifiers(recorder, scheduler, source):
    shortcut = Shortcut(key="k", modifier=Modifier.CTRL, action=recorder("palette"))
    make_dispatcher(recorder, scheduler, source, shortcuts=[shortcut])
    source.dispatch(key("k", ctrl=True, shift=True))
    assert recorder.calls == ["palette"]

def test_unmodified_shortcut_skipped_when_modifier_held(recorder, scheduler, source):
    make_dispatcher(recorder, scheduler, source, shortcuts=[Shortcut(key="n", action=recorder("new"))])
    source.dispatch(key("n", meta=True))
    assert recorder.calls == []

def test_browser_field_names_accepted():
    event = KeyEvent.model_validate({"key": "k", "metaKey": True, "targetTag": "INPUT"})
    assert event.meta
    assert event.is_held(Modifier.META)
    assert event.is_text_entry

@pytest.mark.parametrize("target", [
    {"target_tag": "input"},
    {"target_tag": "TEXTAREA"},
    {"content_editable": True},
])
def test_text_entry_targets_are_ignored(recorder, scheduler, source, target):
    dispatcher = make_dispatcher(
        recorder, scheduler, source,
        shortcuts=[Shortcut(key="n", action=recorder("new"))],
        sequences=[SequenceShortcut(keys=["g", "i"], action=recorder("invoices"))],
    )
    source.dispatch(key("g", **target))
    event = source.dispatch(key("n", **target))
    assert recorder.calls == []
    assert not event.default_prevented
    assert dispatcher.sequence_buffer == []

def test_select_element_is_not_text_entry(recorder, scheduler, source):
    make_dispatcher(recorder, scheduler, source, shortcuts=[Shortcut(key="n", action=recorder("new"))])
    source.dispatch(key("n", target_tag="select"))
    assert recorder.calls == ["new"]

def test_sequence_fires_on_second_key(recorder, scheduler, source):
    dispatcher = make_dispatcher(
        recorder, scheduler, source,
        sequences=[SequenceShortcut(keys=["g", "i"], action=recorder("invoices"))],
    )
    first = source.dispatch(key("g"))
    assert recorder.calls == []
    assert not first.default_prevented
    assert dispatcher.sequence_buffer == ["g"]
    assert dispatcher.timer_pending

    second = source.dispatch(key("i"))
    assert recorder.calls == ["invoices"]
    assert second.default_prevented
    assert dispatcher.sequence_buffer == []
    assert not dispatcher.timer_pending
    assert scheduler.pending == []

def test_sequence_expires_after_timeout(recorder, scheduler, source):
    dispatcher = make_dispatcher(
        recorder, scheduler, source,
        sequences=[SequenceShortcut(keys=["g", "i"], action=recorder("invoices"))],
    )
    source.dispatch(key("g"))
    scheduler.advance(1.0)
    assert dispatcher.sequence_buffer == []
    assert not dispatcher.timer_pending

    source.dispatch(key("i"))
    assert recorder.calls == []

def test_each_key_restarts_the_timer(recorder, scheduler, source):
    dispatcher = make_dispatcher(
        recorder, scheduler, source,
        sequences=[SequenceShortcut(keys=["g", "g", "i"], action=recorder("deep"))],
    )
    source.dispatch(key("g"))
    scheduler.advance(0.8)
    source.dispatch(key("g"))
    scheduler.advance(0.8)
    assert dispatcher.sequence_buffer == ["g", "g"]
    assert len(scheduler.pending) == 1

    source.dispatch(key("i"))
    assert recorder.calls == ["deep"]

def test_sequence_matches_buffer_tail(recorder, scheduler, source):
    make_dispatcher(
        recorder, scheduler, source,
        sequences=[SequenceShortcut(keys=["g", "i"], action=recorder("invoices"))],
    )
    for value in ("x", "y", "g", "i"):
        source.dispatch(key(value))
    assert recorder.calls == ["invoices"]

def test_first_registered_sequence_wins(recorder, scheduler, source):
    make_dispatcher(
        recorder, scheduler, source,
        sequences=[
            SequenceShortcut(keys=["g", "i"], action=recorder("first")),
            SequenceShortcut(keys=["g", "i"], action=recorder("second")),
        ],
    )
    source.dispatch(key("g"))
    source.dispatch(key("i"))
    assert recorder.calls == ["first"]

def test_single_shortcut_takes_precedence_and_clears_buffer(recorder, scheduler, source):
    dispatcher = make_dispatcher(
        recorder, scheduler, source,
        shortcuts=[Shortcut(key="n", action=recorder("new"))],
        sequences=[SequenceShortcut(keys=["n", "i"], action=recorder("sequence"))],
    )
    source.dispatch(key("g"))
    assert dispatcher.sequence_buffer == ["g"]

    source.dispatch(key("n"))
    assert recorder.calls == ["new"]
    assert dispatcher.sequence_buffer == []
    assert not dispatcher.timer_pending

    source.dispatch(key("i"))
    assert recorder.calls == ["new"]

def test_no_sequences_means_no_buffering(recorder, scheduler, source):
    dispatcher = make_dispatcher(recorder, scheduler, source, shortcuts=[Shortcut(key="n", action=recorder("new"))])
    source.dispatch(key("g"))
    assert dispatcher.sequence_buffer == []
    assert scheduler.pending == []

def test_empty_sequence_never_matches(recorder, scheduler, source):
    make_dispatcher(recorder, scheduler, source, sequences=[SequenceShortcut(keys=[], action=recorder("empty"))])
    source.dispatch(key("g"))
    assert recorder.calls == []

def test_empty_key_never_matches(recorder, scheduler, source):
    make_dispatcher(
        recorder, scheduler, source,
        shortcuts=[Shortcut(key="", action=recorder("blank"))],
        sequences=[SequenceShortcut(keys=["g", ""], action=recorder("blank-sequence"))],
    )
    for value in ("", "g", ""):
        event = source.dispatch(key(value))
        assert not event.default_prevented
    assert recorder.calls == []

def test_stop_detaches_and_resets(recorder, scheduler, source):
    dispatcher = make_dispatcher(
        recorder, scheduler, source,
        shortcuts=[Shortcut(key="n", action=recorder("new"))],
        sequences=[SequenceShortcut(keys=["g", "i"], action=recorder("invoices"))],
    )
    source.dispatch(key("g"))
    dispatcher.stop()

    assert not dispatcher.active
    assert source.listener_count == 0
    assert dispatcher.sequence_buffer == []
    assert scheduler.pending == []

    source.dispatch(key("n"))
    assert recorder.calls == []

def test_start_twice_registers_one_listener(recorder, scheduler, source):
    dispatcher = make_dispatcher(recorder, scheduler, source)
    dispatcher.start(source)
    assert source.listener_count == 1

def test_attached_context_manager(recorder, scheduler, source):
    dispatcher = KeyboardShortcutDispatcher(
        shortcuts=[Shortcut(key="n", action=recorder("new"))], scheduler=scheduler
    )
    with dispatcher.attached(source):
        assert dispatcher.active
        source.dispatch(key("n"))
    assert not dispatcher.active
    assert source.listener_count == 0
    assert recorder.calls == ["new"]

def test_inactive_dispatcher_ignores_direct_calls(recorder, scheduler):
    dispatcher = KeyboardShortcutDispatcher(
        shortcuts=[Shortcut(key="n", action=recorder("new"))], scheduler=scheduler
    )
    dispatcher.handle_key_down(key("n"))
    assert recorder.calls == []

def test_failing_action_is_logged_not_raised(recorder, scheduler, source, caplog):
    def boom():
        raise RuntimeError("boom")

    make_dispatcher(
        recorder, scheduler, source,
        shortcuts=[Shortcut(key="n", action=boom, description="Explodes")],
    )
    event = source.dispatch(key("n"))
    assert event.default_prevented
    assert "Explodes" in caplog.text

def test_no_running_loop_does_not_raise(recorder, source):
    dispatcher = KeyboardShortcutDispatcher(
        sequences=[SequenceShortcut(keys=["g", "i"], action=recorder("invoices"))]
    )
    dispatcher.start(source)
    source.dispatch(key("g"))
    assert not dispatcher.timer_pending
    source.dispatch(key("i"))
    assert recorder.calls == ["invoices"]

def test_asyncio_scheduler_expires_sequence(recorder):
    async def scenario():
        source = KeyEventSource()
        dispatcher = KeyboardShortcutDispatcher(
            sequences=[SequenceShortcut(keys=["g", "i"], action=recorder("invoices"))],
            sequence_timeout=0.05,
        )
        with dispatcher.attached(source):
            source.dispatch(key("g"))
            assert dispatcher.timer_pending
            await asyncio.sleep(0.1)
            assert dispatcher.sequence_buffer == []
            source.dispatch(key("i"))

    asyncio.run(scenario())
    assert recorder.calls == []
