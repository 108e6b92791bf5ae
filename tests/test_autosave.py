"""
Auto-save tests - debounce, create-then-update and error status.
"""
import time

from proposal_tool.services.autosave import ERROR, IDLE, SAVED, AutoSaver


class Recorder:
    def __init__(self, fail=False):
        self.created = []
        self.updated = []
        self.fail = fail

    def create(self, payload):
        if self.fail:
            raise RuntimeError("database is locked")
        self.created.append(payload)
        return 17

    def update(self, proposal_id, payload):
        self.updated.append((proposal_id, payload))


def test_flush_without_pending_is_noop():
    recorder = Recorder()
    saver = AutoSaver(recorder.create, recorder.update)

    assert saver.flush() is False
    assert saver.status == IDLE


def test_first_save_creates_then_updates():
    recorder = Recorder()
    saver = AutoSaver(recorder.create, recorder.update, debounce_seconds=60)

    saver.schedule({"buyer_last_name": "Smith"})
    assert saver.has_pending
    assert saver.flush() is True
    assert saver.proposal_id == 17
    assert saver.status == SAVED

    saver.schedule({"buyer_last_name": "Smithe"})
    saver.flush()
    assert recorder.created == [{"buyer_last_name": "Smith"}]
    assert recorder.updated == [(17, {"buyer_last_name": "Smithe"})]
    assert saver.save_count == 2


def test_debounce_writes_latest_payload_once():
    recorder = Recorder()
    saver = AutoSaver(recorder.create, recorder.update, debounce_seconds=0.05, proposal_id=3)

    for name in ("S", "Sm", "Smi", "Smith"):
        saver.schedule({"buyer_last_name": name})

    deadline = time.time() + 2
    while saver.has_pending and time.time() < deadline:
        time.sleep(0.01)
    time.sleep(0.05)

    assert recorder.updated == [(3, {"buyer_last_name": "Smith"})]
    assert recorder.created == []


def test_cancel_drops_pending():
    recorder = Recorder()
    saver = AutoSaver(recorder.create, recorder.update, debounce_seconds=60)

    saver.schedule({"buyer_last_name": "Smith"})
    saver.cancel()

    assert not saver.has_pending
    assert saver.flush() is False
    assert recorder.created == []


def test_error_status():
    recorder = Recorder(fail=True)
    saver = AutoSaver(recorder.create, recorder.update, debounce_seconds=60)

    saver.schedule({"buyer_last_name": "Smith"})
    assert saver.flush() is False
    assert saver.status == ERROR
    assert saver.error_message == "database is locked"
    assert saver.proposal_id is None


def test_reset_status():
    recorder = Recorder()
    saver = AutoSaver(recorder.create, recorder.update, debounce_seconds=60)
    saver.schedule({"a": 1})
    saver.flush()

    saver.reset_status()
    assert saver.status == IDLE


def test_superseded_timer_does_not_write():
    recorder = Recorder()
    saver = AutoSaver(recorder.create, recorder.update, debounce_seconds=60, proposal_id=3)

    saver.schedule({"buyer_last_name": "Smith"})
    stale = saver._timer
    saver.schedule({"buyer_last_name": "Smithe"})

    # The first timer fires late, after the second schedule restarted the quiet period
    stale.function(*stale.args)

    assert recorder.updated == []
    assert saver.has_pending
    saver.cancel()
