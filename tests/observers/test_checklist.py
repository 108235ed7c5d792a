import io
import json
import logging

from hostprep.observers.console import ChecklistReporter
from hostprep.observers.dispatcher import EventBus
from hostprep.observers.events import RunFinished, RunStarted, StepFinished, StepStarted, new_ctx
from hostprep.observers.jsonfile import JsonFileObserver, latest_report
from hostprep.observers.logger import LoggerObserver

CTX = new_ctx("run-1")


def _results():
    return [
        {"step_id": "install-packages", "status": "success", "detail": "curl", "description": "Install packages"},
        {"step_id": "sync-hardening-config", "status": "failure", "detail": "fetch failed: timeout",
         "description": "Harden OpenSSH"},
        {"step_id": "restart-ssh", "status": "skipped", "detail": "blocked by sync-hardening-config",
         "description": "Restart sshd"},
    ]


def test_checklist_rewrites_running_line_with_result():
    out = io.StringIO()
    r = ChecklistReporter(stream=out)
    r.notify(RunStarted(**CTX, steps=["install-packages"]))
    r.notify(StepStarted(**CTX, step_id="install-packages", description="Install packages"))
    r.notify(StepFinished(**CTX, step_id="install-packages", description="Install packages",
                          status="success", detail="curl", duration_ms=12))

    text = out.getvalue()
    assert " [ ] Install packages... " in text
    assert "\r [✔] Install packages: curl\n" in text


def test_final_report_lists_every_result_in_order():
    out = io.StringIO()
    ChecklistReporter(stream=out).notify(RunFinished(
        **CTX, outcome="completed", reason=None, results=_results(), succeeded=1, failed=1, skipped=1,
    ))
    lines = out.getvalue().splitlines()
    marked = [ln for ln in lines if ln.startswith(" [")]
    assert marked == [
        " [✔] Install packages: curl",
        " [✖] Harden OpenSSH: fetch failed: timeout",
        " [-] Restart sshd: blocked by sync-hardening-config",
    ]
    assert lines[-1] == "Outcome: completed (ok=1 failed=1 skipped=1)"


def test_final_report_names_abort_reason():
    out = io.StringIO()
    ChecklistReporter(stream=out).notify(RunFinished(
        **CTX, outcome="aborted", reason="step-failure(preflight)", results=[],
        succeeded=0, failed=1, skipped=0,
    ))
    assert "Outcome: aborted: step-failure(preflight)" in out.getvalue()


def test_json_file_observer_writes_one_line_per_event(tmp_path):
    path = tmp_path / "logs" / "run-1.jsonl"
    obs = JsonFileObserver(path)
    obs.notify(RunStarted(**CTX, steps=["a", "b"]))
    obs.notify(StepStarted(**CTX, step_id="a", description="A"))

    records = [json.loads(ln) for ln in path.read_text().splitlines()]
    assert [r["type"] for r in records] == ["RunStarted", "StepStarted"]
    assert records[0]["steps"] == ["a", "b"]
    assert all(r["run_id"] == "run-1" for r in records)


class Exploding:
    def notify(self, event):
        raise RuntimeError("boom")


class Capture:
    def __init__(self): self.events = []
    def notify(self, event): self.events.append(event)


def test_failing_observer_does_not_stop_others(caplog):
    capture = Capture()
    bus = EventBus([Exploding(), capture])
    ev = RunStarted(**CTX, steps=[])

    with caplog.at_level(logging.ERROR, logger="hostprep"):
        bus.emit(ev)

    assert capture.events == [ev]
    assert "Exploding" in caplog.text


def test_json_file_observer_writes_final_report(tmp_path):
    path = tmp_path / "run-1.jsonl"
    obs = JsonFileObserver(path)
    obs.notify(RunFinished(
        **CTX, outcome="aborted", reason="step-failure(preflight)", results=_results()[:1],
        succeeded=1, failed=0, skipped=0,
    ))

    report = json.loads((tmp_path / "run-1.report.json").read_text())
    assert report["outcome"] == "aborted"
    assert report["reason"] == "step-failure(preflight)"
    assert report["counts"] == {"ok": 1, "failed": 0, "skipped": 0}
    assert report["results"][0]["step_id"] == "install-packages"
    assert latest_report(tmp_path) == report


def _levels(caplog):
    return [(r.levelno, r.getMessage()) for r in caplog.records]


def test_logger_observer_levels_follow_step_status(caplog):
    logger = logging.getLogger("hostprep.test")
    obs = LoggerObserver(logger)
    with caplog.at_level(logging.DEBUG, logger="hostprep.test"):
        for status in ("success", "skipped", "failure"):
            obs.notify(StepFinished(**CTX, step_id="a", description="A", status=status,
                                    detail="why", duration_ms=3))

    levels = [lvl for lvl, _ in _levels(caplog)]
    assert levels == [logging.INFO, logging.WARNING, logging.ERROR]
    assert "[step a] failure after 3ms: why" in caplog.text


def test_logger_observer_aborted_run_is_an_error(caplog):
    logger = logging.getLogger("hostprep.test")
    with caplog.at_level(logging.DEBUG, logger="hostprep.test"):
        LoggerObserver(logger).notify(RunFinished(
            **CTX, outcome="aborted", reason="step-failure(preflight)", results=[],
            succeeded=0, failed=1, skipped=0,
        ))
        LoggerObserver(logger).notify(RunFinished(
            **CTX, outcome="completed", reason=None, results=[], succeeded=3, failed=1, skipped=0,
        ))

    (lvl_abort, msg_abort), (lvl_done, _) = _levels(caplog)
    assert lvl_abort == logging.ERROR
    assert "aborted: step-failure(preflight)" in msg_abort
    assert lvl_done == logging.WARNING
