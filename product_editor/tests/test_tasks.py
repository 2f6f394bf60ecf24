import time

from product_editor.tasks import ThreadedTaskRunner
from test_support import require


class FakeScheduler:
    """Collects ``after`` callbacks so a test can pump them like a main loop."""

    def __init__(self):
        self.pending = []
        self.delays = []

    def __call__(self, delay, callback):
        self.delays.append(delay)
        self.pending.append(callback)

    def pump_until(self, condition, timeout=5.0):
        deadline = time.monotonic() + timeout
        while not condition() and time.monotonic() < deadline:
            if self.pending:
                self.pending.pop(0)()
            time.sleep(0.01)


def test_results_are_delivered_through_schedule():
    scheduler = FakeScheduler()
    runner = ThreadedTaskRunner(scheduler, poll_interval=20)
    results, errors = [], []

    runner.submit(lambda: 42, results.append, errors.append)
    require(scheduler.delays == [20], "Expected polling to start on submit")
    scheduler.pump_until(lambda: results)

    require(results == [42] and errors == [], "Expected success callback with the result")


def test_errors_are_delivered_to_error_callback():
    scheduler = FakeScheduler()
    runner = ThreadedTaskRunner(scheduler)
    errors = []

    def boom():
        raise RuntimeError("offline")

    runner.submit(boom, lambda _result: None, errors.append)
    scheduler.pump_until(lambda: errors)

    require(len(errors) == 1 and str(errors[0]) == "offline", "Expected the raised exception")


def test_polling_stops_when_idle():
    scheduler = FakeScheduler()
    runner = ThreadedTaskRunner(scheduler)
    results = []

    runner.submit(lambda: 1, results.append, results.append)
    scheduler.pump_until(lambda: results)
    while scheduler.pending:
        scheduler.pending.pop(0)()

    require(scheduler.pending == [], "Expected no further polling once all tasks finished")

    runner.submit(lambda: 2, results.append, results.append)
    require(len(scheduler.pending) == 1, "Expected polling to restart for a new task")
    scheduler.pump_until(lambda: len(results) == 2)
    require(results == [1, 2], "Expected both results")


def test_failing_callback_does_not_stop_other_results():
    scheduler = FakeScheduler()
    runner = ThreadedTaskRunner(scheduler)
    results = []

    def broken(_result):
        raise ValueError("bad callback")

    runner.submit(lambda: 1, broken, results.append)
    runner.submit(lambda: 2, results.append, results.append)
    scheduler.pump_until(lambda: results)

    require(results == [2], "Expected second result despite the failing callback")
