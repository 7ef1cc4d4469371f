"""Execution of a fuzzing job: queueing, dispatching requests and handling results."""

from __future__ import annotations

import contextlib
import logging
import math
import random
import signal
import threading
import time
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ffuf.autocalibration import CalibrationMixin
from ffuf.history import write_history_entry
from ffuf.interfaces import Progress, ScraperResult
from ffuf.rate import RateThrottle
from ffuf.request import Request, base_request, recursion_request, sniper_requests
from ffuf.util import host_url_from_request, request_contains_keyword

log = logging.getLogger(__name__)


@dataclass
class QueueJob:
    """A queued target: its URL, recursion depth and base request."""

    url: str
    depth: int = 0
    req: Request | None = None


class Job(CalibrationMixin):
    """Ties together the configuration, input, runner and output of a run."""

    def __init__(
        self,
        conf: Any,
        input: Any = None,
        runner: Any = None,
        output: Any = None,
        replay_runner: Any = None,
        scraper: Any = None,
    ) -> None:
        self.config = conf
        self.input = input
        self.runner = runner
        self.replay_runner = replay_runner
        self.scraper = scraper
        self.output = output
        self.jobhash = ""
        self.counter = 0
        self.error_counter = 0
        self.spurious_error_counter = 0
        self.total = 0
        self.running = False
        self.running_job = False
        self.paused = False
        self.count_403 = 0
        self.count_429 = 0
        self.error = ""
        self.rate = RateThrottle(conf)
        self._error_lock = threading.Lock()
        self._calib_lock = threading.Lock()
        self._unpaused = threading.Event()
        self._unpaused.set()
        self._start_time: float | None = None
        self._start_time_job = datetime.now()
        self._start_mono_job: float | None = None
        self._queuejobs: list[QueueJob] = []
        self._queue_pos = 0
        self._skip = False
        self._current_depth = 0

    # counters

    def _inc_error(self) -> None:
        with self._error_lock:
            self.error_counter += 1
            self.spurious_error_counter += 1

    def _inc_403(self) -> None:
        with self._error_lock:
            self.count_403 += 1

    def _inc_429(self) -> None:
        with self._error_lock:
            self.count_429 += 1

    def _reset_spurious_errors(self) -> None:
        with self._error_lock:
            self.spurious_error_counter = 0

    # queue

    def delete_queue_item(self, index: int) -> None:
        """Delete a queued job, counting from the currently running one."""
        del self._queuejobs[self._queue_pos + index - 1]

    def queued_jobs(self) -> list[QueueJob]:
        """Return the current job and those still waiting in the queue."""
        return list(self._queuejobs[max(self._queue_pos - 1, 0):])

    def _jobs_in_queue(self) -> bool:
        return self._queue_pos < len(self._queuejobs)

    def _prepare_queue_job(self) -> None:
        queued = self._queuejobs[self._queue_pos]
        self.config.url = queued.url
        self._current_depth = queued.depth
        found = [
            kw for kw in self.input.keywords() if request_contains_keyword(queued.req, kw)
        ]
        self.input.activate_keywords(found)
        self._queue_pos += 1
        try:
            self.jobhash = write_history_entry(self.config)
        except (OSError, ValueError) as exc:
            log.info("could not write history entry: %s", exc)
            self.jobhash = ""

    # lifecycle

    def start(self) -> None:
        """Run every queued job until the queue is exhausted or the job stops."""
        if self._start_time is None:
            self._start_time = time.monotonic()

        basereq = base_request(self.config)
        if self.config.input_mode == "sniper":
            reqs = sniper_requests(basereq, self.config.input_providers[0].template)
            self._queuejobs.extend(QueueJob(self.config.url, 0, r) for r in reqs)
            self.total = self.input.total() * len(reqs)
        else:
            self._queuejobs.append(QueueJob(self.config.url, 0, base_request(self.config)))
            self.total = self.input.total()

        try:
            self.running = True
            self.running_job = True
            if not self.config.quiet:
                self.output.banner()
            with self._interrupt_monitor():
                while self._jobs_in_queue():
                    self._prepare_queue_job()
                    self.reset(True)
                    self.running_job = True
                    self._start_execution()
                try:
                    self.output.finalize()
                except Exception as exc:
                    self.output.error(str(exc))
        finally:
            self.stop()

    def reset(self, cycle: bool) -> None:
        """Reset the counters and input position for a new job."""
        self.input.reset()
        self.counter = 0
        self._skip = False
        self._start_time_job = datetime.now()
        self._start_mono_job = time.monotonic()
        if cycle:
            self.output.cycle()
        else:
            self.output.reset()

    def skip_queue(self) -> None:
        """Skip the rest of the current job and continue with the next queued one."""
        self._skip = True

    def pause(self) -> None:
        """Pause sending requests."""
        if not self.paused:
            self.paused = True
            self._unpaused.clear()
            self.output.info("------ PAUSING ------")

    def resume(self) -> None:
        """Resume a paused job."""
        if self.paused:
            self.paused = False
            self.output.info("------ RESUMING -----")
            self._unpaused.set()

    def stop(self) -> None:
        """Stop the whole run."""
        self.running = False
        self.config.cancel()

    def next(self) -> None:
        """Stop the current job and move on to the next queued one."""
        self.running_job = False

    @contextlib.contextmanager
    def _interrupt_monitor(self) -> Iterator[None]:
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def handler(signum: int, frame: Any) -> None:
            self.error = "Caught keyboard interrupt (Ctrl-C)\n"
            if self.paused:
                self._unpaused.set()
            self.stop()

        previous = {}
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.getsignal(sig)
            signal.signal(sig, handler)
        try:
            yield
        finally:
            for sig, old in previous.items():
                signal.signal(sig, old if old is not None else signal.SIG_DFL)

    # execution

    def _sleep_if_needed(self) -> None:
        delay = self.config.delay
        if not delay.has_delay:
            return
        if delay.is_range:
            seconds = delay.min + random.random() * (delay.max - delay.min)
        else:
            seconds = delay.min
        millis = int(seconds * 1000)
        if millis > 0:
            self.config.context.wait(millis / 1000)

    def _start_execution(self) -> None:
        background = threading.Thread(target=self._run_background_tasks, daemon=True)
        background.start()

        if self._queue_pos > 1:
            if self.config.input_mode == "sniper":
                self.output.info(
                    f"Starting queued sniper job ({self._queue_pos} of "
                    f"{len(self._queuejobs)}) on target: {self.config.url}"
                )
            else:
                self.output.info(f"Starting queued job on target: {self.config.url}")

        limiter = threading.BoundedSemaphore(max(self.config.threads, 1))
        workers: list[threading.Thread] = []
        warn = False

        while self.input.next() and not self._skip:
            self.check_stop()
            if not self.running:
                warn = True
                break
            self._unpaused.wait()
            limiter.acquire()
            self.rate.wait()
            next_input = dict(self.input.value())
            next_position = self.input.position()
            next_input["FFUFHASH"] = self._ffuf_hash(next_position)
            self.counter += 1

            worker = threading.Thread(
                target=self._worker,
                args=(next_input, next_position, limiter),
                daemon=True,
            )
            workers.append(worker)
            worker.start()
            if not self.running_job:
                self.output.warning(self.error)
                return

        for worker in workers:
            worker.join()
        background.join()
        self._update_progress()
        if warn:
            self.output.warning(self.error)

    def _worker(
        self, inputs: dict[str, bytes], position: int, limiter: threading.BoundedSemaphore
    ) -> None:
        try:
            started = time.time()
            self._run_task(inputs, position)
            self._sleep_if_needed()
            self.rate.tick(started, time.time())
        finally:
            limiter.release()

    def _run_background_tasks(self) -> None:
        total = self.input.total()
        while self.counter <= total and not self._skip:
            self._unpaused.wait()
            if not self.running:
                break
            self._update_progress()
            if self.counter == total or not self.running_job:
                return
            time.sleep(self.config.progress_frequency / 1000)

    def _update_progress(self) -> None:
        self.output.progress(
            Progress(
                started_at=self._start_time_job,
                req_count=self.counter,
                req_total=self.input.total(),
                req_sec=self.rate.current_rate(),
                queue_pos=self._queue_pos,
                queue_total=len(self._queuejobs),
                error_count=self.error_counter,
            )
        )

    def is_match(self, resp: Any) -> bool:
        """Return True if the response passes the matchers and is not filtered."""
        manager = self.config.matcher_manager
        if self.config.autocalibration_per_host:
            filters = manager.filters_for_domain(host_url_from_request(resp.request))
        else:
            filters = manager.get_filters()

        matched = False
        for matcher in manager.get_matchers().values():
            try:
                hit = matcher.filter(resp)
            except ValueError:
                continue
            if hit:
                matched = True
            elif self.config.matcher_mode == "and":
                return False
        if not matched:
            return False

        for flt in filters.values():
            try:
                hit = flt.filter(resp)
            except ValueError:
                continue
            if hit:
                if self.config.filter_mode == "or":
                    return False
            elif self.config.filter_mode == "and":
                return True
        if filters and self.config.filter_mode == "and":
            return False
        return True

    def _ffuf_hash(self, pos: int) -> bytes:
        prefix = self.jobhash[:5] if len(self.jobhash) > 5 else ""
        return f"{prefix}{pos:x}".encode()

    def _run_task(self, inputs: dict[str, bytes], position: int, retried: bool = False) -> None:
        basereq = self._queuejobs[self._queue_pos - 1].req
        try:
            req = self.runner.prepare(inputs, basereq)
        except Exception as exc:
            self.output.error(f"Encountered an error while preparing request: {exc}\n")
            self._inc_error()
            log.info("%s", exc)
            return
        req.position = position

        try:
            resp = self.runner.execute(req)
        except Exception as exc:
            if retried:
                self._inc_error()
                log.info("%s", exc)
            else:
                self._run_task(inputs, position, True)
            return

        if self.spurious_error_counter > 0:
            self._reset_spurious_errors()
        if (self.config.stop_on_403 or self.config.stop_on_all) and resp.status_code == 403:
            self._inc_403()
        if self.config.stop_on_all and resp.status_code == 429:
            self._inc_429()
        self._unpaused.wait()

        # Calibration must follow the real request so the request host is known.
        with contextlib.suppress(ValueError):
            self.calibrate_if_needed(host_url_from_request(req), inputs)

        if self.scraper is not None:
            for sres in self.scraper.execute(resp, self.is_match(resp)):
                resp.scraper_data[sres.name] = sres.results
                self._handle_scraper_result(resp, sres)

        if self.is_match(resp):
            if self.replay_runner is not None:
                try:
                    replayreq = self.replay_runner.prepare(inputs, basereq)
                except Exception as exc:
                    self.output.error(
                        f"Encountered an error while preparing replayproxy request: {exc}\n"
                    )
                    self._inc_error()
                    log.info("%s", exc)
                else:
                    replayreq.position = position
                    with contextlib.suppress(Exception):
                        self.replay_runner.execute(replayreq)
            self.output.result(resp)
            self._update_progress()
            if self.config.recursion and self.config.recursion_strategy == "greedy":
                self._handle_greedy_recursion_job(resp)
        elif resp.scraper_data:
            self.output.result(resp)

        if (
            self.config.recursion
            and self.config.recursion_strategy == "default"
            and resp.get_redirect_location(False)
        ):
            self._handle_default_recursion_job(resp)

    def _handle_scraper_result(self, resp: Any, sres: ScraperResult) -> None:
        for action in sres.action:
            if action == "output":
                resp.scraper_data[sres.name] = sres.results

    def _depth_allows(self) -> bool:
        depth = self.config.recursion_depth
        return depth == 0 or self._current_depth < depth

    def _queue_recursion(self, rec_url: str) -> None:
        self._queuejobs.append(
            QueueJob(
                rec_url, self._current_depth + 1, recursion_request(self.config, rec_url)
            )
        )
        self.output.info(f"Adding a new job to the queue: {rec_url}")

    def _handle_greedy_recursion_job(self, resp: Any) -> None:
        if self._depth_allows():
            self._queue_recursion(resp.request.url + "/FUZZ")
        else:
            self.output.warning(
                f"Maximum recursion depth reached. Ignoring: {resp.request.url}"
            )

    def _handle_default_recursion_job(self, resp: Any) -> None:
        rec_url = resp.request.url + "/FUZZ"
        if resp.request.url + "/" != resp.get_redirect_location(True):
            return
        if self._depth_allows():
            self._queue_recursion(rec_url)
        else:
            self.output.warning(
                "Directory found, but recursion depth exceeded. Ignoring: "
                f"{resp.get_redirect_location(True)}"
            )

    def check_stop(self) -> None:
        """Stop the run, or the current job, if a stopping condition is met."""
        conf = self.config
        if self.counter > 50:
            if conf.stop_on_403 or conf.stop_on_all:
                if self.count_403 / self.counter > 0.95:
                    self.error = "Getting an unusual amount of 403 responses, exiting."
                    self.stop()
            if conf.stop_on_errors or conf.stop_on_all:
                if self.spurious_error_counter > conf.threads * 2:
                    self.error = "Receiving spurious errors, exiting."
                    self.stop()
            if conf.stop_on_all and self.count_429 / self.counter > 0.2:
                self.error = "Getting an unusual amount of 429 responses, exiting."
                self.stop()

        if conf.max_time > 0:
            if _elapsed_seconds(self._start_time) >= conf.max_time:
                self.error = "Maximum running time for entire process reached, exiting."
                self.stop()

        if conf.max_time_job > 0:
            if _elapsed_seconds(self._start_mono_job) >= conf.max_time_job:
                self.error = (
                    "Maximum running time for this job reached, "
                    "continuing with next job if one exists."
                )
                self.next()


def _elapsed_seconds(started: float | None) -> float:
    if started is None:
        return math.inf
    return float(int(time.monotonic() - started))