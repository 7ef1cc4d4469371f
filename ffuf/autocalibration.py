"""Automatic calibration of response filters."""

from __future__ import annotations

import contextlib
import logging
from typing import Any

from ffuf.request import base_request
from ffuf.util import host_url_from_request, random_string

log = logging.getLogger(__name__)

_CALIBRATION_FIELDS = (
    ("content_length", "size"),
    ("content_words", "word"),
    ("content_lines", "line"),
)


class CalibrationMixin:
    """Autocalibration behaviour for a job.

    The host class provides ``config``, ``runner``, ``output``,
    ``is_match(resp)``, ``_inc_error()`` and a ``_calib_lock`` lock.
    """

    config: Any
    runner: Any
    output: Any

    def autocalibration_strings(self) -> dict[str, list[str]]:
        """Return the calibration inputs grouped by purpose."""
        custom = self.config.autocalibration_strings
        if custom:
            return {"custom": list(custom)}
        inputs = {
            "basic_admin": ["admin" + random_string(16), "admin" + random_string(8)],
            "htaccess": [".htaccess" + random_string(16), ".htaccess" + random_string(8)],
            "basic_random": [random_string(16), random_string(8)],
        }
        if self.config.autocalibration_strategy == "advanced":
            inputs["admin_dir"] = [
                "admin" + random_string(16) + "/",
                "admin" + random_string(8) + "/",
            ]
            inputs["random_dir"] = [random_string(16) + "/", random_string(8) + "/"]
        return inputs

    def _calibration_response(self, inputs: dict[str, bytes]) -> Any | None:
        """Send one calibration request; return its response if it would match."""
        basereq = base_request(self.config)
        try:
            req = self.runner.prepare(inputs, basereq)
        except Exception as exc:
            self.output.error(
                f"Encountered an error while preparing autocalibration request: {exc}\n"
            )
            self._inc_error()
            log.info("%s", exc)
            return None
        try:
            resp = self.runner.execute(req)
        except Exception as exc:
            self.output.error(
                f"Encountered an error while executing autocalibration request: {exc}\n"
            )
            self._inc_error()
            log.info("%s", exc)
            return None
        # Only calibrate on responses that would otherwise be matched.
        return resp if self.is_match(resp) else None

    def calibrate_for_host(self, host: str, baseinput: dict[str, bytes]) -> None:
        """Calibrate the filters of one host; raise ``ValueError`` if the keyword is missing."""
        manager = self.config.matcher_manager
        if manager.calibrated_for_domain(host):
            return
        keyword = self.config.autocalibration_keyword
        if baseinput.get(keyword) is None:
            raise ValueError(
                f'Autocalibration keyword "{keyword}" not found in the request.'
            )
        inputs = dict(baseinput)
        for strings in self.autocalibration_strings().values():
            responses = []
            for candidate in strings:
                inputs[keyword] = candidate.encode()
                resp = self._calibration_response(inputs)
                if resp is None:
                    continue
                responses.append(resp)
                try:
                    self._calibrate_filters(responses, per_host=True)
                except ValueError as exc:
                    self.output.error(str(exc))
        manager.set_calibrated_for_host(host, True)

    def calibrate(self, input: dict[str, bytes]) -> None:
        """Calibrate the global filters from random calibration requests."""
        manager = self.config.matcher_manager
        if manager.calibrated():
            return
        keyword = self.config.autocalibration_keyword
        inputs = dict(input)
        for strings in self.autocalibration_strings().values():
            responses = []
            for candidate in strings:
                inputs[keyword] = candidate.encode()
                resp = self._calibration_response(inputs)
                if resp is not None:
                    responses.append(resp)
            with contextlib.suppress(ValueError):
                self._calibrate_filters(responses, per_host=False)
        manager.set_calibrated(True)

    def calibrate_if_needed(self, host: str, input: dict[str, bytes]) -> None:
        """Run autocalibration if it is enabled and has not been done yet."""
        with self._calib_lock:
            if not self.config.autocalibration:
                return
            if self.config.autocalibration_per_host:
                self.calibrate_for_host(host, input)
            else:
                self.calibrate(input)

    def _calibrate_filters(self, responses: list[Any], per_host: bool) -> None:
        """Add a filter for the most specific value the responses share."""
        manager = self.config.matcher_manager
        if responses:
            first = responses[0]
            for attr, name in _CALIBRATION_FIELDS:
                baseline = getattr(first, attr)
                if any(getattr(r, attr) != baseline for r in responses):
                    continue
                if per_host:
                    domain = host_url_from_request(first.request)
                    existing = manager.filters_for_domain(domain)
                else:
                    existing = manager.get_filters()
                if any(_filters(f, first) for f in existing.values()):
                    return
                with contextlib.suppress(ValueError):
                    if per_host:
                        manager.add_per_domain_filter(domain, name, str(baseline))
                    else:
                        manager.add_filter(name, str(baseline), False)
                return
        raise ValueError("No common filtering values found")


def _filters(flt: Any, response: Any) -> bool:
    try:
        return bool(flt.filter(response))
    except ValueError:
        return False