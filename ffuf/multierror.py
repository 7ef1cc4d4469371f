"""Collect several errors and report them as one."""

from __future__ import annotations


class AggregateError(Exception):
    """An error that wraps a list of underlying errors."""

    def __init__(self, errors: list[BaseException]) -> None:
        self.errors = list(errors)
        lines = [f"{len(self.errors)} errors occured.\n"]
        lines.extend(f"\t* {err}\n" for err in self.errors)
        super().__init__("".join(lines))

    def __len__(self) -> int:
        return len(self.errors)


class Multierror:
    """Accumulates errors so they can be reported together."""

    def __init__(self) -> None:
        self._errors: list[BaseException] = []

    @property
    def errors(self) -> list[BaseException]:
        return list(self._errors)

    def add(self, err: BaseException | str) -> None:
        """Record an error; plain strings are wrapped in ``ValueError``."""
        if isinstance(err, str):
            err = ValueError(err)
        self._errors.append(err)

    def error_or_none(self) -> AggregateError | None:
        """Return an ``AggregateError`` of everything recorded, or ``None``."""
        if not self._errors:
            return None
        return AggregateError(self._errors)

    def raise_for_errors(self) -> None:
        """Raise an ``AggregateError`` if any errors were recorded."""
        error = self.error_or_none()
        if error is not None:
            raise error

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)