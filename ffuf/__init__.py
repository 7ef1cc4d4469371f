"""Web fuzzer engine: option checking, request templating, matching, job control and history."""

__version__ = "2.0.0"