from __future__ import annotations


class TicklineError(Exception):
    pass


class AxisConfigError(TicklineError, ValueError):
    pass


class ScaleBindError(TicklineError, TypeError):
    pass
