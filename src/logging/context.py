# src/logging/context.py — v1
"""Contextual logging support — attach cache_key, render_id, component to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per render call.
_cache_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cache_key", default=None
)
_render_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "render_id", default=None
)
_component: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "component", default=None
)
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    cache_key: str | None = None
    render_id: str | None = None
    component: str | None = None
    step: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        cache_key=_cache_key.get(),
        render_id=_render_id.get(),
        component=_component.get(),
        step=_step.get(),
    )


def set_render_context(cache_key: str, render_id: str) -> None:
    """Set render-level context (called once per render call)."""
    _cache_key.set(cache_key)
    _render_id.set(render_id)


def set_component_context(component: str, step: str | None = None) -> None:
    """Set component-level context (cache, converter, generator)."""
    _component.set(component)
    _step.set(step)


def clear_context() -> None:
    """Reset all context variables."""
    _cache_key.set(None)
    _render_id.set(None)
    _component.set(None)
    _step.set(None)
