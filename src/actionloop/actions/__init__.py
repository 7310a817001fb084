"""Action registry and dispatch for actionloop.

Actions are registered as data (name, schema, handler) and executed in
batches by the dispatcher, which turns every request into exactly one
result turn.

Public API:
    ActionRegistry -- Name to ActionSpec mapping
    ActionSpec -- One registered action
    ActionDispatcher -- Batch executor
    ActionError -- Raised by handlers to report failure
    HttpBrowserBackend -- HTTP browser-control backend
"""

from actionloop.actions.base import ActionError, ActionRegistry, ActionSpec
from actionloop.actions.dispatcher import ActionDispatcher

__all__ = [
    "ActionDispatcher",
    "ActionError",
    "ActionRegistry",
    "ActionSpec",
    "HttpBrowserBackend",
    "register_browser_actions",
]


def __getattr__(name: str) -> object:
    """Lazy import for the browser backend, which requires httpx."""
    if name == "HttpBrowserBackend":
        from actionloop.actions.browser import HttpBrowserBackend
        return HttpBrowserBackend
    if name == "register_browser_actions":
        from actionloop.actions.browser import register_browser_actions
        return register_browser_actions
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
