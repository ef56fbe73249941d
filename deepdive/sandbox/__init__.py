"""Sandbox backends"""

from .base import AgentResult, BaseSandbox, SandboxError
from .local import LocalSandbox

# Backend name -> implementation
handlers = {
    "local": LocalSandbox,
}

default = "local"


def create_sandbox(settings) -> BaseSandbox:
    """Instantiate the sandbox backend selected by settings.sandbox_type."""
    sandbox_type = (settings.sandbox_type or default).lower()
    sandbox_class = handlers.get(sandbox_type)
    if sandbox_class is None:
        raise ValueError(f"Unknown sandbox type '{sandbox_type}'. Available: {list(handlers.keys())}")
    return sandbox_class(settings)


__all__ = [
    "AgentResult",
    "BaseSandbox",
    "SandboxError",
    "LocalSandbox",
    "handlers",
    "default",
    "create_sandbox",
]
