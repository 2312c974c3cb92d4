"""Values handed to, and collected from, hook callbacks."""

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class HookContext:
    """Who triggered a schema or CRUD change, and from where.

    Attributes:
        app: The FastAPI application, or None outside a request.
        user_id: Principal from the bearer token, if any.
        request_id: Correlation ID; generated when not supplied.
        source: ``api`` or ``cli``.
    """

    app: Any = None
    user_id: Optional[str] = None
    request_id: str = ""
    source: str = "api"

    def __post_init__(self) -> None:
        if not self.request_id:
            self.request_id = f"hk_{uuid.uuid4().hex[:12]}"


@dataclass
class HookResult:
    """Outcome of one trigger call.

    A failed hook never undoes the operation that fired it; its error is
    only collected here.
    """

    success: bool = True
    errors: list[str] = field(default_factory=list)
    data: Optional[dict[str, Any]] = None
    failed_hooks: list[str] = field(default_factory=list)

    def record_failure(self, hook_id: str, error: Exception) -> None:
        self.success = False
        self.failed_hooks.append(hook_id)
        self.errors.append(f"Hook {hook_id} failed: {error}")
