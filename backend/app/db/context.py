"""Request context carrying the authenticated identity."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RequestContext:
    """Identity of the caller for one request.

    ``user_id`` is the auth subsystem's user id; ``email`` may be a real
    address or a synthetic login address (``<user>@<login domain>``).
    """

    user_id: str
    email: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)
