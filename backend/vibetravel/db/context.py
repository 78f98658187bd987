"""Request context for ownership enforcement."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class RequestContext:
    """Request context containing the authenticated user identity.

    Used to enforce plan ownership in all store operations.
    """

    user_id: UUID
