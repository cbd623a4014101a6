from .activity import ActivityRead, ListingMeta, RecentActivityPage
from .auth import SessionValidationResponse

__all__ = [
    "ActivityRead",
    "ListingMeta",
    "RecentActivityPage",
    "SessionValidationResponse",
]
