"""
Gloo Services Module
Identity collaborator, notifications and recipe moderation
"""

from .identity_service import (
    IdentityProvider,
    IdentityUser,
    OrganizationMembership,
    ClerkIdentityProvider,
    get_identity_provider,
)
from .notification_service import NotificationService, NotificationDispatch, notification_service
from .moderation_service import RecipeModerationService, ModerationResult, moderation_service

__all__ = [
    # Identity
    "IdentityProvider",
    "IdentityUser",
    "OrganizationMembership",
    "ClerkIdentityProvider",
    "get_identity_provider",

    # Notifications and moderation
    "NotificationService",
    "NotificationDispatch",
    "notification_service",
    "RecipeModerationService",
    "ModerationResult",
    "moderation_service",
]
