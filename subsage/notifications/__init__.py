"""
Module 'notifications': rappels d'expiration (enregistrement + email).
"""

from .dispatcher import NotificationDispatcher
from .service import notify_expiring, store_notification

__all__ = ["NotificationDispatcher", "notify_expiring", "store_notification"]
