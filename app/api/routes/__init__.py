"""
API Routes Package
"""
from . import (
    health,
    auth,
    subscriptions,
    users,
    legal_events,
    notifications,
)
