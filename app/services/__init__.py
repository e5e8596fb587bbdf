"""
Service module initialization.

This module exports service implementations.

Note: Service construction/dependency injection is handled in
app/core/dependencies.py, not here. This module only provides
convenient imports.
"""

from app.services.auth_service import AuthService
from app.services.events import PopularityEvent, PopularityEventSink
from app.services.mailer import Mailer, SMTPMailer, LogMailer
from app.services.notification_dispatcher import NotificationDispatcher, DispatchingEventSink
from app.services.popularity_watcher import PopularityWatcher, ScanOutcome
from app.services.preference_service import PreferenceService
from app.services.seeder import DemoSeeder, SeedSummary
from app.services.recommendation_selector import (
    RecommendationSelector,
    CandidateFilters,
    CandidateSelection
)

__all__ = [
    # Services
    "AuthService",
    "NotificationDispatcher",
    "PopularityWatcher",
    "PreferenceService",
    "RecommendationSelector",
    "DemoSeeder",

    # Mail transports
    "Mailer",
    "SMTPMailer",
    "LogMailer",

    # Events
    "PopularityEvent",
    "PopularityEventSink",
    "DispatchingEventSink",

    # Data classes
    "CandidateFilters",
    "CandidateSelection",
    "ScanOutcome",
    "SeedSummary",
]
