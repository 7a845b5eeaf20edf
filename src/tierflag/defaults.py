"""プラットフォーム標準のフラグ定義"""

from __future__ import annotations

from .catalog import Catalog, load_catalog
from .models import FlagDefinition

_TIERS = ("production", "staging", "development", "test")


def _flag(
    key: str,
    name: str,
    description: str,
    defaults: tuple[bool, bool, bool, bool],
    rollout: tuple[int, int, int, int],
    dependencies: tuple[str, ...] = (),
) -> FlagDefinition:
    # defaults / rollout は production, staging, development, test の順
    return FlagDefinition(
        key=key,
        name=name,
        description=description,
        environment_defaults=dict(zip(_TIERS, defaults)),
        rollout_percentage=dict(zip(_TIERS, rollout)),
        dependencies=frozenset(dependencies),
    )


DEFAULT_FLAG_DEFINITIONS: tuple[FlagDefinition, ...] = (
    _flag(
        "auth",
        "Authentication System",
        "Enable user authentication and authorization",
        (True, True, True, True),
        (100, 100, 100, 100),
    ),
    _flag(
        "payments",
        "Payment Processing",
        "Enable payment processing and subscription management",
        (False, True, True, False),
        (0, 100, 100, 0),
        ("auth",),
    ),
    _flag(
        "analytics",
        "Analytics and Tracking",
        "Enable user analytics and event tracking",
        (True, True, False, False),
        (100, 100, 0, 0),
    ),
    _flag(
        "maintenance",
        "Maintenance Mode",
        "Enable maintenance mode to block user access",
        (False, False, False, False),
        (0, 0, 0, 0),
    ),
    _flag(
        "debug",
        "Debug Mode",
        "Enable debug logging and development tools",
        (False, True, True, True),
        (0, 100, 100, 100),
    ),
    _flag(
        "betaTesting",
        "Beta Testing Features",
        "Enable beta testing features and experiments",
        (False, True, True, True),
        (0, 100, 100, 100),
    ),
    _flag(
        "experimentalUI",
        "Experimental UI Components",
        "Enable experimental UI components and designs",
        (False, True, True, False),
        (0, 50, 100, 0),
        ("betaTesting",),
    ),
    _flag(
        "performanceMetrics",
        "Performance Metrics",
        "Enable performance monitoring and metrics collection",
        (True, True, False, False),
        (100, 100, 0, 0),
    ),
    _flag(
        "advancedSecurity",
        "Advanced Security",
        "Enable advanced security features and monitoring",
        (True, True, False, False),
        (100, 100, 0, 0),
        ("auth",),
    ),
    _flag(
        "apiV2",
        "API V2",
        "Enable new API v2 endpoints",
        (False, True, True, True),
        (0, 80, 100, 100),
    ),
    _flag(
        "rateLimiting",
        "API Rate Limiting",
        "Enable API rate limiting and throttling",
        (True, True, False, False),
        (100, 100, 0, 0),
    ),
    _flag(
        "emailNotifications",
        "Email Notifications",
        "Enable email notification system",
        (True, True, False, False),
        (100, 100, 0, 0),
        ("auth",),
    ),
    _flag(
        "pushNotifications",
        "Push Notifications",
        "Enable push notification system",
        (False, True, True, False),
        (0, 70, 100, 0),
        ("auth",),
    ),
    _flag(
        "dataExport",
        "Data Export",
        "Enable user data export functionality",
        (True, True, True, True),
        (100, 100, 100, 100),
        ("auth",),
    ),
    _flag(
        "dataImport",
        "Data Import",
        "Enable bulk data import functionality",
        (False, True, True, True),
        (0, 60, 100, 100),
        ("auth",),
    ),
)


def default_catalog() -> Catalog:
    """標準フラグ定義からカタログを構築する。"""
    return load_catalog(DEFAULT_FLAG_DEFINITIONS)
