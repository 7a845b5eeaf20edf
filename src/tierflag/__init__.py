"""tierflag: feature flag / environment tier resolution library."""

from .bucketing import bucket, fnv1a_32, is_eligible
from .cache import EvaluationCache
from .catalog import Catalog, load_catalog
from .client import FeatureFlagClientProtocol
from .defaults import DEFAULT_FLAG_DEFINITIONS, default_catalog
from .dependency import all_dependencies_satisfied
from .environment import EnvironmentResolver, parse_bool, resolve
from .evaluator import FlagEvaluator
from .exceptions import (
    CyclicDependencyError,
    FeatureFlagError,
    FeatureFlagErrorCodes,
    InvalidCatalogError,
    UnknownFlagError,
)
from .loader import FlagConfig, load
from .logger import new_logger
from .models import (
    ANONYMOUS_KEY,
    EnvironmentSnapshot,
    EvaluationContext,
    EvaluationReason,
    EvaluationResult,
    FlagAnalytics,
    FlagDefinition,
    FlagStatus,
)
from .overrides import OverrideSet
from .settings import EngineSettings, UnknownFlagPolicy, env_var_name

__all__ = [
    "ANONYMOUS_KEY",
    "Catalog",
    "CyclicDependencyError",
    "DEFAULT_FLAG_DEFINITIONS",
    "EngineSettings",
    "EnvironmentResolver",
    "EnvironmentSnapshot",
    "EvaluationCache",
    "EvaluationContext",
    "EvaluationReason",
    "EvaluationResult",
    "FeatureFlagClientProtocol",
    "FeatureFlagError",
    "FeatureFlagErrorCodes",
    "FlagAnalytics",
    "FlagConfig",
    "FlagDefinition",
    "FlagEvaluator",
    "FlagStatus",
    "InvalidCatalogError",
    "OverrideSet",
    "UnknownFlagError",
    "UnknownFlagPolicy",
    "all_dependencies_satisfied",
    "bucket",
    "default_catalog",
    "env_var_name",
    "fnv1a_32",
    "is_eligible",
    "load",
    "load_catalog",
    "new_logger",
    "parse_bool",
    "resolve",
]
