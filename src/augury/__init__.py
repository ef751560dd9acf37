__all__ = [
    # Models
    "AssetBalance",
    "ChainAccount",
    "FormattedResult",
    "Prepared",
    "RpcCall",
    # Session boundary
    "AccountDirectory",
    "Session",
    "SessionChannel",
    # Orchestrator
    "Orchestrator",
    "NAMESPACES",
    "get_namespace",
    # Configuration
    "Settings",
    # Errors
    "OrchestratorError",
    "PreconditionError",
    "NotInitializedError",
    "OperationalError",
    "MissingAccountError",
    "MissingChainConfigError",
    "RemoteCallError",
    "ArtifactShapeError",
    # Extended JSON
    "BigInt",
]

from .config import Settings
from .errors import (
    ArtifactShapeError,
    MissingAccountError,
    MissingChainConfigError,
    NotInitializedError,
    OperationalError,
    OrchestratorError,
    PreconditionError,
    RemoteCallError,
)
from .models import AssetBalance, ChainAccount, FormattedResult, Prepared, RpcCall
from .namespaces import NAMESPACES, get_namespace
from .orchestrator import Orchestrator
from .session import AccountDirectory, Session, SessionChannel
from .xjson import BigInt
