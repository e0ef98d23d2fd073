# models/__init__.py
from .user import User, UserSummary
from .project import Project, ProjectWithClient, ProjectStatus, PROJECT_STATUS_TRANSITIONS
from .contract import Contract, ContractWithParties, ContractType, EscrowStatus, ESCROW_STATUS_TRANSITIONS

__all__ = [
    "User",
    "UserSummary",
    "Project",
    "ProjectWithClient",
    "ProjectStatus",
    "PROJECT_STATUS_TRANSITIONS",
    "Contract",
    "ContractWithParties",
    "ContractType",
    "EscrowStatus",
    "ESCROW_STATUS_TRANSITIONS",
]
