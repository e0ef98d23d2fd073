# repositories/__init__.py
from .user_repository import UserRepository
from .project_repository import ProjectRepository
from .contract_repository import ContractRepository

__all__ = ["UserRepository", "ProjectRepository", "ContractRepository"]
