# services/__init__.py
from .project_service import ProjectService
from .contract_service import ContractService

__all__ = ["ProjectService", "ContractService"]
