# services/contract_service.py
import logging

from errors import InvalidInput, InvalidTransition, NotFound, Unauthorized
from models.contract import (
    ACTIVE_ESCROW_STATUSES,
    CONTRACT_TYPES,
    ESCROW_STATUSES,
    Contract,
    ContractType,
    ContractWithParties,
    allowed_escrow_transitions,
)
from utils import require_amount, require_positive

logger = logging.getLogger(__name__)


class ContractService:
    """託管合約：建立、查詢與 escrow 狀態流程。合約沒有刪除操作。"""

    def __init__(self, contracts, users):
        self.contracts = contracts
        self.users = users

    async def create_contract(self, contract_type: str, freelancer_id: str, client_id: str,
                              contract_on_chain_id: str, amount_locked: float,
                              project_id: str | None = None,
                              service_request_id: str | None = None) -> Contract:
        # 1. 欄位規則
        if contract_type not in CONTRACT_TYPES:
            raise InvalidInput("contract_type must be 'project' or 'service'")
        require_positive(amount_locked, "amount_locked must be greater than 0")
        require_amount(amount_locked, "amount_locked")
        if contract_on_chain_id is None or not contract_on_chain_id.strip():
            raise InvalidInput("contract_on_chain_id cannot be empty")
        if freelancer_id == client_id:
            raise InvalidInput("Freelancer and client cannot be the same user")

        # 2. 兩個使用者都要存在 (一次檢查，不分開報錯)
        if await self.users.count_existing([freelancer_id, client_id]) < 2:
            raise NotFound("Freelancer or client not found")

        # 3. 依合約類型檢查對應的參照，另一個一律存成 NULL
        if contract_type == ContractType.PROJECT.value:
            if not project_id:
                raise InvalidInput("project_id is required for project contracts")
            service_request_id = None
        else:
            if not service_request_id:
                raise InvalidInput("service_request_id is required for service contracts")
            project_id = None

        contract = await self.contracts.create_contract(
            contract_type=contract_type,
            freelancer_id=freelancer_id,
            client_id=client_id,
            contract_on_chain_id=contract_on_chain_id.strip(),
            amount_locked=amount_locked,
            project_id=project_id,
            service_request_id=service_request_id,
        )
        logger.info("Contract %s (%s) created between freelancer %s and client %s",
                    contract.id, contract_type, freelancer_id, client_id)
        return contract

    async def get_contract_by_id(self, contract_id: str) -> ContractWithParties | None:
        return await self.contracts.get_contract_with_parties(contract_id)

    async def update_contract_status(self, contract_id: str, new_status: str,
                                     requesting_user_id: str | None) -> Contract | None:
        if new_status not in ACTIVE_ESCROW_STATUSES:
            raise InvalidInput("escrow_status must be 'funded', 'released', or 'disputed'")

        contract = await self.contracts.get_contract(contract_id)
        if contract is None:
            return None

        # 只有合約的兩方可以更新狀態
        if requesting_user_id not in (contract.freelancer_id, contract.client_id):
            logger.warning("User %s is not a party of contract %s", requesting_user_id, contract_id)
            raise Unauthorized("You are not authorized to update this contract")

        current = contract.escrow_status
        if new_status not in allowed_escrow_transitions(current):
            raise InvalidTransition(f"Invalid status transition from {current} to {new_status}")

        updated = await self.contracts.update_escrow_status(contract_id, new_status, expected_status=current)
        if updated is None:
            latest = await self.contracts.get_contract(contract_id)
            if latest is None:
                return None
            logger.warning("Contract %s escrow status changed concurrently (expected %s, now %s)",
                           contract_id, current, latest.escrow_status)
            raise InvalidTransition(
                f"Invalid status transition from {latest.escrow_status} to {new_status}: "
                f"escrow status changed from {current} during the update"
            )

        logger.info("Contract %s escrow status %s -> %s (by %s)",
                    contract_id, current, new_status, requesting_user_id)
        return updated

    async def list_contracts_by_user(self, user_id: str) -> list[ContractWithParties]:
        return await self.contracts.list_by_user(user_id)

    async def list_contracts_by_status(self, status: str) -> list[ContractWithParties]:
        if status not in ESCROW_STATUSES:
            raise InvalidInput("Valid status is required: pending, funded, released, or disputed")
        return await self.contracts.list_by_status(status)
