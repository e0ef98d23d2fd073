from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from psycopg import AsyncConnection

from db import getDB
from errors import InvalidInput
from models.contract import ACTIVE_ESCROW_STATUSES, CONTRACT_TYPES, ContractCreate, ContractStatusUpdate
from repositories import ContractRepository, UserRepository
from routes.auth import ActingUser
from services import ContractService
from utils import (
    build_error_response,
    build_list_response,
    build_success_response,
    require_amount,
    require_choice,
    require_fields,
    require_non_blank,
    require_positive,
    require_uuid,
)

router = APIRouter(tags=["contracts"])

REQUIRED_CONTRACT_FIELDS = ("contract_type", "freelancer_id", "client_id", "contract_on_chain_id", "amount_locked")


async def get_contract_service(conn: AsyncConnection = Depends(getDB)) -> ContractService:
    return ContractService(contracts=ContractRepository(conn), users=UserRepository(conn))


# 1. 建立合約
@router.post("/contracts")
async def create_contract(body: ContractCreate, service: ContractService = Depends(get_contract_service)):
    # 資料驗證 (順序跟錯誤訊息都是前端依賴的，不要隨意調整)
    require_fields(body.model_dump(), REQUIRED_CONTRACT_FIELDS)
    require_choice(body.contract_type, CONTRACT_TYPES, "contract_type must be 'project' or 'service'")
    require_positive(body.amount_locked, "amount_locked must be greater than 0")
    require_amount(body.amount_locked, "amount_locked")
    require_non_blank(body.contract_on_chain_id, "contract_on_chain_id cannot be empty")

    # ID 欄位要是 UUID，不然資料庫會直接報錯
    require_uuid(body.freelancer_id, "freelancer")
    require_uuid(body.client_id, "client")
    if body.project_id:
        require_uuid(body.project_id, "project")
    if body.service_request_id:
        require_uuid(body.service_request_id, "service request")

    contract = await service.create_contract(
        contract_type=body.contract_type,
        freelancer_id=body.freelancer_id,
        client_id=body.client_id,
        contract_on_chain_id=body.contract_on_chain_id,
        amount_locked=body.amount_locked,
        project_id=body.project_id,
        service_request_id=body.service_request_id,
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=build_success_response(contract.model_dump(mode="json"), "Contract created successfully"),
    )


# 2. 某個使用者 (接案人或委託人) 的所有合約
@router.get("/contracts/user/{user_id}")
async def list_user_contracts(user_id: str, service: ContractService = Depends(get_contract_service)):
    require_uuid(user_id, "user")
    contracts = await service.list_contracts_by_user(user_id)
    return build_list_response([c.model_dump(mode="json") for c in contracts],
                               "User contracts retrieved successfully")


# 3. 依託管狀態列出合約
@router.get("/contracts/status/{escrow_status}")
async def list_contracts_by_status(escrow_status: str, service: ContractService = Depends(get_contract_service)):
    contracts = await service.list_contracts_by_status(escrow_status)
    return build_list_response([c.model_dump(mode="json") for c in contracts],
                               "Contracts by status retrieved successfully")


# 4. 合約詳情 (含雙方摘要)
@router.get("/contracts/{contract_id}")
async def get_contract(contract_id: str, service: ContractService = Depends(get_contract_service)):
    require_uuid(contract_id, "contract")

    contract = await service.get_contract_by_id(contract_id)
    if contract is None:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=build_error_response("Contract not found"))

    return build_success_response(contract.model_dump(mode="json"), "Contract retrieved successfully")


# 5. 推進託管狀態 (funded / released / disputed)
@router.put("/contracts/{contract_id}/status")
async def update_contract_status(
    contract_id: str,
    body: ContractStatusUpdate,
    acting: ActingUser = Depends(),
    service: ContractService = Depends(get_contract_service),
):
    require_uuid(contract_id, "contract")
    if not body.escrow_status:
        raise InvalidInput("escrow_status is required")
    require_choice(body.escrow_status, ACTIVE_ESCROW_STATUSES,
                   "escrow_status must be 'funded', 'released', or 'disputed'")
    if body.user_id is not None:
        require_uuid(body.user_id, "user")

    # 操作者以 Session 為準，沒有 Session 才看 body 的 user_id
    user_id = acting.resolve(body.user_id)
    updated = await service.update_contract_status(contract_id, body.escrow_status, user_id)
    if updated is None:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=build_error_response("Contract not found"))

    return build_success_response(updated.model_dump(mode="json"), "Contract status updated successfully")
