# models/contract.py
from datetime import datetime
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from models.user import UserSummary


class ContractType(str, Enum):
    PROJECT = "project"
    SERVICE = "service"


class EscrowStatus(str, Enum):
    PENDING = "pending"
    FUNDED = "funded"
    RELEASED = "released"
    DISPUTED = "disputed"


CONTRACT_TYPES = tuple(t.value for t in ContractType)
ESCROW_STATUSES = tuple(s.value for s in EscrowStatus)

# 透過 API 可以設定的目標狀態 (pending 只能在建立時出現)
ACTIVE_ESCROW_STATUSES = (
    EscrowStatus.FUNDED.value,
    EscrowStatus.RELEASED.value,
    EscrowStatus.DISPUTED.value,
)

# 託管狀態轉換表
# released 是終點；disputed 可以在爭議解決後 released
ESCROW_STATUS_TRANSITIONS = MappingProxyType({
    EscrowStatus.PENDING.value: frozenset({EscrowStatus.FUNDED.value, EscrowStatus.DISPUTED.value}),
    EscrowStatus.FUNDED.value: frozenset({EscrowStatus.RELEASED.value, EscrowStatus.DISPUTED.value}),
    EscrowStatus.RELEASED.value: frozenset(),
    EscrowStatus.DISPUTED.value: frozenset({EscrowStatus.RELEASED.value}),
})


def allowed_escrow_transitions(status: str) -> frozenset:
    return ESCROW_STATUS_TRANSITIONS.get(status, frozenset())


class Contract(BaseModel):
    id: str
    contract_type: str
    project_id: str | None = None
    service_request_id: str | None = None
    freelancer_id: str
    client_id: str
    contract_on_chain_id: str
    amount_locked: float
    escrow_status: str
    created_at: datetime


class ContractWithParties(Contract):
    freelancer: UserSummary
    client: UserSummary


class ContractCreate(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    contract_type: str | None = None
    project_id: str | None = None
    service_request_id: str | None = None
    freelancer_id: str | None = None
    client_id: str | None = None
    contract_on_chain_id: str | None = None
    amount_locked: float | None = None


class ContractStatusUpdate(BaseModel):
    escrow_status: str | None = None
    # 沒有登入 Session 時的暫代身分，正式環境應該關掉 ALLOW_BODY_PRINCIPAL
    user_id: str | None = None
