# repositories/contract_repository.py
from models.contract import Contract, ContractWithParties, EscrowStatus
from repositories.base import BaseRepository, split_summary

CONTRACT_COLUMNS = """
    c.id, c.contract_type, c.project_id, c.service_request_id, c.freelancer_id, c.client_id,
    c.contract_on_chain_id, c.amount_locked, c.escrow_status, c.created_at
"""

# 同時 JOIN 接案人 (f) 與委託人 (cl) 的摘要
PARTY_COLUMNS = """
    f.id AS freelancer_uid, f.name AS freelancer_name, f.username AS freelancer_username, f.email AS freelancer_email,
    cl.id AS client_uid, cl.name AS client_name, cl.username AS client_username, cl.email AS client_email
"""

PARTY_JOINS = """
    FROM contracts c
    JOIN users f ON c.freelancer_id = f.id
    JOIN users cl ON c.client_id = cl.id
"""


def _with_parties(row: dict) -> ContractWithParties:
    freelancer = split_summary(row, "freelancer")
    client = split_summary(row, "client")
    return ContractWithParties(**row, freelancer=freelancer, client=client)


class ContractRepository(BaseRepository):

    async def create_contract(self, contract_type: str, freelancer_id: str, client_id: str,
                              contract_on_chain_id: str, amount_locked: float,
                              project_id: str | None = None,
                              service_request_id: str | None = None) -> Contract:
        row = await self.fetchone(
            """
            INSERT INTO contracts AS c (
                contract_type, project_id, service_request_id, freelancer_id, client_id,
                contract_on_chain_id, amount_locked, escrow_status
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING """ + CONTRACT_COLUMNS,
            (
                contract_type,
                project_id,
                service_request_id,
                freelancer_id,
                client_id,
                contract_on_chain_id,
                amount_locked,
                EscrowStatus.PENDING.value,
            ),
            action="create contract",
        )
        return Contract(**row)

    async def get_contract(self, contract_id: str) -> Contract | None:
        row = await self.fetchone(
            f"SELECT {CONTRACT_COLUMNS} FROM contracts c WHERE c.id = %s",
            (contract_id,),
            action="fetch contract",
        )
        return Contract(**row) if row else None

    async def get_contract_with_parties(self, contract_id: str) -> ContractWithParties | None:
        row = await self.fetchone(
            f"SELECT {CONTRACT_COLUMNS}, {PARTY_COLUMNS} {PARTY_JOINS} WHERE c.id = %s",
            (contract_id,),
            action="fetch contract",
        )
        return _with_parties(row) if row else None

    async def update_escrow_status(self, contract_id: str, new_status: str,
                                   expected_status: str) -> Contract | None:
        # 條件式更新 (compare-and-swap)：狀態被別人先改掉時不會有任何一列被更新
        row = await self.fetchone(
            """
            UPDATE contracts AS c
            SET escrow_status = %s
            WHERE c.id = %s AND c.escrow_status = %s
            RETURNING """ + CONTRACT_COLUMNS,
            (new_status, contract_id, expected_status),
            action="update contract status",
        )
        return Contract(**row) if row else None

    async def list_by_user(self, user_id: str) -> list[ContractWithParties]:
        rows = await self.fetchall(
            f"""
            SELECT {CONTRACT_COLUMNS}, {PARTY_COLUMNS} {PARTY_JOINS}
            WHERE c.freelancer_id = %s OR c.client_id = %s
            ORDER BY c.created_at DESC
            """,
            (user_id, user_id),
            action="fetch user contracts",
        )
        return [_with_parties(r) for r in rows]

    async def list_by_status(self, status: str) -> list[ContractWithParties]:
        rows = await self.fetchall(
            f"""
            SELECT {CONTRACT_COLUMNS}, {PARTY_COLUMNS} {PARTY_JOINS}
            WHERE c.escrow_status = %s
            ORDER BY c.created_at DESC
            """,
            (status,),
            action="fetch contracts by status",
        )
        return [_with_parties(r) for r in rows]
