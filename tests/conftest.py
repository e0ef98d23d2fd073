"""
Shared fixtures.

Service tests use the in-memory repositories from tests/mocks.py directly.
Route tests run the real FastAPI app with the service factories and the
session principal swapped through app.dependency_overrides, so no database
is needed.
"""
import pytest
from fastapi.testclient import TestClient

from config import Settings, get_settings
from routes.auth import get_session_user_id
from routes.contracts import get_contract_service
from routes.projects import get_project_service
from services import ContractService, ProjectService
from tests.mocks import MockContractRepository, MockProjectRepository, MockUserRepository


@pytest.fixture
def users():
    return MockUserRepository()


@pytest.fixture
def client_user(users):
    return users.add_user(name="Jane Client", username="jane", is_freelancer=False)


@pytest.fixture
def other_client(users):
    return users.add_user(name="Other Client", username="other", is_freelancer=False)


@pytest.fixture
def freelancer(users):
    return users.add_user(name="John Freelancer", username="john", is_freelancer=True)


@pytest.fixture
def projects(users):
    return MockProjectRepository(users)


@pytest.fixture
def contracts(users):
    return MockContractRepository(users)


@pytest.fixture
def project_service(projects, users):
    return ProjectService(projects=projects, users=users)


@pytest.fixture
def contract_service(contracts, users):
    return ContractService(contracts=contracts, users=users)


class SessionState:
    """Holds the user id the fake session dependency returns"""
    user_id: str | None = None


@pytest.fixture
def session():
    return SessionState()


@pytest.fixture
def settings():
    return Settings(allow_body_principal=True, init_db_on_startup=False)


@pytest.fixture
def api(project_service, contract_service, session, settings):
    from main import app

    app.dependency_overrides[get_project_service] = lambda: project_service
    app.dependency_overrides[get_contract_service] = lambda: contract_service
    app.dependency_overrides[get_session_user_id] = lambda: session.user_id
    app.dependency_overrides[get_settings] = lambda: settings
    # No "with" block: lifespan (schema bootstrap + pool) is not started
    yield TestClient(app)
    app.dependency_overrides.clear()
