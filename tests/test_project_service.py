"""
ProjectService component tests against the in-memory repositories.
"""
import pytest

from errors import Forbidden, InvalidInput, InvalidState, InvalidTransition, NotFound, Unauthorized
from models.project import ProjectFilters
from tests.mocks import new_id

pytestmark = pytest.mark.asyncio


# =============================================================================
# create_project
# =============================================================================

async def test_create_project_trims_and_starts_pending(project_service, client_user):
    project = await project_service.create_project(
        client_id=client_user.id,
        title="  Logo design ",
        description=" A new logo  ",
        category=" Design ",
        budget=150,
    )
    assert project.title == "Logo design"
    assert project.description == "A new logo"
    assert project.category == "Design"
    assert project.budget == 150
    assert project.status == "pending"


async def test_create_then_fetch_round_trip(project_service, client_user):
    created = await project_service.create_project(client_user.id, " T ", " D ", " C ", 99.5)
    fetched = await project_service.get_project_by_id(created.id)

    assert (fetched.title, fetched.description, fetched.category, fetched.budget, fetched.status) == \
        ("T", "D", "C", 99.5, "pending")
    assert fetched.client.id == client_user.id
    assert fetched.client.email == client_user.email


async def test_create_project_unknown_user(project_service):
    with pytest.raises(NotFound, match="User not found"):
        await project_service.create_project(new_id(), "t", "d", "c", 10)


async def test_freelancer_cannot_create_project(project_service, projects, freelancer):
    with pytest.raises(Forbidden, match="Only clients can create projects"):
        await project_service.create_project(freelancer.id, "t", "d", "c", 10)
    assert "create_project" not in projects.calls


async def test_negative_budget_rejected(project_service, projects, client_user):
    with pytest.raises(InvalidInput):
        await project_service.create_project(client_user.id, "t", "d", "c", -1)
    assert "create_project" not in projects.calls


# =============================================================================
# list / lookups
# =============================================================================

async def test_budget_range_filter(project_service, projects, client_user):
    for budget in (50, 100, 300, 500, 501):
        projects.set_project(client_user.id, budget=budget)

    result, total = await project_service.list_projects(ProjectFilters(budget_min=100, budget_max=500))

    assert total == 3
    assert sorted(p.budget for p in result) == [100, 300, 500]


async def test_pagination_newest_first(project_service, projects, client_user):
    created = [projects.set_project(client_user.id, title=f"p{i}") for i in range(25)]
    newest_first = list(reversed(created))

    page2, total = await project_service.list_projects(ProjectFilters(page=2, limit=10))

    assert total == 25
    assert [p.id for p in page2] == [p.id for p in newest_first[10:20]]


async def test_category_filter_is_case_insensitive_substring(project_service, projects, client_user):
    projects.set_project(client_user.id, category="Web Development")
    projects.set_project(client_user.id, category="Mobile")

    result, total = await project_service.list_projects(ProjectFilters(category="web"))

    assert total == 1
    assert result[0].category == "Web Development"


async def test_status_filter(project_service, projects, client_user):
    projects.set_project(client_user.id, status="pending")
    projects.set_project(client_user.id, status="completed")

    result, total = await project_service.list_projects(ProjectFilters(status="completed"))

    assert total == 1
    assert result[0].status == "completed"


async def test_get_missing_project_returns_none(project_service):
    assert await project_service.get_project_by_id(new_id()) is None


async def test_list_by_client(project_service, projects, client_user, other_client):
    first = projects.set_project(client_user.id)
    second = projects.set_project(client_user.id)
    projects.set_project(other_client.id)

    result = await project_service.list_projects_by_client(client_user.id)

    assert [p.id for p in result] == [second.id, first.id]


async def test_categories_skip_cancelled(project_service, projects, client_user):
    projects.set_project(client_user.id, category="Writing")
    projects.set_project(client_user.id, category="Design")
    projects.set_project(client_user.id, category="Design")
    projects.set_project(client_user.id, category="Legal", status="cancelled")

    assert await project_service.list_categories() == ["Design", "Writing"]


# =============================================================================
# update_project
# =============================================================================

@pytest.mark.parametrize("current,target", [
    ("pending", "in_progress"),
    ("pending", "cancelled"),
    ("in_progress", "completed"),
    ("in_progress", "cancelled"),
])
async def test_allowed_transitions_persist(project_service, projects, client_user, current, target):
    project = projects.set_project(client_user.id, status=current)

    updated = await project_service.update_project(project.id, {"status": target})

    assert updated.status == target
    assert (await projects.get_project(project.id)).status == target


@pytest.mark.parametrize("current,target", [
    ("pending", "completed"),
    ("in_progress", "pending"),
    ("completed", "in_progress"),
    ("completed", "cancelled"),
    ("cancelled", "pending"),
    ("cancelled", "in_progress"),
])
async def test_illegal_transitions_rejected(project_service, projects, client_user, current, target):
    project = projects.set_project(client_user.id, status=current)

    with pytest.raises(InvalidTransition, match=f"Invalid status transition from {current} to {target}"):
        await project_service.update_project(project.id, {"status": target})
    assert (await projects.get_project(project.id)).status == current


async def test_unknown_current_status_does_not_crash(project_service, projects, client_user):
    project = projects.set_project(client_user.id, status="archived")

    with pytest.raises(InvalidTransition):
        await project_service.update_project(project.id, {"status": "in_progress"})


async def test_same_status_is_not_a_transition(project_service, projects, client_user):
    project = projects.set_project(client_user.id, status="completed")

    updated = await project_service.update_project(project.id, {"status": "completed", "title": " New "})

    assert updated.status == "completed"
    assert updated.title == "New"


async def test_absent_fields_untouched(project_service, projects, client_user):
    project = projects.set_project(client_user.id, title="Old", description="Keep me", budget=10)

    updated = await project_service.update_project(project.id, {"budget": 20, "title": None})

    assert updated.title == "Old"
    assert updated.description == "Keep me"
    assert updated.budget == 20


async def test_update_missing_project_returns_none(project_service):
    assert await project_service.update_project(new_id(), {"title": "x"}) is None


async def test_update_by_non_owner(project_service, projects, client_user, other_client):
    project = projects.set_project(client_user.id)

    with pytest.raises(Unauthorized, match="You can only update your own projects"):
        await project_service.update_project(project.id, {"title": "x"}, requesting_client_id=other_client.id)


async def test_update_by_owner(project_service, projects, client_user):
    project = projects.set_project(client_user.id)

    updated = await project_service.update_project(project.id, {"status": "in_progress"},
                                                   requesting_client_id=client_user.id)
    assert updated.status == "in_progress"


async def test_concurrent_transition_loses_race(project_service, projects, client_user):
    project = projects.set_project(client_user.id, status="in_progress")

    # Another request completes the project between our read and our write
    def complete_first(project_id):
        projects._data[project_id] = projects._data[project_id].model_copy(update={"status": "completed"})
        projects.before_update = None

    projects.before_update = complete_first

    with pytest.raises(InvalidTransition):
        await project_service.update_project(project.id, {"status": "cancelled"})
    assert (await projects.get_project(project.id)).status == "completed"


# =============================================================================
# delete_project
# =============================================================================

async def test_delete_pending_soft_deletes(project_service, projects, client_user):
    project = projects.set_project(client_user.id)

    assert await project_service.delete_project(project.id) is True
    stored = await projects.get_project(project.id)
    assert stored is not None
    assert stored.status == "cancelled"


async def test_second_delete_fails(project_service, projects, client_user):
    project = projects.set_project(client_user.id)
    await project_service.delete_project(project.id)

    with pytest.raises(InvalidState, match="Can only delete projects that are still pending"):
        await project_service.delete_project(project.id)


@pytest.mark.parametrize("status", ["in_progress", "completed", "cancelled"])
async def test_delete_non_pending_rejected(project_service, projects, client_user, status):
    project = projects.set_project(client_user.id, status=status)

    with pytest.raises(InvalidState):
        await project_service.delete_project(project.id)
    assert (await projects.get_project(project.id)).status == status


async def test_delete_missing_returns_false(project_service):
    assert await project_service.delete_project(new_id()) is False


async def test_delete_by_non_owner(project_service, projects, client_user, other_client):
    project = projects.set_project(client_user.id)

    with pytest.raises(Unauthorized, match="You can only delete your own projects"):
        await project_service.delete_project(project.id, requesting_client_id=other_client.id)
    assert (await projects.get_project(project.id)).status == "pending"


# =============================================================================
# numeric and text rules
# =============================================================================

@pytest.mark.parametrize("budget", [float("nan"), float("inf"), 12.345, 1e10])
async def test_budget_must_fit_column(project_service, projects, client_user, budget):
    with pytest.raises(InvalidInput):
        await project_service.create_project(client_user.id, "t", "d", "c", budget)
    assert "create_project" not in projects.calls


async def test_update_rejects_nan_budget(project_service, projects, client_user):
    project = projects.set_project(client_user.id, budget=10)

    with pytest.raises(InvalidInput):
        await project_service.update_project(project.id, {"budget": float("nan")})
    assert (await projects.get_project(project.id)).budget == 10


@pytest.mark.parametrize("field", ["title", "description", "category"])
async def test_create_rejects_blank_text(project_service, projects, client_user, field):
    texts = {"title": "t", "description": "d", "category": "c", field: "   "}

    with pytest.raises(InvalidInput, match=f"{field} cannot be empty"):
        await project_service.create_project(client_user.id, budget=10, **texts)
    assert "create_project" not in projects.calls


async def test_update_rejects_blank_text(project_service, projects, client_user):
    project = projects.set_project(client_user.id, category="Design")

    with pytest.raises(InvalidInput, match="category cannot be empty"):
        await project_service.update_project(project.id, {"category": "\t "})
    assert (await projects.get_project(project.id)).category == "Design"
