import pytest
from kanbanbar.board.engine import MutationEngine
from kanbanbar.github.errors import (
    InvalidInputError,
    InvalidResponseError,
    NetworkError,
    NoTokenError,
    ResolutionError,
)
from kanbanbar.github.models import FieldOption
from kanbanbar.github.mutations import ADD_DRAFT_ISSUE, UPDATE_DRAFT_ISSUE, UPDATE_PROJECT_FIELD
from kanbanbar.github.queries import GET_PROJECTS
from conftest import issue_content, item, project, projects_response


@pytest.fixture
def engine(client, store, board):
    return MutationEngine(client, store, board, lambda: "ghp_token")


@pytest.mark.asyncio
async def test_move_card_applies_optimistic_update_before_request(engine, client, board):
    seen = {}

    def capture(query, variables):
        if query == UPDATE_PROJECT_FIELD:
            seen["status"] = board.selected_project.item("I_1").status

    client.on_call = capture
    assert await engine.move_card("I_1", "Done")

    assert seen["status"] == "Done"
    [mutation] = client.mutation_calls()
    assert mutation["variables"] == {
        "projectId": "P_1",
        "itemId": "I_1",
        "fieldId": "F_status",
        "optionId": "opt_done",
    }
    assert client.queries()[-1] == GET_PROJECTS
    assert engine.last_error is None


@pytest.mark.asyncio
async def test_move_card_success_converges_to_server_state(engine, client, board):
    client.responses[GET_PROJECTS] = projects_response(
        project(items=[item("I_1", issue_content("Fix login"), status="In Progress")])
    )

    assert await engine.move_card("I_1", "Done")

    assert board.selected_project.item("I_1").status == "In Progress"


@pytest.mark.asyncio
async def test_move_card_failure_restores_previous_snapshot(engine, client, board):
    before = board.selected_project
    client.responses[UPDATE_PROJECT_FIELD] = NetworkError("offline")

    assert await engine.move_card("I_1", "Done") is False

    assert board.selected_project is before
    assert board.selected_project.item("I_1").status == "Todo"
    assert isinstance(engine.last_error, NetworkError)
    assert GET_PROJECTS not in client.queries()


@pytest.mark.asyncio
async def test_revert_skipped_when_board_moved_on(engine, client, board, store):
    newer = store.current_projects()[0].model_copy(update={"title": "Newer"})

    def replace_board(query, variables):
        if query == UPDATE_PROJECT_FIELD:
            board.show(newer)

    client.on_call = replace_board
    client.responses[UPDATE_PROJECT_FIELD] = NetworkError("offline")

    assert await engine.move_card("I_1", "Done") is False
    assert board.selected_project is newer


@pytest.mark.asyncio
async def test_move_card_unresolvable_target_makes_no_request(engine, client, board):
    before = board.selected_project

    assert await engine.move_card("I_1", "Shipped") is False
    assert await engine.move_card("I_missing", "Done") is False

    assert client.calls == []
    assert board.selected_project is before
    assert isinstance(engine.last_error, ResolutionError)


@pytest.mark.asyncio
async def test_move_card_without_token_fails_locally(client, store, board):
    engine = MutationEngine(client, store, board, lambda: None)

    assert await engine.move_card("I_1", "Done") is False
    assert client.calls == []
    assert isinstance(engine.last_error, NoTokenError)


@pytest.mark.asyncio
async def test_create_task_sets_status_and_priority(engine, client):
    client.responses[ADD_DRAFT_ISSUE] = {"addProjectV2DraftIssue": {"projectItem": {"id": "I_new"}}}

    ok = await engine.create_task(
        "P_1",
        "  New task  ",
        body="",
        status=FieldOption(id="opt_todo", name="Todo"),
        priority=FieldOption(id="prio_high", name="High"),
    )

    assert ok
    create, status, priority = client.mutation_calls()
    assert create["variables"] == {"projectId": "P_1", "title": "New task"}
    assert status["variables"]["fieldId"] == "F_status"
    assert status["variables"]["optionId"] == "opt_todo"
    assert priority["variables"]["fieldId"] == "F_priority"
    assert priority["variables"]["optionId"] == "prio_high"
    assert client.queries()[-1] == GET_PROJECTS


@pytest.mark.asyncio
async def test_create_task_sends_body_and_skips_unknown_priority(engine, client):
    client.responses[ADD_DRAFT_ISSUE] = {"addProjectV2DraftIssue": {"projectItem": {"id": "I_new"}}}

    ok = await engine.create_task(
        "P_1", "New task", body="Details", priority=FieldOption(id="prio_other", name="Critical")
    )

    assert ok
    [create] = client.mutation_calls()
    assert create["variables"]["body"] == "Details"


@pytest.mark.asyncio
async def test_create_task_rejects_blank_title(engine, client):
    assert await engine.create_task("P_1", "   ") is False
    assert client.calls == []
    assert isinstance(engine.last_error, InvalidInputError)


@pytest.mark.asyncio
async def test_create_task_without_item_id_fails(engine, client):
    client.responses[ADD_DRAFT_ISSUE] = {"addProjectV2DraftIssue": None}

    assert await engine.create_task("P_1", "New task") is False
    assert isinstance(engine.last_error, InvalidResponseError)


@pytest.mark.asyncio
async def test_create_task_partial_failure_keeps_created_item(engine, client):
    client.responses[ADD_DRAFT_ISSUE] = {"addProjectV2DraftIssue": {"projectItem": {"id": "I_new"}}}
    client.responses[UPDATE_PROJECT_FIELD] = NetworkError("offline")

    ok = await engine.create_task("P_1", "New task", status=FieldOption(id="opt_todo", name="Todo"))

    assert ok is False
    assert isinstance(engine.last_error, NetworkError)
    queries = client.queries()
    assert queries.count(ADD_DRAFT_ISSUE) == 1
    assert queries[-1] == GET_PROJECTS


@pytest.mark.asyncio
async def test_update_task_edits_draft_optimistically(engine, client, board):
    seen = {}

    def capture(query, variables):
        if query == UPDATE_DRAFT_ISSUE:
            seen["title"] = board.selected_project.item("I_3").content.title

    client.on_call = capture
    client.responses[UPDATE_DRAFT_ISSUE] = {
        "updateProjectV2DraftIssue": {"draftIssue": {"id": "DI_1", "title": "Write better docs"}}
    }

    assert await engine.update_task("I_3", "Write better docs", body="More")

    assert seen["title"] == "Write better docs"
    [mutation] = client.mutation_calls()
    assert mutation["variables"] == {"draftIssueId": "I_3", "title": "Write better docs", "body": "More"}


@pytest.mark.asyncio
async def test_update_task_failure_reverts(engine, client, board):
    before = board.selected_project
    client.responses[UPDATE_DRAFT_ISSUE] = {"updateProjectV2DraftIssue": {"draftIssue": None}}

    assert await engine.update_task("I_3", "Write better docs") is False

    assert board.selected_project is before
    assert isinstance(engine.last_error, InvalidResponseError)


@pytest.mark.asyncio
async def test_update_task_unknown_item_makes_no_request(engine, client):
    assert await engine.update_task("I_missing", "Title") is False
    assert client.calls == []
    assert isinstance(engine.last_error, ResolutionError)
