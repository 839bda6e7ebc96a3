import copy
import pytest
from typing import Any, Dict, List, Optional
from kanbanbar.board.projection import BoardProjection
from kanbanbar.board.store import ProjectStore
from kanbanbar.github.decoder import decode_projects
from kanbanbar.github.queries import GET_BASIC_PROJECTS, GET_PROJECTS


class FakeSecretStore:
    """メモリ上のシークレットストア"""

    def __init__(self, token: Optional[str] = None, fail_save: bool = False):
        self.values: Dict[str, str] = {}
        self.fail_save = fail_save
        if token:
            self.values["github_access_token"] = token

    def save(self, key: str, value: str) -> bool:
        if self.fail_save:
            return False
        self.values[key] = value
        return True

    def load(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def delete(self, key: str) -> bool:
        self.values.pop(key, None)
        return True

    def save_access_token(self, token: str) -> bool:
        return self.save("github_access_token", token)

    def load_access_token(self) -> Optional[str]:
        return self.load("github_access_token")

    def delete_access_token(self) -> bool:
        return self.delete("github_access_token")


class ScriptedClient:
    """GitHubClientの代わりに、クエリごとに決めた応答を返す

    responsesはクエリ文字列 → 応答（dict、例外、またはそのリスト）。
    リストの場合は呼ばれるたびに先頭から順に消費し、最後の要素は繰り返す。
    """

    def __init__(self, responses: Dict[str, Any] = None):
        self.responses = dict(responses or {})
        self.calls: List[Dict[str, Any]] = []
        self.on_call = None

    async def execute_query(self, query: str, token: Optional[str], variables: Dict[str, Any] = None):
        self.calls.append({"query": query, "token": token, "variables": variables})
        if self.on_call is not None:
            self.on_call(query, variables)

        response = self.responses.get(query, {})
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, Exception):
            raise response
        return copy.deepcopy(response)

    def queries(self) -> List[str]:
        return [call["query"] for call in self.calls]

    def mutation_calls(self) -> List[Dict[str, Any]]:
        return [
            call for call in self.calls
            if call["query"] not in (GET_PROJECTS, GET_BASIC_PROJECTS)
        ]


def status_field(options=("Todo", "In Progress", "Done"), field_id="F_status"):
    return {
        "id": field_id,
        "name": "Status",
        "options": [{"id": f"opt_{name.lower().replace(' ', '_')}", "name": name, "color": "GRAY"} for name in options],
    }


def priority_field(options=("High", "Medium", "Low"), field_id="F_priority"):
    return {
        "id": field_id,
        "name": "Priority",
        "options": [{"id": f"prio_{name.lower()}", "name": name, "color": "RED"} for name in options],
    }


def status_value(name: str, field_id="F_status"):
    return {
        "name": name,
        "optionId": f"opt_{name.lower().replace(' ', '_')}",
        "field": {"id": field_id, "name": "Status"},
    }


def priority_value(name: str, field_id="F_priority"):
    return {
        "name": name,
        "optionId": f"prio_{name.lower()}",
        "field": {"id": field_id, "name": "Priority"},
    }


def issue_content(title: str, number: int = 1, created_at: str = "2025-08-01T10:00:00Z"):
    return {
        "title": title,
        "number": number,
        "state": "OPEN",
        "url": f"https://github.com/octo/repo/issues/{number}",
        "createdAt": created_at,
        "updatedAt": created_at,
        "assignees": {"nodes": [{"id": "U_1", "login": "octocat", "avatarUrl": ""}]},
        "labels": {"nodes": [{"id": "L_1", "name": "bug", "color": "d73a4a"}]},
    }


def draft_content(title: str, body: Optional[str] = None, created_at: Optional[str] = None):
    return {"title": title, "body": body, "createdAt": created_at, "updatedAt": created_at}


def item(item_id: str, content=None, status: Optional[str] = None, priority: Optional[str] = None):
    values = []
    if status:
        values.append(status_value(status))
    if priority:
        values.append(priority_value(priority))
    return {"id": item_id, "fieldValues": {"nodes": values}, "content": content}


def project(project_id="P_1", title="Roadmap", number=1, fields=None, items=None):
    return {
        "id": project_id,
        "number": number,
        "title": title,
        "url": f"https://github.com/users/octocat/projects/{number}",
        "fields": {"nodes": fields if fields is not None else [status_field(), priority_field()]},
        "items": {"nodes": items or []},
    }


def projects_response(*projects):
    return {"viewer": {"projectsV2": {"nodes": list(projects)}}}


@pytest.fixture
def board_response():
    return projects_response(
        project(items=[
            item("I_1", issue_content("Fix login", 1, "2025-08-01T10:00:00Z"), status="Todo", priority="High"),
            item("I_2", issue_content("Add dark mode", 2, "2025-08-03T10:00:00Z"), status="In Progress"),
            item("I_3", draft_content("Write docs", "Draft body", "2025-08-02T10:00:00Z"), status="Done", priority="Low"),
        ])
    )


@pytest.fixture
def client(board_response):
    return ScriptedClient({GET_PROJECTS: board_response})


@pytest.fixture
def store(client, board_response):
    store = ProjectStore(client)
    store._projects = decode_projects(board_response)
    return store


@pytest.fixture
def board(store):
    board = BoardProjection()
    board.sync_with(store.current_projects())
    return board
