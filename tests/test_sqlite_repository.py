from datetime import datetime

import pytest

from todo_ai.db import SQLiteRepository
from todo_ai.repositories import InMemoryRepository, ListQuery
from todo_ai.schemas import TodoCreate, TodoUpdate


@pytest.fixture(params=["memory", "sqlite"])
def repo(request, tmp_path):
    if request.param == "sqlite":
        return SQLiteRepository(str(tmp_path / "nested" / "todos.db"))
    return InMemoryRepository()


def seed(repo, owner="u1"):
    repo.create(owner, TodoCreate(title="Write report", priority="high", category="업무",
                                  due_date="2099-01-03T10:00:00"))
    repo.create(owner, TodoCreate(title="buy milk", priority="low", completed=True,
                                  due_date="2099-01-01T09:00:00"))
    repo.create(owner, TodoCreate(title="Call mom", category="개인"))


class TestRepository:
    def test_create_and_get(self, repo):
        created = repo.create("u1", TodoCreate(title="회의", due_date="2099-05-01"))
        assert created["user_id"] == "u1"
        assert created["priority"] == "medium"
        assert created["due_date"] == datetime(2099, 5, 1)
        assert isinstance(created["created_date"], datetime)
        assert repo.get("u1", created["id"]) == created

    def test_owner_scoping(self, repo):
        created = repo.create("u1", TodoCreate(title="private"))
        assert repo.get("u2", created["id"]) is None
        assert repo.update("u2", created["id"], TodoUpdate(completed=True)) is None
        assert repo.delete("u2", created["id"]) is False
        assert repo.list("u2")[1] == 0
        assert repo.all("u2") == []
        assert repo.get("u1", created["id"]) is not None

    def test_update_keeps_unset_and_clears_explicit_nulls(self, repo):
        created = repo.create("u1", TodoCreate(title="t", description="d", category="학습",
                                               due_date="2099-01-01"))
        updated = repo.update("u1", created["id"], TodoUpdate(completed=True, category=None))
        assert updated["completed"] is True
        assert updated["category"] is None
        assert updated["description"] == "d"
        assert updated["due_date"] == datetime(2099, 1, 1)

    def test_delete(self, repo):
        created = repo.create("u1", TodoCreate(title="t"))
        assert repo.delete("u1", created["id"]) is True
        assert repo.get("u1", created["id"]) is None
        assert repo.delete("u1", created["id"]) is False

    def test_filters(self, repo):
        seed(repo)
        _, total = repo.list("u1", ListQuery(status="completed"))
        assert total == 1
        items, _ = repo.list("u1", ListQuery(status="pending"))
        assert {t["title"] for t in items} == {"Write report", "Call mom"}
        items, _ = repo.list("u1", ListQuery(priority="high"))
        assert [t["title"] for t in items] == ["Write report"]
        items, _ = repo.list("u1", ListQuery(category="개인"))
        assert [t["title"] for t in items] == ["Call mom"]
        items, _ = repo.list("u1", ListQuery(search="MILK"))
        assert [t["title"] for t in items] == ["buy milk"]

    def test_sorts(self, repo):
        seed(repo)
        titles = lambda sort: [t["title"] for t in repo.list("u1", ListQuery(sort=sort))[0]]  # noqa: E731
        assert titles("title") == ["buy milk", "Call mom", "Write report"]
        assert titles("due_date") == ["buy milk", "Write report", "Call mom"]
        assert titles("priority")[0] == "Write report"
        assert titles("priority")[-1] == "buy milk"

    def test_pagination(self, repo):
        seed(repo)
        items, total = repo.list("u1", ListQuery(limit=2, offset=2, sort="title"))
        assert total == 3
        assert [t["title"] for t in items] == ["Write report"]


class TestSQLitePersistence:
    def test_survives_new_instance(self, tmp_path):
        path = str(tmp_path / "todos.db")
        created = SQLiteRepository(path).create("u1", TodoCreate(title="keep me", priority="high"))
        again = SQLiteRepository(path).get("u1", created["id"])
        assert again is not None
        assert again["title"] == "keep me"
        assert again["priority"] == "high"


class TestOrdering:
    @pytest.mark.parametrize("sort", ["priority", "title", "due_date", "created_date"])
    def test_ties_come_out_newest_first(self, repo, sort):
        for title in ("first", "second", "third"):
            repo.create("u1", TodoCreate(title="same", description=title, priority="high",
                                         due_date="2099-01-01T09:00:00"))
        items, _ = repo.list("u1", ListQuery(sort=sort))
        assert [t["description"] for t in items] == ["third", "second", "first"]

    def test_mixed_zone_due_dates_use_local_wall_clock(self, repo, monkeypatch):
        monkeypatch.setenv("TODO_TIMEZONE", "Asia/Seoul")
        # 10:00 Seoul time, stored naive
        repo.create("u1", TodoCreate(title="naive ten", due_date="2099-01-01T10:00:00"))
        # 02:00 UTC is 11:00 in Seoul
        repo.create("u1", TodoCreate(title="utc two", due_date="2099-01-01T02:00:00Z"))
        # 09:00 Seoul time, stored with offset
        repo.create("u1", TodoCreate(title="kst nine", due_date="2099-01-01T09:00:00+09:00"))
        items, _ = repo.list("u1", ListQuery(sort="due_date"))
        assert [t["title"] for t in items] == ["kst nine", "naive ten", "utc two"]
