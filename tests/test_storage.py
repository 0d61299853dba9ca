from __future__ import annotations

from pathlib import Path

import pytest
from conftest import seed

from bugledger.graph import IssueNotFound, apply
from bugledger.storage import IssueRepository, UnknownReference


def test_create_writes_numbered_mdx_file(repo: IssueRepository) -> None:
    record = repo.create("Login times out", priority="high")

    path = repo.open_dir / "01-login-times-out.mdx"
    assert record["id"] == 1
    assert path.exists()
    text = path.read_text(encoding="utf-8")
    assert text.startswith("---\nid: 1\n")
    assert "# BUG-1: Login times out" in text
    assert repo.get(1)["priority"] == "high"


def test_next_id_counts_closed_issues(repo: IssueRepository) -> None:
    seed(repo, 3)
    repo.close(3)

    assert repo.next_id() == 4
    assert repo.create("Another")["id"] == 4


def test_list_is_sorted_and_scoped(repo: IssueRepository) -> None:
    seed(repo, 12)
    repo.close(2)

    open_ids = [row["id"] for row in repo.list()]
    all_ids = [row["id"] for row in repo.list(include_closed=True)]

    assert open_ids == [1, *range(3, 13)]
    assert all_ids == list(range(1, 13))


def test_list_on_missing_directory_is_empty(tmp_path: Path) -> None:
    assert IssueRepository(tmp_path / "nowhere").list(include_closed=True) == []


def test_update_rewrites_in_place(repo: IssueRepository) -> None:
    seed(repo, 1)

    def mutate(record: dict) -> None:
        record["status"] = "in_progress"
        record["id"] = 99

    updated = repo.update(1, mutate)

    assert updated["id"] == 1
    assert repo.get(1)["status"] == "in_progress"
    assert list(repo.open_dir.iterdir()) == [repo.open_dir / "01-issue-1.mdx"]
    assert not list(repo.open_dir.glob(".*.tmp"))


def test_update_missing_issue_raises(repo: IssueRepository) -> None:
    with pytest.raises(IssueNotFound):
        repo.update(5, lambda record: None)


def test_close_and_reopen_move_file_and_keep_edges(repo: IssueRepository) -> None:
    seed(repo, 2)
    apply(repo, 2, add=[1])

    closed = repo.close(1)

    assert closed["status"] == "closed"
    assert isinstance(closed["closed"], int)
    assert not repo.is_open(1)
    assert (repo.closed_dir / "01-issue-1.mdx").exists()
    assert repo.get(1)["blocks"] == [2]

    reopened = repo.reopen(1)

    assert reopened["status"] == "not_started"
    assert repo.is_open(1)
    assert repo.get(1)["closed"] is None
    assert repo.get(1)["blocks"] == [2]
    assert repo.get(2)["depends_on"] == [1]


def test_malformed_file_names_path(repo: IssueRepository) -> None:
    repo.open_dir.mkdir(parents=True)
    (repo.open_dir / "03-broken.mdx").write_text("no frontmatter\n", encoding="utf-8")

    with pytest.raises(ValueError, match="03-broken.mdx"):
        repo.get(3)


def test_resolve_ref_numbers_and_aliases(repo: IssueRepository) -> None:
    seed(repo, 3)
    repo.add_alias(2, "login")

    assert repo.resolve_ref(3) == 3
    assert repo.resolve_ref("12") == 12
    assert repo.resolve_ref("BUG-2") == 2
    assert repo.resolve_ref("bug-3") == 3
    assert repo.resolve_ref("login") == 2
    with pytest.raises(UnknownReference):
        repo.resolve_ref("logout")


def test_alias_management(repo: IssueRepository) -> None:
    seed(repo, 2)

    repo.add_alias(1, "db")
    repo.add_alias(2, "api")

    assert repo.load_aliases() == {"api": 2, "db": 1}
    assert repo.aliases_path.read_text(encoding="utf-8") == "api: 2\ndb: 1\n"
    assert repo.remove_alias("db") is True
    assert repo.remove_alias("db") is False
    assert repo.load_aliases() == {"api": 2}


def test_alias_rejects_numeric_names_and_unknown_issues(repo: IssueRepository) -> None:
    seed(repo, 1)

    with pytest.raises(ValueError, match="invalid alias"):
        repo.add_alias(1, "BUG-4")
    with pytest.raises(ValueError, match="invalid alias"):
        repo.add_alias(1, "42")
    with pytest.raises(IssueNotFound):
        repo.add_alias(9, "ghost")


def test_start_block_and_finish_keep_edges(repo: IssueRepository) -> None:
    seed(repo, 2)
    apply(repo, 2, add=[1])

    started = repo.start(1)
    assert started["status"] == "in_progress"
    assert isinstance(started["started"], int)

    blocked = repo.block(1, "  waiting on vendor  ")
    assert blocked["status"] == "blocked"
    assert blocked["blocked_reason"] == "waiting on vendor"

    done = repo.finish(1)
    assert done["status"] == "done"
    assert done["blocked_reason"] is None
    assert repo.is_open(1)

    assert repo.get(1)["blocks"] == [2]
    assert repo.get(2)["depends_on"] == [1]


def test_restarting_clears_blocked_reason(repo: IssueRepository) -> None:
    seed(repo, 1)
    repo.block(1, "flaky CI")

    assert repo.start(1)["blocked_reason"] is None
    assert "blocked_reason" not in (repo.open_dir / "01-issue-1.mdx").read_text(encoding="utf-8")


def test_status_changes_are_validated(repo: IssueRepository) -> None:
    seed(repo, 2)
    repo.close(2)

    with pytest.raises(ValueError, match="needs a reason"):
        repo.block(1, "   ")
    with pytest.raises(ValueError, match="invalid status"):
        repo.set_status(1, "wontfix")
    with pytest.raises(ValueError, match="use close"):
        repo.set_status(1, "closed")
    with pytest.raises(ValueError, match="BUG-2 is closed"):
        repo.start(2)
    with pytest.raises(IssueNotFound):
        repo.start(9)
    assert repo.get(1)["status"] == "not_started"


def test_corrupt_alias_file_is_reported_not_overwritten(repo: IssueRepository) -> None:
    seed(repo, 2)
    repo.issues_dir.mkdir(exist_ok=True)
    repo.aliases_path.write_text("db: 1\napi: [2\n", encoding="utf-8")

    with pytest.raises(ValueError, match=r"\.aliases\.yaml: failed to parse aliases"):
        repo.add_alias(2, "web")

    assert repo.aliases_path.read_text(encoding="utf-8") == "db: 1\napi: [2\n"


def test_alias_file_with_bad_ids_is_rejected(repo: IssueRepository) -> None:
    repo.issues_dir.mkdir(parents=True)
    repo.aliases_path.write_text("db: one\n", encoding="utf-8")

    with pytest.raises(ValueError, match="alias 'db' has invalid id 'one'"):
        repo.load_aliases()
