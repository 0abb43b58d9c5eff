"""Tests for TFVC operations built on the executor."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from tfvcsync.core.command_history import CommandHistoryLog
from tfvcsync.core.fileset import FilesetManager
from tfvcsync.core.provider import WRITE_SETTLE_SECONDS, TfvcProvider
from tfvcsync.errors import CommandError
from tfvcsync.models import ChangeStatus, PendingChange
from tfvcsync.tf.executor import CommandResult


def _ok(stdout: str = "") -> CommandResult:
    return CommandResult(stdout=stdout, stderr="", exit_code=0)


def _failure(args: list[str], output: str = "boom") -> CommandError:
    return CommandError.from_command_failure(" ".join(args), args, 1, output)


@pytest.fixture
def executor(workspace):
    mock = MagicMock()
    mock.workspace_root = workspace
    mock.tf_path = "tf"
    mock.use_vs_credentials = True
    mock.collection_url = None
    mock.execute = AsyncMock(return_value=_ok())
    return mock


@pytest.fixture
def provider(executor):
    return TfvcProvider(executor, FilesetManager(), CommandHistoryLog())


def _calls(executor) -> list[list[str]]:
    return [call.args[0] for call in executor.execute.await_args_list]


class TestPendingChanges:
    @pytest.mark.asyncio
    async def test_refresh_updates_fileset(self, provider, executor, sample_status_output):
        executor.execute.return_value = _ok(sample_status_output)

        changes = await provider.refresh_pending_changes()

        assert _calls(executor) == [["status", "/format:detailed"]]
        assert [c.path for c in changes] == ["$/Proj/a.cs", "$/Proj/b.cs"]
        assert [c.path for c in provider.fileset.get_included_files()] == ["$/Proj/a.cs", "$/Proj/b.cs"]

    @pytest.mark.asyncio
    async def test_get_file_status(self, provider, executor):
        executor.execute.return_value = _ok("edit $/Proj/a.cs")

        assert await provider.get_file_status("a.cs") == ChangeStatus.EDIT
        assert _calls(executor) == [["status", "a.cs"]]


class TestCheckin:
    @pytest.mark.asyncio
    async def test_argument_vector(self, provider, executor):
        await provider.checkin(["$/a", "$/b"], "Fix login")

        assert _calls(executor) == [["checkin", "-comment:", '"Fix login"', "$/a", "$/b"]]
        [entry] = provider.history.recent()
        assert (entry.command, entry.success) == ("checkin", True)

    @pytest.mark.asyncio
    async def test_empty_paths_rejected(self, provider, executor):
        with pytest.raises(ValueError):
            await provider.checkin([], "nothing")

        executor.execute.assert_not_awaited()
        assert len(provider.history) == 0

    @pytest.mark.asyncio
    async def test_failure_is_recorded_and_wrapped(self, provider, executor):
        executor.execute.side_effect = _failure(["checkin"], "TF30063: not authorized")

        with pytest.raises(CommandError) as exc_info:
            await provider.checkin(["$/a"], "msg")

        assert exc_info.value.command == "checkin"
        assert "TF30063" in exc_info.value.output
        [entry] = provider.history.recent()
        assert entry.success is False

    @pytest.mark.asyncio
    async def test_checkin_included_uses_fileset(self, provider, executor):
        provider.fileset.set_pending_changes(
            [
                PendingChange("$/a", ChangeStatus.EDIT),
                PendingChange("$/b", ChangeStatus.ADD),
            ]
        )
        provider.fileset.toggle_file_inclusion("$/b")

        paths = await provider.checkin_included("msg")

        assert paths == ["$/a"]
        assert _calls(executor) == [
            ["checkin", "-comment:", '"msg"', "$/a"],
            ["status", "/format:detailed"],
        ]


class TestShelvesets:
    @pytest.mark.asyncio
    async def test_create_shelveset(self, provider, executor):
        await provider.create_shelveset("wip", "work in progress", ["$/a"])

        assert _calls(executor) == [
            ["shelve", "-comment:", '"work in progress"', "-name:", '"wip"', "$/a"]
        ]
        assert provider.history.recent()[0].command == "shelve"

    @pytest.mark.asyncio
    async def test_shelve_without_files_rejected(self, provider):
        with pytest.raises(ValueError):
            await provider.shelve_included("wip", "msg")

    @pytest.mark.asyncio
    async def test_apply_shelveset(self, provider, executor):
        await provider.apply_shelveset("wip", "jane")
        assert _calls(executor) == [["unshelve", "wip", "jane", "/recursive"]]


class TestCheckout:
    @pytest.mark.asyncio
    async def test_checkout_refreshes(self, provider, executor):
        await provider.checkout("a.cs")

        assert _calls(executor) == [["checkout", "a.cs"], ["status", "/format:detailed"]]

    @pytest.mark.asyncio
    async def test_checkout_failure_wrapped(self, provider, executor):
        executor.execute.side_effect = _failure(["checkout", "a.cs"])

        with pytest.raises(CommandError) as exc_info:
            await provider.checkout("a.cs")

        assert exc_info.value.message == "Failed to check out file"
        assert exc_info.value.args_list == ["a.cs"]


class TestGetLatestAndMerge:
    @pytest.mark.asyncio
    async def test_merge_gets_latest_first(self, provider, executor):
        await provider.merge("$/Proj/Dev", "$/Proj/Main")

        assert _calls(executor) == [
            ["get", "/recursive"],
            ["merge", "$/Proj/Dev", "$/Proj/Main", "/recursive"],
        ]

    @pytest.mark.asyncio
    async def test_merge_stops_when_get_fails(self, provider, executor):
        executor.execute.side_effect = _failure(["get", "/recursive"])

        with pytest.raises(CommandError):
            await provider.merge("$/Proj/Dev", "$/Proj/Main")

        assert _calls(executor) == [["get", "/recursive"]]


class TestHistoryAndBranches:
    @pytest.mark.asyncio
    async def test_history(self, provider, executor):
        executor.execute.return_value = _ok("Changeset: 7 Author: Jane Date: 2024-01-01\n")

        items = await provider.get_history("a.cs")

        assert [i.changeset_id for i in items] == ["7"]
        assert _calls(executor) == [["history", "a.cs", "/format:detailed"]]
        assert provider.history.recent()[0].command == "history"

    @pytest.mark.asyncio
    async def test_branches_failure_recorded(self, provider, executor):
        executor.execute.side_effect = _failure(["branches"])

        with pytest.raises(CommandError):
            await provider.get_branches()

        [entry] = provider.history.recent()
        assert (entry.command, entry.success) == ("branches", False)


class TestDiff:
    @pytest.mark.asyncio
    async def test_added_file_compares_against_empty(self, provider, executor):
        executor.execute.return_value = _ok("add $/Proj/new.cs")

        request = await provider.prepare_diff("src/new.cs")

        assert request.original is None
        assert request.modified == Path("src/new.cs")
        assert request.title == "new.cs (New File)"

    @pytest.mark.asyncio
    async def test_edited_file_fetches_previous_version(self, provider, executor):
        executor.execute.return_value = _ok("edit $/Proj/a.cs")

        request = await provider.prepare_diff("src/a.cs")

        assert request.original is not None
        assert request.original.name == "tfvc_a.cs_prev"
        assert request.title == "a.cs (Changes)"
        view_args = _calls(executor)[-1]
        assert view_args[:2] == ["view", "src/a.cs"]
        assert view_args[2] == f"/output:{request.original}"


class TestProbes:
    @pytest.mark.asyncio
    async def test_detect_collection_url(self, provider, executor, sample_workfold_output):
        executor.execute.return_value = _ok(sample_workfold_output)

        url = await provider.detect_collection_url()

        assert url == "https://dev.azure.com/contoso/"
        assert executor.collection_url == url
        executor.execute.assert_awaited_with(["workfold"], suppress_errors=True)

    @pytest.mark.asyncio
    async def test_validate_credentials(self, provider, executor):
        assert await provider.validate_credentials() is True

        executor.execute.side_effect = _failure(["workspaces"], "TF30063")
        assert await provider.validate_credentials() is False

    @pytest.mark.asyncio
    async def test_initialize_creates_workspace_when_missing(self, provider, executor, workspace):
        async def execute(args, suppress_errors=False):
            if args == ["workspaces"]:
                raise _failure(args, "TF14061: no workspace")
            return _ok()

        executor.execute.side_effect = execute

        await provider.initialize_workspace()

        assert ["workspace", "-new", workspace.name] in _calls(executor)


class TestWorkspaceWrites:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "operation",
        [
            lambda p: p.get_latest(),
            lambda p: p.merge("$/Proj/Dev", "$/Proj/Main"),
            lambda p: p.apply_shelveset("wip", "jane"),
        ],
        ids=["get", "merge", "unshelve"],
    )
    async def test_marked_while_tf_writes(self, provider, executor, operation):
        during = []

        async def execute(args, suppress_errors=False):
            during.append(provider.is_writing_workspace())
            return _ok()

        executor.execute.side_effect = execute

        await operation(provider)

        assert during and all(during)
        assert provider.is_writing_workspace() is True

    @pytest.mark.asyncio
    async def test_mark_expires_after_settle_period(self, provider, monkeypatch):
        await provider.get_latest()
        finished = provider._last_write_finished
        monkeypatch.setattr(
            "tfvcsync.core.provider.time.monotonic",
            lambda: finished + WRITE_SETTLE_SECONDS + 0.1,
        )

        assert provider.is_writing_workspace() is False

    @pytest.mark.asyncio
    async def test_read_operations_do_not_mark(self, provider):
        await provider.get_branches()
        await provider.refresh_pending_changes()

        assert provider.is_writing_workspace() is False

    @pytest.mark.asyncio
    async def test_failed_write_still_clears_mark(self, provider, executor):
        executor.execute.side_effect = _failure(["get", "/recursive"])

        with pytest.raises(CommandError):
            await provider.get_latest()

        assert provider._workspace_writes == 0
