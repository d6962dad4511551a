"""Tests for the execution engine."""

from pathlib import Path

from cookbook_cleanup.core.execution import ExecutionEngine
from cookbook_cleanup.core.retention import DeletionPlan
from cookbook_cleanup.core.types import (
    ActionOutcome,
    ActionResult,
    CleanupOptions,
    ExecutionPolicy,
)
from cookbook_cleanup.gateway.chef_server.fake import FakeChefServer
from cookbook_cleanup.gateway.cookbook_backup.abc import CookbookDownloader
from cookbook_cleanup.gateway.cookbook_backup.fake import FakeCookbookDownloader
from cookbook_cleanup.gateway.cookbook_backup.real import RealCookbookDownloader


def _plan(candidates: dict[str, list[str]]) -> DeletionPlan:
    return DeletionPlan(
        candidates=candidates,
        keep={name: [] for name in candidates},
        protections=(),
        resolution_failures=(),
    )


def _engine(
    server: FakeChefServer,
    *,
    policy: ExecutionPolicy,
    backup_dir: Path,
    downloader: CookbookDownloader | None = None,
) -> ExecutionEngine:
    options = CleanupOptions(
        keep_count=3,
        cookbook=None,
        run_list=None,
        policy=policy,
        backup_dir=backup_dir,
        assume_yes=True,
        verbose=False,
    )
    return ExecutionEngine(
        chef_server=server,
        downloader=downloader if downloader is not None else FakeCookbookDownloader(),
        options=options,
    )


def _outcomes(results: list[ActionResult]) -> list[tuple[str, str, ActionOutcome]]:
    return [(r.cookbook, r.version, r.outcome) for r in results]


def test_report_only_skips_everything(tmp_path: Path) -> None:
    server = FakeChefServer(cookbooks={"nginx": ["1.0", "1.2"]})
    engine = _engine(server, policy=ExecutionPolicy.REPORT_ONLY, backup_dir=tmp_path)

    results = engine.apply(_plan({"nginx": ["1.0", "1.2"]}), confirmed=True)

    assert _outcomes(results) == [
        ("nginx", "1.0", ActionOutcome.SKIPPED),
        ("nginx", "1.2", ActionOutcome.SKIPPED),
    ]
    assert server.delete_attempts == []


def test_unconfirmed_delete_takes_no_action(tmp_path: Path) -> None:
    server = FakeChefServer(cookbooks={"nginx": ["1.0"]})
    downloader = FakeCookbookDownloader()
    engine = _engine(
        server,
        policy=ExecutionPolicy.DELETE_WITH_BACKUP,
        backup_dir=tmp_path / "backups",
        downloader=downloader,
    )

    results = engine.apply(_plan({"nginx": ["1.0"]}), confirmed=False)

    assert _outcomes(results) == [("nginx", "1.0", ActionOutcome.SKIPPED)]
    assert server.delete_attempts == []
    assert downloader.download_calls == []
    assert not (tmp_path / "backups").exists()


def test_delete_processes_pairs_in_cookbook_order(tmp_path: Path) -> None:
    server = FakeChefServer(cookbooks={"zsh": ["1.0"], "apt": ["6.0", "6.1"]})
    engine = _engine(server, policy=ExecutionPolicy.DELETE, backup_dir=tmp_path)

    results = engine.apply(_plan({"zsh": ["1.0"], "apt": ["6.0", "6.1"]}), confirmed=True)

    assert _outcomes(results) == [
        ("apt", "6.0", ActionOutcome.DELETED),
        ("apt", "6.1", ActionOutcome.DELETED),
        ("zsh", "1.0", ActionOutcome.DELETED),
    ]
    assert server.deleted_versions == [("apt", "6.0"), ("apt", "6.1"), ("zsh", "1.0")]


def test_failed_delete_does_not_stop_the_batch(tmp_path: Path) -> None:
    server = FakeChefServer(
        cookbooks={"nginx": ["1.0", "1.1", "1.2"]},
        failing_deletes={("nginx", "1.0")},
    )
    engine = _engine(server, policy=ExecutionPolicy.DELETE, backup_dir=tmp_path)

    results = engine.apply(_plan({"nginx": ["1.0", "1.1", "1.2"]}), confirmed=True)

    assert _outcomes(results) == [
        ("nginx", "1.0", ActionOutcome.DELETE_FAILED),
        ("nginx", "1.1", ActionOutcome.DELETED),
        ("nginx", "1.2", ActionOutcome.DELETED),
    ]
    assert results[0].message == "internal server error"


def test_backup_precedes_delete(tmp_path: Path) -> None:
    server = FakeChefServer(cookbooks={"nginx": ["1.0"]})
    downloader = FakeCookbookDownloader()
    engine = _engine(
        server,
        policy=ExecutionPolicy.DELETE_WITH_BACKUP,
        backup_dir=tmp_path,
        downloader=downloader,
    )

    results = engine.apply(_plan({"nginx": ["1.0"]}), confirmed=True)

    assert _outcomes(results) == [
        ("nginx", "1.0", ActionOutcome.BACKED_UP),
        ("nginx", "1.0", ActionOutcome.DELETED),
    ]
    assert downloader.download_calls == [("nginx", "1.0", tmp_path / "nginx")]
    assert (tmp_path / "nginx" / "nginx-1.0" / "metadata.json").exists()


def test_backup_failure_still_deletes_and_cleans_staging(tmp_path: Path) -> None:
    server = FakeChefServer(cookbooks={"nginx": ["1.0", "1.2"]})
    downloader = FakeCookbookDownloader(failing_versions={("nginx", "1.2")})
    engine = _engine(
        server,
        policy=ExecutionPolicy.DELETE_WITH_BACKUP,
        backup_dir=tmp_path,
        downloader=downloader,
    )

    results = engine.apply(_plan({"nginx": ["1.0", "1.2"]}), confirmed=True)

    assert _outcomes(results) == [
        ("nginx", "1.0", ActionOutcome.BACKED_UP),
        ("nginx", "1.0", ActionOutcome.DELETED),
        ("nginx", "1.2", ActionOutcome.BACKUP_FAILED),
        ("nginx", "1.2", ActionOutcome.DELETED),
    ]
    assert not (tmp_path / "nginx" / "nginx-1.2").exists()
    assert (tmp_path / "nginx" / "nginx-1.0").exists()


def test_unwritable_backup_dir_degrades_to_backup_failed(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    server = FakeChefServer(cookbooks={"nginx": ["1.0"]})
    downloader = FakeCookbookDownloader()
    engine = _engine(
        server,
        policy=ExecutionPolicy.DELETE_WITH_BACKUP,
        backup_dir=blocker,
        downloader=downloader,
    )

    results = engine.apply(_plan({"nginx": ["1.0"]}), confirmed=True)

    assert _outcomes(results) == [
        ("nginx", "1.0", ActionOutcome.BACKUP_FAILED),
        ("nginx", "1.0", ActionOutcome.DELETED),
    ]
    assert downloader.download_calls == []


def test_on_result_receives_each_result_in_order(tmp_path: Path) -> None:
    server = FakeChefServer(cookbooks={"nginx": ["1.0", "1.1"]})
    engine = _engine(server, policy=ExecutionPolicy.DELETE, backup_dir=tmp_path)
    seen: list[ActionResult] = []

    results = engine.apply(
        _plan({"nginx": ["1.0", "1.1"]}), confirmed=True, on_result=seen.append
    )

    assert seen == results


def test_empty_candidate_list_triggers_no_action(tmp_path: Path) -> None:
    server = FakeChefServer(cookbooks={"nginx": ["2.0"]})
    engine = _engine(server, policy=ExecutionPolicy.DELETE, backup_dir=tmp_path)

    results = engine.apply(_plan({"nginx": []}), confirmed=True)

    assert results == []
    assert server.delete_attempts == []


def test_malformed_manifest_fails_backup_and_batch_continues(tmp_path: Path) -> None:
    server = FakeChefServer(
        cookbooks={"nginx": ["1.0", "1.2"]},
        manifests={
            ("nginx", "1.0"): {"all_files": [{"path": "metadata.rb"}]},
            ("nginx", "1.2"): {"all_files": [{"path": "metadata.rb", "url": "https://b/m"}]},
        },
        files={"https://b/m": b"name 'nginx'\n"},
    )
    engine = _engine(
        server,
        policy=ExecutionPolicy.DELETE_WITH_BACKUP,
        backup_dir=tmp_path,
        downloader=RealCookbookDownloader(chef_server=server),
    )

    results = engine.apply(_plan({"nginx": ["1.0", "1.2"]}), confirmed=True)

    assert _outcomes(results) == [
        ("nginx", "1.0", ActionOutcome.BACKUP_FAILED),
        ("nginx", "1.0", ActionOutcome.DELETED),
        ("nginx", "1.2", ActionOutcome.BACKED_UP),
        ("nginx", "1.2", ActionOutcome.DELETED),
    ]
    assert not (tmp_path / "nginx" / "nginx-1.0").exists()
    assert (tmp_path / "nginx" / "nginx-1.2" / "metadata.rb").exists()
    assert server.deleted_versions == [("nginx", "1.0"), ("nginx", "1.2")]
