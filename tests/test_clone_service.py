"""
Tests for the clone orchestrator.
"""

import io
import logging
import os
from unittest.mock import MagicMock, patch

import pytest

from gitstart.exit_codes import PreconditionError, CycleDetectedError, ToolInvocationError, ParseError
from gitstart.progress import ProgressReporter
from gitstart.services.clone_service import CloneOrchestrator, CloneOptions
from gitstart.services.exclude_registry import ExcludeRegistry

TRUNK = "http://svn.example.com/repo/trunk"
LIBX = "http://svn.example.com/libX/trunk"
LIBY = "http://svn.example.com/libY/trunk"
LIBZ = "http://svn.example.com/libZ/trunk"


@pytest.fixture
def quiet_progress():
    return ProgressReporter(enabled=False, use_colors=False, stream=io.StringIO())


@pytest.fixture
def one_external():
    return {
        TRUNK: {
            "revision": "482",
            "externals": f"{TRUNK}/vendor/lib - libX {LIBX}\n",
            "empty_dirs": ["src/assets"],
        },
        LIBX: {"revision": "77"},
    }


class TestCloneOptions:

    def test_defaults(self):
        options = CloneOptions()

        assert options.branch == "working"
        assert options.externals_dir == ".externals"
        assert options.jobs == 1

    def test_from_config(self):
        options = CloneOptions.from_config({"branch": "main-work", "externals_dir": ".ext", "jobs": "4"})

        assert options.branch == "main-work"
        assert options.externals_dir == ".ext"
        assert options.jobs == 4

    def test_from_config_clamps_jobs(self):
        assert CloneOptions.from_config({"jobs": 0}).jobs == 1

    def test_orchestrator_reads_options_from_given_config(self):
        orchestrator = CloneOrchestrator(gateway=MagicMock(), config={"branch": "dev", "jobs": 2})

        assert orchestrator.options.branch == "dev"
        assert orchestrator.options.jobs == 2


class TestPrecondition:

    def test_existing_target_fails_before_any_tool_call(self, make_orchestrator, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator()
        target = tmp_path / "repo"
        target.mkdir()
        (target / "keep.txt").write_text("mine")

        with pytest.raises(PreconditionError) as exc_info:
            orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        assert "already exists" in str(exc_info.value)
        assert exc_info.value.exit_code == 1
        assert gateway.calls == []
        assert os.listdir(target) == ["keep.txt"]

    def test_dangling_symlink_counts_as_existing(self, make_orchestrator, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator()
        target = tmp_path / "repo"
        target.symlink_to(tmp_path / "missing")

        with pytest.raises(PreconditionError):
            orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        assert gateway.calls == []


class TestRun:

    def test_end_to_end(self, make_orchestrator, one_external, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator(one_external)
        target = tmp_path / "repo"

        result = orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        storage = target / ".externals" / "libX"
        link = target / "vendor" / "lib" / "libX"
        assert storage.is_dir()
        assert link.is_symlink()
        assert os.readlink(link) == str(storage)

        entries = ExcludeRegistry(target).entries()
        assert ".externals" in entries
        assert "vendor/lib/libX" in entries
        assert ".gitignore" in entries

        assert (target / ".git" / "HEAD").read_text() == "ref: refs/heads/working\n"
        assert result.branch == "working"
        assert orchestrator.last_result is result

    def test_exclude_file_layout(self, make_orchestrator, one_external, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator(one_external)
        target = tmp_path / "repo"

        orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        assert ExcludeRegistry(target).entries() == [
            "# /",
            "/build",
            "",
            "# Git files",
            ".gitignore",
            ".externals",
            "vendor/lib/libX",
        ]

    def test_revision_is_pinned_before_cloning(self, make_orchestrator, one_external, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator(one_external)
        target = tmp_path / "repo"

        result = orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        names = [call[0] for call in gateway.calls if call[1] == TRUNK]
        assert names == ["resolve_latest_revision", "clone_with_history", "list_externals"]
        assert gateway.calls_to("clone_with_history")[0] == ("clone_with_history", TRUNK, str(target), "482")
        assert gateway.calls_to("list_externals")[0] == ("list_externals", TRUNK, True, "482")
        assert result.source.url == TRUNK
        assert result.source.revision == "482"

    def test_externals_clone_at_their_own_latest(self, make_orchestrator, one_external, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator(one_external)
        target = tmp_path / "repo"

        result = orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        storage = str(target / ".externals" / "libX")
        assert ("clone_with_history", LIBX, storage, "77") in gateway.calls
        assert ("create_branch", "working", storage) in gateway.calls

        linked = result.externals[0]
        assert linked.cloned is True
        assert linked.storage_path == storage
        assert linked.migration.source.revision == "77"

    def test_empty_dirs_restored(self, make_orchestrator, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator({
            TRUNK: {"empty_dirs": ["src/assets", "src/assets", "docs"]},
        })
        target = tmp_path / "repo"

        result = orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        assert (target / "src" / "assets").is_dir()
        assert (target / "docs").is_dir()
        assert result.clone.empty_dirs == ("src/assets", "src/assets", "docs")

    def test_empty_dir_outside_clone_is_refused(self, make_orchestrator, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator({
            TRUNK: {"empty_dirs": ["../../outside"]},
        })
        target = tmp_path / "work" / "repo"

        with pytest.raises(ParseError):
            orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        assert not (tmp_path / "outside").exists()

    def test_no_externals(self, make_orchestrator, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator()
        target = tmp_path / "repo"

        result = orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        assert result.externals == ()
        assert (target / ".externals").is_dir()
        assert ExcludeRegistry(target).entries()[-1] == ".externals"

    def test_custom_branch_and_externals_dir(self, make_orchestrator, one_external, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator(one_external, branch="svn-work", externals_dir=".ext")
        target = tmp_path / "repo"

        orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        assert (target / ".git" / "HEAD").read_text() == "ref: refs/heads/svn-work\n"
        assert os.readlink(target / "vendor" / "lib" / "libX") == str(target / ".ext" / "libX")
        assert ".ext" in ExcludeRegistry(target).entries()

    def test_nested_externals(self, make_orchestrator, one_external, tmp_path, quiet_progress):
        one_external[LIBX]["externals"] = f"{LIBX}/include - libY {LIBY}\n"
        orchestrator, gateway = make_orchestrator(one_external)
        target = tmp_path / "repo"

        result = orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        lib_x = target / ".externals" / "libX"
        lib_y = lib_x / ".externals" / "libY"
        assert lib_y.is_dir()
        assert os.readlink(lib_x / "include" / "libY") == str(lib_y)
        assert "include/libY" in ExcludeRegistry(lib_x).entries()
        assert [linked.definition.local_name for linked in result.iter_externals()] == ["libX", "libY"]

    def test_tool_failure_propagates(self, make_orchestrator, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator()
        gateway.resolve_latest_revision = MagicMock(side_effect=ToolInvocationError("svn: E170013"))
        target = tmp_path / "repo"

        with pytest.raises(ToolInvocationError):
            orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        assert not target.exists()

    def test_progress_is_indented_per_level(self, make_orchestrator, one_external, tmp_path):
        stream = io.StringIO()
        progress = ProgressReporter(enabled=True, use_colors=False, stream=stream)
        orchestrator, gateway = make_orchestrator(one_external)
        target = tmp_path / "repo"

        orchestrator.run(TRUNK, str(target), progress=progress)

        lines = stream.getvalue().splitlines()
        assert f"finding latest revision of {TRUNK}" in lines
        assert "\tmaking empty directory: src/assets" in lines
        assert f"\tfinding latest revision of {LIBX}" in lines
        assert f"\tsymlinking libX into {target / 'vendor' / 'lib'}" in lines
        assert f"creating 'working' branch on {target}" in lines


class TestCloneExternals:

    def test_second_run_reuses_clone_but_relinks(self, make_orchestrator, one_external, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator(one_external)
        target = tmp_path / "repo"
        orchestrator.run(TRUNK, str(target), progress=quiet_progress)
        link = target / "vendor" / "lib" / "libX"
        link.unlink()
        clones_before = len(gateway.calls_to("clone_with_history"))

        linked = orchestrator.clone_externals(TRUNK, str(target), progress=quiet_progress)

        assert len(gateway.calls_to("clone_with_history")) == clones_before
        assert link.is_symlink()
        assert os.readlink(link) == str(target / ".externals" / "libX")
        assert linked[0].cloned is False
        assert linked[0].migration is None
        assert ExcludeRegistry(target).entries().count("vendor/lib/libX") == 2

    def test_existing_link_is_replaced(self, make_orchestrator, one_external, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator(one_external)
        target = tmp_path / "repo"
        orchestrator.run(TRUNK, str(target), progress=quiet_progress)
        link = target / "vendor" / "lib" / "libX"
        link.unlink()
        link.symlink_to(tmp_path)

        orchestrator.clone_externals(TRUNK, str(target), progress=quiet_progress)

        assert os.readlink(link) == str(target / ".externals" / "libX")

    def test_same_name_cloned_once_linked_twice(self, make_orchestrator, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator({
            TRUNK: {"externals": f"{TRUNK}/a - libX {LIBX}\n\n{TRUNK}/b - libX {LIBX}\n"},
        })
        target = tmp_path / "repo"

        result = orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        lib_x_clones = [call for call in gateway.calls_to("clone_with_history") if call[1] == LIBX]
        assert len(lib_x_clones) == 1
        assert (target / "a" / "libX").is_symlink()
        assert (target / "b" / "libX").is_symlink()
        assert [linked.cloned for linked in result.externals] == [True, False]

    def test_root_level_external(self, make_orchestrator, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator({
            TRUNK: {"externals": f"{TRUNK} - tools {LIBX}\n"},
        })
        target = tmp_path / "repo"

        orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        assert os.readlink(target / "tools") == str(target / ".externals" / "tools")
        assert ExcludeRegistry(target).entries()[-1] == "tools"

    def test_real_directory_at_mount_point_is_refused(self, make_orchestrator, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator({
            TRUNK: {
                "externals": f"{TRUNK}/vendor/lib - libX {LIBX}\n",
                "empty_dirs": ["vendor/lib/libX"],
            },
        })
        target = tmp_path / "repo"

        with pytest.raises(PreconditionError):
            orchestrator.run(TRUNK, str(target), progress=quiet_progress)

    def test_parallel_clones(self, make_orchestrator, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator({
            TRUNK: {
                "externals": (
                    f"{TRUNK}/vendor - libX {LIBX}\n"
                    f"libY {LIBY}\n"
                    f"libZ {LIBZ}\n"
                    "\n"
                    f"{TRUNK}/tools - libX {LIBX}\n"
                ),
            },
        }, jobs=3)
        target = tmp_path / "repo"

        result = orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        cloned_urls = sorted(call[1] for call in gateway.calls_to("clone_with_history"))
        assert cloned_urls == sorted([TRUNK, LIBX, LIBY, LIBZ])
        for name in ("libX", "libY", "libZ"):
            assert os.readlink(target / "vendor" / name) == str(target / ".externals" / name)
        assert (target / "tools" / "libX").is_symlink()
        assert [linked.definition.link_path for linked in result.externals] == [
            "vendor/libX", "vendor/libY", "vendor/libZ", "tools/libX",
        ]

    def test_cycle_detected(self, make_orchestrator, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator({
            TRUNK: {"externals": f"{TRUNK}/vendor - libX {LIBX}\n"},
            LIBX: {"externals": f"{LIBX}/back - repo {TRUNK}/\n"},
        })
        target = tmp_path / "repo"

        with pytest.raises(CycleDetectedError) as exc_info:
            orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        assert exc_info.value.url == TRUNK + "/"
        assert LIBX in str(exc_info.value)

    def test_shared_name_with_different_urls_is_logged(self, make_orchestrator, tmp_path, quiet_progress, caplog):
        orchestrator, gateway = make_orchestrator({
            TRUNK: {"externals": f"{TRUNK}/a - libX {LIBX}\n\n{TRUNK}/b - libX {LIBY}\n"},
        })
        target = tmp_path / "repo"

        with caplog.at_level(logging.WARNING, logger="gitstart"):
            orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        assert any(
            "b/libX reuses .externals/libX" in record.getMessage() and LIBX in record.getMessage()
            for record in caplog.records
        )
        assert [call[1] for call in gateway.calls_to("clone_with_history")] == [TRUNK, LIBX]


class TestExcludeRegistrySharing:

    def test_one_registry_per_target(self, make_orchestrator, tmp_path):
        orchestrator, gateway = make_orchestrator()
        target = str(tmp_path / "repo")

        registry = orchestrator.registry_for(target)

        assert orchestrator.registry_for(target + "/") is registry
        assert orchestrator.registry_for(str(tmp_path / "other")) is not registry

    def test_each_exclude_file_gets_a_single_writer(self, make_orchestrator, one_external, tmp_path, quiet_progress):
        orchestrator, gateway = make_orchestrator(one_external)
        target = tmp_path / "repo"

        with patch('gitstart.services.clone_service.ExcludeRegistry', wraps=ExcludeRegistry) as registry_cls:
            orchestrator.run(TRUNK, str(target), progress=quiet_progress)

        created_for = sorted(call[0][0] for call in registry_cls.call_args_list)
        assert created_for == sorted([str(target), str(target / ".externals" / "libX")])
