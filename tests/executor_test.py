from pathlib import Path

import pytest

from devimages.errors import BuildFailedError
from devimages.errors import OracleUnavailableError
from devimages.errors import PullFailedError
from devimages.executor import BuildOptions
from devimages.executor import ExecutionRequest
from devimages.executor import Executor
from devimages.registry import BuildAction
from devimages.registry import TargetRegistry


def _registry():
    registry = TargetRegistry()
    registry.register("deps", [], BuildAction(Path("base"), "deps"))
    registry.register("cogutil", ["deps"], BuildAction(Path("cogutil"), "cogutil"))
    registry.register("cli", ["cogutil"], BuildAction(Path("tools/cli"), "cli"))
    registry.register("moses", ["cogutil"], BuildAction(Path("moses"), "moses"))
    registry.register("postgres", [], BuildAction(Path("postgres"), "postgres"))
    return registry


def test_skip_existing_prerequisite(fake_docker):
    docker = fake_docker(existing=["deps"])
    Executor(_registry(), docker).ensure_built("cli", BuildOptions())
    assert docker.calls == [
        ("exists", "cogutil"),
        ("exists", "deps"),
        ("build", "cogutil", False, (), "cogutil"),
        ("build", "cli", False, (), "tools/cli"),
    ]
    assert docker.built == ["cogutil", "cli"]


def test_missing_chain_builds_in_order(fake_docker):
    docker = fake_docker()
    Executor(_registry(), docker).ensure_built("cli", BuildOptions())
    assert docker.built == ["deps", "cogutil", "cli"]


def test_requested_target_always_builds(fake_docker):
    docker = fake_docker(existing=["deps", "cogutil", "cli"])
    Executor(_registry(), docker).ensure_built("cli", BuildOptions())
    assert docker.built == ["cli"]
    # The requested target's own image is never checked
    assert ("exists", "cli") not in docker.calls


def test_target_without_prerequisites(fake_docker):
    docker = fake_docker(existing=["postgres"])
    Executor(_registry(), docker).ensure_built("postgres", BuildOptions())
    assert docker.calls == [("build", "postgres", False, (), "postgres")]


def test_no_cache_reaches_every_build(fake_docker):
    docker = fake_docker()
    Executor(_registry(), docker).run(
        ExecutionRequest("cli", BuildOptions(no_cache=True))
    )
    builds = [c for c in docker.calls if c[0] == "build"]
    assert len(builds) == 3
    assert all(no_cache for _, _, no_cache, _, _ in builds)


def test_build_arguments_are_passed():
    registry = TargetRegistry()
    registry.register(
        "deps", [], BuildAction(Path("base"), "deps", (("OCPKG_URL", "http://x"),))
    )

    class Recorder:
        def build(self, context, tag, *, no_cache=False, build_args=()):
            self.args = build_args
            return True

    recorder = Recorder()
    Executor(registry, recorder).ensure_built("deps", BuildOptions())
    assert recorder.args == (("OCPKG_URL", "http://x"),)


def test_prerequisite_failure_aborts(fake_docker):
    docker = fake_docker(fail_build=["cogutil"])
    executor = Executor(_registry(), docker)
    with pytest.raises(BuildFailedError) as e:
        executor.ensure_built("cli", BuildOptions())
    assert e.value.target == "cogutil"
    assert docker.built == ["deps", "cogutil"]


def test_no_memoization(fake_docker):
    docker = fake_docker(existing=["deps", "cogutil"])
    executor = Executor(_registry(), docker)
    executor.ensure_built("cli", BuildOptions())
    executor.ensure_built("moses", BuildOptions())
    assert docker.calls.count(("exists", "cogutil")) == 2


def test_oracle_failure_is_not_a_rebuild(fake_docker):
    docker = fake_docker(unavailable=True)
    with pytest.raises(OracleUnavailableError):
        Executor(_registry(), docker).ensure_built("cli", BuildOptions())
    assert docker.built == []


def test_progress_banners(fake_docker, capsys):
    docker = fake_docker(existing=["deps"])
    Executor(_registry(), docker).ensure_built("cogutil", BuildOptions())
    captured = capsys.readouterr()
    assert captured.out.split("\n")[:-1] == [
        "---- Starting build of cogutil ----",
        "---- Finished build of cogutil ----",
    ]


def test_failed_build_banner(fake_docker, capsys):
    docker = fake_docker(fail_build=["postgres"])
    with pytest.raises(BuildFailedError):
        Executor(_registry(), docker).ensure_built("postgres", BuildOptions())
    captured = capsys.readouterr()
    assert captured.out.split("\n")[:-1] == [
        "---- Starting build of postgres ----",
        "---- Failed build of postgres ----",
    ]


def test_pull_all_in_order(fake_docker):
    docker = fake_docker()
    tags = ["deps", "cogutil", "cli", "postgres"]
    Executor(_registry(), docker).pull_all(tags)
    assert docker.pulled == tags
    assert docker.built == []


def test_pull_all_stops_at_first_failure(fake_docker, capsys):
    docker = fake_docker(fail_pull=["cogutil"])
    with pytest.raises(PullFailedError) as e:
        Executor(_registry(), docker).pull_all(["deps", "cogutil", "cli"])
    assert e.value.tag == "cogutil"
    assert docker.pulled == ["deps", "cogutil"]
    captured = capsys.readouterr()
    assert "---- Failed pull of development images ----" in captured.out
