import pytest

from devimages.errors import OracleUnavailableError


class FakeDocker:
    """Records calls instead of talking to a docker daemon.

    Built and pulled images start existing, like they would locally.
    """

    def __init__(self, existing=(), fail_build=(), fail_pull=(), unavailable=False):
        self.existing = set(existing)
        self.fail_build = set(fail_build)
        self.fail_pull = set(fail_pull)
        self.unavailable = unavailable
        self.calls = []

    def exists(self, tag):
        self.calls.append(("exists", tag))
        if self.unavailable:
            raise OracleUnavailableError("docker daemon is not running")
        return tag in self.existing

    def build(self, context, tag, *, no_cache=False, build_args=()):
        self.calls.append(("build", tag, no_cache, tuple(build_args), str(context)))
        if tag in self.fail_build:
            return False
        self.existing.add(tag)
        return True

    def pull(self, tag):
        self.calls.append(("pull", tag))
        if tag in self.fail_pull:
            return False
        self.existing.add(tag)
        return True

    @property
    def built(self):
        return [c[1] for c in self.calls if c[0] == "build"]

    @property
    def pulled(self):
        return [c[1] for c in self.calls if c[0] == "pull"]


@pytest.fixture
def fake_docker():
    return FakeDocker
