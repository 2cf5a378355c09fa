from dataclasses import dataclass, field

from .errors import BuildFailedError, PullFailedError
from .progress import Progress
from .registry import TargetRegistry


@dataclass(frozen=True)
class BuildOptions:

    no_cache: bool = False


@dataclass(frozen=True)
class ExecutionRequest:

    target_id: str
    options: BuildOptions = field(default_factory=BuildOptions)


class Executor:
    """Builds targets from a registry, building missing prerequisites first.

    `docker` is the image builder, puller and existence oracle; anything
    with build(), pull() and exists() methods shaped like devimages.docker.Docker
    will do.
    """

    def __init__(self, registry: TargetRegistry, docker, stream=None):
        self.__registry = registry
        self.__docker = docker
        self.__stream = stream

    def run(self, request: ExecutionRequest):
        self.ensure_built(request.target_id, request.options)

    def ensure_built(self, target_id: str, options: BuildOptions, explicit=True):
        """Build a target after making sure its prerequisites exist.

        An explicitly requested target is always built. A prerequisite is
        only built when its image is not already in the local image store.
        Existence is checked every time; nothing is memoized between calls.
        """
        target = self.__registry.resolve(target_id)
        action = target.action

        if not explicit and self.__docker.exists(action.tag):
            return

        for prerequisite_id in target.prerequisites:
            self.ensure_built(prerequisite_id, options, explicit=False)

        with Progress("build", action.tag, stream=self.__stream):
            succeeded = self.__docker.build(
                action.context,
                action.tag,
                no_cache=options.no_cache,
                build_args=action.arguments,
            )
            if not succeeded:
                raise BuildFailedError(target.id)

    def pull_all(self, tags, label="development images"):
        """Pull every tag in order, stopping at the first failure."""
        with Progress("pull", label, stream=self.__stream):
            for tag in tags:
                if not self.__docker.pull(tag):
                    raise PullFailedError(tag)
