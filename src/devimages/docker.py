from pathlib import Path
import sys
from typing import Optional

from .errors import OracleUnavailableError
from .work import ExecuteCommand, QueryCommand, Work, WorkFailedError


class Docker:
    """Image builder, image puller and existence oracle backed by the docker CLI.

    build() and pull() report success or failure as a bool and leave the
    decision of what a failure means to the caller. exists() never guesses:
    if the local image store cannot be queried it raises
    OracleUnavailableError instead of answering False.
    """

    def __init__(
        self,
        executable: str = "docker",
        *,
        context_root: Optional[Path] = None,
        dry_run: bool = False,
        stream=None,
    ):
        self.__executable = executable
        self.__context_root = context_root
        self.__dry_run = dry_run
        self.__stream = stream

    def build_command(self, context, tag, *, no_cache=False, build_args=()) -> list[str]:
        cmd = [self.__executable, "build"]
        if no_cache:
            cmd.append("--no-cache")
        for arg_name, arg_value in build_args:
            cmd.append("--build-arg")
            cmd.append(f"{arg_name}={arg_value}")
        cmd.append("-t")
        cmd.append(tag)
        cmd.append(str(self._context_path(context)))
        return cmd

    def pull_command(self, tag) -> list[str]:
        return [self.__executable, "pull", tag]

    def exists_command(self, tag) -> list[str]:
        return [self.__executable, "images", "--quiet", tag]

    def exists(self, tag: str) -> bool:
        query = QueryCommand(self.exists_command(tag))
        try:
            output = query()
        except OSError as e:
            raise OracleUnavailableError(
                f"Could not run '{query}' to look for image {tag}: {e}"
            ) from e
        except WorkFailedError as e:
            raise OracleUnavailableError(
                f"Could not look for image {tag}: {e} {e.output.strip()}".rstrip()
            ) from e
        # One image ID per line
        return any(line.strip() for line in output.splitlines())

    def build(self, context, tag: str, *, no_cache=False, build_args=()) -> bool:
        cmd = self.build_command(
            context, tag, no_cache=no_cache, build_args=build_args
        )
        return self._run(ExecuteCommand(cmd, stream=self.__stream))

    def pull(self, tag: str) -> bool:
        return self._run(ExecuteCommand(self.pull_command(tag), stream=self.__stream))

    def _context_path(self, context) -> Path:
        context = Path(context)
        if self.__context_root is not None and not context.is_absolute():
            context = self.__context_root / context
        return context

    def _run(self, work: Work) -> bool:
        if self.__dry_run:
            stream = self.__stream if self.__stream is not None else sys.stdout
            stream.write(f"{work}\n")
            return True
        try:
            work()
        except (WorkFailedError, OSError) as e:
            sys.stderr.write(f"Failed to execute command {e}\n")
            return False
        return True
