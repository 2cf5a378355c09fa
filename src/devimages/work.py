from abc import abstractmethod, ABC
from pathlib import Path
import shlex
import subprocess
import sys
from typing import Optional


class Work(ABC):

    @abstractmethod
    def __str__(self) -> str: ...

    @abstractmethod
    def __call__(self): ...


class WorkFailedError(Exception):

    def __init__(self, work: Work, return_code: int, output: str = ""):
        super().__init__(f"'{work}' exited with status {return_code}")
        self.work = work
        self.return_code = return_code
        self.output = output


class ExecuteCommand(Work):
    """Run a command, streaming its combined stdout and stderr line by line."""

    def __init__(
        self,
        cmd: list[str],
        working_directory: Optional[Path] = None,
        stream=None,
    ):
        super().__init__()
        self.__cmd = list(cmd)
        if working_directory is None:
            working_directory = Path.cwd()
        self.__working_directory = working_directory
        self.__stream = stream

    def __str__(self):
        return shlex.join(self.__cmd)

    def __call__(self):
        stream = self.__stream if self.__stream is not None else sys.stdout
        process = subprocess.Popen(
            self.__cmd,
            cwd=self.__working_directory,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
        with process:
            while line := process.stdout.readline().decode(errors="replace"):
                stream.write(line)
            stream.flush()
            return_code = process.wait()
        if return_code != 0:
            raise WorkFailedError(self, return_code)


class QueryCommand(Work):
    """Run a command that only reads state and return what it printed."""

    def __init__(self, cmd: list[str]):
        super().__init__()
        self.__cmd = list(cmd)

    def __str__(self):
        return shlex.join(self.__cmd)

    def __call__(self) -> str:
        completed = subprocess.run(self.__cmd, capture_output=True, text=True)
        if completed.returncode != 0:
            raise WorkFailedError(self, completed.returncode, completed.stderr)
        return completed.stdout
