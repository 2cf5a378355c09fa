import sys


class Progress:
    """Brackets the console output of one step with start and finish banners.

    Whatever the step writes in between appears between the two banners.
    If the step raises, a "Failed" banner is written instead of "Finished"
    and the exception keeps propagating.
    """

    def __init__(self, verb: str, name: str, stream=None):
        self._verb = verb
        self._name = name
        self._stream = stream

    def write(self, line):
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(line)
        stream.flush()

    def __enter__(self):
        self.write(f"---- Starting {self._verb} of {self._name} ----\n")
        return self

    def __exit__(self, t, v, tb):
        if t is None:
            self.write(f"---- Finished {self._verb} of {self._name} ----\n")
        else:
            self.write(f"---- Failed {self._verb} of {self._name} ----\n")
        return False
