"""Optional answer synthesis through a local language-model process.

The model runs out of process (``ollama run <model> <prompt>`` by default).
Every call is bounded by a wall-clock timeout; on expiry the process gets a
terminate signal, a short grace period, then a kill. Captured output lives
in anonymous temporary files that are closed on every exit path.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from typing import IO, List, Sequence, Union

from voltai.config import DEFAULT_MODEL
from voltai.models import SearchResult

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Completed:
    stdout: str
    stderr: str
    returncode: int


@dataclass(slots=True)
class TimedOut:
    seconds: float


@dataclass(slots=True)
class Failed:
    error: str


WaitOutcome = Union[Completed, TimedOut, Failed]


@dataclass(slots=True)
class Answer:
    text: str


@dataclass(slots=True)
class Timeout:
    seconds: float


@dataclass(slots=True)
class ProcessError:
    exit_code: int | None
    stderr: str


@dataclass(slots=True)
class NoModelAvailable:
    reason: str


LlmOutcome = Union[Answer, Timeout, ProcessError, NoModelAvailable]


def _read_capture(handle: IO[bytes]) -> str:
    handle.seek(0)
    return handle.read().decode("utf-8", errors="replace")


class ProcessHandle:
    """A spawned child process with file-backed stdout/stderr capture."""

    def __init__(
        self,
        process: subprocess.Popen,
        stdout: IO[bytes],
        stderr: IO[bytes],
        *,
        grace_period: float = 2.0,
    ) -> None:
        self.process = process
        self._stdout = stdout
        self._stderr = stderr
        self.grace_period = grace_period
        self._closed = False

    @classmethod
    def spawn(cls, argv: Sequence[str], *, grace_period: float = 2.0) -> "ProcessHandle":
        """Start ``argv``; raises ``OSError`` when it cannot be executed."""
        stdout = tempfile.TemporaryFile()
        stderr = tempfile.TemporaryFile()
        try:
            process = subprocess.Popen(
                list(argv), stdin=subprocess.DEVNULL, stdout=stdout, stderr=stderr
            )
        except BaseException:
            stdout.close()
            stderr.close()
            raise
        LOGGER.debug("Spawned %s (pid %s)", argv[0], process.pid)
        return cls(process, stdout, stderr, grace_period=grace_period)

    @property
    def running(self) -> bool:
        return self.process.poll() is None

    def stop(self) -> None:
        """Terminate, wait the grace period, then kill. Always reaps."""
        if not self.running:
            return
        self.process.terminate()
        try:
            self.process.wait(timeout=self.grace_period)
        except subprocess.TimeoutExpired:
            LOGGER.warning("Process %s ignored terminate, killing", self.process.pid)
            self.process.kill()
            self.process.wait()

    def wait_with_timeout(self, seconds: float) -> WaitOutcome:
        try:
            returncode = self.process.wait(timeout=seconds)
        except subprocess.TimeoutExpired:
            self.stop()
            return TimedOut(seconds)
        except OSError as exc:
            self.stop()
            return Failed(str(exc))
        finally:
            if self.running:
                self.stop()
        try:
            return Completed(_read_capture(self._stdout), _read_capture(self._stderr), returncode)
        except OSError as exc:
            return Failed(f"could not read process output: {exc}")

    def close(self) -> None:
        if self._closed:
            return
        try:
            self.stop()
        finally:
            self._stdout.close()
            self._stderr.close()
            self._closed = True

    def __enter__(self) -> "ProcessHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def build_prompt(
    question: str, results: Sequence[SearchResult], *, max_context_chars: int = 4000
) -> str:
    """Prompt with path and excerpt of each hit, context capped in size."""
    blocks: List[str] = []
    used = 0
    for result in results:
        block = f"Document: {result.path}\n{result.excerpt}\n---\n"
        if used + len(block) > max_context_chars:
            remaining = max_context_chars - used
            if remaining > len(result.path) + 20:
                blocks.append(block[:remaining])
            break
        blocks.append(block)
        used += len(block)
    if not blocks:
        return question
    context = "".join(blocks)
    return f"Use the following documents as context:\n{context}\nQuestion: {question}"


def render_fallback(results: Sequence[SearchResult]) -> str:
    """Ranked excerpts verbatim, used when no answer could be synthesized."""
    return "\n\n".join(f"[{result.rank}] {result.path}\n{result.excerpt}" for result in results)


@dataclass(slots=True)
class LlmConfig:
    command: str = "ollama"
    model: str = DEFAULT_MODEL
    arguments: tuple[str, ...] = ("run", "{model}")
    timeout: float = 120.0
    grace_period: float = 2.0
    max_context_chars: int = 4000


class LlmOrchestrator:
    """Runs the configured model command on a bounded prompt."""

    def __init__(self, config: LlmConfig | None = None) -> None:
        self.config = config or LlmConfig()

    def build_argv(self, executable: str, prompt: str) -> List[str]:
        args = [arg.format(model=self.config.model) for arg in self.config.arguments]
        return [executable, *args, prompt]

    def ask(self, question: str, results: Sequence[SearchResult]) -> LlmOutcome:
        executable = shutil.which(self.config.command)
        if executable is None:
            return NoModelAvailable(f"{self.config.command!r} was not found on PATH")

        prompt = build_prompt(question, results, max_context_chars=self.config.max_context_chars)
        try:
            handle = ProcessHandle.spawn(
                self.build_argv(executable, prompt), grace_period=self.config.grace_period
            )
        except OSError as exc:
            LOGGER.warning("Failed to start %s: %s", self.config.command, exc)
            return NoModelAvailable(str(exc))

        with handle:
            outcome = handle.wait_with_timeout(self.config.timeout)

        if isinstance(outcome, TimedOut):
            LOGGER.warning("%s timed out after %.1fs", self.config.command, outcome.seconds)
            return Timeout(outcome.seconds)
        if isinstance(outcome, Failed):
            return ProcessError(None, outcome.error)
        if outcome.returncode != 0:
            LOGGER.warning("%s exited with %s", self.config.command, outcome.returncode)
            return ProcessError(outcome.returncode, outcome.stderr.strip())
        return Answer(outcome.stdout.strip())
