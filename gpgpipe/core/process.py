"""
Run a non-interactive command-line process with optional stdin/stdout redirection.

Behavior:
- stdin is fed from an optional input stream, then closed so the process sees EOF
- stdout is drained into an optional output stream (inherited otherwise)
- stderr is always captured as text
- a watcher waits for exit and kills the process once the timeout elapses

The four activities run concurrently and are all joined before ``run`` returns,
so no pipe can fill up and stall the process.
"""

from __future__ import annotations

import concurrent.futures
import logging
import os
import shlex
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Union

from .errors import ProcessTimeoutError, SubprocessFailure, raise_collected
from .streams import copy_dynamic, ensure_readable, ensure_writable

logger = logging.getLogger(__name__)

STDERR_ENCODING = "utf-8"


@dataclass(frozen=True)
class Invocation:
    """One request to run an executable with specific arguments, streams and timeout."""
    executable: str
    arguments: str = ""
    input: Optional[Any] = None
    output: Optional[Any] = None
    timeout: Optional[float] = None

    @property
    def process_name(self) -> str:
        return Path(self.executable).stem or str(self.executable)

    def command_line(self) -> Union[str, List[str]]:
        """Return what Popen should receive for this platform."""
        if os.name == "nt":
            # CreateProcess parses the argument string itself
            return f"{subprocess.list2cmdline([self.executable])} {self.arguments}".rstrip()
        return [self.executable, *shlex.split(self.arguments or "")]


class CommandLineProcess:
    """Executes an external command and reports a single success/failure outcome.

    Public API:
      - CommandLineProcess(executable, arguments)
      - run(input=None, output=None, timeout=None) -> None
    """

    def __init__(self, executable: Union[str, Path], arguments: str = "", encoding: str = STDERR_ENCODING):
        self.executable = str(executable)
        self.arguments = arguments or ""
        self.encoding = encoding

    def run(self, input: Optional[Any] = None, output: Optional[Any] = None, timeout: Optional[float] = None) -> None:
        """Run the process to completion.

        Args:
            input: Binary stream copied to stdin, or None to leave stdin unused
            output: Binary stream receiving stdout, or None to inherit stdout
            timeout: Seconds to wait before killing the process; None waits forever

        Raises:
            UnsupportedStreamError: a stream cannot be read/written (nothing is spawned)
            ProcessTimeoutError: the process was killed after ``timeout`` seconds
            SubprocessFailure: non-zero exit status with non-blank stderr
            AggregateFailure: several of the concurrent activities failed
        """
        if timeout is not None and timeout < 0:
            raise ValueError(f"timeout must be non-negative, got {timeout}")
        ensure_readable(input, "input")
        ensure_writable(output, "output")
        self._execute(Invocation(self.executable, self.arguments, input, output, timeout))

    def _execute(self, invocation: Invocation) -> None:
        popen_kwargs = {
            "stdin": subprocess.PIPE if invocation.input is not None else subprocess.DEVNULL,
            "stdout": subprocess.PIPE if invocation.output is not None else None,
            "stderr": subprocess.PIPE,
        }
        if os.name != "nt":
            # own process group so a timeout can kill helpers holding the pipes
            popen_kwargs["start_new_session"] = True
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Starting {invocation.process_name}: {_masked(invocation.arguments)}")
        with subprocess.Popen(invocation.command_line(), shell=False, **popen_kwargs) as proc:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=4, thread_name_prefix=f"{invocation.process_name}-io"
            ) as pool:
                input_task = pool.submit(self._copy_input, proc, invocation.input)
                output_task = pool.submit(self._copy_output, proc, invocation.output)
                error_task = pool.submit(self._read_error, proc)
                wait_task = pool.submit(self._wait_for_exit, proc, invocation)
                tasks = [input_task, output_task, error_task, wait_task]
                concurrent.futures.wait(tasks)

            raise_collected(t.exception() for t in tasks if t.exception() is not None)

            error_text = error_task.result()
            exit_code = proc.returncode
            # A non-zero exit status alone is not a failure: the process must also explain itself on stderr.
            if exit_code != 0 and error_text.strip():
                logger.info(f"{invocation.process_name} failed with exit code {exit_code}")
                raise SubprocessFailure(error_text, exit_code=exit_code, executable=invocation.executable)
            logger.debug(f"{invocation.process_name} finished with exit code {exit_code}")

    def _copy_input(self, proc: subprocess.Popen, source: Optional[Any]) -> None:
        if source is None:
            return
        try:
            copy_dynamic(source, proc.stdin)
        except BrokenPipeError:
            # process exited or closed stdin without consuming all input
            logger.debug("stdin closed by the process before all input was written")
        finally:
            # EOF on stdin even when the source failed, so the process can finish
            _close_pipe(proc.stdin)

    def _copy_output(self, proc: subprocess.Popen, destination: Optional[Any]) -> None:
        if destination is None:
            return
        try:
            copy_dynamic(proc.stdout, destination)
        finally:
            _close_pipe(proc.stdout)

    def _read_error(self, proc: subprocess.Popen) -> str:
        data = proc.stderr.read()
        proc.stderr.close()
        return data.decode(self.encoding, errors="replace")

    def _wait_for_exit(self, proc: subprocess.Popen, invocation: Invocation) -> None:
        try:
            proc.wait(timeout=invocation.timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"Killing {invocation.process_name} after {invocation.timeout}s timeout")
            _kill_process_tree(proc)
            # pumps only unblock once the pipes are closed by the dying process
            proc.wait()
            raise ProcessTimeoutError(invocation.timeout, invocation.process_name)


def run_process(
    executable: Union[str, Path],
    arguments: str = "",
    input: Optional[Any] = None,
    output: Optional[Any] = None,
    timeout: Optional[float] = None,
) -> None:
    """Convenience wrapper around CommandLineProcess.run."""
    CommandLineProcess(executable, arguments).run(input=input, output=output, timeout=timeout)


def _kill_process_tree(proc: subprocess.Popen) -> None:
    if os.name == "nt":
        proc.kill()
        return
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        proc.kill()


def _close_pipe(pipe: Any) -> None:
    try:
        pipe.close()
    except BrokenPipeError:
        # the buffered flush failed; the descriptor is closed regardless
        pass


def _masked(arguments: str) -> str:
    try:
        parts = shlex.split(arguments or "")
    except ValueError:
        return "<unparsable arguments>"
    masked: List[str] = []
    hide_next = False
    for p in parts:
        if hide_next:
            masked.append("******")
            hide_next = False
            continue
        masked.append(p)
        hide_next = p == "--passphrase"
    return shlex.join(masked)
