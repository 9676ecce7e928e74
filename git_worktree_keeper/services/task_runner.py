"""Run one shell command across a set of worktree directories."""

import os
import subprocess
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple, Union

from git_worktree_keeper.utils.logging import get_logger

logger = get_logger(__name__)

Target = Tuple[str, Union[str, Path]]


def run_shell(command: str, cwd: Union[str, Path]) -> bool:
    """Run command through the platform shell in cwd; True on exit code 0.

    Output goes straight to the terminal.

    Raises:
        OSError: If the process cannot be started (e.g. cwd is missing)
    """
    if os.name == "nt":
        args = ["cmd", "/C", command]
    else:
        args = ["sh", "-c", command]
    result = subprocess.run(args, cwd=str(cwd), check=False)
    return result.returncode == 0


@dataclass
class TaskResult:
    """Outcome of the command in one target."""

    name: str
    directory: str
    ok: bool


@dataclass
class RunReport:
    """Outcome of a whole batch, in target order."""

    results: List[TaskResult] = field(default_factory=list)

    @property
    def failed(self) -> List[str]:
        return [r.name for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


class TaskRunner:
    """Executes a command per target, sequentially or with one thread each."""

    def __init__(self, shell_runner: Callable[[str, Union[str, Path]], bool] = run_shell):
        self.shell_runner = shell_runner

    def _run_one(self, name: str, directory: Union[str, Path], command: str) -> TaskResult:
        try:
            ok = self.shell_runner(command, directory)
        except OSError as e:
            logger.error(f"could not run command in {directory}: {e}")
            ok = False
        if not ok:
            logger.error(f"exec failed: {name}")
        return TaskResult(name=name, directory=str(directory), ok=ok)

    def run(
        self,
        targets: Sequence[Target],
        command: str,
        parallel: bool = False,
        fail_fast: bool = False,
    ) -> RunReport:
        """Run command in every target directory.

        Parallel mode applies only without fail-fast, since every task is
        already in flight and none can be stopped.
        """
        if parallel and not fail_fast:
            return self._run_parallel(targets, command)
        return self._run_sequential(targets, command, fail_fast)

    def _run_sequential(self, targets: Sequence[Target], command: str, fail_fast: bool) -> RunReport:
        report = RunReport()
        for name, directory in targets:
            result = self._run_one(name, directory, command)
            report.results.append(result)
            if not result.ok and fail_fast:
                logger.debug(f"Stopping after first failure ({name})")
                break
        return report

    def _run_parallel(self, targets: Sequence[Target], command: str) -> RunReport:
        if not targets:
            return RunReport()

        results: Dict[int, TaskResult] = {}
        # One worker per target, joined before returning
        with ThreadPoolExecutor(max_workers=len(targets)) as executor:
            future_to_index = {
                executor.submit(self._run_one, name, directory, command): index
                for index, (name, directory) in enumerate(targets)
            }
            for future in as_completed(future_to_index):
                index = future_to_index[future]
                name, directory = targets[index]
                try:
                    results[index] = future.result()
                except Exception as e:
                    logger.error(f"Error running command for {name}: {e}")
                    results[index] = TaskResult(name=name, directory=str(directory), ok=False)

        return RunReport(results=[results[i] for i in sorted(results)])
