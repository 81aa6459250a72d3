#
# src/watchrun/runner/subprocess_runner.py
#
"""
Run coordinator that executes each selected test file in a pytest subprocess
using asyncio.subprocess, reporting through a ReporterDispatcher.
"""
import asyncio
import time
from pathlib import Path

import structlog
from attrs import define
from rich.console import Console
from rich.text import Text

from watchrun.config import WatchrunConfig
from watchrun.exceptions import RunCoordinatorError
from watchrun.prompt.matching import compile_pattern
from watchrun.protocols import SearchResult
from watchrun.reporters import ReporterDispatcher
from watchrun.results import AggregatedResult, RunContext, RunStartOptions, TestFile, TestFileResult
from watchrun.runner.parsing import (
    parse_collected_node_ids,
    parse_snapshot_summary,
    parse_verbose_output,
    title_of,
)
from watchrun.runtime.cancellation import CancellationToken
from watchrun.search import FileSearchSource
from watchrun.state import RunArguments
from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runner.subprocess")

# pytest exit codes that still mean "the file ran": ok, tests failed, nothing collected.
_RAN_EXIT_CODES = frozenset({0, 1, 5})

NO_RELATED_TESTS = "No tests found related to files changed since last commit."
NO_RELATED_TESTS_HINT = "Press `a` to run all tests, or run with `--all`."


@define(frozen=True, slots=True)
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str


async def run_command(command: list[str], working_dir: Path) -> CommandResult:
    """
    Executes `command` using asyncio.create_subprocess_exec and collects its output.
    """
    runner_log = log.bind(command=" ".join(command), working_dir=str(working_dir))
    runner_log.debug("Executing test command")

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=working_dir,
        )
    except FileNotFoundError as e:
        runner_log.error("Test command not found", command_executable=command[0])
        raise RunCoordinatorError(
            f"Test command not found: '{command[0]}'. Is it installed and in the system's PATH?"
        ) from e

    try:
        stdout_bytes, stderr_bytes = await process.communicate()
    except asyncio.CancelledError:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    exit_code = process.returncode if process.returncode is not None else -1
    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace")
    runner_log.debug("Test command finished", exit_code=exit_code, stdout_len=len(stdout), stderr_len=len(stderr))
    return CommandResult(exit_code=exit_code, stdout=stdout, stderr=stderr)


class SubprocessRunCoordinator:
    """
    Implements the RunCoordinator protocol with one `pytest -v` subprocess per
    test file. The cancellation token is checked before each file is started,
    so an interrupt lets the current file finish and skips the rest.
    """

    def __init__(self, dispatcher: ReporterDispatcher):
        self.dispatcher = dispatcher

    def select_tests(self, context: RunContext, argv: RunArguments, output: Console) -> SearchResult:
        search = FileSearchSource(context)
        if argv.pattern:
            return search.find_matching_tests(argv.pattern)
        if argv.test_name_pattern or argv.watch_all or not argv.watch:
            return search.all_tests()

        related = search.find_related_tests(sorted(context.changed_files))
        if not related.paths:
            output.print(Text(NO_RELATED_TESTS, style="bold"), highlight=False)
            output.print(Text(NO_RELATED_TESTS_HINT, style="dim"), highlight=False)
        return related

    async def _filter_by_title(
        self, paths: tuple[Path, ...], config: WatchrunConfig, title_pattern: str
    ) -> dict[Path, list[str]]:
        """Maps each file to the node ids whose test title matches `title_pattern`."""
        regex = compile_pattern(title_pattern)
        if regex is None:
            log.warning("Invalid test name pattern, nothing matches", pattern=title_pattern)
            return {}
        if not paths:
            return {}

        command = [*config.test_command, "--collect-only", "-q", "--rootdir", str(config.root_dir)]
        command.extend(str(path) for path in paths)
        collected = await run_command(command, config.root_dir)
        node_ids = parse_collected_node_ids(collected.stdout)

        by_file: dict[Path, list[str]] = {}
        for node_id in node_ids:
            if not regex.search(title_of(node_id)):
                continue
            path = (config.root_dir / node_id.split("::", 1)[0]).resolve()
            by_file.setdefault(path, []).append(node_id)
        log.debug("Filtered tests by name", pattern=title_pattern, collected=len(node_ids), files=len(by_file))
        return {path: by_file[path] for path in paths if path in by_file}

    def _build_command(self, config: WatchrunConfig, targets: list[str]) -> list[str]:
        command = [*config.test_command, "-v", "--color=no", "--rootdir", str(config.root_dir)]
        if config.update_snapshot:
            command.extend(config.snapshot_update_args)
        command.extend(targets)
        return command

    async def _run_test_file(self, test: TestFile, config: WatchrunConfig, targets: list[str]) -> TestFileResult:
        started = time.monotonic()
        result = await run_command(self._build_command(config, targets), config.root_dir)
        combined = f"{result.stdout}\n{result.stderr}"

        file_result = TestFileResult(
            test_file_path=test.path,
            test_results=parse_verbose_output(result.stdout),
            snapshot=parse_snapshot_summary(combined),
            duration=time.monotonic() - started,
            console=result.stdout.splitlines(),
        )
        if result.exit_code not in _RAN_EXIT_CODES:
            file_result.failure_message = (result.stderr or result.stdout).strip() or f"exit code {result.exit_code}"
            log.warning("Test file failed to run", path=str(test.path), exit_code=result.exit_code)
        return file_result

    async def run(
        self,
        context: RunContext,
        config: WatchrunConfig,
        argv: RunArguments,
        output: Console,
        token: CancellationToken,
    ) -> AggregatedResult:
        paths = self.select_tests(context, argv, output).paths

        targets: dict[Path, list[str]]
        if argv.test_name_pattern:
            targets = await self._filter_by_title(paths, config, argv.test_name_pattern)
        else:
            targets = {path: [str(path)] for path in paths}

        results = AggregatedResult(num_total_test_suites=len(targets))
        await self.dispatcher.on_run_start(results, RunStartOptions(show_status=bool(targets)))

        for path, file_targets in targets.items():
            if token.interrupted:
                log.info("Run interrupted, skipping remaining test files.", emoji_key="interrupt", token_id=token.token_id)
                results.was_interrupted = True
                break

            test = TestFile(path=path, context=context)
            await self.dispatcher.on_test_file_start(test)
            file_result = await self._run_test_file(test, config, file_targets)
            for case in file_result.test_results:
                await self.dispatcher.on_test_case_result(test, case.node_id or case.title, case)
            results.add_test_file_result(file_result)
            await self.dispatcher.on_test_file_result(test, file_result, results)

        await self.dispatcher.on_run_complete({context}, results)
        return results


# 🔼⚙️
