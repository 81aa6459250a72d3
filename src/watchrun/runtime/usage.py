# src/watchrun/runtime/usage.py

"""
Usage banner and pre-run message shown by the watch controller.
"""

from rich.text import Text

from watchrun.state import RunArguments

POINTER = "›"
PRE_RUN_MESSAGE = "Determining test suites to run..."


def _press(key: str, action: str) -> Text:
    return Text.assemble((f" {POINTER} Press ", "dim"), key, (f" {action}", "dim"))


def usage(argv: RunArguments, snapshot_failure: bool, delimiter: str = "\n") -> Text:
    """Key help for the current arguments; optional lines depend on mode."""
    messages: list[Text | None] = [
        Text.assemble("\n", ("Watch Usage", "bold")),
        _press("a", "to run all tests.") if argv.watch else None,
        _press("o", "to only run tests related to changed files.")
        if (argv.watch_all or argv.pattern) and not argv.no_scm
        else None,
        _press("u", "to update failing snapshots.") if snapshot_failure else None,
        _press("p", "to filter by a test name regex pattern."),
        _press("q", "to quit watch mode."),
        _press("Enter", "to trigger a test run."),
    ]
    banner = Text(delimiter).join(message for message in messages if message is not None)
    banner.append("\n")
    return banner


def pre_run_message() -> Text:
    return Text(PRE_RUN_MESSAGE, style="dim")


# 🔼⚙️
