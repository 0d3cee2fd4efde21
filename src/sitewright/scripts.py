"""
Named command runner.

Scripts are registered by name and run on demand, either directly
(``sitewright run deploy``) or as event listeners (``site.add_event_listener(
"afterBuild", "deploy")``).

A command is one of:
- a string: the name of another script, or a shell command
- a callable (sync or async); returning False marks it as failed
- a list or tuple of commands, run concurrently; all must succeed

Shell commands run in a subprocess. If the run is cancelled (e.g. Ctrl+C),
the whole child process tree is terminated so nothing is left behind.
"""

import asyncio
import inspect
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import psutil

Command = Union[str, Callable[[], Any], List[Any], tuple]


class ScriptError(Exception):
    """Raised when a script contains a command of an unsupported kind."""

    pass


@dataclass
class CommandOptions:
    """Options for running a command.

    Attributes:
        cwd: Working directory for shell commands (defaults to the site cwd)
        env: Extra environment variables for shell commands
    """

    cwd: Optional[Path] = None
    env: Optional[Mapping[str, str]] = None


class ScriptRunner:
    """
    Runs named scripts and shell commands.

    Example usage:
        runner = ScriptRunner(cwd=Path("."))
        runner.set("build-css", "npx tailwindcss -o _site/style.css")
        runner.set("deploy", "build-css", "rsync -a _site/ host:/var/www")
        ok = await runner.run("deploy")
    """

    def __init__(self, cwd: Path, quiet: bool = False):
        """
        Initialize the script runner.

        Args:
            cwd: Default working directory for shell commands
            quiet: Don't log each command as it starts
        """
        self.cwd = Path(cwd)
        self.quiet = quiet
        self.scripts: Dict[str, List[Command]] = {}

    def set(self, name: str, *commands: Command) -> None:
        self.scripts[name] = list(commands)

    async def run(self, name: Command, options: Optional[CommandOptions] = None) -> bool:
        """
        Run a script or a command.

        Args:
            name: Script name, shell command, callable or list of commands
            options: Working directory and environment for shell commands

        Returns:
            True if every command succeeded
        """
        options = options or CommandOptions()
        return await self._run_command(name, options, set())

    async def _run_command(self, command: Command, options: CommandOptions, active: set) -> bool:
        if isinstance(command, str):
            if command in self.scripts:
                if command in active:
                    raise ScriptError(f"Script '{command}' calls itself")
                active = active | {command}
                for sub_command in self.scripts[command]:
                    if not await self._run_command(sub_command, options, active):
                        return False
                return True
            return await self._run_shell(command, options)

        if isinstance(command, (list, tuple)):
            results = await asyncio.gather(
                *(self._run_command(c, options, active) for c in command)
            )
            return all(results)

        if callable(command):
            result = command()
            if inspect.isawaitable(result):
                result = await result
            return result is not False

        raise ScriptError(f"Unsupported command: {command!r}")

    async def _run_shell(self, command: str, options: CommandOptions) -> bool:
        cwd = options.cwd or self.cwd
        env = dict(os.environ)
        if options.env:
            env.update(options.env)

        if not self.quiet:
            logging.info(f"Running: {command}")

        process = await asyncio.create_subprocess_shell(command, cwd=str(cwd), env=env)
        try:
            returncode = await process.wait()
        except asyncio.CancelledError:
            await asyncio.to_thread(_kill_process_tree, process.pid)
            raise

        if returncode != 0:
            logging.error(f"Command failed with exit code {returncode}: {command}")
            return False
        return True


def _kill_process_tree(pid: int) -> None:
    """Terminate a process and all its children, children first."""
    try:
        root = psutil.Process(pid)
        processes = root.children(recursive=True) + [root]
    except psutil.NoSuchProcess:
        return

    for proc in processes:
        try:
            proc.terminate()
        except psutil.NoSuchProcess:
            pass

    _gone, alive = psutil.wait_procs(processes, timeout=3)
    for proc in alive:
        try:
            proc.kill()
            logging.warning(f"Force killed stubborn process {proc.pid}")
        except psutil.NoSuchProcess:
            pass
