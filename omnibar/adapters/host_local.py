"""Local desktop host: windows, applications, scripts and file search on Linux."""

from __future__ import annotations

import asyncio
import configparser
import json
import os
import shutil
from collections.abc import Iterable, Sequence
from pathlib import Path

from loguru import logger

from omnibar.core.models import AppEntry, ScriptEntry, WindowEntry

DEFAULT_COMMAND_TIMEOUT = 2.0
DEFAULT_MAX_FILE_RESULTS = 50

# Field codes (%f, %U, ...) are placeholders filled in by the launcher.
_EXEC_FIELD_CODES = ("%f", "%F", "%u", "%U", "%d", "%D", "%n", "%N", "%i", "%c", "%k", "%v", "%m")


def parse_hyprctl_clients(raw: bytes | str) -> list[WindowEntry]:
    """Parse ``hyprctl clients -j`` output."""
    clients = json.loads(raw)
    return [
        WindowEntry(
            title=str(client.get("title") or ""),
            class_name=str(client.get("class") or ""),
            address=str(client.get("address") or ""),
        )
        for client in clients
        if isinstance(client, dict)
    ]


def parse_wmctrl_lines(raw: str) -> list[WindowEntry]:
    """Parse ``wmctrl -l -x`` output (id, desktop, wm_class, host, title...)."""
    windows: list[WindowEntry] = []
    for line in raw.splitlines():
        parts = line.split()
        if len(parts) < 5:
            continue
        wm_class = parts[2]
        windows.append(
            WindowEntry(
                title=" ".join(parts[4:]),
                class_name=wm_class.rsplit(".", 1)[-1],
                address=parts[0],
            )
        )
    return windows


def parse_desktop_entry(path: Path) -> AppEntry | None:
    """Read one XDG ``.desktop`` file; hidden and non-application entries are skipped."""
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        parser.read(path, encoding="utf-8")
    except (configparser.Error, OSError, UnicodeDecodeError) as e:
        logger.debug("skipping desktop entry {}: {}", path, e)
        return None
    if not parser.has_section("Desktop Entry"):
        return None
    entry = parser["Desktop Entry"]
    if entry.get("Type", "Application") != "Application":
        return None
    if entry.get("NoDisplay", "false").lower() == "true" or entry.get("Hidden", "false").lower() == "true":
        return None
    name = entry.get("Name", "").strip()
    exec_line = entry.get("Exec", "").strip()
    if not name or not exec_line:
        return None
    for code in _EXEC_FIELD_CODES:
        exec_line = exec_line.replace(code, "")
    return AppEntry(name=name, exec=" ".join(exec_line.split()), icon=entry.get("Icon") or None)


def default_application_dirs() -> list[Path]:
    data_home = Path(os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share")
    data_dirs = os.environ.get("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"
    dirs = [data_home / "applications"]
    dirs.extend(Path(d) / "applications" for d in data_dirs.split(":") if d)
    return dirs


def walk_matching_paths(
    query: str,
    base_path: str,
    *,
    include_hidden: bool = False,
    max_results: int = DEFAULT_MAX_FILE_RESULTS,
) -> list[str]:
    """Breadth-first-ish walk returning paths whose text contains ``query`` (case-insensitive)."""
    needle = query.lower()
    results: list[str] = []
    for root, dirs, files in os.walk(base_path):
        if not include_hidden:
            dirs[:] = [d for d in dirs if not d.startswith(".")]
            files = [f for f in files if not f.startswith(".")]
        dirs.sort()
        for name in sorted([*dirs, *files]):
            full = os.path.join(root, name)
            if needle in full.lower():
                results.append(full)
                if len(results) >= max_results:
                    return results
    return results


class LocalHost:
    """HostPort backed by local commands and the filesystem."""

    def __init__(
        self,
        *,
        scripts: Sequence[ScriptEntry] = (),
        application_dirs: Iterable[Path] | None = None,
        max_file_results: int = DEFAULT_MAX_FILE_RESULTS,
        command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
    ) -> None:
        self._scripts = list(scripts)
        self._application_dirs = list(application_dirs) if application_dirs is not None else default_application_dirs()
        self._max_file_results = max(1, int(max_file_results))
        self._command_timeout = command_timeout

    async def list_open_windows(self) -> list[WindowEntry]:
        if shutil.which("hyprctl"):
            stdout = await self._run(["hyprctl", "clients", "-j"])
            return parse_hyprctl_clients(stdout)
        if shutil.which("wmctrl"):
            stdout = await self._run(["wmctrl", "-l", "-x"])
            return parse_wmctrl_lines(stdout.decode("utf-8", errors="replace"))
        logger.debug("no supported window manager tool found")
        return []

    async def search_files(self, query: str, base_path: str, include_hidden: bool) -> list[str]:
        return await asyncio.to_thread(
            walk_matching_paths,
            query,
            base_path,
            include_hidden=include_hidden,
            max_results=self._max_file_results,
        )

    async def list_apps(self) -> list[AppEntry]:
        return await asyncio.to_thread(self._scan_applications)

    async def list_scripts(self) -> list[ScriptEntry]:
        return list(self._scripts)

    def _scan_applications(self) -> list[AppEntry]:
        seen: dict[str, AppEntry] = {}
        for directory in self._application_dirs:
            if not directory.is_dir():
                continue
            for path in sorted(directory.glob("*.desktop")):
                # Earlier directories (user data) shadow system entries with the same id.
                if path.name in seen:
                    continue
                app = parse_desktop_entry(path)
                if app is not None:
                    seen[path.name] = app
        return sorted(seen.values(), key=lambda app: app.name.casefold())

    async def _run(self, argv: list[str]) -> bytes:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._command_timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise RuntimeError(f"{argv[0]} timed out after {self._command_timeout}s") from None
        if process.returncode != 0:
            raise RuntimeError(f"{argv[0]} exited with {process.returncode}: {stderr.decode(errors='replace').strip()}")
        return stdout
