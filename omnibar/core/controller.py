"""Query controller: interaction mode, candidate derivation and async sub-searches.

One ``QueryController`` instance owns every piece of palette state (query,
mode, candidate lists, selection). Presentation reads its properties; input
handlers call ``set_query`` and the action methods. All methods run on a
single asyncio loop; background work (window enumeration, debounced file
search, rate refresh inside skills) is scheduled as tasks and applied back
on the loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

from loguru import logger

from omnibar.adapters.telemetry import InMemoryTelemetry
from omnibar.core.models import (
    ActionEntry,
    AIToolEntry,
    AppEntry,
    Candidate,
    InteractionMode,
    ScriptEntry,
    WindowEntry,
)
from omnibar.core.ports import HistoryPort, HostPort, TelemetryPort
from omnibar.core.ranking import filter_windows, rank_apps, rank_scripts
from omnibar.skills.registry import SkillRegistry

if TYPE_CHECKING:
    from omnibar.config.schema import Config

_EXPLICIT_MODES: frozenset[str] = frozenset({"chatting", "executing"})
_SETTINGS_KEYWORD = "settings"


def next_mode(current: InteractionMode, query: str, *, translate_prefix: str) -> InteractionMode:
    """Mode after a query mutation.

    The translate prefix wins from any mode. Otherwise ``chatting`` and
    ``executing`` are only left through an explicit close.
    """
    if translate_prefix and query.startswith(translate_prefix):
        return "translating"
    if current in _EXPLICIT_MODES:
        return current
    if not query:
        return "idle"
    return "searching"


def build_action(item: object) -> ActionEntry | None:
    """History entry for a selected item; None for items that are not recorded."""
    if isinstance(item, Candidate):
        if item.kind in {"app", "script"}:
            return build_action(item.data)
        if item.kind in {"tool", "skill"}:
            key = item.id or item.name
            return ActionEntry(id=f"ai:{key}", kind="ai", content=key, name=item.name, icon=item.icon)
        return None
    if isinstance(item, AppEntry):
        return ActionEntry(id=f"app:{item.exec}", kind="app", content=item.exec, name=item.name, icon=item.icon)
    if isinstance(item, ScriptEntry):
        return ActionEntry(id=f"script:{item.alias}", kind="script", content=item.path, name=item.alias)
    if isinstance(item, str) and item:
        return ActionEntry(id=f"file:{item}", kind="file", content=item, name=PurePath(item).name or item)
    # Window switches are ephemeral.
    return None


class QueryController:
    """Owns the palette state and recomputes it on every query mutation."""

    def __init__(
        self,
        *,
        host: HostPort,
        history: HistoryPort,
        registry: SkillRegistry,
        config: Config | None = None,
        telemetry: TelemetryPort | None = None,
    ) -> None:
        if config is None:
            from omnibar.config.schema import Config

            config = Config()
        self._host = host
        self._history = history
        self._registry = registry
        self._config = config
        self._palette = config.palette
        self._telemetry = telemetry or InMemoryTelemetry()
        self._tools: list[AIToolEntry] = config.ai_tool_entries
        self._shortcuts = config.normalized_shortcuts

        self._query = ""
        self._mode: InteractionMode = "idle"
        self._selected_index = 0
        self._matched: Candidate | None = None
        self._active: Candidate | ScriptEntry | None = None

        self._apps: list[AppEntry] = []
        self._scripts: list[ScriptEntry] = []
        self._windows: list[WindowEntry] = []
        self._recent_actions: list[ActionEntry] = []
        self._file_results: list[str] = []

        self._file_generation = 0
        self._file_timer: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # ── Exposed state ────────────────────────────────────────────────

    @property
    def query(self) -> str:
        return self._query

    @property
    def mode(self) -> InteractionMode:
        return self._mode

    @property
    def selected_index(self) -> int:
        return self._selected_index

    @property
    def matched_candidate(self) -> Candidate | None:
        return self._matched

    @property
    def active_item(self) -> Candidate | ScriptEntry | None:
        """Tool being chatted with or script being executed."""
        return self._active

    @property
    def filtered_windows(self) -> list[WindowEntry]:
        return filter_windows(self._windows, self._query, limit=self._palette.max_windows)

    @property
    def filtered_apps(self) -> list[AppEntry]:
        return rank_apps(self._apps, self._query, self._recent_actions, limit=self._palette.max_apps)

    @property
    def filtered_scripts(self) -> list[ScriptEntry]:
        return rank_scripts(self._scripts, self._query, self._recent_actions)

    @property
    def file_search_results(self) -> list[str]:
        return list(self._file_results)

    @property
    def recent_actions(self) -> list[ActionEntry]:
        return list(self._recent_actions)

    @property
    def windows(self) -> list[WindowEntry]:
        return list(self._windows)

    @property
    def file_search_generation(self) -> int:
        return self._file_generation

    # ── Loading ──────────────────────────────────────────────────────

    async def load(self) -> None:
        """Fetch apps, scripts and recent actions; failures keep prior lists."""
        apps, scripts, recent = await asyncio.gather(
            self._host.list_apps(),
            self._host.list_scripts(),
            self._history.get_recent(self._palette.recent_actions_limit),
            return_exceptions=True,
        )
        if isinstance(apps, BaseException):
            self._host_failed("list_apps", apps)
        else:
            self._apps = list(apps)
        if isinstance(scripts, BaseException):
            self._host_failed("list_scripts", scripts)
        else:
            self._scripts = list(scripts)
        if isinstance(recent, BaseException):
            self._host_failed("get_recent_actions", recent)
        else:
            self._recent_actions = list(recent)
        self._refresh_derived()

    async def refresh_recent_actions(self) -> None:
        try:
            recent = await self._history.get_recent(self._palette.recent_actions_limit)
        except Exception as e:
            self._host_failed("get_recent_actions", e)
            return
        self._recent_actions = list(recent)
        self._refresh_derived()

    # ── Query mutation ───────────────────────────────────────────────

    def set_query(self, text: str) -> None:
        """Apply one query mutation. Must be called from the event loop."""
        previous_mode = self._mode
        self._query = text
        self._mode = next_mode(previous_mode, text, translate_prefix=self._palette.translate_prefix)
        if self._mode != previous_mode:
            logger.debug("mode {} -> {}", previous_mode, self._mode)
        if previous_mode in _EXPLICIT_MODES and self._mode not in _EXPLICIT_MODES:
            self._active = None

        if previous_mode == "idle" and self._mode in {"searching", "translating"}:
            self._spawn(self._refresh_windows())

        self._update_file_search(text)
        self._refresh_derived()

    def refresh(self) -> None:
        """Re-derive candidates for the current query, e.g. after rates arrive."""
        self._refresh_derived()

    # ── Explicit actions ─────────────────────────────────────────────

    def open_chat(self, candidate: Candidate) -> None:
        """Enter chat mode for an AI tool or skill candidate."""
        self._active = candidate
        self._mode = "chatting"

    def run_script(self, script: ScriptEntry) -> None:
        """Enter execution mode for a script; the host runs the process."""
        self._active = script
        self._mode = "executing"

    def close(self) -> None:
        """Leave chatting/executing and return to query-derived mode."""
        self._active = None
        self._mode = next_mode("idle", self._query, translate_prefix=self._palette.translate_prefix)

    async def execute_match(self, candidate: Candidate | None = None) -> Any:
        """Run the matched candidate. Skill errors propagate to the caller."""
        candidate = candidate or self._matched
        if candidate is None:
            return None
        if candidate.kind == "skill" and candidate.skill is not None:
            return await candidate.skill.execute(candidate.data)
        if candidate.kind == "tool":
            self.open_chat(candidate)
            return None
        if candidate.kind == "script" and isinstance(candidate.data, ScriptEntry):
            self.run_script(candidate.data)
            return None
        return candidate.data if candidate.data is not None else candidate.id

    async def record_selection(self, item: object) -> None:
        """Write one history entry for the selected item and reload the recent window."""
        entry = build_action(item)
        if entry is None:
            return
        try:
            await self._history.record(entry)
        except Exception as e:
            self._host_failed("record_action", e)
            return
        await self.refresh_recent_actions()

    async def clear_history(self) -> None:
        try:
            await self._history.clear()
        except Exception as e:
            self._host_failed("clear_history", e)
            return
        self._recent_actions = []
        self._refresh_derived()
        logger.info("action history cleared")

    # ── Lifecycle ────────────────────────────────────────────────────

    async def settle(self) -> None:
        """Wait until all background work scheduled so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()
        self._file_timer = None

    # ── Internals ────────────────────────────────────────────────────

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _host_failed(self, op: str, error: BaseException) -> None:
        logger.error(f"Host operation {op} failed: {error}")
        self._telemetry.incr("host_error", labels=(("op", op),))

    async def _refresh_windows(self) -> None:
        try:
            windows = await self._host.list_open_windows()
        except Exception as e:
            self._host_failed("list_open_windows", e)
            return
        self._windows = list(windows)
        self._refresh_derived()

    def _update_file_search(self, text: str) -> None:
        prefix = self._palette.file_search_prefix
        if not prefix or not text.lower().startswith(prefix.lower()):
            self._reset_file_search()
            return
        remainder = text[len(prefix) :].strip()
        if not remainder:
            self._reset_file_search()
            return

        self._cancel_file_timer()
        self._file_generation += 1
        self._file_timer = self._spawn(self._run_file_search(remainder, self._file_generation))

    def _reset_file_search(self) -> None:
        self._cancel_file_timer()
        if self._file_results or self._file_generation:
            # Invalidate any request still in flight.
            self._file_generation += 1
        self._file_results = []

    def _cancel_file_timer(self) -> None:
        if self._file_timer is not None:
            self._file_timer.cancel()
            logger.debug("file search debounce restarted")
            self._file_timer = None

    async def _run_file_search(self, query: str, generation: int) -> None:
        await asyncio.sleep(self._palette.debounce_seconds)
        # Past the debounce window: the request itself is never cancelled.
        if self._file_timer is asyncio.current_task():
            self._file_timer = None

        file_cfg = self._config.file_search
        self._telemetry.incr("file_search_request")
        try:
            results = await self._host.search_files(
                query,
                str(file_cfg.resolved_base_path),
                file_cfg.include_hidden,
            )
        except Exception as e:
            self._host_failed("search_files", e)
            return

        if generation != self._file_generation:
            logger.debug("dropping stale file results for {!r}", query)
            self._telemetry.incr("file_search_stale_drop")
            return
        self._file_results = list(results)
        self._refresh_derived()

    def _refresh_derived(self) -> None:
        self._matched = self._resolve_candidate(self._query)
        if self._matched is not None:
            self._selected_index = 0
        elif self.filtered_windows or self.filtered_apps or self.filtered_scripts:
            self._selected_index = 1
        else:
            self._selected_index = 0

    def _resolve_candidate(self, query: str) -> Candidate | None:
        if not query:
            return None
        q = query.lower()

        target = self._shortcuts.get(q)
        if target:
            shortcut = self._shortcut_candidate(target)
            if shortcut is not None:
                return shortcut

        for script in self._scripts:
            if script.alias.lower() == q:
                return Candidate(
                    kind="script",
                    id=f"script:{script.alias}",
                    name=script.alias,
                    description=f"Run script: {script.alias}",
                    icon="💻",
                    data=script,
                )

        for tool in self._tools:
            if any(keyword and q.startswith(keyword.lower()) for keyword in tool.keywords):
                return self._tool_candidate(tool)

        skill_match = self._registry.match(query)
        if skill_match is not None:
            self._telemetry.incr("skill_match", labels=(("skill", skill_match.skill.id),))
            return Candidate(
                kind="skill",
                id=skill_match.skill.id,
                name=skill_match.skill.name,
                description=skill_match.preview or skill_match.skill.description,
                icon=skill_match.skill.icon,
                data=skill_match.data,
                skill=skill_match.skill,
            )

        if len(q) > 1 and q in _SETTINGS_KEYWORD:
            return Candidate(
                kind="internal",
                id="settings",
                name="Open Settings",
                description="Configure appearance, shortcuts, and AI",
                icon="⚙️",
            )
        return None

    def _shortcut_candidate(self, target: str) -> Candidate | None:
        if target.startswith("app:"):
            exec_cmd = target[len("app:") :]
            for app in self._apps:
                if app.exec == exec_cmd:
                    return Candidate(
                        kind="app",
                        id=target,
                        name=app.name,
                        description="Launch application",
                        icon=app.icon or "🚀",
                        data=app,
                    )
        for tool in self._tools:
            if tool.id == target:
                return self._tool_candidate(tool)
        return None

    @staticmethod
    def _tool_candidate(tool: AIToolEntry) -> Candidate:
        return Candidate(
            kind="tool",
            id=tool.id,
            name=tool.name,
            description=tool.description,
            icon=tool.icon,
            data=tool,
        )
