"""History-weighted ranking of palette candidates."""

from __future__ import annotations

from collections.abc import Sequence

from omnibar.core.models import ActionEntry, ActionKind, AppEntry, ScriptEntry, WindowEntry

HISTORY_WEIGHT_BASE = 10000
DEFAULT_APP_LIMIT = 5
DEFAULT_WINDOW_LIMIT = 5


def history_weights(actions: Sequence[ActionEntry], kind: ActionKind) -> dict[str, int]:
    """Map each action's content to ``10000 - position``; the most recent entry wins."""
    weights: dict[str, int] = {}
    for index, action in enumerate(actions):
        if action.kind == kind:
            weights.setdefault(action.content, HISTORY_WEIGHT_BASE - index)
    return weights


def _name_key(name: str) -> tuple[str, str]:
    return name.casefold(), name


def rank_apps(
    apps: Sequence[AppEntry],
    query: str,
    actions: Sequence[ActionEntry],
    *,
    limit: int = DEFAULT_APP_LIMIT,
) -> list[AppEntry]:
    """Filter apps by name/exec substring, then order by history, prefix match and name."""
    if not query:
        return []
    q = query.lower()
    matches = [app for app in apps if q in app.name.lower() or q in app.exec.lower()]
    weights = history_weights(actions, "app")
    matches.sort(
        key=lambda app: (
            -weights.get(app.exec, 0),
            not app.name.lower().startswith(q),
            _name_key(app.name),
        )
    )
    return matches[: max(0, limit)]


def rank_scripts(
    scripts: Sequence[ScriptEntry],
    query: str,
    actions: Sequence[ActionEntry],
) -> list[ScriptEntry]:
    """Filter scripts by alias, then order by history and alias. Not truncated."""
    if not query:
        return list(scripts)
    q = query.lower()
    matches = [script for script in scripts if q in script.alias.lower()]
    weights = history_weights(actions, "script")
    matches.sort(key=lambda script: (-weights.get(script.path, 0), _name_key(script.alias)))
    return matches


def window_matches(window: WindowEntry, query: str) -> bool:
    q = query.lower()
    return q in window.title.lower() or q in window.class_name.lower()


def filter_windows(
    windows: Sequence[WindowEntry],
    query: str,
    *,
    limit: int = DEFAULT_WINDOW_LIMIT,
) -> list[WindowEntry]:
    """Windows whose title or class contains the query, in host order."""
    if not query:
        return []
    return [window for window in windows if window_matches(window, query)][: max(0, limit)]
