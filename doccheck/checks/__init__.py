"""Built-in checks and plugin discovery.

Third-party checks register under the ``doccheck.checks`` entry-point group;
the entry point may name a :class:`Check` subclass, an instance, or a factory.
"""

from __future__ import annotations

from importlib import metadata
from typing import Dict, Iterable, List, Sequence, Tuple, Type

from .base import Check, CheckContext
from .code_blocks import CodeBlockCheck
from .links import LinkCheck
from .parse import ParseWarningCheck

_ENTRY_POINT_GROUP = "doccheck.checks"

_BUILTIN_CHECKS: Tuple[Type[Check], ...] = (LinkCheck, CodeBlockCheck, ParseWarningCheck)


def available_checks() -> List[Tuple[str, str]]:
    """Return ``(name, origin)`` for every check that can be enabled.

    Origin is ``builtin`` or the distribution providing the plugin.
    """
    entries = [(cls.name, "builtin") for cls in _BUILTIN_CHECKS]
    builtin_names = {name for name, _ in entries}
    for entry in _iter_entry_points():
        if entry.name.lower() in builtin_names:
            continue
        dist = getattr(entry, "dist", None)
        entries.append((entry.name.lower(), dist.name if dist is not None else "plugin"))
    return entries


def discover_checks(enabled: Sequence[str] | None = None) -> List[Check]:
    """Instantiate the enabled checks: builtins first, then plugins.

    ``None`` enables everything. Raises ``ValueError`` for names that match
    neither a builtin nor a plugin.
    """
    wanted = None if enabled is None else [name.lower() for name in enabled]
    candidates: Dict[str, object] = {cls.name: cls for cls in _BUILTIN_CHECKS}
    plugins = [] if wanted is not None and set(wanted) <= set(candidates) else _iter_entry_points()
    for entry in plugins:
        name = entry.name.lower()
        if name in candidates or (wanted is not None and name not in wanted):
            continue
        try:
            candidates[name] = entry.load()
        except Exception as exc:
            raise RuntimeError(f"Failed to load check entry point '{entry.name}': {exc}") from exc

    if wanted is not None:
        unknown = sorted(set(wanted) - set(candidates))
        if unknown:
            raise ValueError(f"Unknown checks requested: {', '.join(unknown)}")

    return [
        _coerce_check(name, obj)
        for name, obj in candidates.items()
        if wanted is None or name in wanted
    ]


def _coerce_check(name: str, obj: object) -> Check:
    instance = obj
    if isinstance(obj, type):
        if not issubclass(obj, Check):
            raise TypeError(f"Check '{name}' is a class but not a Check subclass")
        instance = obj()
    elif not isinstance(obj, Check) and callable(obj):
        instance = obj()
    if not isinstance(instance, Check):
        raise TypeError(f"Check '{name}' must be a Check subclass, instance or factory")
    return instance


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=_ENTRY_POINT_GROUP)


__all__ = [
    "Check",
    "CheckContext",
    "CodeBlockCheck",
    "LinkCheck",
    "ParseWarningCheck",
    "available_checks",
    "discover_checks",
]
