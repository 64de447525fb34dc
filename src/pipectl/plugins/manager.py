"""Plugin loading for the pipeline lifecycle hooks.

Plugins come from the ``pipectl.plugins`` entry-point group of installed
distributions and from single ``*.py`` files in ``.pipectl/plugins/``.
An entry point may name a class or a ready instance; classes are built with
no arguments. A plugin that fails to import or construct is logged and
skipped, and the run goes ahead without it.
"""

from __future__ import annotations

import importlib.metadata
import importlib.util
import inspect
import logging
import sys
from pathlib import Path

import pluggy

from pipectl.plugins.hookspecs import PipectlHookSpec

PROJECT_NAME = "pipectl"
ENTRY_POINT_GROUP = "pipectl.plugins"

logger = logging.getLogger(__name__)


def implements_hooks(obj: object) -> bool:
    """Whether *obj* (class or instance) carries a ``@hookimpl`` method."""
    marker = f"{PROJECT_NAME}_impl"
    return any(
        getattr(getattr(obj, name, None), marker, None) is not None
        for name in dir(obj)
        if not name.startswith("_")
    )


def _construct(candidate: object, origin: str) -> object | None:
    if not inspect.isclass(candidate):
        return candidate
    try:
        return candidate()
    except Exception:
        logger.warning(
            "Could not construct plugin %s from %s", candidate.__name__, origin, exc_info=True
        )
        return None


class PluginManager:
    """Hook registry for one workspace."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(PipectlHookSpec)

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    @property
    def names(self) -> list[str]:
        """Registered plugin names in registration order."""
        return [name for name, _plugin in self._pm.list_name_plugin()]

    def register(self, plugin: object, name: str | None = None) -> None:
        self._pm.register(plugin, name=name or type(plugin).__name__)

    def load(self, *, local_dir: Path | None = None) -> list[str]:
        """Register entry-point plugins, then files in *local_dir*.

        Returns the names registered by this call.
        """
        before = set(self.names)
        self._load_entry_points()
        if local_dir is not None and local_dir.is_dir():
            for path in sorted(local_dir.glob("*.py")):
                if not path.name.startswith("_"):
                    self._load_file(path)
        return [name for name in self.names if name not in before]

    def _load_entry_points(self) -> None:
        for entry in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            if self._pm.has_plugin(entry.name):
                continue
            try:
                loaded = entry.load()
            except Exception:
                logger.warning(
                    "Failed to import plugin %s (%s)", entry.name, entry.value, exc_info=True
                )
                continue
            plugin = _construct(loaded, entry.value)
            if plugin is not None:
                self.register(plugin, name=entry.name)

    def _load_file(self, path: Path) -> None:
        """Import one local plugin file and register its hook classes.

        Each class defined in the file that implements at least one hook is
        registered as ``<file stem>.<class name>``.
        """
        module_name = f"pipectl_local_plugin_{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            logger.warning("Not a loadable plugin file: %s", path)
            return
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            sys.modules.pop(module_name, None)
            logger.warning("Failed to load local plugin %s", path, exc_info=True)
            return

        for _name, cls in inspect.getmembers(module, inspect.isclass):
            name = f"{path.stem}.{cls.__name__}"
            if cls.__module__ != module_name or self._pm.has_plugin(name):
                continue
            if not implements_hooks(cls):
                continue
            plugin = _construct(cls, str(path))
            if plugin is not None:
                self.register(plugin, name=name)
                logger.debug("Loaded local plugin %s", name)
