"""Registry of app definitions owned by a plugin host."""

import logging
from typing import Dict, List, Optional, Tuple

from ..errors import AppNotFoundError, RegistrationError
from .models import CLIAppDefinition, CLICommand

logger = logging.getLogger(__name__)


class AppRegistry:
    """Name -> app definition, plus entry-command and command aliases.

    Aliases live in one map: an app-level alias maps straight to the app
    name, a command alias is stored as ``"<app>:<alias>" -> "<app>:<command>"``.
    """

    def __init__(self) -> None:
        self._apps: Dict[str, CLIAppDefinition] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, app: CLIAppDefinition) -> None:
        name = app.manifest.name
        if name in self._apps:
            raise RegistrationError(f"App already registered: {name}", name)

        added: List[str] = []
        entry = app.manifest.entry_command
        if entry and entry != name:
            if entry in self._apps or self._aliases.get(entry, name) != name:
                raise RegistrationError(
                    f"Entry command {entry!r} of {name} clashes with another app",
                    name,
                )
            added.append(entry)

        command_aliases: Dict[str, str] = {}
        for command in app.commands:
            for alias in command.aliases:
                command_aliases[f"{name}:{alias}"] = f"{name}:{command.name}"

        self._apps[name] = app
        for alias in added:
            self._aliases[alias] = name
        self._aliases.update(command_aliases)

        if app.lifecycle.on_register is not None:
            try:
                app.lifecycle.on_register(self)
            except Exception as e:
                self.unregister(name)
                raise RegistrationError(
                    f"on_register hook of {name} failed: {e}", name
                ) from e

        logger.debug(f"Registered app {name} ({app.manifest.library})")

    def unregister(self, name: str) -> bool:
        if self._apps.pop(name, None) is None:
            return False
        prefix = f"{name}:"
        for alias, target in list(self._aliases.items()):
            if target == name or alias.startswith(prefix):
                del self._aliases[alias]
        return True

    def get(self, name: str) -> Optional[CLIAppDefinition]:
        app = self._apps.get(name)
        if app is not None:
            return app
        target = self._aliases.get(name)
        if target is not None and ":" not in target:
            return self._apps.get(target)
        return None

    def require(self, name: str) -> CLIAppDefinition:
        app = self.get(name)
        if app is None:
            raise AppNotFoundError(name)
        return app

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def resolve_alias(self, alias: str) -> Optional[str]:
        return self._aliases.get(alias)

    def resolve_command(
        self, app_name: str, command: str
    ) -> Optional[Tuple[CLIAppDefinition, CLICommand]]:
        """Find a command of an app by name or alias."""
        app = self.get(app_name)
        if app is None:
            return None
        target = self._aliases.get(f"{app.name}:{command}")
        if target is not None:
            command = target.split(":", 1)[1]
        found = app.find_command(command)
        return (app, found) if found is not None else None

    def list(self) -> List[CLIAppDefinition]:
        return list(self._apps.values())

    def names(self) -> List[str]:
        return list(self._apps.keys())

    def by_library(self, library: str) -> List[CLIAppDefinition]:
        return [a for a in self._apps.values() if a.manifest.library == library]

    def search(self, query: str) -> List[CLIAppDefinition]:
        needle = query.lower()
        results = []
        for app in self._apps.values():
            manifest = app.manifest
            haystack = [manifest.name, manifest.description or ""]
            haystack.extend(manifest.keywords)
            for command in app.commands:
                haystack.append(command.name)
                haystack.append(command.description)
            if any(needle in text.lower() for text in haystack):
                results.append(app)
        return results

    def count(self) -> int:
        return len(self._apps)

    def clear(self) -> None:
        self._apps.clear()
        self._aliases.clear()

    def export(self) -> List[dict]:
        """JSON-ready manifests of every registered app."""
        return [app.manifest.model_dump(mode="json") for app in self._apps.values()]

    def __len__(self) -> int:
        return len(self._apps)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __iter__(self):
        return iter(list(self._apps.values()))
