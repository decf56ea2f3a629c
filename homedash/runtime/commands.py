"""Global command registry and the keyboard-driven command palette."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Protocol, Union


logger = logging.getLogger("homedash.commands")

Label = Union[str, Callable[[], str]]
Action = Callable[[], None]


@dataclass(slots=True)
class Command:
    """Invocable action; ``label`` may be a callable re-evaluated on every read."""

    id: str
    label_source: Label
    category: str
    action: Action
    keywords: frozenset[str] = field(default_factory=frozenset)

    @property
    def label(self) -> str:
        source = self.label_source
        return source() if callable(source) else source

    def matches(self, query: str) -> bool:
        needle = query.strip().lower()
        if not needle:
            return True
        if needle in self.label.lower():
            return True
        return any(needle in keyword.lower() for keyword in self.keywords)


@dataclass(slots=True, frozen=True)
class CommandView:
    """Snapshot of a command as shown in the palette."""

    id: str
    label: str
    category: str


@dataclass(slots=True, frozen=True)
class CommandGroup:
    category: str
    commands: tuple[CommandView, ...]


class CommandRegistry:
    """Catalog of commands in registration order."""

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}

    def register(
        self,
        id: str,
        label: Label,
        category: str,
        action: Action,
        keywords: Iterable[str] = (),
    ) -> Command:
        if id in self._commands:
            raise ValueError(f"Command already registered: {id}")
        command = Command(id=id, label_source=label, category=category, action=action, keywords=frozenset(keywords))
        self._commands[id] = command
        return command

    def get(self, command_id: str) -> Optional[Command]:
        return self._commands.get(command_id)

    def __contains__(self, command_id: object) -> bool:
        return command_id in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self):
        return iter(self._commands.values())

    def search(self, query: str) -> list[CommandGroup]:
        """Case-insensitive substring match on label or keywords, grouped by category.

        Categories keep their first-registration order, commands keep their
        registration order inside a category. Labels are computed now.
        """
        grouped: dict[str, list[CommandView]] = {}
        for command in self._commands.values():
            grouped.setdefault(command.category, [])
            if command.matches(query):
                grouped[command.category].append(
                    CommandView(id=command.id, label=command.label, category=command.category)
                )
        return [CommandGroup(category, tuple(views)) for category, views in grouped.items() if views]

    def execute(self, command_id: str) -> bool:
        """Run the command's action once; unknown ids are ignored."""
        command = self._commands.get(command_id)
        if command is None:
            logger.warning("Unknown command %s", command_id)
            return False
        logger.info("Executing command %s", command_id)
        command.action()
        return True


@dataclass(slots=True, frozen=True)
class KeyEvent:
    """Keyboard event as delivered by a :class:`KeyboardSource`."""

    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    in_text_input: bool = False


KeyHandler = Callable[[KeyEvent], bool]


class KeyboardSource(Protocol):
    """Global keyboard capability; ``subscribe`` returns an unsubscribe function."""

    def subscribe(self, handler: KeyHandler) -> Callable[[], None]: ...


class CommandPalette:
    """Open/closed palette over a registry, with query and highlighted row."""

    def __init__(self, registry: CommandRegistry) -> None:
        self.registry = registry
        self.is_open = False
        self.query = ""
        self.highlighted = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------ #
    # Keyboard capture
    # ------------------------------------------------------------------ #
    def attach(self, keyboard: KeyboardSource) -> None:
        self.detach()
        self._unsubscribe = keyboard.subscribe(self.handle_key)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def handle_key(self, event: KeyEvent) -> bool:
        """Apply a key event; returns True when the palette consumed it."""
        key = event.key
        if key.lower() == "k" and (event.ctrl or event.meta):
            if self.is_open:
                self.close()
            else:
                self.open()
            return True
        if key == "/" and not (event.ctrl or event.meta):
            if event.in_text_input:
                return False
            self.open()
            return True
        if not self.is_open:
            return False
        if key == "Escape":
            self.close()
            return True
        if key == "ArrowDown":
            self._move(1)
            return True
        if key == "ArrowUp":
            self._move(-1)
            return True
        if key == "Enter":
            selected = self.selected()
            if selected is not None:
                self.execute(selected.id)
            return True
        return False

    # ------------------------------------------------------------------ #
    # State machine
    # ------------------------------------------------------------------ #
    def open(self) -> None:
        self.is_open = True
        self.query = ""
        self.highlighted = 0

    def close(self) -> None:
        self.is_open = False
        self.query = ""
        self.highlighted = 0

    def dismiss(self) -> None:
        """Click outside the palette."""
        self.close()

    def set_query(self, query: str) -> None:
        self.query = query
        self.highlighted = 0

    def results(self) -> list[CommandGroup]:
        return self.registry.search(self.query)

    def flat_results(self) -> list[CommandView]:
        return [view for group in self.results() for view in group.commands]

    def selected(self) -> Optional[CommandView]:
        flat = self.flat_results()
        if not flat:
            return None
        return flat[min(self.highlighted, len(flat) - 1)]

    def execute(self, command_id: str) -> None:
        if command_id not in self.registry:
            logger.warning("Unknown command %s", command_id)
            return
        try:
            self.registry.execute(command_id)
        finally:
            self.close()

    def _move(self, step: int) -> None:
        count = len(self.flat_results())
        if count:
            self.highlighted = (self.highlighted + step) % count
