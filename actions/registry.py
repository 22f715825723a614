"""
Singleton ActionRegistry with auto-discovery.

The registry *is* the action table: action name → (required parameters,
optional pass-through parameters, call builder, result shape).  Adding an
action means adding a decorated function to an ``actions/*_actions.py``
module; the dispatch algorithm never changes.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import pathlib
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

_ACTIONS_DIR = pathlib.Path(__file__).resolve().parent


@dataclass(frozen=True)
class ActionSpec:
    name: str
    handler: Callable[..., Awaitable[Any]]
    result_key: str
    required: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()
    result_field: Optional[str] = None
    description: str = ""

    def describe(self) -> Dict[str, Any]:
        return {
            "action": self.name,
            "required": list(self.required),
            "optional": list(self.optional),
            "result_key": self.result_key,
            "description": self.description,
        }


class ActionRegistry:
    """Process-wide singleton mapping action-name → ``ActionSpec``."""

    _instance: "ActionRegistry | None" = None

    def __new__(cls) -> "ActionRegistry":
        if cls._instance is None:
            inst = super().__new__(cls)
            inst._actions: Dict[str, ActionSpec] = {}
            inst._discovered = False
            cls._instance = inst
        return cls._instance

    def register(self, spec: ActionSpec) -> None:
        if spec.name in self._actions and self._actions[spec.name].handler is not spec.handler:
            raise ValueError(f"Action '{spec.name}' is already registered")
        self._actions[spec.name] = spec

    def register_function(self, func: Callable) -> ActionSpec:
        """Register a function decorated with ``@action``."""
        if not getattr(func, "is_action", False):
            raise ValueError(f"{func.__name__} is not decorated with @action")
        spec = ActionSpec(
            name=func.action_name,
            handler=func,
            result_key=func.result_key,
            required=func.required_params,
            optional=func.optional_params,
            result_field=func.result_field,
            description=inspect.getdoc(func) or "",
        )
        self.register(spec)
        return spec

    def get(self, name: str) -> Optional[ActionSpec]:
        return self._actions.get(name)

    def has_action(self, name: str) -> bool:
        return name in self._actions

    def list_actions(self) -> List[str]:
        return sorted(self._actions)

    def describe(self) -> List[Dict[str, Any]]:
        return [self._actions[name].describe() for name in self.list_actions()]

    # ── auto-discovery ──────────────────────────────────────────────────

    def auto_discover_actions(self, actions_dir: pathlib.Path = _ACTIONS_DIR) -> None:
        """
        Import ``actions/*_actions.py`` and register every ``@action`` function.
        Safe to call more than once.
        """
        if self._discovered:
            return

        action_files = sorted(pathlib.Path(actions_dir).glob("*_actions.py"))
        if not action_files:
            raise RuntimeError(f"No *_actions.py files found in {actions_dir}")

        for action_file in action_files:
            module_name = f"{pathlib.Path(actions_dir).name}.{action_file.stem}"
            try:
                module = importlib.import_module(module_name)
            except ImportError as exc:
                raise RuntimeError(
                    f"Failed to load actions from {action_file.name}: {exc}"
                ) from exc

            for _name, obj in inspect.getmembers(module, inspect.isfunction):
                if getattr(obj, "is_action", False):
                    self.register_function(obj)

        self._discovered = True
        logger.info(
            "Registered %d actions from %d files",
            len(self._actions),
            len(action_files),
        )

    # ── reset (for tests) ──────────────────────────────────────────────

    @classmethod
    def reset(cls) -> None:
        """Destroy singleton — only useful in test teardown."""
        cls._instance = None
