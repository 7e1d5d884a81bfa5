"""
Mock adapter — test double for any adapter.

Records every execution context it receives and returns success unless
told otherwise, so a whole craft run can be driven without git, npm or
the app generator installed.
"""

from __future__ import annotations

from collections.abc import Callable

from craft.adapters.base import Adapter, ExecutionContext
from craft.core.models.action import Receipt


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default, returns success for everything. Can be configured with
    custom responses per action ID, or with a side effect that runs
    before the response is returned (to fake files a tool would write).
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self._side_effects: dict[str, Callable[[ExecutionContext], None]] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times execute has been called."""
        return len(self._call_log)

    def calls_for(self, operation: str) -> list[ExecutionContext]:
        """Contexts whose action requested the given operation."""
        return [c for c in self._call_log if c.action.params.get("operation") == operation]

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        """Set a custom response for a specific action ID."""
        self._responses[action_id] = receipt

    def set_failure(
        self,
        action_id: str,
        error: str = "Mock failure",
        command: str | None = None,
    ) -> None:
        """Configure a specific action to fail."""
        self._responses[action_id] = Receipt.failure(
            adapter=self._name,
            action_id=action_id,
            error=error,
            metadata={"command": command} if command else {},
        )

    def set_side_effect(
        self,
        action_id: str,
        effect: Callable[[ExecutionContext], None],
    ) -> None:
        """Run ``effect`` whenever the given action executes."""
        self._side_effects[action_id] = effect

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)

        effect = self._side_effects.get(context.action.id)
        if effect is not None:
            effect(context)

        if context.action.id in self._responses:
            return self._responses[context.action.id]

        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output=self._default_output,
            metadata={"mock": True},
        )

    def reset(self) -> None:
        """Clear call log, custom responses and side effects."""
        self._call_log.clear()
        self._responses.clear()
        self._side_effects.clear()
