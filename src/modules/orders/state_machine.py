"""Order status state machine.

Pure, stateless checks over ``VALID_TRANSITIONS``.  No I/O: the
coordinator asks ``validate`` and decides what to do with the answer.
"""

from __future__ import annotations

from typing import FrozenSet, Mapping, Union

from modules.orders.constants import TERMINAL_STATES, VALID_TRANSITIONS, OrderStatus
from modules.orders.exceptions import InvalidOrderRequest

StatusLike = Union[OrderStatus, str]


class OrderStatusMachine:
    """Legal order status transitions."""

    def __init__(
        self,
        transitions: Mapping[OrderStatus, FrozenSet[OrderStatus]] = VALID_TRANSITIONS,
    ) -> None:
        self._transitions = transitions

    @staticmethod
    def parse(value: StatusLike) -> OrderStatus:
        """Convert a raw status to ``OrderStatus``.

        Raises:
            InvalidOrderRequest: *value* is not a known status.
        """
        try:
            return OrderStatus(value)
        except ValueError:
            raise InvalidOrderRequest(f"Unknown order status {value!r}.") from None

    def validate(self, current: StatusLike, new: StatusLike) -> bool:
        """Return ``True`` if ``current -> new`` is in the transition table."""
        source = self.parse(current)
        target = self.parse(new)
        return target in self._transitions[source]

    def allowed_targets(self, current: StatusLike) -> FrozenSet[OrderStatus]:
        return self._transitions[self.parse(current)]

    def is_terminal(self, status: StatusLike) -> bool:
        return self.parse(status) in TERMINAL_STATES
