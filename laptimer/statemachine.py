"""Two flavours of state machine: object states and bound callbacks."""

from __future__ import annotations

from collections import deque
from typing import Callable, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)

StateFunction = Callable[[int], None]


class State(Generic[K]):
    """A state owned by an ObjectStateMachine.

    The default hooks only keep track of whether the state is active and how
    much time has been spent in it since it was last entered.
    """

    def __init__(self, state_machine: ObjectStateMachine[K]) -> None:
        self.state_machine = state_machine
        self.active = False
        self.elapsed = 0

    def enter(self) -> None:
        """Called when the machine switches to this state."""
        self.active = True
        self.elapsed = 0

    def loop(self, dt: int) -> None:
        """Called on every tick while this state is current."""
        self.elapsed += dt

    def exit(self) -> None:
        """Called when the machine leaves this state."""
        self.active = False


class ObjectStateMachine(Generic[K]):
    """Switches between registered State objects immediately."""

    def __init__(self) -> None:
        self._states: dict[K, State[K] | None] = {}
        self._current: State[K] | None = None
        self._current_id: K | None = None

    def register_state(self, state_id: K, state: State[K] | None) -> None:
        self._states[state_id] = state

    def set_state(self, state_id: K) -> None:
        """Switch state; entering the current state again re-runs enter without exit."""
        if self._current is not None and self._current_id != state_id:
            self._current.exit()
        self._current = self._states.get(state_id)
        self._current_id = state_id
        if self._current is not None:
            self._current.enter()

    def loop(self, dt: int) -> None:
        if self._current is not None:
            self._current.loop(dt)

    def current_state_id(self) -> K | None:
        return self._current_id


class StateMachine(Generic[K]):
    """A state machine of bound functions with deferred, tick-driven transitions.

    A transition takes effect over ticks: the first tick after set_state runs the
    old state's exit function, the next runs the new state's enter function (or
    its tick function when it has none).
    """

    def __init__(self) -> None:
        self._functions: dict[K, StateFunction] = {}
        self._enter_functions: dict[K, StateFunction] = {}
        self._exit_functions: dict[K, StateFunction] = {}
        self.current_state: K | None = None
        self.next_state: K | None = None
        self.prev_state: K | None = None
        self.default_state: K | None = None
        self._previous_states: deque[K] = deque()
        self.enabled = True
        self._state_changed = False
        self._exit_called = False

    def bind(
        self,
        state: K,
        function: StateFunction,
        enter_function: StateFunction | None = None,
        exit_function: StateFunction | None = None,
    ) -> None:
        """Bind handlers to a state; the first bound state becomes the default."""
        if function is None:
            raise ValueError("a state needs a tick function")
        if not self._functions:
            self.default_state = state
        self._functions[state] = function
        if enter_function is not None:
            self._enter_functions[state] = enter_function
        if exit_function is not None:
            self._exit_functions[state] = exit_function

    def set_state(self, state: K) -> None:
        if self.next_state != state:
            self.next_state = state
            self._state_changed = True
            self._exit_called = False

    def set_default_state(self, state: K) -> None:
        """Make a bound state the default; unbound states are ignored."""
        if state in self._functions:
            self.default_state = state

    def go_to_default_state(self) -> None:
        self.set_state(self.default_state)

    def return_to_previous_state(self) -> None:
        """Go to the oldest remembered state, or to the default when none is left."""
        if self._previous_states:
            self.next_state = self._previous_states.popleft()
            self._state_changed = True
            self._exit_called = False
        else:
            self.go_to_default_state()

    def update_state(self, delta_time: int) -> None:
        if not self.enabled:
            return

        if self._state_changed:
            if not self._exit_called:
                exit_function = self._exit_functions.get(self.current_state)
                if exit_function is not None:
                    exit_function(delta_time)
                self._exit_called = True
                return

            self.prev_state = self.current_state
            if self.prev_state in self._functions:
                self._previous_states.append(self.prev_state)

            self.current_state = self.next_state
            self._state_changed = False

            enter_function = self._enter_functions.get(self.current_state)
            if enter_function is not None:
                enter_function(delta_time)
                return

        function = self._functions.get(self.current_state)
        if function is not None:
            function(delta_time)