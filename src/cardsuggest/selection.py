"""Keyboard/pointer selection over a rendered suggestion list.

Each input field owns a ``SuggestionSession`` holding an explicit
``SelectionState``. Sessions are driven by plain method calls (input
changed, key pressed, candidate clicked, click elsewhere), so the whole
state machine can be exercised without a browser. Rendering, focus
highlighting and form submission are delegated to a ``SuggestionListener``.

A session is always either Closed or Open; any exception raised while
matching or notifying the listener is logged and leaves the session
Closed, so one bad keystroke never stops the next one from being handled.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from cardsuggest.models.suggest import SelectionState, SuggestionCandidate

if TYPE_CHECKING:
    from cardsuggest.suggest import SuggestionEngine

log = structlog.get_logger()

DEFAULT_MIN_MATCH_LENGTH = 3


class Key(StrEnum):
    DOWN = "ArrowDown"
    UP = "ArrowUp"
    ENTER = "Enter"
    ESCAPE = "Escape"
    TAB = "Tab"
    RIGHT = "ArrowRight"


class SuggestionListener:
    """Rendering boundary. Subclass and override the hooks you need."""

    def render(self, session: SuggestionSession, candidates: list[SuggestionCandidate]) -> None:
        pass

    def focus(self, session: SuggestionSession, index: int) -> None:
        pass

    def close(self, session: SuggestionSession) -> None:
        pass

    def value_changed(self, session: SuggestionSession, value: str) -> None:
        pass

    def commit(
        self, session: SuggestionSession, index: int, candidate: SuggestionCandidate
    ) -> None:
        pass

    def submit(self, session: SuggestionSession) -> None:
        pass


class SuggestionSession:
    """Suggestion list state for one input field."""

    def __init__(
        self,
        input_id: str,
        engine: SuggestionEngine,
        prefix: str | None = None,
        listener: SuggestionListener | None = None,
        min_match_length: int = DEFAULT_MIN_MATCH_LENGTH,
        controller: SuggestionController | None = None,
    ) -> None:
        self.input_id = input_id
        self.prefix = prefix
        self.value = ""
        self.state = SelectionState(min_match_length=min_match_length)
        self._engine = engine
        self._listener = listener or SuggestionListener()
        self._controller = controller
        self._generation = 0
        self._detached = False

    @property
    def list_id(self) -> str:
        return f"{self.input_id}autocomplete-list"

    @property
    def is_open(self) -> bool:
        return self.state.is_open

    @property
    def candidates(self) -> list[SuggestionCandidate]:
        return self.state.candidates

    @property
    def focused_index(self) -> int:
        return self.state.focused_index

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    async def on_input(self, value: str) -> None:
        """The input's text changed."""
        self.value = value
        await self._evaluate(force=False)

    async def _evaluate(self, force: bool) -> None:
        self._generation += 1
        generation = self._generation
        value = self.value
        try:
            if not force and (not value or len(value) < self.state.min_match_length):
                self.close()
                return

            candidates = await self._engine.get_suggestions_by_prefix(self.prefix, value)
            if generation != self._generation or self._detached:
                log.debug("suggest_result_discarded", input_id=self.input_id)
                return

            if not candidates:
                self.close()
                return

            if self._controller is not None:
                self._controller.close_others(self)
            self.state.open(self.list_id, candidates)
            self._listener.render(self, list(candidates))
        except Exception:
            log.warning("suggest_evaluation_failed", input_id=self.input_id, exc_info=True)
            self.close()

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    async def handle_key(self, key: Key | str) -> bool:
        """Dispatch a key press. Returns True if the caller should suppress its default action."""
        try:
            key = Key(key)
        except ValueError:
            return False

        if key is Key.DOWN:
            await self.navigate_down()
            return True
        if key is Key.UP:
            self.navigate_up()
            return True
        if key is Key.ENTER:
            return self.commit()
        if key is Key.ESCAPE:
            self.escape()
            return False
        return self.accept_focused()

    async def navigate_down(self) -> None:
        if not self.is_open:
            # Nothing rendered: drop the length gate and show the list anyway.
            self.state.min_match_length = 1
            await self._evaluate(force=True)
            return

        index = self.state.focused_index + 1
        if index > len(self.state.candidates) - 1:
            index = 0
        self._set_focus(index)

    def navigate_up(self) -> None:
        if not self.is_open:
            return
        index = self.state.focused_index - 1
        if index < 0:
            index = len(self.state.candidates) - 1
        self._set_focus(index)

    def _set_focus(self, index: int) -> None:
        self.state.focused_index = index
        try:
            self._listener.focus(self, index)
        except Exception:
            log.warning("suggest_listener_failed", hook="focus", exc_info=True)

    def commit(self) -> bool:
        """Apply the focused candidate (Enter). Returns False when nothing is focused."""
        if self.state.focused is None:
            return False
        return self.select(self.state.focused_index)

    def select(self, index: int) -> bool:
        """Apply the candidate at ``index`` (pointer click), close the list and submit."""
        if not self.is_open or not 0 <= index < len(self.state.candidates):
            log.debug("suggest_select_ignored", input_id=self.input_id, index=index)
            return False

        candidate = self.state.candidates[index]
        self.value = candidate.value
        self.close()
        try:
            self._listener.value_changed(self, self.value)
            self._listener.commit(self, index, candidate)
            self._listener.submit(self)
        except Exception:
            log.warning("suggest_listener_failed", hook="commit", exc_info=True)
        log.info("suggest_committed", input_id=self.input_id, index=index)
        return True

    def escape(self) -> None:
        self.close()

    def accept_focused(self) -> bool:
        """Copy the focused candidate into the input without closing or submitting (Tab/Right)."""
        candidate = self.state.focused
        if candidate is None:
            return False
        self.value = candidate.display_text
        try:
            self._listener.value_changed(self, self.value)
        except Exception:
            log.warning("suggest_listener_failed", hook="value_changed", exc_info=True)
        return True

    # ------------------------------------------------------------------
    # Pointer / lifecycle
    # ------------------------------------------------------------------

    def outside_click(self, target: str | None) -> None:
        """Close unless the click landed on this session's list or input."""
        if target in (self.list_id, self.input_id):
            return
        self.close()

    def close(self) -> None:
        if not self.is_open:
            return
        self.state.close()
        try:
            self._listener.close(self)
        except Exception:
            log.warning("suggest_listener_failed", hook="close", exc_info=True)

    def detach(self) -> None:
        """Tear down; results of evaluations still in flight are discarded."""
        self._detached = True
        self.state.close()


class SuggestionController:
    """Owns the sessions of every input on a page; at most one list is open at a time."""

    def __init__(
        self,
        engine: SuggestionEngine,
        listener: SuggestionListener | None = None,
        min_match_length: int = DEFAULT_MIN_MATCH_LENGTH,
    ) -> None:
        self._engine = engine
        self._listener = listener
        self._min_match_length = min_match_length
        self._sessions: dict[str, SuggestionSession] = {}

    def attach(
        self,
        input_id: str,
        prefix: str | None = None,
        listener: SuggestionListener | None = None,
    ) -> SuggestionSession:
        if input_id in self._sessions:
            raise ValueError(f"Input {input_id!r} already has a suggestion session")
        session = SuggestionSession(
            input_id,
            self._engine,
            prefix=prefix,
            listener=listener or self._listener,
            min_match_length=self._min_match_length,
            controller=self,
        )
        self._sessions[input_id] = session
        return session

    def detach(self, input_id: str) -> None:
        session = self._sessions.pop(input_id, None)
        if session is not None:
            session.detach()

    def session(self, input_id: str) -> SuggestionSession:
        return self._sessions[input_id]

    @property
    def open_sessions(self) -> list[SuggestionSession]:
        return [session for session in self._sessions.values() if session.is_open]

    def close_others(self, keep: SuggestionSession) -> None:
        for session in self._sessions.values():
            if session is not keep:
                session.close()

    def outside_click(self, target: str | None) -> None:
        for session in self._sessions.values():
            session.outside_click(target)

    async def on_input(self, input_id: str, value: str) -> None:
        await self._sessions[input_id].on_input(value)

    async def handle_key(self, input_id: str, key: Key | str) -> bool:
        return await self._sessions[input_id].handle_key(key)
