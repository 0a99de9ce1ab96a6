"""Read-apply-write cycle against the state store."""

import hmac
import logging
import time
from typing import Optional

from pydantic import ValidationError

from .exceptions import ChargerQueueError, Conflict, Forbidden, InvalidInput
from .metrics import observe_store_latency, record_action, record_conflict, update_state_gauges
from .state.actions import Action
from .state.allocator import apply_action
from .state.models import StateDocument
from .state.queries import default_state
from .store.base import StateStore

logger = logging.getLogger(__name__)


class StateService:
    """
    Handles one client action at a time against a versioned store.

    Nothing is cached between calls: every call reads the document fresh,
    and every write is conditioned on the version that read returned.
    """

    def __init__(
        self,
        store: StateStore,
        spots: Optional[list[dict]] = None,
        internal_key: str = "",
        max_write_retries: int = 0,
        strict_write_all: bool = False,
    ):
        """
        Initialize the service.

        Args:
            store: Backend holding the state document
            spots: Spot definitions for the default document
            internal_key: Shared secret for mutating requests; empty disables it
            max_write_retries: Extra read-apply-write attempts after a conflict
            strict_write_all: Reject writeAll documents that break invariants
        """
        self.store = store
        self.spots = spots
        self.internal_key = internal_key
        self.max_write_retries = max_write_retries
        self.strict_write_all = strict_write_all

    def authorize(self, provided_key: Optional[str]) -> None:
        """Raise Forbidden unless the key matches the configured secret."""
        if not self.internal_key:
            return
        if provided_key is None or not hmac.compare_digest(
            provided_key.encode("utf-8"), self.internal_key.encode("utf-8")
        ):
            raise Forbidden("Forbidden")

    async def _read(self) -> tuple[StateDocument, Optional[str]]:
        start = time.perf_counter()
        document, version = await self.store.read()
        observe_store_latency("read", time.perf_counter() - start)

        if document is None:
            logger.info("No stored state yet, using default document")
            return default_state(self.spots), None

        try:
            state = StateDocument.from_document(document)
        except ValidationError as e:
            raise ChargerQueueError(f"Stored state is invalid: {e.error_count()} error(s)") from e

        return state, version

    async def _write(self, state: StateDocument, version: Optional[str]) -> Optional[str]:
        start = time.perf_counter()
        try:
            return await self.store.write(state.to_document(), version)
        finally:
            observe_store_latency("write", time.perf_counter() - start)

    async def get_state(self) -> StateDocument:
        """Current document, or the default one if nothing is stored."""
        state, _ = await self._read()
        update_state_gauges(state)
        return state

    async def apply(self, action: Action) -> StateDocument:
        """
        Apply an action and persist the result.

        Args:
            action: Parsed action

        Returns:
            The document that was written

        Raises:
            InvalidInput: If the engine rejects the action
            Conflict: If the store moved on and no retries are left
            StoreUnavailable: On store transport failures
        """
        attempts = self.max_write_retries + 1
        attempt = 0

        while True:
            attempt += 1
            state, version = await self._read()
            try:
                new_state = apply_action(state, action, strict_write_all=self.strict_write_all)
            except InvalidInput:
                record_action(action.action, "invalid")
                raise

            try:
                await self._write(new_state, version)
            except Conflict:
                record_conflict()
                if attempt >= attempts:
                    record_action(action.action, "conflict")
                    logger.warning(f"Write conflict on '{action.action}' after {attempt} attempt(s)")
                    raise
                logger.info(f"Write conflict on '{action.action}', retrying ({attempt}/{attempts - 1})")
                continue
            except ChargerQueueError:
                record_action(action.action, "error")
                raise

            record_action(action.action, "ok")
            update_state_gauges(new_state)
            logger.info(f"Applied '{action.action}'")
            return new_state
