# core/sync.py
"""
Cart and wishlist state synchronizer.

Keeps three views of each slot consistent: the in-memory membership set,
the persisted copy in a SetStore, and the remote store reached through a
mutation client. Membership changes only after the remote side confirms
(no optimistic insert followed by rollback), so each item's state changes
at confirmation time. At most one call per item is in flight; different
items proceed independently.
"""
import asyncio
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Set

from .diff import diff_members
from .errors import MutationError, Unauthenticated
from .logger import get_logger
from .models import ItemId, MembershipSet, PendingMap, PendingOp, Slot
from .session import Session

logger = get_logger(__name__)


class ReconcilePolicy(str, Enum):
    LOCAL = "local"    # trust the persisted copy, never read the remote set
    REMOTE = "remote"  # remote set overwrites local membership
    MERGE = "merge"    # union of local and remote


RECONCILE_POLICY = os.getenv("RECONCILE_POLICY", ReconcilePolicy.LOCAL.value).lower()


@dataclass
class SlotState:
    membership: MembershipSet = field(default_factory=set)
    pending: PendingMap = field(default_factory=dict)
    # Sequence number of the last confirmed call per item
    confirmations: int = 0
    confirmed_at: Dict[ItemId, int] = field(default_factory=dict)

    def confirm(self, item_id: ItemId) -> None:
        self.confirmations += 1
        self.confirmed_at[item_id] = self.confirmations

    def confirmed_since(self, mark: int) -> Set[ItemId]:
        return {iid for iid, seq in self.confirmed_at.items() if seq > mark}


class Synchronizer:
    def __init__(
        self,
        store,
        client,
        session: Optional[Session] = None,
        policy: ReconcilePolicy | str = RECONCILE_POLICY,
    ):
        self.store = store
        self.client = client
        self.policy = ReconcilePolicy(policy)
        self._session = Session.anonymous()
        self._states: Dict[Slot, SlotState] = {}
        self.initialize(session or Session.anonymous())

    @property
    def session(self) -> Session:
        return self._session

    def initialize(self, session: Session) -> None:
        """
        Install a session and rebuild all slot state from scratch.

        Anonymous sessions start empty; authenticated ones hydrate from the
        persisted store. The persisted store itself is left untouched.
        """
        if session.authenticated:
            states = {slot: SlotState(membership=self.store.load(slot)) for slot in Slot}
        else:
            states = {slot: SlotState() for slot in Slot}

        # Replace wholesale so in-flight calls keep a handle on the old state
        self._session = session
        self._states = states
        logger.info(
            "Initialized %r: cart=%d wishlist=%d",
            session,
            len(states[Slot.CART].membership),
            len(states[Slot.WISHLIST].membership),
        )

    def reset(self) -> None:
        self.initialize(Session.anonymous())

    def _state(self, slot) -> SlotState:
        return self._states[Slot(slot)]

    def is_member(self, slot, item_id: ItemId) -> bool:
        return item_id in self._state(slot).membership

    def is_pending(self, slot, item_id: ItemId) -> bool:
        return item_id in self._state(slot).pending

    def pending_op(self, slot, item_id: ItemId) -> Optional[PendingOp]:
        return self._state(slot).pending.get(item_id)

    def members(self, slot) -> FrozenSet[ItemId]:
        return frozenset(self._state(slot).membership)

    async def request_add(self, slot, item_id: ItemId, quantity: int = 1) -> bool:
        """
        Add an item once the remote store confirms it.

        Returns True when the live membership changed, False when the call
        was ignored (item already pending) or its result arrived after the
        session was replaced. Remote failures propagate after the pending
        marker is cleared.
        """
        slot = Slot(slot)
        if quantity < 1:
            raise ValueError(f"quantity must be at least 1, got {quantity}")
        return await self._mutate(slot, item_id, PendingOp.ADD, quantity)

    async def request_remove(self, slot, item_id: ItemId) -> bool:
        """Symmetric to request_add; discards the item on confirmation."""
        return await self._mutate(Slot(slot), item_id, PendingOp.REMOVE)

    async def _mutate(
        self, slot: Slot, item_id: ItemId, op: PendingOp, quantity: int = 1
    ) -> bool:
        session = self._session
        if not session.authenticated:
            raise Unauthenticated(f"Cannot {op.value} {item_id}: not logged in.")

        state = self._states[slot]
        if item_id in state.pending:
            logger.debug(
                "Ignoring %s %s on %s: %s already in flight.",
                op.value, item_id, slot.value, state.pending[item_id].value,
            )
            return False

        state.pending[item_id] = op
        try:
            if op is PendingOp.ADD:
                await asyncio.to_thread(
                    self.client.add_item, slot, item_id, session.credential, quantity
                )
            else:
                await asyncio.to_thread(
                    self.client.remove_item, slot, item_id, session.credential
                )
        except MutationError as e:
            logger.warning(
                "Failed to %s %s on %s (%s): %s",
                op.value, item_id, slot.value, type(e).__name__, e,
            )
            raise
        finally:
            state.pending.pop(item_id, None)

        if state is not self._states.get(slot):
            logger.info(
                "Discarding %s %s on %s: %r ended before the call completed.",
                op.value, item_id, slot.value, session,
            )
            return False

        if op is PendingOp.ADD:
            state.membership.add(item_id)
        else:
            state.membership.discard(item_id)
        state.confirm(item_id)
        self.store.save(slot, state.membership)
        return True

    async def reconcile(self) -> None:
        """
        Align local membership with the remote store according to the policy.

        Items with a call in flight when the fetch starts or ends keep their
        local membership; a call confirmed mid-fetch is newer than the snapshot.
        """
        if self.policy is ReconcilePolicy.LOCAL:
            return

        session = self._session
        if not session.authenticated:
            raise Unauthenticated("Cannot reconcile without a credential.")

        for slot in Slot:
            state = self._states[slot]
            touched = set(state.pending)
            mark = state.confirmations
            remote = await asyncio.to_thread(
                self.client.fetch_items, slot, session.credential
            )
            if state is not self._states.get(slot):
                logger.info("Session replaced during reconciliation; stopping.")
                return

            added, removed = diff_members(state.membership, remote)
            if self.policy is ReconcilePolicy.REMOTE:
                target = set(remote)
            else:
                target = state.membership | set(remote)
                removed = []

            # Confirmed or in flight since the fetch began: local is newer
            touched |= set(state.pending) | state.confirmed_since(mark)
            for item_id in touched:
                if item_id in state.membership:
                    target.add(item_id)
                else:
                    target.discard(item_id)

            if target == state.membership:
                logger.debug("%s already in sync with remote.", slot.value)
                continue

            logger.info(
                "Reconciled %s (%s): +%s -%s",
                slot.value, self.policy.value, added, removed,
            )
            state.membership.clear()
            state.membership.update(target)
            self.store.save(slot, state.membership)
