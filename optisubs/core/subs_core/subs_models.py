from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from hexbytes import HexBytes

from .subs_errors import InvalidTransition

if TYPE_CHECKING:  # pragma: no cover
    from .subs_context import PendingTransaction


def to_0x(value: bytes) -> str:
    """0x-prefixed hex for bytes / HexBytes regardless of hexbytes version."""
    return "0x" + bytes(value).hex()


@dataclass(frozen=True)
class DeploymentConfig:
    """Constructor arguments for OptimisticSubs; immutable once deployed."""

    period_length_seconds: int
    token_or_recipient_address: str
    owner_address: str
    start_timestamp: int

    def as_args(self) -> tuple:
        return (
            int(self.period_length_seconds),
            self.token_or_recipient_address,
            self.owner_address,
            int(self.start_timestamp),
        )


@dataclass(frozen=True)
class ContractHandle:
    address: str
    contract: Any                       # web3 Contract bound to address
    deploy_tx_hash: Optional[str] = None


@dataclass(frozen=True)
class Subscription:
    """Client-side view of one subscription, decoded from a Subscribed log."""

    sub_id: HexBytes                    # opaque, passed back verbatim to unsubscribe
    subscriber: str
    amount: int                         # fixed-point, see subs_amounts
    period_count: int

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["sub_id"] = to_0x(self.sub_id)
        return d


class SubscriptionState(str, Enum):
    NOT_CREATED = "not_created"
    PENDING = "pending"
    ACTIVE = "active"
    CANCELLED = "cancelled"


_ALLOWED = {
    SubscriptionState.NOT_CREATED: {SubscriptionState.PENDING},
    SubscriptionState.PENDING: {SubscriptionState.ACTIVE},
    SubscriptionState.ACTIVE: {SubscriptionState.CANCELLED},
    SubscriptionState.CANCELLED: set(),
}


@dataclass
class TrackedSubscription:
    """
    Lifecycle wrapper: NOT_CREATED -> PENDING -> ACTIVE -> CANCELLED.

    There is no PENDING -> CANCELLED shortcut; a bad move raises
    InvalidTransition and leaves the record untouched.
    """

    state: SubscriptionState = SubscriptionState.NOT_CREATED
    pending: Optional["PendingTransaction"] = None
    subscription: Optional[Subscription] = None
    history: list[SubscriptionState] = field(default_factory=list)

    def _move(self, target: SubscriptionState) -> None:
        if target not in _ALLOWED[self.state]:
            raise InvalidTransition(
                "Subscription lifecycle transition not allowed",
                {"from": self.state.value, "to": target.value},
            )
        self.history.append(self.state)
        self.state = target

    def mark_pending(self, pending: "PendingTransaction") -> None:
        self._move(SubscriptionState.PENDING)
        self.pending = pending

    def activate(self, subscription: Subscription) -> None:
        self._move(SubscriptionState.ACTIVE)
        self.subscription = subscription

    def cancel(self) -> None:
        self._move(SubscriptionState.CANCELLED)

    def require_active(self) -> Subscription:
        if self.state is not SubscriptionState.ACTIVE or self.subscription is None:
            raise InvalidTransition(
                "Subscription must be active before it can be cancelled",
                {"state": self.state.value},
            )
        return self.subscription

    @property
    def sub_id(self) -> Optional[HexBytes]:
        return self.subscription.sub_id if self.subscription else None
