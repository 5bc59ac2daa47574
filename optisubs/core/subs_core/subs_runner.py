"""
Live exercise of OptimisticSubs on Optimism.

deploy → approve → subscribe (untracked) → subscribe (tracked) → resolve subId
from the Subscribed event → unsubscribe. Any failure aborts the rest; nothing
is rolled back.
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.table import Table

from ..logging import configure_logging
from .subs_abi import SUBSCRIBED_TOPIC, load_artifact
from .subs_amounts import decode, encode
from .subs_client import SubscriptionClient
from .subs_config import SubsConfig
from .subs_context import ClientContext
from .subs_models import ContractHandle, DeploymentConfig, Subscription, TrackedSubscription, to_0x
from .subs_token import TokenApprover

log = logging.getLogger(__name__)
console = Console()

APPROVE_AMOUNT = 1
UNTRACKED_AMOUNT = 0.1
TRACKED_AMOUNT = 0.15
PERIOD_COUNT = 2


@dataclass
class LiveRunResult:
    handle: ContractHandle
    tracked: TrackedSubscription

    @property
    def subscription(self) -> Subscription:
        return self.tracked.subscription


def _print_subscription(sub: Subscription) -> None:
    t = Table(title="Resolved subscription")
    t.add_column("Field", justify="right")
    t.add_column("Value")
    t.add_row("subId", to_0x(sub.sub_id))
    t.add_row("subscriber", sub.subscriber)
    t.add_row("amount", f"{decode(sub.amount)} ({sub.amount})")
    t.add_row("periods", str(sub.period_count))
    console.print(t)


def run_live_test(
    cfg: SubsConfig,
    ctx: ClientContext,
    client: SubscriptionClient,
    approver: Optional[TokenApprover] = None,
) -> LiveRunResult:
    signer = ctx.address
    deployment = DeploymentConfig(
        period_length_seconds=cfg.period_length_seconds,
        token_or_recipient_address=cfg.fee_recipient,
        owner_address=signer,
        start_timestamp=cfg.start_timestamp,
    )

    handle = client.deploy(deployment)
    console.print(f"deployed to {handle.address}")

    approver = approver or TokenApprover(ctx, cfg.token_address)
    approver.approve(handle.address, encode(APPROVE_AMOUNT))

    # first subscription is never correlated
    client.subscribe(handle, signer, encode(UNTRACKED_AMOUNT), PERIOD_COUNT)
    tracked = client.track(handle, signer, encode(TRACKED_AMOUNT), PERIOD_COUNT, SUBSCRIBED_TOPIC)
    _print_subscription(tracked.subscription)

    client.unsubscribe(handle, tracked.subscription.sub_id)
    console.print("unsubscribed")
    return LiveRunResult(handle=handle, tracked=tracked)


def main() -> int:
    configure_logging()
    try:
        cfg = SubsConfig.from_env()
        abi, bytecode = load_artifact(cfg.artifact_path)
        ctx = ClientContext.from_config(cfg)
        client = SubscriptionClient(ctx, abi=abi, bytecode=bytecode)
        run_live_test(cfg, ctx, client)
    except Exception as e:  # noqa: BLE001
        log.exception("Live run failed")
        print(f"❌ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
