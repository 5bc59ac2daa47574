"""
Receipt log decoding and event correlation.

Logs are decoded into a closed set of variants (SubscribedEvent or
UnknownEvent); correlation is a filter over those variants rather than a
byte comparison at the call site.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import to_checksum_address
from hexbytes import HexBytes

from .subs_abi import SUBSCRIBED_DATA_TYPES, SUBSCRIBED_TOPIC
from .subs_context import PendingTransaction
from .subs_errors import EventNotFound
from .subs_models import Subscription, to_0x

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscribedEvent:
    signature: HexBytes
    sub_id: HexBytes
    subscriber: str
    amount: int
    period_count: int
    log_index: Optional[int] = None
    address: Optional[str] = None

    def to_subscription(self) -> Subscription:
        return Subscription(
            sub_id=self.sub_id,
            subscriber=self.subscriber,
            amount=self.amount,
            period_count=self.period_count,
        )


@dataclass(frozen=True)
class UnknownEvent:
    signature: Optional[HexBytes]
    log_index: Optional[int] = None
    address: Optional[str] = None
    reason: Optional[str] = None            # set when a known topic failed to decode


DecodedEvent = Union[SubscribedEvent, UnknownEvent]


def _topic_to_address(topic: bytes) -> str:
    return to_checksum_address(bytes(topic)[-20:])


class EventDecoder:
    """Maps raw receipt logs to DecodedEvent variants."""

    def __init__(self, subscribed_topic: bytes = SUBSCRIBED_TOPIC):
        self.subscribed_topic = HexBytes(subscribed_topic)

    def decode_log(self, entry: Mapping[str, Any]) -> DecodedEvent:
        topics = [HexBytes(t) for t in (entry.get("topics") or [])]
        log_index = entry.get("logIndex")
        address = entry.get("address")
        if not topics:
            # anonymous event
            return UnknownEvent(signature=None, log_index=log_index, address=address)

        topic0 = topics[0]
        if topic0 != self.subscribed_topic:
            return UnknownEvent(signature=topic0, log_index=log_index, address=address)

        if len(topics) < 2:
            return UnknownEvent(topic0, log_index, address, reason="missing subscriber topic")
        try:
            sub_id, amount, periods = abi_decode(list(SUBSCRIBED_DATA_TYPES), bytes(HexBytes(entry.get("data") or b"")))
        except DecodingError as e:
            # same topic from a foreign emitter, or a different event layout
            log.debug("Undecodable Subscribed log at logIndex=%s: %s", log_index, e)
            return UnknownEvent(topic0, log_index, address, reason="undecodable payload")

        return SubscribedEvent(
            signature=topic0,
            sub_id=HexBytes(sub_id),
            subscriber=_topic_to_address(topics[1]),
            amount=int(amount),
            period_count=int(periods),
            log_index=log_index,
            address=address,
        )

    def iter_receipt(self, receipt: Mapping[str, Any]) -> Iterator[DecodedEvent]:
        """Decode logs one at a time, in emission order."""
        logs: Iterable[Mapping[str, Any]] = receipt.get("logs") or []
        for entry in logs:
            yield self.decode_log(entry)

    def decode_receipt(self, receipt: Mapping[str, Any]) -> List[DecodedEvent]:
        return list(self.iter_receipt(receipt))


class EventCorrelator:
    def __init__(self, decoder: Optional[EventDecoder] = None):
        self.decoder = decoder or EventDecoder()

    def correlate(self, pending: PendingTransaction, expected_signature: bytes) -> Subscription:
        """
        Wait for *pending* to be mined and return the Subscription carried by
        the first matching Subscribed log, in emission order.

        A reverted transaction has no logs to offer and fails the same way as
        a receipt without a match: EventNotFound.
        """
        receipt = pending.wait()
        return self.from_receipt(receipt, expected_signature, tx=pending.hex)

    def from_receipt(self, receipt: Mapping[str, Any], expected_signature: bytes, tx: str = "") -> Subscription:
        expected = HexBytes(expected_signature)
        details: Dict[str, Any] = {"tx": tx, "signature": to_0x(expected)}

        if receipt.get("status", 1) != 1:
            raise EventNotFound("Transaction reverted; no event emitted", details)

        seen = 0
        malformed = 0
        for ev in self.decoder.iter_receipt(receipt):
            seen += 1
            if isinstance(ev, SubscribedEvent) and ev.signature == expected:
                log.info("Resolved subId=%s from tx %s (logIndex=%s)", to_0x(ev.sub_id), tx, ev.log_index)
                return ev.to_subscription()
            if isinstance(ev, UnknownEvent) and ev.reason:
                malformed += 1

        details["logs"] = seen
        if malformed:
            details["malformed"] = malformed
        raise EventNotFound("No matching event in receipt", details)
