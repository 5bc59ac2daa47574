"""
subs_core – OptimisticSubs integration.
Deploy, approve, subscribe, resolve subId from the Subscribed event, unsubscribe.
"""
__all__ = [
    "subs_abi",
    "subs_amounts",
    "subs_client",
    "subs_config",
    "subs_context",
    "subs_errors",
    "subs_events",
    "subs_models",
    "subs_runner",
    "subs_token",
]
