"""
Circuit Breaker configuration for the card-checkout provider.

Checkout Session creation goes through the Stripe SDK, which is synchronous and
runs in a worker thread. The breaker stops sending new checkouts to Stripe
after repeated failures so guests get a fast GatewayError instead of waiting on
a provider outage.

Circuit Breaker Pattern:
- CLOSED: Normal operation, requests pass through
- OPEN: Too many failures, requests fail immediately
- HALF_OPEN: Testing if service recovered, limited requests allowed
"""

import logging

from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

logger = logging.getLogger(__name__)


class LoggingBreakerListener(CircuitBreakerListener):
    """Logs breaker state changes so an open circuit shows up in alerts."""

    def __init__(self, name: str):
        self.name = name

    def state_change(self, cb, old_state, new_state):
        logger.warning(
            "Circuit breaker state changed",
            extra={
                "breaker_name": self.name,
                "old_state": old_state.name if old_state else None,
                "new_state": new_state.name,
            },
        )


stripe_breaker = CircuitBreaker(
    fail_max=5,  # Open circuit after 5 consecutive failures
    reset_timeout=60,  # Seconds before a trial call is allowed (HALF_OPEN)
    name="stripe_circuit_breaker",
    listeners=[LoggingBreakerListener("stripe")],
)


__all__ = [
    "stripe_breaker",
    "CircuitBreakerError",
    "LoggingBreakerListener",
]
