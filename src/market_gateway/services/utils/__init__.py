"""Service helpers."""
from market_gateway.services.utils.in_flight import InFlightRequests

__all__ = ["InFlightRequests"]
