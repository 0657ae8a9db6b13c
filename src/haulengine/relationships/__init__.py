"""Relationships between requesters and energy sources."""

from haulengine.relationships.lease_book import EnergyReservation, LeaseBook

__all__ = ["EnergyReservation", "LeaseBook"]
