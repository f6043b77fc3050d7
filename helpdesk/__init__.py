"""Helpdesk ticketing service: clients file tickets, agents triage and resolve them."""

__version__ = "0.1.0"
