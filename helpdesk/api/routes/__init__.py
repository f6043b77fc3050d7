"""HTTP routers exposed by the helpdesk API."""

from . import auth, comments, cron, ping, tickets

__all__ = ["auth", "comments", "cron", "ping", "tickets"]
