"""Event lifecycle and message dispatch for firewall delete requests."""

from firewall_deleter.connector.dispatcher import FirewallDeleteHandler
from firewall_deleter.connector.event import Event

__all__ = ["Event", "FirewallDeleteHandler"]
