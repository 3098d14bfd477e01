"""Security group deletion backends."""

from firewall_deleter.providers.aws import AWSSecurityGroupDeleter
from firewall_deleter.providers.dry_run import DryRunDeleter

__all__ = ["AWSSecurityGroupDeleter", "DryRunDeleter"]
