"""Enumerations used across the connector."""

from enum import Enum


class BusBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"


class LogFormat(str, Enum):
    JSON = "json"
    CONSOLE = "console"


class ValidationFailure(str, Enum):
    """Closed set of validation outcomes, in evaluation order.

    The value of each member is the message carried on the error event.
    """

    DATACENTER_ID_INVALID = "Datacenter VPC ID invalid"
    DATACENTER_REGION_INVALID = "Datacenter Region invalid"
    DATACENTER_CREDENTIALS_INVALID = "Datacenter credentials invalid"
    SG_AWS_ID_INVALID = "Security Group aws id invalid"
    SG_NAME_INVALID = "Security Group name invalid"
    SG_RULES_INVALID = "Security Group must contain rules"
    SG_RULE_IP_INVALID = "Security Group rule ip invalid"
    SG_RULE_PROTOCOL_INVALID = "Security Group rule protocol invalid"
    SG_RULE_FROM_PORT_INVALID = "Security Group rule from port invalid"
    SG_RULE_TO_PORT_INVALID = "Security Group rule to port invalid"
