from enum import Enum


class Environment(str, Enum):
    """Environment profiles."""

    LOCAL = "local"
    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


# Built-in demo account; always allowed to use paid features without charges.
DEFAULT_FREE_CREDITS_EMAIL = "demo-full@purelyautomation.dev"
