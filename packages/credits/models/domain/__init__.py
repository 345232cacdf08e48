"""Domain models for credits."""

from packages.credits.models.domain.enums import (
    ServiceSlug,
    ServiceSetupStatus,
    AutoTopUpFailureReason,
    TopUpMode,
)
from packages.credits.models.domain.credits import (
    CreditsState,
    ConsumeResult,
    AutoTopUpResult,
)
from packages.credits.models.domain.service_setup import (
    ServiceSetup,
    ServiceSetupCreateModel,
)
from packages.credits.models.domain.topup import (
    PackagePrice,
    CheckoutSessionInfo,
    TopUpStartResult,
    TopUpConfirmation,
)

__all__ = [
    # Enums
    "ServiceSlug",
    "ServiceSetupStatus",
    "AutoTopUpFailureReason",
    "TopUpMode",
    # Ledger
    "CreditsState",
    "ConsumeResult",
    "AutoTopUpResult",
    # Documents
    "ServiceSetup",
    "ServiceSetupCreateModel",
    # Top-up
    "PackagePrice",
    "CheckoutSessionInfo",
    "TopUpStartResult",
    "TopUpConfirmation",
]
