from typing import Optional, Set
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.core.constants import Environment, DEFAULT_FREE_CREDITS_EMAIL


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment Profile
    environment: Environment = Environment.LOCAL

    app_name: str = "credit-ledger"
    debug: bool = False
    # Public URL of the portal; checkout success/cancel redirects point here
    app_base_url: str = "http://localhost:3000"

    # Database Components
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "credits"
    db_use_nullpool: bool = (
        False  # True for sweeps/workers (sequential), False for API (concurrent)
    )
    db_pool_size: int = 10
    db_pool_overflow: int = 5

    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # OpenTelemetry
    otel_service_name: str = "credit-ledger"
    otel_service_version: str = "0.1.0"

    # Axiom (traces are only exported when a token is present)
    axiom_token: Optional[str] = None
    axiom_dataset: Optional[str] = None

    # Billing - Stripe (payments)
    stripe_secret_key: str = ""
    # Stripe price for one auto top-up package
    stripe_price_id_credits_topup: str = ""

    # Credits ledger
    credits_default_balance: int = 10
    credits_per_topup_package: int = 25
    credits_topup_max_packages: int = 20
    credits_topup_unit_amount_cents: int = 10  # Checkout price per credit
    credits_topup_currency: str = "usd"
    credits_ledger_cas_max_attempts: int = 5

    # Demo accounts that are never charged
    demo_portal_full_email: Optional[str] = None
    demo_free_credits_emails: str = ""  # Comma separated

    # Nurture campaign monthly billing
    nurture_monthly_campaign_credits: int = 29
    nurture_charge_pending_ttl_seconds: int = 600
    nurture_charge_failed_retry_after_seconds: int = 600

    @property
    def free_credits_emails(self) -> Set[str]:
        """Normalized allowlist of owner emails exempt from credit charges."""
        allow = {DEFAULT_FREE_CREDITS_EMAIL}

        demo_full = (self.demo_portal_full_email or "").strip().lower()
        if demo_full:
            allow.add(demo_full)

        for part in self.demo_free_credits_emails.split(","):
            email = part.strip().lower()
            if email:
                allow.add(email)

        return allow

    @property
    def is_stripe_configured(self) -> bool:
        return len(self.stripe_secret_key) > 0

    @property
    def purchase_available(self) -> bool:
        """Whether credit purchases can be offered to users."""
        if self.environment != Environment.PRODUCTION:
            return True
        return self.is_stripe_configured and bool(
            self.stripe_price_id_credits_topup.strip()
        )


settings = Settings()
