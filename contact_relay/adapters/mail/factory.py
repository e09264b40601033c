"""Factory pattern for creating mail transport instances."""

from contact_relay.adapters.mail.base import AbstractMailTransport
from contact_relay.adapters.mail.resend_client import ResendTransport
from contact_relay.adapters.mail.smtp_client import SMTPTransport
from contact_relay.core.config import MailSettings, settings
from contact_relay.core.errors import ConfigurationAppError


def create_mail_transport(mail_settings: MailSettings | None = None) -> AbstractMailTransport:
    """Instantiate the transport selected by ``MAIL_PROVIDER``.

    Validates provider-specific requirements before building the client.

    Args:
        mail_settings: Optional settings; defaults to the global settings.

    Returns:
        AbstractMailTransport: Configured transport.

    Raises:
        ConfigurationAppError: If provider-specific requirements are not met.
    """
    cfg = mail_settings or settings.mail
    provider = cfg.provider.lower()

    if provider == "resend":
        if not cfg.api_key:
            raise ConfigurationAppError(
                code="mail_missing_api_key",
                message="Resend provider requires MAIL_API_KEY (or RESEND_API_KEY)",
                details={"provider": provider},
            )
        return ResendTransport(
            api_key=cfg.api_key,
            base_url=cfg.api_base_url,
            timeout_seconds=cfg.timeout_seconds,
        )

    if provider == "smtp":
        if bool(cfg.smtp_username) != bool(cfg.smtp_password):
            raise ConfigurationAppError(
                code="mail_incomplete_smtp_credentials",
                message="SMTP requires both MAIL_SMTP_USERNAME and MAIL_SMTP_PASSWORD, or neither",
                details={"provider": provider},
            )
        return SMTPTransport(
            host=cfg.smtp_host,
            port=cfg.smtp_port,
            username=cfg.smtp_username,
            password=cfg.smtp_password,
            use_tls=cfg.smtp_use_tls,
            timeout_seconds=cfg.timeout_seconds,
        )

    raise ConfigurationAppError(
        code="mail_unknown_provider",
        message=f"Unknown mail provider: '{provider}'. Supported providers: resend, smtp",
        details={"provider": provider},
    )
