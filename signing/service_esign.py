import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from signing.config import Settings
from signing.errors import ProviderRequestError


logger = logging.getLogger(__name__)

CLIENT_USER_ID = "1000"
RECIPIENT_ID = "1"
DEFAULT_SIGNER_NAME = "Werkstatt"
DEFAULT_SIGNER_EMAIL = "werkstatt@example.com"
ENVELOPE_STATUS_SENT = "sent"
AUTHENTICATION_METHOD = "none"
SCOPES = ("signature", "impersonation")
TOKEN_LIFETIME_SECONDS = 3600


@dataclass(frozen=True)
class SignerIdentity:
    name: str
    email: str
    client_user_id: str = CLIENT_USER_ID
    recipient_id: str = RECIPIENT_ID

    @classmethod
    def from_query(cls, args: Mapping[str, str]) -> "SignerIdentity":
        """Signer from ``name``/``email`` query values; content is not validated."""
        return cls(
            name=args.get("name") or DEFAULT_SIGNER_NAME,
            email=args.get("email") or DEFAULT_SIGNER_EMAIL,
        )


@dataclass(frozen=True)
class TemplateRoleAssignment:
    role_name: str
    name: str
    email: str
    client_user_id: str


@dataclass(frozen=True)
class EnvelopeRequest:
    template_id: str
    status: str
    template_roles: Tuple[TemplateRoleAssignment, ...]


@dataclass(frozen=True)
class SigningViewRequest:
    return_url: str
    authentication_method: str
    user_name: str
    email: str
    client_user_id: str
    recipient_id: Optional[str]


@dataclass(frozen=True)
class SigningSession:
    envelope_id: str
    status: Optional[str]
    signing_url: str


def build_envelope_request(settings: Settings, signer: SignerIdentity) -> EnvelopeRequest:
    role = TemplateRoleAssignment(
        role_name=settings.template_role,
        name=signer.name,
        email=signer.email,
        client_user_id=signer.client_user_id,
    )
    return EnvelopeRequest(
        template_id=settings.template_id,
        status=ENVELOPE_STATUS_SENT,
        template_roles=(role,),
    )


def build_view_request(settings: Settings, signer: SignerIdentity, recipient_id: Optional[str]) -> SigningViewRequest:
    # client_user_id must match the template role or the view is refused
    return SigningViewRequest(
        return_url=settings.return_url,
        authentication_method=AUTHENTICATION_METHOD,
        user_name=signer.name,
        email=signer.email,
        client_user_id=signer.client_user_id,
        recipient_id=recipient_id,
    )


def start_esign(settings: Settings, signer: SignerIdentity, provider) -> SigningSession:
    """Start an embedded signing session and return the signer's URL.

    ``provider`` talks to the e-signature API (see
    ``signing.service_docusign.DocuSignProvider``). The calls run in order
    and each depends on the previous one; a new token is requested every
    time and nothing is retried.

    The template decides the signer's recipient id, so it is read back from
    the envelope and only sent with the view request when the envelope
    reports one for the signer's client user id.
    """
    access_token = provider.request_access_token()

    envelope_request = build_envelope_request(settings, signer)
    envelope_id, status = provider.create_envelope(access_token, envelope_request)
    logger.info("Envelope %s created from template %s (%s)", envelope_id, settings.template_id, status)

    try:
        recipient_id = provider.find_recipient_id(access_token, envelope_id, signer.client_user_id)
        if recipient_id is None:
            logger.warning("Envelope %s has no signer with client user id %s", envelope_id, signer.client_user_id)
        elif recipient_id != signer.recipient_id:
            logger.info("Envelope %s assigned recipient id %s to the signer", envelope_id, recipient_id)
        view_request = build_view_request(settings, signer, recipient_id)
        signing_url = provider.create_recipient_view(access_token, envelope_id, view_request)
    except ProviderRequestError:
        # Envelope stays "sent" at the provider, nothing voids it.
        logger.warning("Recipient view failed, envelope %s left without a signing session", envelope_id)
        raise

    return SigningSession(envelope_id=envelope_id, status=status, signing_url=signing_url)
