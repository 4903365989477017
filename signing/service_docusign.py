import logging
from typing import Optional, Tuple

import jwt
from docusign_esign import (
    ApiClient,
    EnvelopeDefinition,
    EnvelopesApi,
    RecipientViewRequest,
    TemplateRole,
)
from docusign_esign.client.api_exception import ApiException

from signing.config import Settings
from signing.errors import AuthenticationError, ProviderRequestError, describe_api_exception
from signing.service_esign import (
    SCOPES,
    TOKEN_LIFETIME_SECONDS,
    EnvelopeRequest,
    SigningViewRequest,
)


logger = logging.getLogger(__name__)

INVALID_KEY_MESSAGE = "DocuSign private key could not be used to sign the JWT assertion"


class DocuSignProvider:
    """
    Calls the DocuSign eSignature REST API through the docusign-esign SDK.
    Build one per request; tokens and clients are never shared.
    Failures are raised as SigningError subclasses and logged by the caller.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def request_access_token(self) -> str:
        """JWT-bearer grant for the configured service account."""
        api_client = ApiClient()
        api_client.set_oauth_host_name(self.settings.auth_server)
        try:
            token = api_client.request_jwt_user_token(
                client_id=self.settings.integration_key,
                user_id=self.settings.user_id,
                oauth_host_name=self.settings.auth_server,
                private_key_bytes=self.settings.private_key.encode("utf-8"),
                expires_in=TOKEN_LIFETIME_SECONDS,
                scopes=list(SCOPES),
            )
        except ApiException as e:
            message, detail = describe_api_exception(e, "Authentication with DocuSign failed")
            raise AuthenticationError(message, detail) from e
        except (jwt.PyJWTError, ValueError) as e:
            # the assertion is signed locally, a bad PEM never reaches DocuSign
            logger.debug("JWT assertion signing failed", exc_info=True)
            raise AuthenticationError(INVALID_KEY_MESSAGE, str(e)) from e
        return token.access_token

    def _envelopes_api(self, access_token: str) -> EnvelopesApi:
        api_client = ApiClient()
        api_client.host = self.settings.base_path
        api_client.set_default_header("Authorization", f"Bearer {access_token}")
        return EnvelopesApi(api_client)

    def create_envelope(self, access_token: str, envelope_request: EnvelopeRequest) -> Tuple[str, Optional[str]]:
        # TemplateRole has no recipientId; the template assigns it
        envelope_definition = EnvelopeDefinition(
            template_id=envelope_request.template_id,
            status=envelope_request.status,
            template_roles=[
                TemplateRole(
                    role_name=role.role_name,
                    name=role.name,
                    email=role.email,
                    client_user_id=role.client_user_id,
                )
                for role in envelope_request.template_roles
            ],
        )
        try:
            summary = self._envelopes_api(access_token).create_envelope(
                account_id=self.settings.account_id,
                envelope_definition=envelope_definition,
            )
        except ApiException as e:
            message, detail = describe_api_exception(e, "Envelope could not be created")
            raise ProviderRequestError(message, detail) from e
        return summary.envelope_id, summary.status

    def find_recipient_id(self, access_token: str, envelope_id: str, client_user_id: str) -> Optional[str]:
        """Recipient id the envelope gave the embedded signer, or None."""
        try:
            recipients = self._envelopes_api(access_token).list_recipients(
                account_id=self.settings.account_id,
                envelope_id=envelope_id,
            )
        except ApiException as e:
            message, detail = describe_api_exception(e, "Envelope recipients could not be read")
            raise ProviderRequestError(message, detail) from e
        for signer in recipients.signers or []:
            if signer.client_user_id == client_user_id:
                return signer.recipient_id
        return None

    def create_recipient_view(self, access_token: str, envelope_id: str, view_request: SigningViewRequest) -> str:
        recipient_view_request = RecipientViewRequest(
            return_url=view_request.return_url,
            authentication_method=view_request.authentication_method,
            user_name=view_request.user_name,
            email=view_request.email,
            client_user_id=view_request.client_user_id,
            recipient_id=view_request.recipient_id,
        )
        try:
            view = self._envelopes_api(access_token).create_recipient_view(
                account_id=self.settings.account_id,
                envelope_id=envelope_id,
                recipient_view_request=recipient_view_request,
            )
        except ApiException as e:
            message, detail = describe_api_exception(e, "Signing view could not be created")
            raise ProviderRequestError(message, detail) from e
        return view.url
