import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from signing.errors import ConfigurationError


DEFAULT_TEMPLATE_ROLE = "Signer"

# attribute name -> environment variable
REQUIRED_SETTINGS = (
    ("integration_key", "DOCUSIGN_INTEGRATION_KEY"),
    ("user_id", "DOCUSIGN_USER_ID"),
    ("account_id", "DOCUSIGN_ACCOUNT_ID"),
    ("private_key", "DOCUSIGN_PRIVATE_KEY"),
    ("auth_server", "DOCUSIGN_AUTH_SERVER"),
    ("base_path", "DOCUSIGN_BASE_PATH"),
    ("template_id", "DOCUSIGN_TEMPLATE_ID"),
    ("return_url", "RETURN_URL"),
)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


@dataclass(frozen=True)
class Settings:
    integration_key: str
    user_id: str
    account_id: str
    private_key: str
    auth_server: str
    base_path: str
    template_id: str
    return_url: str
    template_role: str = DEFAULT_TEMPLATE_ROLE


def normalize_host(value: str) -> str:
    """Reduce an auth server setting to the bare host the token endpoint expects."""
    host = _SCHEME_RE.sub("", value.strip())
    return host.rstrip("/")


def normalize_private_key(value: str) -> str:
    """Turn literal ``\\n`` escapes of a single-line PEM into real line breaks."""
    if "\n" in value or "\\n" not in value:
        return value
    return value.replace("\\n", "\n")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    values = {}
    missing = []
    for attr, var in REQUIRED_SETTINGS:
        value = (env.get(var) or "").strip()
        if not value:
            missing.append(var)
        values[attr] = value
    if missing:
        raise ConfigurationError(missing)

    values["auth_server"] = normalize_host(values["auth_server"])
    values["private_key"] = normalize_private_key(values["private_key"])
    values["base_path"] = values["base_path"].rstrip("/")
    template_role = (env.get("DOCUSIGN_TEMPLATE_ROLE") or "").strip()
    return Settings(template_role=template_role or DEFAULT_TEMPLATE_ROLE, **values)
