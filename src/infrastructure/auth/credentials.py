"""Firebase credential resolution.

Tokens are verified with Google's public keys, so the only thing the
service needs from the service account is the project id. It can come from
(in order of precedence):

  A) FIREBASE_SERVICE_ACCOUNT_BASE64 = base64(serviceAccount.json)
  B) FIREBASE_SERVICE_ACCOUNT_JSON   = serviceAccount.json contents
  C) FIREBASE_PROJECT_ID
"""

import base64
import binascii
import json

from core.config import Settings
from core.exceptions import ConfigurationError


def _project_id_from_json(raw: str, source: str) -> str:
    try:
        account = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{source} is not valid JSON") from exc

    project_id = account.get("project_id") if isinstance(account, dict) else None
    if not project_id:
        raise ConfigurationError(f"{source} has no project_id")
    return str(project_id)


def resolve_firebase_project_id(settings: Settings) -> str:
    """Return the configured Firebase project id, or "" when none is set.

    Raises:
        ConfigurationError: If a service account value is present but malformed.
    """
    if settings.firebase_service_account_base64:
        try:
            raw = base64.b64decode(
                settings.firebase_service_account_base64, validate=True
            ).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise ConfigurationError(
                "FIREBASE_SERVICE_ACCOUNT_BASE64 is not valid base64"
            ) from exc
        return _project_id_from_json(raw, "FIREBASE_SERVICE_ACCOUNT_BASE64")

    if settings.firebase_service_account_json:
        return _project_id_from_json(
            settings.firebase_service_account_json, "FIREBASE_SERVICE_ACCOUNT_JSON"
        )

    return settings.firebase_project_id.strip()
