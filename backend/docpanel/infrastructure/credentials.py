"""Settings Credential Provider — resolves provider credentials from Settings.

Invariants:
    - Only the "anthropic" provider is served; any other name resolves to None
    - Empty or placeholder values count as absent
    - OAuth token wins over API key when both are configured
"""

import logging

from docpanel.config import Settings
from docpanel.core.collaborator_protocols import Credential

logger = logging.getLogger(__name__)

ANTHROPIC = "anthropic"
_PLACEHOLDERS = frozenset({"sk-ant-placeholder", "changeme"})


def _usable(value: str | None) -> bool:
    if not value:
        return False
    value = value.strip()
    return bool(value) and value not in _PLACEHOLDERS


class SettingsCredentialProvider:
    """CredentialProvider backed by environment settings."""

    def __init__(self, settings: Settings):
        self._settings = settings

    async def resolve_credential(self, provider: str) -> Credential | None:
        if provider != ANTHROPIC:
            logger.warning("No credential source for provider '%s'", provider)
            return None
        if _usable(self._settings.anthropic_auth_token):
            return Credential(
                provider, auth_token=self._settings.anthropic_auth_token.strip(),
            )
        if _usable(self._settings.anthropic_api_key):
            return Credential(
                provider, api_key=self._settings.anthropic_api_key.strip(),
            )
        return None
