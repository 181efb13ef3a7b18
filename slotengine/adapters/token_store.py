"""
Storage for the opaque marketplace API token.

The token is issued by the marketplace auth service; this module only keeps
it between CLI invocations so it can be injected into the REST client.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from ..domain.exceptions import CredentialsError

logger = logging.getLogger(__name__)


KEYRING_SERVICE_NAME = "slotengine"


class TokenStore:
    """
    Keeps the API token in the OS keyring, falling back to a plaintext file.

    The fallback file is created with 0600 permissions and a warning is
    recorded so the CLI can tell the user their token is not stored securely.
    """

    def __init__(self, api_base_url: str, token_file: Path | None = None):
        """
        Initialize the token store.

        Args:
            api_base_url: Marketplace API the token belongs to (keyring key)
            token_file: Optional path of the fallback token file
        """
        self.api_base_url = api_base_url.rstrip("/")
        self.token_file = token_file or Path.home() / ".slotengine_token"
        self._keyring_supported = True
        self._backend = "keyring"
        self._insecure_storage_warning: Optional[str] = None

    @property
    def backend(self) -> str:
        """Return the active storage backend (keyring or file)."""
        return self._backend

    @property
    def insecure_storage_warning(self) -> Optional[str]:
        """Provide a warning message when the token falls back to plaintext storage."""
        return self._insecure_storage_warning

    def load(self) -> Optional[str]:
        """Return the stored token, or None when nothing is stored."""
        token = self._load_from_keyring()
        if token is None:
            token = self._load_from_file()
        return token or None

    def save(self, token: str) -> None:
        """
        Store a token, preferring the keyring.

        Raises:
            CredentialsError: If neither keyring nor file could hold the token
        """
        token = token.strip()
        if not token:
            raise CredentialsError("Refusing to store an empty token")

        if self._keyring_supported and self._save_to_keyring(token):
            return

        self._save_to_file(token)

    def clear(self) -> None:
        """Remove the token from keyring and file."""
        if self.token_file.exists():
            try:
                self.token_file.unlink()
            except OSError as exc:
                raise CredentialsError(f"Could not remove token file {self.token_file}: {exc}") from exc
        try:
            keyring.delete_password(KEYRING_SERVICE_NAME, self.api_base_url)
        except PasswordDeleteError:
            pass  # nothing stored
        except KeyringError as exc:  # pragma: no cover - environment dependent
            logger.warning("Could not remove token from keyring: %s", exc)

    def _load_from_keyring(self) -> Optional[str]:
        if not self._keyring_supported:
            return None

        try:
            return keyring.get_password(KEYRING_SERVICE_NAME, self.api_base_url)
        except KeyringError as exc:
            self._handle_keyring_failure(f"reading credentials failed: {exc}")
            return None

    def _load_from_file(self) -> Optional[str]:
        if self.token_file.exists():
            try:
                with open(self.token_file, "r", encoding="utf-8") as file_handle:
                    return file_handle.read().strip()
            except OSError as exc:
                logger.warning("Could not load token file %s: %s", self.token_file, exc)
        return None

    def _save_to_keyring(self, token: str) -> bool:
        try:
            keyring.set_password(KEYRING_SERVICE_NAME, self.api_base_url, token)
            self._backend = "keyring"
            return True
        except KeyringError as exc:
            self._handle_keyring_failure(f"writing credentials failed: {exc}")
            return False

    def _save_to_file(self, token: str) -> None:
        try:
            self.token_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.token_file, "w", encoding="utf-8") as file_handle:
                file_handle.write(token)
            self.token_file.chmod(0o600)
        except OSError as exc:
            raise CredentialsError(f"Could not save token to {self.token_file}: {exc}") from exc

    def _handle_keyring_failure(self, reason: str) -> None:
        if self._keyring_supported:
            logger.warning(
                "Secure credential storage unavailable (%s). Falling back to plaintext file.",
                reason,
            )
        self._keyring_supported = False
        self._backend = "file"
        if not self._insecure_storage_warning:
            self._insecure_storage_warning = (
                f"Secure credential storage unavailable ({reason}). "
                f"Falling back to plaintext token file at {self.token_file}."
            )
