"""Credential storage and resolution for network operations."""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_KEY = 'default'


@dataclass
class Credential:
    """
    Username and secret for a remote.

    ``remote_key`` is matched against remote URLs by substring, so it may
    be a host name ('github.com'), an organisation path or a full URL.
    """
    remote_key: str
    username: str
    secret: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data) -> 'Credential':
        return cls(**data)

    def __repr__(self) -> str:
        # The secret never appears in logs or tracebacks
        return f"Credential(remote_key={self.remote_key!r}, username={self.username!r})"


class CredentialStore:
    """
    Credential map keyed by remote key, mirrored to the key-value store.

    Resolution order for a URL: the first stored key (in insertion order)
    that is a substring of the URL, then the 'default' key, then nothing.
    """

    STORE_KEY = 'credentials'

    def __init__(self, store):
        self.store = store
        self._credentials: Dict[str, Credential] = {}
        for key, data in (store.get(self.STORE_KEY) or {}).items():
            self._credentials[key] = Credential.from_dict(data)

    def _save(self) -> None:
        self.store.set(
            self.STORE_KEY,
            {key: cred.to_dict() for key, cred in self._credentials.items()},
        )

    def set(self, remote_key: str, username: str, secret: Optional[str] = None) -> Credential:
        credential = Credential(remote_key=remote_key, username=username, secret=secret)
        self._credentials[remote_key] = credential
        self._save()
        return credential

    def get(self, remote_key: str) -> Optional[Credential]:
        return self._credentials.get(remote_key)

    def remove(self, remote_key: str) -> bool:
        if remote_key not in self._credentials:
            return False
        del self._credentials[remote_key]
        self._save()
        return True

    def list(self) -> List[Credential]:
        return list(self._credentials.values())

    def resolve(self, url: Optional[str]) -> Optional[Credential]:
        """
        Find the credential to use for a remote URL.

        Args:
            url: Remote URL, or None when the remote is unknown

        Returns:
            Matching credential, the default credential, or None
        """
        if url:
            for key, credential in self._credentials.items():
                if key != DEFAULT_KEY and key in url:
                    logger.debug("Using credential '%s' for %s", key, url)
                    return credential
        return self._credentials.get(DEFAULT_KEY)
