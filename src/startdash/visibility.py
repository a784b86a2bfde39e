from __future__ import annotations

import enum
import logging

from .api import BackendClient
from .errors import AuthorizationError, BackendError, ValidationError
from .models import Dataset
from .store import DatasetStore, public_projection

logger = logging.getLogger(__name__)


class Capability(enum.Enum):
    ANONYMOUS = "anonymous"
    ELEVATED = "elevated"


class Session:
    """The client's side of a login: the transport plus what it may see.

    ``capability`` only moves through ``VisibilityResolver``: the cold probe,
    a successful login, and logout (explicit, or a privileged read that the
    backend refuses).
    """

    def __init__(self, client: BackendClient):
        self.client = client
        self.capability = Capability.ANONYMOUS

    @property
    def elevated(self) -> bool:
        return self.capability is Capability.ELEVATED

    def close(self):
        self.capability = Capability.ANONYMOUS
        self.client.close()


class VisibilityResolver:
    def __init__(self, session: Session, store: DatasetStore):
        self.session = session
        self.store = store

    def _set_capability(self, capability: Capability, reason: str):
        if capability is not self.session.capability:
            logger.info("Capability %s -> %s (%s)", self.session.capability.value, capability.value, reason)
        self.session.capability = capability

    def probe_capability(self) -> Capability:
        """Ask for the full projection; success is the only proof of elevation."""
        try:
            self.session.client.fetch_dataset(full=True)
        except BackendError as exc:
            logger.debug("Capability probe refused: %s", exc)
            self._set_capability(Capability.ANONYMOUS, "probe")
        else:
            self._set_capability(Capability.ELEVATED, "probe")
        return self.session.capability

    def load(self, want_full: bool) -> bool:
        """Fetch a projection into the store.

        A refused full read silently degrades to the public projection and
        drops the session to anonymous. Returns False when nothing could be
        loaded; an elevated session then keeps its last good snapshot, an
        anonymous one is cut down to the public part of it.
        """
        dataset = self._fetch(want_full)
        if dataset is None:
            if not self.session.elevated:
                self._hide_private()
            return False
        logger.debug("Loaded %d categories, %d bookmarks (full=%s)",
                     len(dataset.categories), len(dataset.bookmarks), want_full)
        self.store.set_dataset(dataset)
        return True

    def _fetch(self, want_full: bool) -> Dataset | None:
        client = self.session.client
        try:
            return client.fetch_dataset(full=want_full)
        except AuthorizationError:
            if not want_full:
                logger.warning("Public dataset refused by backend")
                return None
            self._set_capability(Capability.ANONYMOUS, "full read refused")
            try:
                return client.fetch_dataset(full=False)
            except BackendError as exc:
                logger.warning("Loading public dataset failed: %s", exc)
                return None
        except BackendError as exc:
            logger.warning("Loading dataset failed: %s", exc)
            return None

    def _hide_private(self):
        current = self.store.dataset
        if current is None:
            return
        public = public_projection(current)
        if public != current:
            logger.info("Dropping private items from the local dataset")
            self.store.set_dataset(public)

    def reload(self) -> bool:
        return self.load(self.session.elevated)

    def start(self) -> bool:
        capability = self.probe_capability()
        return self.load(capability is Capability.ELEVATED)

    def login(self, password: str) -> bool:
        if not (password or "").strip():
            raise ValidationError("Password required.")
        self.session.client.login(password)
        self._set_capability(Capability.ELEVATED, "login")
        return self.load(True)

    def logout(self) -> bool:
        try:
            self.session.client.logout()
        except BackendError as exc:
            logger.warning("Logout request failed: %s", exc)
        finally:
            self._set_capability(Capability.ANONYMOUS, "logout")
        return self.load(False)
