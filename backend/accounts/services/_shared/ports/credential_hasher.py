from __future__ import annotations

import threading
from typing import Protocol


class CredentialHasher(Protocol):
    """
    Port for one-way password hashing.

    Implementations salt every digest and embed the salt in it, so a digest is
    the only thing that needs storing.
    """

    def hash(self, password: str, *, cancel: threading.Event | None = None) -> str:
        """
        Return a salted digest for ``password``.

        :raises InvalidInputError: If the password is empty.
        :raises OperationCancelledError: If ``cancel`` is set; a digest computed
            while the signal arrived is discarded.
        """
        ...

    def verify(
        self, password: str, digest: str, *, cancel: threading.Event | None = None
    ) -> bool:
        """
        Check ``password`` against ``digest`` in constant time.

        :raises InvalidInputError: If either argument is empty.
        :returns: ``False`` for any mismatch, including malformed digests.
        """
        ...
