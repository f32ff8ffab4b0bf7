"""
Document number sequences.

Numbers are issued by an atomic Valkey INCR per (document kind, company),
so concurrent console sessions never hand out the same number. The
sequence is an injected dependency, never module state.
"""

import logging

from clients.valkey_client import ValkeyClient

logger = logging.getLogger(__name__)


def company_prefix(company_name: str) -> str:
    """First three letters of the company name, uppercased ('Acme Ltd' -> 'ACM')."""
    letters = "".join(ch for ch in company_name if ch.isalnum())
    if not letters:
        raise ValueError("company_name must contain letters or digits")
    return letters[:3].upper()


class DocumentSequence:
    """Issues sequential document numbers like 'ACM-RCT-001'."""

    KEY_PREFIX = "billing:seq:"

    def __init__(self, valkey: ValkeyClient):
        self._valkey = valkey

    def _key(self, kind: str, scope: str) -> str:
        return f"{self.KEY_PREFIX}{kind}:{scope}"

    def next_number(self, kind: str, prefix: str, scope: str | None = None) -> str:
        """
        Next number for a document kind.

        Args:
            kind: Document code, e.g. 'INV', 'RCT', 'CN'
            prefix: Company prefix shown in the number, e.g. 'ACM'
            scope: Sequence key (defaults to prefix); one counter per scope

        Returns:
            '{prefix}-{kind}-{sequence:03d}'
        """
        if not kind or not prefix:
            raise ValueError("kind and prefix are required")

        sequence = self._valkey.incr(self._key(kind, scope or prefix))
        number = f"{prefix}-{kind}-{sequence:03d}"
        logger.info(f"Issued document number {number}")
        return number
