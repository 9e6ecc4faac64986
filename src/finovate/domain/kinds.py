"""Transaction kind normalization.

Historical rows were written with lowercase ``credit``/``debit`` before the
uppercase enum was introduced. Writes go through ``normalize_kind`` and
reject anything unknown; reads go through ``read_kind`` and never fail.
"""

from typing import Any, Optional

import structlog

from finovate.domain.entities import TransactionKind
from finovate.domain.errors import ValidationError

logger = structlog.get_logger(__name__)

KIND_SYNONYMS: dict[TransactionKind, tuple[str, ...]] = {
    TransactionKind.CREDIT: ("credit", "cr", "income", "in"),
    TransactionKind.DEBIT: ("debit", "dr", "expense", "out"),
}

_LOOKUP = {
    spelling: kind for kind, spellings in KIND_SYNONYMS.items() for spelling in spellings
}


def _lookup(raw: Any) -> Optional[TransactionKind]:
    if isinstance(raw, TransactionKind):
        return raw
    if not isinstance(raw, str):
        return None
    return _LOOKUP.get(raw.strip().casefold())


def normalize_kind(raw: Any) -> TransactionKind:
    """Map a user-supplied kind to the canonical enum.

    Args:
        raw: Kind token in any recognized spelling (e.g. "CREDIT", "debit", "cr")

    Returns:
        Canonical TransactionKind

    Raises:
        ValidationError: If the token is not a recognized credit or debit spelling
    """
    kind = _lookup(raw)
    if kind is None:
        raise ValidationError.for_field(
            "kind", f"Invalid transaction kind '{raw}'. Expected CREDIT or DEBIT"
        )
    return kind


def read_kind(raw: Any) -> Optional[TransactionKind]:
    """Map a stored kind to the canonical enum without failing.

    Returns None for unrecognized values so a single bad row never aborts a read.
    """
    kind = _lookup(raw)
    if kind is None:
        logger.warning("transaction_kind_unrecognized", raw_kind=raw)
    return kind


def stored_spellings(kind: TransactionKind) -> tuple[str, ...]:
    """All lowercase spellings a stored row of ``kind`` may carry."""
    return KIND_SYNONYMS[kind]
