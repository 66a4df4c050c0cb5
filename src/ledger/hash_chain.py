"""
Hash chain over log entries.

Every entry stores the chain hash of its predecessor and its own hash:
SHA-256 over the canonical serialization of the entry, minus the `currentEntryChainHash` field itself.
Editing, inserting, dropping or reordering entries breaks the chain at (or before) the first affected entry.
"""

import logging
from enum import StrEnum
from typing import Any, NoReturn, Optional, Sequence

from src.core.exceptions import CanonicalizationError, HashChainBrokenError
from src.core.shared_types import EventKind
from src.ledger.canonical import sha256_hex
from src.ledger.entries import LogEntry

logger = logging.getLogger(__name__)

ZERO_HASH = "0" * 64
CURRENT_HASH_FIELD = "currentEntryChainHash"


class ChainViolation(StrEnum):
    SEQUENCE_GAP = "sequence_gap"
    PREVIOUS_HASH_MISMATCH = "previous_hash_mismatch"
    ENTRY_HASH_MISMATCH = "entry_hash_mismatch"
    UNHASHABLE_ENTRY = "unhashable_entry"


def entry_hash(entry: LogEntry) -> str:
    """Hash of the entry with its own `currentEntryChainHash` left out."""
    return sha256_hex(entry.to_wire(), exclude=CURRENT_HASH_FIELD)


def append_entry(
    log: list[LogEntry],
    event_type: EventKind,
    event_data: dict[str, Any],
    board_state: Sequence[Sequence[str]],
    fsm_state: str,
    client_timestamp: int,
) -> LogEntry:
    """Build the next entry, link it to the last one, and append it to `log` (authoring side only)."""
    previous_hash = log[-1].current_entry_chain_hash if log else ZERO_HASH
    draft = LogEntry(
        sequence=len(log),
        event_type=event_type,
        client_timestamp=client_timestamp,
        event_data=event_data,
        board_state=[list(row) for row in board_state],
        fsm_state=fsm_state,
        previous_entry_chain_hash=previous_hash,
        current_entry_chain_hash="",
    )
    entry = draft.model_copy(update={"current_entry_chain_hash": entry_hash(draft)})
    log.append(entry)
    logger.debug(
        "Log entry #%d (%s) added, chain head %s",
        entry.sequence,
        entry.event_type,
        entry.current_entry_chain_hash,
    )
    return entry


def check_chain(log: Sequence[LogEntry]) -> None:
    """
    Walk the entries in order and raise HashChainBrokenError at the first broken link.

    ----
    For every entry i:
    1. its sequence number equals i
    2. its previous hash equals the zero hash (i == 0) or the current hash of entry i-1
    3. its recomputed hash equals its stored current hash
    """
    previous_hash = ZERO_HASH
    for index, entry in enumerate(log):
        if entry.sequence != index:
            _broken(
                ChainViolation.SEQUENCE_GAP,
                entry,
                expected=str(index),
                found=str(entry.sequence),
            )

        if entry.previous_entry_chain_hash != previous_hash:
            _broken(
                ChainViolation.PREVIOUS_HASH_MISMATCH,
                entry,
                expected=previous_hash,
                found=entry.previous_entry_chain_hash,
            )

        try:
            recalculated = entry_hash(entry)
        except CanonicalizationError as exc:
            _broken(ChainViolation.UNHASHABLE_ENTRY, entry, found=str(exc))

        if recalculated != entry.current_entry_chain_hash:
            _broken(
                ChainViolation.ENTRY_HASH_MISMATCH,
                entry,
                expected=recalculated,
                found=entry.current_entry_chain_hash,
            )

        previous_hash = entry.current_entry_chain_hash

    logger.info("Hash chain successfully verified (%d entries).", len(log))


def verify_chain(log: Sequence[LogEntry]) -> bool:
    try:
        check_chain(log)
    except HashChainBrokenError:
        return False
    return True


def _broken(
    violation: ChainViolation,
    entry: LogEntry,
    expected: Optional[str] = None,
    found: Optional[str] = None,
) -> NoReturn:
    logger.error(
        "Hash chain broken at sequence %s: %s (expected=%s, found=%s)",
        entry.sequence,
        violation,
        expected,
        found,
    )
    raise HashChainBrokenError(
        reason=violation,
        message=f"Hash chain broken at entry #{entry.sequence}: {violation}.",
        sequence=entry.sequence,
    )
