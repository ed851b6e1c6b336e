"""
ShieldNote Note Selection

Greedy coin selection over unspent notes, ordered by a privacy or
efficiency priority. No subset search is attempted: the walk stops as
soon as the running total covers the requested amount.
"""

from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Union

from shieldnote.core.note import Note
from shieldnote.errors import InsufficientFundsError, InvalidParameterError
from shieldnote.state.ledger import NoteLedger

logger = logging.getLogger(__name__)


class SelectionStrategy(Enum):
    """Ordering applied to unspent notes before greedy accumulation."""
    PRIVACY_FIRST = "privacy_first"         # Orchard before Sapling
    EFFICIENCY_FIRST = "efficiency_first"   # Sapling before Orchard
    VALUE_BASED = "value_based"             # Largest value first
    AGE_BASED = "age_based"                 # Oldest first
    BALANCED = "balanced"                   # Ledger order

    @classmethod
    def parse(cls, value: Union[str, "SelectionStrategy"]) -> "SelectionStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidParameterError("strategy", f"unknown strategy {value!r}") from None


# Sort keys; sorted() is stable so equal keys keep ledger order
_SORT_KEYS: Dict[SelectionStrategy, Optional[Callable[[Note], object]]] = {
    SelectionStrategy.PRIVACY_FIRST: lambda note: note.family.privacy_rank,
    SelectionStrategy.EFFICIENCY_FIRST: lambda note: -note.family.privacy_rank,
    SelectionStrategy.VALUE_BASED: lambda note: -note.value,
    SelectionStrategy.AGE_BASED: lambda note: note.created_at_height,
    SelectionStrategy.BALANCED: None,
}


def order_notes(notes: Sequence[Note], strategy: SelectionStrategy) -> List[Note]:
    """Return notes in the priority order of a strategy."""
    key = _SORT_KEYS[strategy]
    if key is None:
        return list(notes)
    return sorted(notes, key=key)


def select_notes(
    notes: Sequence[Note],
    amount: int,
    strategy: SelectionStrategy
) -> List[Note]:
    """
    Greedily pick notes until their total covers amount.

    Args:
        notes: Unspent notes in ledger order
        amount: Target value
        strategy: Ordering to apply before accumulating

    Returns:
        Selected notes in selection order (empty when amount is 0)

    Raises:
        InsufficientFundsError: If all notes together are below amount
    """
    if amount < 0:
        raise InvalidParameterError("amount", "cannot be negative")

    selected: List[Note] = []
    total = 0

    for note in order_notes(notes, strategy):
        if total >= amount:
            break
        selected.append(note)
        total += note.value

    if total < amount:
        available = sum(note.value for note in notes)
        raise InsufficientFundsError(amount, available)

    return selected


class NoteSelector:
    """
    Chooses notes from a ledger to fund a payment.

    Read-only: works on the ledger's unspent snapshot and never mutates it.
    """

    def __init__(self, ledger: NoteLedger, default_strategy: Optional[SelectionStrategy] = None):
        self._ledger = ledger
        if default_strategy is None:
            default_strategy = ledger.config.selection.default_strategy
        self._default_strategy = SelectionStrategy.parse(default_strategy)

    @property
    def default_strategy(self) -> SelectionStrategy:
        return self._default_strategy

    def select(
        self,
        amount: int,
        strategy: Optional[Union[str, SelectionStrategy]] = None
    ) -> List[Note]:
        """
        Select unspent notes covering amount.

        Raises:
            InsufficientFundsError: required = amount, available = sum of
                all unspent notes
        """
        strategy = self._default_strategy if strategy is None else SelectionStrategy.parse(strategy)
        selected = select_notes(self._ledger.unspent(), amount, strategy)

        logger.debug(
            f"Selected {len(selected)} notes "
            f"({sum(note.value for note in selected)}) for {amount} using {strategy.value}"
        )
        return selected
