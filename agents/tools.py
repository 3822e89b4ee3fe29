"""Action handle for the policy–session interface.

``make_turn_actions`` creates a fresh ``TurnActions`` bound to one session
and one player, so everything a policy does during its slot routes straight
into the session's buy/sell/borrow/repay and is recorded for the turn log.
"""

from __future__ import annotations

from decimal import Decimal

from models.player import REPAY_ALL, SELL_ALL, to_money
from models.results import TransactionResult
from simulation.session import Session


class TurnActions:
    """Buy/sell/borrow/repay on behalf of a single player.

    Instruments are addressed by ticker symbol. An unknown symbol is a
    rejected trade rather than an error, since symbols come from the policy.
    """

    def __init__(self, session: Session, player_id: str) -> None:
        self._session = session
        self._player_id = player_id
        self._results: list[TransactionResult] = []

    @property
    def player_id(self) -> str:
        return self._player_id

    @property
    def results(self) -> list[TransactionResult]:
        """Every result produced through this handle, in call order."""
        return list(self._results)

    def buy(self, symbol: str, shares: int) -> TransactionResult:
        instrument_id = self._resolve(symbol)
        if instrument_id is None:
            return self._record(self._unknown_symbol("buy", symbol))
        return self._record(self._session.buy(self._player_id, instrument_id, shares))

    def sell(self, symbol: str, shares: int = SELL_ALL) -> TransactionResult:
        instrument_id = self._resolve(symbol)
        if instrument_id is None:
            return self._record(self._unknown_symbol("sell", symbol))
        return self._record(self._session.sell(self._player_id, instrument_id, shares))

    def borrow(self, amount: Decimal) -> TransactionResult:
        return self._record(self._session.borrow(self._player_id, to_money(amount)))

    def repay(self, amount: Decimal = REPAY_ALL) -> TransactionResult:
        return self._record(self._session.repay(self._player_id, to_money(amount)))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve(self, symbol: str) -> str | None:
        try:
            return self._session.get_instrument_by_symbol(symbol).id
        except KeyError:
            return None

    def _unknown_symbol(self, action, symbol: str) -> TransactionResult:
        allowed = ", ".join(sorted(i.symbol for i in self._session.instruments))
        return TransactionResult.rejected(
            action,
            f"Unknown symbol '{symbol}'. Allowed: {allowed}.",
            player_id=self._player_id,
            symbol=symbol,
        )

    def _record(self, result: TransactionResult) -> TransactionResult:
        self._results.append(result)
        return result


def make_turn_actions(session: Session, player_id: str) -> TurnActions:
    """Create an action handle for *player_id*'s slot in the current turn.

    Each slot should get a **fresh** handle so the recorded results belong
    to that slot only.
    """
    return TurnActions(session, player_id)
