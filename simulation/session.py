"""Game session: the turn state machine that drives one game.

Lifecycle:
    1. ``Session.setup``: create players and list instruments.
    2. For each turn:
        a. ``start_turn``: pick the regime, draw news, shuffle the order of
           play, charge loan interest.
        b. ``next_player`` / ``get_current_player``: walk the order of play;
           the host collects each player's buy/sell/borrow/repay calls.
        c. ``resolve_turn``: move prices, split, pay dividends, write off
           bankruptcies, snapshot every player's net worth.
    3. ``end_game``: final scores, ranking and the high-score list.

Expected failures (bad trades, acting out of phase, starting a turn after the
last one) come back as rejected results or ``False``/``None``. Unknown ids
are programmer errors and raise ``KeyError``.
"""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Sequence
from decimal import Decimal
from types import MappingProxyType

from models.config import GameConfig
from models.event import MarketEvent
from models.instrument import Instrument
from models.player import REPAY_ALL, SELL_ALL, Player
from models.results import Action, PriceMove, TransactionResult, TurnReport
from models.score import HighScore, ScoreboardEntry
from models.snapshot import MarketCondition, SessionPhase, SessionSnapshot
from simulation.market import (
    Narrator,
    default_headline,
    draw_base_change,
    draw_market_condition,
    generate_market_events,
    select_dividend_instruments,
    shuffle_player_order,
    sum_event_impacts,
)
from simulation.roster import seed_instruments

logger = logging.getLogger(__name__)


class Session:
    """Owns the players, instruments and turn state of a single game.

    All public mutators run under one re-entrant lock, so a session may be
    shared between threads, but the rules assume actions arrive one at a
    time in the order of play.
    """

    def __init__(
        self,
        config: GameConfig,
        players: list[Player],
        instruments: list[Instrument],
        rng: random.Random | None = None,
        high_scores: Sequence[HighScore] | None = None,
        narrator: Narrator = default_headline,
    ) -> None:
        self._config = config
        self._rng = rng if rng is not None else random.Random(config.seed)
        self._narrator = narrator
        self._lock = threading.RLock()

        self.players = players
        self.instruments = instruments
        self.current_turn = 0
        self.total_turns = config.total_turns
        self.market_condition = MarketCondition.BULL
        self.player_order: list[int] = []
        self.current_player_index = -1
        self.bank_interest_rate = config.bank_interest_rate
        self.market_events: list[MarketEvent] = []
        self.high_scores: list[HighScore] = list(high_scores or [])
        self.phase = SessionPhase.NOT_STARTED

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def setup(
        cls,
        player_names: Sequence[str],
        config: GameConfig | None = None,
        rng: random.Random | None = None,
        instruments: list[Instrument] | None = None,
        ai_players: Sequence[str] = (),
        high_scores: Sequence[HighScore] | None = None,
        narrator: Narrator = default_headline,
    ) -> Session:
        """Create a new game for *player_names* (in join order).

        Names listed in *ai_players* are flagged as AI; they play by the same
        rules but are left off the high-score list. When *instruments* is
        omitted the default company roster is listed.
        """
        config = config or GameConfig()
        rng = rng if rng is not None else random.Random(config.seed)
        players = [
            Player(name=name, cash=config.starting_cash, is_ai=name in ai_players)
            for name in player_names
        ]
        if instruments is None:
            instruments = seed_instruments(config.instrument_count, rng)

        logger.info(
            "Session set up: %d player(s), %d instrument(s), %d turn(s).",
            len(players),
            len(instruments),
            config.total_turns,
        )
        return cls(config, players, instruments, rng=rng, high_scores=high_scores, narrator=narrator)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: SessionSnapshot,
        rng: random.Random | None = None,
        narrator: Narrator = default_headline,
    ) -> Session:
        """Rebuild a live session from *snapshot* (which is copied, not shared).

        Snapshots carry no generator state. Reseeding from ``config.seed``
        would replay the game's random stream from its first draw, so once
        play has begun the caller must pass *rng* explicitly.
        """
        if rng is None and snapshot.phase != SessionPhase.NOT_STARTED:
            raise ValueError(
                f"Restoring a session in phase {snapshot.phase.value} requires an explicit rng."
            )
        data = snapshot.model_copy(deep=True)
        session = cls(
            data.config,
            data.players,
            data.instruments,
            rng=rng,
            high_scores=data.high_scores,
            narrator=narrator,
        )
        session.current_turn = data.current_turn
        session.total_turns = data.total_turns
        session.market_condition = data.market_condition
        session.player_order = data.player_order
        session.current_player_index = data.current_player_index
        session.bank_interest_rate = data.bank_interest_rate
        session.market_events = data.market_events
        session.phase = data.phase
        return session

    def regenerate_instruments(self, count: int | None = None) -> bool:
        """Re-list the default roster with fresh prices.

        Only allowed before the first turn; returns ``False`` otherwise.
        """
        with self._lock:
            if self.phase != SessionPhase.NOT_STARTED:
                return False
            count = self._config.instrument_count if count is None else count
            self.instruments = seed_instruments(count, self._rng)
            return True

    def snapshot(self) -> SessionSnapshot:
        """Plain structural copy of the whole session."""
        with self._lock:
            return SessionSnapshot(
                config=self._config,
                players=[p.model_copy(deep=True) for p in self.players],
                instruments=[i.model_copy(deep=True) for i in self.instruments],
                current_turn=self.current_turn,
                total_turns=self.total_turns,
                market_condition=self.market_condition,
                player_order=list(self.player_order),
                current_player_index=self.current_player_index,
                bank_interest_rate=self.bank_interest_rate,
                market_events=[e.model_copy(deep=True) for e in self.market_events],
                high_scores=[h.model_copy() for h in self.high_scores],
                phase=self.phase,
            )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def fast_mode(self) -> bool:
        return self._config.fast_mode

    @property
    def is_over(self) -> bool:
        """True once no further turn can be started."""
        return self.phase == SessionPhase.ENDED or self.current_turn >= self.total_turns

    def get_player(self, player_id: str) -> Player:
        for player in self.players:
            if player.id == player_id:
                return player
        raise KeyError(f"Unknown player id '{player_id}'.")

    def get_instrument(self, instrument_id: str) -> Instrument:
        for instrument in self.instruments:
            if instrument.id == instrument_id:
                return instrument
        raise KeyError(f"Unknown instrument id '{instrument_id}'.")

    def get_instrument_by_symbol(self, symbol: str) -> Instrument:
        for instrument in self.instruments:
            if instrument.symbol == symbol:
                return instrument
        raise KeyError(f"Unknown instrument symbol '{symbol}'.")

    def instrument_prices(self) -> dict[str, Decimal]:
        return {i.id: i.current_price for i in self.instruments}

    def events_for_turn(self, turn: int | None = None) -> list[MarketEvent]:
        turn = self.current_turn if turn is None else turn
        return [e for e in self.market_events if e.turn == turn]

    # ------------------------------------------------------------------
    # Turn state machine
    # ------------------------------------------------------------------

    def start_turn(self) -> bool:
        """Begin the next turn. Returns ``False`` when no turns remain."""
        with self._lock:
            if self.is_over:
                logger.info(
                    "Cannot start turn: game is over (turn %d of %d).",
                    self.current_turn,
                    self.total_turns,
                )
                return False

            self.current_turn += 1
            self.player_order = shuffle_player_order(self._rng, len(self.players))
            self.current_player_index = -1
            self.market_condition = draw_market_condition(self._rng)

            events = generate_market_events(
                self._rng,
                self.current_turn,
                self.market_condition,
                self.instruments,
                self._narrator,
            )
            self.market_events.extend(events)

            for player in self.players:
                interest = player.apply_loan_interest()
                if interest:
                    logger.debug("Charged %s interest of $%.2f.", player.name, interest)

            self.phase = SessionPhase.TRADING
            logger.info(
                "Turn %d/%d started: %s market, %d event(s).",
                self.current_turn,
                self.total_turns,
                self.market_condition.value,
                len(events),
            )
            return True

    def next_player(self) -> bool:
        """Advance to the next player in this turn's order; ``False`` when done."""
        with self._lock:
            self.current_player_index += 1
            return self.current_player_index < len(self.players)

    def get_current_player(self) -> Player | None:
        with self._lock:
            if not 0 <= self.current_player_index < len(self.player_order):
                return None
            return self.players[self.player_order[self.current_player_index]]

    def resolve_turn(self) -> TurnReport | None:
        """Settle the market for the current turn.

        Returns ``None`` if there is no unresolved turn in progress.
        """
        with self._lock:
            if self.phase != SessionPhase.TRADING:
                logger.info("No turn to resolve (phase: %s).", self.phase.value)
                return None

            turn = self.current_turn
            report = TurnReport(
                turn=turn,
                market_condition=self.market_condition.value,
                events=self.events_for_turn(turn),
            )

            # Prices
            for instrument in self.instruments:
                if instrument.is_bankrupt:
                    continue
                base_change = draw_base_change(self._rng, self.market_condition)
                event_change = sum_event_impacts(self.market_events, turn, instrument.id)
                previous = instrument.current_price
                instrument.update_price(base_change, event_change, self._rng)
                report.price_moves.append(
                    PriceMove(
                        instrument_id=instrument.id,
                        symbol=instrument.symbol,
                        previous_price=previous,
                        current_price=instrument.current_price,
                        base_change=base_change,
                        event_change=event_change,
                        bankrupted=instrument.is_bankrupt,
                    )
                )
                if instrument.is_bankrupt:
                    report.bankruptcies.append(instrument.id)
                    logger.info("%s has gone bankrupt.", instrument.symbol)

            # Splits
            for instrument in self.instruments:
                ratio = instrument.split(self._rng)
                if ratio:
                    report.splits[instrument.id] = ratio
                    logger.info("%s split %d:1.", instrument.symbol, ratio)
            if report.splits:
                split_view = MappingProxyType(report.splits)
                for player in self.players:
                    player.handle_stock_splits(split_view)

            # Dividends
            payers = select_dividend_instruments(self._rng, self.instruments)
            report.dividend_instrument_ids = [i.id for i in payers]
            if payers:
                payer_view = MappingProxyType({i.id: i for i in payers})
                for player in self.players:
                    paid = player.receive_dividends(payer_view)
                    if paid:
                        report.dividends_paid[player.id] = paid

            # Bankruptcies
            for player in self.players:
                written_off = player.handle_bankruptcies(self.instruments)
                if written_off:
                    logger.info("%s lost holdings in %s.", player.name, ", ".join(written_off))

            # Net worth history
            prices = self.instrument_prices()
            for player in self.players:
                report.net_worth[player.id] = player.record_assets_history(prices)

            self.phase = SessionPhase.RESOLVED
            logger.info(
                "Turn %d resolved: %d split(s), %d dividend payer(s), %d bankruptcy(ies).",
                turn,
                len(report.splits),
                len(payers),
                len(report.bankruptcies),
            )
            return report

    def end_game(self) -> list[ScoreboardEntry]:
        """Score and rank every player; returns the scoreboard, best first.

        Ties keep join order. Human players are added to the high-score list
        the first time this is called; later calls only re-rank.
        """
        with self._lock:
            self.current_turn = self.total_turns
            prices = self.instrument_prices()
            for player in self.players:
                player.final_score = player.calculate_total_assets(prices)

            # sorted() is stable with reverse=True, so ties stay in join order.
            ranked = sorted(self.players, key=lambda p: p.final_score, reverse=True)
            scoreboard = []
            for rank, player in enumerate(ranked, start=1):
                player.ranking = rank
                scoreboard.append(
                    ScoreboardEntry(
                        rank=rank,
                        player_id=player.id,
                        player_name=player.name,
                        score=player.final_score,
                        is_ai=player.is_ai,
                    )
                )

            if self.phase != SessionPhase.ENDED:
                game_mode = "fast" if self.fast_mode else "standard"
                self.high_scores.extend(
                    HighScore(player_name=p.name, score=p.final_score, game_mode=game_mode)
                    for p in self.players
                    if not p.is_ai
                )
                self.high_scores = sorted(
                    self.high_scores, key=lambda h: h.score, reverse=True
                )[: self._config.high_score_limit]
                self.phase = SessionPhase.ENDED
                logger.info(
                    "Game over. Winner: %s with $%.2f.",
                    scoreboard[0].player_name if scoreboard else "(nobody)",
                    scoreboard[0].score if scoreboard else 0,
                )
            return scoreboard

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def buy(self, player_id: str, instrument_id: str, shares: int) -> TransactionResult:
        with self._lock:
            player = self.get_player(player_id)
            instrument = self.get_instrument(instrument_id)
            rejection = self._check_trading("buy", player, instrument)
            if rejection is not None:
                return rejection
            return self._logged(player, player.buy(instrument, shares))

    def sell(self, player_id: str, instrument_id: str, shares: int = SELL_ALL) -> TransactionResult:
        with self._lock:
            player = self.get_player(player_id)
            instrument = self.get_instrument(instrument_id)
            rejection = self._check_trading("sell", player, instrument)
            if rejection is not None:
                return rejection
            return self._logged(player, player.sell(instrument, shares))

    def borrow(self, player_id: str, amount: Decimal) -> TransactionResult:
        """Borrow from the bank at the session's current interest rate."""
        with self._lock:
            player = self.get_player(player_id)
            rejection = self._check_trading("borrow", player)
            if rejection is not None:
                return rejection
            return self._logged(player, player.borrow(amount, self.bank_interest_rate))

    def repay(self, player_id: str, amount: Decimal = REPAY_ALL) -> TransactionResult:
        with self._lock:
            player = self.get_player(player_id)
            rejection = self._check_trading("repay", player)
            if rejection is not None:
                return rejection
            return self._logged(player, player.repay(amount))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_trading(
        self,
        action: Action,
        player: Player,
        instrument: Instrument | None = None,
    ) -> TransactionResult | None:
        """Return a rejection if actions are not allowed right now, else ``None``."""
        if self.phase == SessionPhase.TRADING:
            return None
        if self.phase == SessionPhase.ENDED:
            message = "The game is over."
        elif self.phase == SessionPhase.RESOLVED:
            message = f"Turn {self.current_turn} has already been resolved."
        else:
            message = "No turn is in progress."
        result = TransactionResult.rejected(
            action,
            message,
            player_id=player.id,
            instrument_id=instrument.id if instrument else None,
            symbol=instrument.symbol if instrument else None,
        )
        logger.debug("Rejected %s for %s: %s", action, player.name, message)
        return result

    @staticmethod
    def _logged(player: Player, result: TransactionResult) -> TransactionResult:
        if result.ok:
            logger.debug("%s: %s", player.name, result.message)
        else:
            logger.debug("Rejected %s for %s: %s", result.action, player.name, result.message)
        return result
