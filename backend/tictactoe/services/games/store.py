"""Persistence gateway used by rooms and the onboarding API.

The interface is independent of the backing engine. Every method raises
StoreUnavailable when the store cannot be reached.
"""

import abc
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .board import Outcome, Symbol


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    symbol: Symbol

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'symbol': self.symbol.value}


@dataclass
class GameSnapshot:
    """Durable copy of one game as read back from the store."""

    game_id: str
    game_code: str
    board: str
    players: List[Player] = field(default_factory=list)
    turn: Optional[Symbol] = None
    outcome: Optional[Outcome] = None
    game_url: Optional[str] = None
    # Points earned in this game, keyed by player id
    scores: Dict[str, int] = field(default_factory=dict)


class GameStore(abc.ABC):

    @abc.abstractmethod
    def create_game(self, game_id: str, game_code: str, initial_board: str, game_url: Optional[str] = None) -> None:
        ...

    @abc.abstractmethod
    def append_player(self, game_id: str, player_id: str, name: str, symbol: Symbol) -> None:
        """Link a player to a game.

        Re-linking an already linked player id is a no-op. Raises GameFull if
        two other players are linked and NotFound for an unknown game.
        """

    @abc.abstractmethod
    def checkpoint_board(self, game_id: str, board: str, turn: Optional[Symbol] = None) -> None:
        """Persist the board (and next turn). Raises NotFound for an unknown game."""

    @abc.abstractmethod
    def record_outcome(self, game_id: str, outcome: Outcome) -> bool:
        """Persist a terminal outcome; True only the first time it is recorded."""

    @abc.abstractmethod
    def load_game(self, game_code: str) -> Optional[GameSnapshot]:
        ...

    @abc.abstractmethod
    def load_game_by_id(self, game_id: str) -> Optional[GameSnapshot]:
        ...

    @abc.abstractmethod
    def increment_score(self, display_name: str, delta: int, player_id: Optional[str] = None) -> None:
        ...

    @abc.abstractmethod
    def game_code_exists(self, game_code: str) -> bool:
        ...

    @abc.abstractmethod
    def leaderboard(self, limit: int = 10) -> list:
        """Top ``(name, score)`` pairs by score, highest first."""

    @abc.abstractmethod
    def ping(self) -> None:
        """Raise StoreUnavailable when the store cannot be reached."""
