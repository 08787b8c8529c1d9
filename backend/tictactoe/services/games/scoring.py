from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .board import Outcome


@dataclass(frozen=True)
class ScoringPolicy:
    """Points awarded to each player once a game ends.

    Defaults: +1 to the winner, nothing for a loss. Draw points are a product
    decision and are configured through SCORE_DRAW_POINTS.
    """

    win_points: int = 1
    draw_points: int = 0
    loss_points: int = 0

    @classmethod
    def from_config(cls, config) -> 'ScoringPolicy':
        return cls(
            win_points=int(config.get('SCORE_WIN_POINTS', 1)),
            draw_points=int(config.get('SCORE_DRAW_POINTS', 0)),
            loss_points=int(config.get('SCORE_LOSS_POINTS', 0)),
        )

    def points_for(self, outcome: Outcome, symbol) -> int:
        if not outcome.is_terminal:
            return 0
        if outcome.draw:
            return self.draw_points
        return self.win_points if outcome.winner == symbol else self.loss_points

    def awards(self, outcome: Outcome, players: Iterable) -> List[Tuple[object, int]]:
        """Return ``(player, delta)`` pairs with a non-zero delta."""
        result = []
        for p in players:
            delta = self.points_for(outcome, p.symbol)
            if delta:
                result.append((p, delta))
        return result
