from tictactoe import db
from tictactoe.services.games.board import EMPTY_BOARD
from datetime import datetime


class User(db.Model):
    __tablename__ = 'user'
    id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(50), nullable=False, index=True)
    game_id = db.Column(db.String(36), db.ForeignKey('game.id', ondelete='SET NULL'), nullable=True)
    symbol = db.Column(db.String(1), nullable=False)
    seat = db.Column(db.Integer, nullable=False, default=0)  # 0 = X, 1 = O
    score = db.Column(db.Integer, nullable=False, default=0)  # points earned in this game
    game = db.relationship('Game', back_populates='users')


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.String(36), primary_key=True)
    game_code = db.Column(db.String(10), unique=True, index=True, nullable=False)
    room_url = db.Column(db.String(255), nullable=True)
    state = db.Column(db.String(9), nullable=False, default=EMPTY_BOARD)
    current_player = db.Column(db.String(1), nullable=True, default='X')
    winner = db.Column(db.String(4), nullable=True)  # X, O or draw
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    users = db.relationship('User', back_populates='game', order_by='User.seat')


class ScoreRecord(db.Model):
    """Cumulative score per display name, read by the leaderboard."""
    __tablename__ = 'score_record'
    name = db.Column(db.String(50), primary_key=True)
    score = db.Column(db.Integer, nullable=False, default=0)
