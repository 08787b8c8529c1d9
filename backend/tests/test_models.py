from tictactoe.models import User


def test_user_game_link_cleared_when_game_deleted():
    (fk,) = User.__table__.c.game_id.foreign_keys
    assert fk.column.table.name == 'game'
    assert fk.ondelete == 'SET NULL'
