import sqlalchemy as sa
from flask import current_app

from leaderboard import db
from leaderboard.errors import NotFoundError
from leaderboard.models import Invitation, Player, Room, RoomMembership
from .bonuses import apply_position_bonus
from .statements import store_errors
from .validation import require_address

HALL_OF_FAME_GLOBAL = 'global'
HALL_OF_FAME_ROOM = 'room'


def _ranked(limit: int, room_id=None):
    query = sa.select(Player.address, Player.score)
    if room_id is not None:
        query = query.join(RoomMembership, RoomMembership.address == Player.address).where(
            RoomMembership.room_id == room_id
        )
    # Address breaks ties so equal scores always come back in the same order
    query = query.order_by(Player.score.desc(), Player.address.asc()).limit(limit)
    return [
        {'userAddress': address, 'score': score}
        for address, score in db.session.execute(query).all()
    ]


def _require_room(room_id: int) -> None:
    if db.session.get(Room, room_id) is None:
        raise NotFoundError('Room not found.')


def leaderboard(room_id: int):
    """Top players of a room with the position bonus applied."""
    limit = int(current_app.config.get('LEADERBOARD_SIZE', 11))
    with store_errors('leaderboard', 'Error retrieving leaderboard.'):
        _require_room(room_id)
        entries = _ranked(limit, room_id)
    return apply_position_bonus(entries)


def global_leaderboard():
    limit = int(current_app.config.get('LEADERBOARD_SIZE', 11))
    with store_errors('leaderboard', 'Error retrieving leaderboard.'):
        entries = _ranked(limit)
    return apply_position_bonus(entries)


def hall_of_fame(room_id=None):
    """Top players by raw best score.

    In ``room`` mode a room id scopes the ranking; in ``global`` mode the room
    id is ignored.
    """
    limit = int(current_app.config.get('HALL_OF_FAME_SIZE', 48))
    mode = current_app.config.get('HALL_OF_FAME_MODE', HALL_OF_FAME_GLOBAL)
    if mode not in (HALL_OF_FAME_GLOBAL, HALL_OF_FAME_ROOM):
        raise ValueError(f'Unknown HALL_OF_FAME_MODE: {mode}')
    scoped = mode == HALL_OF_FAME_ROOM and room_id is not None
    with store_errors('hall_of_fame', 'Error retrieving Hall of Fame.'):
        if scoped:
            _require_room(room_id)
        return _ranked(limit, room_id if scoped else None)


def _player(address, tag):
    address = require_address(address)
    with store_errors(tag, 'Error retrieving player.'):
        player = db.session.get(Player, address)
    if player is None:
        raise NotFoundError('Player not found.')
    return player


def player_score(address):
    return _player(address, 'get_player_score').to_dict()


def player_stats(address):
    return _player(address, 'player_stats').to_stats_dict()


def is_new_user(address) -> bool:
    address = require_address(address)
    with store_errors('check_user', 'Error checking user.'):
        return db.session.get(Player, address) is None


def invite_count(address) -> int:
    address = require_address(address)
    with store_errors('invites_count', 'Error retrieving invite count.'):
        return db.session.execute(
            sa.select(sa.func.count()).select_from(Invitation).where(Invitation.inviter_address == address)
        ).scalar_one()
