from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from leaderboard import db, socketio
from leaderboard.errors import LeaderboardError
from leaderboard.services import bonuses, ranking, rooms, scores

board = Blueprint('board', __name__)


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _notify_room_of(address) -> None:
    """Push a leaderboard refresh to the room the player belongs to, if any."""
    try:
        room_id = rooms.room_of(address)
    except LeaderboardError as exc:
        if exc.status_code >= 500:
            current_app.logger.warning(f"[notify] address={address} skipped: {exc.message}")
        return
    socketio.emit('leaderboard_update', {'roomId': room_id}, to=f"room:{room_id}", namespace='/ws')


@board.errorhandler(LeaderboardError)
def handle_leaderboard_error(exc):
    if exc.status_code >= 500:
        current_app.logger.error(f"[error] {exc.__class__.__name__}: {exc.message}")
    else:
        current_app.logger.warning(f"[rejected] {request.method} {request.path}: {exc.message}")
    return jsonify({'error': exc.message}), exc.status_code


@board.errorhandler(SQLAlchemyError)
def handle_store_failure(exc):
    db.session.rollback()
    current_app.logger.exception(f"[error] store failure on {request.path}: {exc}")
    return jsonify({'error': 'Internal server error.'}), 500


@board.route('/assign-room', methods=['POST'])
def assign_room():
    data = _payload()
    room_id = rooms.assign_room(data.get('userAddress'))
    return jsonify({'roomId': room_id})


@board.route('/get-room-id', methods=['POST'])
def get_room_id():
    data = _payload()
    return jsonify({'roomId': rooms.room_of(data.get('userAddress'))})


@board.route('/submit-score', methods=['POST'])
def submit_score():
    data = _payload()
    address = data.get('userAddress')
    applied = scores.submit_score(address, data.get('score'), data.get('tokenBalance'))
    _notify_room_of(address)
    return jsonify({'message': 'Score submitted successfully.', 'bonusApplied': applied})


@board.route('/leaderboard', methods=['GET'])
def global_leaderboard():
    return jsonify(ranking.global_leaderboard())


@board.route('/leaderboard/<int:room_id>', methods=['GET'])
def room_leaderboard(room_id):
    return jsonify(ranking.leaderboard(room_id))


@board.route('/hall-of-fame', methods=['GET'], defaults={'room_id': None})
@board.route('/hall-of-fame/<int:room_id>', methods=['GET'])
def hall_of_fame(room_id):
    return jsonify(ranking.hall_of_fame(room_id))


@board.route('/get-player-score', methods=['POST'])
def get_player_score():
    data = _payload()
    return jsonify(ranking.player_score(data.get('userAddress')))


@board.route('/player-stats/<string:user_address>', methods=['GET'])
def player_stats(user_address):
    return jsonify(ranking.player_stats(user_address))


@board.route('/check-user', methods=['POST'])
def check_user():
    data = _payload()
    return jsonify({'isNewUser': ranking.is_new_user(data.get('userAddress'))})


@board.route('/submit-invite', methods=['POST'])
def submit_invite():
    """Record who invited whom.

    Body: {"code": <inviter's referral code, i.e. their address>,
    "userAddress": <invitee address>}. Both are required and an invitee can
    hold one invitation.
    """
    data = _payload()
    bonuses.record_invitation(data.get('code'), data.get('userAddress'))
    return jsonify({'message': 'Invite submitted successfully.'})


@board.route('/apply-bonus', methods=['POST'])
def apply_bonus():
    data = _payload()
    invitee = data.get('inviteeAddress')
    applied = bonuses.apply_bonus_explicit(invitee, data.get('score'))
    if not applied:
        return jsonify({'message': 'Bonus already applied.', 'bonusApplied': False})
    _notify_room_of(invitee)
    return jsonify({'message': 'Bonus applied successfully.', 'bonusApplied': True})


@board.route('/invites-count/<string:user_address>', methods=['GET'])
def invites_count(user_address):
    return jsonify({'inviteCount': ranking.invite_count(user_address)})
