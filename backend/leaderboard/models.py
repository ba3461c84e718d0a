from leaderboard import db
import random
import string
import time

ROOM_OPEN = 'open'
ROOM_FULL = 'full'


class Player(db.Model):
    __tablename__ = 'players'
    address = db.Column(db.String(128), primary_key=True)
    score = db.Column(db.BigInteger, nullable=False, default=0)
    token_balance = db.Column(db.Float, nullable=True)
    games_played = db.Column(db.Integer, nullable=False, default=0)
    bonus_received = db.Column(db.Boolean, nullable=False, default=False)
    timestamp = db.Column(db.Float, nullable=False, default=time.time)

    def to_dict(self):
        return {
            'userAddress': self.address,
            'score': self.score,
        }

    def to_stats_dict(self):
        return {
            'userAddress': self.address,
            'score': self.score,
            'gamesPlayed': self.games_played,
        }


def generate_room_name(length=4):
    """Generate a unique, time-derived room name."""
    stamp = int(time.time() * 1000)
    while True:
        suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        name = f'room-{stamp}-{suffix}'
        if not db.session.execute(db.select(Room.id).where(Room.name == name)).first():
            return name


class Room(db.Model):
    __tablename__ = 'rooms'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False)
    capacity = db.Column(db.Integer, nullable=False)
    # Kept equal to the number of memberships; only changed alongside a membership insert
    occupant_count = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default=ROOM_OPEN, index=True)

    def __init__(self, **kwargs):
        super(Room, self).__init__(**kwargs)
        if not self.name:
            self.name = generate_room_name()


class RoomMembership(db.Model):
    __tablename__ = 'players_in_room'
    # Primary key on the address: a player can hold one membership, ever
    address = db.Column(db.String(128), primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey('rooms.id'), nullable=False, index=True)
    timestamp = db.Column(db.Float, nullable=False, default=time.time)


class Invitation(db.Model):
    __tablename__ = 'invitations'
    invitee_address = db.Column(db.String(128), primary_key=True)
    inviter_address = db.Column(db.String(128), nullable=False, index=True)
    bonus_applied = db.Column(db.Boolean, nullable=False, default=False)
    timestamp = db.Column(db.Float, nullable=False, default=time.time)
