"""Room allocation: first-fit packing of players into capacity-bounded rooms.

A seat is taken with one conditional update on the room row and the
membership row is inserted in the same transaction. The membership primary
key is the player's address, so a concurrent duplicate assignment fails on
insert, rolls back its seat and returns the room that won.
"""
import time

import sqlalchemy as sa
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from leaderboard import db
from leaderboard.errors import CapacityExhaustedError, NotFoundError, StoreError
from leaderboard.models import ROOM_FULL, ROOM_OPEN, Room, RoomMembership, generate_room_name
from .statements import store_errors
from .validation import require_address

DEFAULT_ROOM_CAPACITY = 48

room_table = Room.__table__


def _membership_room(address: str):
    return db.session.execute(
        sa.select(RoomMembership.room_id).where(RoomMembership.address == address)
    ).scalar_one_or_none()


def _reserve_seat(room_id: int) -> bool:
    reserved = db.session.execute(
        sa.update(room_table)
        .where(room_table.c.id == room_id, room_table.c.occupant_count < room_table.c.capacity)
        .ordered_values(
            # status first: MySQL evaluates SET clauses left to right
            (room_table.c.status, sa.case(
                (room_table.c.occupant_count + 1 >= room_table.c.capacity, ROOM_FULL),
                else_=ROOM_OPEN,
            )),
            (room_table.c.occupant_count, room_table.c.occupant_count + 1),
        )
    )
    return reserved.rowcount == 1


def _reserve_first_open_room():
    open_ids = db.session.execute(
        sa.select(Room.id).where(Room.status == ROOM_OPEN).order_by(Room.id)
    ).scalars().all()
    for room_id in open_ids:
        if _reserve_seat(room_id):
            return room_id
    return None


def _open_new_room(capacity: int) -> int:
    try:
        created = db.session.execute(
            sa.insert(room_table).values(
                name=generate_room_name(),
                capacity=capacity,
                occupant_count=0,
                status=ROOM_OPEN,
            )
        )
        room_id = created.inserted_primary_key[0]
    except SQLAlchemyError as exc:
        raise CapacityExhaustedError('Could not open a new room.') from exc
    if not _reserve_seat(room_id):
        raise CapacityExhaustedError('New room has no free seat.')
    return room_id


def assign_room(address) -> int:
    """Return the room for ``address``, assigning one on first call."""
    address = require_address(address)
    capacity = int(current_app.config.get('ROOM_CAPACITY', DEFAULT_ROOM_CAPACITY))
    created = False
    try:
        existing = _membership_room(address)
        if existing is not None:
            return existing

        room_id = _reserve_first_open_room()
        if room_id is None:
            room_id = _open_new_room(capacity)
            created = True
        db.session.execute(
            sa.insert(RoomMembership.__table__).values(
                address=address,
                room_id=room_id,
                timestamp=time.time(),
            )
        )
        db.session.commit()
    except IntegrityError:
        # Lost the race to a concurrent assignment for the same player
        db.session.rollback()
        with store_errors('assign_room', 'Error assigning room.'):
            winner = _membership_room(address)
        if winner is None:
            raise StoreError('Error assigning room.')
        current_app.logger.info(f"[assign_room] address={address} kept concurrent room={winner}")
        return winner
    except CapacityExhaustedError:
        db.session.rollback()
        current_app.logger.exception(f"[assign_room] address={address} could not open a room")
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception(f"[assign_room] address={address} failed: {exc}")
        raise StoreError('Error assigning room.') from exc

    current_app.logger.info(f"[assign_room] address={address} room={room_id} new_room={created}")
    return room_id


def room_of(address) -> int:
    address = require_address(address)
    with store_errors('get_room_id', 'Error retrieving room.'):
        room_id = _membership_room(address)
    if room_id is None:
        raise NotFoundError('Room not found for this user.')
    return room_id
