"""Invitations, the one-shot referral bonus and the read-time position bonus.

The referral bonus is claimed with a single conditional update on the
invitation row (``bonus_applied`` flips only while it is still false); the
caller whose update touched the row is the only one that awards points.
"""
import math
import time

import sqlalchemy as sa
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from leaderboard import db
from leaderboard.errors import (
    DuplicateInvitationError,
    NoValidInvitationError,
    StoreError,
    ValidationError,
)
from leaderboard.models import Invitation, Player
from .statements import upsert
from .validation import require_address, require_score

REFERRAL_BONUS_RATE = 0.5
# 1-based rank whose score sets the position bonus
POSITION_BONUS_RANK = 6
POSITION_BONUS_DIVISOR = 10


def referral_bonus(score: int) -> int:
    return math.floor(score * REFERRAL_BONUS_RATE)


def credit_player(address: str, points: int, mark_bonus: bool = False) -> None:
    """Add points to a player's best score, creating the player if needed."""
    values = {
        'address': address,
        'score': points,
        'token_balance': None,
        'games_played': 0,
        'bonus_received': mark_bonus,
        'timestamp': time.time(),
    }

    def merge(existing, incoming):
        changes = {
            'score': existing.score + incoming.score,
            'timestamp': incoming.timestamp,
        }
        if mark_bonus:
            changes['bonus_received'] = incoming.bonus_received
        return changes

    db.session.execute(upsert(Player.__table__, values, merge))


def _claim_invitation(invitee_address: str):
    claimed = db.session.execute(
        sa.update(Invitation)
        .where(
            Invitation.invitee_address == invitee_address,
            Invitation.bonus_applied.is_(False),
        )
        .values(bonus_applied=True)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        return None
    return db.session.execute(
        sa.select(Invitation.inviter_address).where(Invitation.invitee_address == invitee_address)
    ).scalar_one()


def check_and_apply_referral_bonus(address: str, score: int) -> bool:
    """Award the referral bonus for ``address`` if its invitation is unclaimed.

    Runs inside the caller's transaction and does not commit.
    """
    inviter = _claim_invitation(address)
    if inviter is None:
        return False
    bonus = referral_bonus(score)
    credit_player(address, bonus, mark_bonus=True)
    credit_player(inviter, bonus)
    current_app.logger.info(f"[referral_bonus] invitee={address} inviter={inviter} bonus={bonus}")
    return True


def record_invitation(code, invitee_address) -> None:
    """Record that ``invitee_address`` joined with ``code``, the inviter's address."""
    inviter = require_address(code, 'Invite code')
    invitee = require_address(invitee_address)
    if inviter == invitee:
        raise ValidationError('Players cannot invite themselves.')

    try:
        db.session.execute(
            sa.insert(Invitation.__table__).values(
                invitee_address=invitee,
                inviter_address=inviter,
                bonus_applied=False,
                timestamp=time.time(),
            )
        )
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.warning(f"[submit_invite] duplicate invitee={invitee}")
        raise DuplicateInvitationError('An invitation for this user already exists.') from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception(f"[submit_invite] invitee={invitee} failed: {exc}")
        raise StoreError('Error submitting invite.') from exc
    current_app.logger.info(f"[submit_invite] invitee={invitee} inviter={inviter}")


def apply_bonus_explicit(invitee_address, score) -> bool:
    """Apply the referral bonus outside a score submission.

    Safe to retry: returns False once the bonus has already been applied.
    """
    invitee = require_address(invitee_address, 'Invitee address')
    score = require_score(score)
    try:
        invited = db.session.execute(
            sa.select(Invitation.invitee_address).where(Invitation.invitee_address == invitee)
        ).first()
        if invited is None:
            db.session.rollback()
            raise NoValidInvitationError('No valid invitation found for this user.')
        applied = check_and_apply_referral_bonus(invitee, score)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception(f"[apply_bonus] invitee={invitee} failed: {exc}")
        raise StoreError('Error applying bonus.') from exc
    if not applied:
        current_app.logger.info(f"[apply_bonus] invitee={invitee} already applied")
    return applied


def apply_position_bonus(entries):
    """Return ranked ``entries`` with the position bonus added.

    With at least six entries, a tenth of the sixth-ranked score goes to
    every other entry. The input is not modified.
    """
    ranked = [dict(entry) for entry in entries]
    if len(ranked) < POSITION_BONUS_RANK:
        return ranked
    pivot = POSITION_BONUS_RANK - 1
    bonus = math.floor(ranked[pivot]['score'] / POSITION_BONUS_DIVISOR)
    for index, entry in enumerate(ranked):
        if index != pivot:
            entry['score'] += bonus
    return ranked
