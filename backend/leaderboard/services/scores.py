import time

import sqlalchemy as sa
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from leaderboard import db
from leaderboard.errors import StoreError
from leaderboard.models import Player
from .bonuses import check_and_apply_referral_bonus
from .statements import upsert
from .validation import optional_token_balance, require_address, require_score


def _merge_best_score(existing, incoming):
    return {
        'score': sa.case((incoming.score > existing.score, incoming.score), else_=existing.score),
        'token_balance': sa.func.coalesce(incoming.token_balance, existing.token_balance),
        'games_played': existing.games_played + 1,
        'timestamp': incoming.timestamp,
    }


def submit_score(address, score, token_balance=None) -> bool:
    """Record one finished game for ``address``.

    Keeps the best score, overwrites the token balance when one is given and
    counts the game. The referral bonus check runs in the same transaction.
    Returns whether a referral bonus was applied.
    """
    address = require_address(address)
    score = require_score(score)
    token_balance = optional_token_balance(token_balance)

    values = {
        'address': address,
        'score': score,
        'token_balance': token_balance,
        'games_played': 1,
        'bonus_received': False,
        'timestamp': time.time(),
    }
    try:
        db.session.execute(upsert(Player.__table__, values, _merge_best_score))
        bonus_applied = check_and_apply_referral_bonus(address, score)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception(f"[submit_score] address={address} failed: {exc}")
        raise StoreError('Error submitting score.') from exc

    current_app.logger.info(f"[submit_score] address={address} score={score} bonus={bonus_applied}")
    return bonus_applied
