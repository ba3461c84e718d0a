import math

from leaderboard.errors import ValidationError

MAX_ADDRESS_LENGTH = 128
# Largest accepted submission; stored scores are BIGINT so referral credits fit on top
MAX_SCORE = 2**31 - 1


def require_address(value, label='User address'):
    """Return the address unchanged; addresses are opaque keys."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'{label} is required.')
    if len(value) > MAX_ADDRESS_LENGTH:
        raise ValidationError(f'{label} is too long.')
    return value


def require_score(value):
    # 0 is a real score; only an absent value counts as missing
    if value is None:
        raise ValidationError('Score is required.')
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError('Score must be a number.')
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError('Score must be a whole number.')
    if value < 0:
        raise ValidationError('Score must not be negative.')
    if value > MAX_SCORE:
        raise ValidationError('Score is too large.')
    return int(value)


def optional_token_balance(value):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError('Token balance must be a number.')
    if value < 0:
        raise ValidationError('Token balance must not be negative.')
    return float(value)
