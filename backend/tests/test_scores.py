import pytest
from sqlalchemy.exc import OperationalError

from leaderboard import db
from leaderboard.errors import ValidationError
from leaderboard.models import Player
from leaderboard.services import scores
from leaderboard.services.validation import MAX_SCORE


def test_submit_score_creates_player(client, submit):
    res = submit('0xabc', 100, token_balance=5)
    assert res.status_code == 200
    assert res.get_json()['bonusApplied'] is False

    stats = client.get('/player-stats/0xabc').get_json()
    assert stats == {'userAddress': '0xabc', 'score': 100, 'gamesPlayed': 1}


def test_best_score_never_decreases(client, submit):
    seen = []
    for score in [100, 40, 120, 0, 119]:
        assert submit('0xabc', score).status_code == 200
        seen.append(client.post('/get-player-score', json={'userAddress': '0xabc'}).get_json()['score'])
    assert seen == [100, 100, 120, 120, 120]
    assert client.get('/player-stats/0xabc').get_json()['gamesPlayed'] == 5


def test_token_balance_last_write_wins(flask_app, submit):
    submit('0xabc', 10, token_balance=10.5)
    submit('0xabc', 5, token_balance=3)
    assert db.session.get(Player, '0xabc').token_balance == 3
    # Omitted balance keeps the stored one
    submit('0xabc', 5)
    assert db.session.get(Player, '0xabc').token_balance == 3


def test_zero_score_is_a_valid_submission(client, submit):
    res = submit('0xzero', 0)
    assert res.status_code == 200
    assert client.get('/player-stats/0xzero').get_json()['score'] == 0


def test_negative_score_leaves_row_unchanged(client, submit):
    submit('0xabc', 50)
    res = submit('0xabc', -5)
    assert res.status_code == 400
    assert 'negative' in res.get_json()['error']
    assert client.get('/player-stats/0xabc').get_json() == {
        'userAddress': '0xabc', 'score': 50, 'gamesPlayed': 1,
    }
    assert submit('0xnew', -5).status_code == 400
    assert client.get('/player-stats/0xnew').status_code == 404


@pytest.mark.parametrize('bad_score', ['100', 12.5, True, None, [1]])
def test_malformed_scores_are_rejected(client, bad_score):
    res = client.post('/submit-score', json={'userAddress': '0xabc', 'score': bad_score})
    assert res.status_code == 400
    assert client.get('/player-stats/0xabc').status_code == 404


def test_integral_float_score_is_accepted(client, submit):
    assert submit('0xabc', 42.0).status_code == 200
    assert client.get('/player-stats/0xabc').get_json()['score'] == 42


def test_missing_address_is_rejected(client):
    res = client.post('/submit-score', json={'score': 10})
    assert res.status_code == 400
    assert res.get_json() == {'error': 'User address is required.'}
    assert client.post('/submit-score', data='not json').status_code == 400


def test_negative_token_balance_is_rejected(submit):
    assert submit('0xabc', 10, token_balance=-1).status_code == 400


def test_service_validates_before_touching_store(flask_app):
    with pytest.raises(ValidationError):
        scores.submit_score('', 10)
    with pytest.raises(ValidationError):
        scores.submit_score('0xabc', -5)
    assert db.session.get(Player, '0xabc') is None


def test_store_failure_rolls_back_and_hides_detail(client, monkeypatch):
    def broken(address, score):
        raise OperationalError('UPDATE invitations', {}, Exception('disk I/O error'))

    monkeypatch.setattr(scores, 'check_and_apply_referral_bonus', broken)
    res = client.post('/submit-score', json={'userAddress': '0xabc', 'score': 10})
    assert res.status_code == 500
    assert res.get_json() == {'error': 'Error submitting score.'}
    # The upsert ran before the failure and must have been rolled back with it
    assert client.get('/player-stats/0xabc').status_code == 404


@pytest.mark.parametrize('huge_score', [10**20, 1e20, 2**31])
def test_oversized_scores_are_rejected(client, huge_score):
    res = client.post('/submit-score', json={'userAddress': '0xabc', 'score': huge_score})
    assert res.status_code == 400
    assert res.get_json() == {'error': 'Score is too large.'}
    assert client.get('/player-stats/0xabc').status_code == 404


def test_max_score_is_accepted_and_leaves_room_for_referral_credit(client, submit):
    client.post('/submit-invite', json={'code': '0xinviter', 'userAddress': '0xinvitee'})
    assert submit('0xinviter', MAX_SCORE).status_code == 200
    assert submit('0xinvitee', MAX_SCORE).status_code == 200
    score = client.post('/get-player-score', json={'userAddress': '0xinviter'}).get_json()['score']
    assert score == MAX_SCORE + MAX_SCORE // 2
