from datetime import UTC, datetime, timedelta
from uuid import uuid4

from linkdrip.api.auth_utils import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)


def test_password_hash_round_trip():
    hashed = get_password_hash("correct-horse")
    assert hashed != "correct-horse"
    assert verify_password("correct-horse", hashed)
    assert not verify_password("wrong-horse", hashed)


def test_token_subject_is_user_id():
    user_id = uuid4()
    payload = decode_access_token(create_access_token(user_id, ttl_minutes=5))
    assert payload is not None
    assert payload["sub"] == str(user_id)


def test_expired_token_is_rejected():
    issued = datetime.now(UTC) - timedelta(hours=2)
    token = create_access_token(uuid4(), ttl_minutes=60, now_utc=issued)
    assert decode_access_token(token) is None


def test_tampered_token_is_rejected():
    token = create_access_token(uuid4())
    assert decode_access_token(token[:-4] + "abcd") is None
    assert decode_access_token("garbage") is None
