from app.core.config import settings
from app.models.couple import Couple, CoupleStatus

API = settings.API_V1_STR


def onboard(client, headers, **body):
    body.setdefault("nickname", "Ana")
    body.setdefault("avatarId", "cat")
    body.setdefault("gender", "Boy")
    body.setdefault("relationshipType", "dating")
    return client.post(f"{API}/pairings/onboard", headers=headers, json=body)


def test_onboard_creator(client, session, create_user, auth_headers):
    user = create_user()

    response = onboard(client, auth_headers(user.id))
    assert response.status_code == 200
    data = response.json()
    assert len(data["inviteCode"]) == 6
    assert data["inviteLink"] == f"https://twofold.test/join?code={data['inviteCode']}"

    # Verify DB
    session.refresh(user)
    assert user.couple_id == data["coupleId"]
    assert user.nickname == "Ana"


def test_onboard_requires_auth(client):
    response = client.post(f"{API}/pairings/onboard", json={"nickname": "Ana"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_FAILED"


def test_bad_token_is_rejected(client):
    headers = {"Authorization": "Bearer not-a-jwt"}
    response = client.get(f"{API}/users/me/status", headers=headers)
    assert response.status_code == 401


def test_token_for_deleted_user_is_rejected(client, auth_headers):
    response = client.get(f"{API}/users/me/status", headers=auth_headers(4242))
    assert response.status_code == 401


def test_invite_details(client, create_user, auth_headers):
    user = create_user()
    headers = auth_headers(user.id)
    code = onboard(client, headers).json()["inviteCode"]

    response = client.get(f"{API}/pairings/invite", headers=headers)
    assert response.status_code == 200
    assert response.json()["inviteCode"] == code
    assert response.json()["relationshipType"] == "dating"


def test_invite_details_without_invite(client, create_user, auth_headers):
    user = create_user()
    response = client.get(f"{API}/pairings/invite", headers=auth_headers(user.id))
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NO_ACTIVE_INVITE"


def test_preview_is_public(client, create_user, auth_headers):
    user = create_user()
    code = onboard(client, auth_headers(user.id)).json()["inviteCode"]

    response = client.get(f"{API}/pairings/invites/{code.lower()}/preview")
    assert response.status_code == 200
    data = response.json()
    assert data["creatorNickname"] == "Ana"
    assert data["creatorAvatar"] == "cat"
    assert data["relationshipType"] == "dating"


def test_preview_distinguishes_unknown_and_used(client, create_user, create_couple):
    a = create_user("a@example.com")
    b = create_user("b@example.com")
    create_couple(a, code="USED01", partner=b)

    unknown = client.get(f"{API}/pairings/invites/NOPE99/preview")
    used = client.get(f"{API}/pairings/invites/USED01/preview")

    assert unknown.status_code == 404
    assert unknown.json()["error"]["code"] == "INVITE_NOT_FOUND"
    assert used.status_code == 409
    assert used.json()["error"]["code"] == "INVITE_ALREADY_USED"


def test_pair_users(client, session, create_user, auth_headers):
    user1 = create_user("u1@example.com")
    user2 = create_user("u2@example.com")

    # User 1 gets code
    code = onboard(client, auth_headers(user1.id)).json()["inviteCode"]

    # User 2 pairs
    resp = client.post(
        f"{API}/pairings/pair",
        headers=auth_headers(user2.id),
        json={"inviteCode": f" {code.lower()} ", "nickname": "Bea"},
    )
    assert resp.status_code == 200
    assert resp.json()["relationshipType"] == "dating"

    # Verify DB
    session.refresh(user1)
    session.refresh(user2)
    couple = session.get(Couple, user1.couple_id)
    assert user2.couple_id == user1.couple_id
    assert couple.status == CoupleStatus.FULL
    assert couple.partner_id == user2.id
    assert user2.gender == "Girl"


def test_pair_missing_code(client, create_user, auth_headers):
    user = create_user()
    resp = client.post(f"{API}/pairings/pair", headers=auth_headers(user.id), json={})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_pair_with_yourself(client, create_user, auth_headers):
    user = create_user()
    headers = auth_headers(user.id)
    code = onboard(client, headers).json()["inviteCode"]

    resp = client.post(f"{API}/pairings/pair", headers=headers, json={"inviteCode": code})
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "SELF_PAIRING"


def test_pair_invalid_code(client, create_user, auth_headers):
    user = create_user()
    resp = client.post(
        f"{API}/pairings/pair", headers=auth_headers(user.id), json={"inviteCode": "ZZZZZZ"}
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "INVITE_CODE_INVALID"


def test_status_views(client, create_user, auth_headers):
    user1 = create_user("u1@example.com")
    user2 = create_user("u2@example.com")
    h1, h2 = auth_headers(user1.id), auth_headers(user2.id)

    assert client.get(f"{API}/users/me/status", headers=h1).json()["mode"] == "solo"

    code = onboard(client, h1).json()["inviteCode"]
    waiting = client.get(f"{API}/users/me/status", headers=h1).json()
    assert waiting["mode"] == "waiting"
    assert waiting["partner"] is None

    client.post(f"{API}/pairings/pair", headers=h2, json={"inviteCode": code, "nickname": "Bea"})
    paired = client.get(f"{API}/users/me/status", headers=h1).json()
    assert paired["mode"] == "couple"
    assert paired["partner"]["id"] == user2.id
    assert paired["partner"]["nickname"] == "Bea"
    assert paired["relationship"]["type"] == "dating"
    assert paired["relationship"]["sharedImage"] is None


def test_read_me(client, create_user, create_couple, auth_headers):
    user = create_user(full_name="Ana Lima")
    create_couple(user)

    resp = client.get(f"{API}/users/me", headers=auth_headers(user.id))
    assert resp.status_code == 200
    data = resp.json()
    assert data["email"] == "test@example.com"
    assert data["couple_status"] == "waiting"
    assert "hashed_password" not in data


def test_unlink(client, session, create_user, create_couple, auth_headers):
    user1 = create_user("u1@example.com")
    user2 = create_user("u2@example.com")
    couple = create_couple(user1, partner=user2)
    couple_id = couple.id

    resp = client.post(f"{API}/pairings/unlink", headers=auth_headers(user1.id))
    assert resp.status_code == 200

    session.refresh(user1)
    session.refresh(user2)
    assert user1.couple_id is None
    assert user2.couple_id is None
    assert session.get(Couple, couple_id) is None


def test_unlink_when_solo(client, create_user, auth_headers):
    user = create_user()
    resp = client.post(f"{API}/pairings/unlink", headers=auth_headers(user.id))
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "NOT_PAIRED"


def test_submit_answers(client, session, create_user, create_couple, auth_headers):
    user1 = create_user("u1@example.com")
    user2 = create_user("u2@example.com")
    couple = create_couple(user1, partner=user2)

    resp = client.post(
        f"{API}/pairings/answers",
        headers=auth_headers(user2.id),
        json={"answers": {"loveLanguage": "time"}},
    )
    assert resp.status_code == 200

    session.refresh(couple)
    session.refresh(user2)
    assert couple.answers == {str(user2.id): {"loveLanguage": "time"}}
    assert user2.onboarded is True
