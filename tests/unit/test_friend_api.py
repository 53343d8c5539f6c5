import pytest
from fastapi import status
from sqlalchemy import select

from app.models.friendships import Friendship
from app.utils.auth import create_access_token


class TestFriendRequestAPI:
    """친구 요청 API 테스트"""

    @pytest.mark.asyncio
    async def test_send_request_api(self, client, auth_headers, dispatcher, recording_notifier, test_user_1, test_user_2):
        """친구 요청 전송 API 테스트"""
        response = await client.post(
            "/friends/request",
            json={"receiver_id": test_user_2.id},
            headers=auth_headers(test_user_1)
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["sender_id"] == test_user_1.id
        assert data["receiver_id"] == test_user_2.id
        assert data["status"] == "PENDING"
        assert data["sender"]["username"] == test_user_1.username
        assert data["sender"]["avatar"] == test_user_1.avatar
        assert data["sender"]["level"] == 5
        assert "email" not in data["sender"]
        assert "X-Request-ID" in response.headers

        await dispatcher.drain()
        assert [e.recipient_id for e in recording_notifier.events] == [test_user_2.id]

    @pytest.mark.asyncio
    async def test_send_request_to_self_api(self, client, auth_headers, test_user_1):
        response = await client.post(
            "/friends/request",
            json={"receiver_id": test_user_1.id},
            headers=auth_headers(test_user_1)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["error"] == "bad_request"
        assert data["message"] == "Cannot friend yourself"

    @pytest.mark.asyncio
    async def test_send_request_unknown_receiver_api(self, client, auth_headers, test_user_1):
        response = await client.post(
            "/friends/request",
            json={"receiver_id": 9999},
            headers=auth_headers(test_user_1)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "resource_not_found"

    @pytest.mark.asyncio
    async def test_send_request_duplicate_api(self, client, auth_headers, pending_friendship, test_user_1, test_user_3):
        response = await client.post(
            "/friends/request",
            json={"receiver_id": test_user_3.id},
            headers=auth_headers(test_user_1)
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["message"] == "Request already pending"

    @pytest.mark.asyncio
    async def test_send_request_missing_body_api(self, client, auth_headers, test_user_1):
        response = await client.post("/friends/request", json={}, headers=auth_headers(test_user_1))

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_respond_accept_api(self, client, auth_headers, pending_friendship, test_user_3):
        """친구 요청 수락 API 테스트"""
        response = await client.post(
            f"/friends/request/{pending_friendship.id}/respond",
            json={"action": "accept"},
            headers=auth_headers(test_user_3)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "ACCEPTED"

    @pytest.mark.asyncio
    async def test_respond_by_sender_api(self, client, auth_headers, pending_friendship, test_user_1):
        response = await client.post(
            f"/friends/request/{pending_friendship.id}/respond",
            json={"action": "accept"},
            headers=auth_headers(test_user_1)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] == "authorization_error"

    @pytest.mark.asyncio
    async def test_respond_invalid_action_api(self, client, auth_headers, pending_friendship, test_user_3):
        response = await client.post(
            f"/friends/request/{pending_friendship.id}/respond",
            json={"action": "later"},
            headers=auth_headers(test_user_3)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_respond_missing_request_api(self, client, auth_headers, test_user_3):
        response = await client.post(
            "/friends/request/9999/respond",
            json={"action": "reject"},
            headers=auth_headers(test_user_3)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_respond_missing_request_with_invalid_action_api(self, client, auth_headers, test_user_3):
        """존재하지 않는 요청은 액션 검증 전에 404"""
        response = await client.post(
            "/friends/request/9999/respond",
            json={"action": "maybe"},
            headers=auth_headers(test_user_3)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message"] == "Request not found"

    @pytest.mark.asyncio
    async def test_cancel_request_api(self, client, auth_headers, test_session, pending_friendship, test_user_1):
        """친구 요청 취소 API 테스트"""
        friendship_id = pending_friendship.id
        response = await client.delete(
            f"/friends/request/{friendship_id}",
            headers=auth_headers(test_user_1)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Request cancelled successfully"

        result = await test_session.execute(select(Friendship).where(Friendship.id == friendship_id))
        assert result.scalar_one_or_none() is None

    @pytest.mark.asyncio
    async def test_cancel_by_receiver_api(self, client, auth_headers, pending_friendship, test_user_3):
        response = await client.delete(
            f"/friends/request/{pending_friendship.id}",
            headers=auth_headers(test_user_3)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestFriendManagementAPI:
    """친구 삭제/차단 API 테스트"""

    @pytest.mark.asyncio
    async def test_remove_friend_api(self, client, auth_headers, accepted_friendship, test_user_1, test_user_2):
        response = await client.delete(
            f"/friends/remove/{test_user_1.id}",
            headers=auth_headers(test_user_2)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Friend removed successfully"

    @pytest.mark.asyncio
    async def test_remove_non_friend_api(self, client, auth_headers, test_user_1, test_user_3):
        response = await client.delete(
            f"/friends/remove/{test_user_3.id}",
            headers=auth_headers(test_user_1)
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message"] == "Friendship not found"

    @pytest.mark.asyncio
    async def test_block_and_unblock_api(self, client, auth_headers, accepted_friendship, test_user_1, test_user_2):
        """차단 후 차단 해제 API 테스트"""
        response = await client.post(
            "/friends/block",
            json={"user_id": test_user_1.id},
            headers=auth_headers(test_user_2)
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "BLOCKED"
        assert data["sender_id"] == test_user_2.id

        response = await client.get("/friends/blocked", headers=auth_headers(test_user_2))
        assert [u["id"] for u in response.json()] == [test_user_1.id]

        # 차단당한 쪽의 요청과 차단 해제는 불가
        response = await client.post(
            "/friends/request",
            json={"receiver_id": test_user_2.id},
            headers=auth_headers(test_user_1)
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = await client.post(
            "/friends/unblock",
            json={"user_id": test_user_2.id},
            headers=auth_headers(test_user_1)
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

        response = await client.post(
            "/friends/unblock",
            json={"user_id": test_user_1.id},
            headers=auth_headers(test_user_2)
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "User unblocked successfully"

        response = await client.get(f"/friends/status/{test_user_1.id}", headers=auth_headers(test_user_2))
        assert response.json() == {"status": "none", "friendship_id": None}

    @pytest.mark.asyncio
    async def test_block_self_api(self, client, auth_headers, test_user_1):
        response = await client.post(
            "/friends/block",
            json={"user_id": test_user_1.id},
            headers=auth_headers(test_user_1)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestFriendQueryAPI:
    """친구 조회 API 테스트"""

    @pytest.mark.asyncio
    async def test_friends_list_api(self, client, auth_headers, accepted_friendship, test_user_1, test_user_2, test_user_3):
        response = await client.get(f"/friends/list/{test_user_2.id}", headers=auth_headers(test_user_3))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [u["id"] for u in data] == [test_user_1.id]
        assert data[0]["display_name"] == test_user_1.display_name

    @pytest.mark.asyncio
    async def test_pending_api(self, client, auth_headers, pending_friendship, test_user_1, test_user_3):
        response = await client.get("/friends/pending", headers=auth_headers(test_user_3))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [f["id"] for f in data["received"]] == [pending_friendship.id]
        assert data["received"][0]["sender"]["id"] == test_user_1.id
        assert data["sent"] == []

    @pytest.mark.asyncio
    async def test_status_api(self, client, auth_headers, pending_friendship, test_user_1, test_user_3):
        response = await client.get(f"/friends/status/{test_user_3.id}", headers=auth_headers(test_user_1))
        assert response.json() == {"status": "pending_sent", "friendship_id": pending_friendship.id}

        response = await client.get(f"/friends/status/{test_user_1.id}", headers=auth_headers(test_user_3))
        assert response.json()["status"] == "pending_received"

        response = await client.get(f"/friends/status/{test_user_1.id}", headers=auth_headers(test_user_1))
        assert response.json() == {"status": "self", "friendship_id": None}


class TestAuthentication:
    """인증 테스트"""

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/friends/pending")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Not authenticated"

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.get("/friends/pending", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_token_for_banned_user(self, client, auth_headers, banned_user):
        """정지된 사용자는 인증 불가"""
        response = await client.get("/friends/pending", headers=auth_headers(banned_user))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_token_without_subject(self, client):
        token = create_access_token(data={"role": "user"})
        response = await client.get("/friends/pending", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestHealthAPI:
    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/health/live")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "alive"

    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")

        assert response.json()["status"] == "running"
