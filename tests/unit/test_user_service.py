import pytest

from app.services import user_service


class TestFindUser:
    """사용자 조회 테스트"""

    @pytest.mark.asyncio
    async def test_find_active_user(self, test_session, test_user_1):
        user = await user_service.find_active_user_by_id(test_session, test_user_1.id)
        assert user.id == test_user_1.id

    @pytest.mark.asyncio
    async def test_inactive_users_are_excluded(self, test_session, banned_user, deleted_user):
        """정지되었거나 탈퇴한 사용자는 활성 사용자 조회에서 제외"""
        assert await user_service.find_active_user_by_id(test_session, banned_user.id) is None
        assert await user_service.find_active_user_by_id(test_session, deleted_user.id) is None
        assert await user_service.find_active_user_by_id(test_session, 9999) is None

    @pytest.mark.asyncio
    async def test_find_user_ignores_status(self, test_session, banned_user, deleted_user):
        assert (await user_service.find_user_by_id(test_session, banned_user.id)).id == banned_user.id
        assert (await user_service.find_user_by_id(test_session, deleted_user.id)).id == deleted_user.id


class TestSummarizeMany:
    @pytest.mark.asyncio
    async def test_summarize_many(self, test_session, test_user_1, test_user_2):
        summaries = await user_service.summarize_many(test_session, [test_user_1.id, test_user_2.id, 9999])

        assert set(summaries) == {test_user_1.id, test_user_2.id}
        assert summaries[test_user_1.id].avatar == test_user_1.avatar
        assert summaries[test_user_1.id].level == 5

    @pytest.mark.asyncio
    async def test_summarize_nothing(self, test_session):
        assert await user_service.summarize_many(test_session, []) == {}
