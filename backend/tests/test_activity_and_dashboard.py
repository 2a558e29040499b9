from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.dialects import postgresql

from secure_admin.crud.activity_log import build_activity_conditions, contains_pattern
from secure_admin.schemas.filters import ActivityLogFilter
from secure_admin.services.admin import ActivityService, DashboardService

NOW = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def activity_service():
    service = ActivityService(MagicMock())
    service.activity_repo = MagicMock()
    service.activity_repo.list_by_filters = AsyncMock(return_value=([], 0))
    return service


class TestActivityFilter:
    def test_date_from_must_precede_date_to(self) -> None:
        with pytest.raises(PydanticValidationError, match="date_from must be earlier"):
            ActivityLogFilter(date_from=NOW, date_to=NOW - timedelta(days=1))

    def test_naive_bounds_are_read_as_utc(self) -> None:
        filters = ActivityLogFilter(
            date_from=datetime(2024, 1, 1, tzinfo=timezone.utc),
            date_to=datetime(2024, 1, 2),
        )
        assert filters.date_to == datetime(2024, 1, 2, tzinfo=timezone.utc)

    def test_offset_bounds_are_converted_to_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        filters = ActivityLogFilter(date_from=datetime(2024, 1, 1, 2, 0, tzinfo=plus_two))
        assert filters.date_from == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert filters.date_from.tzinfo == timezone.utc

    def test_unknown_action_type_is_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            ActivityLogFilter(action_type="exported")

    def test_limit_is_capped(self) -> None:
        with pytest.raises(PydanticValidationError):
            ActivityLogFilter(limit=500)

    def test_all_action_type_means_no_keyword(self) -> None:
        assert ActivityLogFilter(action_type="all").action_keyword is None
        assert ActivityLogFilter(action_type="deleted").action_keyword == "deleted"

    def test_blank_search_is_dropped(self) -> None:
        assert ActivityLogFilter(search="   ").search is None


class TestActivityConditions:
    def test_owner_condition_comes_first(self, regular_user) -> None:
        conditions = build_activity_conditions(
            user_id=regular_user.id,
            search="upload",
            action_type="uploaded",
            from_date=NOW - timedelta(days=1),
            to_date=NOW,
        )
        assert len(conditions) == 5
        assert "user_id" in str(conditions[0])

    def test_no_filters_no_conditions(self) -> None:
        assert build_activity_conditions() == []

    def test_search_wildcards_match_literally(self) -> None:
        (condition,) = build_activity_conditions(search="100%_done/x")
        compiled = condition.compile(dialect=postgresql.dialect())

        assert "ESCAPE '/'" in str(compiled)
        patterns = set(compiled.params.values())
        assert patterns == {"%100/%/_done//x%"}

    def test_contains_pattern_leaves_plain_text_alone(self) -> None:
        assert contains_pattern("alice@example.com") == "%alice@example.com%"


class TestActivityService:
    @pytest.mark.anyio
    async def test_non_admin_scope_ignores_requested_user(
        self, activity_service, regular_user, admin
    ) -> None:
        await activity_service.list_activity(
            ActivityLogFilter(user_id=admin.id, search="role"), actor=regular_user
        )

        kwargs = activity_service.activity_repo.list_by_filters.await_args.kwargs
        assert kwargs["user_id"] == regular_user.id
        assert kwargs["search"] == "role"

    @pytest.mark.anyio
    async def test_admin_sees_all_by_default(self, activity_service, admin) -> None:
        await activity_service.list_activity(ActivityLogFilter(), actor=admin)

        assert activity_service.activity_repo.list_by_filters.await_args.kwargs["user_id"] is None

    @pytest.mark.anyio
    async def test_yesterday_resolves_to_half_open_day(self, activity_service, manager) -> None:
        await activity_service.list_activity(
            ActivityLogFilter(time_range="yesterday", action_type="uploaded"),
            actor=manager,
            now=NOW,
        )

        kwargs = activity_service.activity_repo.list_by_filters.await_args.kwargs
        assert kwargs["from_date"] == datetime(2024, 1, 14, tzinfo=timezone.utc)
        assert kwargs["to_date"] == datetime(2024, 1, 15, tzinfo=timezone.utc)
        assert kwargs["action_type"] == "uploaded"

    @pytest.mark.anyio
    async def test_pagination_reports_has_more(self, activity_service, admin) -> None:
        activity_service.activity_repo.list_by_filters = AsyncMock(return_value=([], 45))

        result = await activity_service.list_activity(
            ActivityLogFilter(limit=20, offset=20), actor=admin
        )

        assert result.pagination.total == 45
        assert result.pagination.has_more is True


class TestDashboardService:
    @pytest.fixture
    def dashboard(self):
        service = DashboardService(MagicMock())
        service.user_repo = MagicMock(count=AsyncMock(return_value=12))
        service.file_repo = MagicMock(count=AsyncMock(return_value=30))
        service.role_repo = MagicMock(count=AsyncMock(return_value=5))
        service.activity_repo = MagicMock(count=AsyncMock(return_value=8))
        return service

    @pytest.mark.anyio
    async def test_admin_sees_global_counts(self, dashboard, admin) -> None:
        stats = await dashboard.get_stats(admin, now=NOW)

        assert stats.model_dump() == {
            "total_users": 12,
            "total_files": 30,
            "active_roles": 5,
            "recent_activity": 8,
        }
        dashboard.file_repo.count.assert_awaited_once_with(owner_id=None)
        dashboard.activity_repo.count.assert_awaited_once_with(
            user_id=None, since=NOW - timedelta(hours=24)
        )

    @pytest.mark.anyio
    async def test_non_admin_counts_are_scoped(self, dashboard, regular_user) -> None:
        stats = await dashboard.get_stats(regular_user, now=NOW)

        assert stats.total_users == 1
        dashboard.user_repo.count.assert_not_awaited()
        dashboard.file_repo.count.assert_awaited_once_with(owner_id=regular_user.id)
        dashboard.activity_repo.count.assert_awaited_once_with(
            user_id=regular_user.id, since=NOW - timedelta(hours=24)
        )
