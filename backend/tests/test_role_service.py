from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError as PydanticValidationError

from secure_admin.auth.rbac import RoleName
from secure_admin.errors import NotFoundError, ValidationError
from secure_admin.schemas.role import RoleCreate, RoleUpdate
from secure_admin.services.admin import RoleService
from secure_admin.services.audit import ActivityAction, RequestContext
from tests.factories import make_role

CONTEXT = RequestContext("203.0.113.1", "pytest")


@pytest.fixture
def session():
    session = MagicMock()
    session.commit = AsyncMock()
    return session


@pytest.fixture
def recorder():
    recorder = MagicMock()
    recorder.record = AsyncMock(return_value=True)
    return recorder


@pytest.fixture
def service(session, recorder):
    service = RoleService(session, recorder)
    service.role_repo = MagicMock()
    return service


class TestRoleSchemas:
    def test_create_normalizes_permissions(self) -> None:
        payload = RoleCreate(name="  Auditor ", permissions=["files.upload", "files.read", "files.read"])
        assert payload.name == "Auditor"
        assert payload.permissions == ["files.read", "files.upload"]

    def test_create_rejects_wildcard(self) -> None:
        with pytest.raises(PydanticValidationError, match="Wildcard permission"):
            RoleCreate(name="Auditor", permissions=["files.*"])

    def test_create_rejects_unknown_permission(self) -> None:
        with pytest.raises(PydanticValidationError, match="Invalid permission"):
            RoleCreate(name="Auditor", permissions=["billing.read"])

    def test_update_strips_name(self) -> None:
        assert RoleUpdate(name="  Auditor ").name == "Auditor"

    def test_update_rejects_blank_name(self) -> None:
        with pytest.raises(PydanticValidationError, match="name must not be blank"):
            RoleUpdate(name="   ")

    def test_update_leaves_unset_permissions_alone(self) -> None:
        assert RoleUpdate(description="x").permissions is None


class TestCreateRole:
    @pytest.mark.anyio
    async def test_duplicate_name_is_rejected(self, service, super_admin, recorder) -> None:
        service.role_repo.get_by_name = AsyncMock(return_value=make_role(RoleName.MANAGER))

        with pytest.raises(ValidationError, match="Role name already exists"):
            await service.create_role(
                RoleCreate(name="Manager", permissions=["files.read"]),
                actor=super_admin,
                context=CONTEXT,
            )
        recorder.record.assert_not_awaited()

    @pytest.mark.anyio
    async def test_create_persists_and_records(self, service, session, super_admin, recorder) -> None:
        created = make_role("Auditor")
        created.permissions = ["activity.read", "files.read"]
        service.role_repo.get_by_name = AsyncMock(return_value=None)
        service.role_repo.create = AsyncMock(return_value=created)

        role = await service.create_role(
            RoleCreate(name="Auditor", permissions=["files.read", "activity.read"]),
            actor=super_admin,
            context=CONTEXT,
        )

        assert role is created
        assert service.role_repo.create.await_args.kwargs["permissions"] == [
            "activity.read",
            "files.read",
        ]
        session.commit.assert_awaited_once()
        kwargs = recorder.record.await_args.kwargs
        assert kwargs["action"] is ActivityAction.ROLE_CREATED
        assert kwargs["details"]["role_name"] == "Auditor"
        assert kwargs["context"] is CONTEXT


class TestDeleteRole:
    @pytest.mark.anyio
    async def test_super_admin_role_cannot_be_deleted(self, service, super_admin) -> None:
        service.role_repo.get_by_id = AsyncMock(return_value=make_role(RoleName.SUPER_ADMIN))
        service.role_repo.delete = AsyncMock()

        with pytest.raises(ValidationError, match="The SuperAdmin role cannot be deleted"):
            await service.delete_role("super-admin", actor=super_admin, context=CONTEXT)
        service.role_repo.delete.assert_not_awaited()

    @pytest.mark.anyio
    async def test_role_in_use_cannot_be_deleted(
        self, service, session, super_admin, recorder, guest
    ) -> None:
        role = guest.role
        service.role_repo.get_by_id = AsyncMock(return_value=role)
        service.role_repo.count_users = AsyncMock(return_value=3)
        service.role_repo.delete = AsyncMock()

        with pytest.raises(ValidationError, match="Cannot delete role that is in use") as exc:
            await service.delete_role("guest", actor=super_admin, context=CONTEXT)
        assert exc.value.status_code == 400
        service.role_repo.delete.assert_not_awaited()
        session.commit.assert_not_awaited()
        recorder.record.assert_not_awaited()
        assert guest.role is role
        assert guest.role_id == "guest"
        assert role.name == "Guest"

    @pytest.mark.anyio
    async def test_missing_role_is_not_found(self, service, super_admin) -> None:
        service.role_repo.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await service.delete_role("nope", actor=super_admin, context=CONTEXT)

    @pytest.mark.anyio
    async def test_unused_role_is_deleted_and_recorded(
        self, service, session, super_admin, recorder
    ) -> None:
        role = make_role("Auditor")
        service.role_repo.get_by_id = AsyncMock(return_value=role)
        service.role_repo.count_users = AsyncMock(return_value=0)
        service.role_repo.delete = AsyncMock()

        await service.delete_role(role.id, actor=super_admin, context=CONTEXT)

        service.role_repo.delete.assert_awaited_once_with(role)
        session.commit.assert_awaited_once()
        kwargs = recorder.record.await_args.kwargs
        assert kwargs["action"] is ActivityAction.ROLE_DELETED
        assert kwargs["details"] == {"role_id": role.id, "role_name": "Auditor"}

    @pytest.mark.anyio
    async def test_recording_failure_does_not_undo_delete(self, service, session, super_admin, recorder) -> None:
        service.role_repo.get_by_id = AsyncMock(return_value=make_role("Auditor"))
        service.role_repo.count_users = AsyncMock(return_value=0)
        service.role_repo.delete = AsyncMock()
        recorder.record = AsyncMock(return_value=False)

        await service.delete_role("auditor", actor=super_admin, context=CONTEXT)

        session.commit.assert_awaited_once()


class TestUpdateRole:
    @pytest.mark.anyio
    async def test_rename_to_existing_name_is_rejected(self, service, admin) -> None:
        service.role_repo.get_by_id = AsyncMock(return_value=make_role("Auditor"))
        service.role_repo.get_by_name = AsyncMock(return_value=make_role("Reviewer"))

        with pytest.raises(ValidationError, match="Role name already exists"):
            await service.update_role("auditor", RoleUpdate(name="Reviewer"), actor=admin, context=CONTEXT)

    @pytest.mark.anyio
    @pytest.mark.parametrize("builtin", [RoleName.USER, RoleName.MANAGER, RoleName.GUEST])
    async def test_builtin_roles_cannot_be_renamed(
        self, service, session, admin, recorder, builtin: RoleName
    ) -> None:
        role = make_role(builtin)
        service.role_repo.get_by_id = AsyncMock(return_value=role)
        service.role_repo.update = AsyncMock()

        with pytest.raises(ValidationError, match="cannot be renamed"):
            await service.update_role(role.id, RoleUpdate(name="Member"), actor=admin, context=CONTEXT)

        assert role.name == builtin.value
        service.role_repo.update.assert_not_awaited()
        session.commit.assert_not_awaited()
        recorder.record.assert_not_awaited()

    @pytest.mark.anyio
    async def test_custom_role_cannot_take_builtin_name(self, service, admin) -> None:
        role = make_role("Auditor")
        service.role_repo.get_by_id = AsyncMock(return_value=role)
        # Even when the built-in row is gone the name stays reserved
        service.role_repo.get_by_name = AsyncMock(return_value=None)
        service.role_repo.update = AsyncMock()

        with pytest.raises(ValidationError, match="reserved for a built-in role"):
            await service.update_role("auditor", RoleUpdate(name="Manager"), actor=admin, context=CONTEXT)

        assert role.name == "Auditor"
        service.role_repo.update.assert_not_awaited()

    @pytest.mark.anyio
    async def test_builtin_role_permissions_can_still_be_edited(self, service, admin) -> None:
        role = make_role(RoleName.GUEST)
        service.role_repo.get_by_id = AsyncMock(return_value=role)
        service.role_repo.update = AsyncMock(return_value=role)

        updated = await service.update_role(
            "guest",
            RoleUpdate(name="Guest", description="Read-only visitors"),
            actor=admin,
            context=CONTEXT,
        )

        assert updated.name == "Guest"
        assert updated.description == "Read-only visitors"

    @pytest.mark.anyio
    async def test_rename_is_stripped(self, service, admin) -> None:
        role = make_role("Auditor")
        service.role_repo.get_by_id = AsyncMock(return_value=role)
        service.role_repo.get_by_name = AsyncMock(return_value=None)
        service.role_repo.update = AsyncMock(return_value=role)

        await service.update_role("auditor", RoleUpdate(name="  Reviewer "), actor=admin, context=CONTEXT)

        assert role.name == "Reviewer"
        service.role_repo.get_by_name.assert_awaited_once_with("Reviewer")

    @pytest.mark.anyio
    async def test_super_admin_cannot_be_renamed(self, service, super_admin) -> None:
        service.role_repo.get_by_id = AsyncMock(return_value=make_role(RoleName.SUPER_ADMIN))

        with pytest.raises(ValidationError, match="cannot be renamed"):
            await service.update_role(
                "super-admin", RoleUpdate(name="Root"), actor=super_admin, context=CONTEXT
            )

    @pytest.mark.anyio
    async def test_update_permissions_records_before_and_after(self, service, admin, recorder) -> None:
        role = make_role("Auditor")
        role.permissions = ["files.read"]
        service.role_repo.get_by_id = AsyncMock(return_value=role)
        service.role_repo.update = AsyncMock(side_effect=lambda r: r)

        updated = await service.update_role(
            role.id,
            RoleUpdate(permissions=["files.read", "activity.read"]),
            actor=admin,
            context=CONTEXT,
        )

        assert updated.permissions == ["activity.read", "files.read"]
        details = recorder.record.await_args.kwargs["details"]
        assert details["before"]["permissions"] == ["files.read"]
        assert details["after"]["permissions"] == ["activity.read", "files.read"]


class TestSeedRoles:
    @pytest.mark.anyio
    async def test_seed_upserts_every_builtin_role(self, session, monkeypatch: pytest.MonkeyPatch) -> None:
        from secure_admin.crud.role import RoleRepository
        from secure_admin.services.admin import seed_roles

        seen = []

        async def fake_upsert(self, definition):
            seen.append(definition.id)
            return make_role(definition.name)

        monkeypatch.setattr(RoleRepository, "upsert_definition", fake_upsert)

        roles = await seed_roles(session)

        assert sorted(seen) == ["admin", "guest", "manager", "super-admin", "user"]
        assert {role.name for role in roles} == {"SuperAdmin", "Admin", "Manager", "User", "Guest"}
        session.commit.assert_awaited_once()
