"""
Seed the built-in roles from the role table in ``secure_admin.auth.rbac``.

Roles are matched by their stable id and overwritten, so the script is safe
to run after every deploy.

Usage (from ``backend/``):
    python -m scripts.seed_roles
"""
import asyncio

from secure_admin.auth import rbac
from secure_admin.database import AsyncSessionLocal, engine
from secure_admin.services.admin import seed_roles


async def main() -> None:
    print(f"Seeding {len(rbac.ROLES)} roles ({len(rbac.PERMISSION_CATALOG)} permissions)...")
    async with AsyncSessionLocal() as session:
        roles = await seed_roles(session)
    for role in roles:
        print(f"  + {role.name} ({role.id}): {len(role.permissions)} permissions")
    await engine.dispose()
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())
