from mall_app.models.enums import UserRole

from .errors import AuthorizationFailure

MANAGER_ROLES = {UserRole.SUPERADMIN, UserRole.LANDLORD}


class CheckRolePermission:
    async def check_authenticated(self, current_user):
        if current_user is None or not current_user.is_active:
            raise AuthorizationFailure("Account is inactive or missing")
        if current_user.role not in set(UserRole):
            raise AuthorizationFailure("Access Denied")

    async def check_superadmin(self, current_user):
        await self.check_authenticated(current_user)
        if current_user.role != UserRole.SUPERADMIN:
            raise AuthorizationFailure("Only a superadmin can perform this action")

    async def check_manager(self, current_user):
        await self.check_authenticated(current_user)
        if current_user.role not in MANAGER_ROLES:
            raise AuthorizationFailure(
                "Only a landlord or superadmin can perform this action"
            )

    async def check_tenant(self, current_user):
        await self.check_authenticated(current_user)
        if current_user.role != UserRole.TENANT:
            raise AuthorizationFailure("Only tenants can perform this action")

    async def check_role(self, role):
        if role not in set(UserRole):
            raise AuthorizationFailure("Invalid Role")
