from .provisioning import UserProvisioningService

__all__ = ["UserProvisioningService"]
