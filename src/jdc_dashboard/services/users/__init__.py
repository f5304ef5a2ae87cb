from .profiles import accessible_sectors, create_profile, require_admin, update_profile

__all__ = ["accessible_sectors", "create_profile", "require_admin", "update_profile"]
