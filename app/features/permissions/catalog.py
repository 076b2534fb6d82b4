"""
The fixed permission catalog and the seeded system roles.

Permission keys follow the ``module.action`` convention. The catalog is
reference data: it is written to the database by ``scripts/seed_permissions``
and read back by the resolver for the super-admin shortcut.
"""
from app.features.permissions.models import PermissionScope

# Keys the access guard checks directly
PROPERTY_VIEW = "property.view"
PROPERTY_CREATE = "property.create"
PROPERTY_EDIT = "property.edit"

GLOBAL = PermissionScope.GLOBAL
PROPERTY = PermissionScope.PROPERTY

# (key, display name, module, scope)
PERMISSIONS: list[tuple[str, str, str, PermissionScope]] = [
    # Properties and units
    ("property.view", "View properties", "property", PROPERTY),
    ("property.create", "Create properties", "property", GLOBAL),
    ("property.edit", "Edit properties", "property", PROPERTY),
    ("property.delete", "Delete properties", "property", PROPERTY),
    ("unit.view", "View units", "unit", PROPERTY),
    ("unit.manage", "Manage units", "unit", PROPERTY),

    # Tenants and leases
    ("tenant.view", "View tenants", "tenant", PROPERTY),
    ("tenant.create", "Create tenants", "tenant", PROPERTY),
    ("tenant.edit", "Edit tenants", "tenant", PROPERTY),
    ("lease.view", "View leases", "lease", PROPERTY),
    ("lease.manage", "Create and edit leases", "lease", PROPERTY),
    ("rent.view", "View rent collection", "rent", PROPERTY),
    ("rent.collect", "Record rent payments", "rent", PROPERTY),

    # Finance
    ("finance.view_invoices", "View invoices", "finance", PROPERTY),
    ("finance.manage_invoices", "Manage invoices", "finance", PROPERTY),
    ("finance.view_payments", "View payments", "finance", PROPERTY),
    ("expense.view", "View expenses", "expense", PROPERTY),
    ("expense.create", "Record expenses", "expense", PROPERTY),
    ("expense.approve", "Approve expenses", "expense", PROPERTY),
    ("utility.view", "View utilities", "utility", PROPERTY),
    ("utility.manage", "Manage utility meters and bills", "utility", PROPERTY),
    ("loan.view", "View loans", "loan", PROPERTY),
    ("loan.manage", "Manage loans", "loan", PROPERTY),

    # Operations
    ("maintenance.view", "View maintenance tasks", "maintenance", PROPERTY),
    ("maintenance.manage", "Manage maintenance tasks", "maintenance", PROPERTY),
    ("inventory.view", "View inventory", "inventory", PROPERTY),
    ("inventory.manage", "Manage inventory", "inventory", PROPERTY),
    ("cleaning.view", "View cleaning schedules", "cleaning", PROPERTY),
    ("cleaning.manage", "Manage cleaning schedules", "cleaning", PROPERTY),

    # Compliance and documents
    ("compliance.view", "View compliance items", "compliance", PROPERTY),
    ("compliance.manage", "Manage licenses, permits and reminders", "compliance", PROPERTY),
    ("document.view", "View documents", "document", PROPERTY),
    ("document.upload", "Upload documents", "document", PROPERTY),

    # Reporting
    ("reports.view_dashboard", "View dashboard", "reports", GLOBAL),
    ("reports.view_financial", "View financial reports", "reports", PROPERTY),
    ("reports.export", "Export reports", "reports", PROPERTY),

    # Administration
    ("users.view", "View users", "admin", GLOBAL),
    ("users.manage", "Manage users and role assignments", "admin", GLOBAL),
    ("settings.manage", "Manage system settings", "admin", GLOBAL),
]

ALL_KEYS: list[str] = [key for key, _, _, _ in PERMISSIONS]


def _keys_for_modules(*modules: str) -> list[str]:
    return [key for key, _, module, _ in PERMISSIONS if module in modules]


def _view_keys() -> list[str]:
    return [key for key in ALL_KEYS if ".view" in key]


# name -> (display name, description, permission keys)
SYSTEM_ROLES: dict[str, tuple[str, str, list[str]]] = {
    "SUPER_ADMIN": (
        "Super Admin",
        "Full system access, can manage all users and settings",
        ALL_KEYS,
    ),
    "PROPERTY_MANAGER": (
        "Property Manager",
        "Manage properties, units, tenants and leases",
        _keys_for_modules("property", "unit", "tenant", "lease", "rent", "maintenance", "cleaning", "document")
        + ["reports.view_dashboard"],
    ),
    "ACCOUNTANT": (
        "Accountant",
        "View and manage invoices, payments and financial reports",
        _keys_for_modules("finance", "expense", "utility", "loan", "rent")
        + ["property.view", "reports.view_dashboard", "reports.view_financial", "reports.export"],
    ),
    "MAINTENANCE_SUPERVISOR": (
        "Maintenance Supervisor",
        "Manage maintenance tasks, teams and materials",
        _keys_for_modules("maintenance", "inventory", "cleaning")
        + ["property.view", "unit.view", "reports.view_dashboard"],
    ),
    "COMPLIANCE_OFFICER": (
        "Compliance Officer",
        "Manage documents, licenses, permits and reminders",
        _keys_for_modules("compliance", "document")
        + ["property.view", "reports.view_dashboard"],
    ),
    "VIEWER": (
        "Viewer",
        "Read-only access",
        _view_keys(),
    ),
}
