"""Hook event definitions and categories.

Schema and CRUD events fired after BreadBase operations complete. Hooks
registered for these events receive the affected table or data type as
a plain dict.
"""


class HookCategory:
    """Categories for organizing hooks."""

    APP_LIFECYCLE = "app_lifecycle"
    TABLE_OPERATIONS = "table_operations"
    CRUD_OPERATIONS = "crud_operations"


class HookEvent:
    """Hook event names.

    Attributes in format: ON_<SUBJECT>_<TIMING>_<OPERATION>
    """

    # App Lifecycle Events
    ON_BOOTSTRAP = "on_bootstrap"
    ON_TERMINATE = "on_terminate"

    # Table Operations (physical schema)
    ON_TABLE_AFTER_CREATE = "on_table_after_create"
    ON_TABLE_AFTER_UPDATE = "on_table_after_update"
    ON_TABLE_AFTER_DELETE = "on_table_after_delete"

    # CRUD Operations (presentation metadata)
    ON_CRUD_AFTER_CREATE = "on_crud_after_create"
    ON_CRUD_AFTER_UPDATE = "on_crud_after_update"
    ON_CRUD_AFTER_DELETE = "on_crud_after_delete"
    ON_RELATIONSHIP_AFTER_CREATE = "on_relationship_after_create"
    ON_RELATIONSHIP_AFTER_DELETE = "on_relationship_after_delete"


EVENT_CATEGORIES: dict[str, str] = {
    HookEvent.ON_BOOTSTRAP: HookCategory.APP_LIFECYCLE,
    HookEvent.ON_TERMINATE: HookCategory.APP_LIFECYCLE,
    HookEvent.ON_TABLE_AFTER_CREATE: HookCategory.TABLE_OPERATIONS,
    HookEvent.ON_TABLE_AFTER_UPDATE: HookCategory.TABLE_OPERATIONS,
    HookEvent.ON_TABLE_AFTER_DELETE: HookCategory.TABLE_OPERATIONS,
    HookEvent.ON_CRUD_AFTER_CREATE: HookCategory.CRUD_OPERATIONS,
    HookEvent.ON_CRUD_AFTER_UPDATE: HookCategory.CRUD_OPERATIONS,
    HookEvent.ON_CRUD_AFTER_DELETE: HookCategory.CRUD_OPERATIONS,
    HookEvent.ON_RELATIONSHIP_AFTER_CREATE: HookCategory.CRUD_OPERATIONS,
    HookEvent.ON_RELATIONSHIP_AFTER_DELETE: HookCategory.CRUD_OPERATIONS,
}


def get_all_events() -> list[str]:
    """Get all available hook event names."""
    return [
        value
        for name, value in vars(HookEvent).items()
        if not name.startswith("_") and isinstance(value, str)
    ]
