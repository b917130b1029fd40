from .db import (
    get_engine,
    get_session,
    create_all,
    dispose_engine,
    find_scheduled_items,
    update_reminder_status,
    insert_notifications,
    list_notifications,
    mark_notification_read,
    mark_all_notifications_read,
    find_profile,
    find_profiles,
    upsert_profile,
    list_items,
    create_item,
    update_item,
    delete_item,
    list_groups,
    get_group,
    create_group,
    toggle_group_membership,
    list_group_messages,
    insert_group_message,
    list_medical_records,
    create_medical_record,
    update_medical_record,
    delete_medical_record,
)  # noqa: F401
from .models import Base  # noqa: F401
