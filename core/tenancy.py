"""
Per-transaction tenant context for PostgreSQL row-level security.

Policies on the review tables read `current_setting('app.user_id', true)`.
This module is the single place that sets it.
"""
from django.db import connection


def set_tenant_context(user_id):
    """
    Set app.user_id for the current transaction.

    Must be called inside transaction.atomic(); the setting is local to the
    transaction and disappears on commit or rollback. No-op on databases
    without set_config (SQLite in development and tests).
    """
    if connection.vendor != 'postgresql':
        return False

    with connection.cursor() as cursor:
        cursor.execute("SELECT set_config('app.user_id', %s, true)", [str(user_id or '')])
    return True
