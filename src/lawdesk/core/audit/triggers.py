"""DDL for the database-level audit interceptor.

Each namespace gets its own copy of the trigger functions, so a trigger can
only ever write into the audit log of the namespace it lives in. Every
statement is returned separately; asyncpg rejects multi-statement strings.
"""

from collections.abc import Iterable

from sqlalchemy import text
from sqlalchemy.engine import Dialect
from sqlalchemy.sql.elements import TextClause

from lawdesk.core.constants import (
    AUDIT_SETTING_IP_ADDRESS,
    AUDIT_SETTING_REQUEST_ID,
    AUDIT_SETTING_USER_AGENT,
    AUDIT_SETTING_USER_ID,
)
from lawdesk.core.database.namespace import validate_namespace


AUDIT_FUNCTION = "audit_trigger_function"
GUARD_FUNCTION = "audit_log_guard_function"
AUDIT_TABLE = "audit_log"

# Columns never copied into audit snapshots
REDACTED_COLUMNS = ("password_hash",)


def _redact(row: str) -> str:
    expr = f"to_jsonb({row})"
    for column in REDACTED_COLUMNS:
        expr = f"({expr} - '{column}'::text)"
    return expr


def _audit_function(schema: str) -> str:
    return f"""
CREATE OR REPLACE FUNCTION {schema}.{AUDIT_FUNCTION}()
RETURNS TRIGGER AS $audit$
DECLARE
    acting_user uuid := NULLIF(current_setting('{AUDIT_SETTING_USER_ID}', true), '')::uuid;
    client_ip text := NULLIF(current_setting('{AUDIT_SETTING_IP_ADDRESS}', true), '');
    client_agent text := NULLIF(current_setting('{AUDIT_SETTING_USER_AGENT}', true), '');
    correlation_id text := NULLIF(current_setting('{AUDIT_SETTING_REQUEST_ID}', true), '');
BEGIN
    IF TG_OP = 'INSERT' THEN
        INSERT INTO {schema}.{AUDIT_TABLE}
            (user_id, table_name, record_id, operation, new_data,
             ip_address, user_agent, request_id)
        VALUES
            (acting_user, TG_TABLE_NAME, NEW.id, 'CREATE', {_redact("NEW")},
             client_ip, client_agent, correlation_id);
        RETURN NEW;
    ELSIF TG_OP = 'UPDATE' THEN
        INSERT INTO {schema}.{AUDIT_TABLE}
            (user_id, table_name, record_id, operation, old_data, new_data,
             ip_address, user_agent, request_id)
        VALUES
            (acting_user, TG_TABLE_NAME, NEW.id, 'UPDATE', {_redact("OLD")}, {_redact("NEW")},
             client_ip, client_agent, correlation_id);
        RETURN NEW;
    ELSIF TG_OP = 'DELETE' THEN
        INSERT INTO {schema}.{AUDIT_TABLE}
            (user_id, table_name, record_id, operation, old_data,
             ip_address, user_agent, request_id)
        VALUES
            (acting_user, TG_TABLE_NAME, OLD.id, 'DELETE', {_redact("OLD")},
             client_ip, client_agent, correlation_id);
        RETURN OLD;
    END IF;
    RETURN NULL;
END;
$audit$ LANGUAGE plpgsql
"""


def _guard_function(schema: str) -> str:
    return f"""
CREATE OR REPLACE FUNCTION {schema}.{GUARD_FUNCTION}()
RETURNS TRIGGER AS $guard$
BEGIN
    RAISE EXCEPTION 'audit_log is append-only'
        USING ERRCODE = 'insufficient_privilege';
END;
$guard$ LANGUAGE plpgsql
"""


def audit_ddl(namespace: str, audited_tables: Iterable[str], dialect: Dialect) -> list[TextClause]:
    """Build the statements that install auditing into a namespace.

    Installs the audit function, one ``AFTER INSERT OR UPDATE OR DELETE``
    row trigger per audited table, and the append-only guard on the audit
    log. Every statement is idempotent.

    Args:
        namespace: A validated namespace name
        audited_tables: Names of the tables to track
        dialect: Dialect used for identifier quoting

    Returns:
        Executable statements, in order
    """
    preparer = dialect.identifier_preparer
    schema = preparer.quote_schema(validate_namespace(namespace))
    audit_table = preparer.quote(AUDIT_TABLE)

    statements = [_audit_function(schema), _guard_function(schema)]

    for table in audited_tables:
        trigger = preparer.quote(f"audit_{table}_trigger")
        target = f"{schema}.{preparer.quote(table)}"
        statements.append(f"DROP TRIGGER IF EXISTS {trigger} ON {target}")
        statements.append(
            f"CREATE TRIGGER {trigger} "
            f"AFTER INSERT OR UPDATE OR DELETE ON {target} "
            f"FOR EACH ROW EXECUTE FUNCTION {schema}.{AUDIT_FUNCTION}()"
        )

    guarded = f"{schema}.{audit_table}"
    statements.extend(
        [
            f"DROP TRIGGER IF EXISTS audit_log_guard_trigger ON {guarded}",
            f"CREATE TRIGGER audit_log_guard_trigger "
            f"BEFORE UPDATE OR DELETE ON {guarded} "
            f"FOR EACH ROW EXECUTE FUNCTION {schema}.{GUARD_FUNCTION}()",
            f"DROP TRIGGER IF EXISTS audit_log_truncate_guard_trigger ON {guarded}",
            f"CREATE TRIGGER audit_log_truncate_guard_trigger "
            f"BEFORE TRUNCATE ON {guarded} "
            f"FOR EACH STATEMENT EXECUTE FUNCTION {schema}.{GUARD_FUNCTION}()",
        ]
    )

    return [text(statement) for statement in statements]
