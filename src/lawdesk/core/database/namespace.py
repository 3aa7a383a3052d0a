"""Derivation and validation of tenant namespace names.

A namespace name is a fixed prefix followed by the tenant UUID with its
separators stripped. The mapping is recomputed whenever a handle is resolved,
so it must never change for the lifetime of a tenant.
"""

import re
from uuid import UUID

from lawdesk.config import settings
from lawdesk.core.constants import MAX_NAMESPACE_LENGTH


_PREFIX_RE = re.compile(r"^[a-z_][a-z0-9_]*$")


class InvalidNamespaceError(ValueError):
    """Raised when a value is not an allow-listed namespace name."""


def namespace_for(tenant_id: UUID | str, prefix: str | None = None) -> str:
    """Return the namespace name for a tenant.

    Args:
        tenant_id: The tenant's UUID (or its string form)
        prefix: Namespace prefix, defaults to ``settings.namespace_prefix``

    Returns:
        The namespace name, e.g. ``tenant_9f1c...``

    Raises:
        InvalidNamespaceError: If the tenant id is not a UUID or the prefix is unsafe
    """
    prefix = settings.namespace_prefix if prefix is None else prefix
    try:
        tenant_hex = UUID(str(tenant_id)).hex
    except ValueError as e:
        raise InvalidNamespaceError(f"Not a tenant identifier: {tenant_id!r}") from e

    return validate_namespace(f"{prefix}{tenant_hex}", prefix=prefix)


def validate_namespace(name: str, prefix: str | None = None) -> str:
    """Check that ``name`` is a well-formed namespace name.

    Only names of the form ``<prefix><32 lowercase hex chars>`` pass. This is
    the allow-list every schema qualifier goes through before it reaches DDL.

    Raises:
        InvalidNamespaceError: If the name does not match
    """
    prefix = settings.namespace_prefix if prefix is None else prefix
    if not _PREFIX_RE.match(prefix):
        raise InvalidNamespaceError(f"Unsafe namespace prefix: {prefix!r}")

    pattern = re.compile(rf"^{re.escape(prefix)}[0-9a-f]{{32}}$")
    if len(name) > MAX_NAMESPACE_LENGTH or not pattern.match(name):
        raise InvalidNamespaceError(f"Not a tenant namespace: {name!r}")
    return name


def tenant_id_from_namespace(name: str, prefix: str | None = None) -> UUID:
    """Inverse of ``namespace_for``."""
    prefix = settings.namespace_prefix if prefix is None else prefix
    validate_namespace(name, prefix=prefix)
    return UUID(hex=name[len(prefix) :])
