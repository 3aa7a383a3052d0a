"""Feature modules with auto-discovery."""

from importlib import import_module
from importlib.util import find_spec
from pathlib import Path

import structlog
from fastapi import APIRouter


logger = structlog.get_logger()

_MODULES_DIR = Path(__file__).parent


def _module_names() -> list[str]:
    return [
        path.name
        for path in sorted(_MODULES_DIR.iterdir())
        if path.is_dir() and not path.name.startswith("_")
    ]


def discover_modules() -> list[APIRouter]:
    """Auto-discover and return routers from all modules.

    This function scans the modules directory for subdirectories
    that contain a ``routes`` module exposing a ``router`` attribute.
    Package ``__init__`` files stay empty so models can be imported
    without pulling in the HTTP layer.

    Returns:
        List of FastAPI routers from discovered modules.
    """
    routers: list[APIRouter] = []

    for name in _module_names():
        dotted = f"lawdesk.modules.{name}.routes"
        if find_spec(dotted) is None:
            continue
        try:
            module = import_module(dotted)
        except ImportError as e:
            logger.warning("module_load_failed", module=name, error=str(e))
            continue
        if hasattr(module, "router"):
            routers.append(module.router)
            logger.info("module_loaded", module=name)

    return routers


def import_models() -> None:
    """Import every module's ``models`` so all tenant tables are registered.

    The provisioner builds namespaces from ``TenantBase.metadata``; a model
    that was never imported would silently be missing from new tenants.
    """
    import_module("lawdesk.core.audit.models")
    for name in _module_names():
        dotted = f"lawdesk.modules.{name}.models"
        if find_spec(dotted) is not None:
            import_module(dotted)
