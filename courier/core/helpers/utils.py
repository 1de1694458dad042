import importlib
import logging
import pkgutil
from typing import Iterable


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s] : %(message)s',
    )


def scan(packages: Iterable[str]) -> list[str]:
    """
    Import every module of the given packages so that their
    ``@register`` decorators populate the type registry.

    Plain modules are imported as-is. Returns the imported module names.
    """
    logger = logging.getLogger("core.helpers.utils")
    imported = []

    for package in packages:
        py_package = importlib.import_module(package)
        imported.append(package)

        for module_info in pkgutil.walk_packages(
            getattr(py_package, "__path__", []),
            prefix=f"{package}."
        ):
            importlib.import_module(module_info.name)
            imported.append(module_info.name)

    logger.debug(f"Scanned modules: {imported}")
    return imported
