"""General utility functions."""

import importlib
import importlib.util
from pathlib import Path
from types import ModuleType
from typing import Any

from sqlbq.exceptions import MissingDependencyError

__all__ = (
    "import_string",
    "load_module_from_path",
)


def import_string(dotted_path: str) -> "Any":
    """Dotted Path Import.

    Import a dotted module path and return the attribute/class designated by the
    last name in the path. Raise ImportError if the import failed.

    Args:
        dotted_path: The path of the module to import.

    Raises:
        MissingDependencyError: The module needs a package that is not installed.
        ImportError: Could not import the module.

    Returns:
        object: The imported object.
    """
    try:
        parts = dotted_path.split(".")
        for i in range(len(parts), 0, -1):
            module_path = ".".join(parts[:i])
            try:
                module = importlib.import_module(module_path)
                break
            except ModuleNotFoundError as e:
                # only a missing module on the path itself means "try the parent"
                if e.name is None or not (module_path == e.name or module_path.startswith(f"{e.name}.")):
                    raise
                continue
        else:
            msg = f"{dotted_path} doesn't look like a module path"
            raise ImportError(msg)
        obj = module
        for attr in parts[i:]:
            try:
                obj = getattr(obj, attr)
            except AttributeError as e:
                msg = f"Module '{module.__name__}' has no attribute '{attr}' in '{dotted_path}'"
                raise ImportError(msg) from e
        return obj
    except MissingDependencyError:
        raise
    except Exception as e:
        msg = f"Could not import '{dotted_path}': {e}"
        raise ImportError(msg) from e


def load_module_from_path(path: "Path", module_name: "str") -> "ModuleType":
    """Load a Python source file as a module without adding it to ``sys.modules``.

    Args:
        path: Location of the ``.py`` file.
        module_name: Name given to the loaded module.

    Raises:
        ImportError: The file could not be loaded.

    Returns:
        The executed module.
    """
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        msg = f"Could not load module from {path}"
        raise ImportError(msg)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module
