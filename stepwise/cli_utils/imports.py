from __future__ import annotations

import importlib
import sys
from pathlib import Path
from typing import Any


def load_object(target: str, search_path: Path | None = None) -> Any:
    """Import ``module:attribute`` and return the attribute.

    ``search_path`` (default: current directory) is put on ``sys.path`` so
    modules next to the caller can be found.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"expected 'module:attribute', got {target!r}")

    root = str((search_path or Path.cwd()).resolve())
    if root not in sys.path:
        sys.path.insert(0, root)

    module = importlib.import_module(module_name)
    obj: Any = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise ValueError(f"{module_name!r} has no attribute {attr!r}") from exc
    return obj
