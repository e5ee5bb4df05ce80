"""Resolve ``"module:attribute"`` strings to Kernel instances.

Shared by ``perch run`` and ``perch routes``.
"""

import importlib

from perch.kernel import Kernel


def resolve_kernel(import_string: str) -> Kernel:
    """Import *import_string* and return the Kernel it names.

    The attribute defaults to ``kernel`` (``"myapp"`` means
    ``myapp:kernel``). A callable that is not already a Kernel is treated
    as a factory and called with no arguments.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the result is not a Kernel, or the factory failed.
    """
    module_path, _, attr_name = import_string.partition(":")
    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name or "kernel")

    if callable(obj) and not isinstance(obj, Kernel):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, Kernel):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a perch Kernel"
        raise TypeError(msg)
    return obj
