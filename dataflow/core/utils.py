"""
DataFlow Core Utilities

Small helpers shared by the pipeline and the CLI.
"""

import os
from typing import List, Union


def ensure_directory(path: str) -> None:
    """Create a directory tree if it doesn't exist."""
    if path:
        os.makedirs(path, exist_ok=True)


def apply_path_supplement(supplement: str) -> None:
    """Append ``supplement`` to the process PATH, once.

    Database client libraries (ODBC drivers, Oracle Instant Client) are
    located through PATH.
    """
    if not supplement:
        return

    current = os.environ.get("PATH", "")
    entries = current.split(os.pathsep) if current else []
    if supplement in entries:
        return

    os.environ["PATH"] = os.pathsep.join(entries + [supplement])


def as_statements(commands: Union[str, List[str], None]) -> List[str]:
    """Normalize setup commands into a list of statements."""
    if not commands:
        return []
    if isinstance(commands, str):
        return [commands]
    return [command for command in commands if command]
