"""Path filter: decides whether a discovered file takes part in assembly.

Three independent rules, checked in order::

    blog/controllers/post.py           included
    blog/controllers/README.md         not a recognized module file
    blog/controllers/!drafts/post.py   folder excluded
    blog/controllers/!post.py          file excluded

Rejections never abort discovery; the walker logs them and moves on.
"""

from roost.discovery.loader import split_path
from roost.errors import DiscoveryWarning


def check_path(path: str, *, suffix: str = ".py", marker: str = "!") -> str | None:
    """Return ``None`` if *path* participates, else the reason it is skipped."""
    segments = split_path(path)
    file_name = segments[-1] if segments else ""
    folder_name = segments[-2] if len(segments) > 1 else ""

    if not file_name.endswith(suffix):
        return "not a recognized module file"
    if folder_name.startswith(marker):
        return "folder excluded"
    if file_name[: -len(suffix)].startswith(marker):
        return "file excluded"
    return None


def ensure_included(path: str, *, suffix: str = ".py", marker: str = "!") -> None:
    """Raise ``DiscoveryWarning`` if *path* is filtered out."""
    reason = check_path(path, suffix=suffix, marker=marker)
    if reason is not None:
        raise DiscoveryWarning(path, reason)
