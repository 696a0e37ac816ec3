"""Procedure path handling."""

from __future__ import annotations


def extract_proto_path(path: str) -> str:
    """Return the "/package.Service/Method" tail of a URL or path.

    The result always starts with a slash.
    """
    segments = path.split("/")
    pkg = segments[0]
    method = ""
    if len(segments) > 1:
        pkg, method = segments[-2], segments[-1]
    if not pkg:
        return "/"
    if not method:
        return "/" + pkg
    return "/" + pkg + "/" + method