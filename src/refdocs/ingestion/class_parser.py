"""Lenient parser for class reference pages.

Expected layout::

    # ClassName
    **Parent**: ParentClass
    **Module**: ModuleName
    Description text...
    ## Key Properties
    - `PropertyName` - description
    ## Key Functions
    - `FunctionName(params)` - description

Pages are written by hand, so anything that does not fit is ignored rather
than rejected.
"""

from __future__ import annotations

from refdocs.models import ClassReference

DESCRIPTION_LIMIT = 500

_PARENT_PREFIXES = ("**Parent**:", "**Parent Class**:")
_MODULE_PREFIX = "**Module**:"
_BULLET_PREFIXES = ("- ", "* ")


def _section_for(heading: str) -> str:
    heading = heading.lower()
    if "propert" in heading:
        return "properties"
    if "function" in heading or "method" in heading:
        return "functions"
    return ""


def extract_meta_value(line: str) -> str:
    """Return the value of a ``**Key**: value`` line without markdown decoration."""
    _, sep, value = line.partition(":")
    if not sep:
        return ""
    return value.strip().strip("`*")


def parse_class_doc(name: str, content: str) -> ClassReference:
    info = ClassReference(name=name)
    section = ""

    for line in content.splitlines():
        stripped = line.strip()

        if stripped.startswith("## "):
            section = _section_for(stripped[3:])
            continue

        if stripped.startswith(_PARENT_PREFIXES):
            info.parent = extract_meta_value(stripped)
            continue
        if stripped.startswith(_MODULE_PREFIX):
            info.module = extract_meta_value(stripped)
            continue

        if stripped.startswith(_BULLET_PREFIXES):
            item = stripped.lstrip("-* ").strip()
            if not item:
                continue
            if section == "properties":
                info.properties.append(item)
            elif section == "functions":
                info.functions.append(item)
            continue

        if section or not stripped or stripped.startswith(("#", "**")):
            continue
        if not info.description:
            info.description = stripped
        elif len(info.description) < DESCRIPTION_LIMIT:
            info.description += " " + stripped

    return info
