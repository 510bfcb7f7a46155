"""Markdown metadata extraction.

Turns raw reference-document text plus its source path into the derived
fields of a :class:`~refdocs.models.DocRecord`: title, category and the
class-like entity names the document mentions.
"""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Dict, List, Tuple

from refdocs.config import CATEGORY_SAMPLE_CHARS
from refdocs.models import DEFAULT_CATEGORY, DocRecord

# Iteration order decides ties: the first category with a hit wins.
CATEGORY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "actor": ("actor", "spawn", "pawn", "character", "controller", "gamemode"),
    "blueprint": ("blueprint", "graph", "node", "blueprint pin", "compile"),
    "material": ("material", "shader", "texture", "rendering"),
    "animation": ("animation", "anim", "skeleton", "montage", "state machine"),
    "input": ("input", "enhanced input", "action mapping", "input action"),
    "realtimemesh": ("realtimemesh", "proceduralmesh", "mesh generation", "section group"),
    "gameplay": ("gameplay", "game mode", "game state", "player state", "ability"),
    "rendering": ("rendering", "viewport", "camera", "light", "post process"),
    "networking": ("networking", "replication", "net driver", "net multicast"),
}

# AActor, UObject, FVector, ECollisionChannel, ...
ENTITY_PATTERN = re.compile(r"\b[AUFE][A-Z][a-zA-Z0-9]{2,}\b")

ENTITY_DENYLIST = frozenset(
    {
        "FNAME",
        "FTEXT",
        "FSTRING",
        "UINT8",
        "UINT16",
        "UINT32",
        "UINT64",
        "FALSE",
        "FLOAT",
        "UFUNCTION",
        "UPROPERTY",
        "UCLASS",
        "USTRUCT",
        "UENUM",
        "UINTERFACE",
        "ENGINE",
        "EDITOR",
        "ENSURE",
    }
)

MIN_ENTITY_LENGTH = 4


def make_doc_id(path: Path | str) -> str:
    """Derive a stable record id from the document's source path."""
    return hashlib.sha256(str(path).encode("utf-8")).hexdigest()[:16]


def extract_title(content: str) -> str:
    """Return the first level-one heading, or an empty string."""
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("# "):
            return stripped[2:].strip()
    return ""


def _match_category(haystack: str) -> str | None:
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in haystack for keyword in keywords):
            return category
    return None


def infer_category(
    path: Path | str, content: str, *, sample_chars: int = CATEGORY_SAMPLE_CHARS
) -> str:
    """Guess the document category from its path, then from its opening text."""
    category = _match_category(str(path).lower())
    if category is not None:
        return category

    category = _match_category(content[:sample_chars].lower())
    if category is not None:
        return category
    return DEFAULT_CATEGORY


def is_likely_entity_name(name: str) -> bool:
    if len(name) < MIN_ENTITY_LENGTH:
        return False
    return name.upper() not in ENTITY_DENYLIST


def extract_entity_names(content: str) -> List[str]:
    """Collect class-like names in first-seen order, without duplicates."""
    seen: set[str] = set()
    names: List[str] = []
    for match in ENTITY_PATTERN.finditer(content):
        name = match.group(0)
        if name in seen or not is_likely_entity_name(name):
            continue
        seen.add(name)
        names.append(name)
    return names


def parse_markdown_doc(
    path: Path | str,
    content: str,
    source: str,
    *,
    url: str = "",
    sample_chars: int = CATEGORY_SAMPLE_CHARS,
) -> DocRecord:
    """Build the index record for one markdown document."""
    title = extract_title(content) or Path(path).stem
    return DocRecord(
        id=make_doc_id(path),
        title=title,
        category=infer_category(path, content, sample_chars=sample_chars),
        source=source,
        content=content,
        entities=extract_entity_names(content),
        url=url,
        path=str(path),
    )
