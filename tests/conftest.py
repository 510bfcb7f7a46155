"""Shared fixtures: a small realistic reference corpus."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List

import pytest

from refdocs.index.storage import SQLiteDocIndex
from refdocs.models import DocRecord


def make_record(
    doc_id: str,
    title: str,
    content: str,
    *,
    category: str = "general",
    source: str = "ue5.7",
    entities: List[str] | None = None,
    url: str = "",
) -> DocRecord:
    return DocRecord(
        id=doc_id,
        title=title,
        category=category,
        source=source,
        content=content,
        entities=entities or [],
        url=url,
        path=f"/docs/{doc_id}.md",
    )


CORPUS = [
    make_record(
        "aactor",
        "AActor",
        "AActor is the base class for all actors that can be placed or spawned in a level. "
        "Actors support 3D transformations (location, rotation, scale), component attachment hierarchies, "
        "replication for networking, and lifecycle events. "
        "Key functions: BeginPlay(), Tick(), SetActorLocation(), SetActorRotation(), Destroy().",
        category="actor",
        entities=["AActor"],
        url="https://dev.epicgames.com/documentation/en-us/unreal-engine/API/Runtime/Engine/GameFramework/AActor",
    ),
    make_record(
        "umaterial",
        "UMaterial",
        "Material asset defining the visual appearance of surfaces in Unreal Engine. "
        "Controls how light interacts with a surface through shading models, blend modes, and material domains. "
        "Key properties: ShadingModel, BlendMode, MaterialDomain, OpacityMaskClipValue, bTwoSided.",
        category="material",
        entities=["UMaterial", "UMaterialInterface"],
    ),
    make_record(
        "upcg-component",
        "UPCGComponent",
        "Procedural Content Generation component that runs PCG graphs on actors. "
        "Attach this component to any actor to execute a UPCGGraph in the context of that actor's transform. "
        "Returns array of AActor* instances spawned by generation. "
        "Key properties: Graph, GenerationTrigger, Seed, InputType.",
        category="gameplay",
        entities=["UPCGComponent", "UPCGGraph", "AActor"],
    ),
    make_record(
        "uworld",
        "UWorld",
        "Top-level object for a game world. Holds the persistent level and streaming levels. "
        "SpawnActor creates new actors. GetWorld() is available on most UObject subclasses. "
        "Key functions: SpawnActor(), GetTimerManager(), GetAuthGameMode().",
        category="actor",
        entities=["UWorld"],
    ),
    make_record(
        "blueprint-guide",
        "Blueprint Visual Scripting",
        "Blueprints are visual scripting graphs that allow you to create gameplay logic without C++. "
        "Event Graph handles gameplay events. Construction Script runs at spawn time.",
        category="blueprint",
        entities=["UBlueprintGeneratedClass", "UBlueprint"],
    ),
    make_record(
        "niagara-system",
        "UNiagaraSystem",
        "Niagara particle system asset containing one or more emitters. "
        "Controls emitter lifecycle, spawn rates, and system-level parameters. "
        "Use UNiagaraComponent to add to actors.",
        category="rendering",
        entities=["UNiagaraSystem", "UNiagaraComponent", "UNiagaraEmitter"],
    ),
    make_record(
        "anim-instance",
        "UAnimInstance",
        "Animation instance running on a skeletal mesh component. "
        "Manages blend spaces, montages, and state machine transitions.",
        category="animation",
        entities=["UAnimInstance", "UAnimMontage"],
    ),
    make_record(
        "realtime-mesh",
        "URealtimeMeshSimple",
        "URealtimeMeshSimple provides a simplified API for creating runtime meshes with LOD support.",
        category="realtimemesh",
        source="realtimemesh",
        entities=["URealtimeMeshSimple", "URealtimeMeshComponent"],
    ),
]


@pytest.fixture
def index_path(tmp_path: Path) -> Path:
    return tmp_path / "index.db"


@pytest.fixture
def empty_index(index_path: Path) -> Iterator[SQLiteDocIndex]:
    index = SQLiteDocIndex.create(index_path)
    yield index
    index.close()


@pytest.fixture
def populated_index(empty_index: SQLiteDocIndex) -> SQLiteDocIndex:
    empty_index.index_batch(CORPUS)
    return empty_index
