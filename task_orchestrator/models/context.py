"""
Context module - Knowledge bundles and compressible context components

Components form a tagged union keyed by `type`. The compressor knows a
strategy for `code`, `dependencies` and `documentation`; any other
mapping carrying a `type` key is a valid component that can only be
included verbatim.
"""

from typing import TypedDict, Optional, Any, Dict, List, Literal, Union, NotRequired


# ============================================================================
# KNOWLEDGE BUNDLE (output of relevance queries)
# ============================================================================

class ContextEntity(TypedDict):
    id: str
    type: str
    data: Dict[str, Any]


class ContextRelationship(TypedDict):
    from_id: str
    to_id: str
    type: str
    data: Optional[Dict[str, Any]]


class ContextSummary(TypedDict):
    entity_count: int
    relationship_count: int
    entity_types: Dict[str, int]
    relationship_types: Dict[str, int]


class ContextBundle(TypedDict):
    entities: List[ContextEntity]
    relationships: List[ContextRelationship]
    summary: ContextSummary


def empty_context_bundle() -> ContextBundle:
    """Bundle returned when a query has nothing to match."""
    return ContextBundle(
        entities=[],
        relationships=[],
        summary=ContextSummary(
            entity_count=0,
            relationship_count=0,
            entity_types={},
            relationship_types={},
        ),
    )


# ============================================================================
# CONTEXT COMPONENTS
# ============================================================================

class CodeComponent(TypedDict):
    type: Literal["code"]
    path: str
    content: str
    priority: NotRequired[float]


class DependencyItem(TypedDict):
    name: str
    version: NotRequired[Optional[str]]
    importance_score: float


class DependenciesComponent(TypedDict):
    type: Literal["dependencies"]
    dependencies: List[DependencyItem]
    priority: NotRequired[float]


class DocumentationComponent(TypedDict):
    type: Literal["documentation"]
    path: str
    content: str
    priority: NotRequired[float]


class CompressedTextComponent(TypedDict):
    type: Literal["code", "documentation"]
    path: Optional[str]
    summarized_content: str
    is_compressed: bool


class CompressedDependenciesComponent(TypedDict):
    type: Literal["dependencies"]
    dependencies: List[DependencyItem]
    total_count: int
    is_compressed: bool


ContextComponent = Union[
    CodeComponent,
    DependenciesComponent,
    DocumentationComponent,
    CompressedTextComponent,
    CompressedDependenciesComponent,
    Dict[str, Any],
]


# ============================================================================
# COMPRESSED CONTEXT AND ANCILLARY RECORDS
# ============================================================================

ESSENTIAL_FIELDS = ("user_id", "project_type", "request_type", "timestamp")


class EssentialMetadata(TypedDict):
    user_id: Optional[str]
    project_type: Optional[str]
    request_type: Optional[str]
    timestamp: Optional[str]


class CompressedContext(EssentialMetadata):
    components: List[ContextComponent]


class UserAbility(TypedDict):
    programming_level: str
    languages: Dict[str, float]
    frameworks: Dict[str, float]
    preferred_explanation_level: str


class RelatedIssue(TypedDict, total=False):
    type: str                    # knownPattern, githubIssue, stackOverflow, ...
    message: str
    solutions: List[str]
    title: str
    url: str
