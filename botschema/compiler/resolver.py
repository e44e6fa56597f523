"""
Type resolution.

Turns the raw type expressions of a :class:`SchemaModel` into a graph of
expression objects. Every named reference is interned as a handle to its
:class:`TypeNode`, so nothing downstream parses strings again.

Resolution is two-pass: a shell node is created for every known type
first, and only then are fields filled in. Self-references and forward
references therefore resolve to the same handle without recursion.
"""

import dataclasses
import logging
import re
from types import MappingProxyType

from botschema.compiler.model import FieldModel, SchemaModel
from botschema.errors import ResolutionError

log = logging.getLogger(__name__)

ARRAY_PREFIX = "Array of "
UNION_SEPARATOR = re.compile(r"\s+or\s+")

STRING = "String"
INTEGER = "Integer"
FLOAT = "Float"
BOOLEAN = "Boolean"
TRUE = "True"
INPUT_FILE = "InputFile"

PRIMITIVE_KINDS = (STRING, INTEGER, FLOAT, BOOLEAN, TRUE, INPUT_FILE)


class TypeExpr:
    """Base class of resolved type expressions."""

    __slots__ = ()


@dataclasses.dataclass(frozen=True)
class Primitive(TypeExpr):
    kind: str

    def __str__(self) -> str:
        return self.kind


@dataclasses.dataclass(frozen=True)
class Ref(TypeExpr):
    """
    Reference to a named type.

    Compares by name only, which keeps equality finite on
    self-referential graphs.
    """

    name: str
    node: "TypeNode | None" = dataclasses.field(
        default=None, compare=False, repr=False
    )

    def __str__(self) -> str:
        return self.name


@dataclasses.dataclass(frozen=True)
class ArrayOf(TypeExpr):
    item: TypeExpr

    def __str__(self) -> str:
        return f"{ARRAY_PREFIX}{self.item}"


@dataclasses.dataclass(frozen=True)
class UnionOf(TypeExpr):
    options: tuple[TypeExpr, ...]

    def __str__(self) -> str:
        return " or ".join(map(str, self.options))


_PRIMITIVES = {kind: Primitive(kind) for kind in PRIMITIVE_KINDS}


@dataclasses.dataclass(frozen=True)
class ResolvedField:
    name: str
    expr: TypeExpr
    required: bool
    description: str = ""


@dataclasses.dataclass(frozen=True)
class TypeNode:
    """
    A resolved type. The resolver fills ``fields`` and ``variants`` in its
    second pass; after that the node is read-only.
    """

    name: str
    description: tuple[str, ...] = ()
    href: str = ""
    fields: tuple[ResolvedField, ...] = ()
    variants: tuple[Ref, ...] = ()

    @property
    def is_abstract(self) -> bool:
        return bool(self.variants)


@dataclasses.dataclass(frozen=True)
class MethodNode:
    name: str
    params: tuple[ResolvedField, ...]
    returns: TypeExpr
    description: tuple[str, ...] = ()
    href: str = ""


@dataclasses.dataclass(frozen=True)
class ResolvedGraph:
    types: MappingProxyType
    methods: MappingProxyType
    version: str | None = None


class Resolver:
    def __init__(self, store: SchemaModel):
        self._store = store
        self._nodes: dict[str, TypeNode] = {}
        self._problems: list[str] = []

    def resolve(self) -> ResolvedGraph:
        types = self._store.types

        # First pass: a handle for every name, so references can point
        # at types that have not been filled in yet
        for name, definition in types.items():
            self._nodes[name] = TypeNode(
                name=name,
                description=tuple(definition.description),
                href=definition.href,
            )

        # Second pass: fields and variants
        for name, definition in types.items():
            node = self._nodes[name]
            # Handles are frozen, the resolver is their only writer
            object.__setattr__(
                node,
                "fields",
                tuple(
                    self._resolve_field(f, owner=name)
                    for f in definition.fields
                ),
            )
            object.__setattr__(
                node,
                "variants",
                tuple(
                    self._reference(sub, owner=f"{name} (subtype)")
                    for sub in definition.subtypes
                ),
            )
            for parent in definition.subtype_of:
                self._reference(parent, owner=f"{name} (subtype_of)")

        methods = {
            name: MethodNode(
                name=name,
                params=tuple(
                    self._resolve_field(p, owner=name)
                    for p in definition.fields
                ),
                returns=self._resolve_types(
                    definition.returns, owner=f"{name} (returns)"
                ),
                description=tuple(definition.description),
                href=definition.href,
            )
            for name, definition in self._store.methods.items()
        }

        if self._problems:
            raise ResolutionError(self._problems)

        log.info(
            "Resolved %d types and %d methods", len(self._nodes), len(methods)
        )

        return ResolvedGraph(
            types=MappingProxyType(dict(self._nodes)),
            methods=MappingProxyType(methods),
            version=self._store.version,
        )

    def _resolve_field(self, field: FieldModel, owner: str) -> ResolvedField:
        return ResolvedField(
            name=field.name,
            expr=self._resolve_types(field.types, owner=f"{owner}.{field.name}"),
            required=field.required,
            description=field.description,
        )

    # A list of candidates collapses to a single expression or a flat union
    def _resolve_types(self, types: list[str], owner: str) -> TypeExpr:
        options: list[TypeExpr] = []

        for text in types:
            options.append(self._parse(text, owner))

        if not options:
            self._problems.append(f"{owner}: empty type expression")
            return _PRIMITIVES[STRING]

        return flatten(options)

    def _parse(self, text: str, owner: str) -> TypeExpr:
        text = text.strip()

        parts = UNION_SEPARATOR.split(text)
        if len(parts) > 1:
            return flatten([self._parse(p, owner) for p in parts])

        if text.startswith(ARRAY_PREFIX):
            return ArrayOf(self._parse(text[len(ARRAY_PREFIX) :], owner))

        if text in _PRIMITIVES:
            return _PRIMITIVES[text]

        return self._reference(text, owner)

    def _reference(self, name: str, owner: str) -> Ref:
        node = self._nodes.get(name)
        if node is None:
            self._problems.append(f"{owner}: unknown type {name!r}")
        return Ref(name, node)


# Flattens nested unions, keeping duplicates and documentation order
def flatten(options: list[TypeExpr]) -> TypeExpr:
    flat: list[TypeExpr] = []

    for option in options:
        if isinstance(option, UnionOf):
            flat.extend(option.options)
        else:
            flat.append(option)

    if len(flat) == 1:
        return flat[0]

    return UnionOf(tuple(flat))


def resolve(store: SchemaModel) -> ResolvedGraph:
    return Resolver(store).resolve()
