"""
Binding generation.

Builds the in-memory bindings from a resolved graph. Every type becomes a
frozen dataclass record, every method a descriptor the encoder and decoder
are parameterized over. Bindings are built once and then only read.
"""

import dataclasses
import keyword
import logging
import re
from types import MappingProxyType

from botschema.compiler.model import SchemaModel
from botschema.compiler.resolver import (
    INPUT_FILE,
    ArrayOf,
    MethodNode,
    Primitive,
    Ref,
    ResolvedField,
    ResolvedGraph,
    TypeExpr,
    TypeNode,
    UnionOf,
    resolve,
)
from botschema.runtime.values import ABSENT, Object

log = logging.getLogger(__name__)

TYPES_MAP = {
    "String": "str",
    "Integer": "int",
    "Boolean": "bool",
    "Float": "float",
    "True": "bool",
    "InputFile": "InputFile",
}

# Wire names that cannot be Python identifiers
RENAMES = {
    "from": "from_user",
}


# Converts CamelCase to snake_case
def camel_to_snake(name: str) -> str:
    # https://stackoverflow.com/a/1176023
    name = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


def python_name(name: str) -> str:
    if name in RENAMES:
        return RENAMES[name]
    if keyword.iskeyword(name):
        return name + "_"
    return name


# Renders an expression as a Python type hint
def python_hint(expr: TypeExpr) -> str:
    if isinstance(expr, Primitive):
        return TYPES_MAP[expr.kind]
    if isinstance(expr, Ref):
        return expr.name
    if isinstance(expr, ArrayOf):
        return f"tuple[{python_hint(expr.item)}, ...]"
    if isinstance(expr, UnionOf):
        return " | ".join(map(python_hint, expr.options))
    raise TypeError(f"unknown expression {expr!r}")


@dataclasses.dataclass(frozen=True)
class FieldBinding:
    """
    A field or a parameter: ``name`` is the Python name, ``wire_name``
    the key sent over the wire.
    """

    name: str
    wire_name: str
    expr: TypeExpr
    required: bool
    description: str = ""

    @property
    def hint(self) -> str:
        hint = python_hint(self.expr)
        if not self.required:
            hint += " | None | Absent"
        return hint


@dataclasses.dataclass(frozen=True)
class GeneratedType:
    name: str
    fields: tuple[FieldBinding, ...]
    variants: tuple[str, ...]
    node: TypeNode = dataclasses.field(compare=False, repr=False)
    record: type = dataclasses.field(compare=False, repr=False)
    description: tuple[str, ...] = ()

    @property
    def is_abstract(self) -> bool:
        return bool(self.variants)


@dataclasses.dataclass(frozen=True)
class GeneratedMethod:
    name: str
    params: tuple[FieldBinding, ...]
    returns: TypeExpr
    has_attachment: bool
    snake_name: str
    description: tuple[str, ...] = ()
    # Shared, read-only view of all generated types, used when decoding
    registry: MappingProxyType = dataclasses.field(
        default_factory=lambda: MappingProxyType({}), compare=False, repr=False
    )


@dataclasses.dataclass(frozen=True)
class Bindings:
    types: MappingProxyType
    methods: MappingProxyType
    version: str | None = None
    # snake_case name to method, filled once by generate()
    by_snake_name: MappingProxyType = dataclasses.field(
        default_factory=lambda: MappingProxyType({}), compare=False, repr=False
    )

    def type(self, name: str) -> GeneratedType:
        return self.types[name]

    # Looks a method up by documented name or by its snake_case form
    def method(self, name: str) -> GeneratedMethod:
        if name in self.methods:
            return self.methods[name]
        return self.by_snake_name[name]


def bind_field(field: ResolvedField) -> FieldBinding:
    return FieldBinding(
        name=python_name(field.name),
        wire_name=field.name,
        expr=field.expr,
        required=field.required,
        description=field.description,
    )


# Builds the frozen dataclass that holds decoded values of a type
def build_record(name: str, fields: tuple[FieldBinding, ...], doc: str) -> type:
    columns = []
    for field in fields:
        if field.required:
            columns.append((field.name, field.hint))
        else:
            columns.append(
                (field.name, field.hint, dataclasses.field(default=ABSENT))
            )

    wire_names = {f.name: f.wire_name for f in fields if f.name != f.wire_name}

    return dataclasses.make_dataclass(
        name,
        columns,
        bases=(Object,),
        namespace={
            "__binding__": name,
            "__wire_names__": wire_names,
            "__doc__": doc,
        },
        frozen=True,
        kw_only=True,
    )


class FileTracker:
    """
    Answers "can this expression carry an InputFile", looking through
    references, arrays, unions and variants.
    """

    def __init__(self):
        self._known: dict[str, bool] = {}

    def carries_file(self, expr: TypeExpr) -> bool:
        return self._check(expr, set())

    def _check(self, expr: TypeExpr, visiting: set[str]) -> bool:
        if isinstance(expr, Primitive):
            return expr.kind == INPUT_FILE
        if isinstance(expr, ArrayOf):
            return self._check(expr.item, visiting)
        if isinstance(expr, UnionOf):
            return any(self._check(x, visiting) for x in expr.options)

        # A cycle back into a type being visited adds nothing new
        if expr.name in visiting:
            return False
        if expr.name in self._known:
            return self._known[expr.name]

        visiting.add(expr.name)
        node = expr.node
        result = any(
            self._check(f.expr, visiting) for f in node.fields
        ) or any(self._check(v, visiting) for v in node.variants)
        visiting.discard(expr.name)

        # Only a top-level answer is final, inner ones may be cut by a cycle
        if not visiting:
            self._known[expr.name] = result

        return result


def generate_type(node: TypeNode) -> GeneratedType:
    fields = tuple(bind_field(f) for f in node.fields)
    doc = "\n\n".join(node.description) or node.name

    return GeneratedType(
        name=node.name,
        fields=fields,
        variants=tuple(v.name for v in node.variants),
        node=node,
        record=build_record(node.name, fields, doc),
        description=node.description,
    )


def generate_method(
    node: MethodNode,
    tracker: FileTracker,
    registry: MappingProxyType,
) -> GeneratedMethod:
    return GeneratedMethod(
        name=node.name,
        params=tuple(bind_field(p) for p in node.params),
        returns=node.returns,
        has_attachment=any(tracker.carries_file(p.expr) for p in node.params),
        snake_name=camel_to_snake(node.name),
        description=node.description,
        registry=registry,
    )


def generate(graph: ResolvedGraph) -> Bindings:
    registry = MappingProxyType(
        {name: generate_type(node) for name, node in graph.types.items()}
    )

    tracker = FileTracker()
    methods = MappingProxyType(
        {
            name: generate_method(node, tracker, registry)
            for name, node in graph.methods.items()
        }
    )

    log.info(
        "Generated bindings for %d types and %d methods (%d with attachments)",
        len(registry),
        len(methods),
        sum(m.has_attachment for m in methods.values()),
    )

    by_snake_name = MappingProxyType(
        {m.snake_name: m for m in methods.values()}
    )

    return Bindings(
        types=registry,
        methods=methods,
        version=graph.version,
        by_snake_name=by_snake_name,
    )


def build_bindings(store: SchemaModel) -> Bindings:
    return generate(resolve(store))
