import json
import pathlib

from pydantic import BaseModel, model_validator


class FieldModel(BaseModel):
    """
    Represents a single field of a type, or a single parameter of a method.

    ``types`` is the type expression: every entry is one union candidate in
    documentation order, e.g. ``["InputFile", "String"]``. Entries may nest
    arrays as ``"Array of Array of PhotoSize"``.
    """

    name: str
    types: list[str]
    required: bool
    description: str = ""


class TypeDefinition(BaseModel):
    """
    Represents a detailed definition of a complex type, such as 'Update' in the Telegram Bot API.

    Includes the type name, reference URL to official documentation, a description,
    and a list of fields describing the structure of the type. Abstract types list
    their concrete variants in ``subtypes``.
    """

    name: str
    href: str = ""
    description: list[str] = []
    fields: list[FieldModel] = []
    subtypes: list[str] = []
    subtype_of: list[str] = []


class MethodDefinition(BaseModel):
    """
    Represents a Bot API method such as 'sendMessage'.

    ``fields`` are the method parameters and ``returns`` is the return type
    expression, with the same union semantics as ``FieldModel.types``.
    """

    name: str
    href: str = ""
    description: list[str] = []
    fields: list[FieldModel] = []
    returns: list[str]


class SchemaModel(BaseModel):
    """
    Represents the whole documentation-derived schema.

    The 'types' and 'methods' dictionaries map names to their definitions.
    Each key must match the name of the definition it points to.
    """

    version: str | None = None
    release_date: str | None = None
    changelog: str | None = None
    methods: dict[str, MethodDefinition] = {}
    types: dict[str, TypeDefinition]

    @model_validator(mode="after")
    def _check_keys(self) -> "SchemaModel":
        for registry in (self.types, self.methods):
            for key, definition in registry.items():
                if key != definition.name:
                    raise ValueError(
                        f"key {key!r} holds definition named "
                        f"{definition.name!r}"
                    )
        return self


# Loads and validates the schema document (e.g. api.min.json)
def load_schema(path: pathlib.Path) -> SchemaModel:
    with open(path, "r", encoding="utf-8") as file:
        data = json.load(file)

    return SchemaModel.model_validate(data)
