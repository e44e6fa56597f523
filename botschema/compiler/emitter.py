import logging
import pathlib
import textwrap

from black import format_str, Mode

from botschema.compiler.generator import (
    Bindings,
    FieldBinding,
    GeneratedMethod,
    GeneratedType,
    build_bindings,
    camel_to_snake,
)
from botschema.compiler.model import load_schema
from botschema.compiler.resolver import (
    INPUT_FILE,
    ArrayOf,
    Primitive,
    Ref,
    TypeExpr,
    UnionOf,
)
from botschema.config import Settings, configure_logging

log = logging.getLogger(__name__)

TEMPLATE_DIR = pathlib.Path(__file__).parent / "template"

NO_INDENT = ""
FOUR_SPACE_INDENT = " " * 4

NEW_LINE = "\n"
DOUBLE_NEW_LINE = "\n\n"

HEADER_IMPORT_TYPING = "import typing"
HEADER_TYPING_CHECKING = "if typing.TYPE_CHECKING:"

WARNING = """
# # # # # # # # # # # # # # # # # # # # # # # #
#               !!! WARNING !!!               #
#          This is a generated file!          #
# All changes made in this file will be lost! #
# # # # # # # # # # # # # # # # # # # # # # # #
""".strip()

DOC_TYPES_MAP = {
    "String": "str",
    "Integer": "int",
    "Boolean": "bool",
    "Float": "float",
    "True": "True",
}


# Keeps generated docstrings syntactically valid
def escape_docstring(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')


# Generates the docstring type of an expression (for documentation only)
def generate_type_docstring(expr: TypeExpr, package: str) -> str:
    if isinstance(expr, Primitive):
        if expr.kind == INPUT_FILE:
            return ":obj:`~botschema.InputFile`"
        return f"``{DOC_TYPES_MAP[expr.kind]}``"
    if isinstance(expr, ArrayOf):
        return f"List of {generate_type_docstring(expr.item, package)}"
    if isinstance(expr, UnionOf):
        return " | ".join(
            generate_type_docstring(x, package) for x in expr.options
        )
    return f":obj:`~{package}.types.{expr.name}`"


def generate_field_type_docstring(field: FieldBinding, package: str) -> str:
    is_required = lambda x: ", *optional*" if not x else ""

    return generate_type_docstring(field.expr, package) + is_required(
        field.required
    )


# Collects the names of custom types an expression refers to
def referenced_types(expr: TypeExpr, result: set[str]) -> set[str]:
    if isinstance(expr, Ref):
        result.add(expr.name)
    elif isinstance(expr, ArrayOf):
        referenced_types(expr.item, result)
    elif isinstance(expr, UnionOf):
        for option in expr.options:
            referenced_types(option, result)
    return result


def mentions_file(expr: TypeExpr) -> bool:
    if isinstance(expr, Primitive):
        return expr.kind == INPUT_FILE
    if isinstance(expr, ArrayOf):
        return mentions_file(expr.item)
    if isinstance(expr, UnionOf):
        return any(map(mentions_file, expr.options))
    return False


# Generates required imports based on types
def generate_imports(
    fields: tuple[FieldBinding, ...], package: str, exclude: str = ""
) -> tuple[str, str]:
    result = set()

    for field in fields:
        referenced_types(field.expr, result)

    result.discard(exclude)

    if not result:
        return "", ""

    types_import_line = (
        FOUR_SPACE_INDENT
        + f"from {package}.types import "
        + ", ".join(sorted(result))
    )
    types_import_line = (
        "\n" + HEADER_TYPING_CHECKING + "\n" + types_import_line + "\n"
    )

    return "\n" + HEADER_IMPORT_TYPING + "\n", types_import_line


def generate_runtime_imports(fields: tuple[FieldBinding, ...]) -> str:
    names = ["Object"]

    if any(not f.required for f in fields):
        names += ["ABSENT", "Absent"]
    if any(mentions_file(f.expr) for f in fields):
        names.append("InputFile")

    return ", ".join(sorted(names))


# Generates the docstring section of a class or a method
def generate_docstring(
    description: tuple[str, ...],
    fields: tuple[FieldBinding, ...],
    package: str,
    indent: str = FOUR_SPACE_INDENT,
    returns: TypeExpr | None = None,
) -> str:
    item_indent = indent + FOUR_SPACE_INDENT
    text_indent = item_indent + FOUR_SPACE_INDENT

    result = ""

    for i, x in enumerate(description):
        if x.endswith("of"):
            x += ":"

        result += textwrap.fill(
            escape_docstring(x),
            initial_indent=NO_INDENT if i == 0 else indent,
            subsequent_indent=indent,
            break_long_words=False,
            break_on_hyphens=False,
        )

        # Skip last iteration
        if i == len(description) - 1:
            continue

        if x.startswith("-"):
            result += NEW_LINE
        else:
            result += DOUBLE_NEW_LINE

    if len(fields) > 0:
        result += f"\n\n{indent}Parameters:\n"

    for i, field in enumerate(fields):
        field_type = generate_field_type_docstring(field, package)
        field_header = f"{field.name} ({field_type}):"

        field_description = field.description
        if field_description.startswith("Optional."):
            field_description = field_description.replace("Optional. ", "", 1)

        result += textwrap.fill(
            field_header,
            initial_indent=item_indent,
            subsequent_indent=item_indent,
            break_long_words=False,
            break_on_hyphens=False,
        )
        result += "\n"
        result += textwrap.fill(
            escape_docstring(field_description),
            initial_indent=text_indent,
            subsequent_indent=text_indent,
            break_long_words=False,
            break_on_hyphens=False,
        )

        # Skip last iteration
        if i == len(fields) - 1:
            continue

        result += "\n\n"

    if returns is not None:
        result += f"\n\n{indent}Returns:\n"
        result += item_indent + generate_type_docstring(returns, package)

    return result


# Generates the actual class fields (attributes with type hints)
def generate_fields(fields: tuple[FieldBinding, ...]) -> str:
    result = ""

    for i, field in enumerate(fields):
        field_value = " = ABSENT" if not field.required else ""

        result += NO_INDENT if i == 0 else FOUR_SPACE_INDENT
        result += f"{field.name}: {field.hint}{field_value}"

        # Skip last iteration
        if i == len(fields) - 1:
            continue

        result += "\n"

    return result


def generate_wire_names(fields: tuple[FieldBinding, ...]) -> str:
    return repr({f.name: f.wire_name for f in fields if f.name != f.wire_name})


# Generates the imports of __init__.py
def generate_init_imports(init_data: dict[str, str]) -> str:
    result = ""

    for file_name, class_name in init_data.items():
        result += f"from .{file_name} import {class_name}\n"

    return result


# Generates a single method of the Methods mixin
def generate_method(method: GeneratedMethod, package: str) -> str:
    indent = FOUR_SPACE_INDENT * 2

    docstring = generate_docstring(
        method.description,
        method.params,
        package,
        indent=indent,
        returns=method.returns,
    )

    signature = ["self"]
    if method.params:
        signature.append("*")
    for param in method.params:
        value = " = ABSENT" if not param.required else ""
        signature.append(f"{param.name}: {param.hint}{value}")

    arguments = ", ".join(
        f'"{p.wire_name}": {p.name}' for p in method.params
    )

    return (
        f"{FOUR_SPACE_INDENT}def {method.snake_name}({', '.join(signature)})"
        f" -> APIResult:\n"
        f'{indent}"""{docstring}\n{indent}"""\n\n'
        f'{indent}return self.call("{method.name}", {{{arguments}}})\n'
    )


# Saves the generated class to file
def save_types(
    types_generated_dir: pathlib.Path,
    file_name: str,
    std_imports: str,
    runtime_imports: str,
    imports: str,
    class_name: str,
    docstring: str,
    wire_names: str,
    fields: str,
    template_file: str,
    mode: Mode,
) -> None:
    with open(types_generated_dir / f"{file_name}.py", "w") as f:
        f.write(
            format_str(
                template_file.format(
                    warning=WARNING,
                    std_imports=std_imports,
                    runtime_imports=runtime_imports,
                    imports=imports,
                    class_name=class_name,
                    docstring=docstring,
                    wire_names=wire_names,
                    fields=fields,
                ),
                mode=mode,
            )
        )


# Main function that drives generation of all type classes
def generate_types(
    bindings: Bindings,
    template_dir: pathlib.Path,
    types_generated_dir: pathlib.Path,
    package: str,
    mode: Mode,
) -> dict[str, str]:
    # Open the template file for types
    with open(template_dir / "types.txt", "r") as f:
        template_text = f.read()

    # Open the template file for __init__.py
    with open(template_dir / "init.txt", "r") as f:
        init_template_text = f.read()

    # Create directory if not exists
    types_generated_dir.mkdir(parents=True, exist_ok=True)

    # Dict file_name: class_name
    init_data = {}

    for class_name, generated in bindings.types.items():
        fields = generated.fields

        file_name = camel_to_snake(class_name)
        init_data[file_name] = class_name

        typing_import, types_import = generate_imports(
            fields, package, exclude=class_name
        )

        save_types(
            types_generated_dir,
            file_name,
            typing_import,
            generate_runtime_imports(fields),
            types_import,
            class_name,
            generate_docstring(
                describe_type(generated), fields, package
            ),
            generate_wire_names(fields),
            generate_fields(fields),
            template_text,
            mode,
        )

    # Generate __init__.py
    with open(types_generated_dir / "__init__.py", "w") as f:
        f.write(
            format_str(
                init_template_text.format(
                    warning=WARNING,
                    classes=",\n".join(
                        map(lambda x: f'"{x}"', init_data.values())
                    ),
                    imports=generate_init_imports(init_data),
                ),
                mode=mode,
            )
        )

    log.info("Wrote %d type modules to %s", len(init_data), types_generated_dir)

    return init_data


# Abstract types list their variants after the documented description
def describe_type(generated: GeneratedType) -> tuple[str, ...]:
    description = generated.description or (generated.name,)
    if generated.variants:
        description += ("It can be one of:",) + tuple(
            f"- {variant}" for variant in generated.variants
        )
    return description


def generate_methods(
    bindings: Bindings,
    template_dir: pathlib.Path,
    methods_file: pathlib.Path,
    package: str,
    mode: Mode,
) -> None:
    with open(template_dir / "methods.txt", "r") as f:
        template_text = f.read()

    params = tuple(p for m in bindings.methods.values() for p in m.params)

    _, types_import = generate_imports(params, package)

    methods = "\n".join(
        generate_method(m, package) for m in bindings.methods.values()
    )

    methods_file.parent.mkdir(parents=True, exist_ok=True)

    with open(methods_file, "w") as f:
        f.write(
            format_str(
                template_text.format(
                    warning=WARNING,
                    imports=types_import,
                    methods=methods or f"{FOUR_SPACE_INDENT}pass\n",
                ),
                mode=mode,
            )
        )

    log.info("Wrote %d methods to %s", len(bindings.methods), methods_file)


def emit(bindings: Bindings, settings: Settings) -> None:
    mode = Mode(line_length=settings.line_length)

    generate_types(
        bindings,
        TEMPLATE_DIR,
        settings.output_dir / "types",
        settings.package,
        mode,
    )
    generate_methods(
        bindings,
        TEMPLATE_DIR,
        settings.output_dir / "methods.py",
        settings.package,
        mode,
    )

    init_file = settings.output_dir / "__init__.py"
    if not init_file.exists():
        init_file.write_text(f"{WARNING}\n")


def _main():
    settings = Settings()
    configure_logging(settings)

    # Validate the loaded specification using the SchemaModel
    validated_model = load_schema(settings.schema_path)
    emit(build_bindings(validated_model), settings)


if __name__ == "__main__":
    _main()
