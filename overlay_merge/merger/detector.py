"""
Augmentation detection.

Decides whether an overlay symbol wraps (augments) or replaces its baseline
counterpart, and reads merge annotations from leading comments.

The call-through checks are purely textual: a marker mentioned inside a
comment or string literal counts as a call-through. The verdict is taken as
authoritative by the resolvers.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from enum import Enum

import libcst as cst

from .indexer import Declaration, ImportedName, dotted_name, property_annotation


class Intent(str, Enum):
    """How an overlay symbol relates to its baseline counterpart."""

    AUGMENT = "augment"
    REPLACE = "replace"


class Annotation(str, Enum):
    """Directives recognised in overlay leading comments."""

    REMOVE = "remove"


def _method_call_through(name: str, marker: str) -> re.Pattern:
    return re.compile(rf"\b(self|cls)\.{re.escape(marker)}\.{re.escape(name)}\b")


def is_augmenting_method(body_code: str, name: str, marker: str) -> bool:
    """True if a method body calls through ``self.<marker>.<name>``."""
    return _method_call_through(name, marker).search(body_code) is not None


def is_augmenting_function(body_code: str, name: str, hidden_prefix: str) -> bool:
    """True if a function body references the hidden original ``<prefix><name>``."""
    pattern = rf"(?<![\w.]){re.escape(hidden_prefix + name)}\b"
    return re.search(pattern, body_code) is not None


def rewrite_call_through(body_code: str, name: str, marker: str, hidden_prefix: str) -> str:
    """Turn ``self.<marker>.<name>`` into ``self.<prefix><name>``."""
    hidden = hidden_prefix + name
    return _method_call_through(name, marker).sub(lambda m: f"{m.group(1)}.{hidden}", body_code)


def parse_annotation(comments: Sequence[str], prefix: str) -> Annotation | None:
    """Read the directive of the first leading comment line, if it carries one."""
    if not comments:
        return None
    match = re.match(rf"#\s*{re.escape(prefix)}-(\w+)", comments[0].strip())
    if match is None:
        return None
    try:
        return Annotation(match.group(1).lower())
    except ValueError:
        return None


def group_body_code(declaration: Declaration, module: cst.Module) -> str:
    """Source of the bodies of every implementation in a function group."""
    return "\n".join(module.code_for_node(node.body) for node in declaration.implementations)


def classify_function(declaration: Declaration, module: cst.Module, hidden_prefix: str) -> Intent:
    if is_augmenting_function(group_body_code(declaration, module), declaration.name, hidden_prefix):
        return Intent.AUGMENT
    return Intent.REPLACE


def classify_method(declaration: Declaration, module: cst.Module, marker: str) -> Intent:
    if is_augmenting_method(group_body_code(declaration, module), declaration.name, marker):
        return Intent.AUGMENT
    return Intent.REPLACE


def _annotation_type_name(annotation: cst.BaseExpression) -> str:
    if isinstance(annotation, cst.SimpleString):
        return str(annotation.evaluated_value).strip().rpartition(".")[2]
    return dotted_name(annotation).rpartition(".")[2]


def is_augmented_class(
    overlay_class: cst.ClassDef,
    properties: Mapping[str, Declaration],
    imports: Mapping[str, ImportedName],
    marker: str,
) -> bool:
    """True if the class declares the marker field typed as its generated counterpart.

    The annotation may name the class directly or through an import alias,
    e.g. ``from generated.models import Pet as _Pet``.
    """
    declaration = properties.get(marker)
    if declaration is None:
        return False
    annotation = property_annotation(declaration.first)
    if annotation is None:
        return False
    type_name = _annotation_type_name(annotation)
    class_name = overlay_class.name.value
    if type_name == class_name:
        return True
    imported = imports.get(type_name)
    return imported is not None and imported.imported_name.rpartition(".")[2] == class_name
