"""
Static detection of the module system a JavaScript-family file uses.

The file (or a tree the caller already parsed) is walked in document order
and the first decisive construct wins:

* ``define(...)`` or ``require([...], cb)``      -> amd
* ``module.exports = ...`` / ``exports.x = ...`` -> commonjs
* ``import`` / ``export`` / ``import(...)``      -> es6

A plain ``require('x')`` call only counts as commonjs when nothing decisive
was found.
"""

import os
from typing import Any

import tree_sitter as ts
import tree_sitter_javascript as tsjs
import tree_sitter_typescript as tsts

from cabinet.models import ModuleType
from cabinet.logger import CabinetLogger as logger

# ---------------------------------------------------------------------- #
JS_LANGUAGE = ts.Language(tsjs.language())
TS_LANGUAGE = ts.Language(tsts.language_typescript())
TSX_LANGUAGE = ts.Language(tsts.language_tsx())

_LANGUAGE_BY_EXT = {
    ".ts": TS_LANGUAGE,
    ".mts": TS_LANGUAGE,
    ".cts": TS_LANGUAGE,
    ".tsx": TSX_LANGUAGE,
}

_parsers: dict[int, ts.Parser] = {}


def _get_parser(language: ts.Language) -> ts.Parser:
    key = id(language)
    parser = _parsers.get(key)
    if parser is None:
        parser = _parsers[key] = ts.Parser(language)
    return parser
# ---------------------------------------------------------------------- #


def parse_source(source: bytes | str, filename: str = "") -> ts.Tree:
    """Parse *source* with the grammar matching *filename*'s extension."""
    if isinstance(source, str):
        source = source.encode("utf8")
    language = _LANGUAGE_BY_EXT.get(os.path.splitext(filename)[1], JS_LANGUAGE)
    return _get_parser(language).parse(source)


def _is_identifier(node: ts.Node | None, name: bytes) -> bool:
    return node is not None and node.type == "identifier" and node.text == name


def _first_argument(call: ts.Node) -> ts.Node | None:
    args = call.child_by_field_name("arguments")
    if args is None or not args.named_children:
        return None
    return args.named_children[0]


def _is_exports_target(left: ts.Node | None) -> bool:
    while left is not None and left.type == "member_expression":
        obj = left.child_by_field_name("object")
        prop = left.child_by_field_name("property")
        if _is_identifier(obj, b"module") and prop is not None and prop.text == b"exports":
            return True
        if _is_identifier(obj, b"exports"):
            return True
        left = obj
    return False


class ModuleTypeClassifier:
    """Classifies sources as amd / commonjs / es6 / none."""

    def from_source(self, source: Any) -> ModuleType:
        """
        Classify a tree-sitter ``Tree``/``Node`` or raw source text.
        """
        if isinstance(source, (bytes, str)):
            source = parse_source(source)
        root = getattr(source, "root_node", source)

        has_require = False
        stack = [root]
        while stack:
            node = stack.pop()
            kind = node.type

            if kind in ("import_statement", "export_statement"):
                return ModuleType.ES6

            if kind == "call_expression":
                fn = node.child_by_field_name("function")
                if _is_identifier(fn, b"define"):
                    return ModuleType.AMD
                if fn is not None and fn.type == "import":
                    return ModuleType.ES6
                if _is_identifier(fn, b"require"):
                    first = _first_argument(node)
                    if first is not None and first.type == "array":
                        return ModuleType.AMD
                    has_require = True

            elif kind == "assignment_expression":
                if _is_exports_target(node.child_by_field_name("left")):
                    return ModuleType.COMMONJS

            stack.extend(reversed(node.children))

        return ModuleType.COMMONJS if has_require else ModuleType.NONE

    def from_file(self, filename: str) -> ModuleType:
        """Read and classify *filename*; I/O errors propagate."""
        with open(filename, "rb") as f:
            source = f.read()
        tree = parse_source(source, filename)
        module_type = self.from_source(tree)
        logger.debug("module type detected", filename=filename, type=module_type.value)
        return module_type
