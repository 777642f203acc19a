"""
Read webpack and RequireJS configuration files without running JavaScript.

The file is parsed with tree-sitter and the exported value is evaluated as a
literal. Objects, arrays, strings, numbers, booleans, ``__dirname``,
``path.join``/``path.resolve``, string concatenation, top-level constants
and functions returning an object are understood. Anything else evaluates
to ``None``.
"""

import codecs
import os
from typing import Any, Optional

import tree_sitter as ts

from cabinet.errors import ConfigReadError
from cabinet.helpers import read_jsonc
from cabinet.module_type import parse_source

_MAX_DEPTH = 64


class JsFunction:
    """A function-valued export; calling it evaluates what it returns."""

    def __init__(self, evaluator: "_LiteralEvaluator", node: ts.Node, scope: dict):
        self._evaluator = evaluator
        self._node = node
        self._scope = scope

    def __call__(self, *args: Any) -> Any:
        return self._evaluator.call(self._node, self._scope)

    def __repr__(self) -> str:
        return f"JsFunction({self._node.type})"


def _text(node: ts.Node) -> str:
    return node.text.decode("utf8") if node.text else ""


def _string_value(node: ts.Node) -> Optional[str]:
    out: list[str] = []
    for child in node.children:
        if child.type in ("string_fragment", "template_chars"):
            out.append(_text(child))
        elif child.type == "escape_sequence":
            out.append(codecs.decode(_text(child), "unicode_escape"))
        elif child.type == "template_substitution":
            return None
    return "".join(out)


def _number_value(raw: str) -> int | float | None:
    raw = raw.replace("_", "")
    try:
        return int(raw, 0)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return None


def _declarations(statements: list[ts.Node]) -> dict[str, ts.Node]:
    found: dict[str, ts.Node] = {}
    for stmt in statements:
        if stmt.type == "function_declaration":
            name = stmt.child_by_field_name("name")
            if name is not None:
                found[_text(name)] = stmt
            continue
        if stmt.type not in ("lexical_declaration", "variable_declaration"):
            continue
        for decl in stmt.named_children:
            if decl.type != "variable_declarator":
                continue
            name = decl.child_by_field_name("name")
            value = decl.child_by_field_name("value")
            if name is not None and name.type == "identifier" and value is not None:
                found[_text(name)] = value
    return found


class _LiteralEvaluator:
    def __init__(self, root: ts.Node, filename: str):
        self.filename = os.path.abspath(filename)
        self.dirname = os.path.dirname(self.filename)
        self.globals = _declarations(root.named_children)
        self._depth = 0

    # ------------------------------------------------------------------ #
    def eval(self, node: Optional[ts.Node], scope: Optional[dict] = None) -> Any:
        if node is None:
            return None
        scope = self.globals if scope is None else scope
        self._depth += 1
        try:
            if self._depth > _MAX_DEPTH:
                return None
            return self._eval(node, scope)
        finally:
            self._depth -= 1

    def _eval(self, node: ts.Node, scope: dict) -> Any:
        kind = node.type

        if kind in ("string", "template_string"):
            return _string_value(node)
        if kind == "number":
            return _number_value(_text(node))
        if kind == "true":
            return True
        if kind == "false":
            return False
        if kind in ("null", "undefined"):
            return None
        if kind == "parenthesized_expression":
            inner = node.named_children
            return self.eval(inner[-1], scope) if inner else None
        if kind == "object":
            return self._object(node, scope)
        if kind == "array":
            return [self.eval(c, scope) for c in node.named_children if c.type != "comment"]
        if kind == "identifier":
            return self._identifier(_text(node), scope)
        if kind in ("arrow_function", "function_expression", "function", "function_declaration"):
            return JsFunction(self, node, scope)
        if kind == "binary_expression":
            return self._binary(node, scope)
        if kind == "unary_expression":
            return self._unary(node, scope)
        if kind == "member_expression":
            obj = self.eval(node.child_by_field_name("object"), scope)
            prop = node.child_by_field_name("property")
            if isinstance(obj, dict) and prop is not None:
                return obj.get(_text(prop))
            return None
        if kind == "call_expression":
            return self._call_expression(node, scope)
        return None

    def _object(self, node: ts.Node, scope: dict) -> dict:
        out: dict[str, Any] = {}
        for child in node.named_children:
            if child.type == "pair":
                key_node = child.child_by_field_name("key")
                if key_node is None:
                    continue
                if key_node.type in ("string", "template_string"):
                    key = _string_value(key_node)
                elif key_node.type == "computed_property_name":
                    inner = key_node.named_children
                    key = self.eval(inner[0], scope) if inner else None
                else:
                    key = _text(key_node)
                if key is None:
                    continue
                out[str(key)] = self.eval(child.child_by_field_name("value"), scope)
            elif child.type == "shorthand_property_identifier":
                name = _text(child)
                out[name] = self._identifier(name, scope)
            elif child.type == "spread_element":
                inner = child.named_children
                spread = self.eval(inner[0], scope) if inner else None
                if isinstance(spread, dict):
                    out.update(spread)
        return out

    def _identifier(self, name: str, scope: dict) -> Any:
        if name == "__dirname":
            return self.dirname
        if name == "__filename":
            return self.filename
        value = scope.get(name, self.globals.get(name))
        if isinstance(value, ts.Node):
            return self.eval(value, scope)
        return value

    def _binary(self, node: ts.Node, scope: dict) -> Any:
        op = node.child_by_field_name("operator")
        left = self.eval(node.child_by_field_name("left"), scope)
        right = self.eval(node.child_by_field_name("right"), scope)
        if op is not None and op.type == "+":
            if isinstance(left, str) and isinstance(right, (str, int, float)):
                return left + str(right)
            if isinstance(left, (int, float)) and isinstance(right, (int, float)):
                return left + right
        if op is not None and op.type == "||":
            return left or right
        return None

    def _unary(self, node: ts.Node, scope: dict) -> Any:
        op = node.child_by_field_name("operator")
        value = self.eval(node.child_by_field_name("argument"), scope)
        if op is not None and op.type == "-" and isinstance(value, (int, float)):
            return -value
        if op is not None and op.type == "!":
            return not value
        return None

    def _call_expression(self, node: ts.Node, scope: dict) -> Any:
        fn = node.child_by_field_name("function")
        args_node = node.child_by_field_name("arguments")
        args = [self.eval(a, scope) for a in args_node.named_children] if args_node else []

        if fn is not None and fn.type == "member_expression":
            obj = fn.child_by_field_name("object")
            prop = fn.child_by_field_name("property")
            if obj is not None and _text(obj) == "path" and prop is not None:
                if not all(isinstance(a, str) for a in args):
                    return None
                if _text(prop) == "join":
                    return os.path.normpath(os.path.join(*args)) if args else "."
                if _text(prop) == "resolve":
                    return os.path.normpath(os.path.join(os.getcwd(), *args))
            return None

        callee = self.eval(fn, scope)
        if isinstance(callee, JsFunction):
            return callee(*args)
        return None

    # ------------------------------------------------------------------ #
    def call(self, fn: ts.Node, scope: dict) -> Any:
        body = fn.child_by_field_name("body")
        if body is None:
            return None
        if body.type != "statement_block":
            return self.eval(body, scope)
        local = dict(scope)
        local.update(_declarations(body.named_children))
        for stmt in body.named_children:
            if stmt.type == "return_statement":
                value = stmt.named_children
                return self.eval(value[0], local) if value else None
        return None


# ---------------------------------------------------------------------- #
# Export discovery
# ---------------------------------------------------------------------- #
def _is_module_exports(left: Optional[ts.Node]) -> bool:
    if left is None or left.type != "member_expression":
        return False
    obj = left.child_by_field_name("object")
    prop = left.child_by_field_name("property")
    return obj is not None and _text(obj) == "module" and prop is not None and _text(prop) == "exports"


def _find_module_exports(root: ts.Node) -> Optional[ts.Node]:
    for stmt in root.named_children:
        if stmt.type == "expression_statement" and stmt.named_children:
            expr = stmt.named_children[0]
            if expr.type == "assignment_expression" and _is_module_exports(expr.child_by_field_name("left")):
                return expr.child_by_field_name("right")
        elif stmt.type == "export_statement" and any(c.type == "default" for c in stmt.children):
            value = stmt.child_by_field_name("value") or stmt.child_by_field_name("declaration")
            if value is not None:
                return value
    return None


def _find_requirejs_config(root: ts.Node) -> Optional[ts.Node]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "call_expression":
            fn = node.child_by_field_name("function")
            args = node.child_by_field_name("arguments")
            first = args.named_children[0] if args is not None and args.named_children else None
            if fn is not None and first is not None and first.type == "object":
                name = _text(fn)
                if name in ("require.config", "requirejs.config", "requirejs", "require"):
                    return first
        stack.extend(reversed(node.named_children))

    # var require = { ... }
    value = _declarations(root.named_children).get("require")
    if value is not None and value.type == "object":
        return value
    return None


def _parse(path: str) -> tuple[ts.Node, _LiteralEvaluator]:
    try:
        with open(path, "rb") as f:
            source = f.read()
    except OSError as exc:
        raise ConfigReadError(path, str(exc)) from exc
    root = parse_source(source, path).root_node
    return root, _LiteralEvaluator(root, path)


def read_module_exports(path: str) -> Any:
    """
    Value exported by a CommonJS/ES module config file (e.g. webpack.config.js).

    JSON files are read as JSON. Function exports come back as a callable.
    """
    if path.endswith(".json"):
        try:
            return read_jsonc(path)
        except (OSError, ValueError) as exc:
            raise ConfigReadError(path, str(exc)) from exc

    root, evaluator = _parse(path)
    node = _find_module_exports(root)
    if node is None:
        raise ConfigReadError(path, "no module.exports or default export found")
    return evaluator.eval(node)


def read_requirejs_config(path: str) -> dict:
    """The object passed to ``requirejs.config(...)`` (or exported) in *path*."""
    if path.endswith(".json"):
        try:
            value = read_jsonc(path)
        except (OSError, ValueError) as exc:
            raise ConfigReadError(path, str(exc)) from exc
    else:
        root, evaluator = _parse(path)
        node = _find_requirejs_config(root) or _find_module_exports(root)
        if node is None:
            raise ConfigReadError(path, "no RequireJS configuration found")
        value = evaluator.eval(node)
        if isinstance(value, JsFunction):
            value = value()

    if not isinstance(value, dict):
        raise ConfigReadError(path, "configuration is not an object")
    return value
