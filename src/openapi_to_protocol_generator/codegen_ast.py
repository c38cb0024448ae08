"""AST-based rendering of contract classes and client interface Protocols.

Rendered code is unflattened: bases, config calls and annotations reference
``pydantic.*`` and ``typing.*`` fully qualified. Import statements are added by
the caller once the whole unit is known.
"""

from __future__ import annotations

import ast
from collections.abc import Sequence
from typing import Optional

from .model_types import FieldDef, JSONValue, MethodDef, ModelDef, ParameterDef

_INDENT = "    "


def render_contract_classes(models: Sequence[ModelDef]) -> str:
    """Render contract model definitions as pydantic class declarations.

    Args:
        models (Sequence[ModelDef]): Contract model definitions in emission order.

    Returns:
        str: Class declarations separated by blank lines, without imports.
    """
    return _unparse_all([_model_to_ast(model) for model in models])


def render_protocol_class(
    *,
    name: str,
    docstring: Optional[str],
    methods: Sequence[MethodDef],
) -> str:
    """Render one client interface as a ``typing.Protocol`` class.

    An interface without methods still renders as a valid class body.

    Args:
        name (str): Interface class name.
        docstring (Optional[str]): Class docstring.
        methods (Sequence[MethodDef]): Method stubs in emission order.

    Returns:
        str: Python source of the class declaration.
    """
    class_body: list[ast.stmt] = []
    if docstring:
        class_body.append(_docstring_expr(docstring, depth=1))
    class_body.extend(_method_to_ast(method) for method in methods)
    if not class_body:
        class_body.append(ast.Pass())

    class_def = ast.ClassDef(
        name=name,
        bases=[_expr("typing.Protocol")],
        keywords=[],
        body=class_body,
        decorator_list=[],
        type_params=[],
    )
    return _unparse_all([class_def])


def render_module_docstring(text: str) -> str:
    """Render a module docstring, escaping quotes and backslashes in ``text``."""
    module = ast.Module(body=[_docstring_expr(text, depth=0)], type_ignores=[])
    return ast.unparse(module)


def _unparse_all(nodes: list[ast.stmt]) -> str:
    rendered: list[str] = []
    for node in nodes:
        module = ast.Module(body=[node], type_ignores=[])
        ast.fix_missing_locations(module)
        rendered.append(ast.unparse(module))
    return "\n\n\n".join(rendered)


def _model_to_ast(model: ModelDef) -> ast.ClassDef:
    class_body: list[ast.stmt] = []
    if model.docstring:
        class_body.append(_docstring_expr(model.docstring, depth=1))

    config_keywords: list[ast.keyword] = []
    if model.extra_behavior and not model.is_root:
        config_keywords.append(
            ast.keyword(arg="extra", value=ast.Constant(value=model.extra_behavior))
        )
    if model.frozen:
        config_keywords.append(ast.keyword(arg="frozen", value=ast.Constant(value=True)))
    if config_keywords:
        class_body.append(
            ast.Assign(
                targets=[ast.Name(id="model_config", ctx=ast.Store())],
                value=ast.Call(
                    func=_expr("pydantic.ConfigDict"),
                    args=[],
                    keywords=config_keywords,
                ),
            )
        )

    if model.is_root:
        if model.root_annotation is None:
            raise ValueError(f"Root model {model.name} missing annotation")
        class_body.append(
            ast.AnnAssign(
                target=ast.Name(id="root", ctx=ast.Store()),
                annotation=_expr(model.root_annotation),
                value=None,
                simple=1,
            )
        )
        base = _expr("pydantic.RootModel")
    else:
        class_body.extend(_field_to_ast(field) for field in model.fields)
        base = _expr("pydantic.BaseModel")

    if not class_body:
        class_body.append(ast.Pass())

    return ast.ClassDef(
        name=model.name,
        bases=[base],
        keywords=[],
        body=class_body,
        decorator_list=[],
        type_params=[],
    )


def _field_to_ast(field: FieldDef) -> ast.AnnAssign:
    keywords: list[ast.keyword] = []
    if field.source_name != field.name:
        keywords.append(ast.keyword(arg="alias", value=ast.Constant(value=field.source_name)))
    if field.description:
        keywords.append(
            ast.keyword(arg="description", value=ast.Constant(value=field.description))
        )

    if field.required:
        default_value: ast.expr = ast.Constant(value=Ellipsis)
    else:
        default_value = _value_expr(field.default)

    return ast.AnnAssign(
        target=ast.Name(id=field.name, ctx=ast.Store()),
        annotation=_expr(field.annotation),
        value=ast.Call(func=_expr("pydantic.Field"), args=[default_value], keywords=keywords),
        simple=1,
    )


def _method_to_ast(method: MethodDef) -> ast.stmt:
    positional = [ast.arg(arg="self")]
    defaults: list[ast.expr] = []
    for parameter in method.parameters:
        positional.append(_parameter_to_arg(parameter))
        if parameter.has_default:
            defaults.append(ast.Constant(value=None))

    body: list[ast.stmt] = []
    if method.docstring:
        body.append(_docstring_expr(method.docstring, depth=2))
    body.append(ast.Expr(value=ast.Constant(value=Ellipsis)))

    arguments = ast.arguments(
        posonlyargs=[],
        args=positional,
        vararg=None,
        kwonlyargs=[],
        kw_defaults=[],
        kwarg=None,
        defaults=defaults,
    )
    function_type = ast.AsyncFunctionDef if method.is_async else ast.FunctionDef
    return function_type(
        name=method.name,
        args=arguments,
        body=body,
        decorator_list=[],
        returns=_expr(method.return_annotation),
        type_params=[],
    )


def _parameter_to_arg(parameter: ParameterDef) -> ast.arg:
    return ast.arg(arg=parameter.name, annotation=_expr(parameter.annotation))


def _docstring_expr(text: str, *, depth: int) -> ast.Expr:
    # ast.unparse writes docstrings verbatim, so continuation lines carry
    # the indentation of the body they belong to.
    lines = text.strip().splitlines()
    indent = _INDENT * depth
    if len(lines) > 1:
        continued = [lines[0], *(f"{indent}{line}" if line.strip() else "" for line in lines[1:])]
        value = "\n".join(continued) + f"\n{indent}"
    else:
        value = lines[0] if lines else ""
    return ast.Expr(value=ast.Constant(value=value))


def _expr(code: str) -> ast.expr:
    parsed = ast.parse(code, mode="eval")
    return parsed.body


def _value_expr(value: Optional[JSONValue]) -> ast.expr:
    parsed = ast.parse(repr(value), mode="eval")
    return parsed.body
