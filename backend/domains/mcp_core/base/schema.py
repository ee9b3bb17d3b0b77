"""
参数校验

按 JSON Schema 的 required 和基本类型做轻量校验，
工具的 inputSchema 与 Prompt 参数共用。
"""

from typing import Any

# JSON Schema 类型 -> (Python 类型, 错误描述)
_TYPE_CHECKS: dict[str, tuple[tuple[type, ...], str]] = {
    "string": ((str,), "a string"),
    "integer": ((int,), "an integer"),
    "number": ((int, float), "a number"),
    "boolean": ((bool,), "a boolean"),
    "array": ((list,), "an array"),
    "object": ((dict,), "an object"),
}


def type_error(field_name: str, expected_type: str, value: Any) -> str | None:
    """检查单个值的类型，返回错误信息或 None"""
    check = _TYPE_CHECKS.get(expected_type)
    if check is None:
        return None

    python_types, label = check
    # bool 是 int 的子类，数字类型需排除
    if expected_type in ("integer", "number") and isinstance(value, bool):
        return f"Argument '{field_name}' must be {label}"
    if not isinstance(value, python_types):
        return f"Argument '{field_name}' must be {label}"
    return None


def validate_arguments(schema: dict[str, Any], arguments: dict[str, Any]) -> str | None:
    """
    按 schema 校验参数

    Args:
        schema: JSON Schema（object 类型）
        arguments: 输入参数

    Returns:
        第一个错误的描述，None 表示校验通过
    """
    for field_name in schema.get("required", []):
        if field_name not in arguments:
            return f"Missing required argument: {field_name}"

    properties = schema.get("properties", {})
    for field_name, value in arguments.items():
        prop_schema = properties.get(field_name)
        if prop_schema is None:
            continue
        error = type_error(field_name, prop_schema.get("type", ""), value)
        if error:
            return error

    return None
