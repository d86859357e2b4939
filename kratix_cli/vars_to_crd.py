"""Turn Terraform input variables into a CRD spec schema."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

__all__ = [
    "TerraformVariable",
    "variables_to_crd_spec_schema",
    "infer_type_from_default",
    "convert_terraform_type_to_crd",
]

PRESERVE_UNKNOWN = "x-kubernetes-preserve-unknown-fields"


@dataclass
class TerraformVariable:
    """A Terraform input variable."""

    name: str
    type: str = ""
    description: str = ""
    default: Any = None


def variables_to_crd_spec_schema(
    variables: list[TerraformVariable],
) -> tuple[dict[str, Any], list[str]]:
    """Build an object schema from ``variables``; return it with any warnings."""
    properties: dict[str, Any] = {}
    warnings: list[str] = []

    for variable in variables:
        var_type = variable.type
        if not var_type:
            var_type = infer_type_from_default(variable.default)
            if not var_type:
                warnings.append(
                    f"warning: Type not set for variable {variable.name} and cannot "
                    "be inferred from the default value, skipping"
                )
                continue

        try:
            prop = convert_terraform_type_to_crd(var_type)
        except ValueError:
            warnings.append(
                f"warning: unable to automatically convert {variable.name} of type "
                f"{var_type} into CRD, skipping"
            )
            continue

        if variable.description:
            prop["description"] = variable.description
        properties[variable.name] = prop

    return {"type": "object", "properties": properties}, warnings


def infer_type_from_default(value: Any) -> str:
    """Guess a Terraform type from a default value, or return an empty string."""
    if isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, list):
        if value:
            inner = infer_type_from_default(value[0])
            if inner:
                return f"list({inner})"
        return "list"
    return ""


def convert_terraform_type_to_crd(terraform_type: str) -> dict[str, Any]:
    """Return the schema for a Terraform type; raise ValueError if unsupported."""
    terraform_type = terraform_type.strip()

    if terraform_type in ("string", "number"):
        return {"type": terraform_type}
    if terraform_type in ("bool", "boolean"):
        return {"type": "boolean"}

    if terraform_type.startswith("list("):
        try:
            items = convert_terraform_type_to_crd(_inner_type(terraform_type, "list"))
        except ValueError as exc:
            raise ValueError(f"unsupported list type: {terraform_type}") from exc
        return {"type": "array", "items": items}

    if terraform_type.startswith("map("):
        try:
            values = convert_terraform_type_to_crd(_inner_type(terraform_type, "map"))
        except ValueError:
            return {"type": "object", PRESERVE_UNKNOWN: True}
        return {"type": "object", "additionalProperties": values}

    if terraform_type.startswith("object("):
        return {"type": "object", PRESERVE_UNKNOWN: True}

    raise ValueError(f"unsupported type: {terraform_type}")


def _inner_type(terraform_type: str, container: str) -> str:
    inner = terraform_type.removeprefix(container + "(").removesuffix(")")
    return inner.strip()