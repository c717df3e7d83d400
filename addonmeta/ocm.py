"""Add-on parameter, requirement and sub-operator types shared with OCM."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AddOnParameterValueType(str, Enum):
    """Known value types of an add-on parameter."""

    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    CIDR = "cidr"
    RESOURCE = "resource"


class AddOnRequirementResourceType(str, Enum):
    """Known resource kinds an add-on requirement may refer to."""

    CLUSTER = "cluster"
    ADDON = "addon"
    MACHINE_POOL = "machine_pool"


def _mapping(data: Any, owner: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise TypeError(f"{owner}: expected a mapping, got {type(data).__name__}")
    return data


def _scalar(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise TypeError(
            f"field {key!r}: expected {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _strings(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise TypeError(f"field {key!r}: expected a list of strings")
    return list(value)


def _objects(data: Mapping[str, Any], key: str, cls: Any) -> list[Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise TypeError(f"field {key!r}: expected a list, got {type(value).__name__}")
    return [cls.from_dict(item) for item in value]


def _requirement_data(data: Mapping[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TypeError(f"field {key!r}: expected a mapping, got {type(value).__name__}")
    return {str(k): copy.deepcopy(v) for k, v in value.items()}


def _enum_or_str(enum_cls: type[Enum], value: str) -> Enum | str:
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _enum_value(value: Enum | str) -> str:
    return value.value if isinstance(value, Enum) else value


def _dump_list(items: list[Any] | None) -> list[dict[str, Any]] | None:
    return None if items is None else [item.to_dict() for item in items]


@dataclass
class AddOnParameterOption:
    """A selectable option of an add-on parameter."""

    name: str = ""
    value: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> AddOnParameterOption:
        data = _mapping(data, cls.__name__)
        return cls(
            name=_scalar(data, "name", str, ""),
            value=_scalar(data, "value", str, ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value}


@dataclass
class AddOnResourceRequirementStatus:
    """Fulfilment state of a resource requirement."""

    fulfilled: bool | None = None
    error_msgs: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> AddOnResourceRequirementStatus:
        data = _mapping(data, cls.__name__)
        return cls(
            fulfilled=_scalar(data, "fulfilled", bool, None),
            error_msgs=_strings(data, "error_msgs"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"fulfilled": self.fulfilled, "error_msgs": list(self.error_msgs)}


@dataclass
class AddOnResourceRequirement:
    """A condition on a resource that a parameter depends on."""

    resource: AddOnRequirementResourceType | str = ""
    data: dict[str, Any] = field(default_factory=dict)
    status: AddOnResourceRequirementStatus | None = None

    @classmethod
    def from_dict(cls, data: Any) -> AddOnResourceRequirement:
        data = _mapping(data, cls.__name__)
        status = data.get("status")
        return cls(
            resource=_enum_or_str(
                AddOnRequirementResourceType, _scalar(data, "resource", str, "")
            ),
            data=_requirement_data(data, "data"),
            status=None
            if status is None
            else AddOnResourceRequirementStatus.from_dict(status),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource": _enum_value(self.resource),
            "data": copy.deepcopy(self.data),
            "status": None if self.status is None else self.status.to_dict(),
        }


@dataclass
class AddOnParameter:
    """A user-configurable parameter of an add-on."""

    id: str = ""
    name: str = ""
    description: str = ""
    value_type: AddOnParameterValueType | str = ""
    validation: str | None = None
    required: bool = False
    validation_err_msg: str | None = None
    editable: bool = False
    enabled: bool = False
    default_value: str | None = None
    order: int | None = None
    options: list[AddOnParameterOption] | None = None
    conditions: list[AddOnResourceRequirement] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> AddOnParameter:
        data = _mapping(data, cls.__name__)
        return cls(
            id=_scalar(data, "id", str, ""),
            name=_scalar(data, "name", str, ""),
            description=_scalar(data, "description", str, ""),
            value_type=_enum_or_str(
                AddOnParameterValueType, _scalar(data, "value_type", str, "")
            ),
            validation=_scalar(data, "validation", str, None),
            required=_scalar(data, "required", bool, False),
            validation_err_msg=_scalar(data, "validation_err_msg", str, None),
            editable=_scalar(data, "editable", bool, False),
            enabled=_scalar(data, "enabled", bool, False),
            default_value=_scalar(data, "default_value", str, None),
            order=_scalar(data, "order", int, None),
            options=_objects(data, "options", AddOnParameterOption),
            conditions=_objects(data, "conditions", AddOnResourceRequirement),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "value_type": _enum_value(self.value_type),
            "validation": self.validation,
            "required": self.required,
            "validation_err_msg": self.validation_err_msg,
            "editable": self.editable,
            "enabled": self.enabled,
            "default_value": self.default_value,
            "order": self.order,
            "options": _dump_list(self.options),
            "conditions": _dump_list(self.conditions),
        }


@dataclass
class AddOnRequirement:
    """A requirement that must hold before an add-on can be installed."""

    id: str = ""
    resource: AddOnRequirementResourceType | str = ""
    data: dict[str, Any] = field(default_factory=dict)
    status: AddOnResourceRequirementStatus | None = None
    enabled: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> AddOnRequirement:
        data = _mapping(data, cls.__name__)
        status = data.get("status")
        return cls(
            id=_scalar(data, "id", str, ""),
            resource=_enum_or_str(
                AddOnRequirementResourceType, _scalar(data, "resource", str, "")
            ),
            data=_requirement_data(data, "data"),
            status=None
            if status is None
            else AddOnResourceRequirementStatus.from_dict(status),
            enabled=_scalar(data, "enabled", bool, False),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "resource": _enum_value(self.resource),
            "data": copy.deepcopy(self.data),
            "status": None if self.status is None else self.status.to_dict(),
            "enabled": self.enabled,
        }


@dataclass
class AddOnSubOperator:
    """An operator whose life cycle is driven by the add-on's main operator."""

    operator_name: str = ""
    operator_namespace: str = ""
    enabled: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> AddOnSubOperator:
        data = _mapping(data, cls.__name__)
        return cls(
            operator_name=_scalar(data, "operator_name", str, ""),
            operator_namespace=_scalar(data, "operator_namespace", str, ""),
            enabled=_scalar(data, "enabled", bool, False),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "operator_name": self.operator_name,
            "operator_namespace": self.operator_namespace,
            "enabled": self.enabled,
        }