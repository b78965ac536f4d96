"""
Node Type System - Definitions and registry for node types.

This module defines how node types are specified:
- InputDefinition: Describes an input port
- OutputDefinition: Describes an output port
- ParameterDefinition: Describes a configurable parameter
- NodeType: Complete definition of a node type (the catalog entry)
- NodeRegistry: Global registry of available node types
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol, runtime_checkable

from node_studio.core.data_types import DataType, ParameterValue


class ParameterType(Enum):
    """Types of node parameters (determines UI widget)."""
    INTEGER = "integer"         # Integer spinner
    FLOAT = "float"             # Float spinner
    SLIDER = "slider"           # Slider with range
    ENUM = "enum"               # Dropdown
    COLOR = "color"             # Color picker
    SEED = "seed"               # Seed input


class NodeCategory(Enum):
    """Categories for organizing nodes in the library."""
    GENERATOR = "generator"
    COMPOSITE = "composite"
    OUTPUT = "output"


@dataclass
class InputDefinition:
    """
    Definition of an input port on a node.

    Attributes:
        name: Port identifier (used as the edge endpoint)
        label: Display label in UI
        data_type: Type of data accepted
        required: If False, the node computes a fallback when unconnected
    """
    name: str
    label: str
    data_type: DataType = DataType.IMAGE
    required: bool = False
    description: str = ""


@dataclass
class OutputDefinition:
    """
    Definition of an output port on a node.

    Attributes:
        name: Port identifier (used as the edge endpoint)
        label: Display label in UI
        data_type: Type of data produced
    """
    name: str
    label: str
    data_type: DataType = DataType.IMAGE
    description: str = ""


@dataclass
class EnumOption:
    """A single option in an enum parameter."""
    value: str
    label: str
    description: str = ""


@dataclass
class ParameterDefinition:
    """
    Definition of a configurable parameter on a node.

    Parameters are user-editable values that affect node behavior.
    Unlike inputs, they don't come from connections. The min/max/options
    describe the editor range and are enforced by ``coerce``.

    Attributes:
        name: Parameter identifier
        label: Display label
        param_type: Type of parameter (determines widget)
        default: Default value
        min_value: Minimum value (for numeric types)
        max_value: Maximum value (for numeric types)
        step: Step size (for numeric types)
        options: List of options (for enum type)
        description: Tooltip/description text
    """
    name: str
    label: str
    param_type: ParameterType
    default: ParameterValue = None
    min_value: float | None = None
    max_value: float | None = None
    step: float | None = None
    options: list[EnumOption] = field(default_factory=list)
    description: str = ""

    @classmethod
    def integer(
        cls,
        name: str,
        label: str,
        default: int = 0,
        min_value: int | None = None,
        max_value: int | None = None,
        description: str = "",
    ) -> ParameterDefinition:
        """Factory for integer parameter."""
        return cls(
            name=name,
            label=label,
            param_type=ParameterType.INTEGER,
            default=default,
            min_value=min_value,
            max_value=max_value,
            step=1,
            description=description,
        )

    @classmethod
    def slider(
        cls,
        name: str,
        label: str,
        default: float = 0.5,
        min_value: float = 0.0,
        max_value: float = 1.0,
        step: float = 0.01,
        description: str = "",
    ) -> ParameterDefinition:
        """Factory for slider parameter."""
        return cls(
            name=name,
            label=label,
            param_type=ParameterType.SLIDER,
            default=default,
            min_value=min_value,
            max_value=max_value,
            step=step,
            description=description,
        )

    @classmethod
    def enum(
        cls,
        name: str,
        label: str,
        options: list[tuple[str, str]],  # [(value, label), ...]
        default: str | None = None,
        description: str = "",
    ) -> ParameterDefinition:
        """Factory for enum parameter."""
        enum_options = [EnumOption(v, l) for v, l in options]
        return cls(
            name=name,
            label=label,
            param_type=ParameterType.ENUM,
            default=default or (options[0][0] if options else None),
            options=enum_options,
            description=description,
        )

    @classmethod
    def color(
        cls,
        name: str,
        label: str,
        default: str = "#000000",
        description: str = "",
    ) -> ParameterDefinition:
        """Factory for color parameter (CSS-style color string)."""
        return cls(
            name=name,
            label=label,
            param_type=ParameterType.COLOR,
            default=default,
            description=description,
        )

    @classmethod
    def seed(
        cls,
        name: str = "seed",
        label: str = "Seed",
        default: int = 1337,
        description: str = "Noise seed",
    ) -> ParameterDefinition:
        """Factory for seed parameter."""
        return cls(
            name=name,
            label=label,
            param_type=ParameterType.SEED,
            default=default,
            min_value=1,
            max_value=2**30,
            step=1,
            description=description,
        )

    def coerce(self, value: Any) -> ParameterValue:
        """
        Normalize a user-supplied value to this parameter's range.

        Integers are rounded, numeric values clamped to [min, max],
        enum values outside the option list fall back to the default.

        Raises:
            ValueError: If a numeric parameter gets a non-numeric value.
        """
        if self.param_type in (ParameterType.INTEGER, ParameterType.SEED):
            number = float(value)
            if not math.isfinite(number):
                raise ValueError(f"{self.name}: expected a finite number, got {value!r}")
            return int(self._clamp(round(number)))

        if self.param_type in (ParameterType.FLOAT, ParameterType.SLIDER):
            number = float(value)
            if not math.isfinite(number):
                raise ValueError(f"{self.name}: expected a finite number, got {value!r}")
            return float(self._clamp(number))

        if self.param_type == ParameterType.ENUM:
            allowed = {opt.value for opt in self.options}
            return value if value in allowed else self.default

        return str(value)

    def _clamp(self, number: float) -> float:
        if self.min_value is not None:
            number = max(self.min_value, number)
        if self.max_value is not None:
            number = min(self.max_value, number)
        return number


@runtime_checkable
class NodeExecutor(Protocol):
    """Protocol for node compute functions."""

    async def __call__(
        self,
        inputs: dict[str, Any],
        parameters: dict[str, Any],
        context: Any,
    ) -> dict[str, Any]:
        """
        Compute the node.

        Args:
            inputs: Upstream output values by input port name
            parameters: Parameter values by name
            context: Execution context with settings and cancellation

        Returns:
            Dictionary of output values (ImageData or None) by port name
        """
        ...


@dataclass
class NodeType:
    """
    Complete definition of a node type.

    NodeTypes are templates that define what a node does, its inputs,
    outputs, and parameters. Actual nodes in a graph reference a
    NodeType by its id.
    """
    id: str  # Unique type tag, e.g. "PerlinNoise"
    name: str  # Display label, e.g. "Perlin Noise"
    category: NodeCategory
    description: str = ""

    inputs: list[InputDefinition] = field(default_factory=list)
    outputs: list[OutputDefinition] = field(default_factory=list)
    parameters: list[ParameterDefinition] = field(default_factory=list)

    # The compute function
    executor: NodeExecutor | None = None

    # Output shown as the node preview
    preview_output: str | None = "image"

    def get_input(self, name: str) -> InputDefinition | None:
        """Get an input definition by name."""
        for inp in self.inputs:
            if inp.name == name:
                return inp
        return None

    def get_output(self, name: str) -> OutputDefinition | None:
        """Get an output definition by name."""
        for out in self.outputs:
            if out.name == name:
                return out
        return None

    def get_parameter(self, name: str) -> ParameterDefinition | None:
        """Get a parameter definition by name."""
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def get_default_parameters(self) -> dict[str, ParameterValue]:
        """Get a fresh dict of default values for all parameters."""
        return {p.name: copy.deepcopy(p.default) for p in self.parameters}


class NodeRegistry:
    """
    Global registry of available node types.

    Nodes register themselves with the registry; the graph looks up
    type tags here when nodes are created and the engine when they run.
    """

    _instance: NodeRegistry | None = None

    def __new__(cls) -> NodeRegistry:
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._types = {}
        return cls._instance

    @classmethod
    def instance(cls) -> NodeRegistry:
        """Get the singleton instance."""
        return cls()

    def __init__(self):
        if not hasattr(self, '_types'):
            self._types: dict[str, NodeType] = {}

    def register(self, node_type: NodeType) -> None:
        """Register a node type."""
        self._types[node_type.id] = node_type

    def unregister(self, type_id: str) -> NodeType | None:
        """Unregister a node type."""
        return self._types.pop(type_id, None)

    def get(self, type_id: str) -> NodeType | None:
        """Get a node type by ID."""
        return self._types.get(type_id)

    def get_all(self) -> list[NodeType]:
        """Get all registered node types."""
        return list(self._types.values())

    def list_by_category(self, category: NodeCategory) -> list[NodeType]:
        """Get all node types in a category."""
        return [t for t in self._types.values() if t.category == category]

    def clear(self) -> None:
        """Remove all registered types (for testing)."""
        self._types.clear()

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, type_id: str) -> bool:
        return type_id in self._types


def register_node(node_type: NodeType) -> NodeType:
    """
    Register a node type with the global registry.

    Can be used as:
        register_node(my_node_type)
    """
    NodeRegistry.instance().register(node_type)
    return node_type


def node_type(
    id: str,
    name: str,
    category: NodeCategory,
    description: str = "",
    **kwargs,
) -> Callable[[NodeExecutor], NodeType]:
    """
    Decorator to create and register a node type from an executor function.

    Usage:
        @node_type("Invert", "Invert", NodeCategory.COMPOSITE)
        async def invert_executor(inputs, parameters, context):
            ...
    """
    def decorator(executor: NodeExecutor) -> NodeType:
        nt = NodeType(
            id=id,
            name=name,
            category=category,
            description=description,
            executor=executor,
            **kwargs,
        )
        register_node(nt)
        return nt
    return decorator
