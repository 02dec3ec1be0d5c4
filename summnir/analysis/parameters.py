"""Parameter resolution and the two parameter reference syntaxes.

Job configs refer to parameters in two distinct ways, and this module is the
only place either is matched:

* ``${parameters.<name>}`` appears as the whole value of a ``months`` field
  and resolves to a numeric parameter.
* ``{{parameters.<name>}}`` appears anywhere inside prompt template text or
  section titles and is replaced by the parameter's string form.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from ..errors import MissingParameterError

ParameterValue = Union[str, int, float]

_REFERENCE_RE = re.compile(r"^\$\{.*\}$")
_PARAMETER_REFERENCE_RE = re.compile(r"^\$\{parameters\.(.+)\}$")
_PLACEHOLDER_RE = re.compile(r"\{\{parameters\.([^{}]+?)\}\}")

PARAMETER_TYPES = ("string", "number")


@dataclass(frozen=True)
class ParameterSpec:
    """A parameter declared in a job's config.yaml."""

    type: str
    default: Optional[ParameterValue] = None
    description: str = ""
    required: bool = False


@dataclass(frozen=True)
class Parameter:
    """A declared parameter together with its resolved value."""

    type: str
    value: Optional[ParameterValue]
    default: Optional[ParameterValue]
    required: bool
    description: str

    def as_text(self) -> str:
        if self.value is None:
            return ""
        return str(self.value)


Parameters = Dict[str, Parameter]


def resolve_parameters(
    declared: Mapping[str, ParameterSpec], supplied: Mapping[str, Any]
) -> Parameters:
    """Merge supplied values with declared defaults.

    Every required parameter must be supplied; the first one missing (in
    declaration order) raises ``MissingParameterError``.
    """
    for name, spec in declared.items():
        if spec.required and supplied.get(name) is None:
            raise MissingParameterError(name)

    resolved: Parameters = {}
    for name, spec in declared.items():
        value = supplied.get(name)
        resolved[name] = Parameter(
            type=spec.type,
            value=spec.default if value is None else value,
            default=spec.default,
            required=spec.required,
            description=spec.description,
        )
    return resolved


def is_reference(value: object) -> bool:
    """True when ``value`` is a ``${...}`` reference string of any kind."""
    return isinstance(value, str) and bool(_REFERENCE_RE.match(value))


def parse_months_reference(value: object) -> Optional[str]:
    """Return the parameter name in a ``${parameters.<name>}`` string, else None."""
    if not isinstance(value, str):
        return None
    match = _PARAMETER_REFERENCE_RE.match(value)
    if match is None:
        return None
    return match.group(1)


def substitute(text: str, parameters: Mapping[str, Parameter]) -> str:
    """Replace every ``{{parameters.<name>}}`` placeholder in a single pass.

    Values are inserted verbatim and never rescanned, so a value that itself
    contains placeholder syntax is left alone. Unknown names stay untouched.
    """
    if not text:
        return text

    def _replace(match: re.Match[str]) -> str:
        parameter = parameters.get(match.group(1))
        if parameter is None:
            return match.group(0)
        return parameter.as_text()

    return _PLACEHOLDER_RE.sub(_replace, text)


__all__ = [
    "PARAMETER_TYPES",
    "Parameter",
    "ParameterSpec",
    "ParameterValue",
    "Parameters",
    "is_reference",
    "parse_months_reference",
    "resolve_parameters",
    "substitute",
]
