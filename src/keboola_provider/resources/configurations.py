"""Component configurations stored through the Storage API.

Transformations, extractors and writers are all stored as configurations of
a platform component under ``storage/components/{component}/configs``.  The
``configuration`` body is a JSON document the API accepts as a string inside
a form field and returns as a nested object.
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from keboola_provider.codec import ApiModel, KBCNumberString, Payload, to_jsonable


def object_or_empty(value: Any) -> Any:
    # Empty objects come back as [] rather than {}.
    if value is None or value == []:
        return {}
    return value


ConfigurationBody = Annotated[dict[str, Any], BeforeValidator(object_or_empty)]


class ComponentConfiguration(ApiModel):
    id: KBCNumberString | None = None
    name: str = ""
    description: str | None = None
    configuration: ConfigurationBody = Field(default_factory=dict)


def configuration_parameters(configuration: dict[str, Any]) -> dict[str, Any]:
    """Return the ``parameters`` object of *configuration*, attached as a dict."""
    parameters = object_or_empty(configuration.get("parameters"))
    configuration["parameters"] = parameters
    return parameters


def configs_path(component: str) -> str:
    return f"storage/components/{component}/configs"


def configuration_json(configuration: Any) -> str:
    return json.dumps(to_jsonable(configuration), separators=(",", ":"))


def configuration_form(
    *,
    name: str | None = None,
    description: str | None = None,
    configuration: Any = None,
    change_description: str | None = None,
) -> Payload:
    """Build the form body of a configuration create or update call."""
    fields: dict[str, Any] = {}
    if name is not None:
        fields["name"] = name
    if description is not None:
        fields["description"] = description
    if configuration is not None:
        fields["configuration"] = configuration_json(configuration)
    if change_description is not None:
        fields["changeDescription"] = change_description
    return Payload.from_form(fields)
