"""Resolution settings shared by the pod and api services.

[ResolveConfig][poddns.services.common.configs.ResolveConfig] selects which
pods are considered (namespace and label selector) and which annotation
names are honored (compatibility mode). Both services embed it under the
``resolve`` key so they answer from the same rules.

Examples:
    ```yaml
    resolve:
      namespace: kube-system
      compatibility: kops-dns-controller
      label_selector:
        app: ingress
    ```
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from poddns.models.constants import CompatibilityMode


# "standard" is accepted as a readable alias for the empty mode.
_COMPATIBILITY_ALIASES: dict[str, CompatibilityMode] = {
    "standard": CompatibilityMode.STANDARD,
}


class ResolveConfig(BaseModel):
    """Which pods to read and which annotation names to honor."""

    namespace: str = Field(default="", description='Namespace to list ("" = all namespaces)')
    compatibility: CompatibilityMode = Field(
        default=CompatibilityMode.STANDARD,
        description='"" / "standard", or "kops-dns-controller" for the legacy annotations',
    )
    label_selector: dict[str, str] = Field(
        default_factory=dict,
        description="Only pods carrying all of these labels are considered",
    )

    @field_validator("compatibility", mode="before")
    @classmethod
    def normalize_compatibility(cls, v: Any) -> Any:
        if v is None:
            return CompatibilityMode.STANDARD
        if isinstance(v, str) and not isinstance(v, CompatibilityMode):
            normalized = v.strip().lower()
            return _COMPATIBILITY_ALIASES.get(normalized, normalized)
        return v
