"""
Model selection state for the template form.

Each parameter carries a value and an ``enabled`` flag; only enabled
parameters are sent with a template.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

# Parameters that describe the model selection rather than the request
SELECTION_KEYS = ("provider", "model")
# UI-only bound for the temperature slider
UI_ONLY_KEYS = ("max_temperature",)


@dataclass
class ModelParam:
    value: Any
    enabled: bool = False


def _default_params() -> Dict[str, ModelParam]:
    return {
        "provider": ModelParam("", False),
        "model": ModelParam("", False),
        "temperature": ModelParam(0, False),
        "max_tokens": ModelParam(256, False),
        "top_p": ModelParam(1, False),
        "max_temperature": ModelParam(2, False),
    }


@dataclass
class ModelParamsState:
    params: Dict[str, ModelParam] = field(default_factory=_default_params)

    @property
    def provider(self) -> str:
        return self.params["provider"].value

    @property
    def model(self) -> str:
        return self.params["model"].value

    def apply_prefill(
        self,
        provider: str,
        model: str,
        model_params: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Merge a stored model selection over the current parameters."""
        merged = dict(self.params)
        for key, value in (model_params or {}).items():
            merged[key] = ModelParam(value, True)
        merged["provider"] = ModelParam(provider, True)
        merged["model"] = ModelParam(model, True)
        self.params = merged

    def update_value(self, key: str, value: Any) -> None:
        if key not in self.params:
            raise KeyError(f"Unknown model parameter: {key}")
        self.params[key].value = value

    def set_enabled(self, key: str, enabled: bool) -> None:
        if key not in self.params:
            raise KeyError(f"Unknown model parameter: {key}")
        self.params[key].enabled = enabled

    def final_model_params(self) -> Dict[str, Any]:
        """Enabled request parameters, keyed by name."""
        return {
            key: param.value
            for key, param in self.params.items()
            if param.enabled and key not in SELECTION_KEYS and key not in UI_ONLY_KEYS
        }

    def reset(self) -> None:
        self.params = _default_params()
