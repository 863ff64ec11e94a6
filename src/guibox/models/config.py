"""Configuration models."""

from typing import Dict, Iterable, List, Optional, Union
from pydantic import BaseModel, Field, field_validator

from guibox.models.aspect import ConfigOption


OptionValue = Union[str, List[str]]


class Configuration(BaseModel):
    """Option values for one application and profile."""
    values: Dict[str, OptionValue] = Field(default_factory=dict)

    @field_validator("values", mode="before")
    @classmethod
    def normalize_values(cls, v):
        """Coerce scalars to strings and drop unset entries."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("configuration must be a mapping of option to value")
        result = {}
        for key, value in v.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                result[str(key)] = [str(item) for item in value]
            else:
                result[str(key)] = str(value)
        return result

    def get(self, name: str, default: Optional[OptionValue] = None) -> Optional[OptionValue]:
        return self.values.get(name, default)

    def get_list(self, name: str) -> List[str]:
        """Return the option as a list whatever shape it was stored in."""
        value = self.values.get(name)
        if value is None:
            return []
        if isinstance(value, list):
            return list(value)
        return [value]

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def merge(self, override: "Configuration", options: Iterable[ConfigOption]) -> "Configuration":
        """Merge ``override`` on top of this configuration.

        Values present in ``override`` win. Options declared ``multiple`` are
        unioned instead: values already held here come first, new ones follow
        in the order they were supplied, duplicates are dropped.
        """
        append_only = {option.name for option in options if option.multiple}
        merged: Dict[str, OptionValue] = dict(self.values)

        for name, value in override.values.items():
            if name in append_only:
                combined = self.get_list(name)
                for item in override.get_list(name):
                    if item not in combined:
                        combined.append(item)
                merged[name] = combined
            else:
                merged[name] = value

        return Configuration(values=merged)

    def restrict(self, options: Iterable[ConfigOption]) -> "Configuration":
        """Keep only values for the given options."""
        names = {option.name for option in options}
        return Configuration(values={k: v for k, v in self.values.items() if k in names})
