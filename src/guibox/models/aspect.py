"""Fragments that aspects contribute to each lifecycle stage."""

from typing import Callable, List
from pydantic import BaseModel, ConfigDict, Field


class ImageSnippet(BaseModel):
    """Piece of the image recipe placed at a given priority."""
    priority: int = Field(..., description="Lower priorities appear earlier in the recipe")
    content: str = Field(..., description="Opaque recipe text")

    model_config = ConfigDict(extra="forbid", frozen=True)


class ContextFile(BaseModel):
    """Extra file embedded in the build context."""
    path: str = Field(..., description="Path inside the build context")
    content: str = Field(default="")

    model_config = ConfigDict(extra="forbid", frozen=True)


class ConfigOption(BaseModel):
    """CLI-exposed setting understood by an aspect."""
    name: str = Field(..., description="Option name without leading dashes")
    help: str = Field(default="")
    multiple: bool = Field(default=False, description="Repeatable and unioned on merge")
    required: bool = Field(default=False)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def flag(self) -> str:
        return f"--{self.name}"

    @property
    def key(self) -> str:
        """Python identifier used by the CLI layer for this option."""
        return self.name.replace("-", "_")


class SetupStep(BaseModel):
    """Action run once with elevated privilege before the container command."""
    description: str
    escalation_args: List[str] = Field(default_factory=list)
    action: Callable[[], None]

    model_config = ConfigDict(arbitrary_types_allowed=True)
