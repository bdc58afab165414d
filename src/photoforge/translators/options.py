"""Pydantic models describing the configuration accepted by each operation."""

from __future__ import annotations

import math
from typing import Any, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


def _clamp(value: Any, low: float, high: float) -> Any:
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return value
        if math.isnan(number):
            return value
        value = int(number) if number.is_integer() else number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        # Let pydantic report anything that is not a number.
        return value
    return min(max(value, low), high)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class OperationOptions(BaseModel):
    """Base for per-operation options: unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, str_strip_whitespace=True)


class EmptyOptions(OperationOptions):
    """Operations that take no configuration."""


class TransformOptions(OperationOptions):
    prompt: str = Field(..., min_length=1, description="Free-form edit instruction.")


class UpscaleOptions(OperationOptions):
    outscale: float = Field(default=4, ge=1, le=8, description="Output scale factor.")
    face_enhance: bool = Field(default=False, alias="faceEnhance")

    @field_validator("outscale", mode="before")
    @classmethod
    def clamp_outscale(cls, value: Any) -> Any:
        if value is None:
            return 4
        return _clamp(value, 1, 8)


class EnhanceOptions(OperationOptions):
    version: Literal["v1.2", "v1.3", "v1.4"] = "v1.4"
    scale: float = Field(default=2, ge=1, le=4, description="Rescaling factor of the restored face image.")

    @field_validator("scale", mode="before")
    @classmethod
    def clamp_scale(cls, value: Any) -> Any:
        if value is None:
            return 2
        return _clamp(value, 1, 4)


class RemoveObjectOptions(OperationOptions):
    target_description: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("targetDescription", "target_description", "prompt", "removalPrompt"),
        description="What to remove from the photo.",
    )


class ReplaceBackgroundOptions(OperationOptions):
    background_image_ref: Optional[str] = Field(default=None, alias="backgroundImageRef")
    background_prompt: Optional[str] = Field(default=None, alias="backgroundPrompt")

    @field_validator("background_image_ref", "background_prompt", mode="before")
    @classmethod
    def blank_as_missing(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def exactly_one_source(self) -> "ReplaceBackgroundOptions":
        provided = [v for v in (self.background_image_ref, self.background_prompt) if v]
        if len(provided) != 1:
            raise ValueError("Provide exactly one of backgroundImageRef or backgroundPrompt")
        return self


class StyleTransferOptions(OperationOptions):
    style_image_ref: Optional[str] = Field(default=None, alias="styleImageRef")
    style_preset: Optional[str] = Field(default=None, alias="stylePreset")
    style_description: Optional[str] = Field(default=None, alias="styleDescription")
    style_strength: float = Field(default=0.7, ge=0, le=1, alias="styleStrength")

    @field_validator("style_image_ref", "style_preset", "style_description", mode="before")
    @classmethod
    def blank_as_missing(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("style_strength", mode="before")
    @classmethod
    def clamp_strength(cls, value: Any) -> Any:
        if value is None:
            return 0.7
        return _clamp(value, 0, 1)

    @model_validator(mode="after")
    def exactly_one_source(self) -> "StyleTransferOptions":
        sources = (self.style_image_ref, self.style_preset, self.style_description)
        if sum(1 for source in sources if source) != 1:
            raise ValueError(
                "Provide exactly one of styleImageRef, stylePreset or styleDescription"
            )
        return self


GarmentType = Literal[
    "shirt",
    "pants",
    "dress",
    "jacket",
    "shoes",
    "skirt",
    "shorts",
    "sweater",
    "accessory",
    "other",
]


class ClothingItem(OperationOptions):
    image_ref: str = Field(..., min_length=1, alias="imageRef")
    garment_type: GarmentType = Field(default="other", alias="garmentType")


class VirtualTryOnOptions(OperationOptions):
    clothing_items: List[ClothingItem] = Field(default_factory=list, alias="clothingItems")
    clothing_image_ref: Optional[str] = Field(
        default=None,
        alias="clothingImageRef",
        description="Single-garment form kept for older callers.",
    )
    fit_style: Literal["natural", "loose", "fitted"] = Field(default="natural", alias="fitStyle")
    preserve_background: bool = Field(default=True, alias="preserveBackground")

    @model_validator(mode="after")
    def require_garment(self) -> "VirtualTryOnOptions":
        if not self.clothing_items and self.clothing_image_ref:
            self.clothing_items = [ClothingItem(image_ref=self.clothing_image_ref)]
        if not self.clothing_items:
            raise ValueError("At least one clothing item is required")
        return self


class HeadshotOptions(OperationOptions):
    headshot_style: Literal["corporate", "creative", "casual", "executive"] = Field(
        default="corporate", alias="headshotStyle"
    )
    background_style: Literal["office", "studio", "outdoor", "neutral", "custom"] = Field(
        default="neutral", alias="backgroundStyle"
    )
    background_image_ref: Optional[str] = Field(default=None, alias="backgroundImageRef")
    lighting_style: Literal["professional", "soft", "dramatic", "natural"] = Field(
        default="professional", alias="lightingStyle"
    )

    @field_validator("background_image_ref", mode="before")
    @classmethod
    def blank_as_missing(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def custom_needs_image(self) -> "HeadshotOptions":
        if self.background_style == "custom" and not self.background_image_ref:
            raise ValueError("backgroundStyle 'custom' requires backgroundImageRef")
        return self


class PopFigureOptions(OperationOptions):
    include_box: bool = Field(default=True, alias="includeBox")
    background_type: Literal["studio", "marble", "glossy", "simple", "color"] = Field(
        default="studio", alias="backgroundType"
    )
    background_color: str = Field(default="#FFFFFF", alias="backgroundColor", pattern=r"^#[0-9A-Fa-f]{6}$")
    is_transparent: bool = Field(default=False, alias="isTransparent")


class PixelArtOptions(OperationOptions):
    bit_depth: Literal["8-bit", "16-bit"] = Field(default="16-bit", alias="bitDepth")
    game_style: Literal["rpg", "platformer", "arcade", "fighter", "adventure", "indie"] = Field(
        default="rpg", alias="gameStyle"
    )
    background_style: Literal["transparent", "solid", "scene", "gradient"] = Field(
        default="transparent", alias="backgroundStyle"
    )
    transparent_color: str = Field(
        default="#FFFFFF", alias="transparentColor", pattern=r"^#[0-9A-Fa-f]{6}$"
    )
    scene_type: Literal["gaming", "fantasy", "cyberpunk", "nature"] = Field(
        default="gaming", alias="sceneType"
    )
    gradient_type: Literal["sunset", "ocean", "forest", "neon"] = Field(
        default="sunset", alias="gradientType"
    )
    prompt: Optional[str] = Field(default=None, description="Replaces the generated prompt.")

    @field_validator("prompt", mode="before")
    @classmethod
    def blank_as_missing(cls, value: Any) -> Any:
        return _blank_to_none(value)
