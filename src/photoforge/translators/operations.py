"""One configuration translator per operation."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from ..errors import InvalidInputError, UnsupportedOperationError
from ..models import Operation
from . import prompts
from .base import (
    ConfigTranslator,
    MultiImageRequest,
    ParameterRequest,
    ProviderRequest,
    SingleImageRequest,
)
from .options import (
    EmptyOptions,
    EnhanceOptions,
    HeadshotOptions,
    PixelArtOptions,
    PopFigureOptions,
    RemoveObjectOptions,
    ReplaceBackgroundOptions,
    StyleTransferOptions,
    TransformOptions,
    UpscaleOptions,
    VirtualTryOnOptions,
)

REMBG_MODEL = "cjwbw/rembg"
REAL_ESRGAN_MODEL = "nightmareai/real-esrgan"
GFPGAN_MODEL = "tencentarc/gfpgan"


class TransformTranslator(ConfigTranslator):
    operation = Operation.TRANSFORM
    options_model = TransformOptions

    def build(self, primary: str, options: TransformOptions) -> ProviderRequest:
        return SingleImageRequest(prompt=options.prompt, image_refs=(primary,))


class GhiblifyTranslator(ConfigTranslator):
    operation = Operation.GHIBLIFY
    options_model = EmptyOptions

    def build(self, primary: str, options: EmptyOptions) -> ProviderRequest:
        return SingleImageRequest(prompt=prompts.GHIBLI_PROMPT, image_refs=(primary,))


class RemoveBackgroundTranslator(ConfigTranslator):
    operation = Operation.REMOVE_BACKGROUND
    options_model = EmptyOptions

    def build(self, primary: str, options: EmptyOptions) -> ProviderRequest:
        return ParameterRequest(model=REMBG_MODEL, image_field="image", image_refs=(primary,))


class UpscaleTranslator(ConfigTranslator):
    operation = Operation.UPSCALE
    options_model = UpscaleOptions

    def build(self, primary: str, options: UpscaleOptions) -> ProviderRequest:
        return ParameterRequest(
            model=REAL_ESRGAN_MODEL,
            image_field="image",
            parameters={"outscale": options.outscale, "face_enhance": options.face_enhance},
            image_refs=(primary,),
        )


class EnhanceTranslator(ConfigTranslator):
    operation = Operation.ENHANCE
    options_model = EnhanceOptions

    def build(self, primary: str, options: EnhanceOptions) -> ProviderRequest:
        return ParameterRequest(
            model=GFPGAN_MODEL,
            image_field="img",
            parameters={"version": options.version, "scale": options.scale},
            image_refs=(primary,),
        )


class RemoveObjectTranslator(ConfigTranslator):
    operation = Operation.REMOVE_OBJECT
    options_model = RemoveObjectOptions

    def build(self, primary: str, options: RemoveObjectOptions) -> ProviderRequest:
        return SingleImageRequest(
            prompt=prompts.removal_prompt(options.target_description),
            image_refs=(primary,),
        )


class ReplaceBackgroundTranslator(ConfigTranslator):
    operation = Operation.REPLACE_BACKGROUND
    options_model = ReplaceBackgroundOptions

    def build(self, primary: str, options: ReplaceBackgroundOptions) -> ProviderRequest:
        if options.background_image_ref:
            return MultiImageRequest(
                prompt=prompts.background_image_prompt(),
                image_refs=(primary, options.background_image_ref),
            )
        return SingleImageRequest(
            prompt=prompts.background_text_prompt(options.background_prompt or ""),
            image_refs=(primary,),
        )


class StyleTransferTranslator(ConfigTranslator):
    operation = Operation.STYLE_TRANSFER
    options_model = StyleTransferOptions

    def build(self, primary: str, options: StyleTransferOptions) -> ProviderRequest:
        if options.style_image_ref:
            return MultiImageRequest(
                prompt=prompts.style_image_prompt(options.style_strength),
                image_refs=(primary, options.style_image_ref),
            )
        style = options.style_preset or options.style_description or ""
        return SingleImageRequest(
            prompt=prompts.style_text_prompt(style, options.style_strength),
            image_refs=(primary,),
        )


class VirtualTryOnTranslator(ConfigTranslator):
    operation = Operation.VIRTUAL_TRY_ON
    options_model = VirtualTryOnOptions

    def build(self, primary: str, options: VirtualTryOnOptions) -> ProviderRequest:
        items = options.clothing_items
        return MultiImageRequest(
            prompt=prompts.try_on_prompt(items, options.fit_style, options.preserve_background),
            image_refs=(primary, *(item.image_ref for item in items)),
        )


class HeadshotTranslator(ConfigTranslator):
    operation = Operation.PROFESSIONAL_HEADSHOTS
    options_model = HeadshotOptions

    def build(self, primary: str, options: HeadshotOptions) -> ProviderRequest:
        prompt = prompts.headshot_prompt(options)
        if options.background_image_ref:
            return MultiImageRequest(prompt=prompt, image_refs=(primary, options.background_image_ref))
        return SingleImageRequest(prompt=prompt, image_refs=(primary,))


class PopFigureTranslator(ConfigTranslator):
    operation = Operation.POP_FIGURE
    options_model = PopFigureOptions

    def build(self, primary: str, options: PopFigureOptions) -> ProviderRequest:
        return SingleImageRequest(prompt=prompts.pop_figure_prompt(options), image_refs=(primary,))


class PixelArtTranslator(ConfigTranslator):
    operation = Operation.PIXEL_ART_GAMER
    options_model = PixelArtOptions

    def build(self, primary: str, options: PixelArtOptions) -> ProviderRequest:
        return SingleImageRequest(prompt=prompts.pixel_art_prompt(options), image_refs=(primary,))


TRANSLATORS: dict[Operation, ConfigTranslator] = {
    translator.operation: translator
    for translator in (
        TransformTranslator(),
        GhiblifyTranslator(),
        RemoveBackgroundTranslator(),
        UpscaleTranslator(),
        EnhanceTranslator(),
        RemoveObjectTranslator(),
        ReplaceBackgroundTranslator(),
        StyleTransferTranslator(),
        VirtualTryOnTranslator(),
        HeadshotTranslator(),
        PopFigureTranslator(),
        PixelArtTranslator(),
    )
}


def get_translator(operation: Operation | str) -> ConfigTranslator:
    try:
        return TRANSLATORS[Operation(operation)]
    except (KeyError, ValueError) as exc:
        raise UnsupportedOperationError(f"Unsupported operation '{operation}'") from exc


def translate(
    operation: Operation | str,
    images: Sequence[str],
    config: Mapping[str, Any] | None = None,
) -> ProviderRequest:
    """Validate ``config`` for ``operation`` and build the provider request.

    ``images`` must hold exactly one primary reference; auxiliary images
    (garments, style or background references) travel inside ``config``.
    Never touches the network.
    """
    translator = get_translator(operation)
    return translator.translate(primary_image(images), config)


def primary_image(images: Sequence[str]) -> str:
    """Return the single primary reference or raise ``InvalidInputError``."""
    if isinstance(images, str) or not images:
        raise InvalidInputError("Exactly one primary image is required")
    if len(images) > 1:
        raise InvalidInputError(
            f"Exactly one primary image is supported, got {len(images)}; "
            "pass auxiliary images through the configuration"
        )
    primary = images[0]
    if not isinstance(primary, str) or not primary.strip():
        raise InvalidInputError("Primary image reference is empty")
    return primary.strip()
