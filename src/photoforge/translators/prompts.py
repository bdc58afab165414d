"""Prompt builders for the prompt-driven operations."""

from __future__ import annotations

from typing import Sequence

from .options import (
    ClothingItem,
    HeadshotOptions,
    PixelArtOptions,
    PopFigureOptions,
)

KEEP_IDENTITY = "Keep the person's identity, facial features and pose unchanged."

GHIBLI_PROMPT = (
    "Transform this photo into a Studio Ghibli style illustration: soft hand-painted "
    "colors, gentle lighting, clean line work and a whimsical atmosphere. "
    f"{KEEP_IDENTITY}"
)

STYLE_PRESETS = {
    "van_gogh": "Van Gogh's post-impressionist style with bold swirling brushstrokes",
    "picasso": "Picasso's cubist style with geometric shapes and fragmented forms",
    "monet": "Monet's impressionist style with soft visible brushstrokes and light",
    "watercolor": "a watercolor painting style with soft edges and flowing pigments",
    "oil_painting": "a classic oil painting style with rich layered brushwork",
    "sketch": "a pencil sketch style with line art and cross-hatching",
    "anime": "an anime art style with clean lines and vibrant colors",
    "pop_art": "a pop art style with bold colors and high contrast",
}

_HEADSHOT_STYLES = {
    "corporate": "corporate portrait: polished appearance, even skin tones",
    "creative": "creative portrait: dynamic lighting, vibrant but natural colors",
    "casual": "casual portrait: natural soft light, warm approachable tones",
    "executive": "executive portrait: refined grading, authoritative presence",
}

_HEADSHOT_BACKGROUNDS = {
    "office": "a modern office softly blurred behind the subject",
    "studio": "a neutral gray or white photography studio backdrop",
    "outdoor": "a blurred natural outdoor setting",
    "neutral": "a solid neutral color or subtle gradient",
}

_HEADSHOT_LIGHTING = {
    "professional": "professional studio lighting with a subtle rim light",
    "soft": "soft diffused lighting with gentle highlights",
    "dramatic": "dramatic lighting with depth and contrast",
    "natural": "natural daylight-like lighting",
}

_POP_BACKGROUNDS = {
    "studio": "a clean studio backdrop with even soft lighting",
    "marble": "an elegant marble surface",
    "glossy": "a glossy reflective surface",
    "simple": "a minimal clean background",
}

_GAME_STYLES = {
    "rpg": "classic 16-bit RPGs",
    "platformer": "classic platformer games",
    "arcade": "classic arcade games",
    "fighter": "classic fighting games",
    "adventure": "top-down adventure games",
    "indie": "modern indie pixel art games",
}

_PIXEL_SCENES = {
    "gaming": "a game room scene with consoles and controllers",
    "fantasy": "a fantasy world with castles and forests",
    "cyberpunk": "a neon cyberpunk cityscape",
    "nature": "a natural landscape with forests and mountains",
}

_PIXEL_GRADIENTS = {
    "sunset": "a warm orange and pink sunset gradient",
    "ocean": "a blue and teal ocean gradient",
    "forest": "a light-to-dark green forest gradient",
    "neon": "a purple, pink and cyan neon gradient",
}

_FIT_STYLES = {
    "natural": "a natural fit that follows the body",
    "loose": "a relaxed loose fit",
    "fitted": "a tailored fitted look",
}


def removal_prompt(target: str) -> str:
    target = target.strip()
    if target.lower().startswith("remove "):
        target = target[len("remove ") :].strip()
    return f"Remove {target} from the image. Keep everything else intact and natural looking."


def background_image_prompt() -> str:
    return (
        "Replace the background of image 1 with the scene from image 2. "
        "Keep the subject of image 1 unchanged with clean edges and matching lighting."
    )


def background_text_prompt(description: str) -> str:
    return (
        f"Replace the background of this photo with: {description}. "
        "Keep the subject unchanged with clean edges and matching lighting."
    )


def _strength_word(strength: float) -> str:
    if strength > 0.75:
        return "strongly"
    if strength > 0.5:
        return "moderately"
    return "subtly"


def style_image_prompt(strength: float) -> str:
    return (
        f"Apply the artistic style of image 2 to image 1 {_strength_word(strength)} "
        f"({round(strength * 100)}% intensity). Keep the content of image 1 recognizable."
    )


def style_text_prompt(style: str, strength: float) -> str:
    description = STYLE_PRESETS.get(style, style)
    return (
        f"Apply {description} {_strength_word(strength)} to this image "
        f"({round(strength * 100)}% intensity). Keep the content recognizable."
    )


def try_on_prompt(items: Sequence[ClothingItem], fit_style: str, preserve_background: bool) -> str:
    garments = ", ".join(
        f"image {index} ({item.garment_type})" for index, item in enumerate(items, start=2)
    )
    background = (
        "Keep the original background unchanged."
        if preserve_background
        else "Use a clean neutral studio background."
    )
    return (
        f"Dress the person in image 1 with the clothing from {garments} as one outfit, "
        f"with {_FIT_STYLES[fit_style]}. {KEEP_IDENTITY} {background}"
    )


def headshot_prompt(options: HeadshotOptions) -> str:
    style = _HEADSHOT_STYLES[options.headshot_style]
    lighting = _HEADSHOT_LIGHTING[options.lighting_style]
    if options.background_image_ref:
        background = "the background scene from image 2"
    else:
        background = _HEADSHOT_BACKGROUNDS.get(options.background_style, _HEADSHOT_BACKGROUNDS["neutral"])
    return (
        f"Turn this photo into a professional headshot. Style: {style}. "
        f"Lighting: {lighting}. Background: {background}. {KEEP_IDENTITY}"
    )


def pop_figure_prompt(options: PopFigureOptions) -> str:
    if options.background_type == "color":
        background = (
            "a fully transparent background"
            if options.is_transparent
            else f"a solid {options.background_color} background"
        )
    else:
        background = _POP_BACKGROUNDS[options.background_type]
    box = " displayed inside a colorful collectible box" if options.include_box else ""
    return (
        f"Transform this photo into a detailed 3D render of a chibi vinyl pop figure{box}, "
        f"keeping the person's hairstyle, clothing and distinctive features. "
        f"Background: {background}. Professional product photography."
    )


def pixel_art_prompt(options: PixelArtOptions) -> str:
    if options.prompt:
        return options.prompt
    palette = "limited 8-bit palette with chunky pixels" if options.bit_depth == "8-bit" else (
        "rich 16-bit palette with detailed shading"
    )
    if options.background_style == "scene":
        background = _PIXEL_SCENES[options.scene_type]
    elif options.background_style == "gradient":
        background = _PIXEL_GRADIENTS[options.gradient_type]
    else:
        background = f"a solid {options.transparent_color} color"
    return (
        f"Convert this person into a pixel art game sprite inspired by "
        f"{_GAME_STYLES[options.game_style]}, using a {palette}. "
        f"Background: {background}. Keep the character recognizable."
    )
