"""Colour parsing and the 256-entry terminal palette."""

from __future__ import annotations

from collections.abc import Mapping

from splitterm.errors import ExitCode, SplitTermError

PALETTE_SIZE = 256
_CUBE_STEPS = (0, 95, 135, 175, 215, 255)


def parse_color(value: str) -> int:
    """Parse ``#rrggbb``, ``0xrrggbb`` or bare hex into a 24-bit integer."""
    text = value.strip().lower()
    if text.startswith("#"):
        text = text[1:]
    elif text.startswith("0x"):
        text = text[2:]
    try:
        color = int(text, 16)
    except ValueError as exc:
        raise SplitTermError(
            f"Invalid color value: {value!r}",
            code=ExitCode.CONFIG_ERROR,
            hint="Use #rrggbb or 0xrrggbb.",
        ) from exc
    if not text or color < 0 or color > 0xFFFFFF:
        raise SplitTermError(
            f"Invalid color value: {value!r}",
            code=ExitCode.CONFIG_ERROR,
            hint="Colors are 24-bit RGB values.",
        )
    return color


def format_color(color: int) -> str:
    return f"#{color & 0xFFFFFF:06x}"


def default_color(index: int) -> int:
    if index < 0 or index >= PALETTE_SIZE:
        raise SplitTermError(
            f"Palette index out of range: {index}",
            code=ExitCode.VALIDATION_ERROR,
            hint=f"Use an index between 0 and {PALETTE_SIZE - 1}.",
        )
    if index < 16:
        # 0xc0 base channel, bright colours add 0x3f
        boost = 0x3F if index > 7 else 0
        red = (0xC0 if index & 1 else 0) + boost
        green = (0xC0 if index & 2 else 0) + boost
        blue = (0xC0 if index & 4 else 0) + boost
        return (red << 16) | (green << 8) | blue
    if index < 232:
        offset = index - 16
        red = _CUBE_STEPS[offset // 36]
        green = _CUBE_STEPS[(offset // 6) % 6]
        blue = _CUBE_STEPS[offset % 6]
        return (red << 16) | (green << 8) | blue
    shade = 8 + (index - 232) * 10
    return (shade << 16) | (shade << 8) | shade


def build_palette(overrides: Mapping[int, int] | None = None) -> tuple[int, ...]:
    colors = [default_color(index) for index in range(PALETTE_SIZE)]
    for index, color in (overrides or {}).items():
        if 0 <= index < PALETTE_SIZE:
            colors[index] = color & 0xFFFFFF
    return tuple(colors)
