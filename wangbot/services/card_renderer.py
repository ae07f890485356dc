"""
wangbot.services.card_renderer — Profile Card Rendering
========================================================

One contract, several strategies.  A renderer turns a
:class:`~wangbot.engine.profile.ProfileData` into a :class:`CardImage`
(encoded bytes + file name) or returns ``None`` after logging a drawing
failure; it never raises to the caller.

Strategies (selected by ``card_renderer`` in ``config.yaml``):

* ``local``  — :class:`RasterCardRenderer`, an 800×400 PNG drawn with Pillow.
* ``svg``    — :class:`~wangbot.services.svg_card.SvgCardRenderer`.
* ``remote`` — the dashboard's SVG endpoint, falling back to ``local``.

Drawing order for the raster card:

1. Background (base colour, optional image or custom colour, dark overlay)
2. Identity   (circular avatar or initial placeholder, name, tag)
3. Stat tiles (level, total XP, points)
4. Progress bar
5. Achievement strip (up to five badges)
6. Border

Background image and avatar are fetched over HTTP through an injectable
loader; when either is unreachable the card falls back to a solid colour
or a generated placeholder and keeps going.
"""

from __future__ import annotations

import asyncio
import io
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import httpx
from PIL import Image, ImageColor, ImageDraw, ImageFont

from wangbot.constants import (
    CARD_HEIGHT,
    CARD_WIDTH,
    COLOR_ACCENT,
    COLOR_BACKGROUND,
    COLOR_PROGRESS_BG,
    COLOR_TEXT,
    COLOR_TEXT_MUTED,
    CORNER_RADIUS,
    LABEL_LEVEL,
    LABEL_NEXT_LEVEL,
    LABEL_POINTS,
    LABEL_RECENT_ACHIEVEMENTS,
    LABEL_XP,
    rarity_color,
)
from wangbot.engine.leveling import percent_complete
from wangbot.engine.profile import CardStyle, ProfileData, ProfileStats, UserIdentity

if TYPE_CHECKING:
    from wangbot.config import WangbotConfig

logger = logging.getLogger(__name__)

ImageLoader = Callable[[str], Awaitable[bytes]]

FETCH_TIMEOUT_SECONDS = 10.0

# Identity block
AVATAR_SIZE = 120
AVATAR_X = 50
AVATAR_Y = 50
PLACEHOLDER_SIZE = 256

# Stat tiles
STAT_X = 50
STAT_Y = 220
STAT_WIDTH = 200
STAT_HEIGHT = 80
STAT_SPACING = 20

# Progress bar
BAR_X = 50
BAR_Y = 320
BAR_WIDTH = CARD_WIDTH - 100
BAR_HEIGHT = 20

# Achievement strip
BADGE_X = 50
BADGE_Y = 360
BADGE_SIZE = 30
BADGE_SPACING = 10

BORDER_WIDTH = 3

RGBA = tuple[int, int, int, int]


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CardImage:
    """An encoded card ready to attach to a Discord message."""

    data: bytes
    filename: str
    content_type: str


class CardRenderer(Protocol):
    async def render(self, profile: ProfileData) -> CardImage | None: ...


async def fetch_image_bytes(url: str) -> bytes:
    """Default image loader: GET *url* with httpx and return the body.

    Raises :class:`httpx.HTTPError` on transport failures and non-2xx
    responses.
    """
    async with httpx.AsyncClient(timeout=FETCH_TIMEOUT_SECONDS, follow_redirects=True) as client:
        resp = await client.get(url)
        resp.raise_for_status()
        return resp.content


# ---------------------------------------------------------------------------
# Drawing helpers
# ---------------------------------------------------------------------------
def _rgba(value: str | None, fallback: str, alpha: int = 255) -> RGBA:
    """Parse a CSS colour, using *fallback* when it's missing or invalid."""
    for candidate in (value, fallback):
        if not candidate:
            continue
        try:
            r, g, b = ImageColor.getrgb(candidate)[:3]
            return (r, g, b, alpha)
        except ValueError:
            continue
    return (0, 0, 0, alpha)


def _load_font(path: str | None, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a TrueType font, falling back to Pillow's bundled font."""
    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError as exc:
            logger.warning("Font load failed (%s): %s — using default font", path, exc)
    return ImageFont.load_default(size=size)


def _rounded_mask(size: tuple[int, int], radius: int) -> Image.Image:
    mask = Image.new("L", size, 0)
    ImageDraw.Draw(mask).rounded_rectangle(
        (0, 0, size[0] - 1, size[1] - 1), radius=radius, fill=255
    )
    return mask


def _circle_mask(diameter: int) -> Image.Image:
    mask = Image.new("L", (diameter, diameter), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, diameter - 1, diameter - 1), fill=255)
    return mask


def _horizontal_gradient(size: tuple[int, int], start: RGBA, end: RGBA) -> Image.Image:
    width, height = size
    strip = Image.new("RGBA", (width, 1))
    span = max(width - 1, 1)
    for x in range(width):
        t = x / span
        strip.putpixel((x, 0), tuple(round(a + (b - a) * t) for a, b in zip(start, end)))
    return strip.resize((width, height), Image.Resampling.NEAREST)


def _vertical_gradient(size: tuple[int, int], start: RGBA, end: RGBA) -> Image.Image:
    width, height = size
    strip = Image.new("RGBA", (1, height))
    span = max(height - 1, 1)
    for y in range(height):
        t = y / span
        strip.putpixel((0, y), tuple(round(a + (b - a) * t) for a, b in zip(start, end)))
    return strip.resize((width, height), Image.Resampling.NEAREST)


def _cover(image: Image.Image, size: tuple[int, int]) -> Image.Image:
    """Scale and centre-crop *image* so it fills *size*."""
    width, height = size
    scale = max(width / image.width, height / image.height)
    resized = image.resize(
        (max(width, math.ceil(image.width * scale)), max(height, math.ceil(image.height * scale))),
        Image.Resampling.LANCZOS,
    )
    left = (resized.width - width) // 2
    top = (resized.height - height) // 2
    return resized.crop((left, top, left + width, top + height))


def _star_points(cx: float, cy: float, outer: float, inner: float) -> list[tuple[float, float]]:
    points = []
    for i in range(10):
        radius = outer if i % 2 == 0 else inner
        angle = -math.pi / 2 + i * math.pi / 5
        points.append((round(cx + radius * math.cos(angle), 2), round(cy + radius * math.sin(angle), 2)))
    return points


def decode_image(raw: bytes) -> Image.Image:
    """Decode image bytes into an RGBA Pillow image."""
    image = Image.open(io.BytesIO(raw))
    image.load()
    return image.convert("RGBA")


# ---------------------------------------------------------------------------
# Raster renderer
# ---------------------------------------------------------------------------
class RasterCardRenderer:
    """Draws the profile card as a PNG with Pillow.

    Parameters
    ----------
    image_loader:
        Async callable returning raw bytes for a URL.  Defaults to an
        httpx GET; tests inject fakes.
    font_path, font_bold_path:
        Optional TrueType fonts (use one with Hangul coverage in production).
    """

    filename = "profile.png"
    content_type = "image/png"

    def __init__(
        self,
        image_loader: ImageLoader = fetch_image_bytes,
        *,
        font_path: str | None = None,
        font_bold_path: str | None = None,
    ) -> None:
        self._load_bytes = image_loader
        bold = font_bold_path or font_path
        self.font_username = _load_font(bold, 36)
        self.font_tag = _load_font(font_path, 24)
        self.font_stat_value = _load_font(bold, 28)
        self.font_stat_label = _load_font(font_path, 16)
        self.font_caption = _load_font(font_path, 14)
        self.font_initial = _load_font(bold, 120)

    # -- async entry point ---------------------------------------------------
    async def render(self, profile: ProfileData) -> CardImage | None:
        try:
            avatar = await self._load_image(profile.user.avatar_url, "avatar")
            background = await self._load_image(profile.style.background_image, "background")
            data = await asyncio.to_thread(self.compose, profile, avatar, background)
        except Exception:
            logger.exception("Error generating profile card for user %s", profile.user.id)
            return None
        return CardImage(data=data, filename=self.filename, content_type=self.content_type)

    async def _load_image(self, url: str | None, what: str) -> Image.Image | None:
        if not url:
            return None
        try:
            raw = await self._load_bytes(url)
            return await asyncio.to_thread(decode_image, raw)
        except Exception as exc:
            # Bad URLs, HTTP errors and undecodable or oversized images all
            # degrade to the placeholder / solid background.
            logger.warning("Could not load %s image %s: %s", what, url, exc)
            return None

    # -- synchronous composition ----------------------------------------------
    def compose(
        self,
        profile: ProfileData,
        avatar: Image.Image | None = None,
        background: Image.Image | None = None,
    ) -> bytes:
        """Draw the card from already-loaded images and return PNG bytes.

        Pure function of its inputs: same arguments, same bytes.
        """
        canvas = Image.new("RGBA", (CARD_WIDTH, CARD_HEIGHT), (0, 0, 0, 0))
        card_mask = _rounded_mask(canvas.size, CORNER_RADIUS)

        self._draw_background(canvas, card_mask, profile.style, background)
        try:
            self._draw_identity(canvas, profile.user, avatar)
        except Exception:
            logger.exception("Error drawing user info for %s", profile.user.id)
        self._draw_stats(canvas, profile.stats)
        self._draw_progress_bar(canvas, profile.stats, profile.style)
        self._draw_achievements(canvas, profile)
        self._draw_border(canvas, profile.style)

        buf = io.BytesIO()
        canvas.save(buf, format="PNG")
        return buf.getvalue()

    # 1. Background
    def _draw_background(
        self,
        canvas: Image.Image,
        card_mask: Image.Image,
        style: CardStyle,
        background: Image.Image | None,
    ) -> None:
        canvas.paste(Image.new("RGBA", canvas.size, _rgba(COLOR_BACKGROUND, COLOR_BACKGROUND)), (0, 0), card_mask)

        if background is not None:
            try:
                canvas.paste(_cover(background, canvas.size), (0, 0), card_mask)
            except (OSError, ValueError):
                logger.warning("Background image could not be drawn; keeping solid colour")
        elif style.background_color:
            stops = style.background_stops
            if len(stops) >= 2:
                fill = _horizontal_gradient(canvas.size, _rgba(stops[0], COLOR_BACKGROUND), _rgba(stops[-1], COLOR_BACKGROUND))
            else:
                fill = Image.new("RGBA", canvas.size, _rgba(stops[0] if stops else style.background_color, COLOR_BACKGROUND))
            canvas.paste(fill, (0, 0), card_mask)

        if style.has_custom_background:
            overlay = _vertical_gradient(canvas.size, (0, 0, 0, 26), (0, 0, 0, 102))
            clipped = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
            clipped.paste(overlay, (0, 0), card_mask)
            canvas.alpha_composite(clipped)

    # 2. Identity
    def placeholder_avatar(self, user: UserIdentity) -> Image.Image:
        """Brand-coloured tile with the member's initial."""
        tile = Image.new("RGBA", (PLACEHOLDER_SIZE, PLACEHOLDER_SIZE), _rgba(COLOR_ACCENT, COLOR_ACCENT))
        ImageDraw.Draw(tile).text(
            (PLACEHOLDER_SIZE / 2, PLACEHOLDER_SIZE / 2),
            user.initial,
            font=self.font_initial,
            fill=_rgba(COLOR_TEXT, COLOR_TEXT),
            anchor="mm",
        )
        return tile

    def _draw_identity(self, canvas: Image.Image, user: UserIdentity, avatar: Image.Image | None) -> None:
        source = avatar if avatar is not None else self.placeholder_avatar(user)
        face = source.resize((AVATAR_SIZE, AVATAR_SIZE), Image.Resampling.LANCZOS)
        canvas.paste(face, (AVATAR_X, AVATAR_Y), _circle_mask(AVATAR_SIZE))

        draw = ImageDraw.Draw(canvas, "RGBA")
        draw.ellipse(
            (AVATAR_X - 2, AVATAR_Y - 2, AVATAR_X + AVATAR_SIZE + 2, AVATAR_Y + AVATAR_SIZE + 2),
            outline=_rgba(COLOR_TEXT, COLOR_TEXT),
            width=4,
        )

        text_x = AVATAR_X + AVATAR_SIZE + 30
        draw.text((text_x, AVATAR_Y + 45), user.username, font=self.font_username,
                  fill=_rgba(COLOR_TEXT, COLOR_TEXT), anchor="ls")
        draw.text((text_x, AVATAR_Y + 80), user.tag, font=self.font_tag,
                  fill=_rgba(COLOR_TEXT_MUTED, COLOR_TEXT_MUTED), anchor="ls")

    # 3. Stat tiles
    def _draw_stats(self, canvas: Image.Image, stats: ProfileStats) -> None:
        draw = ImageDraw.Draw(canvas, "RGBA")
        items = [
            (LABEL_LEVEL, str(stats.level)),
            (LABEL_XP, f"{stats.total_xp:,}"),
            (LABEL_POINTS, f"{stats.points:,}"),
        ]
        for index, (label, value) in enumerate(items):
            x = STAT_X + (STAT_WIDTH + STAT_SPACING) * index
            draw.rounded_rectangle(
                (x, STAT_Y, x + STAT_WIDTH, STAT_Y + STAT_HEIGHT),
                radius=10,
                fill=(255, 255, 255, 26),
            )
            center = x + STAT_WIDTH / 2
            draw.text((center, STAT_Y + 35), value, font=self.font_stat_value,
                      fill=_rgba(COLOR_TEXT, COLOR_TEXT), anchor="ms")
            draw.text((center, STAT_Y + 60), label, font=self.font_stat_label,
                      fill=_rgba(COLOR_TEXT_MUTED, COLOR_TEXT_MUTED), anchor="ms")

    # 4. Progress bar
    def _draw_progress_bar(self, canvas: Image.Image, stats: ProfileStats, style: CardStyle) -> None:
        draw = ImageDraw.Draw(canvas, "RGBA")
        radius = BAR_HEIGHT // 2
        draw.rounded_rectangle(
            (BAR_X, BAR_Y, BAR_X + BAR_WIDTH, BAR_Y + BAR_HEIGHT),
            radius=radius,
            fill=_rgba(COLOR_PROGRESS_BG, COLOR_PROGRESS_BG),
        )

        percent = percent_complete(stats.xp, stats.max_xp)
        fill_width = round(BAR_WIDTH * percent / 100)
        if fill_width >= 1:
            start, end = style.gradient_stops
            accent = style.accent_color or COLOR_ACCENT
            # The gradient spans the whole bar; the fill shows its left part.
            gradient = _horizontal_gradient(
                (BAR_WIDTH, BAR_HEIGHT), _rgba(start, accent), _rgba(end, accent)
            ).crop((0, 0, fill_width, BAR_HEIGHT))
            mask = _rounded_mask((fill_width, BAR_HEIGHT), min(radius, fill_width // 2))
            canvas.paste(gradient, (BAR_X, BAR_Y), mask)

        white = _rgba(COLOR_TEXT, COLOR_TEXT)
        draw.text((BAR_X + BAR_WIDTH, BAR_Y - 5), f"{stats.xp:,} / {stats.max_xp:,} XP",
                  font=self.font_caption, fill=white, anchor="rs")
        draw.text((BAR_X, BAR_Y - 5), LABEL_NEXT_LEVEL, font=self.font_caption,
                  fill=white, anchor="ls")

    # 5. Achievements
    def _draw_achievements(self, canvas: Image.Image, profile: ProfileData) -> None:
        badges = profile.displayed_achievements
        if not badges:
            return
        draw = ImageDraw.Draw(canvas, "RGBA")
        draw.text((BADGE_X, BADGE_Y - 5), LABEL_RECENT_ACHIEVEMENTS, font=self.font_caption,
                  fill=_rgba(COLOR_TEXT_MUTED, COLOR_TEXT_MUTED), anchor="ls")
        for index, badge in enumerate(badges):
            x = BADGE_X + (BADGE_SIZE + BADGE_SPACING) * index
            draw.rounded_rectangle(
                (x, BADGE_Y, x + BADGE_SIZE, BADGE_Y + BADGE_SIZE),
                radius=8,
                fill=_rgba(rarity_color(badge.rarity), COLOR_TEXT_MUTED),
            )
            draw.polygon(
                _star_points(x + BADGE_SIZE / 2, BADGE_Y + BADGE_SIZE / 2, 9, 4),
                fill=_rgba(COLOR_TEXT, COLOR_TEXT),
            )

    # 6. Border
    def _draw_border(self, canvas: Image.Image, style: CardStyle) -> None:
        ImageDraw.Draw(canvas, "RGBA").rounded_rectangle(
            (1, 1, CARD_WIDTH - 2, CARD_HEIGHT - 2),
            radius=CORNER_RADIUS,
            outline=_rgba(style.accent_color, COLOR_ACCENT),
            width=BORDER_WIDTH,
        )


# ---------------------------------------------------------------------------
# Fallback chain
# ---------------------------------------------------------------------------
class FallbackCardRenderer:
    """Try *primary*; when it yields nothing, render with *fallback*."""

    def __init__(self, primary: CardRenderer, fallback: CardRenderer) -> None:
        self.primary = primary
        self.fallback = fallback

    async def render(self, profile: ProfileData) -> CardImage | None:
        card = await self.primary.render(profile)
        if card is not None:
            return card
        logger.warning(
            "%s produced no card for user %s — falling back to %s",
            type(self.primary).__name__, profile.user.id, type(self.fallback).__name__,
        )
        return await self.fallback.render(profile)


def create_card_renderer(cfg: WangbotConfig) -> CardRenderer:
    """Build the renderer strategy named by ``cfg.card_renderer``."""
    from wangbot.services.remote_card import RemoteCardRenderer
    from wangbot.services.svg_card import SvgCardRenderer

    raster = RasterCardRenderer(font_path=cfg.font_path, font_bold_path=cfg.font_bold_path)
    if cfg.card_renderer == "svg":
        return SvgCardRenderer()
    if cfg.card_renderer == "remote":
        return FallbackCardRenderer(RemoteCardRenderer(cfg.dashboard_url), raster)
    return raster
