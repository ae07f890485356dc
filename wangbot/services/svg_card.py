"""
wangbot.services.svg_card — SVG Profile Card
=============================================

Vector rendition of the profile card with the same 800×400 layout as the
Pillow renderer.  Used by the dashboard's ``/api/profile-card`` endpoint
and by the ``svg`` renderer strategy.  Remote images (avatar, background)
are referenced by URL rather than fetched, so rendering does no I/O.
"""

from __future__ import annotations

import logging
from xml.sax.saxutils import escape, quoteattr

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
from wangbot.engine.profile import ProfileData
from wangbot.services.card_renderer import (
    AVATAR_SIZE,
    AVATAR_X,
    AVATAR_Y,
    BADGE_SIZE,
    BADGE_SPACING,
    BADGE_X,
    BADGE_Y,
    BAR_HEIGHT,
    BAR_WIDTH,
    BAR_X,
    BAR_Y,
    STAT_HEIGHT,
    STAT_SPACING,
    STAT_WIDTH,
    STAT_X,
    STAT_Y,
    CardImage,
)

logger = logging.getLogger(__name__)

SVG_CONTENT_TYPE = "image/svg+xml"
FONT_FAMILY = "'Noto Sans KR', 'Apple SD Gothic Neo', sans-serif"


def _num(value: float) -> str:
    """Compact, stable number formatting for attributes."""
    return f"{value:.2f}".rstrip("0").rstrip(".")


def _text(x: float, y: float, body: str, *, size: int, fill: str,
          anchor: str = "start", bold: bool = False) -> str:
    weight = ' font-weight="bold"' if bold else ""
    return (
        f'<text x="{_num(x)}" y="{_num(y)}" font-size="{size}"{weight} '
        f'fill="{fill}" text-anchor="{anchor}">{escape(body)}</text>'
    )


def render_svg(profile: ProfileData) -> str:
    """Render *profile* as a standalone SVG document."""
    style = profile.style
    stats = profile.stats
    user = profile.user
    accent = style.accent_color or COLOR_ACCENT
    start, end = style.gradient_stops

    defs: list[str] = [
        f'<clipPath id="card-clip"><rect width="{CARD_WIDTH}" height="{CARD_HEIGHT}" '
        f'rx="{CORNER_RADIUS}"/></clipPath>',
        f'<clipPath id="avatar-clip"><circle cx="{AVATAR_X + AVATAR_SIZE // 2}" '
        f'cy="{AVATAR_Y + AVATAR_SIZE // 2}" r="{AVATAR_SIZE // 2}"/></clipPath>',
        '<linearGradient id="overlay" x1="0" y1="0" x2="0" y2="1">'
        '<stop offset="0" stop-color="#000000" stop-opacity="0.1"/>'
        '<stop offset="1" stop-color="#000000" stop-opacity="0.4"/></linearGradient>',
        f'<linearGradient id="progress" gradientUnits="userSpaceOnUse" x1="{BAR_X}" y1="0" '
        f'x2="{BAR_X + BAR_WIDTH}" y2="0">'
        f'<stop offset="0" stop-color={quoteattr(start)}/>'
        f'<stop offset="1" stop-color={quoteattr(end)}/></linearGradient>',
    ]
    body: list[str] = []

    # 1. Background
    body.append(
        f'<rect width="{CARD_WIDTH}" height="{CARD_HEIGHT}" rx="{CORNER_RADIUS}" '
        f'fill="{COLOR_BACKGROUND}"/>'
    )
    if style.background_image:
        body.append(
            f'<image href={quoteattr(style.background_image)} width="{CARD_WIDTH}" '
            f'height="{CARD_HEIGHT}" preserveAspectRatio="xMidYMid slice" '
            f'clip-path="url(#card-clip)"/>'
        )
    elif style.background_color:
        stops = style.background_stops
        if len(stops) >= 2:
            defs.append(
                '<linearGradient id="background" x1="0" y1="0" x2="1" y2="0">'
                f'<stop offset="0" stop-color="{stops[0]}"/>'
                f'<stop offset="1" stop-color="{stops[-1]}"/></linearGradient>'
            )
            fill = "url(#background)"
        else:
            fill = stops[0] if stops else style.background_color
        body.append(
            f'<rect width="{CARD_WIDTH}" height="{CARD_HEIGHT}" rx="{CORNER_RADIUS}" '
            f'fill={quoteattr(fill)}/>'
        )
    if style.has_custom_background:
        body.append(
            f'<rect width="{CARD_WIDTH}" height="{CARD_HEIGHT}" rx="{CORNER_RADIUS}" '
            f'fill="url(#overlay)"/>'
        )

    # 2. Identity
    cx = AVATAR_X + AVATAR_SIZE / 2
    cy = AVATAR_Y + AVATAR_SIZE / 2
    if user.avatar_url:
        body.append(
            f'<image href={quoteattr(user.avatar_url)} x="{AVATAR_X}" y="{AVATAR_Y}" '
            f'width="{AVATAR_SIZE}" height="{AVATAR_SIZE}" clip-path="url(#avatar-clip)"/>'
        )
    else:
        body.append(f'<circle cx="{_num(cx)}" cy="{_num(cy)}" r="{AVATAR_SIZE // 2}" fill="{COLOR_ACCENT}"/>')
        body.append(
            f'<text x="{_num(cx)}" y="{_num(cy)}" font-size="56" font-weight="bold" '
            f'fill="{COLOR_TEXT}" text-anchor="middle" dominant-baseline="central">'
            f'{escape(user.initial)}</text>'
        )
    body.append(
        f'<circle cx="{_num(cx)}" cy="{_num(cy)}" r="{AVATAR_SIZE // 2}" fill="none" '
        f'stroke="{COLOR_TEXT}" stroke-width="4"/>'
    )
    text_x = AVATAR_X + AVATAR_SIZE + 30
    body.append(_text(text_x, AVATAR_Y + 45, user.username, size=36, fill=COLOR_TEXT, bold=True))
    body.append(_text(text_x, AVATAR_Y + 80, user.tag, size=24, fill=COLOR_TEXT_MUTED))

    # 3. Stat tiles
    items = [
        (LABEL_LEVEL, str(stats.level)),
        (LABEL_XP, f"{stats.total_xp:,}"),
        (LABEL_POINTS, f"{stats.points:,}"),
    ]
    for index, (label, value) in enumerate(items):
        x = STAT_X + (STAT_WIDTH + STAT_SPACING) * index
        center = x + STAT_WIDTH / 2
        body.append(
            f'<rect x="{x}" y="{STAT_Y}" width="{STAT_WIDTH}" height="{STAT_HEIGHT}" rx="10" '
            f'fill="#FFFFFF" fill-opacity="0.1"/>'
        )
        body.append(_text(center, STAT_Y + 35, value, size=28, fill=COLOR_TEXT, anchor="middle", bold=True))
        body.append(_text(center, STAT_Y + 60, label, size=16, fill=COLOR_TEXT_MUTED, anchor="middle"))

    # 4. Progress bar
    radius = BAR_HEIGHT // 2
    body.append(
        f'<rect x="{BAR_X}" y="{BAR_Y}" width="{BAR_WIDTH}" height="{BAR_HEIGHT}" '
        f'rx="{radius}" fill="{COLOR_PROGRESS_BG}"/>'
    )
    percent = percent_complete(stats.xp, stats.max_xp)
    if percent > 0:
        fill_width = BAR_WIDTH * percent / 100
        body.append(
            f'<rect x="{BAR_X}" y="{BAR_Y}" width="{_num(fill_width)}" height="{BAR_HEIGHT}" '
            f'rx="{_num(min(radius, fill_width / 2))}" fill="url(#progress)"/>'
        )
    body.append(_text(BAR_X + BAR_WIDTH, BAR_Y - 5, f"{stats.xp:,} / {stats.max_xp:,} XP",
                      size=14, fill=COLOR_TEXT, anchor="end"))
    body.append(_text(BAR_X, BAR_Y - 5, LABEL_NEXT_LEVEL, size=14, fill=COLOR_TEXT))

    # 5. Achievements
    badges = profile.displayed_achievements
    if badges:
        body.append(_text(BADGE_X, BADGE_Y - 5, LABEL_RECENT_ACHIEVEMENTS, size=14, fill=COLOR_TEXT_MUTED))
        for index, badge in enumerate(badges):
            x = BADGE_X + (BADGE_SIZE + BADGE_SPACING) * index
            body.append(
                f'<rect x="{x}" y="{BADGE_Y}" width="{BADGE_SIZE}" height="{BADGE_SIZE}" rx="8" '
                f'fill="{rarity_color(badge.rarity)}"><title>{escape(badge.name)}</title></rect>'
            )
            body.append(_text(x + BADGE_SIZE / 2, BADGE_Y + BADGE_SIZE / 2 + 5, "★",
                              size=16, fill=COLOR_TEXT, anchor="middle", bold=True))

    # 6. Border
    body.append(
        f'<rect x="1.5" y="1.5" width="{CARD_WIDTH - 3}" height="{CARD_HEIGHT - 3}" '
        f'rx="{CORNER_RADIUS}" fill="none" stroke={quoteattr(accent)} stroke-width="3"/>'
    )

    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{CARD_WIDTH}" height="{CARD_HEIGHT}" '
        f'viewBox="0 0 {CARD_WIDTH} {CARD_HEIGHT}" font-family="{FONT_FAMILY}">'
        f'<defs>{"".join(defs)}</defs>'
        f'{"".join(body)}'
        '</svg>'
    )


class SvgCardRenderer:
    """Local SVG strategy for :class:`~wangbot.services.card_renderer.CardRenderer`."""

    filename = "profile.svg"

    async def render(self, profile: ProfileData) -> CardImage | None:
        try:
            document = render_svg(profile)
        except Exception:
            logger.exception("Error generating SVG profile card for user %s", profile.user.id)
            return None
        return CardImage(
            data=document.encode("utf-8"),
            filename=self.filename,
            content_type=SVG_CONTENT_TYPE,
        )
