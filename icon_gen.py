"""Generate the window icon (64×64 PIL Image, in-memory)."""

from PIL import Image, ImageDraw

# Legend colours, level 0 … 4
LEVEL_COLORS = ["#EBEDF0", "#9BE9A8", "#40C463", "#30A14E", "#216E39"]

# A small 4×4 sample of contribution levels
_SAMPLE = [
    [0, 1, 2, 4],
    [1, 3, 4, 2],
    [2, 4, 1, 0],
    [4, 2, 0, 3],
]


def create_icon_image(size: int = 64) -> Image.Image:
    """Return a ``size``×``size`` RGBA image of a tiny contribution grid."""
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    n = len(_SAMPLE)
    gap = max(1, size // 32)
    cell = (size - gap * (n + 1)) / n
    for r, row in enumerate(_SAMPLE):
        for c, level in enumerate(row):
            x0 = round(gap + c * (cell + gap))
            y0 = round(gap + r * (cell + gap))
            draw.rounded_rectangle(
                (x0, y0, x0 + round(cell) - 1, y0 + round(cell) - 1),
                radius=max(1, size // 16), fill=LEVEL_COLORS[level],
            )
    return img
