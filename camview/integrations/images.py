from pathlib import Path

from PIL import Image, ImageDraw

from camview.config import logger


def ensure_error_image(out_path: Path, width: int = 320, height: int = 180) -> Path:
    """
    Render the placeholder used in place of thumbnails that cannot be generated.
    An existing file is left untouched so a custom asset can be dropped in.
    """
    if out_path.exists():
        return out_path

    out_path.parent.mkdir(parents=True, exist_ok=True)

    img = Image.new("RGB", (width, height), color=(45, 45, 48))
    draw = ImageDraw.Draw(img)
    draw.rectangle((0, 0, width - 1, height - 1), outline=(110, 110, 115), width=2)
    text = "No preview"
    left, top, right, bottom = draw.textbbox((0, 0), text)
    draw.text(
        ((width - (right - left)) / 2, (height - (bottom - top)) / 2),
        text,
        fill=(200, 200, 205),
    )
    img.save(out_path, format="JPEG", quality=85)

    logger.info(f"Placeholder thumbnail written to {out_path}")
    return out_path
