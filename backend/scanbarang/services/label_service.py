"""
Scan Barang Backend — Item Label (QR) Composer
================================================

What:  Renders the printable label for an item: its name on top and a QR
       code below that encodes the item's attributes as JSON.
Why:   The scanner app reads the QR and uses `code` to look the item up, so
       every item gets a label even when the client doesn't upload one.
How:   qrcode builds the matrix (error correction H, tolerant of smudged
       prints); Pillow draws the canvas, the title and the scaled QR.

Layout (400 × 480, white):
    ┌────────────────────────┐
    │      Item name…        │  ← centered, truncated with "..."
    │  ┌──────────────────┐  │
    │  │                  │  │
    │  │     QR code      │  │  ← 360 × 360
    │  │                  │  │
    │  └──────────────────┘  │
    └────────────────────────┘

compose_item_label() is pure and CPU-bound; request handlers call
render_item_label(), which runs it in the thread pool.
"""

import io
import json
import logging

import qrcode
from PIL import Image, ImageDraw, ImageFont
from qrcode.exceptions import DataOverflowError
from starlette.concurrency import run_in_threadpool

from scanbarang.exceptions import RenderError

logger = logging.getLogger(__name__)

CANVAS_WIDTH = 400
CANVAS_HEIGHT = 480
MARGIN = 20
TITLE_FONT_SIZE = 24
TITLE_AREA = 70
ELLIPSIS = "..."


def build_payload(name: str, quantity: int, code: str, brand: str, image_ref: str) -> str:
    """JSON encoded into the QR. Key order is fixed so identical items render identically."""
    return json.dumps(
        {"name": name, "quantity": quantity, "code": code, "brand": brand, "image": image_ref},
        ensure_ascii=False,
    )


def fit_text(draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont, max_width: float) -> str:
    """Trim `text` until it (plus an ellipsis) fits in `max_width` pixels."""
    if draw.textlength(text, font=font) <= max_width:
        return text
    while text and draw.textlength(text + ELLIPSIS, font=font) > max_width:
        text = text[:-1]
    return text.rstrip() + ELLIPSIS


def compose_item_label(name: str, quantity: int, code: str, brand: str, image_ref: str) -> bytes:
    """
    Render the label and return PNG bytes.

    Raises:
        RenderError: the payload doesn't fit in a QR code, or drawing fails.
    """
    payload = build_payload(name, quantity, code, brand, image_ref)
    try:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=10,
            border=2,
        )
        qr.add_data(payload)
        qr.make(fit=True)
        qr_img = qr.make_image(fill_color="black", back_color="white").get_image().convert("RGB")

        qr_side = min(CANVAS_WIDTH - 2 * MARGIN, CANVAS_HEIGHT - TITLE_AREA - MARGIN)
        qr_img = qr_img.resize((qr_side, qr_side), Image.NEAREST)

        canvas = Image.new("RGB", (CANVAS_WIDTH, CANVAS_HEIGHT), "white")
        draw = ImageDraw.Draw(canvas)
        font = ImageFont.load_default(size=TITLE_FONT_SIZE)

        title = fit_text(draw, name, font, CANVAS_WIDTH - 2 * MARGIN)
        title_width = draw.textlength(title, font=font)
        draw.text(((CANVAS_WIDTH - title_width) / 2, MARGIN), title, fill="black", font=font)

        canvas.paste(qr_img, ((CANVAS_WIDTH - qr_side) // 2, TITLE_AREA))

        buf = io.BytesIO()
        canvas.save(buf, format="PNG")
    except DataOverflowError as e:
        raise RenderError(
            message="Item data is too long to encode in a QR code",
            details=str(e),
            context={"payload_length": len(payload)},
        )
    except (ValueError, OSError) as e:
        logger.error("Label rendering failed for code=%s: %s", code, str(e))
        raise RenderError(details=str(e), context={"code": code})

    return buf.getvalue()


async def render_item_label(name: str, quantity: int, code: str, brand: str, image_ref: str) -> bytes:
    """compose_item_label, off the event loop."""
    return await run_in_threadpool(compose_item_label, name, quantity, code, brand, image_ref)
