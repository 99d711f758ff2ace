"""Local rasterize-to-PDF capture of a rendered report view"""

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from io import BytesIO
from typing import Iterator, List, Protocol, Sequence, Tuple

from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from dealer_backoffice.domain.exceptions import CaptureError, CaptureTimeoutError

logger = logging.getLogger(__name__)

HIDDEN_CHROME_STYLES = {"visibility": "hidden", "opacity": "0"}
OVERFLOW_PROPERTIES = ("overflow", "overflow-x", "overflow-y")
PAGE_MARGIN_PT = 36


class StyledElement(Protocol):
    """Anything with inline styles and a vertical scroll offset"""

    scroll_top: float

    def get_style(self, prop: str) -> str:
        ...

    def set_style(self, prop: str, value: str) -> None:
        ...


class CaptureTarget(Protocol):
    """A rendered report view that can be prepared and rasterized"""

    root: StyledElement

    def chrome_elements(self) -> Sequence[StyledElement]:
        """Buttons, toolbars and other elements that must not appear in the capture"""
        ...

    def scroll_ancestors(self) -> Sequence[StyledElement]:
        """Clipping containers between the root and the page"""
        ...

    def is_settled(self) -> bool:
        """True once fonts, images and charts have finished laying out"""
        ...

    async def rasterize(self, pixel_ratio: float) -> "RasterImage":
        ...


@dataclass(frozen=True)
class RasterImage:
    png: bytes
    width: int
    height: int


@dataclass
class _SavedStyle:
    element: StyledElement
    prop: str
    value: str


@contextmanager
def prepared_for_capture(target: CaptureTarget) -> Iterator[CaptureTarget]:
    """
    Hide chrome and unclip scroll containers for the duration of a capture.

    Every mutated style and scroll offset is put back on exit, including when
    the capture raises.
    """
    saved_styles: List[_SavedStyle] = []
    saved_scroll: List[Tuple[StyledElement, float]] = []

    def override(element: StyledElement, prop: str, value: str) -> None:
        saved_styles.append(_SavedStyle(element, prop, element.get_style(prop)))
        element.set_style(prop, value)

    try:
        for element in target.chrome_elements():
            for prop, value in HIDDEN_CHROME_STYLES.items():
                override(element, prop, value)

        for element in [target.root, *target.scroll_ancestors()]:
            for prop in OVERFLOW_PROPERTIES:
                override(element, prop, "visible")
            saved_scroll.append((element, element.scroll_top))
            element.scroll_top = 0

        yield target
    finally:
        for element, offset in reversed(saved_scroll):
            element.scroll_top = offset
        for saved in reversed(saved_styles):
            saved.element.set_style(saved.prop, saved.value)


async def wait_until_settled(target: CaptureTarget, timeout: float, poll_interval: float) -> None:
    """Poll the target's readiness predicate; raise CaptureTimeoutError past timeout"""

    async def _poll() -> None:
        while not target.is_settled():
            await asyncio.sleep(poll_interval)

    try:
        await asyncio.wait_for(_poll(), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise CaptureTimeoutError(f"View did not settle within {timeout}s") from e


def fit_image_to_page(
    image_width: float,
    image_height: float,
    page_width: float,
    page_height: float,
    margin: float = PAGE_MARGIN_PT,
) -> Tuple[float, float, float, float]:
    """
    Placement (x, y, width, height) of an image inside the page margins.

    Aspect ratio is preserved and the image is centered; it is scaled down
    (or up) until the limiting side touches the margin, so nothing is cropped.
    """
    if image_width <= 0 or image_height <= 0:
        raise ValueError("Image dimensions must be positive")

    usable_width = page_width - 2 * margin
    usable_height = page_height - 2 * margin
    scale = min(usable_width / image_width, usable_height / image_height)

    width = image_width * scale
    height = image_height * scale
    x = (page_width - width) / 2
    y = (page_height - height) / 2
    return x, y, width, height


def render_raster_pdf(image: RasterImage, pagesize: Tuple[float, float] = letter) -> bytes:
    """Embed a PNG into a single PDF page"""
    buffer = BytesIO()
    page_width, page_height = pagesize
    x, y, width, height = fit_image_to_page(image.width, image.height, page_width, page_height)

    pdf = canvas.Canvas(buffer, pagesize=pagesize)
    pdf.drawImage(ImageReader(BytesIO(image.png)), x, y, width=width, height=height)
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


async def capture_element(
    target: CaptureTarget,
    as_pdf: bool = True,
    pixel_ratio: float = 3.0,
    settle_timeout: float = 10.0,
    poll_interval: float = 0.1,
) -> bytes:
    """
    Capture a report view as a letter-size PDF, or as the raw PNG.

    Raises:
        CaptureTimeoutError: the view never settled
        CaptureError: rasterization failed
    """
    with prepared_for_capture(target):
        await wait_until_settled(target, settle_timeout, poll_interval)
        try:
            image = await target.rasterize(pixel_ratio)
        except CaptureError:
            raise
        except Exception as e:
            raise CaptureError(f"Rasterization failed: {e}") from e

    logger.info(
        "Captured report view",
        extra={"width_px": image.width, "height_px": image.height, "pixel_ratio": pixel_ratio},
    )

    if not as_pdf:
        return image.png
    return render_raster_pdf(image)
