"""Unit tests for local report capture"""

from io import BytesIO

import pytest
from PIL import Image

from dealer_backoffice.domain.capture import (
    RasterImage,
    capture_element,
    fit_image_to_page,
    prepared_for_capture,
    render_raster_pdf,
)
from dealer_backoffice.domain.exceptions import CaptureError, CaptureTimeoutError


def _png(width=40, height=20) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), (255, 69, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeElement:
    def __init__(self, scroll_top=0.0, **styles):
        self.scroll_top = scroll_top
        self.styles = dict(styles)

    def get_style(self, prop):
        return self.styles.get(prop, "")

    def set_style(self, prop, value):
        self.styles[prop] = value


class FakeTarget:
    def __init__(self, settled=True, fail_with=None):
        self.root = FakeElement(scroll_top=120.0, overflow="auto")
        self.button = FakeElement(visibility="visible", opacity="1")
        self.container = FakeElement(scroll_top=40.0, **{"overflow-y": "scroll"})
        self.settled = settled
        self.fail_with = fail_with
        self.seen_during_capture = None

    def chrome_elements(self):
        return [self.button]

    def scroll_ancestors(self):
        return [self.container]

    def is_settled(self):
        return self.settled

    async def rasterize(self, pixel_ratio):
        self.seen_during_capture = (
            dict(self.button.styles),
            dict(self.root.styles),
            self.root.scroll_top,
        )
        if self.fail_with:
            raise self.fail_with
        return RasterImage(png=_png(), width=40, height=20)

    def assert_restored(self):
        assert self.button.styles == {"visibility": "visible", "opacity": "1"}
        assert self.root.styles["overflow"] == "auto"
        assert self.root.scroll_top == 120.0
        assert self.container.styles["overflow-y"] == "scroll"
        assert self.container.scroll_top == 40.0


def test_fit_image_to_page_wide_image():
    # 540pt usable width limits a 4:1 image on letter
    assert fit_image_to_page(2000, 500, 612, 792) == (36, 328.5, 540, 135)


def test_fit_image_to_page_tall_image_keeps_aspect_ratio():
    x, y, width, height = fit_image_to_page(500, 4000, 612, 792)
    assert height == 720
    assert width / height == pytest.approx(500 / 4000)
    assert x == pytest.approx((612 - width) / 2)


def test_fit_image_rejects_empty_image():
    with pytest.raises(ValueError):
        fit_image_to_page(0, 100, 612, 792)


def test_prepared_for_capture_restores_on_error():
    target = FakeTarget()
    with pytest.raises(RuntimeError):
        with prepared_for_capture(target):
            assert target.button.styles["visibility"] == "hidden"
            assert target.root.scroll_top == 0
            raise RuntimeError("boom")
    target.assert_restored()


def test_render_raster_pdf():
    pdf = render_raster_pdf(RasterImage(png=_png(), width=40, height=20))
    assert pdf.startswith(b"%PDF")


async def test_capture_element_pdf():
    target = FakeTarget()

    pdf = await capture_element(target)

    assert pdf.startswith(b"%PDF")
    chrome, root, scroll_top = target.seen_during_capture
    assert chrome == {"visibility": "hidden", "opacity": "0"}
    assert root["overflow"] == root["overflow-x"] == root["overflow-y"] == "visible"
    assert scroll_top == 0
    target.assert_restored()


async def test_capture_element_png():
    png = await capture_element(FakeTarget(), as_pdf=False)
    assert png.startswith(b"\x89PNG")


async def test_capture_element_times_out_and_restores():
    target = FakeTarget(settled=False)

    with pytest.raises(CaptureTimeoutError):
        await capture_element(target, settle_timeout=0.05, poll_interval=0.01)

    assert target.seen_during_capture is None
    target.assert_restored()


async def test_capture_element_wraps_rasterize_failure():
    target = FakeTarget(fail_with=OSError("canvas tainted"))

    with pytest.raises(CaptureError, match="canvas tainted"):
        await capture_element(target)

    target.assert_restored()
