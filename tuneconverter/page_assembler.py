"""PageAssembler: renders every part and page of a tune concurrently."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import TypeVar

import numpy as np

from tuneconverter.bar_renderer import BarRenderer
from tuneconverter.glyphs import DrawnGlyphLibrary, GlyphLibrary
from tuneconverter.page_layout import (
    PageLayout,
    Segment,
    SegmentKind,
    compose_page,
    fit_to_paper,
)
from tuneconverter.raster import blank
from tuneconverter.title_page import TitlePage
from tuneconverter.tune_models import Tune

logger = logging.getLogger(__name__)

T = TypeVar("T")

PARTS_PER_PAGE = 2


def group_pages(title: Segment, parts: Sequence[list[Segment]]) -> list[list[Segment]]:
    """
    Group the title and each part's segments two slots per page.

    The title takes the first slot of page one, so ``P`` parts fill
    ``ceil((P + 1) / 2)`` pages. Later pages start with a blank header as
    tall as the title.
    """
    header = Segment(SegmentKind.HEADER, blank(title.image.shape[1], title.height))
    slots: list[list[Segment]] = [[title], *parts]

    pages: list[list[Segment]] = []
    for first in range(0, len(slots), PARTS_PER_PAGE):
        page = [] if first == 0 else [header]
        for slot in slots[first : first + PARTS_PER_PAGE]:
            page.extend(slot)
        pages.append(page)
    return pages


class PageAssembler:
    """
    Turn a parsed Tune into an ordered list of paper-shaped page rasters.

    Pipeline
    --------
    1. Draw the title strip.
    2. Fan out one task per part (part strip, link bridge, spacers) and join
       them all.
    3. Group the title and parts two per page. Every page canvas is as tall
       as the tallest page, so all sheets come out the same size.
    4. Fan out one task per page (stack segments, fit to paper) and join
       them all.

    The first failing task cancels the tasks that have not started and its
    exception propagates. With ``timeout`` set, each join raises
    :class:`TimeoutError` once the deadline passes. Pages are returned in page
    order, whatever order they finish in.

    All tasks share one :class:`BarRenderer`, so a bar shape repeated anywhere
    in the tune is composed once.
    """

    def __init__(
        self,
        glyphs: GlyphLibrary | None = None,
        max_workers: int | None = None,
        timeout: float | None = None,
        font_path: str | None = None,
    ) -> None:
        """
        Args:
            glyphs:      Glyph source; defaults to the drawn glyph library.
            max_workers: Worker threads for part and page tasks (None lets
                         the executor decide).
            timeout:     Seconds to wait for each fan-out stage; None waits
                         indefinitely.
            font_path:   TrueType font for the title strip and drawn glyphs.
        """
        self.glyphs = glyphs if glyphs is not None else DrawnGlyphLibrary(font_path)
        self.bar_renderer = BarRenderer(self.glyphs)
        self.page_layout = PageLayout(self.glyphs, self.bar_renderer)
        self.title_page = TitlePage(font_path)
        self.max_workers = max_workers
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _join(self, futures: list[Future[T]], stage: str) -> list[T]:
        done, pending = wait(futures, timeout=self.timeout, return_when=FIRST_EXCEPTION)

        failed = next((f for f in futures if f in done and f.exception() is not None), None)
        if failed is not None or pending:
            for future in pending:
                future.cancel()
            if failed is not None:
                logger.debug("%s task failed; cancelled %d pending task(s)", stage, len(pending))
                raise failed.exception()  # type: ignore[misc]
            raise TimeoutError(
                f"{len(pending)} {stage} task(s) did not finish within {self.timeout} s."
            )

        return [future.result() for future in futures]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def assemble_page(self, segments: list[Segment], width: int, height: int) -> np.ndarray:
        return fit_to_paper(compose_page(segments, width, height))

    def create_tune(self, tune: Tune) -> list[np.ndarray]:
        """
        Render ``tune`` into paper-shaped pages.

        Raises:
            LayoutOverflowError: If a glyph placement does not fit its canvas.
            UnknownGlyphError: If a mandatory glyph is missing.
            TimeoutError: If a stage exceeds ``timeout``.
        """
        layout = tune.layout
        width = self.page_layout.page_width(layout)
        title = Segment(SegmentKind.TITLE, self.title_page.create(tune, width))

        pool = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="tuneconverter")
        try:
            part_segments = self._join(
                [
                    pool.submit(
                        self.page_layout.assemble_part_segments, part, layout, tune.repeat_style
                    )
                    for part in tune.parts
                ],
                "part",
            )

            pages = group_pages(title, part_segments)
            height = max(sum(segment.height for segment in page) for page in pages)
            logger.debug("Laying out %d page(s) on a %dx%d canvas", len(pages), width, height)

            rendered = self._join(
                [pool.submit(self.assemble_page, page, width, height) for page in pages],
                "page",
            )
        except BaseException:
            pool.shutdown(wait=False, cancel_futures=True)
            raise
        pool.shutdown()

        logger.info(
            "Rendered '%s': %d page(s), %d bar shape(s) composed, %d reused",
            tune.title,
            len(rendered),
            self.bar_renderer.render_count,
            self.bar_renderer.cache_hits,
        )
        return rendered
