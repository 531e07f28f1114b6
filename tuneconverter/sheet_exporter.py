"""SheetExporter: encodes rendered page rasters as PNG files or a PDF."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Final

import numpy as np

from tuneconverter.raster import to_image

SUPPORTED_FORMATS: Final[set[str]] = {"png", "pdf"}


class SheetExporter:
    """
    Write sheet-music pages to disk.

    Supported formats:
    - ``png``: one grayscale PNG per page, named ``<stem>-<n>.png``.
    - ``pdf``: a single multi-page PDF.
    """

    PDF_RESOLUTION: Final[float] = 150.0

    def __init__(self, output_format: str = "png") -> None:
        normalized = output_format.strip().lower()
        if normalized not in SUPPORTED_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_FORMATS))
            raise ValueError(f"Unsupported output format '{output_format}'. Use one of: {supported}.")
        self.output_format = normalized

    @property
    def default_extension(self) -> str:
        return f".{self.output_format}"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _page_path(self, output_path: Path, page_no: int, page_count: int) -> Path:
        if page_count == 1:
            return output_path.with_suffix(".png")
        return output_path.with_name(f"{output_path.stem}-{page_no}.png")

    def _export_png(self, pages: Sequence[np.ndarray], output_path: Path) -> list[Path]:
        written: list[Path] = []
        for page_no, page in enumerate(pages, start=1):
            path = self._page_path(output_path, page_no, len(pages))
            to_image(page).save(path, format="PNG")
            written.append(path)
        return written

    def _export_pdf(self, pages: Sequence[np.ndarray], output_path: Path) -> list[Path]:
        path = output_path.with_suffix(".pdf")
        first, *rest = [to_image(page) for page in pages]
        first.save(
            path,
            format="PDF",
            save_all=True,
            append_images=rest,
            resolution=self.PDF_RESOLUTION,
        )
        return [path]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def export(self, pages: Sequence[np.ndarray], output_path: str | Path) -> list[Path]:
        """
        Write ``pages`` next to ``output_path`` in the selected format.

        Returns:
            The paths written, in page order.

        Raises:
            ValueError: If there are no pages to write.
            OSError: If a file cannot be written.
        """
        if not pages:
            raise ValueError("There are no pages to export.")

        path = Path(output_path)
        if self.output_format == "pdf":
            return self._export_pdf(pages, path)
        return self._export_png(pages, path)
