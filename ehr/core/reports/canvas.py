"""
Page Canvas

The drawing surface the report compositor writes to. Coordinates are in
millimetres measured from the top-left corner of the page, so ``y`` grows
down the page the same way the compositor's cursor does.

Two backends:
- ReportLabCanvas: A4 PDF via reportlab
- TextCanvas: plain text, one form feed per page break

Every drawn block is recorded as a TextBlock so layouts can be inspected
without decoding the rendered bytes.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import io
import textwrap

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas as pdf_canvas

from ehr.utils import get_logger, ReportGenerationError

logger = get_logger(__name__)

FONT_WEIGHTS = ("normal", "bold", "italic")

# (family, weight) -> reportlab standard font name
PDF_FONTS: Dict[Tuple[str, str], str] = {
    ("helvetica", "normal"): "Helvetica",
    ("helvetica", "bold"): "Helvetica-Bold",
    ("helvetica", "italic"): "Helvetica-Oblique",
    ("times", "normal"): "Times-Roman",
    ("times", "bold"): "Times-Bold",
    ("times", "italic"): "Times-Italic",
    ("courier", "normal"): "Courier",
    ("courier", "bold"): "Courier-Bold",
    ("courier", "italic"): "Courier-Oblique",
}


@dataclass(frozen=True)
class TextBlock:
    """One draw_text call: where it landed and with which font."""
    page: int
    x: float
    y: float
    lines: Tuple[str, ...]
    font_family: str
    font_weight: str
    font_size: float

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class PageCanvas(ABC):
    """
    Abstract page canvas.

    Subclasses implement wrapping, rendering of a recorded block, page
    breaks and final encoding; font state and the block log live here.
    """

    extension: str = ""
    media_type: str = "application/octet-stream"

    def __init__(self, line_height: float = 5.0):
        self.line_height = line_height
        self.font_family = "helvetica"
        self.font_weight = "normal"
        self.font_size = 12.0
        self._page = 1
        self._blocks: List[TextBlock] = []

    def set_font(self, weight: str, family: str = "helvetica") -> None:
        if weight not in FONT_WEIGHTS:
            raise ReportGenerationError(
                f"Unsupported font weight: {weight}",
                details={"valid": list(FONT_WEIGHTS)}
            )
        self.font_weight = weight
        self.font_family = family.lower()

    def set_font_size(self, points: float) -> None:
        self.font_size = float(points)

    @abstractmethod
    def wrap_text(self, text: str, max_width: float) -> List[str]:
        """Split text into lines no wider than max_width (mm) in the current font."""

    def draw_text(self, lines: Sequence[str], x: float, y: float) -> TextBlock:
        block = TextBlock(
            page=self._page,
            x=x,
            y=y,
            lines=tuple(lines),
            font_family=self.font_family,
            font_weight=self.font_weight,
            font_size=self.font_size,
        )
        self._blocks.append(block)
        self._render(block)
        return block

    def new_page(self) -> None:
        self._page += 1
        self._start_page()

    @property
    def page_count(self) -> int:
        return self._page

    @property
    def blocks(self) -> Tuple[TextBlock, ...]:
        return tuple(self._blocks)

    def blocks_on_page(self, page: int) -> List[TextBlock]:
        return [b for b in self._blocks if b.page == page]

    @abstractmethod
    def _render(self, block: TextBlock) -> None:
        """Put a recorded block onto the backend's current page."""

    @abstractmethod
    def _start_page(self) -> None:
        """Begin a new backend page."""

    @abstractmethod
    def getvalue(self) -> bytes:
        """Finish the document and return its encoded bytes."""

    def save(self, filename: str) -> None:
        """Write the finished document. I/O errors propagate to the caller."""
        data = self.getvalue()
        with open(filename, "wb") as f:
            f.write(data)
        logger.debug(f"Wrote {len(data)} bytes to {filename}")


class ReportLabCanvas(PageCanvas):
    """
    PDF canvas, A4 unless page_size (width, height in mm) says otherwise.

    Invariant mode keeps output byte-identical across runs.
    """

    extension = "pdf"
    media_type = "application/pdf"

    def __init__(
        self,
        line_height: float = 5.0,
        title: str = "Patient Medical Report",
        page_size: Optional[Tuple[float, float]] = None,
    ):
        super().__init__(line_height=line_height)
        pagesize = (page_size[0] * mm, page_size[1] * mm) if page_size else A4
        self._buffer = io.BytesIO()
        self._canvas = pdf_canvas.Canvas(self._buffer, pagesize=pagesize, invariant=1)
        self._canvas.setTitle(title)
        self._page_height = pagesize[1]
        self._content: bytes = b""

    def _font_name(self) -> str:
        return PDF_FONTS.get((self.font_family, self.font_weight), "Helvetica")

    def wrap_text(self, text: str, max_width: float) -> List[str]:
        lines = simpleSplit(text, self._font_name(), self.font_size, max_width * mm)
        return lines or [""]

    def _render(self, block: TextBlock) -> None:
        # Font state is per page in reportlab, so set it for every block
        self._canvas.setFont(self._font_name(), block.font_size)
        for i, line in enumerate(block.lines):
            baseline = block.y + i * self.line_height
            self._canvas.drawString(block.x * mm, self._page_height - baseline * mm, line)

    def _start_page(self) -> None:
        self._canvas.showPage()

    def getvalue(self) -> bytes:
        if not self._content:
            self._canvas.save()
            self._content = self._buffer.getvalue()
        return self._content


class TextCanvas(PageCanvas):
    """
    Plain-text canvas on a fixed character grid.

    Each ``line_height`` of vertical space is one text row and
    ``chars_per_mm`` sets the horizontal density, so 180 mm wraps at
    90 characters by default.
    """

    extension = "txt"
    media_type = "text/plain; charset=utf-8"

    def __init__(self, line_height: float = 5.0, chars_per_mm: float = 0.5, origin_x: float = 20.0):
        super().__init__(line_height=line_height)
        self.chars_per_mm = chars_per_mm
        self.origin_x = origin_x
        self._pages: List[Dict[int, str]] = [{}]

    def wrap_text(self, text: str, max_width: float) -> List[str]:
        width = max(1, int(max_width * self.chars_per_mm))
        lines: List[str] = []
        for paragraph in text.split("\n"):
            lines.extend(textwrap.wrap(paragraph, width=width, break_on_hyphens=False) or [""])
        return lines

    def _render(self, block: TextBlock) -> None:
        rows = self._pages[-1]
        indent = " " * max(0, int((block.x - self.origin_x) * self.chars_per_mm))
        first_row = int(block.y // self.line_height)
        for i, line in enumerate(block.lines):
            rows[first_row + i] = (indent + line).rstrip()

    def _start_page(self) -> None:
        self._pages.append({})

    def getvalue(self) -> bytes:
        rendered = []
        for rows in self._pages:
            if rows:
                top = min(rows)
                bottom = max(rows)
                rendered.append("\n".join(rows.get(r, "") for r in range(top, bottom + 1)))
            else:
                rendered.append("")
        return ("\n\f\n".join(rendered) + "\n").encode("utf-8")


CANVAS_BACKENDS = {
    "pdf": ReportLabCanvas,
    "txt": TextCanvas,
}


def create_canvas(fmt: str = "pdf", **kwargs) -> PageCanvas:
    """Instantiate the canvas backend for an output format name."""
    backend = CANVAS_BACKENDS.get(fmt.lower())
    if backend is None:
        raise ReportGenerationError(
            f"Unknown report format: {fmt}",
            details={"valid": sorted(CANVAS_BACKENDS)}
        )
    return backend(**kwargs)
