import logging

import httpx
import pymupdf

from app.exceptions import RenderError
from app.schemas.contract import ContractTemplate

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = 612, 792  # US Letter, points
MARGIN = 50
FONT_SIZE = 11
TITLE_FONT_SIZE = 16
LINE_HEIGHT = 20
SECTION_GAP = 20

REGULAR_FONT = "helv"  # Helvetica
BOLD_FONT = "hebo"  # Helvetica-Bold

# Signature block, bottom right. PyMuPDF's origin is the top-left corner.
SIGNATURE_LINE_Y = PAGE_HEIGHT - 80
SIGNATURE_LINE_X0 = PAGE_WIDTH - 200
SIGNATURE_LINE_X1 = PAGE_WIDTH - 50
SIGNATURE_IMAGE_RECT = pymupdf.Rect(SIGNATURE_LINE_X0, SIGNATURE_LINE_Y - 55, SIGNATURE_LINE_X1, SIGNATURE_LINE_Y - 5)
BODY_BOTTOM = SIGNATURE_IMAGE_RECT.y0 - LINE_HEIGHT


class _PageWriter:
    """Writes wrapped lines top to bottom, keeping track of the current baseline."""

    def __init__(self, page: pymupdf.Page):
        self.page = page
        self.y = MARGIN + TITLE_FONT_SIZE
        self.truncated = False

    def write(self, text: str, bold: bool = False, fontsize: float = FONT_SIZE) -> None:
        fontname = BOLD_FONT if bold else REGULAR_FONT
        for line in _wrap(text, fontname, fontsize, PAGE_WIDTH - 2 * MARGIN):
            if self.y > BODY_BOTTOM:
                self.truncated = True
                return
            self.page.insert_text((MARGIN, self.y), line, fontname=fontname, fontsize=fontsize)
            self.y += LINE_HEIGHT

    def gap(self, height: float = SECTION_GAP) -> None:
        self.y += height


def _wrap(text: str, fontname: str, fontsize: float, max_width: float) -> list[str]:
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if current and pymupdf.get_text_length(candidate, fontname=fontname, fontsize=fontsize) > max_width:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


def _format_rate(rate: int | float) -> str:
    if isinstance(rate, float) and rate.is_integer():
        rate = int(rate)
    return f"${rate:,}"


def fetch_signature_image(
    url: str, http_client: httpx.Client | None = None, timeout: float = 10.0
) -> bytes:
    """Download a signature image, raising RenderError on any transport or HTTP failure."""
    try:
        if http_client is not None:
            response = http_client.get(url)
        else:
            with httpx.Client(timeout=timeout) as client:
                response = client.get(url)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise RenderError(f"Failed to fetch signature image from {url}: {exc}") from exc
    return response.content


def render_contract_pdf(
    template: ContractTemplate | dict,
    signature_image: bytes | None = None,
    signature_url: str | None = None,
    http_client: httpx.Client | None = None,
    fetch_timeout: float = 10.0,
) -> bytes:
    """Render a single-page contract PDF.

    Sections appear in a fixed order: title, parties, scope of work,
    compensation, optional special requirements, then the signature block.
    Signature bytes take precedence over signature_url; with neither, only
    the empty signature line is drawn.

    Raises:
        RenderError: a party name is missing, or the signature image cannot
            be fetched or decoded.
    """
    if isinstance(template, dict):
        template = ContractTemplate.model_validate(template)

    if not (template.influencer_name or "").strip() or not (template.brand_name or "").strip():
        raise RenderError("Missing required contract information")

    if signature_image is None and signature_url:
        signature_image = fetch_signature_image(signature_url, http_client, fetch_timeout)

    doc = pymupdf.open()
    try:
        page = doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        writer = _PageWriter(page)

        writer.write("INFLUENCER AGREEMENT CONTRACT", bold=True, fontsize=TITLE_FONT_SIZE)
        writer.gap()

        writer.write("This agreement is made between:", bold=True)
        writer.write(f"Brand: {template.brand_name}")
        writer.write(f"Influencer: {template.influencer_name}")
        writer.gap()

        writer.write("SCOPE OF WORK", bold=True)
        writer.write(f"Deliverables: {template.deliverables}")
        writer.write(f"Timeline: {template.timeline}")
        writer.gap()

        writer.write("COMPENSATION", bold=True)
        writer.write(f"Rate: {_format_rate(template.rate)}")
        writer.write(f"Payment Terms: {template.payment_terms}")
        writer.gap()

        if template.special_requirements:
            writer.write("SPECIAL REQUIREMENTS", bold=True)
            writer.write(template.special_requirements)

        if writer.truncated:
            logger.warning("Contract text exceeded the page body and was truncated")

        if signature_image is not None:
            try:
                page.insert_image(SIGNATURE_IMAGE_RECT, stream=signature_image, keep_proportion=True)
            except Exception as exc:
                raise RenderError(f"Failed to embed signature image: {exc}") from exc

        page.draw_line(
            (SIGNATURE_LINE_X0, SIGNATURE_LINE_Y),
            (SIGNATURE_LINE_X1, SIGNATURE_LINE_Y),
            color=(0, 0, 0),
            width=1,
        )
        page.insert_text(
            (SIGNATURE_LINE_X0, SIGNATURE_LINE_Y + 16), "Signature", fontname=BOLD_FONT, fontsize=FONT_SIZE
        )

        pdf_bytes = doc.tobytes(garbage=3, deflate=True)
    finally:
        doc.close()

    logger.info(f"Rendered contract PDF: {len(pdf_bytes)} bytes, signed={signature_image is not None}")
    return pdf_bytes
