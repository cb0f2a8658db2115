"""Build multi-page ID card PDFs, one card per record."""
from __future__ import annotations

import argparse
from io import BytesIO
from pathlib import Path
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence, Tuple

import fitz  # PyMuPDF
from PIL import Image
from reportlab.pdfgen import canvas

from card_assets import DEFAULT_ASSET_TIMEOUT, AssetCache, to_rectangle
from card_face import BACK, FRONT, LogoPair, compose_face
from card_records import DUAL_FACE, SINGLE_FACE, CardRecord, CardRecordError, load_records
from card_style import CardStyleConfig, default_style

ASSET_ROOT = Path(__file__).resolve().parent / "assets"
DEFAULT_LOGO_URLS = (str(ASSET_ROOT / "escudo.png"), str(ASSET_ROOT / "logobienestar.png"))
DEFAULT_OUTPUT_NAME = "id-card.pdf"
DEFAULT_PREVIEW_DPI = 150
AUTO_VARIANT = "auto"


class DocumentSealedError(RuntimeError):
    """Raised when a sealed document is modified or sealed again."""


class Face(NamedTuple):
    identifier: str
    kind: str


class CardDocument:
    """Append-only sequence of card faces backed by one reportlab canvas.

    Every face is a page of the same ID-1 size. ``seal`` finalises the PDF
    exactly once; afterwards the document only exposes its bytes.
    """

    def __init__(self, style: CardStyleConfig) -> None:
        self.style = style
        self.faces: List[Face] = []
        self._buffer = BytesIO()
        self._canvas = canvas.Canvas(
            self._buffer,
            pagesize=style.page_size_points,
            invariant=1,
            pageCompression=1,
        )
        self._canvas.setTitle("ID cards")
        self._data: Optional[bytes] = None

    @property
    def sealed(self) -> bool:
        return self._data is not None

    @property
    def page_count(self) -> int:
        return len(self.faces)

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise RuntimeError("Document has not been sealed yet")
        return self._data

    def add_face(self, identifier: str, kind: str) -> canvas.Canvas:
        """Start a new page for ``kind`` of record ``identifier``."""
        if self.sealed:
            raise DocumentSealedError("Cannot add a face to a sealed document")
        if self.faces:
            self._canvas.showPage()
        self.faces.append(Face(identifier, kind))
        return self._canvas

    def seal(self) -> bytes:
        if self.sealed:
            raise DocumentSealedError("Document is already sealed")
        if not self.faces:
            raise CardRecordError("No card faces to write")
        self._canvas.showPage()
        self._canvas.save()
        self._data = self._buffer.getvalue()
        return self._data


def faces_for(record: CardRecord, variant: Optional[str] = None) -> Tuple[str, ...]:
    chosen = record.variant if variant in (None, AUTO_VARIANT) else variant
    if chosen == SINGLE_FACE:
        return (FRONT,)
    if chosen == DUAL_FACE:
        if not record.has_back:
            raise CardRecordError(f"Record {record.identifier} has no back face data")
        return (FRONT, BACK)
    raise CardRecordError(f"Unknown card variant: {chosen}")


def build_document(
    records: Iterable[CardRecord],
    variant: Optional[str] = None,
    *,
    style: Optional[CardStyleConfig] = None,
    logo_urls: Sequence[Optional[str]] = DEFAULT_LOGO_URLS,
    cache: Optional[AssetCache] = None,
    timeout: float = DEFAULT_ASSET_TIMEOUT,
    log_fn: Callable[[str], None] = print,
) -> CardDocument:
    """Render every record in order and return the sealed document.

    Both logos are loaded once up front. A record contributes one page
    (single face) or two consecutive pages, front then back (dual face).
    """
    style = style or default_style()
    cache = cache if cache is not None else AssetCache(timeout=timeout, log_fn=log_fn)
    left_url, right_url = logo_urls
    logos = LogoPair(to_rectangle(cache.load(left_url)), to_rectangle(cache.load(right_url)))

    document = CardDocument(style)
    count = 0
    for record in records:
        for kind in faces_for(record, variant):
            page = document.add_face(record.identifier, kind)
            compose_face(page, record, kind, logos, cache, style)
        count += 1
        log_fn(f"✅ {record.identifier}")

    document.seal()
    log_fn(f"✅ Done. {count} card(s), {document.page_count} page(s)")
    return document


def build_pdf(records: Iterable[CardRecord], variant: Optional[str] = None, **kwargs) -> bytes:
    return build_document(records, variant, **kwargs).data


def save_document(document: CardDocument, directory: Path = Path("."), filename: str = DEFAULT_OUTPUT_NAME) -> Path:
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    output_path = directory / filename
    output_path.write_bytes(document.data)
    return output_path


def render_preview(pdf_bytes: bytes, page: int = 0, dpi: int = DEFAULT_PREVIEW_DPI) -> Image.Image:
    """Rasterise one page of a card PDF to a Pillow image."""
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    try:
        pix = doc[page].get_pixmap(dpi=dpi)
        img_bytes = pix.tobytes("png")
    finally:
        doc.close()
    return Image.open(BytesIO(img_bytes)).convert("RGB")


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate ID-1 cards from a CSV, Excel or JSON sheet.")
    parser.add_argument("records", type=Path, help="Sheet with one row per card")
    parser.add_argument(
        "--variant",
        choices=(AUTO_VARIANT, SINGLE_FACE, DUAL_FACE),
        default=AUTO_VARIANT,
        help="single = front only, dual = front and back, auto = from the sheet columns",
    )
    parser.add_argument("--output", type=Path, default=Path(DEFAULT_OUTPUT_NAME), help="Output PDF path")
    parser.add_argument("--escudo", default=DEFAULT_LOGO_URLS[0], help="Left logo path or URL")
    parser.add_argument("--bienestar", default=DEFAULT_LOGO_URLS[1], help="Right logo path or URL")
    parser.add_argument("--preview", type=Path, help="Also write a PNG preview of the first page")
    parser.add_argument("--dpi", type=int, default=DEFAULT_PREVIEW_DPI, help="Preview resolution")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_ASSET_TIMEOUT,
        help="Seconds to wait for each image before leaving it out",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    sheet_variant = None if args.variant == AUTO_VARIANT else args.variant
    try:
        records = load_records(args.records, sheet_variant)
        document = build_document(
            records,
            args.variant,
            logo_urls=(args.escudo, args.bienestar),
            timeout=args.timeout,
        )
    except CardRecordError as exc:
        print(f"❌ {exc}")
        return 2

    output = save_document(document, args.output.parent, args.output.name)
    if args.preview is not None:
        render_preview(document.data, dpi=args.dpi).save(args.preview)
        print(f"Preview saved to {args.preview}")
    print(f"Generated {len(records)} ID card(s) in {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
