"""PDF generation for proposals."""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class PDFGenerator:
    """
    Service for generating PDF documents from edited proposal HTML.

    Uses WeasyPrint for high-quality PDF rendering.
    """

    def html_to_pdf(
        self,
        html_content: str,
        extra_css: Optional[str] = None
    ) -> Optional[bytes]:
        """
        Convert a proposal document to PDF.

        Args:
            html_content: Full HTML document, <style> blocks included
            extra_css: Optional stylesheet applied on top

        Returns:
            PDF bytes or None on failure
        """
        try:
            from weasyprint import HTML, CSS

            stylesheets = [CSS(string=extra_css)] if extra_css else []
            pdf_bytes = HTML(string=html_content).write_pdf(stylesheets=stylesheets)

            logger.info(f"Generated PDF ({len(pdf_bytes)} bytes)")
            return pdf_bytes

        except ImportError as e:
            logger.error(f"Missing dependency for PDF generation: {e}")
            return None
        except Exception as e:
            logger.error(f"Failed to generate PDF: {e}")
            return None


# Singleton instance
pdf_generator = PDFGenerator()
