from invoice_scan.services.pdf.base import BasePdfReader


class AppState:
    pdf_reader: BasePdfReader | None = None


global_state = AppState()
