from typing import Annotated

from fastapi import Depends, HTTPException

from invoice_scan.services.pdf.base import BasePdfReader
from invoice_scan.state import global_state


async def get_pdf_reader() -> BasePdfReader:
    if not global_state.pdf_reader:
        raise HTTPException(status_code=503, detail="PDF reader not initialized")
    return global_state.pdf_reader


PdfReaderDep = Annotated[BasePdfReader, Depends(get_pdf_reader)]
