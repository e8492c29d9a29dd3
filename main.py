from fastapi import FastAPI, File, Form, UploadFile, status
import os
import base64
import logging
from datetime import datetime
from functools import lru_cache
from typing import List, Optional, Union
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from link_processor import ExtractionResult, LinkProcessor, MergeResult
from utils.result import ErrorCode, Result, status_for
from workbook_templates import extraction_template, merge_template
from workbook_writer import XLSX_MEDIA_TYPE


# Create logs directory if it doesn't exist
log_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")
os.makedirs(log_dir, exist_ok=True)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Add file handler to write logs to file
log_file_path = os.path.join(log_dir, f"app_{datetime.now().strftime('%Y%m%d')}.log")
file_handler = logging.FileHandler(log_file_path)
file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
logger.addHandler(file_handler)

ALLOWED_EXTENSIONS = (".xlsx", ".xls")
# Number of link records echoed back in JSON responses
PREVIEW_LINK_COUNT = 10
EXTRACTION_TEMPLATE_FILENAME = "link_extract_template.xlsx"
MERGE_TEMPLATE_FILENAME = "link_merge_template.xlsx"


# Initialize FastAPI app with metadata
app = FastAPI(
    title="Excel Link Extractor API",
    description="API for extracting hyperlinks from Excel files and merging Title/URL columns into hyperlinks",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class MergeListsRequest(BaseModel):
    """
    Schema for building a merged workbook from JSON lists.

    Attributes:
        titles: Display text of each link
        urls: URL of each link, same length as titles
    """
    titles: List[str]
    urls: List[str]


@lru_cache(maxsize=None)
def cached_extraction_template() -> bytes:
    """Build the extraction template once per process."""
    return extraction_template()


@lru_cache(maxsize=None)
def cached_merge_template() -> bytes:
    """Build the merge template once per process."""
    return merge_template()


def error_response(code: ErrorCode, error: str) -> JSONResponse:
    """
    Build the JSON body returned for a failed operation.

    Args:
        code: Error code of the failure
        error: Full coded error text

    Returns:
        JSONResponse: {success: false, error_code, error} with the mapped status
    """
    return JSONResponse(
        status_code=status_for(code).value,
        content={"success": False, "error_code": code.value, "error": error}
    )


def check_upload_name(filename: Optional[str]) -> Optional[JSONResponse]:
    """Reject uploads whose name does not end in .xlsx or .xls."""
    extension = os.path.splitext(filename or "")[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        logger.warning(f"Rejected upload with extension '{extension}'", extra={"upload_name": filename})
        failure = Result.invalid_file_format(
            "Only .xlsx and .xls files are supported.",
            "Save the file as an Excel workbook and upload it again."
        )
        return error_response(failure.code, failure.error)
    return None


def render_result(result: Union[ExtractionResult, MergeResult]) -> Union[dict, JSONResponse]:
    """
    Convert a processing result into the API response.

    Successful results carry counts, a preview of the links and the output
    workbook encoded as base64.
    """
    if not result.is_success():
        return error_response(result.error_code or ErrorCode.UNEXPECTED, result.error_message)

    content = {
        "success": True,
        "total_rows": result.total_rows,
        "links": [link.model_dump() for link in result.links[:PREVIEW_LINK_COUNT]],
        "output_file_base64": base64.b64encode(result.output_file).decode("ascii"),
    }
    if isinstance(result, ExtractionResult):
        content["links_found"] = result.links_found
    else:
        content["links_created"] = result.links_created
    return content


# API Endpoints
@app.post("/api/file/extract", tags=["Link Extraction"])
async def extract_links(file: UploadFile = File(...), column_name: str = Form("Title")):
    """
    Extract the hyperlink targets of one column of an uploaded workbook.

    Returns:
        dict: JSON response with:
            - total_rows: Data rows copied to the output workbook
            - links_found: Hyperlinks found in the column
            - links: The first 10 links (row, title, url)
            - output_file_base64: The "Extracted Links" workbook
    """
    logger.info(f"Extract request for column '{column_name}'", extra={"upload_name": file.filename})
    rejection = check_upload_name(file.filename)
    if rejection is not None:
        return rejection

    result = await run_in_threadpool(LinkProcessor.extract_links, file.file, column_name)
    return render_result(result)


@app.post("/api/file/merge", tags=["Link Merge"])
async def merge_links(file: UploadFile = File(...)):
    """
    Turn the Title and URL columns of an uploaded workbook into hyperlinked titles.

    Returns:
        dict: JSON response with total_rows, links_created, the first 10 links
        and output_file_base64
    """
    logger.info("Merge request", extra={"upload_name": file.filename})
    rejection = check_upload_name(file.filename)
    if rejection is not None:
        return rejection

    result = await run_in_threadpool(LinkProcessor.merge_links, file.file)
    return render_result(result)


@app.post("/api/file/merge/lists", tags=["Link Merge"])
async def merge_link_lists(request: MergeListsRequest):
    """Build a merged workbook from parallel lists of titles and URLs."""
    logger.info(f"Merge request for {len(request.titles)} titles and {len(request.urls)} URLs")
    result = await run_in_threadpool(LinkProcessor.merge_lists, request.titles, request.urls)
    return render_result(result)


@app.get("/api/file/template", tags=["Templates"])
async def download_extraction_template():
    """Download the sample workbook for link extraction."""
    content = await run_in_threadpool(cached_extraction_template)
    return Response(
        content=content,
        status_code=status.HTTP_200_OK,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{EXTRACTION_TEMPLATE_FILENAME}"'}
    )


@app.get("/api/file/merge-template", tags=["Templates"])
async def download_merge_template():
    """Download the sample workbook for Title/URL merging."""
    content = await run_in_threadpool(cached_merge_template)
    return Response(
        content=content,
        status_code=status.HTTP_200_OK,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{MERGE_TEMPLATE_FILENAME}"'}
    )


# Run the application if executed directly
if __name__ == "__main__":
    import uvicorn
    logger.info("Starting Excel Link Extractor API in development mode.")
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
