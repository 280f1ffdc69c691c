import logging
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Header, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .banks import default_registry
from .builder import transform_rows
from .bulk_import import BulkImportExecutor, batch_status_code
from .csv_parser import check_file_size, parse_upload
from .errors import FileError, MappingError
from .mapping import auto_map, require_complete_mapping, validate_mapping
from .models import (
    BankSummary,
    FieldMapping,
    ImportRequest,
    ImportResponse,
    MappingRequest,
    MappingValidationRequest,
    MappingValidationResponse,
    Tag,
    Transaction,
    TransformRequest,
    TransformResult,
    UploadResponse,
)
from .store import JsonStore
from .strategies import default_strategy_sets, select_strategies, select_type_strategy
from .tags import TagResolver
from .tracing import get_tracer

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(title="Bank Import API")

# CORS middleware for the review frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Built once, read-only afterwards
banks = default_registry()
strategy_sets = default_strategy_sets()
store = JsonStore(config.STORE_FILE)

VALID_MIME_TYPES = ("text/csv", "application/csv", "text/plain", "application/vnd.ms-excel", "")


def get_store() -> JsonStore:
    return store


def get_owner_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Owner of the import; authentication happens in front of this service."""
    return x_user_id or config.DEFAULT_OWNER_ID


def check_bank(bank: Optional[str]) -> Optional[str]:
    if bank and bank not in banks:
        raise HTTPException(status_code=400, detail=f"Unknown bank: {bank}")
    return bank or None


@app.get("/")
def read_root():
    return {"message": "Bank Import API"}


@app.get("/banks", response_model=List[BankSummary])
def list_banks():
    """Supported bank export formats"""
    return [BankSummary(**summary) for summary in banks.summaries()]


@app.get("/strategies")
def list_strategies():
    """Available type, date and description strategies"""
    return {
        "typeDetection": [
            {"name": s.name, "label": s.label, "description": s.description}
            for s in strategy_sets.types.all()
        ],
        "dateParsing": [
            {"name": s.name, "expectedFormat": s.expected_format}
            for s in strategy_sets.dates.all()
        ],
        "descriptionExtraction": [
            {"name": s.name, "label": s.label, "supportsDateExtraction": s.supports_date_extraction}
            for s in strategy_sets.descriptions.all()
        ],
    }


@app.post("/transactions/csv/upload", response_model=UploadResponse)
async def upload_file(file: UploadFile = File(...)):
    """Accept a bank export, check size and type, return columns and rows"""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    content_type = (file.content_type or "").split(";")[0].strip()
    if not file.filename.lower().endswith(".csv") and content_type not in VALID_MIME_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Only CSV files are allowed. Received: {file.filename}",
        )

    try:
        # The multipart body is already spooled; its size is known before reading it
        if file.size is not None:
            check_file_size(file.size)
        parsed = parse_upload(await file.read())
    except FileError as e:
        logger.info("Rejected upload %s: %s", file.filename, e.message)
        raise HTTPException(status_code=400, detail=e.message)

    return UploadResponse(
        columns=parsed.headers,
        rows=parsed.rows,
        total_rows=len(parsed.rows),
        detected_bank=banks.detect_by_filename(file.filename),
    )


@app.post("/transactions/csv/mapping", response_model=FieldMapping)
def suggest_mapping(request: MappingRequest):
    """Auto-detect a field mapping for the uploaded columns"""
    bank = check_bank(request.bank)
    return auto_map(request.columns, banks.get(bank))


@app.post("/transactions/csv/mapping/validate", response_model=MappingValidationResponse)
def check_mapping(request: MappingValidationRequest):
    """Report fields the selected bank and strategy still need a column for"""
    bank = check_bank(request.bank)
    type_strategy = select_type_strategy(
        strategy_sets, banks, bank, request.type_detection_strategy
    )
    result = validate_mapping(
        request.mapping,
        banks.get(bank),
        type_strategy,
        has_default_currency=request.default_currency is not None,
    )
    return MappingValidationResponse(valid=result.valid, missing_fields=result.missing_fields)


@app.post("/transactions/csv/transform", response_model=TransformResult)
def transform(
    request: TransformRequest,
    owner_id: str = Depends(get_owner_id),
    repository: JsonStore = Depends(get_store),
):
    """Turn raw rows into candidate transactions for review"""
    bank = check_bank(request.bank)
    strategies = select_strategies(strategy_sets, banks, bank, request.type_detection_strategy)

    tracer = get_tracer()
    trace = tracer.create_trace(
        "csv_transform",
        user_id=owner_id,
        metadata={"bank": bank, "rows": len(request.rows)},
    )
    try:
        require_complete_mapping(
            request.mapping,
            banks.get(bank),
            strategies.type_strategy,
            has_default_currency=request.default_currency is not None,
        )
        result = transform_rows(
            request.rows,
            request.mapping,
            strategies,
            TagResolver(repository, owner_id),
            default_currency=request.default_currency,
        )
        tracer.record_transform(trace, result, strategies)
    except (FileError, MappingError) as e:
        raise HTTPException(status_code=400, detail=e.message)
    finally:
        tracer.end_trace(trace)

    return result


@app.post("/transactions/csv/import", response_model=ImportResponse, status_code=201)
def import_transactions(
    request: ImportRequest,
    owner_id: str = Depends(get_owner_id),
    repository: JsonStore = Depends(get_store),
):
    """Persist reviewed transactions; partial success is reported per item"""
    tracer = get_tracer()
    trace = tracer.create_trace(
        "csv_import", user_id=owner_id, metadata={"items": len(request.transactions)}
    )
    result = BulkImportExecutor(repository).import_transactions(owner_id, request.transactions)
    tracer.record_import(trace, result)
    tracer.end_trace(trace)

    response = ImportResponse(
        success_count=len(result.created),
        failure_count=len(result.errors),
        created=result.created,
        errors=result.errors,
    )
    status_code = batch_status_code(result)
    if status_code == 201:
        return response

    content = response.model_dump(by_alias=True)
    if status_code == 400:
        content["detail"] = "All transactions failed to import"
    return JSONResponse(status_code=status_code, content=content)


@app.get("/transactions", response_model=List[Transaction])
def list_transactions(
    owner_id: str = Depends(get_owner_id), repository: JsonStore = Depends(get_store)
):
    return repository.list_transactions(owner_id)


@app.get("/tags", response_model=List[Tag])
def list_tags(owner_id: str = Depends(get_owner_id), repository: JsonStore = Depends(get_store)):
    return repository.list_tags(owner_id)
