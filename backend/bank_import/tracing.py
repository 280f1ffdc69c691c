"""
Langfuse tracing for import requests.

Transform and import requests are recorded as traces with one span per
pipeline step, so slow or failing imports can be inspected per bank.
Tracing is only active when LANGFUSE_PUBLIC_KEY is configured.
"""

import logging
import os
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Optional

from langfuse import Langfuse
from langfuse.types import TraceContext

logger = logging.getLogger(__name__)

# Row indices listed per span; larger imports are summarised by the counts
MAX_TRACED_ROWS = 50


@dataclass
class TraceHandle:
    """Lightweight wrapper for Langfuse trace context."""

    client: Any
    trace_context: TraceContext
    root_span: Optional[object] = None


class ImportTracer:
    """Wrapper for the Langfuse client with import-specific helpers."""

    def __init__(self):
        self.enabled = os.getenv("LANGFUSE_PUBLIC_KEY") is not None
        self.client = None

        if self.enabled:
            try:
                self.client = Langfuse(
                    public_key=os.getenv("LANGFUSE_PUBLIC_KEY"),
                    secret_key=os.getenv("LANGFUSE_SECRET_KEY"),
                    host=os.getenv("LANGFUSE_HOST", "http://localhost:3001"),
                    debug=os.getenv("LANGFUSE_DEBUG", "false").lower() == "true",
                )
                logger.info("Langfuse client initialized with host: %s", os.getenv("LANGFUSE_HOST"))
            except Exception:
                logger.warning("Failed to initialize Langfuse, tracing disabled", exc_info=True)
                self.enabled = False

    def is_enabled(self) -> bool:
        return self.enabled

    def create_trace(
        self,
        name: str,
        user_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[TraceHandle]:
        """
        Create a new trace for an import operation.

        Args:
            name: Name of the operation (e.g., "csv_transform")
            user_id: Owner the import runs for
            metadata: Optional metadata such as bank and row count

        Returns:
            TraceHandle or None if tracing is disabled
        """
        if not self.enabled or not self.client:
            return None

        try:
            trace_id = self.client.create_trace_id()
            trace_context = TraceContext(trace_id=trace_id, user_id=user_id or "system")
            root_span = self.client.start_span(
                trace_context=trace_context,
                name=name,
                metadata=metadata or {},
            )
            return TraceHandle(client=self.client, trace_context=trace_context, root_span=root_span)
        except Exception:
            logger.warning("Failed to create trace %s", name, exc_info=True)
            return None

    def add_span(
        self,
        trace: Optional[TraceHandle],
        name: str,
        input_text: Optional[str] = None,
        output_text: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log one pipeline step (e.g., "transform_rows") to the trace."""
        if not trace or not self.client:
            return

        try:
            span = self.client.start_span(
                trace_context=trace.trace_context,
                name=name,
                input=input_text or "",
                metadata=metadata or {},
            )
            if output_text:
                span.update(output=output_text)
            span.end()
        except Exception:
            logger.warning("Failed to add span %s to trace", name, exc_info=True)

    def record_transform(self, trace: Optional[TraceHandle], result, strategies) -> None:
        """Span for a transform: strategies in effect, status counts and the failing rows."""
        if not trace:
            return
        invalid = [c for c in result.candidates if c.status == "invalid"]
        error_fields = Counter(
            error.field for c in invalid for error in c.errors if error.severity == "error"
        )
        self.add_span(
            trace,
            "transform_rows",
            input_text=f"{result.total} rows",
            output_text=(
                f"{result.total_valid} valid, {result.total_invalid} invalid, "
                f"{result.total_warning} warnings"
            ),
            metadata={
                "bank": strategies.bank_id,
                "type_strategy": strategies.type_strategy.name,
                "date_strategy": strategies.date_strategy.name,
                "description_strategy": strategies.description_strategy.name,
                "invalid_rows": [c.row_index for c in invalid[:MAX_TRACED_ROWS]],
                "error_fields": dict(error_fields),
            },
        )

    def record_import(self, trace: Optional[TraceHandle], result) -> None:
        """Span for a bulk import: created count and the failed item indices."""
        if not trace:
            return
        self.add_span(
            trace,
            "bulk_import",
            input_text=f"{len(result.created) + len(result.errors)} items",
            output_text=f"{len(result.created)} created, {len(result.errors)} failed",
            metadata={
                "failed_items": [e.index for e in result.errors[:MAX_TRACED_ROWS]],
                "messages": sorted({e.message for e in result.errors}),
            },
        )

    def end_trace(self, trace: Optional[TraceHandle]) -> None:
        """Finalize a trace and flush it."""
        if not trace:
            return
        try:
            if trace.root_span is not None:
                trace.root_span.end()
                trace.root_span = None
            if self.client:
                self.client.flush()
        except Exception:
            logger.warning("Failed to end trace", exc_info=True)


_tracer = None


def get_tracer() -> ImportTracer:
    """Get or create the global tracer instance."""
    global _tracer
    if _tracer is None:
        _tracer = ImportTracer()
    return _tracer
