"""Tests for Langfuse tracing of import requests."""

from bank_import.builder import transform_rows
from bank_import.models import BatchItemError, FieldMapping, ImportBatchResult, TransformResult
from bank_import.tracing import ImportTracer


class FakeSpan:
    def __init__(self, name, metadata, input=None):
        self.name = name
        self.input = input
        self.metadata = metadata
        self.output = None
        self.ended = False

    def update(self, output=None):
        self.output = output

    def end(self):
        self.ended = True


class FakeClient:
    def __init__(self):
        self.spans = []
        self.flushed = False

    def create_trace_id(self):
        return "trace-1"

    def start_span(self, trace_context, name, input=None, metadata=None):
        span = FakeSpan(name, metadata, input)
        self.spans.append(span)
        return span

    def flush(self):
        self.flushed = True


def test_disabled_without_public_key(monkeypatch):
    monkeypatch.delenv("LANGFUSE_PUBLIC_KEY", raising=False)
    tracer = ImportTracer()
    assert not tracer.is_enabled()
    trace = tracer.create_trace("csv_transform", user_id="alice")
    assert trace is None
    tracer.add_span(trace, "transform_rows", output_text="ignored")
    tracer.end_trace(trace)


def test_records_spans():
    tracer = ImportTracer()
    tracer.enabled = True
    tracer.client = FakeClient()

    trace = tracer.create_trace("csv_import", user_id="alice", metadata={"items": 2})
    tracer.add_span(trace, "bulk_import", output_text="2 created, 0 failed")
    tracer.end_trace(trace)

    root, step = tracer.client.spans
    assert root.name == "csv_import"
    assert root.metadata == {"items": 2}
    assert root.ended
    assert step.output == "2 created, 0 failed"
    assert step.ended
    assert tracer.client.flushed
    assert trace.trace_context["trace_id"] == "trace-1"


def _enabled_tracer():
    tracer = ImportTracer()
    tracer.enabled = True
    tracer.client = FakeClient()
    return tracer


def test_record_transform(default_strategies, tag_resolver):
    rows = [
        {"Date": "2024-01-01", "Payee": "Shop", "Amount": "-5", "Currency": "EUR"},
        {"Date": "someday", "Payee": "Cafe", "Amount": "-3", "Currency": "EUR"},
    ]
    mapping = FieldMapping(transaction_date="Date", name="Payee", amount="Amount", currency="Currency")
    result = transform_rows(rows, mapping, default_strategies, tag_resolver)

    tracer = _enabled_tracer()
    trace = tracer.create_trace("csv_transform")
    tracer.record_transform(trace, result, default_strategies)

    span = tracer.client.spans[-1]
    assert span.name == "transform_rows"
    assert span.input == "2 rows"
    assert span.output == "1 valid, 1 invalid, 0 warnings"
    assert span.metadata["type_strategy"] == "sign-based"
    assert span.metadata["invalid_rows"] == [1]
    assert span.metadata["error_fields"] == {"transactionDate": 1}


def test_record_import():
    result = ImportBatchResult(
        errors=[
            BatchItemError(index=1, message="One or more tags not found"),
            BatchItemError(index=4, message="One or more tags not found"),
        ]
    )
    tracer = _enabled_tracer()
    trace = tracer.create_trace("csv_import")
    tracer.record_import(trace, result)

    span = tracer.client.spans[-1]
    assert span.output == "0 created, 2 failed"
    assert span.metadata == {
        "failed_items": [1, 4],
        "messages": ["One or more tags not found"],
    }


def test_record_helpers_without_trace(default_strategies):
    tracer = ImportTracer()
    tracer.record_import(None, ImportBatchResult())
    tracer.record_transform(
        None, TransformResult(candidates=[], total=0, total_valid=0, total_invalid=0), default_strategies
    )
