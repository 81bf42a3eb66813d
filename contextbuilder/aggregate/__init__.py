"""Aggregation of selected files into LLM-ready text.

Contains the format encoders, the language-tag table, the batch content
reader, tree-sitter source compression, the aggregation pipeline and its
background scheduler.
"""

from __future__ import annotations

from .compression import compress_contents, compress_source, language_for_compression
from .content import BatchReader, FileContent, read_file_text, read_many, read_text
from .formats import (
    DEFAULT_FORMAT,
    DEFAULT_PREAMBLE_TAG,
    DEFAULT_QUERY_TAG,
    ENCODERS,
    FORMAT_MARKDOWN,
    FORMAT_RAW,
    FORMAT_SENTINEL,
    FORMAT_XML,
    OUTPUT_FORMATS,
    FileBlock,
    OutputEncoder,
    escape_xml,
    get_encoder,
    relative_display_path,
    wrap_prompt,
)
from .languages import LANGUAGE_BY_EXTENSION, file_extension, language_for_path
from .pipeline import (
    READ_ERROR_PREFIX,
    AggregationResult,
    AggregationSettings,
    aggregate,
    collect_relevant_files,
    iter_relevant,
    relevant_directories,
)
from .scheduler import AGGREGATION_FAILED_LABEL, AggregationRequest, AggregationScheduler

__all__ = [
    "compress_contents",
    "compress_source",
    "language_for_compression",
    "BatchReader",
    "FileContent",
    "read_text",
    "read_file_text",
    "read_many",
    "DEFAULT_FORMAT",
    "DEFAULT_PREAMBLE_TAG",
    "DEFAULT_QUERY_TAG",
    "ENCODERS",
    "FORMAT_MARKDOWN",
    "FORMAT_XML",
    "FORMAT_SENTINEL",
    "FORMAT_RAW",
    "OUTPUT_FORMATS",
    "FileBlock",
    "OutputEncoder",
    "escape_xml",
    "get_encoder",
    "relative_display_path",
    "wrap_prompt",
    "LANGUAGE_BY_EXTENSION",
    "file_extension",
    "language_for_path",
    "READ_ERROR_PREFIX",
    "AggregationResult",
    "AggregationSettings",
    "aggregate",
    "collect_relevant_files",
    "iter_relevant",
    "relevant_directories",
    "AGGREGATION_FAILED_LABEL",
    "AggregationRequest",
    "AggregationScheduler",
]
