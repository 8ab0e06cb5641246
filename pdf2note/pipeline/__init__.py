"""Page-processing pipeline.

:meth:`ConversionPipeline.run` drives one conversion:
  1. Allocates a fresh output folder for the document's images.
  2. Renders pages in chunks of bounded size; pages inside a chunk render,
     encode and write concurrently.
  3. Folds each chunk's results in page order through header deduplication
     and link formatting.
  4. Hands the resulting links to the Procedural or Batch insertion strategy.
"""

from .headers import DedupPolicy, extract_header
from .insertion import BatchInsertion, ProceduralInsertion, create_insertion_strategy
from .links import build_link
from .models import LinkRecord, RenderJob, RenderResult
from .runner import ConversionPipeline, ConversionReport, convert_pdf_to_note
from .scheduler import ChunkedScheduler
from .worker import PageWorker, WorkerOptions


__all__ = [
    "BatchInsertion",
    "ChunkedScheduler",
    "ConversionPipeline",
    "ConversionReport",
    "DedupPolicy",
    "LinkRecord",
    "PageWorker",
    "ProceduralInsertion",
    "RenderJob",
    "RenderResult",
    "WorkerOptions",
    "build_link",
    "convert_pdf_to_note",
    "create_insertion_strategy",
    "extract_header",
]
