"""
Streaming report generation against the configured chat model
"""
import asyncio
import logging
from typing import AsyncIterator, Callable, List, Literal, Optional, Union

from pydantic import BaseModel

from .config import DEFAULT_MODEL, GENERATION_TIMEOUT
from .utils import get_text_llm

logger = logging.getLogger(__name__)


# --- EVENTS ---
class TextDelta(BaseModel):
    """A new piece of text plus everything received so far."""
    kind: Literal["delta"] = "delta"
    delta: str
    text: str


class GenerationCompleted(BaseModel):
    kind: Literal["completed"] = "completed"
    full_text: str


class GenerationFailed(BaseModel):
    kind: Literal["failed"] = "failed"
    error: str


GenerationEvent = Union[TextDelta, GenerationCompleted, GenerationFailed]


def _chunk_text(chunk) -> str:
    """Pull plain text out of a streamed message chunk."""
    content = getattr(chunk, "content", chunk)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        # Anthropic streams content blocks
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type", "text") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return ""


async def _close_stream(stream):
    aclose = getattr(stream, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception as e:
        logger.debug(f"Error closing model stream: {e}")


class ReportGenerationClient:
    """
    Streams a report from a chat model.

    ``generate`` is an async generator: it yields TextDelta events while text
    arrives and finishes with exactly one GenerationCompleted or
    GenerationFailed. Every call is a fresh attempt, so retrying is just
    calling ``generate`` again. Cancelling the consuming task, or closing the
    generator, closes the underlying model stream.
    """

    def __init__(self, model_name: str = DEFAULT_MODEL,
                 llm_factory: Optional[Callable] = None,
                 timeout: float = GENERATION_TIMEOUT):
        self.model_name = model_name
        self.timeout = timeout
        self._llm_factory = llm_factory or get_text_llm

    async def generate(self, prompt: str,
                       correlation_id: Optional[str] = None) -> AsyncIterator[GenerationEvent]:
        chunks: List[str] = []
        stream = None
        logger.info(f"Starting report generation with {self.model_name} (correlation_id={correlation_id})")

        try:
            llm = self._llm_factory(self.model_name)
            stream = llm.astream(
                prompt,
                config={
                    "run_name": "session_report",
                    "metadata": {"model": self.model_name, "correlation_id": correlation_id},
                },
            ).__aiter__()

            while True:
                try:
                    chunk = await asyncio.wait_for(stream.__anext__(), timeout=self.timeout)
                except StopAsyncIteration:
                    break

                delta = _chunk_text(chunk)
                if not delta:
                    continue
                chunks.append(delta)
                yield TextDelta(delta=delta, text="".join(chunks))

        except asyncio.CancelledError:
            logger.info(f"Report generation cancelled after {len(chunks)} chunks")
            raise
        except asyncio.TimeoutError:
            logger.error(f"Report generation timed out after {self.timeout}s")
            yield GenerationFailed(error=f"No response from {self.model_name} within {self.timeout:g} seconds")
            return
        except Exception as e:
            logger.error(f"Report generation failed: {e}")
            yield GenerationFailed(error=str(e) or e.__class__.__name__)
            return
        finally:
            if stream is not None:
                await _close_stream(stream)

        full_text = "".join(chunks)
        if not full_text.strip():
            logger.warning("Report generation returned no text")
            yield GenerationFailed(error="The model returned an empty response")
            return

        logger.info(f"Report generation completed ({len(full_text)} characters)")
        yield GenerationCompleted(full_text=full_text)
