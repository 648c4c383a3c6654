"""
AI Menu Extraction
Turns sanitized menu text into a validated ExtractedMenuData using the LLM.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from menu_import.config import get_settings
from menu_import.core.extraction.chunking import merge_extractions, split_into_chunks
from menu_import.core.extraction.guard import filter_extraction, sanitize_menu_text
from menu_import.core.extraction.normalize import normalize_extraction
from menu_import.core.extraction.references import KnownReferences, validate_references
from menu_import.core.extraction.response_parser import decode_response, to_extraction
from menu_import.core.prompts.builder import PromptBuilder, get_prompt_builder
from menu_import.models.domain import (
    ExistingCategoryRef,
    ExistingItemRef,
    ExtractedMenuData,
    VatGroupRef,
)
from menu_import.services.debug_log import DEBUG_LOG_DIRNAME, DebugSession
from menu_import.services.llm_client import LLMClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelConfig:
    id: str
    supports_structured_output: bool = False


@dataclass
class ExtractionOptions:
    model: ModelConfig
    existing_categories: List[ExistingCategoryRef] = field(default_factory=list)
    existing_items: List[ExistingItemRef] = field(default_factory=list)
    vat_groups: List[VatGroupRef] = field(default_factory=list)


def default_model_config() -> ModelConfig:
    settings = get_settings()
    return ModelConfig(
        id=settings.DEFAULT_MODEL_NAME,
        supports_structured_output=settings.MODEL_SUPPORTS_STRUCTURED_OUTPUT,
    )


def _dump(extraction: ExtractedMenuData) -> str:
    return extraction.model_dump_json(by_alias=True, indent=2)


class MenuExtractor:
    """Handles AI extraction: chunking, model calls, validation and merging"""

    def __init__(
        self,
        llm_client: LLMClient,
        prompt_builder: Optional[PromptBuilder] = None,
        chunk_size: Optional[int] = None,
        max_concurrency: Optional[int] = None,
        debug: Optional[bool] = None,
        debug_log_dir: Optional[Path] = None,
    ):
        settings = get_settings()
        self.llm = llm_client
        self.prompt_builder = prompt_builder or get_prompt_builder()
        self.chunk_size = chunk_size or settings.CHUNK_SIZE_CHARS
        self.max_concurrency = max_concurrency or settings.CHUNK_CONCURRENCY
        self.debug = settings.DEBUG if debug is None else debug
        self.debug_log_dir = debug_log_dir or settings.OUTPUTS_DIR / DEBUG_LOG_DIRNAME

    async def extract(self, text: str, options: ExtractionOptions) -> ExtractedMenuData:
        """
        Extract menu data from text.

        Args:
            text: Menu text as produced by the text extractor
            options: Model selection and matching context

        Returns:
            Merged, reference-checked and content-filtered extraction
        """
        session = DebugSession.start(self.debug_log_dir, enabled=self.debug)
        session.write("EXTRACTION CONTEXT", self._describe_context(text, options))

        mode = "structured" if options.model.supports_structured_output else "chat"
        logger.debug("Using %s extraction with model %s", mode, options.model.id)

        sanitized = sanitize_menu_text(text)
        if not sanitized.text.strip():
            logger.warning("Menu text is empty, skipping model call")
            return ExtractedMenuData.empty()

        known = KnownReferences.from_context(
            options.existing_categories, options.existing_items, options.vat_groups
        )

        if len(sanitized.text) > self.chunk_size:
            chunks = split_into_chunks(sanitized.text, self.chunk_size)
            session.write(
                "CHUNKING INFO",
                f"Text split into {len(chunks)} chunks (max {self.chunk_size} chars each)",
            )
            coros = [
                self.extract_chunk(chunk, options, known, session, chunk_index=i)
                for i, chunk in enumerate(chunks)
            ]
            extraction = merge_extractions(await self._bounded_gather(coros))
            session.write("MERGED RESULT", _dump(extraction))
        else:
            extraction = await self.extract_chunk(sanitized.text, options, known, session)

        extraction = filter_extraction(extraction)
        session.write("FINAL VALIDATED RESULT", _dump(extraction))
        session.write("EXTRACTION COMPLETE", f"Session {session.session_id} finished")
        return extraction

    async def extract_chunk(
        self,
        chunk: str,
        options: ExtractionOptions,
        known: KnownReferences,
        session: DebugSession,
        chunk_index: Optional[int] = None,
    ) -> ExtractedMenuData:
        """Run one model call and return its normalized, reference-checked result."""
        label = f" (chunk {chunk_index + 1})" if chunk_index is not None else ""
        system_prompt = self.prompt_builder.system_prompt()
        user_prompt = self.prompt_builder.extraction_prompt(
            chunk,
            existing_categories=options.existing_categories,
            existing_items=options.existing_items,
            vat_groups=options.vat_groups,
        )
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        if options.model.supports_structured_output:
            session.write(
                f"INPUT{label} - Model: {options.model.id} (structured)",
                f"=== SYSTEM PROMPT ===\n{system_prompt}\n\n=== USER PROMPT ===\n{user_prompt}",
            )
            extraction = await self.llm.generate_structured(
                messages, ExtractedMenuData, model=options.model.id
            )
            session.write(f"OUTPUT{label} - Structured Response", _dump(extraction))
        else:
            session.write(
                f"INPUT{label} - Model: {options.model.id} (chat)",
                f"=== SYSTEM PROMPT ===\n{system_prompt}\n\n=== USER PROMPT ===\n{user_prompt}",
            )
            content = await self.llm.chat(messages, model=options.model.id)
            session.write(f"OUTPUT{label} - Raw AI Response", content)
            logger.debug("AI raw response: %r", content[:300])
            extraction = to_extraction(decode_response(content))
            session.write(f"OUTPUT{label} - Parsed Result", _dump(extraction))

        return validate_references(normalize_extraction(extraction), known)

    async def _bounded_gather(self, coros: List) -> List:
        """Run coroutines with concurrency limit, keeping input order"""
        sem = asyncio.Semaphore(self.max_concurrency)

        async def _run(coro):
            async with sem:
                return await coro

        return await asyncio.gather(*(_run(c) for c in coros))

    @staticmethod
    def _describe_context(text: str, options: ExtractionOptions) -> str:
        context: Dict[str, Any] = {
            "model": options.model.id,
            "supportsStructuredOutput": options.model.supports_structured_output,
            "textLength": len(text),
            "existingCategories": len(options.existing_categories),
            "existingItems": len(options.existing_items),
            "vatGroups": len(options.vat_groups),
        }
        return json.dumps(context, indent=2)

