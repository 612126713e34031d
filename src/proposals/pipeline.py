"""Enrichment pipeline: notes in, reviewed profile changes out.

start()    extract from the RM's note, pick follow-up questions
finalize() fold the answers in and build the proposal (+ pending artifacts)
apply()    write whatever the RM accepted
"""

import structlog

from customers.storage import ProfileStore
from llm.base import LLMAuthError
from nudges.models import NudgeAnswer
from nudges.questions import QuestionGenerator
from nudges.scoring import score_empty_fields
from nudges.selection import DEFAULT_MAX_QUESTIONS, DEFAULT_QUOTA_PERCENT, select_nudge_fields
from shared_types import NoteSource

from .apply import ApplyOrchestrator
from .artifacts import ArtifactStore
from .builder import ProposalBuilder
from .extractor import ProfileExtractor
from .interests import InterestStore
from .models import (
    ApplyUpdatesRequest,
    ApplyUpdatesResponse,
    Extraction,
    ExtractionWithNudges,
    ProfileUpdateProposal,
)

logger = structlog.get_logger()


class EnrichmentPipeline:
    def __init__(
        self,
        profiles: ProfileStore,
        artifacts: ArtifactStore,
        interests: InterestStore,
        extractor: ProfileExtractor | None = None,
        questions: QuestionGenerator | None = None,
        max_questions: int = DEFAULT_MAX_QUESTIONS,
        quota_percent: int = DEFAULT_QUOTA_PERCENT,
    ):
        self.profiles = profiles
        self.artifacts = artifacts
        self.interests = interests
        self.extractor = extractor or ProfileExtractor()
        self.questions = questions or QuestionGenerator()
        self.max_questions = max_questions
        self.quota_percent = quota_percent
        self.builder = ProposalBuilder(artifacts=artifacts)
        self.orchestrator = ApplyOrchestrator(profiles, artifacts, interests)

    @classmethod
    def from_config(cls, config, provider=None) -> "EnrichmentPipeline":
        """Wire stores and LLM collaborators from a ``ClientbookConfig``."""
        db_path = config.paths.db_path
        artifacts = ArtifactStore(db_path)
        if provider is None:
            from llm.factory import create_provider_from_config

            try:
                provider = create_provider_from_config(config.llm)
            except Exception as e:
                # No key configured: extraction and questions run on their fallbacks
                logger.warning("pipeline.no_llm_provider", error=str(e))
                provider = None
        attempts = config.retry.max_attempts
        return cls(
            profiles=ProfileStore(db_path),
            artifacts=artifacts,
            interests=InterestStore(db_path, artifacts),
            extractor=ProfileExtractor(
                provider=provider or _UnavailableProvider(),
                max_attempts=attempts,
                max_tokens=config.llm.max_tokens,
                max_input_chars=config.limits.note_max_chars,
            ),
            questions=QuestionGenerator(
                provider=provider or _UnavailableProvider(), max_attempts=attempts
            ),
            max_questions=config.nudges.max_questions,
            quota_percent=config.nudges.quota_percent,
        )

    def start(
        self, customer_id: str, content: str, source: NoteSource = NoteSource.MEETING
    ) -> ExtractionWithNudges:
        customer = self.profiles.require_customer(customer_id)

        extraction = self.extractor.extract(content, source, customer)
        interests = self.extractor.extract_interests(content, customer.full_name)
        extraction = extraction.model_copy(update={"interests": tuple(interests)})

        scored = score_empty_fields(customer.fields)
        selected = select_nudge_fields(
            scored,
            extraction.field_keys,
            max_questions=self.max_questions,
            quota_percent=self.quota_percent,
        )
        nudges = self.questions.generate(selected, customer.summary(), content)

        logger.info(
            "pipeline.started",
            customer_id=customer_id,
            extracted_fields=len(extraction.fields),
            interests=len(interests),
            nudges=len(nudges),
        )
        return ExtractionWithNudges(
            customer_id=customer_id,
            raw_input=content,
            source=source,
            extraction=extraction,
            nudges=tuple(nudges),
            empty_field_count=len(scored),
        )

    def finalize(
        self,
        customer_id: str,
        draft: ExtractionWithNudges,
        answers: list[NudgeAnswer] | None = None,
        rm_id: str | None = None,
    ) -> ProfileUpdateProposal:
        customer = self.profiles.require_customer(customer_id)
        answered = self.extractor.extract_answers(answers or [])
        extraction = draft.extraction.merged_with(Extraction(fields=tuple(answered)))
        return self.builder.build(customer, extraction, draft.raw_input, draft.source, rm_id)

    def apply(
        self,
        customer_id: str,
        request: ApplyUpdatesRequest | dict,
        actor_id: str | None = None,
    ) -> ApplyUpdatesResponse:
        return self.orchestrator.apply(customer_id, request, actor_id)


class _UnavailableProvider:
    """Stands in when no LLM key is configured; every call takes the fallback path."""

    provider_name = "unavailable"

    def generate(self, messages, system=None, max_tokens=2000) -> str:
        raise LLMAuthError("No LLM provider configured")
