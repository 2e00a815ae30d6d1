# menulens/pipeline.py

import asyncio
from dataclasses import replace
from typing import List, Optional, Union

from loguru import logger

from menulens.candidate_extraction import extract_candidates, read_sign_text
from menulens.comparison import build_comparison, estimate_option
from menulens.config import DEFAULT_BUDGET, DEFAULT_LOCATION, MATCH_THRESHOLD, SEARCH_RADIUS_METERS
from menulens.enrichment import build_profile, fetch_business_context
from menulens.errors import InvalidInputError, MenuLensError
from menulens.matchers.geo_matcher import match_candidates
from menulens.models import (
    ComparisonError,
    ComparisonResult,
    Coordinates,
    OptionInput,
    Personalization,
    PipelineState,
    RecognitionResult,
    ResolutionIssue,
    UserProfile,
)
from menulens.parsing import parse_comparison_request, to_parsed_option
from menulens.personalization import personalize


class PipelineOrchestrator:
    """
    Sequences the recognition and comparison pipelines over injected clients.

    Holds no per-run state, so one instance can serve concurrent calls.
    """

    def __init__(
        self,
        places_client,
        vision_client=None,
        radius: float = SEARCH_RADIUS_METERS,
        threshold: float = MATCH_THRESHOLD,
    ):
        self.places_client = places_client
        self.vision_client = vision_client
        self.radius = radius
        self.threshold = threshold

    async def recognize(
        self,
        image_bytes: bytes,
        coordinates: Optional[Coordinates],
        user_profile: Optional[UserProfile] = None,
    ) -> RecognitionResult:
        """
        Identify the restaurant a camera frame is pointed at.

        OCR -> candidate extraction -> geo name matching -> enrichment -> personalization.
        External failures degrade the result instead of raising.

        Args:
            image_bytes (bytes): Camera frame.
            coordinates (Optional[Coordinates]): GPS fix of the device.
            user_profile (Optional[UserProfile]): Preferences for personalization.

        Returns:
            RecognitionResult: `google_match` is None when nothing could be identified.

        Raises:
            InvalidInputError: When the image or coordinates are missing.
        """
        if not image_bytes:
            raise InvalidInputError("No image provided")
        if coordinates is None:
            raise InvalidInputError("Coordinates are required for recognition")
        if self.vision_client is None:
            raise MenuLensError("Recognition needs a vision client")

        states: List[PipelineState] = [PipelineState.STARTED]
        issues: List[ResolutionIssue] = []

        logger.info("📸 Reading signage text")
        ocr = await read_sign_text(self.vision_client, image_bytes)
        if not ocr.ok:
            issues.append(ResolutionIssue.EXTERNAL_SERVICE_DEGRADED)

        candidates = extract_candidates(ocr.value.blocks)
        states.append(PipelineState.CANDIDATES_EXTRACTED)
        if not candidates:
            logger.info("❌ No usable text detected in image")
            issues.append(ResolutionIssue.NO_TEXT_DETECTED)
            return self._finish_recognition(ocr.value.full_text, states, issues)

        states.append(PipelineState.SEARCHING)
        logger.info(f"🗺️ Matching {len(candidates)} candidates near ({coordinates.lat}, {coordinates.lng})")
        match = await match_candidates(
            self.places_client,
            candidates,
            coordinates,
            radius=self.radius,
            threshold=self.threshold,
        )
        if match.degraded:
            issues.append(ResolutionIssue.EXTERNAL_SERVICE_DEGRADED)

        if match.business is None:
            states.append(PipelineState.NO_MATCH)
            issues.append(ResolutionIssue.NO_CANDIDATE_MATCH)
            return self._finish_recognition(
                ocr.value.full_text, states, issues, candidates_tried=match.candidates_tried
            )

        states.extend([PipelineState.MATCHED, PipelineState.ENRICHING])
        logger.info(f"🍽️ Enriching '{match.business.name}'")
        context = await fetch_business_context(self.places_client, match.business)
        if context.degraded and ResolutionIssue.EXTERNAL_SERVICE_DEGRADED not in issues:
            issues.append(ResolutionIssue.EXTERNAL_SERVICE_DEGRADED)
        profile = build_profile(context.details, context.reviews)

        states.append(PipelineState.COMPLETE)
        logger.info(f"✅ Recognition complete: {match.business.name} ({match.confidence:.0%})")
        return RecognitionResult(
            ocr_text=ocr.value.full_text,
            google_match=match.business,
            yelp_ai=profile,
            personalization=personalize(user_profile, match.business, profile),
            confidence_score=match.confidence,
            state=PipelineState.COMPLETE,
            states=states,
            candidates_tried=match.candidates_tried,
            issues=_dedupe(issues),
            degraded=ResolutionIssue.EXTERNAL_SERVICE_DEGRADED in issues,
        )

    @staticmethod
    def _finish_recognition(
        ocr_text: str,
        states: List[PipelineState],
        issues: List[ResolutionIssue],
        candidates_tried: Optional[List[str]] = None,
    ) -> RecognitionResult:
        states.append(PipelineState.COMPLETE)
        return RecognitionResult(
            ocr_text=ocr_text,
            google_match=None,
            yelp_ai=None,
            personalization=Personalization(),
            confidence_score=0.0,
            state=PipelineState.COMPLETE,
            states=states,
            candidates_tried=candidates_tried or [],
            issues=_dedupe(issues),
            degraded=ResolutionIssue.EXTERNAL_SERVICE_DEGRADED in issues,
        )

    async def compare(
        self,
        option1: OptionInput,
        option2: OptionInput,
        budget: float = DEFAULT_BUDGET,
        coordinates: Optional[Coordinates] = None,
    ) -> Union[ComparisonResult, ComparisonError]:
        """
        Compare two restaurant or dish options by value for money.

        Both sides are resolved and estimated concurrently.

        Args:
            option1 (OptionInput): Free text or StructuredOption.
            option2 (OptionInput): Free text or StructuredOption.
            budget (float): Budget in dollars, must be positive.
            coordinates (Optional[Coordinates]): Search center; DEFAULT_LOCATION when omitted.

        Returns:
            Union[ComparisonResult, ComparisonError]: ComparisonError lists the sides that
            could not be resolved.

        Raises:
            InvalidInputError: On a non-positive budget or an empty option.
        """
        if budget is None or budget <= 0:
            raise InvalidInputError(f"Budget must be positive, got {budget}")
        parsed1 = to_parsed_option(option1)
        parsed2 = to_parsed_option(option2)
        if coordinates is None:
            coordinates = Coordinates(*DEFAULT_LOCATION)

        logger.info(f"⚖️ Comparing '{parsed1.label}' vs '{parsed2.label}' for ${budget:g}")
        estimate1, estimate2 = await asyncio.gather(
            estimate_option(self.places_client, parsed1, budget, coordinates),
            estimate_option(self.places_client, parsed2, budget, coordinates),
        )

        issues: List[ResolutionIssue] = []
        if estimate1.degraded or estimate2.degraded:
            issues.append(ResolutionIssue.EXTERNAL_SERVICE_DEGRADED)

        missing = [e.parsed.label for e in (estimate1, estimate2) if e.option is None]
        if missing:
            issues.append(ResolutionIssue.ENTITY_UNRESOLVED)
            error = f"Could not find: {' and '.join(missing)}"
            logger.info(f"❌ {error}")
            return ComparisonError(missing_restaurants=missing, error=error, issues=issues)

        result = build_comparison(estimate1.option, estimate2.option, budget)
        logger.info(f"✅ Winner: {result.winner}")
        return replace(result, issues=issues)

    async def compare_text(
        self, message: str, coordinates: Optional[Coordinates] = None
    ) -> Optional[Union[ComparisonResult, ComparisonError]]:
        """
        Run a comparison from a chat message like "Compare A $18 vs B $18".

        Returns:
            None when the message is not a comparison request.
        """
        request = parse_comparison_request(message)
        if request is None:
            return None
        return await self.compare(request.option1, request.option2, request.budget, coordinates)


def _dedupe(issues: List[ResolutionIssue]) -> List[ResolutionIssue]:
    return list(dict.fromkeys(issues))
