"""
Correction orchestrator: generate, validate, and correct at most once.

Drafted -> Scored -> Accepted
Drafted -> Scored -> CorrectionRequested -> Rescored -> Accepted

A draft scoring below the threshold gets exactly one correction call with
the warnings (and any hallucination findings) appended to the
conversation. Whatever that second call returns is accepted as a whole,
whatever its score. Generation errors propagate to the caller unchanged;
a low score is never an error.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Optional

from .config import get_settings
from .errors import GenerationError, GenerationTimeoutError
from .generation import GenerationService
from .hallucination import check_title_fidelity, diff, format_findings
from .logging_conf import get_logger
from .models import (
    CatalogRecord,
    CorrectionCycle,
    CycleState,
    FieldTarget,
    HallucinationFinding,
    ScoreResult,
    Severity,
)
from .policy import MAX_SCORE, clamp_score
from .prompts import CATALOG_SYSTEM_PROMPT, build_user_prompt
from .response_parser import ParsedReply, parse_reply
from .scorer import score

logger = get_logger(__name__)


@dataclass
class CorrectionOutcome:
    """Accepted field values and how they were reached."""
    fields: dict[str, str]
    score_result: ScoreResult
    findings: list[HallucinationFinding] = field(default_factory=list)
    title_errors: list[str] = field(default_factory=list)
    calls: int = 1
    first_score: Optional[int] = None
    cycle: CorrectionCycle = field(default_factory=CorrectionCycle)

    @property
    def corrected(self) -> bool:
        return self.calls > 1

    def to_dict(self) -> dict:
        return {
            "fields": dict(self.fields),
            "score": self.score_result.score,
            "first_score": self.first_score,
            "corrected": self.corrected,
            "calls": self.calls,
            "warnings": [w.to_dict() for w in self.score_result.warnings],
            "findings": [f.to_dict() for f in self.findings],
            "title_errors": list(self.title_errors),
            "states": [s.value for s in self.cycle.history + [self.cycle.state]],
        }


# =====================================================
# CORRECTION INSTRUCTION
# =====================================================

def build_correction_instruction(
    score_result: ScoreResult,
    findings: Optional[list[HallucinationFinding]] = None,
    extra_errors: Optional[list[str]] = None,
) -> str:
    """
    Build the follow-up user turn listing everything that must change.

    High and medium warnings are errors, low warnings are suggestions.
    Hallucination findings and title fidelity errors get their own block.
    """
    errors = [w.message for w in score_result.warnings if w.severity != Severity.LOW]
    suggestions = [w.message for w in score_result.warnings if w.severity == Severity.LOW]
    invented = format_findings(findings or []) + list(extra_errors or [])

    parts = [
        "De föregående förslagen klarade inte kvalitetskontrollen:",
        f"Poäng: {score_result.score}/100",
    ]
    if errors:
        parts.append("\nFEL SOM MÅSTE RÄTTAS:\n" + "\n".join(f"- {m}" for m in errors))
    if suggestions:
        parts.append("\nFÖRBÄTTRINGSFÖRSLAG:\n" + "\n".join(f"- {m}" for m in suggestions))
    if invented:
        parts.append(
            "\nUPPGIFTER SOM SAKNAS I ORIGINALET OCH MÅSTE TAS BORT:\n"
            + "\n".join(f"- {m}" for m in invented)
        )
    parts.append(
        "\nVänligen korrigera dessa problem och returnera förbättrade versioner "
        "som följer alla svenska auktionsstandarder, i samma format som tidigare."
    )
    return "\n".join(parts)


# =====================================================
# ORCHESTRATION
# =====================================================

async def _generate(
    service: GenerationService,
    system_context: str,
    user_prompt: str,
    history: list[dict],
    timeout: Optional[float],
) -> str:
    """One generation call bounded by timeout."""
    try:
        return await asyncio.wait_for(
            service.generate(system_context, user_prompt, history),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning("generation_failed", error="timeout", timeout=timeout)
        raise GenerationTimeoutError(timeout)
    except GenerationError as e:
        logger.warning("generation_failed", error=type(e).__name__, message=str(e))
        raise


def _focus(result: ScoreResult, target: FieldTarget) -> ScoreResult:
    """
    The part of result the generated fields can change.

    A single-field run cannot fix warnings on the other fields, so only
    its own warnings count towards the trigger and the instruction.
    """
    if target == FieldTarget.ALL:
        return result
    warnings = [w for w in result.warnings if w.field in target.fields]
    return ScoreResult(
        score=clamp_score(MAX_SCORE - sum(w.deduction for w in warnings)),
        warnings=warnings,
    )


def _validate(
    record: CatalogRecord,
    parsed: ParsedReply,
) -> tuple[ScoreResult, list[HallucinationFinding], list[str]]:
    """Rescore the candidate record and diff the fields that allow it."""
    candidate = record.with_fields(parsed.fields)
    result = score(candidate)

    findings = []
    if "condition" in parsed.fields:
        findings = diff(record.condition, candidate.condition)

    title_errors = []
    if "title" in parsed.fields:
        title_errors = check_title_fidelity(record.title, candidate.title)

    return result, findings, title_errors


async def run_correction_cycle(
    service: GenerationService,
    record: CatalogRecord,
    target: FieldTarget = FieldTarget.ALL,
    system_context: Optional[str] = None,
    user_prompt: Optional[str] = None,
    threshold: Optional[int] = None,
    timeout: Optional[float] = None,
    correct_on_hallucination: Optional[bool] = None,
) -> CorrectionOutcome:
    """
    Generate field values for target and validate them.

    Args:
        service: Generation service to call (at most twice)
        record: Source snapshot; never mutated
        target: Field(s) to generate
        system_context: System prompt (default: CATALOG_SYSTEM_PROMPT)
        user_prompt: User prompt (default: built from record and target)
        threshold: Scores below this trigger the correction call; for a
            single field only that field's warnings are counted
        timeout: Upper bound per generation call in seconds, retries
            included (default: only the transport's own per-attempt timeout)
        correct_on_hallucination: Also correct when findings exist

    Returns:
        CorrectionOutcome with the accepted fields

    Raises:
        GenerationTimeoutError: A call exceeded timeout
        GenerationError: Upstream failure or unparseable reply
    """
    settings = get_settings()
    threshold = settings.correction_threshold if threshold is None else threshold
    if correct_on_hallucination is None:
        correct_on_hallucination = settings.correct_on_hallucination

    if not isinstance(record, CatalogRecord):
        record = CatalogRecord.from_dict(record if isinstance(record, dict) else {})
    target = FieldTarget(target)
    system_context = system_context or CATALOG_SYSTEM_PROMPT
    user_prompt = user_prompt or build_user_prompt(record, target)
    expected = target.fields

    cycle = CorrectionCycle()

    raw_draft = await _generate(service, system_context, user_prompt, [], timeout)
    draft = parse_reply(raw_draft, expected)
    calls = 1

    result, findings, title_errors = _validate(record, draft)
    cycle.last_score_result = result
    cycle.advance(CycleState.SCORED)
    first_score = result.score
    focused = _focus(result, target)

    logger.info(
        "draft_scored",
        field=target.value,
        score=result.score,
        trigger_score=focused.score,
        threshold=threshold,
        findings=len(findings),
        title_errors=len(title_errors),
    )

    needs_correction = focused.score < threshold
    if correct_on_hallucination and (findings or title_errors):
        needs_correction = True

    if not needs_correction:
        cycle.accepted = dict(draft.fields)
        cycle.advance(CycleState.ACCEPTED)
        return CorrectionOutcome(
            fields=cycle.accepted,
            score_result=result,
            findings=findings,
            title_errors=title_errors,
            calls=calls,
            first_score=first_score,
            cycle=cycle,
        )

    cycle.advance(CycleState.CORRECTION_REQUESTED)
    cycle.attempt = 1
    instruction = build_correction_instruction(focused, findings, title_errors)

    logger.info(
        "correction_requested",
        field=target.value,
        score=focused.score,
        warnings=len(focused.warnings),
        findings=len(findings),
    )

    history = [
        {"role": "user", "content": user_prompt},
        {"role": "assistant", "content": raw_draft},
    ]
    raw_corrected = await _generate(service, system_context, instruction, history, timeout)
    corrected = parse_reply(raw_corrected, expected)
    calls += 1

    # Accepted whole, even below threshold
    result, findings, title_errors = _validate(record, corrected)
    cycle.last_score_result = result
    cycle.advance(CycleState.RESCORED)
    cycle.accepted = dict(corrected.fields)
    cycle.advance(CycleState.ACCEPTED)

    logger.info(
        "correction_accepted",
        field=target.value,
        first_score=first_score,
        score=result.score,
        still_below_threshold=result.score < threshold,
    )

    return CorrectionOutcome(
        fields=cycle.accepted,
        score_result=result,
        findings=findings,
        title_errors=title_errors,
        calls=calls,
        first_score=first_score,
        cycle=cycle,
    )
