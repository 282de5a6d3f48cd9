"""ScoreCard computation: collect existing scores into one ordered card."""

from __future__ import annotations

import logging
from datetime import datetime

from ..errors import EvaluationError, NotFoundError, PatternError
from ..names import ResourceInstance, ResourceKind, substitute_reference_entity
from ..registry.artifact import Artifact, mime_type_for_message_type
from ..registry.client import ArtifactClient
from .definitions import load_score_card_definition
from .models import Score, ScoreCard, ScoreCardDefinition
from .schemas import SCORE_CARD_TYPE, SCORE_TYPE, decode_message, encode_message
from .score import definition_name, is_stale

logger = logging.getLogger(__name__)

SCORE_CARD_MIME_TYPE = mime_type_for_message_type(SCORE_CARD_TYPE)


def score_card_id(definition_id: str) -> str:
    return f"scorecard-{definition_id}"


def calculate_score_card(
    client: ArtifactClient,
    definition_artifact: Artifact,
    resource: ResourceInstance,
    take_action: bool = False,
    dry_run: bool = False,
) -> ScoreCard | None:
    """Build the scorecard for ``resource``; None when the stored one is current."""
    definition = load_score_card_definition(definition_artifact)
    name = f"{resource.name}/artifacts/{score_card_id(definition.id)}"

    card_time: datetime | None = None
    try:
        existing = client.get_artifact(name, with_contents=False)
        card_time = existing.update_time
    except NotFoundError:
        take_action = True
    if is_stale(definition_artifact.update_time, card_time):
        take_action = True

    scores, needs_update = process_score_patterns(client, definition, resource, card_time, take_action)
    if not needs_update:
        logger.debug("%s is already up-to-date", name)
        return None

    card = ScoreCard(
        id=score_card_id(definition.id),
        display_name=definition.display_name,
        description=definition.description,
        definition_name=definition_name(resource.name.project(), definition.id),
        scores=scores,
    )
    if dry_run:
        logger.info("dry run: would upload %s", name)
    else:
        upload_score_card(client, resource, card)
    return card


def process_score_patterns(
    client: ArtifactClient,
    definition: ScoreCardDefinition,
    resource: ResourceInstance,
    card_time: datetime | None,
    take_action: bool,
) -> tuple[list[Score], bool]:
    """Fetch each referenced score in declared order."""
    scores: list[Score] = []
    needs_update = take_action
    for pattern in definition.score_patterns:
        try:
            target = substitute_reference_entity(pattern, resource.name)
        except PatternError as exc:
            raise EvaluationError(f"invalid pattern {pattern!r} in score_patterns: {exc}") from exc
        if target.kind != ResourceKind.ARTIFACT or target.is_pattern():
            raise EvaluationError(f"invalid pattern {pattern!r} in score_patterns: does not name a single artifact")

        try:
            artifact = client.get_artifact(str(target), with_contents=True)
        except NotFoundError as exc:
            raise EvaluationError(f"failed to fetch artifact {target}: {exc}") from exc

        try:
            message_type, data = decode_message(artifact.mime_type, artifact.contents)
        except ValueError as exc:
            raise EvaluationError(f"failed decoding artifact {artifact.name!r} as Score: {exc}") from exc
        if message_type != SCORE_TYPE:
            raise EvaluationError(f"artifact {artifact.name!r} is a {message_type}, not a Score")

        needs_update = needs_update or is_stale(artifact.update_time, card_time)
        scores.append(Score.from_dict(data))
    return scores, needs_update


def upload_score_card(client: ArtifactClient, resource: ResourceInstance, card: ScoreCard) -> Artifact:
    artifact = Artifact(
        name=f"{resource.name}/artifacts/{card.id}",
        mime_type=SCORE_CARD_MIME_TYPE,
        contents=encode_message(card.to_dict()),
    )
    logger.debug("uploading %s", artifact.name)
    return client.set_artifact(artifact)
